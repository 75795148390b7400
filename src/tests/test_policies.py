"""Tests for the user policy and the authorization service."""

from unittest import mock

from django.test import SimpleTestCase

from access_control.policies import Ability, Actor, ResourcePolicy, ResourceType, UserPolicy
from access_control.roles import Permission, Role
from access_control.services import AuthorizationService, authorization

ADMIN = Actor(id=1, role=Role.ADMIN)
OTHER_ADMIN = Actor(id=2, role=Role.ADMIN)
FACTURADOR = Actor(id=3, role=Role.FACTURADOR)
BASIC = Actor(id=4, role=Role.USER)
BODEGUERO = Actor(id=5, role=Role.BODEGUERO)


class UserPolicyTests(SimpleTestCase):
    def setUp(self):
        self.policy = UserPolicy()

    def test_view_and_create_follow_permissions(self):
        self.assertTrue(self.policy.view(ADMIN))
        self.assertTrue(self.policy.create(ADMIN))
        for actor in (FACTURADOR, BASIC, BODEGUERO):
            with self.subTest(actor=actor):
                self.assertFalse(self.policy.view(actor))
                self.assertFalse(self.policy.create(actor))

    def test_admin_may_edit_anyone_including_self(self):
        for target in (ADMIN, OTHER_ADMIN, FACTURADOR, BASIC):
            with self.subTest(target=target):
                self.assertTrue(self.policy.update(ADMIN, target))

    def test_non_admin_cannot_edit(self):
        for target in (OTHER_ADMIN, BODEGUERO, BASIC, FACTURADOR):
            with self.subTest(target=target):
                self.assertFalse(self.policy.update(FACTURADOR, target))

    def test_admin_targets_need_an_admin_editor(self):
        editor = Actor(id=9, role=Role.BODEGUERO)
        with mock.patch("access_control.policies._actor_has", return_value=True):
            self.assertFalse(self.policy.update(editor, ADMIN))
            self.assertTrue(self.policy.update(editor, BASIC))

    def test_admins_are_never_deleted(self):
        self.assertFalse(self.policy.delete(ADMIN, OTHER_ADMIN))
        self.assertFalse(self.policy.delete(ADMIN, ADMIN))

    def test_nobody_deletes_themselves(self):
        self.assertFalse(self.policy.delete(BASIC, BASIC))

    def test_admin_deletes_non_admin(self):
        for target in (FACTURADOR, BASIC, BODEGUERO):
            with self.subTest(target=target):
                self.assertTrue(self.policy.delete(ADMIN, target))

    def test_non_admin_cannot_delete(self):
        self.assertFalse(self.policy.delete(FACTURADOR, BASIC))

    def test_every_actor_target_role_pair(self):
        for actor_role in Role:
            for target_role in Role:
                actor = Actor(id=100, role=actor_role)
                target = Actor(id=200, role=target_role)
                with self.subTest(actor=actor_role.value, target=target_role.value):
                    self.assertEqual(self.policy.update(actor, target), actor_role == Role.ADMIN)
                    self.assertEqual(
                        self.policy.delete(actor, target),
                        actor_role == Role.ADMIN and target_role != Role.ADMIN,
                    )
                    self.assertFalse(self.policy.delete(actor, Actor(id=100, role=target_role)))

    def test_missing_actor_or_target_is_denied(self):
        self.assertFalse(self.policy.view(None))
        self.assertFalse(self.policy.create(None))
        self.assertFalse(self.policy.update(None, BASIC))
        self.assertFalse(self.policy.update(ADMIN, None))
        self.assertFalse(self.policy.delete(None, BASIC))
        self.assertFalse(self.policy.delete(ADMIN, None))

    def test_target_with_unknown_role_is_denied(self):
        stranger = Actor(id=10, role="ghost")  # type: ignore[arg-type]
        self.assertFalse(self.policy.update(ADMIN, stranger))
        self.assertFalse(self.policy.delete(ADMIN, stranger))

    def test_assign_role(self):
        self.assertTrue(UserPolicy.assign_role(ADMIN, Role.ADMIN))
        self.assertFalse(UserPolicy.assign_role(FACTURADOR, Role.USER))
        self.assertFalse(UserPolicy.assign_role(None, Role.USER))


class AuthorizationServiceTests(SimpleTestCase):
    def test_dispatches_abilities_to_user_policy(self):
        self.assertTrue(authorization.can(ADMIN, Ability.VIEW, ResourceType.USER))
        self.assertTrue(authorization.can(ADMIN, "create", "user"))
        self.assertTrue(authorization.can(ADMIN, Ability.UPDATE, ResourceType.USER, BASIC))
        self.assertTrue(authorization.can(ADMIN, Ability.DELETE, ResourceType.USER, BASIC))
        self.assertFalse(authorization.can(ADMIN, Ability.DELETE, ResourceType.USER, OTHER_ADMIN))

    def test_unknown_resource_type_is_denied(self):
        self.assertFalse(authorization.can(ADMIN, Ability.VIEW, "invoice"))

    def test_unknown_ability_is_denied(self):
        self.assertFalse(authorization.can(ADMIN, "approve", ResourceType.USER))
        self.assertFalse(authorization.can(ADMIN, None, ResourceType.USER))

    def test_missing_actor_is_denied(self):
        for ability in Ability:
            with self.subTest(ability=ability):
                self.assertFalse(authorization.can(None, ability, ResourceType.USER, BASIC))
        self.assertFalse(authorization.has_permission(None, Permission.VIEW_USERS))
        self.assertEqual(authorization.get_assignable_roles(None), frozenset())
        self.assertFalse(authorization.can_assign_role(None, Role.USER))

    def test_has_permission_and_assignable_roles(self):
        self.assertTrue(authorization.has_permission(FACTURADOR, Permission.CREATE_INVOICES))
        self.assertFalse(authorization.has_permission(FACTURADOR, Permission.VIEW_USERS))
        self.assertEqual(authorization.get_assignable_roles(ADMIN), frozenset(Role))
        self.assertEqual(authorization.get_assignable_roles(BODEGUERO), frozenset())

    def test_custom_policy_registry(self):
        class ReadOnlyPolicy(ResourcePolicy):
            def view(self, actor, resource=None):
                return actor is not None

            def create(self, actor):
                return False

            def update(self, actor, resource):
                return False

            def delete(self, actor, resource):
                return False

        service = AuthorizationService(policies={"report": ReadOnlyPolicy()})
        self.assertTrue(service.can(BASIC, Ability.VIEW, "report"))
        self.assertFalse(service.can(ADMIN, Ability.CREATE, "report"))
        self.assertFalse(service.can(ADMIN, Ability.VIEW, ResourceType.USER))
        # Without a user policy registered, role assignment is denied.
        self.assertFalse(service.can_assign_role(ADMIN, Role.USER))
