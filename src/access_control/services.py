"""Central authorization entry point.

``AuthorizationService`` looks up the policy registered for a resource type
and dispatches the requested ability to it. Unknown resource types, unknown
abilities and anonymous actors are all denied; nothing here raises during
normal evaluation.
"""

from typing import FrozenSet, Mapping, Optional

from .policies import Ability, ResourcePolicy, ResourceType, UserPolicy
from .roles import Permission, Role, assignable_roles, role_has_permission


def _default_policies() -> dict[str, ResourcePolicy]:
    return {ResourceType.USER: UserPolicy()}


class AuthorizationService:
    """Evaluate abilities and permissions for an actor."""

    def __init__(self, policies: Optional[Mapping[str, ResourcePolicy]] = None):
        registry = _default_policies() if policies is None else dict(policies)
        # Normalize keys so ResourceType members and plain strings both match.
        self._policies: dict[str, ResourcePolicy] = {str(key): policy for key, policy in registry.items()}

    def policy_for(self, resource_type) -> Optional[ResourcePolicy]:
        return self._policies.get(str(resource_type))

    def can(self, actor, ability, resource_type, resource=None) -> bool:
        """Return True if ``actor`` may perform ``ability`` on the resource."""
        policy = self.policy_for(resource_type)
        if policy is None:
            return False

        try:
            ability = Ability(ability)
        except (ValueError, TypeError):
            return False

        if ability is Ability.VIEW:
            return policy.view(actor, resource)
        if ability is Ability.CREATE:
            return policy.create(actor)
        if ability is Ability.UPDATE:
            return policy.update(actor, resource)
        if ability is Ability.DELETE:
            return policy.delete(actor, resource)
        return False

    def can_assign_role(self, actor, target_role) -> bool:
        policy = self.policy_for(ResourceType.USER)
        if not isinstance(policy, UserPolicy):
            return False
        return policy.assign_role(actor, target_role)

    @staticmethod
    def has_permission(actor, permission: Permission) -> bool:
        if actor is None:
            return False
        return role_has_permission(getattr(actor, "role", None), permission)

    @staticmethod
    def get_assignable_roles(actor) -> FrozenSet[Role]:
        if actor is None:
            return frozenset()
        return assignable_roles(getattr(actor, "role", None))


authorization = AuthorizationService()


__all__ = ["AuthorizationService", "authorization"]
