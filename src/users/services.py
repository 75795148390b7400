"""Authorized and audited user administration.

Every mutation runs the same sequence: resolve the actor, ask the
authorization service, then write one audit line. Denials and failed
lookups are WARNING lines without an ``action`` (they count as failed
attempts); completed operations are INFO lines carrying one.
"""

import logging
from typing import Any, Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from access_control.policies import Ability, ResourceType
from access_control.roles import coerce_role
from access_control.services import AuthorizationService, authorization as default_authorization
from audit.context import AuditContext
from authentication.services import TokenService

User = get_user_model()

logger = logging.getLogger("audit")

USER_CREATED = "USER_CREATED"
USER_UPDATED = "USER_UPDATED"
USER_DELETED = "USER_DELETED"


class UserService:
    """Create, update and soft-delete users on behalf of an audited actor."""

    def __init__(self, authorization: Optional[AuthorizationService] = None):
        self.authorization = authorization or default_authorization

    @staticmethod
    def _actor(audit: AuditContext):
        if audit.user_id is None:
            return None
        return User.objects.filter(pk=audit.user_id, is_active=True).first()

    @staticmethod
    def _log(level: int, message: str, audit: AuditContext, **context: Any) -> None:
        logger.log(level, message, extra={"context": {**audit.as_dict(), **context}})

    def _deny(self, message: str, audit: AuditContext, reason: str, **context: Any):
        self._log(logging.WARNING, message, audit, reason=reason, **context)
        return PermissionDenied(reason)

    @staticmethod
    def _active_user(user_id) -> Optional[Any]:
        try:
            return User.objects.get(pk=user_id, is_active=True)
        except (User.DoesNotExist, ValueError, TypeError):
            return None

    @staticmethod
    def _email_taken(email: str, exclude_id=None) -> bool:
        qs = User.objects.filter(email__iexact=email)
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        return qs.exists()

    def _duplicate_email(self, message: str, audit: AuditContext, email, **context: Any) -> ValidationError:
        self._log(logging.WARNING, message, audit, target_email=email, **context)
        return ValidationError({"email": ["Email already in use"]})

    def create(self, data: dict[str, Any], audit: AuditContext):
        """Create a user from validated ``data`` (email, name, password, role)."""
        actor = self._actor(audit)
        role = coerce_role(data.get("role"))
        email = data.get("email")
        self._log(logging.INFO, "User creation attempt", audit, target_email=email)

        if not self.authorization.can(actor, Ability.CREATE, ResourceType.USER):
            raise self._deny(
                "User creation denied", audit, "You do not have permission to create users.", target_email=email
            )
        if role is None or not self.authorization.can_assign_role(actor, role):
            raise self._deny(
                "User creation denied",
                audit,
                "You do not have permission to assign this role.",
                target_email=email,
                target_role=str(data.get("role")),
            )
        if self._email_taken(email):
            raise self._duplicate_email("User creation rejected: duplicate email", audit, email)

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    email=email,
                    password=data["password"],
                    name=data["name"],
                    role=role,
                )
        except IntegrityError as exc:
            # Lost a race with a concurrent insert of the same email.
            raise self._duplicate_email("User creation rejected: duplicate email", audit, email) from exc

        self._log(
            logging.INFO,
            "User created",
            audit,
            action=USER_CREATED,
            target_user_id=user.id,
            target_email=user.email,
            target_name=user.name,
            target_role=str(user.role),
        )
        return user

    def update(self, user_id, data: dict[str, Any], audit: AuditContext):
        """Apply a partial edit to an active user.

        A blank or missing ``password`` leaves the password unchanged.
        """
        actor = self._actor(audit)
        target = self._active_user(user_id)
        if target is None:
            self._log(logging.WARNING, "User update failed: user not found", audit, target_user_id=user_id)
            raise NotFound("User not found.")

        if not self.authorization.can(actor, Ability.UPDATE, ResourceType.USER, target):
            raise self._deny(
                "User update denied",
                audit,
                "You do not have permission to edit this user.",
                target_user_id=target.id,
                target_email=target.email,
            )

        new_role = coerce_role(data["role"]) if "role" in data else None
        if "role" in data and new_role is None:
            raise ValidationError({"role": ["Unknown role."]})
        if new_role is not None and new_role != target.role:
            if target.id == actor.id:
                raise self._deny(
                    "User update denied",
                    audit,
                    "You cannot change your own role.",
                    target_user_id=target.id,
                    target_role=str(new_role),
                )
            if not self.authorization.can_assign_role(actor, new_role):
                raise self._deny(
                    "User update denied",
                    audit,
                    "You do not have permission to assign this role.",
                    target_user_id=target.id,
                    target_role=str(new_role),
                )

        email = data.get("email")
        if email and self._email_taken(email, exclude_id=target.id):
            raise self._duplicate_email(
                "User update rejected: duplicate email", audit, email, target_user_id=target.id
            )

        old = {"old_email": target.email, "old_name": target.name, "old_role": str(target.role)}
        if email:
            target.email = User.objects.normalize_email(email)
        if data.get("name"):
            target.name = data["name"]
        if new_role is not None:
            target.role = new_role
        password_changed = bool(data.get("password"))
        if password_changed:
            target.set_password(data["password"])
        try:
            with transaction.atomic():
                target.save()
        except IntegrityError as exc:
            raise self._duplicate_email(
                "User update rejected: duplicate email", audit, email, target_user_id=target.id
            ) from exc
        if password_changed or str(target.role) != old["old_role"]:
            TokenService.revoke_all(target)

        self._log(
            logging.INFO,
            "User updated",
            audit,
            action=USER_UPDATED,
            target_user_id=target.id,
            target_email=target.email,
            target_name=target.name,
            target_role=str(target.role),
            password_changed=password_changed,
            **old,
        )
        return target

    def delete(self, user_id, audit: AuditContext) -> None:
        """Soft-delete an active user (``is_active=False``)."""
        actor = self._actor(audit)
        target = self._active_user(user_id)
        if target is None:
            self._log(logging.WARNING, "User deletion failed: user not found", audit, target_user_id=user_id)
            raise NotFound("User not found.")

        if not self.authorization.can(actor, Ability.DELETE, ResourceType.USER, target):
            raise self._deny(
                "User deletion denied",
                audit,
                "You do not have permission to delete this user.",
                target_user_id=target.id,
                target_email=target.email,
            )

        target.is_active = False
        target.save(update_fields=["is_active", "updated_at"])
        TokenService.revoke_all(target)

        self._log(
            logging.INFO,
            "User deleted",
            audit,
            action=USER_DELETED,
            target_user_id=target.id,
            target_email=target.email,
        )


__all__ = ["UserService", "USER_CREATED", "USER_UPDATED", "USER_DELETED"]
