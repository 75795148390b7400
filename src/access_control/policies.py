"""Resource policies evaluated by the authorization service.

A policy answers the four CRUD abilities for one resource type. Every method
returns a plain bool; a missing actor or an unusable target is a denial, not
an error.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from django.db import models

from .roles import Permission, Role, can_assign_role, coerce_role, role_has_permission


class Ability(models.TextChoices):
    """CRUD abilities a policy can be asked about."""

    VIEW = "view", "View"
    CREATE = "create", "Create"
    UPDATE = "update", "Update"
    DELETE = "delete", "Delete"


class ResourceType(models.TextChoices):
    """Resource types with a registered policy."""

    USER = "user", "User"


@dataclass(frozen=True)
class Actor:
    """Identity performing a check when no ``User`` instance is at hand."""

    id: int
    role: Role


@dataclass(frozen=True)
class _Subject:
    id: Any
    role: Role


def _subject(obj) -> Optional[_Subject]:
    """Normalize an actor/target into (id, Role), or None if unusable."""
    if obj is None:
        return None
    obj_id = getattr(obj, "id", None)
    role = coerce_role(getattr(obj, "role", None))
    if obj_id is None or role is None:
        return None
    return _Subject(id=obj_id, role=role)


def _actor_has(actor, permission: Permission) -> bool:
    # Unknown actor roles fall through to the empty permission set.
    if actor is None:
        return False
    return role_has_permission(getattr(actor, "role", None), permission)


class ResourcePolicy(ABC):
    """Capability set for a single resource type."""

    @abstractmethod
    def view(self, actor, resource=None) -> bool:
        raise NotImplementedError

    @abstractmethod
    def create(self, actor) -> bool:
        raise NotImplementedError

    @abstractmethod
    def update(self, actor, resource) -> bool:
        raise NotImplementedError

    @abstractmethod
    def delete(self, actor, resource) -> bool:
        raise NotImplementedError


class UserPolicy(ResourcePolicy):
    """Rules for managing user accounts.

    - Viewing and creating only need the matching permission.
    - Non-admins can never edit an admin. Admins may edit anyone, themselves
      included; stopping an admin from demoting themself is left to the
      service layer.
    - Admins can never be deleted, by anyone, and nobody can delete their own
      account.
    """

    def view(self, actor, resource=None) -> bool:
        return _actor_has(actor, Permission.VIEW_USERS)

    def create(self, actor) -> bool:
        return _actor_has(actor, Permission.CREATE_USERS)

    def update(self, actor, resource) -> bool:
        if actor is None:
            return False
        target = _subject(resource)
        if target is None:
            return False
        if not _actor_has(actor, Permission.EDIT_USERS):
            return False

        actor_role = coerce_role(getattr(actor, "role", None))
        if target.role is Role.ADMIN and actor_role is not Role.ADMIN:
            return False
        return True

    def delete(self, actor, resource) -> bool:
        target = _subject(resource)
        if actor is None or target is None:
            return False
        if not _actor_has(actor, Permission.DELETE_USERS):
            return False
        if target.role is Role.ADMIN:
            return False
        if target.id == getattr(actor, "id", None):
            return False
        return True

    @staticmethod
    def assign_role(actor, target_role) -> bool:
        """Return True if ``actor`` may give ``target_role`` to a user."""
        if actor is None:
            return False
        return can_assign_role(getattr(actor, "role", None), target_role)


__all__ = ["Ability", "ResourceType", "Actor", "ResourcePolicy", "UserPolicy"]
