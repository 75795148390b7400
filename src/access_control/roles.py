"""Static role/permission matrix for the RBAC engine.

Roles and permissions are closed enumerations. The matrix is built once at
import time and exposed through a read-only mapping; there is no runtime
mutation and no database table behind it.
"""

from types import MappingProxyType
from typing import FrozenSet, Mapping

from django.db import models


class Role(models.TextChoices):
    """Roles a user can hold."""

    ADMIN = "admin", "Administrador"
    FACTURADOR = "facturador", "Facturador"
    BODEGUERO = "bodeguero", "Bodeguero"
    LIQUIDADOR = "liquidador", "Liquidador"
    VENDEDOR_SISTEMA = "vendedor_sistema", "Vendedor con acceso al sistema"
    USER = "user", "Usuario básico"


class Permission(models.TextChoices):
    """Atomic capabilities granted to roles."""

    # Users
    VIEW_USERS = "view_users", "View users"
    CREATE_USERS = "create_users", "Create users"
    EDIT_USERS = "edit_users", "Edit users"
    DELETE_USERS = "delete_users", "Delete users"

    # Role assignment
    ASSIGN_BASIC_ROLES = "assign_basic_roles", "Assign basic roles"
    ASSIGN_ADMIN_ROLE = "assign_admin_role", "Assign admin role"

    # Invoicing
    CREATE_INVOICES = "create_invoices", "Create invoices"
    VIEW_INVOICES = "view_invoices", "View invoices"

    # Warehouse and settlements
    MANAGE_INVENTORY = "manage_inventory", "Manage inventory"
    MANAGE_SETTLEMENTS = "manage_settlements", "Manage settlements"

    # System
    ACCESS_ADMIN_PANEL = "access_admin_panel", "Access admin panel"


ROLE_PERMISSIONS: Mapping[Role, FrozenSet[Permission]] = MappingProxyType(
    {
        Role.ADMIN: frozenset(Permission),
        Role.FACTURADOR: frozenset({Permission.CREATE_INVOICES, Permission.VIEW_INVOICES}),
        Role.BODEGUERO: frozenset({Permission.MANAGE_INVENTORY}),
        Role.LIQUIDADOR: frozenset({Permission.MANAGE_SETTLEMENTS, Permission.VIEW_INVOICES}),
        Role.VENDEDOR_SISTEMA: frozenset({Permission.CREATE_INVOICES, Permission.VIEW_INVOICES}),
        Role.USER: frozenset(),
    }
)


def coerce_role(value) -> Role | None:
    """Return the ``Role`` for ``value`` (member or string), or None if unknown."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except (ValueError, TypeError):
        return None


def permissions_for(role) -> FrozenSet[Permission]:
    """Permissions granted to ``role``; unknown roles get an empty set."""
    known = coerce_role(role)
    if known is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(known, frozenset())


def role_has_permission(role, permission: Permission) -> bool:
    return permission in permissions_for(role)


def assignable_roles(actor_role) -> FrozenSet[Role]:
    """Roles an actor holding ``actor_role`` may hand out.

    Admins may assign every role. There is no partial delegation: every other
    role gets an empty set.
    """
    if coerce_role(actor_role) is Role.ADMIN:
        return frozenset(Role)
    return frozenset()


def can_assign_role(actor_role, target_role) -> bool:
    """Return True if ``actor_role`` may assign ``target_role``."""
    target = coerce_role(target_role)
    if target is None:
        return False
    if target is Role.ADMIN:
        return coerce_role(actor_role) is Role.ADMIN
    return target in assignable_roles(actor_role)


__all__ = [
    "Role",
    "Permission",
    "ROLE_PERMISSIONS",
    "coerce_role",
    "permissions_for",
    "role_has_permission",
    "assignable_roles",
    "can_assign_role",
]
