"""DRF permission classes backed by the static role matrix and user policy."""

from rest_framework import permissions

from .policies import Ability
from .services import authorization


def _authenticated_user(request):
    user = getattr(request, "user", None)
    if not user or not getattr(user, "is_authenticated", False):
        return None
    return user


class RolePermission(permissions.BasePermission):
    """Allow the request if the user's role grants ``view.required_permission``.

    Views without a ``required_permission`` are denied outright; the
    ``access_control.E002`` system check flags them at startup.
    """

    message = "You do not have permission to perform this action on this resource."

    def has_permission(self, request, view) -> bool:
        required = getattr(view, "required_permission", None)
        if not required:
            return False

        user = _authenticated_user(request)
        if user is None:
            return False
        return authorization.has_permission(user, required)


class UserPolicyPermission(permissions.BasePermission):
    """Gate read access to user records through the user policy.

    Only safe methods are decided here. Writes need the request payload (the
    role being assigned, the target being edited) and are checked, and
    audited, by ``users.services.UserService``.
    """

    message = "You do not have permission to perform this action on this resource."

    def has_permission(self, request, view) -> bool:
        user = _authenticated_user(request)
        if user is None:
            return False

        if request.method in permissions.SAFE_METHODS:
            return authorization.can(user, Ability.VIEW, view.resource_type)
        return True

    def has_object_permission(self, request, view, obj) -> bool:
        user = _authenticated_user(request)
        if request.method in permissions.SAFE_METHODS:
            return authorization.can(user, Ability.VIEW, view.resource_type, obj)
        return user is not None


__all__ = ["RolePermission", "UserPolicyPermission"]
