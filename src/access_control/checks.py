"""System checks for RBAC configuration."""

from django.core.checks import Error, register

from access_control.permissions import RolePermission
from access_control.roles import ROLE_PERMISSIONS, Role


@register()
def role_matrix_is_total(app_configs, **kwargs):
    """Ensure every Role has an entry in the permission matrix.

    A missing role would silently resolve to an empty permission set, which
    is safe but almost certainly a configuration mistake.
    """
    errors: list[Error] = []
    for role in Role:
        if role not in ROLE_PERMISSIONS:
            errors.append(
                Error(
                    f"Role '{role.value}' has no entry in ROLE_PERMISSIONS.",
                    hint="Add the role to access_control.roles.ROLE_PERMISSIONS, even with an empty set.",
                    id="access_control.E001",
                )
            )
    return errors


@register()
def rbac_views_have_required_permission(app_configs, **kwargs):
    """Ensure views guarded by RolePermission declare a required_permission."""
    errors: list[Error] = []

    # Import here to avoid circular imports at module load time.
    from audit.views import (
        AuditExportView,
        AuditReportView,
        SuspiciousActivityView,
        TargetUserHistoryView,
        UserActionsView,
    )

    rbac_views = [
        AuditReportView,
        AuditExportView,
        UserActionsView,
        TargetUserHistoryView,
        SuspiciousActivityView,
    ]

    for view_cls in rbac_views:
        permission_classes = getattr(view_cls, "permission_classes", [])
        if RolePermission in permission_classes:
            required = getattr(view_cls, "required_permission", None)
            if not required:
                errors.append(
                    Error(
                        f"{view_cls.__name__} uses RolePermission but does not "
                        f"define required_permission.",
                        obj=view_cls,
                        id="access_control.E002",
                    )
                )

    return errors
