"""App configuration for the access_control Django application.

The app holds no models: roles and permissions are static. Loading it
registers the RBAC system checks.
"""

from django.apps import AppConfig


class AccessControlConfig(AppConfig):
    """Application configuration for the access_control app."""

    name = "access_control"
    verbose_name = "Access control"

    def ready(self) -> None:
        """Register system checks when the app is loaded."""
        from . import checks  # noqa: F401
