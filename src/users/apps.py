"""App configuration for user administration."""

from django.apps import AppConfig


class UsersConfig(AppConfig):
    """Authorized, audited create/update/delete of user accounts."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "users"
