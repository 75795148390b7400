"""App configuration for the authentication app."""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Custom User model, JWT issuance and token revocation."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
