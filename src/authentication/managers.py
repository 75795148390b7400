"""User manager: bcrypt hashing and role-aware user creation."""

import bcrypt
from django.conf import settings
from django.contrib.auth.base_user import BaseUserManager

from access_control.roles import Role


class UserManager(BaseUserManager):
    """Create users whose passwords are stored as bcrypt hashes."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str, **extra_fields):
        if not email:
            raise ValueError("The Email must be set")
        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.password_hash = self.hash_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, *, name: str = "", role=Role.USER, **extra_fields):
        """Create an active user holding ``role`` (basic user by default)."""
        if password is None:
            raise ValueError("Password must be provided")
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, name=name, role=role, **extra_fields)

    def create_superuser(self, email: str, password: str, **extra_fields):
        """Create an administrator; used by ``manage.py createsuperuser``."""
        extra_fields.setdefault("role", Role.ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        if extra_fields["role"] != Role.ADMIN:
            raise ValueError("Superuser must have role='admin'.")
        return self._create_user(email, password, **extra_fields)

    @staticmethod
    def hash_password(raw_password: str) -> str:
        """Hash with bcrypt using ``settings.BCRYPT_ROUNDS`` (default 12)."""
        rounds = getattr(settings, "BCRYPT_ROUNDS", 12)
        hashed = bcrypt.hashpw(raw_password.encode(), bcrypt.gensalt(rounds=rounds))
        return hashed.decode()

    @staticmethod
    def verify_password(user, raw_password: str) -> bool:
        """Check ``raw_password`` against the stored hash; malformed hashes never match."""
        if not user.password_hash:
            return False
        try:
            return bcrypt.checkpw(raw_password.encode(), user.password_hash.encode("utf-8"))
        except ValueError:
            return False


__all__ = ["UserManager"]
