"""Seed one demo user per role for local development."""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from access_control.roles import Role
from authentication.managers import UserManager

DEMO_DOMAIN = "example.com"


def demo_email(role: Role) -> str:
    return f"{role.value}@{DEMO_DOMAIN}"


def create_demo_users(password: str) -> dict[Role, object]:
    """Create (or reuse) one active user per role and return a role->user map."""
    User = get_user_model()
    users = {}
    for role in Role:
        user, _ = User.objects.get_or_create(
            email=demo_email(role),
            defaults={
                "name": role.label,
                "role": role,
                "password_hash": UserManager.hash_password(password),
                "is_staff": role is Role.ADMIN,
                "is_superuser": role is Role.ADMIN,
            },
        )
        users[role] = user
    return users


class Command(BaseCommand):
    """Management command to seed demo users for every role."""

    help = "Seed one demo user per role. Use --reset to remove previously seeded users first."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            default="ChangeMe-2024!",
            help="Password given to every seeded user.",
        )
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete the demo users before seeding.",
        )

    def handle(self, *args, **options):
        if options.get("reset"):
            User = get_user_model()
            deleted, _ = User.objects.filter(email__in=[demo_email(role) for role in Role]).delete()
            self.stdout.write(self.style.WARNING(f"Removed {deleted} demo user(s)."))

        users = create_demo_users(options["password"])
        for role, user in users.items():
            self.stdout.write(f"  {role.value:<18} {user.email}")
        self.stdout.write(self.style.SUCCESS("Demo users seeded."))
