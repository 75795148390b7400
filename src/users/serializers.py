"""Serializers for the user administration endpoints."""

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from access_control.roles import Role

User = get_user_model()


def _check_password(value: str) -> str:
    try:
        validate_password(value)
    except DjangoValidationError as exc:
        raise serializers.ValidationError(list(exc.messages))
    return value


class UserSerializer(serializers.ModelSerializer):
    """Read-only representation of a managed user."""

    role_label = serializers.CharField(source="get_role_display", read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "name", "role", "role_label", "is_active", "date_joined", "updated_at"]
        read_only_fields = fields


class CreateUserSerializer(serializers.Serializer):
    """Input for creating a user; authorization happens in the service."""

    email = serializers.EmailField()
    name = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True, min_length=8)
    role = serializers.ChoiceField(choices=Role.choices, default=Role.USER)

    @staticmethod
    def validate_password(value):
        return _check_password(value)


class UpdateUserSerializer(serializers.Serializer):
    """Partial input for editing a user; blank password means unchanged."""

    email = serializers.EmailField(required=False)
    name = serializers.CharField(max_length=150, required=False)
    password = serializers.CharField(write_only=True, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=Role.choices, required=False)

    @staticmethod
    def validate_password(value):
        if not value:
            return value
        return _check_password(value)


__all__ = ["UserSerializer", "CreateUserSerializer", "UpdateUserSerializer"]
