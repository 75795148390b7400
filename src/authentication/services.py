"""JWT issuance and revocation.

Two revocation mechanisms work together:

- single tokens are revoked by putting their ``jti`` on a Redis blocklist
  until the token would have expired anyway;
- every token of a user is revoked at once by bumping ``User.token_version``;
  tokens carry the version they were minted with in the ``ver`` claim.

Redis failures raise ``BlocklistUnavailable`` so callers fail closed.
"""

import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Tuple

import jwt
from django.conf import settings
from django.db.models import F
from rest_framework.exceptions import AuthenticationFailed

from core.redis_client import get_redis_client


class BlocklistUnavailable(Exception):
    """Raised when Redis blocklist cannot be checked (fail-closed)."""


class TokenService:
    """Handle JWT issuance, decoding, and revocation."""

    ACCESS_TTL = timedelta(minutes=15)
    REFRESH_TTL = timedelta(hours=24)
    ALGORITHM = "HS256"
    BLOCKLIST_PREFIX = "blocklist:token:"

    @classmethod
    def generate_tokens(cls, user) -> Tuple[str, str]:
        """Return a signed (access, refresh) pair for ``user``."""

        now = datetime.now(timezone.utc)
        access_token = cls._encode(cls._build_payload(user, "access", now, cls.ACCESS_TTL))
        refresh_token = cls._encode(cls._build_payload(user, "refresh", now, cls.REFRESH_TTL))
        return access_token, refresh_token

    @classmethod
    def _encode(cls, payload: dict[str, Any]) -> str:
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=cls.ALGORITHM)

    @staticmethod
    def _build_payload(user, token_type: str, issued_at: datetime, ttl: timedelta) -> dict[str, Any]:
        return {
            "sub": str(user.id),
            "jti": uuid.uuid4().hex,
            "exp": int((issued_at + ttl).timestamp()),
            "iat": int(issued_at.timestamp()),
            # Informational only; authorization always re-reads the role from the database.
            "role": str(user.role),
            "ver": user.token_version,
            "type": token_type,
        }

    @classmethod
    def decode_token(cls, token: str, expected_type: str | None = None) -> dict[str, Any]:
        """Decode and validate a JWT; optionally enforce token type."""

        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[cls.ALGORITHM],
                options={"require": ["exp", "sub", "jti"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationFailed("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationFailed("Invalid token") from exc

        if expected_type and payload.get("type") != expected_type:
            raise AuthenticationFailed("Invalid token type")

        return payload

    @classmethod
    def revoke(cls, token: str) -> None:
        """Blocklist a single access token until it expires."""

        payload = cls.decode_token(token, expected_type="access")
        cls.block_token(payload["jti"], payload["exp"])

    @staticmethod
    def revoke_all(user) -> None:
        """Invalidate every token issued to ``user`` so far."""

        type(user).objects.filter(pk=user.pk).update(token_version=F("token_version") + 1)
        user.refresh_from_db(fields=["token_version"])

    @classmethod
    def block_token(cls, jti: str, exp: int) -> None:
        """Add token jti to blocklist until its expiration timestamp."""

        client = get_redis_client()
        ttl_seconds = max(1, exp - int(time.time()))
        try:
            client.setex(f"{cls.BLOCKLIST_PREFIX}{jti}", ttl_seconds, "1")
        except Exception as exc:  # pragma: no cover - network failure
            raise BlocklistUnavailable("Redis unavailable while blocklisting") from exc

    @classmethod
    def is_token_blocked(cls, jti: str) -> bool:
        """Check if a token jti is present in the blocklist."""

        client = get_redis_client()
        try:
            return client.get(f"{cls.BLOCKLIST_PREFIX}{jti}") is not None
        except Exception as exc:  # pragma: no cover - network failure
            raise BlocklistUnavailable("Redis unavailable while checking blocklist") from exc


__all__ = ["TokenService", "BlocklistUnavailable"]
