"""DRF authentication class that trusts the user set by ``JWTAuthMiddleware``.

Token parsing, blocklist checks and token-version checks all happen in the
middleware; by the time DRF runs, the Django request already carries either a
verified ``User`` or ``AnonymousUser``.
"""

from typing import Any, Optional, Tuple

from django.contrib.auth.models import AnonymousUser
from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    """Expose ``request._request.user`` (set by middleware) to DRF."""

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        django_request = getattr(request, "_request", None)
        if django_request is None:
            return None

        user = getattr(django_request, "user", None)
        if user is None or isinstance(user, AnonymousUser):
            return None

        if not getattr(user, "is_authenticated", False):
            return None

        return user, None

    def authenticate_header(self, request) -> str:
        # A non-empty challenge makes DRF answer 401 rather than 403.
        return 'Bearer realm="api"'


__all__ = ["MiddlewareUserAuthentication"]
