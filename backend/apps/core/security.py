"""
Core security - authentication classes for API.
"""

from django.http import HttpRequest
from ninja.errors import HttpError
from ninja.security import HttpBearer

from apps.core.auth import AuthContext
from apps.organizations.models import Organization


class BearerAuth(HttpBearer):
    """
    Bearer token authentication for API endpoints.

    Validates presence of a token in the Authorization header.
    Token validation and tenant resolution are performed by the upstream
    authentication layer, which sets ``request.auth_context``.
    This class provides OpenAPI security scheme documentation.
    """

    def authenticate(self, request: HttpRequest, token: str) -> str | None:
        """
        Check token exists. The auth layer handles actual validation.

        Returns token if present, None otherwise (triggers 401).
        """
        return token if token else None


def get_auth_context(request: HttpRequest) -> AuthContext:
    """
    Return the AuthContext attached to the request.

    Tests and the auth layer set ``request.auth_context``; ninja overwrites
    ``request.auth`` with the bearer token, so the context lives apart.

    Raises:
        HttpError 401: If no context is attached
    """
    context = getattr(request, "auth_context", None)
    if not isinstance(context, AuthContext):
        raise HttpError(401, "Not authenticated")
    return context


def get_request_organization(request: HttpRequest) -> Organization:
    """Shortcut returning the authenticated tenant organization or raising 401."""
    return get_auth_context(request).require_organization()
