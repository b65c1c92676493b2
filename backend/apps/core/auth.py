"""
Authentication context for request lifecycle.

Provides a typed container for the tenant context that the upstream
authentication layer attaches to each request and endpoints consume.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ninja.errors import HttpError

if TYPE_CHECKING:
    from apps.organizations.models import Organization


@dataclass
class AuthContext:
    """
    Authentication context attached to requests by the auth layer.

    Attributes:
        organization: The Organization the caller is acting within, or None
        actor_id: Identifier of the authenticated staff user, or None
        failed: True if auth was attempted but failed (vs just not present)
    """

    organization: "Organization | None" = None
    actor_id: str | None = None
    failed: bool = False

    @property
    def is_authenticated(self) -> bool:
        """Check if the request carries a tenant context."""
        return self.organization is not None and not self.failed

    def require_organization(self) -> "Organization":
        """
        Get the tenant organization or raise 401.

        Raises:
            HttpError 401: If no organization is bound to the request
        """
        if self.organization is None or self.failed:
            raise HttpError(401, "Not authenticated")
        return self.organization
