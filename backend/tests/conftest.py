"""
Shared pytest fixtures for all tests.

This module provides common fixtures used across multiple test modules.
Individual test modules can override these fixtures if needed.

Factories
---------
Import factories directly from their modules:

    from tests.organizations.factories import OrganizationFactory
    from tests.catalog.factories import ServiceFactory, StaffFactory, BusinessHoursFactory
    from tests.customers.factories import CustomerFactory
    from tests.appointments.factories import AppointmentFactory

Example usage:

    @pytest.mark.django_db
    def test_something():
        org = OrganizationFactory.create()
        service = ServiceFactory.create(organization=org, duration=60)

Dates
-----
MONDAY is a fixed future Monday (day_of_week 1) so slot tests never depend
on the wall clock. Use at(10, 30) to build an aware datetime on it.
"""

from datetime import UTC, date, datetime, time, tzinfo
from decimal import Decimal
from typing import Any, cast

import pytest
from django.core.cache import cache
from django.test import Client, RequestFactory
from django.test.client import WSGIRequest  # type: ignore[attr-defined]

from apps.core.auth import AuthContext
from apps.core.types import AuthenticatedHttpRequest

MONDAY = date(2030, 1, 7)
SUNDAY = date(2030, 1, 6)

# Earlier than every slot on MONDAY
BEFORE_MONDAY = datetime(2030, 1, 1, 0, 0, tzinfo=UTC)


def at(hour: int, minute: int = 0, day: date = MONDAY, tz: tzinfo = UTC) -> datetime:
    """Aware datetime on the given day."""
    return datetime.combine(day, time(hour, minute), tzinfo=tz)


def make_request_with_auth(request: WSGIRequest, auth: AuthContext) -> AuthenticatedHttpRequest:
    """
    Attach an auth context to a request and return it typed as AuthenticatedHttpRequest.

    Example:
        request = request_factory.get("/api/v1/appointments/")
        request = make_request_with_auth(request, AuthContext(organization=org))
    """
    request.auth_context = auth  # type: ignore[attr-defined]
    return cast(AuthenticatedHttpRequest, request)


def create_authenticated_request(
    request_factory: RequestFactory,
    method: str,
    path: str,
    org: Any = None,
) -> AuthenticatedHttpRequest:
    """
    Helper to create a request carrying a tenant auth context.

    Creates the organization if not provided.
    """
    from tests.organizations.factories import OrganizationFactory

    if org is None:
        org = OrganizationFactory.create()

    method_func = getattr(request_factory, method.lower())
    request = method_func(path)
    return make_request_with_auth(request, AuthContext(organization=org, actor_id="staff-1"))


@pytest.fixture(autouse=True)
def clear_cache():
    """Rate limit counters live in the cache; start every test empty."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def request_factory() -> RequestFactory:
    """
    Django request factory for unit testing views.

    Use this to call Django Ninja endpoint functions directly, without
    routing or middleware.
    """
    return RequestFactory()


@pytest.fixture
def api_client() -> Client:
    """
    Django test client for full HTTP request/response cycle tests.

    Example:
        def test_api_returns_200(api_client):
            response = api_client.get("/api/v1/health")
            assert response.status_code == 200
    """
    return Client()


@pytest.fixture
def organization(db):
    """Active organization in UTC."""
    from tests.organizations.factories import OrganizationFactory

    return OrganizationFactory.create(slug="acme-salon")


@pytest.fixture
def monday_hours(organization):
    """Monday 09:00-17:00 for the organization."""
    from tests.catalog.factories import BusinessHoursFactory

    return BusinessHoursFactory.create(
        organization=organization,
        day_of_week=1,
        opens_at=time(9, 0),
        closes_at=time(17, 0),
    )


@pytest.fixture
def service(organization):
    """60 minute service priced at 50.00."""
    from tests.catalog.factories import ServiceFactory

    return ServiceFactory.create(organization=organization, duration=60, price=Decimal("50.00"))


@pytest.fixture
def staff(organization):
    """Active staff member."""
    from tests.catalog.factories import StaffFactory

    return StaffFactory.create(organization=organization)


@pytest.fixture
def customer(organization):
    """Customer reachable by both email and WhatsApp."""
    from tests.customers.factories import CustomerFactory

    return CustomerFactory.create(organization=organization)


@pytest.fixture
def scope(organization):
    """TenantScope for the default organization."""
    from apps.appointments.scope import TenantScope

    return TenantScope(organization)
