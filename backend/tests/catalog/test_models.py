"""
Tests for catalog models and their database constraints.
"""

from datetime import time
from decimal import Decimal

import pytest
from django.db import IntegrityError

from tests.catalog.factories import BusinessHoursFactory, ServiceFactory, StaffFactory
from tests.organizations.factories import OrganizationFactory


@pytest.mark.django_db
class TestService:
    def test_str(self) -> None:
        assert str(ServiceFactory.create(name="Haircut")) == "Haircut"

    def test_zero_duration_is_rejected(self) -> None:
        with pytest.raises(IntegrityError):
            ServiceFactory.create(duration=0)

    def test_negative_price_is_rejected(self) -> None:
        with pytest.raises(IntegrityError):
            ServiceFactory.create(price=Decimal("-1.00"))

    def test_free_service_is_allowed(self) -> None:
        service = ServiceFactory.create(price=Decimal("0"))

        assert service.price == Decimal("0")


@pytest.mark.django_db
class TestStaff:
    def test_str(self) -> None:
        assert str(StaffFactory.create(name="Bia Lima")) == "Bia Lima"


@pytest.mark.django_db
class TestBusinessHours:
    def test_one_row_per_day(self) -> None:
        org = OrganizationFactory.create()
        BusinessHoursFactory.create(organization=org, day_of_week=1)

        with pytest.raises(IntegrityError):
            BusinessHoursFactory.create(organization=org, day_of_week=1)

    def test_same_day_in_other_organization(self) -> None:
        BusinessHoursFactory.create(day_of_week=1)
        BusinessHoursFactory.create(day_of_week=1)

    def test_day_out_of_range_is_rejected(self) -> None:
        with pytest.raises(IntegrityError):
            BusinessHoursFactory.create(day_of_week=7)

    def test_str(self) -> None:
        open_day = BusinessHoursFactory.build(day_of_week=1, opens_at=time(9), closes_at=time(17))
        closed_day = BusinessHoursFactory.build(day_of_week=0, is_closed=True)

        assert str(open_day) == "day 1: 09:00-17:00"
        assert str(closed_day) == "day 0: closed"
