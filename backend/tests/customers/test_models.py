"""
Tests for Customer contact uniqueness.
"""

import pytest
from django.db import IntegrityError

from tests.customers.factories import CustomerFactory
from tests.organizations.factories import OrganizationFactory


@pytest.mark.django_db
class TestCustomerConstraints:
    """Email and phone are unique per organization when present."""

    def test_duplicate_email_in_organization(self) -> None:
        org = OrganizationFactory.create()
        CustomerFactory.create(organization=org, email="ana@example.com")

        with pytest.raises(IntegrityError):
            CustomerFactory.create(organization=org, email="ana@example.com")

    def test_duplicate_phone_in_organization(self) -> None:
        org = OrganizationFactory.create()
        CustomerFactory.create(organization=org, phone="11987654321")

        with pytest.raises(IntegrityError):
            CustomerFactory.create(organization=org, phone="11987654321")

    def test_same_contact_in_other_organization(self) -> None:
        CustomerFactory.create(email="ana@example.com", phone="11987654321")
        CustomerFactory.create(email="ana@example.com", phone="11987654321")

    def test_blank_contacts_do_not_collide(self) -> None:
        org = OrganizationFactory.create()
        CustomerFactory.create(organization=org, email="", phone="11900000001")
        CustomerFactory.create(organization=org, email="", phone="11900000002")
        CustomerFactory.create(organization=org, email="bia@example.com", phone="")
        CustomerFactory.create(organization=org, email="caio@example.com", phone="")

    def test_statistics_start_empty(self) -> None:
        customer = CustomerFactory.create()

        assert customer.total_visits == 0
        assert customer.no_shows == 0
        assert customer.last_visit_at is None
