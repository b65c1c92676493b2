"""
Factories for customers app models.
"""

import factory
from factory.django import DjangoModelFactory

from apps.customers.models import Customer
from tests.organizations.factories import OrganizationFactory


class CustomerFactory(DjangoModelFactory):
    """Factory for Customer model, stored with normalized contact data."""

    class Meta:
        model = Customer

    organization = factory.SubFactory(OrganizationFactory)
    name = factory.Faker("name")
    email = factory.Sequence(lambda n: f"customer{n}@example.com")
    phone = factory.Sequence(lambda n: f"5511900{n:06d}")
