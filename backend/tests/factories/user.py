"""Factory Boy definition for :class:`research_core.models.user.User`."""

from __future__ import annotations

import factory
from research_core.models.user import User
from research_core.services._shared.dto import Role
from tests.factories import BaseFactory
from tests.factories.organization import OrganizationFactory
from werkzeug.security import generate_password_hash

DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """
    Build persisted :class:`research_core.models.user.User` instances.

    Notes
    -----
    - The hash is computed up-front (cheap PBKDF2) instead of through the
      ``password`` setter so the instance is clean right after the flush.
    - Superadmins are built with ``organization=None``.
    """

    class Meta:
        model = User

    class Params:
        password = DEFAULT_PASSWORD

    id = None  # let autoincrement handle it
    email = factory.Sequence(lambda n: f"user{n}@example.org")
    display_name = factory.Faker("name")
    role = Role.RESEARCHER
    organization = factory.SubFactory(OrganizationFactory)
    is_active = True
    refresh_tokens = factory.LazyFunction(list)
    token_list_version = 0
    password_hash = factory.LazyAttribute(
        lambda o: generate_password_hash(o.password, method="pbkdf2:sha256:1000")
    )
