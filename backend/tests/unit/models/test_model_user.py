"""Tests for the User and Organization models."""

from __future__ import annotations

import pytest
from research_core.models import Organization, User
from research_core.services._shared.dto import OrgStatus, Role
from sqlalchemy.exc import IntegrityError
from tests.factories.organization import OrganizationFactory


class TestUser:
    def test_password_hashing(self, session):
        u = User(email="Test@Example.com", role=Role.SUPERADMIN)
        u.password = "secret123"
        session.add(u)
        session.commit()
        assert u.verify_password("secret123") is True
        assert u.verify_password("wrong") is False

    def test_password_is_write_only(self):
        u = User(email="a@example.com", role=Role.STAFF)
        u.password = "x"
        with pytest.raises(AttributeError):
            _ = u.password

    def test_email_normalized_and_unique(self, session):
        org = OrganizationFactory()
        u1 = User(email="Alice@Example.com", role=Role.ADMIN, organization=org)
        u1.password = "pw"
        session.add(u1)
        session.commit()
        assert u1.email == "alice@example.com"

        u2 = User(email="alice@example.com", role=Role.STAFF, organization=org)
        u2.password = "pw"
        session.add(u2)
        with pytest.raises(IntegrityError):
            session.commit()

    def test_token_list_defaults(self, session):
        u = User(email="t@example.com", role=Role.SUPERADMIN)
        u.password = "pw"
        session.add(u)
        session.flush()
        assert u.refresh_tokens == []
        assert u.token_list_version == 0

    def test_basic_validations(self):
        with pytest.raises(ValueError):
            User(email="", role=Role.STAFF)
        with pytest.raises(ValueError):
            User(email="no-at-sign", role=Role.STAFF)
        with pytest.raises(ValueError):
            User(email="x@example.com", role=Role.STAFF).password = ""


class TestOrganization:
    def test_defaults_to_pending(self, session):
        org = Organization(name="  Sleep Lab  ")
        session.add(org)
        session.flush()
        assert org.name == "Sleep Lab"
        assert org.status is OrgStatus.PENDING
        assert org.is_active is True

    def test_name_unique(self, session):
        OrganizationFactory(name="Cardio Unit")
        session.add(Organization(name="Cardio Unit"))
        with pytest.raises(IntegrityError):
            session.flush()
