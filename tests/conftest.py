import itertools

import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from config import TestConfig
from extensions import db
from members.models import Member
from periods import ledger

ORG = 1
OTHER_ORG = 2

_emails = itertools.count(1)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_member(app):
    def _make(name="Member", category="A", organization_id=ORG, is_active=True):
        member = Member(
            organization_id=organization_id,
            name=name,
            email=f"member{next(_emails)}@example.org",
            category=category,
            is_active=is_active,
        )
        db.session.add(member)
        db.session.commit()
        return member
    return _make


@pytest.fixture
def period(app):
    """Q1 2025 (Jan-Apr), active."""
    p = ledger.create_period(ORG, 2025, 1)
    return ledger.activate(ORG, p.id)


@pytest.fixture
def auth_headers(app):
    def _headers(member, role="member"):
        token = create_access_token(
            identity=str(member.id),
            additional_claims={"org": member.organization_id, "role": role},
        )
        return {"Authorization": f"Bearer {token}"}
    return _headers
