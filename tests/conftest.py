"""
Shared fixtures: an app bound to in-memory SQLite, a test client, user
factories and bearer headers.

Every test gets freshly created tables.
"""

import pytest
from flask_jwt_extended import create_access_token

from marketplace.extensions import db
from marketplace.main import create_app
from marketplace.models.user import User, BUYER, MANUFACTURER, HYBRID
from marketplace.utils.auth_utils import hash_password

PASSWORD = "Str0ng!Pass"


@pytest.fixture()
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user(app):
    """Factory for verified, active users."""
    counter = {"n": 0}

    def _make(role=BUYER, **overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "email": f"user{n}@example.com",
            "password_hash": hash_password(PASSWORD),
            "full_name": f"User {n}",
            "company_name": f"Company {n}",
            "role": role,
            "country": "India",
            "is_verified": True,
            "status": "ACTIVE",
        }
        if role in (MANUFACTURER, HYBRID):
            fields["manufacturer_status"] = "ACTIVE"
        fields.update(overrides)
        user = User(**fields)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture()
def buyer(make_user):
    return make_user(BUYER, full_name="Bea Buyer", company_name="Acme Procurement")


@pytest.fixture()
def manufacturer(make_user):
    return make_user(
        MANUFACTURER,
        full_name="Max Maker",
        company_name="Precision Works",
        manufacturing_types=["CNC"],
        primary_materials=["Aluminum"],
        max_dimensions={"length": 200, "width": 200, "height": 200},
    )


@pytest.fixture()
def headers(app):
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(identity=user.id)}"}

    return _headers


def rfq_payload(**overrides):
    payload = {
        "title": "Aluminum housing",
        "description": "Machined enclosure for a sensor module",
        "status": "OPEN_FOR_REQUESTS",
        "workpieces": [
            {
                "mainFile": "https://files.example.com/housing.step",
                "technology": "CNC",
                "material": "Aluminum",
                "quantity": 50,
                "dimensions": {"length": 100, "width": 50, "height": 20},
            }
        ],
        "rfqDeadline": "2030-01-15T00:00:00Z",
        "country": "India",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def open_rfq(client, buyer, headers):
    """An RFQ opened for requests by ``buyer``; returns its JSON."""
    resp = client.post("/api/v1/rfqs", json=rfq_payload(), headers=headers(buyer))
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["data"]
