import pytest

from marketplace.extensions import db
from marketplace.models.user import User
from marketplace.services import email_service
from marketplace.utils.email_tokens import generate_email_verification_token

from conftest import PASSWORD


def _registration(**overrides):
    body = {
        "fullName": "Mia Maker",
        "email": "Mia@Example.com",
        "password": PASSWORD,
        "confirmPassword": PASSWORD,
        "userType": "MANUFACTURER",
        "phoneNumber": "+91 98765 43210",
        "companyName": "Maker Metals",
        "address": "12 Industrial Estate",
        "city": "Pune",
        "state": "MH",
        "zipCode": "411001",
        "manufacturingTypes": ["CNC", "TURNING"],
        "primaryMaterials": ["Aluminum"],
    }
    body.update(overrides)
    return body


@pytest.fixture()
def outbox(monkeypatch):
    sent = []
    monkeypatch.setattr(
        email_service, "send_email",
        lambda to, subject, html: sent.append({"to": to, "subject": subject, "html": html}),
    )
    return sent


def test_register_verify_and_login(client, app, outbox):
    resp = client.post("/api/v1/auth/register", json=_registration())
    assert resp.status_code == 201
    user = resp.get_json()["data"]
    assert user["email"] == "mia@example.com"
    assert user["isEmailVerified"] is False
    assert user["manufacturerStatus"] == "PENDING_REVIEW"
    assert user["profileCompleteness"] == 50
    assert outbox[0]["to"] == "mia@example.com"
    assert "verify-email?token=" in outbox[0]["html"]

    resp = client.post("/api/v1/auth/login", json={"email": "mia@example.com", "password": PASSWORD})
    assert resp.status_code == 401

    token = generate_email_verification_token(user["id"])
    resp = client.post("/api/v1/auth/verify-email", json={"token": token})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["user"]["manufacturerStatus"] == "ACTIVE"

    resp = client.post("/api/v1/auth/login", json={"email": "MIA@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    access = resp.get_json()["data"]["token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {access}"})
    assert me.get_json()["data"]["companyName"] == "Maker Metals"


def test_wrong_password(client, buyer):
    resp = client.post("/api/v1/auth/login", json={"email": buyer.email, "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "AUTH_FAILED"


def test_duplicate_email(client, outbox):
    assert client.post("/api/v1/auth/register", json=_registration()).status_code == 201
    resp = client.post("/api/v1/auth/register", json=_registration())
    assert resp.status_code == 409


@pytest.mark.parametrize("password", ["short1!", "alllowercase1!", "NoDigits!!", "NoSpecial123"])
def test_password_policy(client, password):
    resp = client.post(
        "/api/v1/auth/register",
        json=_registration(password=password, confirmPassword=password),
    )
    assert resp.status_code == 400
    assert "password" in resp.get_json()["error"]["details"]


def test_password_confirmation(client):
    resp = client.post("/api/v1/auth/register", json=_registration(confirmPassword="Other!Pass1"))
    assert resp.status_code == 400


def test_manufacturers_declare_a_technology(client):
    resp = client.post("/api/v1/auth/register", json=_registration(manufacturingTypes=[]))
    assert resp.status_code == 400
    assert "manufacturingTypes" in resp.get_json()["error"]["details"]

    resp = client.post(
        "/api/v1/auth/register", json=_registration(userType="BUYER", manufacturingTypes=[])
    )
    assert resp.status_code == 201


def test_bad_verification_token(client):
    resp = client.post("/api/v1/auth/verify-email", json={"token": "garbage"})
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "TOKEN_INVALID"


def test_mail_failure_does_not_block_registration(client, monkeypatch):
    def boom(**kwargs):
        raise OSError("SMTP down")

    monkeypatch.setattr(email_service, "send_email", boom)
    resp = client.post("/api/v1/auth/register", json=_registration())
    assert resp.status_code == 201
    assert User.query.filter_by(email="mia@example.com").count() == 1


def test_request_notifies_the_buyer(client, buyer, manufacturer, headers, open_rfq, outbox):
    client.post(
        f"/api/v1/rfqs/{open_rfq['id']}/request",
        json={"proposedLeadTime": 7},
        headers=headers(manufacturer),
    )
    assert [m["to"] for m in outbox] == [buyer.email]
    assert "Precision Works" in outbox[0]["html"]


def test_update_profile(client, manufacturer, headers):
    resp = client.put(
        "/api/v1/profile",
        json={
            "companyName": "Precision Works GmbH",
            "city": "Munich",
            "certifications": ["ISO_9001"],
            "manufacturerSettings": {"regionsServed": ["Bavaria"], "machinery": ["5-axis mill"]},
        },
        headers=headers(manufacturer),
    )
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["companyName"] == "Precision Works GmbH"
    assert data["manufacturerSettings"]["regionsServed"] == ["Bavaria"]
    assert data["manufacturerSettings"]["technologies"] == ["CNC"]
    # company, city, country + four capability blocks
    assert data["profileCompleteness"] == 55

    db.session.expire_all()
    assert db.session.get(User, manufacturer.id).machinery == ["5-axis mill"]


def test_profile_rejects_unknown_certification(client, manufacturer, headers):
    resp = client.put(
        "/api/v1/profile", json={"certifications": ["MADE_UP"]}, headers=headers(manufacturer)
    )
    assert resp.status_code == 400


def test_public_profile_hides_contact_details(client, buyer, manufacturer, headers):
    data = client.get(f"/api/v1/profile/{manufacturer.id}", headers=headers(buyer)).get_json()["data"]
    assert data["companyName"] == "Precision Works"
    assert "email" not in data
    assert data["manufacturingTypes"] == ["CNC"]
