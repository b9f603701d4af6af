from marketplace.extensions import db
from marketplace.models.manufacturer_request import ManufacturerRequest
from marketplace.models.rfq import RFQ
from marketplace.models.user import MANUFACTURER

from conftest import rfq_payload


def _request(client, headers, maker, rfq_id, lead_time=14):
    return client.post(
        f"/api/v1/rfqs/{rfq_id}/request",
        json={"proposedLeadTime": lead_time, "message": "We can do this"},
        headers=headers(maker),
    )


def _accept(client, headers, buyer, rfq_id, request_id):
    return client.post(
        f"/api/v1/rfqs/{rfq_id}/accept-manufacturer",
        json={"manufacturerRequestId": request_id},
        headers=headers(buyer),
    )


def test_create_defaults_to_draft(client, buyer, headers):
    payload = rfq_payload()
    del payload["status"]
    resp = client.post("/api/v1/rfqs", json=payload, headers=headers(buyer))
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["status"] == "DRAFT"
    assert data["id"].startswith("RFQ-")
    assert data["workpieces"][0]["dimensions"]["length"] == 100


def test_create_accepts_nested_requirements(client, buyer, headers):
    payload = rfq_payload()
    payload["requirements"] = {"country": "Germany", "requiredCertificates": ["ISO_9001"]}
    del payload["country"]
    resp = client.post("/api/v1/rfqs", json=payload, headers=headers(buyer))
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["country"] == "Germany"
    assert data["requiredCertificates"] == ["ISO_9001"]


def test_create_rejects_later_statuses(client, buyer, headers):
    resp = client.post("/api/v1/rfqs", json=rfq_payload(status="SHIPPED"), headers=headers(buyer))
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_create_validates_fields(client, buyer, headers):
    payload = rfq_payload()
    payload["workpieces"][0]["quantity"] = 0
    del payload["rfqDeadline"]
    resp = client.post("/api/v1/rfqs", json=payload, headers=headers(buyer))
    assert resp.status_code == 400
    details = resp.get_json()["error"]["details"]
    assert "rfqDeadline" in details
    assert "workpieces" in details


def test_opening_requires_a_workpiece(client, buyer, headers):
    resp = client.post("/api/v1/rfqs", json=rfq_payload(workpieces=[]), headers=headers(buyer))
    assert resp.status_code == 400


def test_empty_draft_cannot_be_opened_through_status(client, buyer, headers):
    resp = client.post(
        "/api/v1/rfqs", json=rfq_payload(status="DRAFT", workpieces=[]), headers=headers(buyer)
    )
    assert resp.status_code == 201
    rfq_id = resp.get_json()["data"]["id"]

    resp = client.put(
        f"/api/v1/rfqs/{rfq_id}/status", json={"status": "OPEN_FOR_REQUESTS"}, headers=headers(buyer)
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"]["details"] == {"field": "workpieces"}
    db.session.expire_all()
    assert db.session.get(RFQ, rfq_id).status == "DRAFT"


def test_open_rfq_cannot_drop_all_workpieces(client, buyer, headers, open_rfq):
    resp = client.put(
        f"/api/v1/rfqs/{open_rfq['id']}", json={"workpieces": []}, headers=headers(buyer)
    )
    assert resp.status_code == 400
    db.session.expire_all()
    assert len(db.session.get(RFQ, open_rfq["id"]).workpieces) == 1


def test_manufacturer_cannot_create(client, manufacturer, headers):
    resp = client.post("/api/v1/rfqs", json=rfq_payload(), headers=headers(manufacturer))
    assert resp.status_code == 403


def test_requires_token(client):
    resp = client.get("/api/v1/rfqs/my-rfqs")
    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_lifecycle_example(client, buyer, manufacturer, headers, open_rfq):
    rfq_id = open_rfq["id"]
    assert open_rfq["status"] == "OPEN_FOR_REQUESTS"

    resp = _request(client, headers, manufacturer, rfq_id)
    assert resp.status_code == 201
    req = resp.get_json()["data"]
    assert req["matchScore"] == 70
    assert req["status"] == "PENDING"
    assert req["technologyMatch"] is True

    detail = client.get(f"/api/v1/rfqs/{rfq_id}", headers=headers(buyer)).get_json()["data"]
    assert detail["status"] == "REQUESTS_PENDING"
    assert [r["id"] for r in detail["manufacturerRequests"]] == [req["id"]]

    resp = _accept(client, headers, buyer, rfq_id, req["id"])
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["status"] == "SUPPLIER_SELECTED"
    assert data["selectedManufacturerId"] == manufacturer.id
    assert data["selectedManufacturerRequestId"] == req["id"]

    resp = client.put(f"/api/v1/rfqs/{rfq_id}", json={"title": "Changed"}, headers=headers(buyer))
    assert resp.status_code == 400

    db.session.expire_all()
    assert db.session.get(RFQ, rfq_id).title == "Aluminum housing"


def test_duplicate_request_is_rejected(client, manufacturer, headers, open_rfq):
    assert _request(client, headers, manufacturer, open_rfq["id"]).status_code == 201
    resp = _request(client, headers, manufacturer, open_rfq["id"])
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "DUPLICATE_REQUEST"


def test_buyer_cannot_request(client, buyer, headers, open_rfq):
    assert _request(client, headers, buyer, open_rfq["id"]).status_code == 403


def test_draft_rfq_does_not_accept_requests(client, buyer, manufacturer, headers):
    rfq = client.post(
        "/api/v1/rfqs", json=rfq_payload(status="DRAFT"), headers=headers(buyer)
    ).get_json()["data"]
    assert _request(client, headers, manufacturer, rfq["id"]).status_code == 400


def test_accepting_rejects_the_other_pending_requests(
    client, buyer, manufacturer, make_user, headers, open_rfq
):
    other = make_user(MANUFACTURER, manufacturing_types=["MILLING"])
    rfq_id = open_rfq["id"]
    winner = _request(client, headers, manufacturer, rfq_id).get_json()["data"]
    loser = _request(client, headers, other, rfq_id).get_json()["data"]
    assert loser["matchScore"] == 0

    assert _accept(client, headers, buyer, rfq_id, winner["id"]).status_code == 200

    db.session.expire_all()
    assert db.session.get(ManufacturerRequest, winner["id"]).status == "ACCEPTED"
    rejected = db.session.get(ManufacturerRequest, loser["id"])
    assert rejected.status == "REJECTED"
    assert rejected.responded_at is not None


def test_second_accept_fails_and_keeps_the_winner(
    client, buyer, manufacturer, make_user, headers, open_rfq
):
    other = make_user(MANUFACTURER, manufacturing_types=["CNC"])
    rfq_id = open_rfq["id"]
    first = _request(client, headers, manufacturer, rfq_id).get_json()["data"]
    second = _request(client, headers, other, rfq_id).get_json()["data"]

    assert _accept(client, headers, buyer, rfq_id, first["id"]).status_code == 200
    resp = _accept(client, headers, buyer, rfq_id, second["id"])
    assert resp.status_code == 400

    db.session.expire_all()
    rfq = db.session.get(RFQ, rfq_id)
    assert rfq.selected_manufacturer_id == manufacturer.id
    assert rfq.status == "SUPPLIER_SELECTED"


def test_only_the_buyer_arbitrates(client, manufacturer, make_user, headers, open_rfq):
    req = _request(client, headers, manufacturer, open_rfq["id"]).get_json()["data"]
    stranger = make_user()
    resp = _accept(client, headers, stranger, open_rfq["id"], req["id"])
    assert resp.status_code == 403


def test_accept_unknown_request(client, buyer, headers, open_rfq):
    resp = _accept(client, headers, buyer, open_rfq["id"], "MRQ-missing")
    assert resp.status_code == 404


def test_reject_manufacturer(client, buyer, manufacturer, headers, open_rfq):
    rfq_id = open_rfq["id"]
    req = _request(client, headers, manufacturer, rfq_id).get_json()["data"]
    resp = client.post(
        f"/api/v1/rfqs/{rfq_id}/reject-manufacturer",
        json={"manufacturerRequestId": req["id"], "rejectionReason": "Lead time too long"},
        headers=headers(buyer),
    )
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["status"] == "REJECTED"
    assert data["rejectionReason"] == "Lead time too long"

    # a processed request cannot be accepted afterwards
    assert _accept(client, headers, buyer, rfq_id, req["id"]).status_code == 400


def test_withdraw_request(client, manufacturer, headers, open_rfq):
    _request(client, headers, manufacturer, open_rfq["id"])
    resp = client.post(
        f"/api/v1/rfqs/{open_rfq['id']}/withdraw-request", headers=headers(manufacturer)
    )
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "WITHDRAWN"


def test_delete_only_in_draft(client, buyer, headers, open_rfq):
    resp = client.delete(f"/api/v1/rfqs/{open_rfq['id']}", headers=headers(buyer))
    assert resp.status_code == 400
    db.session.expire_all()
    assert db.session.get(RFQ, open_rfq["id"]) is not None

    draft = client.post(
        "/api/v1/rfqs", json=rfq_payload(status="DRAFT"), headers=headers(buyer)
    ).get_json()["data"]
    resp = client.delete(f"/api/v1/rfqs/{draft['id']}", headers=headers(buyer))
    assert resp.status_code == 200
    db.session.expire_all()
    assert db.session.get(RFQ, draft["id"]) is None


def test_edit_and_open_a_draft(client, buyer, headers):
    draft = client.post(
        "/api/v1/rfqs", json=rfq_payload(status="DRAFT"), headers=headers(buyer)
    ).get_json()["data"]
    resp = client.put(
        f"/api/v1/rfqs/{draft['id']}",
        json={"title": "Revised housing", "status": "OPEN_FOR_REQUESTS"},
        headers=headers(buyer),
    )
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["title"] == "Revised housing"
    assert data["status"] == "OPEN_FOR_REQUESTS"


def test_missing_rfq(client, buyer, headers):
    assert client.get("/api/v1/rfqs/RFQ-nope", headers=headers(buyer)).status_code == 404


def test_detail_visibility(client, buyer, manufacturer, make_user, headers):
    draft = client.post(
        "/api/v1/rfqs", json=rfq_payload(status="DRAFT", ndaFile="https://files.example.com/nda.pdf"),
        headers=headers(buyer),
    ).get_json()["data"]
    assert draft["ndaFile"] == "https://files.example.com/nda.pdf"

    # drafts are private to the buyer
    resp = client.get(f"/api/v1/rfqs/{draft['id']}", headers=headers(manufacturer))
    assert resp.status_code == 403
    resp = client.get(f"/api/v1/rfqs/{draft['id']}", headers=headers(make_user()))
    assert resp.status_code == 403

    client.put(
        f"/api/v1/rfqs/{draft['id']}", json={"status": "OPEN_FOR_REQUESTS"}, headers=headers(buyer)
    )
    resp = client.get(f"/api/v1/rfqs/{draft['id']}", headers=headers(manufacturer))
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert "ndaFile" not in data
    assert "manufacturerRequests" not in data
    assert data["myRequest"] is None


def test_my_rfqs(client, buyer, manufacturer, make_user, headers, open_rfq):
    other_buyer = make_user()
    client.post("/api/v1/rfqs", json=rfq_payload(title="Not mine"), headers=headers(other_buyer))

    body = client.get("/api/v1/rfqs/my-rfqs", headers=headers(buyer)).get_json()
    assert [r["id"] for r in body["data"]] == [open_rfq["id"]]
    assert body["pagination"]["total"] == 1

    assert client.get("/api/v1/rfqs/my-rfqs", headers=headers(manufacturer)).get_json()["data"] == []
    _request(client, headers, manufacturer, open_rfq["id"])
    data = client.get("/api/v1/rfqs/my-rfqs", headers=headers(manufacturer)).get_json()["data"]
    assert [r["id"] for r in data] == [open_rfq["id"]]

    filtered = client.get(
        "/api/v1/rfqs/my-rfqs?status=DRAFT", headers=headers(buyer)
    ).get_json()["data"]
    assert filtered == []
