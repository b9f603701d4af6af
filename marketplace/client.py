"""HTTP client for the marketplace REST API.

Authentication lives on an explicit ``ClientSession`` handed to
``MarketplaceClient``; two clients with different sessions never share a
token. Error envelopes are raised as ``APIError``.
"""

import logging

import httpx

log = logging.getLogger("marketplace.client")


class APIError(Exception):
    def __init__(self, status_code, message, code=None, details=None):
        self.status_code = status_code
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(f"{status_code}: {message}")


class ClientSession:
    def __init__(self, base_url, token=None, timeout=20.0):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def headers(self):
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}


class MarketplaceClient:
    def __init__(self, session: ClientSession, transport=None):
        self.session = session
        self._http = httpx.Client(
            base_url=f"{session.base_url}/api/v1",
            timeout=session.timeout,
            transport=transport,
        )

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method, path, json=None, params=None):
        resp = self._http.request(
            method, path, json=json, params=params, headers=self.session.headers()
        )
        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.is_error or body.get("success") is False:
            error = body.get("error") or {}
            message = body.get("message") or error.get("message") or resp.reason_phrase
            log.warning("%s %s failed: %s %s", method, path, resp.status_code, message)
            raise APIError(resp.status_code, message, error.get("code"), error.get("details"))
        return body

    def _data(self, method, path, **kwargs):
        return self._request(method, path, **kwargs).get("data")

    # auth

    def login(self, email, password):
        """Log in and store the bearer token on the session."""
        data = self._data("POST", "/auth/login", json={"email": email, "password": password})
        self.session.token = data["token"]
        return data["user"]

    def me(self):
        return self._data("GET", "/auth/me")

    # rfqs

    def create_rfq(self, payload):
        return self._data("POST", "/rfqs", json=payload)

    def my_rfqs(self, **filters):
        return self._request("GET", "/rfqs/my-rfqs", params=filters)

    def rfq_pool(self, **filters):
        return self._request("GET", "/rfqs/pool", params=filters)

    def accepted_rfqs(self, **params):
        return self._request("GET", "/rfqs/accepted", params=params)

    def get_rfq(self, rfq_id):
        return self._data("GET", f"/rfqs/{rfq_id}")

    def update_rfq(self, rfq_id, payload):
        return self._data("PUT", f"/rfqs/{rfq_id}", json=payload)

    def delete_rfq(self, rfq_id):
        self._request("DELETE", f"/rfqs/{rfq_id}")

    def request_rfq(self, rfq_id, proposed_lead_time, message=None):
        return self._data(
            "POST",
            f"/rfqs/{rfq_id}/request",
            json={"proposedLeadTime": proposed_lead_time, "message": message},
        )

    def withdraw_request(self, rfq_id):
        return self._data("POST", f"/rfqs/{rfq_id}/withdraw-request")

    def accept_manufacturer(self, rfq_id, request_id):
        return self._data(
            "POST",
            f"/rfqs/{rfq_id}/accept-manufacturer",
            json={"manufacturerRequestId": request_id},
        )

    def reject_manufacturer(self, rfq_id, request_id, reason=None):
        return self._data(
            "POST",
            f"/rfqs/{rfq_id}/reject-manufacturer",
            json={"manufacturerRequestId": request_id, "rejectionReason": reason},
        )

    def update_status(self, rfq_id, status=None, **details):
        payload = dict(details)
        if status:
            payload["status"] = status
        return self._data("PUT", f"/rfqs/{rfq_id}/status", json=payload)

    # invitations

    def send_invitation(self, rfq_id, manufacturer_id, message=None):
        return self._data(
            "POST",
            "/invitations",
            json={"rfqId": rfq_id, "manufacturerId": manufacturer_id, "message": message},
        )

    def invitations(self, status=None):
        params = {"status": status} if status else None
        return self._request("GET", "/invitations", params=params)

    def accept_invitation(self, invitation_id):
        return self._data("POST", f"/invitations/{invitation_id}/accept")

    def decline_invitation(self, invitation_id, reason=None):
        return self._data(
            "POST", f"/invitations/{invitation_id}/decline", json={"declineReason": reason}
        )

    # ratings

    def submit_rating(self, rfq_id, rating, comment=None, categories=None):
        return self._data(
            "POST",
            "/ratings",
            json={
                "rfqId": rfq_id,
                "rating": rating,
                "comment": comment,
                "categories": categories or {},
            },
        )

    def manufacturer_ratings(self, manufacturer_id):
        return self._request("GET", "/ratings", params={"manufacturerId": manufacturer_id})

    # search

    def search_rfqs(self, **filters):
        return self._request("GET", "/search/rfqs", params=filters)

    def search_manufacturers(self, **filters):
        return self._request("GET", "/search/manufacturers", params=filters)
