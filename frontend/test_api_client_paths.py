# frontend/test_api_client_paths.py
# Unit tests for the API client: public paths, auth header, error messages.
# Streamlit and requests are mocked; no backend is needed.

from unittest.mock import MagicMock, patch

import pytest

from frontend import api_client


class FakeResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


@pytest.mark.parametrize("path", [
    "/auth/login",
    "/auth/register",
    "/auth/forgot-password",
    "/auth/reset-password",
    "/auth/login?next=x",
    "/health",
])
def test_public_endpoints(path):
    assert api_client.is_public_endpoint(path)


@pytest.mark.parametrize("path", ["/auth/me", "/api/leases", "/api/leases/1/transition", "/auth"])
def test_protected_endpoints(path):
    assert not api_client.is_public_endpoint(path)


class TestErrorDetail:
    def test_domain_error_message(self):
        resp = FakeResponse(409, {"detail": "Booking already has a lease", "error": "conflict"})
        assert api_client.error_detail(resp) == "Booking already has a lease"

    def test_schema_errors_flattened(self):
        resp = FakeResponse(422, {"detail": [
            {"loc": ["body", "price"], "msg": "Field required"},
            {"loc": ["query", "limit"], "msg": "too big"},
        ]})
        assert api_client.error_detail(resp) == "price: Field required; query.limit: too big"

    def test_non_json_body(self):
        assert api_client.error_detail(FakeResponse(500), "Save failed") == "Save failed (500)"

    def test_no_response(self):
        assert api_client.error_detail(None, "Nope") == "Nope"


@pytest.fixture
def mocked():
    with patch.object(api_client, "st", MagicMock()) as st_mock, \
         patch.object(api_client, "get_api_base_url", return_value="http://api.test"), \
         patch.object(api_client.requests, "request") as request:
        yield st_mock, request


class TestApiRequest:
    def test_protected_call_without_token_is_not_sent(self, mocked):
        st_mock, request = mocked
        with patch.object(api_client, "get_auth_header", return_value={}):
            assert api_client.api_request("GET", "/api/leases") is None
        request.assert_not_called()
        st_mock.error.assert_called_once()

    def test_bearer_header_attached(self, mocked):
        _, request = mocked
        request.return_value = FakeResponse(200, {"items": []})
        with patch.object(api_client, "get_auth_header", return_value={"Authorization": "Bearer t"}):
            resp = api_client.api_request("GET", "/api/leases", params={"status": "Active"})
        assert resp.status_code == 200
        args, kwargs = request.call_args
        assert args == ("GET", "http://api.test/api/leases")
        assert kwargs["headers"]["Authorization"] == "Bearer t"
        assert kwargs["params"] == {"status": "Active"}

    def test_public_call_has_no_auth_header(self, mocked):
        _, request = mocked
        request.return_value = FakeResponse(200, {})
        with patch.object(api_client, "get_auth_header", return_value={"Authorization": "Bearer t"}):
            api_client.api_request("POST", "/auth/login", json={"email": "a", "password": "b"})
        assert "Authorization" not in request.call_args.kwargs["headers"]

    def test_401_expires_session(self, mocked):
        _, request = mocked
        request.return_value = FakeResponse(401, {"detail": "Token expired"})
        with patch.object(api_client, "get_auth_header", return_value={"Authorization": "Bearer t"}), \
             patch.object(api_client, "_handle_session_expired") as expired:
            assert api_client.api_request("GET", "/auth/me") is None
        expired.assert_called_once()

    def test_connection_error_returns_none(self, mocked):
        st_mock, request = mocked
        request.side_effect = api_client.requests.exceptions.ConnectionError()
        with patch.object(api_client, "get_auth_header", return_value={"Authorization": "Bearer t"}):
            assert api_client.api_request("GET", "/api/listings") is None
        st_mock.error.assert_called_once()
