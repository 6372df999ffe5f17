"""Tests for session acquisition and the HTTP transport."""

from dataclasses import replace
from unittest.mock import MagicMock, patch

import certifi
import pytest
import requests

from src.client.errors import (
    ApiRequestError,
    AuthenticationError,
    ClientConnectionError,
)
from src.client.models import Credential, determine_verify
from src.client.session import acquire, split_principal
from src.client.transport import SuiteApiClient, TOKEN_SCHEME, UNSUPPORTED_API_HEADER


def _response(status_code=200, payload=None, content=b""):
    resp = MagicMock(status_code=status_code, content=content, text="", reason="")
    resp.json.return_value = payload if payload is not None else {}
    return resp


class TestSplitPrincipal:
    def test_domain_qualified(self):
        assert split_principal("jdoe@corp.local") == ("jdoe", "corp.local")

    def test_local_account(self):
        assert split_principal("admin") == ("admin", "local")

    def test_explicit_auth_source_wins(self):
        assert split_principal("jdoe@corp.local", "LDAP-Prod") == ("jdoe", "LDAP-Prod")


class TestDetermineVerify:
    def test_trust_all_disables_verification(self):
        assert determine_verify(True, "/etc/pki/roots.pem") is False

    def test_ca_bundle(self):
        assert determine_verify(False, "/etc/pki/roots.pem") == "/etc/pki/roots.pem"

    def test_default_bundle(self):
        assert determine_verify(False, None) == certifi.where()

    def test_session_verify_matches(self, session):
        assert session.verify is False
        pinned = replace(session, trust_all=False, ca_bundle="/etc/pki/roots.pem")
        assert pinned.verify == "/etc/pki/roots.pem"
        assert replace(session, trust_all=False).verify == certifi.where()


class TestAcquire:
    def test_success(self):
        http = MagicMock()
        http.post.return_value = _response(200, {"token": "abc", "validity": 1767225600000})

        session = acquire("node1", Credential("jdoe@corp.local", "pw"), trust_all=True, http=http)

        assert session.token == "abc"
        assert session.node == "node1"
        assert session.principal.username == "jdoe"
        assert session.principal.auth_source == "corp.local"
        assert session.expires_at.year == 2026
        assert session.verify is False

        _, kwargs = http.post.call_args
        assert http.post.call_args[0][0] == "https://node1/suite-api/api/auth/token/acquire"
        assert kwargs["json"] == {"username": "jdoe", "authSource": "corp.local", "password": "pw"}
        assert kwargs["verify"] is False

    def test_verify_uses_ca_bundle(self):
        http = MagicMock()
        http.post.return_value = _response(200, {"token": "abc"})

        session = acquire("node1", Credential("admin", "pw"), ca_bundle="/etc/roots.pem", http=http)

        assert http.post.call_args[1]["verify"] == "/etc/roots.pem"
        assert session.verify == "/etc/roots.pem"
        assert session.expires_at is None

    def test_rejected_credentials(self):
        http = MagicMock()
        http.post.return_value = _response(401)
        with pytest.raises(AuthenticationError) as exc:
            acquire("node1", Credential("admin", "bad"), http=http)
        assert exc.value.node == "node1"

    def test_connection_failure(self):
        http = MagicMock()
        http.post.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(ClientConnectionError) as exc:
            acquire("node1", Credential("admin", "pw"), http=http)
        assert "refused" in str(exc.value)

    def test_missing_token(self):
        http = MagicMock()
        http.post.return_value = _response(200, {"unexpected": True})
        with pytest.raises(ApiRequestError):
            acquire("node1", Credential("admin", "pw"), http=http)

    def test_password_not_in_repr(self):
        assert "secret" not in repr(Credential("admin", "secret"))


class TestSuiteApiClient:
    def test_headers_and_trust_per_session(self, session):
        http = MagicMock()
        http.request.return_value = _response(200, {"ok": True})
        client = SuiteApiClient(session, http=http, timeout=15)

        assert client.get_json("op", "/internal/policies", internal=True) == {"ok": True}

        args, kwargs = http.request.call_args
        assert args == ("GET", "https://vrops-01.lab.local/suite-api/internal/policies")
        assert kwargs["headers"]["Authorization"] == f"{TOKEN_SCHEME} tok-123"
        assert kwargs["headers"][UNSUPPORTED_API_HEADER] == "true"
        assert kwargs["verify"] is False
        assert kwargs["timeout"] == 15

    def test_public_endpoint_has_no_unsupported_header(self, session):
        http = MagicMock()
        http.request.return_value = _response(200, {})
        SuiteApiClient(session, http=http).get_json("op", "/api/alertdefinitions")
        assert UNSUPPORTED_API_HEADER not in http.request.call_args[1]["headers"]

    def test_401_maps_to_authentication_error(self, session):
        http = MagicMock()
        http.request.return_value = _response(401)
        with pytest.raises(AuthenticationError):
            SuiteApiClient(session, http=http).get_json("op", "/api/resources")

    def test_error_status(self, session):
        http = MagicMock()
        http.request.return_value = _response(500)
        with pytest.raises(ApiRequestError) as exc:
            SuiteApiClient(session, http=http).get_json("list", "/api/resources")
        assert exc.value.status_code == 500
        assert exc.value.operation == "list"

    def test_ssl_error(self, session):
        http = MagicMock()
        http.request.side_effect = requests.exceptions.SSLError("verify failed")
        with pytest.raises(ClientConnectionError) as exc:
            SuiteApiClient(session, http=http).get_bytes("export", "/internal/policies/export")
        assert "TLS" in str(exc.value)

    def test_post_raw_sets_content_type(self, session):
        http = MagicMock()
        http.request.return_value = _response(202)
        SuiteApiClient(session, http=http).post_raw(
            "import", "/internal/policies/import", b"body", "multipart/form-data; boundary=x", internal=True
        )
        kwargs = http.request.call_args[1]
        assert kwargs["data"] == b"body"
        assert kwargs["headers"]["Content-Type"] == "multipart/form-data; boundary=x"

    @patch("src.client.transport.make_http_session")
    def test_close_releases_session(self, mock_make, session):
        http = MagicMock()
        http.request.return_value = _response(200, {})
        mock_make.return_value = http
        with SuiteApiClient(session) as client:
            client.get_json("op", "/api/resources")
        http.close.assert_called_once()
