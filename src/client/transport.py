"""HTTP transport bound to one authenticated Session.

All Suite API requests go through ``SuiteApiClient`` so that the token
header, the unsupported-API opt-in, the TLS trust setting and the default
timeout are applied the same way everywhere.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import requests
import urllib3
from requests.adapters import HTTPAdapter

from .errors import ApiRequestError, AuthenticationError, ClientConnectionError
from .models import Session
from ..common.console import debug

DEFAULT_TIMEOUT = 60
TOKEN_SCHEME = "vRealizeOpsToken"
UNSUPPORTED_API_HEADER = "X-vRealizeOps-API-use-unsupported"
USER_AGENT = "suiteapi-toolkit/1.0"


def make_http_session() -> requests.Session:
    """Create a requests session with pooled connections and no retries."""
    session = requests.Session()
    adapter = HTTPAdapter(
        max_retries=0,
        pool_connections=5,
        pool_maxsize=10,
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
    })
    return session


def quiet_insecure_warnings(verify) -> None:
    """Silence urllib3's per-request warning when verification is off."""
    if verify is False:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


def describe_response(resp: requests.Response) -> str:
    """Short, single-line description of an error response body."""
    text = (resp.text or "").strip().replace("\n", " ")
    if len(text) > 300:
        text = text[:300] + "..."
    return text or resp.reason or "no response body"


class SuiteApiClient:
    """Requests for a single node, reusing one Session's token and trust policy."""

    def __init__(
        self,
        session: Session,
        http: Optional[requests.Session] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.session = session
        self.timeout = timeout
        self._http = http
        quiet_insecure_warnings(session.verify)

    @property
    def node(self) -> str:
        return self.session.node

    def _get_http(self) -> requests.Session:
        """Get or create the pooled HTTP session."""
        if self._http is None:
            self._http = make_http_session()
        return self._http

    def close(self) -> None:
        """Close the HTTP session and release pooled connections."""
        if self._http is not None:
            self._http.close()
            self._http = None

    def __enter__(self) -> "SuiteApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def url(self, path: str) -> str:
        return self.session.base_url + "/" + path.lstrip("/")

    def headers(self, internal: bool = False, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Authorization": f"{TOKEN_SCHEME} {self.session.token}"}
        if internal:
            headers[UNSUPPORTED_API_HEADER] = "true"
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        internal: bool = False,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        """Send one request and map failures onto the error taxonomy.

        Raises:
            ClientConnectionError: transport or TLS failure.
            AuthenticationError: HTTP 401.
            ApiRequestError: any other non-2xx status.
        """
        url = self.url(path)
        debug("http", f"{method} {url} params={params or {}}")
        try:
            resp = self._get_http().request(
                method,
                url,
                params=params,
                json=json_body,
                data=data,
                headers=self.headers(internal, headers),
                verify=self.session.verify,
                timeout=self.timeout,
            )
        except requests.exceptions.SSLError as e:
            raise ClientConnectionError(
                operation,
                "TLS/SSL error: certificate verify failed. Consider --insecure or --ca-bundle.",
                node=self.node,
                cause=e,
            )
        except requests.exceptions.RequestException as e:
            raise ClientConnectionError(operation, str(e), node=self.node, cause=e)

        debug("http", f"{method} {url} -> {resp.status_code}")
        if resp.status_code == 401:
            raise AuthenticationError(
                operation,
                "token rejected; acquire a new session",
                node=self.node,
            )
        if not 200 <= resp.status_code < 300:
            raise ApiRequestError(operation, resp.status_code, describe_response(resp), node=self.node)
        return resp

    def get_json(self, operation: str, path: str, *, internal: bool = False,
                 params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        resp = self.request(operation, "GET", path, internal=internal, params=params)
        try:
            return resp.json()
        except ValueError as e:
            raise ApiRequestError(
                operation, resp.status_code, "response is not valid JSON", node=self.node, cause=e
            )

    def get_bytes(self, operation: str, path: str, *, internal: bool = False,
                  params: Optional[Dict[str, Any]] = None) -> bytes:
        resp = self.request(
            operation,
            "GET",
            path,
            internal=internal,
            params=params,
            headers={"Accept": "application/zip, application/octet-stream, */*"},
        )
        return resp.content

    def put_json(self, operation: str, path: str, body: Any, *, internal: bool = False,
                 params: Optional[Dict[str, Any]] = None) -> requests.Response:
        return self.request(operation, "PUT", path, internal=internal, params=params, json_body=body)

    def post_raw(self, operation: str, path: str, body: bytes, content_type: str, *,
                 internal: bool = False) -> requests.Response:
        return self.request(
            operation,
            "POST",
            path,
            internal=internal,
            data=body,
            headers={"Content-Type": content_type},
        )
