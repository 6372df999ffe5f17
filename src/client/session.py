"""Session acquisition.

Exchanges a credential for an opaque token on one node. The resulting
Session is immutable and carries its own TLS trust setting, so a single
process can hold sessions to a self-signed lab node and a verified
production node at the same time.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Tuple

import requests

from .errors import ApiRequestError, AuthenticationError, ClientConnectionError
from .models import (
    LOCAL_AUTH_SOURCE,
    Credential,
    Principal,
    Session,
    determine_verify,
    epoch_millis_to_datetime,
)
from .transport import DEFAULT_TIMEOUT, describe_response, make_http_session, quiet_insecure_warnings
from ..common.console import debug, log

TOKEN_PATH = "/suite-api/api/auth/token/acquire"


def split_principal(username: str, auth_source: Optional[str] = None) -> Tuple[str, str]:
    """Split ``user@domain`` into the user part and its auth source.

    An explicit ``auth_source`` wins over the domain qualifier. Without either,
    the local account source is used.
    """
    user, sep, domain = username.rpartition("@")
    if not sep:
        user, domain = username, ""
    if auth_source:
        return user, auth_source
    return user, domain or LOCAL_AUTH_SOURCE


def acquire(
    node: str,
    credential: Credential,
    auth_source: Optional[str] = None,
    trust_all: bool = False,
    ca_bundle: Optional[str] = None,
    timeout: int = DEFAULT_TIMEOUT,
    http: Optional[requests.Session] = None,
) -> Session:
    """Acquire a token for ``node``.

    Args:
        node: Host name or address of the appliance.
        credential: Username (optionally ``user@domain``) and password.
        auth_source: Explicit auth source; derived from the username if omitted.
        trust_all: Skip certificate verification for this session only.
        ca_bundle: CA bundle used to verify the node when not trusting all.
        timeout: Per-request timeout in seconds.
        http: Optional requests session to send the request with.

    Returns:
        An immutable Session for ``node``.

    Raises:
        AuthenticationError: The node rejected the credential.
        ClientConnectionError: The node could not be reached.
        ApiRequestError: Any other unexpected response.
    """
    user, source = split_principal(credential.username, auth_source)
    verify = determine_verify(trust_all, ca_bundle)
    quiet_insecure_warnings(verify)

    url = f"https://{node}{TOKEN_PATH}"
    body = {"username": user, "authSource": source, "password": credential.password}
    debug("session", f"POST {url} as {user}@{source}")

    owns_http = http is None
    http = http or make_http_session()
    try:
        resp = http.post(url, json=body, verify=verify, timeout=timeout)
    except requests.exceptions.SSLError as e:
        raise ClientConnectionError(
            "acquire",
            "TLS/SSL error: certificate verify failed. Consider --insecure or --ca-bundle.",
            node=node,
            cause=e,
        )
    except requests.exceptions.RequestException as e:
        raise ClientConnectionError("acquire", str(e), node=node, cause=e)
    finally:
        if owns_http:
            http.close()

    if resp.status_code in (401, 403):
        raise AuthenticationError("acquire", f"credentials rejected for {user}@{source}", node=node)
    if not 200 <= resp.status_code < 300:
        raise ApiRequestError("acquire", resp.status_code, describe_response(resp), node=node)

    try:
        payload = resp.json()
        token = payload["token"]
    except (ValueError, KeyError, TypeError) as e:
        raise ApiRequestError("acquire", resp.status_code, "no token in response", node=node, cause=e)

    session = Session(
        node=node,
        principal=Principal(username=user, auth_source=source),
        token=token,
        issued_at=datetime.now(timezone.utc),
        expires_at=epoch_millis_to_datetime(payload.get("validity")),
        trust_all=trust_all,
        ca_bundle=ca_bundle,
    )
    log("session", f"Authenticated to {node} as {user}@{source}")
    return session
