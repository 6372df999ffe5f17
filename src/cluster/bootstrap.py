"""Cluster bootstrap: readiness polling and cluster creation.

Both pollers share one state machine. A probe reports READY, NOT_READY or
FATAL; ``next_state`` turns that outcome and the elapsed time into the next
PollState, and ``poll_until_ready`` drives the loop with a fixed delay
between probes.

    POLLING --ready--> READY
    POLLING --fatal--> FAILED
    POLLING --elapsed > timeout--> TIMED_OUT

These calls run before any Suite API session exists and authenticate to the
cluster-administration service with the appliance admin credential.
"""

from __future__ import annotations

import hashlib
import ssl
import time
from enum import Enum
from typing import Callable, Optional

import requests

from ..client.errors import (
    ApiRequestError,
    AuthenticationError,
    BootstrapFailedError,
    BootstrapTimeoutError,
    ClientConnectionError,
)
from ..client.models import ClusterNode, ClusterState, Credential, determine_verify
from ..client.transport import describe_response, make_http_session, quiet_insecure_warnings
from ..common.console import debug, log

CLUSTER_PATH = "/casa/cluster"
CLUSTER_STATUS_PATH = "/casa/cluster/status"

DEFAULT_TIMEOUT = 1800  # seconds
DEFAULT_INTERVAL = 30  # seconds
DEFAULT_READY_STATUS = 422
DEFAULT_REQUEST_TIMEOUT = 30


class PollState(str, Enum):
    """State of a bootstrap poller."""

    POLLING = "POLLING"
    READY = "READY"
    TIMED_OUT = "TIMED_OUT"
    FAILED = "FAILED"


class ProbeOutcome(str, Enum):
    """Result of a single readiness probe."""

    READY = "READY"
    NOT_READY = "NOT_READY"
    FATAL = "FATAL"  # will never become ready


def next_state(outcome: ProbeOutcome, elapsed: float, timeout: float) -> PollState:
    """Transition function shared by both pollers.

    An observed READY wins even when it arrives after the budget is spent.
    """
    if outcome is ProbeOutcome.READY:
        return PollState.READY
    if outcome is ProbeOutcome.FATAL:
        return PollState.FAILED
    if elapsed > timeout:
        return PollState.TIMED_OUT
    return PollState.POLLING


def poll_until_ready(
    probe: Callable[[], ProbeOutcome],
    timeout: float,
    interval: float,
    *,
    label: str = "poll",
    node: Optional[str] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> float:
    """Call ``probe`` every ``interval`` seconds until it reports READY.

    Returns:
        Seconds elapsed between the start and the READY observation.

    Raises:
        BootstrapTimeoutError: READY was not observed within ``timeout``.
        BootstrapFailedError: the probe reported a FATAL outcome.
    """
    start = clock()
    attempt = 0
    while True:
        attempt += 1
        outcome = probe()
        elapsed = clock() - start
        state = next_state(outcome, elapsed, timeout)
        debug(label, f"attempt {attempt}: {outcome.value} after {elapsed:.0f}s -> {state.value}")

        if state is PollState.READY:
            log(label, f"Ready after {elapsed:.0f}s ({attempt} probes)")
            return elapsed
        if state is PollState.FAILED:
            raise BootstrapFailedError(label, "probe reported an unrecoverable failure", node=node)
        if state is PollState.TIMED_OUT:
            raise BootstrapTimeoutError(label, timeout, node=node)

        sleep(interval)


class CasaClient:
    """Client for the appliance's cluster-administration service."""

    def __init__(
        self,
        node: str,
        credential: Optional[Credential] = None,
        trust_all: bool = False,
        ca_bundle: Optional[str] = None,
        http: Optional[requests.Session] = None,
        timeout: int = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.node = node
        self.credential = credential
        self.timeout = timeout
        self._verify = determine_verify(trust_all, ca_bundle)
        self._http = http
        quiet_insecure_warnings(self._verify)

    def _get_http(self) -> requests.Session:
        if self._http is None:
            self._http = make_http_session()
        return self._http

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
            self._http = None

    def _auth(self):
        if self.credential is None:
            return None
        return (self.credential.username, self.credential.password)

    def _send(self, operation: str, method: str, path: str, json_body=None) -> requests.Response:
        url = f"https://{self.node}{path}"
        try:
            return self._get_http().request(
                method,
                url,
                json=json_body,
                auth=self._auth(),
                verify=self._verify,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise ClientConnectionError(operation, str(e), node=self.node, cause=e)

    def cluster_state(self) -> ClusterState:
        """Read the current cluster state.

        Raises:
            ClientConnectionError: the service is unreachable.
            AuthenticationError: the admin credential was rejected.
            ApiRequestError: any other non-2xx response.
        """
        resp = self._send("cluster_status", "GET", CLUSTER_STATUS_PATH)
        if resp.status_code == 401:
            raise AuthenticationError("cluster_status", "admin credential rejected", node=self.node)
        if not 200 <= resp.status_code < 300:
            raise ApiRequestError("cluster_status", resp.status_code, describe_response(resp), node=self.node)
        try:
            payload = resp.json()
        except ValueError as e:
            raise ApiRequestError(
                "cluster_status", resp.status_code, "response is not valid JSON", node=self.node, cause=e
            )
        if not isinstance(payload, dict):
            raise ApiRequestError(
                "cluster_status", resp.status_code, "response is not a JSON object", node=self.node
            )
        return ClusterState.parse(payload.get("cluster_state"))

    def probe_cluster_status(self) -> ProbeOutcome:
        """One cluster-status probe; a failed probe only means "not yet"."""
        try:
            state = self.cluster_state()
        except (ClientConnectionError, AuthenticationError, ApiRequestError) as e:
            log("cluster-status", f"Probe failed, will retry: {e}")
            return ProbeOutcome.NOT_READY
        debug("cluster-status", f"{self.node}: cluster_state={state.value}")
        if state is ClusterState.INITIALIZED:
            return ProbeOutcome.READY
        return ProbeOutcome.NOT_READY

    def probe_api(self, ready_status: int = DEFAULT_READY_STATUS) -> ProbeOutcome:
        """One availability probe; only ``ready_status`` counts as listening."""
        try:
            resp = self._send("api_probe", "POST", CLUSTER_PATH)
        except ClientConnectionError as e:
            debug("api-probe", f"{self.node}: {e}")
            return ProbeOutcome.NOT_READY
        debug("api-probe", f"{self.node}: HTTP {resp.status_code}")
        if resp.status_code == ready_status:
            return ProbeOutcome.READY
        return ProbeOutcome.NOT_READY

    def create_cluster(self, master: ClusterNode, replica: Optional[ClusterNode] = None) -> None:
        """Ask the service to form a cluster with ``master`` (and ``replica``)."""
        body = {"master": master.to_dict(), "init": True}
        if replica is not None:
            body["replica"] = replica.to_dict()
        resp = self._send("create_cluster", "POST", CLUSTER_PATH, json_body=body)
        if resp.status_code == 401:
            raise AuthenticationError("create_cluster", "admin credential rejected", node=self.node)
        if not 200 <= resp.status_code < 300:
            raise ApiRequestError("create_cluster", resp.status_code, describe_response(resp), node=self.node)
        log("cluster", f"Cluster creation requested on {self.node} (master={master.address})")


def wait_for_cluster_initialized(
    casa: CasaClient,
    timeout: float = DEFAULT_TIMEOUT,
    interval: float = DEFAULT_INTERVAL,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> float:
    """Block until the cluster reports INITIALIZED; returns elapsed seconds."""
    log("cluster-status", f"Waiting up to {timeout:g}s for {casa.node} to initialize")
    return poll_until_ready(
        casa.probe_cluster_status,
        timeout,
        interval,
        label="cluster-status",
        node=casa.node,
        clock=clock,
        sleep=sleep,
    )


def wait_for_api_available(
    casa: CasaClient,
    timeout: float = DEFAULT_TIMEOUT,
    interval: float = DEFAULT_INTERVAL,
    ready_status: int = DEFAULT_READY_STATUS,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> float:
    """Block until the cluster API answers with ``ready_status``; returns elapsed seconds."""
    log("api-probe", f"Waiting up to {timeout:g}s for {casa.node} to accept requests")
    return poll_until_ready(
        lambda: casa.probe_api(ready_status),
        timeout,
        interval,
        label="api-probe",
        node=casa.node,
        clock=clock,
        sleep=sleep,
    )


def format_thumbprint(der_cert: bytes) -> str:
    """SHA-1 thumbprint as colon-separated upper-case hex pairs."""
    digest = hashlib.sha1(der_cert).hexdigest().upper()
    return ":".join(digest[i:i + 2] for i in range(0, len(digest), 2))


def get_certificate_thumbprint(address: str, port: int = 443, timeout: int = DEFAULT_REQUEST_TIMEOUT) -> str:
    """Fetch a node's certificate and return its thumbprint."""
    try:
        pem = ssl.get_server_certificate((address, port), timeout=timeout)
    except (OSError, ssl.SSLError) as e:
        raise ClientConnectionError("thumbprint", str(e), node=address, cause=e)
    return format_thumbprint(ssl.PEM_cert_to_DER_cert(pem))
