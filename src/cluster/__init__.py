"""Cluster bootstrap - readiness pollers and cluster creation."""

from .bootstrap import (
    PollState,
    ProbeOutcome,
    CasaClient,
    next_state,
    poll_until_ready,
    wait_for_cluster_initialized,
    wait_for_api_available,
    get_certificate_thumbprint,
)

__all__ = [
    "PollState",
    "ProbeOutcome",
    "CasaClient",
    "next_state",
    "poll_until_ready",
    "wait_for_cluster_initialized",
    "wait_for_api_available",
    "get_certificate_thumbprint",
]
