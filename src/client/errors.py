"""Error taxonomy for Suite API operations.

Every error carries the operation that failed, the node it was talking to
(when known) and the underlying exception, so a failing batch can be
diagnosed from the message alone.
"""

from typing import Optional


class SuiteApiError(Exception):
    """Base exception for all toolkit failures."""

    def __init__(
        self,
        operation: str,
        message: str,
        node: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        self.operation = operation
        self.node = node
        self.cause = cause
        self.detail = message
        where = f" {node}:" if node else ""
        super().__init__(f"[{operation}]{where} {message}")


class ClientConnectionError(SuiteApiError):
    """Transport or TLS failure talking to a node."""


class AuthenticationError(SuiteApiError):
    """Credentials were rejected by the node."""


class ValidationError(SuiteApiError):
    """Malformed local input: missing file or directory, bad argument."""


class ObjectLookupError(SuiteApiError, LookupError):
    """Expected exactly one named object but found zero or several."""

    def __init__(
        self,
        operation: str,
        kind: str,
        name: str,
        matches: int,
        node: Optional[str] = None,
    ):
        self.kind = kind
        self.name = name
        self.matches = matches
        if matches == 0:
            message = f"no {kind} named {name!r}"
        else:
            message = f"{matches} {kind}s named {name!r}, expected exactly one"
        super().__init__(operation, message, node=node)


class CodecError(SuiteApiError):
    """A policy archive could not be opened or lacks the expected entry."""


class ApiRequestError(SuiteApiError):
    """The node answered with a non-success HTTP status."""

    def __init__(
        self,
        operation: str,
        status_code: int,
        message: str,
        node: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        self.status_code = status_code
        super().__init__(operation, f"HTTP {status_code}: {message}", node=node, cause=cause)


class ApiSemanticError(SuiteApiError):
    """The transport reported success but the response body reports no effect."""


class BootstrapTimeoutError(SuiteApiError):
    """A bootstrap poller did not observe readiness within its budget."""

    def __init__(self, operation: str, timeout: float, node: Optional[str] = None):
        self.timeout = timeout
        super().__init__(operation, f"not ready after {timeout:g}s", node=node)


class BootstrapFailedError(SuiteApiError):
    """A bootstrap poller observed a condition that will never become ready."""
