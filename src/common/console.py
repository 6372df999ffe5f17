"""Console output for the toolkit.

Every line is prefixed with the component tag, e.g. ``[crossref] ...``, and
flushed immediately so progress is visible while long node batches run.
"""

from __future__ import annotations

_verbose = False


def set_verbose(enabled: bool) -> None:
    """Enable or disable debug output."""
    global _verbose
    _verbose = bool(enabled)


def log(tag: str, msg: str) -> None:
    """Print with flush for reliable output."""
    print(f"[{tag}] {msg}", flush=True)


def debug(tag: str, msg: str) -> None:
    """Print only when verbose output is enabled."""
    if _verbose:
        print(f"[{tag}] {msg}", flush=True)
