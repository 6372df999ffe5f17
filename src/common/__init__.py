"""Shared helpers - console output."""

from .console import log, debug, set_verbose

__all__ = [
    "log",
    "debug",
    "set_verbose",
]
