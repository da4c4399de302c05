"""Utility modules for wrapkit."""

from wrapkit.utils.logging import setup_logging
from wrapkit.utils.awaitables import resolve

__all__ = [
    "setup_logging",
    "resolve",
]
