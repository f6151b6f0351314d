"""Shared helpers for kube-stress."""

from ks_common.errors import KSError
from ks_common.logging import configure_logging

__version__ = "0.1.0"

__all__ = ["configure_logging", "KSError", "__version__"]
