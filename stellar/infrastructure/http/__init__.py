"""Outbound HTTP primitive."""

from .transport import HttpTransport

__all__ = ["HttpTransport"]
