"""Adapters - I/O implementations of ports."""

from .rest_api import RestTaskAdapter, TransportError

__all__ = [
    "RestTaskAdapter",
    "TransportError",
]
