"""Transport layer for submitting envelopes to Shinkai nodes."""

from shinkai.sdk.transport.base import NodeResponse, TransportBase
from shinkai.sdk.transport.http import HTTPTransport

__all__ = ["NodeResponse", "TransportBase", "HTTPTransport"]
