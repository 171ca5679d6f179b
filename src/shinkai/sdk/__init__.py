"""Shinkai SDK -- node configuration, ready-made envelopes and transport."""

from shinkai.sdk import messages
from shinkai.sdk.config import NodeConfig
from shinkai.sdk.transport import HTTPTransport, NodeResponse, TransportBase

__all__ = ["NodeConfig", "HTTPTransport", "NodeResponse", "TransportBase", "messages"]
