"""Abstract transport interface for node communication."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any

from shinkai.protocol.message import ShinkaiMessage


@dataclass(frozen=True)
class NodeResponse:
    """A node's ``{status, data}`` reply."""

    status: str
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


class TransportBase(abc.ABC):
    """Abstract transport layer for node communication.

    Implementations submit serialized envelopes to node endpoints and
    return the node's reply.  They never retry.
    """

    @abc.abstractmethod
    async def connect(self) -> None:
        """Prepare the connection to the node."""

    @abc.abstractmethod
    async def disconnect(self) -> None:
        """Close the connection."""

    @abc.abstractmethod
    async def post_message(self, path: str, message: ShinkaiMessage) -> NodeResponse:
        """POST *message* to the endpoint at *path* and return the reply."""
