"""HTTP transport via httpx with connection pooling."""

from __future__ import annotations

import logging

import httpx

from shinkai.protocol.message import ShinkaiMessage, message_to_json
from shinkai.sdk.config import NodeConfig
from shinkai.sdk.transport.base import NodeResponse, TransportBase

logger = logging.getLogger(__name__)

JOB_MESSAGE_PATH = "/v1/job_message"
CREATE_JOB_PATH = "/v1/create_job"
LAST_MESSAGES_FROM_INBOX_PATH = "/v1/last_messages_from_inbox"
SMART_INBOXES_FOR_PROFILE_PATH = "/v1/get_all_smart_inboxes_for_profile"
CREATE_FILES_INBOX_PATH = "/v1/create_files_inbox_with_symmetric_key"


class HTTPTransport(TransportBase):
    """Stateless HTTP transport using httpx AsyncClient.

    A single ``httpx.AsyncClient`` is created in ``connect()`` and
    reused for all requests (connection pooling).  Call ``disconnect()``
    to close it, or use the transport as an async context manager.

    Non-2xx replies come back as ``NodeResponse("error", <detail>)``;
    network failures propagate as ``httpx.RequestError``.
    """

    def __init__(self, config: NodeConfig | None = None) -> None:
        self._config = config or NodeConfig()
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the shared httpx AsyncClient."""
        self._client = httpx.AsyncClient(
            base_url=self._config.node_url,
            headers={"Content-Type": "application/json"},
            timeout=self._config.timeout,
        )

    async def disconnect(self) -> None:
        """Close the httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HTTPTransport":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.disconnect()

    async def post_message(self, path: str, message: ShinkaiMessage) -> NodeResponse:
        """POST the serialized envelope to *path*."""
        if self._client is None:
            raise RuntimeError("HTTPTransport not connected. Call connect() first.")
        meta = message.external_metadata
        logger.debug("POST %s (%s -> %s)", path, meta.sender, meta.recipient)
        resp = await self._client.post(path, content=message_to_json(message))
        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if resp.is_error:
            detail = (payload.get("error") if isinstance(payload, dict) else None) or resp.text
            logger.warning("Node rejected %s with HTTP %d: %s", path, resp.status_code, detail)
            return NodeResponse(status="error", data=detail)

        if isinstance(payload, dict) and "status" in payload:
            return NodeResponse(status=payload["status"], data=payload.get("data"))
        return NodeResponse(status="success", data=payload)

    async def send_job_message(self, message: ShinkaiMessage) -> NodeResponse:
        return await self.post_message(JOB_MESSAGE_PATH, message)

    async def create_job(self, message: ShinkaiMessage) -> NodeResponse:
        return await self.post_message(CREATE_JOB_PATH, message)

    async def last_messages_from_inbox(self, message: ShinkaiMessage) -> NodeResponse:
        return await self.post_message(LAST_MESSAGES_FROM_INBOX_PATH, message)

    async def get_all_smart_inboxes_for_profile(self, message: ShinkaiMessage) -> NodeResponse:
        return await self.post_message(SMART_INBOXES_FOR_PROFILE_PATH, message)

    async def create_files_inbox_with_symmetric_key(self, message: ShinkaiMessage) -> NodeResponse:
        return await self.post_message(CREATE_FILES_INBOX_PATH, message)
