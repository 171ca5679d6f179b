"""Core enums, constants, and utility functions for the Shinkai protocol."""

from __future__ import annotations

import binascii
from datetime import datetime, timezone
from enum import Enum

from shinkai.protocol.errors import CryptoError


# Prefix of every encrypted payload on the wire
ENCRYPTED_PREFIX = "encrypted:"


class EncryptionMethod(str, Enum):
    """Encryption applied to a message layer.

    Using ``str, Enum`` so that ``EncryptionMethod.NONE == "None"`` is True.
    """

    DIFFIE_HELLMAN_CHACHA_POLY1305 = "DiffieHellmanChaChaPoly1305"
    NONE = "None"


class ShinkaiVersion(str, Enum):
    """Envelope format versions."""

    V1_0 = "V1_0"


class SubidentityType(str, Enum):
    """Third segment of a four-part identity name."""

    AGENT = "agent"
    DEVICE = "device"


class MessageSchemaType(str, Enum):
    """Tag describing how ``message_raw_content`` should be interpreted."""

    JOB_CREATION_SCHEMA = "JobCreationSchema"
    JOB_MESSAGE_SCHEMA = "JobMessageSchema"
    PRE_MESSAGE_SCHEMA = "PreMessageSchema"
    CREATE_REGISTRATION_CODE = "CreateRegistrationCode"
    USE_REGISTRATION_CODE = "UseRegistrationCode"
    API_GET_MESSAGES_FROM_INBOX_REQUEST = "APIGetMessagesFromInboxRequest"
    API_READ_UP_TO_TIME_REQUEST = "APIReadUpToTimeRequest"
    API_ADD_AGENT_REQUEST = "APIAddAgentRequest"
    TEXT_CONTENT = "TextContent"
    SYMMETRIC_KEY_EXCHANGE = "SymmetricKeyExchange"
    EMPTY = "Empty"
    VEC_FS_RETRIEVE_PATH_SIMPLIFIED_JSON = "VecFsRetrievePathSimplifiedJson"
    VEC_FS_RETRIEVE_VECTOR_RESOURCE = "VecFsRetrieveVectorResource"
    VEC_FS_RETRIEVE_VECTOR_SEARCH_SIMPLIFIED_JSON = "VecFsRetrieveVectorSearchSimplifiedJson"
    VEC_FS_CREATE_FOLDER = "VecFsCreateFolder"
    VEC_FS_DELETE_FOLDER = "VecFsDeleteFolder"
    VEC_FS_MOVE_FOLDER = "VecFsMoveFolder"
    VEC_FS_COPY_FOLDER = "VecFsCopyFolder"
    VEC_FS_CREATE_ITEM = "VecFsCreateItem"
    VEC_FS_MOVE_ITEM = "VecFsMoveItem"
    VEC_FS_COPY_ITEM = "VecFsCopyItem"
    CONVERT_FILES_AND_SAVE_TO_FOLDER = "ConvertFilesAndSaveToFolder"
    CREATE_SHAREABLE_FOLDER = "CreateShareableFolder"
    AVAILABLE_SHARED_ITEMS = "AvailableSharedItems"
    SUBSCRIBE_TO_SHARED_FOLDER = "SubscribeToSharedFolder"
    UNSUBSCRIBE_TO_SHARED_FOLDER = "UnsubscribeToSharedFolder"
    MY_SUBSCRIPTIONS = "MySubscriptions"


def to_hex(data: bytes) -> str:
    """Lowercase hex encoding of *data*."""
    return data.hex()


def from_hex(s: str) -> bytes:
    """Decode a hex string.

    Raises:
        CryptoError: If *s* is not valid hex.
    """
    try:
        return bytes.fromhex(s)
    except (ValueError, TypeError, binascii.Error) as exc:
        raise CryptoError(f"Malformed hex string: {exc}") from exc


def utc_timestamp() -> str:
    """Return a canonical UTC timestamp: ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    ts = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    # isoformat gives "+00:00" suffix; replace with "Z" for the wire form
    return ts.replace("+00:00", "Z")
