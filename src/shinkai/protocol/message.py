"""Shinkai message data model -- layers, wire format, encryption transitions.

A :class:`ShinkaiMessage` (the envelope) carries a :class:`MessageBody`
which is either an unencrypted :class:`ShinkaiBody` or an opaque encrypted
string.  The body in turn carries :class:`MessageData`, again either
plaintext or opaque.  Every value here is frozen: encrypting or decrypting
a layer returns a new value and never touches the original.

Wire format (JSON)::

    {
      "body": {"unencrypted": <ShinkaiBody>} | {"encrypted": {"content": str}},
      "external_metadata": {sender, recipient, scheduled_time, signature, other, intra_sender},
      "encryption": "None" | "DiffieHellmanChaChaPoly1305",
      "version": "V1_0"
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Union

from shinkai.protocol.crypto import decrypt_message, encrypt_message
from shinkai.protocol.errors import DecryptionFailure, InvalidMessageError
from shinkai.protocol.types import (
    EncryptionMethod,
    MessageSchemaType,
    ShinkaiVersion,
)


_INTERNAL_FIELDS = (
    "sender_subidentity",
    "recipient_subidentity",
    "inbox",
    "signature",
    "encryption",
)
_EXTERNAL_FIELDS = (
    "sender",
    "recipient",
    "scheduled_time",
    "signature",
    "other",
    "intra_sender",
)
_MESSAGE_FIELDS = ("body", "external_metadata", "encryption", "version")


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InternalMetadata:
    """Body-level metadata, covered by the inner signature.

    ``signature`` is empty until the body is inner-signed.  ``inbox`` may
    start empty; the builder derives it before signing.
    """

    sender_subidentity: str
    recipient_subidentity: str
    inbox: str
    signature: str
    encryption: EncryptionMethod


@dataclass(frozen=True)
class ExternalMetadata:
    """Envelope-level metadata, covered by the outer signature."""

    sender: str
    recipient: str
    scheduled_time: str
    signature: str
    other: str
    intra_sender: str


# ---------------------------------------------------------------------------
# Message data (innermost layer)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UnencryptedMessageData:
    message_raw_content: str
    message_content_schema: MessageSchemaType


@dataclass(frozen=True)
class EncryptedMessageData:
    content: str


MessageData = Union[UnencryptedMessageData, EncryptedMessageData]


@dataclass(frozen=True)
class ShinkaiBody:
    message_data: MessageData
    internal_metadata: InternalMetadata


# ---------------------------------------------------------------------------
# Message body (envelope layer)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UnencryptedMessageBody:
    shinkai_body: ShinkaiBody


@dataclass(frozen=True)
class EncryptedMessageBody:
    content: str


MessageBody = Union[UnencryptedMessageBody, EncryptedMessageBody]


@dataclass(frozen=True)
class ShinkaiMessage:
    """A complete envelope.  Effectively immutable once outer-signed."""

    body: MessageBody
    external_metadata: ExternalMetadata
    encryption: EncryptionMethod
    version: ShinkaiVersion = ShinkaiVersion.V1_0


# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------

def _require(d: object, fields: tuple[str, ...], what: str) -> dict:
    if not isinstance(d, dict):
        raise InvalidMessageError(f"{what} must be an object")
    missing = set(fields) - set(d.keys())
    if missing:
        raise InvalidMessageError(f"{what} missing required fields: {sorted(missing)}")
    return d


def _variant(d: object, what: str) -> tuple[str, object]:
    """Unpack a ``{"unencrypted": ...}`` / ``{"encrypted": ...}`` tagged object."""
    if not isinstance(d, dict) or len(d) != 1:
        raise InvalidMessageError(f"{what} must have exactly one variant key")
    tag, value = next(iter(d.items()))
    if tag not in ("unencrypted", "encrypted"):
        raise InvalidMessageError(f"Unknown {what} variant: {tag!r}")
    return tag, value


def _enum(cls, value: object, what: str):
    try:
        return cls(value)
    except ValueError as exc:
        raise InvalidMessageError(f"Invalid {what}: {value!r}") from exc


def message_data_to_wire_dict(data: MessageData) -> dict:
    if isinstance(data, EncryptedMessageData):
        return {"encrypted": {"content": data.content}}
    return {
        "unencrypted": {
            "message_raw_content": data.message_raw_content,
            "message_content_schema": data.message_content_schema.value,
        }
    }


def message_data_from_wire_dict(d: dict) -> MessageData:
    tag, value = _variant(d, "message_data")
    if tag == "encrypted":
        return EncryptedMessageData(content=_require(value, ("content",), "encrypted message_data")["content"])
    value = _require(value, ("message_raw_content", "message_content_schema"), "message_data")
    return UnencryptedMessageData(
        message_raw_content=value["message_raw_content"],
        message_content_schema=_enum(
            MessageSchemaType, value["message_content_schema"], "message_content_schema"
        ),
    )


def body_to_wire_dict(body: ShinkaiBody) -> dict:
    """Convert a :class:`ShinkaiBody` to its wire-format dict."""
    meta = body.internal_metadata
    return {
        "message_data": message_data_to_wire_dict(body.message_data),
        "internal_metadata": {
            "sender_subidentity": meta.sender_subidentity,
            "recipient_subidentity": meta.recipient_subidentity,
            "inbox": meta.inbox,
            "signature": meta.signature,
            "encryption": meta.encryption.value,
        },
    }


def body_from_wire_dict(d: dict) -> ShinkaiBody:
    """Restore a :class:`ShinkaiBody` from a wire-format dict.

    Raises:
        InvalidMessageError: If any required field is missing or a tag is unknown.
    """
    d = _require(d, ("message_data", "internal_metadata"), "ShinkaiBody")
    meta = _require(d["internal_metadata"], _INTERNAL_FIELDS, "internal_metadata")
    return ShinkaiBody(
        message_data=message_data_from_wire_dict(d["message_data"]),
        internal_metadata=InternalMetadata(
            sender_subidentity=meta["sender_subidentity"],
            recipient_subidentity=meta["recipient_subidentity"],
            inbox=meta["inbox"],
            signature=meta["signature"],
            encryption=_enum(EncryptionMethod, meta["encryption"], "encryption"),
        ),
    )


def message_to_wire_dict(message: ShinkaiMessage) -> dict:
    """Convert an envelope to a wire-format dict."""
    if isinstance(message.body, EncryptedMessageBody):
        body = {"encrypted": {"content": message.body.content}}
    else:
        body = {"unencrypted": body_to_wire_dict(message.body.shinkai_body)}
    meta = message.external_metadata
    return {
        "body": body,
        "external_metadata": {
            "sender": meta.sender,
            "recipient": meta.recipient,
            "scheduled_time": meta.scheduled_time,
            "signature": meta.signature,
            "other": meta.other,
            "intra_sender": meta.intra_sender,
        },
        "encryption": message.encryption.value,
        "version": message.version.value,
    }


def message_from_wire_dict(d: dict) -> ShinkaiMessage:
    """Restore an envelope from a wire-format dict.

    Raises:
        InvalidMessageError: If any required field is missing or a tag is unknown.
    """
    d = _require(d, _MESSAGE_FIELDS, "ShinkaiMessage")
    tag, value = _variant(d["body"], "body")
    if tag == "encrypted":
        body: MessageBody = EncryptedMessageBody(
            content=_require(value, ("content",), "encrypted body")["content"]
        )
    else:
        body = UnencryptedMessageBody(shinkai_body=body_from_wire_dict(value))
    meta = _require(d["external_metadata"], _EXTERNAL_FIELDS, "external_metadata")
    return ShinkaiMessage(
        body=body,
        external_metadata=ExternalMetadata(**{name: meta[name] for name in _EXTERNAL_FIELDS}),
        encryption=_enum(EncryptionMethod, d["encryption"], "encryption"),
        version=_enum(ShinkaiVersion, d["version"], "version"),
    )


def _dumps(d: dict) -> str:
    return json.dumps(d, separators=(",", ":"), ensure_ascii=False)


def message_to_json(message: ShinkaiMessage) -> str:
    """Serialize an envelope for transport."""
    return _dumps(message_to_wire_dict(message))


def message_from_json(s: str | bytes) -> ShinkaiMessage:
    """Parse an envelope received from transport.

    Raises:
        InvalidMessageError: If *s* is not JSON or not a valid envelope.
    """
    try:
        d = json.loads(s)
    except (ValueError, TypeError) as exc:
        raise InvalidMessageError(f"Envelope is not valid JSON: {exc}") from exc
    return message_from_wire_dict(d)


# ---------------------------------------------------------------------------
# Layer encryption
# ---------------------------------------------------------------------------

def encrypt_message_data(
    body: ShinkaiBody, self_sk: bytes, destination_pk: bytes
) -> ShinkaiBody:
    """Encrypt the message data of *body* for *destination_pk*.

    Raises:
        InvalidMessageError: If the message data is already encrypted.
        CryptoError: If either key is malformed.
    """
    data = body.message_data
    if isinstance(data, EncryptedMessageData):
        raise InvalidMessageError("Message data is already encrypted")
    plaintext = _dumps(message_data_to_wire_dict(data)["unencrypted"])
    encrypted = EncryptedMessageData(content=encrypt_message(plaintext, self_sk, destination_pk))
    return replace(body, message_data=encrypted)


def decrypt_message_data(
    body: ShinkaiBody, self_sk: bytes, sender_pk: bytes
) -> ShinkaiBody:
    """Return a copy of *body* with its message data decrypted.

    Raises:
        InvalidMessageError: If the message data is not encrypted.
        DecryptionFailure: If decryption or parsing of the plaintext fails.
    """
    data = body.message_data
    if not isinstance(data, EncryptedMessageData):
        raise InvalidMessageError("Message data is not encrypted")
    plaintext = decrypt_message(data.content, self_sk, sender_pk)
    try:
        decrypted = message_data_from_wire_dict({"unencrypted": json.loads(plaintext)})
    except (json.JSONDecodeError, InvalidMessageError) as exc:
        raise DecryptionFailure("Decryption failed") from exc
    return replace(body, message_data=decrypted)


def encrypt_outer_layer(
    message: ShinkaiMessage, self_sk: bytes, destination_pk: bytes
) -> ShinkaiMessage:
    """Encrypt the whole body of *message* for *destination_pk*.

    The outer signature covers the body as it is on the wire, so a message
    encrypted here must be outer-signed afterwards.

    Raises:
        InvalidMessageError: If the body is already encrypted.
    """
    if isinstance(message.body, EncryptedMessageBody):
        raise InvalidMessageError("Message body is already encrypted")
    plaintext = _dumps(body_to_wire_dict(message.body.shinkai_body))
    return replace(
        message,
        body=EncryptedMessageBody(content=encrypt_message(plaintext, self_sk, destination_pk)),
        encryption=EncryptionMethod.DIFFIE_HELLMAN_CHACHA_POLY1305,
    )


def decrypt_outer_layer(
    message: ShinkaiMessage, self_sk: bytes, sender_pk: bytes
) -> ShinkaiMessage:
    """Return a copy of *message* with its body decrypted.

    Raises:
        InvalidMessageError: If the body is not encrypted.
        DecryptionFailure: If decryption or parsing of the plaintext fails.
    """
    if not isinstance(message.body, EncryptedMessageBody):
        raise InvalidMessageError("Message body is not encrypted")
    plaintext = decrypt_message(message.body.content, self_sk, sender_pk)
    try:
        shinkai_body = body_from_wire_dict(json.loads(plaintext))
    except (json.JSONDecodeError, InvalidMessageError) as exc:
        raise DecryptionFailure("Decryption failed") from exc
    return replace(message, body=UnencryptedMessageBody(shinkai_body=shinkai_body))


def decrypt_inner_layer(
    message: ShinkaiMessage, self_sk: bytes, sender_pk: bytes
) -> ShinkaiMessage:
    """Return a copy of *message* with its message data decrypted.

    Raises:
        InvalidMessageError: If the body is still encrypted or the data is not.
        DecryptionFailure: If decryption or parsing of the plaintext fails.
    """
    if not isinstance(message.body, UnencryptedMessageBody):
        raise InvalidMessageError("Message body must be decrypted first")
    shinkai_body = decrypt_message_data(message.body.shinkai_body, self_sk, sender_pk)
    return replace(message, body=UnencryptedMessageBody(shinkai_body=shinkai_body))
