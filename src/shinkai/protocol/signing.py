"""Inner and outer layer signatures.

Both layers follow the same rule: clear the layer's ``signature`` field to
``""``, canonicalize the wire dict, hash it with BLAKE3, and sign the
digest bytes with Ed25519.  The outer layer covers the body exactly as it
will travel, so it must be signed after any body encryption.
"""

from __future__ import annotations

from dataclasses import replace

from shinkai.protocol.crypto import blake3_hex, sign_hash, verify_hash
from shinkai.protocol.errors import InvalidMessageError
from shinkai.protocol.message import (
    ShinkaiBody,
    ShinkaiMessage,
    UnencryptedMessageBody,
    body_to_wire_dict,
    message_to_wire_dict,
)


def _inner_hash(body: ShinkaiBody) -> str:
    unsigned = replace(body, internal_metadata=replace(body.internal_metadata, signature=""))
    return blake3_hex(body_to_wire_dict(unsigned))


def _outer_hash(message: ShinkaiMessage) -> str:
    unsigned = replace(
        message, external_metadata=replace(message.external_metadata, signature="")
    )
    return blake3_hex(message_to_wire_dict(unsigned))


def sign_inner_layer(signing_key: bytes, body: ShinkaiBody) -> ShinkaiBody:
    """Return a copy of *body* whose ``internal_metadata.signature`` is set.

    The signature covers the message data in whatever state it is in
    (plaintext or encrypted) plus the internal metadata.
    """
    signature = sign_hash(_inner_hash(body), signing_key)
    return replace(body, internal_metadata=replace(body.internal_metadata, signature=signature))


def verify_inner_layer(verify_key: bytes, body: ShinkaiBody) -> bool:
    """Check ``internal_metadata.signature`` against *verify_key*.

    Returns:
        ``False`` on a mismatch (wrong key, tampered fields).

    Raises:
        SignatureError: If the signature is missing or malformed.
    """
    return verify_hash(_inner_hash(body), body.internal_metadata.signature, verify_key)


def verify_inner_layer_signature(verify_key: bytes, message: ShinkaiMessage) -> bool:
    """Verify the inner signature of an envelope whose body is unencrypted.

    Raises:
        InvalidMessageError: If the body is encrypted.
        SignatureError: If the signature is missing or malformed.
    """
    if not isinstance(message.body, UnencryptedMessageBody):
        raise InvalidMessageError("Cannot verify the inner layer of an encrypted body")
    return verify_inner_layer(verify_key, message.body.shinkai_body)


def sign_outer_layer(signing_key: bytes, message: ShinkaiMessage) -> ShinkaiMessage:
    """Return a copy of *message* whose ``external_metadata.signature`` is set."""
    signature = sign_hash(_outer_hash(message), signing_key)
    return replace(
        message, external_metadata=replace(message.external_metadata, signature=signature)
    )


def verify_outer_layer_signature(verify_key: bytes, message: ShinkaiMessage) -> bool:
    """Check ``external_metadata.signature`` against *verify_key*.

    Returns:
        ``False`` on a mismatch (wrong key, tampered fields or body).

    Raises:
        SignatureError: If the signature is missing or malformed.
    """
    return verify_hash(
        _outer_hash(message), message.external_metadata.signature, verify_key
    )
