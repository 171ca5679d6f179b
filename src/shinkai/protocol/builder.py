"""Message builder -- construction, encryption, and signing of envelopes.

:func:`build_message` is a pure function of a :class:`BuilderConfig`
(apart from the randomness consumed by nonces).  :class:`MessageBuilder`
layers fluent setters on top; the setters only mutate the builder's own
config, and every ``build()`` works on a deep copy of it, so one builder
can be reused or shared between threads.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, replace
from typing import Optional

from shinkai.protocol.errors import (
    ConfigurationError,
    InboxDerivationFailure,
    InboxNameError,
    ValidationError,
)
from shinkai.protocol.inbox import get_regular_inbox_name_from_params
from shinkai.protocol.message import (
    ExternalMetadata,
    InternalMetadata,
    ShinkaiBody,
    ShinkaiMessage,
    UnencryptedMessageBody,
    UnencryptedMessageData,
    encrypt_message_data,
    encrypt_outer_layer,
)
from shinkai.protocol.signing import sign_inner_layer, sign_outer_layer
from shinkai.protocol.types import (
    EncryptionMethod,
    MessageSchemaType,
    ShinkaiVersion,
    utc_timestamp,
)

logger = logging.getLogger(__name__)


@dataclass
class BuilderConfig:
    """Everything :func:`build_message` needs to produce one envelope.

    Key material is raw 32-byte buffers: X25519 for the encryption keys,
    an Ed25519 seed for the signature key.
    """

    my_encryption_secret_key: bytes
    my_signature_secret_key: bytes
    receiver_public_key: bytes
    message_raw_content: str = ""
    message_content_schema: MessageSchemaType = MessageSchemaType.EMPTY
    encryption: EncryptionMethod = EncryptionMethod.NONE
    internal_metadata: Optional[InternalMetadata] = None
    external_metadata: Optional[ExternalMetadata] = None
    optional_second_public_key_receiver_node: Optional[bytes] = None
    version: ShinkaiVersion = ShinkaiVersion.V1_0


def build_message(config: BuilderConfig) -> ShinkaiMessage:
    """Build a fully signed envelope from *config*.

    Steps:
        1. Require internal and external metadata
        2. Reject body + data encryption without a second receiver key
        3. Derive the inbox when it is empty
        4. Assemble the body with plaintext message data
        5. Encrypt the message data if internal encryption is set
        6. Sign the inner layer
        7. Encrypt the body if envelope encryption is set
        8. Assemble the envelope and sign the outer layer
        9. Return the envelope

    Raises:
        ValidationError: If either metadata block is missing or an enum field
            holds an unknown value.
        ConfigurationError: If both layers are encrypted without a second key.
        InboxDerivationFailure: If the participants do not form a valid inbox.
        CryptoError: If any key is malformed.
    """
    config = copy.deepcopy(config)

    # Step 1: Required fields
    internal = config.internal_metadata
    external = config.external_metadata
    if internal is None:
        raise ValidationError("Missing field: internal_metadata")
    if external is None:
        raise ValidationError("Missing field: external_metadata")

    # Plain strings are accepted wherever an enum is expected
    try:
        config.encryption = EncryptionMethod(config.encryption)
        config.message_content_schema = MessageSchemaType(config.message_content_schema)
        config.version = ShinkaiVersion(config.version)
        internal = replace(internal, encryption=EncryptionMethod(internal.encryption))
    except ValueError as exc:
        raise ValidationError(f"Invalid enum value: {exc}") from exc

    # Step 2: Which key encrypts the outer layer must be unambiguous
    if (
        config.encryption is not EncryptionMethod.NONE
        and internal.encryption is not EncryptionMethod.NONE
        and config.optional_second_public_key_receiver_node is None
    ):
        raise ConfigurationError(
            "Encryption should not be set on both body and internal metadata "
            "without optional_second_public_key_receiver_node"
        )

    # Step 3: Derive the inbox
    if internal.inbox == "":
        try:
            inbox = get_regular_inbox_name_from_params(
                external.sender,
                internal.sender_subidentity,
                external.recipient,
                internal.recipient_subidentity,
                internal.encryption is not EncryptionMethod.NONE,
            )
        except InboxNameError as exc:
            raise InboxDerivationFailure(f"Failed to generate inbox name: {exc}") from exc
        internal = replace(internal, inbox=inbox.value)

    # Step 4: Body with plaintext data
    shinkai_body = ShinkaiBody(
        message_data=UnencryptedMessageData(
            message_raw_content=config.message_raw_content,
            message_content_schema=config.message_content_schema,
        ),
        internal_metadata=internal,
    )

    # Step 5: Inner encryption
    if internal.encryption is not EncryptionMethod.NONE:
        shinkai_body = encrypt_message_data(
            shinkai_body, config.my_encryption_secret_key, config.receiver_public_key
        )

    # Step 6: Inner signature covers the data in its final state
    shinkai_body = sign_inner_layer(config.my_signature_secret_key, shinkai_body)

    # Step 7: Outer encryption
    message = ShinkaiMessage(
        body=UnencryptedMessageBody(shinkai_body=shinkai_body),
        external_metadata=external,
        encryption=config.encryption,
        version=config.version,
    )
    if config.encryption is not EncryptionMethod.NONE:
        destination = (
            config.optional_second_public_key_receiver_node or config.receiver_public_key
        )
        message = encrypt_outer_layer(message, config.my_encryption_secret_key, destination)

    # Step 8: Outer signature covers the body as it will travel
    message = sign_outer_layer(config.my_signature_secret_key, message)

    logger.debug(
        "Built message %s -> %s (inbox=%s, body=%s, data=%s)",
        external.sender,
        external.recipient,
        internal.inbox,
        config.encryption.value,
        internal.encryption.value,
    )
    return message


class MessageBuilder:
    """Fluent front-end over :class:`BuilderConfig`.

    Example::

        message = (
            MessageBuilder(enc_sk, sig_sk, receiver_pk)
            .set_message_raw_content("hello")
            .set_internal_metadata("main", "", EncryptionMethod.NONE)
            .set_external_metadata("@@bob.shinkai", "@@alice.shinkai")
            .build()
        )
    """

    def __init__(
        self,
        my_encryption_secret_key: bytes,
        my_signature_secret_key: bytes,
        receiver_public_key: bytes,
    ) -> None:
        self._config = BuilderConfig(
            my_encryption_secret_key=bytes(my_encryption_secret_key),
            my_signature_secret_key=bytes(my_signature_secret_key),
            receiver_public_key=bytes(receiver_public_key),
        )

    @property
    def config(self) -> BuilderConfig:
        """A snapshot of the accumulated configuration."""
        return copy.deepcopy(self._config)

    def set_body_encryption(self, encryption: EncryptionMethod) -> "MessageBuilder":
        self._config.encryption = EncryptionMethod(encryption)
        return self

    def set_no_body_encryption(self) -> "MessageBuilder":
        self._config.encryption = EncryptionMethod.NONE
        return self

    def set_message_raw_content(self, message_raw_content: str) -> "MessageBuilder":
        self._config.message_raw_content = message_raw_content
        return self

    def set_message_schema_type(self, schema: MessageSchemaType) -> "MessageBuilder":
        self._config.message_content_schema = MessageSchemaType(schema)
        return self

    def set_internal_metadata(
        self,
        sender_subidentity: str,
        recipient_subidentity: str,
        encryption: EncryptionMethod,
        *,
        inbox: str = "",
        schema: MessageSchemaType | None = None,
    ) -> "MessageBuilder":
        """Set the body-level metadata.

        An empty *inbox* is derived from the participants at build time.
        *schema*, if given, also sets the message content schema.
        """
        if schema is not None:
            self.set_message_schema_type(schema)
        self._config.internal_metadata = InternalMetadata(
            sender_subidentity=sender_subidentity,
            recipient_subidentity=recipient_subidentity,
            inbox=inbox,
            signature="",
            encryption=EncryptionMethod(encryption),
        )
        return self

    def set_empty_encrypted_internal_metadata(self) -> "MessageBuilder":
        return self.set_internal_metadata(
            "", "", EncryptionMethod.DIFFIE_HELLMAN_CHACHA_POLY1305
        )

    def set_empty_non_encrypted_internal_metadata(self) -> "MessageBuilder":
        return self.set_internal_metadata("", "", EncryptionMethod.NONE)

    def set_external_metadata(
        self,
        recipient: str,
        sender: str,
        *,
        scheduled_time: str | None = None,
        other: str = "",
        intra_sender: str = "",
    ) -> "MessageBuilder":
        """Set the envelope-level metadata.

        *scheduled_time* defaults to the current UTC time.
        """
        self._config.external_metadata = ExternalMetadata(
            sender=sender,
            recipient=recipient,
            scheduled_time=scheduled_time if scheduled_time is not None else utc_timestamp(),
            signature="",
            other=other,
            intra_sender=intra_sender,
        )
        return self

    def update_scheduled_time(self, scheduled_time: str) -> "MessageBuilder":
        if self._config.external_metadata is not None:
            self._config.external_metadata = replace(
                self._config.external_metadata, scheduled_time=scheduled_time
            )
        return self

    def update_intra_sender(self, intra_sender: str) -> "MessageBuilder":
        if self._config.external_metadata is not None:
            self._config.external_metadata = replace(
                self._config.external_metadata, intra_sender=intra_sender
            )
        return self

    def set_optional_second_public_key_receiver_node(
        self, public_key: bytes
    ) -> "MessageBuilder":
        self._config.optional_second_public_key_receiver_node = bytes(public_key)
        return self

    def clone(self) -> "MessageBuilder":
        """Return an independent builder with a deep copy of this configuration."""
        other = MessageBuilder.__new__(MessageBuilder)
        other._config = copy.deepcopy(self._config)
        return other

    def build(self) -> ShinkaiMessage:
        """Run :func:`build_message` on a snapshot of this builder's configuration."""
        return build_message(self._config)
