"""Shinkai Protocol -- message envelope construction, signing and addressing.

Public API re-exports for ``shinkai.protocol``.
"""

from shinkai.protocol.types import (
    ENCRYPTED_PREFIX,
    EncryptionMethod,
    MessageSchemaType,
    ShinkaiVersion,
    SubidentityType,
    from_hex,
    to_hex,
    utc_timestamp,
)

from shinkai.protocol.errors import (
    ShinkaiError,
    ValidationError,
    ShinkaiNameError,
    InboxNameError,
    InboxDerivationFailure,
    InvalidMessageError,
    ConfigurationError,
    CryptoError,
    DecryptionFailure,
    SignatureError,
)

from shinkai.protocol.crypto import (
    generate_encryption_keys,
    generate_signature_keys,
    encryption_public_key,
    signature_public_key,
    sort_object_keys,
    canonicalize,
    blake3_hex,
    sign_hash,
    verify_hash,
    encrypt_message,
    decrypt_message,
    encrypt_message_with_passphrase,
    decrypt_message_with_passphrase,
)

from shinkai.protocol.message import (
    InternalMetadata,
    ExternalMetadata,
    UnencryptedMessageData,
    EncryptedMessageData,
    MessageData,
    ShinkaiBody,
    UnencryptedMessageBody,
    EncryptedMessageBody,
    MessageBody,
    ShinkaiMessage,
    body_to_wire_dict,
    body_from_wire_dict,
    message_to_wire_dict,
    message_from_wire_dict,
    message_to_json,
    message_from_json,
    encrypt_message_data,
    decrypt_message_data,
    encrypt_outer_layer,
    decrypt_outer_layer,
    decrypt_inner_layer,
)

from shinkai.protocol.signing import (
    sign_inner_layer,
    verify_inner_layer,
    verify_inner_layer_signature,
    sign_outer_layer,
    verify_outer_layer_signature,
)

from shinkai.protocol.name import ShinkaiName, correct_node_name, validate_name

from shinkai.protocol.inbox import (
    Inbox,
    JobInbox,
    InboxName,
    parse_inbox_name,
    get_regular_inbox_name_from_params,
    get_job_inbox_name_from_params,
    inbox_name_from_message,
)

from shinkai.protocol.builder import BuilderConfig, MessageBuilder, build_message

__all__ = [
    # Types
    "ENCRYPTED_PREFIX",
    "EncryptionMethod",
    "MessageSchemaType",
    "ShinkaiVersion",
    "SubidentityType",
    "from_hex",
    "to_hex",
    "utc_timestamp",
    # Errors
    "ShinkaiError",
    "ValidationError",
    "ShinkaiNameError",
    "InboxNameError",
    "InboxDerivationFailure",
    "InvalidMessageError",
    "ConfigurationError",
    "CryptoError",
    "DecryptionFailure",
    "SignatureError",
    # Crypto
    "generate_encryption_keys",
    "generate_signature_keys",
    "encryption_public_key",
    "signature_public_key",
    "sort_object_keys",
    "canonicalize",
    "blake3_hex",
    "sign_hash",
    "verify_hash",
    "encrypt_message",
    "decrypt_message",
    "encrypt_message_with_passphrase",
    "decrypt_message_with_passphrase",
    # Message
    "InternalMetadata",
    "ExternalMetadata",
    "UnencryptedMessageData",
    "EncryptedMessageData",
    "MessageData",
    "ShinkaiBody",
    "UnencryptedMessageBody",
    "EncryptedMessageBody",
    "MessageBody",
    "ShinkaiMessage",
    "body_to_wire_dict",
    "body_from_wire_dict",
    "message_to_wire_dict",
    "message_from_wire_dict",
    "message_to_json",
    "message_from_json",
    "encrypt_message_data",
    "decrypt_message_data",
    "encrypt_outer_layer",
    "decrypt_outer_layer",
    "decrypt_inner_layer",
    # Signing
    "sign_inner_layer",
    "verify_inner_layer",
    "verify_inner_layer_signature",
    "sign_outer_layer",
    "verify_outer_layer_signature",
    # Addressing
    "ShinkaiName",
    "correct_node_name",
    "validate_name",
    "Inbox",
    "JobInbox",
    "InboxName",
    "parse_inbox_name",
    "get_regular_inbox_name_from_params",
    "get_job_inbox_name_from_params",
    "inbox_name_from_message",
    # Builder
    "BuilderConfig",
    "MessageBuilder",
    "build_message",
]
