"""Ready-made envelopes for common node requests.

Each function configures a :class:`MessageBuilder` and returns the built,
signed :class:`ShinkaiMessage`.  Key arguments are raw 32-byte buffers:
``*_encryption_sk`` / ``receiver_public_key`` are X25519 keys and
``*_signature_sk`` are Ed25519 seeds.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from shinkai.protocol.builder import MessageBuilder
from shinkai.protocol.crypto import encryption_public_key, signature_public_key
from shinkai.protocol.inbox import get_job_inbox_name_from_params
from shinkai.protocol.message import ShinkaiMessage
from shinkai.protocol.types import EncryptionMethod, MessageSchemaType, to_hex

_DH = EncryptionMethod.DIFFIE_HELLMAN_CHACHA_POLY1305
_NONE = EncryptionMethod.NONE

# These messages are never encrypted, so the encryption keys are placeholders.
_PLACEHOLDER_KEY = bytes(32)


def _dumps(data: Any) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


# ---------------------------------------------------------------------------
# Node control messages
# ---------------------------------------------------------------------------

def ack_message(
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    sender: str,
    receiver: str,
) -> ShinkaiMessage:
    return (
        MessageBuilder(my_encryption_sk, my_signature_sk, receiver_public_key)
        .set_message_raw_content("ACK")
        .set_internal_metadata("", "", _NONE)
        .set_no_body_encryption()
        .set_external_metadata(receiver, sender)
        .build()
    )


def terminate_message(
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    sender: str,
    receiver: str,
) -> ShinkaiMessage:
    return (
        MessageBuilder(my_encryption_sk, my_signature_sk, receiver_public_key)
        .set_message_raw_content("terminate")
        .set_internal_metadata("", "", _NONE)
        .set_no_body_encryption()
        .set_external_metadata(receiver, sender)
        .build()
    )


def error_message(
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    sender: str,
    receiver: str,
    error_msg: str,
) -> ShinkaiMessage:
    """An error report whose message data is encrypted for the receiver."""
    return (
        MessageBuilder(my_encryption_sk, my_signature_sk, receiver_public_key)
        .set_message_raw_content(_dumps({"error": error_msg}))
        .set_empty_encrypted_internal_metadata()
        .set_external_metadata(receiver, sender)
        .set_no_body_encryption()
        .build()
    )


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------

def job_creation(
    scope: dict,
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    sender: str,
    sender_subidentity: str,
    node_receiver: str,
    node_receiver_subidentity: str,
    *,
    is_hidden: Optional[bool] = None,
) -> ShinkaiMessage:
    """Ask the node to create a job over *scope*.  The body is encrypted."""
    body: dict = {"scope": scope}
    if is_hidden is not None:
        body["is_hidden"] = is_hidden
    return (
        MessageBuilder(my_encryption_sk, my_signature_sk, receiver_public_key)
        .set_message_raw_content(_dumps(body))
        .set_internal_metadata(sender_subidentity, node_receiver_subidentity, _NONE)
        .set_message_schema_type(MessageSchemaType.JOB_CREATION_SCHEMA)
        .set_body_encryption(_DH)
        .set_external_metadata(node_receiver, sender, intra_sender=sender_subidentity)
        .build()
    )


def job_message(
    job_id: str,
    content: str,
    files_inbox: str,
    parent: Optional[str],
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    node_sender: str,
    sender_subidentity: str,
    node_receiver: str,
    node_receiver_subidentity: str,
) -> ShinkaiMessage:
    """Post *content* to job *job_id*, addressed to the job's inbox."""
    body = {
        "job_id": job_id,
        "content": content,
        "files_inbox": files_inbox,
        "parent": parent or "",
    }
    inbox = get_job_inbox_name_from_params(job_id).value
    return (
        MessageBuilder(my_encryption_sk, my_signature_sk, receiver_public_key)
        .set_message_raw_content(_dumps(body))
        .set_internal_metadata(sender_subidentity, node_receiver_subidentity, _NONE, inbox=inbox)
        .set_message_schema_type(MessageSchemaType.JOB_MESSAGE_SCHEMA)
        .set_body_encryption(_NONE)
        .set_external_metadata(node_receiver, node_sender, intra_sender=sender_subidentity)
        .build()
    )


def job_message_from_agent(
    job_id: str,
    content: str,
    my_signature_sk: bytes,
    node_sender: str,
    node_receiver: str,
) -> ShinkaiMessage:
    """A job reply produced by an agent; signed but never encrypted."""
    body = {"job_id": job_id, "content": content, "files_inbox": ""}
    inbox = get_job_inbox_name_from_params(job_id).value
    return (
        MessageBuilder(_PLACEHOLDER_KEY, my_signature_sk, _PLACEHOLDER_KEY)
        .set_message_raw_content(_dumps(body))
        .set_internal_metadata(
            "", "", _NONE, inbox=inbox, schema=MessageSchemaType.JOB_MESSAGE_SCHEMA
        )
        .set_no_body_encryption()
        .set_external_metadata(node_receiver, node_sender)
        .build()
    )


# ---------------------------------------------------------------------------
# Generic requests to a node
# ---------------------------------------------------------------------------

def custom_message_to_node(
    my_subidentity_encryption_sk: bytes,
    my_subidentity_signature_sk: bytes,
    receiver_public_key: bytes,
    data: Any,
    sender_subidentity: str,
    sender: str,
    receiver: str,
    schema: MessageSchemaType,
) -> ShinkaiMessage:
    """Send JSON-serializable *data* to the node with an encrypted body.

    ``external_metadata.other`` carries the sender's encryption public key
    in hex so the node can answer.
    """
    other = to_hex(encryption_public_key(my_subidentity_encryption_sk))
    return (
        MessageBuilder(my_subidentity_encryption_sk, my_subidentity_signature_sk, receiver_public_key)
        .set_message_raw_content(_dumps(data))
        .set_body_encryption(_DH)
        .set_internal_metadata(sender_subidentity, "", _NONE, schema=schema)
        .set_external_metadata(receiver, sender, other=other)
        .build()
    )


def _registration_code(
    code: str,
    registration_name: str,
    device_signature_sk: Optional[bytes],
    device_encryption_sk: Optional[bytes],
    profile_signature_sk: bytes,
    profile_encryption_sk: bytes,
    identity_type: str,
    permission_type: str,
) -> dict:
    return {
        "code": code,
        "registration_name": registration_name,
        "device_identity_pk": (
            to_hex(signature_public_key(device_signature_sk)) if device_signature_sk else ""
        ),
        "device_encryption_pk": (
            to_hex(encryption_public_key(device_encryption_sk)) if device_encryption_sk else ""
        ),
        "profile_identity_pk": to_hex(signature_public_key(profile_signature_sk)),
        "profile_encryption_pk": to_hex(encryption_public_key(profile_encryption_sk)),
        "identity_type": identity_type,
        "permission_type": permission_type,
    }


def use_code_registration_for_profile(
    profile_encryption_sk: bytes,
    profile_signature_sk: bytes,
    receiver_public_key: bytes,
    code: str,
    identity_type: str,
    permission_type: str,
    registration_name: str,
    sender_subidentity: str,
    sender: str,
    receiver: str,
) -> ShinkaiMessage:
    registration = _registration_code(
        code, registration_name, None, None,
        profile_signature_sk, profile_encryption_sk,
        identity_type, permission_type,
    )
    return custom_message_to_node(
        profile_encryption_sk,
        profile_signature_sk,
        receiver_public_key,
        registration,
        sender_subidentity,
        sender,
        receiver,
        MessageSchemaType.USE_REGISTRATION_CODE,
    )


def use_code_registration_for_device(
    my_device_encryption_sk: bytes,
    my_device_signature_sk: bytes,
    profile_encryption_sk: bytes,
    profile_signature_sk: bytes,
    receiver_public_key: bytes,
    code: str,
    identity_type: str,
    permission_type: str,
    registration_name: str,
    sender_subidentity: str,
    sender: str,
    receiver: str,
) -> ShinkaiMessage:
    registration = _registration_code(
        code, registration_name, my_device_signature_sk, my_device_encryption_sk,
        profile_signature_sk, profile_encryption_sk,
        identity_type, permission_type,
    )
    return custom_message_to_node(
        my_device_encryption_sk,
        my_device_signature_sk,
        receiver_public_key,
        registration,
        sender_subidentity,
        sender,
        receiver,
        MessageSchemaType.USE_REGISTRATION_CODE,
    )


def initial_registration_with_no_code_for_device(
    my_device_encryption_sk: bytes,
    my_device_signature_sk: bytes,
    profile_encryption_sk: bytes,
    profile_signature_sk: bytes,
    registration_name: str,
    sender_subidentity: str,
    sender: str,
    receiver: str,
) -> ShinkaiMessage:
    """First device registration on a fresh node; sent in the clear."""
    device_encryption_pk = encryption_public_key(my_device_encryption_sk)
    registration = _registration_code(
        "", registration_name, my_device_signature_sk, my_device_encryption_sk,
        profile_signature_sk, profile_encryption_sk,
        "device", "admin",
    )
    return (
        MessageBuilder(my_device_encryption_sk, my_device_signature_sk, device_encryption_pk)
        .set_message_raw_content(_dumps(registration))
        .set_body_encryption(_NONE)
        .set_internal_metadata(
            sender_subidentity, "", _NONE, schema=MessageSchemaType.USE_REGISTRATION_CODE
        )
        .set_external_metadata(receiver, sender, other=to_hex(device_encryption_pk))
        .build()
    )


def create_files_inbox_with_sym_key(
    my_subidentity_encryption_sk: bytes,
    my_subidentity_signature_sk: bytes,
    receiver_public_key: bytes,
    symmetric_key_sk: str,
    sender: str,
    sender_subidentity: str,
    receiver: str,
) -> ShinkaiMessage:
    """Hand the node the symmetric key protecting a files inbox."""
    return (
        MessageBuilder(my_subidentity_encryption_sk, my_subidentity_signature_sk, receiver_public_key)
        .set_message_raw_content(symmetric_key_sk)
        .set_body_encryption(_DH)
        .set_internal_metadata(
            sender_subidentity, "", _NONE, schema=MessageSchemaType.SYMMETRIC_KEY_EXCHANGE
        )
        .set_external_metadata(receiver, sender, intra_sender=sender_subidentity)
        .build()
    )


def get_all_inboxes_for_profile(
    my_subidentity_encryption_sk: bytes,
    my_subidentity_signature_sk: bytes,
    receiver_public_key: bytes,
    target_node_and_profile: str,
    sender: str,
    sender_subidentity: str,
    receiver: str,
) -> ShinkaiMessage:
    return (
        MessageBuilder(my_subidentity_encryption_sk, my_subidentity_signature_sk, receiver_public_key)
        .set_message_raw_content(target_node_and_profile)
        .set_internal_metadata(
            sender_subidentity, "", _NONE, schema=MessageSchemaType.TEXT_CONTENT
        )
        .set_body_encryption(_DH)
        .set_external_metadata(receiver, sender, intra_sender=sender_subidentity)
        .build()
    )


def get_last_messages_from_inbox(
    my_subidentity_encryption_sk: bytes,
    my_subidentity_signature_sk: bytes,
    receiver_public_key: bytes,
    inbox: str,
    count: int,
    offset: Optional[str],
    sender_subidentity: str,
    sender: str,
    receiver: str,
) -> ShinkaiMessage:
    return custom_message_to_node(
        my_subidentity_encryption_sk,
        my_subidentity_signature_sk,
        receiver_public_key,
        {"inbox": inbox, "count": count, "offset": offset},
        sender_subidentity,
        sender,
        receiver,
        MessageSchemaType.API_GET_MESSAGES_FROM_INBOX_REQUEST,
    )


def get_last_unread_messages_from_inbox(
    my_subidentity_encryption_sk: bytes,
    my_subidentity_signature_sk: bytes,
    receiver_public_key: bytes,
    inbox: str,
    count: int,
    offset: Optional[str],
    sender_subidentity: str,
    sender: str,
    receiver: str,
) -> ShinkaiMessage:
    # The node distinguishes unread requests by endpoint, not by schema.
    return get_last_messages_from_inbox(
        my_subidentity_encryption_sk,
        my_subidentity_signature_sk,
        receiver_public_key,
        inbox,
        count,
        offset,
        sender_subidentity,
        sender,
        receiver,
    )


def request_add_agent(
    my_subidentity_encryption_sk: bytes,
    my_subidentity_signature_sk: bytes,
    receiver_public_key: bytes,
    agent: dict,
    sender_subidentity: str,
    sender: str,
    receiver: str,
) -> ShinkaiMessage:
    return custom_message_to_node(
        my_subidentity_encryption_sk,
        my_subidentity_signature_sk,
        receiver_public_key,
        {"agent": agent},
        sender_subidentity,
        sender,
        receiver,
        MessageSchemaType.API_ADD_AGENT_REQUEST,
    )


def read_up_to_time(
    my_subidentity_encryption_sk: bytes,
    my_subidentity_signature_sk: bytes,
    receiver_public_key: bytes,
    inbox: str,
    up_to_time: str,
    sender_subidentity: str,
    sender: str,
    receiver: str,
) -> ShinkaiMessage:
    """Mark *inbox* as read up to the ISO-8601 time *up_to_time*."""
    return custom_message_to_node(
        my_subidentity_encryption_sk,
        my_subidentity_signature_sk,
        receiver_public_key,
        {"inbox_name": inbox, "up_to_time": up_to_time},
        sender_subidentity,
        sender,
        receiver,
        MessageSchemaType.API_READ_UP_TO_TIME_REQUEST,
    )


# ---------------------------------------------------------------------------
# Vector file system
# ---------------------------------------------------------------------------

def create_folder(
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    folder_name: str,
    path: str,
    sender: str,
    sender_subidentity: str,
    receiver: str,
) -> ShinkaiMessage:
    return custom_message_to_node(
        my_encryption_sk, my_signature_sk, receiver_public_key,
        {"folder_name": folder_name, "path": path},
        sender_subidentity, sender, receiver,
        MessageSchemaType.VEC_FS_CREATE_FOLDER,
    )


def move_folder(
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    origin_path: str,
    destination_path: str,
    sender: str,
    sender_subidentity: str,
    receiver: str,
) -> ShinkaiMessage:
    return custom_message_to_node(
        my_encryption_sk, my_signature_sk, receiver_public_key,
        {"origin_path": origin_path, "destination_path": destination_path},
        sender_subidentity, sender, receiver,
        MessageSchemaType.VEC_FS_MOVE_FOLDER,
    )


def copy_folder(
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    origin_path: str,
    destination_path: str,
    sender: str,
    sender_subidentity: str,
    receiver: str,
) -> ShinkaiMessage:
    return custom_message_to_node(
        my_encryption_sk, my_signature_sk, receiver_public_key,
        {"origin_path": origin_path, "destination_path": destination_path},
        sender_subidentity, sender, receiver,
        MessageSchemaType.VEC_FS_COPY_FOLDER,
    )


def move_item(
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    origin_path: str,
    destination_path: str,
    sender: str,
    sender_subidentity: str,
    receiver: str,
) -> ShinkaiMessage:
    return custom_message_to_node(
        my_encryption_sk, my_signature_sk, receiver_public_key,
        {"origin_path": origin_path, "destination_path": destination_path},
        sender_subidentity, sender, receiver,
        MessageSchemaType.VEC_FS_MOVE_ITEM,
    )


def copy_item(
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    origin_path: str,
    destination_path: str,
    sender: str,
    sender_subidentity: str,
    receiver: str,
) -> ShinkaiMessage:
    return custom_message_to_node(
        my_encryption_sk, my_signature_sk, receiver_public_key,
        {"origin_path": origin_path, "destination_path": destination_path},
        sender_subidentity, sender, receiver,
        MessageSchemaType.VEC_FS_COPY_ITEM,
    )


def create_items(
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    destination_path: str,
    file_inbox: str,
    sender: str,
    sender_subidentity: str,
    receiver: str,
) -> ShinkaiMessage:
    """Convert the files uploaded to *file_inbox* and save them under *destination_path*."""
    return custom_message_to_node(
        my_encryption_sk, my_signature_sk, receiver_public_key,
        {"destination_path": destination_path, "file_inbox": file_inbox},
        sender_subidentity, sender, receiver,
        MessageSchemaType.CONVERT_FILES_AND_SAVE_TO_FOLDER,
    )


def retrieve_resource(
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    path: str,
    sender: str,
    sender_subidentity: str,
    receiver: str,
) -> ShinkaiMessage:
    return custom_message_to_node(
        my_encryption_sk, my_signature_sk, receiver_public_key,
        {"path": path},
        sender_subidentity, sender, receiver,
        MessageSchemaType.VEC_FS_RETRIEVE_VECTOR_RESOURCE,
    )


def retrieve_path_simplified(
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    path: str,
    sender: str,
    sender_subidentity: str,
    receiver: str,
) -> ShinkaiMessage:
    return custom_message_to_node(
        my_encryption_sk, my_signature_sk, receiver_public_key,
        {"path": path},
        sender_subidentity, sender, receiver,
        MessageSchemaType.VEC_FS_RETRIEVE_PATH_SIMPLIFIED_JSON,
    )


def retrieve_vector_search_simplified(
    my_encryption_sk: bytes,
    my_signature_sk: bytes,
    receiver_public_key: bytes,
    search: str,
    path: Optional[str],
    max_results: Optional[int],
    max_files_to_scan: Optional[int],
    sender: str,
    sender_subidentity: str,
    receiver: str,
) -> ShinkaiMessage:
    return custom_message_to_node(
        my_encryption_sk, my_signature_sk, receiver_public_key,
        {
            "search": search,
            "path": path,
            "max_results": max_results,
            "max_files_to_scan": max_files_to_scan,
        },
        sender_subidentity, sender, receiver,
        MessageSchemaType.VEC_FS_RETRIEVE_VECTOR_SEARCH_SIMPLIFIED_JSON,
    )
