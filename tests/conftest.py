"""Shared test fixtures for Shinkai protocol tests."""

from __future__ import annotations

import pytest

from shinkai.protocol.builder import MessageBuilder
from shinkai.protocol.crypto import generate_encryption_keys, generate_signature_keys
from shinkai.protocol.message import ShinkaiMessage
from shinkai.protocol.types import EncryptionMethod


@pytest.fixture()
def encryption_keypair():
    """Return an X25519 (secret_key, public_key) tuple of raw bytes."""
    return generate_encryption_keys()


@pytest.fixture()
def signature_keypair():
    """Return an Ed25519 (seed, verify_key) tuple of raw bytes."""
    return generate_signature_keys()


@pytest.fixture()
def alice():
    """Alice's encryption and signature keypairs."""
    return generate_encryption_keys(), generate_signature_keys()


@pytest.fixture()
def bob():
    """Bob's encryption and signature keypairs."""
    return generate_encryption_keys(), generate_signature_keys()


@pytest.fixture()
def sample_message(alice, bob) -> ShinkaiMessage:
    """A plaintext, fully signed message from alice to bob."""
    (alice_enc_sk, _), (alice_sig_sk, _) = alice
    (_, bob_enc_pk), _ = bob
    return (
        MessageBuilder(alice_enc_sk, alice_sig_sk, bob_enc_pk)
        .set_message_raw_content("Hello Bob!")
        .set_internal_metadata("main", "main", EncryptionMethod.NONE)
        .set_external_metadata("@@bob.shinkai", "@@alice.shinkai")
        .build()
    )
