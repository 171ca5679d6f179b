"""Tests for shinkai.protocol.crypto module."""

from __future__ import annotations

import blake3
import pytest

from shinkai.protocol.crypto import (
    KEY_SIZE,
    blake3_hex,
    canonicalize,
    decrypt_message,
    decrypt_message_with_passphrase,
    encrypt_message,
    encrypt_message_with_passphrase,
    encryption_public_key,
    generate_encryption_keys,
    generate_signature_keys,
    sign_hash,
    signature_public_key,
    sort_object_keys,
    verify_hash,
)
from shinkai.protocol.errors import CryptoError, DecryptionFailure, SignatureError
from shinkai.protocol.types import ENCRYPTED_PREFIX


def _flip_last_hex_char(encrypted: str) -> str:
    last = encrypted[-1]
    return encrypted[:-1] + ("0" if last != "0" else "1")


# ---------------------------------------------------------------------------
# Key generation
# ---------------------------------------------------------------------------

class TestKeyGeneration:
    def test_encryption_keys_are_32_bytes(self):
        sk, pk = generate_encryption_keys()
        assert len(sk) == KEY_SIZE
        assert len(pk) == KEY_SIZE

    def test_signature_keys_are_32_bytes(self):
        sk, pk = generate_signature_keys()
        assert len(sk) == KEY_SIZE
        assert len(pk) == KEY_SIZE

    def test_keypairs_are_unique(self):
        assert generate_encryption_keys()[0] != generate_encryption_keys()[0]
        assert generate_signature_keys()[0] != generate_signature_keys()[0]

    def test_public_keys_derive_from_secret(self):
        enc_sk, enc_pk = generate_encryption_keys()
        sig_sk, sig_pk = generate_signature_keys()
        assert encryption_public_key(enc_sk) == enc_pk
        assert signature_public_key(sig_sk) == sig_pk

    def test_short_key_rejected(self):
        with pytest.raises(CryptoError):
            encryption_public_key(b"\x00" * 31)

    def test_non_bytes_key_rejected(self):
        with pytest.raises(CryptoError):
            signature_public_key("not bytes")


# ---------------------------------------------------------------------------
# Canonical JSON and hashing
# ---------------------------------------------------------------------------

class TestCanonicalize:
    def test_sorted_keys(self):
        assert canonicalize({"b": 1, "a": 2}) == b'{"a":2,"b":1}'

    def test_nested_keys_sorted(self):
        value = {"z": {"y": 1, "x": [{"d": 1, "c": 2}]}, "a": None}
        assert canonicalize(value) == b'{"a":null,"z":{"x":[{"c":2,"d":1}],"y":1}}'

    def test_array_order_preserved(self):
        assert canonicalize([3, 1, 2]) == b"[3,1,2]"

    def test_insertion_order_irrelevant(self):
        a = {"one": 1, "two": {"b": True, "a": False}}
        b = {"two": {"a": False, "b": True}, "one": 1}
        assert canonicalize(a) == canonicalize(b)

    def test_idempotent(self):
        value = {"b": [{"d": 1, "c": 2}], "a": "x"}
        assert sort_object_keys(sort_object_keys(value)) == sort_object_keys(value)

    def test_non_ascii_emitted_as_utf8(self):
        assert canonicalize({"k": "é"}) == '{"k":"é"}'.encode("utf-8")

    def test_primitives_unchanged(self):
        assert sort_object_keys(5) == 5
        assert sort_object_keys("s") == "s"
        assert sort_object_keys(None) is None


class TestBlake3Hex:
    def test_matches_blake3_of_canonical_bytes(self):
        expected = blake3.blake3(b'{"a":2,"b":1}').hexdigest()
        assert blake3_hex({"b": 1, "a": 2}) == expected

    def test_is_64_lowercase_hex(self):
        digest = blake3_hex({"a": 1})
        assert len(digest) == 64
        assert all(c in "0123456789abcdef" for c in digest)

    def test_different_values_different_hashes(self):
        assert blake3_hex({"a": 1}) != blake3_hex({"a": 2})


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------

class TestSignHash:
    def test_sign_and_verify(self, signature_keypair):
        sk, pk = signature_keypair
        digest = blake3_hex({"a": 1})
        signature = sign_hash(digest, sk)
        assert len(signature) == 128
        assert verify_hash(digest, signature, pk) is True

    def test_signatures_are_deterministic(self, signature_keypair):
        sk, _ = signature_keypair
        digest = blake3_hex({"a": 1})
        assert sign_hash(digest, sk) == sign_hash(digest, sk)

    def test_wrong_key_returns_false(self, signature_keypair):
        sk, _ = signature_keypair
        _, other_pk = generate_signature_keys()
        digest = blake3_hex({"a": 1})
        assert verify_hash(digest, sign_hash(digest, sk), other_pk) is False

    def test_different_hash_returns_false(self, signature_keypair):
        sk, pk = signature_keypair
        signature = sign_hash(blake3_hex({"a": 1}), sk)
        assert verify_hash(blake3_hex({"a": 2}), signature, pk) is False

    def test_invalid_hash_hex(self, signature_keypair):
        sk, _ = signature_keypair
        with pytest.raises(SignatureError):
            sign_hash("not hex", sk)

    def test_missing_signature(self, signature_keypair):
        _, pk = signature_keypair
        with pytest.raises(SignatureError):
            verify_hash(blake3_hex({}), "", pk)

    def test_malformed_signature(self, signature_keypair):
        _, pk = signature_keypair
        with pytest.raises(SignatureError):
            verify_hash(blake3_hex({}), "zz" * 64, pk)

    def test_short_signature(self, signature_keypair):
        _, pk = signature_keypair
        with pytest.raises(SignatureError):
            verify_hash(blake3_hex({}), "ab" * 32, pk)


# ---------------------------------------------------------------------------
# Diffie-Hellman encryption
# ---------------------------------------------------------------------------

class TestEncryptMessage:
    def test_roundtrip(self):
        alice_sk, alice_pk = generate_encryption_keys()
        bob_sk, bob_pk = generate_encryption_keys()
        encrypted = encrypt_message("Hello Bob!", alice_sk, bob_pk)
        assert decrypt_message(encrypted, bob_sk, alice_pk) == "Hello Bob!"

    def test_sender_can_also_decrypt(self):
        alice_sk, alice_pk = generate_encryption_keys()
        bob_sk, bob_pk = generate_encryption_keys()
        encrypted = encrypt_message("hi", alice_sk, bob_pk)
        assert decrypt_message(encrypted, alice_sk, bob_pk) == "hi"

    def test_unicode_roundtrip(self):
        alice_sk, alice_pk = generate_encryption_keys()
        bob_sk, bob_pk = generate_encryption_keys()
        encrypted = encrypt_message("héllo 👋", alice_sk, bob_pk)
        assert decrypt_message(encrypted, bob_sk, alice_pk) == "héllo 👋"

    def test_prefix_and_layout(self):
        alice_sk, _ = generate_encryption_keys()
        _, bob_pk = generate_encryption_keys()
        encrypted = encrypt_message("abc", alice_sk, bob_pk)
        assert encrypted.startswith(ENCRYPTED_PREFIX)
        # nonce (12) + ciphertext (3) + tag (16), hex encoded
        assert len(encrypted) == len(ENCRYPTED_PREFIX) + 2 * (12 + 3 + 16)

    def test_nonces_are_fresh(self):
        alice_sk, _ = generate_encryption_keys()
        _, bob_pk = generate_encryption_keys()
        assert encrypt_message("x", alice_sk, bob_pk) != encrypt_message("x", alice_sk, bob_pk)

    def test_wrong_key_fails(self):
        alice_sk, alice_pk = generate_encryption_keys()
        _, bob_pk = generate_encryption_keys()
        eve_sk, _ = generate_encryption_keys()
        encrypted = encrypt_message("secret", alice_sk, bob_pk)
        with pytest.raises(DecryptionFailure, match="Decryption failed"):
            decrypt_message(encrypted, eve_sk, alice_pk)

    def test_tampered_ciphertext_fails(self):
        alice_sk, alice_pk = generate_encryption_keys()
        bob_sk, bob_pk = generate_encryption_keys()
        encrypted = encrypt_message("secret", alice_sk, bob_pk)
        with pytest.raises(DecryptionFailure):
            decrypt_message(_flip_last_hex_char(encrypted), bob_sk, alice_pk)

    def test_missing_prefix_fails(self):
        alice_sk, alice_pk = generate_encryption_keys()
        bob_sk, bob_pk = generate_encryption_keys()
        encrypted = encrypt_message("secret", alice_sk, bob_pk)
        with pytest.raises(DecryptionFailure):
            decrypt_message(encrypted[len(ENCRYPTED_PREFIX):], bob_sk, alice_pk)

    def test_truncated_payload_fails(self):
        bob_sk, _ = generate_encryption_keys()
        _, alice_pk = generate_encryption_keys()
        with pytest.raises(DecryptionFailure):
            decrypt_message(ENCRYPTED_PREFIX + "00" * 20, bob_sk, alice_pk)

    def test_non_hex_payload_fails(self):
        bob_sk, _ = generate_encryption_keys()
        _, alice_pk = generate_encryption_keys()
        with pytest.raises(DecryptionFailure):
            decrypt_message(ENCRYPTED_PREFIX + "xyz", bob_sk, alice_pk)

    def test_malformed_key_is_crypto_error(self):
        alice_sk, _ = generate_encryption_keys()
        with pytest.raises(CryptoError):
            encrypt_message("x", alice_sk, b"\x01" * 16)


# ---------------------------------------------------------------------------
# Passphrase encryption
# ---------------------------------------------------------------------------

class TestPassphraseEncryption:
    def test_roundtrip(self):
        encrypted = encrypt_message_with_passphrase("my secret", "correct horse")
        assert encrypted.startswith(ENCRYPTED_PREFIX)
        assert decrypt_message_with_passphrase(encrypted, "correct horse") == "my secret"

    def test_wrong_passphrase_fails(self):
        encrypted = encrypt_message_with_passphrase("my secret", "correct horse")
        with pytest.raises(DecryptionFailure, match="Decryption failed"):
            decrypt_message_with_passphrase(encrypted, "battery staple")

    def test_tampered_payload_fails(self):
        encrypted = encrypt_message_with_passphrase("my secret", "pw")
        with pytest.raises(DecryptionFailure):
            decrypt_message_with_passphrase(_flip_last_hex_char(encrypted), "pw")

    def test_truncated_payload_fails(self):
        with pytest.raises(DecryptionFailure):
            decrypt_message_with_passphrase(ENCRYPTED_PREFIX + "00" * 30, "pw")


# ---------------------------------------------------------------------------
# Strict hex on the wire
# ---------------------------------------------------------------------------

class TestStrictHex:
    def test_uppercase_signature_rejected(self, signature_keypair):
        sk, pk = signature_keypair
        digest = blake3_hex({"a": 1})
        with pytest.raises(SignatureError):
            verify_hash(digest, sign_hash(digest, sk).upper(), pk)

    def test_spaced_signature_rejected(self, signature_keypair):
        sk, pk = signature_keypair
        digest = blake3_hex({"a": 1})
        signature = sign_hash(digest, sk)
        spaced = " ".join(signature[i:i + 2] for i in range(0, len(signature), 2))
        with pytest.raises(SignatureError):
            verify_hash(digest, spaced, pk)

    def test_uppercase_hash_rejected(self, signature_keypair):
        sk, _ = signature_keypair
        with pytest.raises(SignatureError):
            sign_hash(blake3_hex({"a": 1}).upper(), sk)

    def test_spaced_payload_rejected(self):
        alice_sk, alice_pk = generate_encryption_keys()
        bob_sk, bob_pk = generate_encryption_keys()
        encrypted = encrypt_message("hi", alice_sk, bob_pk)
        body = encrypted[len(ENCRYPTED_PREFIX):]
        spaced = ENCRYPTED_PREFIX + " ".join(body[i:i + 2] for i in range(0, len(body), 2))
        with pytest.raises(DecryptionFailure):
            decrypt_message(spaced, bob_sk, alice_pk)

    def test_uppercase_payload_rejected(self):
        alice_sk, alice_pk = generate_encryption_keys()
        bob_sk, bob_pk = generate_encryption_keys()
        encrypted = encrypt_message("hi", alice_sk, bob_pk)
        upper = ENCRYPTED_PREFIX + encrypted[len(ENCRYPTED_PREFIX):].upper()
        with pytest.raises(DecryptionFailure):
            decrypt_message(upper, bob_sk, alice_pk)


class TestNonStringKeys:
    def test_keys_sorted_as_strings(self):
        assert canonicalize({10: 1, 9: 2}) == b'{"10":1,"9":2}'
