"""Cryptographic primitives for the Shinkai protocol.

Wraps PyNaCl (libsodium) for Ed25519 signing, X25519 key agreement,
ChaCha20-Poly1305 (IETF) authenticated encryption and Argon2id password
hashing, and the ``blake3`` package for content hashing.

This module never hand-rolls crypto -- every primitive delegates to a library.
Keys are raw 32-byte buffers owned by the caller; nothing here stores them.
"""

from __future__ import annotations

import json
import re
from typing import Any

import blake3
import nacl.bindings
import nacl.exceptions
import nacl.utils
from nacl.public import PrivateKey
from nacl.pwhash import argon2id
from nacl.signing import SigningKey, VerifyKey

from shinkai.protocol.errors import CryptoError, DecryptionFailure, SignatureError
from shinkai.protocol.types import ENCRYPTED_PREFIX, to_hex


KEY_SIZE = 32
SIGNATURE_SIZE = 64
NONCE_SIZE = nacl.bindings.crypto_aead_chacha20poly1305_ietf_NPUBBYTES
TAG_SIZE = nacl.bindings.crypto_aead_chacha20poly1305_ietf_ABYTES
SALT_SIZE = argon2id.SALTBYTES

_DECRYPTION_FAILED = "Decryption failed"

# Wire hex is lowercase, even-length, with no separators.
_HEX_RE = re.compile(r"(?:[0-9a-f]{2})*")


# ---------------------------------------------------------------------------
# Key generation and import
# ---------------------------------------------------------------------------

def _key_bytes(key: bytes, what: str) -> bytes:
    """Copy caller key material into immutable bytes, checking its length."""
    if not isinstance(key, (bytes, bytearray, memoryview)):
        raise CryptoError(f"{what} must be bytes, got {type(key).__name__}")
    raw = bytes(key)
    if len(raw) != KEY_SIZE:
        raise CryptoError(f"{what} must be {KEY_SIZE} bytes, got {len(raw)}")
    return raw


def generate_encryption_keys() -> tuple[bytes, bytes]:
    """Generate an X25519 keypair.

    Returns:
        A ``(secret_key, public_key)`` tuple of raw 32-byte buffers.
    """
    sk = PrivateKey.generate()
    return sk.encode(), sk.public_key.encode()


def generate_signature_keys() -> tuple[bytes, bytes]:
    """Generate an Ed25519 keypair.

    Returns:
        A ``(seed, verify_key)`` tuple of raw 32-byte buffers.
    """
    sk = SigningKey.generate()
    return sk.encode(), sk.verify_key.encode()


def encryption_public_key(secret_key: bytes) -> bytes:
    """Derive the X25519 public key for *secret_key*."""
    return PrivateKey(_key_bytes(secret_key, "Encryption secret key")).public_key.encode()


def signature_public_key(secret_key: bytes) -> bytes:
    """Derive the Ed25519 verify key for the 32-byte seed *secret_key*."""
    return SigningKey(_key_bytes(secret_key, "Signature secret key")).verify_key.encode()


# ---------------------------------------------------------------------------
# Canonical encoding and hashing
# ---------------------------------------------------------------------------

def sort_object_keys(value: Any) -> Any:
    """Rebuild *value* with every mapping's keys in code point order.

    Lists and tuples keep their element order; each element is sorted
    recursively.  Primitives are returned unchanged.
    """
    if isinstance(value, dict):
        return {key: sort_object_keys(value[key]) for key in sorted(value, key=str)}
    if isinstance(value, (list, tuple)):
        return [sort_object_keys(item) for item in value]
    return value


def canonicalize(value: Any) -> bytes:
    """Produce deterministic JSON bytes used as hashing input.

    - Sorts keys recursively.
    - Uses compact separators.
    - Emits non-ASCII characters as UTF-8 (matches ``JSON.stringify``).
    """
    return json.dumps(
        sort_object_keys(value), separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def blake3_hex(value: Any) -> str:
    """Return the lowercase hex BLAKE3 digest of ``canonicalize(value)``."""
    return blake3.blake3(canonicalize(value)).hexdigest()


# ---------------------------------------------------------------------------
# Signing and verification over content hashes
# ---------------------------------------------------------------------------

def _strict_hex(s: str) -> bytes:
    """Decode wire hex, rejecting upper-case, whitespace and odd lengths."""
    if not isinstance(s, str) or not _HEX_RE.fullmatch(s):
        raise ValueError("expected lowercase hex")
    return bytes.fromhex(s)


def _hash_bytes(hash_hex: str) -> bytes:
    try:
        return _strict_hex(hash_hex)
    except ValueError as exc:
        raise SignatureError(f"Invalid message hash format: {exc}") from exc


def sign_hash(hash_hex: str, signing_key: bytes) -> str:
    """Sign the bytes behind the hex digest *hash_hex* with Ed25519.

    Returns:
        The 64-byte signature as 128 lowercase hex characters.

    Raises:
        SignatureError: If *hash_hex* is not valid hex.
        CryptoError: If *signing_key* is not a 32-byte seed.
    """
    digest = _hash_bytes(hash_hex)
    sk = SigningKey(_key_bytes(signing_key, "Signature secret key"))
    return to_hex(sk.sign(digest).signature)


def verify_hash(hash_hex: str, signature_hex: str, verify_key: bytes) -> bool:
    """Verify an Ed25519 signature over the bytes behind *hash_hex*.

    Returns:
        ``True`` if the signature matches, ``False`` on any mismatch.

    Raises:
        SignatureError: If the signature is missing or either hex string is malformed.
        CryptoError: If *verify_key* is not 32 bytes.
    """
    if not signature_hex:
        raise SignatureError("Signature is missing")
    try:
        signature = _strict_hex(signature_hex)
    except ValueError as exc:
        raise SignatureError(f"Invalid signature format: {exc}") from exc
    if len(signature) != SIGNATURE_SIZE:
        raise SignatureError(
            f"Signature must be {SIGNATURE_SIZE} bytes, got {len(signature)}"
        )
    digest = _hash_bytes(hash_hex)
    vk = VerifyKey(_key_bytes(verify_key, "Signature public key"))
    try:
        vk.verify(digest, signature)
    except nacl.exceptions.BadSignatureError:
        return False
    return True


# ---------------------------------------------------------------------------
# Diffie-Hellman + ChaCha20-Poly1305 (both parties known)
# ---------------------------------------------------------------------------

def _shared_key(self_sk: bytes, other_pk: bytes) -> bytes:
    """X25519 shared secret hashed with BLAKE3 into a 32-byte AEAD key.

    The raw digest is the key; there is no HKDF step.
    """
    sk = _key_bytes(self_sk, "Encryption secret key")
    pk = _key_bytes(other_pk, "Encryption public key")
    try:
        shared_secret = nacl.bindings.crypto_scalarmult(sk, pk)
    except nacl.exceptions.CryptoError as exc:
        raise CryptoError(f"Key agreement failed: {exc}") from exc
    return blake3.blake3(shared_secret).digest()


def _split_payload(encrypted: str) -> bytes:
    """Strip the ``encrypted:`` prefix and hex-decode the remainder."""
    if not isinstance(encrypted, str) or not encrypted.startswith(ENCRYPTED_PREFIX):
        raise DecryptionFailure(_DECRYPTION_FAILED)
    try:
        return _strict_hex(encrypted[len(ENCRYPTED_PREFIX):])
    except ValueError as exc:
        raise DecryptionFailure(_DECRYPTION_FAILED) from exc


def _aead_decrypt(ciphertext: bytes, nonce: bytes, key: bytes) -> str:
    try:
        plaintext = nacl.bindings.crypto_aead_chacha20poly1305_ietf_decrypt(
            ciphertext, None, nonce, key
        )
        return plaintext.decode("utf-8")
    except (nacl.exceptions.CryptoError, UnicodeDecodeError) as exc:
        raise DecryptionFailure(_DECRYPTION_FAILED) from exc


def encrypt_message(plaintext: str, self_sk: bytes, destination_pk: bytes) -> str:
    """Encrypt *plaintext* for the holder of *destination_pk*.

    Returns:
        ``"encrypted:" + hex(nonce) + hex(ciphertext || tag)``.

    Raises:
        CryptoError: If either key is malformed.
    """
    key = _shared_key(self_sk, destination_pk)
    nonce = nacl.utils.random(NONCE_SIZE)
    ciphertext = nacl.bindings.crypto_aead_chacha20poly1305_ietf_encrypt(
        plaintext.encode("utf-8"), None, nonce, key
    )
    return ENCRYPTED_PREFIX + to_hex(nonce) + to_hex(ciphertext)


def decrypt_message(encrypted: str, self_sk: bytes, sender_pk: bytes) -> str:
    """Decrypt a payload produced by :func:`encrypt_message`.

    The recipient passes its own secret key and the sender's public key;
    X25519 yields the same shared secret from either side.

    Raises:
        DecryptionFailure: On any malformed payload or authentication failure.
        CryptoError: If either key is malformed.
    """
    raw = _split_payload(encrypted)
    if len(raw) < NONCE_SIZE + TAG_SIZE:
        raise DecryptionFailure(_DECRYPTION_FAILED)
    key = _shared_key(self_sk, sender_pk)
    return _aead_decrypt(raw[NONCE_SIZE:], raw[:NONCE_SIZE], key)


# ---------------------------------------------------------------------------
# Passphrase-based encryption (Argon2id + ChaCha20-Poly1305)
# ---------------------------------------------------------------------------

def _passphrase_key(passphrase: str, salt: bytes) -> bytes:
    return argon2id.kdf(
        KEY_SIZE,
        passphrase.encode("utf-8"),
        salt,
        opslimit=argon2id.OPSLIMIT_INTERACTIVE,
        memlimit=argon2id.MEMLIMIT_INTERACTIVE,
    )


def encrypt_message_with_passphrase(plaintext: str, passphrase: str) -> str:
    """Encrypt *plaintext* under a key derived from *passphrase*.

    Returns:
        ``"encrypted:" + hex(salt) + hex(nonce) + hex(ciphertext || tag)``.
    """
    salt = nacl.utils.random(SALT_SIZE)
    key = _passphrase_key(passphrase, salt)
    nonce = nacl.utils.random(NONCE_SIZE)
    ciphertext = nacl.bindings.crypto_aead_chacha20poly1305_ietf_encrypt(
        plaintext.encode("utf-8"), None, nonce, key
    )
    return ENCRYPTED_PREFIX + to_hex(salt) + to_hex(nonce) + to_hex(ciphertext)


def decrypt_message_with_passphrase(encrypted: str, passphrase: str) -> str:
    """Decrypt a payload produced by :func:`encrypt_message_with_passphrase`.

    Raises:
        DecryptionFailure: On any malformed payload, wrong passphrase or tampering.
    """
    raw = _split_payload(encrypted)
    if len(raw) < SALT_SIZE + NONCE_SIZE + TAG_SIZE:
        raise DecryptionFailure(_DECRYPTION_FAILED)
    salt = raw[:SALT_SIZE]
    nonce = raw[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
    key = _passphrase_key(passphrase, salt)
    return _aead_decrypt(raw[SALT_SIZE + NONCE_SIZE:], nonce, key)
