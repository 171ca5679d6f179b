"""Tests for shinkai.protocol.types module."""

from __future__ import annotations

import re

import pytest

from shinkai.protocol.errors import CryptoError
from shinkai.protocol.types import (
    EncryptionMethod,
    MessageSchemaType,
    ShinkaiVersion,
    SubidentityType,
    from_hex,
    to_hex,
    utc_timestamp,
)


class TestEnums:
    def test_encryption_method_values(self):
        assert EncryptionMethod.NONE == "None"
        assert EncryptionMethod.DIFFIE_HELLMAN_CHACHA_POLY1305 == "DiffieHellmanChaChaPoly1305"

    def test_encryption_method_from_string(self):
        assert EncryptionMethod("None") is EncryptionMethod.NONE

    def test_version(self):
        assert ShinkaiVersion.V1_0.value == "V1_0"

    def test_subidentity_types(self):
        assert {t.value for t in SubidentityType} == {"agent", "device"}

    @pytest.mark.parametrize(
        "member, wire",
        [
            (MessageSchemaType.EMPTY, "Empty"),
            (MessageSchemaType.TEXT_CONTENT, "TextContent"),
            (MessageSchemaType.JOB_MESSAGE_SCHEMA, "JobMessageSchema"),
            (MessageSchemaType.JOB_CREATION_SCHEMA, "JobCreationSchema"),
            (MessageSchemaType.SYMMETRIC_KEY_EXCHANGE, "SymmetricKeyExchange"),
            (MessageSchemaType.API_GET_MESSAGES_FROM_INBOX_REQUEST, "APIGetMessagesFromInboxRequest"),
        ],
    )
    def test_schema_wire_names(self, member, wire):
        assert member.value == wire
        assert MessageSchemaType(wire) is member

    def test_unknown_schema_rejected(self):
        with pytest.raises(ValueError):
            MessageSchemaType("NotASchema")


class TestHex:
    def test_to_hex_is_lowercase(self):
        assert to_hex(b"\xab\xcd\x01") == "abcd01"

    def test_from_hex(self):
        assert from_hex("ABCD01") == b"\xab\xcd\x01"

    def test_from_hex_rejects_garbage(self):
        with pytest.raises(CryptoError):
            from_hex("zz")

    def test_from_hex_rejects_odd_length(self):
        with pytest.raises(CryptoError):
            from_hex("abc")


class TestTimestamp:
    def test_format(self):
        ts = utc_timestamp()
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", ts)
