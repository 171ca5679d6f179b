"""Tests for shinkai.protocol.inbox module."""

from __future__ import annotations

import pytest

from shinkai.protocol.errors import InboxNameError
from shinkai.protocol.inbox import (
    Inbox,
    JobInbox,
    get_job_inbox_name_from_params,
    get_regular_inbox_name_from_params,
    inbox_name_from_message,
    parse_inbox_name,
)
from shinkai.protocol.crypto import generate_encryption_keys
from shinkai.protocol.message import encrypt_outer_layer
from shinkai.protocol.name import ShinkaiName


VALID_INBOXES = [
    "inbox::@@node.shinkai::true",
    "inbox::@@node1.shinkai/subidentity::false",
    "inbox::@@alice.shinkai/profileName/agent/myChatGPTAgent::true",
    "inbox::@@alice.shinkai/profileName/device/myPhone::true",
    "inbox::@@node1.shinkai/subidentity::@@node2.shinkai/subidentity2::false",
    "inbox::@@node1.shinkai/subidentity::@@node2.shinkai/subidentity::@@node3.shinkai/subidentity2::false",
    "job_inbox::a::false",
]

INVALID_INBOXES = [
    "@@node1.shinkai::false",
    "inbox::@@node1.shinkai::falsee",
    "@@node1.shinkai",
    "inbox::@@node1.shinkai",
    "inbox::node1::false",
    "inbox::node1.shinkai::false",
    "inbox::@@node1::false",
    "inbox::@@node1.shinkai//subidentity::@@node2.shinkai::false",
    "inbox::@@node1/subidentity::false",
    "job_inbox::abc::true",
    "job_inbox::::false",
    "other::@@node.shinkai::false",
]


class TestParse:
    @pytest.mark.parametrize("raw", VALID_INBOXES)
    def test_valid(self, raw):
        inbox = parse_inbox_name(raw)
        assert inbox.value == raw.lower()
        assert str(inbox) == raw.lower()

    @pytest.mark.parametrize("raw", INVALID_INBOXES)
    def test_invalid(self, raw):
        with pytest.raises(InboxNameError):
            parse_inbox_name(raw)

    def test_regular_inbox_fields(self):
        inbox = parse_inbox_name("inbox::@@node.shinkai::true")
        assert isinstance(inbox, Inbox)
        assert inbox.is_e2e is True
        assert inbox.identities == (ShinkaiName.parse("@@node.shinkai"),)

    def test_identities_in_order(self):
        inbox = parse_inbox_name("inbox::@@b.shinkai::@@a.shinkai/main::false")
        assert [i.full_name for i in inbox.identities] == ["@@b.shinkai", "@@a.shinkai/main"]

    def test_lowercases(self):
        inbox = parse_inbox_name("INBOX::@@Node.Shinkai::TRUE")
        assert inbox.value == "inbox::@@node.shinkai::true"
        assert inbox.is_e2e is True

    def test_job_inbox_with_delimiter_in_id(self):
        inbox = parse_inbox_name("job_inbox::a::b::false")
        assert isinstance(inbox, JobInbox)
        assert inbox.unique_id == "a::b"
        assert inbox.get_unique_id() == "a::b"
        assert inbox.is_e2e is False

    def test_too_many_parts(self):
        parts = ["inbox"] + ["@@n.shinkai"] * 100 + ["false"]
        with pytest.raises(InboxNameError):
            parse_inbox_name("::".join(parts))

    def test_max_parts_allowed(self):
        parts = ["inbox"] + ["@@n.shinkai"] * 99 + ["false"]
        assert len(parse_inbox_name("::".join(parts)).identities) == 99


class TestUniqueId:
    def test_simple_inbox(self):
        inbox = Inbox(value="inbox::simpleId::true", is_e2e=True, identities=())
        assert inbox.get_unique_id() == "simpleId"

    def test_inbox_with_separator_in_id(self):
        inbox = Inbox(value="inbox::complex::Id::true", is_e2e=True, identities=())
        assert inbox.get_unique_id() == "complex::Id"

    def test_parsed_inbox(self):
        inbox = parse_inbox_name("inbox::@@a.shinkai::@@b.shinkai::false")
        assert inbox.get_unique_id() == "@@a.shinkai::@@b.shinkai"

    def test_job_inbox(self):
        assert parse_inbox_name("job_inbox::uniqueId::false").get_unique_id() == "uniqueid"


class TestCreationAccess:
    def test_member_has_access(self):
        inbox = parse_inbox_name("inbox::@@alice.shinkai::@@bob.shinkai::false")
        assert inbox.has_creation_access("@@alice.shinkai/main")

    def test_outsider_has_no_access(self):
        inbox = parse_inbox_name("inbox::@@alice.shinkai/main::@@bob.shinkai::false")
        assert not inbox.has_creation_access(ShinkaiName.parse("@@eve.shinkai"))


class TestFromParams:
    def test_regular_inbox_sorted(self):
        inbox = get_regular_inbox_name_from_params(
            "@@bob.shinkai", "", "@@alice.shinkai", "main", False
        )
        assert inbox.value == "inbox::@@alice.shinkai/main::@@bob.shinkai::false"

    def test_regular_inbox_symmetric(self):
        a = get_regular_inbox_name_from_params("@@alice.shinkai", "main", "@@bob.shinkai", "", True)
        b = get_regular_inbox_name_from_params("@@bob.shinkai", "", "@@alice.shinkai", "main", True)
        assert a == b
        assert a.is_e2e is True

    def test_regular_inbox_canonical_case(self):
        inbox = get_regular_inbox_name_from_params("@@Alice.shinkai", "Main", "@@bob.shinkai", "", False)
        assert inbox.value == "inbox::@@alice.shinkai/main::@@bob.shinkai::false"

    def test_regular_inbox_invalid_participant(self):
        with pytest.raises(InboxNameError):
            get_regular_inbox_name_from_params("@@al!ce.shinkai", "", "@@bob.shinkai", "", False)

    def test_job_inbox(self):
        inbox = get_job_inbox_name_from_params("J1")
        assert inbox.value == "job_inbox::j1::false"
        assert inbox.unique_id == "j1"

    def test_job_inbox_empty_id(self):
        with pytest.raises(InboxNameError):
            get_job_inbox_name_from_params("")


class TestFromMessage:
    def test_reads_internal_inbox(self, sample_message):
        inbox = inbox_name_from_message(sample_message)
        assert inbox.value == "inbox::@@alice.shinkai/main::@@bob.shinkai/main::false"

    def test_encrypted_body_rejected(self, sample_message):
        sk, pk = generate_encryption_keys()
        with pytest.raises(InboxNameError):
            inbox_name_from_message(encrypt_outer_layer(sample_message, sk, pk))
