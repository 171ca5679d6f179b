"""Shinkai identity names.

An identity has the form ``@@node.shinkai[/profile[/agent|device/name]]``
(e.g. ``@@alice.shinkai/main/device/phone``).  Parsing is
case-insensitive and the canonical form is always lower-case.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from shinkai.protocol.errors import ShinkaiNameError
from shinkai.protocol.message import ShinkaiMessage, UnencryptedMessageBody
from shinkai.protocol.types import SubidentityType

logger = logging.getLogger(__name__)

# Node: ``@@`` + name + ``.shinkai`` (or the ``.sepolia-shinkai`` testnet suffix).
_NODE_RE = re.compile(r"^@@[a-z0-9_.\-]+\.(?:sepolia-)?shinkai$", re.IGNORECASE)
# Profile and subidentity names.
_PART_RE = re.compile(r"^[A-Za-z0-9_]*$")

_NODE_PREFIX = "@@"
_NODE_SUFFIXES = (".shinkai", ".sepolia-shinkai")
_SUBIDENTITY_TYPES = frozenset(t.value for t in SubidentityType)


def validate_name(raw: str) -> None:
    """Check *raw* against the identity grammar without correcting it.

    Raises:
        ShinkaiNameError: Describing the first rule that *raw* violates.
    """
    parts = raw.split("/")

    if not 1 <= len(parts) <= 4:
        raise ShinkaiNameError(
            "Name should have one to four parts: node, profile, "
            f"type (device or agent), and name: {raw!r}"
        )

    if not _NODE_RE.match(parts[0]):
        raise ShinkaiNameError(
            "Node part of the name should start with '@@', end with '.shinkai' "
            f"and contain only alphanumerics, '_', '.' or '-': {raw!r}"
        )

    for index, part in enumerate(parts[1:], start=1):
        if index == 2:
            if part.lower() not in _SUBIDENTITY_TYPES:
                raise ShinkaiNameError(
                    f"The third part should either be 'agent' or 'device': {raw!r}"
                )
            continue
        if not _PART_RE.match(part) or ".shinkai" in part.lower():
            raise ShinkaiNameError(
                "Name parts should be alphanumeric or underscore and not "
                f"contain '.shinkai': {raw!r}"
            )

    if len(parts) == 3:
        raise ShinkaiNameError(
            f"If type is 'agent' or 'device', a fourth part is expected: {raw!r}"
        )


def correct_node_name(raw: str) -> str:
    """Add a missing ``@@`` prefix and ``.shinkai`` suffix to the node part."""
    node, sep, rest = raw.partition("/")
    if not node.startswith(_NODE_PREFIX):
        node = _NODE_PREFIX + node
    if not node.lower().endswith(_NODE_SUFFIXES):
        node = node + ".shinkai"
    return node + sep + rest


@dataclass(frozen=True)
class ShinkaiName:
    """A parsed, validated identity name (always lower-case)."""

    node_name: str
    profile_name: Optional[str] = None
    subidentity_type: Optional[SubidentityType] = None
    subidentity_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        """Return the canonical ``/``-joined name."""
        parts = [self.node_name]
        if self.profile_name is not None:
            parts.append(self.profile_name)
        if self.subidentity_type is not None:
            parts.append(self.subidentity_type.value)
        if self.subidentity_name is not None:
            parts.append(self.subidentity_name)
        return "/".join(parts)

    def __str__(self) -> str:
        return self.full_name

    # -- parsing ----------------------------------------------------------

    @classmethod
    def parse(cls, raw: str) -> "ShinkaiName":
        """Correct the node part of *raw*, validate it, and lower-case it.

        Raises:
            ShinkaiNameError: If the corrected name is still invalid.
        """
        corrected = correct_node_name(raw)
        try:
            validate_name(corrected)
        except ShinkaiNameError:
            logger.debug("Rejected identity name %r", raw)
            raise
        parts = corrected.lower().split("/")
        return cls(
            node_name=parts[0],
            profile_name=parts[1] if len(parts) > 1 else None,
            subidentity_type=SubidentityType(parts[2]) if len(parts) > 2 else None,
            subidentity_name=parts[3] if len(parts) > 3 else None,
        )

    @staticmethod
    def is_fully_valid(raw: str) -> bool:
        """Return whether *raw* satisfies the grammar as written (no correction)."""
        try:
            validate_name(raw)
        except ShinkaiNameError as exc:
            logger.debug("Validation error: %s", exc)
            return False
        return True

    @staticmethod
    def is_valid_node_identity_name_and_no_subidentities(name: str) -> bool:
        """True for a bare node name such as ``@@alice.shinkai``."""
        return "/" not in name and _NODE_RE.match(name) is not None

    # -- alternate constructors --------------------------------------------

    @classmethod
    def from_node_name(cls, node_name: str) -> "ShinkaiName":
        if "/" in node_name:
            raise ShinkaiNameError(f"Invalid name format: {node_name!r}")
        return cls.parse(node_name)

    @classmethod
    def from_node_and_profile(cls, node_name: str, profile_name: str) -> "ShinkaiName":
        return cls.parse(f"{correct_node_name(node_name)}/{profile_name}")

    @classmethod
    def from_node_and_profile_and_type_and_name(
        cls,
        node_name: str,
        profile_name: str,
        subidentity_type: SubidentityType | str,
        name: str,
    ) -> "ShinkaiName":
        type_value = SubidentityType(subidentity_type).value
        return cls.parse(
            f"{correct_node_name(node_name)}/{profile_name}/{type_value}/{name}"
        )

    @classmethod
    def from_message_using_sender_and_intra_sender(
        cls, message: ShinkaiMessage
    ) -> "ShinkaiName":
        meta = message.external_metadata
        return cls.parse(f"{meta.sender}/{meta.intra_sender}")

    @classmethod
    def from_message_only_using_sender_node_name(
        cls, message: ShinkaiMessage
    ) -> "ShinkaiName":
        return cls.parse(message.external_metadata.sender).extract_node()

    @classmethod
    def from_message_only_using_recipient_node_name(
        cls, message: ShinkaiMessage
    ) -> "ShinkaiName":
        return cls.parse(message.external_metadata.recipient).extract_node()

    @classmethod
    def from_message_using_sender_subidentity(
        cls, message: ShinkaiMessage
    ) -> "ShinkaiName":
        """Sender node joined with ``internal_metadata.sender_subidentity``.

        Raises:
            ShinkaiNameError: If the body is encrypted or the result is invalid.
        """
        body = _require_unencrypted_body(message)
        return cls._join(
            message.external_metadata.sender,
            body.shinkai_body.internal_metadata.sender_subidentity,
        )

    @classmethod
    def from_message_using_recipient_subidentity(
        cls, message: ShinkaiMessage
    ) -> "ShinkaiName":
        """Recipient node joined with ``internal_metadata.recipient_subidentity``.

        Raises:
            ShinkaiNameError: If the body is encrypted or the result is invalid.
        """
        body = _require_unencrypted_body(message)
        return cls._join(
            message.external_metadata.recipient,
            body.shinkai_body.internal_metadata.recipient_subidentity,
        )

    @classmethod
    def _join(cls, node: str, subidentity: str) -> "ShinkaiName":
        node_name = cls.parse(node)
        if not subidentity:
            return node_name
        return cls.parse(f"{node_name.full_name}/{subidentity}")

    # -- queries ----------------------------------------------------------

    def contains(self, other: "ShinkaiName") -> bool:
        """True iff every part of this name matches *other* at the same position."""
        self_parts = self.full_name.split("/")
        other_parts = other.full_name.split("/")
        if len(self_parts) > len(other_parts):
            return False
        return all(a == b for a, b in zip(self_parts, other_parts))

    def has_profile(self) -> bool:
        return self.profile_name is not None

    def has_agent(self) -> bool:
        return self.subidentity_type is SubidentityType.AGENT

    def has_device(self) -> bool:
        return self.subidentity_type is SubidentityType.DEVICE

    def has_no_subidentities(self) -> bool:
        return self.profile_name is None and self.subidentity_type is None

    def get_device_name(self) -> Optional[str]:
        return self.subidentity_name if self.has_device() else None

    def get_agent_name(self) -> Optional[str]:
        return self.subidentity_name if self.has_agent() else None

    def extract_node(self) -> "ShinkaiName":
        """Return just the node part as its own name."""
        return ShinkaiName(node_name=self.node_name)

    def extract_profile(self) -> "ShinkaiName":
        """Return the ``node/profile`` prefix.

        Raises:
            ShinkaiNameError: If this name has no profile.
        """
        if self.profile_name is None:
            raise ShinkaiNameError(f"Name has no profile: {self.full_name!r}")
        return ShinkaiName(node_name=self.node_name, profile_name=self.profile_name)


def _require_unencrypted_body(message: ShinkaiMessage) -> UnencryptedMessageBody:
    if not isinstance(message.body, UnencryptedMessageBody):
        raise ShinkaiNameError("Cannot read subidentities from an encrypted message body")
    return message.body
