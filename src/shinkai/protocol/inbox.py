"""Inbox addresses.

Two variants share the ``::`` delimiter:

- ``inbox::<identity>(::<identity>)*::<true|false>`` -- a conversation
  between identities, every one of them a valid :class:`ShinkaiName`.
- ``job_inbox::<unique id>::false`` -- a job context.  The id may itself
  contain ``::`` and job inboxes are never end-to-end encrypted.

The canonical form is lower-case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union, cast

from shinkai.protocol.errors import InboxNameError, ShinkaiNameError
from shinkai.protocol.message import ShinkaiMessage, UnencryptedMessageBody
from shinkai.protocol.name import ShinkaiName

logger = logging.getLogger(__name__)

_DELIMITER = "::"
_MIN_PARTS = 3
_MAX_PARTS = 101
_REGULAR_PREFIX = "inbox"
_JOB_PREFIX = "job_inbox"


@dataclass(frozen=True)
class Inbox:
    """A conversation inbox between one or more identities."""

    value: str
    is_e2e: bool
    identities: tuple[ShinkaiName, ...]

    def __str__(self) -> str:
        return self.value

    def get_unique_id(self) -> str:
        """Everything between the prefix and the trailing flag, rejoined on ``::``."""
        return _middle(self.value)

    def has_creation_access(self, identity: ShinkaiName | str) -> bool:
        """True iff one of the inbox identities contains *identity*."""
        if isinstance(identity, str):
            identity = ShinkaiName.parse(identity)
        return any(member.contains(identity) for member in self.identities)


@dataclass(frozen=True)
class JobInbox:
    """The inbox of a single job."""

    value: str
    unique_id: str
    is_e2e: bool = False

    def __str__(self) -> str:
        return self.value

    def get_unique_id(self) -> str:
        return self.unique_id


InboxName = Union[Inbox, JobInbox]


def _middle(value: str) -> str:
    return _DELIMITER.join(value.split(_DELIMITER)[1:-1])


def _invalid(raw: str, reason: str) -> InboxNameError:
    logger.debug("Rejected inbox name %r: %s", raw, reason)
    return InboxNameError(f"Invalid inbox name format: {raw!r} ({reason})")


def parse_inbox_name(raw: str) -> InboxName:
    """Parse and validate an inbox string.

    Raises:
        InboxNameError: If *raw* matches neither inbox variant.
    """
    value = raw.lower()
    parts = value.split(_DELIMITER)
    if not _MIN_PARTS <= len(parts) <= _MAX_PARTS:
        raise _invalid(raw, f"expected {_MIN_PARTS} to {_MAX_PARTS} parts")

    flag = parts[-1]
    if flag not in ("true", "false"):
        raise _invalid(raw, "last part must be 'true' or 'false'")
    is_e2e = flag == "true"

    if parts[0] == _REGULAR_PREFIX:
        identities = []
        for part in parts[1:-1]:
            if not ShinkaiName.is_fully_valid(part):
                raise _invalid(raw, f"invalid identity {part!r}")
            identities.append(ShinkaiName.parse(part))
        return Inbox(value=value, is_e2e=is_e2e, identities=tuple(identities))

    if parts[0] == _JOB_PREFIX:
        if is_e2e:
            raise _invalid(raw, "job inboxes cannot be end-to-end encrypted")
        unique_id = _middle(value)
        if not unique_id:
            raise _invalid(raw, "empty job id")
        return JobInbox(value=value, unique_id=unique_id, is_e2e=False)

    raise _invalid(raw, f"unknown prefix {parts[0]!r}")


def get_regular_inbox_name_from_params(
    sender: str,
    sender_subidentity: str,
    recipient: str,
    recipient_subidentity: str,
    is_e2e: bool,
) -> Inbox:
    """Build the two-party inbox for a sender and recipient.

    Each participant is ``node`` or ``node/subidentity``; the canonical
    names are sorted so both sides derive the same inbox.

    Raises:
        InboxNameError: If either participant is not a valid identity.
    """
    participants = []
    for node, subidentity in ((sender, sender_subidentity), (recipient, recipient_subidentity)):
        full = f"{node}/{subidentity}" if subidentity else node
        try:
            participants.append(ShinkaiName.parse(full).full_name)
        except ShinkaiNameError as exc:
            raise InboxNameError(f"Invalid inbox participant {full!r}: {exc}") from exc
    participants.sort()
    raw = _DELIMITER.join([_REGULAR_PREFIX, *participants, "true" if is_e2e else "false"])
    return cast(Inbox, parse_inbox_name(raw))


def get_job_inbox_name_from_params(job_id: str) -> JobInbox:
    """Build the inbox of job *job_id*.

    Raises:
        InboxNameError: If *job_id* is empty.
    """
    return cast(JobInbox, parse_inbox_name(_DELIMITER.join([_JOB_PREFIX, job_id, "false"])))


def inbox_name_from_message(message: ShinkaiMessage) -> InboxName:
    """Parse the inbox carried in an unencrypted envelope body.

    Raises:
        InboxNameError: If the body is encrypted or the inbox is invalid.
    """
    if not isinstance(message.body, UnencryptedMessageBody):
        raise InboxNameError("Expected an unencrypted message body")
    return parse_inbox_name(message.body.shinkai_body.internal_metadata.inbox)
