"""Shinkai exception hierarchy.

All protocol-specific exceptions inherit from :class:`ShinkaiError`.
Verification mismatches are reported as ``False``, never raised.
"""

from __future__ import annotations


class ShinkaiError(Exception):
    """Base exception for all Shinkai protocol errors."""


class ValidationError(ShinkaiError):
    """Raised when a required field is missing or input is malformed."""


class ShinkaiNameError(ValidationError):
    """Raised when an identity name fails the hierarchical name grammar."""


class InboxNameError(ValidationError):
    """Raised when an inbox string fails validation."""


class InboxDerivationFailure(ValidationError):
    """Raised when an inbox cannot be derived from the message participants."""


class InvalidMessageError(ValidationError):
    """Raised when a message or one of its layers is in the wrong shape or state."""


class ConfigurationError(ShinkaiError):
    """Raised when a builder configuration is ambiguous."""


class CryptoError(ShinkaiError):
    """Raised on key import failures and malformed key material."""


class DecryptionFailure(CryptoError):
    """Raised on any decryption failure.

    The message is deliberately uniform: callers cannot tell a tag
    mismatch from a malformed payload.
    """


class SignatureError(ShinkaiError):
    """Raised when a signature or hash cannot be decoded for signing/verification."""
