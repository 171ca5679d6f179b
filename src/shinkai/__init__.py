"""Shinkai -- signed and encrypted message envelopes for Shinkai nodes.

Top-level convenience re-exports::

    from shinkai import MessageBuilder, ShinkaiMessage
    from shinkai.sdk import HTTPTransport, messages  # node requests
"""

__version__ = "0.1.0"

from shinkai.protocol import MessageBuilder, ShinkaiMessage, ShinkaiName

__all__ = ["__version__", "MessageBuilder", "ShinkaiMessage", "ShinkaiName"]
