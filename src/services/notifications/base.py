"""
Shared pieces of the notification channels.

Both channel adapters report results as DeliveryOutcome values. The
exceptions below are raised inside an adapter and turned into failure
outcomes before they reach the caller.
"""


class NotificationError(Exception):
    """Base exception for notification channels."""
    pass


class ConfigurationError(NotificationError):
    """Channel credentials are missing."""
    pass


class TransportError(NotificationError):
    """The underlying transport rejected or failed the send."""
    pass
