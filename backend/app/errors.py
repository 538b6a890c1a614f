"""
Exception types shared across the data, digest and notification layers.
"""


class SignalistError(Exception):
    """Base class for application errors."""


class ConfigurationError(SignalistError):
    """A required credential or setting is missing. Never retried."""


class NewsFetchError(SignalistError):
    """The news API answered with an error status or an unusable payload."""


class MailDeliveryError(SignalistError):
    """The mail transport refused or failed to deliver a message."""
