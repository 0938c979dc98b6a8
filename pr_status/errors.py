"""Exceptions raised by pr-status.

Only configuration and delivery problems are fatal. Malformed upstream pages
and unresolved mergeability degrade results instead of raising.
"""


class PRStatusError(Exception):
    """Base class for pr-status errors."""


class ConfigurationError(PRStatusError, ValueError):
    """A required input is missing or invalid."""


class DeliveryError(PRStatusError):
    """A label mutation or chat message could not be delivered."""

    def __init__(self, target: str, message: str):
        self.target = target
        self.message = message
        super().__init__(f"Failed to deliver to {target}: {message}")
