"""Errors raised by the bridge's collaborators (Matrix, Seerr, database)."""


class BridgeError(Exception):
    """Base class for failures that abort a single notification or command."""

    pass


class ChatGatewayError(BridgeError):
    """Raised when a Matrix API call fails or times out."""

    pass


class IssueTrackerError(BridgeError):
    """Raised when a Seerr API call fails or times out."""

    pass


class StoreError(BridgeError):
    """Raised when a correlation store query fails."""

    pass
