"""Base exceptions for LinkBeam."""


class LinkBeamError(Exception):
    """Base exception for all LinkBeam errors."""

    pass


class RateLimitedError(LinkBeamError):
    """Request rejected by admission control."""

    def __init__(self, retry_after: int = 0):
        super().__init__("Too many requests. Please try again later.")
        self.retry_after = retry_after


class InvalidLinkError(LinkBeamError):
    """Submitted link failed sanitization or validation.

    The message is safe to return to the submitter.
    """

    pass


class SessionNotFoundError(LinkBeamError):
    """Session missing, expired, or already holding a link."""

    def __init__(self):
        super().__init__("Session not found or expired")


class RelayClientError(LinkBeamError):
    """Relay server request failed (CLI side)."""

    pass
