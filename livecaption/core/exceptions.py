"""Exceptions raised by the caption engine and its collaborators."""


class LiveCaptionError(Exception):
    """Base exception for live caption errors."""

    pass


class ProvisioningError(LiveCaptionError):
    """Raised when the API key could not be fetched or the response had no key."""

    pass


class MalformedEventError(LiveCaptionError):
    """Raised for recognition payloads missing required fields.

    Sessions log and drop these events; they are never fatal.
    """

    pass


class TransportClosedUnexpectedly(LiveCaptionError):
    """Raised when the transcription connection closes without being asked to.

    The session that raises it has already been torn down. A new session
    may be started.
    """

    pass


class SessionStateError(LiveCaptionError):
    """Raised when a session operation is invalid in its current state."""

    pass
