"""Core modules: error taxonomy and wire models."""

from livecaption.core.exceptions import (
    LiveCaptionError,
    MalformedEventError,
    ProvisioningError,
    SessionStateError,
    TransportClosedUnexpectedly,
)
from livecaption.core.models import LiveAlternative, LiveChannel, LiveTranscriptMessage, LiveWord

__all__ = [
    "LiveAlternative",
    "LiveCaptionError",
    "LiveChannel",
    "LiveTranscriptMessage",
    "LiveWord",
    "MalformedEventError",
    "ProvisioningError",
    "SessionStateError",
    "TransportClosedUnexpectedly",
]
