"""
livecaption - live caption reconciliation engine

Provides the pieces of a live captioning client:
- client: caption store, event reducer, audio relay, transport, session
- config: environment-driven settings
- core: error taxonomy and wire models
- provisioning: API key fetch
- utils: logging setup

Usage:
    from livecaption import Session, SessionConfig, LiveTranscriptionClient
    from livecaption.utils import setup_logging

    logger = setup_logging(__name__)
    config = SessionConfig()
    session = Session(LiveTranscriptionClient.from_session_config(config), config=config)
"""

from .client import (
    AudioRelay,
    CaptionEntry,
    CaptionKey,
    CaptionStore,
    KeyingPolicy,
    LiveTranscriptionClient,
    RecognitionEvent,
    Session,
    TranscriptEventReducer,
    time_bucket,
)
from .config import SessionConfig
from .core import (
    LiveCaptionError,
    MalformedEventError,
    ProvisioningError,
    TransportClosedUnexpectedly,
)
from .provisioning import close_client, fetch_api_key
from .utils import get_logger, setup_logging

__all__ = [
    "AudioRelay",
    "CaptionEntry",
    "CaptionKey",
    "CaptionStore",
    "KeyingPolicy",
    "LiveCaptionError",
    "LiveTranscriptionClient",
    "MalformedEventError",
    "ProvisioningError",
    "RecognitionEvent",
    "Session",
    "SessionConfig",
    "TranscriptEventReducer",
    "TransportClosedUnexpectedly",
    "close_client",
    "fetch_api_key",
    "get_logger",
    "setup_logging",
    "time_bucket",
]

__version__ = "0.1.0"
