"""
Caption Client Module

Reconciles streaming recognition events into a time-ordered caption log.

Flow:
  audio chunks → AudioRelay → transport → transcript messages
  → TranscriptEventReducer → CaptionStore → snapshot()

Usage:
    from livecaption.client import CaptionStore, KeyingPolicy, TranscriptEventReducer

    reducer = TranscriptEventReducer(KeyingPolicy.SPEAKER_BUCKETED)
    store = reducer.create_store()
    store.on_change = lambda: render(store.snapshot())

    # On receiving a transcript message:
    reducer.apply(store, parse_recognition_event(message))
"""

from .reducer import KeyingPolicy, TranscriptEventReducer, Upsert
from .relay import AudioRelay, RelayState
from .result import RecognitionEvent, RecognizedWord, parse_recognition_event
from .session import AudioSource, Session, SessionState
from .transcript import (
    CaptionEntry,
    CaptionKey,
    CaptionStore,
    MergePolicy,
    UpsertOutcome,
    speaker_label,
    time_bucket,
)
from .websocket_client import LiveTranscriptionClient, Transport

__all__ = [
    "AudioRelay",
    "AudioSource",
    "CaptionEntry",
    "CaptionKey",
    "CaptionStore",
    "KeyingPolicy",
    "LiveTranscriptionClient",
    "MergePolicy",
    "RecognitionEvent",
    "RecognizedWord",
    "RelayState",
    "Session",
    "SessionState",
    "TranscriptEventReducer",
    "Transport",
    "Upsert",
    "UpsertOutcome",
    "parse_recognition_event",
    "speaker_label",
    "time_bucket",
]
