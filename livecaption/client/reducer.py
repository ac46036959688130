"""
Transcript Event Reducer

Turns recognition events into caption store mutations.

Policies:
  SPEAKER_BUCKETED: key ("M:SS", "Speaker N"), store freezes final captions
  OFFSET_KEYED:     key = raw start offset, store lets the last write win
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

from livecaption.core.exceptions import MalformedEventError

from .result import RecognitionEvent
from .transcript import CaptionKey, CaptionStore, MergePolicy, UpsertOutcome

logger = logging.getLogger(__name__)


class KeyingPolicy(Enum):
    """How recognition events map onto caption slots."""

    SPEAKER_BUCKETED = "speaker"
    OFFSET_KEYED = "offset"

    @classmethod
    def from_name(cls, name: str) -> "KeyingPolicy":
        """Look up a policy by its config name ('speaker' or 'offset')."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown keying policy: {name}. Available: {[p.value for p in cls]}"
            ) from None

    @property
    def merge_policy(self) -> MergePolicy:
        """Store merge policy that goes with this keying policy."""
        if self is KeyingPolicy.SPEAKER_BUCKETED:
            return MergePolicy.FREEZE_FINAL
        return MergePolicy.LAST_WRITE_WINS


@dataclass(frozen=True)
class Upsert:
    """A single caption store mutation."""

    key: CaptionKey
    text: str
    is_final: bool

    def apply_to(self, store: CaptionStore) -> UpsertOutcome:
        return store.upsert(self.key, self.text, self.is_final)


class TranscriptEventReducer:
    """
    Maps RecognitionEvents to Upserts.

    Usage:
        reducer = TranscriptEventReducer(KeyingPolicy.SPEAKER_BUCKETED)
        store = reducer.create_store()
        reducer.apply(store, event)
    """

    def __init__(self, policy: KeyingPolicy = KeyingPolicy.SPEAKER_BUCKETED):
        self.policy = policy

    def create_store(self) -> CaptionStore:
        """Create an empty store using the matching merge policy."""
        return CaptionStore(policy=self.policy.merge_policy)

    def key_for(self, event: RecognitionEvent) -> CaptionKey:
        """
        Derive the caption key for an event.

        Raises:
            MalformedEventError: If the start offset is not a usable time
        """
        offset = event.start_offset
        if isinstance(offset, bool) or not isinstance(offset, (int, float)):
            raise MalformedEventError(f"Start offset must be a number, got {offset!r}")
        if not math.isfinite(offset) or offset < 0:
            raise MalformedEventError(f"Invalid start offset: {offset!r}")

        if self.policy is KeyingPolicy.SPEAKER_BUCKETED:
            return CaptionKey.bucketed(offset, event.speaker_id)
        return CaptionKey.from_offset(offset)

    def reduce(self, event: RecognitionEvent) -> Upsert | None:
        """
        Compute the store mutation for an event.

        Returns:
            Upsert, or None when the event carries no text
        """
        text = event.caption_text
        if not text:
            logger.debug(f"Skipping empty event at {event.start_offset}")
            return None
        return Upsert(key=self.key_for(event), text=text, is_final=event.is_final)

    def apply(self, store: CaptionStore, event: RecognitionEvent) -> UpsertOutcome | None:
        """Reduce an event and apply it to the store. Returns None for no-ops."""
        mutation = self.reduce(event)
        if mutation is None:
            return None
        return mutation.apply_to(store)

    def __repr__(self) -> str:
        return f"TranscriptEventReducer(policy={self.policy.value})"
