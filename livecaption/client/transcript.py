"""
Caption Store

Keyed caption log with interim/final merge semantics.
Decoupled from transport and UI - holds all caption state of a session.

Keys:
  Speaker-bucketed: ("0:05", "Speaker 0")   # M:SS bucket + speaker label
  Offset-keyed:     ("5.12", None)          # raw start offset, no speaker

Merge rules (FREEZE_FINAL):
  - New key → insert
  - Interim over interim → replace text
  - Final over anything → replace text, mark final
  - Interim over final → ignored

LAST_WRITE_WINS simply overwrites text and finality on every update.

snapshot() orders captions by time, not by arrival.
"""

import copy
import logging
import math
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

# Set up logger for this module
logger = logging.getLogger(__name__)

UNKNOWN_SPEAKER_LABEL = "Speaker ?"


def time_bucket(offset: float) -> str:
    """
    Quantize an offset in seconds to an M:SS bucket.

    Examples:
        5 -> "0:05"
        65 -> "1:05"
        3599.9 -> "59:59"

    Raises:
        ValueError: If offset is negative, NaN or infinite
    """
    if not math.isfinite(offset) or offset < 0:
        raise ValueError(f"Invalid offset: {offset!r}")
    minutes = math.floor(offset / 60)
    seconds = math.floor(offset % 60)
    return f"{minutes}:{seconds:02d}"


def parse_time_bucket(bucket: str) -> int:
    """Convert an M:SS bucket back to whole seconds: '1:05' -> 65"""
    minutes, _, seconds = bucket.partition(":")
    return int(minutes) * 60 + int(seconds)


def speaker_label(speaker_id: int | None) -> str:
    """Display label for a diarized speaker; None maps to a fixed label."""
    if speaker_id is None:
        return UNKNOWN_SPEAKER_LABEL
    return f"Speaker {speaker_id}"


@dataclass(frozen=True)
class CaptionKey:
    """Identity of a caption slot. Equal keys are revisions of one caption."""

    slot: str
    speaker: str | None = None

    @classmethod
    def bucketed(cls, offset: float, speaker_id: int | None) -> "CaptionKey":
        """Key by M:SS bucket and speaker label."""
        return cls(slot=time_bucket(offset), speaker=speaker_label(speaker_id))

    @classmethod
    def from_offset(cls, offset: float) -> "CaptionKey":
        """Key by the exact start offset; -0.0 and 0.0 are the same key."""
        return cls(slot=repr(float(offset) + 0.0))

    @property
    def seconds(self) -> float:
        """Numeric time of this slot, used for ordering."""
        if ":" in self.slot:
            return float(parse_time_bucket(self.slot))
        return float(self.slot)

    def __str__(self) -> str:
        if self.speaker is None:
            return self.slot
        return f"{self.speaker} @ {self.slot}"


@dataclass
class CaptionEntry:
    """One caption line. Owned by CaptionStore; snapshots hand out copies."""

    key: CaptionKey
    text: str
    is_final: bool = False


class MergePolicy(Enum):
    """How an update to an existing caption is merged."""

    FREEZE_FINAL = "freeze_final"
    LAST_WRITE_WINS = "last_write_wins"


class UpsertOutcome(Enum):
    """Result of CaptionStore.upsert()."""

    INSERTED = "inserted"
    UPDATED = "updated"
    IGNORED = "ignored"


class CaptionStore:
    """
    Ordered, keyed caption collection with at most one entry per key.

    Simple API:
        store = CaptionStore()
        key = CaptionKey.bucketed(5.0, 0)
        store.upsert(key, "hola", is_final=False)       # INSERTED
        store.upsert(key, "hola mundo", is_final=True)  # UPDATED, now final
        store.upsert(key, "hola", is_final=False)       # IGNORED, final is frozen

        store.snapshot()  # [CaptionEntry(key, "hola mundo", True)]

    Callbacks:
        store.on_change = lambda: render(store.snapshot())
    """

    def __init__(self, policy: MergePolicy = MergePolicy.FREEZE_FINAL):
        """
        Initialize caption store.

        Args:
            policy: Merge policy applied when a key is updated
        """
        self.policy = policy

        # OrderedDict preserves arrival order, used as the tie-break in snapshot()
        self._entries: OrderedDict[CaptionKey, CaptionEntry] = OrderedDict()

        # Callback when captions change
        self.on_change: Callable[[], None] | None = None

    def upsert(self, key: CaptionKey, text: str, is_final: bool) -> UpsertOutcome:
        """
        Insert or update the caption for a key.

        Args:
            key: Caption slot identity
            text: Caption text
            is_final: Whether the text is final

        Returns:
            INSERTED for a new key, UPDATED when an entry changed,
            IGNORED when an interim update hit a frozen final entry
        """
        entry = self._entries.get(key)

        if entry is None:
            self._entries[key] = CaptionEntry(key=key, text=text, is_final=is_final)
            logger.debug(f"[INSERT] {key} = '{text[:50]}' final={is_final}")
            self._notify()
            return UpsertOutcome.INSERTED

        if self.policy is MergePolicy.LAST_WRITE_WINS:
            entry.text = text
            entry.is_final = is_final
        elif is_final:
            entry.text = text
            entry.is_final = True
        elif entry.is_final:
            logger.debug(f"[IGNORE] {key}: interim update after final")
            return UpsertOutcome.IGNORED
        else:
            entry.text = text

        logger.debug(f"[UPDATE] {key} = '{text[:50]}' final={entry.is_final}")
        self._notify()
        return UpsertOutcome.UPDATED

    def snapshot(self) -> list[CaptionEntry]:
        """
        Get copies of all captions in time order.

        Entries with the same time keep their arrival order.
        """
        entries = sorted(self._entries.values(), key=lambda entry: entry.key.seconds)
        return [copy.copy(entry) for entry in entries]

    def get(self, key: CaptionKey) -> CaptionEntry | None:
        """Get a copy of the caption for a key."""
        entry = self._entries.get(key)
        return copy.copy(entry) if entry is not None else None

    def get_text(self) -> str:
        """Full caption text in time order (space-separated)."""
        return " ".join(entry.text for entry in self.snapshot() if entry.text)

    def render_lines(self) -> list[str]:
        """
        Caption lines as shown by the live view.

        Returns:
            Lines like "Speaker 0 - 0:05 - hola mundo"
        """
        lines = []
        for entry in self.snapshot():
            if entry.key.speaker is None:
                lines.append(f"{entry.key.slot} - {entry.text}")
            else:
                lines.append(f"{entry.key.speaker} - {entry.key.slot} - {entry.text}")
        return lines

    def clear(self) -> None:
        """Discard all captions (session teardown)."""
        if not self._entries:
            return
        self._entries.clear()
        self._notify()

    def _notify(self) -> None:
        if self.on_change:
            try:
                self.on_change()
            except Exception as e:
                logger.warning(f"Caption change callback failed: {e}")

    @property
    def entry_count(self) -> int:
        """Number of captions."""
        return len(self._entries)

    @property
    def is_empty(self) -> bool:
        """Check if the store holds no captions."""
        return len(self._entries) == 0

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __repr__(self) -> str:
        return f"CaptionStore({self.entry_count} captions, policy={self.policy.value})"

    def __len__(self) -> int:
        return self.entry_count
