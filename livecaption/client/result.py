"""
Recognition Event Data Classes

Represents one recognition result delivered by the transcription transport.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import ValidationError

from livecaption.core.exceptions import MalformedEventError
from livecaption.core.models import LiveTranscriptMessage


@dataclass(frozen=True)
class RecognizedWord:
    """
    A single recognized word.

    Attributes:
        text: Raw recognized form
        punctuated: Form with punctuation/casing applied, if the service sent one
    """
    text: str
    punctuated: Optional[str] = None

    @property
    def display(self) -> str:
        """Punctuated form when present, raw form otherwise."""
        return self.punctuated if self.punctuated is not None else self.text


@dataclass(frozen=True)
class RecognitionEvent:
    """
    Interim or final recognition result for one time window.

    Attributes:
        is_final: Whether the transport marked this window complete
        start_offset: Start of the window in seconds from stream start
        speaker_id: Diarized speaker number, None when unknown
        words: Recognized words in spoken order
    """
    is_final: bool
    start_offset: float
    speaker_id: Optional[int] = None
    words: Tuple[RecognizedWord, ...] = field(default_factory=tuple)

    @classmethod
    def from_words(cls, words, start_offset: float, speaker_id: Optional[int] = None,
                   is_final: bool = False) -> "RecognitionEvent":
        """Create an event from plain strings (or RecognizedWord instances)."""
        return cls(
            is_final=is_final,
            start_offset=start_offset,
            speaker_id=speaker_id,
            words=tuple(
                word if isinstance(word, RecognizedWord) else RecognizedWord(text=word)
                for word in words
            ),
        )

    @property
    def caption_text(self) -> str:
        """Words joined by single spaces, preferring punctuated forms."""
        return " ".join(word.display for word in self.words if word.display)

    def __str__(self) -> str:
        status = "final" if self.is_final else "interim"
        text = self.caption_text
        if len(text) > 50:
            text = f"{text[:50]}..."
        return f"RecognitionEvent({status} @{self.start_offset:.2f}s speaker={self.speaker_id}: {text})"


def parse_recognition_event(payload: Union[str, bytes, Dict[str, Any]]) -> RecognitionEvent:
    """
    Convert a live transcription message into a RecognitionEvent.

    Offset and speaker are taken from the first word; all words of one
    message are assumed to share a speaker. A message with an empty word
    list yields an event with no words (the reducer skips it).

    Args:
        payload: Decoded JSON dict, or the raw JSON text

    Returns:
        RecognitionEvent

    Raises:
        MalformedEventError: If the payload is not valid JSON or lacks
            channel/alternatives/words
    """
    try:
        if isinstance(payload, (str, bytes)):
            message = LiveTranscriptMessage.model_validate_json(payload)
        else:
            message = LiveTranscriptMessage.model_validate(payload)
    except ValidationError as e:
        raise MalformedEventError(f"Invalid transcript message: {e.error_count()} error(s)") from e

    words = message.best.words
    if not words:
        return RecognitionEvent(is_final=message.is_final, start_offset=message.start)

    first = words[0]
    return RecognitionEvent(
        is_final=message.is_final,
        start_offset=first.start,
        speaker_id=first.speaker,
        words=tuple(RecognizedWord(text=w.word, punctuated=w.punctuated_word) for w in words),
    )
