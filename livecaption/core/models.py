"""
Wire Models for Live Transcription Messages

Validates the JSON messages pushed by the live transcription service.
Only the fields the caption engine reads are declared; everything else
is ignored.

Protocol (type == "Results"):
    {
      "type": "Results",
      "is_final": false,
      "start": 4.9,
      "duration": 1.2,
      "channel": {"alternatives": [{"transcript": "hola", "words": [
          {"word": "hola", "punctuated_word": "Hola", "start": 5.0,
           "end": 5.4, "speaker": 0}
      ]}]}
    }

Other message types ("Metadata", "SpeechStarted", "UtteranceEnd") carry
no words and are filtered out by the transport.
"""

from pydantic import BaseModel, ConfigDict, Field

RESULTS_TYPE = "Results"


class LiveWord(BaseModel):
    """Word-level result with timing and diarization."""

    model_config = ConfigDict(extra="ignore")

    word: str
    start: float
    end: float = 0.0
    confidence: float | None = None
    speaker: int | None = None
    punctuated_word: str | None = None


class LiveAlternative(BaseModel):
    """One recognition hypothesis. The first alternative is the best one."""

    model_config = ConfigDict(extra="ignore")

    transcript: str = ""
    confidence: float | None = None
    words: list[LiveWord]


class LiveChannel(BaseModel):
    """Recognition results for one audio channel."""

    model_config = ConfigDict(extra="ignore")

    alternatives: list[LiveAlternative] = Field(min_length=1)


class LiveTranscriptMessage(BaseModel):
    """A 'Results' message from the live transcription service."""

    model_config = ConfigDict(extra="ignore")

    type: str = RESULTS_TYPE
    is_final: bool = False
    speech_final: bool = False
    start: float = 0.0
    duration: float = 0.0
    channel: LiveChannel

    @property
    def best(self) -> LiveAlternative:
        """Top-ranked alternative."""
        return self.channel.alternatives[0]
