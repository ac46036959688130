"""
Caption Session

Owns everything one live caption session needs: the caption store, the
reducer, the audio relay, the transport and the audio source.

All notifications (audio chunks, connection open/close, transcripts) are
posted as messages to one asyncio mailbox and handled in order by run(),
so the store only ever has one writer.

Usage:
    session = Session(LiveTranscriptionClient.from_session_config(config),
                      audio_source=mic, config=config)
    session.store.on_change = lambda: render(session.snapshot())

    await session.start()   # fetch key, start capture, open connection
    await session.run()     # until the connection closes
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from livecaption.config import SessionConfig
from livecaption.core.exceptions import (
    MalformedEventError,
    SessionStateError,
    TransportClosedUnexpectedly,
)
from livecaption.provisioning import KeyProvisioningClient

from .reducer import KeyingPolicy, TranscriptEventReducer
from .relay import AudioRelay
from .result import RecognitionEvent, parse_recognition_event
from .transcript import CaptionEntry
from .websocket_client import Transport

logger = logging.getLogger(__name__)


class AudioSource(ABC):
    """Produces opaque audio chunks at a fixed interval while started."""

    @abstractmethod
    def start(self, on_chunk: Callable[[bytes], None], interval_ms: int) -> None:
        """Start capturing one chunk every interval_ms; on_chunk may be called from any thread."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing."""
        pass


# ============== Mailbox messages ==============


@dataclass(frozen=True)
class ChunkArrived:
    chunk: bytes


@dataclass(frozen=True)
class ConnectionOpened:
    pass


@dataclass(frozen=True)
class ConnectionClosed:
    expected: bool = False


@dataclass(frozen=True)
class TranscriptReceived:
    payload: dict[str, Any] | RecognitionEvent


Message = ChunkArrived | ConnectionOpened | ConnectionClosed | TranscriptReceived


class SessionState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    LISTENING = "listening"
    CLOSED = "closed"


class Session:
    """One capture → transcription → caption session. Not reusable once closed."""

    def __init__(
        self,
        transport: Transport,
        audio_source: AudioSource | None = None,
        config: SessionConfig | None = None,
        provisioner: KeyProvisioningClient | None = None,
    ):
        """
        Initialize session.

        Args:
            transport: Transcription connection (not yet opened)
            audio_source: Capture source; None when chunks are posted manually
            config: Session configuration (defaults from environment)
            provisioner: Key client; a private one is created from config if None
        """
        self.config = config or SessionConfig()
        self.reducer = TranscriptEventReducer(KeyingPolicy.from_name(self.config.keying_policy))
        self.store = self.reducer.create_store()
        self.transport = transport
        self.relay = AudioRelay(transport.send, cooldown=self.config.relay_cooldown)
        self.audio_source = audio_source

        self._owns_provisioner = provisioner is None
        self.provisioner = provisioner or KeyProvisioningClient(
            url=self.config.key_url, timeout=self.config.key_timeout
        )

        self.state = SessionState.IDLE
        self.dropped_events = 0
        self._mailbox: asyncio.Queue[Message] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._capturing = False
        self._stopping = False
        self._running = False
        self._closed = asyncio.Event()
        self._final_captions: list[CaptionEntry] = []

        transport.bind(
            on_open=lambda: self.post(ConnectionOpened()),
            on_close=lambda expected: self.post(ConnectionClosed(expected=expected)),
            on_transcript=lambda payload: self.post(TranscriptReceived(payload)),
        )

    # ---------- message intake ----------

    def post(self, message: Message) -> None:
        """Deliver a message to the mailbox (event loop thread only)."""
        self._mailbox.put_nowait(message)

    def post_audio(self, chunk: bytes) -> None:
        self.post(ChunkArrived(chunk))

    def post_audio_threadsafe(self, chunk: bytes) -> None:
        """Deliver an audio chunk from a capture thread."""
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self.post_audio, chunk)

    # ---------- lifecycle ----------

    async def start(self) -> None:
        """
        Fetch an API key, start capture and open the connection.

        Raises:
            SessionStateError: If the session was already started
            ProvisioningError: If no API key could be obtained
        """
        if self.state is not SessionState.IDLE:
            raise SessionStateError(f"Cannot start session in state {self.state.value}")

        self._loop = asyncio.get_running_loop()
        self.state = SessionState.CONNECTING

        try:
            api_key = await self.provisioner.fetch_key()
        except Exception:
            self.state = SessionState.CLOSED
            raise
        finally:
            if self._owns_provisioner:
                await self.provisioner.close()

        if self.audio_source is not None:
            self.audio_source.start(self.post_audio_threadsafe, self.config.capture_interval_ms)
            self._capturing = True

        try:
            await self.transport.open(api_key)
        except Exception as e:
            logger.error(f"Failed to open transcription connection: {e}")
            self._teardown()
            raise

    async def run(self) -> None:
        """
        Handle mailbox messages until the connection closes.

        Raises:
            SessionStateError: If start() was not called
            TransportClosedUnexpectedly: If the connection closed on its own;
                the session is already torn down when this is raised
        """
        if self.state is SessionState.IDLE:
            raise SessionStateError("Session not started")

        self._running = True
        try:
            while self.state is not SessionState.CLOSED:
                message = await self._mailbox.get()
                if isinstance(message, ConnectionClosed):
                    self._close(message)
                    return
                self.handle(message)
        finally:
            self._running = False

    def handle(self, message: Message) -> None:
        """Apply one non-closing message. Ignored once the session is closed."""
        if self.state is SessionState.CLOSED:
            logger.debug(f"Session closed, ignoring {type(message).__name__}")
            return
        if isinstance(message, ChunkArrived):
            self.relay.push(message.chunk)
        elif isinstance(message, ConnectionOpened):
            logger.info("Session listening")
            self.state = SessionState.LISTENING
            self.relay.connection_opened()
        elif isinstance(message, TranscriptReceived):
            self._apply_transcript(message.payload)
        else:
            logger.warning(f"Unhandled session message: {message!r}")

    def stop_capture(self) -> None:
        """Stop the audio source and forward nothing more."""
        if self._capturing and self.audio_source is not None:
            self.audio_source.stop()
            self._capturing = False
        self.relay.stop()

    async def stop(self) -> list[CaptionEntry]:
        """
        Stop capture and close the connection.

        Messages posted before the close (including transcripts the server
        sends while finishing the stream) are applied first. If run() is
        active it processes them; otherwise they are drained here.

        Returns:
            Caption snapshot taken just before the store is discarded
        """
        if self.state is SessionState.CLOSED:
            return []
        self._stopping = True
        self.stop_capture()
        await self.transport.close()
        # Guarantees the mailbox ends with a close even if the transport sent none
        self.post(ConnectionClosed(expected=True))

        if self._running:
            await self._closed.wait()
        else:
            self._drain()
        return self._final_captions

    def snapshot(self) -> list[CaptionEntry]:
        """Current captions in time order."""
        return self.store.snapshot()

    # ---------- internals ----------

    def _apply_transcript(self, payload: dict[str, Any] | RecognitionEvent) -> None:
        try:
            event = payload if isinstance(payload, RecognitionEvent) else parse_recognition_event(payload)
            outcome = self.reducer.apply(self.store, event)
        except MalformedEventError as e:
            self.dropped_events += 1
            logger.warning(f"Dropping malformed transcript event: {e}")
            return
        if outcome is not None:
            logger.debug(f"{outcome.value}: {event}")

    def _drain(self) -> None:
        while self.state is not SessionState.CLOSED:
            message = self._mailbox.get_nowait()
            if isinstance(message, ConnectionClosed):
                self._close(message)
                return
            self.handle(message)

    def _close(self, message: ConnectionClosed) -> None:
        """Snapshot, tear down, and raise if nobody asked for the close."""
        self._final_captions = self.store.snapshot()
        self._teardown()
        if not message.expected and not self._stopping:
            raise TransportClosedUnexpectedly("Transcription connection closed unexpectedly")

    def _teardown(self) -> None:
        if self.state is SessionState.CLOSED:
            return
        self.stop_capture()
        self.store.clear()
        self.state = SessionState.CLOSED
        self._closed.set()
        logger.info("Session closed")

    async def __aenter__(self) -> "Session":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.state is not SessionState.CLOSED:
            await self.stop()

    def __repr__(self) -> str:
        return f"Session(state={self.state.value}, captions={len(self.store)}, relay={self.relay!r})"
