"""
WebSocket Live Transcription Client

Streams audio to a live transcription service and reports connection and
transcript notifications back to the session.

Protocol:
1. Connect to <listen_url>?model=...&language=...&interim_results=true...
   with header "Authorization: Token <key>"
2. Stream raw audio bytes
3. Receive JSON messages; "Results" messages carry transcripts
4. Send {"type": "CloseStream"} to finish, then close the socket
"""

import asyncio
import contextlib
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

import websockets

from livecaption.config import LISTEN_URL, SessionConfig
from livecaption.core.models import RESULTS_TYPE

logger = logging.getLogger(__name__)

CLOSE_STREAM_MESSAGE = json.dumps({"type": "CloseStream"})


class Transport(ABC):
    """
    Streaming connection to a speech recognition service.

    Notifications:
        on_open()                 connection established
        on_close(expected)        connection gone; expected=True after close()
        on_transcript(payload)    decoded transcript message
    """

    def __init__(self):
        self.on_open: Callable[[], None] | None = None
        self.on_close: Callable[[bool], None] | None = None
        self.on_transcript: Callable[[dict[str, Any]], None] | None = None

    def bind(
        self,
        on_open: Callable[[], None] | None = None,
        on_close: Callable[[bool], None] | None = None,
        on_transcript: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        """Register notification handlers."""
        self.on_open = on_open
        self.on_close = on_close
        self.on_transcript = on_transcript

    @abstractmethod
    async def open(self, api_key: str) -> None:
        """Open the connection."""
        pass

    @abstractmethod
    async def send(self, chunk: bytes) -> None:
        """Send one audio chunk."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection."""
        pass

    def _notify(self, callback: Callable[..., None] | None, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Transport callback error: {e}")


@dataclass
class ConnectionConfig:
    """WebSocket connection configuration."""

    url: str = LISTEN_URL
    params: dict[str, str] = field(default_factory=dict)
    timeout: float = 10.0

    @property
    def uri(self) -> str:
        """Listen URI with query options."""
        if not self.params:
            return self.url
        return f"{self.url}?{urlencode(self.params)}"


class LiveTranscriptionClient(Transport):
    """
    WebSocket transport for live transcription.

    Usage:
        client = LiveTranscriptionClient.from_session_config(SessionConfig())
        client.bind(on_open=..., on_close=..., on_transcript=...)

        await client.open(api_key)
        await client.send(audio_bytes)
        await client.close()
    """

    def __init__(self, url: str = LISTEN_URL, params: dict[str, str] | None = None,
                 timeout: float = 10.0):
        """
        Initialize live transcription client.

        Args:
            url: Listen endpoint (ws:// or wss://)
            params: Query options (model, language, interim_results, ...)
            timeout: Connection open/close timeout in seconds
        """
        super().__init__()
        self.config = ConnectionConfig(url=url, params=dict(params or {}), timeout=timeout)
        self._ws = None
        self._recv_task: asyncio.Task | None = None
        self._closing = False

    @classmethod
    def from_session_config(cls, config: SessionConfig) -> "LiveTranscriptionClient":
        """Create client from a SessionConfig."""
        return cls(url=config.listen_url, params=config.query_params)

    @property
    def uri(self) -> str:
        return self.config.uri

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    async def open(self, api_key: str) -> None:
        """
        Connect and start the receive loop.

        Raises:
            OSError, websockets.InvalidHandshake: If the connection fails
        """
        logger.info(f"Connecting to live transcription: {self.config.url}")
        self._closing = False
        self._ws = await websockets.connect(
            self.config.uri,
            additional_headers={"Authorization": f"Token {api_key}"},
            open_timeout=self.config.timeout,
            close_timeout=self.config.timeout,
        )
        logger.info("Connection established")
        self._notify(self.on_open)
        self._recv_task = asyncio.create_task(self._receive_loop(self._ws))

    async def send(self, chunk: bytes) -> None:
        """
        Send one audio chunk.

        Raises:
            ConnectionError: If the connection is not open
        """
        if self._ws is None:
            raise ConnectionError("Live transcription connection is not open")
        await self._ws.send(chunk)

    async def close(self) -> None:
        """Finish the stream and close the socket. Safe to call twice."""
        self._closing = True
        ws = self._ws
        if ws is not None:
            with contextlib.suppress(websockets.ConnectionClosed):
                await ws.send(CLOSE_STREAM_MESSAGE)
            await ws.close()
        if self._recv_task is not None:
            await self._recv_task
            self._recv_task = None

    async def _receive_loop(self, ws) -> None:
        """Dispatch messages until the socket closes."""
        try:
            async for message in ws:
                self._process_message(message)
        except websockets.ConnectionClosed as e:
            logger.warning(f"Connection closed with error: {e}")
        finally:
            self._ws = None
            logger.info("Connection closed")
            self._notify(self.on_close, self._closing)

    def _process_message(self, message: str | bytes) -> None:
        """Forward transcript messages; log and skip everything else."""
        if isinstance(message, bytes):
            logger.debug(f"Ignoring binary message ({len(message)} bytes)")
            return

        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring non-JSON message: {message[:80]}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Ignoring unexpected message: {message[:80]}")
            return

        message_type = data.get("type", RESULTS_TYPE)
        if message_type != RESULTS_TYPE:
            logger.debug(f"Ignoring {message_type} message")
            return

        logger.debug(f"Transcript data: {message[:200]}")
        self._notify(self.on_transcript, data)
