"""Audio relay pacing captured chunks toward the transcription transport."""

import asyncio
import inspect
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from enum import Enum

logger = logging.getLogger(__name__)

Sender = Callable[[bytes], Awaitable[None] | None]


class RelayState(Enum):
    """Relay lifecycle states."""

    IDLE = "idle"
    BUFFERING = "buffering"
    DRAINING = "draining"
    STOPPED = "stopped"


class AudioRelay:
    """
    FIFO relay forwarding one audio chunk at a time.

    Chunks are queued in arrival order. While the connection is open, each
    tick dequeues one chunk, sends it and waits for the cooldown before the
    next chunk may go out. Ticks while a chunk is in flight are no-ops.

    Usage:
        relay = AudioRelay(transport.send, cooldown=0.25)
        relay.push(chunk)          # buffered until the connection opens
        relay.connection_opened()  # drains in order
    """

    def __init__(self, send: Sender, cooldown: float = 0.25):
        """
        Initialize audio relay.

        Args:
            send: Function or coroutine function forwarding one chunk
            cooldown: Seconds to wait after each forwarded chunk
        """
        if cooldown < 0:
            raise ValueError(f"cooldown must be >= 0, got {cooldown}")
        self._send = send
        self.cooldown = cooldown

        self._queue: deque[bytes] = deque()
        self._listening = False
        self._busy = False
        self._cooling = False
        self._stopped = False
        self._task: asyncio.Task | None = None
        self._idle = asyncio.Event()
        self._idle.set()

        self.sent_count = 0

    @property
    def state(self) -> RelayState:
        """Current relay state."""
        if self._stopped:
            return RelayState.STOPPED
        if self._busy:
            return RelayState.DRAINING
        if self._queue:
            return RelayState.DRAINING if self._listening else RelayState.BUFFERING
        return RelayState.IDLE

    @property
    def is_listening(self) -> bool:
        return self._listening

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def pending(self) -> int:
        """Number of chunks waiting to be forwarded."""
        return len(self._queue)

    def push(self, chunk: bytes) -> None:
        """Queue a chunk for forwarding."""
        if self._stopped:
            logger.debug("Relay stopped, dropping audio chunk")
            return
        self._queue.append(chunk)
        self._idle.clear()
        self.tick()

    def connection_opened(self) -> None:
        """Start forwarding; buffered chunks drain in order."""
        if self._stopped:
            return
        self._listening = True
        logger.debug(f"Relay listening, {len(self._queue)} chunk(s) buffered")
        self.tick()

    def connection_lost(self) -> None:
        """Stop forwarding new chunks; queued chunks stay buffered."""
        self._listening = False

    def tick(self) -> bool:
        """
        Forward the next chunk if the relay is free.

        Returns:
            True if a forwarding step was started
        """
        if self._stopped or self._busy or not self._listening or not self._queue:
            return False

        self._busy = True
        chunk = self._queue.popleft()
        self._task = asyncio.get_running_loop().create_task(self._forward(chunk))
        return True

    async def _forward(self, chunk: bytes) -> None:
        try:
            result = self._send(chunk)
            if inspect.isawaitable(result):
                await result
            self.sent_count += 1
        except Exception as e:
            logger.error(f"Audio send error: {e}")

        if self._stopped:
            return

        self._cooling = True
        try:
            await asyncio.sleep(self.cooldown)
        finally:
            self._cooling = False
            self._busy = False

        if not self.tick() and not self._queue:
            self._idle.set()

    async def wait_idle(self) -> None:
        """Wait until every queued chunk has been forwarded (or the relay stops)."""
        await self._idle.wait()

    def stop(self) -> None:
        """Stop for good: cancel the pending cooldown and discard queued chunks."""
        if self._stopped:
            return
        self._stopped = True
        self._listening = False
        dropped = len(self._queue)
        self._queue.clear()
        # An in-flight send is left to finish; only the cooldown is cancelled
        if self._cooling and self._task is not None and not self._task.done():
            self._task.cancel()
        self._busy = False
        self._idle.set()
        if dropped:
            logger.info(f"Relay stopped, discarded {dropped} queued chunk(s)")

    def __repr__(self) -> str:
        return f"AudioRelay(state={self.state.value}, pending={self.pending}, sent={self.sent_count})"
