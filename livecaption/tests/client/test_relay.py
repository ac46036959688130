"""
Unit tests for livecaption.client.relay module.

Uses a recording sender that timestamps each chunk with the loop clock.
"""

import asyncio

import pytest

from livecaption.client.relay import AudioRelay, RelayState

COOLDOWN = 0.05
# asyncio timers may fire up to one clock tick early
TOLERANCE = 0.01


class RecordingSender:
    """Async sender that records (loop time, chunk) pairs."""

    def __init__(self, delay: float = 0.0):
        self.sent: list[tuple[float, bytes]] = []
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, chunk: bytes) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        if self.delay:
            await asyncio.sleep(self.delay)
        self.sent.append((asyncio.get_running_loop().time(), chunk))
        self.in_flight -= 1

    @property
    def chunks(self) -> list[bytes]:
        return [chunk for _, chunk in self.sent]


class TestAudioRelayInit:
    """Tests for AudioRelay initialization."""

    def test_initial_state(self):
        relay = AudioRelay(RecordingSender(), cooldown=COOLDOWN)
        assert relay.state is RelayState.IDLE
        assert relay.pending == 0
        assert relay.cooldown == COOLDOWN
        assert relay.is_listening is False

    def test_negative_cooldown_rejected(self):
        with pytest.raises(ValueError):
            AudioRelay(RecordingSender(), cooldown=-1)


class TestAudioRelayBuffering:
    """Tests for buffering before the connection opens."""

    @pytest.mark.asyncio
    async def test_chunks_buffer_until_open(self):
        sender = RecordingSender()
        relay = AudioRelay(sender, cooldown=COOLDOWN)

        relay.push(b"c1")
        relay.push(b"c2")
        await asyncio.sleep(0)

        assert relay.state is RelayState.BUFFERING
        assert relay.pending == 2
        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_tick_is_noop_while_not_listening(self):
        relay = AudioRelay(RecordingSender(), cooldown=COOLDOWN)
        relay.push(b"c1")
        assert relay.tick() is False
        assert relay.pending == 1


class TestAudioRelayDraining:
    """Tests for forwarding once the connection is open."""

    @pytest.mark.asyncio
    async def test_fifo_order_with_cooldown(self):
        """C1, C2, C3 queued before open go out in order, one cooldown apart."""
        sender = RecordingSender()
        relay = AudioRelay(sender, cooldown=COOLDOWN)

        for chunk in (b"c1", b"c2", b"c3"):
            relay.push(chunk)
        relay.connection_opened()
        await asyncio.wait_for(relay.wait_idle(), timeout=2)

        assert sender.chunks == [b"c1", b"c2", b"c3"]
        times = [t for t, _ in sender.sent]
        for earlier, later in zip(times, times[1:]):
            assert later - earlier >= COOLDOWN - TOLERANCE
        assert relay.state is RelayState.IDLE
        assert relay.sent_count == 3

    @pytest.mark.asyncio
    async def test_one_chunk_in_flight(self):
        """A slow send is never overlapped by the next one."""
        sender = RecordingSender(delay=0.02)
        relay = AudioRelay(sender, cooldown=0)
        relay.connection_opened()

        for i in range(5):
            relay.push(bytes([i]))
        await asyncio.wait_for(relay.wait_idle(), timeout=2)

        assert sender.max_in_flight == 1
        assert sender.chunks == [bytes([i]) for i in range(5)]

    @pytest.mark.asyncio
    async def test_tick_while_busy_is_noop(self):
        sender = RecordingSender()
        relay = AudioRelay(sender, cooldown=COOLDOWN)
        relay.connection_opened()
        relay.push(b"c1")
        relay.push(b"c2")

        assert relay.is_busy
        assert relay.state is RelayState.DRAINING
        assert relay.tick() is False
        assert relay.pending == 1

        await asyncio.wait_for(relay.wait_idle(), timeout=2)
        assert sender.chunks == [b"c1", b"c2"]

    @pytest.mark.asyncio
    async def test_chunks_arriving_while_listening(self):
        sender = RecordingSender()
        relay = AudioRelay(sender, cooldown=0.01)
        relay.connection_opened()

        relay.push(b"c1")
        await asyncio.sleep(0.03)
        relay.push(b"c2")
        await asyncio.wait_for(relay.wait_idle(), timeout=2)

        assert sender.chunks == [b"c1", b"c2"]

    @pytest.mark.asyncio
    async def test_sync_sender_supported(self):
        sent = []
        relay = AudioRelay(sent.append, cooldown=0)
        relay.connection_opened()
        relay.push(b"c1")
        relay.push(b"c2")
        await asyncio.wait_for(relay.wait_idle(), timeout=2)

        assert sent == [b"c1", b"c2"]

    @pytest.mark.asyncio
    async def test_send_error_does_not_stall_queue(self):
        sent = []

        async def flaky(chunk):
            if chunk == b"bad":
                raise ConnectionError("socket closed")
            sent.append(chunk)

        relay = AudioRelay(flaky, cooldown=0)
        relay.connection_opened()
        for chunk in (b"c1", b"bad", b"c2"):
            relay.push(chunk)
        await asyncio.wait_for(relay.wait_idle(), timeout=2)

        assert sent == [b"c1", b"c2"]
        assert relay.sent_count == 2

    @pytest.mark.asyncio
    async def test_connection_lost_keeps_queue(self):
        sender = RecordingSender()
        relay = AudioRelay(sender, cooldown=COOLDOWN)
        relay.connection_opened()
        relay.push(b"c1")
        relay.push(b"c2")
        relay.connection_lost()

        await asyncio.sleep(COOLDOWN * 3)
        assert sender.chunks == [b"c1"]
        assert relay.pending == 1
        assert relay.state is RelayState.BUFFERING


class TestAudioRelayStop:
    """Tests for stopping the relay."""

    @pytest.mark.asyncio
    async def test_stop_discards_queue(self):
        sender = RecordingSender()
        relay = AudioRelay(sender, cooldown=COOLDOWN)
        relay.connection_opened()
        for chunk in (b"c1", b"c2", b"c3"):
            relay.push(chunk)
        await asyncio.sleep(0)

        relay.stop()
        await asyncio.wait_for(relay.wait_idle(), timeout=1)
        await asyncio.sleep(COOLDOWN * 2)

        assert sender.chunks == [b"c1"]
        assert relay.state is RelayState.STOPPED
        assert relay.pending == 0

    @pytest.mark.asyncio
    async def test_push_after_stop_is_dropped(self):
        sender = RecordingSender()
        relay = AudioRelay(sender, cooldown=0)
        relay.stop()
        relay.connection_opened()
        relay.push(b"c1")
        await asyncio.sleep(0.01)

        assert sender.sent == []
        assert relay.pending == 0
        assert relay.state is RelayState.STOPPED

    def test_stop_twice(self):
        relay = AudioRelay(RecordingSender(), cooldown=0)
        relay.stop()
        relay.stop()
        assert relay.state is RelayState.STOPPED
