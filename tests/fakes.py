"""In-memory stand-ins for the call platform and agent websocket used across the test suite."""

import asyncio
import json
from typing import AsyncIterator, List, Optional
from unittest.mock import AsyncMock, MagicMock

from websockets.exceptions import ConnectionClosedOK
from websockets.frames import Close

from voice_relay.audio.transcoder import Transcoder


class TaggingTranscoder(Transcoder):
    """Wraps each converted stream in T( ... ) so tests can see conversions."""

    def __init__(self):
        self.calls = []

    async def transcode(self, source, src, dst):
        self.calls.append((src, dst))
        data = b"".join([chunk async for chunk in source])
        yield b"T(" + data + b")"


class FakePlayer:
    """Records resources and lets tests finish or fail them."""

    def __init__(self):
        self.resources: List[AsyncIterator[bytes]] = []
        self.stop_calls = 0
        self._after = None

    def play(self, source, after):
        self.resources.append(source)
        self._after = after

    def stop(self):
        self.stop_calls += 1
        after, self._after = self._after, None
        if after is not None:
            after(None)

    def finish(self, error: Optional[Exception] = None):
        after, self._after = self._after, None
        after(error)

    async def drain(self, index: int) -> bytes:
        return b"".join([chunk async for chunk in self.resources[index]])


class FakeReceiver:
    def __init__(self):
        self.handlers = []
        self.streams = {}
        self.subscriptions = []

    def add_speaking_handler(self, handler):
        self.handlers.append(handler)

    def remove_speaking_handler(self, handler):
        self.handlers.remove(handler)

    def subscribe(self, participant_id, end):
        self.subscriptions.append((participant_id, end))
        return self.streams[participant_id]

    def speak(self, participant_id):
        for handler in list(self.handlers):
            handler(participant_id)


class FakeConnection:
    def __init__(self, channel_id="chan-1", guild_id="guild-1", self_id="bot"):
        self.channel_id = channel_id
        self.guild_id = guild_id
        self.self_id = self_id
        self.receiver = FakeReceiver()
        self.player = FakePlayer()
        self.destroyed = False
        self.disconnect_handler = None
        self.ready = True

    async def wait_until_ready(self, timeout):
        if not self.ready:
            raise asyncio.TimeoutError()

    def on_disconnect(self, handler):
        self.disconnect_handler = handler

    def destroy(self):
        self.destroyed = True


async def stream_of(*chunks: bytes) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk




def signed_url_response(status=200, body=None):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.json.return_value = body if body is not None else {"signed_url": "wss://agent.example/ws?token=abc"}
    return response


class ScriptedSocket:
    """Websocket stand-in that replays inbound frames, then closes."""

    def __init__(self, frames, close_error=None):
        self.frames = list(frames)
        self.sent = []
        self.closed = False
        self.close_error = close_error or ConnectionClosedOK(Close(1000, "bye"), Close(1000, "bye"), True)
        self.sent_before_frame = []

    async def recv(self):
        await asyncio.sleep(0)
        if not self.frames:
            raise self.close_error
        self.sent_before_frame.append(len(self.sent))
        return self.frames.pop(0)

    async def send(self, data):
        self.sent.append(json.loads(data))

    async def close(self):
        self.closed = True


class HangingSocket(ScriptedSocket):
    """Replays inbound frames, then blocks like an idle connection."""

    def __init__(self, frames):
        super().__init__(frames)
        self.close = AsyncMock()

    async def recv(self):
        if self.frames:
            return self.frames.pop(0)
        await asyncio.sleep(3600)
