"""
Capture of participant speech from the call.

When a participant starts speaking, their audio is subscribed until a fixed
stretch of silence ends the turn. Packets run through decode and transcode
stages, the produced PCM is accumulated, and the whole turn is sent upstream
once. Each participant has at most one turn in flight.
"""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional

from voice_relay.audio.streams import StreamTransform
from voice_relay.config.constants import DEFAULT_SILENCE_DURATION_MS, LOGGER_NAME
from voice_relay.exceptions import TranscodeError
from voice_relay.models.audio import REMOTE_FORMAT
from voice_relay.platform import AudioReceiver, EndCondition

logger = logging.getLogger(LOGGER_NAME)

AudioSink = Callable[[bytes], Awaitable[bool]]


class CapturePipeline:
    """One speaking turn of one participant."""

    def __init__(
        self,
        participant_id: str,
        stream: AsyncIterator[bytes],
        transform: StreamTransform,
        sink: AudioSink,
    ):
        self.participant_id = participant_id
        self._stream = stream
        self._transform = transform
        self._sink = sink

    async def run(self) -> Optional[bytes]:
        """
        Consume the turn and emit it.

        Returns:
            The emitted utterance, or None when nothing was sent
        """
        chunks: List[bytes] = []
        try:
            async for chunk in self._transform(self._stream):
                chunks.append(chunk)
        except TranscodeError as e:
            logger.error(f"Dropping utterance from {self.participant_id}: {e}")
            return None

        if not chunks:
            logger.debug(f"Turn from {self.participant_id} produced no audio")
            return None

        audio = b"".join(chunks)
        logger.info(
            f"Sending {len(audio)} bytes ({REMOTE_FORMAT.duration_ms(len(audio)):.0f} ms) "
            f"from {self.participant_id}"
        )
        await self._sink(audio)
        return audio


class CaptureManager:
    """
    Starts a CapturePipeline for every participant that begins speaking.

    The bot's own participant id is filtered out before subscribing so the
    agent never hears its own voice.
    """

    def __init__(
        self,
        receiver: AudioReceiver,
        self_id: str,
        sink: AudioSink,
        transform: StreamTransform,
        silence_duration_ms: int = DEFAULT_SILENCE_DURATION_MS,
    ):
        self.receiver = receiver
        self.self_id = self_id
        self._sink = sink
        self._transform = transform
        self._end = EndCondition.after_silence(silence_duration_ms)
        self._turns: Dict[str, asyncio.Task] = {}
        self._listening = False

    @property
    def active_participants(self) -> List[str]:
        return list(self._turns)

    def start(self) -> None:
        """Register for speaking events on the call."""
        if self._listening:
            return
        self.receiver.add_speaking_handler(self.on_speaking_start)
        self._listening = True

    def on_speaking_start(self, participant_id: str) -> None:
        if participant_id == self.self_id:
            return
        if participant_id in self._turns:
            # A new turn that starts before the previous one finished sending is not captured
            logger.debug(f"Participant {participant_id} already has a turn in progress, ignoring speaking event")
            return

        logger.info(f"Participant {participant_id} speaking...")
        stream = self.receiver.subscribe(participant_id, self._end)
        pipeline = CapturePipeline(participant_id, stream, self._transform, self._sink)
        task = asyncio.create_task(pipeline.run())
        self._turns[participant_id] = task
        task.add_done_callback(lambda t: self._on_turn_done(participant_id, t))

    def _on_turn_done(self, participant_id: str, task: asyncio.Task) -> None:
        if self._turns.get(participant_id) is task:
            del self._turns[participant_id]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Capture for {participant_id} failed: {error}", exc_info=error)

    async def close(self) -> None:
        """Unregister from the call and cancel every turn in flight."""
        if self._listening:
            self.receiver.remove_speaking_handler(self.on_speaking_start)
            self._listening = False

        tasks = list(self._turns.values())
        self._turns.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
