"""
Ordered playback of synthesized speech into the call.

Audio chunks from the agent arrive faster than they play. The queue batches
everything that arrived while the previous cycle was playing into one
resource, so the player sees a few long resources rather than hundreds of
short ones, and playback stays strictly in arrival order.

All methods must be called from the event loop that owns the session.
"""

import asyncio
import logging
from typing import List, Optional

from voice_relay.audio.streams import iterate_chunks
from voice_relay.audio.transcoder import Transcoder
from voice_relay.config.constants import LOGGER_NAME
from voice_relay.models.audio import CALL_FORMAT, REMOTE_FORMAT, AudioFormat
from voice_relay.platform import AudioPlayer

logger = logging.getLogger(LOGGER_NAME)


class PlaybackQueue:
    """
    FIFO of remote-native PCM buffers feeding one call player.

    Each play cycle takes the whole pending list, concatenates it, transcodes
    it to the call format and hands it to the player as a single resource.
    When the player reports the resource finished, the next cycle starts if
    anything arrived meanwhile.

    From idle, the first cycle starts on the next event loop iteration, so
    chunks enqueued back to back in one tick play as a single resource.
    """

    def __init__(
        self,
        player: AudioPlayer,
        transcoder: Optional[Transcoder] = None,
        source_format: AudioFormat = REMOTE_FORMAT,
        output_format: AudioFormat = CALL_FORMAT,
    ):
        self.player = player
        self.transcoder = transcoder or Transcoder()
        self.source_format = source_format
        self.output_format = output_format
        self._pending: List[bytes] = []
        # True from the moment a cycle is scheduled until the player goes idle
        self._playing = False
        self._scheduled: Optional[asyncio.Handle] = None
        # Incremented on every new cycle and every reset; completion callbacks
        # from an older cycle are ignored.
        self._cycle = 0
        self.cycles_started = 0

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def pending_bytes(self) -> int:
        return sum(len(buffer) for buffer in self._pending)

    def enqueue(self, pcm: bytes) -> None:
        """
        Append a buffer and schedule a play cycle if the player is idle.

        Args:
            pcm: s16le PCM in the source format
        """
        if not pcm:
            return
        self._pending.append(pcm)
        if not self._playing:
            self._playing = True
            self._scheduled = asyncio.get_running_loop().call_soon(self._run_scheduled)

    def flush(self) -> None:
        """Stop the player and drop everything queued (interruption path)."""
        dropped = self.pending_bytes
        self._reset()
        logger.info(f"Playback interrupted, dropped {dropped} queued bytes")

    def stop(self) -> None:
        """Stop the player and drop everything queued (session shutdown)."""
        self._reset()
        logger.debug("Playback stopped")

    def _reset(self) -> None:
        self._cycle += 1
        if self._scheduled is not None:
            self._scheduled.cancel()
            self._scheduled = None
        self._pending.clear()
        self._playing = False
        self.player.stop()

    def _run_scheduled(self) -> None:
        self._scheduled = None
        self._start_cycle()

    def _start_cycle(self) -> None:
        if not self._pending:
            self._playing = False
            return

        buffer = b"".join(self._pending)
        self._pending.clear()
        self._playing = True
        self._cycle += 1
        self.cycles_started += 1
        cycle = self._cycle

        logger.debug(
            f"Play cycle {cycle}: {len(buffer)} bytes "
            f"({self.source_format.duration_ms(len(buffer)):.0f} ms)"
        )
        resource = self.transcoder.transcode(iterate_chunks([buffer]), self.source_format, self.output_format)
        try:
            self.player.play(resource, after=lambda error: self._on_cycle_end(cycle, error))
        except Exception as e:
            logger.error(f"Player rejected playback resource: {e}", exc_info=True)
            self._playing = False

    def _on_cycle_end(self, cycle: int, error: Optional[Exception]) -> None:
        if cycle != self._cycle:
            return
        if error is not None:
            logger.error(f"Playback cycle {cycle} failed, abandoning it: {error}")
        self._playing = False
        self._start_cycle()
