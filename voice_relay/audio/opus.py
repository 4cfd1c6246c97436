"""
Opus decoding for participant audio.

The call transport delivers one opus packet per 20 ms frame. Packets are
decoded with libav's opus decoder and normalized to interleaved s16le at
48kHz stereo, the call-native PCM format.
"""

import logging
from typing import AsyncIterator

import av
from av.error import FFmpegError

from voice_relay.audio.transcoder import frames_to_bytes
from voice_relay.config.constants import LOGGER_NAME
from voice_relay.exceptions import TranscodeError
from voice_relay.models.audio import CALL_FORMAT, AudioFormat

logger = logging.getLogger(LOGGER_NAME)


class OpusDecoder:
    """Decode a stream of opus packets to PCM."""

    def __init__(self, fmt: AudioFormat = CALL_FORMAT):
        self.fmt = fmt

    def _create_context(self):
        try:
            context = av.CodecContext.create("opus", "r")
            context.sample_rate = self.fmt.sample_rate
            context.layout = self.fmt.layout
            resampler = av.AudioResampler(format="s16", layout=self.fmt.layout, rate=self.fmt.sample_rate)
        except (FFmpegError, ValueError) as e:
            raise TranscodeError(f"Could not open opus decoder: {e}") from e
        return context, resampler

    async def decode(self, packets: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        """
        Decode opus packets.

        Args:
            packets: Raw opus packets in arrival order

        Yields:
            s16le PCM in the decoder's format

        Raises:
            TranscodeError: if the decoder cannot be opened or a packet is corrupt
        """
        context, resampler = self._create_context()
        async for packet in packets:
            if not packet:
                continue
            try:
                frames = context.decode(av.Packet(packet))
                pcm = b"".join(frames_to_bytes(resampler.resample(frame), self.fmt) for frame in frames)
            except (FFmpegError, ValueError) as e:
                raise TranscodeError(f"Opus decode failed on {len(packet)} byte packet: {e}") from e
            if pcm:
                yield pcm

        try:
            tail = frames_to_bytes(resampler.resample(None), self.fmt)
        except (FFmpegError, ValueError) as e:
            raise TranscodeError(f"Opus decoder flush failed: {e}") from e
        if tail:
            yield tail
