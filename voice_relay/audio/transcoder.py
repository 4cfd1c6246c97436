"""
PCM sample-rate and channel conversion.

Conversion is delegated to libav's resampler through PyAV. The call side
speaks 48kHz stereo and the conversational agent speaks 16kHz mono, both as
16-bit signed little-endian PCM. Input chunks may split samples at arbitrary
byte offsets; the trailing partial sample is carried into the next chunk.
"""

import logging
from fractions import Fraction
from typing import AsyncIterator, List

import av
import numpy as np
from av.error import FFmpegError

from voice_relay.audio.streams import StreamTransform
from voice_relay.config.constants import LOGGER_NAME
from voice_relay.exceptions import TranscodeError
from voice_relay.models.audio import AudioFormat

logger = logging.getLogger(LOGGER_NAME)


def frames_to_bytes(frames: List[av.AudioFrame], fmt: AudioFormat) -> bytes:
    """Interleaved s16le bytes of packed frames, without plane padding."""
    return b"".join(
        bytes(frame.planes[0])[: frame.samples * fmt.bytes_per_sample] for frame in frames
    )


class _Conversion:
    """Resampler state for one continuous stream."""

    def __init__(self, src: AudioFormat, dst: AudioFormat):
        self.src = src
        self.dst = dst
        self._carry = b""
        self._pts = 0
        try:
            self._resampler = av.AudioResampler(format="s16", layout=dst.layout, rate=dst.sample_rate)
        except (FFmpegError, ValueError) as e:
            raise TranscodeError(f"Could not create resampler {src} -> {dst}: {e}") from e

    def feed(self, chunk: bytes) -> bytes:
        data = self._carry + chunk
        usable = len(data) - len(data) % self.src.bytes_per_sample
        self._carry = data[usable:]
        if not usable:
            return b""

        samples = np.frombuffer(data[:usable], dtype=np.int16).reshape(1, -1)
        frame = av.AudioFrame.from_ndarray(samples, format="s16", layout=self.src.layout)
        frame.sample_rate = self.src.sample_rate
        frame.time_base = Fraction(1, self.src.sample_rate)
        frame.pts = self._pts
        self._pts += frame.samples
        return self._resample(frame)

    def flush(self) -> bytes:
        if self._carry:
            logger.debug(f"Discarding {len(self._carry)} bytes of incomplete sample at end of stream")
            self._carry = b""
        return self._resample(None)

    def _resample(self, frame) -> bytes:
        try:
            frames = self._resampler.resample(frame)
        except (FFmpegError, ValueError) as e:
            raise TranscodeError(f"Resampling {self.src} -> {self.dst} failed: {e}") from e
        return frames_to_bytes(frames, self.dst)


class Transcoder:
    """
    Streaming converter between two PCM formats.

    The instance itself is stateless; every transcode() call gets its own
    resampler, so one Transcoder can be shared by the playback queue and any
    number of capture pipelines.
    """

    async def transcode(
        self, source: AsyncIterator[bytes], src: AudioFormat, dst: AudioFormat
    ) -> AsyncIterator[bytes]:
        """
        Convert a byte stream from src to dst format.

        Args:
            source: s16le PCM in src format
            src: Input format
            dst: Output format

        Yields:
            s16le PCM in dst format, in input order

        Raises:
            TranscodeError: if the resampler cannot be created or fails mid-stream
        """
        if src == dst:
            async for chunk in source:
                yield chunk
            return

        conversion = _Conversion(src, dst)
        async for chunk in source:
            out = conversion.feed(chunk)
            if out:
                yield out
        tail = conversion.flush()
        if tail:
            yield tail

    def stage(self, src: AudioFormat, dst: AudioFormat) -> StreamTransform:
        """Bind the formats, producing a stage usable with compose()."""

        def transform(source: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
            return self.transcode(source, src, dst)

        return transform
