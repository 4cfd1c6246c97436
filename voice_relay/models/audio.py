"""
PCM format descriptors.

Every buffer in the relay is 16-bit signed little-endian PCM. A format is
therefore fully described by its sample rate and channel count.
"""

from pydantic import BaseModel, ConfigDict, Field

from voice_relay.config.constants import (
    CALL_CHANNELS,
    CALL_SAMPLE_RATE,
    REMOTE_CHANNELS,
    REMOTE_SAMPLE_RATE,
    SAMPLE_WIDTH,
)


class AudioFormat(BaseModel):
    """Sample rate and channel count of a s16le PCM stream."""

    model_config = ConfigDict(frozen=True)

    sample_rate: int = Field(..., gt=0)
    channels: int = Field(..., ge=1, le=2)

    @property
    def layout(self) -> str:
        """Channel layout name understood by libav."""
        return "mono" if self.channels == 1 else "stereo"

    @property
    def bytes_per_sample(self) -> int:
        """Bytes for one sample across all channels."""
        return SAMPLE_WIDTH * self.channels

    def duration_ms(self, num_bytes: int) -> float:
        """Playback duration of num_bytes of audio in this format."""
        return num_bytes / self.bytes_per_sample / self.sample_rate * 1000

    def __str__(self) -> str:
        return f"{self.sample_rate}Hz/{self.layout}"


# Native format of the voice call (decoded opus)
CALL_FORMAT = AudioFormat(sample_rate=CALL_SAMPLE_RATE, channels=CALL_CHANNELS)

# Native format of the conversational AI endpoint
REMOTE_FORMAT = AudioFormat(sample_rate=REMOTE_SAMPLE_RATE, channels=REMOTE_CHANNELS)
