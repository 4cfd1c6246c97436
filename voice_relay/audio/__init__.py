"""
Audio module for format conversion, playback and capture.

Key components:
- streams: StreamTransform type and compose() for chaining byte-stream stages.
- transcoder: Transcoder converting s16le PCM between the call format
  (48kHz stereo) and the agent format (16kHz mono) with PyAV.
- opus: OpusDecoder turning call opus packets into 48kHz stereo PCM.
- playback: PlaybackQueue batching agent audio into ordered play cycles and
  flushing on interruption.
- capture: CapturePipeline for one speaking turn and CaptureManager that
  starts one per speaking participant.

Usage examples:
```python
from voice_relay.audio import Transcoder, OpusDecoder, compose
from voice_relay.models.audio import CALL_FORMAT, REMOTE_FORMAT

transcoder = Transcoder()
to_agent = compose(OpusDecoder().decode, transcoder.stage(CALL_FORMAT, REMOTE_FORMAT))
async for pcm in to_agent(opus_packets):
    ...
```
"""

from voice_relay.audio.capture import CaptureManager, CapturePipeline
from voice_relay.audio.opus import OpusDecoder
from voice_relay.audio.playback import PlaybackQueue
from voice_relay.audio.streams import StreamTransform, compose, iterate_chunks
from voice_relay.audio.transcoder import Transcoder

__all__ = [
    "CaptureManager",
    "CapturePipeline",
    "OpusDecoder",
    "PlaybackQueue",
    "StreamTransform",
    "Transcoder",
    "compose",
    "iterate_chunks",
]
