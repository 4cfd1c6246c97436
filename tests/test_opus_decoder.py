"""
Tests for the opus decoding stage.

libav is replaced by mocks here; the goal is the stage contract (ordering,
empty packets, error mapping), not the codec itself.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from voice_relay.audio.opus import OpusDecoder
from voice_relay.audio.streams import iterate_chunks
from voice_relay.exceptions import TranscodeError


def fake_frame(payload: bytes):
    # 48kHz stereo s16: 4 bytes per sample
    return SimpleNamespace(samples=len(payload) // 4, planes=[payload])


async def collect(stream):
    return [chunk async for chunk in stream]


@pytest.fixture
def fake_av():
    """Stand-in for the av module: packets are repeated 4x by the 'codec'."""
    mock = MagicMock()
    mock.Packet.side_effect = lambda data: data
    codec = mock.CodecContext.create.return_value
    codec.decode.side_effect = lambda packet: [packet * 4]
    resampler = mock.AudioResampler.return_value
    resampler.resample.side_effect = lambda frame: [] if frame is None else [fake_frame(frame)]
    return mock


@pytest.mark.asyncio
async def test_decode_yields_pcm_per_packet_in_order(fake_av):
    with patch("voice_relay.audio.opus.av", fake_av):
        out = await collect(OpusDecoder().decode(iterate_chunks([b"a", b"", b"b"])))

    assert out == [b"aaaa", b"bbbb"]
    assert fake_av.CodecContext.create.return_value.decode.call_count == 2
    fake_av.CodecContext.create.assert_called_once_with("opus", "r")


@pytest.mark.asyncio
async def test_decoder_open_failure_raises_transcode_error(fake_av):
    fake_av.CodecContext.create.side_effect = ValueError("opus not built")
    with patch("voice_relay.audio.opus.av", fake_av):
        with pytest.raises(TranscodeError, match="Could not open opus decoder"):
            await collect(OpusDecoder().decode(iterate_chunks([b"a"])))


@pytest.mark.asyncio
async def test_corrupt_packet_raises_transcode_error(fake_av):
    fake_av.CodecContext.create.return_value.decode.side_effect = ValueError("invalid data")
    with patch("voice_relay.audio.opus.av", fake_av):
        with pytest.raises(TranscodeError, match="Opus decode failed"):
            await collect(OpusDecoder().decode(iterate_chunks([b"junk"])))
