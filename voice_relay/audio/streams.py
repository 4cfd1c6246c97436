"""
Composable byte-stream stages.

A stage takes an async iterator of bytes and returns another one. Stages are
written as async generators, so end-of-stream propagates when the upstream
generator is exhausted and errors propagate as exceptions raised out of the
downstream ``async for``.
"""

from typing import AsyncIterator, Callable, Iterable

StreamTransform = Callable[[AsyncIterator[bytes]], AsyncIterator[bytes]]


def compose(*stages: StreamTransform) -> StreamTransform:
    """Chain stages left to right: compose(a, b)(src) == b(a(src))."""

    def pipeline(source: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        stream = source
        for stage in stages:
            stream = stage(stream)
        return stream

    return pipeline


async def iterate_chunks(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    """Expose in-memory buffers as an async byte stream."""
    for chunk in chunks:
        yield chunk
