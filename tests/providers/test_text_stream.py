"""
Tests for TextStream: ordered, finite, non-restartable, cancelable.
"""

import pytest

from ai_providers import TextStream


class Source:
    """Async generator wrapper that records whether it was closed."""

    def __init__(self, fragments, error=None):
        self.fragments = fragments
        self.error = error
        self.closed = False
        self.produced = 0

    async def gen(self):
        try:
            for fragment in self.fragments:
                self.produced += 1
                yield fragment
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


@pytest.mark.asyncio
async def test_fragments_arrive_in_order():
    stream = TextStream(Source(["p", "o", "ng"]).gen())

    received = [fragment async for fragment in stream]

    assert received == ["p", "o", "ng"]
    assert stream.closed


@pytest.mark.asyncio
async def test_empty_fragments_are_skipped():
    stream = TextStream(Source(["a", "", "b"]).gen())
    assert await stream.collect() == "ab"


@pytest.mark.asyncio
async def test_not_restartable():
    stream = TextStream(Source(["a"]).gen())
    await stream.collect()

    with pytest.raises(RuntimeError):
        async for _ in stream:
            pass


@pytest.mark.asyncio
async def test_closed_stream_cannot_be_iterated():
    stream = TextStream(Source(["a"]).gen())
    await stream.aclose()

    with pytest.raises(RuntimeError):
        stream.__aiter__()


@pytest.mark.asyncio
async def test_early_close_releases_source():
    source = Source(["a", "b", "c", "d"])
    stream = TextStream(source.gen())

    async for fragment in stream:
        if fragment == "b":
            break
    await stream.aclose()

    assert source.closed
    assert source.produced == 2


@pytest.mark.asyncio
async def test_aclose_is_idempotent():
    source = Source(["a", "b"])
    stream = TextStream(source.gen())
    async for _ in stream:
        break

    await stream.aclose()
    await stream.aclose()

    assert source.closed
    assert stream.closed


@pytest.mark.asyncio
async def test_errors_are_mapped():
    stream = TextStream(
        Source(["a"], error=ValueError("boom")).gen(),
        error_mapper=lambda e: KeyError(str(e)),
    )

    with pytest.raises(KeyError):
        await stream.collect()


@pytest.mark.asyncio
async def test_errors_propagate_without_mapper():
    stream = TextStream(Source([], error=ValueError("boom")).gen())

    with pytest.raises(ValueError):
        await stream.collect()
