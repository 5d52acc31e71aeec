"""
Text Streams - finite, forward-only, cancelable sequences of text fragments
Evony Tactician - Multi-Provider Support
"""

from typing import AsyncIterator, Callable, Optional


class TextStream:
    """
    Wraps a provider's async generator of text deltas.

    - Forward-only: iterating a second time raises RuntimeError.
    - Finite: ends when the provider finishes or the stream is closed.
    - Cancelable: breaking out of the loop, cancelling the consuming task or
      calling aclose() closes the underlying generator, which in turn closes
      the vendor's network stream.

    Usage:
        stream = provider.stream_chat(history, "ping")
        try:
            async for fragment in stream:
                ...
        finally:
            await stream.aclose()
    """

    def __init__(
        self,
        source: AsyncIterator[str],
        error_mapper: Optional[Callable[[Exception], Exception]] = None,
    ):
        self._source = source
        self._error_mapper = error_mapper
        self._started = False
        self._closed = False
        self._iterator = None

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[str]:
        if self._started:
            raise RuntimeError("TextStream is not restartable")
        if self._closed:
            raise RuntimeError("TextStream is closed")
        self._started = True
        self._iterator = self._iterate()
        return self._iterator

    async def _iterate(self) -> AsyncIterator[str]:
        try:
            async for fragment in self._source:
                if self._closed:
                    break
                if fragment:
                    yield fragment
        except Exception as e:
            if self._error_mapper is None:
                raise
            raise self._error_mapper(e) from e
        finally:
            await self._close_source()

    async def _close_source(self) -> None:
        self._closed = True
        aclose = getattr(self._source, "aclose", None)
        if aclose is not None:
            await aclose()

    async def aclose(self) -> None:
        """Close the stream; safe to call more than once."""
        if self._iterator is not None:
            await self._iterator.aclose()
        if not self._closed:
            await self._close_source()

    async def collect(self) -> str:
        """Drain the stream into a single string."""
        parts = []
        async for fragment in self:
            parts.append(fragment)
        return "".join(parts)
