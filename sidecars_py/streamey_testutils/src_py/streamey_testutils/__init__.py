from __future__ import annotations

from collections.abc import AsyncIterator
from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field

import anyio

from streamey.renderer import RenderStream


async def later[T](value: T, delay: float = 0) -> T:
    """Returns the value, but only after suspending (for at least one
    checkpoint).
    """
    await anyio.sleep(delay)
    return value


async def failing(exc: BaseException, delay: float = 0):
    await anyio.sleep(delay)
    raise exc


async def agen_of[T](*values: T, delay: float = 0) -> AsyncIterator[T]:
    for value in values:
        await anyio.sleep(delay)
        yield value


async def collect_chunks(stream: RenderStream) -> list[str]:
    return [chunk async for chunk in stream]


async def collect_until_error(
        stream: RenderStream
        ) -> tuple[list[str], Exception | None]:
    """Drains the stream, returning every chunk received before the
    stream either ended or failed, plus the failure (if any).
    """
    chunks: list[str] = []
    try:
        async for chunk in stream:
            chunks.append(chunk)
    except Exception as exc:
        return chunks, exc

    return chunks, None


@dataclass
class FakeInterpolation:
    value: object
    expression: str = ''
    conversion: str | None = None
    format_spec: str = ''


@dataclass
class FakeTString:
    """Quacks like a PEP 750 ``string.templatelib.Template``, so that
    t-string support can be tested on interpreters that predate them.
    """
    strings: tuple[str, ...]
    interpolations: tuple[FakeInterpolation, ...]

    def __iter__(self):
        for index, string in enumerate(self.strings):
            if string:
                yield string
            if index < len(self.interpolations):
                yield self.interpolations[index]


def fake_tstring(
        strings: Iterable[str],
        *interpolations: FakeInterpolation | object
        ) -> FakeTString:
    return FakeTString(
        strings=tuple(strings),
        interpolations=tuple(
            interpolation if isinstance(interpolation, FakeInterpolation)
            else FakeInterpolation(interpolation)
            for interpolation in interpolations))


@dataclass
class PullTracker:
    """An async iterable that records how far it's been pulled, and
    whether or not it was closed. Used for checking that renders don't
    run ahead of their consumers, and that they clean up after
    themselves.
    """
    values: tuple[object, ...]
    pulled: int = 0
    closed: bool = False
    finished: bool = False
    _iterator: AsyncIterator[object] | None = field(
        default=None, init=False, repr=False)

    def __aiter__(self) -> AsyncIterator[object]:
        self._iterator = self._generate()
        return self._iterator

    async def _generate(self) -> AsyncIterator[object]:
        try:
            for value in self.values:
                await anyio.sleep(0)
                self.pulled += 1
                yield value
            self.finished = True
        finally:
            self.closed = True
