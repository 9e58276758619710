from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from collections.abc import Callable
from functools import partial
from typing import Literal
from typing import overload

import anyio
from anyio.abc import ObjectReceiveStream

from streamey._resolver import DEFAULT_RENDER_CONFIG
from streamey._resolver import discard_unrendered
from streamey._resolver import invoke
from streamey._resolver import resolve_value
from streamey._types import NOT_GIVEN
from streamey._types import NotGiven
from streamey._types import TStringLike
from streamey._types import is_template_result
from streamey._types import is_tstring
from streamey.templates import Component
from streamey.templates import RenderConfig
from streamey.templates import TemplateResult

logger = logging.getLogger(__name__)


class RenderStream(ObjectReceiveStream[str]):
    """Render streams are the consumer-facing side of a render. They're
    pull-based: each call to ``receive()`` (or each step of an ``async
    for``) advances the render just far enough to produce one more
    chunk, and nothing is rendered ahead of the consumer.

    Streams are single-pass. Once exhausted, broken, or closed, they
    stay that way.

    If rendering fails partway through -- including by the pull itself
    being cancelled -- the failure is raised from the pull that reached
    it, in place of the end of the stream, and the stream is broken:
    every later pull raises ``anyio.BrokenResourceError``. Any chunks
    received before that are still valid -- but callers must not assume
    that receiving chunks means the render succeeded.
    """
    _chunks: AsyncGenerator[str]
    _on_abandon: Callable[[], None] | None
    _started: bool
    _closed: bool
    _finished: bool
    _broken: bool
    _chunk_count: int

    def __init__(
            self,
            chunks: AsyncGenerator[str],
            *,
            on_abandon: Callable[[], None] | None = None):
        self._chunks = chunks
        self._on_abandon = on_abandon
        self._started = False
        self._closed = False
        self._finished = False
        self._broken = False
        self._chunk_count = 0

    @property
    def finished(self) -> bool:
        """True once the stream has been exhausted or has broken."""
        return self._finished

    @property
    def broken(self) -> bool:
        """True once the render has failed (or been cancelled) partway
        through.
        """
        return self._broken

    @property
    def closed(self) -> bool:
        return self._closed

    async def receive(self) -> str:
        """Pulls the next chunk from the render.

        Raises ``anyio.EndOfStream`` once the render is complete,
        ``anyio.ClosedResourceError`` if the stream was closed,
        ``anyio.BrokenResourceError`` if an earlier pull failed, and
        otherwise whatever the render itself raised.
        """
        if self._closed:
            raise anyio.ClosedResourceError
        if self._broken:
            raise anyio.BrokenResourceError
        if self._finished:
            raise anyio.EndOfStream

        self._started = True
        try:
            chunk = await anext(self._chunks)

        except StopAsyncIteration:
            self._finished = True
            raise anyio.EndOfStream from None

        # Cancellation interrupts the render just as surely as an error
        # does; either way, the driver has already unwound and can't be
        # resumed.
        except BaseException as exc:
            self._finished = True
            self._broken = True
            logger.debug(
                'Render stream failed after %s chunks', self._chunk_count,
                exc_info=exc)
            raise

        self._chunk_count += 1
        return chunk

    async def aclose(self) -> None:
        """Closes the stream, stopping the render in its tracks. Any
        open iterators within the render are closed as well, and no
        further chunks will be produced.
        """
        if self._closed:
            return

        self._closed = True
        if not self._finished:
            logger.debug(
                'Render stream closed before exhaustion, after %s chunks',
                self._chunk_count)

        if not self._started and self._on_abandon is not None:
            self._on_abandon()

        await self._chunks.aclose()

    async def collect(self) -> str:
        """Drains all remaining chunks from the stream and joins them
        together.
        """
        to_join: list[str] = []
        async for chunk in self:
            to_join.append(chunk)

        return ''.join(to_join)


type Renderable = TemplateResult | TStringLike | Component


@overload
def render(
        renderable: TemplateResult | TStringLike,
        *,
        config: RenderConfig = DEFAULT_RENDER_CONFIG
        ) -> RenderStream: ...
@overload
def render[P](
        renderable: Component[P],
        props: P | NotGiven = NOT_GIVEN,
        *,
        config: RenderConfig = DEFAULT_RENDER_CONFIG
        ) -> RenderStream: ...
def render(
        renderable: Renderable,
        props: object | NotGiven = NOT_GIVEN,
        *,
        config: RenderConfig = DEFAULT_RENDER_CONFIG
        ) -> RenderStream:
    """Renders either a template or a component into a stream of text
    chunks. Components are passed ``props`` unmodified (or an empty
    dict, if omitted).

    Nothing is rendered -- and no component is called -- until the
    stream is pulled.
    """
    if is_template_result(renderable) or is_tstring(renderable):
        if props is not NOT_GIVEN:
            raise TypeError(
                'Props can only be passed when rendering a component!',
                renderable)

        return RenderStream(
            resolve_value(renderable, config),
            on_abandon=partial(discard_unrendered, renderable))

    if callable(renderable):
        return RenderStream(invoke(renderable, props, config))

    raise TypeError(
        'Can only render templates and components!', renderable)


async def render_to_str(
        renderable: Renderable,
        props: object | NotGiven = NOT_GIVEN,
        *,
        config: RenderConfig = DEFAULT_RENDER_CONFIG
        ) -> str:
    """Renders the template or component and joins all of the chunks
    together.
    """
    stream = render(  # type: ignore[call-overload]
        renderable, props, config=config)
    async with stream:
        return await stream.collect()


def render_sync(
        renderable: Renderable,
        props: object | NotGiven = NOT_GIVEN,
        *,
        config: RenderConfig = DEFAULT_RENDER_CONFIG,
        backend: Literal['asyncio', 'trio'] = 'asyncio'
        ) -> str:
    """Blocking version of ``render_to_str``, for use outside of an
    event loop. Note that any awaitables within the template must be
    compatible with the chosen backend.
    """
    return anyio.run(
        partial(render_to_str, renderable, props, config=config),
        backend=backend)
