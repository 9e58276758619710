from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncGenerator
from collections.abc import AsyncIterator
from collections.abc import Iterator
from collections.abc import Sequence
from dataclasses import KW_ONLY
from dataclasses import dataclass
from dataclasses import field

import anyio
import anyio.lowlevel

from streamey._components import check_component_element
from streamey._components import settle_component_output
from streamey._types import NOT_GIVEN
from streamey._types import NotGiven
from streamey._types import SlotFormat
from streamey._types import Symbol
from streamey._types import ValueFlavor
from streamey._types import classify_value
from streamey._types import is_template_result
from streamey._types import is_tstring
from streamey.exceptions import InvalidSlotValue
from streamey.templates import Component
from streamey.templates import ComponentCall
from streamey.templates import RenderConfig
from streamey.templates import coerce_template

logger = logging.getLogger(__name__)

DEFAULT_RENDER_CONFIG = RenderConfig()


@dataclass(slots=True)
class _TemplateFrame:
    """Template frames alternate between fragments (even part indices)
    and slots (odd part indices), so a template with N slots has 2N+1
    parts.
    """
    fragments: Sequence[str]
    slots: Sequence[object]
    slot_formats: Sequence[SlotFormat | None]

    _: KW_ONLY
    part_count: int
    part_index: int = field(default=0, init=False)

    @property
    def exhausted(self) -> bool:
        return self.part_index >= self.part_count

    def discard_remaining(self) -> None:
        """Closes any coroutines sitting in slots we never reached, so
        that abandoning a render doesn't leave a trail of never-awaited
        coroutine warnings behind it.
        """
        for slot_index in range(self.part_index // 2, len(self.slots)):
            slot_value = self.slots[slot_index]
            if inspect.iscoroutine(slot_value):
                slot_value.close()


@dataclass(slots=True)
class _IterableFrame:
    iterator: Iterator[object]
    # Strict frames come from component output, and every element must be
    # a template.
    strict: bool


@dataclass(slots=True)
class _AsyncIterableFrame:
    iterator: AsyncIterator[object]
    strict: bool


type _RenderStackFrame = _TemplateFrame | _IterableFrame | _AsyncIterableFrame


def _make_template_frame(value: object) -> _TemplateFrame:
    template = coerce_template(value)
    fragments = template.fragments
    return _TemplateFrame(
        fragments=fragments,
        slots=template.slots,
        slot_formats=template.slot_formats,
        part_count=2 * len(fragments) - 1)


# Yes, this is a larger function than it should be. But function calls in
# python are slow, and every single chunk passes through here.
async def render_driver(  # noqa: C901, PLR0912, PLR0915
        root: object,
        config: RenderConfig = DEFAULT_RENDER_CONFIG,
        ) -> AsyncGenerator[str]:
    """This is the shared driver behind every render. It walks the
    value tree depth-first, left to right, yielding text chunks as they
    become available. Rather than recursing, it maintains an explicit
    render stack, so nesting depth is only limited by memory.

    Nothing is validated in advance; invalid values raise from the pull
    that reaches them. Any chunks yielded before that point stay valid.
    """
    suppress_empty = config.suppress_empty_chunks
    checkpoint_interval = config.checkpoint_interval
    chunks_since_suspension = 0

    # The root is treated like the only element of an iterable, which lets
    # the main loop stay completely uniform.
    render_stack: list[_RenderStackFrame] = [
        _IterableFrame(iter((root,)), strict=False)]

    try:
        while render_stack:
            if (
                checkpoint_interval is not None
                and chunks_since_suspension >= checkpoint_interval
            ):
                await anyio.lowlevel.checkpoint()
                chunks_since_suspension = 0

            render_frame = render_stack[-1]
            slot_format: SlotFormat | None = None

            # First up: get the next value from the current frame, or pop the
            # frame if it's exhausted.
            if isinstance(render_frame, _TemplateFrame):
                if render_frame.exhausted:
                    render_stack.pop()
                    continue

                part_index = render_frame.part_index
                render_frame.part_index += 1

                if not part_index % 2:
                    fragment = render_frame.fragments[part_index // 2]
                    if fragment or not suppress_empty:
                        yield fragment
                        chunks_since_suspension += 1
                    continue

                slot_index = part_index // 2
                value = render_frame.slots[slot_index]
                slot_format = render_frame.slot_formats[slot_index]
                strict = False

            elif isinstance(render_frame, _IterableFrame):
                try:
                    value = next(render_frame.iterator)
                except StopIteration:
                    render_stack.pop()
                    continue
                strict = render_frame.strict

            elif isinstance(render_frame, _AsyncIterableFrame):
                try:
                    value = await anext(render_frame.iterator)
                except StopAsyncIteration:
                    render_stack.pop()
                    continue
                finally:
                    chunks_since_suspension = 0
                strict = render_frame.strict

            else:
                raise TypeError(
                    'Streamey internal error: unknown render stack frame!',
                    render_frame)

            # Now we have a value; classify it and dispatch.
            if strict:
                flavor = check_component_element(value)
            else:
                flavor = classify_value(value)

            while flavor is ValueFlavor.DEFERRED:
                value = await value  # type: ignore[misc]
                chunks_since_suspension = 0
                flavor = classify_value(value)

            if flavor is ValueFlavor.ABSENT:
                continue

            elif flavor is ValueFlavor.PRIMITIVE:
                chunk = stringify_primitive(value, slot_format)
                if chunk or not suppress_empty:
                    yield chunk
                    chunks_since_suspension += 1

            elif flavor is ValueFlavor.TEMPLATE:
                render_stack.append(_make_template_frame(value))

            elif flavor is ValueFlavor.COMPONENT:
                output_flavor, output = await settle_component_output(
                    value)  # type: ignore[arg-type]
                chunks_since_suspension = 0

                if output_flavor is ValueFlavor.TEMPLATE:
                    render_stack.append(_make_template_frame(output))
                elif output_flavor is ValueFlavor.ITERABLE:
                    render_stack.append(_IterableFrame(
                        iter(output),  # type: ignore[call-overload]
                        strict=True))
                elif output_flavor is ValueFlavor.ASYNC_ITERABLE:
                    render_stack.append(_AsyncIterableFrame(
                        aiter(output),  # type: ignore[arg-type]
                        strict=True))
                # Absent output renders nothing; settle_component_output has
                # already rejected everything else.

            elif flavor is ValueFlavor.ITERABLE:
                render_stack.append(_IterableFrame(
                    iter(value),  # type: ignore[call-overload]
                    strict=False))

            elif flavor is ValueFlavor.ASYNC_ITERABLE:
                render_stack.append(_AsyncIterableFrame(
                    aiter(value),  # type: ignore[arg-type]
                    strict=False))

            else:
                raise InvalidSlotValue(value)

    # Normal completion always leaves the stack empty, so anything that ends
    # up here (a failure, a cancellation, or the GeneratorExit from being
    # closed early) needs to release everything still open, innermost first.
    except BaseException as exc:
        with anyio.CancelScope(shield=True):
            close_errors = await _unwind_render_stack(render_stack)

        for close_error in close_errors:
            exc.add_note(
                'Additionally, an error was raised while closing an '
                + f'iterator within the render: {close_error!r}')
        raise


async def _unwind_render_stack(
        render_stack: list[_RenderStackFrame]
        ) -> list[Exception]:
    """Closes every frame on the render stack, innermost first. A frame
    that fails to close doesn't stop the rest from being closed; its
    error is logged and returned instead, so that whatever ended the
    render remains the exception that propagates.
    """
    close_errors: list[Exception] = []
    while render_stack:
        render_frame = render_stack.pop()
        try:
            if isinstance(render_frame, _TemplateFrame):
                render_frame.discard_remaining()

            elif isinstance(render_frame, _IterableFrame):
                close = getattr(render_frame.iterator, 'close', None)
                if close is not None:
                    close()

            elif isinstance(render_frame, _AsyncIterableFrame):
                aclose = getattr(render_frame.iterator, 'aclose', None)
                if aclose is not None:
                    await aclose()

        except Exception as exc:
            logger.warning(
                'Failed to close render stack frame during cleanup',
                exc_info=exc)
            close_errors.append(exc)

    return close_errors


def discard_unrendered(root: object) -> None:
    """Releases a render root that is being abandoned before the render
    ever started. In that case the driver never ran, so it never got
    the chance to close any coroutines sitting in the root's slots (or
    the root itself, if it was a coroutine).
    """
    if inspect.iscoroutine(root):
        root.close()
    elif is_template_result(root) or is_tstring(root):
        _make_template_frame(root).discard_remaining()


def stringify_primitive(
        value: object,
        slot_format: SlotFormat | None = None
        ) -> str:
    """Converts a primitive into its canonical text. Booleans are
    lowercase (``true``/``false``), symbols render as
    ``Symbol(<description>)``, and numbers use their standard decimal
    text.

    If the value came from a t-string interpolation with a conversion
    or format spec, those get applied here. Conversions are applied to
    the original value, exactly as python would; format specs are
    applied to the canonical text of booleans and symbols, and to the
    value itself otherwise.
    """
    # hot path go fast
    if slot_format is None:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, Symbol):
            return str(value)
        return format(value)

    conversion = slot_format.conversion
    if conversion == 'r':
        value = repr(value)
    elif conversion == 's':
        value = str(value)
    elif conversion == 'a':
        value = ascii(value)
    elif isinstance(value, bool):
        value = 'true' if value else 'false'
    elif isinstance(value, Symbol):
        value = str(value)

    return format(value, slot_format.format_spec)


def resolve_value(
        value: object,
        config: RenderConfig = DEFAULT_RENDER_CONFIG
        ) -> AsyncGenerator[str]:
    """Expands any single value into its chunks, using the permissive
    slot contract. This is exactly what happens to a value placed within
    a template slot.
    """
    return render_driver(value, config)


def invoke(
        component: Component,
        props: object | NotGiven = NOT_GIVEN,
        config: RenderConfig = DEFAULT_RENDER_CONFIG
        ) -> AsyncGenerator[str]:
    """Expands a component into its chunks, using the strict component
    contract. The component isn't called until the first chunk is
    pulled. If props are omitted, the component is passed an empty
    dict; anything else (including None) is passed through unmodified.
    """
    if props is NOT_GIVEN:
        props = {}

    return render_driver(ComponentCall(component, props), config)
