from __future__ import annotations

import typing
from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from typing import Annotated
from typing import Any
from typing import ClassVar
from typing import overload

from docnote import Note

from streamey._cache import DEFAULT_TEMPLATE_CACHE
from streamey._cache import TemplateCache
from streamey._types import NOT_GIVEN
from streamey._types import SlotFormat
from streamey._types import TStringLike
from streamey._types import is_template_result
from streamey._types import is_tstring

if typing.TYPE_CHECKING:
    from collections.abc import AsyncIterable
    from collections.abc import Awaitable
    from collections.abc import Iterable

    from streamey._types import Absent
    from streamey._types import NotGiven

type ComponentOutput = (
    None
    | Absent
    | TemplateResult
    | Awaitable[ComponentOutput]
    | Iterable[TemplateResult]
    | AsyncIterable[TemplateResult])
type Component[P] = Callable[[P], ComponentOutput]

DEFAULT_CHECKPOINT_INTERVAL = 64


@dataclass(frozen=True, slots=True, kw_only=True)
class RenderConfig:
    """Render configs control how chunks are produced, but never what
    the concatenated result is.
    """
    suppress_empty_chunks: Annotated[
            bool,
            Note('''Empty fragments and empty stringified primitives are
                skipped entirely, instead of being emitted as zero-length
                chunks. This only ever changes chunk boundaries, never the
                concatenated result.''')
        ] = True
    checkpoint_interval: Annotated[
            int | None,
            Note('''Long runs of chunks that never suspend (ie, big
                synchronous templates) would otherwise starve the event
                loop, and couldn't be cancelled partway through. After
                this many chunks without suspending, the render inserts an
                ``anyio.lowlevel.checkpoint()``. None disables checkpoints
                entirely.''')
        ] = DEFAULT_CHECKPOINT_INTERVAL

    def __post_init__(self):
        if self.checkpoint_interval is not None and (
            self.checkpoint_interval < 1
        ):
            raise ValueError(
                'Checkpoint interval must be positive (or None)!',
                self.checkpoint_interval)


@dataclass(frozen=True, slots=True)
class TemplateShape:
    """The shape of a template is everything about it that is fixed by
    the literal itself: the static fragments, and (for t-strings) any
    conversions or format specs on the interpolations. Shapes are shared
    between every evaluation of the same literal, via the template
    cache.
    """
    fragments: tuple[str, ...]
    slot_formats: tuple[SlotFormat | None, ...]

    @property
    def slot_count(self) -> int:
        return len(self.slot_formats)

    def bind(self, slots: tuple[object, ...]) -> TemplateResult:
        """Creates a new template result using this shape and the
        passed slot values.
        """
        if len(slots) != len(self.slot_formats):
            raise ValueError(
                'Template shape must have exactly one more fragment than '
                + 'slot values!', len(self.fragments), len(slots))

        return TemplateResult(shape=self, slots=slots)


@dataclass(frozen=True, slots=True)
class TemplateResult:
    """A ``TemplateResult`` is what you get back from evaluating a
    template literal: a shape, plus the slot values for this particular
    evaluation. They're immutable, and nothing about them is validated
    until they're rendered.
    """
    _streamey_template: ClassVar[bool] = True

    shape: TemplateShape
    slots: tuple[object, ...]

    @property
    def fragments(self) -> tuple[str, ...]:
        return self.shape.fragments

    @property
    def slot_formats(self) -> tuple[SlotFormat | None, ...]:
        return self.shape.slot_formats


@dataclass(frozen=True, slots=True)
class ComponentCall[P]:
    """Wraps up a component and its props so that the component can be
    placed within a template slot. The component isn't called until the
    render stream actually reaches the slot, and its output is held to
    the (stricter) component contract rather than the slot contract.

    Note that a bare callable placed directly into a slot is invalid;
    this is the only way to nest a component.
    """
    _streamey_component: ClassVar[bool] = True

    component: Component[P]
    props: P = field(default_factory=dict)  # type: ignore[assignment]


def component[P](
        component: Component[P],
        props: P | NotGiven = NOT_GIVEN
        ) -> ComponentCall[P]:
    """Creates a ``ComponentCall`` for use within a template slot. If
    props are omitted, the component will be passed an empty dict.
    """
    if not callable(component):
        raise TypeError('Components must be callable!', component)

    if props is NOT_GIVEN:
        return ComponentCall(component)
    else:
        return ComponentCall(component, props)


@overload
def html(
        strings: TStringLike,
        *,
        cache: TemplateCache | None = None
        ) -> TemplateResult: ...
@overload
def html(
        strings: Sequence[str],
        *values: object,
        cache: TemplateCache | None = None
        ) -> TemplateResult: ...
def html(
        strings: Sequence[str] | TStringLike,
        *values: object,
        cache: TemplateCache | None = None
        ) -> TemplateResult:
    """Creates a template from a literal. This can be called in one of
    two ways:
    ++  with a sequence of static fragments, followed by the dynamic
        values that go between them (one fewer value than fragments),
        for example ``html(('<p>', '</p>'), name)``
    ++  with a single PEP 750 t-string, for example
        ``html(t'<p>{name}</p>')``

    Nothing about the values is inspected here; invalid values only
    fail once the template is rendered.
    """
    if cache is None:
        cache = DEFAULT_TEMPLATE_CACHE

    if is_tstring(strings):
        if values:
            raise TypeError(
                'Cannot pass additional values alongside a t-string!',
                values)

        return _from_tstring(strings, cache)

    # Strings are also sequences of strings, so this needs a special case,
    # otherwise each character would become a fragment.
    if isinstance(strings, str):
        fragments: tuple[str, ...] = (strings,)
    else:
        fragments = tuple(strings)

    if len(fragments) != len(values) + 1:
        raise ValueError(
            'Template literals must have exactly one more fragment than '
            + 'values!', len(fragments), len(values))

    slot_formats: tuple[SlotFormat | None, ...] = (None,) * len(values)
    shape = cache.get_or_build(
        (fragments, slot_formats),
        lambda: TemplateShape(
            fragments=fragments,
            slot_formats=slot_formats))
    return TemplateResult(shape=shape, slots=values)


def _from_tstring(
        tstring: TStringLike,
        cache: TemplateCache
        ) -> TemplateResult:
    """Converts a t-string (or anything that quacks like one) into a
    template result, preserving any conversions and format specs as
    part of the cached shape.
    """
    fragments = tuple(tstring.strings)
    slot_formats: list[SlotFormat | None] = []
    slots: list[object] = []
    for interpolation in tstring.interpolations:
        slots.append(interpolation.value)
        conversion = getattr(interpolation, 'conversion', None)
        format_spec = getattr(interpolation, 'format_spec', '')
        if conversion is None and not format_spec:
            slot_formats.append(None)
        else:
            slot_formats.append(SlotFormat(
                conversion=conversion,
                format_spec=format_spec))

    frozen_formats = tuple(slot_formats)
    shape = cache.get_or_build(
        (fragments, frozen_formats),
        lambda: TemplateShape(
            fragments=fragments,
            slot_formats=frozen_formats))
    return shape.bind(tuple(slots))


def coerce_template(value: Any) -> TemplateResult:
    """Returns the passed value as a template result, converting it
    first if it's a raw t-string.
    """
    if is_template_result(value):
        return value  # type: ignore[return-value]
    if is_tstring(value):
        return _from_tstring(value, DEFAULT_TEMPLATE_CACHE)

    raise TypeError('Value is not a template!', value)
