from __future__ import annotations

import inspect
from collections.abc import Mapping
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from numbers import Number
from typing import Any
from typing import ClassVar
from typing import Literal
from typing import Protocol

from typing_extensions import TypeIs


class ValueFlavor(Enum):
    ABSENT = 'absent'
    PRIMITIVE = 'primitive'
    DEFERRED = 'deferred'
    TEMPLATE = 'template'
    COMPONENT = 'component'
    ITERABLE = 'iterable'
    ASYNC_ITERABLE = 'async_iterable'
    INVALID = 'invalid'


class _AbsentType(Enum):
    """``None`` is the usual way of saying "nothing here", but some
    callers need an explicit marker that is distinguishable from
    ``None`` (for example, as a default in a props record). Both render
    as nothing at all.
    """
    ABSENT = 'absent'

    def __repr__(self) -> str:
        return 'ABSENT'

    def __bool__(self) -> bool:
        return False


ABSENT = _AbsentType.ABSENT
type Absent = Literal[_AbsentType.ABSENT]


class _NotGivenType(Enum):
    """Marks an omitted argument, wherever ``None`` (or ``ABSENT``) would
    itself be a meaningful value to pass.
    """
    NOT_GIVEN = 'not_given'

    def __repr__(self) -> str:
        return 'NOT_GIVEN'


NOT_GIVEN = _NotGivenType.NOT_GIVEN
type NotGiven = Literal[_NotGivenType.NOT_GIVEN]


@dataclass(frozen=True, slots=True, eq=False)
class Symbol:
    """A symbolic atom. Symbols are compared by identity, not by
    description, so two symbols with the same description are still
    distinct values; they do, however, render identically.
    """
    description: str = ''

    def __str__(self) -> str:
        return f'Symbol({self.description})'


@dataclass(frozen=True, slots=True)
class SlotFormat:
    """The static formatting instructions attached to a single slot by
    a t-string interpolation, eg ``{value!r:>10}``. These are part of
    the literal itself, and are therefore cached along with the
    fragments.
    """
    conversion: Literal['r', 's', 'a'] | None = None
    format_spec: str = ''


class TemplateLike(Protocol):
    """This is the structural protocol the render driver relies upon
    for templates. Anything with the ``_streamey_template`` marker is
    expected to implement it.
    """
    _streamey_template: ClassVar[bool]

    @property
    def fragments(self) -> Sequence[str]: ...

    @property
    def slots(self) -> Sequence[object]: ...

    @property
    def slot_formats(self) -> Sequence[SlotFormat | None]: ...


class TStringLike(Protocol):
    """Structural stand-in for ``string.templatelib.Template``, so that
    we work with (and can test against) interpreters that predate PEP
    750.
    """
    strings: tuple[str, ...]
    interpolations: tuple[Any, ...]


class ComponentCallLike(Protocol):
    _streamey_component: ClassVar[bool]

    @property
    def component(self) -> Any: ...

    @property
    def props(self) -> object: ...


def is_template_result(value: object) -> TypeIs[TemplateLike]:
    """Rather than relying upon @runtime_checkable (which is both slow
    and doesn't work with ClassVars), we check for the marker on the
    value's type directly.
    """
    return getattr(type(value), '_streamey_template', False) is True


def is_tstring(value: object) -> TypeIs[TStringLike]:
    return (
        hasattr(value, 'strings')
        and hasattr(value, 'interpolations')
        and isinstance(value.strings, tuple))  # type: ignore[attr-defined]


def is_component_call(value: object) -> TypeIs[ComponentCallLike]:
    return getattr(type(value), '_streamey_component', False) is True


def classify_value(value: object) -> ValueFlavor:  # noqa: PLR0911
    """Determines the flavor of an arbitrary value. The order here is
    significant -- the first match wins:
    ++  absent values (None, ABSENT)
    ++  primitives
    ++  awaitables
    ++  templates (including raw t-strings)
    ++  component calls
    ++  sync iterables (excluding strings, bytes, and mappings)
    ++  async iterables
    ++  anything else supporting the legacy sequence protocol
        (``__getitem__`` without ``__iter__``)
    ++  everything else is invalid

    Everything is structural, so that caller-authored iterables,
    awaitables, etc all work without any kind of registration.
    """
    if value is None or value is ABSENT:
        return ValueFlavor.ABSENT

    # Strings are hardest to deal with because they're also containers,
    # so just get that out of the way first
    if isinstance(value, (str, Number, Symbol)):
        return ValueFlavor.PRIMITIVE

    if inspect.isawaitable(value):
        return ValueFlavor.DEFERRED

    if is_template_result(value) or is_tstring(value):
        return ValueFlavor.TEMPLATE

    if is_component_call(value):
        return ValueFlavor.COMPONENT

    # Mappings are structured records, not collections to flatten, and
    # bytes would otherwise be flattened into a run of integers.
    if isinstance(value, (Mapping, bytes, bytearray, memoryview)):
        return ValueFlavor.INVALID

    value_type = type(value)
    if hasattr(value_type, '__iter__'):
        return ValueFlavor.ITERABLE
    if hasattr(value_type, '__aiter__'):
        return ValueFlavor.ASYNC_ITERABLE
    # Legacy sequence protocol; this is what makes iter() work on them
    if hasattr(value_type, '__getitem__'):
        return ValueFlavor.ITERABLE

    return ValueFlavor.INVALID
