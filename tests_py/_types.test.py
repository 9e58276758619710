from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction

import pytest

from streamey._types import ABSENT
from streamey._types import Symbol
from streamey._types import ValueFlavor
from streamey._types import classify_value
from streamey._types import is_component_call
from streamey._types import is_template_result
from streamey._types import is_tstring
from streamey.templates import component
from streamey.templates import html

from streamey_testutils import agen_of
from streamey_testutils import fake_tstring


@dataclass
class _StructuredRecord:
    hello: str


class _CustomIterable:

    def __iter__(self):
        yield 1


class _CustomAsyncIterable:

    def __aiter__(self):
        return agen_of(1)


class _CustomAwaitable:

    def __await__(self):
        return iter(())


class _BothIterables(_CustomIterable, _CustomAsyncIterable):
    ...


class _LegacySequence:

    def __getitem__(self, index):
        if index >= 2:
            raise IndexError(index)
        return index


class TestClassifyValue:

    @pytest.mark.parametrize('value', [None, ABSENT])
    def test_absent(self, value):
        """None and the ABSENT sentinel must both be classified as
        absent.
        """
        assert classify_value(value) is ValueFlavor.ABSENT

    @pytest.mark.parametrize(
        'value',
        [
            '', 'foo', True, False, 0, 42, 10 ** 40, 4.2, 1j, Decimal('1.5'),
            Fraction(1, 3), Symbol('foo')])
    def test_primitive(self, value):
        """Strings, bools, numbers, and symbols must all be classified
        as primitives -- strings especially, despite being iterable.
        """
        assert classify_value(value) is ValueFlavor.PRIMITIVE

    @pytest.mark.anyio
    async def test_coroutine_is_deferred(self):
        """Coroutines must be classified as deferred values."""
        async def deferred():
            return 42

        coro = deferred()
        try:
            assert classify_value(coro) is ValueFlavor.DEFERRED
        finally:
            coro.close()

    def test_custom_awaitable_is_deferred(self):
        """Anything implementing __await__ must be classified as a
        deferred value, without needing to be a coroutine.
        """
        assert classify_value(_CustomAwaitable()) is ValueFlavor.DEFERRED

    def test_template(self):
        """Template results must be classified as templates."""
        assert classify_value(html(('foo',))) is ValueFlavor.TEMPLATE

    def test_tstring_is_template(self):
        """Raw t-strings must be classified as templates, even though
        they're also iterable.
        """
        tstring = fake_tstring(('foo', 'bar'), 'baz')
        assert classify_value(tstring) is ValueFlavor.TEMPLATE

    def test_component_call(self):
        """Component calls must be classified as such."""
        call = component(lambda props: None)
        assert classify_value(call) is ValueFlavor.COMPONENT

    @pytest.mark.parametrize(
        'value',
        [
            [], (1, 2), {1, 2}, frozenset(), range(3), iter([1]),
            (x for x in ()), _CustomIterable()])
    def test_iterable(self, value):
        """Sync iterables of all kinds, including caller-authored ones,
        must be classified as iterables.
        """
        assert classify_value(value) is ValueFlavor.ITERABLE

    def test_async_iterable(self):
        """Async generators and caller-authored async iterables must be
        classified as async iterables.
        """
        assert classify_value(agen_of(1)) is ValueFlavor.ASYNC_ITERABLE
        assert classify_value(
            _CustomAsyncIterable()) is ValueFlavor.ASYNC_ITERABLE

    def test_sync_wins_over_async(self):
        """Values that are both sync and async iterables must be
        classified as sync iterables.
        """
        assert classify_value(_BothIterables()) is ValueFlavor.ITERABLE

    def test_legacy_sequence_protocol(self):
        """Values that are only iterable via ``__getitem__`` must still be
        classified as iterables, since ``iter()`` works on them.
        """
        assert classify_value(_LegacySequence()) is ValueFlavor.ITERABLE

    @pytest.mark.parametrize(
        'value',
        [
            {'hello': 'world'}, OrderedDict(), b'foo', bytearray(b'foo'),
            memoryview(b'foo'), _StructuredRecord('world'), object(),
            lambda: 'foo', print, _StructuredRecord])
    def test_invalid(self, value):
        """Mappings, bytes, plain objects, and callables must all be
        classified as invalid.
        """
        assert classify_value(value) is ValueFlavor.INVALID


class TestMarkers:

    def test_template_positive(self):
        class FakeTemplate:
            _streamey_template = True

        assert is_template_result(FakeTemplate())
        assert is_template_result(html(('foo',)))

    def test_template_negative(self):
        class FakeTemplate:
            ...

        instance = FakeTemplate()
        instance._streamey_template = True  # type: ignore[attr-defined]

        # Note that the marker must be on the class, not the instance
        assert not is_template_result(instance)
        assert not is_template_result('foo')

    def test_tstring(self):
        assert is_tstring(fake_tstring(('foo',)))
        assert not is_tstring(html(('foo',)))
        assert not is_tstring(('foo',))

    def test_component_call(self):
        assert is_component_call(component(print))
        assert not is_component_call(print)


class TestSymbol:

    def test_str(self):
        assert str(Symbol('hello world')) == 'Symbol(hello world)'
        assert str(Symbol()) == 'Symbol()'

    def test_identity(self):
        """Symbols with the same description must nonetheless be
        distinct values.
        """
        first = Symbol('foo')
        second = Symbol('foo')

        assert first != second
        assert first == first  # noqa: PLR0124
        assert len({first, second}) == 2


class TestAbsent:

    def test_falsy(self):
        assert not ABSENT

    def test_repr(self):
        assert repr(ABSENT) == 'ABSENT'
