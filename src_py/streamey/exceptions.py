from __future__ import annotations


class StreameyException(Exception):
    """Base class for all streamey exceptions."""


class InvalidRenderValue(StreameyException, TypeError):
    """The most general form of "this value cannot be rendered." The
    offending value is always available as ``value``, so that it can be
    inspected after the stream has failed.
    """
    value: object

    def __init__(self, *args, value: object):
        super().__init__(*args)
        self.value = value


class InvalidSlotValue(InvalidRenderValue):
    """Raised while draining a render stream, when a value within a
    template slot (or nested anywhere beneath one) was neither absent,
    a primitive, a template, an awaitable, a component call, nor any
    kind of iterable. Mappings, bytes, and bare callables all end up
    here.

    Note that this is never raised when constructing the template; it
    only surfaces once the offending branch is actually rendered.
    """

    def __init__(self, value: object):
        super().__init__('Invalid template value!', value, value=value)


class InvalidComponentOutput(InvalidRenderValue):
    """Raised while draining a render stream, when a component returned
    something that doesn't reduce to templates. Components are stricter
    than slots: a component may return nothing, a template, an
    awaitable of either, or an iterable (sync or async) of templates --
    but never bare primitives or collections of them.
    """
    MESSAGE = 'Invalid template.'

    def __init__(self, value: object):
        super().__init__(self.MESSAGE, value=value)

    def __str__(self) -> str:
        return self.MESSAGE
