"""Component invocation. Components are held to a stricter contract
than slot values: whatever they return must (eventually) reduce to
templates. This module is responsible for calling them, settling any
awaitable output, and validating the result.
"""
from __future__ import annotations

from streamey._types import ComponentCallLike
from streamey._types import ValueFlavor
from streamey._types import classify_value
from streamey.exceptions import InvalidComponentOutput

# These are the only flavors a settled component output may have. Note that
# COMPONENT is deliberately missing: a component returning a component call
# is no different from a component returning any other non-template.
_ACCEPTED_OUTPUT_FLAVORS = frozenset({
    ValueFlavor.ABSENT,
    ValueFlavor.TEMPLATE,
    ValueFlavor.ITERABLE,
    ValueFlavor.ASYNC_ITERABLE})


async def settle_component_output(
        component_call: ComponentCallLike
        ) -> tuple[ValueFlavor, object]:
    """Calls the component exactly once with its props, awaits the
    output (repeatedly, if it settles to yet another awaitable), and
    returns the settled output along with its flavor.

    Raises InvalidComponentOutput if the settled output isn't something
    that can reduce to templates. Anything raised by the component
    itself, or by an awaitable it returned, propagates unchanged.
    """
    output = component_call.component(component_call.props)
    flavor = classify_value(output)

    while flavor is ValueFlavor.DEFERRED:
        output = await output  # type: ignore[misc]
        flavor = classify_value(output)

    if flavor not in _ACCEPTED_OUTPUT_FLAVORS:
        raise InvalidComponentOutput(output)

    return flavor, output


def check_component_element(element: object) -> ValueFlavor:
    """Elements yielded by a component's output iterable must be
    templates themselves -- not primitives, not awaitables, and not
    nested collections. Returns the element's flavor if so, and raises
    InvalidComponentOutput otherwise.
    """
    flavor = classify_value(element)
    if flavor is not ValueFlavor.TEMPLATE:
        raise InvalidComponentOutput(element)

    return flavor
