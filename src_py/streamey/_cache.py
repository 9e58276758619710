from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from streamey.templates import TemplateShape

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_CACHE_SIZE = 1024

type ShapeCacheKey = tuple[tuple[str, ...], tuple[object, ...]]


@dataclass(slots=True, kw_only=True)
class TemplateCache:
    """The template cache maps the static structure of a template
    literal -- its fragments, plus any per-slot formatting -- to the
    ``TemplateShape`` built for it, so that evaluating the same literal
    over and over again with different values doesn't rebuild the
    shape every time.

    Ideally this would be a weak mapping keyed on the identity of the
    fragment sequence, but tuples can't be weakly referenced. Instead,
    we key on the value of the fragments (which subsumes identity) and
    bound the cache with LRU eviction, so that it can't grow without
    limit.

    Only shapes are ever cached. Slot values always come from the
    current call.
    """
    # The lambda here is so that the DEFAULT_TEMPLATE_CACHE_SIZE can be
    # changed at runtime by library consumers
    maxsize: int = field(default_factory=lambda: DEFAULT_TEMPLATE_CACHE_SIZE)

    _entries: OrderedDict[ShapeCacheKey, TemplateShape] = field(
        default_factory=OrderedDict, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False)

    def get_or_build(
            self,
            key: ShapeCacheKey,
            builder: Callable[[], TemplateShape]
            ) -> TemplateShape:
        """Returns the cached shape for the key, or builds one with the
        passed builder and inserts it.

        Note that the builder is called outside of the lock. If two
        threads miss at the same time, they'll both build a shape, but
        only the first one inserted is kept, and both callers get that
        one back.
        """
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                return cached

        shape = builder()
        with self._lock:
            shape = self._entries.setdefault(key, shape)
            self._entries.move_to_end(key)
            while len(self._entries) > self.maxsize:
                evicted_key, __ = self._entries.popitem(last=False)
                logger.debug(
                    'Evicting template shape with %s fragments from cache',
                    len(evicted_key[0]))

        return shape

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


DEFAULT_TEMPLATE_CACHE = TemplateCache()
