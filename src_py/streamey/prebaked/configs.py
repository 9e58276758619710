from __future__ import annotations

from typing import Annotated

from docnote import Note

from streamey.templates import DEFAULT_CHECKPOINT_INTERVAL
from streamey.templates import RenderConfig

default: Annotated[
        RenderConfig,
        Note('''The same thing you get by not passing a config at all.''')
    ] = RenderConfig(
        suppress_empty_chunks=True,
        checkpoint_interval=DEFAULT_CHECKPOINT_INTERVAL)


responsive: Annotated[
        RenderConfig,
        Note('''This prebaked render config checkpoints after every single
            chunk. Use it when renders share an event loop with
            latency-sensitive work, and you'd rather give up some
            throughput than hold the loop for a whole run of synchronous
            chunks.''')
    ] = RenderConfig(
        suppress_empty_chunks=True,
        checkpoint_interval=1)


throughput: Annotated[
        RenderConfig,
        Note('''This prebaked render config **never checkpoints**. The
            render only ever suspends at awaitables and async iterables
            within the template, so purely synchronous templates render
            without yielding to the event loop at all -- and without being
            cancellable partway through.''')
    ] = RenderConfig(
        suppress_empty_chunks=True,
        checkpoint_interval=None)
