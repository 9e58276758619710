import streamey.prebaked as prebaked  # noqa: PLR0402
from streamey._types import ABSENT
from streamey._types import Symbol
from streamey.exceptions import InvalidComponentOutput
from streamey.exceptions import InvalidSlotValue
from streamey.renderer import RenderStream
from streamey.renderer import render
from streamey.renderer import render_sync
from streamey.renderer import render_to_str
from streamey.templates import ComponentCall
from streamey.templates import RenderConfig
from streamey.templates import TemplateResult
from streamey.templates import component
from streamey.templates import html

__all__ = [
    'ABSENT',
    'ComponentCall',
    'InvalidComponentOutput',
    'InvalidSlotValue',
    'RenderConfig',
    'RenderStream',
    'Symbol',
    'TemplateResult',
    'component',
    'html',
    'prebaked',
    'render',
    'render_sync',
    'render_to_str',
]
