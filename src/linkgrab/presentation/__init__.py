"""Display state and renderers for collected links."""

from .render import render_json, render_table, render_text
from .view import SECTION_TITLES, TOGGLES, LinkListView, LinkSection

__all__ = [
    "LinkListView",
    "LinkSection",
    "SECTION_TITLES",
    "TOGGLES",
    "render_json",
    "render_table",
    "render_text",
]
