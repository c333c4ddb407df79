"""Renderer — Protocol + implémentation HTML."""
from .base import CalendarState, MenuItem, ModuleInfo, RenderContext, Renderer, SessionSlot
from .html import HtmlRenderer, render_block, render_layout, render_page

__all__ = [
    "CalendarState", "MenuItem", "ModuleInfo", "RenderContext", "Renderer", "SessionSlot",
    "HtmlRenderer", "render_block", "render_layout", "render_page",
]
