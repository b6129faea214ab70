"""
UI module for the curses-based client.
Provides components for rendering and display management.
"""

from .message_buffer import Message, ScrollBuffer, ScrollDirection
from .renderer import CursesRenderer, Renderer, RenderView

__all__ = ['CursesRenderer', 'Message', 'Renderer', 'RenderView', 'ScrollBuffer', 'ScrollDirection']
