"""
Input handling module for the terminal client.
Provides keyboard input processing.
"""

from .handler import InputHandler, InputResult
from .key_mappings import KeyCode, InputAction, get_action_for_key

__all__ = ['InputHandler', 'InputResult', 'KeyCode', 'get_action_for_key', 'InputAction']
