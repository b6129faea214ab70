"""
Unit tests for key mapping and the input line handler.
"""

import curses

from RoomChat.core.client.input import InputHandler, InputResult
from RoomChat.core.client.input.key_mappings import InputAction, get_action_for_key
from RoomChat.core.client.ui.message_buffer import Message, ScrollBuffer


class TestKeyMappings:
    """Tests for get_action_for_key."""

    def test_characters(self):
        assert get_action_for_key("a") is InputAction.TYPE_CHAR
        assert get_action_for_key("é") is InputAction.TYPE_CHAR
        assert get_action_for_key(ord("a")) is InputAction.TYPE_CHAR

    def test_enter(self):
        assert get_action_for_key("\n") is InputAction.SUBMIT
        assert get_action_for_key(13) is InputAction.SUBMIT
        assert get_action_for_key(curses.KEY_ENTER) is InputAction.SUBMIT

    def test_backspace(self):
        assert get_action_for_key("\x7f") is InputAction.BACKSPACE
        assert get_action_for_key(curses.KEY_BACKSPACE) is InputAction.BACKSPACE

    def test_quit_keys(self):
        assert get_action_for_key("\x1b") is InputAction.QUIT
        assert get_action_for_key("\x03") is InputAction.QUIT

    def test_scroll_and_help_keys(self):
        assert get_action_for_key(curses.KEY_PPAGE) is InputAction.SCROLL_PAGE_UP
        assert get_action_for_key(curses.KEY_UP) is InputAction.SCROLL_UP
        assert get_action_for_key(curses.KEY_F1) is InputAction.HELP

    def test_unmapped(self):
        assert get_action_for_key(curses.KEY_RESIZE) is InputAction.IGNORE
        assert get_action_for_key("\t") is InputAction.IGNORE


class TestInputHandler:
    """Tests for InputHandler."""

    def setup_method(self):
        self.buffer = ScrollBuffer(visible_rows=2)
        for i in range(6):
            self.buffer.append(Message("bob", "FF0000", "general", f"m{i}"))
        self.handler = InputHandler(self.buffer)

    def _type(self, text: str):
        for ch in text:
            assert self.handler.process_key(ch) == (InputResult.HANDLED, None)

    def test_compose_and_submit(self):
        self._type("hi!")
        assert self.handler.input_buffer == "hi!"
        assert self.handler.process_key("\n") == (InputResult.SUBMIT, "hi!")
        assert self.handler.input_buffer == ""

    def test_submit_empty_line(self):
        assert self.handler.process_key("\n") == (InputResult.SUBMIT, "")

    def test_backspace(self):
        self._type("hey")
        self.handler.process_key(curses.KEY_BACKSPACE)
        assert self.handler.input_buffer == "he"

    def test_backspace_on_empty_line(self):
        self.handler.process_key("\x7f")
        assert self.handler.input_buffer == ""

    def test_scroll_keys_move_buffer(self):
        assert self.buffer.offset == 4
        self.handler.process_key(curses.KEY_UP)
        assert self.buffer.offset == 3
        self.handler.process_key(curses.KEY_HOME)
        assert self.buffer.offset == 0
        self.handler.process_key(curses.KEY_END)
        assert self.buffer.offset == 4

    def test_quit_and_help(self):
        assert self.handler.process_key("\x1b") == (InputResult.QUIT, None)
        assert self.handler.process_key(curses.KEY_F1) == (InputResult.HELP, None)

    def test_prompt_handler_without_buffer(self):
        handler = InputHandler()
        assert handler.process_key(curses.KEY_PPAGE) == (InputResult.HANDLED, None)
