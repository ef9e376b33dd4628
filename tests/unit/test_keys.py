"""Key translation for PTY input."""

import pytest

from agent_deck.tui.keys import key_to_input


@pytest.mark.parametrize(
    "key,expected",
    [
        ("enter", "\r"),
        ("tab", "\t"),
        ("backspace", "\x7f"),
        ("up", "\x1b[A"),
        ("pagedown", "\x1b[6~"),
        ("escape", "\x1b"),
        ("ctrl+c", "\x03"),
        ("ctrl+d", "\x04"),
        ("ctrl+z", "\x1a"),
    ],
)
def test_special_keys(key, expected):
    assert key_to_input(key, None) == expected


def test_printable_characters():
    assert key_to_input("a", "a") == "a"
    assert key_to_input("space", " ") == " "
    assert key_to_input("ü", "ü") == "ü"


def test_unmapped_keys_are_ignored():
    assert key_to_input("f12", None) is None
    assert key_to_input("ctrl+f1", None) is None
