"""Translate textual key events into bytes for the child PTY."""

from __future__ import annotations

from typing import Optional

KEY_SEQUENCES = {
    "enter": "\r",
    "tab": "\t",
    "shift+tab": "\x1b[Z",
    "backspace": "\x7f",
    "delete": "\x1b[3~",
    "insert": "\x1b[2~",
    "up": "\x1b[A",
    "down": "\x1b[B",
    "left": "\x1b[D",
    "right": "\x1b[C",
    "home": "\x1b[H",
    "end": "\x1b[F",
    "pageup": "\x1b[5~",
    "pagedown": "\x1b[6~",
    "escape": "\x1b",
    "ctrl+space": "\x00",
    "ctrl+left_square_bracket": "\x1b",
    "ctrl+backslash": "\x1c",
    "ctrl+right_square_bracket": "\x1d",
}


def key_to_input(key: str, character: Optional[str]) -> Optional[str]:
    """Return what to write to the PTY for a key press, or None to ignore it."""
    if key in KEY_SEQUENCES:
        return KEY_SEQUENCES[key]

    if key.startswith("ctrl+") and len(key) == 6:
        ctrl_char = key[-1]
        if "a" <= ctrl_char <= "z":
            return chr(ord(ctrl_char) - 96)

    if character and character.isprintable():
        return character
    return None
