"""Translation between human-readable key names and platform key codes."""

from __future__ import annotations

import string
import sys
from types import MappingProxyType
from typing import Mapping

_WINDOWS_CODES: dict[str, int] = {
    **{letter: ord(letter.upper()) for letter in string.ascii_lowercase},
    **{digit: ord(digit) for digit in string.digits},
    # Special keys, using the left-hand variants for the generic names.
    "space": 0x20, "enter": 0x0D, "tab": 0x09,
    "lshift": 0xA0, "rshift": 0xA1, "shift": 0xA0,
    "lctrl": 0xA2, "rctrl": 0xA3, "ctrl": 0xA2,
    "lalt": 0xA4, "ralt": 0xA5, "alt": 0xA4,
    "escape": 0x1B, "backspace": 0x08, "delete": 0x2E,
    "home": 0x24, "end": 0x23, "pageup": 0x21, "pagedown": 0x22,
    "insert": 0x2D, "capslock": 0x14,
    "left": 0x25, "right": 0x27, "up": 0x26, "down": 0x28,
    **{f"f{number}": 0x6F + number for number in range(1, 13)},
    **{f"numpad{number}": 0x60 + number for number in range(10)},
    "numpadenter": 0x0D,
    "numpadplus": 0x6B, "numpadminus": 0x6D, "numpadmultiply": 0x6A,
    "numpaddivide": 0x6F, "numpaddot": 0x6E,
    "printscreen": 0x2C, "scrolllock": 0x91, "pause": 0x13,
    "menu": 0x5D, "lwin": 0x5B, "rwin": 0x5C, "win": 0x5B,
    "semicolon": 0xBA, "apostrophe": 0xDE, "grave": 0xC0,
    "backslash": 0xDC, "comma": 0xBC, "dot": 0xBE, "slash": 0xBF,
    "leftbracket": 0xDB, "rightbracket": 0xDD, "equal": 0xBB, "minus": 0xBD,
}

# Linux input event codes.
_LINUX_CODES: dict[str, int] = {
    "a": 30, "b": 48, "c": 46, "d": 32, "e": 18,
    "f": 33, "g": 34, "h": 35, "i": 23, "j": 36,
    "k": 37, "l": 38, "m": 50, "n": 49, "o": 24,
    "p": 25, "q": 16, "r": 19, "s": 31, "t": 20,
    "u": 22, "v": 47, "w": 17, "x": 45, "y": 21, "z": 44,
    "0": 11, "1": 2, "2": 3, "3": 4, "4": 5,
    "5": 6, "6": 7, "7": 8, "8": 9, "9": 10,
    "space": 57, "enter": 28, "tab": 15,
    "lshift": 42, "rshift": 54, "shift": 42,
    "lctrl": 29, "rctrl": 97, "ctrl": 29,
    "lalt": 56, "ralt": 100, "alt": 56,
    "escape": 1, "backspace": 14, "delete": 111,
    "home": 102, "end": 107, "pageup": 104, "pagedown": 109,
    "insert": 110, "capslock": 58,
    "left": 105, "right": 106, "up": 103, "down": 108,
    "f1": 59, "f2": 60, "f3": 61, "f4": 62,
    "f5": 63, "f6": 64, "f7": 65, "f8": 66,
    "f9": 67, "f10": 68, "f11": 87, "f12": 88,
    "numpad0": 82, "numpad1": 79, "numpad2": 80, "numpad3": 81,
    "numpad4": 75, "numpad5": 76, "numpad6": 77, "numpad7": 71,
    "numpad8": 72, "numpad9": 73, "numpadenter": 96,
    "numpadplus": 78, "numpadminus": 74, "numpadmultiply": 55,
    "numpaddivide": 98, "numpaddot": 83,
    "printscreen": 99, "scrolllock": 70, "pause": 119,
    "menu": 139, "lwin": 125, "rwin": 126, "win": 125,
    "semicolon": 39, "apostrophe": 40, "grave": 41,
    "backslash": 43, "comma": 51, "dot": 52, "slash": 53,
    "leftbracket": 26, "rightbracket": 27, "equal": 13, "minus": 12,
}


def _reverse(table: Mapping[str, int]) -> Mapping[int, str]:
    reverse: dict[int, str] = {}
    for name, code in table.items():
        reverse.setdefault(code, name)
    return MappingProxyType(reverse)


_TABLES: dict[str, tuple[Mapping[str, int], Mapping[int, str]]] = {
    "windows": (MappingProxyType(_WINDOWS_CODES), _reverse(_WINDOWS_CODES)),
    "linux": (MappingProxyType(_LINUX_CODES), _reverse(_LINUX_CODES)),
}


def _tables(platform: str | None) -> tuple[Mapping[str, int], Mapping[int, str]]:
    if platform is None:
        platform = "windows" if sys.platform.startswith("win") else "linux"
    try:
        return _TABLES[platform.lower()]
    except KeyError:
        raise ValueError(f"unknown key platform: {platform!r}") from None


def get_key_code(key_name: str, platform: str | None = None) -> int | None:
    """Return the key code for a case-insensitive key name, or None if unknown."""
    names, _ = _tables(platform)
    return names.get(key_name.lower())


def get_key_name(key_code: int, platform: str | None = None) -> str:
    """Return the name of a key code, or the code as a decimal string if unknown."""
    _, codes = _tables(platform)
    return codes.get(key_code, str(key_code))