"""Encoder for the game server's binary ``settings.bin``."""

from __future__ import annotations

import struct
from collections.abc import Mapping

TYPE_INT = 1
TYPE_STRING = 4


def _string(value: str) -> bytes:
    data = value.encode()
    return struct.pack(">H", len(data)) + data


def encode_settings(entries: Mapping[str, int | str]) -> bytes:
    """Encode settings as count, then key / type tag / value per entry.

    Integers are big-endian i32; strings are u16-length-prefixed UTF-8.
    """
    out = bytearray(struct.pack(">i", len(entries)))
    for key, value in entries.items():
        out += _string(key)
        if isinstance(value, bool) or not isinstance(value, int | str):
            raise TypeError(f"Unsupported setting type for '{key}': {type(value).__name__}")
        if isinstance(value, int):
            out += struct.pack(">Bi", TYPE_INT, value)
        else:
            out += struct.pack(">B", TYPE_STRING) + _string(value)
    return bytes(out)
