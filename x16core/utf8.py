"""UTF-8 encoding of single code points."""

from __future__ import annotations

REPLACEMENT = b"\xef\xbf\xbd"


def utf8_encode(code_point: int) -> bytes:
    """Encode a code point (0-0x10FFFF, surrogates allowed) as UTF-8 bytes."""
    if code_point < 0 or code_point > 0x10FFFF:
        raise ValueError(f"code point out of range: {code_point:#x}")
    if code_point <= 0x7F:
        return bytes((code_point,))
    if code_point <= 0x07FF:
        return bytes((
            ((code_point >> 6) & 0x1F) | 0xC0,
            (code_point & 0x3F) | 0x80,
        ))
    if code_point <= 0xFFFF:
        return bytes((
            ((code_point >> 12) & 0x0F) | 0xE0,
            ((code_point >> 6) & 0x3F) | 0x80,
            (code_point & 0x3F) | 0x80,
        ))
    return bytes((
        ((code_point >> 18) & 0x07) | 0xF0,
        ((code_point >> 12) & 0x3F) | 0x80,
        ((code_point >> 6) & 0x3F) | 0x80,
        (code_point & 0x3F) | 0x80,
    ))