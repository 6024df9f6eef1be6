"""Base64 VLQ codec for source map ``mappings`` segments.

Each integer is written as a sign bit in the lowest position followed by
5-bit groups, least significant first; bit 6 of each base64 digit marks
that more groups follow.
"""
from __future__ import annotations

_BASE64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_DIGIT_VALUES: dict[str, int] = {ch: i for i, ch in enumerate(_BASE64)}

_SHIFT = 5
_MASK = (1 << _SHIFT) - 1
_CONTINUATION = 1 << _SHIFT


def encode_vlq(value: int) -> str:
    """Encode one signed integer."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    out: list[str] = []
    while True:
        digit = vlq & _MASK
        vlq >>= _SHIFT
        if vlq:
            digit |= _CONTINUATION
        out.append(_BASE64[digit])
        if not vlq:
            return "".join(out)


def encode_segment(values: list[int]) -> str:
    """Encode a whole segment (1, 4 or 5 relative fields)."""
    return "".join(encode_vlq(v) for v in values)


def decode_vlq(segment: str) -> list[int]:
    """Decode every integer in *segment*.

    Raises:
        ValueError: On a character outside the base64 alphabet, or when
            the segment ends in the middle of a value.
    """
    values: list[int] = []
    value = 0
    shift = 0
    for ch in segment:
        digit = _DIGIT_VALUES.get(ch)
        if digit is None:
            raise ValueError(f"Invalid base64 VLQ character {ch!r} in {segment!r}")
        value += (digit & _MASK) << shift
        if digit & _CONTINUATION:
            shift += _SHIFT
            continue
        negative = value & 1
        value >>= 1
        values.append(-value if negative else value)
        value = 0
        shift = 0
    if shift:
        raise ValueError(f"Truncated base64 VLQ value in {segment!r}")
    return values
