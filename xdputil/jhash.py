"""Jenkins hash (lookup3) as used for kernel hash tables."""

from __future__ import annotations

import sys
from collections.abc import Sequence

JHASH_INITVAL = 0xDEADBEEF
_MASK = 0xFFFFFFFF


def rol32(word: int, shift: int) -> int:
    """Rotate a 32-bit word left by ``shift`` bits."""
    word &= _MASK
    shift &= 31
    return ((word << shift) | (word >> ((-shift) & 31))) & _MASK


def _mix(a: int, b: int, c: int) -> tuple[int, int, int]:
    a = (a - c) & _MASK; a ^= rol32(c, 4); c = (c + b) & _MASK
    b = (b - a) & _MASK; b ^= rol32(a, 6); a = (a + c) & _MASK
    c = (c - b) & _MASK; c ^= rol32(b, 8); b = (b + a) & _MASK
    a = (a - c) & _MASK; a ^= rol32(c, 16); c = (c + b) & _MASK
    b = (b - a) & _MASK; b ^= rol32(a, 19); a = (a + c) & _MASK
    c = (c - b) & _MASK; c ^= rol32(b, 4); b = (b + a) & _MASK
    return a, b, c


def _final(a: int, b: int, c: int) -> tuple[int, int, int]:
    c ^= b; c = (c - rol32(b, 14)) & _MASK
    a ^= c; a = (a - rol32(c, 11)) & _MASK
    b ^= a; b = (b - rol32(a, 25)) & _MASK
    c ^= b; c = (c - rol32(b, 16)) & _MASK
    a ^= c; a = (a - rol32(c, 4)) & _MASK
    b ^= a; b = (b - rol32(a, 14)) & _MASK
    c ^= b; c = (c - rol32(b, 24)) & _MASK
    return a, b, c


def jhash(key: bytes, initval: int = 0) -> int:
    """Hash an arbitrary byte string.

    Full 12-byte blocks are read as host-order words, so the result for keys
    longer than 12 bytes depends on the machine's byte order.
    """
    data = bytes(key)
    length = len(data)
    a = b = c = (JHASH_INITVAL + length + initval) & _MASK

    pos = 0
    while length - pos > 12:
        a = (a + int.from_bytes(data[pos:pos + 4], sys.byteorder)) & _MASK
        b = (b + int.from_bytes(data[pos + 4:pos + 8], sys.byteorder)) & _MASK
        c = (c + int.from_bytes(data[pos + 8:pos + 12], sys.byteorder)) & _MASK
        a, b, c = _mix(a, b, c)
        pos += 12

    tail = data[pos:]
    if not tail:
        return c
    padded = tail + bytes(12 - len(tail))
    a = (a + int.from_bytes(padded[0:4], "little")) & _MASK
    b = (b + int.from_bytes(padded[4:8], "little")) & _MASK
    c = (c + int.from_bytes(padded[8:12], "little")) & _MASK
    a, b, c = _final(a, b, c)
    return c


def jhash2(words: Sequence[int], initval: int = 0) -> int:
    """Hash a sequence of 32-bit words."""
    k = [w & _MASK for w in words]
    length = len(k)
    a = b = c = (JHASH_INITVAL + (length << 2) + initval) & _MASK

    pos = 0
    while length - pos > 3:
        a = (a + k[pos]) & _MASK
        b = (b + k[pos + 1]) & _MASK
        c = (c + k[pos + 2]) & _MASK
        a, b, c = _mix(a, b, c)
        pos += 3

    rest = k[pos:]
    if not rest:
        return c
    rest += [0] * (3 - len(rest))
    a = (a + rest[0]) & _MASK
    b = (b + rest[1]) & _MASK
    c = (c + rest[2]) & _MASK
    a, b, c = _final(a, b, c)
    return c


def _jhash_nwords(a: int, b: int, c: int, initval: int) -> int:
    a = (a + initval) & _MASK
    b = (b + initval) & _MASK
    c = (c + initval) & _MASK
    return _final(a, b, c)[2]


def jhash_3words(a: int, b: int, c: int, initval: int = 0) -> int:
    """Hash exactly three words."""
    return _jhash_nwords(a & _MASK, b & _MASK, c & _MASK,
                         (initval + JHASH_INITVAL + (3 << 2)) & _MASK)


def jhash_2words(a: int, b: int, initval: int = 0) -> int:
    """Hash exactly two words."""
    return _jhash_nwords(a & _MASK, b & _MASK, 0,
                         (initval + JHASH_INITVAL + (2 << 2)) & _MASK)


def jhash_1word(a: int, initval: int = 0) -> int:
    """Hash a single word."""
    return _jhash_nwords(a & _MASK, 0, 0,
                         (initval + JHASH_INITVAL + (1 << 2)) & _MASK)