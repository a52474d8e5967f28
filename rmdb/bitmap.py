"""Bit operations on page slot bitmaps held in bytearrays.

Bit 0 is the most significant bit of the first byte.
"""

from __future__ import annotations

BITMAP_WIDTH = 8
BITMAP_HIGHEST_BIT = 0x80


def _bucket(pos: int) -> int:
    return pos // BITMAP_WIDTH


def _mask(pos: int) -> int:
    return BITMAP_HIGHEST_BIT >> (pos % BITMAP_WIDTH)


def bitmap_size(num_bits: int) -> int:
    """Number of bytes needed to hold num_bits bits."""
    return (num_bits + BITMAP_WIDTH - 1) // BITMAP_WIDTH


def set_bit(bm: bytearray, pos: int) -> None:
    """Set bit pos to 1."""
    bm[_bucket(pos)] |= _mask(pos)


def clear_bit(bm: bytearray, pos: int) -> None:
    """Set bit pos to 0."""
    bm[_bucket(pos)] &= ~_mask(pos) & 0xFF


def is_set(bm: bytes, pos: int) -> bool:
    """True if bit pos is 1."""
    return bm[_bucket(pos)] & _mask(pos) != 0


def next_bit(bit: bool, bm: bytes, max_n: int, curr: int) -> int:
    """First position in [curr + 1, max_n) whose bit equals bit, or max_n."""
    return next(
        (pos for pos in range(curr + 1, max_n) if is_set(bm, pos) == bit), max_n
    )


def first_bit(bit: bool, bm: bytes, max_n: int) -> int:
    """First position in [0, max_n) whose bit equals bit, or max_n."""
    return next_bit(bit, bm, max_n, -1)