#!/usr/bin/env python3

"""
Display Emulator

The screen is held as 64 rows, each packed into a single 128-bit integer.  The
leftmost pixel of a row is its most significant bit.  Python integers are
arbitrary-length, so every operation is masked back to 128 bits.

In high resolution mode, the buffer is drawn to directly as a 128x64 surface.
In low resolution mode, programs see a 64x32 surface, and each pixel they draw
is doubled in both directions into the same buffer.  Each sprite byte is
expanded to 16 bits horizontally, and written to two consecutive rows
vertically.  This means no separate low resolution buffer is needed, and
switching modes never touches the buffer contents.

Sprites are XORed onto the screen.  Collisions (where any set pixel was unset
by the XOR) are reported back to the caller.

The dirty flag records whether anything was written since the host last read
the screen.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import VID_WIDTH, VID_HEIGHT, VID_ROW_MASK


class DisplayError(Exception):
    pass


def expand(byte):
    # Double every bit, so bit i lands in bits 2i and 2i+1: 0b01010111 -> 0b0011001100111111
    result = 0

    for i in range(8):
        result |= (byte & (1 << i)) << i

    return result | (result << 1)


def rotate_left(row, bits):
    bits %= VID_WIDTH

    if not bits:
        return row

    return ((row << bits) | (row >> (VID_WIDTH - bits))) & VID_ROW_MASK


def rotate_right(row, bits):
    return rotate_left(row, VID_WIDTH - bits % VID_WIDTH)


class Display:
    def __init__(self):
        self.rows = [0] * VID_HEIGHT
        self.hi_res = False
        self.dirty = False

    def hi_res_mode(self):
        self.hi_res = True

    def low_res_mode(self):
        self.hi_res = False

    def is_hi_res(self):
        return self.hi_res

    def is_dirty(self):
        return self.dirty

    def write(self, byte, x, y):
        # Returns whether any pixel was erased

        if self.hi_res:
            pattern = byte
            width = 8
        else:
            x *= 2
            y *= 2
            pattern = expand(byte)
            width = 16

        x %= VID_WIDTH
        y %= VID_HEIGHT

        # Place the pattern's leftmost pixel at column x.  Anything past the right edge wraps around to the left.
        pattern = rotate_left(pattern, VID_WIDTH - width - x)
        rows = self.rows
        erased = bool(rows[y] & pattern)
        rows[y] ^= pattern

        if not self.hi_res:
            # y is even here, so the doubled row never leaves the buffer
            erased |= bool(rows[y + 1] & pattern)
            rows[y + 1] ^= pattern

        self.dirty = True
        return erased

    def scroll_down(self, n):
        # The rows are rotated, so anything scrolled off the bottom comes back in at the top.  Only the first two rows
        # are blanked afterwards, which is a true scroll for n <= 2 only.
        n %= VID_HEIGHT
        rows = self.rows

        if n:
            self.rows = rows[-n:] + rows[:-n]

        self.rows[0] = 0
        self.rows[1] = 0
        self.dirty = True

    def scroll_side(self, n):
        # Positive n scrolls right, negative scrolls left.  Pixels wrap around at the edges.
        if n == 0:
            raise DisplayError("Cannot scroll sideways by 0 pixels")

        rotate = rotate_right if n > 0 else rotate_left
        bits = abs(n)
        self.rows = [rotate(row, bits) for row in self.rows]
        self.dirty = True

    def clear(self):
        self.rows = [0] * VID_HEIGHT
        self.dirty = True

    def read(self):
        self.dirty = False
        return tuple(self.rows)

    def read_px(self, x, y):
        if not (0 <= x < VID_WIDTH and 0 <= y < VID_HEIGHT):
            raise DisplayError("Pixel ({}, {}) is outside of the {}x{} display".format(x, y, VID_WIDTH, VID_HEIGHT))

        self.dirty = False
        return bool((self.rows[y] >> (VID_WIDTH - 1 - x)) & 1)

    def to_rows(self, on="#", off="."):
        # Text rendition of the whole buffer for debugging.  Doesn't count as the host reading the screen.
        return [
            "".join(on if (row >> (VID_WIDTH - 1 - x)) & 1 else off for x in range(VID_WIDTH))
            for row in self.rows
        ]
