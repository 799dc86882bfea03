#!/usr/bin/env python3

"""
Host I/O Functionality

Handles loading program binaries and replacement fonts from the host, ready
for writing into RAM.  Programs are raw opcode streams with no header.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import FONT_SIZE, LOAD_DEFAULT, MEM_SIZE


class LoaderError(Exception):
    pass


class Loader:
    def load_binary(self, filename):
        with open(filename, "rb") as f:
            return f.read()

    def load_program(self, filename, at=LOAD_DEFAULT):
        data = self.load_binary(filename)

        if len(data) > MEM_SIZE - at:
            raise LoaderError(
                "Program is {} bytes, but only {} bytes are free from 0x{:03x}".format(len(data), MEM_SIZE - at, at)
            )

        return data

    def load_font(self, filename):
        # 16 small 5-byte glyphs followed by 16 large 10-byte glyphs
        data = self.load_binary(filename)

        if len(data) != FONT_SIZE:
            raise LoaderError("Font files must be exactly {} bytes, not {}".format(FONT_SIZE, len(data)))

        return data
