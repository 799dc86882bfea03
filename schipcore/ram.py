#!/usr/bin/env python3

"""
RAM Emulator

A fixed block of system memory which lives for the whole session.  The first
240 bytes hold the system fonts, and programs are loaded somewhere above them.

Opcodes are fetched from here as big-endian words.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import MEM_SIZE

CPU_ENDIAN = "big"  # CHIP-8 is big-endian


class RAMError(Exception):
    pass


class RAM:
    def __init__(self, mem_size=MEM_SIZE):
        self.mem = memoryview(bytearray(mem_size))
        self.mem_top = mem_size - 1
        self.mem_size = mem_size

    def read(self, location):
        self.check_overflow(location)
        return self.mem[location]

    def read_block(self, location, size=1):
        self.check_overflow(location + size - 1)
        return self.mem[location:location + size]

    def read_word(self, location):
        # An opcode is the byte at the location followed by the byte after it
        return int.from_bytes(self.read_block(location, 2), CPU_ENDIAN, signed=False)

    def write(self, location, byte):
        self.check_overflow(location)
        self.mem[location] = byte

    def write_block(self, location, block):
        block_top = location + len(block)
        self.check_overflow(block_top - 1)
        self.mem[location:block_top] = block

    def check_overflow(self, location):
        if location > self.mem_top or location < 0:
            raise RAMError("Memory access out of range at 0x{:04x}".format(location))

    def clear(self):
        self.mem[:] = bytes(self.mem_size)
