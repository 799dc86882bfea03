#!/usr/bin/env python3

"""
Machine State

Everything the CPU mutates other than the display: RAM, the 16 V registers,
the index register (I), the program counter, the call stack, and the delay and
sound timers.

VF is stored as an ordinary register, but several instruction families
overwrite it with a flag (carry, borrow, shifted-out bit, or collision), so its
value never survives one of those instructions.

Timers are decremented by timers_tick(), which the host calls at 60Hz,
independently of how quickly instructions are being executed.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from collections import namedtuple
from .constants import DEFAULT_FONT, FONT_SIZE
from .ram import RAM
from .stack import Stack

MachineSnapshot = namedtuple(
    "MachineSnapshot", ["mem", "regs", "stack", "pc", "i", "sp", "sound_timer", "delay_timer"]
)


class LoadError(Exception):
    pass


class MachineState:
    def __init__(self):
        self.ram = RAM()
        self.stack = Stack()
        self.v = memoryview(bytearray(16))
        self.i = 0
        self.pc = 0
        self.dt = 0  # Delay timer
        self.st = 0  # Sound timer

    def load(self, at, program, font=None):
        # The loading location should almost always be 0x200, but ETI 660 programs start at 0x600
        if at < FONT_SIZE:
            raise LoadError(
                "Cannot load a program at 0x{:03x}, as the first {} bytes hold the system font".format(at, FONT_SIZE)
            )

        font = DEFAULT_FONT if font is None else font

        if len(font) != FONT_SIZE:
            raise LoadError("A replacement font must be exactly {} bytes, not {}".format(FONT_SIZE, len(font)))

        self.ram.write_block(0, bytes(font))
        self.ram.write_block(at, bytes(program))
        self.pc = at

    def stack_push(self, addr):
        self.stack.push(addr)

    def stack_pop(self):
        return self.stack.pop()

    def timers_tick(self):
        if self.dt > 0:
            self.dt -= 1

        if self.st > 0:
            self.st -= 1

    # Host-facing queries

    def get_reg(self, reg):
        return self.v[reg]

    def get_regs(self):
        return tuple(self.v)

    def get_i(self):
        return self.i

    def get_pc(self):
        return self.pc

    def get_delay_timer(self):
        return self.dt

    def get_sound_timer(self):
        return self.st

    def is_sound_playing(self):
        return self.st > 0

    def get_memory(self, addr):
        return self.ram.read(addr)

    def get_opcode(self, addr):
        return self.ram.read_word(addr)

    def snapshot(self):
        return MachineSnapshot(
            mem=bytes(self.ram.mem),
            regs=tuple(self.v),
            stack=self.stack.get_slots(),
            pc=self.pc,
            i=self.i,
            sp=self.stack.sp,
            sound_timer=self.st,
            delay_timer=self.dt
        )
