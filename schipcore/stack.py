#!/usr/bin/env python3

"""
Stack Emulator

The call stack is kept outside of system RAM, as nothing in a program can
address it.  It holds return addresses rather than bytes, in a fixed number of
slots with a pointer to the most recently pushed one.

The pointer moves up before a push writes its slot, and moves down once the
slot being popped has been read.  Slot 0 is the empty position, so the pointer
also doubles as the current call depth.

Pushing past the final slot, or popping with nothing pushed, would index
outside the slots.  Both are reported as a StackError instead.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import STACK_SIZE


class StackError(Exception):
    pass


class Stack:
    def __init__(self, size=STACK_SIZE):
        self.slots = [0] * (size + 1)
        self.size = size
        self.sp = 0

    def push(self, addr):
        if self.sp >= self.size:
            raise StackError("Stack overflow (more than {} nested calls)".format(self.size))

        self.sp += 1
        self.slots[self.sp] = addr

    def pop(self):
        if self.sp <= 0:
            raise StackError("Stack underflow (return without a call)")

        addr = self.slots[self.sp]
        self.sp -= 1
        return addr

    def get_items(self):
        # Live return addresses only, oldest first
        return self.slots[1:self.sp + 1]

    def get_slots(self):
        return tuple(self.slots[1:])
