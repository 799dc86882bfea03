#!/usr/bin/env python3

"""
CHIP-8 / Super-CHIP Execution Core

Simply call create_cpu() with a program to get a CPU ready to tick.  The host
is responsible for timing, rendering, audio and reading the keyboard:

    cpu = create_cpu(program, key_wait=wait_for_key, key_state=is_key_down)

    while cpu.tick():          # Some hundreds of times a second
        cpu.timers_tick()      # 60 times a second
        if cpu.display.is_dirty():
            draw(cpu.display.read())

    play_beep(cpu.state.is_sound_playing())
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import LOAD_DEFAULT, LOAD_ETI_660, DEFAULT_FONT
from .cpu import CPU, CPUError
from .debugger import Debugger
from .display import Display, DisplayError, expand
from .hostio import Loader, LoaderError
from .ram import RAM, RAMError
from .stack import Stack, StackError
from .state import MachineState, MachineSnapshot, LoadError

__all__ = [
    "create_cpu", "CPU", "CPUError", "Debugger", "Display", "DisplayError", "expand", "Loader", "LoaderError", "RAM",
    "RAMError", "Stack", "StackError", "MachineState", "MachineSnapshot", "LoadError", "LOAD_DEFAULT", "LOAD_ETI_660",
    "DEFAULT_FONT"
]


def create_cpu(program, at=LOAD_DEFAULT, font=None, key_wait=None, key_state=None, rng=None, debug=False):
    # Write the font and program into fresh RAM, and point the CPU at the start of the program
    cpu = CPU(key_wait=key_wait, key_state=key_state, rng=rng, debugger=Debugger(live=debug))
    cpu.load(at, program, font)
    return cpu
