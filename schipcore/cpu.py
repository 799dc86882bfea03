#!/usr/bin/env python3

"""
CPU Emulator (CHIP-8 and Super-CHIP)

Like a real computer, this is where most of the processing happens.  Each call
to tick() fetches one opcode, decodes it, and executes it against the machine
state and the display.  The host decides how often to call tick(), and calls
timers_tick() separately at 60Hz.

Keyboard input is supplied by the host as two callables:
    * key_state(key) - Return whether key 0x0-0xF is currently held down
    * key_wait()     - Block until a key is pressed, then return it

The whole interpreter is suspended while key_wait() blocks.  If cancellation is
needed, it must be handled by the host, and key_wait() should return promptly.

Opcode 0x00FD ends the program.  This is not an error: tick() returns False,
and keeps doing so if called again.  Opcodes that cannot be decoded raise
CPUError, after which the CPU must not be ticked again.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from random import Random
from .constants import ADDR_MASK, CORE_INTRO, FONT_BG_LOC, FONT_BG_STRIDE, FONT_SM_LOC, FONT_SM_STRIDE
from .debugger import Debugger
from .display import Display
from .ram import RAMError
from .stack import StackError
from .state import MachineState


class CPUError(Exception):
    pass


def no_key_down(key):  # pylint: disable=unused-argument
    return False  # No keys are held


def no_key_wait():
    return 0x0  # Pretend key 0 was pressed, rather than blocking forever


class CPU:
    def __init__(self, state=None, display=None, key_wait=None, key_state=None, rng=None, debugger=None):
        self.state = MachineState() if state is None else state
        self.display = Display() if display is None else display
        self.set_key_handlers(key_wait, key_state)
        self.rng = Random() if rng is None else rng  # Pass in a seeded Random to get repeatable RND results
        self.debugger = Debugger() if debugger is None else debugger
        self.live_debug = self.debugger.is_live()

        # Define instruction pointers.
        # n = Nibble
        # kk = Byte
        # nnn = address
        # x/y = register (0-15)
        self.instructions = {
            # Initial lookup for instructions' first nibble
            0x0: self._0nnn,  # Alias for bitmask 0xFFFF
            0x1: self._1nnn,
            0x2: self._2nnn,
            0x3: self._3xkk,
            0x4: self._4xkk,
            0x5: self._5xy0,
            0x6: self._6xkk,
            0x7: self._7xkk,
            0x8: self._8nnn,  # Alias for bitmask 0xF00F
            0x9: self._9xy0,
            0xA: self._Annn,
            0xB: self._Bnnn,
            0xC: self._Cxkk,
            0xD: self._Dxyn,
            0xE: self._Ennn_Fnnn,  # Alias for bitmask 0xF0FF
            0xF: self._Ennn_Fnnn,  # Alias for bitmask 0xF0FF
            # Instructions beginning with nibble 0x0, bitmask 0xFFFF (i.e., exact match)
            0x00E0: self._00E0,
            0x00EE: self._00EE,
            0x00FB: self._00FB,
            0x00FC: self._00FC,
            0x00FD: self._00FD,
            0x00FE: self._00FE,
            0x00FF: self._00FF,
            # Instructions beginning with nibble 0x8, bitmask 0xF00F
            0x8000: self._8xy0,
            0x8001: self._8xy1,
            0x8002: self._8xy2,
            0x8003: self._8xy3,
            0x8004: self._8xy4,
            0x8005: self._8xy5,
            0x8006: self._8xy6,
            0x8007: self._8xy7,
            0x800E: self._8xyE,
            # Instructions beginning with nibble 0xE/0xF, bitmask 0xF0FF
            0xE09E: self._Ex9E,
            0xE0A1: self._ExA1,
            0xF007: self._Fx07,
            0xF00A: self._Fx0A,
            0xF015: self._Fx15,
            0xF018: self._Fx18,
            0xF01E: self._Fx1E,
            0xF029: self._Fx29,
            0xF030: self._Fx30,
            0xF033: self._Fx33,
            0xF055: self._Fx55,
            0xF065: self._Fx65
        }

        # Not worth having a separate way of accessing these, as there are only 16
        for n in range(0x10):  # Add scroll down functions
            self.instructions[0x00C0 | n] = self._00Cn

        self.opcode = 0
        self.debug_pc = 0
        self.exited = False

    def set_key_handlers(self, key_wait=None, key_state=None):
        # Either handler can be swapped at any time, even between ticks
        self.key_wait = no_key_wait if key_wait is None else key_wait
        self.key_state = no_key_down if key_state is None else key_state

    def set_debug(self, enabled):
        self.debugger.set_live(enabled)
        self.live_debug = enabled

    def load(self, at, program, font=None):
        self.state.load(at, program, font)
        self.exited = False

    def timers_tick(self):
        self.state.timers_tick()

    def tick(self):
        # Returns False once the program has exited
        state = self.state
        # Keep track of the program counter before altering it in any way for debugging purposes
        self.debug_pc = state.pc

        try:
            self.opcode = self.fetch()
            self.inc_pc()  # Program counter updates after fetch, but before execute
            self.decode_exec()
        except (RAMError, StackError) as err:
            self._crash(str(err))

        return not self.exited

    def fetch(self):
        return self.state.ram.read_word(self.state.pc)

    def _call_masked_instruction(self, masked_opcode):
        instruction = self.instructions.get(masked_opcode)

        if instruction is None:
            self._opcode_unsupported()

        instruction()

    def decode_exec(self):
        self._call_masked_instruction((0xF000 & self.opcode) >> 12)

    def inc_pc(self):
        self.state.pc = (self.state.pc + 2) & ADDR_MASK

    def dec_pc(self):
        # Only used to re-run the exit instruction
        self.state.pc = (self.state.pc - 2) & ADDR_MASK

    # References to Vx, Vy, byte and addr are always in the same opcode position throughout all instructions, so avoid
    # excessive code duplication.  Don't reference these more than necessary as they are recalculated each time.
    @property
    def vx(self):
        return (self.opcode & 0xF00) >> 8

    @property
    def vy(self):
        return (self.opcode & 0xF0) >> 4

    @property
    def addr(self):
        return self.opcode & 0xFFF

    @property
    def byte(self):
        return self.opcode & 0xFF

    @property
    def nibble(self):
        return self.opcode & 0xF

    def _crash(self, reason):
        raise CPUError(
            (
                "Emulation halted.\n\n" +
                "{}Debug info:\n" +
                "{}\n\n{} (opcode 0x{:04x} at address 0x{:03x})."
            ).format(
                CORE_INTRO, self.debugger.debug(self, "???", verbose=True), reason, self.opcode, self.debug_pc
            )
        ) from None

    def _opcode_unsupported(self):
        self._crash("Opcode is not a recognised instruction")

    def debug(self, instruction):
        self.debugger.output(self, instruction)

    def _0nnn(self):
        # Opcodes 0x0000-0x000F would clash with the first nibble lookups
        instruction = self.instructions.get(self.opcode) if self.opcode > 0xF else None

        if instruction is None:
            # Machine code routine on the original hardware.  There's nothing to run, so skip it.
            if self.live_debug:
                self.debug("SYS 0x{:03x}".format(self.addr))

            return

        instruction()

    def _8nnn(self):
        self._call_masked_instruction(self.opcode & 0xF00F)

    def _Ennn_Fnnn(self):
        self._call_masked_instruction(self.opcode & 0xF0FF)

    def _post_skip(self):
        self.inc_pc()

    def _00Cn(self):  # SCD n
        if self.live_debug:
            self.debug("SCD {:01x}".format(self.nibble))

        # Distance is in buffer rows, so it's halved when seen from low resolution
        self.display.scroll_down(self.nibble)

    def _00E0(self):  # CLS
        if self.live_debug:
            self.debug("CLS")

        self.display.clear()

    def _00EE(self):  # RET
        if self.live_debug:
            self.debug("RET")

        # The stack holds the address of the call itself, so step over it
        self.state.pc = self.state.stack_pop()
        self.inc_pc()

    def _00FB(self):  # SCR
        if self.live_debug:
            self.debug("SCR")

        self.display.scroll_side(4)

    def _00FC(self):  # SCL
        if self.live_debug:
            self.debug("SCL")

        self.display.scroll_side(-4)

    def _00FD(self):  # EXIT
        if self.live_debug:
            self.debug("EXIT")

        # Stay on this instruction, so any further ticks exit again
        self.dec_pc()
        self.exited = True

    def _00FE(self):  # LOW
        if self.live_debug:
            self.debug("LOW")

        self.display.low_res_mode()

    def _00FF(self):  # HIGH
        if self.live_debug:
            self.debug("HIGH")

        self.display.hi_res_mode()

    def _1nnn(self):  # JP addr
        if self.live_debug:
            self.debug("JP 0x{:03x}".format(self.addr))

        self.state.pc = self.addr

    def _2nnn(self):  # CALL addr
        if self.live_debug:
            self.debug("CALL 0x{:03x}".format(self.addr))

        self.state.stack_push(self.debug_pc)
        self.state.pc = self.addr

    def _3xkk(self):  # SE Vx, byte
        if self.live_debug:
            self.debug("SE V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        if self.state.v[self.vx] == self.byte:
            self._post_skip()

    def _4xkk(self):  # SNE Vx, byte
        if self.live_debug:
            self.debug("SNE V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        if self.state.v[self.vx] != self.byte:
            self._post_skip()

    def _5xy0(self):  # SE Vx, Vy
        if self.live_debug:
            self.debug("SE V{:01x}, V{:01x}".format(self.vx, self.vy))

        # The low nibble isn't checked, so 5xy1-5xyF behave the same
        if self.state.v[self.vx] == self.state.v[self.vy]:
            self._post_skip()

    def _6xkk(self):  # LD Vx, byte
        if self.live_debug:
            self.debug("LD V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        self.state.v[self.vx] = self.byte

    def _7xkk(self):  # ADD Vx, byte
        vx = self.vx
        byte = self.byte

        if self.live_debug:
            self.debug("ADD V{:01x}, 0x{:02x}".format(vx, byte))

        # Wraps, and Vf is left alone
        byte += self.state.v[vx]
        self.state.v[vx] = byte & 0xFF

    def _8xy0(self):  # LD Vx, Vy
        if self.live_debug:
            self.debug("LD V{:01x}, V{:01x}".format(self.vx, self.vy))

        v = self.state.v
        v[self.vx] = v[self.vy]

    def _8xy1(self):  # OR Vx, Vy
        if self.live_debug:
            self.debug("OR V{:01x}, V{:01x}".format(self.vx, self.vy))

        v = self.state.v
        v[self.vx] |= v[self.vy]

    def _8xy2(self):  # AND Vx, Vy
        if self.live_debug:
            self.debug("AND V{:01x}, V{:01x}".format(self.vx, self.vy))

        v = self.state.v
        v[self.vx] &= v[self.vy]

    def _8xy3(self):  # XOR Vx, Vy
        if self.live_debug:
            self.debug("XOR V{:01x}, V{:01x}".format(self.vx, self.vy))

        v = self.state.v
        v[self.vx] ^= v[self.vy]

    def _8xy4(self):  # ADD Vx, Vy
        vx = self.vx
        vy = self.vy

        if self.live_debug:
            self.debug("ADD V{:01x}, V{:01x}".format(vx, vy))

        v = self.state.v
        val = v[vx] + v[vy]
        v[vx] = val & 0xFF
        v[0xF] = int(val > 0xFF)  # Vf is set when carrying

    def _post_8xy5_8xy7(self, val):  # Post-SUB/SUBN
        v = self.state.v
        v[self.vx] = val & 0xFF
        # Vf is set when NOT borrowing, and this should happen AFTER Vx is set, as sometimes Vf is specified in the
        # parameters
        v[0xF] = int(val >= 0)

    def _8xy5(self):  # SUB Vx, Vy
        if self.live_debug:
            self.debug("SUB V{:01x}, V{:01x}".format(self.vx, self.vy))

        v = self.state.v
        self._post_8xy5_8xy7(v[self.vx] - v[self.vy])

    def _8xy6(self):  # SHR Vx, Vy
        # The original machine shifts Vy into Vx.  Later variants shift Vx in place, but that isn't emulated here.
        if self.live_debug:
            self.debug("SHR V{:01x}, V{:01x}".format(self.vx, self.vy))

        v = self.state.v
        val = v[self.vy]
        v[self.vx] = val >> 1
        v[0xF] = val & 1  # The whole byte gets set just for the flag

    def _8xy7(self):  # SUBN Vx, Vy
        if self.live_debug:
            self.debug("SUBN V{:01x}, V{:01x}".format(self.vx, self.vy))

        v = self.state.v
        self._post_8xy5_8xy7(v[self.vy] - v[self.vx])

    def _8xyE(self):  # SHL Vx, Vy
        if self.live_debug:
            self.debug("SHL V{:01x}, V{:01x}".format(self.vx, self.vy))

        v = self.state.v
        val = v[self.vy]
        v[self.vx] = (val << 1) & 0xFF
        v[0xF] = val >> 7

    def _9xy0(self):  # SNE Vx, Vy
        if self.live_debug:
            self.debug("SNE V{:01x}, V{:01x}".format(self.vx, self.vy))

        if self.state.v[self.vx] != self.state.v[self.vy]:
            self._post_skip()

    def _Annn(self):  # LD I, addr
        if self.live_debug:
            self.debug("LD I, 0x{:03x}".format(self.addr))

        self.state.i = self.addr

    def _Bnnn(self):  # JP V0, addr
        if self.live_debug:
            self.debug("JP V0, 0x{:03x}".format(self.addr))

        self.state.pc = (self.state.v[0] + self.addr) & ADDR_MASK

    def _Cxkk(self):  # RND Vx, byte
        if self.live_debug:
            self.debug("RND V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        # The ANDing here is intentional.  This is not a random number between 0 and 'byte' inclusive.
        self.state.v[self.vx] = self.rng.randint(0, 0xFF) & self.byte

    def _Dxyn(self):  # DRW Vx, Vy, nibble
        # Main sprite drawing routine.  If nibble == 0 in high resolution, then draw a 16x16 sprite
        height = self.nibble

        if self.live_debug:
            self.debug("DRW V{:01x}, V{:01x}, 0x{:01x}".format(self.vx, self.vy, height))

        state = self.state
        ram = state.ram
        display = self.display
        x_pos = state.v[self.vx]
        y_pos = state.v[self.vy]
        i = state.i
        erased = False

        if height == 0 and display.is_hi_res():
            for y in range(16):
                erased |= display.write(ram.read((i + y * 2) & ADDR_MASK), x_pos, y_pos + y)
                erased |= display.write(ram.read((i + y * 2 + 1) & ADDR_MASK), x_pos + 8, y_pos + y)
        else:
            for y in range(height):
                erased |= display.write(ram.read((i + y) & ADDR_MASK), x_pos, y_pos + y)

        state.v[0xF] = int(erased)

    def _Ex9E(self):  # SKP Vx
        if self.live_debug:
            self.debug("SKP V{:01x}".format(self.vx))

        if self.key_state(self.state.v[self.vx]):
            self._post_skip()

    def _ExA1(self):  # SKNP Vx
        if self.live_debug:
            self.debug("SKNP V{:01x}".format(self.vx))

        if not self.key_state(self.state.v[self.vx]):
            self._post_skip()

    def _Fx07(self):  # LD Vx, DT
        if self.live_debug:
            self.debug("LD V{:01x}, DT".format(self.vx))

        self.state.v[self.vx] = self.state.dt

    def _Fx0A(self):  # LD Vx, K
        if self.live_debug:
            self.debug("LD V{:01x}, K".format(self.vx))

        # Blocks everything, including the timers, until the host returns a key
        key = self.key_wait()

        if not 0x0 <= key <= 0xF:
            self._crash("Key handler returned {!r}, which is not a key between 0x0 and 0xF".format(key))

        self.state.v[self.vx] = key

    def _Fx15(self):  # LD DT, Vx
        if self.live_debug:
            self.debug("LD DT, V{:01x}".format(self.vx))

        self.state.dt = self.state.v[self.vx]

    def _Fx18(self):  # LD ST, Vx
        if self.live_debug:
            self.debug("LD ST, V{:01x}".format(self.vx))

        self.state.st = self.state.v[self.vx]

    def _Fx1E(self):  # ADD I, Vx
        if self.live_debug:
            self.debug("ADD I, V{:01x}".format(self.vx))

        self.state.i = (self.state.i + self.state.v[self.vx]) & ADDR_MASK

    def _Fx29(self):  # LD F, Vx
        if self.live_debug:
            self.debug("LD F, V{:01x}".format(self.vx))

        self.state.i = (FONT_SM_LOC + FONT_SM_STRIDE * self.state.v[self.vx]) & ADDR_MASK

    def _Fx30(self):  # LD HF, Vx
        if self.live_debug:
            self.debug("LD HF, V{:01x}".format(self.vx))

        self.state.i = (FONT_BG_LOC + FONT_BG_STRIDE * self.state.v[self.vx]) & ADDR_MASK

    def _Fx33(self):  # LD B, Vx
        if self.live_debug:
            self.debug("LD B, V{:01x}".format(self.vx))

        ram = self.state.ram
        val = self.state.v[self.vx]
        i = self.state.i
        ram.write(i, val // 100)                             # Most-significant digit
        ram.write((i + 1) & ADDR_MASK, (val // 10) % 10)     # Middle digit
        ram.write((i + 2) & ADDR_MASK, val % 10)             # Least-significant digit

    def _Fx55(self):  # LD [I], Vx
        if self.live_debug:
            self.debug("LD [I], V{:01x}".format(self.vx))

        # I is left unchanged afterwards.  Ensure with +1 that Vx itself is stored.
        state = self.state
        i = state.i

        for reg in range(self.vx + 1):
            state.ram.write((i + reg) & ADDR_MASK, state.v[reg])

    def _Fx65(self):  # LD Vx, [I]
        if self.live_debug:
            self.debug("LD V{:01x}, [I]".format(self.vx))

        state = self.state
        i = state.i

        for reg in range(self.vx + 1):
            state.v[reg] = state.ram.read((i + reg) & ADDR_MASK)
