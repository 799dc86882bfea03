#!/usr/bin/env python3

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import unittest
from schipcore.constants import DEFAULT_FONT
from schipcore.ram import RAMError
from schipcore.stack import StackError
from schipcore.state import MachineState, LoadError


class TestMachineState(unittest.TestCase):
    def setUp(self):
        self.state = MachineState()

    def test_state_init(self):
        state = self.state
        self.assertEqual((0,) * 16, state.get_regs())
        self.assertEqual(0, state.get_i())
        self.assertEqual(0, state.get_pc())
        self.assertEqual(0, state.get_delay_timer())
        self.assertEqual(0, state.get_sound_timer())
        self.assertFalse(state.is_sound_playing())

    def test_state_load(self):
        self.state.load(0x200, b"\x60\x05\x70\x03")
        self.assertEqual(0x200, self.state.get_pc())
        self.assertEqual(0x6005, self.state.get_opcode(0x200))
        self.assertEqual(0x03, self.state.get_memory(0x203))
        self.assertEqual(DEFAULT_FONT, bytes(self.state.ram.read_block(0, 240)))

    def test_state_load_eti_660(self):
        self.state.load(0x600, b"\x12\x34")
        self.assertEqual(0x600, self.state.get_pc())
        self.assertEqual(0x1234, self.state.get_opcode(0x600))

    def test_state_load_custom_font(self):
        font = bytes(range(240))
        self.state.load(240, b"\xAB", font)
        self.assertEqual(font, bytes(self.state.ram.read_block(0, 240)))
        self.assertEqual(0xAB, self.state.get_memory(240))
        self.assertEqual(240, self.state.get_pc())

    def test_state_load_over_font(self):
        self.assertRaises(LoadError, self.state.load, 239, b"\x00\xE0")
        self.assertRaises(LoadError, self.state.load, 0, b"\x00\xE0")
        self.assertEqual(0, self.state.get_memory(0))

    def test_state_load_bad_font(self):
        self.assertRaises(LoadError, self.state.load, 0x200, b"\x00\xE0", bytes(200))

    def test_state_load_too_large(self):
        self.assertRaises(RAMError, self.state.load, 0x200, bytes(0xE01))

    def test_state_stack(self):
        self.state.stack_push(0x200)
        self.state.stack_push(0x204)
        self.assertEqual(0x204, self.state.stack_pop())
        self.assertEqual(0x200, self.state.stack_pop())
        self.assertRaises(StackError, self.state.stack_pop)

    def test_state_timers_tick(self):
        state = self.state
        state.dt = 2
        state.st = 1
        self.assertTrue(state.is_sound_playing())
        state.timers_tick()
        self.assertEqual((1, 0), (state.get_delay_timer(), state.get_sound_timer()))
        self.assertFalse(state.is_sound_playing())
        state.timers_tick()
        state.timers_tick()
        self.assertEqual((0, 0), (state.get_delay_timer(), state.get_sound_timer()))

    def test_state_snapshot(self):
        state = self.state
        state.load(0x200, b"\x22\x06")
        state.v[0x3] = 0x42
        state.i = 0x123
        state.dt = 7
        state.st = 9
        state.stack_push(0x200)
        snapshot = state.snapshot()
        self.assertEqual(0x42, snapshot.regs[0x3])
        self.assertEqual(0x123, snapshot.i)
        self.assertEqual(0x200, snapshot.pc)
        self.assertEqual(1, snapshot.sp)
        self.assertEqual(0x200, snapshot.stack[0])
        self.assertEqual(16, len(snapshot.stack))
        self.assertEqual((9, 7), (snapshot.sound_timer, snapshot.delay_timer))
        self.assertEqual(0x22, snapshot.mem[0x200])
        self.assertEqual(4096, len(snapshot.mem))

        # Later changes don't leak into an existing snapshot
        state.v[0x3] = 0
        state.ram.write(0x200, 0)
        self.assertEqual(0x42, snapshot.regs[0x3])
        self.assertEqual(0x22, snapshot.mem[0x200])
