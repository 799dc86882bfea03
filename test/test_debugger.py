#!/usr/bin/env python3

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import io
import unittest
from contextlib import redirect_stdout
from schipcore import create_cpu
from schipcore.debugger import Debugger


class TestDebugger(unittest.TestCase):
    def setUp(self):
        self.cpu = create_cpu(b"\x6A\x12\x22\x08")
        self.debugger = Debugger()

    def test_debugger_line(self):
        self.cpu.tick()
        self.cpu.state.i = 0x123
        debug_str = self.debugger.debug(self.cpu, "LD VA, 0x12")
        self.assertTrue(debug_str.startswith("V: 0x00000000001200000000000000000000 "))
        self.assertIn("I: 0x123", debug_str)
        self.assertIn("PC: 0x200", debug_str)
        self.assertIn("OP: 0x6a12", debug_str)
        self.assertTrue(debug_str.endswith("IN: LD VA, 0x12"))
        self.assertNotIn("Stack", debug_str)

    def test_debugger_verbose(self):
        self.cpu.tick()
        self.cpu.tick()
        debug_str = self.debugger.debug(self.cpu, "???", verbose=True)
        self.assertIn("Mode: low resolution", debug_str)
        self.assertIn("Stack: 0x202", debug_str)

    def test_debugger_live(self):
        self.assertFalse(self.debugger.is_live())
        self.cpu.set_debug(True)
        output = io.StringIO()

        with redirect_stdout(output):
            self.cpu.tick()
            self.cpu.tick()

        lines = output.getvalue().splitlines()
        self.assertEqual(2, len(lines))
        self.assertTrue(lines[0].endswith("IN: LD Va, 0x12"))
        self.assertTrue(lines[1].endswith("IN: CALL 0x208"))

    def test_debugger_quiet(self):
        output = io.StringIO()

        with redirect_stdout(output):
            self.cpu.tick()

        self.assertEqual("", output.getvalue())
