#!/usr/bin/env python3

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import os
import tempfile
import unittest
from schipcore.constants import DEFAULT_FONT
from schipcore.hostio import Loader, LoaderError


class TestLoader(unittest.TestCase):
    def setUp(self):
        self.loader = Loader()
        self.tmp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp_dir.cleanup()

    def _write_file(self, name, data):
        filename = os.path.join(self.tmp_dir.name, name)

        with open(filename, "wb") as f:
            f.write(data)

        return filename

    def test_loader_load_file_present(self):
        filename = self._write_file("prog.ch8", b"\x60\x05\x70\x03")
        self.assertEqual(b"\x60\x05\x70\x03", self.loader.load_binary(filename))
        self.assertEqual(b"\x60\x05\x70\x03", self.loader.load_program(filename))

    def test_loader_load_file_missing(self):
        self.assertRaises(FileNotFoundError, self.loader.load_binary, "NoFile.ch8")

    def test_loader_program_too_large(self):
        filename = self._write_file("big.ch8", bytes(0xE01))
        self.assertRaises(LoaderError, self.loader.load_program, filename)
        self.assertEqual(0xE00, len(self.loader.load_program(self._write_file("fits.ch8", bytes(0xE00)))))
        self.assertRaises(LoaderError, self.loader.load_program, self._write_file("eti.ch8", bytes(0xA01)), 0x600)

    def test_loader_load_font(self):
        filename = self._write_file("font.bin", DEFAULT_FONT)
        self.assertEqual(DEFAULT_FONT, self.loader.load_font(filename))
        self.assertRaises(LoaderError, self.loader.load_font, self._write_file("short.bin", DEFAULT_FONT[:80]))
