#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 14:31:50 krylon>
#
# /data/code/python/zonesync/test_generator.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.test_generator

(c) 2026 Benjamin Walkenhorst
"""


import os
import shutil
import unittest
from datetime import datetime
from pathlib import Path
from typing import Final, Optional

from zonesync import common
from zonesync.generator import GeneratorError, GeneratorResult, ZoneGenerator

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_generator_%Y%m%d_%H%M%S"))

# Stands in for h2n: writes a zone file named after the options file into the
# current directory, complains on stderr when asked to, fails when asked to.
fake_h2n: Final[str] = """\
#!/bin/sh
[ "$1" = "-f" ] || exit 64
case "$2" in
    *fail*) echo "cannot parse $2" >&2; exit 1 ;;
    *warn*) echo "duplicate address for host1" >&2 ;;
esac
echo "zone data from $2" > "db.$2"
exit 0
"""


class TestZoneGenerator(unittest.TestCase):
    """Test running the ZoneGenerator."""

    _gen: Optional[ZoneGenerator] = None

    @classmethod
    def gen(cls, g: Optional[ZoneGenerator] = None) -> ZoneGenerator:
        """Set or return the ZoneGenerator."""
        if g is not None:
            cls._gen = g
        if cls._gen is not None:
            return cls._gen

        raise ValueError("ZoneGenerator instance is None")

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)
        script: Final[Path] = Path(test_dir, "h2n")
        script.write_text(fake_h2n, encoding="utf-8")
        script.chmod(0o755)
        Path(test_dir, "build").mkdir(exist_ok=True)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    def test_01_create_generator(self) -> None:
        """Attempt to create a ZoneGenerator."""
        g: ZoneGenerator = ZoneGenerator(program=os.path.join(test_dir, "h2n"),
                                         workdir=Path(test_dir, "build"))
        self.assertIsNotNone(g)
        self.assertIsInstance(g, ZoneGenerator)
        self.gen(g)

    def test_02_run(self) -> None:
        """Run the generator successfully."""
        g: ZoneGenerator = self.gen()
        res: GeneratorResult = g.run("options.example")
        self.assertTrue(res.passed)
        self.assertEqual(res.status, 0)
        self.assertEqual(res.messages, "")
        self.assertEqual(Path(test_dir, "build", "db.options.example").read_text(encoding="utf-8"),
                         "zone data from options.example\n")

    def test_03_warning(self) -> None:
        """Messages on stderr do not make a run fail."""
        res: GeneratorResult = self.gen().run("options.warn")
        self.assertTrue(res.passed)
        self.assertEqual(res.messages, "duplicate address for host1")

    def test_04_failure(self) -> None:
        """A non-zero exit status does."""
        res: GeneratorResult = self.gen().run("options.fail")
        self.assertFalse(res.passed)
        self.assertEqual(res.status, 1)
        self.assertEqual(res.messages, "cannot parse options.fail")
        self.assertFalse(Path(test_dir, "build", "db.options.fail").exists())

    def test_05_missing_program(self) -> None:
        """A generator that cannot be run at all raises an Exception."""
        g = ZoneGenerator(program=os.path.join(test_dir, "no-such-h2n"),
                          workdir=Path(test_dir, "build"))
        with self.assertRaises(GeneratorError):
            g.run("options.example")


# Local Variables: #
# python-indent: 4 #
# End: #
