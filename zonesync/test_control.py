#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 14:52:09 krylon>
#
# /data/code/python/zonesync/test_control.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.test_control

(c) 2026 Benjamin Walkenhorst
"""

import os
import shutil
import unittest
from datetime import datetime
from pathlib import Path
from typing import Final

from zonesync import common
from zonesync.control import ControlError, NameServerControl, ServerState

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_control_%Y%m%d_%H%M%S"))

# A control program whose name server is running if a marker file exists.
fake_ndc: Final[str] = """\
#!/bin/sh
dir=$(dirname "$0")
case "$1" in
    status)
        if [ -f "$dir/running" ]; then
            echo "$STATUS_TEXT"
            exit 0
        fi
        echo "ndc: connect: Connection refused" >&2
        exit 1
        ;;
    reload)
        echo "Reload initiated."
        ;;
    start)
        touch "$dir/running"
        echo "new pid is 4711"
        ;;
    *)
        exit 64
        ;;
esac
"""


class TestControl(unittest.TestCase):
    """Test talking to the name server."""

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)
        script: Final[Path] = Path(test_dir, "ndc")
        script.write_text(fake_ndc, encoding="utf-8")
        script.chmod(0o755)
        os.environ["STATUS_TEXT"] = "named 8.2.3 is up and running"

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        del os.environ["STATUS_TEXT"]
        shutil.rmtree(test_dir, ignore_errors=True)

    def ctl(self) -> NameServerControl:
        """Return a NameServerControl that uses the fake control program."""
        return NameServerControl(program=os.path.join(test_dir, "ndc"))

    def test_01_stopped(self) -> None:
        """A name server that does not answer is not running."""
        self.assertEqual(self.ctl().status(), ServerState.Stopped)

    def test_02_start(self) -> None:
        """Start the name server."""
        ctl = self.ctl()
        self.assertEqual(ctl.start(), "new pid is 4711")
        self.assertEqual(ctl.status(), ServerState.Running)

    def test_03_rndc(self) -> None:
        """rndc words it differently."""
        os.environ["STATUS_TEXT"] = "server is up and running"
        self.assertEqual(self.ctl().status(), ServerState.Running)
        os.environ["STATUS_TEXT"] = "version: BIND 9.18.24\nserver is up"
        self.assertEqual(self.ctl().status(), ServerState.Running)
        os.environ["STATUS_TEXT"] = "server is shutting down"
        self.assertEqual(self.ctl().status(), ServerState.Stopped)
        os.environ["STATUS_TEXT"] = "named 8.2.3 is up and running"

    def test_04_reload(self) -> None:
        """Reload the name server."""
        self.assertEqual(self.ctl().reload(), "Reload initiated.")

    def test_05_start_command(self) -> None:
        """The name server can be started with a command of its own."""
        Path(test_dir, "running").unlink(missing_ok=True)
        ctl = NameServerControl(program=os.path.join(test_dir, "ndc"),
                                start_command=f"/bin/sh -c true {test_dir}")
        self.assertEqual(ctl.start(), "")
        self.assertEqual(ctl.status(), ServerState.Stopped)

    def test_06_missing_program(self) -> None:
        """A control program that cannot be run raises an Exception."""
        ctl = NameServerControl(program=os.path.join(test_dir, "no-such-ndc"))
        with self.assertRaises(ControlError):
            ctl.status()


# Local Variables: #
# python-indent: 4 #
# End: #
