#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 13:40:22 krylon>
#
# /data/code/python/zonesync/test_sync.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.test_sync

(c) 2026 Benjamin Walkenhorst
"""

import os
import shutil
import unittest
from datetime import datetime
from pathlib import Path
from typing import Final

from zonesync import common
from zonesync.archive import Archiver
from zonesync.compare import Comparator
from zonesync.sync import Direction, SyncDriver

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_sync_%Y%m%d_%H%M%S"))

build_dir: Final[Path] = Path(test_dir, "build")
named_dir: Final[Path] = Path(test_dir, "named")
archive_dir: Final[Path] = Path(test_dir, "archive")
options: Final[Path] = build_dir / "options.example"


def zone(serial: int, hosts: int = 2) -> str:
    """Return the text of a zone file."""
    lines: list[str] = [
        "$TTL 86400",
        f"@ SOA ns1 hostmaster ( {serial} 3h 1h 1w 10m )",
        "  NS ns1",
    ]
    lines.extend(f"host{i}  A  10.1.2.{i}" for i in range(1, hosts+1))
    return "\n".join(lines) + "\n"


def write(path: Path, txt: str) -> Path:
    """Write <txt> to the file at <path>."""
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(txt)
    return path


def read(path: Path) -> str:
    """Return the content of the file at <path>."""
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


def driver(**kwargs) -> SyncDriver:
    """Create a SyncDriver on the test directories."""
    arc = Archiver(archive_dir=archive_dir, verbose=False)
    cmp = Comparator(build_dir=build_dir, named_dir=named_dir, archiver=arc)
    return SyncDriver(build_dir=build_dir,
                      named_dir=named_dir,
                      comparator=cmp,
                      verbose=False,
                      **kwargs)


class TestSync(unittest.TestCase):
    """Test copying zone files back and forth."""

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)
        for d in (build_dir, named_dir, archive_dir):
            d.mkdir(parents=True, exist_ok=True)
        write(options,
              "-d example.com\n-n 10.1.2\n-n 192.0.2.0/25 domain=example.com\n")

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    def test_01_copy_in(self) -> None:
        """Copying in takes the zone files and their journals, unconditionally."""
        write(named_dir / "db.10.1.2", zone(10))
        write(named_dir / "db.example", zone(20))
        write(named_dir / "db.example.jnl", "journal\n")
        write(named_dir / "db.other", zone(30))

        drv = driver()
        self.assertEqual(drv.copy_zone_files(Direction.In, options), 2)
        self.assertEqual(drv.updated, 0)
        self.assertEqual(read(build_dir / "db.10.1.2"), zone(10))
        self.assertEqual(read(build_dir / "db.example"), zone(20))
        self.assertEqual(read(build_dir / "db.example.jnl"), "journal\n")
        self.assertFalse((build_dir / "db.example.log").exists())
        self.assertFalse((build_dir / "db.other").exists())

    def test_02_copy_out(self) -> None:
        """Copying out only takes the zones that changed."""
        write(build_dir / "db.10.1.2", zone(11))
        write(build_dir / "db.example", zone(21, 4))

        drv = driver()
        self.assertEqual(drv.copy_zone_files(Direction.Out, options), 1)
        self.assertEqual(drv.updated, 1)
        self.assertEqual(read(named_dir / "db.example"), zone(21, 4))
        self.assertEqual(read(named_dir / "db.10.1.2"), zone(10))

    def test_03_check_mode(self) -> None:
        """Check mode counts the changed zones, but copies nothing."""
        write(build_dir / "db.10.1.2", zone(12, 3))

        drv = driver(check_mode=True)
        self.assertEqual(drv.copy_zone_files(Direction.Out, options), 1)
        self.assertEqual(drv.updated, 1)
        self.assertEqual(read(named_dir / "db.10.1.2"), zone(10))

    def test_04_force(self) -> None:
        """Forced copying takes every zone."""
        drv = driver(force=True)
        self.assertEqual(drv.copy_zone_files(Direction.Out, options), 2)
        self.assertEqual(drv.updated, 2)
        self.assertEqual(read(named_dir / "db.10.1.2"), zone(12, 3))
        self.assertEqual(read(named_dir / "db.example"), zone(21, 4))

    def test_05_reverse_only(self) -> None:
        """The forward zone can be left out."""
        drv = driver()
        self.assertEqual(drv.copy_zone_files(Direction.In, options, forward=False), 1)


# Local Variables: #
# python-indent: 4 #
# End: #
