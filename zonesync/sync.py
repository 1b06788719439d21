#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 21:26:14 krylon>
#
# /data/code/python/zonesync/sync.py
# created on 17. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.sync

(c) 2026 Benjamin Walkenhorst
"""

import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Final, Union

from zonesync import common
from zonesync.compare import Comparator
from zonesync.enumerator import enumerate_zone_files
from zonesync.model import Skip, ZoneEntry

# Dynamic zones come with a log or journal file that h2n needs to see.
companion_suffixes: Final[tuple[str, ...]] = (".log", ".jnl")


class Direction(Enum):
    """Direction tells which way zone files are copied."""

    In = auto()   # name server directory -> build directory
    Out = auto()  # build directory -> name server directory


@dataclass(kw_only=True, slots=True)
class SyncDriver:
    """SyncDriver copies zone files between the build and the name server directories.

    Copying in happens unconditionally, so h2n continues the serial number
    sequence of the zones as the name server knows them, even if someone
    edited a zone file in place. Copying out only happens for zones that
    have changed, unless we are told to force it.
    """

    build_dir: Path
    named_dir: Path
    comparator: Comparator
    check_mode: bool = False
    force: bool = False
    verbose: bool = True
    updated: int = 0
    log: logging.Logger = field(default_factory=lambda: common.get_logger("sync"))

    def __post_init__(self) -> None:
        self.build_dir = Path(self.build_dir)
        self.named_dir = Path(self.named_dir)

    def copy_zone_files(self,
                        direction: Direction,
                        options: Union[str, Path],
                        forward: bool = True) -> int:
        """Copy the zone files produced by the options file <options>.

        Return the number of zone files that were copied (or, in check mode,
        would have been copied).
        """
        cnt: int = 0
        zones = enumerate_zone_files(options)

        for item in zones.reverse:
            match item:
                case Skip(descriptor=desc):
                    self.log.debug("Network %s/%d lives in the forward zone",
                                   desc.base_address,
                                   desc.cidr_size)
                case ZoneEntry() as entry:
                    if self.sync_file(entry.filename, direction):
                        cnt += 1

        if forward and zones.forward_zone_file is not None:
            if self.sync_file(zones.forward_zone_file, direction):
                cnt += 1

        return cnt

    def sync_file(self, filename: str, direction: Direction) -> bool:
        """Copy one zone file if necessary. Return True if it was (or would have been) copied."""
        if direction == Direction.In:
            src, dst = self.named_dir, self.build_dir
        else:
            src, dst = self.build_dir, self.named_dir

        if direction == Direction.Out and not self.force:
            res = self.comparator.compare(filename, archive_aware=False, soa_aware=True)
            if not res.changed:
                return False
            self.log.debug("%s needs to be copied: %s", filename, res.verdict.name)

        if not (self.check_mode and direction == Direction.Out):
            self._copy(src / filename, dst)

        if direction == Direction.In:
            for suffix in companion_suffixes:
                companion = src / f"{filename}{suffix}"
                if companion.exists():
                    self._copy(companion, dst)
        else:
            if self.verbose:
                print(f"  {filename}")
            self.updated += 1

        return True

    def _copy(self, src: Path, dst: Path) -> None:
        try:
            shutil.copy2(src, dst)
        except FileNotFoundError:
            self.log.debug("%s does not exist, nothing to copy", src)
        except OSError as err:
            self.log.error("Failed to copy %s to %s: %s", src, dst, err)


# Local Variables: #
# python-indent: 4 #
# End: #
