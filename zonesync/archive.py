#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 20:17:25 krylon>
#
# /data/code/python/zonesync/archive.py
# created on 17. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.archive

(c) 2026 Benjamin Walkenhorst

Keep a bounded number of older versions of our data files around, so we can
find out what changed when, and go back if need be.
"""

import logging
import os
import shutil
import signal
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Union

from zonesync import common
from zonesync.model import ArchiveOutcome, ArchiveSlot

DefaultGenerations: Final[int] = 10

held_signals: Final[set[signal.Signals]] = {
    signal.SIGHUP,
    signal.SIGINT,
    signal.SIGQUIT,
    signal.SIGTERM,
}


@contextmanager
def signals_held():
    """Defer delivery of termination signals until the block is done."""
    old = signal.pthread_sigmask(signal.SIG_BLOCK, held_signals)
    try:
        yield
    finally:
        signal.pthread_sigmask(signal.SIG_SETMASK, old)


@dataclass(kw_only=True, slots=True)
class Archiver:
    """Archiver rotates the snapshots of files in the archive directory.

    In check mode, the Archiver decides and reports as usual, but it does not
    touch the archive directory.
    """

    archive_dir: Path
    max_generations: int = DefaultGenerations
    check_mode: bool = False
    verbose: bool = True
    archived: int = 0
    log: logging.Logger = field(default_factory=lambda: common.get_logger("archive"))

    def __post_init__(self) -> None:
        assert self.max_generations > 0
        self.archive_dir = Path(self.archive_dir)

    def slot_path(self, slot: ArchiveSlot) -> Path:
        """Return the path of an archive slot."""
        return self.archive_dir / slot.name

    def newest(self, filename: Union[str, Path]) -> Path:
        """Return the path of the most recent snapshot of <filename>."""
        return self.slot_path(ArchiveSlot(filename=Path(filename).name, generation=1))

    def has_snapshot(self, filename: Union[str, Path]) -> bool:
        """Return True if the archive holds at least one version of <filename>."""
        return self.newest(filename).is_file()

    def generations(self, filename: Union[str, Path]) -> list[Path]:
        """Return the paths of all snapshots of <filename>, newest first."""
        slot = ArchiveSlot(filename=Path(filename).name, generation=1)
        snapshots: list[Path] = []
        while slot.generation <= self.max_generations:
            p = self.slot_path(slot)
            if not p.is_file():
                break
            snapshots.append(p)
            slot = slot.older()
        return snapshots

    def archive(self, current: Union[str, Path], changed: bool) -> ArchiveOutcome:
        """Archive <current> if it changed or if there is no snapshot of it, yet."""
        current = Path(current)
        name: Final[str] = current.name

        if self.has_snapshot(name):
            if not changed:
                return ArchiveOutcome.Skipped
            self.log.debug("%s has changed, rotate its snapshots", name)
        else:
            self.log.debug("%s joins the archive", name)

        if not self.check_mode:
            try:
                self._rotate(current)
            except OSError as err:
                self.log.error("Failed to archive %s: %s", current, err)
                return ArchiveOutcome.Skipped

        if self.verbose:
            print(f"  {name}")
        self.archived += 1
        return ArchiveOutcome.Archived

    def _rotate(self, current: Path) -> None:
        name: Final[str] = current.name
        staged: Final[Path] = self.archive_dir / f".{name}.new"
        moved: list[tuple[Path, Path]] = []

        # Copy first, so a failed copy leaves the existing generations alone.
        shutil.copy2(current, staged)
        try:
            with signals_held():
                try:
                    for gen in range(self.max_generations - 1, 0, -1):
                        slot = ArchiveSlot(filename=name, generation=gen)
                        src = self.slot_path(slot)
                        if src.exists():
                            dst = self.slot_path(slot.older())
                            os.replace(src, dst)
                            moved.append((src, dst))
                    os.replace(staged, self.newest(name))
                except OSError:
                    self._undo(name, moved)
                    raise
        finally:
            if staged.exists():
                staged.unlink()

    def _undo(self, name: str, moved: list[tuple[Path, Path]]) -> None:
        """Move the snapshots of a failed rotation back to where they were.

        The oldest generation, if the rotation already replaced it, is lost.
        """
        self.log.warning("Rotation of %s failed, moving %d snapshot(s) back",
                         name,
                         len(moved))
        for src, dst in reversed(moved):
            try:
                os.replace(dst, src)
            except OSError as err:
                self.log.error("The archive of %s is inconsistent, cannot move %s back to %s: %s",
                               name,
                               dst,
                               src,
                               err)
                return


# Local Variables: #
# python-indent: 4 #
# End: #
