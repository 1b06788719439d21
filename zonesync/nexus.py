#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 23:11:52 krylon>
#
# /data/code/python/zonesync/nexus.py
# created on 17. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.nexus

(c) 2026 Benjamin Walkenhorst

Nexus performs a complete run: copy the live zone files into the build
directory, run h2n for each domain, copy the zones that actually changed to
the name server's directory, reload the name server, and archive the data
files.
"""

import fcntl
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from fnmatch import fnmatch
from pathlib import Path
from typing import Final, Optional, TextIO, Union

from zonesync import common
from zonesync.archive import Archiver
from zonesync.common import ZoneSyncError
from zonesync.compare import Comparator
from zonesync.config import Config, DomainJob
from zonesync.control import ControlError, NameServerControl, ServerState
from zonesync.enumerator import enumerate_zone_files
from zonesync.generator import GeneratorError, GeneratorResult, ZoneGenerator
from zonesync.model import ZoneEntry
from zonesync.netspec import InvalidNetworkSpec
from zonesync.sync import Direction, SyncDriver


class LockError(ZoneSyncError):
    """LockError indicates that another run is in progress."""


class Mode(Enum):
    """Mode is the way a run operates."""

    Build = auto()
    Check = auto()
    Test = auto()
    H2NCheck = auto()


lock_names: Final[dict[Mode, str]] = {
    Mode.Build: "build",
    Mode.Check: "check",
    Mode.Test: "test",
    Mode.H2NCheck: "check",
}


def tally(cnt: int, noun: str, action: str, check_mode: bool) -> str:
    """Phrase a summary like "3 updates were copied"."""
    match cnt:
        case 0:
            notice = f"no {noun}s"
        case 1:
            notice = f"1 {noun}"
        case _:
            notice = f"{cnt} {noun}s"

    if check_mode:
        return f"{notice} {'is' if cnt == 1 else 'are'} pending"
    if cnt == 1:
        return f"{notice} was {action}"
    return f"{notice} were {'necessary' if cnt == 0 else action}"


@dataclass(kw_only=True, slots=True)
class RunLock:
    """RunLock makes sure only one run per mode happens at a time.

    The lock file is removed when the lock is released. A run that opened
    the file before it was removed may still get the lock on it afterwards,
    so after locking we check that the file we hold is still the one on disk,
    and start over if it is not.
    """

    path: Path
    fh: Optional[TextIO] = None

    def __enter__(self) -> 'RunLock':
        while True:
            fh = open(self.path, "w", encoding="utf-8")  # pylint: disable-msg=R1732
            try:
                fcntl.flock(fh, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except OSError as err:
                fh.close()
                raise LockError(f"The file `{self.path}' is locked. Either another process "
                                "is running, or the lock file needs to be removed.") from err
            if is_current(fh, self.path):
                self.fh = fh
                return self
            fh.close()

    def __exit__(self, *_exc) -> None:
        if self.fh is not None:
            self.path.unlink(missing_ok=True)
            fcntl.flock(self.fh, fcntl.LOCK_UN)
            self.fh.close()
            self.fh = None


def is_current(fh: TextIO, path: Path) -> bool:
    """Return True if the open file <fh> is the file <path> refers to."""
    try:
        on_disk: Final[os.stat_result] = os.stat(path)
    except FileNotFoundError:
        return False
    held: Final[os.stat_result] = os.fstat(fh.fileno())
    return (held.st_dev, held.st_ino) == (on_disk.st_dev, on_disk.st_ino)


@dataclass(kw_only=True, slots=True)
class Nexus:
    """Nexus brings together all the moving parts, so to speak."""

    cfg: Config
    program_name: str = "build-dns"
    check_mode: bool = False
    test_mode: bool = False
    force: bool = False
    verbose: bool = True
    skip_copy: bool = False
    log: logging.Logger = field(default_factory=lambda: common.get_logger("nexus"))
    archiver: Archiver = field(init=False)
    comparator: Comparator = field(init=False)
    sync: SyncDriver = field(init=False)
    generator: ZoneGenerator = field(init=False)
    ctl: NameServerControl = field(init=False)

    def __post_init__(self) -> None:
        self.archiver = Archiver(archive_dir=self.cfg.archive_dir,
                                 max_generations=self.cfg.max_archives,
                                 check_mode=self.check_mode,
                                 verbose=self.verbose)
        self.comparator = Comparator(build_dir=self.cfg.build_dir,
                                     named_dir=self.cfg.named_dir,
                                     archiver=self.archiver)
        self.sync = SyncDriver(build_dir=self.cfg.build_dir,
                               named_dir=self.cfg.named_dir,
                               comparator=self.comparator,
                               check_mode=self.check_mode,
                               force=self.force,
                               verbose=self.verbose)
        program: str = self.cfg.generator
        if self.mode == Mode.H2NCheck and self.cfg.test_generator is not None:
            program = self.cfg.test_generator
        self.generator = ZoneGenerator(program=program, workdir=self.cfg.build_dir)
        self.ctl = NameServerControl(program=self.cfg.control,
                                     start_command=self.cfg.start_command)

    @property
    def mode(self) -> Mode:
        """Return the mode the Nexus operates in."""
        if self.check_mode and self.test_mode:
            return Mode.H2NCheck
        if self.check_mode:
            return Mode.Check
        if self.test_mode:
            return Mode.Test
        return Mode.Build

    @property
    def mode_comment(self) -> str:
        """Return the mode's note for the start and finish banners."""
        if self.mode == Mode.H2NCheck:
            return " (h2n check mode)"
        if self.program_name in ("check-dns", "test-dns"):
            return ""
        match self.mode:
            case Mode.Check:
                return " (check mode)"
            case Mode.Test:
                return " (test mode)"
        return ""

    @property
    def lock_path(self) -> Path:
        """Return the path of the lock file."""
        return self.cfg.lock_dir / f"{lock_names[self.mode]}-dns.lock"

    def _say(self, msg: str = "", end: str = "\n") -> None:
        print(msg, end=end, flush=True)

    def _complain(self, msg: str = "") -> None:
        print(msg, file=sys.stderr, flush=True)

    def _path(self, name: Union[str, Path]) -> Path:
        p = Path(name)
        if p.is_absolute():
            return p
        return self.cfg.build_dir / p

    def run(self) -> int:
        """Perform a run. Return the exit status for the process."""
        self.log.info("%s starting, mode %s", self.program_name, self.mode.name)
        with RunLock(path=self.lock_path):
            return self._run()

    def _run(self) -> int:
        stamp: str = datetime.now().strftime(common.TimeFmt)
        self._say()
        self._say(f"----- `{self.program_name}'{self.mode_comment} starting at {stamp}.")
        self._say()

        if not self.check_files():
            return 2

        passed: list[DomainJob] = []
        for job in self.cfg.domains:
            self._say()
            self._say(f"Generating zone data for `{job.name}':")
            try:
                self.sync.copy_zone_files(Direction.In, self._path(job.options))
            except (InvalidNetworkSpec, OSError) as err:
                self._complain(f"ERROR: {err}")
                continue
            if self.generate(job):
                passed.append(job)

        if not (self.test_mode and self.skip_copy):
            if len(passed) > 0:
                self.deploy(passed)
                if self.mode == Mode.Build:
                    self.reload()
            self.archive()

        stamp = datetime.now().strftime(common.TimeFmt)
        self._say()
        self._say(f"----- `{self.program_name}'{self.mode_comment} finished at {stamp}.")
        self._say()
        return 0

    def check_files(self) -> bool:
        """Make sure all the files we need are present."""
        for job in self.cfg.domains:
            for name in job.created:
                p = self._path(name)
                if not p.exists():
                    self.log.debug("Pre-create %s", p)
                    p.touch()

        missing: list[str] = [name
                              for job in self.cfg.domains
                              for name in job.files
                              if not self._path(name).is_file()]
        for name in missing:
            self._complain(f"ERROR: The required file `{name}' is missing.")

        if len(missing) > 0:
            self._complain()
            self._complain("Program unable to continue - exiting.")
            self._complain()
            return False
        return True

    def generate(self, job: DomainJob) -> bool:
        """Run the generator for <job>, report any messages. Return True if it succeeded."""
        prog: Final[str] = Path(self.generator.program).name
        try:
            res: GeneratorResult = self.generator.run(job.options)
        except GeneratorError as err:
            res = GeneratorResult(options=job.options, status=127, messages=str(err))

        if res.messages != "":
            notice: str = "WARNING" if res.passed else "ERROR"
            self._complain()
            self._complain(f"{notice}: The `{prog}' program generated the following message(s)")
            self._complain(f"         while processing the `{job.name}' DNS data:")
            self._complain()
            self._complain(res.messages)
            self._complain()
            if res.passed:
                self._complain("Please make the necessary corrections before the next")
                self._complain(f"run of the `{self.program_name}' program.")
            else:
                self._complain("Until the problem is corrected, no new data for this zone")
                self._complain("will be used by the name servers.")
            self._complain()

        return res.passed

    def deploy(self, jobs: list[DomainJob]) -> None:
        """Copy the changed zone files of <jobs> to the name server's directory."""
        named: Final[Path] = self.cfg.named_dir
        self._say()
        if self.verbose:
            if self.check_mode:
                self._say("The following zone files have updates pending:")
            else:
                self._say(f"Copying the following updated zone files to `{named}/':")
        elif self.check_mode:
            self._say("Determining the zone files which have updates pending...", end="")
        else:
            self._say(f"Copying updated zone files to `{named}/'...", end="")

        for job in jobs:
            try:
                self.sync.copy_zone_files(Direction.Out, self._path(job.options))
            except (InvalidNetworkSpec, OSError) as err:
                self._complain(f"ERROR: {err}")

        if not self.verbose:
            self._say()
        self._say(f"  ({tally(self.sync.updated, 'update', 'copied', self.check_mode)})")

    def reload(self) -> None:
        """Reload or start the name server, if there is anything new for it."""
        try:
            state: ServerState = self.ctl.status()
            updates: int = self.sync.updated
            if state != ServerState.Running:
                # The name server should be running at all times, so make sure it gets started.
                updates = 1

            if updates == 0:
                self._say()
                self._say("DNS data is unchanged - no name server reload is necessary.")
            elif state == ServerState.Running:
                self._say()
                self._say("Reloading the name server ... ", end="")
                self._say(self.ctl.reload())
            else:
                self._say()
                self._say("Starting the name server ... ", end="")
                self._say(self.ctl.start())
        except ControlError as err:
            self._complain(f"ERROR: {err}")

    def archive(self) -> None:
        """Archive the host tables, options files, special files and zone files."""
        self._say()
        if self.verbose:
            if self.check_mode:
                self._say("The following data files are subject to archival:")
            else:
                self._say("Archiving the following hosts and `h2n' data files:")
        elif self.check_mode:
            self._say("Determining the data files which are subject to archival...", end="")
        else:
            self._say("Archiving the hosts and `h2n' data files...", end="")

        for job in self.cfg.domains:
            for name in job.files:
                self.comparator.compare(name,
                                        archive_aware=True,
                                        soa_aware=Path(name).name.startswith("db."))
                if fnmatch(Path(name).name, self.cfg.option_pattern):
                    self.archive_spcl(self._path(name))

        if not self.verbose:
            self._say()
        self._say(f"  ({tally(self.archiver.archived, 'archival', 'performed', self.check_mode)})")

    def archive_spcl(self, options: Path) -> None:
        """Archive the special files that belong to the networks listed in <options>."""
        try:
            for item in enumerate_zone_files(options):
                if not isinstance(item, ZoneEntry):
                    continue
                spcl: Path = self._path(item.spcl)
                if spcl.is_file():
                    self.comparator.compare(spcl, archive_aware=True)
                    continue

                newest: Path = self.archiver.newest(spcl)
                if newest.is_file() and newest.stat().st_size > 0:
                    # The special file was removed since the last run. Archive an empty
                    # placeholder, so a restore from the archive does not bring it back.
                    if self.check_mode:
                        self.archiver.archive(spcl, True)
                        continue
                    spcl.touch()
                    try:
                        self.comparator.compare(spcl, archive_aware=True)
                    finally:
                        spcl.unlink()
        except (InvalidNetworkSpec, OSError) as err:
            self._complain(f"ERROR: {err}")


# Local Variables: #
# python-indent: 4 #
# End: #
