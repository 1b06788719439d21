#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 22:19:03 krylon>
#
# /data/code/python/zonesync/control.py
# created on 17. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.control

(c) 2026 Benjamin Walkenhorst

This file contains the means to check on the name server and to tell it to
load new zone data, by way of its control program (ndc or rndc).
"""

import logging
import subprocess
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Final, Optional

from zonesync import common
from zonesync.common import ZoneSyncError

# ndc (BIND 8) and rndc (BIND 9) word it differently.
running_markers: Final[tuple[str, ...]] = ("up and running", "server is up")


class ControlError(ZoneSyncError):
    """ControlError indicates the control program could not be run."""


class ServerState(Enum):
    """ServerState tells if the name server is running."""

    Running = auto()
    Stopped = auto()


@dataclass(kw_only=True, slots=True)
class NameServerControl:
    """NameServerControl talks to the name server through its control program."""

    program: str
    start_command: Optional[str] = None
    log: logging.Logger = field(default_factory=lambda: common.get_logger("control"))

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        cmd: list[str] = list(args)
        self.log.debug("Run %s", " ".join(cmd))
        try:
            return subprocess.run(cmd,
                                  capture_output=True,
                                  text=True,
                                  errors="replace",
                                  check=False)
        except OSError as err:
            self.log.error("Cannot run %s: %s", cmd[0], err)
            raise ControlError(f"Cannot run {cmd[0]}: {err}") from err

    def status(self) -> ServerState:
        """Ask the name server if it is running."""
        proc = self._run(self.program, "status")
        output: Final[str] = proc.stdout + proc.stderr
        if proc.returncode == 0 and any(x in output for x in running_markers):
            return ServerState.Running
        self.log.info("Name server does not appear to be running: %s", output.strip())
        return ServerState.Stopped

    def reload(self) -> str:
        """Tell the name server to load the new zone data."""
        proc = self._run(self.program, "reload")
        return (proc.stdout + proc.stderr).strip()

    def start(self) -> str:
        """Start the name server."""
        if self.start_command is not None:
            proc = self._run(*self.start_command.split())
        else:
            proc = self._run(self.program, "start")
        return (proc.stdout + proc.stderr).strip()


# Local Variables: #
# python-indent: 4 #
# End: #
