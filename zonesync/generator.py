#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 22:05:41 krylon>
#
# /data/code/python/zonesync/generator.py
# created on 17. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.generator

(c) 2026 Benjamin Walkenhorst

Run h2n to turn the host table into zone data.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from zonesync import common
from zonesync.common import ZoneSyncError


class GeneratorError(ZoneSyncError):
    """GeneratorError indicates the zone generator could not be run at all."""


@dataclass(kw_only=True, slots=True)
class GeneratorResult:
    """GeneratorResult is what came of running the generator on one options file."""

    options: str
    status: int
    messages: str = ""

    @property
    def passed(self) -> bool:
        """Return True if the generator finished successfully."""
        return self.status == 0


@dataclass(kw_only=True, slots=True)
class ZoneGenerator:
    """ZoneGenerator runs h2n in the build directory."""

    program: str
    workdir: Path
    log: logging.Logger = field(default_factory=lambda: common.get_logger("generator"))

    def run(self, options: Union[str, Path]) -> GeneratorResult:
        """Generate the zone data described by the options file <options>."""
        cmd: list[str] = [self.program, "-f", str(options)]
        self.log.debug("Run %s in %s", " ".join(cmd), self.workdir)

        try:
            proc = subprocess.run(cmd,
                                  cwd=self.workdir,
                                  capture_output=True,
                                  text=True,
                                  errors="replace",
                                  check=False)
        except OSError as err:
            self.log.error("Cannot run %s: %s", self.program, err)
            raise GeneratorError(f"Cannot run {self.program}: {err}") from err

        res = GeneratorResult(options=str(options),
                              status=proc.returncode,
                              messages=proc.stderr.strip())
        if not res.passed:
            self.log.error("%s -f %s exited with status %d",
                           self.program,
                           options,
                           proc.returncode)
        elif res.messages != "":
            self.log.warning("%s -f %s had something to say:\n%s",
                             self.program,
                             options,
                             res.messages)
        return res


# Local Variables: #
# python-indent: 4 #
# End: #
