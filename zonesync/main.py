#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 23:40:18 krylon>
#
# /data/code/python/zonesync/main.py
# created on 17. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.main

(c) 2026 Benjamin Walkenhorst

Builds, checks, or tests the site's DNS data that is generated from the
host table and spcl files by the h2n program. When invoked as check-dns or
test-dns, check or test mode is implied.
"""


import argparse
import logging
import os
import pathlib
import signal
import sys
from typing import Final, Optional

from zonesync import common, config
from zonesync.common import ZoneSyncError
from zonesync.nexus import Nexus


class Terminated(ZoneSyncError):
    """Terminated is raised when the process receives a termination signal."""


def _terminate(signum: int, _frame) -> None:
    raise Terminated(signal.Signals(signum).name)


def main(argv: Optional[list[str]] = None) -> int:
    program_name: Final[str] = os.path.basename(sys.argv[0])

    argp: argparse.ArgumentParser = argparse.ArgumentParser(prog=program_name)
    argp.add_argument("-c", "--check",
                      action="store_true",
                      help="Check mode; build DNS data without reloading the name server")
    argp.add_argument("-f", "--force",
                      action="store_true",
                      help="Force loading of all zones, changed or unchanged")
    argp.add_argument("-q", "--quiet",
                      action="store_true",
                      help="Suppress displaying changed zones and archived files")
    argp.add_argument("-s", "--skip-copy",
                      action="store_true",
                      help="Suppress copying of files to the name server and archive "
                      "directories (effective in test mode only)")
    argp.add_argument("-t", "--test",
                      action="store_true",
                      help="Test mode; build DNS data in an alternate directory using an "
                      "alternate h2n program without reloading the name server")
    argp.add_argument("-b", "--basedir",
                      type=pathlib.Path,
                      default=common.path.base(),
                      help="Directory to store application data (log file) in")
    argp.add_argument("--config",
                      type=pathlib.Path,
                      help="The configuration file to use")
    argp.add_argument("-d", "--debug",
                      action="store_true",
                      help="Show debugging messages on the terminal")

    args = argp.parse_args(argv)
    common.set_basedir(args.basedir)
    if args.debug:
        common.set_tty_level(logging.DEBUG)

    check_mode: bool = args.check or program_name == "check-dns"
    test_mode: bool = args.test or program_name == "test-dns"

    try:
        cfg = config.load(args.config or common.path.config,
                          # h2n check mode only swaps the generator.
                          test_mode=test_mode and not check_mode)
    except config.ConfigError as err:
        print(f"ERROR: {err}", file=sys.stderr)
        return 2

    nx = Nexus(cfg=cfg,
               program_name=program_name,
               check_mode=check_mode,
               test_mode=test_mode,
               force=args.force,
               verbose=not args.quiet,
               skip_copy=args.skip_copy)

    for sig in (signal.SIGHUP, signal.SIGQUIT, signal.SIGTERM):
        signal.signal(sig, _terminate)

    try:
        return nx.run()
    except KeyboardInterrupt:
        print("\nReceived SIGINT signal - terminating abnormally.\n", file=sys.stderr)
    except Terminated as sig:
        print(f"\nReceived {sig} signal - terminating abnormally.\n", file=sys.stderr)
    except ZoneSyncError as err:
        print(f"\n{err}\n", file=sys.stderr)
    return 2


if __name__ == '__main__':
    sys.exit(main())

# Local Variables: #
# python-indent: 4 #
# End: #
