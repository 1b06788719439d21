#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 18:52:10 krylon>
#
# /data/code/python/zonesync/common.py
# created on 17. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.common

(c) 2026 Benjamin Walkenhorst
"""

import logging
import logging.handlers
import os
import pathlib
import sys
from threading import Lock
from typing import Final, Union

AppName: Final[str] = "ZoneSync"
AppVersion: Final[str] = "0.1.0"
Debug: Final[bool] = True
TimeFmt: Final[str] = "%Y-%m-%d %H:%M:%S"

log_level_tty: int = logging.WARNING


class ZoneSyncError(Exception):
    """Base class for application-specific Exceptions."""


class Path:
    """Holds the paths of folders and files used by the application"""

    __base: str

    def __init__(self, root: str = os.path.expanduser(f"~/.{AppName.lower()}.d")) -> None:  # noqa
        self.__base = root

    def base(self, folder: str = "") -> pathlib.Path:
        """
        Return the base directory for application specific files.

        If path is a non-empty string, set the base directory to its value.
        """
        if folder != "":
            self.__base = folder
        return pathlib.Path(self.__base)

    @property
    def log(self) -> pathlib.Path:
        """Return the path to the log file"""
        return pathlib.Path(os.path.join(self.__base, f"{AppName.lower()}.log"))

    @property
    def config(self) -> pathlib.Path:
        """Return the path of the configuration file"""
        return pathlib.Path(os.path.join(self.__base, f"{AppName.lower()}.toml"))


path: Path = Path(os.path.expanduser(f"~/.{AppName.lower()}.d"))

log_format: Final[str] = "%(asctime)s (%(name)-20s / line %(lineno)-4d) " + \
    "- %(levelname)-8s %(message)s"
max_log_size: Final[int] = 4 * 2**20  # 4 MiB
max_log_count: Final[int] = 10

_lock: Final[Lock] = Lock()  # pylint: disable-msg=C0103
_cache: Final[dict[str, logging.Logger]] = {}  # pylint: disable-msg=C0103
_tty_handlers: Final[list[logging.Handler]] = []  # pylint: disable-msg=C0103


def set_basedir(folder: Union[str, pathlib.Path]) -> None:
    """Set the base dir to the specified path."""
    path.base(str(folder))
    init_app()


def init_app() -> None:
    """Initialize the application environment"""
    if not os.path.isdir(path.base()):
        os.makedirs(path.base())


def set_tty_level(level: int) -> None:
    """Change the level of messages that make it to the terminal."""
    global log_level_tty  # pylint: disable-msg=W0603
    with _lock:
        log_level_tty = level
        for h in _tty_handlers:
            h.setLevel(level)


def get_logger(name: str, terminal: bool = True) -> logging.Logger:
    """Create and return a logger with the given name.

    All loggers write to the application's log file. Unless <terminal> is
    False, messages at log_level_tty and above show up on stderr as well, so
    they do not get mixed up with the report printed to stdout.
    """
    with _lock:
        init_app()

        if name in _cache:
            return _cache[name]

        log_obj = logging.getLogger(f"{AppName.lower()}.{name}")
        log_obj.setLevel(logging.DEBUG if Debug else logging.INFO)
        log_obj.propagate = False

        log_fmt = logging.Formatter(log_format)
        log_file_handler = logging.handlers.RotatingFileHandler(path.log,
                                                                'a',
                                                                max_log_size,
                                                                max_log_count)
        log_file_handler.setFormatter(log_fmt)
        log_obj.addHandler(log_file_handler)

        if terminal:
            log_console_handler = logging.StreamHandler(sys.stderr)
            log_console_handler.setFormatter(log_fmt)
            log_console_handler.setLevel(log_level_tty)
            log_obj.addHandler(log_console_handler)
            _tty_handlers.append(log_console_handler)

        _cache[name] = log_obj
        return log_obj


# Local Variables: #
# python-indent: 4 #
# End: #
