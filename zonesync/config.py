#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 21:48:30 krylon>
#
# /data/code/python/zonesync/config.py
# created on 17. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.config

(c) 2026 Benjamin Walkenhorst

Load the site-specific settings from a TOML file. A minimal configuration
looks like this:

    build_dir = "/var/named/data"

    [[domain]]
    name = "example.com"
    options = "options.example"
    files = ["hosts", "options.example", "spcl.example", "db.example"]
    created = ["db.example"]

If named_dir is not given, it is taken from the options block of
/etc/named.conf.
"""

import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Optional, Union

from zonesync.archive import DefaultGenerations
from zonesync.common import ZoneSyncError

default_named_conf: Final[Path] = Path("/etc/named.conf")
default_generator: Final[str] = "/usr/local/bin/h2n"
default_control: Final[str] = "/usr/sbin/rndc"

options_block_pat: Final[re.Pattern] = re.compile(r"^options\s.*?^\s*};\s*$",
                                                  re.M | re.S)
directory_pat: Final[re.Pattern] = re.compile(r"\bdirectory\s*\"([^\"]+)\"")


class ConfigError(ZoneSyncError):
    """ConfigError indicates a missing or invalid configuration."""


@dataclass(kw_only=True, slots=True)
class DomainJob:
    """DomainJob is a domain we build zone data for."""

    name: str
    options: str
    files: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)


@dataclass(kw_only=True, slots=True)
class Config:
    """Config holds the site-specific settings."""

    build_dir: Path
    named_dir: Path
    archive_dir: Path
    max_archives: int = DefaultGenerations
    generator: str = default_generator
    control: str = default_control
    start_command: Optional[str] = None
    test_generator: Optional[str] = None
    lock_dir: Path = Path("/tmp")
    option_pattern: str = "options.*"
    domains: list[DomainJob] = field(default_factory=list)


def named_directory(conf: Union[str, Path] = default_named_conf) -> Path:
    """Extract the name server's working directory from its configuration file."""
    try:
        txt: Final[str] = Path(conf).read_text(encoding="utf-8", errors="replace")
    except OSError as err:
        raise ConfigError(f"Cannot read {conf}: {err}") from err

    block = options_block_pat.search(txt)
    if block is not None:
        m = directory_pat.search(block[0])
        if m is not None:
            return Path(m[1])

    raise ConfigError(f"No directory statement was found in the options of {conf}")


def _get(tbl: dict[str, Any], key: str, kind: type, default: Any = None) -> Any:
    val = tbl.get(key, default)
    if val is not None and not isinstance(val, kind):
        raise ConfigError(f"{key} must be a {kind.__name__}, not {type(val).__name__}")
    return val


def _domain(tbl: Any) -> DomainJob:
    if not isinstance(tbl, dict):
        raise ConfigError("domain entries must be tables")
    name = _get(tbl, "name", str)
    options = _get(tbl, "options", str)
    if name is None or options is None:
        raise ConfigError("Every [[domain]] needs a name and an options file")
    files = _get(tbl, "files", list, [])
    created = _get(tbl, "created", list, [])
    return DomainJob(name=name,
                     options=options,
                     files=[str(x) for x in files],
                     created=[str(x) for x in created])


def parse(data: dict[str, Any],
          test_mode: bool = False,
          named_conf: Union[str, Path] = default_named_conf) -> Config:
    """Turn the contents of a configuration file into a Config."""
    tbl: dict[str, Any] = dict(data)
    test_tbl: dict[str, Any] = _get(data, "test", dict, {})
    if test_mode:
        tbl.update(test_tbl)

    build_dir = _get(tbl, "build_dir", str)
    if build_dir is None:
        raise ConfigError("build_dir is not set")

    named_dir = _get(tbl, "named_dir", str)
    archive_dir = _get(tbl, "archive_dir", str, f"{build_dir}/archive")

    max_archives: int = _get(tbl, "max_archives", int, DefaultGenerations)
    if max_archives < 1:
        raise ConfigError(f"max_archives must be at least 1, not {max_archives}")

    return Config(build_dir=Path(build_dir),
                  named_dir=Path(named_dir) if named_dir is not None
                  else named_directory(named_conf),
                  archive_dir=Path(archive_dir),
                  max_archives=max_archives,
                  generator=_get(tbl, "generator", str, default_generator),
                  control=_get(tbl, "control", str, default_control),
                  start_command=_get(tbl, "start_command", str),
                  test_generator=_get(test_tbl, "generator", str),
                  lock_dir=Path(_get(tbl, "lock_dir", str, "/tmp")),
                  option_pattern=_get(tbl, "option_pattern", str, "options.*"),
                  domains=[_domain(x) for x in _get(data, "domain", list, [])])


def load(path: Union[str, Path],
         test_mode: bool = False,
         named_conf: Union[str, Path] = default_named_conf) -> Config:
    """Load the configuration file at <path>."""
    try:
        with open(path, "rb") as fh:
            data = tomllib.load(fh)
    except OSError as err:
        raise ConfigError(f"Cannot read configuration file {path}: {err}") from err
    except tomllib.TOMLDecodeError as err:
        raise ConfigError(f"Invalid configuration file {path}: {err}") from err

    return parse(data, test_mode, named_conf)


# Local Variables: #
# python-indent: 4 #
# End: #
