#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 19:58:02 krylon>
#
# /data/code/python/zonesync/enumerator.py
# created on 17. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.enumerator

(c) 2026 Benjamin Walkenhorst

Read an h2n options file and list the zone files it produces.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Iterator, Optional, Union

from zonesync import common
from zonesync.model import ZoneItem
from zonesync.netspec import (DefaultCIDR, InvalidNetworkSpec,
                              collapse_escapes, parse_network, parse_size,
                              zone_items)

directives: Final[frozenset[str]] = frozenset(("-d", "-N", "-n"))


@dataclass(kw_only=True, slots=True)
class ParserState:
    """ParserState holds what we have learned so far while reading an options file."""

    default_cidr: int = DefaultCIDR
    forward_domain: str = ""
    forward_zone_file: Optional[str] = None


def parse_domain(state: ParserState, args: list[str]) -> None:
    """Handle the arguments of a -d option."""
    if len(args) == 0:
        raise InvalidNetworkSpec("-d option without a domain")

    domain: str = collapse_escapes(args[0].rstrip(".")).lower()
    state.forward_domain = domain
    state.forward_zone_file = f"db.{domain.split('.')[0]}"

    for arg in args[1:]:
        if arg.startswith("db="):
            state.forward_zone_file = arg.removeprefix("db=")
            break


def process_line(state: ParserState, line: str) -> Iterator[ZoneItem]:
    """Process one line of an options file, yield the zones a -n option produces."""
    tokens: Final[list[str]] = line.split()
    if len(tokens) < 2 or tokens[0] not in directives:
        return

    match tokens[0]:
        case "-d":
            parse_domain(state, tokens[1:])
        case "-N":
            state.default_cidr = parse_size(tokens[1])
        case "-n":
            desc = parse_network(" ".join(tokens[1:]),
                                 state.default_cidr,
                                 state.forward_domain)
            yield from zone_items(desc)


@dataclass(kw_only=True, slots=True)
class ZoneFileSet:
    """ZoneFileSet lists the forward and reverse zone files of one options file.

    The reverse zones are produced lazily, the options file is read as they
    are consumed. The forward zone file is known for certain only after the
    reverse zones have been exhausted.
    """

    path: Path
    state: ParserState = field(default_factory=ParserState)
    log: logging.Logger = field(default_factory=lambda: common.get_logger("enumerator"))
    _reverse: Optional[Iterator[ZoneItem]] = None

    @property
    def forward_zone_file(self) -> Optional[str]:
        """Return the name of the forward-mapping zone file."""
        return self.state.forward_zone_file

    @property
    def forward_domain(self) -> str:
        """Return the forward-mapping domain."""
        return self.state.forward_domain

    @property
    def reverse(self) -> Iterator[ZoneItem]:
        """Return the iterator over the reverse-mapping zones."""
        if self._reverse is None:
            self._reverse = self._scan()
        return self._reverse

    def __iter__(self) -> Iterator[ZoneItem]:
        return self.reverse

    def _scan(self) -> Iterator[ZoneItem]:
        self.log.debug("Read options file %s", self.path)
        with open(self.path, "r", encoding="utf-8", errors="replace") as fh:
            for lineno, line in enumerate(fh, 1):
                try:
                    yield from process_line(self.state, line)
                except InvalidNetworkSpec as err:
                    self.log.error("%s, line %d: %s",
                                   self.path,
                                   lineno,
                                   err)
                    raise InvalidNetworkSpec(f"{self.path}, line {lineno}: {err}") from err


def enumerate_zone_files(path: Union[str, Path]) -> ZoneFileSet:
    """Return the ZoneFileSet of the options file at <path>."""
    return ZoneFileSet(path=Path(path))


# Local Variables: #
# python-indent: 4 #
# End: #
