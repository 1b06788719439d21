#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 19:04:33 krylon>
#
# /data/code/python/zonesync/model.py
# created on 17. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.model

(c) 2026 Benjamin Walkenhorst

Data types shared by the parsing, comparing and archiving parts of the application.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Final, Optional, Union

MinCIDR: Final[int] = 8
MaxCIDR: Final[int] = 32


class NameSource(Enum):
    """NameSource tells where a zone file got its name from."""

    Default = auto()
    Domain = auto()
    Folded = auto()


@dataclass(kw_only=True, slots=True, frozen=True)
class NetworkDescriptor:
    """NetworkDescriptor is a parsed -n directive from an options file."""

    base_address: str
    cidr_size: int
    domain_arg: Optional[str] = None
    source: NameSource = NameSource.Default
    base_net: str = ""
    dot: str = ""
    start_octet: Optional[int] = None
    zone_count: int = 1

    @property
    def folded(self) -> bool:
        """Return True if the network's PTR records live in the forward zone."""
        return self.source == NameSource.Folded


@dataclass(kw_only=True, slots=True, frozen=True)
class ZoneEntry:
    """ZoneEntry is one reverse-mapping zone an options file produces."""

    stem: str
    source: NameSource = NameSource.Default

    @property
    def filename(self) -> str:
        """Return the name of the zone data file."""
        return f"db.{self.stem}"

    @property
    def spcl(self) -> str:
        """Return the name of the zone's special data file."""
        return f"spcl.{self.stem}"


@dataclass(kw_only=True, slots=True, frozen=True)
class Skip:
    """Skip stands in for a network whose reverse data went into the forward zone."""

    descriptor: NetworkDescriptor


ZoneItem = Union[ZoneEntry, Skip]


@dataclass(kw_only=True, slots=True, frozen=True)
class SOARecord:
    """SOARecord holds the fields of an SOA record as h2n writes it."""

    zone: str
    rrtype: str
    primary: str
    contact: str
    serial: int
    refresh: str
    retry: str
    expire: str
    negative_ttl: str

    def succeeds(self, other: 'SOARecord') -> bool:
        """Return True if we differ from <other> only by a serial number incremented by one."""
        return self.zone == other.zone and \
            self.rrtype == other.rrtype and \
            self.primary == other.primary and \
            self.contact == other.contact and \
            self.refresh == other.refresh and \
            self.retry == other.retry and \
            self.expire == other.expire and \
            self.negative_ttl == other.negative_ttl and \
            self.serial == other.serial + 1


class Verdict(Enum):
    """Verdict is the outcome of comparing two versions of a file."""

    Unchanged = auto()
    Changed = auto()
    MissingReference = auto()


@dataclass(kw_only=True, slots=True)
class ComparisonResult:
    """ComparisonResult is what the Comparator found out about a file."""

    filename: str
    verdict: Verdict = Verdict.Unchanged
    reference_soa: Optional[SOARecord] = None
    current_soa: Optional[SOARecord] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """Return True if the file needs to be deployed."""
        return self.verdict != Verdict.Unchanged

    def mark_changed(self) -> None:
        """Flag the file as changed, unless we already know the reference is missing."""
        if self.verdict == Verdict.Unchanged:
            self.verdict = Verdict.Changed


class ArchiveOutcome(Enum):
    """ArchiveOutcome tells if the Archiver took a snapshot of a file."""

    Archived = auto()
    Skipped = auto()


@dataclass(kw_only=True, slots=True, frozen=True)
class ArchiveSlot:
    """ArchiveSlot is one generation of a file in the archive directory."""

    filename: str
    generation: int

    def __post_init__(self) -> None:
        assert self.generation > 0, "Generations are counted from 1"

    @property
    def name(self) -> str:
        """Return the name of the snapshot file."""
        return f"{self.filename}_{self.generation:02d}"

    def older(self) -> 'ArchiveSlot':
        """Return the slot one generation further back."""
        return ArchiveSlot(filename=self.filename, generation=self.generation + 1)


# Local Variables: #
# python-indent: 4 #
# End: #
