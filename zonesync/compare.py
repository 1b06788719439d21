#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 21:02:49 krylon>
#
# /data/code/python/zonesync/compare.py
# created on 17. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.compare

(c) 2026 Benjamin Walkenhorst

h2n increments the serial number of every zone each time it runs, whether
the zone's data changed or not. To avoid pointless zone transfers, we
consider two versions of a zone file functionally identical if the only
difference between them is a serial number that went up by one, and if all
the files they $INCLUDE are identical as well.
"""

import filecmp
import logging
import re
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from pathlib import Path
from typing import Final, Optional, Union

from zonesync import common
from zonesync.archive import Archiver
from zonesync.common import ZoneSyncError
from zonesync.model import ComparisonResult, SOARecord, Verdict

include_pat: Final[re.Pattern] = re.compile(r"^\$INCLUDE[ \t]+(\S+)")

# An SOA record as h2n writes it, prefixed with the marker of the diff line:
# < @     SOA  ns1 hostmaster ( 2314 3h 1h 1w 10m )
soa_token_cnt: Final[int] = 12


class CompareError(ZoneSyncError):
    """Base class for errors that occur while comparing files."""


class MissingReferenceFile(CompareError):
    """MissingReferenceFile means there is nothing to compare a file against."""


class ComparisonToolFailure(CompareError):
    """ComparisonToolFailure indicates we could not read one of the files we compare."""


class MalformedSOARecord(CompareError):
    """MalformedSOARecord means a line does not look like an SOA record written by h2n."""


@dataclass(kw_only=True, slots=True)
class LineDiff:
    """LineDiff holds the lines removed from and added to a file."""

    removed: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.removed) + len(self.added)

    def marked(self) -> list[str]:
        """Return the changed lines the way diff(1) prints them."""
        return [f"< {x}" for x in self.removed] + [f"> {x}" for x in self.added]


def _read_lines(p: Path, reference: bool) -> list[str]:
    try:
        with open(p, "r", encoding="utf-8", errors="surrogateescape") as fh:
            return fh.read().splitlines()
    except FileNotFoundError as err:
        if reference:
            raise MissingReferenceFile(f"The file {p} does not exist") from err
        raise ComparisonToolFailure(f"Cannot read {p}: {err}") from err
    except OSError as err:
        raise ComparisonToolFailure(f"Cannot read {p}: {err}") from err


def diff_lines(reference: Union[str, Path], current: Union[str, Path]) -> LineDiff:
    """Return the lines that differ between <reference> and <current>."""
    old: Final[list[str]] = _read_lines(Path(reference), True)
    new: Final[list[str]] = _read_lines(Path(current), False)
    diff = LineDiff()

    matcher = SequenceMatcher(None, old, new, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        diff.removed.extend(old[i1:i2])
        diff.added.extend(new[j1:j2])

    return diff


def same_content(reference: Union[str, Path], current: Union[str, Path]) -> bool:
    """Return True if the two files are identical, byte for byte."""
    reference = Path(reference)
    if not reference.exists():
        raise MissingReferenceFile(f"The file {reference} does not exist")
    try:
        return filecmp.cmp(reference, current, shallow=False)
    except OSError as err:
        raise ComparisonToolFailure(f"Cannot compare {current} to {reference}: {err}") from err


def parse_soa(line: str) -> SOARecord:
    """Parse an SOA record from a line of diff output."""
    tokens: Final[list[str]] = line.split()
    if len(tokens) != soa_token_cnt:
        raise MalformedSOARecord(
            f"Expected {soa_token_cnt} tokens, found {len(tokens)}: {line!r}")
    try:
        serial: int = int(tokens[6])
    except ValueError as err:
        raise MalformedSOARecord(f"Invalid serial number {tokens[6]!r}") from err

    return SOARecord(zone=tokens[1],
                     rrtype=tokens[2],
                     primary=tokens[3],
                     contact=tokens[4],
                     serial=serial,
                     refresh=tokens[7],
                     retry=tokens[8],
                     expire=tokens[9],
                     negative_ttl=tokens[10])


def find_includes(p: Union[str, Path]) -> list[str]:
    """Return the names of the files the zone file at <p> $INCLUDEs."""
    names: list[str] = []
    for line in _read_lines(Path(p), False):
        m: Optional[re.Match] = include_pat.match(line)
        if m is not None:
            names.append(m[1].strip('"'))
    return names


@dataclass(kw_only=True, slots=True)
class Comparator:
    """Comparator finds out if the newly built version of a file differs from the current one.

    Without archiving, the newly built file is compared to its counterpart in
    the name server's directory. With archiving, it is compared to the most
    recent snapshot in the archive, and every changed file encountered on
    the way, including the nested ones, is handed to the Archiver.
    """

    build_dir: Path
    named_dir: Path
    archiver: Archiver
    log: logging.Logger = field(default_factory=lambda: common.get_logger("compare"))

    def __post_init__(self) -> None:
        self.build_dir = Path(self.build_dir)
        self.named_dir = Path(self.named_dir)

    def compare(self,
                filename: Union[str, Path],
                archive_aware: bool = False,
                soa_aware: bool = False) -> ComparisonResult:
        """Compare the newly built <filename> to its reference version."""
        return self._compare(filename, archive_aware, soa_aware, set())

    def _resolve(self, filename: Union[str, Path]) -> Path:
        p = Path(filename)
        if p.is_absolute():
            return p
        return self.build_dir / p

    def _warn(self, res: ComparisonResult, msg: str) -> None:
        self.log.warning("%s", msg)
        res.warnings.append(msg)

    def _compare(self,
                 filename: Union[str, Path],
                 archive: bool,
                 soa: bool,
                 seen: set[Path]) -> ComparisonResult:
        current: Final[Path] = self._resolve(filename)
        res: ComparisonResult = ComparisonResult(filename=current.name)

        key: Final[Path] = current.resolve()
        if key in seen:
            self.log.debug("%s was already looked at, skipping it", current)
            return res
        seen.add(key)

        if not current.is_file():
            self._warn(res, f"The file {current} does not exist.")
            res.mark_changed()
            return res

        soa_passed: bool = False
        if soa:
            reference: Path = self.archiver.newest(current) if archive \
                else self.named_dir / current.name
            try:
                diff = diff_lines(reference, current)
            except MissingReferenceFile:
                self.log.debug("No reference for %s at %s", current.name, reference)
                res.verdict = Verdict.MissingReference
                if not archive:
                    return res
            except ComparisonToolFailure as err:
                self._warn(res, f"Comparison of {current.name} was not done: {err}")
                return res
            else:
                soa_passed = self._check_soa(diff, res)
                if not soa_passed:
                    res.mark_changed()
                    if not archive:
                        return res

        try:
            includes: list[str] = find_includes(current)
        except ComparisonToolFailure as err:
            self._warn(res, f"Cannot look for $INCLUDEs in {current.name}: {err}")
            includes = []

        for inc in includes:
            # Included files carry no SOA record.
            sub = self._compare(inc, archive, False, seen)
            res.warnings.extend(sub.warnings)
            if sub.changed:
                self.log.debug("%s includes %s, which has changed", current.name, inc)
                res.mark_changed()
                if not archive:
                    return res

        if soa and not archive:
            return res

        if not archive:
            self._compare_text(current, res)
            return res

        own_change: bool
        if soa:
            own_change = not soa_passed
        else:
            try:
                own_change = not same_content(self.archiver.newest(current), current)
            except MissingReferenceFile:
                own_change = True
                if res.verdict == Verdict.Unchanged:
                    res.verdict = Verdict.MissingReference
            except ComparisonToolFailure as err:
                self._warn(res, f"Archiving of {current.name} was not done: {err}")
                return res

        if own_change:
            res.mark_changed()
        self.archiver.archive(current, own_change)
        return res

    def _compare_text(self, current: Path, res: ComparisonResult) -> None:
        # Included files usually exist only in the build directory, so fall back to the
        # archive if the name server's directory has no copy.
        for reference in (self.named_dir / current.name, self.archiver.newest(current)):
            try:
                if not same_content(reference, current):
                    res.mark_changed()
                return
            except MissingReferenceFile:
                continue
            except ComparisonToolFailure as err:
                self._warn(res, f"Comparison of {current.name} was not done: {err}")
                return

        self.log.debug("No reference version of %s exists", current.name)
        if res.verdict == Verdict.Unchanged:
            res.verdict = Verdict.MissingReference

    def _check_soa(self, diff: LineDiff, res: ComparisonResult) -> bool:
        if len(diff) == 0:
            return True
        if len(diff.removed) != 1 or len(diff.added) != 1:
            self.log.debug("%s differs by %d lines", res.filename, len(diff))
            return False

        lines: Final[list[str]] = diff.marked()
        try:
            res.reference_soa = parse_soa(lines[0])
            res.current_soa = parse_soa(lines[1])
        except MalformedSOARecord as err:
            self.log.debug("%s: %s", res.filename, err)
            return False

        return res.current_soa.succeeds(res.reference_soa)


# Local Variables: #
# python-indent: 4 #
# End: #
