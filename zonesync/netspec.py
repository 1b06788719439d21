#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 19:31:47 krylon>
#
# /data/code/python/zonesync/netspec.py
# created on 17. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the ZoneSync DNS build tool. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
zonesync.netspec

(c) 2026 Benjamin Walkenhorst

Parse the network specifications of h2n's -n and -N options and work out
which zone files a network ends up in.

For /8 to /24 networks, h2n writes one zone file per class A, B or C
network the specification covers, e.g. -n 10.0.16/20 becomes db.10.0.16
through db.10.0.31. Smaller networks get a single zone file named after
the address range (db.192.0.2.80-95) or after the domain given with the
domain= argument.
"""

import re
from ipaddress import IPv4Network, NetmaskValueError
from typing import Final, Iterator, Optional

import dns.exception
import dns.name
import dns.reversename

from zonesync.common import ZoneSyncError
from zonesync.model import (MaxCIDR, MinCIDR, NameSource, NetworkDescriptor,
                            Skip, ZoneEntry, ZoneItem)

DefaultCIDR: Final[int] = 24

net_pat: Final[re.Pattern] = re.compile(
    r"^(?P<net>\d{1,3}(?:\.\d{1,3}){0,3})(?:(?P<sep>[/:])(?P<size>\S+))?$")

# Characters that would cause trouble in a filename.
bad_chars: Final[re.Pattern] = re.compile(r"[/<|>&\[()$?;'`]")
unescape_pat: Final[re.Pattern] = re.compile(r"\\([$@])")
escaped_space_pat: Final[re.Pattern] = re.compile(r"\\[ \t]")
label_sep_pat: Final[re.Pattern] = re.compile(r"(?<!\\)\.")


class InvalidNetworkSpec(ZoneSyncError):
    """InvalidNetworkSpec indicates a network specification we cannot make sense of."""


def check_cidr(cidr: int) -> int:
    """Return <cidr> if it is a CIDR size h2n accepts, raise InvalidNetworkSpec otherwise."""
    if not MinCIDR <= cidr <= MaxCIDR:
        raise InvalidNetworkSpec(f"CIDR size /{cidr} is outside /{MinCIDR} to /{MaxCIDR}")
    return cidr


def mask_to_cidr(mask: str) -> int:
    """Return the CIDR size corresponding to the dotted netmask <mask>.

    The first octet of the mask is assumed to be fully set. Each of the
    remaining non-zero octets contributes its contiguous run of set bits,
    i.e. 8 minus the number of zero bits to the right of its lowest set bit.
    """
    parts: Final[list[str]] = mask.split(".")
    if len(parts) != 4 or not all(p.isdigit() for p in parts):
        raise InvalidNetworkSpec(f"Invalid netmask {mask!r}")

    octets: Final[list[int]] = [int(p) for p in parts]
    if octets[0] != 255 or any(o > 255 for o in octets):
        raise InvalidNetworkSpec(f"Invalid netmask {mask!r}")

    try:
        IPv4Network(f"0.0.0.0/{mask}")
    except NetmaskValueError as err:
        raise InvalidNetworkSpec(f"Invalid netmask {mask!r}: {err}") from err

    cidr: int = 8
    for octet in octets[1:]:
        if octet != 0:
            trailing_zeros: int = (octet & -octet).bit_length() - 1
            cidr += 8 - trailing_zeros

    return check_cidr(cidr)


def num_zones(cidr: int) -> int:
    """Return the number of class A, B, or C zone files a network of size <cidr> needs."""
    check_cidr(cidr)
    if cidr in (8, 16) or cidr >= 24:
        return 1
    if cidr < 16:
        return 1 << (16 - cidr)
    return 1 << (24 - cidr)


def parse_size(size: str) -> int:
    """Parse a network size given as CIDR size, /CIDR size or netmask."""
    size = size.removeprefix("/")
    if size.startswith("255."):
        return mask_to_cidr(size)
    try:
        return check_cidr(int(size))
    except ValueError as err:
        raise InvalidNetworkSpec(f"Invalid network size {size!r}") from err


def collapse_escapes(txt: str) -> str:
    """Remove redundant escape characters."""
    while "\\\\" in txt:
        txt = txt.replace("\\\\", "\\")
    return txt


def sanitize(name: str) -> str:
    """Massage a domain name into something that works as a filename.

    Escape sequences are not decoded the way a DNS library would, h2n names
    its files after the text as written: a\\032b becomes a032b.
    """
    name = unescape_pat.sub(r"\1", name)
    name = bad_chars.sub("%", name)
    name = escaped_space_pat.sub("_", name)
    return name.replace("\\", "")


def split_labels(domain: str) -> list[str]:
    """Split <domain> at the dots that are not escaped."""
    return label_sep_pat.split(domain)


def is_reverse_domain(labels: list[str]) -> bool:
    """Return True if <labels> name a domain below in-addr.arpa."""
    if len(labels) < 3:
        return False
    try:
        suffix: Final[dns.name.Name] = dns.name.from_text(".".join(labels[-2:]))
    except dns.exception.DNSException:
        return False
    return suffix == dns.reversename.ipv4_reverse_domain


def domain_to_stem(domain: str, cidr: int) -> str:
    """Derive the zone file name (sans "db.") from the domain= argument of a -n option.

    Reverse-mapping domains are turned around, so that the file for
    28/80.254.153.156.in-addr.arpa ends up as 156.153.254.80%28. Other
    domains are used as they are.
    """
    labels: list[str] = split_labels(domain)

    if is_reverse_domain(labels):
        labels = labels[:-2]
        # h2n puts the CIDR size in front of the network's last octet.
        prefix: Final[str] = f"{cidr}/"
        if labels[0].startswith(prefix) and len(labels[0]) > len(prefix):
            labels[0] = f"{labels[0].removeprefix(prefix)}/{cidr}"
        labels.reverse()

    return sanitize(".".join(labels))


def same_domain(a: str, b: str) -> bool:
    """Return True if <a> and <b> name the same DNS domain."""
    if a == "" or b == "":
        return False
    try:
        return dns.name.from_text(a) == dns.name.from_text(b)
    except dns.exception.DNSException:
        return a.lower() == b.lower()


def parse_network(spec: str,
                  default_cidr: int = DefaultCIDR,
                  forward_domain: str = "") -> NetworkDescriptor:
    """Parse the arguments of an h2n -n option.

    <spec> is the text following "-n", e.g. "10.0.16/20" or
    "192.0.2.80:255.255.255.240 domain=80-95.2.0.192.in-addr.arpa".
    """
    args: list[str] = spec.split()
    if len(args) > 0 and args[0] == "-n":
        args = args[1:]
    if len(args) == 0:
        raise InvalidNetworkSpec("Network specification is empty")

    m: Optional[re.Match] = net_pat.match(args[0])
    if m is None:
        raise InvalidNetworkSpec(f"Cannot parse network {args[0]!r}")

    network: str = m["net"]
    octets: list[int] = [int(x) for x in network.split(".")]
    if any(o > 255 for o in octets):
        raise InvalidNetworkSpec(f"Invalid network address {network!r}")

    match m["sep"]:
        case ":":
            cidr: int = mask_to_cidr(m["size"])
        case "/":
            cidr = parse_size(m["size"])
        case _:
            cidr = check_cidr(default_cidr)

    if cidr <= 24:
        return _class_network(network, octets, cidr)
    return _subnet(network, octets, cidr, args[1:], forward_domain)


def _class_network(network: str, octets: list[int], cidr: int) -> NetworkDescriptor:
    # Normalize to three octets, since options files have networks
    # appearing with and without trailing zeros.
    octets = (octets + [0, 0, 0])[:3]
    count: Final[int] = num_zones(cidr)

    if cidr == 8:
        base_net, dot, start = str(octets[0]), "", None
    elif cidr <= 16:
        base_net, dot, start = str(octets[0]), ".", octets[1]
    else:
        base_net, dot, start = f"{octets[0]}.{octets[1]}", ".", octets[2]

    if start is not None and start + count - 1 > 255:
        raise InvalidNetworkSpec(f"Network {network}/{cidr} runs past octet value 255")

    return NetworkDescriptor(base_address=network,
                             cidr_size=cidr,
                             base_net=base_net,
                             dot=dot,
                             start_octet=start,
                             zone_count=count)


def _subnet(network: str,
            octets: list[int],
            cidr: int,
            args: list[str],
            forward_domain: str) -> NetworkDescriptor:
    if len(octets) != 4:
        raise InvalidNetworkSpec(f"A /{cidr} network needs all four octets, got {network!r}")

    domain_arg: Optional[str] = None
    for arg in args:
        if arg.startswith("domain="):
            domain_arg = collapse_escapes(arg.removeprefix("domain=").rstrip("."))
            break

    if domain_arg:
        if same_domain(domain_arg, forward_domain):
            return NetworkDescriptor(base_address=network,
                                     cidr_size=cidr,
                                     domain_arg=domain_arg,
                                     source=NameSource.Folded)
        return NetworkDescriptor(base_address=network,
                                 cidr_size=cidr,
                                 domain_arg=domain_arg,
                                 source=NameSource.Domain,
                                 base_net=domain_to_stem(domain_arg, cidr))

    if cidr == 32:
        stem = network
    else:
        last_host: Final[int] = octets[3] + (1 << (32 - cidr)) - 1
        if last_host > 255:
            raise InvalidNetworkSpec(f"Network {network}/{cidr} runs past octet value 255")
        stem = f"{network}-{last_host}"

    return NetworkDescriptor(base_address=network,
                             cidr_size=cidr,
                             base_net=stem)


def zone_items(desc: NetworkDescriptor) -> Iterator[ZoneItem]:
    """Yield the zone files the network described by <desc> ends up in."""
    if desc.folded:
        yield Skip(descriptor=desc)
        return

    if desc.start_octet is None:
        yield ZoneEntry(stem=desc.base_net, source=desc.source)
        return

    octet: int = desc.start_octet
    for _ in range(desc.zone_count):
        yield ZoneEntry(stem=f"{desc.base_net}{desc.dot}{octet}", source=desc.source)
        if desc.zone_count > 1:
            octet += 1


# Local Variables: #
# python-indent: 4 #
# End: #
