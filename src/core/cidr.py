#!/usr/bin/env -S python3 -B -u
"""
CIDR Engine - Network Arithmetic for Route Search and Sorting

Normalizes every destination notation the route table accepts into a
CIDRInfo value and performs the 32-bit mask arithmetic used for searching,
sorting by specificity and overlap detection.

Accepted notations:
- "default" -> 0.0.0.0/0
- Full or shorthand CIDR: "192.168.1.0/24", "172.16.42/24", "10/8"
- Shorthand networks: "127" (/8), "192.168" (/16), "192.168.1" (/24)
- Full addresses: "192.168.1.1" (/32)

Malformed input never produces a partially valid value; the normalizers
return None instead.
"""

import re
from dataclasses import dataclass
from typing import List, Optional


_OCTET_RE = re.compile(r'[0-9]{1,3}')

ALL_ONES = 0xFFFFFFFF


def parse_octet(text: str) -> Optional[int]:
    """Return the octet value for a decimal string in 0-255, else None."""
    if not _OCTET_RE.fullmatch(text):
        return None
    value = int(text)
    if value > 255:
        return None
    return value


def split_octets(address: str) -> Optional[List[int]]:
    """
    Split a dotted address of 1-4 octets into integers.

    Returns:
        List of octet values, or None if any octet is malformed or the
        octet count is outside 1-4.
    """
    parts = address.split('.')
    if not 1 <= len(parts) <= 4:
        return None
    octets = []
    for part in parts:
        value = parse_octet(part)
        if value is None:
            return None
        octets.append(value)
    return octets


def parse_network_address(address: str) -> Optional[str]:
    """
    Right-pad a shorthand network address to four octets.

    Examples: "10" -> "10.0.0.0", "192.168" -> "192.168.0.0",
    "10.0.0.1" -> "10.0.0.1".
    """
    parts = address.split('.')
    if split_octets(address) is None:
        return None
    return '.'.join(parts + ['0'] * (4 - len(parts)))


def parse_host_address_left_pad(address: str) -> Optional[str]:
    """
    Expand a shorthand host address by inserting zero octets before the last one.

    This is the classic inet_aton reading of partial addresses:
    "128.32" -> "128.0.0.32", "128.32.130" -> "128.32.0.130",
    "7" -> "0.0.0.7". Full addresses are returned unchanged.
    """
    parts = address.split('.')
    if split_octets(address) is None:
        return None
    padded = parts[:-1] + ['0'] * (4 - len(parts)) + parts[-1:]
    return '.'.join(padded)


def ip_to_int(ip: str) -> Optional[int]:
    """Convert a complete dotted-quad address to an unsigned 32-bit integer."""
    parts = ip.split('.')
    if len(parts) != 4:
        return None
    octets = split_octets(ip)
    if octets is None:
        return None
    result = 0
    for octet in octets:
        result = (result << 8) | octet
    return result


def int_to_ip(value: int) -> str:
    """Convert an unsigned 32-bit integer to dotted-quad notation."""
    value &= ALL_ONES
    return '.'.join(str((value >> shift) & 0xFF) for shift in (24, 16, 8, 0))


def _mask_for(prefix_length: int) -> int:
    return (ALL_ONES << (32 - prefix_length)) & ALL_ONES


@dataclass(frozen=True)
class CIDRInfo:
    """
    IPv4 network in CIDR form.

    Attributes:
        network_address: Complete dotted-quad address (never shorthand)
        prefix_length: Prefix length in the range 0-32
    """
    network_address: str
    prefix_length: int

    def __post_init__(self):
        if not 0 <= self.prefix_length <= 32:
            raise ValueError(f"Prefix length out of range: {self.prefix_length}")
        if ip_to_int(self.network_address) is None:
            raise ValueError(f"Invalid network address: {self.network_address}")

    def __str__(self) -> str:
        return f"{self.network_address}/{self.prefix_length}"

    @property
    def subnet_mask(self) -> str:
        """Dotted-quad subnet mask for the prefix length."""
        return int_to_ip(_mask_for(self.prefix_length))

    @property
    def first_ip(self) -> str:
        """First address of the range (the network address as given)."""
        return self.network_address

    @property
    def last_ip(self) -> str:
        """Last address of the range, with every host bit set."""
        host_mask = ALL_ONES >> self.prefix_length if self.prefix_length < 32 else 0
        network_bits = ip_to_int(self.network_address) & _mask_for(self.prefix_length)
        return int_to_ip(network_bits | host_mask)

    def contains(self, ip: str) -> bool:
        """True if the address falls inside this network."""
        ip_int = ip_to_int(ip)
        if ip_int is None:
            return False
        mask = _mask_for(self.prefix_length)
        return (ip_to_int(self.network_address) & mask) == (ip_int & mask)

    def overlaps(self, other: "CIDRInfo") -> bool:
        """
        True if both networks agree on the bits of the shorter prefix.

        The comparison mask is the one with the most host bits of the two,
        so a /24 and the /16 that holds it overlap in either direction.
        """
        host_bits = max(32 - self.prefix_length, 32 - other.prefix_length)
        mask = (ALL_ONES << host_bits) & ALL_ONES
        this_network = ip_to_int(self.network_address)
        other_network = ip_to_int(other.network_address)
        return (this_network & mask) == (other_network & mask)


def parse_cidr(text: str) -> Optional[CIDRInfo]:
    """Parse "<address>/<prefix>" where the address may be shorthand."""
    parts = text.split('/')
    if len(parts) != 2:
        return None
    address, prefix = parts
    if not re.fullmatch(r'[0-9]+', prefix):
        return None
    prefix_length = int(prefix)
    if prefix_length > 32:
        return None
    network_address = parse_network_address(address)
    if network_address is None:
        return None
    return CIDRInfo(network_address, prefix_length)


def normalize_to_cidr(text: str) -> Optional[CIDRInfo]:
    """
    Normalize any supported IPv4 notation to a CIDRInfo.

    Shorthand without a prefix takes its prefix from the octet count:
    one octet is /8, two are /16, three are /24 and four are /32.
    """
    if text.lower() == 'default':
        return CIDRInfo('0.0.0.0', 0)

    if '/' in text:
        return parse_cidr(text)

    octets = split_octets(text)
    if octets is None:
        return None

    prefix_length = 8 * len(octets)
    network_address = '.'.join(str(octet) for octet in octets + [0] * (4 - len(octets)))
    return CIDRInfo(network_address, prefix_length)
