#!/usr/bin/env -S python3 -B -u
"""
Route table entry model.

A Route is either one line of the current table or an entry under
construction. The kernel owns the table; Route instances are rebuilt on
every refresh and never written back directly.
"""

import re
from dataclasses import dataclass, asdict
from typing import Any, Dict, FrozenSet, Optional

from .cidr import CIDRInfo, normalize_to_cidr
from .destination import interpret_destination
from .exceptions import FlagConflictError
from .gateway import classifier, is_valid_ipv4_address, is_valid_ipv6_address
from .models import (
    DROP_FLAGS, FLAG_DESCRIPTIONS, DestinationInterpretation, RouteFlag, RouteType,
)


_LINK_ADDRESS_RE = re.compile(r"[0-9A-Fa-f]{1,2}(:[0-9A-Fa-f]{1,2}){5}")


def _looks_like_link_address(gateway: str) -> bool:
    """netstat prints hardware addresses without leading zeros (0:1c:42:0:0:8)."""
    return bool(_LINK_ADDRESS_RE.fullmatch(gateway))


def parse_ip_address(text: str) -> Optional[str]:
    """
    Return the bare address if text is an IPv4 or IPv6 address.

    Zone identifiers (%en0) and prefix lengths (/64) are stripped first.
    """
    sanitized = text.split('%', 1)[0].split('/', 1)[0]
    if is_valid_ipv4_address(sanitized) or is_valid_ipv6_address(sanitized):
        return sanitized
    return None


@dataclass(frozen=True)
class Route:
    """
    Represents a single routing table entry.

    Metric fields are textual, as netstat prints them; empty means unset.
    """
    destination: str
    gateway: str = ""
    interface: str = ""
    flags: str = ""
    expire: str = ""
    route_type: RouteType = RouteType.AUTO
    mtu: str = ""
    hop_count: str = ""
    rtt: str = ""
    rttvar: str = ""
    sendpipe: str = ""
    recvpipe: str = ""
    ssthresh: str = ""

    def __post_init__(self):
        """Reject mutually exclusive drop semantics."""
        if RouteFlag.REJECT.value in self.flags and RouteFlag.BLACKHOLE.value in self.flags:
            raise FlagConflictError(self.flags)

    # Destination interpretation

    def interpret_destination(self) -> DestinationInterpretation:
        return interpret_destination(self.destination)

    def effective_route_type(self) -> RouteType:
        """The user's hint when given, otherwise what the destination looks like."""
        if self.route_type is not RouteType.AUTO:
            return self.route_type
        return self.interpret_destination().interpreted_type

    def get_route_command_destination(self) -> str:
        """Destination string to hand to route(8)."""
        interpretation = self.interpret_destination()
        effective_type = self.effective_route_type()
        if effective_type is RouteType.NETWORK:
            return interpretation.network_form or self.destination
        if effective_type is RouteType.HOST:
            return interpretation.host_form or self.destination
        return self.destination

    # Flags

    @property
    def behavior_flags(self) -> FrozenSet[RouteFlag]:
        """User-controllable flags present in the flag string."""
        return frozenset(
            flag for flag in (RouteFlag.from_letter(letter) for letter in self.flags) if flag
        )

    @property
    def is_phantom(self) -> bool:
        """Reject and blackhole routes do not show up in netstat output."""
        return bool(self.behavior_flags & DROP_FLAGS)

    @property
    def flag_description(self) -> str:
        descriptions = [FLAG_DESCRIPTIONS[letter] for letter in self.flags if letter in FLAG_DESCRIPTIONS]
        return ", ".join(descriptions) if descriptions else "No flags"

    # CIDR helpers

    @property
    def normalized_cidr(self) -> Optional[CIDRInfo]:
        return normalize_to_cidr(self.destination)

    @property
    def cidr_prefix_length(self) -> int:
        cidr = self.normalized_cidr
        return cidr.prefix_length if cidr else 0

    @property
    def network_address(self) -> str:
        cidr = self.normalized_cidr
        return cidr.network_address if cidr else self.destination

    @property
    def is_default_route(self) -> bool:
        return self.destination in ("default", "0.0.0.0/0")

    @property
    def specificity(self) -> int:
        """Higher is more specific; the default route sorts last."""
        if self.is_default_route:
            return 0
        return self.cidr_prefix_length

    def contains_ip(self, ip: str) -> bool:
        cidr = self.normalized_cidr
        address = parse_ip_address(ip)
        if cidr is None or address is None:
            return False
        return cidr.contains(address)

    def matches_cidr(self, search_cidr: CIDRInfo) -> bool:
        cidr = self.normalized_cidr
        if cidr is None:
            return False
        return cidr.overlaps(search_cidr)

    def matches(self, search_term: str) -> bool:
        """
        True if the route matches a free-text, IP, shorthand or CIDR search.

        Text matches on destination, gateway or interface win first; then the
        term is normalized to CIDR and compared by overlap; finally a bare
        address is tested for containment.
        """
        needle = search_term.lower()
        if (needle in self.destination.lower() or needle in self.gateway.lower()
                or needle in self.interface.lower()):
            return True

        route_cidr = self.normalized_cidr
        if route_cidr is None:
            return False

        search_cidr = normalize_to_cidr(search_term)
        if search_cidr is not None:
            return route_cidr.overlaps(search_cidr)

        address = parse_ip_address(search_term)
        if address is not None:
            return route_cidr.contains(address)

        return False

    # Presentation helpers

    @property
    def is_editable(self) -> bool:
        """False for routes the system manages on its own."""
        if any(letter in self.flags for letter in ("C", "W", "I", "i")):
            return False
        if self.destination.startswith("169.254"):
            return False
        if _looks_like_link_address(self.gateway):
            return False
        if self.gateway.startswith("link#"):
            return False
        return True

    @property
    def gateway_type_description(self) -> str:
        return classifier.describe(self.gateway)

    @property
    def expire_description(self) -> str:
        if not self.expire:
            return "No expiration - route is permanent"
        if self.expire == "!":
            return "Route expires immediately - temporary route"
        if not self.expire.isdigit():
            return f"Expiration time: {self.expire}"

        seconds = int(self.expire)
        if seconds == 0:
            return "Route expires immediately - temporary route"
        minutes, remaining = divmod(seconds, 60)
        if minutes == 0:
            return f"Route expires in {seconds} second{'s' if seconds != 1 else ''}"
        text = f"Route expires in {minutes} minute{'s' if minutes != 1 else ''}"
        if remaining:
            text += f" {remaining} second{'s' if remaining != 1 else ''}"
        return text

    def to_dict(self) -> Dict[str, Any]:
        """Convert Route to dictionary representation, dropping empty fields."""
        data = {k: v for k, v in asdict(self).items() if v not in ("", None)}
        data["route_type"] = self.route_type.value
        return data
