#!/usr/bin/env -S python3 -B -u
"""
Parser for the route table listing (``netstat -rn`` / ``netstat -rnl``).

One route per line, whitespace separated:
    Destination  Gateway  Flags  Netif  [Expire]  [key=value ...]

Header lines, section titles and blank lines are skipped. Verbose listings
may append metric tokens such as ``mtu=1500`` which populate the matching
Route fields.
"""

import logging
from typing import List, Optional

from .exceptions import FlagConflictError
from .route import Route


logger = logging.getLogger(__name__)

HEADER_PREFIXES = ("Destination", "Kernel", "Internet:", "Internet6:", "Routing tables")

# key= prefix in the listing -> Route field
METRIC_TOKENS = {
    "mtu=": "mtu",
    "hop=": "hop_count",
    "rtt=": "rtt",
    "rttvar=": "rttvar",
    "sendpipe=": "sendpipe",
    "recvpipe=": "recvpipe",
    "ssthresh=": "ssthresh",
}


def parse_route_line(line: str) -> Optional[Route]:
    """
    Parse one listing line.

    Returns:
        Route, or None for headers, blank lines and lines with fewer than
        four fields
    """
    trimmed = line.strip()
    if not trimmed or trimmed.startswith(HEADER_PREFIXES):
        return None

    fields = trimmed.split()
    if len(fields) < 4:
        return None

    destination, gateway, flags, interface = fields[:4]
    expire = fields[4] if len(fields) > 4 else ""

    metrics = {}
    for token in fields[5:]:
        for prefix, name in METRIC_TOKENS.items():
            if token.startswith(prefix):
                metrics[name] = token[len(prefix):]
                break

    try:
        return Route(
            destination=destination,
            gateway=gateway,
            interface=interface,
            flags=flags,
            expire=expire,
            **metrics
        )
    except FlagConflictError:
        logger.warning(f"Skipping listing line with conflicting flags: {trimmed}")
        return None


def parse_route_listing(output: str) -> List[Route]:
    """Parse a complete listing into routes, in listing order."""
    routes = []
    for line in output.splitlines():
        route = parse_route_line(line)
        if route is not None:
            routes.append(route)
    logger.debug(f"Parsed {len(routes)} routes from listing")
    return routes
