#!/usr/bin/env -S python3 -B -u
"""
Parser for the per-destination detail query (``route -n get <dest>``).

Example input:

       route to: 192.168.98.0
    destination: 192.168.98.0
           mask: 255.255.255.0
        gateway: 127.0.0.1
      interface: lo0
          flags: <UP,GATEWAY,BLACKHOLE,DONE,STATIC,PRCLONING>
     recvpipe  sendpipe  ssthresh  rtt,msec    rttvar  hopcount      mtu     expire
           0         0         0         0         0         0     16384         0

The metrics table is located by its header row, which must contain every
expected column name; the values are then read positionally from the
next non-blank row.
"""

import logging
from typing import Dict, List, Optional

from .exceptions import FlagConflictError
from .route import Route


logger = logging.getLogger(__name__)

# System flag names -> behaviour letters. Everything else (UP, GATEWAY,
# DONE, PRCLONING, HOST, DYNAMIC, MODIFIED, ...) is not user-controllable.
SYSTEM_FLAG_LETTERS = {
    "STATIC": "S",
    "REJECT": "R",
    "BLACKHOLE": "b",
    "LLINFO": "L",
}

EXPECTED_METRIC_COLUMNS = (
    "recvpipe", "sendpipe", "ssthresh", "rtt,msec", "rttvar", "hopcount", "mtu", "expire",
)

# Column header -> Route field
METRIC_COLUMN_FIELDS = {
    "recvpipe": "recvpipe",
    "sendpipe": "sendpipe",
    "ssthresh": "ssthresh",
    "rtt,msec": "rtt",
    "rttvar": "rttvar",
    "hopcount": "hop_count",
    "mtu": "mtu",
    "expire": "expire",
}


def parse_system_flags(system_flags: str) -> str:
    """
    Translate "<UP,GATEWAY,BLACKHOLE,DONE,STATIC>" into behaviour letters ("bS").
    """
    cleaned = system_flags.replace("<", "").replace(">", "")
    letters = []
    for name in cleaned.split(","):
        letter = SYSTEM_FLAG_LETTERS.get(name.strip().upper())
        if letter:
            letters.append(letter)
    return "".join(letters)


def _is_metrics_header(line: str) -> bool:
    lowered = line.lower()
    return all(column in lowered for column in EXPECTED_METRIC_COLUMNS)


def parse_metrics_table(lines: List[str]) -> Optional[Dict[str, str]]:
    """
    Find the metrics header and read the value row under it.

    Returns:
        Route field -> value for every column that has a value, or None
        when no line carries all expected column names.
    """
    for index, line in enumerate(lines):
        if not _is_metrics_header(line):
            continue

        header = line.split()
        values: List[str] = []
        for candidate in lines[index + 1:]:
            if candidate.strip():
                values = candidate.split()
                break

        metrics = {}
        for position, column in enumerate(header):
            field = METRIC_COLUMN_FIELDS.get(column.lower())
            if field and position < len(values):
                metrics[field] = values[position]
        return metrics

    return None


def parse_route_get_output(output: str, destination: str) -> Optional[Route]:
    """
    Parse detail-query output into a Route carrying the given destination.

    Returns:
        Route, or None when the output holds none of the expected lines
        (for example "route: writing to routing socket: not in table").
    """
    lines = output.splitlines()
    fields: Dict[str, str] = {}
    found = False

    for line in lines:
        trimmed = line.strip()
        if trimmed.startswith("flags:"):
            fields["flags"] = parse_system_flags(trimmed[len("flags:"):].strip())
            found = True
        elif trimmed.startswith("gateway:"):
            fields["gateway"] = trimmed[len("gateway:"):].strip()
            found = True
        elif trimmed.startswith("interface:"):
            fields["interface"] = trimmed[len("interface:"):].strip()
            found = True

    metrics = parse_metrics_table(lines)
    if metrics is not None:
        fields.update(metrics)
        found = True

    if not found:
        logger.debug(f"No route details found for {destination}")
        return None

    try:
        return Route(destination=destination, **fields)
    except FlagConflictError:
        logger.warning(f"Route details for {destination} report conflicting flags")
        return None
