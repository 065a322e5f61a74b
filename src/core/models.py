#!/usr/bin/env -S python3 -B -u
"""
Data Models for RouteX

This module provides the closed classification sets and small value types
shared by every part of the route semantics engine.

Key Features:
- String enums for route type hints, behaviour flags, gateway kinds,
  command verbs and failure categories
- Immutable destination interpretation results
- Fixed-shape record for the advanced route metrics
- Value-style command results (success flag + message + category)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .exceptions import MetricValidationError


class RouteType(str, Enum):
    """Whether a destination is routed as a network, a host, or decided automatically."""
    AUTO = "auto"
    NETWORK = "net"
    HOST = "host"

    @property
    def description(self) -> str:
        return {
            RouteType.AUTO: "Automatically determine route type based on destination format",
            RouteType.NETWORK: "Force network route (destination represents a network/subnet)",
            RouteType.HOST: "Force host route (destination represents a single host)",
        }[self]


class RouteFlag(str, Enum):
    """User-controllable route behaviour flags, keyed by their listing letter."""
    STATIC = "S"
    REJECT = "R"
    BLACKHOLE = "b"
    LLINFO = "L"

    @property
    def switch(self) -> str:
        """Long-form switch understood by route(8)."""
        return {
            RouteFlag.STATIC: "-static",
            RouteFlag.REJECT: "-reject",
            RouteFlag.BLACKHOLE: "-blackhole",
            RouteFlag.LLINFO: "-llinfo",
        }[self]

    @property
    def description(self) -> str:
        return {
            RouteFlag.STATIC: "Static Route - Manually added route",
            RouteFlag.REJECT: "Reject Route - Emit ICMP unreachable when matched",
            RouteFlag.BLACKHOLE: "Blackhole Route - Silently discard packets",
            RouteFlag.LLINFO: "Link Level Info - Validly translates proto addr to link addr",
        }[self]

    @classmethod
    def from_letter(cls, letter: str) -> Optional["RouteFlag"]:
        """Return the flag for a listing letter, or None for anything else."""
        for flag in cls:
            if flag.value == letter:
                return flag
        return None


# Route drops packets instead of forwarding; such routes are hidden by netstat
DROP_FLAGS = frozenset({RouteFlag.REJECT, RouteFlag.BLACKHOLE})


# Every flag letter netstat may print, including the passively observed ones
FLAG_DESCRIPTIONS: Dict[str, str] = {
    "U": "Up",
    "G": "Gateway",
    "H": "Host",
    "S": "Static",
    "C": "Clone",
    "W": "Was cloned",
    "L": "Link",
    "M": "Modified",
    "D": "Dynamic",
    "A": "Address",
    "R": "Reject",
    "I": "Interface",
    "B": "Broadcast",
    "b": "Blackhole",
    "c": "Cloned",
    "g": "Gateway",
    "r": "Reject",
    "s": "Static",
    "u": "Up",
}


class GatewayType(str, Enum):
    """Kind of next-hop token."""
    IP_ADDRESS = "ip-address"
    INTERFACE = "interface"
    HARDWARE_ADDRESS = "hardware-address"
    SPECIAL = "special"
    INVALID = "invalid"


class RouteCommand(str, Enum):
    """Verbs accepted by route(8) that RouteX issues."""
    ADD = "add"
    DELETE = "delete"
    CHANGE = "change"


class ErrorCategory(str, Enum):
    """Category of a failed route command, for operator-facing messages."""
    INVALID_INPUT = "invalid-input"
    CANCELLED = "cancelled"
    PERMISSION_DENIED = "permission-denied"
    FAILED = "failed"


@dataclass(frozen=True)
class DestinationInterpretation:
    """
    Result of interpreting a destination string.

    network_form and host_form show how the destination reads as a network
    route (e.g. "172.1.0.0/16") and as a host route (e.g. "172.0.0.1/32").
    """
    is_valid: bool
    interpreted_type: RouteType = RouteType.AUTO
    network_form: Optional[str] = None
    host_form: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def status_description(self) -> str:
        if not self.is_valid:
            return self.error_message or "Invalid destination"
        return {
            RouteType.AUTO: "Auto-detected",
            RouteType.NETWORK: "Network route",
            RouteType.HOST: "Host route",
        }[self.interpreted_type]

    @classmethod
    def invalid(cls, message: str) -> "DestinationInterpretation":
        return cls(is_valid=False, error_message=message)


# Advanced metric options in route(8) spelling, and their legal ranges
METRIC_OPTIONS: Tuple[str, ...] = (
    "mtu", "hopcount", "rtt", "rttvar", "sendpipe", "recvpipe", "ssthresh",
)

METRIC_RANGES: Dict[str, Tuple[int, Optional[int]]] = {
    "mtu": (68, 65535),
    "hopcount": (0, 255),
    "rtt": (0, 65535),
    "rttvar": (0, 65535),
    "sendpipe": (0, 65535),
    "recvpipe": (0, 65535),
    "ssthresh": (0, 65535),
    "expire": (0, None),
}


@dataclass
class RouteMetrics:
    """
    Advanced route options passed to route(8) as ``-<name> <value>`` pairs.

    Values stay textual; empty means "not set". ``order`` records the order
    in which the caller supplied the options, which is the order they are
    emitted on the command line.
    """
    mtu: str = ""
    hopcount: str = ""
    rtt: str = ""
    rttvar: str = ""
    sendpipe: str = ""
    recvpipe: str = ""
    ssthresh: str = ""
    order: Tuple[str, ...] = field(default=METRIC_OPTIONS, repr=False, compare=False)

    @classmethod
    def from_options(cls, options: Optional[Dict[str, object]] = None) -> "RouteMetrics":
        """
        Build metrics from a name -> value mapping.

        Raises:
            MetricValidationError: for any name that is not a known metric
        """
        options = options or {}
        unknown = [name for name in options if name not in METRIC_OPTIONS]
        if unknown:
            raise MetricValidationError(
                metric="option",
                value=", ".join(unknown),
                requirement=f"be one of: {', '.join(METRIC_OPTIONS)}",
                message=f"Unknown route option(s): {', '.join(unknown)}",
            )
        values = {name: "" if value is None else str(value) for name, value in options.items()}
        return cls(order=tuple(options), **values)

    @classmethod
    def from_route(cls, route) -> "RouteMetrics":
        """Collect the metric fields a Route carries."""
        return cls(
            mtu=route.mtu,
            hopcount=route.hop_count,
            rtt=route.rtt,
            rttvar=route.rttvar,
            sendpipe=route.sendpipe,
            recvpipe=route.recvpipe,
            ssthresh=route.ssthresh,
        )

    def items(self) -> List[Tuple[str, str]]:
        """Non-empty options in caller order."""
        return [(name, getattr(self, name)) for name in self.order if getattr(self, name)]

    def is_empty(self) -> bool:
        return not self.items()

    def to_dict(self) -> Dict[str, str]:
        return dict(self.items())


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a route command: never an exception, always a value."""
    success: bool
    message: str = ""
    category: Optional[ErrorCategory] = None
    command: Tuple[str, ...] = ()

    @classmethod
    def ok(cls, command: Iterable[str] = ()) -> "CommandResult":
        return cls(success=True, command=tuple(command))

    @classmethod
    def failure(cls, message: str, category: ErrorCategory = ErrorCategory.FAILED,
                command: Iterable[str] = ()) -> "CommandResult":
        return cls(success=False, message=message, category=category, command=tuple(command))
