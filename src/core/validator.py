#!/usr/bin/env -S python3 -B -u
"""
Route Validator - Pre-flight Checks for Route Commands

Nothing reaches the route command unless it passes these checks. Two
flavours are offered for every rule: boolean predicates for forms and
listings, and ``check_*`` methods that raise a ValidationError subclass
carrying the operator-facing reason.

Key Features:
- Destination format checks (CIDR, full address, 1-4 octet shorthand)
- Gateway classification checks for "add"
- IPv6 routing suitability (no "::", no bare "fe80::")
- Mutually exclusive Reject/Blackhole flags
- Per-field ranges for the advanced metrics
"""

import logging
from typing import Dict, Optional

from .cidr import split_octets
from .exceptions import (
    FlagConflictError, InvalidDestinationError, InvalidGatewayError, MetricValidationError,
)
from .gateway import GatewayClassifier, is_valid_ipv4_address, is_valid_ipv6_address
from .models import METRIC_RANGES, GatewayType, RouteCommand, RouteFlag, RouteMetrics
from .route import Route


logger = logging.getLogger(__name__)


def sanitize_ipv6_address(address: str) -> str:
    """
    Strip a zone identifier and then a prefix length from an address.

    Examples: "fe80::%utun5/64" -> "fe80::", "2001:db8::1%en0" -> "2001:db8::1".
    The input string is left untouched.
    """
    sanitized = address
    if '%' in sanitized:
        sanitized = sanitized[:sanitized.index('%')]
    if '/' in sanitized:
        sanitized = sanitized[:sanitized.index('/')]
    return sanitized


def is_valid_ipv6_for_routing(address: str) -> bool:
    """Valid IPv6 literal that is neither the unspecified address nor bare fe80::."""
    sanitized = sanitize_ipv6_address(address)
    if not is_valid_ipv6_address(sanitized):
        return False
    if sanitized == "::":
        return False
    if sanitized.lower() == "fe80::":
        return False
    return True


def validate_ip_address(address: str) -> bool:
    """Complete IPv4 dotted quad."""
    return is_valid_ipv4_address(address)


def is_valid_ip_address(address: str) -> bool:
    """IPv4 dotted quad, or IPv6 suitable for routing."""
    if validate_ip_address(address):
        return True
    return is_valid_ipv6_for_routing(address)


def validate_network_address(address: str) -> bool:
    """1-4 dotted octets, each 0-255."""
    return split_octets(address) is not None


def validate_cidr(cidr: str) -> bool:
    """``<network>/<prefix>`` with a shorthand-capable network and prefix 0-32."""
    parts = cidr.split('/')
    if len(parts) != 2:
        return False
    network, prefix = parts
    if not validate_network_address(network):
        return False
    return prefix.isascii() and prefix.isdigit() and int(prefix) <= 32


def validate_metric(value: str, metric_type: str) -> bool:
    """
    Check one metric value against its legal range.

    Unknown metric types only need a non-negative integer.
    """
    if not isinstance(value, str) or not (value.isascii() and value.isdigit()):
        return False
    number = int(value)
    low, high = METRIC_RANGES.get(metric_type, (0, None))
    if number < low:
        return False
    if high is not None and number > high:
        return False
    return True


def _range_requirement(metric_type: str) -> str:
    low, high = METRIC_RANGES.get(metric_type, (0, None))
    if high is None:
        return f"be an integer of at least {low}"
    return f"be an integer between {low} and {high}"


class RouteValidator:
    """
    Validates routes before a route command is assembled.

    Attributes:
        gateway_classifier: Classifier used for the "add" gateway check
    """

    def __init__(self, gateway_classifier: Optional[GatewayClassifier] = None):
        self.gateway_classifier = gateway_classifier or GatewayClassifier()

    def validate_route(self, route: Route, command: RouteCommand) -> bool:
        """Boolean form of check_route."""
        try:
            self.check_route(route, command)
        except (InvalidDestinationError, InvalidGatewayError, FlagConflictError) as e:
            logger.debug(f"Route rejected for {RouteCommand(command).value}: {e.message}")
            return False
        return True

    def check_route(self, route: Route, command: RouteCommand) -> None:
        """
        Validate a route for a command.

        Raises:
            InvalidDestinationError: destination empty or malformed
            InvalidGatewayError: "add" without a usable gateway, or unroutable IPv6 gateway
            FlagConflictError: both Reject and Blackhole requested
        """
        command = RouteCommand(command)
        self.check_flags(route.flags)
        self.check_destination(route.destination)

        if command is RouteCommand.ADD:
            if not route.gateway:
                raise InvalidGatewayError(route.gateway, "Destination and gateway are required")
            if self.gateway_classifier.classify(route.gateway) is GatewayType.INVALID:
                raise InvalidGatewayError(route.gateway)

        self.check_ipv6_gateway(route.gateway)

    def check_flags(self, flags: str) -> None:
        if RouteFlag.REJECT.value in flags and RouteFlag.BLACKHOLE.value in flags:
            raise FlagConflictError(flags)

    def check_destination(self, destination: str) -> None:
        if not destination:
            raise InvalidDestinationError(destination, "Destination cannot be empty")

        sanitized = sanitize_ipv6_address(destination)
        if ':' in sanitized and not is_valid_ipv6_for_routing(destination):
            raise InvalidDestinationError(destination, self._ipv6_reason("destination", sanitized))

        if not (validate_cidr(destination) or is_valid_ip_address(destination)
                or validate_network_address(destination)):
            raise InvalidDestinationError(destination)

    def check_ipv6_gateway(self, gateway: str) -> None:
        sanitized = sanitize_ipv6_address(gateway)
        if ':' not in sanitized:
            return
        if self.gateway_classifier.classify(gateway) is GatewayType.HARDWARE_ADDRESS:
            return
        if not is_valid_ipv6_for_routing(gateway):
            raise InvalidGatewayError(gateway, self._ipv6_reason("gateway", sanitized))

    @staticmethod
    def _ipv6_reason(field: str, sanitized: str) -> str:
        if sanitized == "::":
            return f"Invalid {field}: IPv6 unspecified address (::) cannot be used for routing."
        if sanitized.lower() == "fe80::":
            return (f"Invalid {field}: Use a complete link-local address like fe80::1, "
                    f"not the network prefix fe80::")
        return f"Invalid {field}. Enter a valid IPv4 or IPv6 address."

    def validate_metrics(self, metrics: RouteMetrics) -> Dict[str, str]:
        """
        Validate every non-empty metric independently.

        Returns:
            Mapping of metric name -> error message; empty when all pass
        """
        errors = {}
        for name, value in metrics.items():
            if not validate_metric(value, name):
                errors[name] = f"Invalid {name}: {value} (must {_range_requirement(name)})"
        return errors

    def check_metrics(self, metrics: RouteMetrics) -> None:
        """Raise MetricValidationError for the first metric that fails its range."""
        for name, value in metrics.items():
            if not validate_metric(value, name):
                raise MetricValidationError(name, value, _range_requirement(name))

    def check_expire(self, expire: str) -> None:
        if expire and not validate_metric(expire, "expire"):
            raise MetricValidationError("expire", expire, _range_requirement("expire"))
