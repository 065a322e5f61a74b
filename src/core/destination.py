#!/usr/bin/env -S python3 -B -u
"""
Destination Interpreter

Turns the destination strings operators actually type into the canonical
forms route(8) expects. Shorthand is ambiguous: "172.1" can mean the
network 172.1.0.0/16 or, in the classic inet_aton reading, the host
172.0.0.1. Both readings are produced so the caller (or the route type
hint) can pick one.

Rules, first match wins:
1. empty                      -> invalid
2. "default" / "0.0.0.0/0"    -> network 0.0.0.0/0
3. "<address>/<prefix>"       -> host if prefix is 32, else network
4. contains ":"               -> IPv6 host "<address>/128"
5. 1-4 dotted octets          -> network form right-padded, host form left-padded
"""

import logging

from .cidr import parse_octet, split_octets
from .gateway import is_valid_ipv6_address
from .models import DestinationInterpretation, RouteType


logger = logging.getLogger(__name__)

DEFAULT_NETWORK = "0.0.0.0/0"


def _interpret_cidr(destination: str) -> DestinationInterpretation:
    parts = destination.split('/')
    invalid = DestinationInterpretation.invalid("Invalid CIDR notation format")
    if len(parts) != 2:
        return invalid

    address, prefix = parts
    octet_parts = address.split('.')
    if split_octets(address) is None:
        return invalid
    if not (prefix.isascii() and prefix.isdigit()) or int(prefix) > 32:
        return invalid

    expanded = '.'.join(octet_parts + ['0'] * (4 - len(octet_parts)))
    if int(prefix) == 32:
        return DestinationInterpretation(
            is_valid=True,
            interpreted_type=RouteType.HOST,
            host_form=f"{expanded}/32",
        )
    return DestinationInterpretation(
        is_valid=True,
        interpreted_type=RouteType.NETWORK,
        network_form=f"{expanded}/{prefix}",
    )


def _interpret_ipv6(destination: str) -> DestinationInterpretation:
    if not is_valid_ipv6_address(destination):
        return DestinationInterpretation.invalid("Invalid IPv6 address format")
    return DestinationInterpretation(
        is_valid=True,
        interpreted_type=RouteType.HOST,
        host_form=f"{destination}/128",
    )


def _interpret_dotted(destination: str) -> DestinationInterpretation:
    parts = destination.split('.')

    for part in parts:
        if parse_octet(part) is None:
            return DestinationInterpretation.invalid(
                "Invalid IP address format: octets must be 0-255"
            )

    count = len(parts)
    if count > 4:
        return DestinationInterpretation.invalid("Invalid IP address format: too many octets")

    if count == 4:
        return DestinationInterpretation(
            is_valid=True,
            interpreted_type=RouteType.HOST,
            network_form=f"{destination}/32",
            host_form=f"{destination}/32",
        )

    # Shorthand defaults to a network route. The network reading appends
    # zero octets; the host reading inserts them before the last octet.
    network_form = '.'.join(parts + ['0'] * (4 - count)) + f"/{8 * count}"
    if count == 1:
        host_form = f"{parts[0]}.0.0.0/32"
    else:
        host_form = '.'.join(parts[:-1] + ['0'] * (4 - count) + parts[-1:]) + "/32"

    return DestinationInterpretation(
        is_valid=True,
        interpreted_type=RouteType.NETWORK,
        network_form=network_form,
        host_form=host_form,
    )


def interpret_destination(destination: str) -> DestinationInterpretation:
    """
    Interpret a destination string for routing.

    Args:
        destination: Destination as typed or as printed by netstat

    Returns:
        DestinationInterpretation; never raises
    """
    if not destination:
        return DestinationInterpretation.invalid("Destination cannot be empty")

    if destination.lower() == "default" or destination == DEFAULT_NETWORK:
        return DestinationInterpretation(
            is_valid=True,
            interpreted_type=RouteType.NETWORK,
            network_form=DEFAULT_NETWORK,
        )

    if '/' in destination:
        result = _interpret_cidr(destination)
    elif ':' in destination:
        result = _interpret_ipv6(destination)
    else:
        result = _interpret_dotted(destination)

    if not result.is_valid:
        logger.debug(f"Rejected destination '{destination}': {result.error_message}")
    return result
