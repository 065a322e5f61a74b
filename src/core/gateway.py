#!/usr/bin/env -S python3 -B -u
"""
Gateway Classifier

Decides what kind of next hop a gateway token names. The answer selects
the modifier switch route(8) needs in front of the destination:
``-interface`` for interface names, ``-link`` for hardware addresses and
nothing for IP addresses or kernel references.
"""

import ipaddress
import re
from typing import Tuple

from .models import GatewayType


INTERFACE_PREFIXES: Tuple[str, ...] = ("en", "lo", "bridge", "utun", "gif", "stf", "p2p")

SPECIAL_WILDCARD = "*"
LINK_REFERENCE_PREFIX = "link#"

_HEX_PAIR_RE = re.compile(r'[0-9A-Fa-f]{2}')


def is_valid_ipv4_address(address: str) -> bool:
    """True for a complete dotted quad with every octet in 0-255."""
    parts = address.split('.')
    if len(parts) != 4:
        return False
    return all(part.isascii() and part.isdigit() and int(part) <= 255 for part in parts)


def is_valid_ipv6_address(address: str) -> bool:
    """True for any IPv6 literal the address parser accepts, zone id included."""
    if ':' not in address:
        return False
    try:
        ipaddress.IPv6Address(address)
    except ValueError:
        return False
    return True


def is_valid_interface_name(name: str) -> bool:
    return name.startswith(INTERFACE_PREFIXES)


def is_valid_mac_address(mac: str) -> bool:
    parts = mac.split(':')
    if len(parts) != 6:
        return False
    return all(_HEX_PAIR_RE.fullmatch(part) for part in parts)


def is_special_gateway(gateway: str) -> bool:
    """Wildcard or kernel link reference. "default" is deliberately not special here."""
    return gateway == SPECIAL_WILDCARD or gateway.startswith(LINK_REFERENCE_PREFIX)


class GatewayClassifier:
    """
    Classifies gateway tokens into exactly one GatewayType.

    Checks run in a fixed order and the first match wins, so the result is
    total and the five outcomes are mutually exclusive.
    """

    def classify(self, token: str) -> GatewayType:
        if is_valid_ipv4_address(token) or is_valid_ipv6_address(token):
            return GatewayType.IP_ADDRESS
        if is_valid_interface_name(token):
            return GatewayType.INTERFACE
        if is_valid_mac_address(token):
            return GatewayType.HARDWARE_ADDRESS
        if is_special_gateway(token):
            return GatewayType.SPECIAL
        return GatewayType.INVALID

    def modifier(self, token: str) -> str:
        """route(8) switch placed before the destination, or "" when none is needed."""
        gateway_type = self.classify(token)
        if gateway_type is GatewayType.INTERFACE:
            return "-interface"
        if gateway_type is GatewayType.HARDWARE_ADDRESS:
            return "-link"
        if gateway_type in (GatewayType.IP_ADDRESS, GatewayType.SPECIAL, GatewayType.INVALID):
            return ""
        raise ValueError(f"Unhandled gateway type: {gateway_type}")

    def describe(self, token: str) -> str:
        """Human-readable description of the gateway, used in listings."""
        gateway_type = self.classify(token)
        if gateway_type is GatewayType.IP_ADDRESS:
            return f"IP Gateway: {token}"
        if gateway_type is GatewayType.INTERFACE:
            return f"Interface: {token}"
        if gateway_type is GatewayType.HARDWARE_ADDRESS:
            return f"MAC Address: {token}"
        if gateway_type is GatewayType.SPECIAL:
            if token == SPECIAL_WILDCARD:
                return "No Gateway (direct interface)"
            return f"Link Reference: {token}"
        if gateway_type is GatewayType.INVALID:
            return f"Gateway: {token}"
        raise ValueError(f"Unhandled gateway type: {gateway_type}")


# Module-level instance; the classifier holds no state
classifier = GatewayClassifier()


def classify_gateway(token: str) -> GatewayType:
    return classifier.classify(token)
