#!/usr/bin/env -S python3 -B -u
"""
Test suite for gateway classification.
"""

import unittest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.gateway import (
    GatewayClassifier, classify_gateway, is_valid_ipv6_address, is_valid_mac_address,
)
from src.core.models import GatewayType


class TestGatewayClassification(unittest.TestCase):

    def setUp(self):
        self.classifier = GatewayClassifier()

    def test_ip_addresses(self):
        for token in ("192.168.1.1", "0.0.0.0", "fe80::1", "2001:db8::1", "fe80::1%en0"):
            self.assertEqual(self.classifier.classify(token), GatewayType.IP_ADDRESS, token)

    def test_interfaces(self):
        for token in ("en0", "lo0", "bridge100", "utun3", "gif0", "stf0", "p2p0"):
            self.assertEqual(self.classifier.classify(token), GatewayType.INTERFACE, token)

    def test_hardware_addresses(self):
        for token in ("00:1c:42:00:00:08", "AA:BB:CC:DD:EE:FF"):
            self.assertEqual(self.classifier.classify(token), GatewayType.HARDWARE_ADDRESS, token)

    def test_special(self):
        self.assertEqual(self.classifier.classify("*"), GatewayType.SPECIAL)
        self.assertEqual(self.classifier.classify("link#14"), GatewayType.SPECIAL)

    def test_invalid(self):
        for token in ("", "default", "eth0", "192.168.1", "0:1c:42:0:0:8", "gateway"):
            self.assertEqual(self.classifier.classify(token), GatewayType.INVALID, token)

    def test_exactly_one_kind(self):
        """Every token lands in exactly one kind; the first matching rule decides."""
        for token in ("192.168.1.1", "en0", "00:1c:42:00:00:08", "*", "link#1", "???"):
            self.assertIn(self.classifier.classify(token), list(GatewayType))

    def test_module_helper(self):
        self.assertEqual(classify_gateway("en0"), GatewayType.INTERFACE)


class TestGatewayModifier(unittest.TestCase):

    def setUp(self):
        self.classifier = GatewayClassifier()

    def test_modifiers(self):
        self.assertEqual(self.classifier.modifier("en0"), "-interface")
        self.assertEqual(self.classifier.modifier("00:1c:42:00:00:08"), "-link")
        self.assertEqual(self.classifier.modifier("192.168.1.1"), "")
        self.assertEqual(self.classifier.modifier("link#4"), "")
        self.assertEqual(self.classifier.modifier("bogus"), "")

    def test_descriptions(self):
        self.assertEqual(self.classifier.describe("10.0.0.1"), "IP Gateway: 10.0.0.1")
        self.assertEqual(self.classifier.describe("en0"), "Interface: en0")
        self.assertEqual(self.classifier.describe("00:1c:42:00:00:08"), "MAC Address: 00:1c:42:00:00:08")
        self.assertEqual(self.classifier.describe("*"), "No Gateway (direct interface)")
        self.assertEqual(self.classifier.describe("link#7"), "Link Reference: link#7")
        self.assertEqual(self.classifier.describe("bogus"), "Gateway: bogus")


class TestAddressPredicates(unittest.TestCase):

    def test_ipv6(self):
        self.assertTrue(is_valid_ipv6_address("::1"))
        self.assertFalse(is_valid_ipv6_address("10.0.0.1"))
        self.assertFalse(is_valid_ipv6_address("fe80::1/64"))

    def test_mac(self):
        self.assertTrue(is_valid_mac_address("01:23:45:67:89:ab"))
        self.assertFalse(is_valid_mac_address("01:23:45:67:89"))
        self.assertFalse(is_valid_mac_address("01:23:45:67:89:zz"))


if __name__ == '__main__':
    unittest.main()
