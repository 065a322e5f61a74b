#!/usr/bin/env -S python3 -B -u
"""
Test suite for the listing and detail-query parsers.
"""

import unittest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.listing_parser import parse_route_line, parse_route_listing
from src.core.route_get_parser import (
    parse_metrics_table, parse_route_get_output, parse_system_flags,
)


NETSTAT_OUTPUT = """Routing tables

Internet:
Destination        Gateway            Flags        Netif Expire
default            192.168.1.1        UGScg          en0
127                127.0.0.1          UCS            lo0
127.0.0.1          127.0.0.1          UH             lo0
169.254            link#6             UCS            en0      !
192.168.1          link#6             UCS            en0      !
192.168.1.1/32     link#6             UCS            en0      !
192.168.1.1        0:1c:42:0:0:18     UHLWIir        en0   1187
10.8/16            192.168.1.254      UGS            en0

Internet6:
Destination                             Gateway                         Flags         Netif Expire
default                                 fe80::%utun0                    UGcIg         utun0
::1                                     ::1                             UHL             lo0
"""

BLACKHOLE_DETAILS = """   route to: 192.168.98.0
destination: 192.168.98.0
       mask: 255.255.255.0
    gateway: 127.0.0.1
  interface: lo0
      flags: <UP,GATEWAY,BLACKHOLE,DONE,STATIC,PRCLONING>
 recvpipe  sendpipe  ssthresh  rtt,msec    rttvar  hopcount      mtu     expire
       0         0         0         0         0         0     16384         0
"""

PLAIN_DETAILS = """   route to: 10.8.0.0
destination: 10.8.0.0
       mask: 255.255.0.0
    gateway: 192.168.1.254
  interface: en0
      flags: <UP,GATEWAY,DONE,STATIC,PRCLONING>
 recvpipe  sendpipe  ssthresh  rtt,msec    rttvar  hopcount      mtu     expire
       0         0         0         0         0         0      1500         0
"""


class TestListingParser(unittest.TestCase):

    def test_headers_and_blank_lines_skipped(self):
        for line in ("", "   ", "Routing tables", "Internet:", "Internet6:",
                     "Destination        Gateway            Flags        Netif Expire",
                     "Kernel IP routing table"):
            self.assertIsNone(parse_route_line(line), repr(line))

    def test_short_lines_skipped(self):
        self.assertIsNone(parse_route_line("default 192.168.1.1 UGS"))

    def test_four_fields(self):
        route = parse_route_line("default            192.168.1.1        UGScg          en0")
        self.assertEqual(route.destination, "default")
        self.assertEqual(route.gateway, "192.168.1.1")
        self.assertEqual(route.flags, "UGScg")
        self.assertEqual(route.interface, "en0")
        self.assertEqual(route.expire, "")

    def test_expire_field(self):
        route = parse_route_line("192.168.1.1        0:1c:42:0:0:18     UHLWIir        en0   1187")
        self.assertEqual(route.expire, "1187")
        self.assertFalse(route.is_editable)

    def test_metric_tokens(self):
        route = parse_route_line("10.8/16 192.168.1.254 UGS en0 0 mtu=1400 hop=3 rtt=12 ssthresh=9 junk=1")
        self.assertEqual(route.mtu, "1400")
        self.assertEqual(route.hop_count, "3")
        self.assertEqual(route.rtt, "12")
        self.assertEqual(route.ssthresh, "9")
        self.assertEqual(route.rttvar, "")

    def test_conflicting_flags_skipped(self):
        self.assertIsNone(parse_route_line("10.9/16 127.0.0.1 UGSRb lo0"))

    def test_full_listing(self):
        routes = parse_route_listing(NETSTAT_OUTPUT)
        destinations = [route.destination for route in routes]
        self.assertEqual(len(routes), 10)
        self.assertEqual(destinations[0], "default")
        self.assertIn("10.8/16", destinations)
        self.assertIn("::1", destinations)


class TestSystemFlags(unittest.TestCase):

    def test_translation(self):
        self.assertEqual(parse_system_flags("<UP,GATEWAY,BLACKHOLE,DONE,STATIC,PRCLONING>"), "bS")
        self.assertEqual(parse_system_flags("<UP,REJECT,LLINFO>"), "RL")
        self.assertEqual(parse_system_flags("<UP,GATEWAY,DONE>"), "")
        self.assertEqual(parse_system_flags(""), "")


class TestDetailParser(unittest.TestCase):

    def test_blackhole_details(self):
        route = parse_route_get_output(BLACKHOLE_DETAILS, "192.168.98")
        self.assertEqual(route.destination, "192.168.98")
        self.assertEqual(route.gateway, "127.0.0.1")
        self.assertEqual(route.interface, "lo0")
        self.assertEqual(route.flags, "bS")
        self.assertEqual(route.mtu, "16384")
        self.assertEqual(route.hop_count, "0")
        self.assertEqual(route.expire, "0")
        self.assertTrue(route.is_phantom)

    def test_plain_route_is_not_phantom(self):
        route = parse_route_get_output(PLAIN_DETAILS, "10.8/16")
        self.assertEqual(route.flags, "S")
        self.assertEqual(route.mtu, "1500")
        self.assertFalse(route.is_phantom)

    def test_not_in_table(self):
        self.assertIsNone(parse_route_get_output("route: writing to routing socket: not in table\n", "10.99"))
        self.assertIsNone(parse_route_get_output("", "10.99"))

    def test_metrics_header_column_order_independent(self):
        lines = [
            "  mtu  expire  hopcount  rttvar  rtt,msec  ssthresh  sendpipe  recvpipe",
            "",
            " 1500       0         7       1         2         3         4         5",
        ]
        metrics = parse_metrics_table(lines)
        self.assertEqual(metrics["mtu"], "1500")
        self.assertEqual(metrics["hop_count"], "7")
        self.assertEqual(metrics["rtt"], "2")
        self.assertEqual(metrics["recvpipe"], "5")

    def test_incomplete_header_is_ignored(self):
        self.assertIsNone(parse_metrics_table(["  mtu  expire", " 1500  0"]))


if __name__ == '__main__':
    unittest.main()
