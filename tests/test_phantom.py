#!/usr/bin/env -S python3 -B -u
"""
Test suite for phantom route reconciliation and the phantom route stores.
"""

import unittest
import sys
import os
import tempfile
import shutil
from pathlib import Path
from unittest.mock import MagicMock

import yaml

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.exceptions import StoreError
from src.core.phantom import (
    MemoryPhantomRouteStore, PhantomRouteReconciler, YamlPhantomRouteStore, canonical_destination,
    lookup_destination,
)
from src.core.models import RouteType
from src.core.route import Route


def detail_output(flags: str, gateway: str = "127.0.0.1", interface: str = "lo0") -> str:
    return (
        f"    gateway: {gateway}\n"
        f"  interface: {interface}\n"
        f"      flags: <{flags}>\n"
        " recvpipe  sendpipe  ssthresh  rtt,msec    rttvar  hopcount      mtu     expire\n"
        "       0         0         0         0         0         0     16384         0\n"
    )


class FakeDetailSource:
    """Answers detail queries from a dictionary keyed by lookup destination."""

    def __init__(self, answers):
        self.answers = answers
        self.queries = []

    def query(self, destination):
        self.queries.append(destination)
        return self.answers.get(destination, "route: writing to routing socket: not in table")


class TestLookupDestination(unittest.TestCase):

    def test_cidr_uses_network_part(self):
        self.assertEqual(lookup_destination("192.168.98.0/24"), "192.168.98.0")
        self.assertEqual(lookup_destination("10.9/16"), "10.9.0.0")
        self.assertEqual(lookup_destination("192.168.98/24"), "192.168.98.0")

    def test_shorthand_is_left_padded(self):
        self.assertEqual(lookup_destination("192.168.98"), "192.168.0.98")
        self.assertEqual(lookup_destination("10"), "0.0.0.10")

    def test_other_values_unchanged(self):
        self.assertEqual(lookup_destination("192.168.98.1"), "192.168.98.1")
        self.assertEqual(lookup_destination("default"), "default")


class TestCanonicalDestination(unittest.TestCase):

    def test_shorthand_becomes_network_form(self):
        self.assertEqual(canonical_destination("192.168.98"), "192.168.98.0/24")
        self.assertEqual(canonical_destination("192.168.98/24"), "192.168.98.0/24")
        self.assertEqual(canonical_destination("10.1.2.3"), "10.1.2.3/32")

    def test_canonical_form_queries_the_added_network(self):
        self.assertEqual(lookup_destination(canonical_destination("192.168.98")), "192.168.98.0")

    def test_invalid_value_unchanged(self):
        self.assertEqual(canonical_destination("bogus"), "bogus")


class TestReconciliation(unittest.TestCase):

    def test_stale_cache_entry_is_excluded(self):
        """A cached destination whose detail query shows no drop flags is not a phantom."""
        store = MemoryPhantomRouteStore({"10.50.0.0/16"})
        details = FakeDetailSource({"10.50.0.0": detail_output("UP,GATEWAY,DONE,STATIC")})
        reconciler = PhantomRouteReconciler(store, details)

        phantoms, stale = reconciler.reconcile_with_stale([])
        self.assertEqual(phantoms, [])
        self.assertEqual(stale, {"10.50.0.0/16"})

        self.assertEqual(reconciler.prune(stale), {"10.50.0.0/16"})
        self.assertEqual(store.load(), set())

    def test_live_blackhole_is_returned_with_cached_destination(self):
        store = MemoryPhantomRouteStore({"192.168.98.0/24"})
        details = FakeDetailSource({"192.168.98.0": detail_output("UP,GATEWAY,BLACKHOLE,DONE,STATIC")})
        reconciler = PhantomRouteReconciler(store, details)

        phantoms = reconciler.reconcile([])
        self.assertEqual(len(phantoms), 1)
        self.assertEqual(phantoms[0].destination, "192.168.98.0/24")
        self.assertEqual(phantoms[0].flags, "bS")
        self.assertEqual(phantoms[0].gateway, "127.0.0.1")

    def test_visible_destinations_are_not_queried(self):
        store = MemoryPhantomRouteStore({"10.8/16", "10.9/16"})
        details = FakeDetailSource({"10.9.0.0": detail_output("UP,REJECT,STATIC")})
        reconciler = PhantomRouteReconciler(store, details)

        phantoms = reconciler.reconcile([Route("10.8/16", "192.168.1.254", "en0", "UGS")])
        self.assertEqual(details.queries, ["10.9.0.0"])
        self.assertEqual([route.destination for route in phantoms], ["10.9/16"])

    def test_canonical_cache_entry_matches_listed_shorthand(self):
        store = MemoryPhantomRouteStore({"10.8.0.0/16"})
        details = FakeDetailSource({})
        reconciler = PhantomRouteReconciler(store, details)

        reconciler.reconcile([Route("10.8/16", "192.168.1.254", "en0", "UGS")])
        self.assertEqual(details.queries, [])

    def test_configured_and_extra_destinations(self):
        details = FakeDetailSource({
            "192.168.99.0": detail_output("UP,REJECT"),
            "172.16.5.5": detail_output("UP,BLACKHOLE"),
        })
        reconciler = PhantomRouteReconciler(
            MemoryPhantomRouteStore(), details, probe_destinations=["192.168.99.0"], max_workers=2
        )
        self.assertEqual(reconciler.suspect_destinations(["172.16.5.5"]),
                         {"192.168.99.0", "172.16.5.5"})

        phantoms = reconciler.reconcile([], extra=["172.16.5.5"])
        self.assertEqual({route.destination for route in phantoms}, {"192.168.99.0", "172.16.5.5"})

    def test_missing_route_is_stale(self):
        reconciler = PhantomRouteReconciler(MemoryPhantomRouteStore({"10.77.0.0/16"}),
                                            FakeDetailSource({}))
        phantoms, stale = reconciler.reconcile_with_stale([])
        self.assertEqual(phantoms, [])
        self.assertEqual(stale, {"10.77.0.0/16"})

    def test_failing_query_is_skipped(self):
        details = MagicMock()
        details.query.side_effect = OSError("boom")
        reconciler = PhantomRouteReconciler(MemoryPhantomRouteStore({"10.1.0.0/16"}), details)
        self.assertEqual(reconciler.reconcile_with_stale([]), ([], set()))

    def test_nothing_to_query(self):
        details = MagicMock()
        reconciler = PhantomRouteReconciler(MemoryPhantomRouteStore(), details)
        self.assertEqual(reconciler.reconcile([]), [])
        details.query.assert_not_called()


class TestCacheMaintenance(unittest.TestCase):

    def setUp(self):
        self.store = MemoryPhantomRouteStore()
        self.reconciler = PhantomRouteReconciler(self.store, FakeDetailSource({}))

    def test_add_drop_route_is_remembered(self):
        self.reconciler.record_add(Route("10.9/16", "127.0.0.1", flags="Sb"))
        self.assertEqual(self.store.load(), {"10.9.0.0/16"})

    def test_add_stores_route_command_destination(self):
        self.reconciler.record_add(Route("192.168.98", "127.0.0.1", flags="b"))
        self.reconciler.record_add(Route("172.1", "127.0.0.1", flags="R", route_type=RouteType.HOST))
        self.assertEqual(self.store.load(), {"192.168.98.0/24", "172.0.0.1/32"})

    def test_add_forwarding_route_is_not_remembered(self):
        self.reconciler.record_add(Route("10.9/16", "192.168.1.1", flags="S"))
        self.assertEqual(self.store.load(), set())

    def test_delete_forgets_regardless_of_flags(self):
        self.reconciler.record_add(Route("10.9/16", "127.0.0.1", flags="R"))
        self.reconciler.record_delete(Route("10.9/16"))
        self.assertEqual(self.store.load(), set())
        self.assertEqual(self.reconciler.cached_destinations, set())

    def test_delete_by_listed_shorthand_forgets_canonical_entry(self):
        self.reconciler.record_add(Route("192.168.98", "127.0.0.1", flags="b"))
        self.reconciler.record_delete(Route("192.168.98/24"))
        self.assertEqual(self.store.load(), set())


class TestYamlStore(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = Path(self.temp_dir) / "cache" / "phantom_routes.yaml"

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_missing_file_loads_empty(self):
        self.assertEqual(YamlPhantomRouteStore(str(self.path)).load(), set())

    def test_save_and_load(self):
        store = YamlPhantomRouteStore(str(self.path))
        store.save({"10.9/16", "192.168.98.0/24"})

        with open(self.path) as f:
            self.assertEqual(yaml.safe_load(f), {"phantom_routes": ["10.9/16", "192.168.98.0/24"]})
        self.assertEqual(YamlPhantomRouteStore(str(self.path)).load(), {"10.9/16", "192.168.98.0/24"})

    def test_corrupt_file_loads_empty(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("phantom_routes: [unclosed\n")
        self.assertEqual(YamlPhantomRouteStore(str(self.path)).load(), set())

    def test_wrong_shape_loads_empty(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("phantom_routes: 10.9/16\n")
        self.assertEqual(YamlPhantomRouteStore(str(self.path)).load(), set())

    def test_unwritable_location_raises(self):
        blocker = Path(self.temp_dir) / "blocker"
        blocker.write_text("not a directory")
        store = YamlPhantomRouteStore(str(blocker / "phantom_routes.yaml"))
        with self.assertRaises(StoreError):
            store.save({"10.9/16"})


if __name__ == '__main__':
    unittest.main()
