#!/usr/bin/env -S python3 -B -u
"""
Phantom Route Reconciler

Reject and blackhole routes are live in the kernel but never show up in
the standard ``netstat -rn`` listing. RouteX remembers every destination it
successfully added with drop semantics and probes those destinations one
by one with the detail query on each refresh.

Key Features:
- Injected persistent store (YAML file or in-memory) with load/save hooks
- In-memory mirror of the cache owned by the reconciler
- Concurrent detail probes on a thread pool, joined before returning
- Stale cache entries (route deleted or no longer dropping) are filtered
  out and can be pruned
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

import yaml

from .cidr import parse_host_address_left_pad, parse_network_address, split_octets
from .destination import interpret_destination
from .exceptions import StoreError
from .models import RouteType
from .route import Route
from .route_get_parser import parse_route_get_output


logger = logging.getLogger(__name__)


class PhantomRouteStore(ABC):
    """Persistent set of destinations believed to carry drop semantics."""

    @abstractmethod
    def load(self) -> Set[str]:
        """Return the stored destinations; empty when nothing was stored yet."""
        pass

    @abstractmethod
    def save(self, destinations: Set[str]) -> None:
        """Replace the stored destinations."""
        pass


class MemoryPhantomRouteStore(PhantomRouteStore):
    """Store that lives only as long as the process."""

    def __init__(self, destinations: Optional[Iterable[str]] = None):
        self._destinations = set(destinations or ())

    def load(self) -> Set[str]:
        return set(self._destinations)

    def save(self, destinations: Set[str]) -> None:
        self._destinations = set(destinations)


class YamlPhantomRouteStore(PhantomRouteStore):
    """
    Store kept in a small YAML document::

        phantom_routes:
          - 192.168.98.0
          - 10.9.0.0/16

    A missing, unreadable or malformed file loads as an empty set. Write
    failures raise StoreError.
    """

    KEY = 'phantom_routes'

    def __init__(self, path: str):
        self.path = Path(path).expanduser()

    def load(self) -> Set[str]:
        if not self.path.exists():
            logger.debug(f"No phantom route cache at {self.path}")
            return set()

        try:
            with open(self.path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring unreadable phantom route cache {self.path}: {e}")
            return set()

        entries = data.get(self.KEY, []) if isinstance(data, dict) else []
        if not isinstance(entries, list):
            logger.warning(f"Ignoring malformed phantom route cache {self.path}")
            return set()
        return {str(entry) for entry in entries if entry}

    def save(self, destinations: Set[str]) -> None:
        document = {self.KEY: sorted(destinations)}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix='.phantom_')
            with os.fdopen(fd, 'w') as f:
                yaml.safe_dump(document, f, default_flow_style=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreError(str(self.path), str(e), cause=e)
        logger.debug(f"Saved {len(destinations)} phantom destinations to {self.path}")


def lookup_destination(destination: str) -> str:
    """
    Argument for the detail query of a cached destination.

    CIDR -> expanded network part ("192.168.98/24" -> "192.168.98.0");
    1-3 octet shorthand -> left-padded host address; anything else unchanged.
    """
    if '/' in destination:
        network_part = destination.split('/', 1)[0]
        return parse_network_address(network_part) or network_part

    octets = split_octets(destination)
    if octets is not None and len(octets) < 4:
        return parse_host_address_left_pad(destination)
    return destination


def canonical_destination(destination: str) -> str:
    """
    Destination in the form route(8) is given for it.

    "192.168.98" -> "192.168.98.0/24", "10.1.2.3" -> "10.1.2.3/32".
    Uninterpretable values are returned unchanged.
    """
    interpretation = interpret_destination(destination)
    if not interpretation.is_valid:
        return destination
    if interpretation.interpreted_type is RouteType.HOST:
        return interpretation.host_form or destination
    return interpretation.network_form or destination


class PhantomRouteReconciler:
    """
    Finds live drop-semantic routes that the standard listing omits.

    Attributes:
        store: Persistence collaborator
        detail_source: Detail-query collaborator (``query(dest) -> str``)
        probe_destinations: Destinations probed on every refresh in addition
            to the cache
        max_workers: Upper bound on concurrent probes
    """

    def __init__(self, store: PhantomRouteStore, detail_source,
                 probe_destinations: Optional[Iterable[str]] = None,
                 max_workers: int = 8):
        self.store = store
        self.detail_source = detail_source
        self.probe_destinations = list(probe_destinations or [])
        self.max_workers = max(1, max_workers)
        self._cache: Set[str] = store.load()
        logger.debug(f"Loaded {len(self._cache)} phantom destinations")

    @property
    def cached_destinations(self) -> Set[str]:
        return set(self._cache)

    def suspect_destinations(self, extra: Optional[Iterable[str]] = None) -> Set[str]:
        """Cache, configured probe list and caller-supplied destinations."""
        suspects = set(self._cache)
        suspects.update(self.probe_destinations)
        suspects.update(extra or ())
        return suspects

    def probe(self, destination: str) -> Optional[Route]:
        """
        Query one destination.

        Returns:
            Route carrying the suspect destination, or None when the route is
            gone or does not drop packets
        """
        output = self.detail_source.query(lookup_destination(destination))
        route = parse_route_get_output(output, destination)
        if route is None or not route.is_phantom:
            logger.debug(f"{destination} is not a live phantom route")
            return None
        return route

    def reconcile_with_stale(self, visible_routes: Iterable[Route],
                             extra: Optional[Iterable[str]] = None) -> Tuple[List[Route], Set[str]]:
        """
        Probe every suspect destination not already listed.

        Returns:
            (phantom routes, probed destinations that turned out not to be
            phantom). Result order is not significant.
        """
        visible = set()
        for route in visible_routes:
            visible.add(route.destination)
            visible.add(canonical_destination(route.destination))
        pending = sorted(
            dest for dest in self.suspect_destinations(extra)
            if dest not in visible and canonical_destination(dest) not in visible
        )
        if not pending:
            return [], set()

        phantoms: List[Route] = []
        stale: Set[str] = set()
        workers = min(self.max_workers, len(pending))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self.probe, dest): dest for dest in pending}
            for future in as_completed(futures):
                destination = futures[future]
                try:
                    route = future.result()
                except Exception as e:
                    logger.warning(f"Detail query for {destination} failed: {e}")
                    continue
                if route is None:
                    stale.add(destination)
                else:
                    phantoms.append(replace(route, destination=destination))

        logger.info(f"Reconciled {len(pending)} suspect destinations: {len(phantoms)} phantom routes")
        return phantoms, stale

    def reconcile(self, visible_routes: Iterable[Route],
                  extra: Optional[Iterable[str]] = None) -> List[Route]:
        """Phantom routes for the suspect destinations missing from the listing."""
        phantoms, _ = self.reconcile_with_stale(visible_routes, extra)
        return phantoms

    def record_add(self, route: Route) -> None:
        """
        Remember a successfully added route if it drops packets.

        The destination is stored as it was handed to route(8), so the
        later detail query asks about the same network the kernel holds.
        """
        destination = route.get_route_command_destination()
        if not route.is_phantom or destination in self._cache:
            return
        self._cache.add(destination)
        self.store.save(set(self._cache))
        logger.info(f"Remembering phantom route {destination}")

    def record_delete(self, route: Route) -> None:
        """Forget a successfully deleted destination, whatever its flags."""
        forms = {route.destination, route.get_route_command_destination()}
        removed = self._cache & forms
        if not removed:
            return
        self._cache -= removed
        self.store.save(set(self._cache))
        logger.info(f"Forgot phantom route {', '.join(sorted(removed))}")

    def prune(self, stale: Iterable[str]) -> Set[str]:
        """
        Drop cached destinations that no longer exhibit drop semantics.

        Returns:
            The destinations actually removed
        """
        removed = self._cache & set(stale)
        if removed:
            self._cache -= removed
            self.store.save(set(self._cache))
            logger.info(f"Pruned stale phantom destinations: {', '.join(sorted(removed))}")
        return removed
