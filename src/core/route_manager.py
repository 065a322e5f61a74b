#!/usr/bin/env -S python3 -B -u
"""
Route Manager - Coordinates Listing, Reconciliation and Mutations

The manager owns the in-memory view of the routing table and drives the
refresh-then-mutate-then-refresh cycle:

1. ``refresh`` reads the listing, parses it and asks the reconciler for the
   drop-semantic routes the listing hides.
2. ``add_route`` / ``delete_route`` / ``change_route`` validate, build the
   route(8) arguments, run them through the executor and classify the
   outcome. They always return a CommandResult and never raise.
3. On success the phantom cache is maintained and the view refreshed.

Key Features:
- Validation failures never reach the executor
- Edit-by-replacement (``update_route``) with restore of the original
- Search filtering ordered by route specificity
"""

import logging
from typing import Iterable, List, Optional

from .cidr import normalize_to_cidr
from .command_builder import MetricOptions, RouteCommandBuilder
from .exceptions import RouteXError, StoreError, ValidationError
from .listing_parser import parse_route_listing
from .models import CommandResult, ErrorCategory, RouteCommand
from .phantom import PhantomRouteReconciler
from .route import Route
from ..executors.route_executor import (
    CommandExecutor, RouteListingSource, classify_execution_outcome,
)


logger = logging.getLogger(__name__)


def describe_search_term(search_term: str) -> str:
    """Human description of what kind of search a term performs."""
    cidr = normalize_to_cidr(search_term)
    if cidr is not None and search_term != "default":
        return {
            32: "IP address (/32)",
            24: "Class C network (/24)",
            16: "Class B network (/16)",
            8: "Class A network (/8)",
        }.get(cidr.prefix_length, f"CIDR /{cidr.prefix_length} network")

    if '/' in search_term:
        parts = search_term.split('/')
        if len(parts) == 2 and parts[1].isdigit():
            return f"CIDR /{int(parts[1])} network"

    if '.' in search_term and ' ' not in search_term:
        return "Gateway or network"

    return "Text search"


def filter_routes(routes: Iterable[Route], search_term: str = "") -> List[Route]:
    """
    Routes matching a search term, most specific first.

    An empty term returns every route. When nothing matches, the default
    routes are returned instead, since that is where the traffic would go.
    """
    routes = list(routes)
    if not search_term:
        return sorted(routes, key=lambda route: route.specificity, reverse=True)

    matching = [route for route in routes if route.matches(search_term)]
    if not matching:
        matching = [route for route in routes if route.is_default_route]

    return sorted(matching, key=lambda route: (-route.specificity, route.destination))


class RouteManager:
    """
    Routing table view plus the mutating operations on it.

    Attributes:
        listing_source: Provides the standard route listing text
        executor: Runs built route(8) argument lists with privileges
        reconciler: Finds and remembers phantom routes
        builder: Validates and builds route(8) arguments
        routes: Visible and phantom routes from the last refresh
    """

    def __init__(self, listing_source: RouteListingSource, executor: CommandExecutor,
                 reconciler: PhantomRouteReconciler,
                 builder: Optional[RouteCommandBuilder] = None):
        self.listing_source = listing_source
        self.executor = executor
        self.reconciler = reconciler
        self.builder = builder or RouteCommandBuilder()
        self.routes: List[Route] = []

    def refresh(self, extra_destinations: Optional[Iterable[str]] = None) -> List[Route]:
        """
        Re-read the table.

        Cached destinations whose probe shows no drop semantics any more are
        pruned from the cache.

        Raises:
            ExecutionError: the listing could not be read
        """
        visible = parse_route_listing(self.listing_source.fetch())
        phantoms, stale = self.reconciler.reconcile_with_stale(visible, extra_destinations)

        try:
            self.reconciler.prune(stale)
        except StoreError as e:
            logger.warning(f"Could not prune phantom route cache: {e.message}")

        self.routes = visible + phantoms
        logger.info(f"Refreshed routes: {len(visible)} listed, {len(phantoms)} phantom")
        return self.routes

    def filter_routes(self, search_term: str = "") -> List[Route]:
        return filter_routes(self.routes, search_term)

    def _run(self, command: RouteCommand, route: Route, options: MetricOptions) -> CommandResult:
        try:
            args = self.builder.build_checked(command, route, options)
        except ValidationError as e:
            logger.info(f"Rejected {command.value} for {route.destination or '(empty)'}: {e.message}")
            return CommandResult.failure(e.message, ErrorCategory.INVALID_INPUT)

        outcome = self.executor.execute(args)
        return classify_execution_outcome(outcome, args)

    def _refresh_quietly(self) -> None:
        try:
            self.refresh()
        except RouteXError as e:
            logger.warning(f"Route list refresh failed: {e.message}")

    def _remember(self, action, route: Route) -> None:
        try:
            action(route)
        except StoreError as e:
            logger.warning(f"Phantom route cache not updated: {e.message}")

    def add_route(self, route: Route, options: MetricOptions = None) -> CommandResult:
        """Add a route; drop-semantic routes are remembered for reconciliation."""
        result = self._run(RouteCommand.ADD, route, options)
        if result.success:
            self._remember(self.reconciler.record_add, route)
            self._refresh_quietly()
        return result

    def delete_route(self, route: Route) -> CommandResult:
        """Delete a route and forget it as a phantom, whatever its flags."""
        result = self._run(RouteCommand.DELETE, route, None)
        if result.success:
            self._remember(self.reconciler.record_delete, route)
            self._refresh_quietly()
        return result

    def change_route(self, route: Route, options: MetricOptions = None) -> CommandResult:
        """Change a route in place."""
        result = self._run(RouteCommand.CHANGE, route, options)
        if result.success:
            self._remember(self.reconciler.record_add, route)
            self._refresh_quietly()
        return result

    def update_route(self, original: Route, updated: Route,
                     options: MetricOptions = None) -> CommandResult:
        """
        Replace a route: delete the original, then add the updated one.

        If the add fails the original is added back, so a failed edit leaves
        the table as it was whenever possible.
        """
        deleted = self.delete_route(original)
        if not deleted.success:
            return CommandResult.failure(
                f"Failed to delete original route: {deleted.message}",
                deleted.category, deleted.command
            )

        added = self.add_route(updated, options)
        if added.success:
            return added

        restored = self.add_route(original)
        if restored.success:
            logger.info(f"Restored original route {original.destination} after failed update")
            message = f"Failed to update route: {added.message}"
        else:
            logger.error(f"Could not restore original route {original.destination}: {restored.message}")
            message = f"Failed to update route and restore original: {added.message}"
        return CommandResult.failure(message, added.category, added.command)
