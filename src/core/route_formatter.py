#!/usr/bin/env -S python3 -B -u
"""
Route Formatter Module - Text and JSON Output for Route Listings

This module renders routes, destination interpretations, gateway
classifications and command results for the command-line front end.

Key features:
- Aligned text table of routes with optional colouring
- JSON output of the same data for scripting
- Phantom (reject/blackhole) routes highlighted in the table
- Uniform rendering of command results and previews

Author: RouteX
License: MIT
"""

import json
from typing import Dict, List, Optional

from colorama import Fore, Style

from .gateway import GatewayClassifier
from .models import CommandResult, DestinationInterpretation, GatewayType
from .route import Route


TABLE_COLUMNS = (
    ("Destination", "destination"),
    ("Gateway", "gateway"),
    ("Flags", "flags"),
    ("Netif", "interface"),
    ("Expire", "expire"),
)


class RouteFormatter:
    """
    Provides text and JSON formatting for route data.

    Attributes:
        color: Apply ANSI colours (disable for pipes and tests)
    """

    def __init__(self, color: bool = True):
        self.color = color

    def _paint(self, text: str, *codes: str) -> str:
        if not self.color or not codes:
            return text
        return "".join(codes) + text + Style.RESET_ALL

    def format_routes(self, routes: List[Route], output_format: str = "text",
                      search_term: Optional[str] = None,
                      search_description: Optional[str] = None) -> str:
        """
        Format a list of routes.

        Args:
            routes: Routes in display order
            output_format: "text" or "json"
            search_term: Term used to filter the list, shown in the header
            search_description: Kind of search the term performs
        """
        if output_format == "json":
            payload: Dict = {"routes": [route.to_dict() for route in routes]}
            if search_term:
                payload["search"] = {"term": search_term, "type": search_description}
            return json.dumps(payload, indent=2)

        lines = []
        if search_term:
            lines.append(f"Search: {search_term} ({search_description})")

        if not routes:
            lines.append("No routes found")
            return "\n".join(lines)

        widths = [
            max(len(title), *(len(getattr(route, attr)) for route in routes))
            for title, attr in TABLE_COLUMNS
        ]
        header = "  ".join(title.ljust(width) for (title, _), width in zip(TABLE_COLUMNS, widths))
        lines.append(self._paint(header.rstrip(), Style.BRIGHT))

        for route in routes:
            row = "  ".join(
                getattr(route, attr).ljust(width) for (_, attr), width in zip(TABLE_COLUMNS, widths)
            ).rstrip()
            if route.is_phantom:
                row = self._paint(row, Fore.RED)
            elif not route.is_editable:
                row = self._paint(row, Style.DIM)
            lines.append(row)

        editable = sum(1 for route in routes if route.is_editable)
        lines.append("")
        lines.append(f"{len(routes)} route{'' if len(routes) == 1 else 's'} "
                     f"({editable} editable, {len(routes) - editable} system)")
        return "\n".join(lines)

    def format_interpretation(self, destination: str, interpretation: DestinationInterpretation,
                              output_format: str = "text") -> str:
        if output_format == "json":
            return json.dumps({
                "destination": destination,
                "valid": interpretation.is_valid,
                "type": interpretation.interpreted_type.value,
                "network_form": interpretation.network_form,
                "host_form": interpretation.host_form,
                "error": interpretation.error_message,
            }, indent=2)

        if not interpretation.is_valid:
            return self._paint(f"{destination}: {interpretation.status_description}", Fore.RED)

        lines = [
            f"Destination:  {destination}",
            f"Status:       {interpretation.status_description}",
        ]
        if interpretation.network_form:
            lines.append(f"As network:   {interpretation.network_form}")
        if interpretation.host_form:
            lines.append(f"As host:      {interpretation.host_form}")
        return "\n".join(lines)

    def format_gateway(self, token: str, classifier: GatewayClassifier,
                       output_format: str = "text") -> str:
        gateway_type = classifier.classify(token)
        if output_format == "json":
            return json.dumps({
                "gateway": token,
                "type": gateway_type.value,
                "modifier": classifier.modifier(token) or None,
                "description": classifier.describe(token),
            }, indent=2)

        color = Fore.RED if gateway_type is GatewayType.INVALID else Fore.GREEN
        return f"{token}: {self._paint(gateway_type.value, color)} - {classifier.describe(token)}"

    def format_result(self, result: CommandResult, command_line: Optional[str] = None,
                      output_format: str = "text") -> str:
        if output_format == "json":
            return json.dumps({
                "success": result.success,
                "message": result.message or None,
                "category": result.category.value if result.category else None,
                "command": list(result.command),
            }, indent=2)

        if result.success:
            text = self._paint("OK", Fore.GREEN)
            return f"{text}: {command_line}" if command_line else text
        return self._paint(f"Failed ({result.category.value}): {result.message}", Fore.RED)
