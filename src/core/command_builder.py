#!/usr/bin/env -S python3 -B -u
"""
Route Command Builder

Assembles the argument vector for route(8). The tool is positional and
order-sensitive, so arguments are always emitted in this order:

1. verb (add / delete / change)
2. advanced metric pairs (-mtu 1500 ...), in caller order, empty ones skipped
3. gateway modifier: -interface or -link, only for those gateway kinds
4. -net or -host
5. behaviour switches (-static, -reject, -blackhole, -llinfo)
6. destination, then gateway
7. -ifscope <interface>, unless the interface is empty or "*"
"""

import logging
import shlex
from typing import Dict, List, Optional, Union

from .gateway import GatewayClassifier
from .models import RouteCommand, RouteFlag, RouteMetrics, RouteType
from .route import Route
from .validator import RouteValidator, sanitize_ipv6_address


logger = logging.getLogger(__name__)

MetricOptions = Union[RouteMetrics, Dict[str, str], None]


class RouteCommandBuilder:
    """
    Builds route(8) argument lists from Route values.

    ``build`` is best-effort and never validates, which is what a preview
    or debugging display needs. ``build_checked`` validates first and
    raises instead of returning anything partial.
    """

    def __init__(self, validator: Optional[RouteValidator] = None,
                 gateway_classifier: Optional[GatewayClassifier] = None):
        self.gateway_classifier = gateway_classifier or GatewayClassifier()
        self.validator = validator or RouteValidator(self.gateway_classifier)

    @staticmethod
    def _metrics(options: MetricOptions) -> RouteMetrics:
        if isinstance(options, RouteMetrics):
            return options
        return RouteMetrics.from_options(options)

    def route_type_flag(self, route: Route) -> str:
        effective_type = route.effective_route_type()
        if effective_type is RouteType.NETWORK:
            return "-net"
        if effective_type is RouteType.HOST:
            return "-host"
        if effective_type is RouteType.AUTO:
            # Unresolved destinations: only CIDR notation is a network
            return "-net" if '/' in route.destination else "-host"
        raise ValueError(f"Unhandled route type: {effective_type}")

    @staticmethod
    def flag_switches(flags: str) -> List[str]:
        """Switches for the behaviour letters in flags; other letters are skipped."""
        switches = []
        for letter in flags:
            flag = RouteFlag.from_letter(letter)
            if flag is not None:
                switches.append(flag.switch)
        return switches

    def command_destination(self, route: Route) -> str:
        destination = route.get_route_command_destination()
        if ':' in destination:
            destination = sanitize_ipv6_address(destination)
        return destination

    def build(self, command: RouteCommand, route: Route, options: MetricOptions = None) -> List[str]:
        """
        Build the argument list for a route command without validating it.

        Args:
            command: Verb to issue
            route: Route to add, delete or change
            options: Advanced metrics, as RouteMetrics or a name -> value dict

        Returns:
            Ordered route(8) arguments, verb first
        """
        command = RouteCommand(command)
        args = [command.value]

        for name, value in self._metrics(options).items():
            args.extend([f"-{name}", value])

        modifier = self.gateway_classifier.modifier(route.gateway)
        if modifier:
            args.append(modifier)

        args.append(self.route_type_flag(route))
        args.extend(self.flag_switches(route.flags))

        args.append(self.command_destination(route))
        gateway = sanitize_ipv6_address(route.gateway)
        if gateway:
            args.append(gateway)

        if route.interface and route.interface != "*":
            args.extend(["-ifscope", route.interface])

        logger.debug(f"Built route command: {' '.join(args)}")
        return args

    def build_checked(self, command: RouteCommand, route: Route,
                      options: MetricOptions = None) -> List[str]:
        """
        Validate, then build.

        Raises:
            ValidationError: any subclass describing the first failed check
        """
        metrics = self._metrics(options)
        self.validator.check_route(route, command)
        self.validator.check_metrics(metrics)
        self.validator.check_expire(route.expire)
        return self.build(command, route, metrics)


def format_command(args: List[str], route_command: str = "/sbin/route") -> str:
    """Render an argument list as a shell-ready command line."""
    return " ".join(shlex.quote(part) for part in [route_command] + list(args))
