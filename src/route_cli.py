#!/usr/bin/env -S python3 -B -u
"""
RouteX command-line interface.

Lists, searches and mutates the host routing table through the route
semantics engine. Destinations may be written in shorthand ("10.1",
"192.168.1/24", "0.0.0.0/0"); they are interpreted, validated and turned
into the exact route(8) argument order before anything is executed.
"""

import argparse
import logging
import sys
from typing import List, Optional

import colorama

from .core.command_builder import RouteCommandBuilder, format_command
from .core.config_loader import (
    get_executor_config, get_logging_config, get_phantom_config, load_routex_config,
)
from .core.destination import interpret_destination
from .core.exceptions import ErrorCode, ErrorHandler
from .core.gateway import GatewayClassifier
from .core.models import METRIC_OPTIONS, ErrorCategory, RouteCommand, RouteFlag, RouteType
from .core.phantom import PhantomRouteReconciler, YamlPhantomRouteStore
from .core.route import Route
from .core.route_formatter import RouteFormatter
from .core.route_manager import RouteManager, describe_search_term
from .core.structured_logging import get_logger, setup_logging
from .executors.route_executor import create_collaborators


logger = logging.getLogger(__name__)

CATEGORY_EXIT_CODES = {
    ErrorCategory.INVALID_INPUT: ErrorCode.INVALID_INPUT,
    ErrorCategory.CANCELLED: ErrorCode.CANCELLED,
    ErrorCategory.PERMISSION_DENIED: ErrorCode.PERMISSION_ERROR,
    ErrorCategory.FAILED: ErrorCode.COMMAND_FAILED,
}

FLAG_ARGUMENTS = (
    ('static', RouteFlag.STATIC),
    ('reject', RouteFlag.REJECT),
    ('blackhole', RouteFlag.BLACKHOLE),
    ('llinfo', RouteFlag.LLINFO),
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='routex',
        description='Inspect and change the IP routing table without memorizing route(8) syntax',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration File Support:
  Options can be configured in a YAML file. Location precedence:
  1. $ROUTEX_CONF environment variable
  2. ~/routex.yaml (user's home directory)
  3. ./routex.yaml (current directory)

  The phantom route cache location can be overridden with $ROUTEX_PHANTOM_CACHE.

Destination shorthand:
  10          -> network 10.0.0.0/8
  172.16      -> network 172.16.0.0/16
  192.168.1   -> network 192.168.1.0/24
  10.1/16     -> network 10.1.0.0/16
  10.1.2.3    -> host 10.1.2.3

Examples:
  %(prog)s list                                    # Routes, most specific first
  %(prog)s list -s 192.168.1                       # Routes overlapping 192.168.1.0/24
  %(prog)s interpret 172.16                        # Show network and host readings
  %(prog)s add 10.1.2/24 192.168.1.1 -i en0 --static
  %(prog)s add 192.168.98 127.0.0.1 --blackhole    # Phantom route, tracked in the cache
  %(prog)s delete 10.1.2.0/24 --dry-run            # Print the command only
        """)
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Enable verbose output (-v for info, -vv for debugging, -vvv for trace)')
    parser.add_argument('-c', '--config', help='Configuration file (overrides the search locations)')
    parser.add_argument('--no-color', action='store_true', help='Disable coloured output')

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    list_parser = subparsers.add_parser('list', help='List routes, including phantom routes')
    list_parser.add_argument('-s', '--search', default='',
                             help='Filter by text, IP address, shorthand network or CIDR')
    list_parser.add_argument('-p', '--probe', action='append', default=[], metavar='DEST',
                             help='Also probe DEST for a hidden reject/blackhole route')
    list_parser.add_argument('-j', '--json', action='store_true', help='Output in JSON format')

    interpret_parser = subparsers.add_parser('interpret', help='Show how a destination is read')
    interpret_parser.add_argument('destination')
    interpret_parser.add_argument('-j', '--json', action='store_true', help='Output in JSON format')

    classify_parser = subparsers.add_parser('classify', help='Classify a gateway token')
    classify_parser.add_argument('gateway')
    classify_parser.add_argument('-j', '--json', action='store_true', help='Output in JSON format')

    route_options = argparse.ArgumentParser(add_help=False)
    route_options.add_argument('destination',
                               help='Destination (address, shorthand or CIDR; 0.0.0.0/0 for the default route)')
    route_options.add_argument('gateway', nargs='?', default='',
                               help='Gateway address, interface, MAC address or link reference')
    route_options.add_argument('-i', '--interface', default='', help='Bind the route to an interface')
    route_options.add_argument('--type', dest='route_type', default=RouteType.AUTO.value,
                               choices=[route_type.value for route_type in RouteType],
                               help='; '.join(f'{route_type.value}: {route_type.description}'
                                             for route_type in RouteType))
    for name, flag in FLAG_ARGUMENTS:
        route_options.add_argument(f'--{name}', action='store_true', help=flag.description)
    for name in METRIC_OPTIONS:
        route_options.add_argument(f'--{name}', metavar='N', help=f'Set the route {name} metric')
    route_options.add_argument('--expire', default='', metavar='SECONDS',
                               help='Route lifetime in seconds')
    route_options.add_argument('--dry-run', action='store_true',
                               help='Validate and print the route command without running it')
    route_options.add_argument('-j', '--json', action='store_true', help='Output in JSON format')

    for command in RouteCommand:
        subparsers.add_parser(command.value, parents=[route_options],
                              help=f'{command.value.capitalize()} a route')

    return parser


def route_from_args(args: argparse.Namespace) -> Route:
    """Build the Route described by the command-line options."""
    flags = "".join(flag.value for name, flag in FLAG_ARGUMENTS if getattr(args, name))
    return Route(
        destination=args.destination,
        gateway=args.gateway,
        interface=args.interface,
        flags=flags,
        expire=args.expire,
        route_type=RouteType(args.route_type),
    )


def metric_options_from_args(args: argparse.Namespace) -> dict:
    return {name: getattr(args, name) for name in METRIC_OPTIONS if getattr(args, name)}


def create_manager(config: dict) -> RouteManager:
    """Wire the default collaborators from configuration."""
    collaborators = create_collaborators(get_executor_config(config))
    phantom_config = get_phantom_config(config)
    reconciler = PhantomRouteReconciler(
        YamlPhantomRouteStore(phantom_config['cache_file']),
        collaborators['details'],
        phantom_config['probe_destinations'],
        phantom_config['max_workers'],
    )
    return RouteManager(collaborators['listing'], collaborators['executor'], reconciler)


def run(args: argparse.Namespace, manager: Optional[RouteManager] = None) -> int:
    """Execute a parsed command line and return the exit code."""
    config = load_routex_config(args.config)
    logging_config = get_logging_config(config)
    setup_logging(args.verbose_level, logging_config.get('format', 'text'), logging_config.get('level'))
    log = get_logger(__name__, args.verbose_level)
    log.trace("Parsed command line", **vars(args))

    output_format = 'json' if args.json else 'text'
    formatter = RouteFormatter(color=not args.no_color and sys.stdout.isatty())
    classifier = GatewayClassifier()

    if args.command == 'interpret':
        interpretation = interpret_destination(args.destination)
        print(formatter.format_interpretation(args.destination, interpretation, output_format))
        return ErrorCode.SUCCESS if interpretation.is_valid else ErrorCode.INVALID_INPUT

    if args.command == 'classify':
        print(formatter.format_gateway(args.gateway, classifier, output_format))
        return ErrorCode.SUCCESS

    manager = manager or create_manager(config)

    if args.command == 'list':
        with log.timer("route listing"):
            manager.refresh(args.probe)
        routes = manager.filter_routes(args.search)
        description = describe_search_term(args.search) if args.search else None
        print(formatter.format_routes(routes, output_format, args.search or None, description))
        return ErrorCode.SUCCESS

    command = RouteCommand(args.command)
    route = route_from_args(args)
    options = metric_options_from_args(args)
    route_command = get_executor_config(config)['route_command']

    if args.dry_run:
        argv = RouteCommandBuilder().build_checked(command, route, options)
        print(format_command(argv, route_command))
        return ErrorCode.SUCCESS

    if command is RouteCommand.ADD:
        result = manager.add_route(route, options)
    elif command is RouteCommand.DELETE:
        result = manager.delete_route(route)
    else:
        result = manager.change_route(route, options)

    log.log_command_execution([route_command] + list(result.command), success=result.success,
                              category=result.category.value if result.category else None)
    command_line = format_command(list(result.command), route_command) if result.command else None
    print(formatter.format_result(result, command_line, output_format))

    if result.success:
        return ErrorCode.SUCCESS
    return CATEGORY_EXIT_CODES[result.category]


@ErrorHandler.wrap_main
def _main(args: argparse.Namespace) -> int:
    return run(args)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the routex command.

    Exit codes follow ErrorCode: 0 success, 1 route command failed,
    3 cancelled, 10 invalid input, 11 configuration error, 13 permission denied.
    """
    colorama.init()
    parser = build_parser()
    args = parser.parse_args(argv)
    args.verbose_level = args.verbose
    return int(_main(args))


if __name__ == '__main__':
    sys.exit(main())
