"""
Route semantics engine: destination interpretation, CIDR arithmetic,
gateway classification, command building and phantom route reconciliation.
"""

from .cidr import CIDRInfo, normalize_to_cidr, parse_cidr
from .command_builder import RouteCommandBuilder, format_command
from .destination import interpret_destination
from .gateway import GatewayClassifier, classify_gateway
from .models import (
    CommandResult, DestinationInterpretation, ErrorCategory, GatewayType, RouteCommand,
    RouteFlag, RouteMetrics, RouteType,
)
from .route import Route
from .validator import RouteValidator

__all__ = [
    'CIDRInfo',
    'CommandResult',
    'DestinationInterpretation',
    'ErrorCategory',
    'GatewayClassifier',
    'GatewayType',
    'Route',
    'RouteCommand',
    'RouteCommandBuilder',
    'RouteFlag',
    'RouteMetrics',
    'RouteType',
    'RouteValidator',
    'classify_gateway',
    'format_command',
    'interpret_destination',
    'normalize_to_cidr',
    'parse_cidr',
]
