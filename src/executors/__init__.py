"""
Collaborators that reach the operating system: route listing, per-destination
detail queries and privileged execution of route commands.
"""

from .route_executor import (
    CommandExecutor, ExecutionOutcome, NetstatListingSource, PrivilegedCommandExecutor,
    RouteDetailSource, RouteGetDetailSource, RouteListingSource, classify_execution_outcome,
)

__all__ = [
    'CommandExecutor',
    'ExecutionOutcome',
    'NetstatListingSource',
    'PrivilegedCommandExecutor',
    'RouteDetailSource',
    'RouteGetDetailSource',
    'RouteListingSource',
    'classify_execution_outcome',
]
