#!/usr/bin/env -S python3 -B -u
"""
Route Executor Module - External Collaborators for the Route Table

The route semantics engine never touches the kernel itself. It talks to
three collaborators, each a small abstract interface with a default
subprocess-backed implementation:

- RouteListingSource: current table listing (netstat -rn)
- RouteDetailSource: detail dump for one destination (route -n get <dest>)
- CommandExecutor: runs a built route(8) argument list with elevated
  privileges and reports exit status plus combined output

How privileges are obtained is outside this module: the default executor
only prepends a configurable helper (``sudo -n`` by default).

Author: RouteX
License: MIT
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..core.exceptions import (
    AuthorizationCancelledError, CommandExecutionError, ExecutionError, PermissionError,
)
from ..core.models import CommandResult, ErrorCategory


logger = logging.getLogger(__name__)

# Substrings of privilege-helper output that are soft failures
CANCELLED_MARKERS = ("User canceled", "canceled", "cancelled")
PERMISSION_MARKERS = ("not allowed", "denied", "a password is required")


@dataclass(frozen=True)
class ExecutionOutcome:
    """Exit status and combined stdout/stderr of one command."""
    exit_status: int
    output: str = ""

    @property
    def succeeded(self) -> bool:
        return self.exit_status == 0


def classify_execution_outcome(outcome: ExecutionOutcome,
                               command: Sequence[str] = ()) -> CommandResult:
    """
    Map an execution outcome to a CommandResult.

    Cancellation of the privilege prompt and permission denial get their own
    categories; every other failure keeps the tool's output verbatim.
    """
    if outcome.succeeded:
        return CommandResult.ok(command)

    error = outcome_to_error(outcome, command)
    if isinstance(error, AuthorizationCancelledError):
        category = ErrorCategory.CANCELLED
    elif isinstance(error, PermissionError):
        category = ErrorCategory.PERMISSION_DENIED
    else:
        category = ErrorCategory.FAILED
    return CommandResult.failure(error.message, category, command)


def outcome_to_error(outcome: ExecutionOutcome, command: Sequence[str] = ()) -> ExecutionError:
    """Structured exception describing a failed outcome."""
    command_line = " ".join(command)
    output = outcome.output
    if any(marker in output for marker in CANCELLED_MARKERS):
        return AuthorizationCancelledError(command_line)
    if any(marker in output for marker in PERMISSION_MARKERS):
        return PermissionError(operation=command_line or "route command")
    return CommandExecutionError(command_line, outcome.exit_status, output)


class RouteListingSource(ABC):
    """Provides the whitespace-tabular route listing."""

    @abstractmethod
    def fetch(self) -> str:
        """Return the complete listing text."""
        pass


class RouteDetailSource(ABC):
    """Provides the detailed key/value + metrics dump for one destination."""

    @abstractmethod
    def query(self, destination: str) -> str:
        """Return the raw detail output for a lookup destination."""
        pass


class CommandExecutor(ABC):
    """Runs a route(8) argument list with elevated privileges."""

    @abstractmethod
    def execute(self, args: List[str]) -> ExecutionOutcome:
        """Run the command; never raises for a non-zero exit."""
        pass


def _run(argv: List[str], timeout: int) -> ExecutionOutcome:
    logger.debug(f"Executing: {' '.join(argv)}")
    try:
        result = subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"Command timed out after {timeout}s: {' '.join(argv)}")
        return ExecutionOutcome(exit_status=124, output=f"Command timed out after {timeout} seconds")
    except OSError as e:
        logger.error(f"Failed to execute {argv[0]}: {e}")
        return ExecutionOutcome(exit_status=127, output=f"Failed to execute route command: {e}")

    return ExecutionOutcome(exit_status=result.returncode, output=result.stdout or "")


class NetstatListingSource(RouteListingSource):
    """Reads the table with ``netstat -rn``."""

    def __init__(self, netstat_command: str = "/usr/sbin/netstat",
                 arguments: Sequence[str] = ("-rn",), timeout: int = 30):
        self.netstat_command = netstat_command
        self.arguments = list(arguments)
        self.timeout = timeout

    def fetch(self) -> str:
        outcome = _run([self.netstat_command] + self.arguments, self.timeout)
        if not outcome.succeeded:
            raise CommandExecutionError(self.netstat_command, outcome.exit_status, outcome.output)
        return outcome.output


class RouteGetDetailSource(RouteDetailSource):
    """Reads one destination with ``route -n get``."""

    def __init__(self, route_command: str = "/sbin/route", timeout: int = 30):
        self.route_command = route_command
        self.timeout = timeout

    def query(self, destination: str) -> str:
        # Non-zero exits ("not in table") still produce parseable output
        return _run([self.route_command, "-n", "get", destination], self.timeout).output


class PrivilegedCommandExecutor(CommandExecutor):
    """
    Runs route(8) behind a privilege helper.

    Attributes:
        route_command: Path of the route binary
        privilege_command: Helper prepended to the command line (empty to run directly)
        timeout: Seconds before the command is abandoned
    """

    def __init__(self, route_command: str = "/sbin/route",
                 privilege_command: Optional[Sequence[str]] = ("sudo", "-n"),
                 timeout: int = 30):
        self.route_command = route_command
        self.privilege_command = list(privilege_command or [])
        self.timeout = timeout

    def command_line(self, args: List[str]) -> List[str]:
        return self.privilege_command + [self.route_command] + list(args)

    def execute(self, args: List[str]) -> ExecutionOutcome:
        outcome = _run(self.command_line(args), self.timeout)
        if outcome.succeeded:
            logger.info(f"Route command succeeded: {' '.join(args)}")
        else:
            logger.warning(f"Route command failed ({outcome.exit_status}): {outcome.output.strip()}")
        return outcome


def create_collaborators(executor_config: Dict) -> Dict[str, object]:
    """
    Build the default collaborators from the ``executor`` config section.

    Returns:
        Dictionary with 'listing', 'details' and 'executor' entries
    """
    timeout = executor_config.get('timeout', 30)
    route_command = executor_config.get('route_command', '/sbin/route')
    return {
        'listing': NetstatListingSource(
            executor_config.get('netstat_command', '/usr/sbin/netstat'),
            executor_config.get('netstat_arguments', ['-rn']),
            timeout,
        ),
        'details': RouteGetDetailSource(route_command, timeout),
        'executor': PrivilegedCommandExecutor(
            route_command,
            executor_config.get('privilege_command', ['sudo', '-n']),
            timeout,
        ),
    }
