#!/usr/bin/env -S python3 -B -u
"""
Structured Exception Hierarchy for RouteX

This module provides the exception hierarchy used by the route semantics
engine, with operator-facing error messages and suggestions for resolution.

Key Features:
- Structured exceptions for validation, execution and storage failures
- User-friendly error messages without technical details
- Suggested actions for error resolution
- Debug information available only in verbose mode
- Exit codes for the command-line interface
"""

import sys
import traceback
from typing import Optional, Dict, Any
from enum import IntEnum


class ErrorCode(IntEnum):
    """Standard exit codes for the application."""
    SUCCESS = 0
    COMMAND_FAILED = 1
    NOT_FOUND = 2
    CANCELLED = 3
    INVALID_INPUT = 10
    CONFIGURATION_ERROR = 11
    STORAGE_ERROR = 12
    PERMISSION_ERROR = 13
    INTERNAL_ERROR = 15


class RouteXError(Exception):
    """
    Base exception class for all RouteX errors.

    Provides structured error information with user-friendly messages
    and suggested actions for resolution.
    """

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize RouteX error with structured information.

        Args:
            message: User-friendly error message
            suggestion: Suggested action to resolve the error
            error_code: Exit code for the error
            details: Additional error details (shown only in verbose mode)
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def format_error(self, verbose_level: int = 0) -> str:
        """
        Format error message based on verbosity level.

        Args:
            verbose_level: 0=basic, 1=verbose, 2=debug, 3=full details

        Returns:
            Formatted error message
        """
        lines = [f"Error: {self.message}"]

        if self.suggestion:
            lines.append(f"Suggestion: {self.suggestion}")

        if verbose_level >= 1 and self.details:
            lines.append("\nDetails:")
            for key, value in self.details.items():
                lines.append(f"  {key}: {value}")

        if verbose_level >= 2 and self.cause:
            lines.append(f"\nCaused by: {type(self.cause).__name__}: {str(self.cause)}")

        if verbose_level >= 3:
            lines.append("\nStack trace:")
            if sys.exc_info()[2]:
                lines.append(''.join(traceback.format_tb(sys.exc_info()[2])))
            else:
                lines.append("(No active exception - stack trace not available)")

        return "\n".join(lines)


# Configuration and Storage Errors

class ConfigurationError(RouteXError):
    """Raised when there are configuration-related issues."""

    def __init__(self, message: str, config_file: Optional[str] = None, **kwargs):
        suggestion = "Check your configuration file format and values."
        if config_file:
            suggestion += f" Configuration file: {config_file}"
            kwargs['details'] = kwargs.get('details', {})
            kwargs['details']['config_file'] = config_file
        super().__init__(
            message=message,
            suggestion=suggestion,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            **kwargs
        )


class StoreError(RouteXError):
    """Raised when the phantom route store cannot be written."""

    def __init__(self, path: str, reason: str, **kwargs):
        details = kwargs.pop('details', {})
        details.update({"path": path, "reason": reason})
        super().__init__(
            message=f"Cannot save phantom route cache to {path}",
            suggestion=(
                "Check that the cache directory exists and is writable, or set "
                "ROUTEX_PHANTOM_CACHE to another location."
            ),
            error_code=ErrorCode.STORAGE_ERROR,
            details=details,
            **kwargs
        )


# Validation Errors

class ValidationError(RouteXError):
    """Base class for input validation errors."""

    def __init__(self, field: str, value: Any, requirement: str, **kwargs):
        message = kwargs.pop('message', None) or f"Invalid {field}: {value}"
        super().__init__(
            message=message,
            suggestion=f"The {field} must {requirement}",
            error_code=ErrorCode.INVALID_INPUT,
            details={"field": field, "value": value, "requirement": requirement},
            **kwargs
        )


class InvalidDestinationError(ValidationError):
    """Raised when a destination fails the format rules."""

    def __init__(self, destination: str, reason: Optional[str] = None, **kwargs):
        super().__init__(
            field="destination",
            value=destination,
            requirement=(
                "be a CIDR block (192.168.1.0/24, 10/8, 0.0.0.0/0 for the default route), "
                "a full or shorthand IPv4 address (10.1.2.3, 192.168) or an IPv6 address"
            ),
            message=reason or f"Invalid destination: '{destination}'",
            **kwargs
        )


class InvalidGatewayError(ValidationError):
    """Raised when a gateway token matches no known gateway kind."""

    def __init__(self, gateway: str, reason: Optional[str] = None, **kwargs):
        super().__init__(
            field="gateway",
            value=gateway,
            requirement=(
                "be an IPv4/IPv6 address, an interface name (en0, utun3), "
                "a MAC address (00:11:22:33:44:55), '*' or a link# reference"
            ),
            message=reason or f"Invalid gateway: '{gateway}'",
            **kwargs
        )


class FlagConflictError(ValidationError):
    """Raised when mutually exclusive route flags are combined."""

    def __init__(self, flags: str, **kwargs):
        super().__init__(
            field="flags",
            value=flags,
            requirement="not combine Blackhole (b) and Reject (R)",
            message=(
                "Blackhole and Reject flags are mutually exclusive. A route cannot both "
                "silently drop packets (Blackhole) and send ICMP unreachable messages (Reject)."
            ),
            **kwargs
        )


class MetricValidationError(ValidationError):
    """Raised when an advanced route metric is unknown or out of range."""

    def __init__(self, metric: str, value: Any, requirement: str, **kwargs):
        super().__init__(
            field=metric,
            value=value,
            requirement=requirement,
            **kwargs
        )


# Execution Errors

class ExecutionError(RouteXError):
    """Base class for execution-related errors."""
    pass


class CommandExecutionError(ExecutionError):
    """Raised when the route command returns a failure."""

    def __init__(self, command: str, exit_code: int, error_output: str = "", **kwargs):
        cleaned = error_output.strip()
        message = (f"Route command failed: {cleaned}" if cleaned
                   else f"Route command failed with exit code {exit_code}")
        super().__init__(
            message=message,
            suggestion=(
                "The route command was rejected. Check:\n"
                "  1. The gateway is reachable from the selected interface\n"
                "  2. The route does not already exist (for add)\n"
                "  3. The route exists (for delete and change)"
            ),
            error_code=ErrorCode.COMMAND_FAILED,
            details={
                "command": command,
                "exit_code": exit_code,
                "error_output": error_output
            },
            **kwargs
        )


class AuthorizationCancelledError(ExecutionError):
    """Raised when the operator dismissed the privilege prompt."""

    def __init__(self, command: str = "", **kwargs):
        super().__init__(
            message="Authorization was canceled by the user.",
            suggestion="Re-run the command and confirm the administrator prompt.",
            error_code=ErrorCode.CANCELLED,
            details={"command": command},
            **kwargs
        )


class PermissionError(ExecutionError):
    """Raised when administrator privileges are missing."""

    def __init__(self, operation: str, resource: str = "routing table", **kwargs):
        super().__init__(
            message="Access denied. Administrator privileges are required.",
            suggestion=(
                f"Modifying the {resource} requires elevated privileges. Try:\n"
                f"  1. Run with sudo: sudo {' '.join(sys.argv)}\n"
                f"  2. Configure executor.privilege_command in routex.yaml"
            ),
            error_code=ErrorCode.PERMISSION_ERROR,
            details={"operation": operation, "resource": resource},
            **kwargs
        )


# Error Handler Utility

class ErrorHandler:
    """Utility class for consistent error handling across the application."""

    @staticmethod
    def handle_error(error: Exception, verbose_level: int = 0) -> int:
        """
        Handle an error and return appropriate exit code.

        Args:
            error: The exception to handle
            verbose_level: Verbosity level (0-3)

        Returns:
            Exit code for the application
        """
        if isinstance(error, RouteXError):
            print(error.format_error(verbose_level), file=sys.stderr)
            return error.error_code
        else:
            print("Error: An unexpected error occurred", file=sys.stderr)
            print("Suggestion: This might be a bug. Please report it with the full error output.", file=sys.stderr)

            if verbose_level >= 1:
                print(f"\nError type: {type(error).__name__}", file=sys.stderr)
                print(f"Error message: {str(error)}", file=sys.stderr)

            if verbose_level >= 3:
                print("\nStack trace:", file=sys.stderr)
                traceback.print_exc(file=sys.stderr)

            return ErrorCode.INTERNAL_ERROR

    @staticmethod
    def wrap_main(main_func):
        """
        Decorator to wrap main functions with error handling.

        Usage:
            @ErrorHandler.wrap_main
            def main(argv=None, verbose_level=0):
                ...
        """
        def wrapper(*args, **kwargs):
            try:
                return main_func(*args, **kwargs)
            except KeyboardInterrupt:
                print("\nOperation cancelled by user", file=sys.stderr)
                return ErrorCode.CANCELLED
            except Exception as e:
                verbose_level = 0
                if args and hasattr(args[0], 'verbose_level'):
                    verbose_level = args[0].verbose_level
                elif 'verbose_level' in kwargs:
                    verbose_level = kwargs['verbose_level']

                return ErrorHandler.handle_error(e, verbose_level)

        return wrapper
