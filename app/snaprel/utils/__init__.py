"""Utility modules for snaprel.

This module exports commonly used utility functions.
"""

from snaprel.utils.formatting import (
    console,
    err_console,
    print_error,
    print_info,
    print_plain,
    print_success,
    print_warning,
)
from snaprel.utils.shell import CommandResult, command_exists, run_command, run_streaming

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "err_console",
    "print_error",
    "print_info",
    "print_plain",
    "print_success",
    "print_warning",
    "run_command",
    "run_streaming",
]
