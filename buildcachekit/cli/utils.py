"""
Shared output helpers for the CLI.

Provides consistent error formatting and GitHub Actions workflow annotations.
"""

import sys
from typing import Optional

from ..core.environment import Environment, is_github_actions


def escape_annotation(message: str) -> str:
    """
    Escape a message for use in a workflow command.

    Example:
        >>> escape_annotation("line1\\nline2 100%")
        'line1%0Aline2 100%25'
    """
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def escape_property(value: str) -> str:
    return escape_annotation(value).replace(":", "%3A").replace(",", "%2C")


def annotate_error(env: Environment, message: str, title: Optional[str] = None) -> bool:
    """
    Emit an ::error:: workflow command when running inside GitHub Actions.

    Returns:
        True if an annotation was printed
    """
    if not is_github_actions(env):
        return False

    properties = f" title={escape_property(title)}" if title else ""
    print(f"::error{properties}::{escape_annotation(message)}", flush=True)
    return True


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        for line in details.splitlines():
            print(f"  {line}", file=sys.stderr)
