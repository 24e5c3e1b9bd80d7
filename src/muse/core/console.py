"""Centralized Rich Console management.

Provides singleton Rich Console instances so command modules and the
output helpers share the same terminal handling.
"""

from rich.console import Console

_console: Console | None = None
_error_console: Console | None = None


def get_console() -> Console:
    """Get or create the global Rich Console instance.

    Returns:
        Console: The global Rich Console instance
    """
    global _console
    if _console is None:
        _console = Console()
    return _console


def get_error_console() -> Console:
    """Get or create the Rich Console writing to stderr."""
    global _error_console
    if _error_console is None:
        _error_console = Console(stderr=True)
    return _error_console


def safe_print(message: str, style: str | None = None) -> None:
    """Print using Rich Console with optional styling.

    Args:
        message: The message to print
        style: Optional Rich style string (e.g., "bold red", "green")
    """
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    get_error_console().print(message, style="bold red")
