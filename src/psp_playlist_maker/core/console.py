"""Centralized Rich Console management.

Provides a singleton Rich Console instance shared by the CLI and the
output helpers.
"""

from rich.console import Console

_console: Console | None = None


def get_console() -> Console:
    """Get or create the global Rich Console instance.

    Returns:
        Console: The global Rich Console instance
    """
    global _console
    if _console is None:
        _console = Console()
    return _console


def printable(text: str) -> str:
    """Make text safe to print or store as UTF-8.

    Filenames that are not valid UTF-8 reach Python as surrogate escapes
    (e.g. "\\udcff"); those bytes are shown as U+FFFD instead.
    """
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def safe_print(message: str, style: str | None = None) -> None:
    """Print using Rich Console with optional styling.

    Markup is disabled so file paths containing brackets print verbatim.

    Args:
        message: The message to print
        style: Optional Rich style string (e.g., "bold red", "green")
    """
    console = get_console()
    message = printable(message)
    if style:
        console.print(message, style=style, markup=False, highlight=False)
    else:
        console.print(message, markup=False, highlight=False)
