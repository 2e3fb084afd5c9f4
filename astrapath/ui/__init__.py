"""Terminal user interface for AstraPath."""

from .console_view import ConsoleView

__all__ = [
    "ConsoleView",
]
