"""Display and terminal output utilities."""

from .console import Console
from .listener import ConsoleListener
from .tables import TableDisplay

__all__ = ["Console", "ConsoleListener", "TableDisplay"]
