"""Terminal UI: raw-mode collection selector and structured prompts."""

from .prompts import ConnectionPrompter  # noqa: F401
from .selector import InteractiveSelector  # noqa: F401
from .terminal import RawTerminal  # noqa: F401

__all__ = ["ConnectionPrompter", "InteractiveSelector", "RawTerminal"]
