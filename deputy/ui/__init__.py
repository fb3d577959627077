"""Terminal user interface."""

from deputy.ui.terminal import TerminalIO

__all__ = ["TerminalIO"]
