"""Interaction contract between the core and the terminal."""

from abc import ABC, abstractmethod


class IO(ABC):
    """Displays messages to the operator and reads their replies."""

    @abstractmethod
    def show_message(self, title: str, text: str) -> None:
        """Render a titled block of text."""
        pass

    @abstractmethod
    def get_user_input(self, prompt: str) -> str | None:
        """
        Read one line from the operator.

        Returns:
            The line without surrounding whitespace, or None when no input
            is available (end of input or interrupt).
        """
        pass
