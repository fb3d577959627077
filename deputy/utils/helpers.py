"""Common utility functions."""

from deputy.core.errors import DeputyError


def truncate_output(text: str, max_length: int = 4000) -> str:
    """
    Truncate text output to prevent context overflow.

    Args:
        text: Text to truncate.
        max_length: Maximum allowed length.

    Returns:
        Truncated text with indicator if truncated.
    """
    if len(text) <= max_length:
        return text
    half = max_length // 2
    return text[:half] + f"\n\n... [truncated {len(text) - max_length} chars] ...\n\n" + text[-half:]


def format_error(error: Exception) -> str:
    """
    Format an exception for display.

    Deputy errors render as "<category>: <label>: <reason>"; anything else as
    "<type name>: <message>".
    """
    if isinstance(error, DeputyError):
        return f"{error.category}: {error}"
    return f"{type(error).__name__}: {error}"
