"""Utility functions module."""

from deputy.utils.helpers import format_error, truncate_output

__all__ = ["truncate_output", "format_error"]
