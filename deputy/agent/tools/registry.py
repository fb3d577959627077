"""Immutable name-keyed tool registry."""

from __future__ import annotations

from typing import Iterable, Iterator

from deputy.agent.tools.base import Tool
from deputy.core.errors import InvalidConfigError, ToolNotFoundError


class ToolRegistry:
    """Tools available to one session, fixed at construction."""

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise InvalidConfigError(f"duplicate tool name '{tool.name}'")
            self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(f"'{name}' is not a registered tool")
        return tool

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
