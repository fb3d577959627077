"""Agent tools module."""

from pathlib import Path

from deputy.agent.tools.base import Tool
from deputy.agent.tools.filesystem import ListFilesTool, ReadFilesTool, WriteFileTool
from deputy.agent.tools.registry import ToolRegistry
from deputy.agent.tools.shell import ExecCommandTool


def build_default_tools(
    workspace: Path,
    exec_timeout_s: int = 120,
    restrict_to_workspace: bool = True,
) -> ToolRegistry:
    """Build the default tool registry."""
    return ToolRegistry(
        [
            ListFilesTool(workspace, restrict_to_workspace=restrict_to_workspace),
            ReadFilesTool(workspace, restrict_to_workspace=restrict_to_workspace),
            WriteFileTool(workspace, restrict_to_workspace=restrict_to_workspace),
            ExecCommandTool(workspace, timeout_s=exec_timeout_s),
        ]
    )


__all__ = [
    "ExecCommandTool",
    "ListFilesTool",
    "ReadFilesTool",
    "Tool",
    "ToolRegistry",
    "WriteFileTool",
    "build_default_tools",
]
