"""System prompt assembly."""

from pathlib import Path

from loguru import logger

BOOTSTRAP_FILES = ["AGENTS.md", "DEPUTY.md"]


def build_system_prompt(workspace: Path, assistant_name: str = "Deputy") -> str:
    """
    Build the system prompt for a session.

    Args:
        workspace: Directory the tools operate in.
        assistant_name: Name the assistant refers to itself by.

    Returns:
        Identity, working rules and any bootstrap files found in the workspace.
    """
    parts = [_identity(workspace, assistant_name)]

    bootstrap = _load_bootstrap_files(workspace)
    if bootstrap:
        parts.append(bootstrap)

    return "\n\n---\n\n".join(parts)


def _identity(workspace: Path, assistant_name: str) -> str:
    workspace_path = str(workspace.expanduser().resolve())
    return (
        f"# {assistant_name}\n\n"
        f"You are an agentic code assistant called {assistant_name.lower()}. "
        "You will refer to yourself as the user's deputy.\n\n"
        "# Tool calling\n\n"
        "Use the tools available and your reasoning to help the user. "
        "Explain what each tool call does and why, unless it is obvious. "
        "Make as few tool calls as will achieve the goal, and prefer batch "
        "forms (such as reading several files at once) where they exist.\n\n"
        "# Collaboration\n\n"
        "When a request is ambiguous, or your tools reveal several reasonable options, "
        "work through it with the user: ask questions, offer options and agree on a plan. "
        "If the user asks for something that is not possible, refuse and explain why. "
        "If the user denies a tool call, stop and ask how they would like to proceed.\n\n"
        "# Style\n\n"
        "Be succinct and to the point. Avoid cliches and emojis.\n\n"
        f"# Workspace\n\nYou are operating from: {workspace_path}"
    )


def _load_bootstrap_files(workspace: Path) -> str:
    parts: list[str] = []
    for filename in BOOTSTRAP_FILES:
        file_path = workspace / filename
        if not file_path.is_file():
            continue
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping bootstrap file {file_path}: {e}")
            continue
        parts.append(f"## {filename}\n\n{content}")
    return "\n\n".join(parts)
