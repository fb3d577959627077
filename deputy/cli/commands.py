"""CLI commands for deputy."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from deputy import __version__
from deputy.config import Config, load_config, save_default_config
from deputy.core.errors import ConfigError, DeputyError
from deputy.core.messages import UserMessage
from deputy.utils.helpers import format_error

app = typer.Typer(
    name="deputy",
    help="Deputy: an agentic coding assistant for your terminal",
)
console = Console()


def _configure_logging(debug: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if debug else "WARNING")


def _load_or_exit(config_path: Optional[Path]) -> Config:
    try:
        return load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {format_error(e)}")
        raise typer.Exit(1)


def _mask(api_key: str | None) -> str:
    if not api_key:
        return "[red]Not configured[/red]"
    return f"...{api_key[-4:]}" if len(api_key) > 8 else "****"


@app.command()
def onboard(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
) -> None:
    """Write a default configuration file."""
    path = save_default_config(config_path)

    console.print(f"[green]Config created at:[/green] {path}")
    console.print("\n[yellow]Next steps:[/yellow]")
    console.print("1. Add your API key under providers.anthropic or providers.openai")
    console.print('2. Run: deputy chat -m "Hello!"')


@app.command()
def chat(
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Send one message and exit"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="anthropic or openai"),
    model: Optional[str] = typer.Option(None, "--model", help="Model name"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the provider base URL"),
    max_tokens: Optional[int] = typer.Option(None, "--max-tokens", help="Response token budget"),
    yolo: bool = typer.Option(False, "--yolo", help="Run every tool call without asking"),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging and tool echo"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
) -> None:
    """Chat with the assistant."""
    config = _load_or_exit(config_path)

    if provider:
        config.model.provider = provider
    if model:
        config.model.model_name = model
    if base_url:
        config.model.base_url_override = base_url
    if max_tokens:
        config.model.max_tokens = max_tokens
    if yolo:
        config.session.auto_approve = True
    if debug:
        config.session.debug = True

    _configure_logging(config.session.debug)

    from deputy.agent.context import build_system_prompt
    from deputy.agent.session import Session
    from deputy.agent.tools import build_default_tools
    from deputy.providers.factory import build_model
    from deputy.ui.terminal import TerminalIO

    workspace = config.workspace_path
    tools = build_default_tools(
        workspace,
        exec_timeout_s=config.tools.exec_timeout_s,
        restrict_to_workspace=config.tools.restrict_to_workspace,
    )
    system_prompt = build_system_prompt(workspace, config.session.assistant_name)

    try:
        llm = build_model(config, tools, system_prompt=system_prompt)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {format_error(e)}")
        raise typer.Exit(1)

    io = TerminalIO(console, assistant_name=config.session.assistant_name)
    session = Session(
        llm,
        tools,
        io,
        auto_approve=config.session.auto_approve,
        debug=config.session.debug,
        assistant_name=config.session.assistant_name,
    )

    async def _run() -> None:
        try:
            if message:
                await session.send_message(UserMessage(message))
            else:
                console.print(f"[bold]{config.session.assistant_name}[/bold] v{__version__}. Type 'exit' to quit.\n")
                await session.run()
        finally:
            await llm.aclose()

    try:
        asyncio.run(_run())
    except DeputyError as e:
        console.print(f"[red]Error:[/red] {format_error(e)}")
        raise typer.Exit(1)

    if not message:
        console.print("\n[dim]Goodbye![/dim]")


@app.command()
def status(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
) -> None:
    """Show the effective configuration."""
    config = _load_or_exit(config_path)

    table = Table(title="Deputy Status")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Version", __version__)
    table.add_row("Provider", config.model.provider)
    table.add_row("Model", config.model.model_name)
    table.add_row("Max Tokens", str(config.model.max_tokens))
    table.add_row("Base URL", config.get_base_url() or "Default")
    table.add_row("API Key", _mask(config.get_api_key()))
    table.add_row("Workspace", str(config.workspace_path))
    table.add_row("Restrict To Workspace", str(config.tools.restrict_to_workspace))
    table.add_row("Auto Approve", "Enabled" if config.session.auto_approve else "Disabled")
    table.add_row("Debug", "Enabled" if config.session.debug else "Disabled")

    console.print(table)
