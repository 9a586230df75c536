"""CLI commands for frontdesk."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer

from frontdesk import __version__
from frontdesk.agent.receptionist import ReceptionistService
from frontdesk.config.schema import Config
from frontdesk.config.loader import load_config
from frontdesk.health import HealthServer
from frontdesk.logging import setup_logging
from frontdesk.providers.factory import create_service

app = typer.Typer(
    name="frontdesk",
    help="frontdesk - conversational receptionist for external chat channels",
    no_args_is_help=True,
)

_EXIT_COMMANDS = {"exit", "quit", "/exit", "/quit"}


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"frontdesk v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=_version_callback, is_eager=True
    ),
) -> None:
    """frontdesk - conversational receptionist."""


def _load(config_path: Path | None) -> Config:
    config = load_config(config_path)
    setup_logging(json_output=config.logging.json_output, level=config.logging.level)
    return config


def _make_service(config: Config) -> ReceptionistService:
    return create_service(config)


def _print_reply(reply) -> None:
    if reply.clean_text:
        typer.echo(reply.clean_text)
    if reply.action is not None:
        typer.echo(f"action: {json.dumps(reply.action, ensure_ascii=False)}")


@app.command()
def ask(
    message: str = typer.Argument(..., help="Message to send"),
    agent_id: str = typer.Option("receptionist", "--agent-id", "-a", help="Agent identifier"),
    conversation_id: str = typer.Option("cli:direct", "--conversation-id", "-c", help="Conversation id"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to config.json"),
) -> None:
    """Send a single message and print the reply."""
    service = _make_service(_load(config_path))
    reply = asyncio.run(service.handle_message(agent_id, conversation_id, message))
    _print_reply(reply)


@app.command()
def chat(
    agent_id: str = typer.Option("receptionist", "--agent-id", "-a", help="Agent identifier"),
    conversation_id: str = typer.Option("cli:direct", "--conversation-id", "-c", help="Conversation id"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to config.json"),
) -> None:
    """Chat interactively. /reset clears the conversation; exit or quit leaves."""
    service = _make_service(_load(config_path))

    async def _loop() -> None:
        while True:
            try:
                line = typer.prompt("You", prompt_suffix="> ")
            except (EOFError, typer.Abort):
                break
            text = line.strip()
            if not text:
                continue
            if text.lower() in _EXIT_COMMANDS:
                break
            if text.lower() == "/reset":
                service.clear_conversation(conversation_id)
                typer.echo("Conversation cleared.")
                continue
            _print_reply(await service.handle_message(agent_id, conversation_id, text))

    asyncio.run(_loop())
    typer.echo("Goodbye!")


@app.command("serve-health")
def serve_health(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to config.json"),
) -> None:
    """Run the /health endpoint for a receptionist service."""
    config = _load(config_path)
    service = _make_service(config)
    server = HealthServer(service, host=host or config.health.host, port=port or config.health.port)

    async def _run() -> None:
        await server.start()
        try:
            await asyncio.Event().wait()
        finally:
            await server.stop()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        typer.echo("Stopped.")


if __name__ == "__main__":
    app()
