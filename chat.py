#!/usr/bin/env python3
"""
unachat
=======

Command-line interface for the chat relay and its message renderer.

Usage:
    python chat.py serve                          # Run the WebSocket relay
    python chat.py serve --port 8080              # Run on another port
    python chat.py compose '{"nombre": "Ana", "mensaje": "hola"}'
    echo '{"mensaje": "https://youtu.be/qYwlqx-JLok"}' | python chat.py compose
    python chat.py sanitize '<b onclick="x()">hola</b>'
    python chat.py classify https://example.com/cat.png
    python chat.py validate                       # Check configuration
"""

import sys
from pathlib import Path

import click
import uvicorn

from unachat import __version__
from unachat.classifier import classify as classify_url
from unachat.composer import compose as compose_message
from unachat.config import ChatConfig, ConfigurationError, load_chat_config
from unachat.logger import get_logger, setup_logging
from unachat.sanitizer import sanitize as sanitize_text
from unachat.server import create_app

logger = get_logger("unachat.cli")


def setup_logging_from_config(
    config: ChatConfig,
    config_dir: Path,
    log_level_override: str | None = None,
    log_file_override: Path | None = None,
) -> None:
    """Configure logging based on config file and CLI overrides."""
    logging_cfg = config.logging

    # CLI flags override config file settings
    effective_log_level = log_level_override or logging_cfg.log_level
    effective_log_file = log_file_override or logging_cfg.log_file
    log_dir = config_dir if effective_log_file else None

    setup_logging(
        level=effective_log_level,
        log_file=str(effective_log_file) if effective_log_file else None,
        log_dir=log_dir,
        log_format=logging_cfg.log_format,
        max_bytes=logging_cfg.max_file_size,
        backup_count=logging_cfg.backup_count,
    )


def _read_argument(value: str | None) -> str:
    """Use the positional argument, or stdin when it is omitted or '-'."""
    if value is None or value == "-":
        return click.get_text_stream("stdin").read()
    return value


@click.group(invoke_without_command=True)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=Path(__file__).parent / "config.yaml",
    help="Path to configuration file",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False
    ),
    default=None,
    help="Override log level from config",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path from config",
)
@click.version_option(version=__version__, prog_name="unachat")
@click.pass_context
def cli(ctx, config: Path, log_level: str | None, log_file: Path | None):
    """
    unachat - Realtime chat relay with safe rich-media rendering.

    Messages are sanitized, URLs become links, images, videos or YouTube
    embeds, and the result is broadcast to every connected client.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["config_dir"] = config.parent

    try:
        ctx.obj["config"] = load_chat_config(config)
    except ConfigurationError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        sys.exit(1)

    setup_logging_from_config(ctx.obj["config"], config.parent, log_level, log_file)

    # If no subcommand is provided, show help
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option("--host", "-H", default=None, help="Interface to bind (overrides config)")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on (overrides config)")
@click.pass_context
def serve(ctx, host: str | None, port: int | None):
    """
    Run the WebSocket chat relay.

    Clients connect to /ws; GET /health reports the number of connections.
    """
    config: ChatConfig = ctx.obj["config"]
    host = host or config.server.host
    port = port or config.server.port

    logger.info(f"Listening on http://{host}:{port}")
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)


@cli.command()
@click.argument("raw", required=False)
@click.pass_context
def compose(ctx, raw: str | None):
    """
    Compose a raw JSON message into the envelope sent to clients.

    RAW is the JSON text of the message; read from stdin when omitted.
    """
    config: ChatConfig = ctx.obj["config"]
    click.echo(
        compose_message(
            _read_argument(raw).strip(),
            default_color=config.chat.default_color,
            anonymous_name=config.chat.anonymous_name,
        )
    )


@cli.command()
@click.argument("text", required=False)
def sanitize(text: str | None):
    """
    Print TEXT filtered through the HTML whitelist.

    Reads stdin when TEXT is omitted.
    """
    click.echo(sanitize_text(_read_argument(text)))


@cli.command()
@click.argument("url")
def classify(url: str):
    """Show how URL would be rendered in a message."""
    result = classify_url(url)
    click.echo(f"kind: {result.kind.value}")
    if result.video_id:
        click.echo(f"video_id: {result.video_id}")
    if result.mime_type:
        click.echo(f"mime_type: {result.mime_type}")


@cli.command()
@click.pass_context
def validate(ctx):
    """
    Validate the configuration file.

    Loading already validates it; this prints the effective settings.
    """
    config: ChatConfig = ctx.obj["config"]
    click.echo(click.style(f"✓ {ctx.obj['config_path']} is valid", fg="green"))
    click.echo(f"  Server:   {config.server.host}:{config.server.port}")
    click.echo(f"  Max body: {config.server.max_message_length} characters")
    click.echo(f"  Color:    {config.chat.default_color}")
    click.echo(f"  Logging:  {config.logging.log_level}")


if __name__ == "__main__":
    cli()
