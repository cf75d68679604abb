"""Click CLI for running and exercising the bridge."""

from __future__ import annotations

import asyncio
import logging
import os

import click
import httpx
import uvicorn

from src.config import BridgeConfig, ConfigError, load_config
from src.generation.gemini import GeminiClient
from src.models import GenerationOutcome
from src.server.app import create_app


@click.group()
@click.option("--config", "config_path", default=None, help="Path to a JSON settings file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """WhatsApp-Gemini bridge CLI."""
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind.")
@click.option("--port", default=8080, type=int, help="Port to listen on.")
@click.option(
    "--log-level",
    default=lambda: os.environ.get("LOG_LEVEL", "info"),
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Log level (defaults to $LOG_LEVEL or info).",
)
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, log_level: str) -> None:
    """Run the webhook server."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs full request URLs, which carry the API key and access token
    logging.getLogger("httpx").setLevel(logging.WARNING)
    uvicorn.run(create_app(ctx.obj["config"]), host=host, port=port, log_level=log_level.lower())


async def _ask(config: BridgeConfig, message: str) -> GenerationOutcome:
    async with httpx.AsyncClient(timeout=config.http_timeout) as client:
        return await GeminiClient.from_config(client, config).generate(message)


@cli.command()
@click.argument("message")
@click.pass_context
def ask(ctx: click.Context, message: str) -> None:
    """Send MESSAGE to Gemini and print the reply."""
    outcome = asyncio.run(_ask(ctx.obj["config"], message))
    if not outcome.ok:
        reason = outcome.reason.value if outcome.reason else "failure"
        click.echo(f"Generation failed ({reason}): {outcome.error}", err=True)
        ctx.exit(1)
    click.echo(outcome.text)


@cli.command("check-config")
@click.pass_context
def check_config(ctx: click.Context) -> None:
    """Report which credentials are configured."""
    config: BridgeConfig = ctx.obj["config"]
    missing = config.missing_credentials()
    for name in ("Whatsapp.VERIFY_TOKEN", "Whatsapp.ACCESS_TOKEN", "Gemini.API_KEY"):
        state = "missing" if name in missing else "ok"
        click.echo(f"{name}: {state}")
    if missing:
        ctx.exit(1)
