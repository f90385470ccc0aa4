"""CLI for netnotes — parse lines, capture people, serve the API."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from netnotes import __version__
from netnotes.capture.workflow import (
    ConfirmPlace,
    Prompt,
    PromptKind,
    ProvideName,
    ProvidePlace,
    Response,
    run_capture,
)
from netnotes.config import ConfigError, NetnotesConfig, load_config
from netnotes.core.logging import configure_logging
from netnotes.errors import StorageError
from netnotes.parsing.line import parse_line
from netnotes.services import build_services

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(".")


def _load(config_dir: Path) -> NetnotesConfig:
    try:
        return load_config(config_dir, missing_ok=True)
    except ConfigError as exc:
        click.echo(f"Config error: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_CONFIG_DIR,
    show_default=True,
    help="Directory containing netnotes.toml",
)
@click.pass_context
def cli(ctx: click.Context, config_dir: Path) -> None:
    """netnotes — remember the people you meet, one line at a time."""
    config = _load(config_dir)
    configure_logging(
        level=config.logging.level,
        fmt=config.logging.format,
        log_root=Path(config.logging.log_root) if config.logging.log_root else None,
        app_name=config.name,
    )
    ctx.obj = config


@cli.command()
@click.argument("line")
def parse(line: str) -> None:
    """Print the structured guess for LINE as JSON."""
    click.echo(json.dumps(parse_line(line).model_dump(), indent=2))


def _ask(prompt: Prompt) -> Response | None:
    """Terminal answer for one prompt. Ctrl-D / Ctrl-C cancels."""
    try:
        if prompt.kind is PromptKind.ASK_NAME:
            name = click.prompt(prompt.message, default=prompt.name or "", show_default=False)
            return ProvideName(name=name or None)
        if prompt.kind is PromptKind.CONFIRM_PLACE:
            return ConfirmPlace(accepted=click.confirm(prompt.message, default=True))
        text = click.prompt(
            f"{prompt.message} (blank to skip)", default="", show_default=False
        )
        return ProvidePlace(text=text or None)
    except click.Abort:
        return None


@cli.command()
@click.argument("line")
@click.pass_obj
def capture(config: NetnotesConfig, line: str) -> None:
    """Capture LINE interactively and save it."""

    async def _run() -> None:
        services = await build_services(config)
        try:

            async def answer(prompt: Prompt) -> Response | None:
                return _ask(prompt)

            result = await run_capture(
                line,
                store=services.store,
                answer=answer,
                location=services.location,
                geocoder=services.geocoder,
                clock=services.clock,
                config=config.capture,
            )
        finally:
            await services.aclose()

        if result is None:
            click.echo("Cancelled, nothing saved.")
            return
        click.echo(f"Saved {result.person.name}")
        if result.person.place_label:
            click.echo(f"  met at: {result.person.place_label}")
        if result.note is not None:
            click.echo(f"  note:   {result.note.content}")

    try:
        asyncio.run(_run())
    except StorageError as exc:
        click.echo(f"Save failed, try again: {exc}", err=True)
        sys.exit(2)


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", type=int, default=None, help="Defaults to netnotes.port from config")
@click.pass_obj
def serve(config: NetnotesConfig, host: str, port: int | None) -> None:
    """Run the HTTP API."""
    import uvicorn

    from netnotes.api.app import create_app

    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port or config.port, log_config=None)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
