"""picqer-ontime CLI.

Unified entry point for running the webhook server and for invoking the
shipping-method operations by hand.

Usage:
    picqer-ontime serve                 Start the webhook server
    picqer-ontime process shipment.json Create a shipment from a webhook body
    picqer-ontime products --test       List On-Time products
    picqer-ontime countries             List On-Time countries
    picqer-ontime config show           Show the effective configuration
"""

import base64
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

import typer

from src.cli.config import PicqerOnTimeConfig, load_config
from src.cli.output import (
    console,
    format_config,
    format_error,
    format_label,
    format_listing,
)
from src.services.shipping_method import (
    Operation,
    ShippingMethodOutcome,
    ShippingMethodService,
)
from src.utils.redaction import redact_for_logging

app = typer.Typer(
    name="picqer-ontime",
    help="Picqer custom shipping method for On-Time",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Configuration management")
app.add_typer(config_app, name="config")

# --- Global state ---
_config_path: str | None = None


@app.callback()
def main(
    config: Optional[str] = typer.Option(
        None, "--config", help="Path to picqer-ontime.yaml config file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """picqer-ontime CLI."""
    global _config_path
    _config_path = config
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _load() -> PicqerOnTimeConfig:
    try:
        return load_config(_config_path)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)


def _run(operation: Operation, data_in: Any, test: bool, as_json: bool) -> ShippingMethodOutcome:
    """Run an operation and print its outcome. Exits 1 on error."""
    service = ShippingMethodService(_load())
    outcome = service.handle(operation, data_in, is_test=test)

    if outcome.error is not None:
        if as_json:
            typer.echo(json.dumps(outcome.body, indent=2, ensure_ascii=False))
        else:
            console.print(format_error(outcome.body, outcome.status_code, outcome.error.code))
        raise typer.Exit(code=1)

    if operation is Operation.PROCESS:
        rendered = format_label(outcome.body, as_json=as_json)
    else:
        key = "producten" if operation is Operation.PRODUCTEN else "landen"
        rendered = format_listing(outcome.body, key, as_json=as_json)

    if as_json:
        typer.echo(rendered)
    else:
        console.print(rendered)
    return outcome


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default from config)"),
    port: Optional[int] = typer.Option(None, help="Bind port (default from config)"),
):
    """Start the webhook server."""
    import uvicorn

    cfg = _load()
    if _config_path:
        # create_app() reloads config in the server process
        os.environ["PICQER_ONTIME_CONFIG_PATH"] = _config_path

    uvicorn.run(
        "src.api.main:create_app",
        factory=True,
        host=host or cfg.server.host,
        port=port or cfg.server.port,
        workers=1,
        log_level=cfg.server.log_level,
    )


@app.command()
def process(
    file: str = typer.Argument(..., help="Webhook JSON body, or '-' for stdin"),
    test: bool = typer.Option(False, "--test", help="Use the carrier's TEST environment"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
    label_out: Optional[Path] = typer.Option(
        None, "--label-out", help="Write the label PDF to this file"
    ),
):
    """Create a shipment from a Picqer webhook body."""
    raw = sys.stdin.read() if file == "-" else Path(file).read_text(encoding="utf-8")
    try:
        data_in = json.loads(raw)
    except ValueError:
        data_in = raw

    outcome = _run(Operation.PROCESS, data_in, test, as_json)

    if label_out is not None:
        label_out.write_bytes(base64.b64decode(outcome.body["label_contents_pdf"]))
        if not as_json:
            console.print(f"Label written to {label_out}")


@app.command()
def products(
    test: bool = typer.Option(False, "--test", help="Use the carrier's TEST environment"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """List the On-Time products available to this account."""
    _run(Operation.PRODUCTEN, None, test, as_json)


@app.command()
def countries(
    test: bool = typer.Option(False, "--test", help="Use the carrier's TEST environment"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """List the countries On-Time delivers to."""
    _run(Operation.LANDEN, None, test, as_json)


@config_app.command("show")
def config_show():
    """Show the effective configuration with secrets redacted."""
    cfg = _load()
    typer.echo(format_config(redact_for_logging(cfg.model_dump())))


if __name__ == "__main__":
    app()
