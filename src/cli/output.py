"""CLI output formatters for Rich tables and JSON.

Provides human-readable Rich output (default) and machine-parseable JSON
output (--json flag). All formatting goes through these functions so the
CLI commands stay clean.
"""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

console = Console()


def _flatten_row(row: Any) -> dict[str, Any]:
    """Flatten a listing row for tabular display.

    Rows wrapped in a single-key object ({"product": {...}}) are unwrapped.
    """
    if not isinstance(row, dict):
        return {"value": row}
    if len(row) == 1:
        (only,) = row.values()
        if isinstance(only, dict):
            return only
    return row


def format_listing(body: dict[str, Any], key: str, as_json: bool = False) -> Any:
    """Format a producten/landen listing as a Rich table or JSON.

    Args:
        body: Listing response body.
        key: Result collection name.
        as_json: If True, return JSON string instead of Rich table.

    Returns:
        JSON string or Rich Table.
    """
    if as_json:
        return json.dumps(body, indent=2, ensure_ascii=False)

    rows = [_flatten_row(row) for row in body.get(key, [])]
    columns: list[str] = []
    for row in rows:
        for column in row:
            if column not in columns:
                columns.append(column)

    table = Table(title=f"On-Time {key} ({len(rows)})", caption=body.get("remarks") or None)
    for column in columns:
        table.add_column(str(column))
    for row in rows:
        table.add_row(*(Text("" if row.get(c) is None else str(row.get(c))) for c in columns))
    return table


def format_label(body: dict[str, Any], as_json: bool = False) -> Any:
    """Format a label response; the base64 PDF is summarized unless as_json."""
    if as_json:
        return json.dumps(body, indent=2)

    pdf_size = len(body.get("label_contents_pdf", ""))
    lines = [
        f"[bold]Identifier:[/bold]  {body.get('identifier', '')}",
        f"[bold]Tracking URL:[/bold] {body.get('trackingurl', '')}",
        f"[bold]Carrier:[/bold]      {body.get('carrier_key', '')}",
        f"[bold]Label PDF:[/bold]    {pdf_size} base64 chars",
    ]
    return Panel("\n".join(lines), title="Shipment created", border_style="green")


def format_error(body: dict[str, Any], status_code: int, code: str | None = None) -> Panel:
    """Format an error response as a red panel."""
    title = f"Error {status_code}" + (f" [{code}]" if code else "")
    # Carrier remarks may contain square brackets, render them literally
    return Panel(Text(str(body.get("error", ""))), title=title, border_style="red")


def format_config(data: dict[str, Any]) -> str:
    """Format a (redacted) config dump as YAML-like JSON."""
    return json.dumps(data, indent=2, ensure_ascii=False)
