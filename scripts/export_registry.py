#!/usr/bin/env python3
"""
FundRegistry - Export Registry Script
=======================================
Script per esportare lo snapshot del registry in JSON.

Usage:
    python scripts/export_registry.py --output registry.json
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from typing import Optional

from fund_registry.config import get_settings
from fund_registry.storage.db import RegistryDatabase
from fund_registry.utils.serialization import serialize_to_json
from fund_registry.version import SNAPSHOT_FORMAT_VERSION
import typer
from rich.console import Console

app = typer.Typer()
console = Console()


@app.command()
def main(
    output: Path = typer.Option(..., "--output", "-o", help="Output JSON file"),
    db: Optional[Path] = typer.Option(None, "--db", help="Registry database")
):
    """Export registry snapshot to JSON"""

    db_path = db or get_settings().db_path

    with RegistryDatabase(db_path) as database:
        snapshot = database.load_snapshot()

    if snapshot is None:
        console.print(f"[red]No registry found in {db_path}[/red]")
        raise typer.Exit(1)

    export_data = {
        "format": SNAPSHOT_FORMAT_VERSION,
        "campaign_count": len(snapshot["campaigns"]),
        "snapshot": snapshot,
    }

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(serialize_to_json(export_data, indent=2))

    console.print(f"[green]Exported {len(snapshot['campaigns'])} campaigns to {output}[/green]")


if __name__ == "__main__":
    app()
