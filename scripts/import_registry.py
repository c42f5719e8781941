#!/usr/bin/env python3
"""
FundRegistry - Import Registry Script
=======================================
Importa uno snapshot JSON (prodotto da export_registry.py) nel database.

Lo snapshot viene ricostruito con FundRegistry.from_snapshot prima del
salvataggio, quindi un file corrotto non sovrascrive lo stato esistente.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from typing import Optional

from fund_registry.config import get_settings
from fund_registry.domain.registry import FundRegistry
from fund_registry.errors import FundRegistryException
from fund_registry.logging_setup import get_logger
from fund_registry.storage.db import RegistryDatabase
from fund_registry.utils.serialization import deserialize_from_json
from fund_registry.version import SNAPSHOT_FORMAT_VERSION
import typer
from rich.console import Console

logger = get_logger("import")

app = typer.Typer()
console = Console()


@app.command()
def main(
    input_file: Path = typer.Option(..., "--input", "-i", help="Input JSON file"),
    db: Optional[Path] = typer.Option(None, "--db", help="Registry database"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing registry")
):
    """Import registry snapshot from JSON"""

    config = get_settings()
    db_path = db or config.db_path

    try:
        data = deserialize_from_json(input_file.read_text())
    except (OSError, ValueError) as e:
        logger.error(f"Import failed: {e}")
        console.print(f"[red]Import failed: {e}[/red]")
        raise typer.Exit(1)

    if not isinstance(data, dict):
        console.print(f"[red]Import failed: expected a JSON object, got {type(data).__name__}[/red]")
        raise typer.Exit(1)

    if data.get("format") != SNAPSHOT_FORMAT_VERSION:
        console.print(f"[red]Unsupported snapshot format: {data.get('format')}[/red]")
        raise typer.Exit(1)

    try:
        registry = FundRegistry.from_snapshot(data.get("snapshot"), config=config)

        with RegistryDatabase(db_path) as database:
            if database.has_state() and not force:
                console.print(f"[red]Registry already exists in {db_path}. Use --force.[/red]")
                raise typer.Exit(1)
            database.save_snapshot(registry.snapshot())

    except FundRegistryException as e:
        logger.error(f"Import failed: {e}")
        console.print(f"[red]Import failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Imported {len(registry.list_campaigns())} campaigns into {db_path}[/green]")


if __name__ == "__main__":
    app()
