# ABOUTME: The `maibuk settings` command group for viewing and changing app settings.
# ABOUTME: Values are parsed as JSON when possible so numbers and booleans keep their types.

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from maibuk.cli.options import backend_option, db_option, open_store, run
from maibuk.db.connection import Backend
from maibuk.db.settings import SETTING_KEYS, AppSettings, SettingsRepository

console = Console()


def parse_value(raw: str) -> Any:
    """Interpret a command-line value: JSON literals, else the plain string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


@click.group("settings")
def settings() -> None:
    """View and change application settings."""


@settings.command("show")
@db_option
@backend_option
def settings_show(db_path: Path | None, backend: Backend) -> None:
    """Show every setting and its current value."""

    async def load() -> AppSettings:
        async with open_store(db_path, backend) as adapter:
            return await SettingsRepository(adapter).load()

    current = run(console, load())
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for key, value in asdict(current).items():
        table.add_row(key, json.dumps(value))
    console.print(table)


@settings.command("set")
@click.argument("key", type=click.Choice(sorted(SETTING_KEYS)))
@click.argument("value")
@db_option
@backend_option
def settings_set(key: str, value: str, db_path: Path | None, backend: Backend) -> None:
    """Change one setting."""
    parsed = parse_value(value)

    async def store() -> AppSettings:
        async with open_store(db_path, backend) as adapter:
            return await SettingsRepository(adapter).set(key, parsed)

    updated = run(console, store())
    console.print(f"[bold]{key}[/bold] = {json.dumps(getattr(updated, key))}")
