# ABOUTME: The `maibuk dump` command for exporting the database as SQL.
# ABOUTME: Writes INSERT statements for every table to a file or stdout.

from pathlib import Path

import click
from rich.console import Console

from maibuk.cli.options import backend_option, db_option, open_store, run
from maibuk.db.connection import Backend

console = Console()


@click.command("dump")
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="File to write the SQL dump to (default: stdout).",
)
@db_option
@backend_option
def dump(output: Path | None, db_path: Path | None, backend: Backend) -> None:
    """Export all books, chapters, covers, and settings as SQL."""

    async def export_data() -> bytes:
        async with open_store(db_path, backend) as adapter:
            return await adapter.export_data()

    data = run(console, export_data())
    if output is None:
        click.echo(data.decode("utf-8"), nl=False)
        return

    output.write_bytes(data)
    console.print(f"Wrote SQL dump to [bold]{output}[/bold].")
