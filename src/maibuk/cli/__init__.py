# ABOUTME: CLI package for Maibuk, built on Click.
# ABOUTME: Defines the root command group and registers subcommands.

import logging

import click

from maibuk.cli.commands import (
    book_cmd,
    chapter_cmd,
    dump_cmd,
    export_cmd,
    info_cmd,
    ls_cmd,
    settings_cmd,
)


@click.group()
@click.version_option(package_name="maibuk")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """Maibuk - write books and export them as EPUB or print-ready HTML."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


cli.add_command(book_cmd.new)
cli.add_command(book_cmd.edit)
cli.add_command(book_cmd.open_book)
cli.add_command(book_cmd.rm)
cli.add_command(ls_cmd.ls)
cli.add_command(info_cmd.info)
cli.add_command(chapter_cmd.chapter)
cli.add_command(export_cmd.export)
cli.add_command(dump_cmd.dump)
cli.add_command(settings_cmd.settings)
