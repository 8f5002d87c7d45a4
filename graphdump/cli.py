"""
Command line interface for graphdump.

    graphdump dump package.module:attr -o value.py
    graphdump check package.module
"""

import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import DumpConfig
from .core.encoder import Dumper
from .core.errors import DumpError, UnresolvableStaticKeyError, is_path_error
from .core.registry import Registry
from .core.static import mark
from .runtime import resolve_module_path
from .utils.logging_setup import log_operation, setup_logging

logger = logging.getLogger(__name__)
console = Console(stderr=True, soft_wrap=True, highlight=False)


def _resolve_target(target: str) -> Any:
    try:
        return resolve_module_path(target)
    except (ImportError, AttributeError) as e:
        raise click.BadParameter(f"cannot resolve {target!r}: {e}", param_hint="TARGET")


def _load_config(config_path: Optional[str]) -> DumpConfig:
    if config_path:
        return DumpConfig.load_from_file(config_path)
    return DumpConfig.find_and_load()


def _report_error(error: DumpError) -> None:
    console.print(f"[red]✗ {type(error).__name__}[/red]: {escape(error.message)}")
    if is_path_error(error):
        console.print(f"  at [bold]{escape(error.path)}[/bold]")


@click.group()
@click.version_option(__version__, prog_name="graphdump")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Write JSON-lines logs to a file")
def cli(verbose, log_file):
    """Serialize Python value graphs into programs that rebuild them."""
    setup_logging(level="DEBUG" if verbose else "WARNING", log_file=log_file)


@cli.command(name="dump")
@click.argument("target")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Write the program to a file")
@click.option("--lenient", is_flag=True, help="Replace unsupported values with None instead of failing")
@click.option("--deterministic", is_flag=True, help="Emit importable functions by reference")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Path to config file")
def dump_command(target, output, lenient, deterministic, config_path):
    """Dump the value at TARGET (module or module:attr) as a program."""
    config = _load_config(config_path)
    if lenient:
        config.strict_mode = False
    if deterministic:
        config.deterministic_resolution = True

    log_operation(logger, "dump", target=target)
    value = _resolve_target(target)

    try:
        result = Dumper(config=config).run(value)
    except DumpError as e:
        _report_error(e)
        sys.exit(1)

    for warning in result.warnings:
        console.print(f"[yellow]⚠ {escape(warning)}[/yellow]")

    if output:
        Path(output).write_text(result.program)
        console.print(f"[green]✓ Wrote {len(result.program)} characters to {escape(output)}[/green]")
    else:
        click.echo(result.program, nl=False)


@cli.command(name="check")
@click.argument("module_path")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Path to config file")
def check_command(module_path, config_path):
    """Check that MODULE_PATH can be marked static."""
    config = _load_config(config_path)
    value = _resolve_target(module_path)
    registry = Registry()

    try:
        mark(value, module_path, registry, config)
    except UnresolvableStaticKeyError as e:
        console.print(
            f"[red]✗ {len(e.key_paths)} path(s) in {escape(module_path)} hold "
            f"reference-type keys[/red]"
        )
        table = Table(title="Reference-type keys")
        table.add_column("Path", style="cyan")
        for path in e.key_paths:
            table.add_row(escape(path))
        console.print(table)
        console.print(
            "Store each key as a value in the module, register an override for it, "
            "or exempt the module with allow_reference_keys()."
        )
        sys.exit(1)

    console.print(f"[green]✓ {len(registry)} value(s) in {escape(module_path)} can be marked static[/green]")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
