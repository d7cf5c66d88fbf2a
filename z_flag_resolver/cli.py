"""CLI entry point for standalone usage: z-flags.

Subcommands:
    z-flags types                      # List registered project types in priority order
    z-flags detect /path/to/dir        # Which project type owns a directory
    z-flags probe [--compiler gcc]     # Toolchain version, include paths, macros
    z-flags flags src/main.c           # Compiler flags for a source file
"""

from __future__ import annotations

import json
import sys

import click

from z_flag_resolver.core.config import Settings
from z_flag_resolver.core.logging import setup_logging
from z_flag_resolver.exceptions import LoaderContractError, UnsafeProjectError


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Z-Flag-Resolver: include paths and macros for C/C++ source files."""
    settings = Settings.from_env()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
    )
    ctx.obj = settings


@main.command("types")
def types() -> None:
    """List project types in detection order."""
    from z_flag_resolver.projects.builtin import create_default_registry

    for descriptor in create_default_registry().descriptors():
        marker = descriptor.marker_file if isinstance(descriptor.marker_file, str) else "<dynamic>"
        tier = "generic" if descriptor.is_generic else "specific"
        safe = "safe" if descriptor.is_safe else "unsafe"
        click.echo(f"  {descriptor.name:22s} {marker:16s} {tier:8s} {safe}")


@main.command("detect")
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
def detect(directory: str) -> None:
    """Detect the project type owning DIRECTORY without loading it."""
    from z_flag_resolver.projects.builtin import create_default_registry

    owner = create_default_registry().detect_owner(directory)
    if owner is None:
        click.echo(f"No project type detected in {directory}")
        sys.exit(1)
    descriptor, root = owner
    click.echo(f"Project type: {descriptor.name}")
    click.echo(f"Root: {root}")
    click.echo(f"Safe: {'yes' if descriptor.is_safe else 'no (requires a trusted directory)'}")


@main.command("probe")
@click.option("--compiler", default=None, help="Compiler to probe (default: $ZFLAGS_COMPILER or gcc)")
@click.option("--macros", "show_macros", is_flag=True, help="Print every predefined macro")
@click.pass_obj
def probe(settings: Settings, compiler: str | None, show_macros: bool) -> None:
    """Probe the toolchain for version, include paths and predefined macros."""
    from z_flag_resolver.toolchain.setup import ToolchainSetup

    if compiler:
        settings.compiler = compiler
    facts = ToolchainSetup(settings=settings).setup()
    click.echo(f"Compiler: {facts.executable}")
    click.echo(f"Version: {facts.version or '?'}")
    click.echo(f"Target: {facts.target or '?'}")
    if facts.prefix:
        click.echo(f"Prefix: {facts.prefix}")
    for language in ("c", "c++"):
        paths = facts.include_paths.get(language, [])
        click.echo(f"\n{language} include paths ({len(paths)}):")
        for path in paths:
            click.echo(f"  {path}")
    if facts.symbol_files:
        click.echo("\nSymbol files:")
        for path in facts.symbol_files:
            click.echo(f"  {path}")
    click.echo(f"\nMacros: {len(facts.macros)}")
    if show_macros:
        for name, value in facts.macros.items():
            click.echo(f"  {name} {value}".rstrip())


@main.command("flags")
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--trust", multiple=True, type=click.Path(), help="Trust a directory (repeatable)")
@click.option("--target", default=None, help="Target name inside the project")
@click.option("--file-macros", is_flag=True, help="Also probe macros from the file's #includes")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def flags(
    settings: Settings,
    source_file: str,
    trust: tuple[str, ...],
    target: str | None,
    file_macros: bool,
    as_json: bool,
) -> None:
    """Print the compiler flags a parser needs for SOURCE_FILE."""
    from z_flag_resolver.api import FlagResolver

    settings.trusted_dirs.extend(trust)
    resolver = FlagResolver(settings=settings)
    try:
        result = resolver.resolve(source_file, target=target, file_macros=file_macros)
    except UnsafeProjectError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    except LoaderContractError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "source_file": result.source_file,
                    "language": result.language,
                    "project": result.project.kind if result.project else None,
                    "project_root": result.project.root if result.project else None,
                    "args": result.args,
                    "macros": result.macros,
                },
                indent=2,
            )
        )
        return

    for arg in result.args:
        click.echo(arg)


if __name__ == "__main__":
    main()
