"""Command-line interface for asmtest.

Provides commands for:
- Dumping and checking assemblies for configured revisions
- Normalizing a saved raw disassembly
- Listing architecture families and disassembler backends
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from asmtest.errors import AsmTestError

app = typer.Typer(
    name="asmtest",
    help="Golden-file tests for generated assembly",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def _fail(e: AsmTestError) -> None:
    err_console.print(f"[bold red]error:[/bold red] {e}", markup=True, highlight=False)
    raise typer.Exit(code=1)


@app.command()
def dump(
    config: str = typer.Argument(..., help="Path to YAML config file"),
    manifest_dir: str = typer.Option(".", help="Directory containing the test crate's Cargo.toml"),
    dump_dir: str = typer.Option("asm", help="Fixture directory, relative to the manifest directory"),
    revision: Optional[list[str]] = typer.Option(None, help="Only check these revisions"),
    log_level: str = typer.Option("INFO", help="Logging level"),
    log_file: Optional[str] = typer.Option(None, help="Also write logs to this file"),
    log_json: bool = typer.Option(False, "--log-json", help="Emit console logs as JSON lines"),
):
    """Build, disassemble and check every configured revision."""
    from asmtest.config import load_config
    from asmtest.utils.logging import get_logger, setup_logging

    setup_logging(
        level=log_level,
        log_file=Path(log_file) if log_file else None,
        json_output=log_json,
    )
    log = get_logger(__name__)

    try:
        cfg = load_config(config)
        log.info(f"loaded {len(cfg.revisions)} revision(s) from {config}")
        revisions = cfg.select(revision or [])
        console.print(f"Checking {len(revisions)} revision(s) from {config}")
        outcomes = cfg.tester.dump(manifest_dir, dump_dir, revisions)
    except AsmTestError as e:
        _fail(e)

    table = Table(title="Revisions")
    table.add_column("Revision")
    table.add_column("Result")
    for name, outcome in outcomes.items():
        table.add_row(name, outcome.value)
    console.print(table)


@app.command()
def normalize(
    raw: str = typer.Argument(..., help="Raw objdump/llvm-objdump output"),
    arch: str = typer.Option(..., help="target_arch of the object (e.g. x86_64)"),
    endian: str = typer.Option("little", help="Target endianness: little or big"),
    gnu: bool = typer.Option(False, "--gnu", help="Output was produced by GNU objdump"),
    output: Optional[str] = typer.Option(None, help="Output file (default: stdout)"),
):
    """Normalize a saved disassembly without building anything."""
    from asmtest.normalization import normalize_disassembly
    from asmtest.utils.types import Backend, TargetArch

    if endian not in ("little", "big"):
        err_console.print(f"[bold red]error:[/bold red] invalid endianness: {endian}")
        raise typer.Exit(code=2)

    target = TargetArch(arch, endian)
    backend = target.select_backend(prefer_gnu=gnu)
    if gnu and backend != Backend.GNU:
        err_console.print(f"[yellow]warning:[/yellow] {arch} is always disassembled with {backend.value}")

    try:
        text = normalize_disassembly(Path(raw).read_text(encoding="utf-8"), target, backend)
    except AsmTestError as e:
        _fail(e)

    if output:
        Path(output).write_text(text, encoding="utf-8")
        console.print(f"Saved normalized assembly to {output}")
    else:
        typer.echo(text, nl=False)


@app.command()
def info():
    """Show asmtest version and architecture handling."""
    from asmtest import __version__
    from asmtest.utils.types import (
        ARCH_FAMILIES,
        GNU_ONLY_ARCHES,
        LLVM_ONLY_ARCHES,
        ArchFamily,
    )

    console.print(f"asmtest v{__version__}")
    console.print()

    table = Table(title="Architecture families")
    table.add_column("Family")
    table.add_column("target_arch")
    for family in ArchFamily:
        arches = sorted(a for a, f in ARCH_FAMILIES.items() if f == family)
        if family == ArchFamily.POWERPC64_BE:
            arches = ["powerpc64 (big endian)"]
        elif family == ArchFamily.OTHER:
            arches = ["everything else"]
        table.add_row(family.value, ", ".join(arches))
    console.print(table)

    console.print(f"Always GNU objdump: {', '.join(sorted(GNU_ONLY_ARCHES))}")
    console.print(f"Always llvm-objdump: {', '.join(sorted(LLVM_ONLY_ARCHES))}")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
