"""rootdiff CLI — inspect package and configuration file changes between transactions."""

import json
import logging

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from rootdiff import __version__
from rootdiff.errors import RootDiffError

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Log every step to stderr")
@click.option("--config", "config_path", default=None, help="Path to a YAML config file")
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: str | None):
    """rootdiff — package and configuration diffs for transactional updates.

    Compare package sets between a running system and its next image, and
    carry configuration file changes across filesystem transactions.
    """
    _configure_logging(verbose)
    ctx.obj = {"config_path": config_path}


def _load_config(ctx: click.Context):
    from rootdiff.config import load_config

    return load_config(ctx.obj.get("config_path"))


def _fail(error: RootDiffError) -> None:
    console.print(f"[red]Error:[/] {escape(str(error))}")
    raise SystemExit(1)


# ── Files ────────────────────────────────────────────────────────────


@main.command()
@click.argument("source")
@click.argument("dest")
def merge(source: str, dest: str):
    """Merge the differences between SOURCE and DEST into DEST."""
    from rootdiff.text import merge_diff

    try:
        merge_diff(source, dest)
    except RootDiffError as e:
        _fail(e)
    console.print(f"[green]Merged[/] {source} -> {dest}")


@main.command(name="diff")
@click.argument("source")
@click.argument("dest")
def diff_files(source: str, dest: str):
    """Print the unified diff from SOURCE to DEST."""
    from rootdiff.text import compute_diff

    try:
        diff_text = compute_diff(source, dest)
    except RootDiffError as e:
        _fail(e)

    if not diff_text:
        console.print("[green]Files are identical.[/]")
        return
    click.echo(diff_text.decode(errors="replace"), nl=False)


# ── Packages ─────────────────────────────────────────────────────────


@main.command()
@click.argument("old_path")
@click.argument("new_path")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
def packages(old_path: str, new_path: str, as_json: bool):
    """Diff two package version snapshots (YAML or JSON name -> version maps)."""
    from rootdiff.packages import diff_packages

    old_versions = _read_version_map(old_path)
    new_versions = _read_version_map(new_path)
    _print_result(diff_packages(old_versions, new_versions), "Package changes", as_json)


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def overlay(ctx: click.Context, as_json: bool):
    """Compare installed overlay packages against the repository."""
    from rootdiff.packages import (
        DpkgVersionResolver,
        PackageManager,
        RepositoryClient,
        overlay_package_diff,
    )

    try:
        cfg = _load_config(ctx)
        result = overlay_package_diff(
            PackageManager(cfg.packages_add_file),
            DpkgVersionResolver(),
            RepositoryClient(cfg.packages_api_url, timeout=cfg.timeout_seconds),
        )
    except RootDiffError as e:
        _fail(e)
    _print_result(result, "Overlay package changes", as_json)


@main.command()
@click.argument("old_digest")
@click.argument("new_digest")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def base(ctx: click.Context, old_digest: str, new_digest: str, as_json: bool):
    """Show base image package changes between OLD_DIGEST and NEW_DIGEST."""
    from rootdiff.packages import base_image_package_diff

    try:
        cfg = _load_config(ctx)
        result = base_image_package_diff(old_digest, new_digest, cfg.remote_service())
    except RootDiffError as e:
        _fail(e)
    _print_result(result, "Base image package changes", as_json)


def _read_version_map(path: str) -> dict[str, str]:
    # BaseLoader keeps every scalar a string, so "1.10" never becomes 1.1
    try:
        with open(path) as f:
            data = yaml.load(f, Loader=yaml.BaseLoader)
    except (OSError, yaml.YAMLError) as e:
        raise click.BadParameter(f"cannot read {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
        raise click.BadParameter(f"{path} must contain a mapping of package name to version")
    return data


def _print_result(result, title: str, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.is_empty:
        console.print("[green]No package changes.[/]")
        return

    styles = {
        "added": "green",
        "upgraded": "cyan",
        "downgraded": "yellow",
        "removed": "red",
    }
    table = Table(title=f"{title} ({result.total})")
    table.add_column("Change")
    table.add_column("Package", style="bold")
    table.add_column("Old Version", style="dim")
    table.add_column("New Version")

    for kind, entry in result:
        style = styles[kind]
        table.add_row(
            f"[{style}]{kind}[/]",
            escape(entry.name),
            escape(entry.old_version),
            escape(entry.new_version),
        )

    console.print(table)


if __name__ == "__main__":
    main()
