"""Command-line interface for Folio.

This module defines the CLI commands using the Click framework.

Commands:
- build: Build the site into the output directory.
- new: Create a content file in a collection.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import click

from . import __version__
from .config import load_config
from .errors import ConfigError
from .frontmatter import generate_frontmatter
from .utils import slugify, strip_date_prefix


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _display_path(path: Path | None, project_root: Path) -> str:
    if path is None:
        return "-"
    try:
        return str(Path(path).resolve().relative_to(project_root.resolve()))
    except ValueError:
        return str(path)


@click.group()
@click.version_option(version=__version__, prog_name="folio")
def cli():
    """Folio static site generator."""


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option(
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (overrides build.output_dir)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log per-stage detail")
@click.option(
    "--root",
    "project_root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project root directory",
)
def build(drafts: bool, output_dir: Path | None, verbose: bool, project_root: Path):
    """Build the site into the output directory."""
    _configure_logging(verbose)
    from .build import build_site

    project_root = project_root.resolve()
    report = build_site(project_root, include_drafts=drafts, output_dir=output_dir)

    for timing in report.timings:
        click.echo(f"  {timing.name:<20} {timing.seconds * 1000:8.1f} ms")

    if not report.success:
        failure = report.failure
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  Stage: {failure.stage}", fg="yellow"), err=True)
        click.echo(
            click.style(f"  File: {_display_path(failure.source_path, project_root)}", fg="yellow"),
            err=True,
        )
        click.echo(click.style(f"  Error: {failure.message}", fg="white"), err=True)
        raise SystemExit(1)

    for notice in report.notices:
        click.echo(click.style(f"Warning: {notice}", fg="yellow"), err=True)
    click.echo(
        click.style(
            f"Built {report.pages_written} pages into {report.output_dir} "
            f"in {report.total_seconds:.2f}s",
            fg="green",
        )
    )


@cli.command()
@click.argument("collection")
@click.argument("title")
@click.option("--lang", help="Language code for a translation")
@click.option("--draft", is_flag=True, help="Mark the new file as a draft")
@click.option(
    "--root",
    "project_root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project root directory",
)
def new(collection: str, title: str, lang: str | None, draft: bool, project_root: Path):
    """Create a new content file in COLLECTION titled TITLE."""
    try:
        config = load_config(project_root)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    target = config.collection(collection)
    if target is None:
        names = ", ".join(c.name for c in config.collections)
        raise click.ClickException(f"Unknown collection '{collection}'. Available: {names}")
    if lang is not None and lang not in config.languages:
        raise click.ClickException(f"Language '{lang}' is not configured")

    slug = slugify(title)
    today = date.today()
    stem = f"{today.isoformat()}-{slug}" if target.has_date else slug
    if lang and lang != config.languages.default:
        stem = f"{stem}.{lang}"
    target_dir = project_root / config.build.content_dir / target.directory
    target_path = target_dir / f"{stem}.md"

    if target_path.exists():
        raise click.ClickException(
            f"File already exists: {_display_path(target_path, project_root)}"
        )

    # Same slug with a different date prefix
    if target.has_date and target_dir.is_dir():
        for existing in sorted(target_dir.glob("*.md")):
            if strip_date_prefix(existing.stem) == strip_date_prefix(stem):
                raise click.ClickException(
                    f"A file with slug '{slug}' already exists: {existing.name}"
                )

    header: dict = {"title": title}
    if target.has_date:
        header["date"] = today
    if draft:
        header["draft"] = True
    target_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(generate_frontmatter(header) + "\n", encoding="utf-8")
    click.echo(f"Created {_display_path(target_path, project_root)}")


def main():
    """Entry point for the CLI application."""
    cli()
