from pathlib import Path
from typing import List, Optional

import typer

from .config import Settings
from .db import open_imgdb
from .errors import BlobWriteError, ConfigError, DuplicateError, SourceExistsError, ValidationError
from .logging import get_logger

app = typer.Typer(help="imgdb – near-duplicate image index", no_args_is_help=True)

_defaults = Settings()


@app.command()
def add(
    images: List[Path] = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Image files to ingest"),
    db: str = typer.Option(_defaults.database_url, "--db", help="Database URL or SQLite file path"),
    out: Path = typer.Option(_defaults.blob_dir, "--out", "-o", help="Directory the image files are copied to"),
    min_width: int = typer.Option(_defaults.min_width, help="Minimum image width in pixels"),
    min_height: int = typer.Option(_defaults.min_height, help="Minimum image height in pixels"),
    threshold: float = typer.Option(_defaults.duplicate_threshold, help="Chi-squared distance below which images are duplicates"),
    source: Optional[str] = typer.Option(None, help="Link to record as the origin of every stored image"),
) -> None:
    """
    Ingest image files, skipping near-duplicates of images already stored.

    Each file is stored under its stem; a random suffix is appended when the
    name is already taken.
    """
    logger = get_logger(__name__)

    try:
        settings = Settings(
            blob_dir=out,
            database_url=db,
            min_width=min_width,
            min_height=min_height,
            duplicate_threshold=threshold,
        )
    except ConfigError as exc:
        logger.error(f"Invalid settings: {exc}")
        raise typer.Exit(code=2) from exc

    stored = duplicates = failed = 0
    with open_imgdb(settings.database_url, settings.blob_dir, settings) as imgdb:
        for path in images:
            try:
                record = imgdb.add_image(path.stem, path.read_bytes())
            except DuplicateError as exc:
                duplicates += 1
                typer.echo(f"duplicate  {path} (existing {exc.existing_name})")
                continue
            except ValidationError as exc:
                failed += 1
                typer.echo(f"rejected   {path} ({exc.reason})")
                continue
            except BlobWriteError as exc:
                failed += 1
                typer.echo(f"failed     {path} (record {exc.record.name} has no file)")
                continue

            stored += 1
            typer.echo(f"stored     {path} as {record.filename}")
            if source:
                try:
                    imgdb.add_source(record, source)
                except SourceExistsError:
                    logger.info(f"Source {source} already linked, not adding it to {record.name}")

    typer.echo(f"\n{stored} stored, {duplicates} duplicates, {failed} failed")
    if failed:
        raise typer.Exit(code=1)


@app.command("has-source")
def has_source(
    link: str = typer.Argument(..., help="Link to look up"),
    db: str = typer.Option(_defaults.database_url, "--db", help="Database URL or SQLite file path"),
    out: Path = typer.Option(_defaults.blob_dir, "--out", "-o", help="Image directory"),
) -> None:
    """Report whether a source link is attached to any stored image."""
    with open_imgdb(db, out) as imgdb:
        found = imgdb.source_exists(link)
    typer.echo("yes" if found else "no")
    if not found:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
