"""CLI commands for ed2k link purification."""

import logging
from pathlib import Path
from typing import Optional, Tuple

import click

logger = logging.getLogger(__name__)

CONTENT_CANDIDATES = ["content", "text", "body"]

LOG_LEVEL_OPTION = click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="INFO",
    help="Logging level"
)


def _setup_logging(level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@click.group()
@click.version_option(package_name="ed2k-purifier")
def cli():
    """Extract, repair and deduplicate ed2k links from messy text."""
    pass


@cli.command("purify")
@click.argument("input_file", type=click.File("r", encoding="utf-8"), default="-")
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    help="Write valid links to this file (default: stdout)"
)
@click.option(
    "--failed-output",
    type=click.Path(path_type=Path),
    help="Write candidates that could not be repaired to this file"
)
@click.option(
    "--fix-encoding",
    is_flag=True,
    help="Repair mojibake and fullwidth characters (ftfy) before extraction"
)
@click.option(
    "--quiet", "-q",
    is_flag=True,
    help="Do not print the statistics summary"
)
@LOG_LEVEL_OPTION
def purify(
    input_file,
    output: Optional[Path],
    failed_output: Optional[Path],
    fix_encoding: bool,
    quiet: bool,
    log_level: str,
):
    """Extract ed2k links from text, repair them and drop duplicates.

    INPUT_FILE: Text file to read (default: stdin)

    Examples:
        ed2k-purifier purify forum_dump.txt -o links.txt
        pbpaste | ed2k-purifier purify --failed-output failed.txt
    """
    from .processing import process_text

    _setup_logging(log_level)

    text = input_file.read()
    if not text.strip():
        click.echo("Warning: input contains no text.", err=True)
        return

    result = process_text(text, fix_encoding=fix_encoding)
    stats = result.stats

    if output is None:
        if result.links:
            click.echo(result.output_text)
    else:
        output.write_text(
            result.output_text + "\n" if result.links else "", encoding="utf-8"
        )

    if failed_output is not None:
        failed_output.write_text(
            result.failed_text + "\n" if stats.failed_links else "", encoding="utf-8"
        )

    if quiet:
        return

    summary_to_stderr = output is None
    click.echo("\nPurification complete!", err=summary_to_stderr)
    click.echo(f"  Total candidates: {stats.total:,}", err=summary_to_stderr)
    click.echo(f"  Valid links:      {stats.valid:,}", err=summary_to_stderr)
    click.echo(f"  Repaired:         {stats.fixed:,}", err=summary_to_stderr)
    click.echo(f"  Duplicates:       {stats.duplicates:,}", err=summary_to_stderr)
    click.echo(f"  Invalid:          {stats.invalid:,}", err=summary_to_stderr)
    if output is not None:
        click.echo(f"  Output: {output}")
    if failed_output is not None:
        click.echo(f"  Failed candidates: {failed_output}", err=summary_to_stderr)


@cli.command("check")
@click.argument("links", nargs=-1, required=True)
@click.option(
    "--repair",
    is_flag=True,
    help="Repair each link before validating it"
)
def check(links: Tuple[str, ...], repair: bool):
    """Validate ed2k links against the canonical grammar.

    LINKS: One or more links. Exits with status 1 if any is invalid.

    Example:
        ed2k-purifier check --repair 'ed删2k://|file|a.mp4|1|<hash>|/'
    """
    from .repair import repair_link
    from .validation import is_valid_link

    all_valid = True
    for link in links:
        if repair:
            result = repair_link(link)
            link, is_valid = result.link, result.is_valid
        else:
            is_valid = is_valid_link(link)

        all_valid = all_valid and is_valid
        click.echo(f"{'VALID' if is_valid else 'INVALID'}\t{link}")

    if not all_valid:
        raise SystemExit(1)


@cli.command("purify-parquet")
@click.argument("parquet_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    help="Output JSONL file (default: <input>_ed2k.jsonl)"
)
@click.option(
    "--id-field",
    type=str,
    default="id",
    help="Column containing document ID (default: id)"
)
@click.option(
    "--content-field",
    type=str,
    default=None,
    help="Column containing text (auto-detected if not specified)"
)
@click.option(
    "--fix-encoding",
    is_flag=True,
    help="Repair mojibake and fullwidth characters (ftfy) before extraction"
)
@LOG_LEVEL_OPTION
def purify_parquet(
    parquet_file: Path,
    output: Optional[Path],
    id_field: str,
    content_field: Optional[str],
    fix_encoding: bool,
    log_level: str,
):
    """Purify ed2k links in every document of a parquet file.

    PARQUET_FILE: Path to parquet file with text content.

    Example:
        ed2k-purifier purify-parquet posts.parquet -o links.jsonl
    """
    import polars as pl
    from tqdm import tqdm
    from .polars_extraction import process_parquet_polars

    _setup_logging(log_level)

    if output is None:
        output = parquet_file.parent / f"{parquet_file.stem}_ed2k.jsonl"

    df_schema = pl.read_parquet_schema(parquet_file)

    if content_field is None:
        for candidate in CONTENT_CANDIDATES:
            if candidate in df_schema:
                content_field = candidate
                break

    if content_field is None or content_field not in df_schema:
        click.echo(f"Error: Could not find content column. Available: {list(df_schema.keys())}", err=True)
        raise SystemExit(1)

    if id_field not in df_schema:
        click.echo(f"Error: Could not find id column '{id_field}'. Available: {list(df_schema.keys())}", err=True)
        raise SystemExit(1)

    click.echo(f"Purifying ed2k links in {parquet_file}")
    click.echo(f"Using content column: {content_field}")
    click.echo(f"Output: {output}")

    total_rows = pl.scan_parquet(parquet_file).select(pl.len()).collect().item()

    pbar = tqdm(total=total_rows, desc="Processing", unit="docs")
    last_processed = 0

    def progress_callback(documents_processed, documents_with_links, total_valid):
        nonlocal last_processed
        pbar.update(documents_processed - last_processed)
        last_processed = documents_processed
        pbar.set_postfix({"with_links": documents_with_links, "links": total_valid})

    try:
        stats = process_parquet_polars(
            parquet_file,
            output,
            id_field=id_field,
            content_field=content_field,
            fix_encoding=fix_encoding,
            progress_callback=progress_callback,
        )
    finally:
        pbar.close()

    click.echo("\nPurification complete!")
    click.echo(f"  Total documents:  {stats['total_documents']:,}")
    click.echo(f"  With links:       {stats['documents_with_links']:,}")
    click.echo(f"  Total candidates: {stats['total']:,}")
    click.echo(f"  Valid links:      {stats['valid']:,}")
    click.echo(f"  Repaired:         {stats['fixed']:,}")
    click.echo(f"  Duplicates:       {stats['duplicates']:,}")
    click.echo(f"  Invalid:          {stats['invalid']:,}")
    click.echo(f"  Output: {output}")


if __name__ == "__main__":
    cli()
