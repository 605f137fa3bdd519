"""Polars-based batch purification of ed2k links across many documents."""

import json
import logging
from pathlib import Path
from typing import Callable, Optional, Union

import polars as pl

from .processing import process_text

logger = logging.getLogger(__name__)

COUNTER_COLUMNS = ["total", "valid", "invalid", "fixed", "duplicates"]


def purify_links_df(
    df: pl.DataFrame,
    id_col: str = "id",
    content_col: str = "content",
    fix_encoding: bool = False,
) -> pl.DataFrame:
    """Purify ed2k links in every document of a DataFrame.

    Args:
        df: Input DataFrame with id and content columns.
        id_col: Column containing document IDs.
        content_col: Column containing raw text.
        fix_encoding: Run each document through ftfy before extraction.

    Returns:
        DataFrame with columns: id, links, failed_links and the run
        counters (one row per input document, input order kept).
    """
    rows = {
        "id": [],
        "links": [],
        "failed_links": [],
        **{name: [] for name in COUNTER_COLUMNS},
    }

    for doc_id, content in zip(df[id_col].to_list(), df[content_col].to_list()):
        result = process_text(content or "", fix_encoding=fix_encoding)
        rows["id"].append(doc_id)
        rows["links"].append(result.links)
        rows["failed_links"].append(result.stats.failed_links)
        for name, value in result.stats.to_dict().items():
            rows[name].append(value)

    schema = {
        "id": df.schema[id_col],
        "links": pl.List(pl.Utf8),
        "failed_links": pl.List(pl.Utf8),
        **{name: pl.Int64 for name in COUNTER_COLUMNS},
    }
    return pl.DataFrame(rows, schema=schema)


def process_parquet_polars(
    parquet_path: Union[str, Path],
    output_path: Union[str, Path],
    id_field: str = "id",
    content_field: str = "content",
    fix_encoding: bool = False,
    progress_callback: Optional[Callable[[int, int, int], None]] = None,
) -> dict:
    """Purify ed2k links in a parquet file and write JSONL results.

    Args:
        parquet_path: Path to input parquet file.
        output_path: Path to output JSONL file.
        id_field: Column containing document IDs.
        content_field: Column containing raw text.
        fix_encoding: Run each document through ftfy before extraction.
        progress_callback: Optional callback(documents_processed,
            documents_with_links, total_valid).

    Returns:
        Stats dict with total_documents, documents_with_links and summed
        run counters.
    """
    parquet_path = Path(parquet_path)
    output_path = Path(output_path)

    stats = {
        "total_documents": 0,
        "documents_with_links": 0,
        **{name: 0 for name in COUNTER_COLUMNS},
    }

    df = pl.read_parquet(parquet_path, columns=[id_field, content_field])
    logger.info(f"Loaded {len(df):,} documents from {parquet_path}")

    result = purify_links_df(
        df, id_col=id_field, content_col=content_field, fix_encoding=fix_encoding
    )

    with open(output_path, "w", encoding="utf-8") as f:
        for row in result.iter_rows(named=True):
            stats["total_documents"] += 1
            for name in COUNTER_COLUMNS:
                stats[name] += row[name]

            if row["links"]:
                stats["documents_with_links"] += 1

            if row["links"] or row["failed_links"]:
                record = {
                    "id": row["id"],
                    "links": row["links"],
                    "failed_links": row["failed_links"],
                    "stats": {name: row[name] for name in COUNTER_COLUMNS},
                }
                f.write(json.dumps(record, ensure_ascii=False) + "\n")

            if progress_callback:
                progress_callback(
                    stats["total_documents"], stats["documents_with_links"], stats["valid"]
                )

    return stats
