"""Extract, repair and deduplicate ed2k links from corrupted text."""

__version__ = "0.1.0"

from .extraction import (
    extract_candidates,
    preprocess_text,
    merge_candidate,
    Candidate,
    CANDIDATE_PATTERNS,
)

from .repair import (
    repair_link,
    RepairResult,
    decode_percent,
)

from .validation import (
    is_valid_link,
    parse_ed2k_link,
    Ed2kLink,
)

from .processing import (
    process_text,
    ProcessingResult,
    RunStatistics,
)

from .polars_extraction import (
    purify_links_df,
    process_parquet_polars,
)

__all__ = [
    # Matching
    "extract_candidates",
    "preprocess_text",
    "merge_candidate",
    "Candidate",
    "CANDIDATE_PATTERNS",
    # Repair
    "repair_link",
    "RepairResult",
    "decode_percent",
    # Validation
    "is_valid_link",
    "parse_ed2k_link",
    "Ed2kLink",
    # Processing
    "process_text",
    "ProcessingResult",
    "RunStatistics",
    # Polars batch mode
    "purify_links_df",
    "process_parquet_polars",
]
