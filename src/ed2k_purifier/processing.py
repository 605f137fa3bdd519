"""Run the extract -> repair -> validate pipeline over a block of text."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Set

import ftfy

from .extraction import extract_candidates, preprocess_text
from .repair import RepairResult, repair_link

logger = logging.getLogger(__name__)


@dataclass
class RunStatistics:
    """Counters for one processing run."""

    total: int = 0
    valid: int = 0
    invalid: int = 0
    fixed: int = 0
    duplicates: int = 0
    failed_links: List[str] = field(default_factory=list)

    def record_valid(self, result: RepairResult) -> None:
        """Record a link added to the unique set."""
        self.total += 1
        self.valid += 1
        if result.was_fixed:
            self.fixed += 1

    def record_duplicate(self) -> None:
        """Record a valid link already in the unique set."""
        self.total += 1
        self.duplicates += 1

    def record_invalid(self, candidate: str) -> None:
        """Record a candidate that could not be repaired."""
        self.total += 1
        self.invalid += 1
        self.failed_links.append(candidate)

    def is_consistent(self) -> bool:
        """Check that every candidate was counted exactly once."""
        return self.total == self.valid + self.duplicates + self.invalid

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "valid": self.valid,
            "invalid": self.invalid,
            "fixed": self.fixed,
            "duplicates": self.duplicates,
        }

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            f"Total candidates: {self.total:,}",
            f"Valid links: {self.valid:,}",
            f"Repaired: {self.fixed:,}",
            f"Duplicates: {self.duplicates:,}",
            f"Invalid: {self.invalid:,}",
        ]
        if self.failed_links:
            lines.append("Failed candidates:")
            for candidate in self.failed_links:
                lines.append(f"  {candidate}")
        return "\n".join(lines)


@dataclass
class ProcessingResult:
    """Unique valid links and statistics from one run."""

    links: List[str] = field(default_factory=list)
    stats: RunStatistics = field(default_factory=RunStatistics)

    @property
    def output_text(self) -> str:
        return "\n".join(self.links)

    @property
    def failed_text(self) -> str:
        return "\n".join(self.stats.failed_links)


def process_text(text: str, *, fix_encoding: bool = False) -> ProcessingResult:
    """Extract, repair, validate and deduplicate ed2k links in text.

    Args:
        text: Raw multi-line text.
        fix_encoding: Run the text through ftfy first to undo mojibake and
            fold fullwidth punctuation.

    Returns:
        ProcessingResult with unique valid links in first-seen order.
    """
    result = ProcessingResult()
    if not text:
        return result

    if fix_encoding:
        text = ftfy.fix_text(text)

    seen: Set[str] = set()
    stats = result.stats

    for line in preprocess_text(text).splitlines():
        line = line.strip()
        if not line:
            continue

        for candidate in extract_candidates(line):
            repaired = repair_link(candidate)

            if not repaired.is_valid:
                logger.debug(f"Irreparable candidate: {candidate}")
                stats.record_invalid(candidate)
            elif repaired.link in seen:
                stats.record_duplicate()
            else:
                seen.add(repaired.link)
                result.links.append(repaired.link)
                stats.record_valid(repaired)

    logger.debug(
        f"Processed {stats.total} candidates: {stats.valid} valid, "
        f"{stats.duplicates} duplicates, {stats.invalid} invalid"
    )
    return result
