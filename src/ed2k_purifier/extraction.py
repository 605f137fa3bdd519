"""Find candidate ed2k links in free-form text."""

import re
from dataclasses import dataclass
from typing import List

PROTOCOL = "ed2k"

# Max noise characters tolerated between two letters of the protocol token
FUZZY_GAP = 20

# Start of a (possibly dirty) protocol token: e, d, 2, k with noise
# between and after the letters, then a colon
_GAP = rf"[^\s|<>:]{{0,{FUZZY_GAP}}}"
PROTOCOL_START = rf"e{_GAP}d{_GAP}2{_GAP}k{_GAP}:"

# Protocol token broken up by whitespace, e.g. "ed2\nk://"
SPLIT_PROTOCOL_PATTERN = re.compile(r"e\s*d\s*2\s*k", re.IGNORECASE)

# End-of-link marker glued to the next link: "...|/ed2k://..."
GLUED_END_MARKER_PATTERN = re.compile(
    rf"(\|/|%7C/)(?={PROTOCOL_START})", re.IGNORECASE
)

# Bare separator glued to the next link: "...|ed2k://..."
GLUED_SEPARATOR_PATTERN = re.compile(
    rf"(\||%7C)(?={PROTOCOL_START})", re.IGNORECASE
)

# Ordered from cleanest to fuzziest. Earlier patterns seed candidates that
# later ones either extend or get absorbed into.
CANDIDATE_PATTERNS = [
    # HTML tag wrapped: <a>ed2k://...</a>
    ("html", re.compile(r"<[^>]*>ed2k[^<]*</[^>]*>", re.IGNORECASE)),
    # Percent encoded: ed2k:%2F%2F%7Cfile...
    ("percent_encoded", re.compile(
        r"ed2k[^:\s<>]*:%[0-9A-F]{2}[^\s<>]*", re.IGNORECASE
    )),
    # Standard, noise allowed after the token: ed2k删除://...
    ("standard", re.compile(r"ed2k[^:\s<>]*://[^\s<>]+", re.IGNORECASE)),
    # Noise between the letters: e删d2k://...
    ("fuzzy_protocol", re.compile(
        rf"e[^\s<>]{{0,{FUZZY_GAP}}}d[^\s<>]{{0,{FUZZY_GAP}}}"
        rf"2[^\s<>]{{0,{FUZZY_GAP}}}k[^\s<>]*://[^\s<>]+",
        re.IGNORECASE,
    )),
    # Any scheme followed by the file marker: xx://  |file|...
    ("generic_protocol", re.compile(
        r"[^\s<>]*://\s*\|file\|[^\s<>]*", re.IGNORECASE
    )),
    # Protocol token directly before the marker: ed2k:|file|...
    ("marker_first", re.compile(
        r"ed2k[^\s<>]*\|file\|[^\s<>]*", re.IGNORECASE
    )),
    # No recognizable protocol at all: |file|name|size|hash|
    ("marker_only", re.compile(
        r"\|file\|[^|]+\|[0-9]+\|[0-9A-F]{32}\|[|/]*", re.IGNORECASE
    )),
]


@dataclass
class Candidate:
    """A candidate substring and the span it covers in its line."""

    start: int
    end: int
    text: str


def _join_split_protocol(match: re.Match) -> str:
    token = match.group(0)
    if "\n" in token or "\r" in token:
        return PROTOCOL
    return token


def _overlapping(candidates: List[Candidate], span: Candidate) -> List[int]:
    return [
        i for i, existing in enumerate(candidates)
        if span.start < existing.end and existing.start < span.end
    ]


def preprocess_text(text: str) -> str:
    """Undo line-level damage before the text is split into lines.

    Handles:
    - Protocol tokens broken across lines (ed2\\nk:// -> ed2k://)
    - Links glued after an end marker (...|/ed2k://..., ...|/ed删2k://... -> two lines)
    - Links glued after a bare separator (...|ed2k://... -> two lines)

    Args:
        text: Raw input text.

    Returns:
        Text with every recoverable link starting on its own line.
    """
    text = SPLIT_PROTOCOL_PATTERN.sub(_join_split_protocol, text)
    text = GLUED_END_MARKER_PATTERN.sub("\\1\n", text)
    text = GLUED_SEPARATOR_PATTERN.sub("\\1\n", text)
    return text


def merge_candidate(candidates: List[Candidate], line: str, new: Candidate) -> None:
    """Merge a match into the running candidate list, keeping the longest span.

    - A match contained in a collected candidate is dropped.
    - A match containing collected candidates replaces the first of them
      and the rest are removed.
    - A match partially overlapping collected candidates in the line is
      merged with all of them, transitively, into one union span.
    - Anything else is appended.

    Args:
        candidates: Candidates collected so far, updated in place.
        line: Line the spans refer to.
        new: Match to merge.
    """
    if any(new.text in existing.text for existing in candidates):
        return

    absorbed = [i for i, existing in enumerate(candidates) if existing.text in new.text]
    if absorbed:
        candidates[absorbed[0]] = new
        for i in reversed(absorbed[1:]):
            del candidates[i]
        return

    overlapping = _overlapping(candidates, new)
    if not overlapping:
        candidates.append(new)
        return

    # A union can reach further candidates; grow until it stops
    merged = new
    while True:
        start = min([merged.start] + [candidates[i].start for i in overlapping])
        end = max([merged.end] + [candidates[i].end for i in overlapping])
        merged = Candidate(start, end, line[start:end])
        grown = _overlapping(candidates, merged)
        if grown == overlapping:
            break
        overlapping = grown

    candidates[overlapping[0]] = merged
    for i in reversed(overlapping[1:]):
        del candidates[i]


def extract_candidates(line: str) -> List[str]:
    """Extract candidate ed2k links from a single line.

    Args:
        line: One line of input text.

    Returns:
        Candidate substrings in the order they were first seen.
    """
    candidates: List[Candidate] = []

    for _name, pattern in CANDIDATE_PATTERNS:
        for match in pattern.finditer(line):
            merge_candidate(candidates, line, Candidate(match.start(), match.end(), match.group(0)))

    return [candidate.text for candidate in candidates]
