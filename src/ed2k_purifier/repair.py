"""Repair corrupted ed2k link candidates toward the canonical form."""

import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote

from .extraction import FUZZY_GAP
from .validation import is_valid_link

logger = logging.getLogger(__name__)

CANONICAL_PREFIX = "ed2k://"
FILE_MARKER = "|file|"

HTML_TAG_PATTERN = re.compile(r"<[^>]*>")

# A '%' that does not start a two-digit hex escape
MALFORMED_ESCAPE_PATTERN = re.compile(r"%(?![0-9A-Fa-f]{2})")

# CJK ideographs (incl. ext. A/B), CJK compatibility, fullwidth/halfwidth forms, whitespace
NOISE_PATTERN = re.compile(
    "[\u3400-\u4DBF\u4E00-\u9FFF\uF900-\uFAFF\uFF00-\uFFEF\U00020000-\U0002A6DF\\s]"
)

# Protocol token polluted with noise, followed by "://", ":/", ":" or
# directly by the first '|'
DIRTY_PROTOCOL_PATTERN = re.compile(
    rf"\s*e[^:|]{{0,{FUZZY_GAP}}}?d[^:|]{{0,{FUZZY_GAP}}}?2[^:|]{{0,{FUZZY_GAP}}}?k"
    r"[^:|]*?(?::/+|:(?=\|)|(?=\|))",
    re.IGNORECASE,
)

LEADING_SCHEME_PATTERN = re.compile(r"^[^|]*?://+")

WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass(frozen=True)
class RepairResult:
    """Outcome of repairing a single candidate."""

    link: str
    is_valid: bool
    was_fixed: bool


def strip_html_tags(link: str) -> str:
    """Remove any <...> markup."""
    return HTML_TAG_PATTERN.sub("", link)


def decode_percent(link: str) -> Optional[str]:
    """Percent-decode a link.

    Args:
        link: Text possibly containing %XX escapes.

    Returns:
        Decoded text, or None if the escapes are malformed or the decoded
        bytes are not UTF-8.
    """
    if MALFORMED_ESCAPE_PATTERN.search(link):
        logger.debug(f"Malformed percent escape, keeping original: {link}")
        return None
    try:
        return unquote(link, errors="strict")
    except UnicodeDecodeError:
        logger.debug(f"Percent escapes are not UTF-8, keeping original: {link}")
        return None


def _decode_pass(link: str) -> str:
    if "%" not in link:
        return link
    decoded = decode_percent(link)
    return link if decoded is None else decoded


def strip_noise(segment: str) -> str:
    """Remove CJK, fullwidth and whitespace noise characters."""
    return NOISE_PATTERN.sub("", segment)


def clean_protocol_prefix(link: str) -> str:
    """Repair a protocol prefix polluted by noise characters.

    A dirty prefix (e删d2k://, ed2k删除://, ed2k:/, ed2k|...) is replaced
    wholesale by the canonical prefix when the file marker is present.
    Without the marker, noise is stripped from the part before the first
    '|'. A clean prefix only has noise stripped between '://' and the
    first '|'.

    Args:
        link: Candidate link.

    Returns:
        Link with a cleaned protocol prefix.
    """
    if DIRTY_PROTOCOL_PATTERN.match(link):
        marker = link.find(FILE_MARKER)
        if marker != -1:
            return CANONICAL_PREFIX + link[marker:]
        pipe = link.find("|")
        if pipe != -1:
            return strip_noise(link[:pipe]) + link[pipe:]
        return link

    separator = link.find("://")
    if separator == -1:
        return link
    start = separator + 3
    pipe = link.find("|", start)
    end = pipe if pipe != -1 else len(link)
    return link[:start] + strip_noise(link[start:end]) + link[end:]


def normalize_protocol(link: str) -> str:
    """Force the canonical ed2k:// prefix onto a link."""
    if link.startswith(CANONICAL_PREFIX):
        return link
    if link.startswith(FILE_MARKER):
        return CANONICAL_PREFIX + link
    return LEADING_SCHEME_PATTERN.sub(CANONICAL_PREFIX, link, count=1)


def strip_prefix_whitespace(link: str) -> str:
    """Remove whitespace before the first '|'."""
    pipe = link.find("|")
    if pipe == -1:
        return link
    prefix = link[:pipe]
    if not WHITESPACE_PATTERN.search(prefix):
        return link
    return WHITESPACE_PATTERN.sub("", prefix) + link[pipe:]


def ensure_trailing_slash(link: str) -> str:
    """Terminate file links with '/'."""
    if FILE_MARKER in link and not link.endswith("/"):
        return link + "/"
    return link


REPAIR_PASSES = [
    strip_html_tags,
    _decode_pass,
    clean_protocol_prefix,
    normalize_protocol,
    strip_prefix_whitespace,
    ensure_trailing_slash,
    str.strip,
]


def repair_link(candidate: str) -> RepairResult:
    """Repair a raw candidate and validate the result.

    Applies the repair passes in order:
    - HTML tag removal
    - Percent decoding (skipped when malformed)
    - Protocol prefix noise cleanup
    - Protocol normalization to ed2k://
    - Whitespace removal before the first '|'
    - Trailing slash
    - Whitespace trim

    The sequence repeats until a round leaves the link unchanged, so text
    uncovered by decoding gets the same treatment and repairing a repaired
    link is a no-op.

    Args:
        candidate: Raw candidate as found in the source text.

    Returns:
        RepairResult with the best repaired link, its validity, and whether
        any pass changed it.
    """
    link = candidate
    was_fixed = False

    # Decoding and tag stripping only shorten the link; the prefix and slash
    # passes settle after one change
    while True:
        round_start = link
        for repair_pass in REPAIR_PASSES:
            repaired = repair_pass(link)
            if repaired != link:
                was_fixed = True
                link = repaired
        if link == round_start:
            break

    return RepairResult(
        link=link,
        is_valid=is_valid_link(link),
        was_fixed=was_fixed or link != candidate,
    )
