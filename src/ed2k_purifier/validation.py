"""Validate repaired ed2k links against the canonical link grammar."""

import re
from dataclasses import dataclass
from typing import Optional

# ed2k://|file|<name>|<size>|<hash>|<trailing>[|][/]
ED2K_LINK_PATTERN = re.compile(
    r"ed2k://\|file\|"
    r"(?P<name>[^|]+)\|"
    r"(?P<size>[0-9]+)\|"
    r"(?P<hash>[0-9A-F]{32})\|"
    r"(?P<trailing>.*?)"
    r"\|?/?",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Ed2kLink:
    """Fields of a link that satisfies the canonical grammar."""

    name: str
    size: int
    hash: str
    trailing: str


def parse_ed2k_link(link: str) -> Optional[Ed2kLink]:
    """Parse a link into its named fields.

    Args:
        link: Candidate link, already repaired.

    Returns:
        Ed2kLink if the whole string matches the grammar, else None.
    """
    match = ED2K_LINK_PATTERN.fullmatch(link)
    if not match:
        return None
    return Ed2kLink(
        name=match.group("name"),
        size=int(match.group("size")),
        hash=match.group("hash").upper(),
        trailing=match.group("trailing"),
    )


def is_valid_link(link: str) -> bool:
    """Check whether a link satisfies the canonical ed2k grammar."""
    return parse_ed2k_link(link) is not None
