"""Version tokens and their ordering.

A version is the stem of a migration filename ("1", "2", "1.3", "2024_01").
Tokens are compared segment by segment so that "2" < "10" and "1.2" < "1.10";
plain string order would get both wrong.
"""

import re
from dataclasses import dataclass, field
from functools import total_ordering

# Runs of digits or runs of anything that is neither a digit nor a separator
_SEGMENT_PATTERN = re.compile(r"\d+|[^\d._\-+]+")


def _segment_key(segment: str) -> tuple[int, int, str, str]:
    # Numeric segments sort before textual ones
    if segment.isdigit():
        return (0, int(segment), "", "")
    return (1, 0, segment.lower(), segment)


@total_ordering
@dataclass(frozen=True)
class Version:
    """A comparable migration version.

    Ordering is a strict total order: tokens with equal segment keys
    ("1.0" and "1.00") fall back to comparing the raw token.

    Attributes:
        token: The raw version string; empty for the zero version
    """

    token: str
    key: tuple = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        segments = _SEGMENT_PATTERN.findall(self.token)
        object.__setattr__(self, "key", (tuple(_segment_key(s) for s in segments), self.token))

    @property
    def is_zero(self) -> bool:
        """True for the absent version."""
        return self.token == ""

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.key < other.key

    def __str__(self) -> str:
        return self.token or "0"


ZERO = Version("")


def max_version(versions) -> Version:
    """Return the greatest version, or ZERO for an empty iterable."""
    return max(versions, default=ZERO)
