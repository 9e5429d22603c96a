"""Whole-second time offsets within a single day."""

import re
from dataclasses import dataclass
from datetime import time, timedelta

from clipcatalog.exceptions import DurationRangeError, ParseError

SECONDS_PER_DAY = 86_400

# Longest accepted literal is "PT65535H65535M65535S"
_MAX_LITERAL_LENGTH = 32
_COMPONENT_MAX = 0xFFFF

_PATTERN = re.compile(r"PT(?:([0-9]+)H)?(?:([0-9]+)M)?(?:([0-9]+)S)?")


@dataclass(frozen=True, order=True)
class BoundedDuration:
    """A time offset in [0, 24h) with whole-second precision.

    Encoded as an ISO-8601 style ``PT<h>H<m>M<s>S`` literal. Ordering and
    equality follow the underlying number of seconds.
    """

    seconds: int

    def __post_init__(self) -> None:
        if isinstance(self.seconds, bool) or not isinstance(self.seconds, int):
            raise TypeError(f"seconds must be an int, got {type(self.seconds).__name__}")
        if not 0 <= self.seconds < SECONDS_PER_DAY:
            raise DurationRangeError(
                f"duration must be within 0..24 hours, got {self.seconds}s"
            )

    @classmethod
    def from_seconds(cls, seconds: float) -> "BoundedDuration":
        """Build from a (possibly fractional) number of seconds, truncating sub-second parts."""
        return cls(int(seconds))

    @classmethod
    def from_timedelta(cls, delta: timedelta) -> "BoundedDuration":
        """Build from a timedelta, truncating sub-second parts."""
        total = delta.days * SECONDS_PER_DAY + delta.seconds
        return cls(total)

    @classmethod
    def parse(cls, text: str) -> "BoundedDuration":
        """Parse a ``PT..H..M..S`` literal.

        Letters are upper-case only and must appear in H, M, S order. Every
        number must fit in 16 bits. ``PT`` alone is a zero duration.

        Raises:
            ParseError: If the literal is malformed or totals 24h or more.
        """
        if not isinstance(text, str):
            raise ParseError("duration", repr(text), "expected a string")
        if len(text) > _MAX_LITERAL_LENGTH:
            raise ParseError("duration", text, "literal is too long")
        match = _PATTERN.fullmatch(text)
        if match is None:
            raise ParseError("duration", text, "expected PT<h>H<m>M<s>S")

        parts = []
        for unit, raw in zip("HMS", match.groups()):
            value = int(raw) if raw is not None else 0
            if value > _COMPONENT_MAX:
                raise ParseError("duration", text, f"{unit} component exceeds {_COMPONENT_MAX}")
            parts.append(value)

        hours, minutes, seconds = parts
        total = hours * 3600 + minutes * 60 + seconds
        if total >= SECONDS_PER_DAY:
            raise ParseError("duration", text, "duration must be less than 24 hours")
        return cls(total)

    def format(self) -> str:
        """Render as ``PT..`` omitting zero components; zero renders as ``PT0S``."""
        hours, rest = divmod(self.seconds, 3600)
        minutes, seconds = divmod(rest, 60)
        if self.seconds == 0:
            return "PT0S"
        body = ""
        if hours:
            body += f"{hours}H"
        if minutes:
            body += f"{minutes}M"
        if seconds:
            body += f"{seconds}S"
        return f"PT{body}"

    def add(self, other: "BoundedDuration") -> "BoundedDuration":
        """Return the sum of two durations.

        Raises:
            DurationRangeError: If the sum reaches 24h.
        """
        total = self.seconds + other.seconds
        if total >= SECONDS_PER_DAY:
            raise DurationRangeError(f"{self} + {other} reaches 24 hours")
        return BoundedDuration(total)

    def as_time(self) -> time:
        """The time of day this offset lands on when counted from midnight."""
        hours, rest = divmod(self.seconds, 3600)
        minutes, seconds = divmod(rest, 60)
        return time(hours, minutes, seconds)

    def as_timedelta(self) -> timedelta:
        return timedelta(seconds=self.seconds)

    def __str__(self) -> str:
        return self.format()
