"""Time-ordered 128-bit identifiers in the UUID version 7 layout (RFC 9562)."""

import re
import secrets
from functools import total_ordering
from datetime import datetime, timedelta, timezone

from clipcatalog.exceptions import ParseError, TimestampRangeError

TIMESTAMP_LIMIT_MS = 1 << 48
RAND_A_BITS = 12
RAND_B_BITS = 62

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_PATTERN = re.compile(
    r"([0-9a-fA-F]{8})-([0-9a-fA-F]{4})-([0-9a-fA-F]{4})-([0-9a-fA-F]{4})-([0-9a-fA-F]{12})"
)


def to_timestamp_ms(moment: datetime) -> int:
    """Milliseconds since the Unix epoch for an aware UTC instant.

    Raises:
        TimestampRangeError: If the instant is naive, before the epoch, or
            does not fit in 48 unsigned bits.
    """
    if moment.tzinfo is None:
        raise TimestampRangeError(f"timestamp must be timezone-aware: {moment!r}")
    delta = moment - _EPOCH
    ms = (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000
    if not 0 <= ms < TIMESTAMP_LIMIT_MS:
        raise TimestampRangeError(
            f"timestamp must be between 0 and 2^48-1 milliseconds, got {ms} ({moment.isoformat()})"
        )
    return ms


@total_ordering
class TemporalId:
    """A UUIDv7: 48-bit big-endian millisecond timestamp, version 7, variant 0b10.

    Instances are immutable, hashable and ordered by their bytes, which
    orders them by embedded timestamp first.
    """

    __slots__ = ("_bytes",)

    def __init__(self, raw: bytes):
        raw = bytes(raw)
        if len(raw) != 16:
            raise ValueError(f"TemporalId needs 16 bytes, got {len(raw)}")
        if raw[6] >> 4 != 0x7:
            raise ValueError(f"version nibble must be 7, got {raw[6] >> 4}")
        if raw[8] >> 6 != 0b10:
            raise ValueError(f"variant bits must be 0b10, got {raw[8] >> 6:#04b}")
        object.__setattr__(self, "_bytes", raw)

    def __setattr__(self, name, value):
        raise AttributeError("TemporalId is immutable")

    @classmethod
    def generate(cls, moment: datetime) -> "TemporalId":
        """Create an id for ``moment`` with random non-timestamp bits.

        Raises:
            TimestampRangeError: If ``moment`` cannot be encoded in 48 bits.
        """
        return cls.generate_deterministic(
            moment,
            secrets.randbits(RAND_A_BITS),
            secrets.randbits(RAND_B_BITS),
        )

    @classmethod
    def generate_deterministic(cls, moment: datetime, rand_a: int, rand_b: int) -> "TemporalId":
        """Create an id for ``moment`` with caller-supplied randomness.

        Args:
            moment: Aware instant to embed, truncated to milliseconds.
            rand_a: 12 random bits.
            rand_b: 62 random bits.

        Raises:
            TimestampRangeError: If ``moment`` cannot be encoded in 48 bits.
            ValueError: If the random parts do not fit their bit widths.
        """
        if not 0 <= rand_a < (1 << RAND_A_BITS):
            raise ValueError(f"rand_a must fit in {RAND_A_BITS} bits")
        if not 0 <= rand_b < (1 << RAND_B_BITS):
            raise ValueError(f"rand_b must fit in {RAND_B_BITS} bits")

        ms = to_timestamp_ms(moment)
        raw = bytearray(ms.to_bytes(6, "big"))
        raw.append(0x70 | (rand_a >> 8) & 0x0F)
        raw.append(rand_a & 0xFF)
        raw.append(0x80 | (rand_b >> 56) & 0x3F)
        raw.extend((rand_b & ((1 << 56) - 1)).to_bytes(7, "big"))
        return cls(bytes(raw))

    @classmethod
    def parse(cls, text: str) -> "TemporalId":
        """Parse the canonical 36-character grouped-hex form, case-insensitive.

        Raises:
            ParseError: On wrong length, non-hex characters, or a version or
                variant that is not UUIDv7.
        """
        if not isinstance(text, str):
            raise ParseError("uuid", repr(text), "expected a string")
        if len(text) != 36:
            raise ParseError("uuid", text, f"expected 36 characters, got {len(text)}")
        if _PATTERN.fullmatch(text) is None:
            raise ParseError("uuid", text, "expected xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx")
        raw = bytes.fromhex(text.replace("-", ""))
        if raw[6] >> 4 != 0x7:
            raise ParseError("uuid", text, "version nibble is not 7")
        if raw[8] >> 6 != 0b10:
            raise ParseError("uuid", text, "variant bits are not 0b10")
        return cls(raw)

    def as_bytes(self) -> bytes:
        return self._bytes

    @property
    def timestamp_ms(self) -> int:
        return int.from_bytes(self._bytes[:6], "big")

    def embedded_timestamp(self) -> datetime:
        """The embedded instant as an aware UTC datetime (millisecond precision).

        Raises:
            TimestampRangeError: If the instant lies past year 9999, which
                ``datetime`` cannot represent.
        """
        try:
            return _EPOCH + timedelta(milliseconds=self.timestamp_ms)
        except OverflowError as e:
            raise TimestampRangeError(
                f"embedded timestamp {self.timestamp_ms} ms is past the representable range ({self.format()})"
            ) from e

    def format(self) -> str:
        h = self._bytes.hex()
        return f"{h[0:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:32]}"

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"TemporalId('{self.format()}')"

    def __eq__(self, other) -> bool:
        if not isinstance(other, TemporalId):
            return NotImplemented
        return self._bytes == other._bytes

    def __lt__(self, other: "TemporalId") -> bool:
        if not isinstance(other, TemporalId):
            return NotImplemented
        return self._bytes < other._bytes

    def __hash__(self) -> int:
        return hash(self._bytes)
