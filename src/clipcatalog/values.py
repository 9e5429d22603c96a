"""Validated scalar values shared by clips and videos."""

import re
from datetime import datetime, timezone
from enum import Enum

from clipcatalog.exceptions import FieldValidationError, ParseError
from clipcatalog.temporal_id import to_timestamp_ms

_VIDEO_ID = re.compile(r"[A-Za-z0-9_-]{11}")
_CHANNEL_ID = re.compile(r"UC[A-Za-z0-9_-]{22}")


class PrivacyStatus(str, Enum):
    """Visibility of a video on the hosting site."""

    PUBLIC = "public"
    UNLISTED = "unlisted"
    PRIVATE = "private"


def lift_video_id(value: str) -> str:
    """Validate an 11-character video id."""
    if not isinstance(value, str) or _VIDEO_ID.fullmatch(value) is None:
        raise FieldValidationError(
            "videoId", f"{value!r} must be 11 characters of [A-Za-z0-9_-]"
        )
    return value


def lift_channel_id(value: str) -> str:
    """Validate a channel id: ``UC`` followed by 22 characters of [A-Za-z0-9_-]."""
    if not isinstance(value, str) or _CHANNEL_ID.fullmatch(value) is None:
        raise FieldValidationError(
            "channelId", f"{value!r} must be 'UC' followed by 22 characters of [A-Za-z0-9_-]"
        )
    return value


def lift_privacy_status(value: str) -> PrivacyStatus:
    try:
        return PrivacyStatus(value)
    except ValueError:
        raise FieldValidationError(
            "privacyStatus", f"{value!r} must be one of public, unlisted, private"
        ) from None


def lift_tags(values: list[str] | None, field: str = "tags") -> tuple[str, ...]:
    """Validate a tag list. ``None`` reads as empty; the result is sorted."""
    if values is None:
        return ()
    empty = [i for i, tag in enumerate(values) if not tag]
    if empty:
        raise FieldValidationError(field, f"tags must not be empty strings (index {empty})")
    return tuple(sorted(values))


def lift_optional_tags(values: list[str] | None, field: str = "tags") -> tuple[str, ...] | None:
    """Like lift_tags, but keeps ``None`` distinct from an empty list."""
    if values is None:
        return None
    return lift_tags(values, field)


def lift_uploader_name(value: str | None) -> str | None:
    if value is not None and not value:
        raise FieldValidationError("uploaderName", "must not be an empty string")
    return value


def lift_volume_percent(value: int | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 100:
        raise FieldValidationError("volumePercent", f"{value!r} must be an integer in 1..=100")
    return value


def normalize_instant(moment: datetime) -> datetime:
    """Convert to UTC, drop sub-second precision and check the 48-bit millisecond range.

    Raises:
        TimestampRangeError: If the instant is naive or outside the encodable range.
    """
    to_timestamp_ms(moment)
    return moment.astimezone(timezone.utc).replace(microsecond=0)


def parse_instant(text: str, field: str = "publishedAt") -> datetime:
    """Parse an RFC 3339 timestamp into a normalized UTC instant."""
    if not isinstance(text, str):
        raise ParseError(field, repr(text), "expected an RFC 3339 string")
    candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        moment = datetime.fromisoformat(candidate)
    except ValueError as e:
        raise ParseError(field, text, str(e)) from e
    if moment.tzinfo is None:
        raise ParseError(field, text, "timestamp must carry a UTC offset")
    return normalize_instant(moment)


def format_instant(moment: datetime) -> str:
    """Render as ``YYYY-MM-DDTHH:MM:SSZ``."""
    utc = moment.astimezone(timezone.utc).replace(tzinfo=None, microsecond=0)
    return utc.isoformat(timespec="seconds") + "Z"
