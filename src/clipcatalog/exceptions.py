"""Exception hierarchy for clipcatalog."""

from collections.abc import Sequence
from typing import Any


class CatalogError(Exception):
    """Base exception for all clipcatalog errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# --- Value parsing ---


class ParseError(CatalogError, ValueError):
    """Raised when a textual duration, id or timestamp is malformed."""

    def __init__(self, kind: str, literal: str, reason: str):
        self.kind = kind
        self.literal = literal
        self.reason = reason
        super().__init__(
            f"invalid {kind} {literal!r}: {reason}",
            details={"kind": kind, "literal": literal},
        )


class DurationRangeError(CatalogError, ValueError):
    """Raised when a duration falls outside [0, 24h)."""


class TimestampRangeError(CatalogError, ValueError):
    """Raised when an instant cannot be encoded as a 48-bit millisecond timestamp."""


class FieldValidationError(CatalogError, ValueError):
    """Raised when a lifted field violates its domain constraint."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}", details={"field": field})


class ArtistReferenceError(CatalogError, ValueError):
    """Raised when performer references disagree with the artist registry."""

    def __init__(self, message: str, artist_ids: Sequence[str]):
        self.artist_ids = list(artist_ids)
        super().__init__(message, details={"artist_ids": self.artist_ids})


# --- Clip verification ---


class ClipError(CatalogError):
    """Base class for errors raised while building a single clip."""


class InvalidTimeRangeError(ClipError):
    """Raised when a clip's start is not strictly before its end."""

    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(
            f"invalid clip time range: start({start}) must be less than end({end})"
        )


class IdentityMismatchError(ClipError):
    """Raised when a record and the video it is paired with do not correspond."""


class UuidTimeMismatchError(IdentityMismatchError):
    """The identifier's time-of-day differs from the clip start."""

    def __init__(self, uuid_time, start):
        self.uuid_time = uuid_time
        self.start = start
        super().__init__(f"uuid time({uuid_time}) does not match start time({start})")


class UuidDateMismatchError(IdentityMismatchError):
    """The identifier's calendar date differs from the video's publish date."""

    def __init__(self, uuid_date, video_date):
        self.uuid_date = uuid_date
        self.video_date = video_date
        super().__init__(
            f"uuid date({uuid_date}) does not match video published date({video_date})"
        )


class PartitionMismatchError(IdentityMismatchError):
    """A video is stored under a (year, month) that differs from its publish date."""

    def __init__(self, message: str, expected: tuple[int, int] | None = None,
                 actual: tuple[int, int] | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message, details={"expected": expected, "actual": actual})


class RangeExceededError(ClipError):
    """Raised when a clip reaches or passes the end of its video."""

    def __init__(self, start, end, video_duration):
        self.start = start
        self.end = end
        self.video_duration = video_duration
        super().__init__(
            f"clip range {start}..{end} exceeds video duration({video_duration})"
        )


# --- Video aggregate ---


class VideoError(CatalogError):
    """Base class for errors raised while building a video aggregate."""


class NoClipsError(VideoError):
    """Raised when a video aggregate would hold no clips."""

    def __init__(self, video_id: str):
        self.video_id = video_id
        super().__init__(f"video {video_id} has no clips")


class ClipsOverlapError(VideoError):
    """Raised when clips of one video claim overlapping time ranges."""

    def __init__(self, video_id: str, titles: Sequence[str]):
        self.video_id = video_id
        self.titles = list(titles)
        super().__init__(
            f"clips overlap in video {video_id}: {', '.join(self.titles)}",
            details={"video_id": video_id, "titles": self.titles},
        )


class InvalidClipsError(VideoError):
    """Raised with every clip failure collected from one video."""

    def __init__(self, video_id: str, errors: Sequence[CatalogError]):
        self.video_id = video_id
        self.errors = list(errors)
        lines = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(
            f"{len(self.errors)} invalid clip(s) in video {video_id}:\n{lines}",
            details={"video_id": video_id},
        )


class VideoIdMismatchError(VideoError):
    """Raised when submitted clips and fetched attributes name different videos."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"video id mismatch: expected {expected}, got {actual}")


# --- Collections and library ---


class DuplicateIdError(CatalogError):
    """Raised when a video id appears more than once."""

    def __init__(self, ids: Sequence[str], message: str | None = None):
        self.ids = sorted(set(ids))
        super().__init__(
            message or f"duplicated video id(s): {', '.join(self.ids)}",
            details={"ids": self.ids},
        )


class ConsistencyError(CatalogError):
    """An internal invariant was broken. This indicates a bug, not bad input."""


class CrossPartitionDuplicateError(ConsistencyError, DuplicateIdError):
    """A video id was found in more than one (year, month) partition."""

    def __init__(self, ids: Sequence[str]):
        DuplicateIdError.__init__(
            self,
            ids,
            message=f"video id(s) found in more than one partition: {', '.join(sorted(set(ids)))}",
        )


class DocumentError(CatalogError):
    """Raised when a JSON document cannot be read, parsed or lifted."""

    def __init__(self, path, reasons: Sequence[str], errors: Sequence[CatalogError] = ()):
        self.path = path
        self.reasons = list(reasons)
        self.errors = list(errors)
        lines = "\n".join(f"  - {r}" for r in self.reasons)
        super().__init__(f"invalid document {path}:\n{lines}", details={"path": str(path)})


class LayoutProblem:
    """One structural problem found while scanning a library root.

    ``error`` carries the underlying exception when the problem came from
    reading or checking a month file.
    """

    def __init__(self, path, reason: str, error: CatalogError | None = None):
        self.path = path
        self.reason = reason
        self.error = error

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"

    def __repr__(self) -> str:
        return f"LayoutProblem({str(self.path)!r}, {self.reason!r})"


class LibraryLayoutError(CatalogError):
    """Raised with every structural problem found under a library root."""

    def __init__(self, problems: Sequence[LayoutProblem]):
        self.problems = list(problems)
        lines = "\n".join(f"  - {p}" for p in self.problems)
        super().__init__(f"{len(self.problems)} problem(s) in music library:\n{lines}")

    @property
    def errors(self) -> list[CatalogError]:
        """Underlying exceptions of the problems that have one."""
        return [p.error for p in self.problems if p.error is not None]


class MissingMetadataError(CatalogError):
    """Raised when the metadata provider has no entry for some video ids."""

    def __init__(self, ids: Sequence[str]):
        self.ids = sorted(ids)
        super().__init__(
            f"no metadata found for video id(s): {', '.join(self.ids)}",
            details={"ids": self.ids},
        )


class VerificationFailedError(CatalogError):
    """Raised with every per-video failure collected during an apply flow."""

    def __init__(self, errors: Sequence[CatalogError]):
        self.errors = list(errors)
        lines = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} video(s) failed verification:\n{lines}")


# --- Metadata provider ---


class ProviderError(CatalogError):
    """Base class for metadata provider failures."""


class ForbiddenError(ProviderError):
    """The provider rejected the credentials or the quota is exhausted."""


class NetworkError(ProviderError):
    """The provider could not be reached."""


class ResponseParseError(ProviderError):
    """The provider answered with a payload that could not be read."""


class ApiError(ProviderError):
    """The provider answered with an unexpected status."""

    def __init__(self, status: int, message: str):
        self.status = status
        super().__init__(f"other api error: {status} {message}", details={"status": status})
