"""Clip tiers: Draft -> Identified -> Verified.

Each tier wraps the same ``ClipContent`` payload and adds what that stage
establishes. Constructors run the checks of their tier, so holding an
instance means its invariants hold.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from clipcatalog.artists import ArtistRegistry
from clipcatalog.duration import BoundedDuration
from clipcatalog.exceptions import (
    FieldValidationError,
    InvalidTimeRangeError,
    RangeExceededError,
    UuidDateMismatchError,
    UuidTimeMismatchError,
)
from clipcatalog.models import RawClip, RawDraftClip
from clipcatalog.temporal_id import TemporalId
from clipcatalog.values import lift_optional_tags, lift_volume_percent


@dataclass(frozen=True)
class ClipContent:
    """Fields every clip tier carries."""

    song_title: str
    artists: tuple[str, ...]
    is_clipped: bool
    start: BoundedDuration
    end: BoundedDuration
    song_title_jah: str | None = None
    external_artists: tuple[str, ...] | None = None
    tags: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if not self.song_title:
            raise FieldValidationError("songTitle", "must not be empty")
        if self.start >= self.end:
            raise InvalidTimeRangeError(self.start, self.end)

    @classmethod
    def from_raw(cls, raw: RawDraftClip, registry: ArtistRegistry) -> "ClipContent":
        """Lift the shared clip fields out of a wire shape.

        Raises:
            ParseError: If a time literal is malformed.
            ArtistReferenceError: If performer references disagree with ``registry``.
            FieldValidationError: If a tag is empty.
            InvalidTimeRangeError: If start is not before end.
        """
        return cls(
            song_title=raw.song_title,
            song_title_jah=raw.song_title_jah,
            artists=registry.lift_internal(raw.artists),
            external_artists=registry.lift_external(raw.external_artists),
            is_clipped=raw.is_clipped,
            start=BoundedDuration.parse(raw.start_time),
            end=BoundedDuration.parse(raw.end_time),
            tags=lift_optional_tags(raw.tags),
        )

    def wire_fields(self) -> dict:
        return {
            "song_title": self.song_title,
            "song_title_jah": self.song_title_jah,
            "artists": list(self.artists),
            "external_artists": list(self.external_artists) if self.external_artists is not None else None,
            "is_clipped": self.is_clipped,
            "start_time": self.start.format(),
            "end_time": self.end.format(),
            "tags": list(self.tags) if self.tags is not None else None,
        }


def anchor_instant(published_at: datetime, start: BoundedDuration) -> datetime:
    """Midnight (UTC) of the publish date plus ``start``."""
    day = published_at.astimezone(timezone.utc).date()
    midnight = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return midnight + start.as_timedelta()


@dataclass(frozen=True)
class DraftClip:
    """A freeform clip submission whose only guarantee is start < end."""

    content: ClipContent

    @classmethod
    def from_raw(cls, raw: RawDraftClip, registry: ArtistRegistry) -> "DraftClip":
        return cls(ClipContent.from_raw(raw, registry))

    @property
    def start(self) -> BoundedDuration:
        return self.content.start

    @property
    def end(self) -> BoundedDuration:
        return self.content.end

    @property
    def song_title(self) -> str:
        return self.content.song_title

    def identify(
        self,
        published_at: datetime,
        *,
        randomness: tuple[int, int] | None = None,
    ) -> "IdentifiedClip":
        """Assign a TemporalId anchored on the video's publish date.

        The time of day of ``published_at`` is discarded and ``start`` is
        added to midnight, so the id embeds ``<publish date>T<start>Z``.

        Args:
            published_at: The parent video's publish instant.
            randomness: Optional (12-bit, 62-bit) pair for reproducible ids.

        Raises:
            TimestampRangeError: If the publish date is outside the 48-bit range.
        """
        instant = anchor_instant(published_at, self.start)
        if randomness is None:
            uuid = TemporalId.generate(instant)
        else:
            uuid = TemporalId.generate_deterministic(instant, *randomness)
        return IdentifiedClip(content=self.content, uuid=uuid)

    def to_raw(self) -> RawDraftClip:
        return RawDraftClip(**self.content.wire_fields())


@dataclass(frozen=True)
class IdentifiedClip:
    """A clip with its TemporalId; the id's time of day equals ``start``."""

    content: ClipContent
    uuid: TemporalId
    volume_percent: int | None = None

    def __post_init__(self) -> None:
        uuid_time = self.uuid.embedded_timestamp().time()
        if uuid_time != self.start.as_time():
            raise UuidTimeMismatchError(uuid_time, self.start)
        lift_volume_percent(self.volume_percent)

    @classmethod
    def from_raw(cls, raw: RawClip, registry: ArtistRegistry) -> "IdentifiedClip":
        """Lift a persisted clip.

        Raises:
            CatalogError: Any field or consistency failure of this tier.
        """
        content = ClipContent.from_raw(raw, registry)
        return cls(
            content=content,
            uuid=TemporalId.parse(raw.uuid),
            volume_percent=lift_volume_percent(raw.volume_percent),
        )

    @property
    def start(self) -> BoundedDuration:
        return self.content.start

    @property
    def end(self) -> BoundedDuration:
        return self.content.end

    @property
    def song_title(self) -> str:
        return self.content.song_title

    def verify(self, published_at: datetime, video_duration: BoundedDuration) -> "VerifiedClip":
        """Check this clip against a video's publish date and duration.

        Pure; may be called again with different attributes.

        Raises:
            UuidDateMismatchError: If the id's date is not the publish date.
            RangeExceededError: If start or end is at or past the video's end.
        """
        return VerifiedClip(self, published_at, video_duration)

    def to_raw(self) -> RawClip:
        return RawClip(
            **self.content.wire_fields(),
            uuid=self.uuid.format(),
            volume_percent=self.volume_percent,
        )


@dataclass(frozen=True)
class VerifiedClip:
    """An identified clip that fits the video it belongs to.

    Constructing one requires the video's publish instant and duration;
    the constructor performs the checks.
    """

    identified: IdentifiedClip
    published_at: datetime
    video_duration: BoundedDuration

    def __post_init__(self) -> None:
        clip = self.identified
        # Re-run the lower tiers so the check order stays stable for callers
        if clip.start >= clip.end:
            raise InvalidTimeRangeError(clip.start, clip.end)
        embedded = clip.uuid.embedded_timestamp()
        if embedded.time() != clip.start.as_time():
            raise UuidTimeMismatchError(embedded.time(), clip.start)

        video_date = self.published_at.astimezone(timezone.utc).date()
        if embedded.date() != video_date:
            raise UuidDateMismatchError(embedded.date(), video_date)

        if clip.start >= self.video_duration or clip.end >= self.video_duration:
            raise RangeExceededError(clip.start, clip.end, self.video_duration)

    def downgrade(self) -> IdentifiedClip:
        """Drop the video context, keeping the identifier, for re-verification."""
        return self.identified

    @property
    def content(self) -> ClipContent:
        return self.identified.content

    @property
    def uuid(self) -> TemporalId:
        return self.identified.uuid

    @property
    def volume_percent(self) -> int | None:
        return self.identified.volume_percent

    @property
    def start(self) -> BoundedDuration:
        return self.identified.start

    @property
    def end(self) -> BoundedDuration:
        return self.identified.end

    @property
    def song_title(self) -> str:
        return self.identified.song_title

    def overlaps(self, later: "VerifiedClip") -> bool:
        """True if this clip runs past the start of ``later``. end == start is not an overlap."""
        return self.end > later.start

    def to_raw(self) -> RawClip:
        return self.identified.to_raw()
