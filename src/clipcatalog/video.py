"""Video attributes, draft submissions and the verified video aggregate."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime

from clipcatalog.artists import ArtistRegistry
from clipcatalog.clips import DraftClip, IdentifiedClip, VerifiedClip
from clipcatalog.duration import BoundedDuration
from clipcatalog.exceptions import (
    CatalogError,
    ClipsOverlapError,
    ConsistencyError,
    InvalidClipsError,
    NoClipsError,
    VideoIdMismatchError,
)
from clipcatalog.models import RawDraftVideo, RawVideo
from clipcatalog.values import (
    PrivacyStatus,
    format_instant,
    lift_channel_id,
    lift_privacy_status,
    lift_tags,
    lift_uploader_name,
    lift_video_id,
    normalize_instant,
    parse_instant,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VideoAttributes:
    """Authoritative attributes of a video, as reported by a metadata provider."""

    video_id: str
    title: str
    channel_id: str
    published_at: datetime
    synced_at: datetime  # when these attributes were fetched
    duration: BoundedDuration
    privacy_status: PrivacyStatus
    embeddable: bool

    def __post_init__(self) -> None:
        lift_video_id(self.video_id)
        lift_channel_id(self.channel_id)
        object.__setattr__(self, "published_at", normalize_instant(self.published_at))
        object.__setattr__(self, "synced_at", normalize_instant(self.synced_at))
        object.__setattr__(self, "privacy_status", PrivacyStatus(self.privacy_status))

    @property
    def year(self) -> int:
        return self.published_at.year

    @property
    def month(self) -> int:
        return self.published_at.month

    def is_same_except_synced_at(self, other: "VideoAttributes") -> bool:
        """True if only the volatile ``synced_at`` field differs."""
        return replace(other, synced_at=self.synced_at) == self


@dataclass(frozen=True)
class DraftVideo:
    """A submitted video id with its draft clips and local fields."""

    video_id: str
    clips: tuple[DraftClip, ...]
    uploader_name: str | None = None
    tags: tuple[str, ...] = ()

    @classmethod
    def from_raw(cls, raw: RawDraftVideo, registry: ArtistRegistry) -> "DraftVideo":
        """Lift a submitted video, collecting every invalid clip.

        Raises:
            FieldValidationError: If the video id, uploader name or tags are invalid.
            InvalidClipsError: If one or more clips fail to lift.
        """
        video_id = lift_video_id(raw.video_id)
        clips, errors = [], []
        for raw_clip in raw.clips:
            try:
                clips.append(DraftClip.from_raw(raw_clip, registry))
            except CatalogError as e:
                errors.append(e)
        if errors:
            raise InvalidClipsError(video_id, errors)
        return cls(
            video_id=video_id,
            clips=tuple(clips),
            uploader_name=lift_uploader_name(raw.uploader_name),
            tags=lift_tags(raw.tags),
        )


def _overlapping_titles(sorted_clips: Sequence[VerifiedClip]) -> list[str]:
    """Titles of every clip whose range intersects an earlier one (input sorted by start)."""
    titles: list[str] = []
    reach: VerifiedClip | None = None  # clip with the furthest end seen so far
    for clip in sorted_clips:
        if reach is not None and reach.overlaps(clip):
            for title in (reach.song_title, clip.song_title):
                if title not in titles:
                    titles.append(title)
        if reach is None or clip.end > reach.end:
            reach = clip
    return titles


@dataclass(frozen=True)
class VideoAggregate:
    """A video's attributes plus its non-empty, non-overlapping verified clips.

    ``clips`` keeps insertion order; ``sorted_clips`` orders by start time and
    is what every serialization path uses.
    """

    attributes: VideoAttributes
    clips: tuple[VerifiedClip, ...]
    uploader_name: str | None = None
    tags: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        if not self.clips:
            raise NoClipsError(self.video_id)
        for clip in self.clips:
            if (clip.published_at != self.attributes.published_at
                    or clip.video_duration != self.attributes.duration):
                raise ConsistencyError(
                    f"clip {clip.uuid} of video {self.video_id} was verified against other attributes"
                )
        titles = _overlapping_titles(self.sorted_clips)
        if titles:
            raise ClipsOverlapError(self.video_id, titles)

    # --- Construction ---

    @classmethod
    def from_identified_clips(
        cls,
        attributes: VideoAttributes,
        clips: Iterable[IdentifiedClip],
        *,
        uploader_name: str | None = None,
        tags: Sequence[str] = (),
    ) -> "VideoAggregate":
        """Verify every clip against ``attributes`` and build the aggregate.

        Raises:
            InvalidClipsError: With every clip that failed, not only the first.
            NoClipsError: If there are no clips.
            ClipsOverlapError: If verified clips overlap in time.
        """
        verified, errors = [], []
        for clip in clips:
            try:
                verified.append(clip.verify(attributes.published_at, attributes.duration))
            except CatalogError as e:
                errors.append(e)
        if errors:
            raise InvalidClipsError(attributes.video_id, errors)
        return cls(
            attributes=attributes,
            clips=tuple(verified),
            uploader_name=uploader_name,
            tags=tuple(tags),
        )

    @classmethod
    def from_draft_clips(
        cls,
        attributes: VideoAttributes,
        drafts: Iterable[DraftClip],
        *,
        uploader_name: str | None = None,
        tags: Sequence[str] = (),
    ) -> "VideoAggregate":
        """Identify each draft against the publish date, then verify and build.

        Raises:
            InvalidClipsError: With every clip that failed, not only the first.
            NoClipsError: If there are no clips.
            ClipsOverlapError: If verified clips overlap in time.
        """
        identified, errors = [], []
        for draft in drafts:
            try:
                identified.append(draft.identify(attributes.published_at))
            except CatalogError as e:
                errors.append(e)
        if errors:
            raise InvalidClipsError(attributes.video_id, errors)
        return cls.from_identified_clips(
            attributes, identified, uploader_name=uploader_name, tags=tags
        )

    @classmethod
    def from_draft_video(cls, draft: DraftVideo, attributes: VideoAttributes) -> "VideoAggregate":
        """Build from a submission and the attributes fetched for it.

        Raises:
            VideoIdMismatchError: If the submission and attributes name different videos.
        """
        if draft.video_id != attributes.video_id:
            raise VideoIdMismatchError(draft.video_id, attributes.video_id)
        return cls.from_draft_clips(
            attributes, draft.clips, uploader_name=draft.uploader_name, tags=draft.tags
        )

    @classmethod
    def from_raw(cls, raw: RawVideo, registry: ArtistRegistry) -> "VideoAggregate":
        """Lift a persisted aggregate, collecting every invalid clip."""
        attributes = VideoAttributes(
            video_id=lift_video_id(raw.video_id),
            title=raw.title,
            channel_id=lift_channel_id(raw.channel_id),
            published_at=parse_instant(raw.published_at, "publishedAt"),
            synced_at=parse_instant(raw.synced_at, "syncedAt"),
            duration=BoundedDuration.parse(raw.duration),
            privacy_status=lift_privacy_status(raw.privacy_status),
            embeddable=raw.embeddable,
        )
        identified, errors = [], []
        for raw_clip in raw.clips:
            try:
                identified.append(IdentifiedClip.from_raw(raw_clip, registry))
            except CatalogError as e:
                errors.append(e)
        if errors:
            raise InvalidClipsError(attributes.video_id, errors)
        return cls.from_identified_clips(
            attributes,
            identified,
            uploader_name=lift_uploader_name(raw.uploader_name),
            tags=lift_tags(raw.tags),
        )

    # --- Refresh ---

    def refresh_metadata(self, new_attributes: VideoAttributes) -> "VideoAggregate":
        """Swap in freshly fetched attributes.

        If only ``synced_at`` changed, clips are kept as they are. Otherwise
        every clip is re-verified against the new publish date and duration;
        any rejection fails the whole call and leaves ``self`` untouched.

        Raises:
            VideoIdMismatchError: If ``new_attributes`` is for another video.
            InvalidClipsError: If any clip no longer fits the new attributes.
        """
        if new_attributes.video_id != self.video_id:
            raise VideoIdMismatchError(self.video_id, new_attributes.video_id)
        if self.attributes.is_same_except_synced_at(new_attributes):
            return VideoAggregate(
                attributes=new_attributes,
                clips=self.clips,
                uploader_name=self.uploader_name,
                tags=self.tags,
            )
        logger.info("Attributes of %s changed, re-verifying %d clips", self.video_id, len(self.clips))
        return VideoAggregate.from_identified_clips(
            new_attributes,
            [c.downgrade() for c in self.clips],
            uploader_name=self.uploader_name,
            tags=self.tags,
        )

    # --- Accessors ---

    @property
    def video_id(self) -> str:
        return self.attributes.video_id

    @property
    def published_at(self) -> datetime:
        return self.attributes.published_at

    @property
    def year(self) -> int:
        return self.attributes.year

    @property
    def month(self) -> int:
        return self.attributes.month

    @property
    def duration(self) -> BoundedDuration:
        return self.attributes.duration

    @property
    def sorted_clips(self) -> tuple[VerifiedClip, ...]:
        return tuple(sorted(self.clips, key=lambda c: (c.start, c.uuid)))

    @property
    def artists(self) -> tuple[str, ...]:
        """Sorted union of internal artists over all clips."""
        return tuple(sorted({a for c in self.clips for a in c.content.artists}))

    def to_raw(self) -> RawVideo:
        a = self.attributes
        return RawVideo(
            video_id=a.video_id,
            title=a.title,
            channel_id=a.channel_id,
            uploader_name=self.uploader_name,
            published_at=format_instant(a.published_at),
            synced_at=format_instant(a.synced_at),
            duration=a.duration.format(),
            privacy_status=a.privacy_status.value,
            embeddable=a.embeddable,
            tags=list(self.tags),
            clips=[c.to_raw() for c in self.sorted_clips],
        )
