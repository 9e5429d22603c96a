"""Wire shapes for clipcatalog JSON documents.

These models only check field presence and primitive types. Domain
invariants are enforced when a raw shape is lifted into the types in
clips.py and video.py.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python, unknown fields rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        strict=True,
    )

    def to_wire(self) -> dict:
        """JSON-ready dict with camelCase keys and null optionals omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class RawDraftClip(WireModel):
    """A clip as submitted by a human, before it has an identifier."""

    song_title: str
    song_title_jah: str | None = None  # reading of the title
    artists: list[str]
    external_artists: list[str] | None = None
    is_clipped: bool
    start_time: str  # PT..H..M..S
    end_time: str
    tags: list[str] | None = None


class RawClip(RawDraftClip):
    """A persisted clip carrying its identifier."""

    uuid: str
    volume_percent: int | None = None


class RawDraftVideo(WireModel):
    """One video's worth of submitted clips."""

    video_id: str
    uploader_name: str | None = None
    tags: list[str] | None = None
    clips: list[RawDraftClip]


class RawVideo(WireModel):
    """A persisted video aggregate as stored in a month file."""

    video_id: str
    title: str
    channel_id: str
    uploader_name: str | None = None
    published_at: str
    synced_at: str
    duration: str
    privacy_status: str
    embeddable: bool
    tags: list[str] | None = None
    clips: list[RawClip]


class FlatClip(WireModel):
    """Entry of the flat clip index, keyed by clip uuid."""

    song_title: str
    song_title_jah: str | None = None
    artists: list[str]
    external_artists: list[str] | None = None
    is_clipped: bool
    video_id: str
    start_time_secs: int
    end_time_secs: int
    tags: list[str] | None = None
    volume_percent: int | None = None


class FlatVideo(WireModel):
    """Entry of the flat video index, keyed by video id."""

    clip_uuids: list[str] = Field(default_factory=list)
    artists: list[str] = Field(default_factory=list)
    title: str
    channel_id: str
    uploader_name: str | None = None
    published_at: str
    synced_at: str
    duration_secs: int
    privacy_status: str
    embeddable: bool
    tags: list[str] = Field(default_factory=list)
