"""Core business logic for clipcatalog."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from clipcatalog.config import settings
from clipcatalog.exceptions import (
    CatalogError,
    DuplicateIdError,
    MissingMetadataError,
    VerificationFailedError,
)
from clipcatalog.flat import flat_clips, flat_videos
from clipcatalog.ingestion.provider import MetadataProvider
from clipcatalog.library import LibraryIndex
from clipcatalog.storage.repository import PersistenceGateway
from clipcatalog.values import lift_video_id
from clipcatalog.video import DraftVideo, VideoAggregate

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Outcome of an apply flow."""

    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    total: int = 0


class CatalogService:
    """Core service layer, the single orchestration point for catalog operations.

    The CLI is a thin wrapper over this class. Storage and the metadata
    provider are injected via the constructor so tests can swap them.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        provider: MetadataProvider | None = None,
        music_root: Path | None = None,
        min_videos_file: Path | None = None,
        min_clips_file: Path | None = None,
    ) -> None:
        self._gateway = gateway
        self._provider = provider
        self._music_root = music_root or settings.music_root
        self._min_videos_file = min_videos_file or settings.min_videos_file
        self._min_clips_file = min_clips_file or settings.min_clips_file

    # --- Read paths ---

    def load_library(self) -> LibraryIndex:
        """Load the whole library from the music root.

        Raises:
            LibraryLayoutError: If the tree or any month file is invalid.
            CrossPartitionDuplicateError: If an id appears in several months.
        """
        return LibraryIndex.load_partitions(self._music_root, self._gateway)

    def validate_new_input(self, input_path: Path) -> list[DraftVideo]:
        """Parse and check a submission file without contacting the provider.

        Raises:
            DocumentError: If the file or any draft video is invalid.
            DuplicateIdError: If the file lists a video id twice.
        """
        drafts = self._gateway.read_draft_videos(input_path)
        _ensure_unique_ids(d.video_id for d in drafts)
        logger.info("Validated %d draft videos from %s", len(drafts), input_path)
        return drafts

    def validate_library(self) -> LibraryIndex:
        """Load the library and report problems without writing anything."""
        library = self.load_library()
        logger.info("Library is valid: %d videos", len(library))
        return library

    def check_duplicates(self, video_ids: Iterable[str]) -> list[str]:
        """Return the given ids that are already in the library, sorted.

        Raises:
            FieldValidationError: If an id is malformed.
        """
        ids = [lift_video_id(v) for v in video_ids]
        library = self.load_library()
        return sorted({v for v in ids if v in library})

    # --- Apply flows ---

    def apply_new(self, input_path: Path) -> ApplyResult:
        """Verify a submission file against fetched attributes and add it.

        Every problem across the submission is collected before raising.

        Raises:
            DocumentError: If the submission file is invalid.
            DuplicateIdError: If a submitted id is repeated or already in the library.
            MissingMetadataError: If the provider has no entry for some ids
                and every other video verified.
            VerificationFailedError: If any video fails verification; missing
                ids are reported alongside.
        """
        drafts = self.validate_new_input(input_path)
        library = self.load_library()

        existing = sorted(d.video_id for d in drafts if d.video_id in library)
        if existing:
            raise DuplicateIdError(
                existing, message=f"video id(s) already in the library: {', '.join(existing)}"
            )

        attributes = self._fetch([d.video_id for d in drafts])
        videos = _verify_all(
            drafts,
            attributes,
            lambda draft, attrs: VideoAggregate.from_draft_video(draft, attrs),
        )

        result = ApplyResult()
        for video in videos:
            library.insert(video)
            result.added.append(video.video_id)
        self._save(library)
        result.total = len(library)
        logger.info("Added %d videos, library now holds %d", len(result.added), result.total)
        return result

    def apply_sync(self) -> ApplyResult:
        """Refresh every video's attributes from the provider and re-verify its clips.

        Raises:
            MissingMetadataError: If the provider no longer knows some ids and
                every other video refreshed cleanly.
            VerificationFailedError: If any video no longer fits its new
                attributes; missing ids are reported alongside.
        """
        library = self.load_library()
        current = library.videos()
        attributes = self._fetch([v.video_id for v in current])
        refreshed = _verify_all(
            current,
            attributes,
            lambda video, attrs: video.refresh_metadata(attrs),
        )

        result = ApplyResult()
        for video in refreshed:
            previous = library.insert(video)
            if previous is not None and previous.attributes.is_same_except_synced_at(video.attributes):
                result.unchanged.append(video.video_id)
            else:
                result.updated.append(video.video_id)
        self._save(library)
        result.total = len(library)
        logger.info(
            "Synced %d videos: %d changed, %d unchanged",
            result.total, len(result.updated), len(result.unchanged),
        )
        return result

    def apply_update(self) -> ApplyResult:
        """Rewrite every partition in canonical order and regenerate the flat indexes."""
        library = self.load_library()
        self._save(library)
        return ApplyResult(unchanged=sorted(library.ids()), total=len(library))

    # --- Internals ---

    def _fetch(self, video_ids: list[str]) -> dict:
        if self._provider is None:
            raise RuntimeError("No metadata provider configured.")
        logger.info("Fetching attributes for %d videos", len(video_ids))
        return self._provider.fetch(video_ids)

    def _save(self, library: LibraryIndex) -> None:
        library.save_partitions(self._music_root, self._gateway)
        self._gateway.write_flat_videos(self._min_videos_file, flat_videos(library))
        self._gateway.write_flat_clips(self._min_clips_file, flat_clips(library))


def _ensure_unique_ids(video_ids: Iterable[str]) -> None:
    seen, duplicates = set(), []
    for video_id in video_ids:
        if video_id in seen:
            duplicates.append(video_id)
        seen.add(video_id)
    if duplicates:
        raise DuplicateIdError(duplicates)


def _verify_all(items, attributes: dict, build) -> list[VideoAggregate]:
    """Apply ``build(item, attributes[id])`` to every item, collecting all failures.

    Ids without attributes become one ``MissingMetadataError``. It is raised
    alone when nothing else failed, otherwise it joins the other failures in
    a ``VerificationFailedError``.
    """
    videos, missing, errors = [], [], []
    for item in items:
        attrs = attributes.get(item.video_id)
        if attrs is None:
            missing.append(item.video_id)
            continue
        try:
            videos.append(build(item, attrs))
        except CatalogError as e:
            errors.append(e)
    if missing:
        logger.warning("No metadata for %d video(s): %s", len(missing), ", ".join(missing))
        if not errors:
            raise MissingMetadataError(missing)
        errors.insert(0, MissingMetadataError(missing))
    if errors:
        raise VerificationFailedError(errors)
    return videos
