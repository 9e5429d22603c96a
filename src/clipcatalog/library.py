"""The catalog: video aggregates partitioned by publish (year, month)."""

import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

from clipcatalog.exceptions import (
    CatalogError,
    CrossPartitionDuplicateError,
    DuplicateIdError,
    LayoutProblem,
    LibraryLayoutError,
    PartitionMismatchError,
)
from clipcatalog.storage.repository import PersistenceGateway, month_file
from clipcatalog.video import VideoAggregate

logger = logging.getLogger(__name__)

PartitionKey = tuple[int, int]

MONTH_FILE_NAMES = tuple(f"{m:02d}.json" for m in range(1, 13))
_YEAR_DIR = re.compile(r"[0-9]{4}")


def _sort_key(video: VideoAggregate):
    return (video.published_at, video.video_id)


class VideoIndex:
    """A set of aggregates with unique video ids, keyed by id.

    Used for one partition's contents as well as for ad-hoc batches.
    """

    def __init__(self, videos: Iterable[VideoAggregate] = ()) -> None:
        self._videos: dict[str, VideoAggregate] = {}
        duplicates = []
        for video in videos:
            if video.video_id in self._videos:
                duplicates.append(video.video_id)
            self._videos[video.video_id] = video
        if duplicates:
            raise DuplicateIdError(duplicates)

    def push(self, video: VideoAggregate) -> VideoAggregate | None:
        """Insert or replace by id. Returns the replaced aggregate, if any."""
        previous = self._videos.get(video.video_id)
        self._videos[video.video_id] = video
        return previous

    def pop(self, video_id: str) -> VideoAggregate | None:
        return self._videos.pop(video_id, None)

    def get(self, video_id: str) -> VideoAggregate | None:
        return self._videos.get(video_id)

    def ids(self) -> set[str]:
        return set(self._videos)

    def __contains__(self, video_id: object) -> bool:
        return video_id in self._videos

    def __len__(self) -> int:
        return len(self._videos)

    def __iter__(self) -> Iterator[VideoAggregate]:
        return iter(self._videos.values())

    def __bool__(self) -> bool:
        return bool(self._videos)

    def sorted_videos(self) -> list[VideoAggregate]:
        """Videos ordered by publish instant, then id."""
        return sorted(self._videos.values(), key=_sort_key)

    def ensure_same_year_month(self) -> PartitionKey | None:
        """Return the common (year, month) of all videos, or None when empty.

        Raises:
            PartitionMismatchError: If the videos span more than one month.
        """
        keys = {(v.year, v.month) for v in self._videos.values()}
        if not keys:
            return None
        if len(keys) > 1:
            raise PartitionMismatchError(
                f"videos span several months: {sorted(keys)}"
            )
        return keys.pop()

    def ensure_placed_in(self, year: int, month: int) -> None:
        """Check every video was published in (year, month).

        Raises:
            PartitionMismatchError: Naming every misplaced video.
        """
        misplaced = sorted(
            v.video_id for v in self._videos.values() if (v.year, v.month) != (year, month)
        )
        if misplaced:
            raise PartitionMismatchError(
                f"video(s) {', '.join(misplaced)} do not belong to {year:04d}-{month:02d}",
                expected=(year, month),
            )


class LibraryIndex:
    """All video aggregates, unique by id and partitioned by publish (year, month).

    Partitions exist exactly while they hold at least one video.
    """

    def __init__(self) -> None:
        self._locations: dict[str, PartitionKey] = {}
        self._partitions: dict[PartitionKey, VideoIndex] = {}

    # --- Mutation ---

    def insert(self, video: VideoAggregate) -> VideoAggregate | None:
        """Upsert by video id, placing the video under its publish (year, month).

        Returns:
            The aggregate previously stored under this id, or None.
        """
        previous = self.remove(video.video_id)
        key = (video.year, video.month)
        self._partitions.setdefault(key, VideoIndex()).push(video)
        self._locations[video.video_id] = key
        return previous

    def remove(self, video_id: str) -> VideoAggregate | None:
        key = self._locations.pop(video_id, None)
        if key is None:
            return None
        partition = self._partitions[key]
        removed = partition.pop(video_id)
        if not partition:
            del self._partitions[key]
        return removed

    # --- Queries ---

    def get(self, video_id: str) -> VideoAggregate | None:
        key = self._locations.get(video_id)
        return self._partitions[key].get(video_id) if key is not None else None

    def __contains__(self, video_id: object) -> bool:
        return video_id in self._locations

    def __len__(self) -> int:
        return len(self._locations)

    def ids(self) -> set[str]:
        return set(self._locations)

    def partition_keys(self) -> list[PartitionKey]:
        return sorted(self._partitions)

    def partition(self, year: int, month: int) -> VideoIndex:
        """The videos of one month (a copy; empty if none)."""
        return VideoIndex(self._partitions.get((year, month), ()))

    def partitions(self) -> dict[PartitionKey, VideoIndex]:
        return {key: self.partition(*key) for key in self.partition_keys()}

    def years(self) -> list[int]:
        return sorted({year for year, _ in self._partitions})

    def videos(self) -> list[VideoAggregate]:
        """All videos ordered by publish instant, then id."""
        return sorted(
            (v for p in self._partitions.values() for v in p), key=_sort_key
        )

    # --- Combination ---

    @classmethod
    def merge(cls, *indexes: VideoIndex) -> "LibraryIndex":
        """Combine separately loaded video indexes into one library.

        Each index is internally unique; only the merged view can see an id
        repeated across indexes. Because videos are separated by publish
        month, such a repeat means an earlier step is broken.

        Raises:
            CrossPartitionDuplicateError: Naming every repeated id.
        """
        library = cls()
        duplicates = []
        for index in indexes:
            for video in index:
                if library.insert(video) is not None:
                    duplicates.append(video.video_id)
        if duplicates:
            logger.error(
                "Duplicate video id(s) across partitions: %s. A video's publish date "
                "is wrong in one of the files, or the library was edited by hand.",
                ", ".join(sorted(set(duplicates))),
            )
            raise CrossPartitionDuplicateError(duplicates)
        return library

    @classmethod
    def from_partitions(cls, partitions: dict[PartitionKey, VideoIndex]) -> "LibraryIndex":
        """Build from per-month indexes, checking placement then global uniqueness.

        Raises:
            PartitionMismatchError: Naming every partition that holds a video
                from another (year, month).
            CrossPartitionDuplicateError: If an id appears in several partitions.
        """
        mismatches = []
        for (year, month), index in sorted(partitions.items()):
            try:
                index.ensure_placed_in(year, month)
            except PartitionMismatchError as e:
                mismatches.append(e)
        if len(mismatches) == 1:
            raise mismatches[0]
        if mismatches:
            raise PartitionMismatchError("; ".join(str(e) for e in mismatches))
        return cls.merge(*partitions.values())

    # --- Persistence ---

    @classmethod
    def load_partitions(cls, root: Path, gateway: PersistenceGateway) -> "LibraryIndex":
        """Load the whole library tree under ``root``.

        Expects one ``YYYY`` directory per year, each holding exactly the
        twelve files ``01.json`` .. ``12.json``. Every structural and content
        problem in the tree is collected before anything is raised.

        Raises:
            LibraryLayoutError: Listing every problem found.
            CrossPartitionDuplicateError: If an id appears in several months.
        """
        problems: list[LayoutProblem] = []
        if not gateway.is_dir(root):
            raise LibraryLayoutError([LayoutProblem(root, "music root is not a directory")])

        partitions: dict[PartitionKey, VideoIndex] = {}
        for entry in gateway.list_dir(root):
            if entry.name.startswith("."):
                continue
            if not _YEAR_DIR.fullmatch(entry.name):
                problems.append(LayoutProblem(entry, "unexpected entry, expected a YYYY directory"))
                continue
            if not gateway.is_dir(entry):
                problems.append(LayoutProblem(entry, "year entry is not a directory"))
                continue
            year = int(entry.name)
            months = {e.name: e for e in gateway.list_dir(entry)}
            problems.extend(_check_month_files(entry, months, gateway))

            for month, name in enumerate(MONTH_FILE_NAMES, start=1):
                path = months.get(name)
                if path is None or gateway.is_dir(path):
                    continue
                try:
                    index = VideoIndex(gateway.read_partition(path))
                    index.ensure_placed_in(year, month)
                except PartitionMismatchError as e:
                    problems.append(LayoutProblem(path, "video placed in the wrong month file", e))
                except CatalogError as e:
                    problems.append(LayoutProblem(path, "invalid month file", e))
                else:
                    partitions[(year, month)] = index

        if problems:
            raise LibraryLayoutError(problems)
        library = cls.merge(*partitions.values())
        logger.info(
            "Loaded %d videos in %d partitions from %s", len(library), len(library._partitions), root
        )
        return library

    def save_partitions(self, root: Path, gateway: PersistenceGateway) -> None:
        """Write every month file of every year that holds videos or already exists.

        Each touched year gets all twelve month files, so the tree stays
        loadable. Videos are written in publish order.
        """
        years = set(self.years())
        if gateway.is_dir(root):
            years.update(
                int(entry.name) for entry in gateway.list_dir(root)
                if _YEAR_DIR.fullmatch(entry.name) and gateway.is_dir(entry)
            )
        for year in sorted(years):
            for month in range(1, 13):
                videos = self._partitions.get((year, month), VideoIndex()).sorted_videos()
                gateway.write_partition(month_file(root, year, month), videos)
        logger.info("Wrote %d videos across %d year(s) to %s", len(self), len(years), root)


def _check_month_files(
    directory: Path, entries: dict[str, Path], gateway: PersistenceGateway
) -> list[LayoutProblem]:
    """Problems with the set of entries inside one year directory."""
    problems = []
    for name in MONTH_FILE_NAMES:
        entry = entries.get(name)
        if entry is None:
            problems.append(LayoutProblem(directory / name, f"missing month file {name}"))
        elif gateway.is_dir(entry):
            problems.append(LayoutProblem(entry, "month entry is a directory"))
    for name, entry in sorted(entries.items()):
        if name not in MONTH_FILE_NAMES:
            problems.append(LayoutProblem(entry, "unexpected entry in year directory"))
    return problems
