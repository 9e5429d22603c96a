"""Abstract persistence gateway for the partitioned catalog."""

from abc import ABC, abstractmethod
from pathlib import Path

from clipcatalog.video import DraftVideo, VideoAggregate


def year_dir(root: Path, year: int) -> Path:
    """Directory holding one year's month files."""
    return root / f"{year:04d}"


def month_file(root: Path, year: int, month: int) -> Path:
    """Path of the ``MM.json`` partition for (year, month)."""
    return year_dir(root, year) / f"{month:02d}.json"


class PersistenceGateway(ABC):
    """Storage contract for the catalog's JSON documents.

    The catalog core never touches the filesystem; it hands partitions and
    projections across this boundary. Implementations decide encoding
    details such as indentation.
    """

    @abstractmethod
    def list_dir(self, directory: Path) -> list[Path]:
        """Direct children of ``directory``, sorted by name.

        Raises:
            FileNotFoundError: If ``directory`` does not exist.
            NotADirectoryError: If ``directory`` is not a directory.
        """

    @abstractmethod
    def is_dir(self, path: Path) -> bool:
        """Check whether ``path`` is an existing directory."""

    @abstractmethod
    def read_partition(self, path: Path) -> list[VideoAggregate]:
        """Read one month file into verified aggregates.

        Raises:
            DocumentError: If the file cannot be read, parsed or lifted.
                Every failing video is reported, not only the first.
        """

    @abstractmethod
    def write_partition(self, path: Path, videos: list[VideoAggregate]) -> None:
        """Write one month file. Videos are written in the order given."""

    @abstractmethod
    def read_draft_videos(self, path: Path) -> list[DraftVideo]:
        """Read a submission file of draft videos.

        Raises:
            DocumentError: If the file cannot be read, parsed or lifted.
        """

    @abstractmethod
    def write_flat_clips(self, path: Path, flat_clips: dict) -> None:
        """Write the flat clip index (minified)."""

    @abstractmethod
    def write_flat_videos(self, path: Path, flat_videos: dict) -> None:
        """Write the flat video index (minified)."""
