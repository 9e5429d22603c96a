"""JSON-file implementation of the persistence gateway."""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ValidationError

from clipcatalog.artists import ArtistRegistry
from clipcatalog.exceptions import CatalogError, DocumentError
from clipcatalog.models import RawDraftVideo, RawVideo
from clipcatalog.storage.repository import PersistenceGateway
from clipcatalog.video import DraftVideo, VideoAggregate

logger = logging.getLogger(__name__)


class JsonFileGateway(PersistenceGateway):
    """Filesystem-backed storage of month files, submissions and flat indexes.

    Month files are pretty-printed with a trailing newline so they diff
    well under version control; flat indexes are minified. Reads parse each
    document into wire shapes first, then lift them with ``registry``.
    """

    def __init__(self, registry: ArtistRegistry) -> None:
        """Initialize the gateway.

        Args:
            registry: Known internal artists, used when lifting clips.
        """
        self._registry = registry

    def list_dir(self, directory: Path) -> list[Path]:
        return sorted(Path(directory).iterdir(), key=lambda p: p.name)

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def read_partition(self, path: Path) -> list[VideoAggregate]:
        """Read one month file into verified aggregates, reporting every bad video."""
        items = self._load_list(path)
        return self._lift_all(path, items, RawVideo, VideoAggregate.from_raw)

    def write_partition(self, path: Path, videos: list[VideoAggregate]) -> None:
        payload = [v.to_raw().to_wire() for v in videos]
        self._write(path, json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
        logger.debug("Wrote %d videos to %s", len(videos), path)

    def read_draft_videos(self, path: Path) -> list[DraftVideo]:
        """Read a submission file, reporting every bad video."""
        items = self._load_list(path)
        return self._lift_all(path, items, RawDraftVideo, DraftVideo.from_raw)

    def write_flat_clips(self, path: Path, flat_clips: dict) -> None:
        self._write(path, json.dumps(flat_clips, ensure_ascii=False, separators=(",", ":")))
        logger.info("Wrote %d clips to %s", len(flat_clips), path)

    def write_flat_videos(self, path: Path, flat_videos: dict) -> None:
        self._write(path, json.dumps(flat_videos, ensure_ascii=False, separators=(",", ":")))
        logger.info("Wrote %d videos to %s", len(flat_videos), path)

    # --- Internals ---

    def _load_list(self, path: Path) -> list:
        """Read a JSON document whose top level must be a list."""
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise DocumentError(path, [f"failed to open file: {e}"]) from e
        except UnicodeDecodeError as e:
            raise DocumentError(path, [f"not valid UTF-8: {e}"]) from e
        except json.JSONDecodeError as e:
            raise DocumentError(path, [f"invalid JSON: {e}"]) from e
        if not isinstance(data, list):
            raise DocumentError(path, [f"top level must be a list, got {type(data).__name__}"])
        return data

    def _lift_all(self, path: Path, items: list, raw_type: type[BaseModel], lift) -> list:
        """Parse each item into ``raw_type`` and lift it, collecting all failures."""
        results, reasons, errors = [], [], []
        for i, item in enumerate(items):
            try:
                raw = raw_type.model_validate(item)
            except ValidationError as e:
                reasons.append(f"[{i}] {_describe(item)}: {e}")
                continue
            try:
                results.append(lift(raw, self._registry))
            except CatalogError as e:
                reasons.append(f"[{i}] {_describe(item)}: {e}")
                errors.append(e)
        if reasons:
            raise DocumentError(path, reasons, errors)
        return results

    @staticmethod
    def _write(path: Path, text: str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


def _describe(item) -> str:
    if isinstance(item, dict) and isinstance(item.get("videoId"), str):
        return item["videoId"]
    return "<unknown video>"
