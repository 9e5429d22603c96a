"""Registry of known internal artists and performer-reference validation."""

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from clipcatalog.exceptions import ArtistReferenceError, FieldValidationError

logger = logging.getLogger(__name__)


class ArtistRegistry:
    """The set of internal artist ids a catalog accepts.

    Passed explicitly to every validation step that checks performer
    references, so different catalogs (and tests) can use different sets.
    """

    def __init__(self, artist_ids: Iterable[str]) -> None:
        ids = frozenset(artist_ids)
        if any(not isinstance(i, str) or not i for i in ids):
            raise FieldValidationError("artists", "artist ids must be non-empty strings")
        self._ids = ids

    @classmethod
    def from_file(cls, path: Path) -> "ArtistRegistry":
        """Load a registry from JSON.

        The file holds either a list of ids or an object keyed by id
        (per-artist details are ignored here).
        """
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except UnicodeDecodeError as e:
            raise FieldValidationError("artists", f"{path} is not valid UTF-8: {e}") from e
        except json.JSONDecodeError as e:
            raise FieldValidationError("artists", f"{path} is not valid JSON: {e}") from e
        if isinstance(data, dict):
            ids = data.keys()
        elif isinstance(data, list):
            ids = data
        else:
            raise FieldValidationError(
                "artists", f"{path} must contain a JSON list or object, got {type(data).__name__}"
            )
        registry = cls(ids)
        logger.info("Loaded %d artist ids from %s", len(registry), path)
        return registry

    @property
    def ids(self) -> frozenset[str]:
        return self._ids

    def __contains__(self, artist_id: object) -> bool:
        return artist_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"ArtistRegistry({len(self._ids)} ids)"

    def lift_internal(self, artist_ids: list[str]) -> tuple[str, ...]:
        """Validate internal performer references.

        Returns the ids de-duplicated and sorted.

        Raises:
            ArtistReferenceError: If the list is empty or names an unknown id.
        """
        if not artist_ids:
            raise ArtistReferenceError("internal artists must not be empty", [])
        unknown = sorted({a for a in artist_ids if a not in self._ids})
        if unknown:
            raise ArtistReferenceError(
                f"unknown internal artist id(s): {', '.join(unknown)}", unknown
            )
        return tuple(sorted(set(artist_ids)))

    def lift_external(self, artist_ids: list[str] | None) -> tuple[str, ...] | None:
        """Validate external performer references, which must NOT be registered.

        ``None`` means the clip has no external performers.

        Raises:
            ArtistReferenceError: If the list is empty, holds an empty id, or
                names an id that belongs to the registry.
        """
        if artist_ids is None:
            return None
        if not artist_ids:
            raise ArtistReferenceError("external artists must be omitted or non-empty", [])
        if any(not a for a in artist_ids):
            raise ArtistReferenceError("external artist ids must not be empty", [])
        internal = sorted({a for a in artist_ids if a in self._ids})
        if internal:
            raise ArtistReferenceError(
                f"registered artist id(s) listed as external: {', '.join(internal)}", internal
            )
        return tuple(sorted(set(artist_ids)))
