"""Abstract source of authoritative video attributes."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from clipcatalog.video import VideoAttributes


class MetadataProvider(ABC):
    """Fetches attributes for a set of video ids.

    The result holds one entry per requested id. An id mapped to None
    means the provider could not find that video; transport failures are
    raised as ProviderError instead.
    """

    @abstractmethod
    def fetch(self, video_ids: Iterable[str]) -> dict[str, VideoAttributes | None]:
        """Fetch attributes for ``video_ids``.

        Raises:
            ProviderError: If the provider cannot be queried.
        """


def empty_result(video_ids: Iterable[str]) -> dict[str, VideoAttributes | None]:
    """A result with every requested id marked as not found."""
    return {video_id: None for video_id in video_ids}
