"""Video attributes via yt-dlp, for catalogs without an API key."""

import logging
import re
from collections.abc import Iterable
from datetime import datetime, timezone

import yt_dlp

from clipcatalog.duration import BoundedDuration
from clipcatalog.exceptions import CatalogError, NetworkError, ProviderError, ResponseParseError
from clipcatalog.ingestion.provider import MetadataProvider, empty_result
from clipcatalog.values import PrivacyStatus
from clipcatalog.video import VideoAttributes

logger = logging.getLogger(__name__)


class YtDlpMetadataProvider(MetadataProvider):
    """Fetches attributes one video at a time through yt-dlp.

    All yt-dlp interaction is encapsulated here. Videos yt-dlp reports as
    unavailable map to None; other extraction failures raise ProviderError.
    """

    _WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

    # Messages yt-dlp uses for videos that exist no longer or are not visible
    _UNAVAILABLE_PATTERNS = [
        re.compile(r"video unavailable", re.IGNORECASE),
        re.compile(r"private video", re.IGNORECASE),
        re.compile(r"has been removed", re.IGNORECASE),
        re.compile(r"not available", re.IGNORECASE),
    ]

    _AVAILABILITY = {
        "public": PrivacyStatus.PUBLIC,
        "unlisted": PrivacyStatus.UNLISTED,
        "private": PrivacyStatus.PRIVATE,
        "needs_auth": PrivacyStatus.PRIVATE,
        "subscriber_only": PrivacyStatus.PRIVATE,
        "premium_only": PrivacyStatus.PRIVATE,
    }

    def fetch(self, video_ids: Iterable[str]) -> dict[str, VideoAttributes | None]:
        """Fetch attributes for ``video_ids``; unavailable videos map to None.

        Raises:
            ProviderError: If yt-dlp fails for a reason other than availability.
        """
        result = empty_result(video_ids)
        ydl_opts = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
        }
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            for video_id in result:
                info = self._fetch_info(ydl, video_id)
                if info is not None:
                    result[video_id] = self.to_attributes(info)
        found = sum(1 for v in result.values() if v is not None)
        logger.info("yt-dlp fetch completed: %d/%d videos found", found, len(result))
        return result

    def _fetch_info(self, ydl, video_id: str) -> dict | None:
        """Fetch the info dict of one video without downloading media."""
        url = self._WATCH_URL.format(video_id=video_id)
        try:
            info = ydl.extract_info(url, download=False)
        except yt_dlp.utils.DownloadError as e:
            if any(p.search(str(e)) for p in self._UNAVAILABLE_PATTERNS):
                logger.warning("Video unavailable: %s", video_id)
                return None
            raise NetworkError(f"Failed to extract video info for {video_id}: {e}") from e
        if info is None:
            logger.warning("yt-dlp returned no info for: %s", video_id)
        return info

    def to_attributes(self, info: dict) -> VideoAttributes:
        """Map a yt-dlp info dict onto VideoAttributes.

        Raises:
            ResponseParseError: If a required field is missing or out of range.
        """
        video_id = info.get("id", "<unknown>")
        try:
            timestamp = info.get("timestamp") or info.get("release_timestamp")
            if timestamp is None:
                raise ResponseParseError(f"no publish timestamp for {video_id}")
            duration = info.get("duration")
            if duration is None:
                raise ResponseParseError(f"no duration for {video_id}")
            availability = info.get("availability") or "public"
            privacy = self._AVAILABILITY.get(availability)
            if privacy is None:
                raise ResponseParseError(f"unknown availability {availability!r} for {video_id}")
            return VideoAttributes(
                video_id=video_id,
                title=info.get("title", ""),
                channel_id=info.get("channel_id", ""),
                published_at=datetime.fromtimestamp(timestamp, tz=timezone.utc),
                synced_at=datetime.now(timezone.utc),
                duration=BoundedDuration.from_seconds(duration),
                privacy_status=privacy,
                embeddable=bool(info.get("playable_in_embed", True)),
            )
        except ProviderError:
            raise
        except CatalogError as e:
            raise ResponseParseError(f"invalid yt-dlp info for {video_id}: {e}") from e
