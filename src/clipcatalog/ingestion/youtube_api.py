"""Video attributes from the YouTube Data API v3 ``videos.list`` endpoint."""

import json
import logging
import time
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from clipcatalog.config import settings
from clipcatalog.duration import BoundedDuration
from clipcatalog.exceptions import (
    ApiError,
    CatalogError,
    FieldValidationError,
    ForbiddenError,
    NetworkError,
    ProviderError,
    ResponseParseError,
)
from clipcatalog.ingestion.provider import MetadataProvider, empty_result
from clipcatalog.values import lift_privacy_status, parse_instant
from clipcatalog.video import VideoAttributes

logger = logging.getLogger(__name__)

ENDPOINT = "https://www.googleapis.com/youtube/v3/videos"
PARTS = "snippet,contentDetails,status"
MAX_RESULTS = 50


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ApiSnippet(_ApiModel):
    published_at: str
    channel_id: str
    title: str


class ApiContentDetails(_ApiModel):
    duration: str


class ApiStatus(_ApiModel):
    privacy_status: str
    embeddable: bool


class ApiItem(_ApiModel):
    id: str
    snippet: ApiSnippet
    content_details: ApiContentDetails
    status: ApiStatus

    def to_attributes(self, synced_at: datetime) -> VideoAttributes:
        return VideoAttributes(
            video_id=self.id,
            title=self.snippet.title,
            channel_id=self.snippet.channel_id,
            published_at=parse_instant(self.snippet.published_at),
            synced_at=synced_at,
            duration=BoundedDuration.parse(self.content_details.duration),
            privacy_status=lift_privacy_status(self.status.privacy_status),
            embeddable=self.status.embeddable,
        )


class ApiResponse(_ApiModel):
    items: list[ApiItem] = Field(default_factory=list)


class YouTubeApiKey:
    """A non-empty API key that never shows up in logs or reprs."""

    def __init__(self, key: str) -> None:
        if not key:
            raise FieldValidationError("api_key", "YouTube API key cannot be empty")
        self._key = key

    def reveal(self) -> str:
        return self._key

    def __repr__(self) -> str:
        return "YouTubeApiKey(****)"

    __str__ = __repr__


class YouTubeDataApiProvider(MetadataProvider):
    """Fetches attributes in batches of up to 50 ids with retry and pacing.

    Each batch is attempted up to ``max_retries`` times with ``retry_delay``
    between attempts, and ``request_delay`` separates consecutive batches.
    """

    def __init__(
        self,
        api_key: YouTubeApiKey | str,
        batch_size: int | None = None,
        max_retries: int | None = None,
        request_delay: float | None = None,
        retry_delay: float | None = None,
        timeout: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api_key = api_key if isinstance(api_key, YouTubeApiKey) else YouTubeApiKey(api_key)
        self._batch_size = min(batch_size or settings.batch_size, MAX_RESULTS)
        self._max_retries = max_retries or settings.max_retries
        self._request_delay = settings.request_delay if request_delay is None else request_delay
        self._retry_delay = settings.retry_delay if retry_delay is None else retry_delay
        self._timeout = timeout or settings.request_timeout
        self._sleep = sleep

    def fetch(self, video_ids: Iterable[str]) -> dict[str, VideoAttributes | None]:
        """Fetch attributes for ``video_ids``; unknown ids map to None.

        Raises:
            ProviderError: If a batch still fails after all retries.
        """
        result = empty_result(video_ids)
        pending = list(result)
        try:
            for start in range(0, len(pending), self._batch_size):
                batch = pending[start:start + self._batch_size]
                response = self._fetch_batch_with_retry(batch)
                synced_at = datetime.now(timezone.utc)
                for item in response.items:
                    if item.id not in result:
                        logger.warning("Received video id %s that was not requested", item.id)
                        continue
                    result[item.id] = self._to_attributes(item, synced_at)
                # Pace requests to stay under the API rate limit
                self._sleep(self._request_delay)
        except ProviderError as e:
            logger.error("YouTube API fetch failed: %s", e)
            raise
        found = sum(1 for v in result.values() if v is not None)
        logger.info("YouTube API fetch completed: %d/%d videos found", found, len(result))
        return result

    def _fetch_batch_with_retry(self, batch: list[str]) -> ApiResponse:
        attempt = 0
        while True:
            attempt += 1
            try:
                return self._fetch_batch(batch)
            except ProviderError as e:
                if attempt >= self._max_retries:
                    raise
                logger.warning(
                    "YouTube API fetch error, retrying (attempt %d/%d): %s",
                    attempt, self._max_retries, e,
                )
                self._sleep(self._retry_delay)

    def _build_url(self, batch: list[str]) -> str:
        query = urlencode({
            "part": PARTS,
            "maxResults": MAX_RESULTS,
            "id": ",".join(batch),
            "key": self._api_key.reveal(),
        })
        return f"{ENDPOINT}?{query}"

    def _fetch_batch(self, batch: list[str]) -> ApiResponse:
        request = Request(self._build_url(batch), headers={"Accept": "application/json"})
        try:
            with urlopen(request, timeout=self._timeout) as resp:
                body = resp.read()
        except HTTPError as e:
            message = _read_error_body(e)
            if e.code == 403:
                raise ForbiddenError(f"forbidden: {message}") from e
            raise ApiError(e.code, message) from e
        except (URLError, TimeoutError) as e:
            raise NetworkError(f"network error: {e}") from e

        try:
            return ApiResponse.model_validate(json.loads(body))
        except (ValueError, ValidationError) as e:
            raise ResponseParseError(f"response parse error: {e}") from e

    @staticmethod
    def _to_attributes(item: ApiItem, synced_at: datetime) -> VideoAttributes:
        try:
            return item.to_attributes(synced_at)
        except CatalogError as e:
            raise ResponseParseError(f"response parse error for {item.id}: {e}") from e


def _read_error_body(error: HTTPError) -> str:
    try:
        return error.read().decode("utf-8", errors="replace") or "(No error message)"
    except OSError:
        return "(No error message)"
