# tests/conftest.py
"""Shared fixtures for clipcatalog tests."""

import json
from datetime import datetime, timezone

import pytest

from clipcatalog.artists import ArtistRegistry
from clipcatalog.clips import ClipContent, DraftClip
from clipcatalog.duration import BoundedDuration
from clipcatalog.ingestion.provider import MetadataProvider, empty_result
from clipcatalog.service import CatalogService
from clipcatalog.storage.json_files import JsonFileGateway
from clipcatalog.values import PrivacyStatus
from clipcatalog.video import VideoAggregate, VideoAttributes

VIDEO_ID = "dQw4w9WgXcQ"
OTHER_VIDEO_ID = "BpibZSMGtdY"
CHANNEL_ID = "UCabcdefghijklmnopqrstuv"
PUBLISHED_AT = datetime(2024, 1, 1, 12, 12, 12, tzinfo=timezone.utc)
SYNCED_AT = datetime(2024, 2, 1, 8, 0, 0, tzinfo=timezone.utc)
ARTISTS = ["aimi", "kanata", "suisei"]


class FakeProvider(MetadataProvider):
    """In-memory provider; tests fill ``attributes`` by video id."""

    def __init__(self, attributes=None):
        self.attributes = dict(attributes or {})
        self.calls = []

    def fetch(self, video_ids):
        ids = list(video_ids)
        self.calls.append(ids)
        result = empty_result(ids)
        for video_id in ids:
            result[video_id] = self.attributes.get(video_id)
        return result


@pytest.fixture
def registry():
    return ArtistRegistry(ARTISTS)


@pytest.fixture
def artists_file(tmp_path):
    path = tmp_path / "artists.json"
    path.write_text(json.dumps(ARTISTS))
    return path


@pytest.fixture
def make_attributes():
    """Factory for VideoAttributes with sensible defaults."""

    def _make(
        video_id=VIDEO_ID,
        published_at=PUBLISHED_AT,
        duration=600,
        synced_at=SYNCED_AT,
        title="Utawaku Live",
        privacy_status=PrivacyStatus.PUBLIC,
        embeddable=True,
    ):
        return VideoAttributes(
            video_id=video_id,
            title=title,
            channel_id=CHANNEL_ID,
            published_at=published_at,
            synced_at=synced_at,
            duration=BoundedDuration(duration),
            privacy_status=privacy_status,
            embeddable=embeddable,
        )

    return _make


@pytest.fixture
def attributes(make_attributes):
    return make_attributes()


@pytest.fixture
def make_draft():
    """Factory for DraftClip from second offsets."""

    def _make(start, end, title="Song", artists=("aimi",), **fields):
        return DraftClip(
            ClipContent(
                song_title=title,
                artists=tuple(artists),
                is_clipped=False,
                start=BoundedDuration(start),
                end=BoundedDuration(end),
                **fields,
            )
        )

    return _make


@pytest.fixture
def make_video(make_attributes, make_draft):
    """Factory for a VideoAggregate with clips at the given (start, end) ranges."""

    def _make(video_id=VIDEO_ID, ranges=((0, 10), (10, 20)), **attribute_fields):
        attrs = make_attributes(video_id=video_id, **attribute_fields)
        drafts = [make_draft(s, e, title=f"Song {i}") for i, (s, e) in enumerate(ranges)]
        return VideoAggregate.from_draft_clips(attrs, drafts)

    return _make


@pytest.fixture
def gateway(registry):
    return JsonFileGateway(registry)


@pytest.fixture
def music_root(tmp_path):
    root = tmp_path / "music"
    root.mkdir()
    return root


@pytest.fixture
def draft_payload():
    """A submission document with one video and two adjacent clips."""
    return [
        {
            "videoId": VIDEO_ID,
            "uploaderName": "clipper",
            "tags": ["live", "acoustic"],
            "clips": [
                {
                    "songTitle": "Stellar Stellar",
                    "artists": ["suisei"],
                    "isClipped": False,
                    "startTime": "PT1M",
                    "endTime": "PT4M30S",
                },
                {
                    "songTitle": "Ghost",
                    "songTitleJah": "ゴースト",
                    "artists": ["suisei", "aimi"],
                    "externalArtists": ["guest-pianist"],
                    "isClipped": True,
                    "startTime": "PT4M30S",
                    "endTime": "PT8M",
                    "tags": ["ballad"],
                },
            ],
        }
    ]


@pytest.fixture
def write_json(tmp_path):
    """Write ``data`` as JSON under tmp_path and return the path."""

    def _write(name, data):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def provider(attributes):
    return FakeProvider({attributes.video_id: attributes})


@pytest.fixture
def service(gateway, provider, music_root, tmp_path):
    """CatalogService backed by a tmp_path library and a fake provider."""
    return CatalogService(
        gateway=gateway,
        provider=provider,
        music_root=music_root,
        min_videos_file=tmp_path / "public" / "videos.min.json",
        min_clips_file=tmp_path / "public" / "clips.min.json",
    )
