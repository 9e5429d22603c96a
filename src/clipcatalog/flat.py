"""Flat projections of the library for front-end consumption.

Both indexes are pure functions of a LibraryIndex and are regenerated
wholesale on every write.
"""

from clipcatalog.library import LibraryIndex
from clipcatalog.models import FlatClip, FlatVideo
from clipcatalog.values import format_instant


def flat_clips(library: LibraryIndex) -> dict[str, dict]:
    """Clip uuid -> clip summary, ordered by video publish time then clip start."""
    result: dict[str, dict] = {}
    for video in library.videos():
        for clip in video.sorted_clips:
            content = clip.content
            result[clip.uuid.format()] = FlatClip(
                song_title=content.song_title,
                song_title_jah=content.song_title_jah,
                artists=list(content.artists),
                external_artists=list(content.external_artists) if content.external_artists else None,
                is_clipped=content.is_clipped,
                video_id=video.video_id,
                start_time_secs=clip.start.seconds,
                end_time_secs=clip.end.seconds,
                tags=list(content.tags) if content.tags is not None else None,
                volume_percent=clip.volume_percent,
            ).to_wire()
    return result


def flat_videos(library: LibraryIndex) -> dict[str, dict]:
    """Video id -> video summary with its clip uuids in start order."""
    result: dict[str, dict] = {}
    for video in library.videos():
        a = video.attributes
        result[video.video_id] = FlatVideo(
            clip_uuids=[c.uuid.format() for c in video.sorted_clips],
            artists=list(video.artists),
            title=a.title,
            channel_id=a.channel_id,
            uploader_name=video.uploader_name,
            published_at=format_instant(a.published_at),
            synced_at=format_instant(a.synced_at),
            duration_secs=a.duration.seconds,
            privacy_status=a.privacy_status.value,
            embeddable=a.embeddable,
            tags=list(video.tags),
        ).to_wire()
    return result
