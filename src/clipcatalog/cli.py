"""CLI interface: a thin wrapper over CatalogService."""

import logging
from pathlib import Path
from typing import NoReturn

import typer

from clipcatalog.artists import ArtistRegistry
from clipcatalog.config import settings
from clipcatalog.exceptions import CatalogError, ConsistencyError
from clipcatalog.ingestion.provider import MetadataProvider
from clipcatalog.service import ApplyResult, CatalogService
from clipcatalog.storage.json_files import JsonFileGateway

app = typer.Typer(
    name="clipcatalog",
    help="Maintain a verified, month-partitioned catalog of music clips.",
    no_args_is_help=True,
)
apply_app = typer.Typer(help="Write changes to the music library.", no_args_is_help=True)
validate_app = typer.Typer(help="Check inputs and the library without writing.", no_args_is_help=True)
app.add_typer(apply_app, name="apply")
app.add_typer(validate_app, name="validate")


# --- Shared options ---

MusicRootOption = typer.Option(None, "--music-root", help="Directory holding YYYY/MM.json files.")
MinVideosOption = typer.Option(None, "--min-videos-file", help="Output path of the flat video index.")
MinClipsOption = typer.Option(None, "--min-clips-file", help="Output path of the flat clip index.")
ArtistsOption = typer.Option(None, "--artists-file", help="JSON file of internal artist ids.")
ApiKeyOption = typer.Option(
    None, "--api-key", "-k", envvar="YOUTUBE_API_KEY", show_envvar=False,
    help="YouTube Data API v3 key.",
)
ProviderOption = typer.Option(None, "--provider", help="Metadata provider: youtube-api or yt-dlp.")


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)."),
) -> None:
    """Configure logging once for every command."""
    level = (log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_provider(api_key: str | None, provider: str | None) -> MetadataProvider:
    """Create the configured metadata provider or exit with an error."""
    name = provider or settings.provider
    if name == "yt-dlp":
        from clipcatalog.ingestion.youtube import YtDlpMetadataProvider

        return YtDlpMetadataProvider()
    if name != "youtube-api":
        typer.echo(f"❌ Unknown provider: {name}", err=True)
        raise typer.Exit(code=1)

    from clipcatalog.ingestion.youtube_api import YouTubeDataApiProvider

    key = api_key or (settings.youtube_api_key.get_secret_value() if settings.youtube_api_key else None)
    if not key:
        typer.echo("❌ A YouTube API key is required (--api-key or YOUTUBE_API_KEY).", err=True)
        raise typer.Exit(code=1)
    return YouTubeDataApiProvider(key)


def _get_service(
    music_root: Path | None = None,
    min_videos_file: Path | None = None,
    min_clips_file: Path | None = None,
    artists_file: Path | None = None,
    provider: MetadataProvider | None = None,
) -> CatalogService:
    """Create a service instance with default dependencies."""
    registry = ArtistRegistry.from_file(artists_file or settings.artists_file)
    return CatalogService(
        gateway=JsonFileGateway(registry),
        provider=provider,
        music_root=music_root,
        min_videos_file=min_videos_file,
        min_clips_file=min_clips_file,
    )


def _fail(error: Exception) -> NoReturn:
    """Report an error and exit with status 1."""
    if isinstance(error, ConsistencyError):
        typer.echo(f"🐛 Internal consistency error (this is a bug): {error}", err=True)
    else:
        typer.echo(f"❌ {error}", err=True)
    raise typer.Exit(code=1)


def _report(verb: str, result: ApplyResult) -> None:
    typer.echo(f"✅ {verb}")
    if result.added:
        typer.echo(f"   Added:     {len(result.added)}")
    if result.updated:
        typer.echo(f"   Updated:   {len(result.updated)}")
    if result.unchanged:
        typer.echo(f"   Unchanged: {len(result.unchanged)}")
    typer.echo(f"   Total:     {result.total}")


# --- apply ---


@apply_app.command("new")
def apply_new(
    input_file: Path = typer.Option(..., "--input", "-i", help="JSON file of draft videos."),
    api_key: str | None = ApiKeyOption,
    provider: str | None = ProviderOption,
    music_root: Path | None = MusicRootOption,
    min_videos_file: Path | None = MinVideosOption,
    min_clips_file: Path | None = MinClipsOption,
    artists_file: Path | None = ArtistsOption,
) -> None:
    """Verify new draft videos and add them to the library."""
    try:
        svc = _get_service(
            music_root, min_videos_file, min_clips_file, artists_file,
            provider=_build_provider(api_key, provider),
        )
        result = svc.apply_new(input_file)
    except (CatalogError, OSError) as e:
        _fail(e)
    _report("Applied new videos", result)


@apply_app.command("sync")
def apply_sync(
    api_key: str | None = ApiKeyOption,
    provider: str | None = ProviderOption,
    music_root: Path | None = MusicRootOption,
    min_videos_file: Path | None = MinVideosOption,
    min_clips_file: Path | None = MinClipsOption,
    artists_file: Path | None = ArtistsOption,
) -> None:
    """Refresh every video's attributes from the provider."""
    try:
        svc = _get_service(
            music_root, min_videos_file, min_clips_file, artists_file,
            provider=_build_provider(api_key, provider),
        )
        result = svc.apply_sync()
    except (CatalogError, OSError) as e:
        _fail(e)
    _report("Synced library", result)


@apply_app.command("update")
def apply_update(
    music_root: Path | None = MusicRootOption,
    min_videos_file: Path | None = MinVideosOption,
    min_clips_file: Path | None = MinClipsOption,
    artists_file: Path | None = ArtistsOption,
) -> None:
    """Rewrite month files in canonical order and regenerate flat indexes."""
    try:
        svc = _get_service(music_root, min_videos_file, min_clips_file, artists_file)
        result = svc.apply_update()
    except (CatalogError, OSError) as e:
        _fail(e)
    _report("Updated library", result)


# --- validate ---


@validate_app.command("new-input")
def validate_new_input(
    input_file: Path = typer.Option(..., "--input", "-i", help="JSON file of draft videos."),
    artists_file: Path | None = ArtistsOption,
) -> None:
    """Check a submission file without contacting the provider."""
    try:
        drafts = _get_service(artists_file=artists_file).validate_new_input(input_file)
    except (CatalogError, OSError) as e:
        _fail(e)
    clips = sum(len(d.clips) for d in drafts)
    typer.echo(f"✅ {len(drafts)} videos, {clips} clips are valid")


@validate_app.command("library")
def validate_library(
    music_root: Path | None = MusicRootOption,
    artists_file: Path | None = ArtistsOption,
) -> None:
    """Load the whole library and report every problem."""
    try:
        library = _get_service(music_root, artists_file=artists_file).validate_library()
    except (CatalogError, OSError) as e:
        _fail(e)
    typer.echo(f"✅ Library is valid: {len(library)} videos in {len(library.partition_keys())} months")


@validate_app.command("duplicate")
def validate_duplicate(
    ids: str = typer.Option(..., "--id", help="Comma-separated video ids."),
    music_root: Path | None = MusicRootOption,
    artists_file: Path | None = ArtistsOption,
) -> None:
    """Check whether video ids are already in the library."""
    video_ids = [v.strip() for v in ids.split(",") if v.strip()]
    try:
        duplicates = _get_service(music_root, artists_file=artists_file).check_duplicates(video_ids)
    except (CatalogError, OSError) as e:
        _fail(e)
    if duplicates:
        typer.echo(f"⚠️  Already in library: {', '.join(duplicates)}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"✅ No duplicates among {len(video_ids)} id(s)")
