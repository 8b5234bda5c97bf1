"""likesync CLI - application entry point and command wiring."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from importlib.metadata import version
from typing import Annotated

import typer

from likesync.application.services import (
    CredentialRotationChannel,
    CredentialRotationPublisher,
    PlaylistMutationExecutor,
)
from likesync.application.use_cases import (
    ArchivePlaylistCommand,
    ArchivePlaylistUseCase,
    SyncSavedSongsUseCase,
)
from likesync.config import Settings, get_logger, load_settings, require, setup_loguru_logger
from likesync.infrastructure.cli.ui import command_error_handler, console, step
from likesync.infrastructure.connectors.github_secrets import GitHubSecretsConnector
from likesync.infrastructure.connectors.google_sheets import GoogleSheetsSyncLog
from likesync.infrastructure.connectors.spotify import (
    SpotifyConnector,
    create_spotify_connector,
)
from likesync.infrastructure.connectors.spotify_auth import (
    RotatingTokenCacheHandler,
    stored_token,
)

VERSION = version("likesync")

logger = get_logger(__name__)

app = typer.Typer(
    help=f"🎵 likesync v{VERSION} - Mirror your Spotify liked songs into a playlist",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
)


@app.callback()
def init_cli(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Initialize likesync CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _bootstrap(ctx: typer.Context) -> Settings:
    """Load settings and configure logging for a command run."""
    settings = load_settings()
    verbose = bool((ctx.obj or {}).get("verbose"))
    setup_loguru_logger(settings.logging, verbose)
    return settings


def _spotify(settings: Settings) -> tuple[SpotifyConnector, RotatingTokenCacheHandler]:
    cache_handler = RotatingTokenCacheHandler(stored_token(settings.spotify))
    return create_spotify_connector(settings.spotify, cache_handler), cache_handler


def _executor(connector: SpotifyConnector, settings: Settings) -> PlaylistMutationExecutor:
    return PlaylistMutationExecutor(
        api=connector,
        insert_delay=settings.sync.insert_delay,
        batch_size=settings.sync.removal_batch_size,
    )


@asynccontextmanager
async def credential_rotation(
    settings: Settings, cache_handler: RotatingTokenCacheHandler
) -> AsyncIterator[CredentialRotationChannel | None]:
    """Publish every token refresh during the block to the secret store.

    The recipient key is fetched before the block starts; if that fails the
    run stops before touching Spotify. Publish failures are raised as
    CredentialPublishError once the block has finished.

    The PKCE flow issues a new refresh token on every refresh, so there
    rotation is mandatory and missing GitHub settings fail the run.
    """
    if settings.spotify.uses_pkce:
        require(settings.github.token, "GITHUB_TOKEN")
        require(settings.github.repository, "GITHUB_REPOSITORY")

    if not settings.github.enabled:
        logger.info("Credential rotation disabled: GITHUB_TOKEN or GITHUB_REPOSITORY not set")
        yield None
        return

    async with GitHubSecretsConnector.from_config(settings.github) as secret_store:
        publisher = CredentialRotationPublisher(
            secret_store=secret_store,
            repository=settings.github.repository,
            secret_name=settings.github.secret_name,
        )
        with step("Loading secret store key"):
            await publisher.ensure_ready()

        async with CredentialRotationChannel(publisher) as channel:
            cache_handler.add_listener(channel.submit)
            yield channel

        channel.raise_for_failures()
        if channel.published:
            console.print(f"Rotated token published to secret {settings.github.secret_name}")


async def _authorize(connector: SpotifyConnector) -> None:
    with step("Authorizing with Spotify"):
        await connector.verify_user()


async def sync_saved_songs(settings: Settings) -> None:
    """Mirror the liked songs into the configured playlist."""
    playlist_id = require(settings.spotify.playlist_id, "SPOTIFY_PLAYLIST_ID")
    sync_log = GoogleSheetsSyncLog.from_config(settings.google) if settings.google.enabled else None
    connector, cache_handler = _spotify(settings)

    use_case = SyncSavedSongsUseCase(
        collections=connector,
        executor=_executor(connector, settings),
        sync_log=sync_log,
        page_item_delay=settings.sync.page_item_delay,
    )

    async with credential_rotation(settings, cache_handler):
        await _authorize(connector)

        with step("Loading liked songs and playlist"):
            library, playlist = await use_case.read_collections(playlist_id)

        with step("Updating playlist"):
            changes = await use_case.reconcile(playlist_id, library, playlist)

        if sync_log is not None:
            with step("Writing sync log"):
                await use_case.record(library, changes)

    console.print(
        f"[bold green]✓[/bold green] {len(library)} liked song(s): "
        f"{len(changes.added)} added, {len(changes.removed)} removed"
    )


async def archive_playlist(
    settings: Settings, source_env: str, backup_env: str
) -> None:
    """Append the source playlist's new tracks to its backup."""
    source_id = require(_spotify_field(settings, source_env), source_env)
    backup_id = require(_spotify_field(settings, backup_env), backup_env)
    connector, cache_handler = _spotify(settings)

    use_case = ArchivePlaylistUseCase(
        collections=connector,
        executor=_executor(connector, settings),
        page_item_delay=settings.sync.page_item_delay,
    )

    async with credential_rotation(settings, cache_handler):
        await _authorize(connector)
        with step("Archiving playlist"):
            result = await use_case.execute(
                ArchivePlaylistCommand(source_id=source_id, backup_id=backup_id)
            )

    console.print(f"[bold green]✓[/bold green] {result.summary}")


def _spotify_field(settings: Settings, env_name: str) -> str:
    # SPOTIFY_DISCOVER_WEEKLY_ID -> settings.spotify.discover_weekly_id
    return getattr(settings.spotify, env_name.removeprefix("SPOTIFY_").lower())


@app.command(name="saved-songs")
@command_error_handler
def saved_songs(ctx: typer.Context) -> None:
    """Sync liked songs into the configured playlist."""
    settings = _bootstrap(ctx)
    asyncio.run(sync_saved_songs(settings))


@app.command(name="discover-weekly")
@command_error_handler
def discover_weekly(ctx: typer.Context) -> None:
    """Archive Discover Weekly into its backup playlist."""
    settings = _bootstrap(ctx)
    asyncio.run(
        archive_playlist(
            settings, "SPOTIFY_DISCOVER_WEEKLY_ID", "SPOTIFY_DISCOVER_WEEKLY_BACKUP_ID"
        )
    )


@app.command(name="release-radar")
@command_error_handler
def release_radar(ctx: typer.Context) -> None:
    """Archive Release Radar into its backup playlist."""
    settings = _bootstrap(ctx)
    asyncio.run(
        archive_playlist(
            settings, "SPOTIFY_RELEASE_RADAR_ID", "SPOTIFY_RELEASE_RADAR_BACKUP_ID"
        )
    )


@app.command(name="version")
def version_command() -> None:
    """Show version information."""
    console.print(f"[bold bright_blue]🎵 likesync[/bold bright_blue] [dim]v{VERSION}[/dim]")


def main() -> int:
    """Application entry point."""
    try:
        return app() or 0
    except Exception:
        logger.exception("Unhandled exception")
        return 1
