"""Pictospeak CLI: Typer + Rich terminal interface.

Commands: image, video, teach, replay, config.
Feedback commands render a live view that updates as snapshots arrive.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from pictospeak import __version__
from pictospeak.client import FeedbackClient
from pictospeak.display import FeedbackDisplay, render_teaching, snapshot_summary
from pictospeak.errors import PictospeakError
from pictospeak.keys import get_auth_token
from pictospeak.schemas.config import ClientConfig
from pictospeak.schemas.snapshot import FeedbackEvent
from pictospeak.settings import load_client_config
from pictospeak.stream.driver import stream_feedback_events

console = Console()

app = typer.Typer(
    name="pictospeak",
    help="Stream picture-description feedback from the Pictospeak backend.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"pictospeak {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log stream internals (debug level).",
    ),
) -> None:
    """Pictospeak: progressive feedback on spoken picture descriptions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ── Helpers ──────────────────────────────────────────────────────


def _load_config(config_path: Path | None) -> ClientConfig:
    """Load client config, exit on error."""
    try:
        return load_client_config(config_path)
    except PictospeakError as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


def _resolve_token(config: ClientConfig, token: str | None) -> str:
    """Token from --token, else from the configured env var; exit if absent."""
    resolved = token or get_auth_token(config.auth_token_env)
    if not resolved:
        console.print(
            f"[red]No auth token.[/red] Pass --token or set "
            f"[bold]{config.auth_token_env}[/bold]."
        )
        raise typer.Exit(1)
    return resolved


def _read_optional(path: Path | None) -> bytes | None:
    return path.read_bytes() if path is not None else None


async def _render_feedback(events: AsyncIterator[FeedbackEvent]) -> int:
    with FeedbackDisplay(console) as display:
        async for event in events:
            display.handle(event)
    return display.snapshots_seen


def _run_feedback(
    config: ClientConfig,
    stream_factory: Callable[[FeedbackClient], AsyncIterator[FeedbackEvent]],
) -> None:
    """Run a feedback stream to completion with the live display."""

    async def _go() -> int:
        async with FeedbackClient(config) as client:
            return await _render_feedback(stream_factory(client))

    try:
        count = asyncio.run(_go())
    except PictospeakError as e:
        console.print(f"[red]Feedback failed:[/red] {e}")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit(130) from None
    console.print(f"[dim]{count} snapshot(s) received[/dim]")


async def _file_chunks(
    data: bytes, chunk_size: int | None, rng: random.Random
) -> AsyncIterator[bytes]:
    """Replay ``data`` in fixed-size chunks, or random 1-64 byte chunks."""
    offset = 0
    while offset < len(data):
        size = chunk_size or rng.randint(1, 64)
        yield data[offset:offset + size]
        offset += size
        await asyncio.sleep(0)


# ── Commands ─────────────────────────────────────────────────────


@app.command()
def image(
    image_path: Optional[Path] = typer.Argument(
        None, exists=True, dir_okay=False, help="JPEG image to describe."
    ),
    audio: Optional[Path] = typer.Option(
        None, "--audio", "-a", exists=True, dir_okay=False,
        help="Recorded description (m4a).",
    ),
    material_id: Optional[str] = typer.Option(
        None, "--material-id", "-m", help="Use a previously uploaded material instead of an image."
    ),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Client TOML config."),
) -> None:
    """Stream feedback for a spoken description of an image."""
    if image_path is None and material_id is None:
        console.print("[red]Provide an image path or --material-id.[/red]")
        raise typer.Exit(1)

    config = _load_config(config_path)
    auth_token = _resolve_token(config, token)
    image_bytes = _read_optional(image_path)
    audio_bytes = _read_optional(audio)

    _run_feedback(
        config,
        lambda client: client.stream_image_feedback(
            auth_token, image=image_bytes, material_id=material_id, audio=audio_bytes
        ),
    )


@app.command()
def video(
    video_path: Optional[Path] = typer.Option(
        None, "--video", exists=True, dir_okay=False, help="MP4 video to describe."
    ),
    frames: list[Path] = typer.Option(
        [], "--frame", "-f", exists=True, dir_okay=False,
        help="JPEG frame extracted from the video (repeatable).",
    ),
    audio: Optional[Path] = typer.Option(
        None, "--audio", "-a", exists=True, dir_okay=False,
        help="Recorded description (m4a).",
    ),
    material_id: Optional[str] = typer.Option(None, "--material-id", "-m"),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Client TOML config."),
) -> None:
    """Stream feedback for a spoken description of a video."""
    config = _load_config(config_path)
    auth_token = _resolve_token(config, token)
    video_bytes = _read_optional(video_path)
    frame_bytes = [frame.read_bytes() for frame in frames]
    audio_bytes = _read_optional(audio)

    _run_feedback(
        config,
        lambda client: client.stream_video_feedback(
            auth_token,
            video=video_bytes,
            frames=frame_bytes,
            material_id=material_id,
            audio=audio_bytes,
        ),
    )


@app.command()
def teach(
    description_guidance_id: str = typer.Argument(..., help="Guidance id the term belongs to."),
    term: str = typer.Argument(..., help="Term to teach."),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Client TOML config."),
) -> None:
    """Stream teaching content for a single key term."""
    config = _load_config(config_path)
    auth_token = _resolve_token(config, token)

    async def _go() -> None:
        async with FeedbackClient(config) as client:
            latest = None
            async for record in client.stream_key_term_teaching(
                auth_token, description_guidance_id, term
            ):
                latest = record
            if latest is not None:
                console.print(render_teaching(latest))
            else:
                console.print("[yellow]No teaching content received.[/yellow]")

    try:
        asyncio.run(_go())
    except PictospeakError as e:
        console.print(f"[red]Teaching failed:[/red] {e}")
        raise typer.Exit(1) from None


@app.command()
def replay(
    body_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="Captured response body to replay."
    ),
    chunk_size: Optional[int] = typer.Option(
        None, "--chunk-size", min=1,
        help="Fixed chunk size in bytes. Random 1-64 byte chunks when omitted.",
    ),
    seed: int = typer.Option(0, "--seed", help="Seed for random chunking."),
    as_json: bool = typer.Option(False, "--json", help="Print each snapshot as a JSON line."),
) -> None:
    """Replay a captured feedback body through the stream extractor offline."""
    data = body_file.read_bytes()
    rng = random.Random(seed)

    async def _go() -> int:
        count = 0
        async for event in stream_feedback_events(_file_chunks(data, chunk_size, rng)):
            if event.kind == "status":
                if not as_json:
                    console.print(f"[cyan]status[/cyan] {event.status}")
                continue
            count += 1
            if as_json:
                typer.echo(event.snapshot.model_dump_json())
            else:
                console.print(snapshot_summary(count, event.snapshot))
        return count

    try:
        count = asyncio.run(_go())
    except PictospeakError as e:
        console.print(f"[red]Replay failed:[/red] {e}")
        raise typer.Exit(1) from None
    if not as_json:
        console.print(f"[dim]{count} snapshot(s) from {len(data)} bytes[/dim]")


@app.command("config")
def show_config(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Client TOML config."),
) -> None:
    """Show the active client configuration."""
    config = _load_config(config_path)
    table = Table(title="Client configuration")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("base_url", config.base_url)
    table.add_row("timeout", f"{config.timeout:g}s")
    table.add_row("read_chunk_size", str(config.read_chunk_size or "transport default"))
    token_set = bool(get_auth_token(config.auth_token_env))
    table.add_row(
        "auth token",
        f"{config.auth_token_env} ({'[green]set[/green]' if token_set else '[red]missing[/red]'})",
    )
    console.print(table)
