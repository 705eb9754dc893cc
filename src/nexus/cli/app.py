"""Main CLI application using Typer."""
import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..errors import NexusError, ValidationError
from ..genai import (
    ImageAspectRatio,
    InlineData,
    StoryAudience,
    StoryGenre,
    StoryLength,
    StoryOptions,
    StoryTone,
    VideoAspectRatio,
)
from ..studio import VIDEO_PRESETS, VIDEO_STYLES
from .providers import (
    build_chat,
    build_studios,
    get_service,
    get_settings,
    get_store,
    setup_logging,
)

logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="nexus",
    help="Nexus Studio: chat, image editing, image, story and video generation on Gemini",
    no_args_is_help=True,
    add_completion=True,
)

sessions_app = typer.Typer(help="Manage saved chat sessions", no_args_is_help=True)
app.add_typer(sessions_app, name="sessions")

# Console for rich output
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning or error (default: NEXUS_LOG_LEVEL or warning)"
    ),
):
    """Configure logging before any command runs."""
    settings = get_settings()
    level = (log_level or settings.log_level).upper()
    ctx.obj = {"settings": settings, "log_level": level}
    setup_logging(level, to_console=ctx.invoked_subcommand != "tui")


def _settings(ctx: typer.Context):
    return ctx.obj["settings"]


def _read_image(path: Path) -> InlineData:
    image = InlineData.from_file(path)
    if not image.is_image:
        console.print(f"[red]Error: {path} is not an image[/red]")
        raise typer.Exit(code=1)
    return image


@app.command(name="tui")
def tui_command(
    ctx: typer.Context,
    log_panel: str | None = typer.Option(
        None,
        "--log-panel",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
):
    """Launch the interactive TUI."""
    async def _tui():
        from ..ui import run_textual_tui

        settings = _settings(ctx)
        store = get_store(settings, console)
        service = get_service(settings, console)

        try:
            await store.connect()
            chat = await build_chat(store, service)
            editor, images, story, video = build_studios(store, service, settings)
            await run_textual_tui(
                chat=chat,
                personas=chat.personas,
                editor=editor,
                images=images,
                story=story,
                video=video,
                log_level=log_panel,
            )
        finally:
            await service.close()
            await store.disconnect()
            console.print("\n[dim]Goodbye![/dim]")

    try:
        asyncio.run(_tui())
    except KeyboardInterrupt:
        pass


@app.command()
def chat(
    ctx: typer.Context,
    message: str = typer.Argument(..., help="Message to send"),
    session: str | None = typer.Option(
        None,
        "--session",
        "-s",
        help="Continue an existing session (see 'nexus sessions list')"
    ),
    persona: str | None = typer.Option(
        None,
        "--persona",
        "-p",
        help="Persona for a new session: Nexus, Creative, Technical, Business or a custom id"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model tier for a new session: flash, pro or vision"
    ),
    image: Path | None = typer.Option(
        None,
        "--image",
        "-i",
        exists=True,
        dir_okay=False,
        help="Attach an image"
    ),
):
    """Send one message and stream the reply."""
    async def _chat():
        settings = _settings(ctx)
        store = get_store(settings, console)
        service = get_service(settings, console)

        try:
            await store.connect()
            chat_service = await build_chat(store, service)
            registry = chat_service.registry

            logger.debug("Sending message (session=%s)", session or "new")
            if session:
                if await chat_service.select_session(session) is None:
                    console.print(f"[red]Error: session not found: {session}[/red]")
                    raise typer.Exit(code=1)
            else:
                if persona:
                    chat_service.set_persona(persona)
                if model:
                    chat_service.set_model(model)

            printed = {"replying": False, "message": None, "length": 0}

            def _echo(session_id: str | None) -> None:
                if session_id is None or session_id not in registry or not chat_service.is_sending(session_id):
                    return
                last = registry.get(session_id).last_message
                if last is None:
                    return
                if last.role == "user":
                    printed["replying"] = True
                    return
                # the welcome message of a session created by this send is not echoed
                if not printed["replying"]:
                    return
                if printed["message"] != id(last):
                    # a new model message (the apology after a failed stream) starts on its own line
                    if printed["length"]:
                        console.print()
                    printed["message"] = id(last)
                    printed["length"] = 0
                text = last.text
                console.print(text[printed["length"]:], end="", markup=False, highlight=False)
                printed["length"] = len(text)

            unsubscribe = registry.subscribe(_echo)
            try:
                result = await chat_service.send(message, _read_image(image) if image else None)
            finally:
                unsubscribe()
            console.print()

            if not result.ok:
                console.print(f"[red]Error: {result.error}[/red]")
                raise typer.Exit(code=1)
            console.print(f"[dim]Session: {result.session_id}[/dim]")

        except ValidationError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await service.close()
            await store.disconnect()

    asyncio.run(_chat())


@sessions_app.command("list")
def sessions_list(ctx: typer.Context):
    """List saved sessions, newest first."""
    async def _list():
        from ..sessions import SessionRegistry

        store = get_store(_settings(ctx), console)
        try:
            await store.connect()
            registry = SessionRegistry(store)
            await registry.load()

            sessions = registry.list_sessions()
            if not sessions:
                console.print("[yellow]No sessions yet[/yellow]")
                return

            table = Table(show_header=True, header_style="bold cyan")
            table.add_column("ID", style="dim")
            table.add_column("Name")
            table.add_column("Persona")
            table.add_column("Model")
            table.add_column("Messages", justify="right")
            for s in sessions:
                table.add_row(s.id, s.name, s.persona_id, s.model_id, str(len(s.messages)))
            console.print(table)
        finally:
            await store.disconnect()

    asyncio.run(_list())


@sessions_app.command("rename")
def sessions_rename(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session id"),
    name: str = typer.Argument(..., help="New name"),
):
    """Rename a session."""
    async def _rename():
        from ..sessions import SessionRegistry

        store = get_store(_settings(ctx), console)
        try:
            await store.connect()
            registry = SessionRegistry(store)
            await registry.load()
            await registry.rename_session(session_id, name)
            console.print(f"[green]Renamed to '{registry.get(session_id).name}'[/green]")
        except NexusError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_rename())


@sessions_app.command("delete")
def sessions_delete(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session id"),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt"
    ),
):
    """Delete a session."""
    async def _delete():
        from ..sessions import SessionRegistry

        store = get_store(_settings(ctx), console)
        try:
            await store.connect()
            registry = SessionRegistry(store)
            await registry.load()

            if not yes:
                confirm = typer.confirm(f"Delete session {session_id}?")
                if not confirm:
                    console.print("[dim]Aborted.[/dim]")
                    return

            await registry.delete_session(session_id)
            console.print("[green]Session deleted[/green]")
        except NexusError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_delete())


@app.command()
def story(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="Story idea"),
    genre: StoryGenre = typer.Option(StoryGenre.FANTASY, "--genre", "-g"),
    audience: StoryAudience = typer.Option(StoryAudience.TEENAGERS, "--audience", "-a"),
    tone: StoryTone = typer.Option(StoryTone.ADVENTUROUS, "--tone", "-t"),
    length: StoryLength = typer.Option(StoryLength.MEDIUM, "--length"),
):
    """Write a story, streaming it to the terminal."""
    async def _story():
        settings = _settings(ctx)
        service = get_service(settings, console)
        from ..studio import StoryStudio

        studio = StoryStudio(service)
        printed = {"length": 0}

        def _echo(text: str) -> None:
            console.print(text[printed["length"]:], end="", markup=False, highlight=False)
            printed["length"] = len(text)

        try:
            options = StoryOptions(genre=genre, audience=audience, tone=tone, length=length)
            await studio.generate(prompt, options, on_fragment=_echo)
            console.print()
        except NexusError as e:
            console.print(f"\n[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await service.close()

    asyncio.run(_story())


@app.command()
def image(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="Image description"),
    aspect_ratio: ImageAspectRatio = typer.Option(ImageAspectRatio.SQUARE, "--aspect-ratio", "-r"),
    output: Path = typer.Option(Path("nexus-image.png"), "--output", "-o", help="Output file"),
):
    """Generate an image from a prompt."""
    async def _image():
        settings = _settings(ctx)
        service = get_service(settings, console)
        from ..studio import ImageStudio

        studio = ImageStudio(service)
        try:
            with console.status("Generating image..."):
                await studio.generate(prompt, aspect_ratio)
            path = studio.save(output)
            console.print(f"[green]Saved {path}[/green]")
        except NexusError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await service.close()

    asyncio.run(_image())


@app.command()
def edit(
    ctx: typer.Context,
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Image to edit"),
    prompt: str = typer.Argument(..., help="Describe the edit"),
    output: Path = typer.Option(Path("nexus-edit.png"), "--output", "-o", help="Output file"),
):
    """Apply an AI edit to an image and add it to the editing gallery."""
    async def _edit():
        settings = _settings(ctx)
        store = get_store(settings, console)
        service = get_service(settings, console)

        try:
            await store.connect()
            editor, _, _, _ = build_studios(store, service, settings)
            await editor.load()
            await editor.load_image(_read_image(source))
            with console.status("Applying AI edit..."):
                result = await editor.apply_edit(prompt)
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(result.image.to_bytes())
            console.print(f"[green]Saved {output}[/green]")
            if result.text:
                console.print(f"[dim]{result.text}[/dim]")
        except NexusError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await service.close()
            await store.disconnect()

    asyncio.run(_edit())


@app.command()
def video(
    ctx: typer.Context,
    prompt: str | None = typer.Argument(None, help="Video description (or use --preset)"),
    preset: str | None = typer.Option(
        None,
        "--preset",
        help="Preset prompt: " + ", ".join(p.name for p in VIDEO_PRESETS)
    ),
    style: str = typer.Option(
        "Default",
        "--style",
        help="Style: " + ", ".join(s.name for s in VIDEO_STYLES)
    ),
    aspect_ratio: VideoAspectRatio = typer.Option(VideoAspectRatio.LANDSCAPE, "--aspect-ratio", "-r"),
    image_path: Path | None = typer.Option(
        None,
        "--image",
        "-i",
        exists=True,
        dir_okay=False,
        help="Starting image"
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Download the video to this file"),
):
    """Generate a video; this usually takes a few minutes."""
    async def _video():
        settings = _settings(ctx)
        store = get_store(settings, console)
        service = get_service(settings, console)

        try:
            await store.connect()
            _, _, _, studio = build_studios(store, service, settings)
            await studio.load()

            text = prompt or ""
            if preset:
                text = studio.apply_preset(preset)

            with console.status("Warming up the video engine...") as status:
                result = await studio.generate(
                    text,
                    aspect_ratio,
                    style,
                    image=_read_image(image_path) if image_path else None,
                    on_progress=status.update,
                )
            console.print(f"[green]Video ready:[/green] {result.uri}")

            if output:
                with console.status("Downloading..."):
                    path = await studio.download(output)
                console.print(f"[green]Saved {path}[/green]")
        except NexusError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await service.close()
            await store.disconnect()

    asyncio.run(_video())


if __name__ == "__main__":
    app()
