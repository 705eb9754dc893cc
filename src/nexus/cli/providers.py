"""Provider factory functions for CLI.

Centralizes creation of the settings, store, generative service and the
service objects built on them. Hides configuration details from command
implementations.
"""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..config import Settings
from ..genai import GenerativeService, create_generative_service
from ..history import ImageEditSession
from ..sessions import ChatService, PersonaCatalog, SessionRegistry
from ..store import KeyValueStore, create_key_value_store
from ..studio import ImageStudio, StoryStudio, VideoStudio

# Default console for output
_console = Console()

# Third-party loggers that are chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "aiosqlite")


def setup_logging(level: str = "WARNING", console: Console | None = None, to_console: bool = True) -> None:
    """Configure the root logger.

    Args:
        level: Level name for ``nexus`` loggers
        console: Rich console used by the handler
        to_console: False for the TUI, where records go to the log panel instead
    """
    handlers: list[logging.Handler] = []
    if to_console:
        handlers.append(RichHandler(console=console or Console(stderr=True), show_path=False))
    else:
        handlers.append(logging.NullHandler())

    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=handlers, force=True)
    logging.getLogger("nexus").setLevel(level.upper())
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_settings() -> Settings:
    """Load settings from environment variables (and .env)."""
    return Settings.from_env()


def get_store(settings: Settings, console: Console | None = None) -> KeyValueStore:
    """Create the key/value store selected by NEXUS_STORE.

    Raises:
        SystemExit: If the backend is unknown
    """
    con = console or _console
    try:
        if settings.store_backend == "sqlite":
            return create_key_value_store("sqlite", path=settings.store_path)
        return create_key_value_store(settings.store_backend)
    except ValueError as e:
        con.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e


def get_service(settings: Settings, console: Console | None = None) -> GenerativeService:
    """Create the Gemini service.

    Raises:
        SystemExit: If GEMINI_API_KEY / API_KEY is not set
    """
    con = console or _console
    if not settings.api_key:
        con.print("[red]Error: GEMINI_API_KEY (or API_KEY) not set in environment[/red]")
        raise typer.Exit(code=1)
    return create_generative_service("gemini", api_key=settings.api_key, model=settings.chat_model)


async def build_chat(store: KeyValueStore, service: GenerativeService) -> ChatService:
    """Create a chat service on a loaded registry and persona catalog (store must be connected)."""
    registry = SessionRegistry(store)
    personas = PersonaCatalog(store)
    await registry.load()
    await personas.load()
    return ChatService(registry, personas, service)


def build_studios(
    store: KeyValueStore,
    service: GenerativeService,
    settings: Settings,
) -> tuple[ImageEditSession, ImageStudio, StoryStudio, VideoStudio]:
    return (
        ImageEditSession(service, store),
        ImageStudio(service),
        StoryStudio(service),
        VideoStudio(service, store, poll_interval=settings.video_poll_interval),
    )
