"""Application entry point and composition root."""

import asyncio
import logging
import signal

import typer

from docflow import __version__
from docflow.config import Settings, get_settings
from docflow.container import Services, build_services
from docflow.interfaces.api.app import create_app
from docflow.logging_config import configure_logging

logger = logging.getLogger(__name__)

cli = typer.Typer(
    name="docflow",
    help="Document upload, text extraction and comparison backend",
    add_completion=False,
    no_args_is_help=True,
)


def create_docflow_app(settings: Settings | None = None):
    """Composition root - build the Falcon app with all dependencies.

    ``uvicorn --factory docflow.main:create_docflow_app`` uses this directly.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    return create_app(build_services(settings))


@cli.command()
def serve(
    host: str | None = typer.Option(None, help="Bind address (default from settings)"),
    port: int | None = typer.Option(None, help="Port (default from settings)"),
    worker: bool | None = typer.Option(
        None, "--worker/--no-worker", help="Run the queue worker in the API process"
    ),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    app = create_app(build_services(settings), embed_worker=worker)
    uvicorn.run(
        app,
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
        lifespan="on",
    )


async def _run_worker(services: Services) -> None:
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await services.start()
    try:
        await services.worker.start()
        logger.info("Worker running; press Ctrl+C to stop")
        await stop.wait()
    finally:
        await services.stop()


@cli.command()
def worker(
    concurrency: int | None = typer.Option(None, min=1, help="Parallel worker tasks"),
) -> None:
    """Run the queue worker without the HTTP API."""
    settings = get_settings()
    if concurrency is not None:
        settings = settings.model_copy(update={"worker_concurrency": concurrency})
    configure_logging(settings.log_level)
    asyncio.run(_run_worker(build_services(settings)))


async def _migrate(services: Services) -> None:
    await services.store.initialize()
    try:
        await services.store.migrate()
    finally:
        await services.store.shutdown()


@cli.command()
def migrate() -> None:
    """Apply database migrations (no-op for the memory backend)."""
    settings = get_settings()
    configure_logging(settings.log_level)
    asyncio.run(_migrate(build_services(settings)))
    typer.echo(f"Schema is up to date ({settings.persistence_backend})")


@cli.command()
def version() -> None:
    """Print the version."""
    typer.echo(f"docflow v{__version__}")


def main() -> None:
    """CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
