"""Command line entry point: pick a transport and serve the tools."""

import asyncio
import logging
from typing import Annotated, Optional

import typer

from sqlbridge.core.config import settings
from sqlbridge.core.database import Database

app = typer.Typer(
    name="sqlbridge",
    help="Serve read-only SQL and CSV upsert tools over a relational database.",
    add_completion=False,
)


def setup_logging(level: str) -> None:
    # stderr only: stdout carries the stdio protocol
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def serve(
    database_url: Annotated[
        Optional[str],
        typer.Argument(help="SQLAlchemy database URL (defaults to DATABASE_URL)"),
    ] = None,
    mode: Annotated[
        str, typer.Option("--mode", "-m", help="Transport: stdio or rest")
    ] = settings.MODE,
    host: Annotated[str, typer.Option(help="Bind address for rest mode")] = settings.HOST,
    port: Annotated[int, typer.Option(help="Port for rest mode")] = settings.PORT,
) -> None:
    """Start the server."""
    setup_logging(settings.LOG_LEVEL)

    url = database_url or settings.DATABASE_URL
    if not url:
        typer.echo("Please provide a database URL as an argument or DATABASE_URL", err=True)
        raise typer.Exit(code=1)

    if mode == "rest":
        import uvicorn

        from sqlbridge.main import create_app

        uvicorn.run(create_app(url), host=host, port=port)
    elif mode == "stdio":
        from sqlbridge.mcp.server import run_server

        asyncio.run(run_server(Database.from_settings(settings, url)))
    else:
        typer.echo(f"Unknown mode: {mode} (expected stdio or rest)", err=True)
        raise typer.Exit(code=2)


def main() -> None:
    """Entry point for the sqlbridge command."""
    app()


if __name__ == "__main__":
    main()
