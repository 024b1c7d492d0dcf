"""CLI commands for growthlab."""

from __future__ import annotations

import asyncio
import sys

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from growthlab import __logo__, __version__

app = typer.Typer(
    name="growthlab",
    help=f"{__logo__} growthlab - growth experiment tracker",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} growthlab v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """growthlab - growth experiment tracker."""
    pass


def _require_database() -> None:
    from growthlab.settings import get_settings

    if not get_settings().database_configured:
        console.print("[red]GROWTHLAB_DATABASE_URL is not set.[/red]")
        raise typer.Exit(1)


# ============================================================================
# Server
# ============================================================================


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (defaults to settings)"),
    port: int = typer.Option(None, "--port", "-p", help="Bind port (defaults to settings)"),
    logs: bool = typer.Option(True, "--logs/--no-logs", help="Show growthlab runtime logs"),
):
    """Run the HTTP API."""
    import uvicorn

    from growthlab.api.app import create_app
    from growthlab.settings import get_settings

    s = get_settings()
    if logs:
        logger.remove()
        logger.add(sys.stderr, level=s.log_level.upper())
        logger.enable("growthlab")
    else:
        logger.disable("growthlab")

    bind_host = host or s.host
    bind_port = port or s.port
    console.print(f"{__logo__} Starting growthlab on [bold]{bind_host}:{bind_port}[/bold]")
    uvicorn.run(create_app(), host=bind_host, port=bind_port, log_level="info" if s.debug else "warning")


# ============================================================================
# Database / identity
# ============================================================================


@app.command("init-db")
def init_db():
    """Create all tables (idempotent)."""
    _require_database()
    from growthlab.storage.database import create_all_tables, dispose_engine

    async def run():
        try:
            await create_all_tables()
        finally:
            await dispose_engine()

    asyncio.run(run())
    console.print("[green]✓[/green] Database tables ensured")


async def _ensure_user(email: str, display_name: str):
    from growthlab.identity.service import SessionService
    from growthlab.storage.database import session_scope

    async with session_scope() as session:
        return await SessionService(session).ensure_user(email, display_name)


@app.command("create-user")
def create_user(
    email: str = typer.Argument(..., help="User e-mail"),
    name: str = typer.Option("", "--name", "-n", help="Display name"),
):
    """Create a user (or show the existing one)."""
    _require_database()
    from growthlab.storage.database import create_all_tables, dispose_engine

    async def run():
        try:
            await create_all_tables()
            return await _ensure_user(email, name)
        finally:
            await dispose_engine()

    user = asyncio.run(run())
    table = Table(title="User")
    table.add_column("id", style="cyan")
    table.add_column("email")
    table.add_column("name")
    table.add_row(user.id, user.email, user.display_name)
    console.print(table)


@app.command("issue-session")
def issue_session(
    email: str = typer.Argument(..., help="User e-mail (created if missing)"),
    ttl_hours: int = typer.Option(None, "--ttl-hours", help="Token lifetime; defaults to settings"),
):
    """Issue a session token for a user and print it."""
    _require_database()
    from growthlab.identity.service import SessionService
    from growthlab.settings import get_settings
    from growthlab.storage.database import create_all_tables, dispose_engine, session_scope

    ttl = ttl_hours if ttl_hours is not None else get_settings().session_ttl_hours

    async def run() -> str:
        try:
            await create_all_tables()
            user = await _ensure_user(email, "")
            async with session_scope() as session:
                return await SessionService(session).issue(user.id, ttl_hours=ttl)
        finally:
            await dispose_engine()

    token = asyncio.run(run())
    console.print(f"[green]✓[/green] Session for {email}:")
    console.print(token)


if __name__ == "__main__":
    app()
