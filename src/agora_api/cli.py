"""AgoraCloud API command line."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Annotated

import typer

from agora_api.common.ids import InvalidIdError, parse_id
from agora_api.settings import get_settings

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="AgoraCloud API CLI (start, token, init-db).",
)


@app.command(name="start", help="Serve the API with uvicorn.")
def start(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", help="Port to bind."),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes."),
) -> None:
    import uvicorn

    uvicorn.run(
        "agora_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


@app.command(name="token", help="Mint a bearer token for a user id.")
def token(
    user_id: Annotated[str, typer.Argument(help="Subject of the token.")],
    minutes: int = typer.Option(60, "--minutes", min=1, help="Lifetime in minutes."),
) -> None:
    from agora_api.core.auth import create_access_token

    try:
        subject = parse_id(user_id, field="user_id")
    except InvalidIdError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc
    typer.echo(create_access_token(subject, get_settings(), expires_in=timedelta(minutes=minutes)))


async def _init_db() -> str | None:
    from agora_api.db import Database, DatabaseConfig
    from agora_api.features.users.service import ensure_bootstrap_admin

    settings = get_settings()
    database = Database()
    database.init(DatabaseConfig.from_settings(settings))
    try:
        await database.create_all()
        return await ensure_bootstrap_admin(database.sessionmaker, settings.admin_email)
    finally:
        await database.dispose()


@app.command(name="init-db", help="Create the schema and the bootstrap admin.")
def init_db() -> None:
    admin_id = asyncio.run(_init_db())
    typer.echo("schema ready")
    if admin_id is not None:
        typer.echo(f"bootstrap admin: {admin_id}")


def main() -> None:
    app()


__all__ = ["app", "main"]
