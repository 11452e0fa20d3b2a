"""Local API token management (used when AUTH_PROVIDER=local)."""

from typing import Optional

import typer

from linkray.db import get_connection, init_db
from linkray.db.tokens import issue_token, revoke_token

from cli.context import load_context, save_context

token_app = typer.Typer(help="Issue and revoke local API tokens.")


@token_app.command("issue")
def token_issue(
    user_id: str = typer.Argument(..., help="Owner identifier the token authenticates as."),
    email: Optional[str] = typer.Option(None, "--email", help="Optional e-mail for display."),
    save: bool = typer.Option(True, "--save/--no-save", help="Remember the token for later commands."),
) -> None:
    """Create a bearer token for USER_ID and print it."""
    conn = get_connection()
    init_db(conn)
    try:
        token = issue_token(conn, user_id, email=email)
    finally:
        conn.close()

    typer.echo(token)
    if save:
        ctx = load_context()
        ctx.api_token = token
        ctx.user_id = user_id
        save_context(ctx)
        typer.echo(f"✅ Saved as the active token for {user_id}")


@token_app.command("revoke")
def token_revoke(
    token: str = typer.Argument(..., help="Token to revoke."),
) -> None:
    """Revoke a token so it no longer authenticates."""
    conn = get_connection()
    init_db(conn)
    try:
        removed = revoke_token(conn, token)
    finally:
        conn.close()

    if not removed:
        typer.echo("❌ Unknown token.")
        raise typer.Exit(code=1)

    ctx = load_context()
    if ctx.api_token == token:
        save_context(type(ctx)())
    typer.echo("✅ Token revoked.")
