"""LinkRay CLI: entry-point for all backend operations.

Usage:
    python cli/main.py --help

Commands:
    db init     → create the SQLite database
    analyze     → quick or deep trust assessment of a URL
    recent      → list your latest scans
    token       → issue / revoke local API tokens
    serve       → run the HTTP API
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from linkray.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import typer

from linkray.config import settings
from linkray.db import get_connection, init_db
from linkray.logging_setup import configure_logging

from cli.commands.scan import analyze, recent
from cli.commands.token import token_app

app = typer.Typer(
    name="linkray",
    help="LinkRay: AI trust assessment for any URL.",
    no_args_is_help=True,
)


@app.callback()
def main() -> None:
    configure_logging(settings.log_level)


# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# Analysis commands
# ---------------------------------------------------------------------------
app.command("analyze")(analyze)
app.command("recent")(recent)

# ---------------------------------------------------------------------------
# Token commands
# ---------------------------------------------------------------------------
app.add_typer(token_app, name="token")


# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
) -> None:
    """Run the LinkRay HTTP API with uvicorn."""
    import uvicorn

    typer.echo(f"[serve] Listening on http://{host}:{port}")
    uvicorn.run("linkray.api.app:app", host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
