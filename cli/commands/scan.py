"""Analysis commands: run a scan and list recent ones.

Registered as top-level commands by ``cli.main``.
"""

from typing import Optional

import typer

from linkray.db import get_connection, init_db
from linkray.errors import LinkRayError
from linkray.service import build_service

from cli.context import resolve_token
from cli.rendering import render_recent, render_result


def analyze(
    url: str = typer.Argument(..., help="URL to analyze (scheme optional)."),
    deep: bool = typer.Option(False, "--deep", help="Crawl the site instead of one page."),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token (defaults to the saved one)."),
) -> None:
    """Analyze a URL and print its trust assessment."""
    conn = get_connection()
    init_db(conn)
    try:
        service = build_service(conn)
        typer.echo(f"🔍 Analyzing {url} ({'deep' if deep else 'quick'}) …")
        result = service.analyze(url, credential=resolve_token(token), deep=deep)
        typer.echo(render_result(result))
    except LinkRayError as e:
        typer.echo(f"❌ {e.kind.value}: {e.message}")
        raise typer.Exit(code=1)
    finally:
        conn.close()


def recent(
    limit: int = typer.Option(10, "--limit", min=1, max=100, help="Number of scans to show."),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token (defaults to the saved one)."),
) -> None:
    """List your most recent scans, newest first."""
    conn = get_connection()
    init_db(conn)
    try:
        service = build_service(conn)
        scans = service.list_recent(credential=resolve_token(token), limit=limit)
        if not scans:
            typer.echo("No scans found.")
            return
        typer.echo(render_recent(scans))
    except LinkRayError as e:
        typer.echo(f"❌ {e.kind.value}: {e.message}")
        raise typer.Exit(code=1)
    finally:
        conn.close()
