"""Persistent state for the LinkRay CLI.

Remembers the bearer token used for ``analyze`` and ``recent``.
Stored in ``~/.linkray_cli/context.json``.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Optional

from linkray.config import settings


@dataclass
class CliContext:
    api_token: Optional[str] = None
    user_id: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_json(cls, data: str) -> "CliContext":
        try:
            raw = json.loads(data)
            return cls(**raw)
        except (json.JSONDecodeError, TypeError):
            return cls()


def _get_context_path():
    return settings.cli_config_dir / "context.json"


def load_context() -> CliContext:
    """Load the CLI context from disk. Returns defaults if missing or corrupt."""
    path = _get_context_path()
    if not path.exists():
        return CliContext()
    try:
        return CliContext.from_json(path.read_text(encoding="utf-8"))
    except OSError:
        return CliContext()


def save_context(ctx: CliContext) -> None:
    settings.cli_config_dir.mkdir(parents=True, exist_ok=True)
    _get_context_path().write_text(ctx.to_json(), encoding="utf-8")


def resolve_token(explicit: Optional[str]) -> Optional[str]:
    """Prefer an explicit ``--token``; fall back to the saved one."""
    return explicit or load_context().api_token
