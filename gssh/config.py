from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping


ENV_PREFIX = "GSSH_"
ENV_USER = "GSSH_USER"
ENV_ENV_FILE = "GSSH_ENV_FILE"


@dataclass(frozen=True)
class Settings:
    """Everything resolved once at startup and passed through the run."""

    user: str
    project: str
    state_path: Path | None
    dry_run: bool = False


def resolve_user(override: str | None, environ: Mapping[str, str] | None = None) -> str:
    """
    Effective ssh username.

    `override` is None when --user was not given. An explicit empty string is
    kept as-is: it means "let gcloud choose its default user".
    """
    if override is not None:
        return override
    env = os.environ if environ is None else environ
    return env.get(ENV_USER, "")


def parse_env_line(line: str) -> tuple[str, str] | None:
    """Parse one `.env` line; only GSSH_* keys are of interest."""
    s = line.strip()
    if s.startswith("export "):
        s = s[len("export ") :]
    key, sep, value = s.partition("=")
    key = key.strip()
    if not sep or not key.startswith(ENV_PREFIX):
        return None
    value = value.strip()
    if value[:1] in ("'", "\""):
        end = value.find(value[0], 1)
        if end > 0:
            return key, value[1:end]
    # Unquoted: ` #` starts a comment.
    return key, value.split(" #", 1)[0].rstrip()


def find_dotenv(start: Path) -> Path | None:
    for d in (start.resolve(), *start.resolve().parents):
        if (d / ".env").is_file():
            return d / ".env"
    return None


def load_dotenv() -> None:
    # Runs before option parsing so GSSH_* envvar options can see it.
    # Real environment variables always win.
    env_file = os.getenv(ENV_ENV_FILE)
    path = Path(env_file).expanduser() if env_file else find_dotenv(Path.cwd())
    if path is None:
        return
    try:
        text = path.read_text(encoding="utf-8")
    except (FileNotFoundError, UnicodeDecodeError):
        return
    for line in text.splitlines():
        parsed = parse_env_line(line)
        if parsed:
            os.environ.setdefault(*parsed)
