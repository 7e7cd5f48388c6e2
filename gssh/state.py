from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping

from .gcloud import Instance, instance_from_dict


ENV_STATE_FILE = "GSSH_STATE_FILE"


def home_env_var() -> str:
    return "USERPROFILE" if os.name == "nt" else "HOME"


def default_state_path(environ: Mapping[str, str] | None = None) -> Path | None:
    """
    Resolve the state file path, or None when it cannot be located.

    Order: $GSSH_STATE_FILE, then <home>/.gssh/state.json.
    """
    env = os.environ if environ is None else environ
    explicit = env.get(ENV_STATE_FILE)
    if explicit:
        return Path(explicit).expanduser()
    home = env.get(home_env_var())
    if not home:
        return None
    return Path(home) / ".gssh" / "state.json"


def resolve_state_path(state_file: str | Path | None, environ: Mapping[str, str] | None = None) -> Path | None:
    if state_file is None:
        return default_state_path(environ)
    return Path(state_file).expanduser()


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class PreviousLookup:
    status: LookupStatus
    instance: Instance | None = None
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


def load_previous(path: Path | None) -> PreviousLookup:
    """Read the remembered instance. Never raises; the caller decides severity."""
    if path is None:
        return PreviousLookup(LookupStatus.NOT_FOUND, error="cannot locate state file: home directory not set")
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return PreviousLookup(LookupStatus.NOT_FOUND)
    except (OSError, UnicodeDecodeError) as e:
        return PreviousLookup(LookupStatus.ERROR, error=f"read {path}: {e}")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return PreviousLookup(LookupStatus.ERROR, error=f"parse {path}: {e}")

    if not isinstance(data, dict) or data.get("previous") is None:
        return PreviousLookup(LookupStatus.NOT_FOUND)
    try:
        inst = instance_from_dict(data["previous"])
    except ValueError as e:
        return PreviousLookup(LookupStatus.ERROR, error=f"{path}: {e}")
    return PreviousLookup(LookupStatus.FOUND, instance=inst)


def save_previous(path: Path | None, instance: Instance) -> None:
    """Overwrite the state file with `instance`. Raises OSError on failure."""
    if path is None:
        raise OSError("cannot locate state file: home directory not set")
    path.parent.mkdir(parents=True, exist_ok=True)
    state = {"previous": {"Name": instance.name, "Zone": instance.zone}}

    fd, tmp = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            json.dump(state, f, ensure_ascii=False, indent=2)
            f.write("\n")
        os.replace(tmp, path)
    finally:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
