from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Any

from .util import format_cmd, short_zone


logger = logging.getLogger(__name__)

GCLOUD = "gcloud"


class GcloudError(RuntimeError):
    """A gcloud invocation failed or produced output we could not parse."""

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output

    def __str__(self) -> str:
        msg = super().__str__()
        out = (self.output or "").strip()
        if out:
            return f"{msg}\n{out}"
        return msg


@dataclass(frozen=True)
class Instance:
    name: str
    zone: str

    @property
    def short_zone(self) -> str:
        return short_zone(self.zone)


def _run(args: list[str]) -> subprocess.CompletedProcess[str]:
    cmd = [GCLOUD, *args]
    logger.debug("Running %s", format_cmd(cmd))
    try:
        # Undecodable bytes must reach the JSON parser, not abort the read.
        return subprocess.run(cmd, capture_output=True, text=True, errors="replace")
    except OSError as e:
        raise GcloudError(f"{format_cmd(cmd)} failed: {e}") from e


def _combined(proc: subprocess.CompletedProcess[str]) -> str:
    return "".join(part for part in (proc.stdout, proc.stderr) if part)


def get_config(name: str) -> str:
    """Read a gcloud config property, e.g. `project`."""
    proc = _run(["config", "get", name])
    if proc.returncode != 0:
        raise GcloudError(
            f"gcloud config get {name} error: exit status {proc.returncode}",
            _combined(proc),
        )
    return (proc.stdout or "").strip()


def _field(rec: dict[str, Any], key: str) -> Any:
    # gcloud emits lowercase keys; the state file uses capitalized ones.
    for k, v in rec.items():
        if isinstance(k, str) and k.lower() == key:
            return v
    return None


def instance_from_dict(rec: Any) -> Instance:
    if not isinstance(rec, dict):
        raise ValueError(f"instance record is not an object: {rec!r}")
    name = _field(rec, "name")
    zone = _field(rec, "zone")
    if not isinstance(name, str) or not name:
        raise ValueError(f"instance record missing name: {rec!r}")
    if not isinstance(zone, str) or not zone:
        raise ValueError(f"instance {name} missing zone")
    return Instance(name=name, zone=zone)


def parse_instances(raw: str) -> list[Instance]:
    """Parse `instances list --format=json` output, sorted by name."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise GcloudError(f"unmarshal instances error: {e}", raw) from e
    if not isinstance(data, list):
        raise GcloudError("unmarshal instances error: expected a JSON array", raw)

    out: list[Instance] = []
    for rec in data:
        try:
            out.append(instance_from_dict(rec))
        except ValueError as e:
            raise GcloudError(f"unmarshal instances error: {e}", raw) from e
    # sorted() is stable: equal names keep listing order.
    return sorted(out, key=lambda i: i.name)


def list_instances() -> list[Instance]:
    proc = _run(["compute", "instances", "list", "--format=json"])
    if proc.returncode != 0:
        raise GcloudError(
            f"gcloud compute instances list error: exit status {proc.returncode}",
            _combined(proc),
        )
    return parse_instances(proc.stdout or "")


def ssh_target(host: str, user: str) -> str:
    if user:
        return f"{user}@{host}"
    return host


def ssh_command(instance: Instance, user: str = "", remote_command: list[str] | None = None) -> list[str]:
    cmd = [
        GCLOUD,
        "compute",
        "ssh",
        "--zone",
        instance.short_zone,
        ssh_target(instance.name, user),
    ]
    if remote_command:
        cmd.append("--")
        cmd += list(remote_command)
    return cmd
