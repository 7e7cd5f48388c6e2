from __future__ import annotations

import os
import shlex
import subprocess


def format_cmd(cmd: list[str]) -> str:
    """Human-readable command string for display/logging."""
    if os.name == "nt":
        return subprocess.list2cmdline(cmd)
    return " ".join(shlex.quote(c) for c in cmd)


def short_zone(zone: str) -> str:
    """
    Trailing segment of a zone resource path.

    gcloud reports zones as full URLs, e.g.
    https://www.googleapis.com/compute/v1/projects/p/zones/us-east1-b -> us-east1-b
    """
    s = (zone or "").strip().rstrip("/")
    return s.rsplit("/", 1)[-1]


def split_remote_command(argv: list[str]) -> tuple[list[str], list[str]]:
    """Split argv at the first `--`: (gssh args, remote command)."""
    if "--" not in argv:
        return list(argv), []
    i = argv.index("--")
    return list(argv[:i]), list(argv[i + 1 :])
