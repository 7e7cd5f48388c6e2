from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .gcloud import Instance


class FilterError(ValueError):
    """Conflicting or malformed filter arguments."""


class SelectionError(RuntimeError):
    """No usable selection: zero/ambiguous matches or an aborted chooser."""


# (labels, initial cursor) -> chosen index
Chooser = Callable[[Sequence[str], int], Optional[int]]

ALL = "all"
HOST = "host"
PREFIX = "prefix"
REGEX = "regex"


@dataclass(frozen=True)
class FilterSpec:
    kind: str = ALL
    text: str = ""
    compiled: re.Pattern[str] | None = None

    @classmethod
    def build(cls, host: str | None = None, pattern: str | None = None, regex: bool = False) -> FilterSpec:
        """Validate filter arguments. Runs before any gcloud call."""
        if host is not None:
            if not host:
                raise FilterError("--host needs a VM name")
            if pattern:
                raise FilterError(f"--host {host!r} cannot be combined with filter {pattern!r}")
            if regex:
                raise FilterError("--host is an exact name and cannot be combined with --regex")
            return cls(kind=HOST, text=host)
        if not pattern:
            return cls()
        if regex:
            try:
                compiled = re.compile(pattern)
            except re.error as e:
                raise FilterError(f"invalid filter regex {pattern!r}: {e}") from e
            return cls(kind=REGEX, text=pattern, compiled=compiled)
        return cls(kind=PREFIX, text=pattern)

    def describe(self) -> str:
        if self.kind == HOST:
            return f"exact host {self.text!r}"
        if self.kind == REGEX:
            return f"regex {self.text!r}"
        return repr(self.text)


def _prefix_matches(candidates: Sequence[Instance], prefix: str) -> list[Instance]:
    out: list[Instance] = []
    for inst in candidates:
        if inst.name == prefix:
            # An exact name wins over every other prefix match.
            return [inst]
        if inst.name.startswith(prefix):
            out.append(inst)
    return out


def apply_filter(candidates: Sequence[Instance], spec: FilterSpec) -> list[Instance]:
    """Narrow `candidates`, preserving order. Raises SelectionError on zero matches."""
    if spec.kind == HOST:
        matched = [i for i in candidates if i.name == spec.text]
        if not matched:
            raise SelectionError(f"no VMs found for exact host {spec.text!r}")
        if len(matched) > 1:
            raise SelectionError(f"multiple VMs found for exact host {spec.text!r}")
        return matched

    if spec.compiled is not None:
        matched = [i for i in candidates if spec.compiled.search(i.name)]
    elif spec.kind == PREFIX:
        matched = _prefix_matches(candidates, spec.text)
    else:
        matched = list(candidates)

    if not matched:
        if spec.text:
            raise SelectionError(f"no VMs found matching {spec.describe()}")
        raise SelectionError("no VMs found")
    return matched


def format_labels(candidates: Sequence[Instance]) -> list[str]:
    width = max((len(i.name) for i in candidates), default=0)
    return [f"{i.name.ljust(width)}  {i.short_zone}" for i in candidates]


def initial_cursor(candidates: Sequence[Instance], preferred: Instance | None) -> int:
    if preferred is None:
        return 0
    for idx, inst in enumerate(candidates):
        if inst.name == preferred.name:
            return idx
    return 0


def select_instance(
    candidates: Sequence[Instance],
    chooser: Chooser,
    preferred: Instance | None = None,
) -> Instance:
    """
    Pick exactly one instance.

    A single candidate is returned without prompting. Otherwise `chooser` is
    shown the formatted labels with the cursor on `preferred` (if present).
    """
    if not candidates:
        raise SelectionError("no VMs found")
    if len(candidates) == 1:
        return candidates[0]

    labels = format_labels(candidates)
    try:
        idx = chooser(labels, initial_cursor(candidates, preferred))
    except (KeyboardInterrupt, EOFError) as e:
        raise SelectionError("selector error: aborted") from e
    if idx is None:
        raise SelectionError("selector error: aborted")
    if not isinstance(idx, int) or not 0 <= idx < len(candidates):
        raise SelectionError(f"selector error: invalid choice {idx!r}")
    return candidates[idx]
