"""Interactive single-choice picker used when several VMs match."""

from __future__ import annotations

from typing import Sequence

import questionary
from questionary import Style


STYLE = Style(
    [
        ("qmark", "fg:#00d787 bold"),
        ("question", "bold"),
        ("pointer", "fg:#00d787 bold"),
        ("highlighted", "fg:#00d787"),
        ("instruction", "fg:#858585"),
    ]
)


def choose(labels: Sequence[str], cursor: int = 0) -> int | None:
    """Return the chosen index, or None if the user aborted (Ctrl-C)."""
    choices = [questionary.Choice(title=label, value=i) for i, label in enumerate(labels)]
    default = choices[cursor] if 0 <= cursor < len(choices) else None
    return questionary.select(
        "Select VM",
        choices=choices,
        default=default,
        style=STYLE,
    ).ask()
