"""Confirmation gate in front of the destructive phase."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from rich.markup import escape

from pagesprune.ui import console

if TYPE_CHECKING:
    from pathlib import Path

CONFIRM_PROMPT = "Are you sure you want to remove all these deployments? [y/N] "
AFFIRMATIVE_ANSWERS = frozenset({"y", "yes"})

AskFn = Callable[[str], str]


def write_candidates(path: Path, deployment_ids: Sequence[str]) -> Path:
    """Overwrite path with one deployment id per line."""
    path.parent.mkdir(parents=True, exist_ok=True)
    content = "".join(f"{deployment_id}\n" for deployment_id in deployment_ids)
    path.write_text(content, encoding="utf-8")
    return path


def is_affirmative(answer: str) -> bool:
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


def _ask_terminal(prompt: str) -> str:
    try:
        return console.input(escape(prompt))
    except EOFError:
        return ""


def confirm_removal(
    deployment_ids: Sequence[str],
    *,
    candidates_file: Path,
    ask: AskFn | None = None,
) -> bool:
    """Persist the candidate list, then ask the operator to confirm.

    The file is written before prompting so it can be reviewed first.
    Anything but y/yes (any case) is a refusal.
    """
    path = write_candidates(candidates_file, deployment_ids)
    console.print(f"Wrote {len(deployment_ids)} deployment id(s) to {escape(str(path))}")

    console.print()
    answer = (ask or _ask_terminal)(CONFIRM_PROMPT)
    console.print()
    return is_affirmative(answer)
