"""JSON run report for removal runs."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

    from pagesprune.config import PruneConfig
    from pagesprune.remover import RemovalReport

REMOVAL_REPORT_SCHEMA_VERSION = "pagesprune.removal.v1"


def canonical_dumps(obj: Any) -> str:
    """Serialize a JSON-compatible object with stable formatting."""
    return json.dumps(obj, sort_keys=True, indent=2, ensure_ascii=False)


def write_json(path: Path, obj: Any) -> None:
    """Write canonical JSON as UTF-8."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(canonical_dumps(obj) + "\n", encoding="utf-8")


def build_removal_report(
    config: PruneConfig,
    candidates: Sequence[str],
    report: RemovalReport,
) -> dict[str, Any]:
    return {
        "schema_version": REMOVAL_REPORT_SCHEMA_VERSION,
        "project": config.project,
        "older_than_days": config.older_than_days,
        "excluded_branches": sorted(config.excluded_branches),
        "candidates_file": str(config.candidates_file),
        "candidates": list(candidates),
        "status": "ok" if report.ok else ("interrupted" if report.interrupted else "failed"),
        **report.to_dict(),
    }
