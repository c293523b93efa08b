"""Sequential deletion of confirmed deployments."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from rich.markup import escape

from pagesprune.api import deployment_path
from pagesprune.ui import console, err_console

if TYPE_CHECKING:
    from pagesprune.api import ApiClient
    from pagesprune.config import PruneConfig


@dataclass
class RemovalReport:
    """Per-id outcome of a removal run."""

    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)
    interrupted: bool = False

    @property
    def attempted(self) -> int:
        return len(self.deleted) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.interrupted

    def to_dict(self) -> dict[str, Any]:
        return {
            "deleted": list(self.deleted),
            "failed": list(self.failed),
            "pending": list(self.pending),
            "interrupted": self.interrupted,
        }


def remove_deployments(
    client: ApiClient,
    config: PruneConfig,
    deployment_ids: Sequence[str],
) -> RemovalReport:
    """Delete each deployment in order, one request at a time.

    A failed delete is logged and recorded; it never stops the loop. A
    KeyboardInterrupt stops it and leaves the unconfirmed ids in pending.
    """
    report = RemovalReport()
    try:
        for deployment_id in deployment_ids:
            result = client.call(deployment_path(config.project, deployment_id), "DELETE")
            if result is None:
                err_console.print(f"Failed to delete {escape(deployment_id)}")
                report.failed.append(deployment_id)
            else:
                console.print(f"Successfully deleted {escape(deployment_id)}")
                report.deleted.append(deployment_id)
    except KeyboardInterrupt:
        report.interrupted = True
        report.pending = list(deployment_ids[report.attempted:])
    return report
