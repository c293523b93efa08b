"""Paginated listing of removable deployments."""

from __future__ import annotations

import time
from collections.abc import Callable, Collection
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from rich.markup import escape

from pagesprune.api import deployments_path
from pagesprune.ui import console, err_console

if TYPE_CHECKING:
    from pagesprune.api import ApiClient
    from pagesprune.config import PruneConfig


class ListingError(RuntimeError):
    """Raised when the deployment list cannot be fetched completely."""


@dataclass(frozen=True)
class Deployment:
    """The fields of a remote deployment this tool cares about."""

    id: str
    created_on: datetime
    branch: str | None
    commit_message: str | None
    commit_hash: str | None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> Deployment:
        try:
            metadata = (payload.get("deployment_trigger") or {}).get("metadata") or {}
            return cls(
                id=str(payload["id"]),
                created_on=parse_timestamp(payload["created_on"]),
                branch=metadata.get("branch"),
                commit_message=metadata.get("commit_message"),
                commit_hash=metadata.get("commit_hash"),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ListingError(f"Malformed deployment in API response: {exc!r}") from exc


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def is_removable(
    deployment: Deployment,
    *,
    cutoff: datetime,
    excluded_branches: Collection[str],
) -> bool:
    """True when the deployment is older than cutoff and not on an excluded branch."""
    return deployment.created_on < cutoff and deployment.branch not in excluded_branches


def describe(deployment: Deployment) -> str:
    return f"{deployment.id} - [{deployment.branch}] {deployment.commit_message} ({deployment.commit_hash})"


def fetch_page(
    client: ApiClient,
    config: PruneConfig,
    page: int,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> list[dict[str, Any]]:
    """Fetch one page of deployments, retrying up to config.page_attempts times.

    Raises:
        ListingError: When every attempt failed
    """
    path = deployments_path(config.project, page=page, per_page=config.per_page)
    attempts = config.page_attempts

    for attempt in range(1, attempts + 1):
        payload = client.call(path, "GET")
        if payload is not None:
            result = payload.get("result") if isinstance(payload, dict) else None
            if isinstance(result, list):
                return result
            err_console.print(f"Unexpected response for deployments page {page}: no result list")

        if attempt < attempts:
            err_console.print(
                f"Failed to fetch deployments page {page} (attempt {attempt}/{attempts}), retrying..."
            )
            sleep(config.retry_delay_seconds * attempt)

    raise ListingError(f"Failed to fetch deployments page {page} after {attempts} attempt(s)")


def list_removable_deployments(
    client: ApiClient,
    config: PruneConfig,
    *,
    now: datetime | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[str]:
    """Walk every page from 1 until an empty one and collect removable ids.

    Order follows the API: page order, then order within the page.
    """
    cutoff = config.cutoff(now or datetime.now(UTC))
    removable: list[str] = []

    page = 1
    while True:
        items = fetch_page(client, config, page, sleep=sleep)
        if not items:
            break

        for item in items:
            deployment = Deployment.from_api(item)
            if is_removable(deployment, cutoff=cutoff, excluded_branches=config.excluded_branches):
                console.print(escape(describe(deployment)))
                removable.append(deployment.id)
        page += 1

    return removable
