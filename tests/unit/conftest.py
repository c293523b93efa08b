"""Shared stubs for pagesprune unit tests."""

from __future__ import annotations

from typing import Any

import pytest

from pagesprune.config import PruneConfig


class ScriptedClient:
    """Stand-in for ApiClient that replays canned responses per (method, path)."""

    def __init__(self, responses: dict[tuple[str, str], list[Any]]):
        self.responses = {key: list(values) for key, values in responses.items()}
        self.calls: list[tuple[str, str]] = []

    def call(self, path: str, method: str) -> Any:
        key = (method, path)
        self.calls.append(key)
        if key not in self.responses:
            raise AssertionError(f"missing stub for {method} {path}")
        queue = self.responses[key]
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]


@pytest.fixture
def config() -> PruneConfig:
    return PruneConfig(
        project="pages-testing",
        excluded_branches=frozenset({"main"}),
        older_than_days=30,
        page_attempts=3,
        retry_delay_seconds=0.0,
    )


@pytest.fixture
def make_client():
    return ScriptedClient
