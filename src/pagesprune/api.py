"""Thin Cloudflare Pages API client.

Every remote failure is logged and normalized to ``None``; callers decide
whether to retry or give up.
"""

from __future__ import annotations

from types import TracebackType
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
from rich.markup import escape

from pagesprune.ui import console, err_console

if TYPE_CHECKING:
    from pagesprune.config import Credentials


def deployments_path(project: str, *, page: int, per_page: int) -> str:
    """Collection path for one page of a project's deployments."""
    return f"/pages/projects/{quote(project, safe='')}/deployments?page={page}&per_page={per_page}"


def deployment_path(project: str, deployment_id: str) -> str:
    """Path of a single deployment."""
    return f"/pages/projects/{quote(project, safe='')}/deployments/{quote(deployment_id, safe='')}"


class ApiClient:
    """Authenticated client scoped to one Cloudflare account."""

    def __init__(
        self,
        credentials: Credentials,
        *,
        api_base: str,
        verbose: bool = False,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.verbose = verbose
        self._client = httpx.Client(
            base_url=f"{api_base.rstrip('/')}/accounts/{credentials.account_id}",
            headers={"Authorization": f"Bearer {credentials.api_token}"},
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def call(self, path: str, method: str) -> Any | None:
        """Issue a request and return the decoded JSON body, or None on failure."""
        try:
            response = self._client.request(method, path)
        except httpx.HTTPError as exc:
            err_console.print(f"Failed call to {method} {escape(path)}")
            err_console.print(f"Request error: {escape(str(exc))}")
            return None

        if self.verbose:
            console.print(escape(f"[{response.status_code}] {method} {path}"))

        if response.is_success:
            if not response.content:
                return {}
            try:
                return response.json()
            except ValueError:
                err_console.print(f"Failed call to {method} {escape(path)}")
                err_console.print(f"Got back {response.status_code} with a body that is not JSON")
                return None

        # Error pages can be HTML, so the body is never parsed.
        body = response.text
        err_console.print(f"Failed call to {method} {escape(path)}")
        err_console.print(f"Got back {response.status_code} - body: {escape(body)}")
        return None
