"""Configuration loading for pagesprune.

Settings come from an optional config file in the working directory
(``.pagesprune.toml`` preferred, ``.pagesprune.yaml``/``.yml`` as fallback)
with command line overrides layered on top. Credentials are read from the
environment only.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import yaml
from jsonschema.validators import Draft202012Validator

ACCOUNT_ID_ENV = "ACCOUNT_ID"
API_TOKEN_ENV = "API_TOKEN"

DEFAULT_API_BASE = "https://api.cloudflare.com/client/v4"
DEFAULT_CANDIDATES_FILE = Path("deployments.txt")
DEFAULT_OLDER_THAN_DAYS = 30
DEFAULT_PER_PAGE = 25
DEFAULT_PAGE_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.0
DEFAULT_REQUEST_TIMEOUT = 30.0

CONFIG_FILENAMES = (".pagesprune.toml", ".pagesprune.yaml", ".pagesprune.yml")

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "project": {"type": "string", "minLength": 1},
        "exclude_branches": {"type": "array", "items": {"type": "string"}},
        "older_than_days": {"type": "integer", "minimum": 0},
        "verbose": {"type": "boolean"},
        "candidates_file": {"type": "string", "minLength": 1},
        "api_base": {"type": "string", "minLength": 1},
        "per_page": {"type": "integer", "minimum": 1},
        "page_attempts": {"type": "integer", "minimum": 1},
        "retry_delay_seconds": {"type": "number", "minimum": 0},
        "request_timeout": {"type": "number", "exclusiveMinimum": 0},
    },
}


class ConfigError(RuntimeError):
    """Raised when credentials or settings are missing or invalid."""


@dataclass(frozen=True)
class Credentials:
    """Pre-issued account credentials for the Cloudflare API."""

    account_id: str
    api_token: str = field(repr=False)


@dataclass(frozen=True)
class PruneConfig:
    """Settings for one pruning run."""

    project: str
    excluded_branches: frozenset[str] = frozenset()
    older_than_days: int = DEFAULT_OLDER_THAN_DAYS
    verbose: bool = False
    candidates_file: Path = DEFAULT_CANDIDATES_FILE
    api_base: str = DEFAULT_API_BASE
    per_page: int = DEFAULT_PER_PAGE
    page_attempts: int = DEFAULT_PAGE_ATTEMPTS
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def cutoff(self, now: datetime) -> datetime:
        """Return the instant before which a deployment counts as stale."""
        return now - timedelta(days=self.older_than_days)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PruneConfig":
        """Validate a settings mapping and build a PruneConfig from it."""
        validate_config_data(data)
        if "project" not in data:
            raise ConfigError(
                "No project configured; pass --project or set 'project' in .pagesprune.toml"
            )

        return cls(
            project=data["project"],
            excluded_branches=frozenset(data.get("exclude_branches", [])),
            older_than_days=data.get("older_than_days", DEFAULT_OLDER_THAN_DAYS),
            verbose=data.get("verbose", False),
            candidates_file=Path(data.get("candidates_file", DEFAULT_CANDIDATES_FILE)),
            api_base=data.get("api_base", DEFAULT_API_BASE),
            per_page=data.get("per_page", DEFAULT_PER_PAGE),
            page_attempts=data.get("page_attempts", DEFAULT_PAGE_ATTEMPTS),
            retry_delay_seconds=float(data.get("retry_delay_seconds", DEFAULT_RETRY_DELAY_SECONDS)),
            request_timeout=float(data.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)),
        )


def load_credentials(environ: Mapping[str, str] | None = None) -> Credentials:
    """Read account id and API token from the environment.

    Raises:
        ConfigError: If either variable is unset or empty
    """
    env = os.environ if environ is None else environ
    for name in (ACCOUNT_ID_ENV, API_TOKEN_ENV):
        if not env.get(name):
            raise ConfigError(f'Please specify the "{name}" env var!')
    return Credentials(account_id=env[ACCOUNT_ID_ENV], api_token=env[API_TOKEN_ENV])


def validate_config_data(data: Mapping[str, Any]) -> None:
    """Validate a settings mapping against CONFIG_SCHEMA.

    Raises:
        ConfigError: Listing every violation found
    """
    validator = Draft202012Validator(CONFIG_SCHEMA)
    errors = sorted(validator.iter_errors(dict(data)), key=lambda e: list(e.path))
    if not errors:
        return

    messages = [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]
    raise ConfigError(
        "Invalid configuration:\n" + "\n".join(f"  - {msg}" for msg in messages)
    )


def load_config_file(path: Path) -> dict[str, Any]:
    """Load a TOML or YAML config file into a dict.

    Raises:
        ConfigError: If the file is unreadable, malformed or of unknown type
    """
    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
        elif suffix in (".yaml", ".yml"):
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        else:
            raise ConfigError(f"Unsupported config file type: {path}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed TOML config at {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML config at {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def discover_config_file(cwd: Path) -> Path | None:
    """Return the first config file found in cwd, if any."""
    for name in CONFIG_FILENAMES:
        candidate = cwd / name
        if candidate.is_file():
            return candidate
    return None


def resolve_config(
    *,
    config_path: Path | None,
    cwd: Path,
    overrides: Mapping[str, Any],
) -> PruneConfig:
    """Merge file settings with command line overrides.

    Overrides whose value is None are ignored, so unset options keep the
    file (or default) value.
    """
    path = config_path or discover_config_file(cwd)
    data: dict[str, Any] = load_config_file(path) if path is not None else {}
    data.update({key: value for key, value in overrides.items() if value is not None})
    return PruneConfig.from_dict(data)
