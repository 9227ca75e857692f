"""Settings loaded from environment variables."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Tuple

from simple_github_auth.auth.models import ClientConfig
from simple_github_auth.auth.urls import ACCESS_TOKEN_URL, AUTHORIZE_URL

logger = logging.getLogger("simple-github-auth.utils.environment")

_TRUTHY: Final[Tuple[str, ...]] = ("true", "1", "yes", "y", "on")

DEFAULT_EXCHANGE_TIMEOUT: Final[float] = 10.0


def _truthy(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _parse_clients(raw: str, source: str) -> list[ClientConfig]:
    """Parse a JSON list of client configs; fail fast on malformed input."""
    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{source} is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise ValueError(f"{source} must be a JSON list of client configs")
    return [ClientConfig.from_dict(item) for item in data]


def load_static_clients() -> list[ClientConfig]:
    """Return the client configs declared through the environment.

    ``GITHUB_AUTH_CLIENTS`` holds an inline JSON list and
    ``GITHUB_AUTH_CLIENTS_FILE`` points to a file containing one; both are
    read when set, inline entries first.
    """
    clients: list[ClientConfig] = []

    inline = os.getenv("GITHUB_AUTH_CLIENTS")
    if inline:
        clients.extend(_parse_clients(inline, "GITHUB_AUTH_CLIENTS"))

    clients_file = os.getenv("GITHUB_AUTH_CLIENTS_FILE")
    if clients_file:
        path = Path(clients_file).expanduser()
        clients.extend(
            _parse_clients(path.read_text(encoding="utf-8"), str(path))
        )

    if clients:
        logger.info("Loaded %d static client config(s)", len(clients))
    return clients


@dataclass(frozen=True)
class AuthSettings:
    """Runtime configuration of the GitHub auth server."""

    root_path: str = "/"
    login_path: str = "github/login/"
    auth_path: str = "github/auth/"
    info_path: str = "github/"
    result_path: str = "github/result/"
    register_client_path: str = "github/register-client/"
    active: bool = True
    authorize_url: str = AUTHORIZE_URL
    access_token_url: str = ACCESS_TOKEN_URL
    exchange_timeout: float = DEFAULT_EXCHANGE_TIMEOUT
    storage_path: str | None = None
    log_level: str = "WARNING"
    client_configs: tuple[ClientConfig, ...] = field(default_factory=tuple)

    @classmethod
    def from_env(cls) -> "AuthSettings":
        """Build settings from ``GITHUB_AUTH_*`` environment variables."""
        timeout_raw = os.getenv("GITHUB_AUTH_EXCHANGE_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_EXCHANGE_TIMEOUT
        except ValueError:
            logger.warning(
                "Invalid GITHUB_AUTH_EXCHANGE_TIMEOUT=%r, using %ss",
                timeout_raw,
                DEFAULT_EXCHANGE_TIMEOUT,
            )
            timeout = DEFAULT_EXCHANGE_TIMEOUT

        return cls(
            root_path=os.getenv("GITHUB_AUTH_ROOT_PATH", "/"),
            active=_truthy(os.getenv("GITHUB_AUTH_ACTIVE"), default=True),
            authorize_url=os.getenv("GITHUB_AUTHORIZE_URL", AUTHORIZE_URL),
            access_token_url=os.getenv("GITHUB_ACCESS_TOKEN_URL", ACCESS_TOKEN_URL),
            exchange_timeout=timeout,
            storage_path=os.getenv("GITHUB_AUTH_STORAGE_PATH") or None,
            log_level=os.getenv("GITHUB_AUTH_LOG_LEVEL", "WARNING"),
            client_configs=tuple(load_static_clients()),
        )
