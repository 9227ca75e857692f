"""Save / restore hook for the client registry.

This module defines a *narrow* persistence interface (:class:`ConfigStore`)
and a JSON-file implementation (:class:`DiskConfigStore`).

* **Atomicity** – writes use *temp-file + os.replace*.
* **Full overwrite** – every save replaces the whole list; concurrent
  savers race and the last writer wins.

Environment variables
---------------------
GITHUB_AUTH_STORAGE_PATH
    JSON file holding the client list.
    Defaults to ``~/.simple-github-auth/clients.json`` when unset.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

_LOG = logging.getLogger("simple-github-auth.auth.store")


def _atomic_write(path: Path, data: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as fh:
        json.dump(data, fh, separators=(",", ":"), sort_keys=True)
    os.replace(tmp, path)  # atomic on POSIX


@runtime_checkable
class ConfigStore(Protocol):
    """Minimal persistence contract for the client list."""

    def load(self) -> list[dict[str, Any]]: ...

    def save(self, items: list[dict[str, Any]]) -> None: ...


class DiskConfigStore(ConfigStore):
    """JSON-file implementation of :class:`ConfigStore`."""

    def __init__(self, path: str | os.PathLike | None = None) -> None:
        self.path = Path(
            path
            or os.getenv("GITHUB_AUTH_STORAGE_PATH")
            or Path.home() / ".simple-github-auth" / "clients.json"
        ).expanduser()

    def load(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, list):
            raise ValueError(f"{self.path} does not contain a JSON list")
        return data

    def save(self, items: list[dict[str, Any]]) -> None:
        _atomic_write(self.path, items)
        _LOG.debug("Saved %d client config(s) to %s", len(items), self.path)
