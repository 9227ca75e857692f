"""In-memory registry of client configurations.

The registry is the only owner of :class:`ClientConfig` objects. Other
components look configs up for the duration of a single operation and never
keep them.

* **Expiration** – every lookup sweeps expired configs first, so an expired
  config is never returned and never survives a lookup.
* **Concurrency** – a re-entrant lock guards the backing list. ``claim``
  performs lookup and one-time consumption in one critical section so that
  concurrent callbacks for the same one-time app cannot both proceed.
* **Order** – insertion order; the first config with a matching ``app_id``
  wins.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Iterator, Mapping

from simple_github_auth.auth.clock import Clock, default_clock
from simple_github_auth.auth.models import ClientConfig

_LOG = logging.getLogger("simple-github-auth.auth.registry")


class ClientRegistry:
    """Ordered, lock-guarded collection of :class:`ClientConfig`."""

    def __init__(
        self,
        configs: Iterable[ClientConfig] | None = None,
        *,
        clock: Clock = default_clock,
    ) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._configs: list[ClientConfig] = list(configs or [])

    # ------------------------------------------------------------------ #
    # Introspection                                                      #
    # ------------------------------------------------------------------ #
    @property
    def configs(self) -> tuple[ClientConfig, ...]:
        """Snapshot of the backing list, expired entries included."""
        with self._lock:
            return tuple(self._configs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._configs)

    def __iter__(self) -> Iterator[ClientConfig]:
        return iter(self.configs)

    # ------------------------------------------------------------------ #
    # Mutation                                                           #
    # ------------------------------------------------------------------ #
    def add(self, config: ClientConfig) -> None:
        """Append *config*; no dedup and no field validation."""
        with self._lock:
            self._configs.append(config)
        _LOG.debug(
            "Added client config app_id=%s one_time=%s", config.app_id, config.one_time
        )

    def remove(self, config: ClientConfig) -> None:
        """Remove *config* by identity; no-op when it is not registered."""
        with self._lock:
            self._configs = [c for c in self._configs if c is not config]

    def sweep_expired(self) -> int:
        """Drop every config whose expiration has passed; return the count."""
        now = self._clock()
        with self._lock:
            kept = [c for c in self._configs if not c.is_expired(now)]
            removed = len(self._configs) - len(kept)
            self._configs = kept
        if removed:
            _LOG.info("Swept %d expired client config(s)", removed)
        return removed

    # ------------------------------------------------------------------ #
    # Lookup                                                             #
    # ------------------------------------------------------------------ #
    def find(self, app_id: str | None) -> ClientConfig | None:
        """Return the first live config for *app_id*, or ``None``."""
        with self._lock:
            self.sweep_expired()
            for config in self._configs:
                if config.app_id == app_id:
                    return config
        return None

    def claim(self, app_id: str | None) -> ClientConfig | None:
        """Look up *app_id* and consume it if it is a one-time config.

        Lookup and removal happen under the same lock: for a one-time config
        exactly one caller receives it, every later caller gets ``None``.
        """
        with self._lock:
            config = self.find(app_id)
            if config is not None and config.one_time:
                self.remove(config)
                _LOG.info("Consumed one-time client config app_id=%s", app_id)
        return config

    # ------------------------------------------------------------------ #
    # Persistence hand-off                                               #
    # ------------------------------------------------------------------ #
    def export(self) -> list[dict[str, Any]]:
        """Serialise the full list verbatim (expired entries included)."""
        with self._lock:
            return [c.to_dict() for c in self._configs]

    def import_(
        self, items: Iterable[Mapping[str, Any]], *, replace: bool = True
    ) -> None:
        """Load configs produced by :meth:`export`.

        With ``replace=True`` (default) the current list is overwritten.
        """
        loaded = [ClientConfig.from_dict(item) for item in items]
        with self._lock:
            if replace:
                self._configs = loaded
            else:
                self._configs.extend(loaded)
        _LOG.debug("Imported %d client config(s) replace=%s", len(loaded), replace)
