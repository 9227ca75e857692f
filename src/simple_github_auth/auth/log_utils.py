"""Per-flow loggers for the GitHub auth service.

Log records from the OAuth flow carry a fixed set of context attributes:
``app_id``, ``flow`` (``register``, ``exchange``) and ``correlation_id``.
Anything else handed to :func:`get_auth_logger` is dropped, which keeps
client secrets, codes and tokens out of structured log output.

>>> log = get_auth_logger(app_id="app1", flow="exchange")
>>> log.info("Exchanging code")
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, MutableMapping

AUTH_CONTEXT_KEYS = ("app_id", "flow", "correlation_id")


class _AuthLoggerAdapter(logging.LoggerAdapter):
    def __init__(self, logger: logging.Logger, context: Mapping[str, Any]):
        allowed = {
            key: context[key]
            for key in AUTH_CONTEXT_KEYS
            if context.get(key) is not None
        }
        super().__init__(logger, allowed)

    def process(self, msg: str, kwargs: MutableMapping[str, Any]):
        # Values passed at the call site win over the adapter context
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_auth_logger(
    *,
    base_logger_name: str = "simple-github-auth.auth",
    app_id: str | None = None,
    flow: str | None = None,
    correlation_id: str | None = None,
) -> logging.LoggerAdapter:
    return _AuthLoggerAdapter(
        logging.getLogger(base_logger_name),
        {"app_id": app_id, "flow": flow, "correlation_id": correlation_id},
    )
