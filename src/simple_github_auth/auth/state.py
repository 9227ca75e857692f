"""State parameter helpers for the GitHub web flow.

The *state* value sent to GitHub's authorize endpoint is echoed back on the
redirect to the auth endpoint and correlates the callback with the app that
started the flow. It is derived from the app identifier alone::

    <app_id>-state

Known limitation
----------------
The value contains **no secret and no randomness**. Anyone who knows the
public ``app_id`` can forge it, so it does not provide real CSRF protection;
it only catches callbacks routed to the wrong app. One-time registrations
limit the exposure because each can be exchanged at most once.

Logging
-------
State values are not secret but are logged only at DEBUG level.
"""

from __future__ import annotations

import hmac
import logging

from simple_github_auth.auth.models import ClientConfig

_LOG = logging.getLogger("simple-github-auth.auth.state")


def derive_state(config: ClientConfig) -> str:
    """Return the state token for *config* (pure function of ``app_id``)."""
    return f"{config.app_id}-state"


def validate_state(candidate: str | None, config: ClientConfig) -> bool:
    """Return *True* if *candidate* equals :func:`derive_state` for *config*."""
    if candidate is None:
        return False
    valid = hmac.compare_digest(
        candidate.encode("utf-8"), derive_state(config).encode("utf-8")
    )
    if not valid:
        _LOG.debug("State mismatch for app_id=%s", config.app_id)
    return valid
