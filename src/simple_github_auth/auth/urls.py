"""GitHub OAuth URL construction."""

from __future__ import annotations

import logging
from typing import Final
from urllib.parse import urlencode

from simple_github_auth.auth.errors import UnknownAppError
from simple_github_auth.auth.models import LoginParams
from simple_github_auth.auth.registry import ClientRegistry
from simple_github_auth.auth.state import derive_state

_LOG = logging.getLogger("simple-github-auth.auth.urls")

AUTHORIZE_URL: Final[str] = "https://github.com/login/oauth/authorize"
ACCESS_TOKEN_URL: Final[str] = "https://github.com/login/oauth/access_token"


def build_authorization_url(
    registry: ClientRegistry,
    params: LoginParams,
    *,
    authorize_url: str = AUTHORIZE_URL,
) -> str:
    """Return the URL where the user logs into GitHub.

    ``redirect_uri`` is forwarded verbatim; it is not checked against any
    allow-list.

    Raises
    ------
    UnknownAppError
        If ``params.app_id`` does not resolve to a live client config.
    """
    config = registry.find(params.app_id)
    if config is None:
        raise UnknownAppError(
            params.app_id,
            "Unable to use client config. Specify a correct app_id.",
        )

    query: list[tuple[str, str]] = [
        ("client_id", config.client_id),
        ("state", derive_state(config)),
        ("redirect_uri", params.redirect_uri),
        ("allow_signup", params.allow_signup if params.allow_signup is not None else "true"),
    ]
    if params.login:
        query.append(("login", params.login))
    if params.scope:
        query.append(("scope", params.scope))

    _LOG.debug("Built authorize URL for app_id=%s", config.app_id)
    return f"{authorize_url}?{urlencode(query)}"


def build_token_exchange_url(
    code: str,
    client_id: str,
    client_secret: str,
    *,
    token_url: str = ACCESS_TOKEN_URL,
) -> str:
    """Return the URL to POST to in order to trade *code* for a token.

    The URL embeds ``client_secret``; it must only be used server-side and
    never logged.
    """
    query = urlencode(
        {"client_id": client_id, "client_secret": client_secret, "code": code}
    )
    return f"{token_url}?{query}"
