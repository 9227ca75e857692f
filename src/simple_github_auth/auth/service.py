"""GithubAuthService – the login / token-exchange orchestrator.

This service encapsulates the *business logic* of the GitHub web flow.
Handlers in :mod:`simple_github_auth.servers.auth` call the façade methods
below and only translate results and exceptions into HTTP responses.

Every service owns exactly one :class:`ClientRegistry`; nothing is shared
through module-level state. **Secrets are redacted** from logs: client
secrets, codes and tokens only ever appear masked.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import requests

from simple_github_auth.auth.clock import Clock, default_clock
from simple_github_auth.auth.errors import (
    ExchangeFailedError,
    RegistrationIncompleteError,
    StateMismatchError,
    UnknownAppError,
)
from simple_github_auth.auth.log_utils import get_auth_logger
from simple_github_auth.auth.models import (
    ONE_TIME_CLIENT_EXPIRATION_SECONDS,
    AuthResult,
    CallbackParams,
    ClientConfig,
    LoginParams,
    RegistrationParams,
)
from simple_github_auth.auth.registry import ClientRegistry
from simple_github_auth.auth.state import validate_state
from simple_github_auth.auth.store import ConfigStore
from simple_github_auth.auth.urls import (
    build_authorization_url,
    build_token_exchange_url,
)
from simple_github_auth.utils.logging import mask_sensitive

if TYPE_CHECKING:  # pragma: no cover
    from simple_github_auth.utils.environment import AuthSettings  # circular – only for typing

_LOG = logging.getLogger("simple-github-auth.auth.service")


class GithubAuthService:
    """Application service orchestrating the GitHub OAuth web flow."""

    def __init__(
        self,
        registry: ClientRegistry | None = None,
        *,
        settings: AuthSettings | None = None,
        store: ConfigStore | None = None,
        clock: Clock = default_clock,
    ) -> None:
        if settings is None:
            from simple_github_auth.utils.environment import AuthSettings

            settings = AuthSettings()
        self.settings = settings
        self.clock = clock
        self.registry = registry if registry is not None else ClientRegistry(clock=clock)
        self.store = store
        for config in self.settings.client_configs:
            self.registry.add(config)

    # ------------------------------------------------------------------ #
    # Persistence                                                        #
    # ------------------------------------------------------------------ #
    def restore(self) -> int:
        """Append the saved configs not already registered; return how many."""
        if self.store is None:
            return 0
        known = self.registry.export()
        items = [
            item
            for item in self.store.load()
            if ClientConfig.from_dict(item).to_dict() not in known
        ]
        self.registry.import_(items, replace=False)
        _LOG.info("Restored %d client config(s) from store", len(items))
        return len(items)

    def persist(self) -> None:
        """Overwrite the store with the current registry content.

        Saving is best effort: a store failure is logged and the in-memory
        registry stays authoritative.
        """
        if self.store is None:
            return
        try:
            self.store.save(self.registry.export())
        except OSError as e:
            _LOG.error("Failed to persist client configs: %s", e, exc_info=True)

    # ------------------------------------------------------------------ #
    # Client management                                                  #
    # ------------------------------------------------------------------ #
    def add_client_config(self, config: ClientConfig) -> None:
        self.registry.add(config)
        self.persist()

    def register_client(self, params: RegistrationParams) -> ClientConfig:
        """Register a client at runtime.

        Clients are one-time unless ``one_time`` is explicitly false; a
        one-time client expires ``ONE_TIME_CLIENT_EXPIRATION_SECONDS`` after
        registration.

        Raises
        ------
        RegistrationIncompleteError
            If ``app_id``, ``client_id``, ``client_secret`` or ``callback`` is
            missing.
        """
        if not (
            params.app_id and params.client_id and params.client_secret and params.callback
        ):
            raise RegistrationIncompleteError(params.app_id)

        one_time = not (
            params.one_time is False or str(params.one_time).strip().lower() == "false"
        )
        config = ClientConfig(
            app_id=params.app_id,
            client_id=params.client_id,
            client_secret=params.client_secret,
            callback=params.callback,
            one_time=one_time,
            expiration=(
                self.clock() + ONE_TIME_CLIENT_EXPIRATION_SECONDS if one_time else None
            ),
        )
        self.add_client_config(config)
        get_auth_logger(app_id=config.app_id, flow="register").info(
            "Registered client app_id=%s one_time=%s client_secret=%s",
            config.app_id,
            one_time,
            mask_sensitive(config.client_secret, 2),
        )
        return config

    def get_client_info(
        self, *, host: str, login_path: str, auth_path: str
    ) -> list[dict[str, Any]]:
        """Describe every live client with the URLs that drive its flow."""
        self.registry.sweep_expired()
        return [
            {
                "app_id": client.app_id,
                "loginUrl": f"{host}{login_path}?app={client.app_id}",
                "authUrl": f"{host}{auth_path}?app={client.app_id}",
                "callbackUrl": client.callback,
                "oneTime": client.one_time,
            }
            for client in self.registry
        ]

    # ------------------------------------------------------------------ #
    # URLs                                                               #
    # ------------------------------------------------------------------ #
    def build_authorization_url(self, params: LoginParams) -> str:
        return build_authorization_url(
            self.registry, params, authorize_url=self.settings.authorize_url
        )

    def build_token_exchange_url(
        self, *, code: str, client_id: str, client_secret: str
    ) -> str:
        return build_token_exchange_url(
            code,
            client_id,
            client_secret,
            token_url=self.settings.access_token_url,
        )

    # ------------------------------------------------------------------ #
    # Code-for-token exchange                                            #
    # ------------------------------------------------------------------ #
    def exchange_callback(
        self, params: CallbackParams, *, correlation_id: str | None = None
    ) -> str:
        """Trade the callback *code* for a token and return the redirect URL.

        A one-time config is removed from the registry before the state is
        checked and before any network I/O: a replayed or failed callback
        can never run a second exchange for it.

        Raises
        ------
        UnknownAppError
            No live config for ``params.app_id`` (never registered, expired
            or already consumed).
        StateMismatchError
            ``params.state`` does not match the app's state token.
        ExchangeFailedError
            The token request failed or GitHub's answer could not be parsed.
        """
        log = get_auth_logger(
            app_id=params.app_id, flow="exchange", correlation_id=correlation_id
        )

        config = self.registry.claim(params.app_id)
        if config is None:
            raise UnknownAppError(params.app_id, "Invalid app_id")
        if config.one_time:
            self.persist()

        if not validate_state(params.state, config):
            log.warning("Rejected callback with mismatching state app_id=%s", config.app_id)
            raise StateMismatchError(config.app_id)

        url = self.build_token_exchange_url(
            code=params.code or "",
            client_id=config.client_id,
            client_secret=config.client_secret,
        )
        try:
            resp = requests.post(
                url,
                headers={"Accept": "application/json"},
                timeout=self.settings.exchange_timeout,
            )
        except requests.RequestException as exc:
            raise ExchangeFailedError(
                config.app_id, f"Token request failed: {type(exc).__name__}"
            ) from exc

        if not resp.ok:
            raise ExchangeFailedError(
                config.app_id, f"Token endpoint returned {resp.status_code}"
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise ExchangeFailedError(
                config.app_id, "Token response is not valid JSON"
            ) from exc

        if not data:
            query: list[tuple[str, str]] = [("success", "false")]
            log.warning("Empty token response app_id=%s", config.app_id)
        elif isinstance(data, dict):
            if "error" in data:
                # GitHub reports bad codes with 200 + an error body.
                log.warning(
                    "Token endpoint error=%s app_id=%s", data.get("error"), config.app_id
                )
            result = AuthResult.from_response(data)
            query = result.to_params()
            log.info(
                "Exchanged code app_id=%s code=%s access_token=%s",
                config.app_id,
                mask_sensitive(params.code, 3),
                mask_sensitive(result.access_token, 4),
            )
        else:
            raise ExchangeFailedError(
                config.app_id, "Token response is not a JSON object"
            )

        return f"{config.callback}?{urlencode(query)}"
