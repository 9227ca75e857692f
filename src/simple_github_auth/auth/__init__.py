"""GitHub authentication core package.

This namespace hosts the **HTTP-agnostic** building blocks of the "login with
GitHub" flow shared by every registered client application.

Sub-modules
-----------
clock
    Test-friendly time abstraction.
models
    Dataclasses for client configs, request options and token results.
errors
    Exception types used by the auth logic.
registry
    Lock-guarded, self-expiring registry of client configurations.
state
    Derivation / validation of the ``state`` parameter.
urls
    Authorize and token-exchange URL builders.
store
    Save / restore hook for the registry.
service
    ``GithubAuthService`` orchestrating login and code-for-token exchange.
log_utils
    Structured logging helpers (thin wrapper around :pymod:`logging`).

All public objects are re-exported here for convenience.
"""

from __future__ import annotations

from .clock import Clock, default_clock  # noqa: F401
from .models import (  # noqa: F401
    ONE_TIME_CLIENT_EXPIRATION_SECONDS,
    AuthResult,
    CallbackParams,
    ClientConfig,
    LoginParams,
    RegistrationParams,
)
from .errors import (  # noqa: F401
    ExchangeFailedError,
    GithubAuthError,
    MissingParameterError,
    RegistrationIncompleteError,
    StateMismatchError,
    UnknownAppError,
)
from .registry import ClientRegistry  # noqa: F401
from .state import derive_state, validate_state  # noqa: F401
from .urls import (  # noqa: F401
    ACCESS_TOKEN_URL,
    AUTHORIZE_URL,
    build_authorization_url,
    build_token_exchange_url,
)
from .store import ConfigStore, DiskConfigStore  # noqa: F401
from .service import GithubAuthService  # noqa: F401
from .log_utils import get_auth_logger  # noqa: F401

__all__ = [
    # clock
    "Clock",
    "default_clock",
    # models
    "ONE_TIME_CLIENT_EXPIRATION_SECONDS",
    "AuthResult",
    "CallbackParams",
    "ClientConfig",
    "LoginParams",
    "RegistrationParams",
    # errors
    "ExchangeFailedError",
    "GithubAuthError",
    "MissingParameterError",
    "RegistrationIncompleteError",
    "StateMismatchError",
    "UnknownAppError",
    # registry / state / urls
    "ClientRegistry",
    "derive_state",
    "validate_state",
    "ACCESS_TOKEN_URL",
    "AUTHORIZE_URL",
    "build_authorization_url",
    "build_token_exchange_url",
    # persistence
    "ConfigStore",
    "DiskConfigStore",
    # service
    "GithubAuthService",
    # logging helpers
    "get_auth_logger",
]
