"""Typed records used by the GitHub auth core."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Final, Mapping

from simple_github_auth.auth.errors import RegistrationIncompleteError

# One-time registrations made at runtime stay usable for one minute.
ONE_TIME_CLIENT_EXPIRATION_SECONDS: Final[int] = 60

_REQUIRED_FIELDS: Final[tuple[str, ...]] = (
    "app_id",
    "client_id",
    "client_secret",
    "callback",
)


def as_bool(value: Any, *, default: bool = False) -> bool:
    """Interpret booleans coming from JSON documents or query strings."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "y", "on")


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """OAuth credentials of one registered application."""

    app_id: str
    client_id: str
    client_secret: str
    callback: str
    one_time: bool = False
    # Absolute UNIX timestamp (seconds); ``None`` never expires.
    expiration: float | None = None

    def is_expired(self, now: float) -> bool:
        """Return *True* once the expiration timestamp has been reached."""
        return self.expiration is not None and self.expiration <= now

    def to_dict(self) -> dict[str, Any]:
        return {
            "app_id": self.app_id,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "callback": self.callback,
            "one_time": self.one_time,
            "expiration": self.expiration,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClientConfig":
        """Build a config from a mapping.

        Accepts ``oneTime`` as an alias of ``one_time`` so that documents
        written by browser clients load unchanged. Unknown keys are ignored.

        Raises
        ------
        RegistrationIncompleteError
            If any of ``app_id``, ``client_id``, ``client_secret`` or
            ``callback`` is missing or empty.
        """
        missing = [key for key in _REQUIRED_FIELDS if not data.get(key)]
        if missing:
            raise RegistrationIncompleteError(data.get("app_id"))

        one_time = data.get("one_time", data.get("oneTime"))
        expiration = data.get("expiration")
        return cls(
            app_id=str(data["app_id"]),
            client_id=str(data["client_id"]),
            client_secret=str(data["client_secret"]),
            callback=str(data["callback"]),
            one_time=as_bool(one_time),
            expiration=float(expiration) if expiration is not None else None,
        )


@dataclass(frozen=True, slots=True)
class LoginParams:
    """Inputs for building the GitHub authorize URL."""

    app_id: str
    redirect_uri: str
    scope: str | None = None
    login: str | None = None
    allow_signup: str | None = None


@dataclass(frozen=True, slots=True)
class CallbackParams:
    """Values GitHub sends back to the auth endpoint."""

    app_id: str
    code: str | None
    state: str | None


@dataclass(frozen=True, slots=True)
class RegistrationParams:
    """Raw (possibly incomplete) input of a dynamic client registration."""

    app_id: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    callback: str | None = None
    # ``None`` means "not specified", which registers a one-time client.
    one_time: str | bool | None = None


@dataclass(frozen=True, slots=True)
class AuthResult:
    """Normalised token response forwarded to the client callback.

    Every field is always present in the output; values GitHub did not send
    are empty strings.
    """

    access_token: str = ""
    expires_in: str = ""
    refresh_token: str = ""
    refresh_token_expires_in: str = ""
    scope: str = ""
    token_type: str = ""

    @classmethod
    def from_response(cls, data: Mapping[str, Any]) -> "AuthResult":
        values: dict[str, str] = {}
        for f in fields(cls):
            raw = data.get(f.name)
            values[f.name] = "" if raw is None else str(raw)
        return cls(**values)

    def to_params(self) -> list[tuple[str, str]]:
        return [(f.name, getattr(self, f.name)) for f in fields(self)]
