"""Exception types raised by the GitHub auth core.

Only lightweight, **data-carrying** exceptions live here so that the HTTP
layer can transform them into responses. Each class carries the status code
it maps to; secrets are never part of a message.
"""

from __future__ import annotations


class GithubAuthError(RuntimeError):
    """Base class for every failure of the login / token-exchange flow."""

    error_code: str = "github_auth_error"
    status_code: int = 400

    def to_payload(self) -> dict[str, object]:
        """Return a JSON-serialisable payload **without secrets**."""
        return {
            "success": False,
            "error": self.error_code,
            "message": str(self),
        }


class MissingParameterError(GithubAuthError):
    """A required request parameter (e.g. ``app``) was not supplied."""

    error_code = "missing_parameter"
    status_code = 400

    def __init__(self, parameter: str, message: str | None = None) -> None:
        super().__init__(message or f'Missing "?{parameter}=" parameter.')
        self.parameter: str = parameter


class UnknownAppError(GithubAuthError):
    """No live client configuration matches the requested ``app_id``.

    Raised for ids that were never registered as well as for configs that
    expired or were consumed by a previous one-time exchange.
    """

    error_code = "unknown_app"
    status_code = 404

    def __init__(self, app_id: str | None, message: str | None = None) -> None:
        super().__init__(message or f'Unknown app "{app_id}".')
        self.app_id: str | None = app_id


class StateMismatchError(GithubAuthError):
    """The ``state`` echoed by GitHub does not match the app's state token."""

    error_code = "state_mismatch"
    status_code = 404

    def __init__(self, app_id: str, message: str | None = None) -> None:
        super().__init__(message or "State doesn't match.")
        self.app_id: str = app_id


class ExchangeFailedError(GithubAuthError):
    """The code-for-token request failed (network, status or body)."""

    error_code = "exchange_failed"
    status_code = 404

    def __init__(self, app_id: str, message: str | None = None) -> None:
        super().__init__(message or "Unable to get auth token.")
        self.app_id: str = app_id


class RegistrationIncompleteError(GithubAuthError):
    """A client registration is missing one of the required fields."""

    error_code = "registration_incomplete"
    status_code = 404

    def __init__(self, app_id: str | None) -> None:
        super().__init__(
            f'Unable to register app "{app_id or ""}". You need to specify all '
            "app_id, client_id, client_secret and callback"
        )
        self.app_id: str | None = app_id
