"""Tests for GithubAuthService.exchange_callback and client registration.

Coverage:
* Happy path posts to the token endpoint and normalises the result
* One-time configs: consumed before state validation, never exchanged twice
* State mismatch, unknown app and provider failures map to typed errors
* Empty provider responses normalise to ``success=false``
* Dynamic registration defaults and expiration window
"""

from __future__ import annotations

import threading
import time
from types import SimpleNamespace
from typing import Any, Callable
from urllib.parse import parse_qsl, urlparse

import pytest
import requests

from simple_github_auth.auth.errors import (
    ExchangeFailedError,
    RegistrationIncompleteError,
    StateMismatchError,
    UnknownAppError,
)
from simple_github_auth.auth.models import (
    CallbackParams,
    ClientConfig,
    LoginParams,
    RegistrationParams,
)
from simple_github_auth.auth.service import GithubAuthService
from simple_github_auth.auth.urls import ACCESS_TOKEN_URL
from simple_github_auth.utils.environment import AuthSettings

NOW = 1_700_000_000.0


# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #
def fake_clock_factory(now: float) -> Callable[[], float]:
    return lambda now=now: now


def _fake_response(payload: Any, *, status_code: int = 200) -> SimpleNamespace:
    resp = SimpleNamespace()
    resp.ok = 200 <= status_code < 400
    resp.status_code = status_code
    resp.json = lambda: payload
    return resp


@pytest.fixture()
def captured(monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
    """Patch ``requests.post`` to answer with ``captured["payload"]``."""
    calls: dict[str, Any] = {"count": 0, "payload": {"access_token": "tok"}}

    def fake_post(url: str, *, headers: dict, timeout: float) -> object:  # noqa: ANN001
        calls["count"] += 1
        calls["url"] = url
        calls["headers"] = headers
        calls["timeout"] = timeout
        return _fake_response(calls["payload"])

    monkeypatch.setattr(requests, "post", fake_post, raising=True)
    return calls


@pytest.fixture()
def service() -> GithubAuthService:
    svc = GithubAuthService(clock=fake_clock_factory(NOW))
    svc.add_client_config(
        ClientConfig(
            app_id="app1",
            client_id="c1",
            client_secret="s1",
            callback="http://cb",
        )
    )
    svc.add_client_config(
        ClientConfig(
            app_id="app2",
            client_id="c2",
            client_secret="s2",
            callback="http://cb2",
            one_time=True,
            expiration=NOW + 60,
        )
    )
    return svc


def _query(url: str) -> list[tuple[str, str]]:
    return parse_qsl(urlparse(url).query, keep_blank_values=True)


# --------------------------------------------------------------------------- #
# Happy path                                                                  #
# --------------------------------------------------------------------------- #
def test_exchange_posts_to_token_endpoint(service: GithubAuthService, captured) -> None:
    url = service.exchange_callback(
        CallbackParams(app_id="app1", code="code123", state="app1-state")
    )

    assert captured["url"] == (
        f"{ACCESS_TOKEN_URL}?client_id=c1&client_secret=s1&code=code123"
    )
    assert captured["headers"] == {"Accept": "application/json"}
    assert captured["timeout"] == 10.0
    assert url.startswith("http://cb?")
    assert ("access_token", "tok") in _query(url)


def test_one_time_exchange_result_url(service: GithubAuthService, captured) -> None:
    url = service.exchange_callback(
        CallbackParams(app_id="app2", code="x", state="app2-state")
    )
    assert url == (
        "http://cb2?access_token=tok&expires_in=&refresh_token="
        "&refresh_token_expires_in=&scope=&token_type="
    )


def test_full_token_response_is_forwarded(service: GithubAuthService, captured) -> None:
    captured["payload"] = {
        "access_token": "ghu_abc",
        "expires_in": 28800,
        "refresh_token": "ghr_def",
        "refresh_token_expires_in": 15897600,
        "scope": "repo,gist",
        "token_type": "bearer",
        "extra": "ignored",
    }
    url = service.exchange_callback(
        CallbackParams(app_id="app1", code="c", state="app1-state")
    )
    assert _query(url) == [
        ("access_token", "ghu_abc"),
        ("expires_in", "28800"),
        ("refresh_token", "ghr_def"),
        ("refresh_token_expires_in", "15897600"),
        ("scope", "repo,gist"),
        ("token_type", "bearer"),
    ]


def test_missing_fields_are_empty_not_omitted(service: GithubAuthService, captured) -> None:
    captured["payload"] = {"error": "bad_verification_code"}
    url = service.exchange_callback(
        CallbackParams(app_id="app1", code="stale", state="app1-state")
    )
    assert dict(_query(url)) == {
        "access_token": "",
        "expires_in": "",
        "refresh_token": "",
        "refresh_token_expires_in": "",
        "scope": "",
        "token_type": "",
    }


@pytest.mark.parametrize("payload", [{}, None])
def test_empty_response_normalises_to_failure(
    service: GithubAuthService, captured, payload
) -> None:
    captured["payload"] = payload
    url = service.exchange_callback(
        CallbackParams(app_id="app1", code="c", state="app1-state")
    )
    assert url == "http://cb?success=false"


def test_regular_config_survives_exchange(service: GithubAuthService, captured) -> None:
    for _ in range(2):
        service.exchange_callback(
            CallbackParams(app_id="app1", code="c", state="app1-state")
        )
    assert captured["count"] == 2
    assert service.registry.find("app1") is not None


# --------------------------------------------------------------------------- #
# One-time consumption                                                        #
# --------------------------------------------------------------------------- #
def test_second_one_time_exchange_fails(service: GithubAuthService, captured) -> None:
    params = CallbackParams(app_id="app2", code="x", state="app2-state")
    service.exchange_callback(params)

    with pytest.raises(UnknownAppError):
        service.exchange_callback(params)
    with pytest.raises(UnknownAppError):
        service.exchange_callback(
            CallbackParams(app_id="app2", code="other", state="whatever")
        )
    assert captured["count"] == 1


def test_state_mismatch_still_consumes_one_time(service: GithubAuthService, captured) -> None:
    with pytest.raises(StateMismatchError):
        service.exchange_callback(
            CallbackParams(app_id="app2", code="x", state="wrong-state")
        )

    assert service.registry.find("app2") is None
    assert captured["count"] == 0
    with pytest.raises(UnknownAppError):
        service.exchange_callback(
            CallbackParams(app_id="app2", code="x", state="app2-state")
        )


def test_failed_exchange_still_consumes_one_time(
    service: GithubAuthService, monkeypatch: pytest.MonkeyPatch
) -> None:
    def failing_post(url: str, **kwargs: Any) -> object:
        raise requests.ConnectionError("boom")

    monkeypatch.setattr(requests, "post", failing_post, raising=True)

    with pytest.raises(ExchangeFailedError):
        service.exchange_callback(
            CallbackParams(app_id="app2", code="x", state="app2-state")
        )
    assert service.registry.find("app2") is None


def test_concurrent_one_time_exchange_succeeds_once(
    service: GithubAuthService, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: list[int] = [0]

    def slow_post(url: str, **kwargs: Any) -> object:
        calls[0] += 1
        time.sleep(0.1)  # exchange still in flight when the others arrive
        return _fake_response({"access_token": "tok"})

    monkeypatch.setattr(requests, "post", slow_post, raising=True)

    results: list[str | Exception] = []
    lock = threading.Lock()

    def _worker() -> None:
        try:
            out: str | Exception = service.exchange_callback(
                CallbackParams(app_id="app2", code="x", state="app2-state")
            )
        except UnknownAppError as exc:  # concurrent loser
            out = exc
        with lock:
            results.append(out)

    threads = [threading.Thread(target=_worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert calls[0] == 1
    assert sum(1 for r in results if isinstance(r, str)) == 1
    assert sum(1 for r in results if isinstance(r, UnknownAppError)) == 3


# --------------------------------------------------------------------------- #
# Failures                                                                    #
# --------------------------------------------------------------------------- #
def test_unknown_app(service: GithubAuthService, captured) -> None:
    with pytest.raises(UnknownAppError) as exc_info:
        service.exchange_callback(
            CallbackParams(app_id="invalid", code="c", state="invalid-state")
        )
    assert str(exc_info.value) == "Invalid app_id"
    assert captured["count"] == 0


def test_state_mismatch_on_regular_config(service: GithubAuthService, captured) -> None:
    with pytest.raises(StateMismatchError, match="State doesn't match."):
        service.exchange_callback(
            CallbackParams(app_id="app1", code="c", state="invalid-state")
        )
    assert service.registry.find("app1") is not None


def test_timeout_is_exchange_failure(
    service: GithubAuthService, monkeypatch: pytest.MonkeyPatch
) -> None:
    seen: dict[str, Any] = {}

    def timing_out_post(url: str, **kwargs: Any) -> object:
        seen.update(kwargs)
        raise requests.Timeout("too slow")

    monkeypatch.setattr(requests, "post", timing_out_post, raising=True)
    service.settings = AuthSettings(exchange_timeout=2.5)

    with pytest.raises(ExchangeFailedError):
        service.exchange_callback(
            CallbackParams(app_id="app1", code="c", state="app1-state")
        )
    assert seen["timeout"] == 2.5


def test_http_error_status_is_exchange_failure(
    service: GithubAuthService, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(
        requests,
        "post",
        lambda url, **kw: _fake_response({"message": "nope"}, status_code=502),
        raising=True,
    )
    with pytest.raises(ExchangeFailedError, match="502"):
        service.exchange_callback(
            CallbackParams(app_id="app1", code="c", state="app1-state")
        )


def test_invalid_json_is_exchange_failure(
    service: GithubAuthService, monkeypatch: pytest.MonkeyPatch
) -> None:
    def bad_json() -> Any:
        raise ValueError("Expecting value")

    resp = _fake_response(None)
    resp.json = bad_json
    monkeypatch.setattr(requests, "post", lambda url, **kw: resp, raising=True)

    with pytest.raises(ExchangeFailedError):
        service.exchange_callback(
            CallbackParams(app_id="app1", code="c", state="app1-state")
        )


def test_non_object_json_is_exchange_failure(service: GithubAuthService, captured) -> None:
    captured["payload"] = ["unexpected"]
    with pytest.raises(ExchangeFailedError):
        service.exchange_callback(
            CallbackParams(app_id="app1", code="c", state="app1-state")
        )


# --------------------------------------------------------------------------- #
# Registration & client info                                                  #
# --------------------------------------------------------------------------- #
def test_register_defaults_to_one_time_with_expiration() -> None:
    svc = GithubAuthService(clock=fake_clock_factory(NOW))
    config = svc.register_client(
        RegistrationParams(
            app_id="app3",
            client_id="c3",
            client_secret="s3",
            callback="http://cb3",
        )
    )
    assert config.one_time is True
    assert config.expiration == NOW + 60
    assert svc.registry.find("app3") is config


@pytest.mark.parametrize("flag", ["false", "False", False])
def test_register_permanent_client(flag) -> None:
    svc = GithubAuthService(clock=fake_clock_factory(NOW))
    config = svc.register_client(
        RegistrationParams(
            app_id="app4",
            client_id="c4",
            client_secret="s4",
            callback="http://cb4",
            one_time=flag,
        )
    )
    assert config.one_time is False
    assert config.expiration is None


def test_register_one_time_client_expires_after_a_minute() -> None:
    now = [NOW]
    svc = GithubAuthService(clock=lambda: now[0])
    svc.register_client(
        RegistrationParams(
            app_id="app5",
            client_id="c5",
            client_secret="s5",
            callback="http://cb5",
            one_time="true",
        )
    )
    now[0] = NOW + 59
    assert svc.registry.find("app5") is not None
    now[0] = NOW + 60
    assert svc.registry.find("app5") is None


def test_register_incomplete() -> None:
    svc = GithubAuthService(clock=fake_clock_factory(NOW))
    with pytest.raises(RegistrationIncompleteError) as exc_info:
        svc.register_client(
            RegistrationParams(app_id="app2", client_id="client2", callback="http://cb")
        )
    assert str(exc_info.value) == (
        'Unable to register app "app2". You need to specify all app_id, '
        "client_id, client_secret and callback"
    )
    assert len(svc.registry) == 0


def test_get_client_info(service: GithubAuthService) -> None:
    info = service.get_client_info(
        host="http://localhost", login_path="/login", auth_path="/auth"
    )
    assert info[0] == {
        "app_id": "app1",
        "loginUrl": "http://localhost/login?app=app1",
        "authUrl": "http://localhost/auth?app=app1",
        "callbackUrl": "http://cb",
        "oneTime": False,
    }
    assert info[1]["oneTime"] is True


def test_static_clients_from_settings() -> None:
    static = ClientConfig(
        app_id="static", client_id="c", client_secret="s", callback="http://cb"
    )
    svc = GithubAuthService(settings=AuthSettings(client_configs=(static,)))
    assert svc.registry.find("static") is static
    url = svc.build_authorization_url(LoginParams(app_id="static", redirect_uri="http://r"))
    assert "client_id=c" in url
