"""Browser-facing GitHub OAuth endpoints.

Handlers are intentionally thin:

1. Parse and validate HTTP-layer parameters.
2. Delegate business logic to ``GithubAuthService``.
3. Return an appropriate Starlette ``Response`` type.

All routes live under a configurable root path (default ``/``) and are
served by :class:`GithubAuthMiddleware`, which hands every request it does
not own, and every request while the server is inactive, to the wrapped
application.

SECURITY NOTE
-------------
• No raw secrets (client secrets, codes, access tokens) are ever logged.
• Failed token exchanges answer with the same 404 whatever the cause
  (unknown app, state mismatch, provider failure); the cause is only logged.
"""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import (
    JSONResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
)
from starlette.routing import Route, Router
from starlette.types import ASGIApp, Receive, Scope, Send

from simple_github_auth.auth.errors import (
    GithubAuthError,
    MissingParameterError,
    RegistrationIncompleteError,
    UnknownAppError,
)
from simple_github_auth.auth.models import (
    CallbackParams,
    ClientConfig,
    LoginParams,
    RegistrationParams,
)
from simple_github_auth.auth.service import GithubAuthService
from simple_github_auth.utils.environment import AuthSettings

_LOG = logging.getLogger("simple-github-auth.servers.auth")

AUTH_FAILED_MESSAGE = "Unable to get auth token."

_ROUTED_METHODS = frozenset({"GET", "HEAD"})


def _host(request: Request) -> str:
    return f"{request.url.scheme}://{request.headers.get('host', request.url.netloc)}"


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", "-")


class GithubAuthServer:
    """Holds the service, the route layout and the runtime ``active`` switch.

    Flipping :attr:`active` to ``False`` turns every route into a
    pass-through without rebuilding the application.
    """

    def __init__(
        self,
        service: GithubAuthService | None = None,
        *,
        settings: AuthSettings | None = None,
        client_configs: list[ClientConfig] | None = None,
    ) -> None:
        if settings is None:
            settings = service.settings if service is not None else AuthSettings()
        self.settings = settings
        self.service = service or GithubAuthService(settings=settings)
        self.active: bool = settings.active
        for config in client_configs or []:
            self.service.add_client_config(config)

    def _path(self, relative: str) -> str:
        root = self.settings.root_path
        if not root.startswith("/"):
            root = f"/{root}"
        return f"{root}{relative}"

    @property
    def info_path(self) -> str:
        return self._path(self.settings.info_path)

    @property
    def login_path(self) -> str:
        return self._path(self.settings.login_path)

    @property
    def auth_path(self) -> str:
        return self._path(self.settings.auth_path)

    @property
    def result_path(self) -> str:
        return self._path(self.settings.result_path)

    @property
    def register_client_path(self) -> str:
        return self._path(self.settings.register_client_path)

    def middleware(self) -> Middleware:
        """Return a Starlette ``Middleware`` entry serving this server."""
        return Middleware(GithubAuthMiddleware, server=self)


def build_auth_routes(server: GithubAuthServer) -> list[Route]:
    """Return the Starlette routes of *server*."""
    svc = server.service

    # ----- GET {root}github/ ---------------------------------------------- #
    async def _info(request: Request) -> Response:
        host = _host(request)
        return JSONResponse(
            {
                "host": host,
                "clients": svc.get_client_info(
                    host=host,
                    login_path=server.login_path,
                    auth_path=server.auth_path,
                ),
            }
        )

    # ----- GET {root}github/login/?app= ----------------------------------- #
    async def _login(request: Request) -> Response:
        app_id = request.query_params.get("app")
        if not app_id:
            return JSONResponse(
                {"message": str(MissingParameterError("app"))}, status_code=400
            )

        redirect_uri = f"{_host(request)}{server.auth_path}?app={app_id}"
        try:
            authorize_url = svc.build_authorization_url(
                LoginParams(
                    app_id=app_id,
                    redirect_uri=redirect_uri,
                    login=request.query_params.get("githubUsername"),
                    allow_signup=request.query_params.get("allow_signup"),
                    scope=request.query_params.get("scope"),
                )
            )
        except UnknownAppError as exc:
            _LOG.info(
                "Login for unknown app=%s correlation_id=%s",
                app_id,
                _correlation_id(request),
            )
            return JSONResponse(
                {"success": False, "message": str(exc)}, status_code=exc.status_code
            )

        _LOG.info(
            "OAuth login app=%s correlation_id=%s", app_id, _correlation_id(request)
        )
        return RedirectResponse(authorize_url, status_code=302)

    # ----- GET {root}github/auth/?app=&code=&state= ----------------------- #
    async def _auth(request: Request) -> Response:
        app_id = request.query_params.get("app")
        if not app_id:
            return JSONResponse(
                {"message": str(MissingParameterError("app"))}, status_code=400
            )

        params = CallbackParams(
            app_id=app_id,
            code=request.query_params.get("code"),
            state=request.query_params.get("state"),
        )
        try:
            callback_url = await run_in_threadpool(
                svc.exchange_callback,
                params,
                correlation_id=_correlation_id(request),
            )
        except GithubAuthError as exc:
            _LOG.warning(
                "OAuth callback failed app=%s error=%s reason=%s correlation_id=%s",
                app_id,
                exc.error_code,
                exc,
                _correlation_id(request),
            )
            return PlainTextResponse(AUTH_FAILED_MESSAGE, status_code=404)

        _LOG.info(
            "OAuth success app=%s correlation_id=%s", app_id, _correlation_id(request)
        )
        return RedirectResponse(callback_url, status_code=302)

    # ----- GET {root}github/result/ --------------------------------------- #
    async def _result(request: Request) -> Response:
        echoed: dict[str, str | list[str]] = {}
        for key, value in request.query_params.multi_items():
            # Repeated keys are echoed as a list of every value
            echoed[key] = request.query_params.getlist(key) if key in echoed else value
        return JSONResponse({"success": True, **echoed})

    # ----- GET {root}github/register-client/ ------------------------------ #
    async def _register_client(request: Request) -> Response:
        query = request.query_params
        try:
            config = await run_in_threadpool(
                svc.register_client,
                RegistrationParams(
                    app_id=query.get("app_id"),
                    client_id=query.get("client_id"),
                    client_secret=query.get("client_secret"),
                    callback=query.get("callback"),
                    one_time=query.get("oneTime"),
                ),
            )
        except RegistrationIncompleteError as exc:
            return JSONResponse(
                {"success": False, "message": str(exc)}, status_code=exc.status_code
            )

        _LOG.info(
            "Registered app=%s one_time=%s correlation_id=%s",
            config.app_id,
            config.one_time,
            _correlation_id(request),
        )
        return JSONResponse(
            {
                "success": True,
                "client": {"app_id": config.app_id, "oneTime": config.one_time},
            }
        )

    return [
        Route(server.info_path, _info, methods=["GET"]),
        Route(server.login_path, _login, methods=["GET"]),
        Route(server.auth_path, _auth, methods=["GET"]),
        Route(server.result_path, _result, methods=["GET"]),
        Route(server.register_client_path, _register_client, methods=["GET"]),
    ]


class GithubAuthMiddleware:
    """ASGI middleware serving the GitHub auth routes in front of *app*.

    Only GET and HEAD requests whose path is exactly an auth route are
    answered here. Everything else goes straight to the wrapped app, as does
    every request while ``server.active`` is ``False``.
    """

    def __init__(self, app: ASGIApp, server: GithubAuthServer) -> None:
        self.app = app
        self.server = server
        self._router = Router(
            routes=build_auth_routes(server),
            redirect_slashes=False,
            default=self._passthrough,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        # Auth routes are GET only; everything else belongs to the wrapped app
        if (
            scope["type"] != "http"
            or scope["method"] not in _ROUTED_METHODS
            or not self.server.active
        ):
            await self.app(scope, receive, send)
            return
        await self._router(scope, receive, send)

    async def _passthrough(self, scope: Scope, receive: Receive, send: Send) -> None:
        # Our router must not leak into the downstream app (url_for lookups)
        if scope.get("router") is self._router:
            scope = dict(scope)
            del scope["router"]
        await self.app(scope, receive, send)
