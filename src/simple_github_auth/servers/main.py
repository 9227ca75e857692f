"""Starlette application factory for the GitHub auth server.

Run with any ASGI server, e.g.::

    uvicorn simple_github_auth.servers.main:create_app --factory
"""

import logging

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from simple_github_auth.auth.errors import GithubAuthError
from simple_github_auth.auth.service import GithubAuthService
from simple_github_auth.auth.store import DiskConfigStore
from simple_github_auth.utils.environment import AuthSettings
from simple_github_auth.utils.logging import setup_logging

from .auth import GithubAuthServer
from .correlation import CorrelationIdMiddleware

logger = logging.getLogger("simple-github-auth.server.main")


async def health_check(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def create_app(
    settings: AuthSettings | None = None,
    *,
    service: GithubAuthService | None = None,
    configure_logging: bool = True,
) -> Starlette:
    """Build the ASGI application.

    Settings default to :meth:`AuthSettings.from_env`. When
    ``settings.storage_path`` is set, client configs are restored from and
    saved to that JSON file.
    """
    if settings is None:
        settings = service.settings if service is not None else AuthSettings.from_env()
    if configure_logging:
        setup_logging(settings.log_level)

    if service is None:
        store = DiskConfigStore(settings.storage_path) if settings.storage_path else None
        service = GithubAuthService(settings=settings, store=store)
    try:
        service.restore()
    except (OSError, ValueError, GithubAuthError) as e:
        logger.error(f"Failed to restore client configs: {e}", exc_info=True)

    server = GithubAuthServer(service, settings=settings)
    app = Starlette(
        routes=[Route("/healthz", health_check, methods=["GET"])],
        middleware=[Middleware(CorrelationIdMiddleware), server.middleware()],
    )
    app.state.github_auth = server
    logger.info(
        f"GitHub auth routes mounted under {server.info_path} "
        f"({len(service.registry)} client(s), active={server.active})"
    )
    return app
