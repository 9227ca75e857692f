"""Starlette HTTP layer for the GitHub auth flow."""

from .auth import GithubAuthMiddleware, GithubAuthServer, build_auth_routes  # noqa: F401
from .main import create_app  # noqa: F401

__all__ = ["GithubAuthMiddleware", "GithubAuthServer", "build_auth_routes", "create_app"]
