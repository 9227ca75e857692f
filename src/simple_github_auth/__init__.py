"""Reusable "login with GitHub" OAuth flow for multiple client applications."""

from simple_github_auth.auth import (  # noqa: F401
    ClientConfig,
    ClientRegistry,
    GithubAuthService,
)

__version__ = "0.1.0"

__all__ = ["ClientConfig", "ClientRegistry", "GithubAuthService", "__version__"]
