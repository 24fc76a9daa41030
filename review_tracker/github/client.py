# This file is intended to hold the setup for the authenticated githubkit client.

"""Sets up the authenticated githubkit client."""

from functools import lru_cache
from typing import Callable, TypeAlias

from githubkit import GitHub
from githubkit.auth import TokenAuthStrategy

GitHubClient: TypeAlias = GitHub[TokenAuthStrategy]

GitHubClientFactory: TypeAlias = Callable[[str], GitHubClient]

MAX_CACHED_CLIENTS = 8


def get_github_pat_client(github_pat_token: str, github_api_url: str, timeout: float | None = None) -> GitHubClient:
    """Returns an authenticated GitHub client using a bearer token.

    githubkit's own retry is disabled so rate limits are only retried by
    ``retry_on_rate_limit`` in the adapter.
    """
    token = github_pat_token.strip()
    if not token:
        raise RuntimeError("GitHub token authentication requires a non-empty token.")
    # Disable HTTP caching to always get fresh data
    return GitHub(
        auth=TokenAuthStrategy(token),
        base_url=github_api_url,
        http_cache=False,
        auto_retry=False,
        timeout=timeout,
    )


def make_github_client_factory(
    github_api_url: str,
    timeout: float | None = None,
    max_clients: int = MAX_CACHED_CLIENTS,
) -> GitHubClientFactory:
    """Build a factory that reuses clients per token.

    At most ``max_clients`` clients are kept; the least recently used one is
    dropped when a new token needs room.
    """

    @lru_cache(maxsize=max_clients)
    def cached_client(token: str) -> GitHubClient:
        return get_github_pat_client(token, github_api_url, timeout=timeout)

    def factory(token: str) -> GitHubClient:
        return cached_client(token.strip())

    return factory
