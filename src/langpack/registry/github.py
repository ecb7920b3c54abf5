"""GitHub-backed ``GitRefProvider``.

Talks to the GitHub REST API to list tags and branches and to resolve refs
to commits. Only ``github.com`` repositories are supported; any other URL
is reported as an unavailable source.

Usage::

    provider = GitHubRefProvider(token=os.environ.get("GITHUB_TOKEN"))
    service = VersionResolutionService(provider)
    versions = await service.get_available_versions("https://github.com/org/repo")
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any

import httpx

from langpack.exceptions import PackageSourceUnavailableError
from langpack.registry.http_client import DEFAULT_TIMEOUT, fetch_json

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

GITHUB_API: str = "https://api.github.com"

# Page size for tag and branch listings (GitHub's maximum).
PER_PAGE: int = 100

# Upper bound on pages fetched per listing.
MAX_PAGES: int = 50

_GITHUB_URL_RE = re.compile(
    r"^(?:https?://github\.com/|git@github\.com:)"
    r"(?P<owner>[\w.-]+)/(?P<repo>[\w.-]+?)(?:\.git)?/?$"
)


def parse_github_url(url: str) -> tuple[str, str]:
    """Split a GitHub repository URL into ``(owner, repo)``.

    Accepts ``https://github.com/owner/repo``, with or without ``.git``,
    and the SSH form ``git@github.com:owner/repo.git``.

    Raises:
        PackageSourceUnavailableError: If *url* is not a GitHub repository.
    """
    match = _GITHUB_URL_RE.match(url.strip())
    if match is None:
        raise PackageSourceUnavailableError(
            f"Not a GitHub repository URL: {url}", {"url": url}
        )
    return match.group("owner"), match.group("repo")


def _parse_timestamp(value: str) -> datetime:
    # GitHub returns ``2024-01-31T12:00:00Z``; fromisoformat needs an offset.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------


class GitHubRefProvider:
    """``GitRefProvider`` implementation for the GitHub REST API.

    Args:
        timeout: Request timeout in seconds.
        token: Optional API token, sent as a bearer token.
        api_url: Base URL of the API, for GitHub Enterprise hosts.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        token: str | None = None,
        api_url: str = GITHUB_API,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._transport = transport

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:  # noqa: ANN401
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return await fetch_json(
            f"{self._api_url}{path}",
            params=params,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _list_names(self, url: str, kind: str) -> list[str]:
        owner, repo = parse_github_url(url)
        names: list[str] = []
        for page in range(1, MAX_PAGES + 1):
            data = await self._get(
                f"/repos/{owner}/{repo}/{kind}",
                params={"per_page": str(PER_PAGE), "page": str(page)},
            )
            if not isinstance(data, list):
                raise PackageSourceUnavailableError(
                    f"Unexpected {kind} response for {url}", {"url": url}
                )
            names.extend(
                item["name"] for item in data if isinstance(item, dict) and "name" in item
            )
            if len(data) < PER_PAGE:
                break
        else:
            logger.warning(
                "Stopped listing %s for %s/%s after %d pages", kind, owner, repo, MAX_PAGES
            )
        logger.debug("Found %d %s for %s/%s", len(names), kind, owner, repo)
        return names

    async def _get_commit(self, url: str, ref: str) -> dict[str, Any]:
        owner, repo = parse_github_url(url)
        data = await self._get(f"/repos/{owner}/{repo}/commits/{ref}")
        if not isinstance(data, dict) or "sha" not in data:
            raise PackageSourceUnavailableError(
                f"Unexpected commit response for {url}@{ref}", {"url": url, "ref": ref}
            )
        return data

    async def resolve_ref_to_commit(self, url: str, ref: str) -> tuple[str, str]:
        """Return ``(commit_sha, ref)`` for a tag, branch or commit."""
        data = await self._get_commit(url, ref)
        return data["sha"], ref

    async def list_available_tags(self, url: str) -> list[str]:
        return await self._list_names(url, "tags")

    async def list_available_branches(self, url: str) -> list[str]:
        return await self._list_names(url, "branches")

    async def get_commit_timestamp(self, url: str, commit: str) -> datetime:
        data = await self._get_commit(url, commit)
        try:
            return _parse_timestamp(data["commit"]["committer"]["date"])
        except (KeyError, TypeError, ValueError) as exc:
            raise PackageSourceUnavailableError(
                f"Commit {commit} has no timestamp", {"url": url, "commit": commit}
            ) from exc
