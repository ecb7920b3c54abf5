"""Tests for the GitHub ref provider and the shared HTTP helper.

All HTTP traffic goes through ``httpx.MockTransport``; no network access
is needed.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from langpack.core.dependency import GitRefProvider, VersionResolutionService
from langpack.core.versioning import Version
from langpack.exceptions import PackageSourceUnavailableError
from langpack.registry import GitHubRefProvider, parse_github_url
from langpack.registry.http_client import USER_AGENT, fetch_json

URL = "https://github.com/org/prop"
SHA = "0123456789abcdef0123456789abcdef01234567"


def _github_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/repos/org/prop/tags":
        return httpx.Response(200, json=[{"name": "v1.0.0"}, {"name": "v1.1.0"}, {"name": "v2.0.0-rc.1"}])
    if path == "/repos/org/prop/branches":
        return httpx.Response(200, json=[{"name": "main"}, {"name": "wip"}])
    if path in ("/repos/org/prop/commits/v1.1.0", f"/repos/org/prop/commits/{SHA}"):
        return httpx.Response(
            200,
            json={"sha": SHA, "commit": {"committer": {"date": "2024-03-01T08:30:00Z"}}},
        )
    return httpx.Response(404, json={"message": "Not Found"})


@pytest.fixture
def provider() -> GitHubRefProvider:
    return GitHubRefProvider(transport=httpx.MockTransport(_github_handler))


class TestParseGithubUrl:
    """Repository URL forms."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/org/prop",
            "https://github.com/org/prop.git",
            "https://github.com/org/prop/",
            "git@github.com:org/prop.git",
        ],
    )
    def test_accepted(self, url: str) -> None:
        assert parse_github_url(url) == ("org", "prop")

    @pytest.mark.parametrize("url", ["https://gitlab.com/org/prop", "github.com/org", "not a url"])
    def test_rejected(self, url: str) -> None:
        with pytest.raises(PackageSourceUnavailableError, match="Not a GitHub repository URL"):
            parse_github_url(url)


class TestGitHubRefProvider:
    """Provider calls against a mocked API."""

    def test_is_a_git_ref_provider(self, provider: GitHubRefProvider) -> None:
        assert isinstance(provider, GitRefProvider)

    def test_tags(self, provider: GitHubRefProvider) -> None:
        assert asyncio.run(provider.list_available_tags(URL)) == ["v1.0.0", "v1.1.0", "v2.0.0-rc.1"]

    def test_branches(self, provider: GitHubRefProvider) -> None:
        assert asyncio.run(provider.list_available_branches(URL)) == ["main", "wip"]

    def test_resolve_ref(self, provider: GitHubRefProvider) -> None:
        assert asyncio.run(provider.resolve_ref_to_commit(URL, "v1.1.0")) == (SHA, "v1.1.0")

    def test_unknown_ref(self, provider: GitHubRefProvider) -> None:
        with pytest.raises(PackageSourceUnavailableError, match="HTTP 404"):
            asyncio.run(provider.resolve_ref_to_commit(URL, "nope"))

    def test_commit_timestamp(self, provider: GitHubRefProvider) -> None:
        stamp = asyncio.run(provider.get_commit_timestamp(URL, SHA))
        assert stamp == datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)

    def test_token_sent_as_bearer(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        provider = GitHubRefProvider(token="secret", transport=httpx.MockTransport(handler))
        asyncio.run(provider.list_available_tags(URL))
        assert seen[0].headers["Authorization"] == "Bearer secret"
        assert seen[0].headers["User-Agent"] == USER_AGENT
        assert seen[0].url.params["per_page"] == "100"

    def test_tags_span_pages(self) -> None:
        pages = {
            "1": [{"name": f"v1.0.{i}"} for i in range(100)],
            "2": [{"name": "v9.0.0"}],
        }
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            page = request.url.params["page"]
            seen.append(page)
            return httpx.Response(200, json=pages.get(page, []))

        provider = GitHubRefProvider(transport=httpx.MockTransport(handler))
        tags = asyncio.run(provider.list_available_tags(URL))
        assert len(tags) == 101
        assert tags[-1] == "v9.0.0"
        assert seen == ["1", "2"]

        service = VersionResolutionService(provider)
        assert asyncio.run(service.find_latest_stable_version(URL)) == Version.parse("9.0.0")

    def test_full_last_page_fetches_one_more(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            page = request.url.params["page"]
            seen.append(page)
            names = [{"name": f"b{i}"} for i in range(100)] if page == "1" else []
            return httpx.Response(200, json=names)

        provider = GitHubRefProvider(transport=httpx.MockTransport(handler))
        assert len(asyncio.run(provider.list_available_branches(URL))) == 100
        assert seen == ["1", "2"]

    def test_unexpected_payload(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"oops": True}))
        provider = GitHubRefProvider(transport=transport)
        with pytest.raises(PackageSourceUnavailableError, match="Unexpected tags response"):
            asyncio.run(provider.list_available_tags(URL))

    def test_drives_version_resolution(self, provider: GitHubRefProvider) -> None:
        service = VersionResolutionService(provider)
        versions = asyncio.run(service.get_available_versions(URL))
        assert [str(v) for v in versions] == ["1.1.0", "1.0.0", "2.0.0-rc.1", "0.0.0-dev+main"]
        assert asyncio.run(service.find_latest_stable_version(URL)) == Version.parse("1.1.0")


class TestFetchJson:
    """Error normalisation in the shared HTTP helper."""

    def test_success(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": 1}))
        assert asyncio.run(fetch_json("https://example.test/x", transport=transport)) == {"ok": 1}

    def test_http_error(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        with pytest.raises(PackageSourceUnavailableError) as exc_info:
            asyncio.run(fetch_json("https://example.test/x", transport=transport))
        assert exc_info.value.context == {"url": "https://example.test/x", "status": 503}

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(PackageSourceUnavailableError, match="Timeout fetching"):
            asyncio.run(fetch_json("https://example.test/x", transport=httpx.MockTransport(handler)))

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(PackageSourceUnavailableError, match="Request error"):
            asyncio.run(fetch_json("https://example.test/x", transport=httpx.MockTransport(handler)))

    def test_invalid_json(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(PackageSourceUnavailableError):
            asyncio.run(fetch_json("https://example.test/x", transport=transport))
