"""Collaborator implementations for package sources.

Provides a YAML-backed package index for local and offline resolution, and
a GitHub-backed git ref provider for live repositories.

Public API::

    from langpack.registry import PackageIndex, GitHubRefProvider
"""

from __future__ import annotations

from langpack.registry.github import GitHubRefProvider, parse_github_url
from langpack.registry.index import PackageIndex, Repository

__all__ = [
    "GitHubRefProvider",
    "PackageIndex",
    "Repository",
    "parse_github_url",
]
