"""Search GitHub for repositories."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import requests

API_URL = "https://api.github.com/search/repositories"
USER_AGENT = "radon-pkg-manager"


class SearchError(Exception):
    """Raised when the repository search cannot be completed."""


def build_search_url(query: str) -> str:
    """Return the search API URL for a query, fully percent-encoded."""
    return f"{API_URL}?q={quote(query, safe='')}"


def _count(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return 0


def format_results(data: Any) -> list[str]:
    """Turn a search API response into one line per repository."""
    items = data.get("items") if isinstance(data, dict) else None
    if not isinstance(items, list):
        message = "Unexpected GitHub API response format"
        detail = data.get("message") if isinstance(data, dict) else None
        if isinstance(detail, str):
            message += f"\nGitHub says: {detail}"
        raise SearchError(message)
    return [
        f"{item['full_name']} stars:{_count(item.get('stargazers_count'))} "
        f"forks:{_count(item.get('forks_count'))} github"
        for item in items
        if isinstance(item, dict) and isinstance(item.get("full_name"), str)
    ]


def search(query: str) -> list[str]:
    """Query GitHub, print the matching repositories and return the lines."""
    try:
        response = requests.get(
            build_search_url(query), headers={"User-Agent": USER_AGENT}, timeout=30
        )
    except requests.RequestException as exc:
        raise SearchError(f"Failed to access GitHub API: {exc}") from exc

    if not 200 <= response.status_code < 300:
        raise SearchError(
            f"GitHub API error: {response.status_code} {response.reason} - {response.text}"
        )

    try:
        data = response.json()
    except ValueError as exc:
        raise SearchError(f"Failed to parse GitHub response: {exc}") from exc

    lines = format_results(data)
    for line in lines:
        print(line)
    return lines