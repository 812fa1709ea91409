"""Web tool backends: URL fetch with text extraction, and a search stub."""

from __future__ import annotations

import re
from urllib.parse import quote_plus

import httpx
from bs4 import BeautifulSoup

FETCH_TIMEOUT = 10.0
MAX_CONTENT_CHARS = 4000
MAX_SEARCH_RESULTS = 10

_USER_AGENT = "Mozilla/5.0 (compatible; RiskGuardBot/1.0)"

_NON_TEXT_TAGS = ["script", "style", "noscript"]
_WHITESPACE = re.compile(r"\s+")


def extract_text_from_html(html: str) -> str:
    """Drop script/style/noscript elements, decode entities, collapse whitespace."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(_NON_TEXT_TAGS):
        element.decompose()
    return _WHITESPACE.sub(" ", soup.get_text(" ", strip=True))


def validate_url(url: str) -> httpx.URL:
    """Raises ValueError unless ``url`` is an absolute http(s) URL."""
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as err:
        raise ValueError(f"Invalid URL: {url}") from err
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValueError(f"Invalid URL: {url}")
    return parsed


async def fetch_url(url: str, transport: httpx.AsyncBaseTransport | None = None) -> str:
    """Fetch a page and return up to 4000 characters of its readable text.

    Raises:
        ValueError: on an invalid URL, transport error, non-2xx status, or
            non-text content type.
    """
    target = validate_url(url)
    try:
        async with httpx.AsyncClient(
            timeout=FETCH_TIMEOUT,
            headers={"User-Agent": _USER_AGENT},
            follow_redirects=True,
            transport=transport,
        ) as client:
            response = await client.get(target)
            response.raise_for_status()
    except httpx.HTTPStatusError as err:
        raise ValueError(f"Failed to fetch: HTTP {err.response.status_code}") from err
    except httpx.HTTPError as err:
        raise ValueError(f"Failed to fetch: {type(err).__name__}") from err

    content_type = response.headers.get("content-type", "")
    if "text/" not in content_type:
        raise ValueError("Failed to fetch: Unsupported content type")

    text = extract_text_from_html(response.text)
    if not text:
        return f"No readable content found at {url}"
    suffix = "..." if len(text) > MAX_CONTENT_CHARS else ""
    return f"Content from {url}:\n\n{text[:MAX_CONTENT_CHARS]}{suffix}"


def search_web(query: str, num_results: int = 5) -> str:
    """Search placeholder: no search provider is configured, so return a link."""
    num_results = max(1, min(int(num_results), MAX_SEARCH_RESULTS))
    return (
        f"Web search is not configured (requested {num_results} results).\n"
        f"Fallback: https://www.google.com/search?q={quote_plus(query)}"
    )
