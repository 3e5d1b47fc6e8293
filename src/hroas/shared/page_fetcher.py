"""Plain-text page fetcher used to ground the analysis prompt.

A fetch failure is never fatal: the analysis pass falls back to inferring
the business from the URL and goal alone.
"""

from __future__ import annotations

import logging
import re

import httpx

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
DEFAULT_TIMEOUT = 5.0
DEFAULT_MAX_CHARS = 3000

_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def normalize_url(url: str) -> str:
    """Prepend ``https://`` when the URL has no scheme."""
    url = url.strip()
    return url if _SCHEME_RE.match(url) else f"https://{url}"


def html_to_text(html: str, *, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Strip scripts, styles and tags; collapse whitespace; truncate."""
    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    text = _WS_RE.sub(" ", text).strip()
    return text[:max_chars]


async def fetch_page_text(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    max_chars: int = DEFAULT_MAX_CHARS,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Fetch ``url`` and return its visible text, or ``""`` on any failure.

    ``client`` lets callers (and tests) supply a preconfigured
    ``httpx.AsyncClient``; otherwise a short-lived one is created.
    """
    target = normalize_url(url)
    headers = {"User-Agent": USER_AGENT}

    try:
        if client is not None:
            resp = await client.get(target, headers=headers, timeout=timeout, follow_redirects=True)
        else:
            async with httpx.AsyncClient(follow_redirects=True, timeout=timeout) as http:
                resp = await http.get(target, headers=headers)
    except httpx.TimeoutException:
        logger.warning("Fetching %s timed out after %.1fs", target, timeout)
        return ""
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("Failed to fetch website content from %s: %s", target, exc)
        return ""

    if resp.status_code >= 400:
        logger.warning("Fetching %s returned HTTP %d", target, resp.status_code)
        return ""

    text = html_to_text(resp.text, max_chars=max_chars)
    logger.debug("Fetched %d chars of page text from %s", len(text), target)
    return text
