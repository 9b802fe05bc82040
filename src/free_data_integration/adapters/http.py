from __future__ import annotations

import os

import requests


PROJECT_UA = "free-data-integration/0.1 (+property data aggregation)"
BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
MAX_BODY_BYTES = 2_000_000

JSON_HEADERS = {
    "User-Agent": PROJECT_UA,
    "Accept": "application/json",
}
HTML_HEADERS = {
    "User-Agent": BROWSER_UA,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


def build_session() -> requests.Session:
    session = requests.Session()
    use_no_proxy = (
        os.environ.get("NO_PROXY_LOOKUP") == "1"
        or os.environ.get("CI") == "1"
        or os.environ.get("CODESPACES") == "true"
    )
    if use_no_proxy:
        session.trust_env = False
    session.headers.update({"User-Agent": PROJECT_UA})
    return session


def truncated_text(response, max_bytes: int = MAX_BODY_BYTES) -> str:
    """Response text capped at ``max_bytes`` so a runaway page can't blow up parsing."""

    content = response.content or b""
    if len(content) > max_bytes:
        content = content[:max_bytes]
    encoding = getattr(response, "encoding", None) or "utf-8"
    try:
        return content.decode(encoding, errors="replace")
    except LookupError:
        return content.decode("utf-8", errors="replace")
