"""Browser-like request headers for upstream sites that sniff clients."""

from __future__ import annotations


def browser_headers(user_agent: str, referer: str | None = None) -> dict[str, str]:
    headers = {
        "User-Agent": user_agent,
        "Accept": (
            "text/html,application/xhtml+xml,application/xml;q=0.9,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
    }
    if referer:
        headers["Referer"] = referer
    return headers
