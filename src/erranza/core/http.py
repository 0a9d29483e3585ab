"""
HTTP helpers.

The only outbound HTTP call the matching core makes is the optional generative
narrative request, so the surface is one function: POST JSON, return JSON.

Non-2xx responses raise so the caller decides how to fail (the narrative layer
falls back to template prose).
"""

from __future__ import annotations

from typing import Any

import httpx

DEFAULT_USER_AGENT = "erranza/0.1.0 (+https://erranza.app)"


def post_json(
    url: str,
    *,
    payload: dict[str, Any],
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 30,
) -> Any:
    """POST `payload` as a JSON body and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)

    with httpx.Client(timeout=timeout_seconds) as client:
        resp = client.post(url, json=payload, headers=request_headers)
        resp.raise_for_status()
        return resp.json()
