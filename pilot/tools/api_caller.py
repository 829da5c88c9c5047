"""Shared async HTTP caller for every external data source."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from pilot.config import settings
from pilot.errors import UpstreamError

logger = logging.getLogger(__name__)


async def call_api(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    json: Any = None,
    bearer_token: str | None = None,
    timeout: float | None = None,
    client: httpx.AsyncClient | None = None,
    source: str = "",
) -> Any:
    """Make an HTTP call and return the parsed JSON response.

    Transport failures, non-2xx statuses and undecodable bodies all raise
    ``UpstreamError``. When ``client`` is given it is used as-is (and left
    open); otherwise a short-lived client with the configured timeout is
    created for this call.
    """
    _headers = dict(headers or {})
    if bearer_token:
        _headers["Authorization"] = f"Bearer {bearer_token}"

    try:
        if client is not None:
            response = await client.request(
                method=method.upper(),
                url=url,
                headers=_headers,
                params=params,
                json=json,
            )
        else:
            async with httpx.AsyncClient(
                timeout=timeout or settings.http_timeout_seconds
            ) as owned:
                response = await owned.request(
                    method=method.upper(),
                    url=url,
                    headers=_headers,
                    params=params,
                    json=json,
                )
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        if status == 429:
            raise UpstreamError("Rate limit exceeded. Please try again later.", source) from exc
        raise UpstreamError(f"{source or url} returned HTTP {status}", source) from exc
    except httpx.HTTPError as exc:
        raise UpstreamError(f"{source or url} unreachable: {exc}", source) from exc
    except ValueError as exc:
        raise UpstreamError(f"{source or url} returned a non-JSON body", source) from exc
