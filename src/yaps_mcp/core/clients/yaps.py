"""Kaito YAPS API client.

API: GET <endpoint>?username=<handle>
Returns {user_id, yaps_all, yaps_l24h, yaps_l7d, yaps_l30d}. No authentication.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from ..errors import UpstreamFetchError, UserNotFoundError
from ..models import Score, UpstreamScore
from ..scoring import compute_percentile, qualitative_label

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.kaito.ai/api/v1/yaps"
DEFAULT_TIMEOUT_SECONDS = 30.0
CONNECT_TIMEOUT_SECONDS = 10.0


async def fetch_score(
    username: str,
    endpoint: str = DEFAULT_ENDPOINT,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Score:
    """Fetch a score for an already-normalized username and derive its percentile.

    Args:
        username: Canonical handle (no leading '@').
        endpoint: YAPS API URL.
        timeout: Read timeout in seconds.
        transport: Optional httpx transport override.

    Raises:
        UserNotFoundError: upstream answered 404.
        UpstreamFetchError: any other non-200 status, transport failure, or malformed body.
    """
    headers = {"Content-Type": "application/json"}
    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=CONNECT_TIMEOUT_SECONDS),
            transport=transport,
        ) as client:
            response = await client.get(endpoint, params={"username": username}, headers=headers)
    except httpx.HTTPError as exc:
        logger.warning("YAPS request for %s failed: %s", username, exc)
        raise UpstreamFetchError(username, str(exc) or type(exc).__name__) from exc

    if response.status_code == 404:
        raise UserNotFoundError(username, "user not found")
    if response.status_code != 200:
        logger.warning("YAPS API returned %d for %s", response.status_code, username)
        raise UpstreamFetchError(username, f"HTTP {response.status_code} {response.reason_phrase}".strip())

    try:
        data = UpstreamScore.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        logger.warning("Malformed YAPS response for %s: %s", username, exc)
        raise UpstreamFetchError(username, "malformed response") from exc

    percentile = compute_percentile(data.yaps_l30d)
    return Score(
        user_id=data.user_id,
        username=username,
        yaps_all=data.yaps_all,
        yaps_l24h=data.yaps_l24h,
        yaps_l7d=data.yaps_l7d,
        yaps_l30d=data.yaps_l30d,
        percentile=percentile,
        qualitative_label=qualitative_label(percentile),
    )
