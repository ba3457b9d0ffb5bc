# airmetrics/utils/http.py
import logging
from typing import Any, Optional

import httpx

from ..core.errors import RateLimited, UpstreamUnavailable

logger = logging.getLogger(__name__)


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
    provider: str = "upstream",
) -> Any:
    """
    GET `url` and decode the JSON body, classifying every failure.

    429 -> RateLimited; timeout, transport error, any other non-2xx or a
    body that is not JSON -> UpstreamUnavailable. Single attempt, no retry.
    """
    try:
        r = await client.get(url, params=params, headers=headers)
        r.raise_for_status()
    except httpx.TimeoutException as e:
        logger.warning("%s request timed out: %s", provider, e)
        raise UpstreamUnavailable(f"{provider} request timed out") from e
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        if status == 429:
            logger.warning("%s rate limit reached", provider)
            raise RateLimited(f"{provider} rate limit exceeded, please try again later") from e
        logger.warning("%s answered HTTP %d", provider, status)
        raise UpstreamUnavailable(f"{provider} answered HTTP {status}") from e
    except httpx.HTTPError as e:
        logger.warning("%s transport error: %s", provider, e)
        raise UpstreamUnavailable(f"{provider} is unreachable") from e

    try:
        return r.json()
    except ValueError as e:
        raise UpstreamUnavailable(f"{provider} returned a non-JSON body") from e
