"""HTTP fetch operation (requests) retried by the driver."""

from __future__ import annotations

import logging
from typing import Dict, Optional

import requests

from relentless.application.retry_driver import RetryDriver

logger = logging.getLogger(__name__)


def fetch_with_retries(
    url: str,
    driver: RetryDriver,
    *,
    timeout: float,
    headers: Optional[Dict[str, str]] = None,
    session: Optional[requests.Session] = None,
) -> requests.Response:
    """GET url, retrying network errors and non-2xx responses alike

    Args:
        url: URL to fetch
        driver: Retry policy
        timeout: Per-request timeout in seconds
        headers: Optional request headers
        session: Optional requests session (module-level requests.get otherwise)

    Returns:
        Successful response

    Raises:
        AttemptsExhausted: If all attempts failed; the last requests
            exception is chained as the cause
    """
    get = session.get if session is not None else requests.get

    def _fetch(attempt: int) -> requests.Response:
        logger.debug(f"HTTP GET {url} (attempt {attempt})")
        resp = get(url, headers=headers or {}, timeout=timeout)
        resp.raise_for_status()
        return resp

    return driver.run(_fetch)
