# crawler/utils.py
from urllib.parse import urlparse
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)
from .errors import RETRYABLE_ERRORS


def shop_name(base_url):
    """
    Shop identifier derived from the shop's base URL.

    Args:
        base_url (str): e.g. "https://www.kosik.cz/"

    Returns:
        str: Host name without a leading "www." (e.g. "kosik.cz")
    """
    host = urlparse(base_url).netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def product_slug(record):
    """
    Storage slug of a product: last path segment of its URL.

    Falls back to the item id when the URL has no path.
    """
    path = urlparse(record.item_url).path.rstrip("/")
    slug = path.split("/")[-1] if path else ""
    return slug or str(record.item_id)


def network_retry(**tenacity_kwargs):
    """
    Create a tenacity async retry loop for fetch attempts.

    Args:
        **tenacity_kwargs: Optional keyword arguments
            - attempts (int): Total attempts including the first. Defaults to 3.
            - wait: tenacity wait strategy. Defaults to exponential backoff,
              min=1s, max=10s.
            - before_sleep: callback invoked before each retry sleep.

    Returns:
        tenacity.AsyncRetrying: Use as ``async for attempt in network_retry():``

    Retry Behavior:
        - Retries only transport, HTTP status and parse errors
        - Re-raises the last error once attempts are exhausted

    Example:
        async for attempt in network_retry(attempts=3):
            with attempt:
                body = await fetch(url)
    """
    return AsyncRetrying(
        stop=stop_after_attempt(tenacity_kwargs.get("attempts", 3)),
        wait=tenacity_kwargs.get("wait", wait_exponential(multiplier=1, min=1, max=10)),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=tenacity_kwargs.get("before_sleep"),
        reraise=True,
    )
