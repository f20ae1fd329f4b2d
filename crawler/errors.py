# crawler/errors.py


class CrawlError(Exception):
    """Base class for errors raised while handling a crawl request."""


class TransportError(CrawlError):
    """Network failure or timeout while fetching a URL."""


class HttpStatusError(CrawlError):
    def __init__(self, url, status_code):
        super().__init__(f"{url} returned status {status_code}")
        self.url = url
        self.status_code = status_code


class ParseError(CrawlError):
    """Response body is not usable by the handler selected for the request."""


class HandlerError(CrawlError):
    """A single listing item could not be normalized or emitted."""

    def __init__(self, item_id, message):
        super().__init__(f"item {item_id}: {message}")
        self.item_id = item_id


# errors that count against the per-request attempt budget
RETRYABLE_ERRORS = (TransportError, HttpStatusError, ParseError)
