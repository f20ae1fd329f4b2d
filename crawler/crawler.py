# crawler/crawler.py
import asyncio
import inspect
import uuid
import httpx
from httpx import AsyncClient
from pydantic import ValidationError
from .config import (
    ACCEPTED_CONTENT_TYPES,
    BASE_URL,
    CONCURRENCY,
    REQUEST_TIMEOUT,
    RETRIES,
)
from .dedup import DedupRegistry
from .errors import (
    RETRYABLE_ERRORS,
    HandlerError,
    HttpStatusError,
    ParseError,
    TransportError,
)
from .models import CategoryMenu, CrawlStats, ListingPage, Step
from .normalizer import breadcrumb_path, normalize_item, validate_item
from .traversal import expand_categories, next_page_request
from .utils import network_retry, product_slug, shop_name
import logging

logger = logging.getLogger("crawler")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
logger.addHandler(handler)


def log_failed_request(request, error):
    logger.error(f"Request {request.target} failed multiple times: {error}")


class Crawler:
    def __init__(
        self,
        sink,
        base_url=BASE_URL,
        concurrency=CONCURRENCY,
        retries=RETRIES,
        request_timeout=REQUEST_TIMEOUT,
        max_pages=None,
        proxy=None,
        on_failed=log_failed_request,
        retry_wait=None,
        transport=None,
    ):
        self.sink = sink
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.shop = shop_name(self.base_url)
        self.concurrency = concurrency
        self.retries = retries
        self.request_timeout = request_timeout
        self.max_pages = max_pages
        self.on_failed = on_failed
        self.retry_wait = retry_wait
        self.client = AsyncClient(
            timeout=request_timeout,
            proxy=proxy,
            transport=transport,
            follow_redirects=True,
        )
        self.run_id = None
        self.registry = DedupRegistry()
        self.stats = CrawlStats()
        self.queue = None

    async def close(self):
        """
        Close the HTTP client and release resources.

        Should be called when the crawler instance is no longer needed, or
        use the crawler as an async context manager.
        """
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def fetch(self, url):
        """
        Perform a single GET attempt and decode the JSON body.

        Args:
            url (str): The URL to fetch

        Returns:
            Any: Decoded JSON body

        Raises:
            TransportError: Network failure or no response within request_timeout
            HttpStatusError: Any status other than 200
            ParseError: Unsupported content type or undecodable body

        Note:
            Responses served as text/plain are decoded as JSON too; the
            listing API is not consistent about its content type.
        """
        try:
            resp = await asyncio.wait_for(
                self.client.get(url), timeout=self.request_timeout
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Timed out after {self.request_timeout}s: {url}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Fetch error {url}: {e}") from e

        if resp.status_code != 200:
            logger.info(f"Status code: {resp.status_code} for {url}")
            raise HttpStatusError(url, resp.status_code)

        content_type = resp.headers.get("content-type", "").split(";")[0].strip()
        if content_type.lower() not in ACCEPTED_CONTENT_TYPES:
            raise ParseError(f"Unsupported content type {content_type!r}: {url}")
        try:
            return resp.json()
        except ValueError as e:
            raise ParseError(f"Invalid JSON body: {url}") from e

    async def fetch_page(self, request):
        """Fetch a request and parse its body for the handler selected by step."""
        body = await self.fetch(request.target)
        model = CategoryMenu if request.step == Step.CATEGORIES else ListingPage
        try:
            return model.model_validate(body)
        except ValidationError as e:
            raise ParseError(
                f"Unexpected {request.step.value} body: {request.target}"
            ) from e

    async def fetch_with_retry(self, request):
        def log_retry(retry_state):
            logger.warning(
                f"Fetch error {request.target}: {retry_state.outcome.exception()} "
                f"attempt {retry_state.attempt_number}"
            )

        retry_kwargs = {"attempts": self.retries, "before_sleep": log_retry}
        if self.retry_wait is not None:
            retry_kwargs["wait"] = self.retry_wait

        async for attempt in network_retry(**retry_kwargs):
            with attempt:
                return await self.fetch_page(request)

    async def enqueue(self, request):
        await self.queue.put(request)

    async def process_request(self, request):
        """
        Fetch one request and route the parsed body by its step.

        CATEGORIES bodies are expanded into listing requests. DETAIL bodies
        enqueue their next page (if any) and emit every unseen item. Requests
        that exhaust their attempts are reported to on_failed and dropped.
        """
        try:
            page = await self.fetch_with_retry(request)
        except RETRYABLE_ERRORS as e:
            self.stats.failed += 1
            self.stats.failed_urls.append(request.target)
            try:
                result = self.on_failed(request, e)
                if inspect.isawaitable(result):
                    await result
            except Exception as cb_error:
                logger.exception(
                    f"Failure callback raised for {request.target}: {cb_error}"
                )
            return

        if request.step == Step.CATEGORIES:
            count = 0
            for listing in expand_categories(page.categories, self.base_url):
                await self.enqueue(listing)
                count += 1
            logger.info(f"Enqueued {count} category listings")
        else:
            await self.handle_listing(request, page)

        self.stats.succeeded += 1
        logger.info(f"Handled page {request.target}")

    async def handle_listing(self, request, page):
        follow = next_page_request(page, request, self.base_url, self.max_pages)
        if follow is not None:
            await self.enqueue(follow)

        breadcrumbs = breadcrumb_path(page)
        for item in page.items:
            await self.process_item(item, breadcrumbs)

    async def process_item(self, item, breadcrumbs):
        """
        Normalize and emit a single listing item unless it was already emitted.

        Returns:
            bool: True if a record reached the sink

        Note:
            A failing item is logged and skipped; the rest of the page is
            still processed. Its id is released so a later page can retry it.
        """
        try:
            raw = validate_item(item)
        except HandlerError as e:
            self.stats.item_errors += 1
            logger.error(f"Item skipped: {e}")
            return False

        if not self.registry.should_emit(raw.id):
            self.stats.duplicates_skipped += 1
            return False

        try:
            record = normalize_item(raw, breadcrumbs, self.base_url)
            await self.emit(record)
        except HandlerError as e:
            self.registry.release(raw.id)
            self.stats.item_errors += 1
            logger.error(f"Item skipped: {e}")
            return False

        self.stats.items_emitted += 1
        return True

    async def emit(self, record):
        try:
            await self.sink.emit(record, self.shop, product_slug(record))
        except Exception as e:
            raise HandlerError(record.item_id, f"sink failed: {e}") from e

    async def worker(self):
        while True:
            request = await self.queue.get()
            try:
                await self.process_request(request)
            except Exception as e:
                logger.exception(f"Failed handling {request.target}: {e}")
                self.stats.failed += 1
                self.stats.failed_urls.append(request.target)
            finally:
                self.queue.task_done()

    async def run(self, seeds, run_id=None):
        """
        Crawl from the seed requests until the work queue drains.

        Starts `concurrency` workers on a shared FIFO queue, so at most that
        many requests are in flight. The run is over when the queue is empty
        and every worker is idle.

        Args:
            seeds (list[CrawlRequest]): Initial requests (menu or promo listings)
            run_id (str, optional): Identifier stamped on stored records.
                A random one is generated when omitted.

        Returns:
            CrawlStats: Counters for pages, failed requests and items
        """
        self.run_id = run_id or uuid.uuid4().hex
        self.registry = DedupRegistry()
        self.stats = CrawlStats()
        self.queue = asyncio.Queue()

        for seed in seeds:
            await self.enqueue(seed)

        workers = [asyncio.create_task(self.worker()) for _ in range(self.concurrency)]
        try:
            await self.queue.join()
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        logger.info(
            f"Crawler finished: {self.stats.succeeded} pages, "
            f"{self.stats.items_emitted} items, {self.stats.failed} failed requests"
        )
        return self.stats
