# crawler/traversal.py
from urllib.parse import urljoin, urlparse
import logging
from .config import BASE_URL, PAGE_SIZE
from .models import CrawlRequest, Step

logger = logging.getLogger("crawler.traversal")

MENU_PATH = "api/web/menu/main"


def listing_url(path, base_url=BASE_URL):
    """Listing API URL for a site-relative category path like "/ovoce"."""
    slug = path[1:] if path.startswith("/") else path
    return f"{base_url}api/web/page/products?slug={slug}&limit={PAGE_SIZE}"


def promo_listing_url(url, base_url=BASE_URL):
    """Listing API URL for a full promotional page URL (BF mode seed)."""
    return listing_url(urlparse(url).path, base_url)


def menu_request(base_url=BASE_URL):
    return CrawlRequest(target=f"{base_url}{MENU_PATH}", step=Step.CATEGORIES)


def promo_requests(urls, base_url=BASE_URL):
    return [
        CrawlRequest(target=promo_listing_url(u, base_url), step=Step.DETAIL)
        for u in urls
    ]


def seed_requests(config, base_url=BASE_URL):
    """Initial requests of a run: the category menu, or promo listings in BF mode."""
    if config.is_bf:
        return promo_requests(config.bf_urls, base_url)
    return [menu_request(base_url)]


def expand_categories(root, base_url=BASE_URL):
    """
    Yield a DETAIL listing request for every category in the tree.

    Categories are visited depth-first with children before their parent
    (post-order), top-level categories in menu order. An explicit stack is
    used so deep trees do not hit the recursion limit.

    Args:
        root (list[Category]): Top-level categories of the menu
        base_url (str): Shop base URL the listing API lives under

    Yields:
        CrawlRequest: One listing request per category node
    """
    stack = [(category, False) for category in reversed(root)]
    while stack:
        category, expanded = stack.pop()
        if expanded:
            yield CrawlRequest(
                target=listing_url(category.path, base_url), step=Step.DETAIL
            )
            continue
        stack.append((category, True))
        for child in reversed(category.children):
            stack.append((child, False))


def next_page_request(page, request=None, base_url=BASE_URL, max_pages=None):
    """
    Return the follow-up request for the next page of a listing, if any.

    The chain ends when the page carries no "more" URL. When max_pages is
    set, the chain is also cut once the current request is at that depth.
    """
    more = page.more_url
    if not more:
        return None
    current = request.page if request is not None else 1
    if max_pages is not None and current >= max_pages:
        logger.warning(
            f"Pagination stopped at page {current} (max_pages={max_pages}): {more}"
        )
        return None
    return CrawlRequest(
        target=urljoin(base_url, more), step=Step.DETAIL, page=current + 1
    )
