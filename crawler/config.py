# crawler/config.py
import os
from typing import List, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field
import logging

load_dotenv()

BASE_URL = os.getenv("BASE_URL", "https://www.kosik.cz/")
CONCURRENCY = int(os.getenv("CRAWL_CONCURRENCY", "4"))
RETRIES = int(os.getenv("CRAWL_RETRIES", "3"))
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "60"))
PAGE_SIZE = 60
ACCEPTED_CONTENT_TYPES = ("application/json", "text/plain")

APIFY_PROXY_HOST = os.getenv("APIFY_PROXY_HOST", "proxy.apify.com:8000")
DEFAULT_BF_URLS = ["https://www.kosik.cz/listy/bf-nanecisto-2021"]

logger = logging.getLogger("crawler.config")


def _env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name, default):
    value = os.getenv(name)
    if not value:
        return list(default)
    return [v.strip() for v in value.split(",") if v.strip()]


class RunConfig(BaseModel):
    """Input of a single crawl run."""

    country: str = "cz"
    development: bool = False
    max_concurrency: int = Field(CONCURRENCY, ge=1)
    proxy_groups: List[str] = Field(default_factory=lambda: ["CZECH_LUMINATI"])
    proxy_password: Optional[str] = None
    type: Optional[str] = None
    bf_urls: List[str] = Field(default_factory=lambda: list(DEFAULT_BF_URLS))
    max_pages: Optional[int] = Field(None, ge=1)
    price_currency: str = "CZK"

    @classmethod
    def from_env(cls):
        """
        Build the run configuration from environment variables.

        Recognised variables: COUNTRY, DEVELOPMENT, CRAWL_CONCURRENCY,
        PROXY_GROUPS (comma separated), APIFY_PROXY_PASSWORD, CRAWL_TYPE,
        BF_URLS (comma separated), MAX_PAGES and PRICE_CURRENCY.
        """
        max_pages = os.getenv("MAX_PAGES")
        return cls(
            country=os.getenv("COUNTRY", "cz"),
            development=_env_bool("DEVELOPMENT"),
            max_concurrency=CONCURRENCY,
            proxy_groups=_env_list("PROXY_GROUPS", ["CZECH_LUMINATI"]),
            proxy_password=os.getenv("APIFY_PROXY_PASSWORD"),
            type=os.getenv("CRAWL_TYPE") or None,
            bf_urls=_env_list("BF_URLS", DEFAULT_BF_URLS),
            max_pages=int(max_pages) if max_pages else None,
            price_currency=os.getenv("PRICE_CURRENCY", "CZK"),
        )

    @property
    def is_bf(self):
        return self.type == "BF"

    def proxy_url(self):
        """Group proxy URL for the run, or None when no proxy should be used."""
        if self.development:
            return None
        if not self.proxy_password:
            logger.warning("APIFY_PROXY_PASSWORD not set, crawling without proxy")
            return None
        groups = "+".join(self.proxy_groups)
        return f"http://groups-{groups}:{self.proxy_password}@{APIFY_PROXY_HOST}"

    def table_name(self):
        table = "kosik"
        if self.is_bf:
            table = f"{table}_bf"
        return table
