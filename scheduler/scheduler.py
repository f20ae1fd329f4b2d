# scheduler/scheduler.py
import asyncio
import os
import sys
import uuid
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from crawler.config import BASE_URL, RunConfig
from crawler.crawler import Crawler
from crawler.sink import MemorySink, MongoSink
from crawler.traversal import seed_requests
from scheduler.reporter import export_run


logger = logging.getLogger("scheduler")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
logger.addHandler(handler)

CRAWL_HOUR = int(os.getenv("CRAWL_HOUR", "3"))


async def scheduled_crawl(config=None, sink=None, transport=None):
    """
    Execute one crawl run and export its results.

    Seeds the crawler from the category menu (or the promo URLs in BF mode),
    drains the queue, and unless running in development exports the run's
    products and sends the summary email.

    Args:
        config (RunConfig, optional): Run input. Read from the environment
            when omitted.
        sink (OutputSink, optional): Where records go. MongoSink by default,
            MemorySink in development.
        transport (httpx.AsyncBaseTransport, optional): HTTP transport override

    Returns:
        CrawlStats: Counters of the finished run

    Note:
        The crawler is always closed in the finally block. A failed export is
        logged and does not fail the run.
    """
    config = config or RunConfig.from_env()
    run_id = uuid.uuid4().hex
    if sink is None:
        if config.development:
            sink = MemorySink(config.price_currency)
        else:
            sink = MongoSink(run_id, config.price_currency)

    logger.info(f"Starting crawl {run_id} (type={config.type or 'FULL'})")
    c = Crawler(
        sink,
        concurrency=config.max_concurrency,
        max_pages=config.max_pages,
        proxy=config.proxy_url(),
        transport=transport,
    )
    try:
        stats = await c.run(seed_requests(config, c.base_url), run_id=run_id)
    finally:
        await c.close()
    logger.info("crawler finished")

    if not config.development:
        try:
            await export_run(config.table_name(), run_id, stats)
            logger.info("export finished")
        except Exception as e:
            logger.warning(f"export failed: {e}")
    return stats


async def async_main():
    """
    Run the crawl daily on an APScheduler AsyncIOScheduler.

    Configuration:
        - Job: scheduled_crawl
        - Trigger: cron, every day at CRAWL_HOUR (UTC)
        - Job ID: "daily_crawl"

    Note:
        Blocks on asyncio.Event().wait() until the process is terminated.
    """
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        scheduled_crawl,
        "cron",
        hour=CRAWL_HOUR,
        id="daily_crawl",
        max_instances=1,
    )

    scheduler.start()
    logger.info(f"Scheduler started for {BASE_URL} (daily at {CRAWL_HOUR}:00 UTC)")
    await asyncio.Event().wait()


if __name__ == "__main__":
    if "--once" in sys.argv:
        asyncio.run(scheduled_crawl())
    else:
        asyncio.run(async_main())
