# scheduler/reporter.py
import os
import json
from datetime import datetime, timezone
from crawler.db import find_run_products
from utils.alerts import send_alert
import pandas as pd
import logging

logger = logging.getLogger("reporter")
logger.setLevel(logging.INFO)

REPORT_DIR = os.getenv("REPORT_DIR", "./reports")


async def export_run(table_name, run_id, stats):
    """
    Export the products of a crawl run and email a summary.

    Reads every product stored by the run, writes them as JSON and CSV table
    files named after the target table, and sends an alert email with both
    files attached.

    Args:
        table_name (str): Export table name ("kosik" or "kosik_bf")
        run_id (str): Run whose products are exported
        stats (CrawlStats): Counters of the finished run

    Returns:
        tuple[str, str]: Paths of the JSON and CSV files

    Output Files:
        - {REPORT_DIR}/{table_name}_{YYYY-MM-DD}.json
        - {REPORT_DIR}/{table_name}_{YYYY-MM-DD}.csv

    Note:
        Uses UTC for the file date. The email lists failed request URLs so
        they can be checked by hand.
    """
    os.makedirs(REPORT_DIR, exist_ok=True)
    products = await find_run_products(run_id)

    filename_base = f"{table_name}_{datetime.now(timezone.utc).date().isoformat()}"
    json_path = os.path.join(REPORT_DIR, f"{filename_base}.json")
    csv_path = os.path.join(REPORT_DIR, f"{filename_base}.csv")

    cleaned = []
    for doc in products:
        doc = dict(doc)
        doc["_id"] = str(doc["_id"])
        cleaned.append(doc)

    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(cleaned, f, indent=2, ensure_ascii=False)

    pd.DataFrame(cleaned).to_csv(csv_path, index=False)
    logger.info(f"Exported {len(cleaned)} products to {json_path}, {csv_path}")

    subject = f"[Crawler] {table_name}: {len(cleaned)} products, {stats.failed} failed requests"
    body = (
        f"Crawl run {run_id} finished.\n\n"
        f"Pages handled: {stats.succeeded}\n"
        f"Products exported: {len(cleaned)}\n"
        f"Duplicates skipped: {stats.duplicates_skipped}\n"
        f"Item errors: {stats.item_errors}\n"
        f"Failed requests: {stats.failed}\n"
    )
    for url in stats.failed_urls:
        body += f"- {url}\n"
    body += (
        f"\nReport generated at: {datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')}\n"
        "Attached are the JSON and CSV exports.\n"
    )

    send_alert(subject, body, attachments=[json_path, csv_path])
    return json_path, csv_path
