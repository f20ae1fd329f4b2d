# crawler/db.py
from datetime import datetime, timezone
import os
from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv

load_dotenv()

MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "kosik")

_client = None
_db = None


def get_client():
    """Initialize and return the MongoDB AsyncIOMotorClient singleton."""
    global _client, _db
    if _client is None:
        _client = AsyncIOMotorClient(MONGO_URI)
        _db = _client[MONGO_DB]
    return _client


def get_db():
    """Return the MongoDB database instance, initializing if needed."""
    global _db
    if _db is None:
        get_client()
    return _db


def document_key(shop, slug):
    return f"{shop}/{slug}"


async def upsert_product(shop, slug, record_doc, run_id):
    """
    Insert or update a product record in the products collection.

    The document is keyed by shop and slug, so re-running a crawl overwrites
    the previous version instead of duplicating it.
    """
    db = get_db()
    doc = dict(record_doc)
    doc.update(
        {
            "_id": document_key(shop, slug),
            "shop": shop,
            "slug": slug,
            "run_id": run_id,
            "crawled_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        }
    )
    await db.products.update_one({"_id": doc["_id"]}, {"$set": doc}, upsert=True)
    return doc


async def upsert_markup(shop, slug, jsonld):
    """Insert or update the JSON-LD document stored alongside a product."""
    db = get_db()
    key = document_key(shop, slug)
    await db.markup.update_one(
        {"_id": key},
        {"$set": {"_id": key, "format": "jsonld", "document": jsonld}},
        upsert=True,
    )


async def find_run_products(run_id):
    """Return all product documents written by the given run."""
    db = get_db()
    cursor = db.products.find({"run_id": run_id})
    return await cursor.to_list(length=None)
