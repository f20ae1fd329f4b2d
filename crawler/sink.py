# crawler/sink.py
from typing import Protocol
from .db import upsert_markup, upsert_product
from .jsonld import to_product


class OutputSink(Protocol):
    async def emit(self, record, shop, slug): ...


class MongoSink:
    """Persist each record and its schema.org markup to MongoDB."""

    def __init__(self, run_id, price_currency="CZK"):
        self.run_id = run_id
        self.price_currency = price_currency

    async def emit(self, record, shop, slug):
        await upsert_product(shop, slug, record.to_document(), self.run_id)
        await upsert_markup(shop, slug, to_product(record, self.price_currency))


class MemorySink:
    """Keep emitted records in memory (development runs and tests)."""

    def __init__(self, price_currency="CZK"):
        self.price_currency = price_currency
        self.records = []
        self.markup = {}

    async def emit(self, record, shop, slug):
        self.records.append((record, shop, slug))
        self.markup[(shop, slug)] = to_product(record, self.price_currency)
