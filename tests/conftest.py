# tests/conftest.py
import sys
import os

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT_DIR)

import json
import pytest
from typing import List, Dict, Any
import httpx
from tenacity import wait_none

from crawler.crawler import Crawler
from crawler.sink import MemorySink

BASE = "https://www.kosik.cz/"


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = list(docs)

    async def to_list(self, length):
        """Return copies of the matched documents; length=None means all."""
        docs = self._docs if length is None else self._docs[:length]
        return [dict(d) for d in docs]


class FakeCollection:
    def __init__(self, docs=None):
        self.docs = list(docs or [])

    def find(self, q=None):
        q = q or {}
        return FakeCursor(
            [d for d in self.docs if all(d.get(k) == v for k, v in q.items())]
        )

    async def update_one(self, q, u, upsert=False):
        """
        Apply a $set update to the first matching document.

        Simulates Motor's update_one for the subset used by crawler.db:
        only the $set operator is supported. With upsert=True a missing
        document is created from the query and the $set fields.

        Returns:
            dict: {"matched_count": 0 | 1, "upserted": bool}
        """
        for sd in self.docs:
            if all(sd.get(k) == v for k, v in q.items()):
                sd.update(u.get("$set", {}))
                return {"matched_count": 1, "upserted": False}
        if upsert:
            doc = dict(q)
            doc.update(u.get("$set", {}))
            self.docs.append(doc)
            return {"matched_count": 0, "upserted": True}
        return {"matched_count": 0, "upserted": False}


class FakeDB:
    def __init__(self, products=None, markup=None):
        self.products = FakeCollection(products or [])
        self.markup = FakeCollection(markup or [])


class FakeSite:
    """
    In-memory kosik.cz API served through httpx.MockTransport.

    Routes map absolute URLs to a response spec: a JSON-able body (served as
    application/json with status 200), or a tuple (status, body, content_type).
    A list of specs is consumed one per request, the last one repeating.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def add(self, url, spec):
        self.routes[url] = spec

    def count(self, url):
        return self.calls.count(url)

    def handler(self, request: httpx.Request):
        url = str(request.url)
        self.calls.append(url)
        spec = self.routes.get(url)
        if spec is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(spec, list):
            index = min(self.count(url) - 1, len(spec) - 1)
            spec = spec[index]
        if isinstance(spec, Exception):
            raise spec
        if isinstance(spec, tuple):
            status, body, content_type = spec
        else:
            status, body, content_type = 200, spec, "application/json"
        content = body if isinstance(body, (str, bytes)) else json.dumps(body)
        return httpx.Response(
            status, content=content, headers={"content-type": content_type}
        )

    def transport(self):
        return httpx.MockTransport(self.handler)


def make_item(item_id, **overrides):
    item = {
        "id": item_id,
        "name": f"Product {item_id}",
        "url": f"/p{item_id}-product-{item_id}",
        "price": 49.9,
        "recommendedPrice": 49.9,
        "percentageDiscount": 0,
        "firstOrderDay": None,
        "image": f"https://static.kosik.cz/{item_id}.jpg",
    }
    item.update(overrides)
    return item


def listing_body(items, more=None, breadcrumbs=None, title="Listing"):
    body = {"products": {"items": items, "more": more}, "title": title}
    if breadcrumbs is not None:
        body["breadcrumbs"] = [{"name": b} for b in breadcrumbs]
    return body


@pytest.fixture
def site():
    return FakeSite()


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def fake_db(monkeypatch):
    """Patch crawler.db.get_db to return an in-memory FakeDB."""
    db = FakeDB()
    monkeypatch.setattr("crawler.db.get_db", lambda: db)
    return db


@pytest.fixture
def failures():
    return []


@pytest.fixture
async def crawler(site, sink, failures):
    """
    Crawler wired to the fake site and an in-memory sink.

    Retries do not sleep, and every request that exhausts its attempts is
    appended to the `failures` fixture.
    """

    def on_failed(request, error):
        failures.append((request.target, error))

    c = Crawler(
        sink,
        base_url=BASE,
        concurrency=4,
        retry_wait=wait_none(),
        on_failed=on_failed,
        transport=site.transport(),
    )
    yield c
    await c.close()
