# tests/test_traversal.py
from crawler.config import RunConfig
from crawler.models import Category, CategoryMenu, CrawlRequest, ListingPage, Step
from crawler.traversal import (
    expand_categories,
    listing_url,
    next_page_request,
    promo_listing_url,
    seed_requests,
)

BASE = "https://www.kosik.cz/"


def slugs(requests):
    return [r.target.split("slug=")[1].split("&")[0] for r in requests]


def test_listing_url_strips_leading_slash_and_sets_page_size():
    assert listing_url("/ovoce-a-zelenina", BASE) == (
        "https://www.kosik.cz/api/web/page/products?slug=ovoce-a-zelenina&limit=60"
    )


def test_promo_listing_url_uses_pathname():
    url = promo_listing_url("https://www.kosik.cz/listy/bf-nanecisto-2021?x=1", BASE)
    assert url.endswith("slug=listy/bf-nanecisto-2021&limit=60")


def test_expand_yields_child_before_parent():
    """
    Expanding {categories:[{path:"/a", subcategories:[{path:"/a/b"}]}]}
    yields the listing for /a/b first, then the one for /a.
    """
    menu = CategoryMenu.model_validate(
        {"categories": [{"path": "/a", "subcategories": [{"path": "/a/b"}]}]}
    )
    requests = list(expand_categories(menu.categories, BASE))

    assert slugs(requests) == ["a/b", "a"]
    assert all(r.step == Step.DETAIL for r in requests)


def test_expand_post_order_on_nested_tree():
    menu = CategoryMenu.model_validate(
        {
            "categories": [
                {
                    "url": "/a",
                    "subcategories": [
                        {"url": "/a/x", "subcategories": [{"url": "/a/x/1"}]},
                        {"url": "/a/y"},
                    ],
                },
                {"url": "/b", "subcategories": []},
                {"url": "/c", "subcategories": [{"url": "/c/z"}]},
            ]
        }
    )
    requests = list(expand_categories(menu.categories, BASE))

    assert slugs(requests) == ["a/x/1", "a/x", "a/y", "a", "b", "c/z", "c"]


def test_expand_visits_every_node_once_and_is_repeatable():
    tree = [
        Category(path=f"/{i}", children=[Category(path=f"/{i}/{j}") for j in range(3)])
        for i in range(4)
    ]
    first = list(expand_categories(tree, BASE))
    second = list(expand_categories(tree, BASE))

    assert len(first) == 16
    assert len(set(r.target for r in first)) == 16
    assert first == second


def test_expand_handles_deep_tree_without_recursion_limit():
    node = Category(path="/leaf")
    for depth in range(3000):
        node = Category(path=f"/n{depth}", children=[node])
    requests = list(expand_categories([node], BASE))

    assert len(requests) == 3001
    assert slugs(requests)[0] == "leaf"
    assert slugs(requests)[-1] == "n2999"


def test_expand_accepts_null_subcategories():
    menu = CategoryMenu.model_validate(
        {"categories": [{"url": "/a", "subcategories": None}, {"url": "/b"}]}
    )
    assert slugs(expand_categories(menu.categories, BASE)) == ["a", "b"]


def test_expand_empty_menu():
    assert list(expand_categories([], BASE)) == []


def test_next_page_request_follows_more_url():
    page = ListingPage.model_validate({"products": {"items": [], "more": "/next"}})
    request = CrawlRequest(target=BASE + "x", step=Step.DETAIL)

    follow = next_page_request(page, request, BASE)

    assert follow == CrawlRequest(
        target="https://www.kosik.cz/next", step=Step.DETAIL, page=2
    )


def test_next_page_request_ends_chain_without_more_url():
    for products in ({"items": []}, {"items": [], "more": None}, {"items": [], "more": ""}):
        page = ListingPage.model_validate({"products": products})
        assert next_page_request(page, None, BASE) is None


def test_next_page_request_keeps_absolute_more_url():
    more = "https://www.kosik.cz/api/web/page/products?slug=a&limit=60&cursor=2"
    page = ListingPage.model_validate({"products": {"items": [], "more": more}})

    assert next_page_request(page, None, BASE).target == more


def test_next_page_request_honours_max_pages():
    page = ListingPage.model_validate({"products": {"items": [], "more": "/next"}})
    request = CrawlRequest(target=BASE + "x", step=Step.DETAIL, page=3)

    assert next_page_request(page, request, BASE, max_pages=3) is None
    assert next_page_request(page, request, BASE, max_pages=4).page == 4


def test_seed_requests_menu_and_bf_modes():
    normal = seed_requests(RunConfig(development=True), BASE)
    assert normal == [
        CrawlRequest(target=BASE + "api/web/menu/main", step=Step.CATEGORIES)
    ]

    bf = seed_requests(
        RunConfig(development=True, type="BF", bf_urls=["https://www.kosik.cz/listy/bf"]),
        BASE,
    )
    assert [r.step for r in bf] == [Step.DETAIL]
    assert bf[0].target.endswith("slug=listy/bf&limit=60")
