# crawler/normalizer.py
from urllib.parse import urljoin
from pydantic import ValidationError
from .config import BASE_URL
from .errors import HandlerError
from .models import ProductRecord, RawItem


def breadcrumb_path(page):
    """
    Category label for every item on a listing page.

    Breadcrumb names joined with " > "; the page title is used only when the
    breadcrumbs are missing or empty.
    """
    if page.breadcrumbs:
        return " > ".join(b.name for b in page.breadcrumbs)
    return page.title


def validate_item(item):
    """
    Validate one raw listing entry.

    Raises:
        HandlerError: If the entry is not an object or has missing or
            mistyped fields (including an id that is not an int or str)
    """
    if isinstance(item, RawItem):
        return item
    if not isinstance(item, dict):
        raise HandlerError(None, f"not an object: {item!r}")
    try:
        return RawItem.model_validate(item)
    except ValidationError as e:
        raise HandlerError(item.get("id"), f"invalid item: {e}") from e


def normalize_item(item, breadcrumbs, base_url=BASE_URL):
    """
    Map a raw listing item to the canonical ProductRecord.

    Args:
        item (dict | RawItem): Item as delivered by the listing API
        breadcrumbs (str | None): Category path from breadcrumb_path()
        base_url (str): Base the relative item URL is resolved against

    Returns:
        ProductRecord

    Raises:
        HandlerError: If the item lacks required fields or has bad types

    Note:
        original_price is None when it equals the current price, so no
        strike-through price is shown for items sold at the recommended price.
    """
    item = validate_item(item)

    pct = item.percentage_discount or 0
    discounted = pct > 0
    original_price = (
        None if item.price == item.recommended_price else item.recommended_price
    )
    return ProductRecord(
        item_id=item.id,
        item_url=urljoin(base_url, item.url),
        item_name=item.name,
        discounted=discounted,
        discounted_label=f"{_format_pct(pct)} %" if discounted else None,
        current_price=item.price,
        original_price=original_price,
        in_stock=not item.first_order_day,
        category=breadcrumbs,
        image=item.image,
    )


def _format_pct(pct):
    # 25.0 -> "25", 12.5 -> "12.5"
    return str(int(pct)) if float(pct).is_integer() else str(pct)
