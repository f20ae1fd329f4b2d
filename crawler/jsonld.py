# crawler/jsonld.py

IN_STOCK = "https://schema.org/InStock"
OUT_OF_STOCK = "https://schema.org/OutOfStock"


def to_product(record, price_currency="CZK"):
    """
    Build the schema.org Product JSON-LD document for a ProductRecord.

    The offer price is the current price. When the record has an original
    price, it is exposed as a list price specification so consumers can show
    the discount.
    """
    offer = {
        "@type": "Offer",
        "price": record.current_price,
        "priceCurrency": price_currency,
        "availability": IN_STOCK if record.in_stock else OUT_OF_STOCK,
        "url": record.item_url,
    }
    if record.original_price is not None:
        offer["priceSpecification"] = {
            "@type": "UnitPriceSpecification",
            "priceType": "https://schema.org/ListPrice",
            "price": record.original_price,
            "priceCurrency": price_currency,
        }

    product = {
        "@context": "https://schema.org",
        "@type": "Product",
        "productID": str(record.item_id),
        "name": record.item_name,
        "url": record.item_url,
        "offers": offer,
    }
    if record.image:
        product["image"] = record.image
    if record.category:
        product["category"] = record.category
    return product
