# crawler/models.py
from enum import Enum
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional, Union


class Step(str, Enum):
    CATEGORIES = "CATEGORIES"
    DETAIL = "DETAIL"


class Category(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    path: str = Field(..., validation_alias=AliasChoices("url", "path"))
    children: List["Category"] = Field(
        default_factory=list,
        validation_alias=AliasChoices("subcategories", "children"),
    )

    @field_validator("children", mode="before")
    @classmethod
    def _null_children(cls, value):
        # leaf categories come with "subcategories": null
        return value or []


class CategoryMenu(BaseModel):
    model_config = ConfigDict(extra="ignore")

    categories: List[Category] = Field(default_factory=list)


class CrawlRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: str
    step: Step
    page: int = Field(1, ge=1)  # position in a pagination chain


class Breadcrumb(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class ProductsBlock(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # raw entries, validated one by one in the normalizer
    items: List[Any] = Field(default_factory=list)
    more: Optional[str] = None


class ListingPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    products: ProductsBlock = Field(default_factory=ProductsBlock)
    breadcrumbs: Optional[List[Breadcrumb]] = None
    title: Optional[str] = None

    @property
    def items(self):
        return self.products.items

    @property
    def more_url(self):
        return self.products.more


class RawItem(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Union[int, str]
    name: str
    url: str
    price: Optional[float] = None
    recommended_price: Optional[float] = Field(None, alias="recommendedPrice")
    percentage_discount: Optional[float] = Field(None, alias="percentageDiscount")
    first_order_day: Optional[Any] = Field(None, alias="firstOrderDay")
    image: Optional[str] = None


class ProductRecord(BaseModel):
    """Canonical product record handed to the output sink."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    item_id: Union[int, str] = Field(..., alias="itemId")
    item_url: str = Field(..., alias="itemUrl")
    item_name: str = Field(..., alias="itemName")
    discounted: bool
    discounted_label: Optional[str] = Field(None, alias="discountedName")
    current_price: Optional[float] = Field(None, alias="currentPrice")
    original_price: Optional[float] = Field(None, alias="originalPrice")
    in_stock: bool = Field(..., alias="inStock")
    category: Optional[str] = None
    image: Optional[str] = Field(None, alias="img")

    def to_document(self):
        return self.model_dump(by_alias=True)


class CrawlStats(BaseModel):
    succeeded: int = 0
    failed: int = 0
    failed_urls: List[str] = Field(default_factory=list)
    items_emitted: int = 0
    duplicates_skipped: int = 0
    item_errors: int = 0
