"""Product catalog: the authoritative product list and its stock."""

import logging
from decimal import Decimal
from typing import Any, Iterable

from .config import LOW_STOCK_ALERT
from .errors import (
    InsufficientStockError,
    InvalidQuantityError,
    ProductNotFoundError,
    ValidationError,
)
from .models import Category, Product, _short_hex, _utc_now
from .pricing import money

logger = logging.getLogger(__name__)

SORT_KEYS = ("name", "price", "rating", "newest", "popular")

DEFAULT_SIZES: dict[Category, list[str]] = {
    Category.MENS: ["S", "M", "L", "XL", "XXL"],
    Category.WOMENS: ["XS", "S", "M", "L", "XL"],
    Category.BABY: ["0-3M", "3-6M", "6-12M", "12-18M"],
    Category.ACCESSORIES: [],
}
DEFAULT_COLORS = ["Black", "White", "Navy", "Grey"]

# Fields an admin may edit directly. Stock goes through set_stock.
EDITABLE_FIELDS = {
    "name",
    "price",
    "original_price",
    "description",
    "sizes",
    "colors",
    "image",
    "tags",
    "brand",
    "material",
    "care_instructions",
    "is_new",
    "is_sale",
}


class Catalog:
    """Owns product records and every stock adjustment."""

    def __init__(self, products: Iterable[Product] = ()):
        self._products: dict[str, Product] = {p.id: p for p in products}

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._products

    def get(self, product_id: str) -> Product:
        """
        Get a product by ID.

        Raises:
            ProductNotFoundError: If the product doesn't exist.
        """
        try:
            return self._products[product_id]
        except KeyError:
            raise ProductNotFoundError(product_id) from None

    def list_products(
        self, category: Category | None = None, include_discontinued: bool = False
    ) -> list[Product]:
        products = list(self._products.values())
        if not include_discontinued:
            products = [p for p in products if not p.discontinued]
        if category is not None:
            products = [p for p in products if p.category is category]
        return products

    def search(
        self,
        query: str | None = None,
        category: Category | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        sizes: list[str] | None = None,
        colors: list[str] | None = None,
        min_rating: float | None = None,
        sort_by: str | None = None,
        descending: bool = False,
    ) -> list[Product]:
        """
        Filter and sort the live catalog.

        Text matching is case-insensitive over name, description, category
        and tags. Size and color filters match products offering any of the
        requested variants.
        """
        results = self.list_products(category=category)

        if query:
            needle = query.lower()
            results = [
                p
                for p in results
                if needle in p.name.lower()
                or needle in p.description.lower()
                or needle in p.category.value
                or any(needle in tag.lower() for tag in p.tags)
            ]
        if min_price is not None:
            results = [p for p in results if p.price >= min_price]
        if max_price is not None:
            results = [p for p in results if p.price <= max_price]
        if sizes:
            wanted = set(sizes)
            results = [p for p in results if wanted.intersection(p.sizes)]
        if colors:
            wanted = set(colors)
            results = [p for p in results if wanted.intersection(p.colors)]
        if min_rating is not None:
            results = [p for p in results if (p.rating or 0) >= min_rating]

        if sort_by:
            if sort_by not in SORT_KEYS:
                raise ValidationError("sort_by", f"expected one of {', '.join(SORT_KEYS)}")
            results.sort(key=_sort_key(sort_by), reverse=descending)

        return results

    # --- Stock ---

    def decrement_stock(self, product_id: str, amount: int) -> Product:
        """
        Reserve ``amount`` units.

        Raises:
            InvalidQuantityError: If amount < 1.
            InsufficientStockError: If amount exceeds the current stock.
        """
        if amount < 1:
            raise InvalidQuantityError(amount, "must be at least 1")
        product = self.get(product_id)
        if amount > product.stock_quantity:
            logger.warning(
                "Rejected reservation of %d x %s (%d available)",
                amount, product_id, product.stock_quantity,
            )
            raise InsufficientStockError(product_id, amount, product.stock_quantity)
        product.stock_quantity -= amount
        product.updated_at = _utc_now()
        logger.info("Reserved %d x %s, %d left", amount, product_id, product.stock_quantity)
        return product

    def restore_stock(self, product_id: str, amount: int) -> Product:
        """Return ``amount`` reserved units to the shelf."""
        if amount < 1:
            raise InvalidQuantityError(amount, "must be at least 1")
        product = self.get(product_id)
        product.stock_quantity += amount
        product.updated_at = _utc_now()
        logger.info("Restored %d x %s, %d left", amount, product_id, product.stock_quantity)
        return product

    def set_stock(self, product_id: str, quantity: int) -> Product:
        """Absolute stock override (admin restock or correction)."""
        if quantity < 0:
            raise InvalidQuantityError(quantity, "stock cannot be negative")
        product = self.get(product_id)
        previous = product.stock_quantity
        product.stock_quantity = quantity
        product.updated_at = _utc_now()
        logger.info("Stock of %s set %d -> %d", product_id, previous, quantity)
        return product

    # --- Admin editing ---

    def add_product(
        self,
        name: str,
        price: Decimal,
        category: Category,
        stock_quantity: int,
        description: str | None = None,
        image: str | None = None,
        sizes: list[str] | None = None,
        colors: list[str] | None = None,
    ) -> Product:
        """
        Create a new live product with category defaults.

        Raises:
            ValidationError: If the name is blank or the price isn't positive.
            InvalidQuantityError: If the stock is negative.
        """
        if not name or not name.strip():
            raise ValidationError("name", "required")
        price = money(price)
        if price <= 0:
            raise ValidationError("price", "must be greater than 0")
        if stock_quantity < 0:
            raise InvalidQuantityError(stock_quantity, "stock cannot be negative")

        product = Product(
            id=f"P{_short_hex(10)}",
            name=name.strip(),
            price=price,
            category=category,
            stock_quantity=stock_quantity,
            description=description
            or f"Premium {_category_label(category)} item from OffKulture collection.",
            sizes=list(sizes) if sizes is not None else list(DEFAULT_SIZES[category]),
            colors=list(colors) if colors is not None else list(DEFAULT_COLORS),
            image=image or "",
            sku=f"OFK-{category.value[:3].upper()}-{_short_hex(6)}",
            review_count=0,
            is_new=True,
            tags=[category.value, "premium", "offkulture"],
            brand="OffKulture",
            material="Premium Leather" if category is Category.ACCESSORIES else "100% Cotton",
            care_instructions="Machine wash cold, tumble dry low",
        )
        self._products[product.id] = product
        logger.info("Added product %s (%s)", product.id, product.name)
        return product

    def update_product(self, product_id: str, **fields: Any) -> Product:
        """
        Update descriptive fields of a product.

        Raises:
            ValidationError: On unknown/uneditable fields or a non-positive price.
        """
        product = self.get(product_id)
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(", ".join(sorted(unknown)), "field cannot be edited")

        if "price" in fields:
            price = money(fields["price"])
            if price <= 0:
                raise ValidationError("price", "must be greater than 0")
            fields["price"] = price
        if fields.get("original_price") is not None:
            fields["original_price"] = money(fields["original_price"])
        if "name" in fields and not str(fields["name"]).strip():
            raise ValidationError("name", "required")

        for key, value in fields.items():
            setattr(product, key, value)
        product.updated_at = _utc_now()
        return product

    def discontinue(self, product_id: str) -> Product:
        product = self.get(product_id)
        product.discontinued = True
        product.updated_at = _utc_now()
        logger.info("Discontinued product %s", product_id)
        return product

    def apply_rating(self, product_id: str, rating: float, review_count: int) -> Product:
        product = self.get(product_id)
        product.rating = round(rating, 2)
        product.review_count = review_count
        return product

    # --- Reporting ---

    def low_stock(self, threshold: int) -> list[Product]:
        """Live products with fewer than ``threshold`` units."""
        return [p for p in self.list_products() if p.stock_quantity < threshold]

    def out_of_stock(self) -> list[Product]:
        return [p for p in self.list_products() if not p.in_stock]

    def inventory_alerts(self) -> list[str]:
        running_low = [
            p for p in self.list_products() if 0 < p.stock_quantity <= LOW_STOCK_ALERT
        ]
        sold_out = self.out_of_stock()
        alerts = []
        if running_low:
            alerts.append(f"{len(running_low)} products are running low on stock")
        if sold_out:
            alerts.append(f"{len(sold_out)} products are out of stock")
        return alerts

    def to_list(self) -> list[dict[str, Any]]:
        return [p.to_dict() for p in self._products.values()]

    @classmethod
    def from_list(cls, data: list[dict[str, Any]]) -> "Catalog":
        return cls(Product.from_dict(p) for p in data)


def _category_label(category: Category) -> str:
    return {
        Category.MENS: "men's",
        Category.WOMENS: "women's",
        Category.BABY: "baby",
        Category.ACCESSORIES: "accessory",
    }[category]


def _sort_key(sort_by: str):
    if sort_by == "name":
        return lambda p: p.name.lower()
    if sort_by == "price":
        return lambda p: p.price
    if sort_by == "rating":
        return lambda p: p.rating or 0
    if sort_by == "newest":
        return lambda p: p.created_at or ""
    return lambda p: p.review_count
