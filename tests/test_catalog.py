"""Tests for the product catalog."""

from decimal import Decimal

import pytest

from offkulture.catalog import DEFAULT_SIZES
from offkulture.errors import (
    InsufficientStockError,
    InvalidQuantityError,
    ProductNotFoundError,
    ValidationError,
)
from offkulture.models import Category, Product


class TestLaunchCatalog:
    def test_has_24_products(self, catalog):
        assert len(catalog) == 24

    def test_six_per_category(self, catalog):
        for category in Category:
            assert len(catalog.list_products(category=category)) == 6

    def test_shirt_details(self, catalog):
        shirt = catalog.get("M001")
        assert shirt.price == Decimal("449.99")
        assert shirt.stock_quantity == 25
        assert shirt.in_stock is True
        assert "Navy" in shirt.colors

    def test_get_unknown_raises(self, catalog):
        with pytest.raises(ProductNotFoundError) as exc_info:
            catalog.get("X999")
        assert exc_info.value.product_id == "X999"


class TestStock:
    def test_decrement(self, catalog):
        catalog.decrement_stock("M001", 3)
        assert catalog.get("M001").stock_quantity == 22

    def test_decrement_beyond_stock_raises_and_keeps_stock(self, catalog):
        with pytest.raises(InsufficientStockError) as exc_info:
            catalog.decrement_stock("M002", 16)
        assert exc_info.value.requested == 16
        assert exc_info.value.available == 15
        assert catalog.get("M002").stock_quantity == 15

    def test_decrement_zero_raises(self, catalog):
        with pytest.raises(InvalidQuantityError):
            catalog.decrement_stock("M001", 0)

    def test_restore(self, catalog):
        catalog.decrement_stock("M001", 5)
        catalog.restore_stock("M001", 5)
        assert catalog.get("M001").stock_quantity == 25

    def test_in_stock_follows_quantity(self, catalog):
        catalog.set_stock("A001", 0)
        assert catalog.get("A001").in_stock is False
        catalog.set_stock("A001", 1)
        assert catalog.get("A001").in_stock is True

    def test_set_stock_negative_raises(self, catalog):
        with pytest.raises(InvalidQuantityError):
            catalog.set_stock("A001", -1)

    def test_in_stock_is_not_read_from_storage(self):
        """A stale in_stock flag in stored data is ignored."""
        product = Product.from_dict(
            {
                "id": "M001",
                "name": "Shirt",
                "price": "449.99",
                "category": "mens",
                "stock_quantity": 3,
                "in_stock": False,
            }
        )
        assert product.in_stock is True
        assert product.to_dict()["in_stock"] is True


class TestSearch:
    def test_text_search(self, catalog):
        ids = {p.id for p in catalog.search(query="springbok")}
        assert ids == {"M004", "B002"}

    def test_text_search_is_case_insensitive(self, catalog):
        assert [p.id for p in catalog.search(query="KIMONO")] == ["W004"]

    def test_price_range(self, catalog):
        ids = {p.id for p in catalog.search(max_price=Decimal("200"))}
        assert ids == {"B002", "B004", "B006"}

    def test_size_filter(self, catalog):
        assert [p.id for p in catalog.search(sizes=["XXXL"])] == ["M004"]

    def test_sort_by_price(self, catalog):
        products = catalog.search(category=Category.ACCESSORIES, sort_by="price")
        assert products[0].id == "A002"
        products = catalog.search(
            category=Category.ACCESSORIES, sort_by="price", descending=True
        )
        assert products[0].id == "A003"

    def test_unknown_sort_key_raises(self, catalog):
        with pytest.raises(ValidationError):
            catalog.search(sort_by="colour")

    def test_discontinued_hidden(self, catalog):
        catalog.discontinue("M004")
        assert [p.id for p in catalog.search(query="springbok")] == ["B002"]
        assert len(catalog.list_products()) == 23
        assert catalog.get("M004").discontinued is True


class TestAdminEditing:
    def test_add_product_with_defaults(self, catalog):
        product = catalog.add_product("Veldskoen Booties", Decimal("259.5"), Category.BABY, 10)
        assert product.id.startswith("P")
        assert product.price == Decimal("259.50")
        assert product.sizes == DEFAULT_SIZES[Category.BABY]
        assert product.is_new is True
        assert "baby" in product.description
        assert catalog.get(product.id) is product

    def test_add_product_rejects_non_positive_price(self, catalog):
        with pytest.raises(ValidationError):
            catalog.add_product("Freebie", Decimal("0"), Category.MENS, 1)

    def test_add_product_rejects_negative_stock(self, catalog):
        with pytest.raises(InvalidQuantityError):
            catalog.add_product("Ghost", Decimal("10"), Category.MENS, -1)

    def test_update_product(self, catalog):
        product = catalog.update_product("M001", price="399.999", is_sale=False)
        assert product.price == Decimal("400.00")
        assert product.is_sale is False

    def test_update_rejects_stock_field(self, catalog):
        with pytest.raises(ValidationError):
            catalog.update_product("M001", stock_quantity=100)
        assert catalog.get("M001").stock_quantity == 25


class TestAlerts:
    def test_no_alerts_for_launch_catalog(self, catalog):
        assert catalog.inventory_alerts() == []

    def test_low_and_out_of_stock(self, catalog):
        catalog.set_stock("M001", 3)
        catalog.set_stock("M002", 0)
        assert catalog.inventory_alerts() == [
            "1 products are running low on stock",
            "1 products are out of stock",
        ]

    def test_low_stock_threshold(self, catalog):
        catalog.set_stock("W006", 9)
        assert [p.id for p in catalog.low_stock(10)] == ["W006"]
