"""Shopping cart with stock reservation against the catalog.

Every path that changes a line's quantity reserves or releases the
difference in the catalog, so for each product:

    initial stock == catalog stock + units held in cart lines

until checkout, where the reservation becomes final.
"""

import logging
from decimal import Decimal
from typing import Any

from .catalog import Catalog
from .errors import (
    CartLineNotFoundError,
    InvalidQuantityError,
    ProductDiscontinuedError,
    ValidationError,
)
from .models import CartLine
from .pricing import lines_subtotal

logger = logging.getLogger(__name__)


class Cart:
    """Ordered cart lines for the active session."""

    def __init__(self, catalog: Catalog, lines: list[CartLine] | None = None):
        self.catalog = catalog
        self.lines: list[CartLine] = list(lines or [])

    def __len__(self) -> int:
        return len(self.lines)

    def is_empty(self) -> bool:
        return not self.lines

    def find_line(
        self, product_id: str, size: str | None = None, color: str | None = None
    ) -> CartLine | None:
        key = (product_id, size, color)
        for line in self.lines:
            if line.key == key:
                return line
        return None

    def _require_line(
        self, product_id: str, size: str | None, color: str | None
    ) -> CartLine:
        line = self.find_line(product_id, size, color)
        if line is None:
            raise CartLineNotFoundError(product_id, size, color)
        return line

    def add_item(
        self,
        product_id: str,
        quantity: int = 1,
        size: str | None = None,
        color: str | None = None,
    ) -> CartLine:
        """
        Add units of a product variant, merging into an existing line.

        Raises:
            InvalidQuantityError: If quantity < 1.
            ProductDiscontinuedError: If the product is no longer sold.
            ValidationError: If size/color isn't offered by the product.
            InsufficientStockError: If quantity exceeds current stock.
        """
        if quantity < 1:
            raise InvalidQuantityError(quantity, "must be at least 1")
        product = self.catalog.get(product_id)
        if product.discontinued:
            raise ProductDiscontinuedError(product_id)
        if size is not None and product.sizes and size not in product.sizes:
            raise ValidationError("size", f"{size!r} is not offered for {product_id}")
        if color is not None and product.colors and color not in product.colors:
            raise ValidationError("color", f"{color!r} is not offered for {product_id}")

        self.catalog.decrement_stock(product_id, quantity)

        line = self.find_line(product_id, size, color)
        if line is not None:
            line.quantity += quantity
        else:
            line = CartLine(
                product_id=product_id,
                name=product.name,
                price=product.price,
                quantity=quantity,
                size=size,
                color=color,
            )
            self.lines.append(line)
        logger.info("Cart +%d x %s (size=%s, color=%s)", quantity, product_id, size, color)
        return line

    def update_quantity(
        self,
        product_id: str,
        quantity: int,
        size: str | None = None,
        color: str | None = None,
    ) -> CartLine | None:
        """
        Set a line's quantity, reserving or releasing the difference.

        A quantity of zero or less removes the line and returns None.

        Raises:
            CartLineNotFoundError: If the line doesn't exist.
            InsufficientStockError: If the increase exceeds current stock.
        """
        line = self._require_line(product_id, size, color)
        if quantity <= 0:
            self.remove_item(product_id, size, color)
            return None

        delta = quantity - line.quantity
        if delta > 0:
            self.catalog.decrement_stock(product_id, delta)
        elif delta < 0:
            self.catalog.restore_stock(product_id, -delta)
        line.quantity = quantity
        return line

    def remove_item(
        self, product_id: str, size: str | None = None, color: str | None = None
    ) -> CartLine:
        """
        Remove a line and release its reservation.

        Raises:
            CartLineNotFoundError: If the line doesn't exist.
        """
        line = self._require_line(product_id, size, color)
        self.lines.remove(line)
        logger.info("Cart removed %d x %s (size=%s, color=%s)", line.quantity, product_id, size, color)
        if product_id in self.catalog:
            self.catalog.restore_stock(product_id, line.quantity)
        return line

    def purge_product(self, product_id: str) -> int:
        """Remove every line of a product, releasing stock. Returns units released."""
        released = 0
        for line in [ln for ln in self.lines if ln.product_id == product_id]:
            self.remove_item(line.product_id, line.size, line.color)
            released += line.quantity
        return released

    def clear(self) -> None:
        """Empty the cart without releasing stock (used after checkout)."""
        self.lines.clear()

    def subtotal(self) -> Decimal:
        return lines_subtotal(self.lines)

    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def held_quantity(self, product_id: str) -> int:
        return sum(ln.quantity for ln in self.lines if ln.product_id == product_id)

    def to_list(self) -> list[dict[str, Any]]:
        return [line.to_dict() for line in self.lines]

    @classmethod
    def from_list(cls, catalog: Catalog, data: list[dict[str, Any]]) -> "Cart":
        return cls(catalog, [CartLine.from_dict(d) for d in data])
