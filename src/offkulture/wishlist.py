"""Wishlist: saved products, independent of stock."""


class Wishlist:
    """Ordered set of product IDs."""

    def __init__(self, product_ids: list[str] | None = None):
        self._ids: list[str] = []
        for product_id in product_ids or []:
            if product_id not in self._ids:
                self._ids.append(product_id)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._ids

    def is_member(self, product_id: str) -> bool:
        return product_id in self._ids

    def toggle(self, product_id: str) -> bool:
        """Add the product if absent, remove it if present. Returns True when added."""
        if product_id in self._ids:
            self._ids.remove(product_id)
            return False
        self._ids.append(product_id)
        return True

    def remove(self, product_id: str) -> bool:
        if product_id in self._ids:
            self._ids.remove(product_id)
            return True
        return False

    @property
    def product_ids(self) -> list[str]:
        return list(self._ids)

    def to_list(self) -> list[str]:
        return list(self._ids)
