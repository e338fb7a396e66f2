"""Utility functions for offkulture."""

from decimal import Decimal

from .errors import ValidationError
from .models import CartLine, Category, Order, OrderStatus, PaymentType, Product


def format_money(amount: Decimal) -> str:
    """Format an amount in Rand, e.g. R1,034.98."""
    return f"R{amount:,.2f}"


def parse_category(value: str) -> Category:
    """
    Parse a category name case-insensitively.

    Raises:
        ValidationError: If the name isn't a known category.
    """
    try:
        return Category(value.strip().lower())
    except ValueError:
        choices = ", ".join(c.value for c in Category)
        raise ValidationError("category", f"expected one of {choices}") from None


def parse_status(value: str) -> OrderStatus:
    """Parse an order status ('shipped', 'Shipped', ...)."""
    for status in OrderStatus:
        if status.value.lower() == value.strip().lower():
            return status
    choices = ", ".join(s.value for s in OrderStatus)
    raise ValidationError("status", f"expected one of {choices}")


def parse_payment_type(value: str) -> PaymentType:
    normalized = value.strip().lower().replace("-", " ").replace("_", " ")
    for payment_type in PaymentType:
        if payment_type.value.lower() == normalized:
            return payment_type
    choices = ", ".join(t.value for t in PaymentType)
    raise ValidationError("payment_type", f"expected one of {choices}")


def format_product(product: Product, verbose: bool = False) -> str:
    """Format a product for display."""
    if product.discontinued:
        stock = "discontinued"
    elif product.in_stock:
        stock = f"{product.stock_quantity} in stock"
    else:
        stock = "out of stock"
    result = f"{product.id:<12} {product.name} - {format_money(product.price)} ({stock})"

    if verbose:
        result += f"\n             Category: {product.category.value}"
        if product.sizes:
            result += f"\n             Sizes: {', '.join(product.sizes)}"
        if product.colors:
            result += f"\n             Colors: {', '.join(product.colors)}"
        if product.rating is not None:
            result += f"\n             Rating: {product.rating} ({product.review_count} reviews)"
        if product.description:
            # Truncate long descriptions
            desc = product.description
            display = desc[:70] + "..." if len(desc) > 70 else desc
            result += f"\n             {display}"

    return result


def format_variant(size: str | None, color: str | None) -> str:
    parts = [p for p in (size, color) if p]
    return f" [{' / '.join(parts)}]" if parts else ""


def format_cart_line(line: CartLine) -> str:
    return (
        f"{line.product_id:<12} {line.name}{format_variant(line.size, line.color)}"
        f" x{line.quantity}  {format_money(line.line_total)}"
    )


def format_order(order: Order, verbose: bool = False) -> str:
    """Format an order for display."""
    result = (
        f"{order.id}  {order.status.value:<10} {format_money(order.total)}"
        f"  ({order.item_count} items)  Tracking: {order.tracking_number}"
    )
    if verbose:
        result += f"\n  Placed: {order.created_at}"
        result += f"\n  Customer: {order.customer_name} <{order.customer_email}>"
        result += f"\n  Ship to: {order.shipping_address}"
        result += f"\n  Payment: {order.payment_method}"
        for line in order.items:
            result += f"\n    {format_cart_line(line)}"
        result += f"\n  Subtotal: {format_money(order.subtotal)}"
        result += f"\n  Shipping: {format_money(order.shipping)}"
        result += f"\n  VAT (15%): {format_money(order.tax)}"
        result += f"\n  Total: {format_money(order.total)}"
    return result
