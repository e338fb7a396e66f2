"""Data models for offkulture."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
import uuid


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _generate_id() -> str:
    """Generate a new opaque ID."""
    return str(uuid.uuid4())


def _short_hex(length: int) -> str:
    return uuid.uuid4().hex[:length].upper()


def _decimal(value: Any) -> Decimal:
    # str() first so floats from older JSON keep their printed value
    return Decimal(str(value))


class Category(str, Enum):
    MENS = "mens"
    WOMENS = "womens"
    BABY = "baby"
    ACCESSORIES = "accessories"


class Role(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    """Delivery status. Orders only ever move forward through this list."""

    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"

    @property
    def rank(self) -> int:
        return list(OrderStatus).index(self)

    def can_advance_to(self, other: "OrderStatus") -> bool:
        return other.rank > self.rank


class PaymentType(str, Enum):
    CREDIT_CARD = "Credit Card"
    DEBIT_CARD = "Debit Card"
    EFT = "EFT"
    SNAPSCAN = "SnapScan"

    @property
    def is_card(self) -> bool:
        return self in (PaymentType.CREDIT_CARD, PaymentType.DEBIT_CARD)


@dataclass
class Product:
    """A catalog product with mutable stock."""

    id: str
    name: str
    price: Decimal
    category: Category
    stock_quantity: int
    description: str = ""
    sizes: list[str] = field(default_factory=list)
    colors: list[str] = field(default_factory=list)
    original_price: Decimal | None = None
    image: str = ""
    sku: str | None = None
    rating: float | None = None
    review_count: int = 0
    is_new: bool = False
    is_sale: bool = False
    tags: list[str] = field(default_factory=list)
    brand: str | None = None
    material: str | None = None
    care_instructions: str | None = None
    discontinued: bool = False
    created_at: str = field(default_factory=_utc_now)
    updated_at: str = field(default_factory=_utc_now)

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "price": str(self.price),
            "category": self.category.value,
            "description": self.description,
            "sizes": self.sizes,
            "colors": self.colors,
            "stock_quantity": self.stock_quantity,
            "in_stock": self.in_stock,
            "image": self.image,
            "review_count": self.review_count,
            "is_new": self.is_new,
            "is_sale": self.is_sale,
            "tags": self.tags,
            "discontinued": self.discontinued,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self.original_price is not None:
            result["original_price"] = str(self.original_price)
        for key in ("sku", "rating", "brand", "material", "care_instructions"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        # in_stock is derived, never read back
        original = data.get("original_price")
        return cls(
            id=data["id"],
            name=data["name"],
            price=_decimal(data["price"]),
            category=Category(data["category"]),
            stock_quantity=int(data.get("stock_quantity", 0)),
            description=data.get("description", ""),
            sizes=list(data.get("sizes") or []),
            colors=list(data.get("colors") or []),
            original_price=_decimal(original) if original is not None else None,
            image=data.get("image", ""),
            sku=data.get("sku"),
            rating=data.get("rating"),
            review_count=data.get("review_count", 0),
            is_new=data.get("is_new", False),
            is_sale=data.get("is_sale", False),
            tags=list(data.get("tags") or []),
            brand=data.get("brand"),
            material=data.get("material"),
            care_instructions=data.get("care_instructions"),
            discontinued=data.get("discontinued", False),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )


@dataclass
class CartLine:
    """One (product, size, color) selection with a quantity.

    The unit price is captured when the line is created and is not re-priced
    if the catalog price changes later.
    """

    product_id: str
    name: str
    price: Decimal
    quantity: int
    size: str | None = None
    color: str | None = None

    @property
    def key(self) -> tuple[str, str | None, str | None]:
        return (self.product_id, self.size, self.color)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": str(self.price),
            "quantity": self.quantity,
            "size": self.size,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CartLine":
        return cls(
            product_id=data["product_id"],
            name=data.get("name", ""),
            price=_decimal(data["price"]),
            quantity=int(data["quantity"]),
            size=data.get("size"),
            color=data.get("color"),
        )


@dataclass
class ShippingInfo:
    """Delivery details captured at checkout."""

    full_name: str
    email: str
    phone: str
    address: str
    city: str
    province: str
    postal_code: str

    def formatted(self) -> str:
        return f"{self.address}, {self.city}, {self.province}, {self.postal_code}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "province": self.province,
            "postal_code": self.postal_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ShippingInfo":
        return cls(
            full_name=data.get("full_name", ""),
            email=data.get("email", ""),
            phone=data.get("phone", ""),
            address=data.get("address", ""),
            city=data.get("city", ""),
            province=data.get("province", ""),
            postal_code=data.get("postal_code", ""),
        )


@dataclass
class PaymentMethod:
    """A saved card or EFT descriptor. Full card numbers are never kept."""

    id: str
    type: PaymentType
    name: str
    last_four: str | None = None
    expiry_date: str | None = None
    is_default: bool = False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "is_default": self.is_default,
        }
        if self.last_four is not None:
            result["last_four"] = self.last_four
        if self.expiry_date is not None:
            result["expiry_date"] = self.expiry_date
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PaymentMethod":
        return cls(
            id=data["id"],
            type=PaymentType(data["type"]),
            name=data["name"],
            last_four=data.get("last_four"),
            expiry_date=data.get("expiry_date"),
            is_default=data.get("is_default", False),
        )

    @classmethod
    def create(
        cls,
        type: PaymentType,
        name: str,
        last_four: str | None = None,
        expiry_date: str | None = None,
        is_default: bool = False,
    ) -> "PaymentMethod":
        return cls(
            id=_generate_id(),
            type=type,
            name=name,
            last_four=last_four,
            expiry_date=expiry_date,
            is_default=is_default,
        )


@dataclass
class Order:
    """A placed order: a frozen snapshot of the cart plus delivery metadata.

    Only ``status`` (and ``updated_at``) change after creation.
    """

    id: str
    account_email: str
    items: list[CartLine]
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str
    payment_method: str
    tracking_number: str
    status: OrderStatus = OrderStatus.PROCESSING
    created_at: str = field(default_factory=_utc_now)
    updated_at: str = field(default_factory=_utc_now)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "account_email": self.account_email,
            "status": self.status.value,
            "items": [line.to_dict() for line in self.items],
            "subtotal": str(self.subtotal),
            "shipping": str(self.shipping),
            "tax": str(self.tax),
            "total": str(self.total),
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "shipping_address": self.shipping_address,
            "payment_method": self.payment_method,
            "tracking_number": self.tracking_number,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        return cls(
            id=data["id"],
            account_email=data.get("account_email", ""),
            items=[CartLine.from_dict(i) for i in data.get("items", [])],
            subtotal=_decimal(data["subtotal"]),
            shipping=_decimal(data["shipping"]),
            tax=_decimal(data["tax"]),
            total=_decimal(data["total"]),
            customer_name=data.get("customer_name", ""),
            customer_email=data.get("customer_email", ""),
            customer_phone=data.get("customer_phone", ""),
            shipping_address=data.get("shipping_address", ""),
            payment_method=data.get("payment_method", ""),
            tracking_number=data.get("tracking_number", ""),
            status=OrderStatus(data.get("status", OrderStatus.PROCESSING.value)),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )

    @staticmethod
    def new_id() -> str:
        return f"ORD-{_short_hex(12)}"

    @staticmethod
    def new_tracking_number() -> str:
        return f"TRK{_short_hex(16)}"


@dataclass
class Account:
    """A registered user. Orders are held by reference to the ledger."""

    id: str
    name: str
    email: str  # lowercased, used as directory key
    address: str
    phone: str
    role: Role
    password_hash: str
    payment_methods: list[PaymentMethod] = field(default_factory=list)
    order_ids: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=_utc_now)
    updated_at: str = field(default_factory=_utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def default_payment_method(self) -> PaymentMethod | None:
        for method in self.payment_methods:
            if method.is_default:
                return method
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "address": self.address,
            "phone": self.phone,
            "role": self.role.value,
            "password_hash": self.password_hash,
            "payment_methods": [m.to_dict() for m in self.payment_methods],
            "order_ids": self.order_ids,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Account":
        return cls(
            id=data["id"],
            name=data["name"],
            email=data["email"],
            address=data.get("address", ""),
            phone=data.get("phone", ""),
            role=Role(data.get("role", Role.CUSTOMER.value)),
            password_hash=data.get("password_hash", ""),
            payment_methods=[PaymentMethod.from_dict(m) for m in data.get("payment_methods", [])],
            order_ids=list(data.get("order_ids", [])),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )


@dataclass
class ProductReview:
    """A customer review of a product."""

    id: str
    product_id: str
    user_id: str
    user_name: str
    rating: int  # 1..5
    comment: str
    verified: bool = True
    created_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "rating": self.rating,
            "comment": self.comment,
            "verified": self.verified,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProductReview":
        return cls(
            id=data["id"],
            product_id=data["product_id"],
            user_id=data.get("user_id", ""),
            user_name=data.get("user_name", ""),
            rating=int(data["rating"]),
            comment=data.get("comment", ""),
            verified=data.get("verified", True),
            created_at=data.get("created_at", ""),
        )

    @classmethod
    def create(
        cls, product_id: str, user_id: str, user_name: str, rating: int, comment: str
    ) -> "ProductReview":
        return cls(
            id=f"REV-{_short_hex(12)}",
            product_id=product_id,
            user_id=user_id,
            user_name=user_name,
            rating=rating,
            comment=comment,
        )
