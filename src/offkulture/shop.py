"""The storefront application state.

``Shop`` owns every component (catalog, cart, wishlist, order ledger, account
directory, reviews and the session lists) and is the only writer of the
persistent store. Each mutating operation finishes with ``save()``; reads
never write.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from . import config
from .accounts import AccountDirectory
from .cart import Cart
from .catalog import Catalog
from .errors import (
    EmptyCartError,
    InvalidSchemaVersionError,
    NotAuthenticatedError,
    PermissionDeniedError,
    ProductDiscontinuedError,
    StoreWriteError,
    ValidationError,
)
from .ledger import OrderLedger
from .models import (
    Account,
    CartLine,
    Category,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentType,
    Product,
    ProductReview,
    Role,
    ShippingInfo,
)
from .pricing import OrderTotals, amount_until_free_shipping, compute_totals
from .reviews import ReviewBook
from .seed import launch_catalog
from .store import (
    ACCOUNTS_KEY,
    CART_KEY,
    COMPARISON_KEY,
    META_KEY,
    ORDERS_KEY,
    PRODUCTS_KEY,
    RECENTLY_VIEWED_KEY,
    REVIEWS_KEY,
    SESSION_KEY,
    WISHLIST_KEY,
    KeyValueStore,
)
from .wishlist import Wishlist

logger = logging.getLogger(__name__)

PROVINCES = (
    "Eastern Cape",
    "Free State",
    "Gauteng",
    "KwaZulu-Natal",
    "Limpopo",
    "Mpumalanga",
    "Northern Cape",
    "North West",
    "Western Cape",
)

_POSTAL_CODE_RE = re.compile(r"^\d{4}$")
_CVV_RE = re.compile(r"^\d{3}$")


@dataclass
class CartSummary:
    lines: list[CartLine]
    item_count: int
    totals: OrderTotals
    free_shipping_gap: Decimal


@dataclass
class DashboardStats:
    total_revenue: Decimal
    order_count: int
    product_count: int
    customer_count: int
    orders_by_status: dict[str, int]
    low_stock: list[Product] = field(default_factory=list)
    recent_orders: list[Order] = field(default_factory=list)


def validate_shipping_info(info: ShippingInfo) -> None:
    """
    Check checkout delivery details.

    Raises:
        ValidationError: On a missing field, unknown province or a postal
            code that isn't exactly 4 digits.
    """
    for name, value in info.to_dict().items():
        if not str(value).strip():
            raise ValidationError(name, "required")
    if info.province not in PROVINCES:
        raise ValidationError("province", f"{info.province!r} is not a South African province")
    if not _POSTAL_CODE_RE.match(info.postal_code):
        raise ValidationError("postal_code", "postal code must be exactly 4 digits")


def _write(store: KeyValueStore, key: str, value: Any) -> None:
    if value is None:
        store.remove(key)
    else:
        store.set(key, value)


class Shop:
    """Application state container with a defined mutation API."""

    def __init__(
        self,
        store: KeyValueStore,
        catalog: Catalog,
        accounts: AccountDirectory,
        ledger: OrderLedger | None = None,
        cart: Cart | None = None,
        wishlist: Wishlist | None = None,
        reviews: ReviewBook | None = None,
        recently_viewed: list[str] | None = None,
        comparison: list[str] | None = None,
        session_email: str | None = None,
    ):
        self.store = store
        self.catalog = catalog
        self.accounts = accounts
        self.ledger = ledger or OrderLedger()
        self.cart = cart or Cart(catalog)
        self.wishlist = wishlist or Wishlist()
        self.reviews = reviews or ReviewBook()
        self.recently_viewed: list[str] = list(recently_viewed or [])
        self.comparison: list[str] = list(comparison or [])
        self.session_email = session_email

    # --- Persistence ---

    @classmethod
    def load(cls, store: KeyValueStore, seed: bool = True) -> "Shop":
        """
        Build the shop from a store.

        An empty store is seeded with the launch catalog and the configured
        admin account (when ``seed`` is True) and saved immediately.

        Raises:
            InvalidSchemaVersionError: If the store was written by another schema.
        """
        meta = store.get(META_KEY)
        if meta is not None:
            version = meta.get("schema_version", 0)
            if version != config.SCHEMA_VERSION:
                raise InvalidSchemaVersionError(version, config.SCHEMA_VERSION)

        seeded = False
        products = store.get(PRODUCTS_KEY)
        if products is None and seed:
            catalog = Catalog(launch_catalog())
            seeded = True
        else:
            catalog = Catalog.from_list(products or [])

        accounts = AccountDirectory.from_dict(store.get(ACCOUNTS_KEY) or {})
        if seed:
            admin_email, admin_password = config.admin_credentials()
            if admin_email.lower() not in accounts:
                accounts.ensure_admin(admin_email, admin_password, config.DEFAULT_ADMIN_NAME)
                seeded = True

        session = store.get(SESSION_KEY) or {}
        session_email = session.get("email")
        if session_email is not None and session_email not in accounts:
            session_email = None

        shop = cls(
            store=store,
            catalog=catalog,
            accounts=accounts,
            ledger=OrderLedger.from_list(store.get(ORDERS_KEY) or []),
            cart=Cart.from_list(catalog, store.get(CART_KEY) or []),
            wishlist=Wishlist(store.get(WISHLIST_KEY) or []),
            reviews=ReviewBook.from_list(store.get(REVIEWS_KEY) or []),
            recently_viewed=store.get(RECENTLY_VIEWED_KEY) or [],
            comparison=store.get(COMPARISON_KEY) or [],
            session_email=session_email,
        )
        if seeded:
            logger.info("Seeded store with %d products", len(catalog))
            shop.save()
        return shop

    def save(self) -> None:
        """
        Write every component to the store.

        The store has no multi-key transactions, so keys already written are
        put back to their previous values if a later write fails. Persisted
        state is then either fully old or fully new.

        Raises:
            StoreWriteError: If a key couldn't be written.
        """
        account = self.current_account
        session = None
        if account is not None:
            session = {"email": account.email, "role": account.role.value}

        pending: list[tuple[str, Any]] = [
            (META_KEY, {"schema_version": config.SCHEMA_VERSION}),
            (PRODUCTS_KEY, self.catalog.to_list()),
            (ACCOUNTS_KEY, self.accounts.to_dict()),
            (ORDERS_KEY, self.ledger.to_list()),
            (CART_KEY, self.cart.to_list()),
            (WISHLIST_KEY, self.wishlist.to_list()),
            (REVIEWS_KEY, self.reviews.to_list()),
            (RECENTLY_VIEWED_KEY, self.recently_viewed),
            (COMPARISON_KEY, self.comparison),
            (SESSION_KEY, session),
        ]
        previous = {key: self.store.get(key) for key, _ in pending}

        written: list[str] = []
        try:
            for key, value in pending:
                _write(self.store, key, value)
                written.append(key)
        except StoreWriteError as e:
            logger.error("Save failed on '%s', rolling back %d keys", e.key, len(written))
            for key in reversed(written):
                _write(self.store, key, previous[key])
            raise
        logger.debug("Saved shop state")

    @classmethod
    def reset(cls, store: KeyValueStore, seed: bool = True) -> "Shop":
        """Delete all data (users, orders, cart, wishlist) and start over."""
        store.clear()
        logger.warning("Store cleared")
        return cls.load(store, seed=seed)

    # --- Session ---

    @property
    def current_account(self) -> Account | None:
        if self.session_email is None:
            return None
        return self.accounts.get(self.session_email)

    def require_account(self, action: str | None = None) -> Account:
        account = self.current_account
        if account is None:
            raise NotAuthenticatedError(action)
        return account

    def require_admin(self, action: str) -> Account:
        account = self.require_account(action)
        if not account.is_admin:
            raise PermissionDeniedError(action)
        return account

    def signup(
        self,
        name: str,
        email: str,
        password: str,
        role: Role = Role.CUSTOMER,
        address: str | None = None,
        phone: str | None = None,
    ) -> Account:
        """
        Register an account and log it in.

        Only an admin session may create another admin account.
        """
        if role is Role.ADMIN:
            self.require_admin("create admin accounts")
            account = self.accounts.register(name, email, password, role, address, phone)
        else:
            account = self.accounts.register(name, email, password, role, address, phone)
            self.session_email = account.email
        self.save()
        return account

    def login(self, email: str, password: str) -> Account:
        account = self.accounts.authenticate(email, password)
        self.session_email = account.email
        self.save()
        logger.info("Logged in %s (%s)", account.email, account.role.value)
        return account

    def logout(self) -> None:
        self.session_email = None
        self.save()

    def update_profile(
        self, name: str | None = None, address: str | None = None, phone: str | None = None
    ) -> Account:
        account = self.require_account("update your profile")
        self.accounts.update_profile(account.email, name=name, address=address, phone=phone)
        self.save()
        return account

    # --- Browsing ---

    def get_product(self, product_id: str) -> Product:
        return self.catalog.get(product_id)

    def list_products(self, category: Category | None = None) -> list[Product]:
        return self.catalog.list_products(category=category)

    def search_products(self, **filters: Any) -> list[Product]:
        return self.catalog.search(**filters)

    def view_product(self, product_id: str) -> Product:
        """Open a product page, recording it as recently viewed."""
        product = self.catalog.get(product_id)
        if product_id in self.recently_viewed:
            self.recently_viewed.remove(product_id)
        self.recently_viewed.insert(0, product_id)
        del self.recently_viewed[config.RECENTLY_VIEWED_LIMIT:]
        self.save()
        return product

    def recently_viewed_products(self) -> list[Product]:
        return self._resolve_products(self.recently_viewed)

    def add_to_comparison(self, product_id: str) -> list[Product]:
        product = self.catalog.get(product_id)
        if product.discontinued:
            raise ProductDiscontinuedError(product_id)
        if product_id in self.comparison:
            raise ValidationError("comparison", "product already in comparison")
        if len(self.comparison) >= config.COMPARISON_LIMIT:
            raise ValidationError(
                "comparison", f"you can only compare up to {config.COMPARISON_LIMIT} products"
            )
        self.comparison.append(product_id)
        self.save()
        return self.comparison_products()

    def remove_from_comparison(self, product_id: str) -> list[Product]:
        if product_id in self.comparison:
            self.comparison.remove(product_id)
            self.save()
        return self.comparison_products()

    def comparison_products(self) -> list[Product]:
        return self._resolve_products(self.comparison)

    def _resolve_products(self, product_ids: list[str]) -> list[Product]:
        return [self.catalog.get(pid) for pid in product_ids if pid in self.catalog]

    # --- Cart ---

    def add_to_cart(
        self,
        product_id: str,
        quantity: int = 1,
        size: str | None = None,
        color: str | None = None,
    ) -> CartLine:
        line = self.cart.add_item(product_id, quantity, size, color)
        self.save()
        return line

    def update_cart_quantity(
        self,
        product_id: str,
        quantity: int,
        size: str | None = None,
        color: str | None = None,
    ) -> CartLine | None:
        line = self.cart.update_quantity(product_id, quantity, size, color)
        self.save()
        return line

    def remove_from_cart(
        self, product_id: str, size: str | None = None, color: str | None = None
    ) -> CartLine:
        line = self.cart.remove_item(product_id, size, color)
        self.save()
        return line

    def cart_summary(self) -> CartSummary:
        subtotal = self.cart.subtotal()
        return CartSummary(
            lines=list(self.cart.lines),
            item_count=self.cart.item_count(),
            totals=compute_totals(subtotal),
            free_shipping_gap=amount_until_free_shipping(subtotal),
        )

    # --- Wishlist ---

    def toggle_wishlist(self, product_id: str) -> bool:
        """Returns True if the product was added, False if removed."""
        self.catalog.get(product_id)
        added = self.wishlist.toggle(product_id)
        self.save()
        return added

    def wishlist_products(self) -> list[Product]:
        return self._resolve_products(self.wishlist.product_ids)

    # --- Checkout and orders ---

    def checkout(
        self,
        shipping_info: ShippingInfo,
        payment_method_id: str | None = None,
        cvv: str | None = None,
    ) -> Order:
        """
        Place an order for the current cart.

        Uses the account's default payment method when none is given. Card
        payments are confirmed with a 3-digit CVV.

        Raises:
            NotAuthenticatedError: If nobody is logged in.
            EmptyCartError: If the cart is empty.
            ValidationError: On bad shipping info, no payment method or a bad CVV.
            PaymentMethodNotFoundError: If the method isn't on the account.
        """
        account = self.require_account("checkout")
        if self.cart.is_empty():
            raise EmptyCartError()
        validate_shipping_info(shipping_info)

        method: PaymentMethod | None
        if payment_method_id:
            method = self.accounts.get_payment_method(account.email, payment_method_id)
        else:
            method = account.default_payment_method
        if method is None:
            raise ValidationError("payment_method", "please select a payment method")
        if method.type.is_card and (cvv is None or not _CVV_RE.match(cvv)):
            raise ValidationError("cvv", "please enter a valid 3-digit CVV")

        order = self.ledger.place_order(self.cart, shipping_info, method.name, account)
        self.save()
        return order

    def order_history(self) -> list[Order]:
        account = self.require_account("view your orders")
        return self.ledger.for_account(account)

    def track_order(self, reference: str) -> Order:
        return self.ledger.track(reference)

    # --- Reviews ---

    def add_review(self, product_id: str, rating: int, comment: str) -> ProductReview:
        account = self.require_account("add a review")
        self.catalog.get(product_id)
        review = self.reviews.add(product_id, account, rating, comment)
        self.catalog.apply_rating(
            product_id,
            self.reviews.average(product_id) or 0.0,
            len(self.reviews.for_product(product_id)),
        )
        self.save()
        return review

    def product_reviews(self, product_id: str) -> list[ProductReview]:
        self.catalog.get(product_id)
        return self.reviews.for_product(product_id)

    # --- Payment methods ---

    def add_payment_method(
        self,
        type: PaymentType,
        name: str,
        card_number: str | None = None,
        expiry_date: str | None = None,
        cvv: str | None = None,
        is_default: bool = False,
    ) -> PaymentMethod:
        account = self.require_account("add a payment method")
        method = self.accounts.add_payment_method(
            account.email, type, name, card_number, expiry_date, cvv, is_default
        )
        self.save()
        return method

    def set_default_payment_method(self, method_id: str) -> PaymentMethod:
        account = self.require_account("manage payment methods")
        method = self.accounts.set_default_payment_method(account.email, method_id)
        self.save()
        return method

    def remove_payment_method(self, method_id: str) -> PaymentMethod:
        account = self.require_account("manage payment methods")
        method = self.accounts.remove_payment_method(account.email, method_id)
        self.save()
        return method

    # --- Admin ---

    def admin_add_product(
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
        self.require_admin("add products")
        product = self.catalog.add_product(
            name, price, category, stock_quantity, description, image, sizes, colors
        )
        self.save()
        return product

    def admin_update_product(self, product_id: str, **fields: Any) -> Product:
        self.require_admin("edit products")
        product = self.catalog.update_product(product_id, **fields)
        self.save()
        return product

    def admin_set_stock(self, product_id: str, quantity: int) -> Product:
        self.require_admin("update stock")
        product = self.catalog.set_stock(product_id, quantity)
        self.save()
        return product

    def delete_product(self, product_id: str) -> Product:
        """
        Withdraw a product from sale.

        The record stays in the catalog (marked discontinued) so placed orders
        keep resolving. Cart lines are released back to stock; wishlist,
        comparison and recently viewed entries are dropped.
        """
        self.require_admin("delete products")
        product = self.catalog.discontinue(product_id)
        self.cart.purge_product(product_id)
        self.wishlist.remove(product_id)
        for ids in (self.comparison, self.recently_viewed):
            if product_id in ids:
                ids.remove(product_id)
        self.save()
        return product

    def admin_orders(self, status: OrderStatus | None = None) -> list[Order]:
        self.require_admin("view all orders")
        return self.ledger.all_orders(status)

    def advance_order_status(self, order_id: str, new_status: OrderStatus) -> Order:
        self.require_admin("update order status")
        order = self.ledger.advance_status(order_id, new_status)
        self.save()
        return order

    def inventory_alerts(self) -> list[str]:
        self.require_admin("view inventory alerts")
        return self.catalog.inventory_alerts()

    def list_accounts(self, role: Role | None = None) -> list[Account]:
        self.require_admin("view customers")
        return self.accounts.list_accounts(role)

    def dashboard(self) -> DashboardStats:
        self.require_admin("view the dashboard")
        orders = self.ledger.all_orders()
        by_status = {s.value: 0 for s in OrderStatus}
        for order in orders:
            by_status[order.status.value] += 1
        return DashboardStats(
            total_revenue=self.ledger.total_revenue(),
            order_count=len(orders),
            product_count=len(self.catalog.list_products()),
            customer_count=len(self.accounts.list_accounts(Role.CUSTOMER)),
            orders_by_status=by_status,
            low_stock=self.catalog.low_stock(config.LOW_STOCK_DASHBOARD),
            recent_orders=self.ledger.recent(config.RECENT_ORDERS_LIMIT),
        )
