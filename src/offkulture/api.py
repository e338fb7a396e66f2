"""FastAPI REST API for the OffKulture storefront."""

from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .errors import (
    AccountExistsError,
    AccountNotFoundError,
    AuthenticationError,
    CartLineNotFoundError,
    CorruptStoreError,
    EmptyCartError,
    InsufficientStockError,
    InvalidQuantityError,
    InvalidSchemaVersionError,
    InvalidStatusTransitionError,
    NotAuthenticatedError,
    OffKultureError,
    OrderNotFoundError,
    PaymentMethodNotFoundError,
    PermissionDeniedError,
    ProductDiscontinuedError,
    ProductNotFoundError,
    StoreWriteError,
    ValidationError,
)
from .models import (
    Account,
    Category,
    Order,
    OrderStatus,
    PaymentType,
    Product,
    ProductReview,
    Role,
    ShippingInfo,
)
from .shop import CartSummary, Shop
from .store import JsonFileStore


# --- Pydantic Schemas ---


class ProductSchema(BaseModel):
    id: str
    name: str
    price: Decimal
    original_price: Optional[Decimal] = None
    category: Category
    description: str = ""
    sizes: list[str] = []
    colors: list[str] = []
    stock_quantity: int
    in_stock: bool
    image: str = ""
    sku: Optional[str] = None
    rating: Optional[float] = None
    review_count: int = 0
    is_new: bool = False
    is_sale: bool = False
    tags: list[str] = []
    brand: Optional[str] = None
    material: Optional[str] = None
    care_instructions: Optional[str] = None
    discontinued: bool = False
    created_at: str
    updated_at: str


class ProductListResponse(BaseModel):
    products: list[ProductSchema]
    count: int


class ProductCreateRequest(BaseModel):
    name: str
    price: Decimal = Field(..., gt=0)
    category: Category
    stock_quantity: int = Field(..., ge=0)
    description: Optional[str] = None
    image: Optional[str] = None
    sizes: Optional[list[str]] = None
    colors: Optional[list[str]] = None


class ProductUpdateRequest(BaseModel):
    """Descriptive fields only; stock has its own endpoint."""

    name: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, gt=0)
    original_price: Optional[Decimal] = None
    description: Optional[str] = None
    sizes: Optional[list[str]] = None
    colors: Optional[list[str]] = None
    image: Optional[str] = None
    tags: Optional[list[str]] = None
    brand: Optional[str] = None
    material: Optional[str] = None
    care_instructions: Optional[str] = None
    is_new: Optional[bool] = None
    is_sale: Optional[bool] = None


class StockUpdateRequest(BaseModel):
    stock_quantity: int = Field(..., description="Absolute stock level")


class CartLineSchema(BaseModel):
    product_id: str
    name: str
    price: Decimal
    quantity: int
    size: Optional[str] = None
    color: Optional[str] = None
    line_total: Decimal


class CartResponse(BaseModel):
    lines: list[CartLineSchema]
    item_count: int
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    free_shipping_gap: Decimal


class CartAddRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, description="Units to add (must be at least 1)")
    size: Optional[str] = None
    color: Optional[str] = None


class CartUpdateRequest(BaseModel):
    quantity: int = Field(..., description="New quantity; 0 or less removes the line")
    size: Optional[str] = None
    color: Optional[str] = None


class PaymentMethodSchema(BaseModel):
    id: str
    type: PaymentType
    name: str
    last_four: Optional[str] = None
    expiry_date: Optional[str] = None
    is_default: bool = False


class PaymentMethodCreateRequest(BaseModel):
    type: PaymentType
    name: str
    card_number: Optional[str] = None
    expiry_date: Optional[str] = None
    cvv: Optional[str] = None
    is_default: bool = False


class AccountSchema(BaseModel):
    id: str
    name: str
    email: str
    address: str
    phone: str
    role: Role
    payment_methods: list[PaymentMethodSchema]
    order_ids: list[str]
    created_at: str


class AccountListResponse(BaseModel):
    accounts: list[AccountSchema]
    count: int


class SignupRequest(BaseModel):
    name: str
    email: str
    password: str
    role: Role = Role.CUSTOMER
    address: Optional[str] = None
    phone: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class ShippingInfoSchema(BaseModel):
    full_name: str
    email: str
    phone: str
    address: str
    city: str
    province: str
    postal_code: str


class CheckoutRequest(BaseModel):
    shipping: ShippingInfoSchema
    payment_method_id: Optional[str] = Field(
        None, description="Saved payment method (default method if omitted)"
    )
    cvv: Optional[str] = None


class OrderSchema(BaseModel):
    id: str
    status: OrderStatus
    items: list[CartLineSchema]
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
    created_at: str
    updated_at: str


class OrderListResponse(BaseModel):
    orders: list[OrderSchema]
    count: int


class OrderStatusUpdateRequest(BaseModel):
    status: OrderStatus


class ReviewSchema(BaseModel):
    id: str
    product_id: str
    user_name: str
    rating: int
    comment: str
    verified: bool
    created_at: str


class ReviewCreateRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str


class ReviewListResponse(BaseModel):
    reviews: list[ReviewSchema]
    count: int


class ComparisonRequest(BaseModel):
    product_id: str


class WishlistToggleResponse(BaseModel):
    added: bool
    products: list[ProductSchema]


class DashboardResponse(BaseModel):
    total_revenue: Decimal
    order_count: int
    product_count: int
    customer_count: int
    orders_by_status: dict[str, int]
    low_stock: list[ProductSchema]
    recent_orders: list[OrderSchema]


class AlertsResponse(BaseModel):
    alerts: list[str]


class ErrorResponse(BaseModel):
    detail: str
    error_type: str


# --- Helper Functions ---


def get_store() -> JsonFileStore:
    """Get the file store for the configured data directory."""
    return JsonFileStore()


@contextmanager
def shop_session() -> Iterator[Shop]:
    """Load the shop under the store lock for the duration of a request."""
    store = get_store()
    with store.lock():
        yield Shop.load(store)


def product_to_schema(product: Product) -> ProductSchema:
    return ProductSchema(**product.to_dict())


def products_response(products: list[Product]) -> ProductListResponse:
    return ProductListResponse(
        products=[product_to_schema(p) for p in products], count=len(products)
    )


def line_to_schema(line) -> CartLineSchema:
    return CartLineSchema(**line.to_dict(), line_total=line.line_total)


def cart_to_response(summary: CartSummary) -> CartResponse:
    return CartResponse(
        lines=[line_to_schema(line) for line in summary.lines],
        item_count=summary.item_count,
        subtotal=summary.totals.subtotal,
        shipping=summary.totals.shipping,
        tax=summary.totals.tax,
        total=summary.totals.total,
        free_shipping_gap=summary.free_shipping_gap,
    )


def order_to_schema(order: Order) -> OrderSchema:
    data = order.to_dict()
    data["items"] = [line_to_schema(line) for line in order.items]
    return OrderSchema(**data)


def orders_response(orders: list[Order]) -> OrderListResponse:
    return OrderListResponse(orders=[order_to_schema(o) for o in orders], count=len(orders))


def account_to_schema(account: Account) -> AccountSchema:
    return AccountSchema(**account.to_dict())


def review_to_schema(review: ProductReview) -> ReviewSchema:
    return ReviewSchema(**review.to_dict())


# --- App ---


app = FastAPI(
    title="OffKulture API",
    description="Storefront catalog, cart, checkout and order tracking",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Exception Handler ---


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    ProductNotFoundError: 404,
    ProductDiscontinuedError: 409,
    CartLineNotFoundError: 404,
    InsufficientStockError: 409,
    InvalidQuantityError: 400,
    EmptyCartError: 400,
    OrderNotFoundError: 404,
    InvalidStatusTransitionError: 409,
    AccountNotFoundError: 404,
    AccountExistsError: 409,
    AuthenticationError: 401,
    NotAuthenticatedError: 401,
    PermissionDeniedError: 403,
    PaymentMethodNotFoundError: 404,
    ValidationError: 400,
    StoreWriteError: 500,
    CorruptStoreError: 500,
    InvalidSchemaVersionError: 500,
}


@app.exception_handler(OffKultureError)
async def offkulture_error_handler(request: Request, exc: OffKultureError) -> JSONResponse:
    """Map OffKultureError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


# --- Endpoints ---


@app.get("/api/health")
def health_check():
    """Health check endpoint."""
    with shop_session() as shop:
        return {
            "status": "ok",
            "product_count": len(shop.catalog),
            "order_count": len(shop.ledger),
            "logged_in": shop.current_account is not None,
        }


# --- Catalog Endpoints ---


@app.get("/api/products", response_model=ProductListResponse)
def list_products(
    q: Optional[str] = Query(default=None, description="Text search"),
    category: Optional[Category] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    size: Optional[list[str]] = Query(default=None),
    color: Optional[list[str]] = Query(default=None),
    min_rating: Optional[float] = None,
    sort_by: Optional[str] = Query(default=None, description="name|price|rating|newest|popular"),
    order: str = Query(default="asc", pattern="^(asc|desc)$"),
):
    with shop_session() as shop:
        products = shop.search_products(
            query=q,
            category=category,
            min_price=min_price,
            max_price=max_price,
            sizes=size,
            colors=color,
            min_rating=min_rating,
            sort_by=sort_by,
            descending=order == "desc",
        )
        return products_response(products)


@app.get("/api/products/{product_id}", response_model=ProductSchema)
def get_product(product_id: str):
    with shop_session() as shop:
        return product_to_schema(shop.get_product(product_id))


@app.post("/api/products/{product_id}/view", response_model=ProductSchema)
def view_product(product_id: str):
    """Open a product page; records it as recently viewed."""
    with shop_session() as shop:
        return product_to_schema(shop.view_product(product_id))


@app.get("/api/recently-viewed", response_model=ProductListResponse)
def recently_viewed():
    with shop_session() as shop:
        return products_response(shop.recently_viewed_products())


@app.get("/api/comparison", response_model=ProductListResponse)
def get_comparison():
    with shop_session() as shop:
        return products_response(shop.comparison_products())


@app.post("/api/comparison", response_model=ProductListResponse)
def add_to_comparison(request: ComparisonRequest):
    with shop_session() as shop:
        return products_response(shop.add_to_comparison(request.product_id))


@app.delete("/api/comparison/{product_id}", response_model=ProductListResponse)
def remove_from_comparison(product_id: str):
    with shop_session() as shop:
        return products_response(shop.remove_from_comparison(product_id))


@app.get("/api/products/{product_id}/reviews", response_model=ReviewListResponse)
def list_reviews(product_id: str):
    with shop_session() as shop:
        reviews = shop.product_reviews(product_id)
        return ReviewListResponse(
            reviews=[review_to_schema(r) for r in reviews], count=len(reviews)
        )


@app.post("/api/products/{product_id}/reviews", response_model=ReviewSchema, status_code=201)
def add_review(product_id: str, request: ReviewCreateRequest):
    with shop_session() as shop:
        review = shop.add_review(product_id, request.rating, request.comment)
        return review_to_schema(review)


# --- Auth Endpoints ---


@app.post("/api/auth/signup", response_model=AccountSchema, status_code=201)
def signup(request: SignupRequest):
    with shop_session() as shop:
        account = shop.signup(
            name=request.name,
            email=request.email,
            password=request.password,
            role=request.role,
            address=request.address,
            phone=request.phone,
        )
        return account_to_schema(account)


@app.post("/api/auth/login", response_model=AccountSchema)
def login(request: LoginRequest):
    with shop_session() as shop:
        return account_to_schema(shop.login(request.email, request.password))


@app.post("/api/auth/logout")
def logout():
    with shop_session() as shop:
        shop.logout()
        return {"status": "ok"}


@app.get("/api/auth/me", response_model=AccountSchema)
def me():
    with shop_session() as shop:
        return account_to_schema(shop.require_account())


@app.patch("/api/account", response_model=AccountSchema)
def update_profile(request: ProfileUpdateRequest):
    with shop_session() as shop:
        account = shop.update_profile(
            name=request.name, address=request.address, phone=request.phone
        )
        return account_to_schema(account)


# --- Payment Method Endpoints ---


@app.get("/api/account/payment-methods", response_model=list[PaymentMethodSchema])
def list_payment_methods():
    with shop_session() as shop:
        account = shop.require_account("manage payment methods")
        return [PaymentMethodSchema(**m.to_dict()) for m in account.payment_methods]


@app.post(
    "/api/account/payment-methods", response_model=PaymentMethodSchema, status_code=201
)
def add_payment_method(request: PaymentMethodCreateRequest):
    with shop_session() as shop:
        method = shop.add_payment_method(
            type=request.type,
            name=request.name,
            card_number=request.card_number,
            expiry_date=request.expiry_date,
            cvv=request.cvv,
            is_default=request.is_default,
        )
        return PaymentMethodSchema(**method.to_dict())


@app.post(
    "/api/account/payment-methods/{method_id}/default", response_model=PaymentMethodSchema
)
def set_default_payment_method(method_id: str):
    with shop_session() as shop:
        return PaymentMethodSchema(**shop.set_default_payment_method(method_id).to_dict())


@app.delete("/api/account/payment-methods/{method_id}", response_model=PaymentMethodSchema)
def remove_payment_method(method_id: str):
    with shop_session() as shop:
        return PaymentMethodSchema(**shop.remove_payment_method(method_id).to_dict())


# --- Cart Endpoints ---


@app.get("/api/cart", response_model=CartResponse)
def get_cart():
    with shop_session() as shop:
        return cart_to_response(shop.cart_summary())


@app.post("/api/cart/items", response_model=CartResponse, status_code=201)
def add_cart_item(request: CartAddRequest):
    with shop_session() as shop:
        shop.add_to_cart(request.product_id, request.quantity, request.size, request.color)
        return cart_to_response(shop.cart_summary())


@app.patch("/api/cart/items/{product_id}", response_model=CartResponse)
def update_cart_item(product_id: str, request: CartUpdateRequest):
    with shop_session() as shop:
        shop.update_cart_quantity(product_id, request.quantity, request.size, request.color)
        return cart_to_response(shop.cart_summary())


@app.delete("/api/cart/items/{product_id}", response_model=CartResponse)
def remove_cart_item(
    product_id: str,
    size: Optional[str] = Query(default=None),
    color: Optional[str] = Query(default=None),
):
    with shop_session() as shop:
        shop.remove_from_cart(product_id, size, color)
        return cart_to_response(shop.cart_summary())


# --- Wishlist Endpoints ---


@app.get("/api/wishlist", response_model=ProductListResponse)
def get_wishlist():
    with shop_session() as shop:
        return products_response(shop.wishlist_products())


@app.post("/api/wishlist/{product_id}/toggle", response_model=WishlistToggleResponse)
def toggle_wishlist(product_id: str):
    with shop_session() as shop:
        added = shop.toggle_wishlist(product_id)
        return WishlistToggleResponse(
            added=added, products=[product_to_schema(p) for p in shop.wishlist_products()]
        )


# --- Checkout and Order Endpoints ---


@app.post("/api/checkout", response_model=OrderSchema, status_code=201)
def checkout(request: CheckoutRequest):
    with shop_session() as shop:
        order = shop.checkout(
            ShippingInfo(**request.shipping.model_dump()),
            payment_method_id=request.payment_method_id,
            cvv=request.cvv,
        )
        return order_to_schema(order)


@app.get("/api/orders", response_model=OrderListResponse)
def order_history():
    """Orders of the logged-in account, oldest first."""
    with shop_session() as shop:
        return orders_response(shop.order_history())


@app.get("/api/orders/track/{reference}", response_model=OrderSchema)
def track_order(reference: str):
    """Look an order up by order ID or tracking number."""
    with shop_session() as shop:
        return order_to_schema(shop.track_order(reference))


# --- Admin Endpoints ---


@app.post("/api/admin/products", response_model=ProductSchema, status_code=201)
def admin_create_product(request: ProductCreateRequest):
    with shop_session() as shop:
        product = shop.admin_add_product(
            name=request.name,
            price=request.price,
            category=request.category,
            stock_quantity=request.stock_quantity,
            description=request.description,
            image=request.image,
            sizes=request.sizes,
            colors=request.colors,
        )
        return product_to_schema(product)


@app.patch("/api/admin/products/{product_id}", response_model=ProductSchema)
def admin_update_product(product_id: str, request: ProductUpdateRequest):
    with shop_session() as shop:
        fields = request.model_dump(exclude_none=True)
        return product_to_schema(shop.admin_update_product(product_id, **fields))


@app.put("/api/admin/products/{product_id}/stock", response_model=ProductSchema)
def admin_set_stock(product_id: str, request: StockUpdateRequest):
    with shop_session() as shop:
        return product_to_schema(shop.admin_set_stock(product_id, request.stock_quantity))


@app.delete("/api/admin/products/{product_id}", response_model=ProductSchema)
def admin_delete_product(product_id: str):
    """Discontinue a product (kept for order history, hidden from the store)."""
    with shop_session() as shop:
        return product_to_schema(shop.delete_product(product_id))


@app.get("/api/admin/orders", response_model=OrderListResponse)
def admin_list_orders(status: Optional[OrderStatus] = None):
    with shop_session() as shop:
        return orders_response(shop.admin_orders(status))


@app.patch("/api/admin/orders/{order_id}", response_model=OrderSchema)
def admin_update_order_status(order_id: str, request: OrderStatusUpdateRequest):
    with shop_session() as shop:
        return order_to_schema(shop.advance_order_status(order_id, request.status))


@app.get("/api/admin/alerts", response_model=AlertsResponse)
def admin_alerts():
    with shop_session() as shop:
        return AlertsResponse(alerts=shop.inventory_alerts())


@app.get("/api/admin/dashboard", response_model=DashboardResponse)
def admin_dashboard():
    with shop_session() as shop:
        stats = shop.dashboard()
        return DashboardResponse(
            total_revenue=stats.total_revenue,
            order_count=stats.order_count,
            product_count=stats.product_count,
            customer_count=stats.customer_count,
            orders_by_status=stats.orders_by_status,
            low_stock=[product_to_schema(p) for p in stats.low_stock],
            recent_orders=[order_to_schema(o) for o in stats.recent_orders],
        )


@app.get("/api/admin/accounts", response_model=AccountListResponse)
def admin_list_accounts(role: Optional[Role] = None):
    with shop_session() as shop:
        accounts = shop.list_accounts(role)
        return AccountListResponse(
            accounts=[account_to_schema(a) for a in accounts], count=len(accounts)
        )


@app.post("/api/admin/reset")
def admin_reset():
    """Delete all data (users, orders, cart, wishlist) and reseed."""
    store = get_store()
    with store.lock():
        Shop.load(store).require_admin("reset the store")
        Shop.reset(store)
    return {"status": "ok"}
