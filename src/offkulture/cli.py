"""Command-line interface for offkulture."""

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation
from typing import Iterator

from . import __version__, config
from .errors import OffKultureError, ValidationError
from .models import Role, ShippingInfo
from .shop import Shop
from .store import META_KEY, JsonFileStore
from .utils import (
    format_cart_line,
    format_money,
    format_order,
    format_product,
    parse_category,
    parse_payment_type,
    parse_status,
)


@contextmanager
def open_shop() -> Iterator[Shop]:
    """Load the shop from the data directory, holding the store lock."""
    store = JsonFileStore()
    with store.lock():
        yield Shop.load(store)


def _parse_price(value: str) -> Decimal:
    try:
        price = Decimal(value)
    except InvalidOperation:
        raise ValidationError("price", f"not a number: {value!r}") from None
    if not price.is_finite():
        raise ValidationError("price", f"not a finite amount: {value!r}")
    return price


def cmd_init(args: argparse.Namespace) -> int:
    """Create the data directory and seed the launch catalog."""
    try:
        store = JsonFileStore()
        with store.lock():
            exists = store.get(META_KEY) is not None
            if exists and not args.force:
                print(
                    f"Error: Store already exists at {store.data_dir} (use --force to reset)",
                    file=sys.stderr,
                )
                return 1
            if exists:
                Shop.load(store).require_admin("reset the store")
            shop = Shop.reset(store)

        print(f"Initialized offkulture at {store.data_dir}")
        print(f"Catalog: {len(shop.catalog)} products")
        print(f"Admin: {config.admin_credentials()[0]}")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_products(args: argparse.Namespace) -> int:
    """List or search products."""
    try:
        category = parse_category(args.category) if args.category else None
        with open_shop() as shop:
            products = shop.search_products(
                query=args.search,
                category=category,
                sort_by=args.sort,
                descending=args.desc,
            )

        if not products:
            print("No products found.")
            return 0

        if args.json:
            print(json.dumps([p.to_dict() for p in products], indent=2))
        else:
            print(f"Products ({len(products)}):")
            print()
            for product in products:
                print(format_product(product, verbose=args.verbose))

        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_show(args: argparse.Namespace) -> int:
    """Show one product and record it as recently viewed."""
    try:
        with open_shop() as shop:
            product = shop.view_product(args.product_id)
            reviews = shop.product_reviews(args.product_id)

        print(format_product(product, verbose=True))
        if product.original_price is not None:
            print(f"             Was: {format_money(product.original_price)}")
        for review in reviews:
            print(f"  {'*' * review.rating:<5} {review.user_name}: {review.comment}")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_signup(args: argparse.Namespace) -> int:
    """Register a new account."""
    try:
        role = Role.ADMIN if args.admin else Role.CUSTOMER
        with open_shop() as shop:
            account = shop.signup(
                name=args.name,
                email=args.email,
                password=args.password,
                role=role,
                address=args.address,
                phone=args.phone,
            )

        print(f"Created {account.role.value} account: {account.email}")
        if not account.is_admin:
            print(f"Logged in as {account.name}")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_login(args: argparse.Namespace) -> int:
    try:
        with open_shop() as shop:
            account = shop.login(args.email, args.password)

        print(f"Logged in as {account.name} ({account.role.value})")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_logout(args: argparse.Namespace) -> int:
    try:
        with open_shop() as shop:
            shop.logout()

        print("Logged out.")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_whoami(args: argparse.Namespace) -> int:
    """Show the logged-in account."""
    try:
        with open_shop() as shop:
            account = shop.require_account()

        print(f"{account.name} <{account.email}> ({account.role.value})")
        print(f"  Address: {account.address}")
        print(f"  Phone: {account.phone}")
        print(f"  Orders: {len(account.order_ids)}")
        for method in account.payment_methods:
            marker = " (default)" if method.is_default else ""
            print(f"  Payment: {method.id[:8]}  {method.name}{marker}")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_cart_list(args: argparse.Namespace) -> int:
    """Show cart contents and totals."""
    try:
        with open_shop() as shop:
            summary = shop.cart_summary()

        if not summary.lines:
            print("Cart is empty.")
            return 0

        print(f"Cart ({summary.item_count} items):")
        print()
        for line in summary.lines:
            print(format_cart_line(line))
        print()
        totals = summary.totals
        print(f"Subtotal: {format_money(totals.subtotal)}")
        shipping = "FREE" if totals.shipping == 0 else format_money(totals.shipping)
        print(f"Shipping: {shipping}")
        print(f"VAT (15%): {format_money(totals.tax)}")
        print(f"Total: {format_money(totals.total)}")
        if summary.free_shipping_gap > 0:
            print(f"Add {format_money(summary.free_shipping_gap)} more for free shipping")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_cart_add(args: argparse.Namespace) -> int:
    try:
        with open_shop() as shop:
            line = shop.add_to_cart(args.product_id, args.quantity, args.size, args.color)
            remaining = shop.get_product(args.product_id).stock_quantity

        print(f"Added {args.quantity} x {line.name} to cart")
        print(f"  {format_cart_line(line)}")
        print(f"  {remaining} left in stock")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_cart_update(args: argparse.Namespace) -> int:
    try:
        with open_shop() as shop:
            line = shop.update_cart_quantity(
                args.product_id, args.quantity, args.size, args.color
            )

        if line is None:
            print(f"Removed {args.product_id} from cart")
        else:
            print(f"Updated: {format_cart_line(line)}")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_cart_remove(args: argparse.Namespace) -> int:
    try:
        with open_shop() as shop:
            line = shop.remove_from_cart(args.product_id, args.size, args.color)

        print(f"Removed {line.quantity} x {line.name} from cart")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_wishlist_list(args: argparse.Namespace) -> int:
    try:
        with open_shop() as shop:
            products = shop.wishlist_products()

        if not products:
            print("Wishlist is empty.")
            return 0

        print(f"Wishlist ({len(products)}):")
        for product in products:
            print(format_product(product))
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_wishlist_toggle(args: argparse.Namespace) -> int:
    try:
        with open_shop() as shop:
            added = shop.toggle_wishlist(args.product_id)

        action = "Added" if added else "Removed"
        print(f"{action} {args.product_id} {'to' if added else 'from'} wishlist")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_checkout(args: argparse.Namespace) -> int:
    """Place an order for the current cart."""
    try:
        with open_shop() as shop:
            account = shop.require_account("checkout")
            shipping_info = ShippingInfo(
                full_name=args.name or account.name,
                email=args.email or account.email,
                phone=args.phone or account.phone,
                address=args.address,
                city=args.city,
                province=args.province,
                postal_code=args.postal_code,
            )
            order = shop.checkout(
                shipping_info, payment_method_id=args.payment_method, cvv=args.cvv
            )

        print(f"Order placed: {order.id}")
        print(f"  Tracking number: {order.tracking_number}")
        print(f"  Total: {format_money(order.total)}")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_orders_list(args: argparse.Namespace) -> int:
    """List the logged-in account's orders."""
    try:
        with open_shop() as shop:
            orders = shop.order_history()

        if not orders:
            print("No orders yet.")
            return 0

        if args.json:
            print(json.dumps([o.to_dict() for o in orders], indent=2))
        else:
            print(f"Orders ({len(orders)}):")
            print()
            for order in orders:
                print(format_order(order, verbose=args.verbose))
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_orders_track(args: argparse.Namespace) -> int:
    """Track an order by order ID or tracking number."""
    try:
        with open_shop() as shop:
            order = shop.track_order(args.reference)

        print(format_order(order, verbose=True))
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_admin_add_product(args: argparse.Namespace) -> int:
    try:
        with open_shop() as shop:
            product = shop.admin_add_product(
                name=args.name,
                price=_parse_price(args.price),
                category=parse_category(args.category),
                stock_quantity=args.stock,
                description=args.description,
            )

        print(f"Added product: {product.id}")
        print(format_product(product, verbose=True))
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_admin_delete_product(args: argparse.Namespace) -> int:
    try:
        with open_shop() as shop:
            product = shop.delete_product(args.product_id)

        print(f"Discontinued product: {product.id} ({product.name})")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_admin_stock(args: argparse.Namespace) -> int:
    """Set a product's stock level."""
    try:
        with open_shop() as shop:
            product = shop.admin_set_stock(args.product_id, args.quantity)

        print(f"Stock for {product.id} set to {product.stock_quantity}")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_admin_orders(args: argparse.Namespace) -> int:
    try:
        status = parse_status(args.status) if args.status else None
        with open_shop() as shop:
            orders = shop.admin_orders(status)

        if not orders:
            print("No orders found.")
            return 0

        print(f"Orders ({len(orders)}):")
        for order in orders:
            print(f"{format_order(order)}  [{order.customer_email}]")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_admin_status(args: argparse.Namespace) -> int:
    """Advance an order's delivery status."""
    try:
        status = parse_status(args.status)
        with open_shop() as shop:
            order = shop.advance_order_status(args.order_id, status)

        print(f"Order {order.id} is now {order.status.value}")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_admin_alerts(args: argparse.Namespace) -> int:
    try:
        with open_shop() as shop:
            alerts = shop.inventory_alerts()

        if not alerts:
            print("No inventory alerts.")
            return 0

        for alert in alerts:
            print(f"! {alert}")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_admin_dashboard(args: argparse.Namespace) -> int:
    try:
        with open_shop() as shop:
            stats = shop.dashboard()

        print(f"Revenue: {format_money(stats.total_revenue)}")
        print(f"Orders: {stats.order_count}")
        print(f"Products: {stats.product_count}")
        print(f"Customers: {stats.customer_count}")
        for status, count in stats.orders_by_status.items():
            print(f"  {status}: {count}")
        if stats.low_stock:
            print()
            print(f"Low stock ({len(stats.low_stock)}):")
            for product in stats.low_stock:
                print(format_product(product))
        if stats.recent_orders:
            print()
            print("Recent orders:")
            for order in stats.recent_orders:
                print(format_order(order))
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_payment_add(args: argparse.Namespace) -> int:
    try:
        payment_type = parse_payment_type(args.type)
        with open_shop() as shop:
            method = shop.add_payment_method(
                type=payment_type,
                name=args.name,
                card_number=args.card_number,
                expiry_date=args.expiry,
                cvv=args.cvv,
                is_default=args.default,
            )

        print(f"Added payment method: {method.id[:8]}  {method.name}")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_reset(args: argparse.Namespace) -> int:
    """Delete all data and reseed. Admin only."""
    try:
        store = JsonFileStore()
        with store.lock():
            Shop.load(store).require_admin("reset the store")
            Shop.reset(store)

        print("All data cleared. Catalog reseeded.")
        return 0

    except OffKultureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    try:
        import uvicorn

        print("Starting offkulture API server...")
        print(f"Data directory: {config.data_dir()}")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the app as an import string
        app_target = "offkulture.api:app" if args.reload else None
        if app_target is None:
            from .api import app
            app_target = app

        uvicorn.run(
            app_target,
            host=args.host,
            port=args.port,
            reload=args.reload,
            workers=1,
        )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _add_variant_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--size", "-s", help="Size variant")
    parser.add_argument("--color", "-c", help="Color variant")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="offkulture",
        description="OffKulture storefront: browse, cart, checkout and track orders.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging on stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init
    init_parser = subparsers.add_parser("init", help="Create and seed the store")
    init_parser.add_argument(
        "--force", "-f", action="store_true", help="Wipe existing data and reseed (admin only)"
    )

    # products
    products_parser = subparsers.add_parser("products", help="List or search products")
    products_parser.add_argument("--category", help="mens, womens, baby or accessories")
    products_parser.add_argument("--search", "-q", help="Text search")
    products_parser.add_argument(
        "--sort", choices=["name", "price", "rating", "newest", "popular"], help="Sort key"
    )
    products_parser.add_argument("--desc", action="store_true", help="Sort descending")
    products_parser.add_argument("--json", action="store_true", help="Output as JSON")
    products_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show sizes, colors and ratings"
    )

    # show
    show_parser = subparsers.add_parser("show", help="Show a product")
    show_parser.add_argument("product_id", help="Product ID")

    # signup / login / logout / whoami
    signup_parser = subparsers.add_parser("signup", help="Create an account")
    signup_parser.add_argument("--name", "-n", required=True, help="Full name")
    signup_parser.add_argument("--email", "-e", required=True, help="Email address")
    signup_parser.add_argument("--password", "-p", required=True, help="Password (min 6 chars)")
    signup_parser.add_argument("--address", help="Delivery address")
    signup_parser.add_argument("--phone", help="Phone number")
    signup_parser.add_argument(
        "--admin", action="store_true", help="Create an admin account (admin session required)"
    )

    login_parser = subparsers.add_parser("login", help="Log in")
    login_parser.add_argument("--email", "-e", required=True, help="Email address")
    login_parser.add_argument("--password", "-p", required=True, help="Password")

    subparsers.add_parser("logout", help="Log out")
    subparsers.add_parser("whoami", help="Show the logged-in account")

    # cart (subcommand group)
    cart_parser = subparsers.add_parser("cart", help="Manage the shopping cart")
    cart_subparsers = cart_parser.add_subparsers(dest="cart_command")

    cart_subparsers.add_parser("list", help="Show the cart")

    cart_add_parser = cart_subparsers.add_parser("add", help="Add a product to the cart")
    cart_add_parser.add_argument("product_id", help="Product ID")
    cart_add_parser.add_argument(
        "--quantity", "-q", type=int, default=1, help="Units to add (default: 1)"
    )
    _add_variant_args(cart_add_parser)

    cart_update_parser = cart_subparsers.add_parser("update", help="Change a line quantity")
    cart_update_parser.add_argument("product_id", help="Product ID")
    cart_update_parser.add_argument("quantity", type=int, help="New quantity (0 removes)")
    _add_variant_args(cart_update_parser)

    cart_remove_parser = cart_subparsers.add_parser("remove", help="Remove a cart line")
    cart_remove_parser.add_argument("product_id", help="Product ID")
    _add_variant_args(cart_remove_parser)

    # wishlist (subcommand group)
    wishlist_parser = subparsers.add_parser("wishlist", help="Manage the wishlist")
    wishlist_subparsers = wishlist_parser.add_subparsers(dest="wishlist_command")
    wishlist_subparsers.add_parser("list", help="Show the wishlist")
    wishlist_toggle_parser = wishlist_subparsers.add_parser(
        "toggle", help="Add or remove a product"
    )
    wishlist_toggle_parser.add_argument("product_id", help="Product ID")

    # checkout
    checkout_parser = subparsers.add_parser("checkout", help="Place an order")
    checkout_parser.add_argument("--address", required=True, help="Street address")
    checkout_parser.add_argument("--city", required=True, help="City")
    checkout_parser.add_argument("--province", required=True, help="Province")
    checkout_parser.add_argument("--postal-code", required=True, help="4-digit postal code")
    checkout_parser.add_argument("--name", help="Recipient name (default: account name)")
    checkout_parser.add_argument("--email", help="Contact email (default: account email)")
    checkout_parser.add_argument("--phone", help="Contact phone (default: account phone)")
    checkout_parser.add_argument(
        "--payment-method", help="Payment method ID (default: account default)"
    )
    checkout_parser.add_argument("--cvv", help="Card CVV")

    # orders (subcommand group)
    orders_parser = subparsers.add_parser("orders", help="Order history and tracking")
    orders_subparsers = orders_parser.add_subparsers(dest="orders_command")
    orders_list_parser = orders_subparsers.add_parser("list", help="List your orders")
    orders_list_parser.add_argument("--json", action="store_true", help="Output as JSON")
    orders_list_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show line items and totals"
    )
    orders_track_parser = orders_subparsers.add_parser("track", help="Track an order")
    orders_track_parser.add_argument("reference", help="Order ID or tracking number")

    # payment (subcommand group)
    payment_parser = subparsers.add_parser("payment", help="Manage payment methods")
    payment_subparsers = payment_parser.add_subparsers(dest="payment_command")
    payment_add_parser = payment_subparsers.add_parser("add", help="Add a payment method")
    payment_add_parser.add_argument(
        "--type", "-t", required=True, help="Credit Card, Debit Card, EFT or SnapScan"
    )
    payment_add_parser.add_argument("--name", "-n", required=True, help="Display name")
    payment_add_parser.add_argument("--card-number", help="Card number (cards only)")
    payment_add_parser.add_argument("--expiry", help="Expiry MM/YY (cards only)")
    payment_add_parser.add_argument("--cvv", help="CVV (cards only)")
    payment_add_parser.add_argument(
        "--default", action="store_true", help="Make this the default method"
    )

    # admin (subcommand group)
    admin_parser = subparsers.add_parser("admin", help="Store administration")
    admin_subparsers = admin_parser.add_subparsers(dest="admin_command")

    admin_add_parser = admin_subparsers.add_parser("add-product", help="Add a product")
    admin_add_parser.add_argument("--name", "-n", required=True, help="Product name")
    admin_add_parser.add_argument("--price", required=True, help="Price in Rand")
    admin_add_parser.add_argument("--category", required=True, help="Category")
    admin_add_parser.add_argument("--stock", type=int, required=True, help="Initial stock")
    admin_add_parser.add_argument("--description", "-d", help="Description")

    admin_delete_parser = admin_subparsers.add_parser(
        "delete-product", help="Discontinue a product"
    )
    admin_delete_parser.add_argument("product_id", help="Product ID")

    admin_stock_parser = admin_subparsers.add_parser("stock", help="Set stock level")
    admin_stock_parser.add_argument("product_id", help="Product ID")
    admin_stock_parser.add_argument("quantity", type=int, help="New stock level")

    admin_orders_parser = admin_subparsers.add_parser("orders", help="List all orders")
    admin_orders_parser.add_argument("--status", help="Filter by status")

    admin_status_parser = admin_subparsers.add_parser("status", help="Advance order status")
    admin_status_parser.add_argument("order_id", help="Order ID")
    admin_status_parser.add_argument("status", help="Processing, Shipped or Delivered")

    admin_subparsers.add_parser("alerts", help="Show inventory alerts")
    admin_subparsers.add_parser("dashboard", help="Show store statistics")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    # reset
    subparsers.add_parser("reset", help="Delete all data and reseed (admin only)")

    return parser


GROUP_COMMANDS = {
    "cart": ("cart_command", {
        "list": cmd_cart_list,
        "add": cmd_cart_add,
        "update": cmd_cart_update,
        "remove": cmd_cart_remove,
    }),
    "wishlist": ("wishlist_command", {
        "list": cmd_wishlist_list,
        "toggle": cmd_wishlist_toggle,
    }),
    "orders": ("orders_command", {
        "list": cmd_orders_list,
        "track": cmd_orders_track,
    }),
    "payment": ("payment_command", {
        "add": cmd_payment_add,
    }),
    "admin": ("admin_command", {
        "add-product": cmd_admin_add_product,
        "delete-product": cmd_admin_delete_product,
        "stock": cmd_admin_stock,
        "orders": cmd_admin_orders,
        "status": cmd_admin_status,
        "alerts": cmd_admin_alerts,
        "dashboard": cmd_admin_dashboard,
    }),
}


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level="DEBUG" if args.debug else config.log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    # Handle subcommand groups
    if args.command in GROUP_COMMANDS:
        dest, handlers = GROUP_COMMANDS[args.command]
        sub_command = getattr(args, dest, None)
        if not sub_command:
            parser.parse_args([args.command, "--help"])
            return 0
        return handlers[sub_command](args)

    commands = {
        "init": cmd_init,
        "products": cmd_products,
        "show": cmd_show,
        "signup": cmd_signup,
        "login": cmd_login,
        "logout": cmd_logout,
        "whoami": cmd_whoami,
        "checkout": cmd_checkout,
        "serve": cmd_serve,
        "reset": cmd_reset,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
