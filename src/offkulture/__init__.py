"""OffKulture storefront: catalog, cart, checkout and order tracking."""

__version__ = "0.1.0"
