"""Configuration constants for offkulture.

Storage and admin settings can be overridden through environment variables.
They are read on each call so a process (or a test) can repoint them.
"""

import os
from decimal import Decimal
from pathlib import Path

SCHEMA_VERSION = 1

# Pricing (South African Rand)
VAT_RATE = Decimal("0.15")
FREE_SHIPPING_THRESHOLD = Decimal("500")
FLAT_SHIPPING_FEE = Decimal("99.99")

# Inventory alerts
LOW_STOCK_ALERT = 5
LOW_STOCK_DASHBOARD = 10

# Session lists
RECENTLY_VIEWED_LIMIT = 8
COMPARISON_LIMIT = 3
RECENT_ORDERS_LIMIT = 10

_default_data_dir = Path(__file__).parent.parent.parent / "data"

DEFAULT_ADMIN_EMAIL = "admin@offkulture.com"
DEFAULT_ADMIN_PASSWORD = "admin123"
DEFAULT_ADMIN_NAME = "Admin User"


def data_dir() -> Path:
    """Directory holding the JSON key files (OFFKULTURE_DATA_DIR)."""
    return Path(os.environ.get("OFFKULTURE_DATA_DIR", _default_data_dir))


def admin_credentials() -> tuple[str, str]:
    """Return the seeded admin (email, password)."""
    return (
        os.environ.get("OFFKULTURE_ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL),
        os.environ.get("OFFKULTURE_ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD),
    )


def log_level() -> str:
    return os.environ.get("OFFKULTURE_LOG_LEVEL", "WARNING").upper()
