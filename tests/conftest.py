"""Pytest fixtures for offkulture tests."""

import tempfile
from pathlib import Path

import pytest

from offkulture.catalog import Catalog
from offkulture.config import DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD
from offkulture.models import ShippingInfo
from offkulture.seed import launch_catalog
from offkulture.shop import Shop
from offkulture.store import JsonFileStore

CUSTOMER_EMAIL = "thandi@example.com"
CUSTOMER_PASSWORD = "secret123"


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def data_dir(temp_dir):
    return temp_dir / "data"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, data_dir):
    """Point every store at the temp data dir and use the default admin."""
    monkeypatch.setenv("OFFKULTURE_DATA_DIR", str(data_dir))
    monkeypatch.delenv("OFFKULTURE_ADMIN_EMAIL", raising=False)
    monkeypatch.delenv("OFFKULTURE_ADMIN_PASSWORD", raising=False)


@pytest.fixture
def catalog():
    """A fresh launch catalog (no store)."""
    return Catalog(launch_catalog())


@pytest.fixture
def store(data_dir):
    return JsonFileStore(data_dir)


@pytest.fixture
def shop(store):
    """A seeded shop with nobody logged in."""
    return Shop.load(store)


@pytest.fixture
def customer_shop(shop):
    """A shop with a freshly signed-up customer logged in."""
    shop.signup("Thandi Nkosi", CUSTOMER_EMAIL, CUSTOMER_PASSWORD)
    return shop


@pytest.fixture
def admin_shop(shop):
    """A shop with the seeded admin logged in."""
    shop.login(DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD)
    return shop


@pytest.fixture
def shipping_info():
    return ShippingInfo(
        full_name="Thandi Nkosi",
        email=CUSTOMER_EMAIL,
        phone="+27 82 555 0101",
        address="12 Long Street",
        city="Cape Town",
        province="Western Cape",
        postal_code="8001",
    )
