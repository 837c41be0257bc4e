"""Pytest fixtures: test client, in-memory SQLite, seed factories."""
import os
from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

# In-memory SQLite for tests (must be set before the app is imported)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault("CURRENCY", "BDT")
os.environ.setdefault("CURRENCY_DECIMALS", "0")
# High limit so the whole suite fits in one window
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "1000")

from sqlmodel import Session, SQLModel

from app.core.clock import utc_now
from app.core.database import engine
from app.main import app
from app.models import Coupon, DiscountType, Product, ProductVariant

ADMIN_HEADERS = {"X-Admin-Secret": "test-admin-secret"}


@pytest.fixture(autouse=True)
def _fresh_tables():
    """Every test starts with empty tables."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture(scope="function")
def client():
    """TestClient; lifespan creates the tables."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    with Session(engine) as session:
        yield session


@pytest.fixture
def admin_headers():
    return dict(ADMIN_HEADERS)


@pytest.fixture
def make_product(db: Session):
    def _make(base_price, sale_price=None, is_active=True, name="T-shirt", variants=()):
        product = Product(
            name=name,
            base_price=Decimal(str(base_price)),
            sale_price=Decimal(str(sale_price)) if sale_price is not None else None,
            is_active=is_active,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        created = []
        for adjustment in variants:
            variant = ProductVariant(product_id=product.id, name=f"v{adjustment}", price_adjustment=Decimal(str(adjustment)))
            db.add(variant)
            created.append(variant)
        db.commit()
        for v in created:
            db.refresh(v)
        return product, created

    return _make


@pytest.fixture
def make_coupon(db: Session):
    def _make(code="SAVE10", discount_type=DiscountType.PERCENTAGE, discount_value=10, **kwargs):
        now = utc_now()
        kwargs.setdefault("start_date", now - timedelta(days=1))
        kwargs.setdefault("end_date", now + timedelta(days=30))
        for key in ("min_order_amount", "max_discount_amount"):
            if kwargs.get(key) is not None:
                kwargs[key] = Decimal(str(kwargs[key]))
        coupon = Coupon(
            code=code,
            discount_type=discount_type,
            discount_value=Decimal(str(discount_value)),
            **kwargs,
        )
        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        return coupon

    return _make
