"""Pytest fixtures: test client, test DB (in-memory SQLite), kupon fabrikası."""
import os
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

# Test ortamında in-memory SQLite (app import edilmeden önce set edilmeli)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_SECRET", "test-admin-secret")
# Doğrulama rate limit yüksek olsun ki tüm testler geçebilsin
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "1000")

from sqlmodel import Session, SQLModel  # noqa: E402

from app.core.database import engine, init_db  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Applicability, Coupon, Purchase  # noqa: E402
from app.services.coupon import utcnow  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_tables():
    """Her test boş tablolarla başlar."""
    init_db()
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def client():
    """TestClient; lifespan ile in-memory DB ve tablolar hazır olur."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    with Session(engine) as session:
        yield session


@pytest.fixture
def admin_headers():
    return {"X-Admin-Secret": "test-admin-secret"}


@pytest.fixture
def user_headers():
    """'user-1' kimliği ile Authorization header döner."""
    return {"Authorization": f"Bearer {create_access_token({'sub': 'user-1'})}"}


@pytest.fixture
def make_coupon(db: Session):
    """Varsayılan: SAVE20, %20, dünden 30 gün sonrasına kadar geçerli, her şeye uygulanır."""

    def _make(applicable_to="all", **fields) -> Coupon:
        now = utcnow()
        data = {
            "code": "SAVE20",
            "discount_type": "percentage",
            "discount_value": 20,
            "valid_from": now - timedelta(days=1),
            "valid_until": now + timedelta(days=30),
        }
        data.update(fields)
        coupon = Coupon(**data)
        coupon.set_applicability(Applicability.from_public(applicable_to))
        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        return coupon

    return _make


@pytest.fixture
def make_purchase(db: Session):
    def _make(**fields) -> Purchase:
        data = {
            "user_id": "user-1",
            "purchase_type": "course",
            "item_id": "course-123",
            "amount": 80,
            "original_amount": 100,
            "discount_amount": 20,
            "status": "completed",
            "coupon_code_used": "SAVE20",
        }
        data.update(fields)
        purchase = Purchase(**data)
        db.add(purchase)
        db.commit()
        db.refresh(purchase)
        return purchase

    return _make
