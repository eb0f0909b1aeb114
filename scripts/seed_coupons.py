#!/usr/bin/env python3
"""Örnek kuponları veritabanına ekler (var olan kodlar atlanır).
   Kullanim: python3 scripts/seed_coupons.py"""
import sys
from datetime import timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from sqlmodel import Session, select  # noqa: E402

from app.core.database import engine, init_db  # noqa: E402
from app.models import Applicability, Coupon  # noqa: E402
from app.services.coupon import utcnow  # noqa: E402

SAMPLE_COUPONS = [
    {
        "code": "WELCOME20",
        "discount_type": "percentage",
        "discount_value": 20,
        "min_purchase_amount": 1000,
        "days": 90,
        "usage_limit": 100,
        "applicable_to": "all",
        "description": "Welcome discount - 20% off on all purchases",
    },
    {
        "code": "STUDENT50",
        "discount_type": "percentage",
        "discount_value": 50,
        "min_purchase_amount": 2000,
        "max_discount_amount": 2000,
        "days": 180,
        "usage_limit": 50,
        "applicable_to": "course",
        "description": "Student discount - 50% off on courses (max 2000)",
    },
    {
        "code": "FIRST500",
        "discount_type": "fixed",
        "discount_value": 500,
        "min_purchase_amount": 2000,
        "days": 60,
        "usage_limit": 200,
        "applicable_to": "all",
        "description": "Flat 500 off on purchases above 2000",
    },
]


def seed(db: Session) -> int:
    now = utcnow()
    created = 0
    for data in SAMPLE_COUPONS:
        if db.exec(select(Coupon).where(Coupon.code == data["code"])).first():
            print("Zaten var:", data["code"])
            continue
        coupon = Coupon(
            code=data["code"],
            discount_type=data["discount_type"],
            discount_value=data["discount_value"],
            min_purchase_amount=data.get("min_purchase_amount"),
            max_discount_amount=data.get("max_discount_amount"),
            valid_from=now,
            valid_until=now + timedelta(days=data["days"]),
            usage_limit=data.get("usage_limit"),
            description=data["description"],
            created_by="seed",
        )
        coupon.set_applicability(Applicability.from_public(data["applicable_to"]))
        db.add(coupon)
        created += 1
    db.commit()
    return created


if __name__ == "__main__":
    init_db()
    with Session(engine) as session:
        n = seed(session)
    print(f"Tamam: {n} kupon eklendi.")
