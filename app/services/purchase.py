"""Satın alma tamamlama: durum geçişi ve kupon kullanım sayacı (tek sefer)."""
import logging

from sqlmodel import Session, select

from app.models import Coupon, Purchase
from app.services.coupon import normalize_code, record_redemption, utcnow

log = logging.getLogger(__name__)


def complete_purchase(db: Session, purchase_id: int) -> Purchase:
    """
    Bekleyen satın almayı tamamlandı yapar; kupon kullanıldıysa sayacı bir kez artırır.
    Zaten tamamlanmış sipariş olduğu gibi döner (tekrar gelen ödeme bildirimi gibi).
    """
    purchase = db.get(Purchase, purchase_id)
    if purchase is None:
        raise LookupError(f"Purchase {purchase_id} not found")
    if purchase.status == "completed":
        return purchase
    if purchase.status != "pending":
        raise ValueError(f"Purchase in status '{purchase.status}' cannot be completed")

    purchase.status = "completed"
    purchase.completed_at = utcnow()
    db.add(purchase)

    if purchase.coupon_code_used:
        code = normalize_code(purchase.coupon_code_used)
        # Sonradan pasifleştirilmiş kupon da sayılır
        coupon = db.exec(select(Coupon).where(Coupon.code == code)).first()
        if coupon is not None:
            record_redemption(db, coupon.id, commit=False)
        else:
            log.warning("complete_purchase: coupon %s not found for purchase_id=%s", code, purchase_id)

    db.commit()
    db.refresh(purchase)
    return purchase
