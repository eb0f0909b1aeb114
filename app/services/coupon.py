"""İndirim kuponu doğrulama, indirim hesaplama ve kullanım sayacı."""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, update
from sqlmodel import Session, select

from app.core.config import settings
from app.models import ApplicabilityKind, Coupon, DiscountType, Purchase, PurchaseType

log = logging.getLogger(__name__)

MSG_APPLIED = "Coupon applied successfully"
MSG_INVALID_CODE = "Invalid coupon code"
MSG_NOT_IN_WINDOW = "This coupon has expired or is not yet valid"
MSG_USAGE_LIMIT = "This coupon has reached its usage limit"
MSG_NOT_FOR_ITEM = "This coupon is not applicable to this item"
MSG_USER_LIMIT = "You have already used this coupon the maximum number of times"

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class CouponValidationResult:
    valid: bool
    discount: float
    final_amount: float
    message: str
    coupon: Coupon | None = None

    @property
    def coupon_code(self) -> str | None:
        return self.coupon.code if self.coupon is not None else None


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def utcnow() -> datetime:
    """Naive UTC; veritabanındaki valid_from/valid_until ile aynı biçim."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _round_cents(value: Decimal) -> float:
    # Decimal ROUND_HALF_UP: yarım değerler sıfırdan uzağa yuvarlanır
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def _format_amount(value: float) -> str:
    return f"{value:.0f}" if float(value).is_integer() else f"{value:.2f}"


def find_active_coupon(db: Session, code: str) -> Coupon | None:
    stmt = select(Coupon).where(
        Coupon.code == normalize_code(code),
        Coupon.is_active == True,  # noqa: E712
    )
    return db.exec(stmt).first()


def count_user_redemptions(db: Session, user_id: str, code: str) -> int:
    """Kullanıcının bu kuponla tamamlanmış satın alma sayısı."""
    stmt = (
        select(func.count())
        .select_from(Purchase)
        .where(
            Purchase.user_id == str(user_id),
            Purchase.coupon_code_used == normalize_code(code),
            Purchase.status == "completed",
        )
    )
    return int(db.exec(stmt).one())


def calculate_discount(coupon: Coupon, amount: float) -> tuple[float, float]:
    """
    (indirim, ödenecek_tutar) döner; ikisi de 2 haneye yuvarlanır, önce indirim.
    İndirim hiçbir zaman tutarı aşmaz, ödenecek tutar hiçbir zaman negatif olmaz.
    """
    amt = Decimal(str(amount))
    value = Decimal(str(coupon.discount_value))
    if DiscountType(coupon.discount_type) is DiscountType.PERCENTAGE:
        raw = amt * value / 100
        if coupon.max_discount_amount is not None:
            raw = min(raw, Decimal(str(coupon.max_discount_amount)))
    else:
        raw = value
    discount = min(raw, amt).quantize(_CENT, rounding=ROUND_HALF_UP)
    # Ödenecek tutar yuvarlanmış indirimden hesaplanır: indirim + ödenecek = tutar
    final_amount = max(Decimal(0), amt - discount)
    return float(discount), _round_cents(final_amount)


def _check_request(code: str, purchase_type: str, item_id: str, amount: float) -> PurchaseType:
    """Hatalı istek: iş kuralı reddi değil, ValueError."""
    code_clean = (code or "").strip()
    if not code_clean:
        raise ValueError("Coupon code is required")
    if len(code_clean) > settings.coupon_code_max_length:
        raise ValueError("Coupon code is too long")
    try:
        ptype = PurchaseType(purchase_type)
    except ValueError:
        raise ValueError("Purchase type must be either course or service") from None
    if not (item_id or "").strip():
        raise ValueError("Item ID is required")
    if amount is None or not math.isfinite(amount) or amount < 0:
        raise ValueError("Amount must be greater than or equal to 0")
    return ptype


def _not_applicable_message(coupon: Coupon) -> str:
    scope = coupon.applicability
    if scope.kind is ApplicabilityKind.CATEGORY:
        return f"This coupon is only valid for {scope.category.value} purchases"
    return MSG_NOT_FOR_ITEM


def _gates(
    db: Session,
    purchase_type: PurchaseType,
    item_id: str,
    amount: float,
    user_id: str | None,
    now: datetime,
):
    """Sıralı kontroller: (koşul, mesaj). İlk başarısız olan sonucu belirler."""
    return [
        (
            lambda c: _as_naive_utc(c.valid_from) <= now <= _as_naive_utc(c.valid_until),
            lambda c: MSG_NOT_IN_WINDOW,
        ),
        (
            lambda c: c.usage_limit is None or c.usage_count < c.usage_limit,
            lambda c: MSG_USAGE_LIMIT,
        ),
        (
            lambda c: c.min_purchase_amount is None or amount >= c.min_purchase_amount,
            lambda c: f"Minimum purchase amount of {_format_amount(c.min_purchase_amount)} required",
        ),
        (
            lambda c: c.applicability.allows(purchase_type, item_id),
            _not_applicable_message,
        ),
        # Kullanıcı limiti sadece kullanıcı biliniyorsa sorgulanır
        (
            lambda c: not user_id
            or c.user_limit is None
            or count_user_redemptions(db, user_id, c.code) < c.user_limit,
            lambda c: MSG_USER_LIMIT,
        ),
    ]


def validate_coupon(
    db: Session,
    code: str,
    purchase_type: str,
    item_id: str,
    amount: float,
    user_id: str | None = None,
    now: datetime | None = None,
) -> CouponValidationResult:
    """
    Kuponu doğrular ve indirimi hesaplar. Salt okunur: kullanım sayacına dokunmaz,
    aynı girdilerle tekrar çağrılabilir (ör. fiyat önizleme).

    Geçersiz kupon bir hata değildir; valid=False ve açıklayıcı mesaj döner.
    Hatalı girdi (boş kod, bilinmeyen satın alma tipi, negatif tutar) ValueError fırlatır.
    """
    ptype = _check_request(code, purchase_type, item_id, amount)
    rejected = CouponValidationResult(valid=False, discount=0.0, final_amount=float(amount), message=MSG_INVALID_CODE)

    coupon = find_active_coupon(db, code)
    if coupon is None:
        return rejected

    now = _as_naive_utc(now) if now is not None else utcnow()
    for passes, message in _gates(db, ptype, item_id, amount, user_id, now):
        if not passes(coupon):
            return CouponValidationResult(
                valid=False,
                discount=0.0,
                final_amount=float(amount),
                message=message(coupon),
            )

    discount, final_amount = calculate_discount(coupon, amount)
    return CouponValidationResult(
        valid=True,
        discount=discount,
        final_amount=final_amount,
        message=MSG_APPLIED,
        coupon=coupon,
    )


def record_redemption(db: Session, coupon_id: int, commit: bool = True) -> None:
    """
    Kupon kullanım sayacını 1 artırır (satın alma tamamlandığında çağrılır).
    Tek bir UPDATE ... SET usage_count = usage_count + 1; eşzamanlı kullanımlarda artış kaybolmaz.
    """
    db.flush()
    stmt = (
        update(Coupon)
        .where(Coupon.id == coupon_id)
        .values(usage_count=Coupon.usage_count + 1, updated_at=utcnow())
    )
    result = db.connection().execute(stmt)
    if result.rowcount == 0:
        log.warning("record_redemption: coupon not found id=%s", coupon_id)
    else:
        log.info("Coupon redemption recorded: coupon_id=%s", coupon_id)
    if commit:
        db.commit()
    else:
        # Oturumdaki eski usage_count değeri bir sonraki erişimde yeniden okunsun
        db.expire_all()
