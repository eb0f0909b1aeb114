"""İndirim kodu yönetimi: admin JSON API ile CRUD."""
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from sqlmodel import Session, select

from app.admin.deps import require_admin
from app.core.database import get_db
from app.models import Applicability, Coupon
from app.schemas import CouponCreate, CouponResponse, CouponUpdate
from app.services.coupon import utcnow

router = APIRouter()
log = logging.getLogger("coupons.admin")


def _to_response(c: Coupon) -> CouponResponse:
    return CouponResponse(
        id=c.id,
        code=c.code,
        discount_type=c.discount_type,
        discount_value=c.discount_value,
        min_purchase_amount=c.min_purchase_amount,
        max_discount_amount=c.max_discount_amount,
        valid_from=c.valid_from,
        valid_until=c.valid_until,
        usage_limit=c.usage_limit,
        usage_count=c.usage_count or 0,
        user_limit=c.user_limit,
        applicable_to=c.applicability.to_public(),
        is_active=c.is_active,
        description=c.description,
        created_by=c.created_by,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


def _get_or_404(db: Session, coupon_id: int) -> Coupon:
    coupon = db.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


def _code_taken(db: Session, code: str, exclude_id: int | None = None) -> bool:
    stmt = select(Coupon).where(Coupon.code == code)
    if exclude_id is not None:
        stmt = stmt.where(Coupon.id != exclude_id)
    return db.exec(stmt).first() is not None


@router.get("", response_model=list[CouponResponse])
@router.get("/", response_model=list[CouponResponse], include_in_schema=False)
def coupons_list(_=Depends(require_admin), db: Session = Depends(get_db)):
    rows = db.exec(select(Coupon).order_by(Coupon.id.desc())).all()
    return [_to_response(r) for r in rows]


@router.get("/{coupon_id:int}", response_model=CouponResponse)
def coupon_detail(coupon_id: int, _=Depends(require_admin), db: Session = Depends(get_db)):
    return _to_response(_get_or_404(db, coupon_id))


@router.post("", response_model=CouponResponse, status_code=201)
def coupon_create(
    body: CouponCreate,
    _=Depends(require_admin),
    db: Session = Depends(get_db),
    x_admin_user: str | None = Header(None, alias="X-Admin-User"),
):
    if _code_taken(db, body.code):
        raise HTTPException(status_code=409, detail="Coupon code already exists")
    coupon = Coupon(
        code=body.code,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        min_purchase_amount=body.min_purchase_amount,
        max_discount_amount=body.max_discount_amount,
        valid_from=body.valid_from,
        valid_until=body.valid_until,
        usage_limit=body.usage_limit,
        usage_count=0,
        user_limit=body.user_limit,
        is_active=body.is_active,
        description=body.description,
        created_by=(x_admin_user or "").strip()[:64] or None,
    )
    coupon.set_applicability(Applicability.from_public(body.applicable_to))
    db.add(coupon)
    db.commit()
    db.refresh(coupon)
    log.info("Coupon created: id=%s code=%s", coupon.id, coupon.code)
    return _to_response(coupon)


@router.put("/{coupon_id:int}", response_model=CouponResponse)
def coupon_update(
    coupon_id: int,
    body: CouponUpdate,
    _=Depends(require_admin),
    db: Session = Depends(get_db),
):
    coupon = _get_or_404(db, coupon_id)
    data = body.model_dump(exclude_unset=True)
    if data.get("code") and _code_taken(db, data["code"], exclude_id=coupon_id):
        raise HTTPException(status_code=409, detail="Coupon code already exists")
    applicable_to = data.pop("applicable_to", None)
    for field in ("code", "discount_type", "discount_value", "valid_from", "valid_until", "is_active"):
        # Zorunlu alanlar null ile silinemez
        if field in data and data[field] is None:
            data.pop(field)
    for field, value in data.items():
        setattr(coupon, field, value)
    if applicable_to is not None:
        coupon.set_applicability(Applicability.from_public(applicable_to))
    if coupon.valid_from > coupon.valid_until:
        raise HTTPException(status_code=400, detail="validFrom must be before or equal to validUntil")
    coupon.updated_at = utcnow()
    db.add(coupon)
    db.commit()
    db.refresh(coupon)
    log.info("Coupon updated: id=%s code=%s", coupon.id, coupon.code)
    return _to_response(coupon)


@router.delete("/{coupon_id:int}", status_code=204)
def coupon_delete(coupon_id: int, _=Depends(require_admin), db: Session = Depends(get_db)):
    coupon = _get_or_404(db, coupon_id)
    db.delete(coupon)
    db.commit()
    log.info("Coupon deleted: id=%s", coupon_id)
    return Response(status_code=204)
