import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session

from app.api.deps import get_optional_user_id
from app.core.config import settings
from app.core.database import get_db
from app.core.rate_limit import limiter
from app.schemas import CouponValidationResponse, ValidateCouponRequest
from app.services.coupon import validate_coupon

router = APIRouter(prefix="/coupons", tags=["coupons"])
log = logging.getLogger("coupons")
_VALIDATE_LIMIT = f"{settings.rate_limit_per_minute}/minute"


@router.post("/validate", response_model=CouponValidationResponse)
@limiter.limit(_VALIDATE_LIMIT)
def validate_coupon_code(
    request: Request,
    body: ValidateCouponRequest,
    user_id: str | None = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """
    Kupon doğrulama. Geçerli ve geçersiz kupon için 200 döner; istemci `valid` alanına bakmalı.
    Giriş yapılmışsa kullanıcı başı limit de kontrol edilir.
    """
    try:
        result = validate_coupon(
            db,
            code=body.code,
            purchase_type=body.purchase_type,
            item_id=body.item_id,
            amount=body.amount,
            user_id=user_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log.info(
        "coupon validate: code=%s type=%s valid=%s user=%s",
        body.code,
        body.purchase_type,
        result.valid,
        user_id or "-",
    )
    return CouponValidationResponse(
        valid=result.valid,
        discount=result.discount,
        final_amount=result.final_amount,
        coupon_code=result.coupon_code,
        message=result.message,
    )
