from .coupon import (
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponValidationResponse,
    PurchaseResponse,
    ValidateCouponRequest,
)

__all__ = [
    "CouponCreate",
    "CouponResponse",
    "CouponUpdate",
    "CouponValidationResponse",
    "PurchaseResponse",
    "ValidateCouponRequest",
]
