from .coupon import Applicability, ApplicabilityKind, Coupon, DiscountType, PurchaseType
from .purchase import Purchase

__all__ = [
    "Applicability",
    "ApplicabilityKind",
    "Coupon",
    "DiscountType",
    "Purchase",
    "PurchaseType",
]
