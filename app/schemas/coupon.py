from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.core.config import settings


class _CamelModel(BaseModel):
    """JSON alanları camelCase (finalAmount, purchaseType); snake_case de kabul edilir."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _clean_code(v: str) -> str:
    v = (v or "").strip().upper()
    if not v:
        raise ValueError("Coupon code is required")
    return v


def _naive_utc(v: datetime | None) -> datetime | None:
    if v is None or v.tzinfo is None:
        return v
    return v.astimezone(timezone.utc).replace(tzinfo=None)


class ValidateCouponRequest(_CamelModel):
    code: str = Field(min_length=1, max_length=settings.coupon_code_max_length)
    purchase_type: Literal["course", "service"]
    item_id: str = Field(min_length=1)
    amount: float = Field(ge=0, allow_inf_nan=False)

    @field_validator("code")
    @classmethod
    def code_not_blank(cls, v: str) -> str:
        return _clean_code(v)

    @field_validator("item_id")
    @classmethod
    def item_id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Item ID is required")
        return v.strip()


class CouponValidationResponse(_CamelModel):
    valid: bool
    discount: float
    final_amount: float
    coupon_code: str | None = None
    message: str


ApplicableTo = Literal["all", "course", "service"] | list[str]


class CouponCreate(_CamelModel):
    """Admin: yeni kupon."""

    code: str = Field(min_length=1, max_length=settings.coupon_code_max_length)
    discount_type: Literal["percentage", "fixed"]
    discount_value: float = Field(ge=0)
    min_purchase_amount: float | None = Field(default=None, ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)
    valid_from: datetime
    valid_until: datetime
    usage_limit: int | None = Field(default=None, ge=1)
    user_limit: int | None = Field(default=None, ge=1)
    applicable_to: ApplicableTo = "all"
    description: str | None = Field(default=None, max_length=500)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def code_upper(cls, v: str) -> str:
        return _clean_code(v)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def to_naive_utc(cls, v: datetime) -> datetime:
        return _naive_utc(v)

    @model_validator(mode="after")
    def window_order(self):
        if self.valid_from > self.valid_until:
            raise ValueError("validFrom must be before or equal to validUntil")
        return self


class CouponUpdate(_CamelModel):
    """Admin: kısmi güncelleme; usage_count buradan değiştirilemez."""

    code: str | None = Field(default=None, min_length=1, max_length=settings.coupon_code_max_length)
    discount_type: Literal["percentage", "fixed"] | None = None
    discount_value: float | None = Field(default=None, ge=0)
    min_purchase_amount: float | None = Field(default=None, ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=1)
    user_limit: int | None = Field(default=None, ge=1)
    applicable_to: ApplicableTo | None = None
    description: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None

    @field_validator("code")
    @classmethod
    def code_upper(cls, v: str | None) -> str | None:
        return _clean_code(v) if v is not None else None

    @field_validator("valid_from", "valid_until")
    @classmethod
    def to_naive_utc(cls, v: datetime | None) -> datetime | None:
        return _naive_utc(v)


class CouponResponse(_CamelModel):
    id: int
    code: str
    discount_type: str
    discount_value: float
    min_purchase_amount: float | None = None
    max_discount_amount: float | None = None
    valid_from: datetime
    valid_until: datetime
    usage_limit: int | None = None
    usage_count: int
    user_limit: int | None = None
    applicable_to: str | list[str]
    is_active: bool
    description: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PurchaseResponse(_CamelModel):
    id: int
    user_id: str
    purchase_type: str
    item_id: str
    amount: float
    original_amount: float
    discount_amount: float | None = None
    currency: str
    status: str
    coupon_code_used: str | None = None
    completed_at: datetime | None = None
