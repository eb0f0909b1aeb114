"""İndirim kuponu: kod, yüzde/sabit indirim, geçerlilik aralığı, kullanım limitleri ve kapsam."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Column
from pydantic import NaiveDatetime
from sqlmodel import Field, SQLModel

from app.core.config import settings


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PurchaseType(str, Enum):
    COURSE = "course"
    SERVICE = "service"


class ApplicabilityKind(str, Enum):
    ALL = "all"
    CATEGORY = "category"
    ITEMS = "items"


@dataclass(frozen=True)
class Applicability:
    """
    Kuponun kapsamı; üç durumlu etiketli tip:
    ALL (her satın alma), CATEGORY (tek satın alma tipi), ITEMS (belirli ürün id listesi).
    """

    kind: ApplicabilityKind
    category: PurchaseType | None = None
    item_ids: tuple[str, ...] = ()

    @classmethod
    def all(cls) -> "Applicability":
        return cls(ApplicabilityKind.ALL)

    @classmethod
    def for_category(cls, purchase_type: PurchaseType | str) -> "Applicability":
        return cls(ApplicabilityKind.CATEGORY, category=PurchaseType(purchase_type))

    @classmethod
    def for_items(cls, item_ids) -> "Applicability":
        return cls(ApplicabilityKind.ITEMS, item_ids=tuple(item_ids))

    def allows(self, purchase_type: PurchaseType | str, item_id: str) -> bool:
        if self.kind is ApplicabilityKind.ALL:
            return True
        if self.kind is ApplicabilityKind.CATEGORY:
            return self.category is PurchaseType(purchase_type)
        if self.kind is ApplicabilityKind.ITEMS:
            return item_id in self.item_ids
        raise ValueError(f"Unknown applicability kind: {self.kind!r}")

    def to_public(self) -> str | list[str]:
        """API gösterimi: 'all' | 'course' | 'service' | ['id', ...]."""
        if self.kind is ApplicabilityKind.ALL:
            return ApplicabilityKind.ALL.value
        if self.kind is ApplicabilityKind.CATEGORY:
            return self.category.value
        return list(self.item_ids)

    @classmethod
    def from_public(cls, value: str | list[str]) -> "Applicability":
        if isinstance(value, str):
            if value == ApplicabilityKind.ALL.value:
                return cls.all()
            return cls.for_category(value)
        return cls.for_items(value)


class Coupon(SQLModel, table=True):
    """İndirim kodu: admin tarafından oluşturulur, satın alma sırasında doğrulanır."""

    id: int | None = Field(default=None, primary_key=True)
    code: str = Field(unique=True, index=True, max_length=settings.coupon_code_max_length)  # her zaman büyük harf
    discount_type: str = Field(max_length=16)  # "percentage" | "fixed"
    discount_value: float = Field(ge=0)  # percentage: 0-100, fixed: para birimi
    min_purchase_amount: float | None = Field(default=None, ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)  # sadece percentage için anlamlı
    valid_from: NaiveDatetime = Field(index=True)  # dahil, naive UTC
    valid_until: NaiveDatetime = Field(index=True)  # dahil, naive UTC
    usage_limit: int | None = Field(default=None, ge=1)  # null = sınırsız
    usage_count: int = Field(default=0, ge=0)  # sadece record_redemption artırır
    user_limit: int | None = Field(default=None, ge=1)
    # Kapsam: all | category | items
    applicable_kind: str = Field(default=ApplicabilityKind.ALL.value, max_length=16)
    applicable_category: str | None = Field(default=None, max_length=16)
    applicable_items: list[str] | None = Field(default=None, sa_column=Column(JSON))
    is_active: bool = Field(default=True, index=True)
    description: str | None = Field(default=None, max_length=500)
    created_by: str | None = Field(default=None, max_length=64)
    created_at: NaiveDatetime | None = Field(default_factory=datetime.utcnow)
    updated_at: NaiveDatetime | None = Field(default_factory=datetime.utcnow)

    @property
    def applicability(self) -> Applicability:
        kind = ApplicabilityKind(self.applicable_kind)
        if kind is ApplicabilityKind.CATEGORY:
            return Applicability.for_category(self.applicable_category)
        if kind is ApplicabilityKind.ITEMS:
            return Applicability.for_items(self.applicable_items or [])
        return Applicability.all()

    def set_applicability(self, scope: Applicability) -> None:
        self.applicable_kind = scope.kind.value
        self.applicable_category = scope.category.value if scope.category else None
        self.applicable_items = list(scope.item_ids) if scope.kind is ApplicabilityKind.ITEMS else None
