from datetime import datetime

from pydantic import NaiveDatetime
from sqlmodel import Field, SQLModel

from app.core.config import settings


class Purchase(SQLModel, table=True):
    """Satın alma kaydı: kupon kullanıldıysa coupon_code_used kuponun koduyla etiketlenir."""

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, max_length=64)
    purchase_type: str = Field(max_length=16)  # "course" | "service"
    item_id: str = Field(max_length=64)
    amount: float  # Ödenen tutar (indirim sonrası)
    original_amount: float
    discount_amount: float | None = None
    currency: str = Field(default_factory=lambda: settings.currency, max_length=8)
    status: str = Field(default="pending", index=True)  # pending | completed | failed | refunded
    coupon_code_used: str | None = Field(default=None, index=True, max_length=50)
    created_at: NaiveDatetime | None = Field(default_factory=datetime.utcnow)
    completed_at: NaiveDatetime | None = None
