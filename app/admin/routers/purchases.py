"""Destek: bekleyen satın almayı elle tamamlama (kupon kullanımı burada sayılır)."""
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.admin.deps import require_admin
from app.core.database import get_db
from app.schemas import PurchaseResponse
from app.services.purchase import complete_purchase

router = APIRouter()


@router.post("/{purchase_id:int}/complete", response_model=PurchaseResponse)
def purchase_complete(purchase_id: int, _=Depends(require_admin), db: Session = Depends(get_db)):
    try:
        purchase = complete_purchase(db, purchase_id)
    except LookupError:
        raise HTTPException(status_code=404, detail="Purchase not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PurchaseResponse(
        id=purchase.id,
        user_id=purchase.user_id,
        purchase_type=purchase.purchase_type,
        item_id=purchase.item_id,
        amount=purchase.amount,
        original_amount=purchase.original_amount,
        discount_amount=purchase.discount_amount,
        currency=purchase.currency,
        status=purchase.status,
        coupon_code_used=purchase.coupon_code_used,
        completed_at=purchase.completed_at,
    )
