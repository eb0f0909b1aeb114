"""Admin API: modüler router'lar, /admin altında."""
from fastapi import APIRouter

from app.admin.routers import coupons, purchases

admin_router = APIRouter(prefix="/admin", tags=["admin"])

admin_router.include_router(coupons.router, prefix="/coupons", tags=["admin-coupons"])
admin_router.include_router(purchases.router, prefix="/purchases", tags=["admin-purchases"])
