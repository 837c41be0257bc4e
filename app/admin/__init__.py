"""Merchant admin API under /admin."""
from fastapi import APIRouter

from app.admin.routers import coupons

admin_router = APIRouter(prefix="/admin", tags=["admin"])

admin_router.include_router(coupons.router, prefix="/coupons", tags=["admin-coupons"])
