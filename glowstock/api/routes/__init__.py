"""API routes."""

from fastapi import APIRouter

from glowstock.api.routes import (
    bom,
    inventory,
    materials,
    orders,
    packaging_rules,
    production,
    purchase_invoices,
    suppliers,
)

api_router = APIRouter()

api_router.include_router(materials.router, prefix="/materials", tags=["materials"])
api_router.include_router(bom.router, prefix="/bom", tags=["bom"])
api_router.include_router(packaging_rules.router, prefix="/packaging-rules", tags=["packaging"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(production.router, prefix="/production", tags=["production"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory", "stock"])
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
api_router.include_router(purchase_invoices.router, prefix="/purchase-invoices", tags=["suppliers", "stock"])
