"""Inventory snapshot and period report."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from glowstock.core.config import settings
from glowstock.models.material import Material
from glowstock.models.product import Product
from glowstock.models.stock import MovementReason, StockMovement

logger = logging.getLogger(__name__)

TOP_PRODUCED_LIMIT = 5


class InventoryReportService:
    """Read-only views over material and product stock."""

    def __init__(self, db: Session):
        self.db = db

    def snapshot(self) -> List[Dict[str, Any]]:
        materials = self.db.query(Material).order_by(Material.name).all()
        return [
            {
                "id": m.id,
                "name": m.name,
                "unit": m.unit,
                "stock_quantity": m.stock_quantity,
                "unit_price": m.unit_price,
                "low_stock_threshold": m.low_stock_threshold,
                "total_value": (m.stock_quantity or Decimal("0")) * (m.unit_price or Decimal("0")),
                "status": "Low" if m.is_low else "OK",
            }
            for m in materials
        ]

    def _movements(self, date_from: Optional[datetime], date_to: Optional[datetime]):
        query = self.db.query(StockMovement)
        if date_from is not None:
            query = query.filter(StockMovement.ts >= date_from)
        if date_to is not None:
            query = query.filter(StockMovement.ts <= date_to)
        return query

    def report(
        self,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Stock values, low-stock counts, consumption and top production for a period."""
        movements = self._movements(date_from, date_to)

        consumed_rows = movements.with_entities(
            StockMovement.material_id, func.sum(StockMovement.qty_delta)
        ).filter(
            StockMovement.material_id.isnot(None),
            StockMovement.qty_delta < 0,
            StockMovement.reason != MovementReason.PURCHASE.value,
        ).group_by(StockMovement.material_id).all()
        consumption = {material_id: -Decimal(str(total)) for material_id, total in consumed_rows}

        produced_rows = movements.with_entities(
            StockMovement.product_id, func.sum(StockMovement.qty_delta)
        ).filter(
            StockMovement.product_id.isnot(None),
            StockMovement.reason == MovementReason.PRODUCTION.value,
            StockMovement.qty_delta > 0,
        ).group_by(StockMovement.product_id).all()
        production = {product_id: Decimal(str(total)) for product_id, total in produced_rows}

        materials = self.db.query(Material).order_by(Material.name).all()
        material_stocks = []
        for m in materials:
            stock = m.stock_quantity or Decimal("0")
            price = m.unit_price or Decimal("0")
            material_stocks.append({
                "id": m.id,
                "name": m.name,
                "stock_quantity": stock,
                "unit_price": price,
                "total_value": stock * price,
                "consumed": consumption.get(m.id, Decimal("0")),
                "low_stock_threshold": m.low_stock_threshold,
            })

        products = self.db.query(Product).order_by(Product.name).all()
        product_stocks = [
            {
                "id": p.id,
                "name": p.name,
                "stock": p.stock or 0,
                "price": p.price or Decimal("0"),
                "total_value": (p.price or Decimal("0")) * (p.stock or 0),
            }
            for p in products
        ]

        top_produced = sorted(
            (
                {"id": p.id, "name": p.name, "total_produced": production.get(p.id, Decimal("0"))}
                for p in products
            ),
            key=lambda row: row["total_produced"],
            reverse=True,
        )[:TOP_PRODUCED_LIMIT]

        report = {
            "total_materials_value": sum((m["total_value"] for m in material_stocks), Decimal("0")),
            "low_materials": sum(1 for m in materials if m.is_low),
            "low_products": sum(
                1 for p in products if (p.stock or 0) <= settings.low_product_stock_level
            ),
            "total_products_value": sum((p["total_value"] for p in product_stocks), Decimal("0")),
            "material_stocks": material_stocks,
            "product_stocks": product_stocks,
            "top_produced": top_produced,
            "date_from": date_from,
            "date_to": date_to,
        }
        logger.debug(f"Inventory report built: {len(materials)} materials, {len(products)} products")
        return report

    def movements(
        self,
        material_id: Optional[int] = None,
        product_id: Optional[int] = None,
        reason: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ):
        """Stock movement log, newest first."""
        query = self.db.query(StockMovement)
        if material_id is not None:
            query = query.filter(StockMovement.material_id == material_id)
        if product_id is not None:
            query = query.filter(StockMovement.product_id == product_id)
        if reason:
            query = query.filter(StockMovement.reason == reason)
        total = query.count()
        rows = query.order_by(StockMovement.id.desc()).offset(offset).limit(limit).all()
        return rows, total
