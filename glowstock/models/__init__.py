"""SQLAlchemy models."""

from glowstock.models.material import Material
from glowstock.models.product import Product, ProductVariant
from glowstock.models.bom import BomEntry
from glowstock.models.order import Order, OrderItem, OrderStatus
from glowstock.models.packaging import (
    AppliesTo,
    DeductionType,
    OrderMaterialDeduction,
    PackagingRule,
    PackagingRuleTarget,
)
from glowstock.models.stock import MovementReason, StockMovement
from glowstock.models.supplier import Supplier
from glowstock.models.purchase import PurchaseInvoice, PurchaseInvoiceItem

__all__ = [
    "AppliesTo",
    "BomEntry",
    "DeductionType",
    "Material",
    "MovementReason",
    "Order",
    "OrderItem",
    "OrderMaterialDeduction",
    "OrderStatus",
    "PackagingRule",
    "PackagingRuleTarget",
    "Product",
    "ProductVariant",
    "PurchaseInvoice",
    "PurchaseInvoiceItem",
    "StockMovement",
    "Supplier",
]
