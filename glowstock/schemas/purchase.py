"""Supplier and purchase invoice schemas."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class SupplierBase(BaseModel):
    """Base supplier schema."""

    name: str = Field(min_length=1, max_length=255)
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class SupplierCreate(SupplierBase):
    """Supplier creation schema."""

    pass


class SupplierUpdate(BaseModel):
    """Supplier update schema."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class SupplierResponse(SupplierBase):
    """Supplier response schema."""

    id: int
    invoice_count: int = 0
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_supplier(cls, supplier) -> "SupplierResponse":
        response = cls.model_validate(supplier)
        response.invoice_count = len(supplier.invoices)
        return response


class PurchaseInvoiceItemIn(BaseModel):
    """Invoice line: how much of a material arrived and what it cost in total."""

    material_id: int
    quantity: Decimal = Field(gt=0)
    line_total: Optional[Decimal] = Field(default=None, ge=0)


class PurchaseInvoiceCreate(BaseModel):
    """Purchase invoice creation schema."""

    supplier_id: int
    invoice_no: str = Field(min_length=1, max_length=100)
    invoice_date: Optional[dt.date] = None
    total: Optional[Decimal] = Field(default=None, ge=0)
    extra_expenses: Decimal = Field(default=Decimal("0"), ge=0)
    note: Optional[str] = None
    items: List[PurchaseInvoiceItemIn] = Field(min_length=1)


class PurchaseInvoiceUpdate(BaseModel):
    """Invoice header update. Lines cannot be edited; delete and re-enter instead."""

    invoice_no: Optional[str] = Field(default=None, min_length=1, max_length=100)
    invoice_date: Optional[dt.date] = None
    total: Optional[Decimal] = Field(default=None, ge=0)
    extra_expenses: Optional[Decimal] = Field(default=None, ge=0)
    note: Optional[str] = None


class PurchaseInvoiceItemResponse(BaseModel):
    """Invoice line response schema."""

    id: int
    material_id: int
    quantity: Decimal
    line_total: Optional[Decimal] = None

    model_config = {"from_attributes": True}


class PurchaseInvoiceResponse(BaseModel):
    """Purchase invoice response schema."""

    id: int
    supplier_id: int
    invoice_no: str
    invoice_date: Optional[dt.date] = None
    total: Decimal
    extra_expenses: Decimal
    note: Optional[str] = None
    items: List[PurchaseInvoiceItemResponse] = []
    created_at: dt.datetime

    model_config = {"from_attributes": True}
