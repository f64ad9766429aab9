"""
TaxDesk NG - Invoice Models

Sales invoices. Only paid invoices are revenue-recognised.
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import Boolean, Date, ForeignKey, Numeric, String, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taxdesk.models.base import BaseModel, MONEY_PRECISION, MONEY_SCALE


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""
    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class Invoice(BaseModel):
    """Sales invoice issued by an entity."""

    __tablename__ = "invoices"

    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tax_entities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)
    customer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[InvoiceStatus] = mapped_column(
        SQLEnum(InvoiceStatus),
        default=InvoiceStatus.DRAFT,
        nullable=False,
    )

    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )
    vat_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), default=Decimal("0"), nullable=False,
    )
    total: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )

    is_vat_exempt: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    vat_category: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="standard or an exempt category (food, healthcare, ...)",
    )
    wht_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    line_items: Mapped[List["InvoiceLineItem"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class InvoiceLineItem(BaseModel):
    """Single line on an invoice."""

    __tablename__ = "invoice_line_items"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), default=Decimal("1"), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )

    invoice: Mapped["Invoice"] = relationship(back_populates="line_items")
