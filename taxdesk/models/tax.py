"""
TaxDesk NG - Tax Models

Remittances paid to the tax authority and the cached tax summaries
derived from source records.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from taxdesk.models.base import BaseModel, MONEY_PRECISION, MONEY_SCALE


class TaxType(str, Enum):
    """Tax instruments tracked by the engine."""
    PIT = "pit"
    CIT = "cit"
    VAT = "vat"
    WHT = "wht"
    PAYE = "paye"


class RemittanceStatus(str, Enum):
    """Remittance status. Only remitted payments count against liability."""
    REMITTED = "remitted"
    PENDING = "pending"


class TaxRemittance(BaseModel):
    """
    Amount actually paid to the tax authority for a period.

    Several remittances may exist per period; their sum is the remitted figure.
    """

    __tablename__ = "tax_remittances"
    __table_args__ = (
        UniqueConstraint("entity_id", "tax_type", "reference", name="uq_tax_remittances_reference"),
    )

    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tax_entities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tax_type: Mapped[TaxType] = mapped_column(SQLEnum(TaxType), nullable=False)
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="1-12 for monthly taxes, NULL for annual",
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )
    remittance_date: Mapped[date] = mapped_column(Date, nullable=False)
    reference: Mapped[str] = mapped_column(String(100), nullable=False)
    receipt_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[RemittanceStatus] = mapped_column(
        SQLEnum(RemittanceStatus),
        default=RemittanceStatus.REMITTED,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<TaxRemittance(id={self.id}, type={self.tax_type}, amount={self.amount})>"


class TaxSummary(BaseModel):
    """
    Cached summary per (entity, tax type, period).

    Headline figures are stored as columns for listing; the full result
    is kept as canonical JSON in `payload`.
    """

    __tablename__ = "tax_summaries"
    __table_args__ = (
        UniqueConstraint("entity_id", "tax_type", "period_key", name="uq_tax_summaries_key"),
    )

    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tax_entities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tax_type: Mapped[TaxType] = mapped_column(SQLEnum(TaxType), nullable=False)
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    period_key: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        comment="YYYY or YYYY-MM",
    )

    liability_before_credits: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )
    credits_applied: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )
    liability_after_credits: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )
    remitted: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )
    pending: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    payload: Mapped[str] = mapped_column(Text, nullable=False)
    is_stale: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    computed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<TaxSummary(entity={self.entity_id}, type={self.tax_type}, period={self.period_key})>"
