"""
TaxDesk NG - Withholding Tax Record Model
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from taxdesk.models.base import BaseModel, MONEY_PRECISION, MONEY_SCALE


class WHTTransactionType(str, Enum):
    """Which side of the payment the entity was on."""
    INVOICE = "invoice"  # a customer withheld tax from the entity; a credit
    EXPENSE = "expense"  # the entity withheld tax from a supplier; to be remitted


class WHTRecord(BaseModel):
    """A single withholding tax deduction."""

    __tablename__ = "wht_records"

    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tax_entities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    transaction_type: Mapped[WHTTransactionType] = mapped_column(
        SQLEnum(WHTTransactionType),
        nullable=False,
    )
    transaction_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        comment="Invoice or expense the deduction relates to",
    )

    payee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    payee_tin: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    wht_type: Mapped[str] = mapped_column(String(50), nullable=False)
    payment_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )
    wht_rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2),
        nullable=False,
        comment="Percentage",
    )
    wht_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )
    net_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )

    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
