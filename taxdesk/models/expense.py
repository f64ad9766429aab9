"""
TaxDesk NG - Expense Model
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from taxdesk.models.base import BaseModel, MONEY_PRECISION, MONEY_SCALE


class ExpenseRecord(BaseModel):
    """
    Business expense.

    Only tax-deductible expenses reduce taxable profit and carry
    claimable input VAT.
    """

    __tablename__ = "expenses"

    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tax_entities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expense_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), nullable=False,
    )
    vat_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), default=Decimal("0"), nullable=False,
        comment="Input VAT paid on this purchase",
    )
    is_tax_deductible: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
