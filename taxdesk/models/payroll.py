"""
TaxDesk NG - Payroll Entry Model
"""

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from taxdesk.models.base import BaseModel, MONEY_PRECISION, MONEY_SCALE


class PayrollEntry(BaseModel):
    """Monthly salary line for one employee of an employer entity."""

    __tablename__ = "payroll_entries"

    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tax_entities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)

    gross_salary: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE),
        nullable=False,
        comment="Monthly gross",
    )
    has_pension: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    has_nhf: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    has_nhis: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
