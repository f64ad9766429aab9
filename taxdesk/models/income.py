"""
TaxDesk NG - Income Models

Personal income entries and statutory relief contributions feeding PIT.
"""

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import ForeignKey, Integer, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from taxdesk.models.base import BaseModel, MONEY_PRECISION, MONEY_SCALE


class IncomeRecord(BaseModel):
    """
    Income declared by an entity for a tax year, optionally for one month.

    Upserted by (entity, tax_year, month).
    """

    __tablename__ = "income_records"
    __table_args__ = (
        UniqueConstraint("entity_id", "tax_year", "month", name="uq_income_records_entity_period"),
    )

    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tax_entities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="1-12 for monthly entries, NULL for an annual figure",
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<IncomeRecord(entity={self.entity_id}, year={self.tax_year}, month={self.month})>"


class EmploymentDeductions(BaseModel):
    """
    Annual relief contributions claimed against PIT.

    One row per (entity, tax_year).
    """

    __tablename__ = "employment_deductions"
    __table_args__ = (
        UniqueConstraint("entity_id", "tax_year", name="uq_employment_deductions_entity_year"),
    )

    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tax_entities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)

    pension: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), default=Decimal("0"), nullable=False,
    )
    nhf: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), default=Decimal("0"), nullable=False,
        comment="National Housing Fund",
    )
    nhis: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), default=Decimal("0"), nullable=False,
        comment="National Health Insurance Scheme",
    )
    housing_loan_interest: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), default=Decimal("0"), nullable=False,
    )
    life_insurance: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), default=Decimal("0"), nullable=False,
    )
    annual_rent: Mapped[Decimal] = mapped_column(
        Numeric(precision=MONEY_PRECISION, scale=MONEY_SCALE), default=Decimal("0"), nullable=False,
        comment="Rent paid; relief is 20% capped at 500,000",
    )
