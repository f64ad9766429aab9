"""
TaxDesk NG - Income Schemas
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class IncomeUpsert(BaseModel):
    """Schema for creating or replacing an income entry."""
    entity_id: UUID
    tax_year: int
    month: Optional[int] = None
    amount: Decimal
    description: Optional[str] = Field(None, max_length=255)


class IncomeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    entity_id: UUID
    tax_year: int
    month: Optional[int] = None
    amount: Decimal
    description: Optional[str] = None


class DeductionsUpsert(BaseModel):
    """Relief contributions for a tax year. Omitted fields are unchanged."""
    entity_id: UUID
    tax_year: int
    pension: Optional[Decimal] = None
    nhf: Optional[Decimal] = None
    nhis: Optional[Decimal] = None
    housing_loan_interest: Optional[Decimal] = None
    life_insurance: Optional[Decimal] = None
    annual_rent: Optional[Decimal] = None


class DeductionsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    entity_id: UUID
    tax_year: int
    pension: Decimal
    nhf: Decimal
    nhis: Decimal
    housing_loan_interest: Decimal
    life_insurance: Decimal
    annual_rent: Decimal
