"""
TaxDesk NG - Tax Schemas

Pydantic schemas for tax summaries, remittances and WHT deductions.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from taxdesk.models.tax import RemittanceStatus, TaxType
from taxdesk.models.wht import WHTTransactionType
from taxdesk.services.tax_calculators import PayeeType


# ===========================================
# SUMMARIES
# ===========================================

class TaxSummaryResponse(BaseModel):
    """Computed tax summary for an entity and period."""
    entity_id: UUID
    entity_type: str
    tax_type: TaxType
    tax_year: int
    month: Optional[int] = None
    period_key: str
    data_status: str
    rate: Optional[Decimal] = None
    classification: Optional[str] = None
    exemption_reason: Optional[str] = None
    liability_before_credits: Decimal
    credits_available: Decimal
    credits_applied: Decimal
    liability_after_credits: Decimal
    remitted: Decimal
    pending: Decimal
    over_remitted: Decimal
    status: str
    deadline: datetime
    aggregates: Dict[str, Any]
    details: Dict[str, Any]


class TaxTablesResponse(BaseModel):
    """Rate tables in force for a tax year."""
    year: int
    pit: Dict[str, Any]
    cit: Dict[str, Any]
    vat: Dict[str, Any]
    wht: Dict[str, Any]


# ===========================================
# REMITTANCES
# ===========================================

class RemittanceCreate(BaseModel):
    """Schema for recording a remittance."""
    entity_id: UUID
    tax_type: TaxType
    tax_year: int
    month: Optional[int] = None
    amount: Decimal
    remittance_date: date
    reference: str = Field(..., max_length=100)
    receipt_url: Optional[str] = Field(None, max_length=500)
    status: RemittanceStatus = RemittanceStatus.REMITTED


class RemittanceUpdate(BaseModel):
    """Schema for changing a remittance."""
    amount: Optional[Decimal] = None
    status: Optional[RemittanceStatus] = None
    receipt_url: Optional[str] = Field(None, max_length=500)


class RemittanceResponse(BaseModel):
    """Schema for remittance response."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    entity_id: UUID
    tax_type: TaxType
    tax_year: int
    month: Optional[int] = None
    amount: Decimal
    remittance_date: date
    reference: str
    receipt_url: Optional[str] = None
    status: RemittanceStatus


# ===========================================
# WHT DEDUCTIONS
# ===========================================

class WHTDeductionCreate(BaseModel):
    """Schema for recording a WHT deduction."""
    entity_id: UUID
    transaction_type: WHTTransactionType
    wht_type: str
    gross_amount: Decimal
    payment_date: date
    payee_name: str = Field(..., max_length=255)
    payee_tin: Optional[str] = Field(None, max_length=20)
    payee_type: PayeeType = PayeeType.COMPANY
    is_resident: bool = True
    supplier_annual_turnover: Optional[Decimal] = None
    transaction_id: Optional[UUID] = None


class WHTRecordResponse(BaseModel):
    """Schema for WHT record response."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    entity_id: UUID
    transaction_type: WHTTransactionType
    payee_name: str
    wht_type: str
    payment_amount: Decimal
    wht_rate: Decimal
    wht_amount: Decimal
    net_amount: Decimal
    payment_date: date
    month: int
    year: int


# ===========================================
# COMPLIANCE
# ===========================================

class ComplianceAlertResponse(BaseModel):
    type: str
    severity: str
    message: str
    action_required: str
    deduction: int
    tax_type: Optional[TaxType] = None


class ComplianceObligationResponse(BaseModel):
    tax_type: TaxType
    period_key: str
    status: str
    pending: Decimal
    deadline: datetime
    days_until_deadline: int


class ComplianceReportResponse(BaseModel):
    """Compliance score, alerts and obligations for an entity and month."""
    entity_id: UUID
    entity_type: str
    tax_year: int
    month: int
    period_key: str
    score: int = Field(..., ge=0, le=100)
    rating: str
    alerts: List[ComplianceAlertResponse]
    obligations: List[ComplianceObligationResponse]
    checked_at: datetime
