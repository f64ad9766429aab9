"""
TaxDesk NG - Tax Router

API endpoints for tax summaries, rate tables, the compliance dashboard,
remittances and withholding tax deductions.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from taxdesk.dependencies import (
    get_compliance_service,
    get_remittance_service,
    get_summary_service,
    get_tax_tables,
    get_wht_deduction_service,
)
from taxdesk.models.tax import TaxType
from taxdesk.schemas.tax import (
    ComplianceReportResponse,
    RemittanceCreate,
    RemittanceResponse,
    RemittanceUpdate,
    TaxSummaryResponse,
    TaxTablesResponse,
    WHTDeductionCreate,
    WHTRecordResponse,
)
from taxdesk.services.compliance_service import ComplianceService
from taxdesk.services.remittance_service import RemittanceService
from taxdesk.services.summary_service import TaxSummaryService
from taxdesk.services.tax_tables import TaxTableRegistry
from taxdesk.services.wht_deduction_service import WHTDeductionService


router = APIRouter()


# ===========================================
# SUMMARY ENDPOINTS
# ===========================================

@router.get(
    "/{tax_type}/summary",
    response_model=TaxSummaryResponse,
    summary="Get tax summary",
    tags=["Tax Summaries"],
)
async def get_tax_summary(
    tax_type: TaxType,
    entity_id: UUID = Query(...),
    tax_year: int = Query(...),
    month: Optional[int] = Query(None, description="1-12 for monthly taxes; omit for the full year"),
    summaries: TaxSummaryService = Depends(get_summary_service),
):
    """
    Get the summary for an entity and period.

    Served from the cache unless it is missing or stale, in which case it
    is computed from source records first.
    """
    outcome = await summaries.evaluate(entity_id, tax_type, tax_year, month)
    return TaxSummaryResponse(**outcome.unwrap().to_dict())


@router.post(
    "/{tax_type}/summary/recalculate",
    response_model=TaxSummaryResponse,
    summary="Recalculate tax summary",
    tags=["Tax Summaries"],
)
async def recalculate_tax_summary(
    tax_type: TaxType,
    entity_id: UUID = Query(...),
    tax_year: int = Query(...),
    month: Optional[int] = Query(None),
    summaries: TaxSummaryService = Depends(get_summary_service),
):
    """Recompute the summary from source records and replace the cached copy."""
    outcome = await summaries.evaluate(entity_id, tax_type, tax_year, month, recalculate=True)
    return TaxSummaryResponse(**outcome.unwrap().to_dict())


@router.get(
    "/tables/{year}",
    response_model=TaxTablesResponse,
    summary="Get tax rate tables",
    tags=["Tax Tables"],
)
async def get_tax_tables_for_year(
    year: int,
    registry: TaxTableRegistry = Depends(get_tax_tables),
):
    """
    Get the rates in force for a tax year.

    Includes PIT bands, CIT classification rates with the development
    levy, the VAT rate and exempt categories, and the WHT rate schedule.
    """
    return TaxTablesResponse(**registry.for_year(year).describe())


# ===========================================
# COMPLIANCE ENDPOINTS
# ===========================================

@router.get(
    "/compliance",
    response_model=ComplianceReportResponse,
    summary="Get compliance dashboard",
    tags=["Compliance"],
)
async def get_compliance(
    entity_id: UUID = Query(...),
    tax_year: Optional[int] = Query(None, description="Defaults to the current year"),
    month: Optional[int] = Query(None, description="1-12; defaults to the current month"),
    service: ComplianceService = Depends(get_compliance_service),
):
    """
    Score an entity's compliance for a month.

    Covers every tax that applies to the entity, with alerts for overdue
    and imminent deadlines, VAT record gaps, a missing TIN and months
    without invoices.
    """
    report = await service.assess(entity_id, tax_year, month)
    return ComplianceReportResponse(**report.to_dict())


# ===========================================
# REMITTANCE ENDPOINTS
# ===========================================

@router.post(
    "/remittances",
    response_model=RemittanceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record tax remittance",
    tags=["Remittances"],
)
async def create_remittance(
    request: RemittanceCreate,
    service: RemittanceService = Depends(get_remittance_service),
):
    """
    Record a payment made to the tax authority.

    PIT and CIT remittances are annual and take no month; VAT, WHT and
    PAYE remittances must name the month they settle.
    """
    remittance = await service.create_remittance(
        entity_id=request.entity_id,
        tax_type=request.tax_type,
        tax_year=request.tax_year,
        month=request.month,
        amount=request.amount,
        remittance_date=request.remittance_date,
        reference=request.reference,
        receipt_url=request.receipt_url,
        status=request.status,
    )
    return RemittanceResponse.model_validate(remittance)


@router.get(
    "/remittances",
    response_model=List[RemittanceResponse],
    summary="List tax remittances",
    tags=["Remittances"],
)
async def list_remittances(
    entity_id: UUID = Query(...),
    tax_type: Optional[TaxType] = Query(None),
    tax_year: Optional[int] = Query(None),
    service: RemittanceService = Depends(get_remittance_service),
):
    """List remittances for an entity, optionally filtered by tax type and year."""
    remittances = await service.list_remittances(entity_id, tax_type, tax_year)
    return [RemittanceResponse.model_validate(r) for r in remittances]


@router.get(
    "/remittances/{remittance_id}",
    response_model=RemittanceResponse,
    summary="Get tax remittance",
    tags=["Remittances"],
)
async def get_remittance(
    remittance_id: UUID,
    service: RemittanceService = Depends(get_remittance_service),
):
    remittance = await service.get_remittance(remittance_id)
    return RemittanceResponse.model_validate(remittance)


@router.patch(
    "/remittances/{remittance_id}",
    response_model=RemittanceResponse,
    summary="Update tax remittance",
    tags=["Remittances"],
)
async def update_remittance(
    remittance_id: UUID,
    request: RemittanceUpdate,
    service: RemittanceService = Depends(get_remittance_service),
):
    """Change the amount, status or receipt of a remittance."""
    remittance = await service.update_remittance(
        remittance_id,
        amount=request.amount,
        status=request.status,
        receipt_url=request.receipt_url,
    )
    return RemittanceResponse.model_validate(remittance)


@router.delete(
    "/remittances/{remittance_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete tax remittance",
    tags=["Remittances"],
)
async def delete_remittance(
    remittance_id: UUID,
    service: RemittanceService = Depends(get_remittance_service),
):
    """Delete a remittance. The affected summaries are recomputed on next read."""
    await service.delete_remittance(remittance_id)


# ===========================================
# WHT DEDUCTION ENDPOINTS
# ===========================================

@router.post(
    "/wht/deductions",
    response_model=WHTRecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record WHT deduction",
    tags=["Withholding Tax"],
)
async def record_wht_deduction(
    request: WHTDeductionCreate,
    service: WHTDeductionService = Depends(get_wht_deduction_service),
):
    """
    Compute and record a withholding tax deduction.

    - expense: tax the entity withheld from a supplier, owed to FIRS monthly
    - invoice: tax a customer withheld from the entity, credited against CIT/PIT
    """
    record = await service.record_deduction(
        entity_id=request.entity_id,
        transaction_type=request.transaction_type,
        wht_type=request.wht_type,
        gross_amount=request.gross_amount,
        payment_date=request.payment_date,
        payee_name=request.payee_name,
        payee_tin=request.payee_tin,
        payee_type=request.payee_type,
        is_resident=request.is_resident,
        supplier_annual_turnover=request.supplier_annual_turnover,
        transaction_id=request.transaction_id,
    )
    return WHTRecordResponse.model_validate(record)
