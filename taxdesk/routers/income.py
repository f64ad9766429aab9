"""
TaxDesk NG - Income Router

API endpoints for personal income entries and PIT relief contributions.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from taxdesk.dependencies import get_income_service
from taxdesk.schemas.income import (
    DeductionsResponse,
    DeductionsUpsert,
    IncomeResponse,
    IncomeUpsert,
)
from taxdesk.services.income_service import IncomeService


router = APIRouter()


@router.put(
    "",
    response_model=IncomeResponse,
    summary="Set income",
    tags=["Income"],
)
async def upsert_income(
    request: IncomeUpsert,
    service: IncomeService = Depends(get_income_service),
):
    """
    Create or replace the income entry for a year, or for one month of it.

    The PIT summary for that year is marked stale.
    """
    record = await service.upsert_income(
        entity_id=request.entity_id,
        tax_year=request.tax_year,
        amount=request.amount,
        month=request.month,
        description=request.description,
    )
    return IncomeResponse.model_validate(record)


@router.get(
    "",
    response_model=List[IncomeResponse],
    summary="List income",
    tags=["Income"],
)
async def list_income(
    entity_id: UUID = Query(...),
    tax_year: int = Query(...),
    service: IncomeService = Depends(get_income_service),
):
    records = await service.list_income(entity_id, tax_year)
    return [IncomeResponse.model_validate(r) for r in records]


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete income",
    tags=["Income"],
)
async def delete_income(
    entity_id: UUID = Query(...),
    tax_year: int = Query(...),
    month: Optional[int] = Query(None),
    service: IncomeService = Depends(get_income_service),
):
    """Delete the income entry for a year (or month)."""
    await service.delete_income(entity_id, tax_year, month)


@router.put(
    "/deductions",
    response_model=DeductionsResponse,
    summary="Set PIT relief contributions",
    tags=["Income"],
)
async def upsert_deductions(
    request: DeductionsUpsert,
    service: IncomeService = Depends(get_income_service),
):
    """
    Set pension, NHF, NHIS, housing loan interest, life insurance and rent
    for a tax year. Fields left out keep their current value.
    """
    amounts = request.model_dump(exclude={"entity_id", "tax_year"}, exclude_none=True)
    deductions = await service.upsert_deductions(request.entity_id, request.tax_year, **amounts)
    return DeductionsResponse.model_validate(deductions)
