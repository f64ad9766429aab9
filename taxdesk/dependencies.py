"""
TaxDesk NG - FastAPI Dependencies

Shared dependencies for database sessions, tax tables and services.

The tax table registry and the clock live on `app.state`; they are set
once in the application lifespan and handed to services per request.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.database import get_async_session
from taxdesk.services.compliance_service import ComplianceService
from taxdesk.services.income_service import IncomeService
from taxdesk.services.remittance_service import RemittanceService
from taxdesk.services.summary_service import Clock, TaxSummaryService, utc_now
from taxdesk.services.tax_tables import TaxTableRegistry
from taxdesk.services.wht_deduction_service import WHTDeductionService


def get_tax_tables(request: Request) -> TaxTableRegistry:
    """Registry built at startup."""
    return request.app.state.tax_tables


def get_clock(request: Request) -> Clock:
    return getattr(request.app.state, "clock", utc_now)


async def get_summary_service(
    db: AsyncSession = Depends(get_async_session),
    registry: TaxTableRegistry = Depends(get_tax_tables),
    clock: Clock = Depends(get_clock),
) -> TaxSummaryService:
    return TaxSummaryService(db, registry, clock)


async def get_remittance_service(
    db: AsyncSession = Depends(get_async_session),
    summaries: TaxSummaryService = Depends(get_summary_service),
) -> RemittanceService:
    return RemittanceService(db, summaries)


async def get_income_service(
    db: AsyncSession = Depends(get_async_session),
    summaries: TaxSummaryService = Depends(get_summary_service),
) -> IncomeService:
    return IncomeService(db, summaries)


async def get_wht_deduction_service(
    db: AsyncSession = Depends(get_async_session),
    registry: TaxTableRegistry = Depends(get_tax_tables),
    summaries: TaxSummaryService = Depends(get_summary_service),
) -> WHTDeductionService:
    return WHTDeductionService(db, registry, summaries)


async def get_compliance_service(
    db: AsyncSession = Depends(get_async_session),
    summaries: TaxSummaryService = Depends(get_summary_service),
) -> ComplianceService:
    return ComplianceService(db, summaries)
