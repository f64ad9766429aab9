"""
TaxDesk NG - Schemas Package

Pydantic schemas for request/response validation.
"""

from taxdesk.schemas.tax import (
    TaxSummaryResponse,
    TaxTablesResponse,
    RemittanceCreate,
    RemittanceUpdate,
    RemittanceResponse,
    WHTDeductionCreate,
    WHTRecordResponse,
)
from taxdesk.schemas.income import (
    IncomeUpsert,
    IncomeResponse,
    DeductionsUpsert,
    DeductionsResponse,
)
