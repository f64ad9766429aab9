"""
TaxDesk NG - Income Service

Income entries and relief contributions for PIT. Every change marks the
entity's PIT summary for the year stale.
"""

import logging
import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.models.income import EmploymentDeductions, IncomeRecord
from taxdesk.models.tax import TaxType
from taxdesk.services.aggregators import SourceAggregator
from taxdesk.services.summary_service import TaxSummaryService
from taxdesk.services.tax_period import TaxPeriod
from taxdesk.utils.error_handling import NotFoundException, ValidationException, validate_amount

logger = logging.getLogger(__name__)


DEDUCTION_FIELDS = (
    "pension",
    "nhf",
    "nhis",
    "housing_loan_interest",
    "life_insurance",
    "annual_rent",
)


class IncomeService:
    """Service for income records."""

    def __init__(self, db: AsyncSession, summaries: TaxSummaryService):
        self.db = db
        self.summaries = summaries
        self.aggregator = SourceAggregator(db)

    async def _find(self, entity_id: uuid.UUID, period: TaxPeriod) -> Optional[IncomeRecord]:
        query = (
            select(IncomeRecord)
            .where(IncomeRecord.entity_id == entity_id)
            .where(IncomeRecord.tax_year == period.year)
        )
        if period.month is None:
            query = query.where(IncomeRecord.month.is_(None))
        else:
            query = query.where(IncomeRecord.month == period.month)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def upsert_income(
        self,
        entity_id: uuid.UUID,
        tax_year: int,
        amount,
        month: Optional[int] = None,
        description: Optional[str] = None,
    ) -> IncomeRecord:
        """
        Create or replace the income entry for (entity, year, month).

        Raises:
            InvalidPeriodException: year or month out of range
            InvalidAmountException: negative or non-finite amount
            EntityNotFoundException: unknown entity
        """
        period = TaxPeriod.create(tax_year, month)
        value = validate_amount(amount)
        await self.aggregator.get_entity(entity_id)

        record = await self._find(entity_id, period)
        if record is None:
            record = IncomeRecord(
                entity_id=entity_id,
                tax_year=period.year,
                month=period.month,
                amount=value,
                description=description,
            )
            self.db.add(record)
        else:
            record.amount = value
            record.description = description

        await self.db.flush()
        await self.summaries.invalidate(entity_id, [TaxType.PIT], period.year, commit=False)
        await self.db.commit()
        await self.db.refresh(record)

        logger.info(f"Income for {entity_id} {period.key} set to {value}")
        return record

    async def delete_income(
        self,
        entity_id: uuid.UUID,
        tax_year: int,
        month: Optional[int] = None,
    ) -> None:
        """
        Delete the income entry for (entity, year, month).

        Raises:
            NotFoundException: no entry for that period
        """
        period = TaxPeriod.create(tax_year, month)
        record = await self._find(entity_id, period)
        if record is None:
            raise NotFoundException("Income record", message=f"No income recorded for {period.key}")

        await self.db.delete(record)
        await self.summaries.invalidate(entity_id, [TaxType.PIT], period.year, commit=False)
        await self.db.commit()
        logger.info(f"Income for {entity_id} {period.key} deleted")

    async def list_income(self, entity_id: uuid.UUID, tax_year: int) -> List[IncomeRecord]:
        period = TaxPeriod.create(tax_year)
        result = await self.db.execute(
            select(IncomeRecord)
            .where(IncomeRecord.entity_id == entity_id)
            .where(IncomeRecord.tax_year == period.year)
            .order_by(IncomeRecord.month.nulls_first())
        )
        return list(result.scalars().all())

    async def upsert_deductions(
        self,
        entity_id: uuid.UUID,
        tax_year: int,
        **amounts: Decimal,
    ) -> EmploymentDeductions:
        """
        Set relief contributions for a tax year.

        Only the fields passed are changed.
        """
        period = TaxPeriod.create(tax_year)
        unknown = set(amounts) - set(DEDUCTION_FIELDS)
        if unknown:
            names = sorted(unknown)
            raise ValidationException(
                message=f"Unknown deduction fields: {', '.join(names)}",
                field=names[0],
                details={"unknown": names, "allowed": list(DEDUCTION_FIELDS)},
            )
        values = {name: validate_amount(value, field=name) for name, value in amounts.items()}
        await self.aggregator.get_entity(entity_id)

        deductions = await self.aggregator.get_deductions(entity_id, period.year)
        if deductions is None:
            deductions = EmploymentDeductions(entity_id=entity_id, tax_year=period.year)
            for name in DEDUCTION_FIELDS:
                setattr(deductions, name, Decimal("0"))
            self.db.add(deductions)
        for name, value in values.items():
            setattr(deductions, name, value)

        await self.db.flush()
        await self.summaries.invalidate(entity_id, [TaxType.PIT], period.year, commit=False)
        await self.db.commit()
        await self.db.refresh(deductions)
        return deductions
