"""
TaxDesk NG - Source Aggregators

Read-only sums over source records (income, invoices, expenses, WHT
deductions, payroll, remittances) for an entity and tax period.

Every call issues a fresh query; nothing is cached between calls. An
empty result is a zero total, never an error.
"""

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.models.entity import EntityType, TaxEntity
from taxdesk.models.expense import ExpenseRecord
from taxdesk.models.income import EmploymentDeductions, IncomeRecord
from taxdesk.models.invoice import Invoice, InvoiceStatus
from taxdesk.models.payroll import PayrollEntry
from taxdesk.models.tax import RemittanceStatus, TaxRemittance, TaxType
from taxdesk.models.wht import WHTRecord, WHTTransactionType
from taxdesk.services.tax_calculators.common import ZERO, round_money
from taxdesk.services.tax_period import TaxPeriod
from taxdesk.utils.error_handling import EntityNotFoundException


@dataclass(frozen=True)
class Aggregate:
    """A summed amount and the number of rows behind it."""
    amount: Decimal = ZERO
    count: int = 0

    @property
    def has_data(self) -> bool:
        return self.count > 0

    def __add__(self, other: "Aggregate") -> "Aggregate":
        return Aggregate(self.amount + other.amount, self.count + other.count)

    def to_dict(self) -> dict:
        return {"amount": str(self.amount), "count": self.count}


def _as_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return round_money(value)


class SourceAggregator:
    """Sums qualifying source records for the tax engine."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # ENTITIES
    # ===========================================

    async def get_entity(self, entity_id: uuid.UUID) -> TaxEntity:
        """
        Raises:
            EntityNotFoundException: no such entity
        """
        entity = await self.db.get(TaxEntity, entity_id)
        if entity is None:
            raise EntityNotFoundException(entity_id)
        return entity

    async def owned_business_ids(self, owner_id: uuid.UUID) -> List[uuid.UUID]:
        """Sole-proprietor businesses owned by an individual."""
        result = await self.db.execute(
            select(TaxEntity.id)
            .where(TaxEntity.owner_id == owner_id)
            .where(TaxEntity.entity_type == EntityType.BUSINESS)
            .order_by(TaxEntity.id)
        )
        return list(result.scalars().all())

    # ===========================================
    # SUMS
    # ===========================================

    async def _sum(self, column, *conditions) -> Aggregate:
        model_id = column.class_.id
        result = await self.db.execute(
            select(func.coalesce(func.sum(column), 0), func.count(model_id)).where(and_(*conditions))
        )
        amount, count = result.one()
        return Aggregate(amount=_as_decimal(amount), count=int(count or 0))

    async def sum_income(self, entity_id: uuid.UUID, period: TaxPeriod) -> Aggregate:
        """Declared income. Annual periods take every row of the year."""
        conditions = [IncomeRecord.entity_id == entity_id, IncomeRecord.tax_year == period.year]
        if period.month is not None:
            conditions.append(IncomeRecord.month == period.month)
        return await self._sum(IncomeRecord.amount, *conditions)

    async def sum_paid_revenue(self, entity_ids: Sequence[uuid.UUID], period: TaxPeriod) -> Aggregate:
        """Subtotals of paid invoices issued in the period."""
        if not entity_ids:
            return Aggregate()
        return await self._sum(
            Invoice.subtotal,
            Invoice.entity_id.in_(entity_ids),
            Invoice.status == InvoiceStatus.PAID,
            Invoice.issue_date >= period.start_date,
            Invoice.issue_date <= period.end_date,
        )

    async def sum_turnover(self, entity_id: uuid.UUID, year: int) -> Aggregate:
        """Paid and pending invoice subtotals for the year (VAT threshold)."""
        period = TaxPeriod(year)
        return await self._sum(
            Invoice.subtotal,
            Invoice.entity_id == entity_id,
            Invoice.status.in_([InvoiceStatus.PAID, InvoiceStatus.PENDING]),
            Invoice.issue_date >= period.start_date,
            Invoice.issue_date <= period.end_date,
        )

    async def sum_issued_invoices(self, entity_id: uuid.UUID, period: TaxPeriod) -> Aggregate:
        """Every invoice issued in the period except cancelled ones."""
        return await self._sum(
            Invoice.subtotal,
            Invoice.entity_id == entity_id,
            Invoice.status != InvoiceStatus.CANCELLED,
            Invoice.issue_date >= period.start_date,
            Invoice.issue_date <= period.end_date,
        )

    async def sum_deductible_expenses(self, entity_ids: Sequence[uuid.UUID], period: TaxPeriod) -> Aggregate:
        if not entity_ids:
            return Aggregate()
        return await self._sum(
            ExpenseRecord.amount,
            ExpenseRecord.entity_id.in_(entity_ids),
            ExpenseRecord.is_tax_deductible.is_(True),
            ExpenseRecord.expense_date >= period.start_date,
            ExpenseRecord.expense_date <= period.end_date,
        )

    async def sum_output_vat(self, entity_id: uuid.UUID, period: TaxPeriod) -> Aggregate:
        """VAT on paid, non-exempt invoices."""
        return await self._sum(
            Invoice.vat_amount,
            Invoice.entity_id == entity_id,
            Invoice.status == InvoiceStatus.PAID,
            Invoice.is_vat_exempt.is_(False),
            Invoice.issue_date >= period.start_date,
            Invoice.issue_date <= period.end_date,
        )

    async def sum_input_vat(self, entity_id: uuid.UUID, period: TaxPeriod) -> Aggregate:
        """VAT paid on deductible purchases."""
        return await self._sum(
            ExpenseRecord.vat_amount,
            ExpenseRecord.entity_id == entity_id,
            ExpenseRecord.is_tax_deductible.is_(True),
            ExpenseRecord.vat_amount > 0,
            ExpenseRecord.expense_date >= period.start_date,
            ExpenseRecord.expense_date <= period.end_date,
        )

    async def sum_wht(
        self,
        entity_ids: Sequence[uuid.UUID],
        period: TaxPeriod,
        transaction_type: WHTTransactionType,
    ) -> Aggregate:
        """
        WHT deductions of one kind.

        INVOICE rows are tax customers withheld from the entity (credits);
        EXPENSE rows are tax the entity withheld and must remit.
        """
        if not entity_ids:
            return Aggregate()
        conditions = [
            WHTRecord.entity_id.in_(entity_ids),
            WHTRecord.transaction_type == transaction_type,
            WHTRecord.year == period.year,
        ]
        if period.month is not None:
            conditions.append(WHTRecord.month == period.month)
        return await self._sum(WHTRecord.wht_amount, *conditions)

    async def sum_remittances(self, entity_id: uuid.UUID, tax_type: TaxType, period: TaxPeriod) -> Aggregate:
        """Remittances marked remitted. Annual periods include monthly rows."""
        conditions = [
            TaxRemittance.entity_id == entity_id,
            TaxRemittance.tax_type == tax_type,
            TaxRemittance.tax_year == period.year,
            TaxRemittance.status == RemittanceStatus.REMITTED,
        ]
        if period.month is not None:
            conditions.append(TaxRemittance.month == period.month)
        return await self._sum(TaxRemittance.amount, *conditions)

    # ===========================================
    # ROWS
    # ===========================================

    async def get_deductions(self, entity_id: uuid.UUID, year: int) -> Optional[EmploymentDeductions]:
        result = await self.db.execute(
            select(EmploymentDeductions)
            .where(EmploymentDeductions.entity_id == entity_id)
            .where(EmploymentDeductions.tax_year == year)
        )
        return result.scalar_one_or_none()

    async def list_payroll(self, entity_id: uuid.UUID, period: TaxPeriod) -> List[PayrollEntry]:
        query = (
            select(PayrollEntry)
            .where(PayrollEntry.entity_id == entity_id)
            .where(PayrollEntry.year == period.year)
            .order_by(PayrollEntry.month, PayrollEntry.employee_name, PayrollEntry.id)
        )
        if period.month is not None:
            query = query.where(PayrollEntry.month == period.month)
        result = await self.db.execute(query)
        return list(result.scalars().all())
