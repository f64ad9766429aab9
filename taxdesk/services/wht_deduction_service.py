"""
TaxDesk NG - WHT Deduction Service

Computes a withholding tax deduction and records it.

An EXPENSE deduction (the entity withheld tax from a supplier) adds to the
entity's monthly WHT remittance obligation. An INVOICE deduction (a
customer withheld tax from the entity) becomes a credit against the
entity's CIT or PIT.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.models.tax import TaxType
from taxdesk.models.wht import WHTRecord, WHTTransactionType
from taxdesk.services.aggregators import SourceAggregator
from taxdesk.services.summary_service import TaxSummaryService
from taxdesk.services.tax_calculators import PayeeType, WHTCalculator
from taxdesk.services.tax_period import TaxPeriod
from taxdesk.services.tax_tables import TaxTableRegistry
from taxdesk.utils.error_handling import ValidationException

logger = logging.getLogger(__name__)


class WHTDeductionService:
    """Service for recording WHT deductions."""

    def __init__(self, db: AsyncSession, registry: TaxTableRegistry, summaries: TaxSummaryService):
        self.db = db
        self.registry = registry
        self.summaries = summaries
        self.aggregator = SourceAggregator(db)

    async def record_deduction(
        self,
        entity_id: uuid.UUID,
        transaction_type: WHTTransactionType,
        wht_type: str,
        gross_amount: Decimal,
        payment_date: date,
        payee_name: str,
        payee_tin: Optional[str] = None,
        payee_type: PayeeType = PayeeType.COMPANY,
        is_resident: bool = True,
        supplier_annual_turnover: Optional[Decimal] = None,
        transaction_id: Optional[uuid.UUID] = None,
    ) -> WHTRecord:
        """
        Calculate and store a WHT deduction.

        Raises:
            InvalidPeriodException: payment date before 2026
            ValidationException: unknown WHT type or blank payee
            InvalidRateException: unusable rate in the tables
            EntityNotFoundException: unknown entity
        """
        period = TaxPeriod.create(payment_date.year, payment_date.month)
        if not (payee_name or "").strip():
            raise ValidationException("Payee name is required", field="payee_name")

        tables = self.registry.for_year(period.year)
        await self.aggregator.get_entity(entity_id)

        deduction = WHTCalculator(tables.wht).calculate(
            gross_amount=gross_amount,
            wht_type=wht_type,
            payee_type=payee_type,
            is_resident=is_resident,
            supplier_annual_turnover=supplier_annual_turnover,
        )

        record = WHTRecord(
            entity_id=entity_id,
            transaction_type=transaction_type,
            transaction_id=transaction_id,
            payee_name=payee_name.strip(),
            payee_tin=payee_tin,
            wht_type=wht_type,
            payment_amount=deduction.gross_amount,
            wht_rate=deduction.rate,
            wht_amount=deduction.wht_amount,
            net_amount=deduction.net_amount,
            payment_date=payment_date,
            month=period.month,
            year=period.year,
        )
        self.db.add(record)
        await self.db.flush()

        if transaction_type == WHTTransactionType.EXPENSE:
            affected = [TaxType.WHT]
        else:
            affected = [TaxType.CIT, TaxType.PIT]
        await self.summaries.invalidate(entity_id, affected, period.year, commit=False)
        await self.db.commit()
        await self.db.refresh(record)

        logger.info(
            f"Recorded {transaction_type.value} WHT of {deduction.wht_amount} "
            f"({wht_type} at {deduction.rate}%) for {entity_id} {period.key}"
        )
        return record
