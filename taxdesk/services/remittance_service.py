"""
TaxDesk NG - Remittance Service

Records of tax actually paid to the authority. Creating, changing or
deleting a remittance marks the matching summaries stale.
"""

import logging
import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.models.tax import RemittanceStatus, TaxRemittance, TaxType
from taxdesk.services.aggregators import SourceAggregator
from taxdesk.services.summary_service import ANNUAL_TAX_TYPES, TaxSummaryService
from taxdesk.services.tax_period import TaxPeriod
from taxdesk.utils.error_handling import (
    DuplicateEntryException,
    InvalidPeriodException,
    RemittanceNotFoundException,
    ValidationException,
    validate_amount,
)

logger = logging.getLogger(__name__)


class RemittanceService:
    """Service for tax remittances."""

    def __init__(self, db: AsyncSession, summaries: TaxSummaryService):
        self.db = db
        self.summaries = summaries
        self.aggregator = SourceAggregator(db)

    @staticmethod
    def validate_period(tax_type: TaxType, tax_year: int, month: Optional[int]) -> TaxPeriod:
        """Annual taxes take no month; monthly taxes require one."""
        period = TaxPeriod.create(tax_year, month)
        if tax_type in ANNUAL_TAX_TYPES and month is not None:
            raise InvalidPeriodException(
                f"{tax_type.value.upper()} remittances are annual; omit the month",
                field="month",
                year=tax_year,
                month=month,
            )
        if tax_type not in ANNUAL_TAX_TYPES and month is None:
            raise InvalidPeriodException(
                f"{tax_type.value.upper()} remittances need a month",
                field="month",
                year=tax_year,
            )
        return period

    async def get_remittance(self, remittance_id: uuid.UUID) -> TaxRemittance:
        remittance = await self.db.get(TaxRemittance, remittance_id)
        if remittance is None:
            raise RemittanceNotFoundException(remittance_id)
        return remittance

    async def create_remittance(
        self,
        entity_id: uuid.UUID,
        tax_type: TaxType,
        tax_year: int,
        amount,
        remittance_date: date,
        reference: str,
        month: Optional[int] = None,
        receipt_url: Optional[str] = None,
        status: RemittanceStatus = RemittanceStatus.REMITTED,
    ) -> TaxRemittance:
        """
        Record a remittance.

        Raises:
            InvalidPeriodException: bad year/month for the tax type
            InvalidAmountException: negative or non-finite amount
            ValidationException: blank reference, or date before the tax year
            DuplicateEntryException: reference already used for this tax type
            EntityNotFoundException: unknown entity
        """
        period = self.validate_period(tax_type, tax_year, month)
        value = validate_amount(amount)

        reference = (reference or "").strip()
        if not reference:
            raise ValidationException("Remittance reference is required", field="reference")
        if remittance_date < date(period.year, 1, 1):
            raise ValidationException(
                f"Remittance date {remittance_date} is before the start of tax year {period.year}",
                field="remittance_date",
            )

        await self.aggregator.get_entity(entity_id)

        existing = await self.db.execute(
            select(TaxRemittance.id)
            .where(TaxRemittance.entity_id == entity_id)
            .where(TaxRemittance.tax_type == tax_type)
            .where(TaxRemittance.reference == reference)
        )
        if existing.first() is not None:
            raise DuplicateEntryException("Remittance", "reference", reference)

        remittance = TaxRemittance(
            entity_id=entity_id,
            tax_type=tax_type,
            tax_year=period.year,
            month=period.month,
            amount=value,
            remittance_date=remittance_date,
            reference=reference,
            receipt_url=receipt_url,
            status=status,
        )
        self.db.add(remittance)
        await self.db.flush()
        await self.summaries.invalidate(entity_id, [tax_type], period.year, commit=False)
        await self.db.commit()
        await self.db.refresh(remittance)

        logger.info(
            f"Recorded {tax_type.value.upper()} remittance {reference} of {value} for {entity_id} {period.key}"
        )
        return remittance

    async def list_remittances(
        self,
        entity_id: uuid.UUID,
        tax_type: Optional[TaxType] = None,
        tax_year: Optional[int] = None,
    ) -> List[TaxRemittance]:
        query = select(TaxRemittance).where(TaxRemittance.entity_id == entity_id)
        if tax_type is not None:
            query = query.where(TaxRemittance.tax_type == tax_type)
        if tax_year is not None:
            query = query.where(TaxRemittance.tax_year == tax_year)
        result = await self.db.execute(
            query.order_by(TaxRemittance.remittance_date, TaxRemittance.reference)
        )
        return list(result.scalars().all())

    async def update_remittance(
        self,
        remittance_id: uuid.UUID,
        amount=None,
        status: Optional[RemittanceStatus] = None,
        receipt_url: Optional[str] = None,
    ) -> TaxRemittance:
        remittance = await self.get_remittance(remittance_id)
        if amount is not None:
            remittance.amount = validate_amount(amount)
        if status is not None:
            remittance.status = status
        if receipt_url is not None:
            remittance.receipt_url = receipt_url

        await self.db.flush()
        await self.summaries.invalidate(
            remittance.entity_id, [remittance.tax_type], remittance.tax_year, commit=False
        )
        await self.db.commit()
        await self.db.refresh(remittance)
        return remittance

    async def delete_remittance(self, remittance_id: uuid.UUID) -> None:
        remittance = await self.get_remittance(remittance_id)
        entity_id, tax_type, tax_year = remittance.entity_id, remittance.tax_type, remittance.tax_year

        await self.db.delete(remittance)
        await self.summaries.invalidate(entity_id, [tax_type], tax_year, commit=False)
        await self.db.commit()
        logger.info(f"Deleted {tax_type.value.upper()} remittance {remittance_id}")
