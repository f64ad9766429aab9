"""
TaxDesk NG - Remittance and Income Service Tests
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from taxdesk.models.tax import TaxType
from taxdesk.utils.error_handling import (
    DuplicateEntryException,
    EntityNotFoundException,
    InvalidAmountException,
    InvalidPeriodException,
    NotFoundException,
    RemittanceNotFoundException,
    ValidationException,
)


def remittance_args(entity, **overrides):
    args = dict(
        entity_id=entity.id,
        tax_type=TaxType.VAT,
        tax_year=2026,
        month=3,
        amount=Decimal("150000"),
        remittance_date=date(2026, 4, 20),
        reference="VAT-2026-03",
    )
    args.update(overrides)
    return args


class TestRemittanceService:
    """Remittance validation and bookkeeping."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, remittance_service, company):
        created = await remittance_service.create_remittance(**remittance_args(company))

        listed = await remittance_service.list_remittances(company.id, TaxType.VAT, 2026)

        assert [r.id for r in listed] == [created.id]
        assert listed[0].month == 3

    @pytest.mark.asyncio
    async def test_monthly_tax_needs_month(self, remittance_service, company):
        with pytest.raises(InvalidPeriodException):
            await remittance_service.create_remittance(**remittance_args(company, month=None))

    @pytest.mark.asyncio
    async def test_annual_tax_rejects_month(self, remittance_service, company):
        with pytest.raises(InvalidPeriodException):
            await remittance_service.create_remittance(**remittance_args(company, tax_type=TaxType.CIT))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [Decimal("-1"), Decimal("NaN"), "abc", None])
    async def test_rejects_bad_amounts(self, remittance_service, company, amount):
        with pytest.raises(InvalidAmountException):
            await remittance_service.create_remittance(**remittance_args(company, amount=amount))

    @pytest.mark.asyncio
    async def test_rejects_blank_reference(self, remittance_service, company):
        with pytest.raises(ValidationException):
            await remittance_service.create_remittance(**remittance_args(company, reference="   "))

    @pytest.mark.asyncio
    async def test_rejects_date_before_tax_year(self, remittance_service, company):
        with pytest.raises(ValidationException):
            await remittance_service.create_remittance(
                **remittance_args(company, remittance_date=date(2025, 12, 31))
            )

    @pytest.mark.asyncio
    async def test_duplicate_reference(self, remittance_service, company):
        await remittance_service.create_remittance(**remittance_args(company))

        with pytest.raises(DuplicateEntryException):
            await remittance_service.create_remittance(**remittance_args(company, month=4))

    @pytest.mark.asyncio
    async def test_unknown_entity(self, remittance_service, company):
        with pytest.raises(EntityNotFoundException):
            await remittance_service.create_remittance(**remittance_args(company, entity_id=uuid4()))

    @pytest.mark.asyncio
    async def test_update_and_delete(self, remittance_service, company):
        created = await remittance_service.create_remittance(**remittance_args(company))

        updated = await remittance_service.update_remittance(created.id, amount=Decimal("175000"))
        assert updated.amount == Decimal("175000")

        await remittance_service.delete_remittance(created.id)
        with pytest.raises(RemittanceNotFoundException):
            await remittance_service.get_remittance(created.id)


class TestIncomeService:
    """Income entries are upserted by (entity, year, month)."""

    @pytest.mark.asyncio
    async def test_upsert_replaces(self, income_service, individual):
        first = await income_service.upsert_income(individual.id, 2026, Decimal("1000000"))
        second = await income_service.upsert_income(individual.id, 2026, Decimal("1200000"), description="Revised")

        records = await income_service.list_income(individual.id, 2026)

        assert first.id == second.id
        assert len(records) == 1
        assert records[0].amount == Decimal("1200000")

    @pytest.mark.asyncio
    async def test_monthly_entries_are_separate(self, income_service, individual):
        await income_service.upsert_income(individual.id, 2026, Decimal("100000"), month=1)
        await income_service.upsert_income(individual.id, 2026, Decimal("100000"), month=2)

        records = await income_service.list_income(individual.id, 2026)

        assert [r.month for r in records] == [1, 2]

    @pytest.mark.asyncio
    async def test_delete_missing(self, income_service, individual):
        with pytest.raises(NotFoundException):
            await income_service.delete_income(individual.id, 2026)

    @pytest.mark.asyncio
    async def test_rejects_negative_amount(self, income_service, individual):
        with pytest.raises(InvalidAmountException):
            await income_service.upsert_income(individual.id, 2026, Decimal("-5"))

    @pytest.mark.asyncio
    async def test_rejects_unsupported_year(self, income_service, individual):
        with pytest.raises(InvalidPeriodException):
            await income_service.upsert_income(individual.id, 2025, Decimal("5"))

    @pytest.mark.asyncio
    async def test_deductions_partial_update(self, income_service, individual):
        await income_service.upsert_deductions(individual.id, 2026, pension=Decimal("400000"))
        deductions = await income_service.upsert_deductions(individual.id, 2026, nhf=Decimal("125000"))

        assert deductions.pension == Decimal("400000")
        assert deductions.nhf == Decimal("125000")
        assert deductions.annual_rent == Decimal("0")

    @pytest.mark.asyncio
    async def test_deductions_reject_unknown_field(self, income_service, individual):
        with pytest.raises(ValidationException) as exc_info:
            await income_service.upsert_deductions(individual.id, 2026, gym=Decimal("1"))

        assert exc_info.value.field == "gym"
        assert exc_info.value.status_code == 422
        assert exc_info.value.details["unknown"] == ["gym"]
