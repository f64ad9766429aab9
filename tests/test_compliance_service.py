"""
TaxDesk NG - Compliance Service Tests

Scores, alerts and obligation lines for the compliance dashboard.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from taxdesk.models.tax import TaxType
from taxdesk.models.wht import WHTTransactionType
from taxdesk.services.compliance_service import (
    AlertSeverity,
    ComplianceAlertType,
    ComplianceRating,
    ComplianceService,
    days_until,
    rate_score,
)
from taxdesk.services.credit_resolver import ComplianceStatus
from taxdesk.services.summary_service import TaxSummaryService
from taxdesk.utils.error_handling import EntityNotFoundException, InvalidPeriodException


def service_at(db_session, registry, when: datetime) -> ComplianceService:
    summaries = TaxSummaryService(db_session, registry, clock=lambda: when)
    return ComplianceService(db_session, summaries)


def alert_types(report):
    return [alert.type for alert in report.alerts]


class TestScoring:
    """Rating thresholds and day counting."""

    def test_rating_boundaries(self):
        assert rate_score(100) == ComplianceRating.COMPLIANT
        assert rate_score(80) == ComplianceRating.COMPLIANT
        assert rate_score(79) == ComplianceRating.AT_RISK
        assert rate_score(60) == ComplianceRating.AT_RISK
        assert rate_score(59) == ComplianceRating.NON_COMPLIANT
        assert rate_score(0) == ComplianceRating.NON_COMPLIANT

    def test_days_until_rounds_up(self):
        deadline = datetime(2026, 4, 21, 23, 59, 59, tzinfo=timezone.utc)

        assert days_until(deadline, datetime(2026, 4, 19, tzinfo=timezone.utc)) == 3
        assert days_until(deadline, datetime(2026, 4, 21, 12, tzinfo=timezone.utc)) == 1
        assert days_until(deadline, datetime(2026, 4, 23, tzinfo=timezone.utc)) == -1


class TestComplianceReport:
    """Whole-entity assessments at the fixed clock (1 March 2027)."""

    @pytest.mark.asyncio
    async def test_clean_company(self, compliance_service, company, add_invoice):
        """Small company with invoices and nothing owed."""
        await add_invoice(company, "500000")

        report = await compliance_service.assess(company.id, 2026, 3)

        assert report.score == 100
        assert report.rating == ComplianceRating.COMPLIANT
        assert report.alerts == []
        assert [line.tax_type for line in report.obligations][-1] == TaxType.CIT
        assert {line.tax_type for line in report.obligations} == {
            TaxType.CIT, TaxType.VAT, TaxType.WHT, TaxType.PAYE,
        }
        deadlines = [line.deadline for line in report.obligations]
        assert deadlines == sorted(deadlines)
        assert report.checked_at == datetime(2027, 3, 1, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_overdue_vat_without_tin(self, compliance_service, sole_business, add_invoice, add_expense):
        """Overdue VAT (25), missing TIN (20) and a high VAT payable (10)."""
        await add_invoice(sole_business, "30000000", vat_amount="2250000")
        await add_expense(sole_business, "3333333.33", vat_amount="250000")

        report = await compliance_service.assess(sole_business.id, 2026, 3)

        assert report.score == 45
        assert report.rating == ComplianceRating.NON_COMPLIANT
        assert alert_types(report) == [
            ComplianceAlertType.TAX_DEADLINE,
            ComplianceAlertType.MISSING_TIN,
            ComplianceAlertType.VAT_MISMATCH,
        ]
        assert report.alerts[0].severity == AlertSeverity.CRITICAL
        assert report.alerts[0].tax_type == TaxType.VAT
        vat_line = next(line for line in report.obligations if line.tax_type == TaxType.VAT)
        assert vat_line.status == ComplianceStatus.OVERDUE
        assert vat_line.pending == Decimal("2000000.00")
        assert vat_line.days_until_deadline < 0

    @pytest.mark.asyncio
    async def test_output_vat_without_input_vat(self, compliance_service, company, add_invoice):
        await add_invoice(company, "1000000", vat_amount="75000")

        report = await compliance_service.assess(company.id, 2026, 3)

        assert report.score == 60
        assert report.rating == ComplianceRating.AT_RISK
        assert [(a.type, a.severity) for a in report.alerts] == [
            (ComplianceAlertType.TAX_DEADLINE, AlertSeverity.CRITICAL),
            (ComplianceAlertType.VAT_MISMATCH, AlertSeverity.MEDIUM),
        ]

    @pytest.mark.asyncio
    async def test_turnover_above_threshold_with_quiet_month(self, compliance_service, company, add_invoice):
        """₦30M turnover for the year but nothing at all in May."""
        await add_invoice(company, "30000000")

        report = await compliance_service.assess(company.id, 2026, 5)

        assert report.score == 65
        assert [(a.type, a.severity) for a in report.alerts] == [
            (ComplianceAlertType.TAX_DEADLINE, AlertSeverity.CRITICAL),
            (ComplianceAlertType.MISSING_INVOICE, AlertSeverity.LOW),
        ]
        assert "registration threshold" in report.alerts[0].message

    @pytest.mark.asyncio
    async def test_overdue_wht(self, compliance_service, wht_service, company):
        await wht_service.record_deduction(
            entity_id=company.id,
            transaction_type=WHTTransactionType.EXPENSE,
            wht_type="professional_services",
            gross_amount=Decimal("1000000"),
            payment_date=date(2026, 5, 10),
            payee_name="Consulting Partners Ltd",
        )

        report = await compliance_service.assess(company.id, 2026, 5)

        assert report.score == 70
        assert alert_types(report) == [
            ComplianceAlertType.WHT_REMITTANCE,
            ComplianceAlertType.MISSING_INVOICE,
        ]

    @pytest.mark.asyncio
    async def test_overdue_paye(self, compliance_service, company, add_payroll):
        await add_payroll(company, "500000")

        report = await compliance_service.assess(company.id, 2026, 3)

        assert report.alerts[0].type == ComplianceAlertType.PAYROLL_ISSUE
        assert report.alerts[0].tax_type == TaxType.PAYE
        assert report.score == 70

    @pytest.mark.asyncio
    async def test_score_floor(self, compliance_service, wht_service, sole_business, add_invoice, add_payroll):
        """Deductions beyond 100 leave the score at zero."""
        await add_invoice(sole_business, "30000000", vat_amount="2250000")
        await add_payroll(sole_business, "500000")
        await wht_service.record_deduction(
            entity_id=sole_business.id,
            transaction_type=WHTTransactionType.EXPENSE,
            wht_type="professional_services",
            gross_amount=Decimal("1000000"),
            payment_date=date(2026, 3, 10),
            payee_name="Consulting Partners Ltd",
        )

        report = await compliance_service.assess(sole_business.id, 2026, 3)

        assert report.score == 0
        assert report.rating == ComplianceRating.NON_COMPLIANT
        assert sum(alert.deduction for alert in report.alerts) > 100
        severities = [alert.severity for alert in report.alerts]
        assert severities[:3] == [AlertSeverity.CRITICAL] * 3

    @pytest.mark.asyncio
    async def test_individual_checks_pit_only(self, compliance_service, individual):
        report = await compliance_service.assess(individual.id, 2026, 3)

        assert [line.tax_type for line in report.obligations] == [TaxType.PIT]
        assert report.obligations[0].period_key == "2026"
        assert report.score == 100

    @pytest.mark.asyncio
    async def test_defaults_to_current_month(self, compliance_service, company):
        report = await compliance_service.assess(company.id)

        assert (report.tax_year, report.month) == (2027, 3)
        assert report.to_dict()["period_key"] == "2027-03"

    @pytest.mark.asyncio
    async def test_past_year_defaults_to_december(self, compliance_service, company):
        report = await compliance_service.assess(company.id, 2026)

        assert report.month == 12


class TestDeadlineWarnings:
    """Pending obligations close to their deadline."""

    @pytest.mark.asyncio
    async def test_three_days_left_is_critical(self, db_session, registry, company, add_invoice, add_expense):
        """March VAT due 21 April; checked on 19 April."""
        await add_invoice(company, "1000000", vat_amount="75000")
        await add_expense(company, "133333.33", vat_amount="10000")
        service = service_at(db_session, registry, datetime(2026, 4, 19, tzinfo=timezone.utc))

        report = await service.assess(company.id, 2026, 3)

        assert len(report.alerts) == 1
        alert = report.alerts[0]
        assert alert.type == ComplianceAlertType.TAX_DEADLINE
        assert alert.severity == AlertSeverity.CRITICAL
        assert "3 day(s)" in alert.message
        assert report.score == 80
        assert report.rating == ComplianceRating.COMPLIANT

    @pytest.mark.asyncio
    async def test_six_days_left_is_high(self, db_session, registry, company, add_invoice, add_expense):
        await add_invoice(company, "1000000", vat_amount="75000")
        await add_expense(company, "133333.33", vat_amount="10000")
        service = service_at(db_session, registry, datetime(2026, 4, 16, tzinfo=timezone.utc))

        report = await service.assess(company.id, 2026, 3)

        assert [(a.severity, a.deduction) for a in report.alerts] == [(AlertSeverity.HIGH, 10)]
        assert report.score == 90

    @pytest.mark.asyncio
    async def test_far_deadline_not_flagged(self, db_session, registry, company, add_invoice, add_expense):
        await add_invoice(company, "1000000", vat_amount="75000")
        await add_expense(company, "133333.33", vat_amount="10000")
        service = service_at(db_session, registry, datetime(2026, 4, 1, tzinfo=timezone.utc))

        report = await service.assess(company.id, 2026, 3)

        assert report.alerts == []
        vat_line = next(line for line in report.obligations if line.tax_type == TaxType.VAT)
        assert vat_line.status == ComplianceStatus.PENDING
        assert vat_line.pending == Decimal("65000.00")


class TestComplianceErrors:
    @pytest.mark.asyncio
    async def test_unknown_entity(self, compliance_service):
        with pytest.raises(EntityNotFoundException):
            await compliance_service.assess(uuid4(), 2026, 3)

    @pytest.mark.asyncio
    async def test_invalid_month(self, compliance_service, company):
        with pytest.raises(InvalidPeriodException):
            await compliance_service.assess(company.id, 2026, 13)

    @pytest.mark.asyncio
    async def test_month_zero_is_not_defaulted(self, compliance_service, company):
        with pytest.raises(InvalidPeriodException):
            await compliance_service.assess(company.id, 2026, 0)
