"""
TaxDesk NG - Tax Table Tests
"""

from datetime import datetime, time, timezone, date
from decimal import Decimal

import pytest

from taxdesk.models.tax import TaxType
from taxdesk.services.tax_period import TaxPeriod
from taxdesk.services.tax_tables import build_default_registry, build_nta_2025_tables
from taxdesk.utils.error_handling import InvalidPeriodException, UnsupportedTaxYearException


def end_of_day(year: int, month: int, day: int) -> datetime:
    return datetime.combine(date(year, month, day), time.max, tzinfo=timezone.utc)


class TestTaxPeriod:
    """Periods are validated, never clamped."""

    def test_annual_and_monthly_keys(self):
        assert TaxPeriod.create(2026).key == "2026"
        assert TaxPeriod.create(2026, 3).key == "2026-03"

    @pytest.mark.parametrize("year", [2025, 1999, "2026", True])
    def test_rejects_bad_years(self, year):
        with pytest.raises(InvalidPeriodException):
            TaxPeriod.create(year)

    @pytest.mark.parametrize("month", [0, 13, -1, "3"])
    def test_rejects_bad_months(self, month):
        with pytest.raises(InvalidPeriodException) as exc_info:
            TaxPeriod.create(2026, month)
        assert exc_info.value.field == "month"

    def test_date_range(self):
        period = TaxPeriod.create(2028, 2)

        assert period.start_date == date(2028, 2, 1)
        assert period.end_date == date(2028, 2, 29)
        assert TaxPeriod.create(2026).end_date == date(2026, 12, 31)

    def test_annual_period_covers_twelve_months(self):
        assert [p.key for p in TaxPeriod.create(2026).monthly_periods()][-1] == "2026-12"
        assert len(TaxPeriod.create(2026).months()) == 12


class TestRegistry:
    """Tables are versioned by year."""

    def test_rejects_year_before_regime(self):
        registry = build_default_registry(2026, 2030)

        with pytest.raises(UnsupportedTaxYearException):
            registry.for_year(2025)

    def test_rejects_year_beyond_registry(self):
        registry = build_default_registry(2026, 2030)

        with pytest.raises(UnsupportedTaxYearException):
            registry.for_year(2031)

    def test_years(self):
        assert build_default_registry(2026, 2028).years == [2026, 2027, 2028]

    def test_development_levy_steps_down(self):
        registry = build_default_registry(2026, 2031)

        assert registry.for_year(2026).cit.development_levy_rate == Decimal("4")
        assert registry.for_year(2027).cit.development_levy_rate == Decimal("3.5")
        assert registry.for_year(2029).cit.development_levy_rate == Decimal("2.5")
        assert registry.for_year(2030).cit.development_levy_rate == Decimal("2")
        assert registry.for_year(2031).cit.development_levy_rate == Decimal("2")

    def test_monthly_paye_bands_are_annual_over_twelve(self):
        tables = build_nta_2025_tables(2026)

        assert tables.paye.monthly_bands[2].lower == Decimal("250000")
        assert tables.paye.monthly_bands[2].upper == Decimal("1000000")

    def test_describe_is_plain_data(self):
        described = build_nta_2025_tables(2026).describe()

        assert described["vat"]["standard_rate"] == "7.5"
        assert described["cit"]["rates"]["small_company"] == "0"
        assert described["wht"]["rates"]["construction"]["company_non_resident"] == "5"
        assert described["pit"]["bands"][-1]["upper"] is None


class TestDeadlines:
    """Statutory deadlines, end of day UTC."""

    def setup_method(self):
        self.tables = build_nta_2025_tables(2026)

    def test_pit_due_march_31(self):
        assert self.tables.deadline_for(TaxType.PIT, TaxPeriod(2026)) == end_of_day(2027, 3, 31)

    def test_cit_due_june_30(self):
        assert self.tables.deadline_for(TaxType.CIT, TaxPeriod(2026)) == end_of_day(2027, 6, 30)

    def test_vat_due_21st_of_next_month(self):
        assert self.tables.deadline_for(TaxType.VAT, TaxPeriod(2026, 3)) == end_of_day(2026, 4, 21)
        assert self.tables.deadline_for(TaxType.VAT, TaxPeriod(2026, 12)) == end_of_day(2027, 1, 21)

    def test_paye_due_10th_of_next_month(self):
        assert self.tables.deadline_for(TaxType.PAYE, TaxPeriod(2026, 3)) == end_of_day(2026, 4, 10)

    def test_annual_view_of_monthly_tax(self):
        """A yearly WHT summary falls due with December's remittance."""
        assert self.tables.deadline_for(TaxType.WHT, TaxPeriod(2026)) == end_of_day(2027, 1, 21)
