"""
TaxDesk NG - Rate and Bracket Tables

Versioned, immutable rate structures for each supported tax year.

Nigeria Tax Act 2025 (effective tax year 2026):

PIT annual bands:
- ₦0 - ₦800,000: 0%
- ₦800,001 - ₦3,000,000: 15%
- ₦3,000,001 - ₦12,000,000: 18%
- ₦12,000,001 - ₦25,000,000: 21%
- ₦25,000,001 - ₦50,000,000: 23%
- Above ₦50,000,000: 25%

CIT:
- Turnover ≤ ₦50,000,000: small company, 0%
- Otherwise: 30% plus a development levy on assessable profit
  (4% in 2026, stepping down to 2% from 2030)

VAT: 7.5% standard rate, ₦25,000,000 registration threshold.

WHT: rate by payment type, payee type and residency.

The registry is built once when the application starts and handed to the
services that need it. Nothing here reads global state.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from taxdesk.models.entity import CompanyClassification
from taxdesk.models.tax import TaxType
from taxdesk.services.tax_period import TaxPeriod, MINIMUM_TAX_YEAR, MAXIMUM_TAX_YEAR
from taxdesk.utils.error_handling import UnsupportedTaxYearException


# ===========================================
# TABLE TYPES
# ===========================================

@dataclass(frozen=True)
class TaxBand:
    """One progressive band. Rates are percentages."""
    lower: Decimal
    upper: Optional[Decimal]
    rate: Decimal

    def taxable_in_band(self, taxable_income: Decimal) -> Decimal:
        """Portion of income that falls inside this band."""
        if taxable_income <= self.lower:
            return Decimal("0")
        if self.upper is None:
            return taxable_income - self.lower
        return max(Decimal("0"), min(taxable_income, self.upper) - self.lower)

    def scaled(self, divisor: int) -> "TaxBand":
        """Band with bounds divided by `divisor` (monthly bands from annual ones)."""
        return TaxBand(
            lower=self.lower / divisor,
            upper=self.upper / divisor if self.upper is not None else None,
            rate=self.rate,
        )


@dataclass(frozen=True)
class PITTable:
    bands: Tuple[TaxBand, ...]
    exemption_threshold: Decimal
    rent_relief_rate: Decimal
    rent_relief_cap: Decimal


@dataclass(frozen=True)
class CITTable:
    small_company_turnover_limit: Decimal
    rates: Mapping[CompanyClassification, Decimal]
    development_levy_rate: Decimal

    def classify(self, turnover: Decimal) -> CompanyClassification:
        """Turnover of zero or at/below the limit is a small company."""
        if turnover <= self.small_company_turnover_limit:
            return CompanyClassification.SMALL
        return CompanyClassification.LARGE


@dataclass(frozen=True)
class VATTable:
    standard_rate: Decimal
    exempt_categories: FrozenSet[str]
    registration_threshold: Decimal

    def is_exempt_category(self, category: Optional[str]) -> bool:
        return bool(category) and category.lower() in self.exempt_categories


@dataclass(frozen=True)
class WHTRateSet:
    """WHT rates for one payment type, keyed by payee type and residency."""
    company_resident: Decimal
    company_non_resident: Decimal
    individual_resident: Decimal
    individual_non_resident: Decimal

    def rate_for(self, payee_is_company: bool, is_resident: bool) -> Decimal:
        if payee_is_company:
            return self.company_resident if is_resident else self.company_non_resident
        return self.individual_resident if is_resident else self.individual_non_resident


@dataclass(frozen=True)
class WHTTable:
    rates: Mapping[str, WHTRateSet]
    service_types: FrozenSet[str]
    small_supplier_threshold: Decimal


@dataclass(frozen=True)
class PAYETable:
    monthly_bands: Tuple[TaxBand, ...]
    employee_pension_rate: Decimal
    employer_pension_rate: Decimal
    nhf_rate: Decimal
    nhf_annual_income_cap: Decimal
    nhis_rate: Decimal
    minimum_tax_rate: Decimal
    minimum_tax_annual_gross_limit: Decimal


@dataclass(frozen=True)
class DeadlineRules:
    """
    Statutory filing/remittance deadlines.

    Annual taxes fall due on (month, day) of the following year; monthly
    taxes on a day of the following month.
    """
    pit_annual: Tuple[int, int] = (3, 31)
    cit_annual: Tuple[int, int] = (6, 30)
    vat_day: int = 21
    wht_day: int = 21
    paye_day: int = 10

    def deadline_for(self, tax_type: TaxType, period: TaxPeriod) -> datetime:
        """End of the due day, UTC."""
        if tax_type == TaxType.PIT:
            due = date(period.year + 1, *self.pit_annual)
        elif tax_type == TaxType.CIT:
            due = date(period.year + 1, *self.cit_annual)
        else:
            day = {
                TaxType.VAT: self.vat_day,
                TaxType.WHT: self.wht_day,
                TaxType.PAYE: self.paye_day,
            }[tax_type]
            # An annual view of a monthly tax falls due with its last month
            year, month = period.following_month()
            due = date(year, month, day)
        return datetime.combine(due, time.max, tzinfo=timezone.utc)


@dataclass(frozen=True)
class TaxTables:
    """Everything a calculator needs for one tax year."""
    year: int
    pit: PITTable
    cit: CITTable
    vat: VATTable
    wht: WHTTable
    paye: PAYETable
    deadlines: DeadlineRules = field(default_factory=DeadlineRules)

    def deadline_for(self, tax_type: TaxType, period: TaxPeriod) -> datetime:
        return self.deadlines.deadline_for(tax_type, period)

    def describe(self) -> Dict:
        """Plain representation for the rate-table endpoint."""
        return {
            "year": self.year,
            "pit": {
                "bands": [
                    {
                        "lower": str(b.lower),
                        "upper": str(b.upper) if b.upper is not None else None,
                        "rate": str(b.rate),
                    }
                    for b in self.pit.bands
                ],
                "exemption_threshold": str(self.pit.exemption_threshold),
                "rent_relief_rate": str(self.pit.rent_relief_rate),
                "rent_relief_cap": str(self.pit.rent_relief_cap),
            },
            "cit": {
                "small_company_turnover_limit": str(self.cit.small_company_turnover_limit),
                "rates": {k.value: str(v) for k, v in self.cit.rates.items()},
                "development_levy_rate": str(self.cit.development_levy_rate),
            },
            "vat": {
                "standard_rate": str(self.vat.standard_rate),
                "exempt_categories": sorted(self.vat.exempt_categories),
                "registration_threshold": str(self.vat.registration_threshold),
            },
            "wht": {
                "rates": {
                    wht_type: {
                        "company_resident": str(r.company_resident),
                        "company_non_resident": str(r.company_non_resident),
                        "individual_resident": str(r.individual_resident),
                        "individual_non_resident": str(r.individual_non_resident),
                    }
                    for wht_type, r in sorted(self.wht.rates.items())
                },
                "small_supplier_threshold": str(self.wht.small_supplier_threshold),
            },
        }


class TaxTableRegistry:
    """
    Lookup of tax tables by year.

    Years before the first supported regime, or past the last year the
    registry was built for, are rejected.
    """

    def __init__(self, tables: Dict[int, TaxTables]):
        if not tables:
            raise ValueError("TaxTableRegistry needs at least one year of tables")
        self._tables = MappingProxyType(dict(tables))
        self.minimum_year = min(tables)
        self.maximum_year = max(tables)

    def for_year(self, year: int) -> TaxTables:
        tables = self._tables.get(year)
        if tables is None:
            raise UnsupportedTaxYearException(year, self.minimum_year)
        return tables

    @property
    def years(self) -> List[int]:
        return sorted(self._tables)


# ===========================================
# NIGERIA TAX ACT 2025 REGIME
# ===========================================

NTA_2025_PIT_BANDS = (
    TaxBand(Decimal("0"), Decimal("800000"), Decimal("0")),
    TaxBand(Decimal("800000"), Decimal("3000000"), Decimal("15")),
    TaxBand(Decimal("3000000"), Decimal("12000000"), Decimal("18")),
    TaxBand(Decimal("12000000"), Decimal("25000000"), Decimal("21")),
    TaxBand(Decimal("25000000"), Decimal("50000000"), Decimal("23")),
    TaxBand(Decimal("50000000"), None, Decimal("25")),
)

# Development levy on assessable profit of non-small companies
DEVELOPMENT_LEVY_SCHEDULE = {
    2026: Decimal("4"),
    2027: Decimal("3.5"),
    2028: Decimal("3"),
    2029: Decimal("2.5"),
}
DEVELOPMENT_LEVY_FLOOR = Decimal("2")

VAT_EXEMPT_CATEGORIES = frozenset({"food", "healthcare", "education", "housing", "transportation"})


def _by_residency(resident: str, non_resident: str) -> WHTRateSet:
    return WHTRateSet(
        company_resident=Decimal(resident),
        company_non_resident=Decimal(non_resident),
        individual_resident=Decimal(resident),
        individual_non_resident=Decimal(non_resident),
    )


NTA_2025_WHT_RATES = {
    "professional_services": _by_residency("5", "10"),
    "technical_services": _by_residency("5", "10"),
    "management_services": _by_residency("5", "10"),
    "commission": _by_residency("5", "10"),
    "other_services": _by_residency("2", "10"),
    "dividends": _by_residency("10", "10"),
    "interest": _by_residency("10", "10"),
    "royalties": _by_residency("10", "10"),
    "rent": _by_residency("10", "10"),
    "construction": _by_residency("2", "5"),
    "directors_fees": _by_residency("15", "20"),
}

WHT_SERVICE_TYPES = frozenset({
    "professional_services",
    "technical_services",
    "management_services",
    "other_services",
    "commission",
    "construction",
})


def build_nta_2025_tables(year: int) -> TaxTables:
    """Tables for a year governed by the Nigeria Tax Act 2025."""
    if year < MINIMUM_TAX_YEAR:
        raise UnsupportedTaxYearException(year, MINIMUM_TAX_YEAR)

    return TaxTables(
        year=year,
        pit=PITTable(
            bands=NTA_2025_PIT_BANDS,
            exemption_threshold=Decimal("800000"),
            rent_relief_rate=Decimal("20"),
            rent_relief_cap=Decimal("500000"),
        ),
        cit=CITTable(
            small_company_turnover_limit=Decimal("50000000"),
            rates=MappingProxyType({
                CompanyClassification.SMALL: Decimal("0"),
                CompanyClassification.MEDIUM: Decimal("30"),
                CompanyClassification.LARGE: Decimal("30"),
            }),
            development_levy_rate=DEVELOPMENT_LEVY_SCHEDULE.get(year, DEVELOPMENT_LEVY_FLOOR),
        ),
        vat=VATTable(
            standard_rate=Decimal("7.5"),
            exempt_categories=VAT_EXEMPT_CATEGORIES,
            registration_threshold=Decimal("25000000"),
        ),
        wht=WHTTable(
            rates=MappingProxyType(dict(NTA_2025_WHT_RATES)),
            service_types=WHT_SERVICE_TYPES,
            small_supplier_threshold=Decimal("25000000"),
        ),
        paye=PAYETable(
            monthly_bands=tuple(band.scaled(12) for band in NTA_2025_PIT_BANDS),
            employee_pension_rate=Decimal("8"),
            employer_pension_rate=Decimal("10"),
            nhf_rate=Decimal("2.5"),
            nhf_annual_income_cap=Decimal("2500000"),
            nhis_rate=Decimal("5"),
            minimum_tax_rate=Decimal("1"),
            minimum_tax_annual_gross_limit=Decimal("300000"),
        ),
    )


def build_default_registry(
    first_year: int = MINIMUM_TAX_YEAR,
    last_year: int = MAXIMUM_TAX_YEAR,
) -> TaxTableRegistry:
    """Build the registry covering `first_year`..`last_year` inclusive."""
    return TaxTableRegistry({
        year: build_nta_2025_tables(year)
        for year in range(first_year, last_year + 1)
    })
