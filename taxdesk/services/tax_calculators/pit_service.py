"""
TaxDesk NG - PIT Calculator

Personal Income Tax for individuals and sole-proprietor businesses.

Reliefs (Nigeria Tax Act 2025):
- Pension, NHF and NHIS contributions
- Interest on a loan for an owner-occupied house
- Life insurance premiums
- Rent relief: 20% of annual rent paid, capped at ₦500,000

The Consolidated Relief Allowance no longer applies from 2026.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from taxdesk.services.tax_calculators.common import (
    ExemptionReason,
    ZERO,
    apply_bands,
    ensure_amount,
    ensure_valid_rate,
    percent_of,
    round_money,
)
from taxdesk.services.tax_tables import PITTable


@dataclass
class PITReliefs:
    """Annual statutory relief claims."""
    pension: Decimal = ZERO
    nhf: Decimal = ZERO
    nhis: Decimal = ZERO
    housing_loan_interest: Decimal = ZERO
    life_insurance: Decimal = ZERO
    annual_rent: Decimal = ZERO


@dataclass
class PITComputation:
    gross_income: Decimal
    reliefs: Dict[str, Decimal]
    total_reliefs: Decimal
    allowable_deductions: Decimal
    taxable_income: Decimal
    tax: Decimal
    exemption_reason: Optional[ExemptionReason] = None
    band_breakdown: List[dict] = field(default_factory=list)

    @property
    def effective_rate(self) -> Decimal:
        if self.gross_income <= 0:
            return ZERO
        return round_money(self.tax / self.gross_income * 100)


class PITCalculator:
    """
    Progressive PIT over the annual bands in a PITTable.

    The exemption reason is decided before any band is applied.
    """

    def __init__(self, table: PITTable):
        self.table = table

    def rent_relief(self, annual_rent: Decimal) -> Decimal:
        rate = ensure_valid_rate(self.table.rent_relief_rate, "rent relief")
        return min(round_money(percent_of(annual_rent, rate)), self.table.rent_relief_cap)

    def relief_breakdown(self, reliefs: PITReliefs) -> Dict[str, Decimal]:
        return {
            "pension": ensure_amount(reliefs.pension, "pension"),
            "nhf": ensure_amount(reliefs.nhf, "nhf"),
            "nhis": ensure_amount(reliefs.nhis, "nhis"),
            "housing_loan_interest": ensure_amount(reliefs.housing_loan_interest, "housing_loan_interest"),
            "life_insurance": ensure_amount(reliefs.life_insurance, "life_insurance"),
            "rent_relief": self.rent_relief(ensure_amount(reliefs.annual_rent, "annual_rent")),
        }

    def calculate(
        self,
        gross_income: Decimal,
        reliefs: Optional[PITReliefs] = None,
        allowable_deductions: Decimal = ZERO,
    ) -> PITComputation:
        """
        Calculate PIT on annual income.

        Args:
            gross_income: Total income for the year
            reliefs: Statutory relief claims
            allowable_deductions: Deductible business expenses (sole proprietors)

        Returns:
            PITComputation with tax before WHT credits
        """
        gross = ensure_amount(gross_income, "gross_income")
        deductions = ensure_amount(allowable_deductions, "allowable_deductions")
        relief_amounts = self.relief_breakdown(reliefs or PITReliefs())
        total_reliefs = sum(relief_amounts.values(), ZERO)

        taxable = max(ZERO, gross - total_reliefs - deductions)

        computation = PITComputation(
            gross_income=gross,
            reliefs=relief_amounts,
            total_reliefs=total_reliefs,
            allowable_deductions=deductions,
            taxable_income=round_money(taxable),
            tax=ZERO,
        )

        if gross <= 0:
            computation.exemption_reason = ExemptionReason.NO_INCOME
        elif taxable <= 0:
            computation.exemption_reason = ExemptionReason.DEDUCTIONS_ONLY
        elif taxable <= self.table.exemption_threshold:
            computation.exemption_reason = ExemptionReason.THRESHOLD

        if computation.exemption_reason is not None:
            return computation

        tax, breakdown = apply_bands(taxable, self.table.bands, "PIT band")
        computation.tax = round_money(tax)
        computation.band_breakdown = breakdown
        return computation
