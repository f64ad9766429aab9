"""
TaxDesk NG - CIT Calculator

Company Income Tax calculation for Nigerian tax compliance.

CIT Rates (Nigeria Tax Act 2025):
- Turnover ≤ ₦50,000,000: 0% (small company)
- Turnover > ₦50,000,000: 30%

Development Levy on assessable profit of non-small companies is reported
alongside CIT:
- 2026: 4%, 2027: 3.5%, 2028: 3%, 2029: 2.5%, 2030 onwards: 2%
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from taxdesk.models.entity import CompanyClassification
from taxdesk.services.tax_calculators.common import (
    ExemptionReason,
    ZERO,
    ensure_amount,
    ensure_valid_rate,
    percent_of,
    round_money,
)
from taxdesk.services.tax_tables import CITTable


@dataclass
class CITComputation:
    revenue: Decimal
    deductible_expenses: Decimal
    taxable_profit: Decimal
    classification: CompanyClassification
    classification_source: str
    rate: Decimal
    cit: Decimal
    development_levy_rate: Decimal
    development_levy: Decimal
    exemption_reason: Optional[ExemptionReason] = None


class CITCalculator:
    """
    Company Income Tax calculator.

    Turnover is paid-invoice revenue for the year.
    """

    def __init__(self, table: CITTable):
        self.table = table

    def classify(
        self,
        turnover: Decimal,
        declared: Optional[CompanyClassification] = None,
    ) -> CompanyClassification:
        """
        Determine company size.

        A classification declared on the entity wins over the turnover rule.
        """
        if declared is not None:
            return declared
        return self.table.classify(turnover)

    def get_rate(self, classification: CompanyClassification) -> Decimal:
        return ensure_valid_rate(self.table.rates.get(classification), f"CIT ({classification.value})")

    def calculate(
        self,
        revenue: Decimal,
        deductible_expenses: Decimal,
        declared_classification: Optional[CompanyClassification] = None,
    ) -> CITComputation:
        """
        Calculate CIT before WHT credits.

        Args:
            revenue: Paid-invoice subtotals for the year
            deductible_expenses: Tax-deductible expenses for the year
            declared_classification: Size declared on the entity, if any

        Returns:
            CITComputation
        """
        revenue = ensure_amount(revenue, "revenue")
        expenses = ensure_amount(deductible_expenses, "deductible_expenses")

        classification = self.classify(revenue, declared_classification)
        rate = self.get_rate(classification)
        taxable_profit = max(ZERO, revenue - expenses)

        if classification == CompanyClassification.SMALL:
            levy_rate = ZERO
        else:
            levy_rate = ensure_valid_rate(self.table.development_levy_rate, "development levy")

        if revenue <= 0:
            reason = ExemptionReason.NO_INCOME
        elif taxable_profit <= 0:
            reason = ExemptionReason.DEDUCTIONS_ONLY
        elif rate == 0:
            reason = ExemptionReason.THRESHOLD
        else:
            reason = None

        return CITComputation(
            revenue=revenue,
            deductible_expenses=expenses,
            taxable_profit=round_money(taxable_profit),
            classification=classification,
            classification_source="declared" if declared_classification is not None else "turnover",
            rate=rate,
            cit=round_money(percent_of(taxable_profit, rate)),
            development_levy_rate=levy_rate,
            development_levy=round_money(percent_of(taxable_profit, levy_rate)),
            exemption_reason=reason,
        )
