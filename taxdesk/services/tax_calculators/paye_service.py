"""
TaxDesk NG - PAYE Calculator

PAYE (Pay As You Earn) for employers, computed monthly.

Monthly bands are the annual PIT bands divided by twelve.

Statutory deductions (before PAYE):
- Employee pension: 8% of gross (employer adds 10%, not deducted from pay)
- NHF: 2.5% of gross, on at most ₦2,500,000 of annual income
- NHIS: 5% of gross
- Rent relief, when the employee claims it

Employees earning under ₦300,000 a year with no taxable income pay a
minimum tax of 1% of gross.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from taxdesk.services.tax_calculators.common import (
    ZERO,
    apply_bands,
    ensure_amount,
    ensure_valid_rate,
    percent_of,
    round_money,
)
from taxdesk.services.tax_tables import PAYETable


@dataclass
class PayrollCalculation:
    employee_name: str
    gross_salary: Decimal
    employee_pension: Decimal
    employer_pension: Decimal
    nhf: Decimal
    nhis: Decimal
    rent_relief: Decimal
    taxable_income: Decimal
    paye: Decimal
    net_salary: Decimal
    band_breakdown: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "employee_name": self.employee_name,
            "gross_salary": str(self.gross_salary),
            "employee_pension": str(self.employee_pension),
            "employer_pension": str(self.employer_pension),
            "nhf": str(self.nhf),
            "nhis": str(self.nhis),
            "rent_relief": str(self.rent_relief),
            "taxable_income": str(self.taxable_income),
            "paye": str(self.paye),
            "net_salary": str(self.net_salary),
        }


class PAYECalculator:
    """
    PAYE calculator for Nigerian payroll.

    All figures are monthly.
    """

    def __init__(self, table: PAYETable):
        self.table = table

    def nhf_contribution(self, gross_salary: Decimal) -> Decimal:
        rate = ensure_valid_rate(self.table.nhf_rate, "NHF")
        monthly_cap = self.table.nhf_annual_income_cap / 12
        return round_money(percent_of(min(gross_salary, monthly_cap), rate))

    def tax_on(self, taxable_income: Decimal, gross_salary: Decimal):
        if taxable_income <= 0:
            annual_gross = gross_salary * 12
            if 0 < annual_gross < self.table.minimum_tax_annual_gross_limit:
                rate = ensure_valid_rate(self.table.minimum_tax_rate, "PAYE minimum tax")
                return round_money(percent_of(gross_salary, rate)), []
            return Decimal("0.00"), []
        tax, breakdown = apply_bands(taxable_income, self.table.monthly_bands, "PAYE band")
        return round_money(tax), breakdown

    def calculate(
        self,
        gross_salary: Decimal,
        employee_name: str = "",
        has_pension: bool = True,
        has_nhf: bool = True,
        has_nhis: bool = False,
        monthly_rent_relief: Decimal = ZERO,
    ) -> PayrollCalculation:
        """
        Calculate one employee's monthly PAYE.

        Args:
            gross_salary: Monthly gross salary
            employee_name: Used in breakdowns only
            has_pension: Employee is on a pension scheme
            has_nhf: Employee contributes to NHF
            has_nhis: Employee contributes to NHIS
            monthly_rent_relief: Rent relief claimed for the month

        Returns:
            PayrollCalculation
        """
        gross = ensure_amount(gross_salary, "gross_salary")
        rent_relief = ensure_amount(monthly_rent_relief, "monthly_rent_relief")

        if has_pension:
            employee_pension = round_money(percent_of(
                gross, ensure_valid_rate(self.table.employee_pension_rate, "employee pension")
            ))
            employer_pension = round_money(percent_of(
                gross, ensure_valid_rate(self.table.employer_pension_rate, "employer pension")
            ))
        else:
            employee_pension = employer_pension = Decimal("0.00")

        nhf = self.nhf_contribution(gross) if has_nhf else Decimal("0.00")
        nhis = (
            round_money(percent_of(gross, ensure_valid_rate(self.table.nhis_rate, "NHIS")))
            if has_nhis else Decimal("0.00")
        )

        taxable = round_money(max(ZERO, gross - employee_pension - nhf - nhis - rent_relief))
        paye, breakdown = self.tax_on(taxable, gross)

        return PayrollCalculation(
            employee_name=employee_name,
            gross_salary=round_money(gross),
            employee_pension=employee_pension,
            employer_pension=employer_pension,
            nhf=nhf,
            nhis=nhis,
            rent_relief=round_money(rent_relief),
            taxable_income=taxable,
            paye=paye,
            net_salary=round_money(gross - employee_pension - nhf - nhis - paye),
            band_breakdown=breakdown,
        )
