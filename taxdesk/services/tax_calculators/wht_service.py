"""
TaxDesk NG - WHT Calculator

Withholding Tax (WHT) calculation for Nigerian tax compliance.

WHT Rates (resident / non-resident payee):
- Professional, technical, management services, commission: 5% / 10%
- Other services: 2% / 10%
- Dividends, interest, royalties, rent: 10%
- Construction: 2% / 5%
- Directors' fees: 15% / 20%

Payments for services to small suppliers (turnover ≤ ₦25,000,000) are
exempt. WHT deducted by a customer is a credit against the payee's
income tax.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from taxdesk.services.tax_calculators.common import (
    ZERO,
    ensure_amount,
    ensure_valid_rate,
    percent_of,
    round_money,
)
from taxdesk.services.tax_tables import WHTTable
from taxdesk.utils.error_handling import ValidationException


class PayeeType(str, Enum):
    """Type of payee for WHT calculation."""
    INDIVIDUAL = "individual"
    COMPANY = "company"


@dataclass
class WHTDeduction:
    gross_amount: Decimal
    wht_type: str
    rate: Decimal
    wht_amount: Decimal
    net_amount: Decimal
    is_exempt: bool = False


class WHTCalculator:
    """
    Withholding Tax (WHT) calculator.

    WHT is deducted at source when making payments to vendors/contractors.
    """

    def __init__(self, table: WHTTable):
        self.table = table

    def get_rate(
        self,
        wht_type: str,
        payee_type: PayeeType = PayeeType.COMPANY,
        is_resident: bool = True,
    ) -> Decimal:
        """
        WHT rate for a payment.

        Raises:
            ValidationException: unknown payment type
            InvalidRateException: the table holds an unusable rate
        """
        rates = self.table.rates.get(wht_type)
        if rates is None:
            raise ValidationException(
                f"Unknown WHT type: {wht_type}",
                field="wht_type",
                details={"allowed": sorted(self.table.rates)},
            )
        rate = rates.rate_for(payee_type == PayeeType.COMPANY, is_resident)
        return ensure_valid_rate(rate, f"WHT ({wht_type})")

    def is_small_supplier_exempt(self, wht_type: str, supplier_annual_turnover: Optional[Decimal]) -> bool:
        if supplier_annual_turnover is None or wht_type not in self.table.service_types:
            return False
        return supplier_annual_turnover <= self.table.small_supplier_threshold

    def calculate(
        self,
        gross_amount: Decimal,
        wht_type: str,
        payee_type: PayeeType = PayeeType.COMPANY,
        is_resident: bool = True,
        supplier_annual_turnover: Optional[Decimal] = None,
    ) -> WHTDeduction:
        """
        Calculate WHT for a payment.

        Args:
            gross_amount: The gross payment amount
            wht_type: Type of payment (key of the WHT rate table)
            payee_type: Whether payee is individual or company
            is_resident: Whether payee is resident in Nigeria
            supplier_annual_turnover: Payee's turnover, when known

        Returns:
            WHTDeduction with deducted and net amounts
        """
        gross = ensure_amount(gross_amount, "gross_amount")
        rate = self.get_rate(wht_type, payee_type, is_resident)

        if self.is_small_supplier_exempt(wht_type, supplier_annual_turnover):
            return WHTDeduction(
                gross_amount=gross,
                wht_type=wht_type,
                rate=ZERO,
                wht_amount=Decimal("0.00"),
                net_amount=round_money(gross),
                is_exempt=True,
            )

        wht_amount = round_money(percent_of(gross, rate))
        return WHTDeduction(
            gross_amount=gross,
            wht_type=wht_type,
            rate=rate,
            wht_amount=wht_amount,
            net_amount=round_money(gross - wht_amount),
        )
