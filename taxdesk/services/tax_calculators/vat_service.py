"""
TaxDesk NG - VAT Calculator

VAT netting for Nigerian tax compliance.

- Standard rate: 7.5%
- Output VAT: VAT charged on paid, non-exempt invoices
- Input VAT: VAT paid on tax-deductible purchases
- Businesses under the ₦25M registration threshold cannot claim input VAT
  in a month with no output VAT
- Exempt supplies: food, healthcare, education, housing, transportation
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from taxdesk.services.tax_calculators.common import (
    ZERO,
    ensure_amount,
    ensure_valid_rate,
    percent_of,
    round_money,
)
from taxdesk.services.tax_tables import VATTable


class VATPosition(str, Enum):
    PAYABLE = "payable"
    REFUNDABLE = "refundable"
    NIL = "nil"


class VATNilReason(str, Enum):
    """Why net VAT is zero."""
    NO_ACTIVITY = "no_activity"
    BALANCED = "balanced"  # output VAT equals claimable input VAT


@dataclass
class VATComputation:
    output_vat: Decimal
    input_vat: Decimal
    claimable_input_vat: Decimal
    net_vat: Decimal
    payable: Decimal
    refundable: Decimal
    position: VATPosition
    nil_reason: Optional[VATNilReason]
    annual_turnover: Decimal
    below_registration_threshold: bool


def _position(net_vat: Decimal, no_activity: bool):
    if net_vat > 0:
        return VATPosition.PAYABLE, None
    if net_vat < 0:
        return VATPosition.REFUNDABLE, None
    return VATPosition.NIL, VATNilReason.NO_ACTIVITY if no_activity else VATNilReason.BALANCED


class VATCalculator:
    """VAT calculator for the Nigerian standard rate."""

    def __init__(self, table: VATTable):
        self.table = table

    @property
    def rate(self) -> Decimal:
        return ensure_valid_rate(self.table.standard_rate, "VAT")

    def vat_on(self, amount: Decimal, category: Optional[str] = None, is_exempt: bool = False) -> Decimal:
        """
        VAT chargeable on a supply.

        Args:
            amount: Net amount of the supply
            category: VAT category of the supply
            is_exempt: Explicit exemption flag

        Returns:
            VAT amount (0 for exempt supplies)
        """
        if is_exempt or self.table.is_exempt_category(category):
            return Decimal("0.00")
        return round_money(percent_of(ensure_amount(amount, "amount"), self.rate))

    def net_month(
        self,
        output_vat: Decimal,
        input_vat: Decimal,
        annual_turnover: Decimal,
    ) -> VATComputation:
        """
        Net one month's output VAT against input VAT.

        Args:
            output_vat: VAT on paid, non-exempt sales in the month
            input_vat: VAT on deductible purchases in the month
            annual_turnover: Paid and pending invoice subtotals for the year

        Returns:
            VATComputation for the month
        """
        # Netting uses recorded VAT amounts, but a broken rate table still aborts
        ensure_valid_rate(self.table.standard_rate, "VAT")
        output_vat = ensure_amount(output_vat, "output_vat")
        input_vat = ensure_amount(input_vat, "input_vat")
        turnover = ensure_amount(annual_turnover, "annual_turnover")

        below_threshold = turnover < self.table.registration_threshold
        claimable = ZERO if below_threshold and output_vat == 0 else input_vat

        net = round_money(output_vat - claimable)
        position, nil_reason = _position(net, output_vat == 0 and claimable == 0)

        return VATComputation(
            output_vat=round_money(output_vat),
            input_vat=round_money(input_vat),
            claimable_input_vat=round_money(claimable),
            net_vat=net,
            payable=max(net, ZERO),
            refundable=max(-net, ZERO),
            position=position,
            nil_reason=nil_reason,
            annual_turnover=round_money(turnover),
            below_registration_threshold=below_threshold,
        )

    @staticmethod
    def combine(months: List[VATComputation]) -> VATComputation:
        """
        Yearly view: each month is netted on its own, then the monthly
        results are summed. A refund in one month does not reduce the
        amount payable for another.
        """
        if not months:
            raise ValueError("combine() needs at least one month")

        payable = sum((m.payable for m in months), ZERO)
        refundable = sum((m.refundable for m in months), ZERO)
        net = payable - refundable
        if payable > 0:
            position, nil_reason = VATPosition.PAYABLE, None
        elif refundable > 0:
            position, nil_reason = VATPosition.REFUNDABLE, None
        else:
            no_activity = all(m.nil_reason == VATNilReason.NO_ACTIVITY for m in months)
            position, nil_reason = _position(ZERO, no_activity)

        return VATComputation(
            output_vat=sum((m.output_vat for m in months), ZERO),
            input_vat=sum((m.input_vat for m in months), ZERO),
            claimable_input_vat=sum((m.claimable_input_vat for m in months), ZERO),
            net_vat=net,
            payable=payable,
            refundable=refundable,
            position=position,
            nil_reason=nil_reason,
            annual_turnover=months[-1].annual_turnover,
            below_registration_threshold=months[-1].below_registration_threshold,
        )
