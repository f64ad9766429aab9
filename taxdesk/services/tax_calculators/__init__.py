"""
TaxDesk NG - Tax Calculators Package

Pure Decimal calculators for the Nigeria Tax Act 2025 regime. Each
calculator is constructed with the rate table for the tax year.

Modules:
- pit_service: progressive PIT with statutory reliefs
- cit_service: CIT by company classification, plus development levy
- vat_service: output-minus-input VAT netting (7.5%)
- wht_service: WHT by payment type, payee type and residency
- paye_service: monthly PAYE with pension, NHF and NHIS
"""

from taxdesk.services.tax_calculators.common import (
    ExemptionReason,
    ensure_amount,
    ensure_valid_rate,
    round_money,
)
from taxdesk.services.tax_calculators.pit_service import PITCalculator, PITComputation, PITReliefs
from taxdesk.services.tax_calculators.cit_service import CITCalculator, CITComputation
from taxdesk.services.tax_calculators.vat_service import (
    VATCalculator,
    VATComputation,
    VATNilReason,
    VATPosition,
)
from taxdesk.services.tax_calculators.wht_service import PayeeType, WHTCalculator, WHTDeduction
from taxdesk.services.tax_calculators.paye_service import PAYECalculator, PayrollCalculation


__all__ = [
    "ExemptionReason",
    "ensure_amount",
    "ensure_valid_rate",
    "round_money",
    # PIT
    "PITCalculator",
    "PITComputation",
    "PITReliefs",
    # CIT
    "CITCalculator",
    "CITComputation",
    # VAT
    "VATCalculator",
    "VATComputation",
    "VATNilReason",
    "VATPosition",
    # WHT
    "PayeeType",
    "WHTCalculator",
    "WHTDeduction",
    # PAYE
    "PAYECalculator",
    "PayrollCalculation",
]
