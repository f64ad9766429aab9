"""
TaxDesk NG - Tax Period

A (year, optional month) pair scoping an aggregation. A missing month
means the whole calendar year.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional, Tuple

from taxdesk.utils.error_handling import InvalidPeriodException


# Nigeria Tax Act 2025 took effect for tax year 2026; earlier years are
# never computed.
MINIMUM_TAX_YEAR = 2026
MAXIMUM_TAX_YEAR = 2100


@dataclass(frozen=True)
class TaxPeriod:
    year: int
    month: Optional[int] = None

    @classmethod
    def create(
        cls,
        year: Any,
        month: Any = None,
        minimum_year: int = MINIMUM_TAX_YEAR,
        maximum_year: int = MAXIMUM_TAX_YEAR,
    ) -> "TaxPeriod":
        """
        Validate and build a period.

        Raises:
            InvalidPeriodException: year outside the supported range or
                month outside 1-12. Values are never clamped.
        """
        if isinstance(year, bool) or not isinstance(year, int):
            raise InvalidPeriodException(f"Tax year must be an integer, got {year!r}", year=year)
        if year < minimum_year:
            raise InvalidPeriodException(
                f"Tax year {year} is not supported. Only {minimum_year} and later can be computed.",
                year=year,
            )
        if year > maximum_year:
            raise InvalidPeriodException(
                f"Tax year {year} is beyond the supported range (up to {maximum_year}).",
                year=year,
            )
        if month is not None:
            if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
                raise InvalidPeriodException(
                    f"Month must be between 1 and 12, got {month!r}",
                    field="month",
                    year=year,
                    month=month,
                )
        return cls(year=year, month=month)

    @property
    def is_annual(self) -> bool:
        return self.month is None

    @property
    def key(self) -> str:
        """Stable cache key: '2026' or '2026-03'."""
        if self.month is None:
            return f"{self.year:04d}"
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def start_date(self) -> date:
        return date(self.year, self.month or 1, 1)

    @property
    def end_date(self) -> date:
        month = self.month or 12
        return date(self.year, month, calendar.monthrange(self.year, month)[1])

    def months(self) -> List[int]:
        """Months covered; all twelve for an annual period."""
        if self.month is None:
            return list(range(1, 13))
        return [self.month]

    def monthly_periods(self) -> List["TaxPeriod"]:
        return [TaxPeriod(self.year, m) for m in self.months()]

    def following_month(self) -> Tuple[int, int]:
        """(year, month) after the last month of this period."""
        last = self.month or 12
        if last == 12:
            return self.year + 1, 1
        return self.year, last + 1

    def __str__(self) -> str:
        return self.key
