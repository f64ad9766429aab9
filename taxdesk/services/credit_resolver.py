"""
TaxDesk NG - Credit/Offset Resolver

Offsets a pre-credit liability with WHT credits and remittances already
paid, and derives the compliance status against the statutory deadline.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from taxdesk.services.tax_calculators.common import ZERO, ensure_amount, round_money
from taxdesk.utils.error_handling import ComputationInconsistencyException

logger = logging.getLogger(__name__)


class ComplianceStatus(str, Enum):
    COMPLIANT = "compliant"
    PENDING = "pending"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class ResolvedLiability:
    liability_before_credits: Decimal
    credits_available: Decimal
    credits_applied: Decimal
    liability_after_credits: Decimal
    remitted: Decimal
    pending: Decimal
    over_remitted: Decimal
    status: ComplianceStatus
    deadline: datetime


def derive_status(pending: Decimal, deadline: datetime, now: datetime) -> ComplianceStatus:
    """
    Compliant iff nothing is pending; overdue iff something is pending
    after the deadline.

    Raises:
        ComputationInconsistencyException: naive datetimes
    """
    if now.tzinfo is None or deadline.tzinfo is None:
        raise ComputationInconsistencyException(
            "Deadline comparison needs timezone-aware datetimes",
            details={"now": now.isoformat(), "deadline": deadline.isoformat()},
        )
    if pending == 0:
        return ComplianceStatus.COMPLIANT
    if now > deadline:
        return ComplianceStatus.OVERDUE
    return ComplianceStatus.PENDING


def resolve_liability(
    liability_before_credits: Decimal,
    credits: Decimal,
    remitted: Decimal,
    deadline: datetime,
    now: datetime,
) -> ResolvedLiability:
    """
    Apply credits and remittances to a liability.

    - after = max(before - credits, 0)
    - pending = max(after - remitted, 0)
    - compliant iff pending == 0; overdue iff pending > 0 and now > deadline

    Raises:
        ComputationInconsistencyException: an input is negative or not finite
    """
    before = ensure_amount(liability_before_credits, "liability_before_credits")
    credits = ensure_amount(credits, "credits")
    remitted = ensure_amount(remitted, "remitted")

    after = round_money(max(before - credits, ZERO))
    applied = round_money(min(credits, before))
    pending = round_money(max(after - remitted, ZERO))
    over_remitted = round_money(max(remitted - after, ZERO))

    status = derive_status(pending, deadline, now)

    if over_remitted > 0:
        logger.warning(
            f"Remitted {remitted} exceeds liability {after} by {over_remitted}",
            extra={"liability": str(after), "remitted": str(remitted)},
        )

    return ResolvedLiability(
        liability_before_credits=round_money(before),
        credits_available=round_money(credits),
        credits_applied=applied,
        liability_after_credits=after,
        remitted=round_money(remitted),
        pending=pending,
        over_remitted=over_remitted,
        status=status,
        deadline=deadline,
    )
