"""
TaxDesk NG - Compliance Service

Compliance dashboard for one entity and month.

The score starts at 100 and each finding deducts from it. Findings come
from the entity profile, from the cached tax summaries of every tax that
applies to the entity, and from the month's invoices. The score is an
internal health indicator; it is not a status issued by the tax authority.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.models.entity import EntityType, TaxEntity
from taxdesk.models.tax import TaxType
from taxdesk.services.aggregators import SourceAggregator
from taxdesk.services.credit_resolver import ComplianceStatus
from taxdesk.services.summary_service import (
    ANNUAL_TAX_TYPES,
    APPLICABLE_ENTITY_TYPES,
    TaxSummaryResult,
    TaxSummaryService,
)
from taxdesk.services.tax_period import TaxPeriod

logger = logging.getLogger(__name__)


class ComplianceRating(str, Enum):
    """Overall rating derived from the score."""
    COMPLIANT = "compliant"
    AT_RISK = "at_risk"
    NON_COMPLIANT = "non_compliant"


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


SEVERITY_ORDER = {
    AlertSeverity.CRITICAL: 0,
    AlertSeverity.HIGH: 1,
    AlertSeverity.MEDIUM: 2,
    AlertSeverity.LOW: 3,
}


class ComplianceAlertType(str, Enum):
    MISSING_TIN = "missing_tin"
    MISSING_INVOICE = "missing_invoice"
    VAT_MISMATCH = "vat_mismatch"
    PAYROLL_ISSUE = "payroll_issue"
    WHT_REMITTANCE = "wht_remittance"
    TAX_DEADLINE = "tax_deadline"


# Alert type for a late or due obligation of each tax
DEADLINE_ALERT_TYPES = {
    TaxType.WHT: ComplianceAlertType.WHT_REMITTANCE,
    TaxType.PAYE: ComplianceAlertType.PAYROLL_ISSUE,
}


@dataclass
class ComplianceAlert:
    type: ComplianceAlertType
    severity: AlertSeverity
    message: str
    action_required: str
    deduction: int
    tax_type: Optional[TaxType] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "action_required": self.action_required,
            "deduction": self.deduction,
            "tax_type": self.tax_type.value if self.tax_type else None,
        }


@dataclass
class ObligationLine:
    """One tax obligation as it stands at the time of the check."""
    tax_type: TaxType
    period_key: str
    status: ComplianceStatus
    pending: Decimal
    deadline: datetime
    days_until_deadline: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tax_type": self.tax_type.value,
            "period_key": self.period_key,
            "status": self.status.value,
            "pending": str(self.pending),
            "deadline": self.deadline.isoformat(),
            "days_until_deadline": self.days_until_deadline,
        }


@dataclass
class ComplianceReport:
    entity_id: uuid.UUID
    entity_type: EntityType
    tax_year: int
    month: int
    score: int
    rating: ComplianceRating
    alerts: List[ComplianceAlert] = field(default_factory=list)
    obligations: List[ObligationLine] = field(default_factory=list)
    checked_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": str(self.entity_id),
            "entity_type": self.entity_type.value,
            "tax_year": self.tax_year,
            "month": self.month,
            "period_key": TaxPeriod(self.tax_year, self.month).key,
            "score": self.score,
            "rating": self.rating.value,
            "alerts": [alert.to_dict() for alert in self.alerts],
            "obligations": [line.to_dict() for line in self.obligations],
            "checked_at": self.checked_at.isoformat() if self.checked_at else None,
        }


def days_until(deadline: datetime, now: datetime) -> int:
    """Whole days left, rounded up. Zero or less once the deadline has passed."""
    return math.ceil((deadline - now) / timedelta(days=1))


def rate_score(score: int) -> ComplianceRating:
    if score >= ComplianceService.SCORE_COMPLIANT:
        return ComplianceRating.COMPLIANT
    if score >= ComplianceService.SCORE_AT_RISK:
        return ComplianceRating.AT_RISK
    return ComplianceRating.NON_COMPLIANT


class ComplianceService:
    """
    Service for the compliance dashboard.

    Features:
    - Score from 0 to 100 with a compliant / at-risk / non-compliant rating
    - Alerts for overdue and imminent obligations, ordered by severity
    - VAT record checks against the month's summary
    - Profile and invoicing checks
    """

    SCORE_COMPLIANT = 80
    SCORE_AT_RISK = 60

    # Days before a deadline at which a pending obligation is flagged
    DEADLINE_WARNING_DAYS = 7
    DEADLINE_CRITICAL_DAYS = 3

    # Net VAT above this is flagged for review
    HIGH_VAT_PAYABLE = Decimal("100000")

    DEDUCTIONS = {
        "missing_tin": 20,
        "missing_invoice": 5,
        "no_input_vat": 15,
        "high_vat_payable": 10,
        "vat_not_charged": 30,
        "overdue": 25,
        "deadline_critical": 20,
        "deadline_warning": 10,
    }

    def __init__(self, db: AsyncSession, summaries: TaxSummaryService):
        self.db = db
        self.summaries = summaries
        self.aggregator = SourceAggregator(db)

    async def assess(
        self,
        entity_id: uuid.UUID,
        tax_year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> ComplianceReport:
        """
        Score an entity's compliance for a month.

        Year defaults to the current year; month to the current month, or
        December for any other year. Annual taxes are taken from the
        summary of the whole tax year; monthly taxes from the summary of
        the month.

        Raises:
            EntityNotFoundException: unknown entity
            InvalidPeriodException: year outside the supported range or month not 1-12
        """
        now = self.summaries.clock()
        if tax_year is None:
            tax_year = now.year
        if month is None:
            # Any other year is checked as at its last month
            month = now.month if tax_year == now.year else 12
        period = TaxPeriod.create(tax_year, month)

        entity = await self.aggregator.get_entity(entity_id)
        alerts: List[ComplianceAlert] = []
        obligations: List[ObligationLine] = []

        if not (entity.tin or "").strip():
            alerts.append(ComplianceAlert(
                type=ComplianceAlertType.MISSING_TIN,
                severity=AlertSeverity.HIGH,
                message="Tax Identification Number (TIN) is missing",
                action_required="Add the TIN to the entity profile. It is required on every tax filing.",
                deduction=self.DEDUCTIONS["missing_tin"],
            ))

        for tax_type in TaxType:
            if entity.entity_type not in APPLICABLE_ENTITY_TYPES[tax_type]:
                continue
            summary_month = None if tax_type in ANNUAL_TAX_TYPES else period.month
            summary = await self.summaries.get(entity.id, tax_type, period.year, summary_month)
            line = ObligationLine(
                tax_type=tax_type,
                period_key=summary.period_key,
                status=summary.status,
                pending=summary.pending,
                deadline=summary.deadline,
                days_until_deadline=days_until(summary.deadline, now),
            )
            obligations.append(line)
            alerts.extend(self._deadline_alerts(line))
            if tax_type == TaxType.VAT:
                alerts.extend(self._vat_alerts(summary))

        if entity.entity_type != EntityType.INDIVIDUAL:
            alerts.extend(await self._invoice_alerts(entity, period))

        score = max(0, 100 - sum(alert.deduction for alert in alerts))
        report = ComplianceReport(
            entity_id=entity.id,
            entity_type=entity.entity_type,
            tax_year=period.year,
            month=period.month,
            score=score,
            rating=rate_score(score),
            alerts=sorted(alerts, key=lambda alert: SEVERITY_ORDER[alert.severity]),
            obligations=sorted(obligations, key=lambda line: (line.deadline, line.tax_type.value)),
            checked_at=now,
        )
        logger.info(
            f"Compliance for {entity.id} {period.key}: score {score} ({report.rating.value}), "
            f"{len(alerts)} alerts"
        )
        return report

    # ===========================================
    # CHECKS
    # ===========================================

    def _deadline_alerts(self, line: ObligationLine) -> List[ComplianceAlert]:
        alert_type = DEADLINE_ALERT_TYPES.get(line.tax_type, ComplianceAlertType.TAX_DEADLINE)
        name = line.tax_type.value.upper()

        if line.status == ComplianceStatus.OVERDUE:
            return [ComplianceAlert(
                type=alert_type,
                severity=AlertSeverity.CRITICAL,
                message=f"{name} for {line.period_key} is overdue with ₦{line.pending:,} pending",
                action_required=f"Remit the outstanding {name} and record the remittance to limit penalties.",
                deduction=self.DEDUCTIONS["overdue"],
                tax_type=line.tax_type,
            )]

        if line.status != ComplianceStatus.PENDING or line.days_until_deadline > self.DEADLINE_WARNING_DAYS:
            return []

        critical = line.days_until_deadline <= self.DEADLINE_CRITICAL_DAYS
        return [ComplianceAlert(
            type=alert_type,
            severity=AlertSeverity.CRITICAL if critical else AlertSeverity.HIGH,
            message=f"{name} deadline for {line.period_key} in {line.days_until_deadline} day(s)",
            action_required=f"Remit ₦{line.pending:,} of {name} by {line.deadline.date().isoformat()}.",
            deduction=self.DEDUCTIONS["deadline_critical" if critical else "deadline_warning"],
            tax_type=line.tax_type,
        )]

    def _vat_alerts(self, summary: TaxSummaryResult) -> List[ComplianceAlert]:
        details = summary.details
        alerts = []

        if details["nil_reason"] == "no_activity":
            if not details["below_registration_threshold"]:
                alerts.append(ComplianceAlert(
                    type=ComplianceAlertType.TAX_DEADLINE,
                    severity=AlertSeverity.CRITICAL,
                    message=(
                        f"Turnover of ₦{Decimal(details['annual_turnover']):,} is above the VAT "
                        f"registration threshold but no VAT is recorded for {summary.period_key}"
                    ),
                    action_required="Record the month's VAT on sales and purchases, or confirm that no taxable supplies were made.",
                    deduction=self.DEDUCTIONS["vat_not_charged"],
                    tax_type=TaxType.VAT,
                ))
            return alerts

        if Decimal(details["output_vat"]) > 0 and Decimal(details["input_vat"]) == 0:
            alerts.append(ComplianceAlert(
                type=ComplianceAlertType.VAT_MISMATCH,
                severity=AlertSeverity.MEDIUM,
                message="Output VAT recorded but no input VAT. Check that purchase VAT is being tracked.",
                action_required="Record purchase invoices with their VAT so input VAT reduces the amount payable.",
                deduction=self.DEDUCTIONS["no_input_vat"],
                tax_type=TaxType.VAT,
            ))

        net_vat = Decimal(details["net_vat"])
        if net_vat > self.HIGH_VAT_PAYABLE:
            alerts.append(ComplianceAlert(
                type=ComplianceAlertType.VAT_MISMATCH,
                severity=AlertSeverity.HIGH,
                message=f"High VAT payable: ₦{net_vat:,}. Review the month's VAT records.",
                action_required="Check that every purchase with VAT has been recorded as an expense.",
                deduction=self.DEDUCTIONS["high_vat_payable"],
                tax_type=TaxType.VAT,
            ))
        return alerts

    async def _invoice_alerts(self, entity: TaxEntity, period: TaxPeriod) -> List[ComplianceAlert]:
        invoices = await self.aggregator.sum_issued_invoices(entity.id, period)
        if invoices.has_data:
            return []
        return [ComplianceAlert(
            type=ComplianceAlertType.MISSING_INVOICE,
            severity=AlertSeverity.LOW,
            message=f"No invoices issued in {period.key}",
            action_required="Record the month's sales invoices; VAT and income tax are computed from them.",
            deduction=self.DEDUCTIONS["missing_invoice"],
        )]
