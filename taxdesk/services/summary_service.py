"""
TaxDesk NG - Tax Summary Service

Get-or-create cache of tax summaries per (entity, tax type, period).

A summary is derived in four steps: aggregate source records, run the
tax calculator, offset WHT credits and remittances, derive the compliance
status against the statutory deadline. `get` returns the cached result
unless it is missing or stale; `recalculate` always recomputes and
overwrites. Concurrent recalculations are last-write-wins; the result is
a deterministic function of the source records.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.models.entity import EntityType, TaxEntity
from taxdesk.models.tax import TaxSummary, TaxType
from taxdesk.models.wht import WHTTransactionType
from taxdesk.services.aggregators import Aggregate, SourceAggregator
from taxdesk.services.credit_resolver import (
    ComplianceStatus,
    ResolvedLiability,
    derive_status,
    resolve_liability,
)
from taxdesk.services.outcome import Err, Ok, Outcome
from taxdesk.services.tax_calculators import (
    CITCalculator,
    PAYECalculator,
    PITCalculator,
    PITReliefs,
    VATCalculator,
)
from taxdesk.services.tax_calculators.common import ZERO, round_money
from taxdesk.services.tax_period import TaxPeriod
from taxdesk.services.tax_tables import TaxTableRegistry, TaxTables
from taxdesk.utils.error_handling import (
    AppException,
    InvalidPeriodException,
    ValidationException,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DATA_STATUS_CALCULATED = "calculated"
DATA_STATUS_NO_DATA = "no_data"

ANNUAL_TAX_TYPES = frozenset({TaxType.PIT, TaxType.CIT})

# Entity types each tax applies to
APPLICABLE_ENTITY_TYPES = {
    TaxType.PIT: frozenset({EntityType.INDIVIDUAL, EntityType.BUSINESS}),
    TaxType.CIT: frozenset({EntityType.COMPANY}),
    TaxType.VAT: frozenset({EntityType.BUSINESS, EntityType.COMPANY}),
    TaxType.WHT: frozenset({EntityType.BUSINESS, EntityType.COMPANY}),
    TaxType.PAYE: frozenset({EntityType.BUSINESS, EntityType.COMPANY}),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _str(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _dec(value: Optional[str]) -> Optional[Decimal]:
    return None if value is None else Decimal(value)


@dataclass
class TaxSummaryResult:
    """A computed tax summary. Serialises deterministically."""
    entity_id: uuid.UUID
    entity_type: EntityType
    tax_type: TaxType
    tax_year: int
    month: Optional[int]
    data_status: str
    liability_before_credits: Decimal
    credits_available: Decimal
    credits_applied: Decimal
    liability_after_credits: Decimal
    remitted: Decimal
    pending: Decimal
    over_remitted: Decimal
    status: ComplianceStatus
    deadline: datetime
    rate: Optional[Decimal] = None
    classification: Optional[str] = None
    exemption_reason: Optional[str] = None
    aggregates: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def period(self) -> TaxPeriod:
        return TaxPeriod(self.tax_year, self.month)

    @property
    def period_key(self) -> str:
        return self.period.key

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": str(self.entity_id),
            "entity_type": self.entity_type.value,
            "tax_type": self.tax_type.value,
            "tax_year": self.tax_year,
            "month": self.month,
            "period_key": self.period_key,
            "data_status": self.data_status,
            "rate": _str(self.rate),
            "classification": self.classification,
            "exemption_reason": self.exemption_reason,
            "liability_before_credits": str(self.liability_before_credits),
            "credits_available": str(self.credits_available),
            "credits_applied": str(self.credits_applied),
            "liability_after_credits": str(self.liability_after_credits),
            "remitted": str(self.remitted),
            "pending": str(self.pending),
            "over_remitted": str(self.over_remitted),
            "status": self.status.value,
            "deadline": self.deadline.isoformat(),
            "aggregates": self.aggregates,
            "details": self.details,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaxSummaryResult":
        return cls(
            entity_id=uuid.UUID(data["entity_id"]),
            entity_type=EntityType(data["entity_type"]),
            tax_type=TaxType(data["tax_type"]),
            tax_year=data["tax_year"],
            month=data["month"],
            data_status=data["data_status"],
            rate=_dec(data["rate"]),
            classification=data["classification"],
            exemption_reason=data["exemption_reason"],
            liability_before_credits=Decimal(data["liability_before_credits"]),
            credits_available=Decimal(data["credits_available"]),
            credits_applied=Decimal(data["credits_applied"]),
            liability_after_credits=Decimal(data["liability_after_credits"]),
            remitted=Decimal(data["remitted"]),
            pending=Decimal(data["pending"]),
            over_remitted=Decimal(data["over_remitted"]),
            status=ComplianceStatus(data["status"]),
            deadline=datetime.fromisoformat(data["deadline"]),
            aggregates=data["aggregates"],
            details=data["details"],
        )


@dataclass
class _Computed:
    """Calculator output before credits are resolved."""
    liability: Decimal
    credits: Decimal
    remitted: Aggregate
    aggregates: Dict[str, Aggregate]
    rate: Optional[Decimal] = None
    classification: Optional[str] = None
    exemption_reason: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_data(self) -> bool:
        return any(agg.has_data for name, agg in self.aggregates.items() if name != "remitted")


class TaxSummaryService:
    """Service for computing and caching tax summaries."""

    def __init__(self, db: AsyncSession, registry: TaxTableRegistry, clock: Clock = utc_now):
        self.db = db
        self.registry = registry
        self.clock = clock
        self.aggregator = SourceAggregator(db)

    # ===========================================
    # PUBLIC OPERATIONS
    # ===========================================

    async def get(
        self,
        entity_id: uuid.UUID,
        tax_type: TaxType,
        year: int,
        month: Optional[int] = None,
    ) -> TaxSummaryResult:
        """
        Get the summary for a period, computing and storing it when it is
        missing or stale. Never reports "not found" for a valid entity.
        """
        period, tables, entity = await self._prepare(entity_id, tax_type, year, month)

        row = await self._load_row(entity.id, tax_type, period)
        if row is not None and not row.is_stale:
            logger.debug(f"Summary cache hit: {tax_type.value} {entity.id} {period.key}")
            return await self._refresh_status(row, TaxSummaryResult.from_dict(json.loads(row.payload)))

        result = await self._compute(entity, tax_type, period, tables)
        await self._store(result)
        return result

    async def recalculate(
        self,
        entity_id: uuid.UUID,
        tax_type: TaxType,
        year: int,
        month: Optional[int] = None,
    ) -> TaxSummaryResult:
        """Recompute from source records and overwrite the cached summary."""
        period, tables, entity = await self._prepare(entity_id, tax_type, year, month)
        result = await self._compute(entity, tax_type, period, tables)
        await self._store(result)
        return result

    async def evaluate(
        self,
        entity_id: uuid.UUID,
        tax_type: TaxType,
        year: int,
        month: Optional[int] = None,
        recalculate: bool = False,
    ) -> Outcome:
        """`get` or `recalculate`, with failures returned as Err instead of raised."""
        operation = self.recalculate if recalculate else self.get
        try:
            return Ok(await operation(entity_id, tax_type, year, month))
        except AppException as exc:
            log = logger.error if exc.status_code >= 500 else logger.info
            log(
                f"Summary {tax_type.value} for {entity_id} ({year}/{month}) failed: {exc.code.value}",
                extra={"code": exc.code.value, "details": exc.details},
            )
            return Err(exc)

    async def invalidate(
        self,
        entity_id: uuid.UUID,
        tax_types: Optional[Iterable[TaxType]] = None,
        year: Optional[int] = None,
        commit: bool = True,
    ) -> int:
        """
        Mark cached summaries stale so the next `get` recomputes them.

        A sole-proprietor business also marks its owner's PIT summary
        stale, since business records flow into the owner's income.

        Returns:
            Number of summaries marked stale
        """
        entity = await self.aggregator.get_entity(entity_id)
        types = list(tax_types) if tax_types is not None else None

        count = await self._mark_stale(entity.id, types, year)
        if entity.owner_id is not None:
            count += await self._mark_stale(entity.owner_id, [TaxType.PIT], year)

        if commit:
            await self.db.commit()
        if count:
            logger.info(f"Invalidated {count} summaries for entity {entity_id}")
        return count

    # ===========================================
    # PREPARATION AND PERSISTENCE
    # ===========================================

    async def _prepare(
        self,
        entity_id: uuid.UUID,
        tax_type: TaxType,
        year: int,
        month: Optional[int],
    ) -> Tuple[TaxPeriod, TaxTables, TaxEntity]:
        tax_type = TaxType(tax_type)
        period = TaxPeriod.create(year, month)
        if tax_type in ANNUAL_TAX_TYPES and not period.is_annual:
            raise InvalidPeriodException(
                f"{tax_type.value.upper()} is assessed annually; omit the month",
                field="month",
                year=year,
                month=month,
            )
        tables = self.registry.for_year(period.year)
        entity = await self.aggregator.get_entity(entity_id)
        if entity.entity_type not in APPLICABLE_ENTITY_TYPES[tax_type]:
            raise ValidationException(
                f"{tax_type.value.upper()} does not apply to {entity.entity_type.value} entities",
                field="tax_type",
                details={"entity_type": entity.entity_type.value, "tax_type": tax_type.value},
            )
        return period, tables, entity

    async def _load_row(self, entity_id: uuid.UUID, tax_type: TaxType, period: TaxPeriod) -> Optional[TaxSummary]:
        result = await self.db.execute(
            select(TaxSummary)
            .where(TaxSummary.entity_id == entity_id)
            .where(TaxSummary.tax_type == tax_type)
            .where(TaxSummary.period_key == period.key)
            # Bulk invalidation bypasses the identity map
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def _apply(self, row: TaxSummary, result: TaxSummaryResult) -> None:
        row.tax_year = result.tax_year
        row.month = result.month
        row.liability_before_credits = result.liability_before_credits
        row.credits_applied = result.credits_applied
        row.liability_after_credits = result.liability_after_credits
        row.remitted = result.remitted
        row.pending = result.pending
        row.status = result.status.value
        row.deadline = result.deadline
        row.payload = result.to_json()
        row.is_stale = False
        row.computed_at = self.clock()

    async def _store(self, result: TaxSummaryResult) -> None:
        """Upsert by (entity, tax type, period key). Last write wins."""
        row = await self._load_row(result.entity_id, result.tax_type, result.period)
        if row is None:
            row = TaxSummary(
                entity_id=result.entity_id,
                tax_type=result.tax_type,
                period_key=result.period_key,
            )
            self._apply(row, result)
            self.db.add(row)
            try:
                await self.db.commit()
                return
            except IntegrityError:
                # A concurrent request created the row first; overwrite it
                await self.db.rollback()
                row = await self._load_row(result.entity_id, result.tax_type, result.period)
                if row is None:
                    raise

        self._apply(row, result)
        await self.db.commit()

    async def _refresh_status(self, row: TaxSummary, result: TaxSummaryResult) -> TaxSummaryResult:
        """Deadlines pass without any source record changing; status follows the clock."""
        status = derive_status(result.pending, result.deadline, self.clock())
        if status != result.status:
            logger.info(
                f"{result.tax_type.value.upper()} summary for {result.entity_id} {result.period_key} "
                f"moved from {result.status.value} to {status.value}"
            )
            result.status = status
            row.status = status.value
            row.payload = result.to_json()
            await self.db.commit()
        return result

    async def _mark_stale(
        self,
        entity_id: uuid.UUID,
        tax_types: Optional[List[TaxType]],
        year: Optional[int],
    ) -> int:
        statement = (
            update(TaxSummary)
            .where(TaxSummary.entity_id == entity_id)
            .where(TaxSummary.is_stale.is_(False))
            .values(is_stale=True)
            .execution_options(synchronize_session=False)
        )
        if tax_types is not None:
            statement = statement.where(TaxSummary.tax_type.in_(tax_types))
        if year is not None:
            statement = statement.where(TaxSummary.tax_year == year)
        result = await self.db.execute(statement)
        return result.rowcount or 0

    # ===========================================
    # COMPUTATION
    # ===========================================

    async def _compute(
        self,
        entity: TaxEntity,
        tax_type: TaxType,
        period: TaxPeriod,
        tables: TaxTables,
    ) -> TaxSummaryResult:
        compute = {
            TaxType.PIT: self._compute_pit,
            TaxType.CIT: self._compute_cit,
            TaxType.VAT: self._compute_vat,
            TaxType.WHT: self._compute_wht,
            TaxType.PAYE: self._compute_paye,
        }[tax_type]
        computed = await compute(entity, period, tables)

        resolved: ResolvedLiability = resolve_liability(
            liability_before_credits=computed.liability,
            credits=computed.credits,
            remitted=computed.remitted.amount,
            deadline=tables.deadline_for(tax_type, period),
            now=self.clock(),
        )

        aggregates = dict(computed.aggregates)
        aggregates["remitted"] = computed.remitted
        result = TaxSummaryResult(
            entity_id=entity.id,
            entity_type=entity.entity_type,
            tax_type=tax_type,
            tax_year=period.year,
            month=period.month,
            data_status=DATA_STATUS_CALCULATED if computed.has_data else DATA_STATUS_NO_DATA,
            liability_before_credits=resolved.liability_before_credits,
            credits_available=resolved.credits_available,
            credits_applied=resolved.credits_applied,
            liability_after_credits=resolved.liability_after_credits,
            remitted=resolved.remitted,
            pending=resolved.pending,
            over_remitted=resolved.over_remitted,
            status=resolved.status,
            deadline=resolved.deadline,
            rate=computed.rate,
            classification=computed.classification,
            exemption_reason=computed.exemption_reason,
            aggregates={name: agg.to_dict() for name, agg in sorted(aggregates.items())},
            details=computed.details,
        )

        logger.info(
            f"Computed {tax_type.value.upper()} summary for {entity.id} {period.key}: "
            f"liability={result.liability_after_credits} pending={result.pending} status={result.status.value}"
        )
        return result

    async def _compute_pit(self, entity: TaxEntity, period: TaxPeriod, tables: TaxTables) -> _Computed:
        if entity.entity_type == EntityType.INDIVIDUAL:
            business_ids = await self.aggregator.owned_business_ids(entity.id)
        else:
            business_ids = [entity.id]
        credit_holders = sorted({entity.id, *business_ids})

        income = await self.aggregator.sum_income(entity.id, period)
        revenue = await self.aggregator.sum_paid_revenue(business_ids, period)
        expenses = await self.aggregator.sum_deductible_expenses(business_ids, period)
        wht_credits = await self.aggregator.sum_wht(credit_holders, period, WHTTransactionType.INVOICE)
        remitted = await self.aggregator.sum_remittances(entity.id, TaxType.PIT, period)

        deductions = await self.aggregator.get_deductions(entity.id, period.year)
        reliefs = PITReliefs()
        if deductions is not None:
            reliefs = PITReliefs(
                pension=deductions.pension,
                nhf=deductions.nhf,
                nhis=deductions.nhis,
                housing_loan_interest=deductions.housing_loan_interest,
                life_insurance=deductions.life_insurance,
                annual_rent=deductions.annual_rent,
            )

        pit = PITCalculator(tables.pit).calculate(
            gross_income=income.amount + revenue.amount,
            reliefs=reliefs,
            allowable_deductions=expenses.amount,
        )

        return _Computed(
            liability=pit.tax,
            credits=wht_credits.amount,
            remitted=remitted,
            aggregates={
                "income": income,
                "business_revenue": revenue,
                "deductible_expenses": expenses,
                "wht_credits": wht_credits,
            },
            rate=pit.effective_rate,
            exemption_reason=pit.exemption_reason.value if pit.exemption_reason else None,
            details={
                "gross_income": str(round_money(pit.gross_income)),
                "reliefs": {name: str(amount) for name, amount in sorted(pit.reliefs.items())},
                "total_reliefs": str(round_money(pit.total_reliefs)),
                "allowable_deductions": str(round_money(pit.allowable_deductions)),
                "taxable_income": str(pit.taxable_income),
                "band_breakdown": pit.band_breakdown,
                "owned_businesses": len(business_ids) if entity.entity_type == EntityType.INDIVIDUAL else 0,
            },
        )

    async def _compute_cit(self, entity: TaxEntity, period: TaxPeriod, tables: TaxTables) -> _Computed:
        revenue = await self.aggregator.sum_paid_revenue([entity.id], period)
        expenses = await self.aggregator.sum_deductible_expenses([entity.id], period)
        wht_credits = await self.aggregator.sum_wht([entity.id], period, WHTTransactionType.INVOICE)
        remitted = await self.aggregator.sum_remittances(entity.id, TaxType.CIT, period)

        cit = CITCalculator(tables.cit).calculate(
            revenue=revenue.amount,
            deductible_expenses=expenses.amount,
            declared_classification=entity.declared_classification,
        )

        return _Computed(
            liability=cit.cit,
            credits=wht_credits.amount,
            remitted=remitted,
            aggregates={
                "revenue": revenue,
                "deductible_expenses": expenses,
                "wht_credits": wht_credits,
            },
            rate=cit.rate,
            classification=cit.classification.value,
            exemption_reason=cit.exemption_reason.value if cit.exemption_reason else None,
            details={
                "taxable_profit": str(cit.taxable_profit),
                "classification_source": cit.classification_source,
                "development_levy_rate": str(cit.development_levy_rate),
                "development_levy": str(cit.development_levy),
            },
        )

    async def _compute_vat(self, entity: TaxEntity, period: TaxPeriod, tables: TaxTables) -> _Computed:
        calculator = VATCalculator(tables.vat)
        turnover = await self.aggregator.sum_turnover(entity.id, period.year)

        output_total = Aggregate()
        input_total = Aggregate()
        months = []
        for month_period in period.monthly_periods():
            output_vat = await self.aggregator.sum_output_vat(entity.id, month_period)
            input_vat = await self.aggregator.sum_input_vat(entity.id, month_period)
            output_total += output_vat
            input_total += input_vat
            months.append(calculator.net_month(output_vat.amount, input_vat.amount, turnover.amount))

        vat = months[0] if len(months) == 1 else VATCalculator.combine(months)
        remitted = await self.aggregator.sum_remittances(entity.id, TaxType.VAT, period)

        details = {
            "output_vat": str(vat.output_vat),
            "input_vat": str(vat.input_vat),
            "claimable_input_vat": str(vat.claimable_input_vat),
            "net_vat": str(vat.net_vat),
            "refundable": str(vat.refundable),
            "position": vat.position.value,
            "nil_reason": vat.nil_reason.value if vat.nil_reason else None,
            "annual_turnover": str(round_money(turnover.amount)),
            "below_registration_threshold": turnover.amount < tables.vat.registration_threshold,
        }
        if period.is_annual:
            details["monthly_net_vat"] = [str(m.net_vat) for m in months]

        return _Computed(
            liability=vat.payable,
            credits=ZERO,
            remitted=remitted,
            aggregates={
                "output_vat": output_total,
                "input_vat": input_total,
                "turnover": turnover,
            },
            rate=calculator.rate,
            details=details,
        )

    async def _compute_wht(self, entity: TaxEntity, period: TaxPeriod, tables: TaxTables) -> _Computed:
        withheld = await self.aggregator.sum_wht([entity.id], period, WHTTransactionType.EXPENSE)
        remitted = await self.aggregator.sum_remittances(entity.id, TaxType.WHT, period)

        return _Computed(
            liability=withheld.amount,
            credits=ZERO,
            remitted=remitted,
            aggregates={"withheld": withheld},
            details={
                "withheld": str(withheld.amount),
                "deductions": withheld.count,
            },
        )

    async def _compute_paye(self, entity: TaxEntity, period: TaxPeriod, tables: TaxTables) -> _Computed:
        calculator = PAYECalculator(tables.paye)
        entries = await self.aggregator.list_payroll(entity.id, period)

        lines = []
        total_gross = ZERO
        total_paye = ZERO
        for entry in entries:
            line = calculator.calculate(
                gross_salary=entry.gross_salary,
                employee_name=entry.employee_name,
                has_pension=entry.has_pension,
                has_nhf=entry.has_nhf,
                has_nhis=entry.has_nhis,
            )
            total_gross += line.gross_salary
            total_paye += line.paye
            row = line.to_dict()
            row["month"] = entry.month
            lines.append(row)

        remitted = await self.aggregator.sum_remittances(entity.id, TaxType.PAYE, period)

        return _Computed(
            liability=total_paye,
            credits=ZERO,
            remitted=remitted,
            aggregates={"payroll": Aggregate(amount=round_money(total_gross), count=len(entries))},
            details={
                "total_gross": str(round_money(total_gross)),
                "total_paye": str(round_money(total_paye)),
                "employees": lines,
            },
        )
