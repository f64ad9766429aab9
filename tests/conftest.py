"""
TaxDesk NG - Test Configuration

Pytest fixtures and configuration.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import taxdesk.models  # noqa: F401  registers tables on Base.metadata
from taxdesk.database import Base, get_async_session
from taxdesk.models.entity import CompanyClassification, EntityType, TaxEntity
from taxdesk.models.expense import ExpenseRecord
from taxdesk.models.invoice import Invoice, InvoiceStatus
from taxdesk.models.payroll import PayrollEntry
from taxdesk.models.wht import WHTRecord, WHTTransactionType
from taxdesk.services.compliance_service import ComplianceService
from taxdesk.services.income_service import IncomeService
from taxdesk.services.remittance_service import RemittanceService
from taxdesk.services.summary_service import TaxSummaryService
from taxdesk.services.tax_tables import TaxTableRegistry, build_default_registry
from taxdesk.services.wht_deduction_service import WHTDeductionService
from main import app


# One in-memory database per test; StaticPool keeps it on a single connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Before the 2026 CIT deadline, after every 2026 monthly deadline
FIXED_NOW = datetime(2027, 3, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture(scope="session")
def registry() -> TaxTableRegistry:
    """Tax tables for 2026-2030."""
    return build_default_registry(2026, 2030)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, registry: TaxTableRegistry) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session
    app.state.tax_tables = registry
    app.state.clock = fixed_clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# SERVICE FIXTURES
# ===========================================

@pytest.fixture
def summary_service(db_session: AsyncSession, registry: TaxTableRegistry) -> TaxSummaryService:
    return TaxSummaryService(db_session, registry, clock=fixed_clock)


@pytest.fixture
def remittance_service(db_session: AsyncSession, summary_service: TaxSummaryService) -> RemittanceService:
    return RemittanceService(db_session, summary_service)


@pytest.fixture
def income_service(db_session: AsyncSession, summary_service: TaxSummaryService) -> IncomeService:
    return IncomeService(db_session, summary_service)


@pytest.fixture
def wht_service(
    db_session: AsyncSession,
    registry: TaxTableRegistry,
    summary_service: TaxSummaryService,
) -> WHTDeductionService:
    return WHTDeductionService(db_session, registry, summary_service)


@pytest.fixture
def compliance_service(db_session: AsyncSession, summary_service: TaxSummaryService) -> ComplianceService:
    return ComplianceService(db_session, summary_service)


# ===========================================
# ENTITY FIXTURES
# ===========================================

async def _create_entity(db_session: AsyncSession, **fields) -> TaxEntity:
    entity = TaxEntity(id=uuid4(), **fields)
    db_session.add(entity)
    await db_session.commit()
    await db_session.refresh(entity)
    return entity


@pytest_asyncio.fixture
async def individual(db_session: AsyncSession) -> TaxEntity:
    """An individual taxpayer."""
    return await _create_entity(
        db_session,
        entity_type=EntityType.INDIVIDUAL,
        name="Adaeze Okafor",
        tin="10000001-0001",
    )


@pytest_asyncio.fixture
async def sole_business(db_session: AsyncSession, individual: TaxEntity) -> TaxEntity:
    """A sole proprietorship owned by `individual`."""
    return await _create_entity(
        db_session,
        entity_type=EntityType.BUSINESS,
        name="Okafor Designs",
        owner_id=individual.id,
    )


@pytest_asyncio.fixture
async def company(db_session: AsyncSession) -> TaxEntity:
    """A company with no declared classification."""
    return await _create_entity(
        db_session,
        entity_type=EntityType.COMPANY,
        name="Lagos Logistics Ltd",
        tin="20000002-0001",
    )


@pytest_asyncio.fixture
async def large_company(db_session: AsyncSession) -> TaxEntity:
    """A company declared large regardless of turnover."""
    return await _create_entity(
        db_session,
        entity_type=EntityType.COMPANY,
        name="Abuja Holdings Plc",
        declared_classification=CompanyClassification.LARGE,
    )


# ===========================================
# SOURCE RECORD FACTORIES
# ===========================================

@pytest.fixture
def add_invoice(db_session: AsyncSession):
    """Factory for invoices."""

    async def _add(
        entity: TaxEntity,
        subtotal: str,
        issue_date: date = date(2026, 3, 15),
        status: InvoiceStatus = InvoiceStatus.PAID,
        vat_amount: Optional[str] = None,
        is_vat_exempt: bool = False,
    ) -> Invoice:
        amount = Decimal(subtotal)
        vat = Decimal(vat_amount) if vat_amount is not None else Decimal("0")
        invoice = Invoice(
            id=uuid4(),
            entity_id=entity.id,
            invoice_number=f"INV-{uuid4().hex[:8]}",
            customer_name="Test Customer",
            issue_date=issue_date,
            status=status,
            subtotal=amount,
            vat_amount=vat,
            total=amount + vat,
            is_vat_exempt=is_vat_exempt,
        )
        db_session.add(invoice)
        await db_session.commit()
        return invoice

    return _add


@pytest.fixture
def add_expense(db_session: AsyncSession):
    """Factory for expenses."""

    async def _add(
        entity: TaxEntity,
        amount: str,
        expense_date: date = date(2026, 3, 20),
        vat_amount: str = "0",
        is_tax_deductible: bool = True,
    ) -> ExpenseRecord:
        expense = ExpenseRecord(
            id=uuid4(),
            entity_id=entity.id,
            expense_date=expense_date,
            description="Operating expense",
            category="operations",
            amount=Decimal(amount),
            vat_amount=Decimal(vat_amount),
            is_tax_deductible=is_tax_deductible,
        )
        db_session.add(expense)
        await db_session.commit()
        return expense

    return _add


@pytest.fixture
def add_wht_credit(db_session: AsyncSession):
    """Factory for WHT withheld by a customer from the entity."""

    async def _add(entity: TaxEntity, wht_amount: str, payment_date: date = date(2026, 6, 10)) -> WHTRecord:
        amount = Decimal(wht_amount)
        record = WHTRecord(
            id=uuid4(),
            entity_id=entity.id,
            transaction_type=WHTTransactionType.INVOICE,
            payee_name=entity.name,
            wht_type="professional_services",
            payment_amount=amount * 20,
            wht_rate=Decimal("5"),
            wht_amount=amount,
            net_amount=amount * 19,
            payment_date=payment_date,
            month=payment_date.month,
            year=payment_date.year,
        )
        db_session.add(record)
        await db_session.commit()
        return record

    return _add


@pytest.fixture
def add_payroll(db_session: AsyncSession):
    """Factory for payroll entries."""

    async def _add(entity: TaxEntity, gross_salary: str, month: int = 3, employee_name: str = "Chidi Eze") -> PayrollEntry:
        entry = PayrollEntry(
            id=uuid4(),
            entity_id=entity.id,
            employee_name=employee_name,
            year=2026,
            month=month,
            gross_salary=Decimal(gross_salary),
            has_pension=True,
            has_nhf=True,
            has_nhis=False,
        )
        db_session.add(entry)
        await db_session.commit()
        return entry

    return _add
