"""Initial tax engine schema

Revision ID: 20260105_0900_initial_tax_engine_schema
Revises:
Create Date: 2026-01-05 09:00:00.000000

Creates the entity register, the source records summaries are derived
from (income, reliefs, invoices, expenses, WHT deductions, payroll) and
the remittance and summary cache tables.
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '20260105_0900_initial_tax_engine_schema'
down_revision = None
branch_labels = None
depends_on = None


def _money(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision=15, scale=2), **kwargs)


def _base_columns() -> list:
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _entity_fk(table: str) -> sa.Column:
    return sa.Column(
        'entity_id',
        sa.Uuid(),
        sa.ForeignKey('tax_entities.id', name=f'fk_{table}_entity_id_tax_entities', ondelete='CASCADE'),
        nullable=False,
    )


def upgrade() -> None:
    """Create tax engine tables."""

    entity_type = sa.Enum('INDIVIDUAL', 'BUSINESS', 'COMPANY', name='entitytype')
    classification = sa.Enum('SMALL', 'MEDIUM', 'LARGE', name='companyclassification')
    invoice_status = sa.Enum('DRAFT', 'PENDING', 'PAID', 'CANCELLED', name='invoicestatus')
    wht_transaction_type = sa.Enum('INVOICE', 'EXPENSE', name='whttransactiontype')
    tax_type = sa.Enum('PIT', 'CIT', 'VAT', 'WHT', 'PAYE', name='taxtype')
    remittance_status = sa.Enum('REMITTED', 'PENDING', name='remittancestatus')

    # ===========================================
    # ENTITIES
    # ===========================================
    op.create_table(
        'tax_entities',
        *_base_columns(),
        sa.Column('entity_type', entity_type, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('tin', sa.String(20), nullable=True, comment='Tax Identification Number'),
        sa.Column(
            'owner_id',
            sa.Uuid(),
            sa.ForeignKey('tax_entities.id', name='fk_tax_entities_owner_id_tax_entities', ondelete='SET NULL'),
            nullable=True,
            comment='Owning individual for sole-proprietor businesses',
        ),
        sa.Column(
            'declared_classification',
            classification,
            nullable=True,
            comment='Overrides the turnover-derived CIT classification when set',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_tax_entities'),
    )
    op.create_index('ix_tax_entities_owner_id', 'tax_entities', ['owner_id'])

    # ===========================================
    # SOURCE RECORDS
    # ===========================================
    op.create_table(
        'income_records',
        *_base_columns(),
        _entity_fk('income_records'),
        sa.Column('tax_year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=True, comment='1-12 for monthly entries, NULL for an annual figure'),
        _money('amount', nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_income_records'),
        sa.UniqueConstraint('entity_id', 'tax_year', 'month', name='uq_income_records_entity_period'),
    )
    op.create_index('ix_income_records_entity_id', 'income_records', ['entity_id'])

    op.create_table(
        'employment_deductions',
        *_base_columns(),
        _entity_fk('employment_deductions'),
        sa.Column('tax_year', sa.Integer(), nullable=False),
        _money('pension', nullable=False),
        _money('nhf', nullable=False, comment='National Housing Fund'),
        _money('nhis', nullable=False, comment='National Health Insurance Scheme'),
        _money('housing_loan_interest', nullable=False),
        _money('life_insurance', nullable=False),
        _money('annual_rent', nullable=False, comment='Rent paid; relief is 20% capped at 500,000'),
        sa.PrimaryKeyConstraint('id', name='pk_employment_deductions'),
        sa.UniqueConstraint('entity_id', 'tax_year', name='uq_employment_deductions_entity_year'),
    )
    op.create_index('ix_employment_deductions_entity_id', 'employment_deductions', ['entity_id'])

    op.create_table(
        'invoices',
        *_base_columns(),
        _entity_fk('invoices'),
        sa.Column('invoice_number', sa.String(50), nullable=False),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('status', invoice_status, nullable=False),
        _money('subtotal', nullable=False),
        _money('vat_amount', nullable=False),
        _money('total', nullable=False),
        sa.Column('is_vat_exempt', sa.Boolean(), nullable=False),
        sa.Column('vat_category', sa.String(50), nullable=True,
                  comment='standard or an exempt category (food, healthcare, ...)'),
        sa.Column('wht_type', sa.String(50), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_invoices'),
    )
    op.create_index('ix_invoices_entity_id', 'invoices', ['entity_id'])
    op.create_index('ix_invoices_issue_date', 'invoices', ['issue_date'])

    op.create_table(
        'invoice_line_items',
        *_base_columns(),
        sa.Column(
            'invoice_id',
            sa.Uuid(),
            sa.ForeignKey('invoices.id', name='fk_invoice_line_items_invoice_id_invoices', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=10, scale=2), nullable=False),
        _money('unit_price', nullable=False),
        _money('amount', nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_invoice_line_items'),
    )
    op.create_index('ix_invoice_line_items_invoice_id', 'invoice_line_items', ['invoice_id'])

    op.create_table(
        'expenses',
        *_base_columns(),
        _entity_fk('expenses'),
        sa.Column('expense_date', sa.Date(), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('category', sa.String(50), nullable=False),
        _money('amount', nullable=False),
        _money('vat_amount', nullable=False, comment='Input VAT paid on this purchase'),
        sa.Column('is_tax_deductible', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_expenses'),
    )
    op.create_index('ix_expenses_entity_id', 'expenses', ['entity_id'])
    op.create_index('ix_expenses_expense_date', 'expenses', ['expense_date'])

    op.create_table(
        'wht_records',
        *_base_columns(),
        _entity_fk('wht_records'),
        sa.Column('transaction_type', wht_transaction_type, nullable=False),
        sa.Column('transaction_id', sa.Uuid(), nullable=True,
                  comment='Invoice or expense the deduction relates to'),
        sa.Column('payee_name', sa.String(255), nullable=False),
        sa.Column('payee_tin', sa.String(20), nullable=True),
        sa.Column('wht_type', sa.String(50), nullable=False),
        _money('payment_amount', nullable=False),
        sa.Column('wht_rate', sa.Numeric(precision=5, scale=2), nullable=False, comment='Percentage'),
        _money('wht_amount', nullable=False),
        _money('net_amount', nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_wht_records'),
    )
    op.create_index('ix_wht_records_entity_id', 'wht_records', ['entity_id'])
    op.create_index('ix_wht_records_year', 'wht_records', ['year'])

    op.create_table(
        'payroll_entries',
        *_base_columns(),
        _entity_fk('payroll_entries'),
        sa.Column('employee_name', sa.String(255), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        _money('gross_salary', nullable=False, comment='Monthly gross'),
        sa.Column('has_pension', sa.Boolean(), nullable=False),
        sa.Column('has_nhf', sa.Boolean(), nullable=False),
        sa.Column('has_nhis', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_payroll_entries'),
    )
    op.create_index('ix_payroll_entries_entity_id', 'payroll_entries', ['entity_id'])

    # ===========================================
    # REMITTANCES AND SUMMARY CACHE
    # ===========================================
    op.create_table(
        'tax_remittances',
        *_base_columns(),
        _entity_fk('tax_remittances'),
        sa.Column('tax_type', tax_type, nullable=False),
        sa.Column('tax_year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=True, comment='1-12 for monthly taxes, NULL for annual'),
        _money('amount', nullable=False),
        sa.Column('remittance_date', sa.Date(), nullable=False),
        sa.Column('reference', sa.String(100), nullable=False),
        sa.Column('receipt_url', sa.String(500), nullable=True),
        sa.Column('status', remittance_status, nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_tax_remittances'),
        sa.UniqueConstraint('entity_id', 'tax_type', 'reference', name='uq_tax_remittances_reference'),
    )
    op.create_index('ix_tax_remittances_entity_id', 'tax_remittances', ['entity_id'])

    op.create_table(
        'tax_summaries',
        *_base_columns(),
        _entity_fk('tax_summaries'),
        sa.Column('tax_type', tax_type, nullable=False),
        sa.Column('tax_year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=True),
        sa.Column('period_key', sa.String(7), nullable=False, comment='YYYY or YYYY-MM'),
        _money('liability_before_credits', nullable=False),
        _money('credits_applied', nullable=False),
        _money('liability_after_credits', nullable=False),
        _money('remitted', nullable=False),
        _money('pending', nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('is_stale', sa.Boolean(), nullable=False),
        sa.Column('computed_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_tax_summaries'),
        sa.UniqueConstraint('entity_id', 'tax_type', 'period_key', name='uq_tax_summaries_key'),
    )
    op.create_index('ix_tax_summaries_entity_id', 'tax_summaries', ['entity_id'])


def downgrade() -> None:
    """Drop tax engine tables."""
    for table in (
        'tax_summaries',
        'tax_remittances',
        'payroll_entries',
        'wht_records',
        'expenses',
        'invoice_line_items',
        'invoices',
        'employment_deductions',
        'income_records',
        'tax_entities',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_name in (
        'remittancestatus', 'taxtype', 'whttransactiontype',
        'invoicestatus', 'companyclassification', 'entitytype',
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
