"""create_ledger_and_register_tables

Revision ID: a7c1e2f3d4b5
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a7c1e2f3d4b5'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create sales, credit_payments, cash_registers, service_transactions, audit_logs."""
    op.create_table(
        'sales',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('sale_date', sa.Date(), nullable=False),
        sa.Column('total', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column(
            'payment_method',
            sa.Enum('CASH', 'QR', 'TRANSFER', 'CREDIT', name='salepaymentmethod'),
            nullable=False,
        ),
        sa.Column(
            'status',
            sa.Enum('COMPLETED', 'VOIDED', name='salestatus'),
            nullable=False,
        ),
        sa.Column('seller_id', sa.Uuid(), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('installment_count', sa.Integer(), nullable=True),
        sa.Column('down_payment', sa.Numeric(precision=20, scale=4), nullable=False, server_default='0'),
        sa.Column('interest_rate', sa.Numeric(precision=10, scale=4), nullable=False, server_default='0'),
        sa.Column('interest_amount', sa.Numeric(precision=20, scale=4), nullable=False, server_default='0'),
        sa.Column('interest_waived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('amount_paid', sa.Numeric(precision=20, scale=4), nullable=True),
        sa.Column(
            'credit_status',
            sa.Enum('PENDING', 'PARTIAL', 'PAID', 'OVERDUE', name='creditstatus'),
            nullable=True,
        ),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('total > 0', name='ck_sale_total_positive'),
        sa.CheckConstraint('down_payment >= 0', name='ck_sale_down_payment_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sales_date_status', 'sales', ['sale_date', 'status'])
    op.create_index('ix_sales_payment_method', 'sales', ['payment_method'])
    op.create_index('ix_sales_credit_status', 'sales', ['credit_status'])

    op.create_table(
        'credit_payments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('sale_id', sa.Uuid(), nullable=False),
        sa.Column('installment_number', sa.Integer(), nullable=False),
        sa.Column('amount_paid', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column(
            'payment_method',
            sa.Enum('CASH', 'QR', 'TRANSFER', name='installmentpaymentmethod'),
            nullable=False,
        ),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('operator_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('amount_paid > 0', name='ck_credit_payment_amount_positive'),
        sa.CheckConstraint('installment_number >= 1', name='ck_credit_payment_installment_min'),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sale_id', 'installment_number', name='uq_credit_payment_installment'),
    )
    op.create_index('ix_credit_payments_sale', 'credit_payments', ['sale_id'])
    op.create_index('ix_credit_payments_date', 'credit_payments', ['payment_date'])

    op.create_table(
        'cash_registers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('register_date', sa.Date(), nullable=False),
        sa.Column('opened_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('opening_float', sa.Numeric(precision=20, scale=4), nullable=False, server_default='0'),
        sa.Column('expected_total', sa.Numeric(precision=20, scale=4), nullable=False, server_default='0'),
        sa.Column('counted_cash', sa.Numeric(precision=20, scale=4), nullable=True),
        sa.Column('variance', sa.Numeric(precision=20, scale=4), nullable=False, server_default='0'),
        sa.Column('operator_id', sa.Uuid(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('OPEN', 'CLOSED', name='registerstatus'),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'uq_cash_registers_open_date',
        'cash_registers',
        ['register_date'],
        unique=True,
        postgresql_where=sa.text("status = 'OPEN'"),
        sqlite_where=sa.text("status = 'OPEN'"),
    )
    op.create_index('ix_cash_registers_date', 'cash_registers', ['register_date'])
    op.create_index('ix_cash_registers_status', 'cash_registers', ['status'])

    op.create_table(
        'service_transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_service_transactions_date', 'service_transactions', ['transaction_date'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('table_name', sa.String(length=100), nullable=False),
        sa.Column('record_id', sa.String(length=255), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('changed_by', sa.Uuid(), nullable=True),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_table_record', 'audit_logs', ['table_name', 'record_id'])
    op.create_index('ix_audit_created_at', 'audit_logs', ['created_at'])
    op.create_index('ix_audit_action', 'audit_logs', ['action'])


def downgrade() -> None:
    """Drop every table created above."""
    op.drop_table('audit_logs')
    op.drop_index('ix_service_transactions_date', table_name='service_transactions')
    op.drop_table('service_transactions')
    op.drop_index('ix_cash_registers_status', table_name='cash_registers')
    op.drop_index('ix_cash_registers_date', table_name='cash_registers')
    op.drop_index('uq_cash_registers_open_date', table_name='cash_registers')
    op.drop_table('cash_registers')
    op.drop_index('ix_credit_payments_date', table_name='credit_payments')
    op.drop_index('ix_credit_payments_sale', table_name='credit_payments')
    op.drop_table('credit_payments')
    op.drop_index('ix_sales_credit_status', table_name='sales')
    op.drop_index('ix_sales_payment_method', table_name='sales')
    op.drop_index('ix_sales_date_status', table_name='sales')
    op.drop_table('sales')
    op.execute("DROP TYPE IF EXISTS registerstatus")
    op.execute("DROP TYPE IF EXISTS installmentpaymentmethod")
    op.execute("DROP TYPE IF EXISTS creditstatus")
    op.execute("DROP TYPE IF EXISTS salestatus")
    op.execute("DROP TYPE IF EXISTS salepaymentmethod")
