# alembic/versions/001_initial_schema.py
"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _uuid_pk():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _fk(name, table, ondelete='CASCADE', nullable=False):
    return sa.Column(name, postgresql.UUID(as_uuid=True), sa.ForeignKey(f'{table}.id', ondelete=ondelete), nullable=nullable)


def upgrade() -> None:
    # Organizations and legacy flat gateway settings
    op.create_table(
        'organizations',
        _uuid_pk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.String(500)),
        sa.Column('logo_url', sa.String(500)),
        *_timestamps(),
    )

    op.create_table(
        'organization_settings',
        _uuid_pk(),
        _fk('organization_id', 'organizations'),
        sa.Column('active_processor', sa.String(50)),
        sa.Column('cardknox_transaction_key', sa.String(255)),
        sa.Column('cardknox_ifields_key', sa.String(255)),
        sa.Column('stripe_publishable_key', sa.String(255)),
        sa.Column('stripe_account_id', sa.String(255)),
        *_timestamps(),
        sa.UniqueConstraint('organization_id', name='uq_organization_settings_org'),
    )

    # Processor registry
    op.create_table(
        'payment_processors',
        _uuid_pk(),
        _fk('organization_id', 'organizations'),
        sa.Column('processor_type', sa.String(50), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('credentials', postgresql.JSONB, server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column('is_default', sa.Boolean, server_default=sa.text('false'), nullable=False),
        sa.Column('is_active', sa.Boolean, server_default=sa.text('true'), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        'uq_payment_processors_org_default', 'payment_processors', ['organization_id'],
        unique=True, postgresql_where=sa.text('is_default AND is_active'),
    )

    op.create_table(
        'campaigns',
        _uuid_pk(),
        _fk('organization_id', 'organizations'),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.String(1000)),
        sa.Column('type', sa.String(20), server_default=sa.text("'drive'"), nullable=False),
        sa.Column('goal_amount', sa.Numeric(12, 2)),
        sa.Column('raised_amount', sa.Numeric(12, 2), server_default=sa.text('0'), nullable=False),
        sa.Column('start_date', sa.Date),
        sa.Column('end_date', sa.Date),
        sa.Column('is_active', sa.Boolean, server_default=sa.text('true'), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("type IN ('drive', 'fund')", name='campaigns_type_check'),
    )

    op.create_table(
        'campaign_processors',
        _uuid_pk(),
        _fk('campaign_id', 'campaigns'),
        _fk('processor_id', 'payment_processors'),
        sa.Column('is_primary', sa.Boolean, server_default=sa.text('false'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('campaign_id', 'processor_id', name='uq_campaign_processors_pair'),
    )
    op.create_index(
        'uq_campaign_processors_primary', 'campaign_processors', ['campaign_id'],
        unique=True, postgresql_where=sa.text('is_primary'),
    )

    # Members and saved cards
    op.create_table(
        'members',
        _uuid_pk(),
        _fk('organization_id', 'organizations'),
        sa.Column('user_id', postgresql.UUID(as_uuid=True)),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.String(500)),
        sa.Column('membership_type', sa.String(50)),
        sa.Column('balance', sa.Numeric(12, 2), server_default=sa.text('0'), nullable=False),
        _fk('family_head_id', 'members', ondelete='SET NULL', nullable=True),
        sa.Column('is_active', sa.Boolean, server_default=sa.text('true'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_members_organization_id', 'members', ['organization_id'])

    op.create_table(
        'payment_methods',
        _uuid_pk(),
        _fk('member_id', 'members'),
        sa.Column('processor', sa.String(50), nullable=False),
        _fk('processor_id', 'payment_processors', ondelete='SET NULL', nullable=True),
        sa.Column('processor_payment_method_id', sa.String(255), nullable=False),
        sa.Column('processor_customer_id', sa.String(255)),
        sa.Column('card_brand', sa.String(50)),
        sa.Column('card_last_four', sa.String(4)),
        sa.Column('exp_month', sa.Integer),
        sa.Column('exp_year', sa.Integer),
        sa.Column('nickname', sa.String(100)),
        sa.Column('is_default', sa.Boolean, server_default=sa.text('false'), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        'uq_payment_methods_member_default', 'payment_methods', ['member_id'],
        unique=True, postgresql_where=sa.text('is_default'),
    )

    # Billing
    op.create_table(
        'invoices',
        _uuid_pk(),
        _fk('organization_id', 'organizations'),
        _fk('member_id', 'members'),
        _fk('campaign_id', 'campaigns', ondelete='SET NULL', nullable=True),
        sa.Column('invoice_number', sa.String(50), nullable=False),
        sa.Column('status', sa.String(20), server_default=sa.text("'draft'"), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), server_default=sa.text('0'), nullable=False),
        sa.Column('tax', sa.Numeric(12, 2), server_default=sa.text('0'), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), server_default=sa.text('0'), nullable=False),
        sa.Column('due_date', sa.Date),
        sa.Column('paid_at', sa.DateTime(timezone=True)),
        sa.Column('is_recurring', sa.Boolean, server_default=sa.text('false'), nullable=False),
        sa.Column('notes', sa.String(1000)),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('draft', 'sent', 'paid', 'void', 'overdue', 'partially_paid')",
            name='invoices_status_check',
        ),
    )
    op.create_index('ix_invoices_member_id', 'invoices', ['member_id'])

    op.create_table(
        'invoice_items',
        _uuid_pk(),
        _fk('invoice_id', 'invoices'),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('quantity', sa.Integer, server_default=sa.text('1'), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'payments',
        _uuid_pk(),
        _fk('organization_id', 'organizations'),
        _fk('member_id', 'members'),
        _fk('invoice_id', 'invoices', ondelete='SET NULL', nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_method', sa.String(50)),
        sa.Column('processor', sa.String(50)),
        sa.Column('processor_transaction_id', sa.String(255)),
        sa.Column('notes', sa.String(1000)),
        *_timestamps(),
    )
    op.create_index('ix_payments_invoice_id', 'payments', ['invoice_id'])

    op.create_table(
        'subscriptions',
        _uuid_pk(),
        _fk('organization_id', 'organizations'),
        _fk('member_id', 'members'),
        _fk('campaign_id', 'campaigns', ondelete='SET NULL', nullable=True),
        _fk('payment_method_id', 'payment_methods', ondelete='SET NULL', nullable=True),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_type', sa.String(20), server_default=sa.text("'recurring'"), nullable=False),
        sa.Column('billing_method', sa.String(20), server_default=sa.text("'invoiced'"), nullable=False),
        sa.Column('frequency', sa.String(20), server_default=sa.text("'monthly'"), nullable=False),
        sa.Column('installments_total', sa.Integer),
        sa.Column('installments_paid', sa.Integer),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date),
        sa.Column('next_billing_date', sa.Date, nullable=False),
        sa.Column('is_active', sa.Boolean, server_default=sa.text('true'), nullable=False),
        sa.Column('notes', sa.String(1000)),
        *_timestamps(),
        sa.CheckConstraint("payment_type IN ('recurring', 'installments')", name='subscriptions_payment_type_check'),
        sa.CheckConstraint("billing_method IN ('invoiced', 'auto_cc')", name='subscriptions_billing_method_check'),
        sa.CheckConstraint(
            "frequency IN ('daily', 'weekly', 'monthly', 'monthly_hebrew', 'quarterly', 'annual')",
            name='subscriptions_frequency_check',
        ),
    )
    op.create_index('ix_subscriptions_next_billing_date', 'subscriptions', ['next_billing_date'])

    op.create_table(
        'donations',
        _uuid_pk(),
        _fk('organization_id', 'organizations'),
        _fk('campaign_id', 'campaigns', ondelete='SET NULL', nullable=True),
        _fk('member_id', 'members', ondelete='SET NULL', nullable=True),
        sa.Column('donor_name', sa.String(255)),
        sa.Column('donor_email', sa.String(255)),
        sa.Column('is_anonymous', sa.Boolean, server_default=sa.text('false'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_method', sa.String(50)),
        sa.Column('processor', sa.String(50)),
        sa.Column('processor_transaction_id', sa.String(255)),
        sa.Column('notes', sa.String(1000)),
        *_timestamps(),
    )
    op.create_index('ix_donations_campaign_id', 'donations', ['campaign_id'])


def downgrade() -> None:
    op.drop_table('donations')
    op.drop_table('subscriptions')
    op.drop_table('payments')
    op.drop_table('invoice_items')
    op.drop_table('invoices')
    op.drop_table('payment_methods')
    op.drop_table('members')
    op.drop_table('campaign_processors')
    op.drop_table('campaigns')
    op.drop_table('payment_processors')
    op.drop_table('organization_settings')
    op.drop_table('organizations')
