"""create sacco core tables

Revision ID: 4c2e9a7b1d05
Revises: 
Create Date: 2026-10-18 10:02:41.518204

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = '4c2e9a7b1d05'
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(precision=18, scale=2)


def _table_exists(bind, name):
    inspector = inspect(bind)
    return name in inspector.get_table_names()


def upgrade():
    bind = op.get_bind()

    if not _table_exists(bind, 'members'):
        op.create_table(
            'members',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('organization_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=120), nullable=False),
            sa.Column('email', sa.String(length=120), nullable=True),
            sa.Column('category', sa.String(length=1), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.Column('joined_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('organization_id', 'email', name='uq_org_member_email'),
        )
        op.create_index('ix_members_organization_id', 'members', ['organization_id'])

    if not _table_exists(bind, 'committee_roles'):
        op.create_table(
            'committee_roles',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('organization_id', sa.Integer(), nullable=False),
            sa.Column('member_id', sa.Integer(), nullable=False),
            sa.Column('role', sa.String(length=20), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.Column('assigned_date', sa.Date(), nullable=False),
            sa.Column('end_date', sa.Date(), nullable=True),
            sa.ForeignKeyConstraint(['member_id'], ['members.id']),
        )
        op.create_index('ix_committee_roles_organization_id', 'committee_roles', ['organization_id'])
        op.create_index('ix_committee_roles_member_id', 'committee_roles', ['member_id'])
        op.create_index('ix_committee_roles_is_active', 'committee_roles', ['is_active'])

    if not _table_exists(bind, 'operating_periods'):
        op.create_table(
            'operating_periods',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('organization_id', sa.Integer(), nullable=False),
            sa.Column('year', sa.Integer(), nullable=False),
            sa.Column('quarter_number', sa.Integer(), nullable=False),
            sa.Column('start_date', sa.Date(), nullable=False),
            sa.Column('end_date', sa.Date(), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.Column('is_completed', sa.Boolean(), nullable=False),
            sa.Column('shareout_activated', sa.Boolean(), nullable=False),
            sa.Column('shareout_date', sa.Date(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('organization_id', 'year', 'quarter_number', name='uq_org_year_quarter'),
        )
        op.create_index('ix_operating_periods_organization_id', 'operating_periods', ['organization_id'])
        op.create_index('ix_operating_periods_year', 'operating_periods', ['year'])
        op.create_index('ix_operating_periods_is_active', 'operating_periods', ['is_active'])

    if not _table_exists(bind, 'loans'):
        op.create_table(
            'loans',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('organization_id', sa.Integer(), nullable=False),
            sa.Column('member_id', sa.Integer(), nullable=False),
            sa.Column('period_id', sa.Integer(), nullable=False),
            sa.Column('loan_number', sa.String(length=20), nullable=False),
            sa.Column('loan_type', sa.String(length=40), nullable=False),
            sa.Column('principal', MONEY, nullable=False),
            sa.Column('interest_rate', sa.Numeric(precision=5, scale=2), nullable=False),
            sa.Column('total_amount', MONEY, nullable=False),
            sa.Column('amount_paid', MONEY, nullable=False),
            sa.Column('outstanding_balance', MONEY, nullable=False),
            sa.Column('status', sa.String(length=20), nullable=False),
            sa.Column('purpose', sa.String(length=500), nullable=True),
            sa.Column('admin_notes', sa.String(length=500), nullable=True),
            sa.Column('applied_date', sa.Date(), nullable=False),
            sa.Column('approved_date', sa.Date(), nullable=True),
            sa.Column('approved_by', sa.Integer(), nullable=True),
            sa.Column('disbursed_date', sa.Date(), nullable=True),
            sa.Column('expected_repayment_date', sa.Date(), nullable=False),
            sa.Column('actual_repayment_date', sa.Date(), nullable=True),
            sa.Column('repayment_period_months', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['member_id'], ['members.id']),
            sa.ForeignKeyConstraint(['approved_by'], ['members.id']),
            sa.ForeignKeyConstraint(['period_id'], ['operating_periods.id']),
            sa.UniqueConstraint('organization_id', 'loan_number', name='uq_org_loan_number'),
        )
        op.create_index('ix_loans_organization_id', 'loans', ['organization_id'])
        op.create_index('ix_loans_member_id', 'loans', ['member_id'])
        op.create_index('ix_loans_period_id', 'loans', ['period_id'])
        op.create_index('ix_loans_status', 'loans', ['status'])
        op.create_index('ix_loans_expected_repayment_date', 'loans', ['expected_repayment_date'])

    if not _table_exists(bind, 'loan_repayments'):
        op.create_table(
            'loan_repayments',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('loan_id', sa.Integer(), nullable=False),
            sa.Column('amount', MONEY, nullable=False),
            sa.Column('principal_portion', MONEY, nullable=False),
            sa.Column('interest_portion', MONEY, nullable=False),
            sa.Column('payment_date', sa.Date(), nullable=False),
            sa.Column('payment_method', sa.String(length=100), nullable=True),
            sa.Column('notes', sa.String(length=500), nullable=True),
            sa.Column('recorded_by', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['loan_id'], ['loans.id']),
            sa.ForeignKeyConstraint(['recorded_by'], ['members.id']),
        )
        op.create_index('ix_loan_repayments_loan_id', 'loan_repayments', ['loan_id'])

    if not _table_exists(bind, 'interest_distributions'):
        op.create_table(
            'interest_distributions',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('organization_id', sa.Integer(), nullable=False),
            sa.Column('year', sa.Integer(), nullable=False),
            sa.Column('loan_id', sa.Integer(), nullable=True),
            sa.Column('member_id', sa.Integer(), nullable=False),
            sa.Column('amount', MONEY, nullable=False),
            sa.Column('distribution_type', sa.String(length=30), nullable=False),
            sa.Column('description', sa.String(length=255), nullable=True),
            sa.Column('distributed_date', sa.Date(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['loan_id'], ['loans.id']),
            sa.ForeignKeyConstraint(['member_id'], ['members.id']),
            sa.UniqueConstraint('loan_id', 'distribution_type', name='uq_loan_distribution_type'),
        )
        op.create_index('ix_interest_distributions_organization_id', 'interest_distributions', ['organization_id'])
        op.create_index('ix_interest_distributions_year', 'interest_distributions', ['year'])
        op.create_index('ix_interest_distributions_loan_id', 'interest_distributions', ['loan_id'])
        op.create_index('ix_interest_distributions_member_id', 'interest_distributions', ['member_id'])

    if not _table_exists(bind, 'year_interest_pools'):
        op.create_table(
            'year_interest_pools',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('organization_id', sa.Integer(), nullable=False),
            sa.Column('year', sa.Integer(), nullable=False),
            sa.Column('accrued_interest', MONEY, nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('organization_id', 'year', name='uq_org_year_pool'),
        )
        op.create_index('ix_year_interest_pools_organization_id', 'year_interest_pools', ['organization_id'])

    if not _table_exists(bind, 'year_end_shareouts'):
        op.create_table(
            'year_end_shareouts',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('organization_id', sa.Integer(), nullable=False),
            sa.Column('year', sa.Integer(), nullable=False),
            sa.Column('total_interest', MONEY, nullable=False),
            sa.Column('available_for_distribution', MONEY, nullable=False),
            sa.Column('committee_total_share', MONEY, nullable=False),
            sa.Column('members_total_share', MONEY, nullable=False),
            sa.Column('undistributed_amount', MONEY, nullable=False),
            sa.Column('committee_count', sa.Integer(), nullable=False),
            sa.Column('member_count', sa.Integer(), nullable=False),
            sa.Column('is_completed', sa.Boolean(), nullable=False),
            sa.Column('shareout_date', sa.DateTime(), nullable=True),
            sa.Column('completed_by', sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(['completed_by'], ['members.id']),
            sa.UniqueConstraint('organization_id', 'year', name='uq_org_year_shareout'),
        )
        op.create_index('ix_year_end_shareouts_organization_id', 'year_end_shareouts', ['organization_id'])

    if not _table_exists(bind, 'individual_year_shares'):
        op.create_table(
            'individual_year_shares',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('shareout_id', sa.Integer(), nullable=False),
            sa.Column('member_id', sa.Integer(), nullable=False),
            sa.Column('amount', MONEY, nullable=False),
            sa.Column('share_type', sa.String(length=30), nullable=False),
            sa.Column('is_disbursed', sa.Boolean(), nullable=False),
            sa.Column('disbursed_date', sa.Date(), nullable=True),
            sa.ForeignKeyConstraint(['shareout_id'], ['year_end_shareouts.id']),
            sa.ForeignKeyConstraint(['member_id'], ['members.id']),
            sa.UniqueConstraint('shareout_id', 'member_id', 'share_type', name='uq_shareout_member_type'),
        )
        op.create_index('ix_individual_year_shares_shareout_id', 'individual_year_shares', ['shareout_id'])
        op.create_index('ix_individual_year_shares_member_id', 'individual_year_shares', ['member_id'])

    if not _table_exists(bind, 'savings_targets'):
        op.create_table(
            'savings_targets',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('organization_id', sa.Integer(), nullable=False),
            sa.Column('member_id', sa.Integer(), nullable=False),
            sa.Column('period_id', sa.Integer(), nullable=False),
            sa.Column('monthly_target', MONEY, nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['member_id'], ['members.id']),
            sa.ForeignKeyConstraint(['period_id'], ['operating_periods.id']),
            sa.UniqueConstraint('member_id', 'period_id', name='uq_member_period_target'),
        )
        op.create_index('ix_savings_targets_organization_id', 'savings_targets', ['organization_id'])
        op.create_index('ix_savings_targets_member_id', 'savings_targets', ['member_id'])
        op.create_index('ix_savings_targets_period_id', 'savings_targets', ['period_id'])

    if not _table_exists(bind, 'savings_entries'):
        op.create_table(
            'savings_entries',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('organization_id', sa.Integer(), nullable=False),
            sa.Column('member_id', sa.Integer(), nullable=False),
            sa.Column('period_id', sa.Integer(), nullable=False),
            sa.Column('amount', MONEY, nullable=False),
            sa.Column('month', sa.Integer(), nullable=False),
            sa.Column('shared_out', sa.Boolean(), nullable=False),
            sa.Column('shared_out_date', sa.DateTime(), nullable=True),
            sa.Column('recorded_by', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['member_id'], ['members.id']),
            sa.ForeignKeyConstraint(['period_id'], ['operating_periods.id']),
            sa.ForeignKeyConstraint(['recorded_by'], ['members.id']),
            sa.UniqueConstraint('member_id', 'period_id', 'month', name='uq_member_period_month'),
        )
        op.create_index('ix_savings_entries_organization_id', 'savings_entries', ['organization_id'])
        op.create_index('ix_savings_entries_member_id', 'savings_entries', ['member_id'])
        op.create_index('ix_savings_entries_period_id', 'savings_entries', ['period_id'])
        op.create_index('ix_savings_entries_shared_out', 'savings_entries', ['shared_out'])

    if not _table_exists(bind, 'shareout_decisions'):
        op.create_table(
            'shareout_decisions',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('organization_id', sa.Integer(), nullable=False),
            sa.Column('member_id', sa.Integer(), nullable=False),
            sa.Column('period_id', sa.Integer(), nullable=False),
            sa.Column('wants_shareout', sa.Boolean(), nullable=False),
            sa.Column('savings_balance', MONEY, nullable=False),
            sa.Column('interest_amount', MONEY, nullable=False),
            sa.Column('shareout_completed', sa.Boolean(), nullable=False),
            sa.Column('decision_made_at', sa.DateTime(), nullable=False),
            sa.Column('shareout_completed_at', sa.DateTime(), nullable=True),
            sa.Column('completed_by', sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(['member_id'], ['members.id']),
            sa.ForeignKeyConstraint(['period_id'], ['operating_periods.id']),
            sa.ForeignKeyConstraint(['completed_by'], ['members.id']),
            sa.UniqueConstraint('member_id', 'period_id', name='uq_member_period_decision'),
        )
        op.create_index('ix_shareout_decisions_organization_id', 'shareout_decisions', ['organization_id'])
        op.create_index('ix_shareout_decisions_member_id', 'shareout_decisions', ['member_id'])
        op.create_index('ix_shareout_decisions_period_id', 'shareout_decisions', ['period_id'])

    if not _table_exists(bind, 'notifications'):
        op.create_table(
            'notifications',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('member_id', sa.Integer(), nullable=False),
            sa.Column('message', sa.String(length=500), nullable=False),
            sa.Column('type', sa.String(length=50), nullable=False),
            sa.Column('meta', sa.Text(), nullable=True),
            sa.Column('is_read', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        )
        op.create_index('ix_notifications_member_id', 'notifications', ['member_id'])
        op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])
        op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    if not _table_exists(bind, 'audit_logs'):
        op.create_table(
            'audit_logs',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('organization_id', sa.Integer(), nullable=False),
            sa.Column('actor_id', sa.Integer(), nullable=True),
            sa.Column('action', sa.String(length=255), nullable=False),
            sa.Column('table_name', sa.String(length=100), nullable=False),
            sa.Column('record_id', sa.Integer(), nullable=True),
            sa.Column('old_value', sa.Text(), nullable=True),
            sa.Column('new_value', sa.Text(), nullable=True),
            sa.Column('timestamp', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_audit_logs_organization_id', 'audit_logs', ['organization_id'])
        op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])


def downgrade():
    for table in (
        'audit_logs', 'notifications', 'shareout_decisions', 'savings_entries', 'savings_targets',
        'individual_year_shares', 'year_end_shareouts', 'year_interest_pools', 'interest_distributions',
        'loan_repayments', 'loans', 'operating_periods', 'committee_roles', 'members',
    ):
        op.drop_table(table)
