"""Create claim approval workflow tables

Revision ID: 20261017_initial
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261017_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False, unique=True),
        sa.Column('country', sa.String(length=120), nullable=False),
        sa.Column('currency_code', sa.String(length=10), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.Enum('ADMIN', 'MANAGER', 'EMPLOYEE', name='user_role'), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_company_id', 'users', ['company_id'])
    op.create_index('ix_users_manager_id', 'users', ['manager_id'])

    op.create_table(
        'approval_policies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column(
            'kind',
            sa.Enum('SEQUENTIAL', 'PERCENTAGE', 'SPECIFIC_APPROVER', 'HYBRID', name='approval_policy_kind'),
            nullable=False,
        ),
        sa.Column('percentage_threshold', sa.Numeric(5, 4), nullable=True),
        sa.Column('specific_approver_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('manager_is_approver', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_approval_policies_company_id', 'approval_policies', ['company_id'])

    op.create_table(
        'approval_sequences',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('policy_id', sa.Integer(), sa.ForeignKey('approval_policies.id'), nullable=False),
        sa.Column('approver_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.UniqueConstraint('policy_id', 'position', name='uq_approval_sequences_policy_position'),
    )
    op.create_index('ix_approval_sequences_policy_id', 'approval_sequences', ['policy_id'])

    op.create_table(
        'claims',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('policy_id', sa.Integer(), sa.ForeignKey('approval_policies.id'), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=10), nullable=False),
        sa.Column('amount_in_company_currency', sa.Numeric(14, 2), nullable=False),
        sa.Column('exchange_rate', sa.Numeric(18, 8), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('merchant', sa.String(length=255), nullable=True),
        sa.Column('claim_date', sa.Date(), nullable=False),
        sa.Column('status', sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='claim_status'), nullable=False),
        sa.Column('current_approver_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('decided_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_claims_company_id', 'claims', ['company_id'])
    op.create_index('ix_claims_employee_id', 'claims', ['employee_id'])
    op.create_index('ix_claims_status', 'claims', ['status'])
    op.create_index('ix_claims_current_approver_id', 'claims', ['current_approver_id'])

    op.create_table(
        'claim_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('claim_id', sa.Integer(), sa.ForeignKey('claims.id'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
    )
    op.create_index('ix_claim_items_claim_id', 'claim_items', ['claim_id'])

    op.create_table(
        'approval_steps',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('claim_id', sa.Integer(), sa.ForeignKey('claims.id'), nullable=False),
        sa.Column('approver_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'APPROVED', 'REJECTED', 'SUPERSEDED', name='approval_step_status'),
            nullable=False,
        ),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('decided_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('claim_id', 'position', name='uq_approval_steps_claim_position'),
        sa.UniqueConstraint('claim_id', 'approver_id', name='uq_approval_steps_claim_approver'),
    )
    op.create_index('ix_approval_steps_claim_id', 'approval_steps', ['claim_id'])
    op.create_index('ix_approval_steps_approver_id', 'approval_steps', ['approver_id'])


def downgrade():
    op.drop_index('ix_approval_steps_approver_id', table_name='approval_steps')
    op.drop_index('ix_approval_steps_claim_id', table_name='approval_steps')
    op.drop_table('approval_steps')
    op.drop_index('ix_claim_items_claim_id', table_name='claim_items')
    op.drop_table('claim_items')
    op.drop_index('ix_claims_current_approver_id', table_name='claims')
    op.drop_index('ix_claims_status', table_name='claims')
    op.drop_index('ix_claims_employee_id', table_name='claims')
    op.drop_index('ix_claims_company_id', table_name='claims')
    op.drop_table('claims')
    op.drop_index('ix_approval_sequences_policy_id', table_name='approval_sequences')
    op.drop_table('approval_sequences')
    op.drop_index('ix_approval_policies_company_id', table_name='approval_policies')
    op.drop_table('approval_policies')
    op.drop_index('ix_users_manager_id', table_name='users')
    op.drop_index('ix_users_company_id', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_table('companies')
