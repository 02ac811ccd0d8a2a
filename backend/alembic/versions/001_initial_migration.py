"""Initial migration

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create alerts table
    op.create_table(
        'alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('business_id', sa.String(64), nullable=False),
        sa.Column('product_id', sa.String(64), nullable=True),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('risk_level', sa.String(10), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('days_left', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('humidity', sa.Float(), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('quantity', sa.String(64), nullable=True),
        sa.Column('value', sa.String(32), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_alerts_id'), 'alerts', ['id'], unique=False)
    op.create_index(op.f('ix_alerts_business_id'), 'alerts', ['business_id'], unique=False)
    op.create_index(op.f('ix_alerts_product_id'), 'alerts', ['product_id'], unique=False)
    op.create_index(op.f('ix_alerts_risk_level'), 'alerts', ['risk_level'], unique=False)
    op.create_index(op.f('ix_alerts_status'), 'alerts', ['status'], unique=False)

    # Create manager_approvals table
    op.create_table(
        'manager_approvals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('business_id', sa.String(64), nullable=False),
        sa.Column('required_role', sa.String(50), nullable=False),
        sa.Column('approval_type', sa.String(50), nullable=False),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('quantity', sa.String(64), nullable=False, server_default='N/A'),
        sa.Column('location', sa.String(255), nullable=False, server_default='Warehouse'),
        sa.Column('days_left', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('risk_level', sa.String(20), nullable=False, server_default='MEDIUM'),
        sa.Column('ai_suggestion', sa.Text(), nullable=False, server_default=''),
        sa.Column('priority', sa.String(10), nullable=False, server_default='MEDIUM'),
        sa.Column('submitted_by', sa.String(64), nullable=True),
        sa.Column('alert_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('reviewed_by', sa.String(64), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['alert_id'], ['alerts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name='ck_manager_approvals_status')
    )
    op.create_index(op.f('ix_manager_approvals_id'), 'manager_approvals', ['id'], unique=False)
    op.create_index(op.f('ix_manager_approvals_business_id'), 'manager_approvals', ['business_id'], unique=False)
    op.create_index(op.f('ix_manager_approvals_required_role'), 'manager_approvals', ['required_role'], unique=False)
    op.create_index(op.f('ix_manager_approvals_status'), 'manager_approvals', ['status'], unique=False)
    op.create_index('idx_approvals_queue', 'manager_approvals', ['business_id', 'required_role', 'status'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_approvals_queue', table_name='manager_approvals')
    op.drop_index(op.f('ix_manager_approvals_status'), table_name='manager_approvals')
    op.drop_index(op.f('ix_manager_approvals_required_role'), table_name='manager_approvals')
    op.drop_index(op.f('ix_manager_approvals_business_id'), table_name='manager_approvals')
    op.drop_index(op.f('ix_manager_approvals_id'), table_name='manager_approvals')
    op.drop_table('manager_approvals')

    op.drop_index(op.f('ix_alerts_status'), table_name='alerts')
    op.drop_index(op.f('ix_alerts_risk_level'), table_name='alerts')
    op.drop_index(op.f('ix_alerts_product_id'), table_name='alerts')
    op.drop_index(op.f('ix_alerts_business_id'), table_name='alerts')
    op.drop_index(op.f('ix_alerts_id'), table_name='alerts')
    op.drop_table('alerts')
