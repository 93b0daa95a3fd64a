"""schedule_requests (time off + shift swaps)

Revision ID: b7c8d9e0f1a2
Revises: a1b2c3d4e5f6
Create Date: 2026-10-16

"""

from alembic import op
import sqlalchemy as sa


revision = 'b7c8d9e0f1a2'
down_revision = 'a1b2c3d4e5f6'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'schedule_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('requester_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('leave_type', sa.String(length=40), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('target_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('shift_date', sa.Date(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('reviewed_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_schedule_requests_company_id', 'schedule_requests', ['company_id'], unique=False)
    op.create_index('ix_schedule_requests_requester_id', 'schedule_requests', ['requester_id'], unique=False)
    op.create_index('ix_schedule_requests_kind', 'schedule_requests', ['kind'], unique=False)
    op.create_index('ix_schedule_requests_status', 'schedule_requests', ['status'], unique=False)


def downgrade():
    op.drop_index('ix_schedule_requests_status', table_name='schedule_requests')
    op.drop_index('ix_schedule_requests_kind', table_name='schedule_requests')
    op.drop_index('ix_schedule_requests_requester_id', table_name='schedule_requests')
    op.drop_index('ix_schedule_requests_company_id', table_name='schedule_requests')
    op.drop_table('schedule_requests')
