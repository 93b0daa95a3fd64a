"""companies, roles, departments, users

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-16

"""

from alembic import op
import sqlalchemy as sa


revision = 'a1b2c3d4e5f6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('time_zone', sa.String(length=64), nullable=False, server_default='UTC'),
        sa.Column('work_week_start', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('default_shift_duration', sa.Integer(), nullable=False, server_default='8'),
        sa.Column('allow_shift_swapping', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('require_manager_approval', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'roles',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('name', sa.String(length=80), nullable=False),
        sa.Column('display_name', sa.String(length=120), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('role_class', sa.String(length=20), nullable=False, server_default='employee'),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('is_system_defined', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('company_id', 'name', name='uq_role_company_name'),
    )
    op.create_index('ix_roles_company_id', 'roles', ['company_id'], unique=False)

    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        # FK a users se agrega después (dependencia circular)
        sa.Column('manager_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('company_id', 'name', name='uq_department_company_name'),
    )
    op.create_index('ix_departments_company_id', 'departments', ['company_id'], unique=False)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=180), nullable=False),
        sa.Column('full_name', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role_id', sa.String(length=64), sa.ForeignKey('roles.id'), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=True),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('job_title', sa.String(length=120), nullable=True),
        sa.Column('phone_number', sa.String(length=40), nullable=True),
        sa.Column('avatar', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role_id', 'users', ['role_id'], unique=False)
    op.create_index('ix_users_company_id', 'users', ['company_id'], unique=False)

    with op.batch_alter_table('departments') as batch_op:
        batch_op.create_foreign_key('fk_departments_manager_id', 'users', ['manager_id'], ['id'])


def downgrade():
    with op.batch_alter_table('departments') as batch_op:
        batch_op.drop_constraint('fk_departments_manager_id', type_='foreignkey')

    op.drop_index('ix_users_company_id', table_name='users')
    op.drop_index('ix_users_role_id', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    op.drop_index('ix_departments_company_id', table_name='departments')
    op.drop_table('departments')

    op.drop_index('ix_roles_company_id', table_name='roles')
    op.drop_table('roles')

    op.drop_table('companies')
