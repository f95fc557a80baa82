"""Create OKR tracking tables

Revision ID: 20251106_okr
Revises:
Create Date: 2025-11-06 14:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20251106_okr'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Directorio de usuarios
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='employee'),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('position', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_role'), 'users', ['role'], unique=False)

    # KPIs (el progreso que consumen los objetivos)
    op.create_table('kpis',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('quarter', sa.String(length=10), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('target_value', sa.String(length=100), nullable=True),
        sa.Column('current_value', sa.String(length=100), nullable=True),
        sa.Column('progress_percentage', sa.Float(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_kpis_user_id'), 'kpis', ['user_id'], unique=False)
    op.create_index(op.f('ix_kpis_year'), 'kpis', ['year'], unique=False)
    op.create_index(op.f('ix_kpis_quarter'), 'kpis', ['quarter'], unique=False)
    op.create_index(op.f('ix_kpis_status'), 'kpis', ['status'], unique=False)

    # Objetivos (árbol por parent_id)
    op.create_table('objectives',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('level', sa.String(length=20), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('quarter', sa.String(length=10), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('progress_percentage', sa.Float(), nullable=False, server_default='0.0'),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['parent_id'], ['objectives.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_objectives_parent_id'), 'objectives', ['parent_id'], unique=False)
    op.create_index(op.f('ix_objectives_owner_id'), 'objectives', ['owner_id'], unique=False)
    op.create_index(op.f('ix_objectives_level'), 'objectives', ['level'], unique=False)
    op.create_index(op.f('ix_objectives_year'), 'objectives', ['year'], unique=False)
    op.create_index(op.f('ix_objectives_quarter'), 'objectives', ['quarter'], unique=False)
    op.create_index(op.f('ix_objectives_status'), 'objectives', ['status'], unique=False)

    # Vínculos ponderados objetivo-KPI
    op.create_table('objective_kpi_links',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('objective_id', sa.Integer(), nullable=False),
        sa.Column('kpi_id', sa.Integer(), nullable=False),
        sa.Column('weight', sa.Float(), nullable=False, server_default='1.0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.ForeignKeyConstraint(['objective_id'], ['objectives.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['kpi_id'], ['kpis.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('objective_id', 'kpi_id', name='uq_objective_kpi')
    )
    op.create_index(op.f('ix_objective_kpi_links_objective_id'), 'objective_kpi_links', ['objective_id'], unique=False)
    op.create_index(op.f('ix_objective_kpi_links_kpi_id'), 'objective_kpi_links', ['kpi_id'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_objective_kpi_links_kpi_id'), table_name='objective_kpi_links')
    op.drop_index(op.f('ix_objective_kpi_links_objective_id'), table_name='objective_kpi_links')
    op.drop_table('objective_kpi_links')

    op.drop_index(op.f('ix_objectives_status'), table_name='objectives')
    op.drop_index(op.f('ix_objectives_quarter'), table_name='objectives')
    op.drop_index(op.f('ix_objectives_year'), table_name='objectives')
    op.drop_index(op.f('ix_objectives_level'), table_name='objectives')
    op.drop_index(op.f('ix_objectives_owner_id'), table_name='objectives')
    op.drop_index(op.f('ix_objectives_parent_id'), table_name='objectives')
    op.drop_table('objectives')

    op.drop_index(op.f('ix_kpis_status'), table_name='kpis')
    op.drop_index(op.f('ix_kpis_quarter'), table_name='kpis')
    op.drop_index(op.f('ix_kpis_year'), table_name='kpis')
    op.drop_index(op.f('ix_kpis_user_id'), table_name='kpis')
    op.drop_table('kpis')

    op.drop_index(op.f('ix_users_role'), table_name='users')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
