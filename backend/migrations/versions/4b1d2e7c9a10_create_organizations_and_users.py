"""create organizations and users

Revision ID: 4b1d2e7c9a10
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '4b1d2e7c9a10'
down_revision = None
branch_labels = None
depends_on = None

ORG_STATUS = ('pending', 'approved', 'rejected')
USER_ROLE = ('admin', 'researcher', 'staff', 'superadmin')


def upgrade():
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column(
            'status',
            sa.Enum(*ORG_STATUS, name='org_status', native_enum=False),
            nullable=False,
        ),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_organizations'),
        sa.UniqueConstraint('name', name='uq_organizations_name'),
    )
    op.create_index('ix_organizations_status', 'organizations', ['status'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('password_hash', sa.String(length=254), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column(
            'role',
            sa.Enum(*USER_ROLE, name='user_role', native_enum=False),
            nullable=False,
        ),
        sa.Column('org_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('refresh_tokens', sa.JSON(), nullable=False),
        sa.Column('token_list_version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ['org_id'],
            ['organizations.id'],
            name='fk_users_org_id_organizations',
            ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_org_id', 'users', ['org_id'])


def downgrade():
    op.drop_index('ix_users_org_id', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_index('ix_organizations_status', table_name='organizations')
    op.drop_table('organizations')
