"""create password resets audit table

Revision ID: createpasswordresetsaudit
Revises:
Create Date: 2026-10-19 00:00:00.000000

The ``users`` table belongs to the account service and is not managed here.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = 'createpasswordresetsaudit'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'password_resets_audit',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('correlation_id', sa.String(length=64), nullable=False),
        sa.Column('account_id', sa.String(length=64), nullable=True),
        sa.Column('request_ip', sa.String(length=64), nullable=True),
        sa.Column('outcome', sa.String(length=50), nullable=False),
        sa.Column(
            'meta',
            sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'),
            nullable=False,
        ),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_password_resets_audit_correlation_id', 'password_resets_audit', ['correlation_id']
    )
    op.create_index('ix_password_resets_audit_account_id', 'password_resets_audit', ['account_id'])
    op.create_index(
        'ix_password_resets_audit_requested_at', 'password_resets_audit', ['requested_at']
    )


def downgrade() -> None:
    op.drop_index('ix_password_resets_audit_requested_at', table_name='password_resets_audit')
    op.drop_index('ix_password_resets_audit_account_id', table_name='password_resets_audit')
    op.drop_index('ix_password_resets_audit_correlation_id', table_name='password_resets_audit')
    op.drop_table('password_resets_audit')
