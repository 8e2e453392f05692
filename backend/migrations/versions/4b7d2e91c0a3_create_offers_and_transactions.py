"""Create offers and transactions tables

Revision ID: 4b7d2e91c0a3
Revises:
Create Date: 2025-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4b7d2e91c0a3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'offers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('merchant_id', sa.String(length=36), nullable=False),
        sa.Column('mcc_whitelist', sa.JSON(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('min_txn_count', sa.Integer(), nullable=False),
        sa.Column('lookback_days', sa.Integer(), nullable=False),
        sa.Column('starts_at', sa.DateTime(), nullable=False),
        sa.Column('ends_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_offers_merchant_id'), 'offers', ['merchant_id'], unique=False)
    op.create_index('ix_offers_active_window', 'offers', ['active', 'starts_at', 'ends_at'], unique=False)

    op.create_table(
        'transactions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('merchant_id', sa.String(length=36), nullable=False),
        sa.Column('mcc', sa.String(length=4), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('approved_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_transactions_user_id'), 'transactions', ['user_id'], unique=False)
    op.create_index(op.f('ix_transactions_merchant_id'), 'transactions', ['merchant_id'], unique=False)
    op.create_index(op.f('ix_transactions_mcc'), 'transactions', ['mcc'], unique=False)
    op.create_index(op.f('ix_transactions_approved_at'), 'transactions', ['approved_at'], unique=False)
    op.create_index('ix_transactions_user_approved_at', 'transactions', ['user_id', 'approved_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_transactions_user_approved_at', table_name='transactions')
    op.drop_index(op.f('ix_transactions_approved_at'), table_name='transactions')
    op.drop_index(op.f('ix_transactions_mcc'), table_name='transactions')
    op.drop_index(op.f('ix_transactions_merchant_id'), table_name='transactions')
    op.drop_index(op.f('ix_transactions_user_id'), table_name='transactions')
    op.drop_table('transactions')

    op.drop_index('ix_offers_active_window', table_name='offers')
    op.drop_index(op.f('ix_offers_merchant_id'), table_name='offers')
    op.drop_table('offers')
