"""create_payment_events_table

Revision ID: a3c5e7f9b1d2
Revises:
Create Date: 2026-10-19 09:12:44.318027

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a3c5e7f9b1d2'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('payment_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('transaction_key', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_grace_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('next_schedule_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('next_schedule_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('transaction_key', 'status', name='uq_payment_events_transaction_status')
    )
    op.create_index('ix_payment_events_transaction_key', 'payment_events', ['transaction_key'], unique=False)
    op.create_index('ix_payment_events_created_at', 'payment_events', ['created_at'], unique=False)


def downgrade():
    op.drop_index('ix_payment_events_created_at', table_name='payment_events')
    op.drop_index('ix_payment_events_transaction_key', table_name='payment_events')
    op.drop_table('payment_events')
