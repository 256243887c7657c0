"""Reservations table with one booking per (table, slot).

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the reservations table and its slot uniqueness rule."""
    op.create_table(
        'reservations',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=True),
        sa.Column('user_email', sa.String(length=255), nullable=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('phone', sa.Text(), nullable=False),
        sa.Column('slot', sa.DateTime(), nullable=False),
        sa.Column('guests', sa.Integer(), nullable=False),
        sa.Column('table_number', sa.Integer(), nullable=False),
        sa.Column('whatsapp_opt_in', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            'whatsapp_delivery',
            sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql'),
            nullable=False,
        ),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='booked'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_reservations')),
        sa.UniqueConstraint('table_number', 'slot', name='uq_reservations_table_slot'),
    )

    op.create_index(op.f('ix_reservations_phone'), 'reservations', ['phone'], unique=False)
    op.create_index(op.f('ix_reservations_status'), 'reservations', ['status'], unique=False)
    op.create_index(op.f('ix_reservations_created_at'), 'reservations', ['created_at'], unique=False)
    op.create_index('ix_reservations_slot_table', 'reservations', ['slot', 'table_number'], unique=False)


def downgrade() -> None:
    """Drop the reservations table."""
    op.drop_index('ix_reservations_slot_table', table_name='reservations')
    op.drop_index(op.f('ix_reservations_created_at'), table_name='reservations')
    op.drop_index(op.f('ix_reservations_status'), table_name='reservations')
    op.drop_index(op.f('ix_reservations_phone'), table_name='reservations')
    op.drop_table('reservations')
