"""create merchants and schedule tables

Revision ID: 0001_store_hours
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_store_hours'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _updated_at() -> sa.Column:
    return sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def upgrade() -> None:
    op.create_table(
        'merchants',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False, server_default='Australia/Sydney'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_open', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_manual_override', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_per_day_mode_schedule_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_scheduled_order_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_dine_in_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_takeaway_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_delivery_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('dine_in_schedule_start', sa.String(length=5)),
        sa.Column('dine_in_schedule_end', sa.String(length=5)),
        sa.Column('takeaway_schedule_start', sa.String(length=5)),
        sa.Column('takeaway_schedule_end', sa.String(length=5)),
        sa.Column('delivery_schedule_start', sa.String(length=5)),
        sa.Column('delivery_schedule_end', sa.String(length=5)),
        sa.Column('latitude', sa.Float()),
        sa.Column('longitude', sa.Float()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        _updated_at(),
        sa.UniqueConstraint('code', name='uq_merchants_code'),
    )

    op.create_table(
        'merchant_opening_hours',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('merchant_id', sa.BigInteger(), sa.ForeignKey('merchants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('open_time', sa.String(length=5)),
        sa.Column('close_time', sa.String(length=5)),
        sa.Column('is_closed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_24_hours', sa.Boolean(), nullable=False, server_default=sa.false()),
        _updated_at(),
        sa.UniqueConstraint('merchant_id', 'day_of_week', name='uq_opening_hours_merchant_day'),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_opening_hours_day_of_week'),
    )

    op.create_table(
        'merchant_mode_schedules',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('merchant_id', sa.BigInteger(), sa.ForeignKey('merchants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('mode', sa.String(length=16), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        _updated_at(),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_mode_schedules_day_of_week'),
    )
    op.create_index(
        'ix_mode_schedules_merchant_mode_day',
        'merchant_mode_schedules',
        ['merchant_id', 'mode', 'day_of_week'],
    )

    op.create_table(
        'merchant_special_hours',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('merchant_id', sa.BigInteger(), sa.ForeignKey('merchants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('name', sa.String(length=120)),
        sa.Column('is_closed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('open_time', sa.String(length=5)),
        sa.Column('close_time', sa.String(length=5)),
        sa.Column('is_dine_in_enabled', sa.Boolean()),
        sa.Column('is_takeaway_enabled', sa.Boolean()),
        sa.Column('is_delivery_enabled', sa.Boolean()),
        sa.Column('dine_in_start_time', sa.String(length=5)),
        sa.Column('dine_in_end_time', sa.String(length=5)),
        sa.Column('takeaway_start_time', sa.String(length=5)),
        sa.Column('takeaway_end_time', sa.String(length=5)),
        sa.Column('delivery_start_time', sa.String(length=5)),
        sa.Column('delivery_end_time', sa.String(length=5)),
        _updated_at(),
        sa.UniqueConstraint('merchant_id', 'date', name='uq_special_hours_merchant_date'),
    )


def downgrade() -> None:
    op.drop_table('merchant_special_hours')
    op.drop_index('ix_mode_schedules_merchant_mode_day', table_name='merchant_mode_schedules')
    op.drop_table('merchant_mode_schedules')
    op.drop_table('merchant_opening_hours')
    op.drop_table('merchants')
