"""initial draw schema

Revision ID: 0001
Revises:
Create Date: 2025-01-04 08:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "subscribers",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=True),
        sa.Column("is_subscribed", sa.Boolean(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("last_won_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_win_amount", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_subscribers"),
        sa.UniqueConstraint("uid", name="subscribers_uid_key"),
    )
    op.create_table(
        "draw_configurations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("draw_share_percent", sa.Integer(), nullable=False),
        sa.Column("profit_share_percent", sa.Integer(), nullable=False),
        sa.Column("maintenance_share_percent", sa.Integer(), nullable=False),
        sa.Column("winners_per_draw", sa.Integer(), nullable=False),
        sa.Column("minimum_reward_amount", sa.Integer(), nullable=False),
        sa.Column("eligibility_cooldown_days", sa.Integer(), nullable=False),
        sa.Column("preflight_lead_days", sa.Integer(), nullable=False),
        sa.Column("monthly_fee", sa.Integer(), nullable=False),
        sa.Column("is_auto_draw_enabled", sa.Boolean(), nullable=False),
        sa.Column("draw_day_of_week", sa.Integer(), nullable=False),
        sa.Column("draw_hour", sa.Integer(), nullable=False),
        sa.Column("utc_offset_minutes", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_draw_configurations"),
    )
    op.create_table(
        "draws",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("cycle_id", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("drawn_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_pool", sa.Integer(), nullable=False),
        sa.Column("total_revenue", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("config_version", sa.Integer(), nullable=True),
        sa.Column("seed", sa.Text(), nullable=True),
        sa.Column("proof_hash", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_draws"),
        sa.UniqueConstraint("cycle_id", name="draws_cycle_id_key"),
    )
    op.create_table(
        "draw_winners",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("draw_id", sa.Integer(), nullable=False),
        sa.Column("subscriber_id", ID_TYPE, nullable=False),
        sa.Column("prize_amount", sa.Integer(), nullable=False),
        sa.Column("claimed", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(
            ["draw_id"],
            ["draws.id"],
            name="fk_draw_winners_draw_id_draws",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["subscriber_id"],
            ["subscribers.id"],
            name="fk_draw_winners_subscriber_id_subscribers",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_draw_winners"),
        sa.UniqueConstraint(
            "draw_id", "subscriber_id", name="draw_winners_draw_id_subscriber_id_key"
        ),
    )
    op.create_index(
        "ix_draw_winners_draw_id", "draw_winners", ["draw_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_draw_winners_draw_id", table_name="draw_winners")
    op.drop_table("draw_winners")
    op.drop_table("draws")
    op.drop_table("draw_configurations")
    op.drop_table("subscribers")
