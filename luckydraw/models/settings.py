"""Stored draw configuration and schedule."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from ..draw.errors import InvalidConfiguration
from ..draw.types import DrawConfig
from .base import Base


def check_share_split(
    draw_share_percent: int,
    profit_share_percent: int,
    maintenance_share_percent: int,
) -> None:
    """Validate the revenue split before it is saved.

    Raises
    ------
    InvalidConfiguration
        If any share is negative or the shares do not add up to 100.
    """
    shares = {
        "draw": draw_share_percent,
        "profit": profit_share_percent,
        "maintenance": maintenance_share_percent,
    }
    for name, value in shares.items():
        if value < 0:
            raise InvalidConfiguration(f"{name} share percent must be non-negative")
    total = sum(shares.values())
    if total != 100:
        raise InvalidConfiguration(f"share percents must sum to 100, got {total}")


class DrawConfiguration(Base):
    """Versioned configuration row; the newest row applies to the next cycle."""

    __tablename__ = "draw_configurations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key, doubling as the configuration version."""

    draw_share_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    profit_share_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    maintenance_share_percent: Mapped[int] = mapped_column(
        Integer, nullable=False, default=20
    )
    winners_per_draw: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    minimum_reward_amount: Mapped[int] = mapped_column(
        Integer, nullable=False, default=500
    )
    """Guaranteed prize floor, in minor units."""

    eligibility_cooldown_days: Mapped[int] = mapped_column(
        Integer, nullable=False, default=21
    )
    preflight_lead_days: Mapped[int] = mapped_column(Integer, nullable=False, default=5)

    monthly_fee: Mapped[int] = mapped_column(Integer, nullable=False, default=3000)
    """Per-subscriber monthly fee in minor units, used to derive revenue."""

    is_auto_draw_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    draw_day_of_week: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    """Weekday of the draw, ``0`` for Monday. Defaults to Saturday."""

    draw_hour: Mapped[int] = mapped_column(Integer, nullable=False, default=8)
    utc_offset_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=330
    )
    """Offset of the schedule timezone from UTC. Defaults to IST."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __init__(
        self,
        *,
        draw_share_percent: int = 50,
        profit_share_percent: int = 30,
        maintenance_share_percent: int = 20,
        winners_per_draw: int = 3,
        minimum_reward_amount: int = 500,
        eligibility_cooldown_days: int = 21,
        preflight_lead_days: int = 5,
        monthly_fee: int = 3000,
        is_auto_draw_enabled: bool = True,
        draw_day_of_week: int = 5,
        draw_hour: int = 8,
        utc_offset_minutes: int = 330,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.draw_share_percent = draw_share_percent
        self.profit_share_percent = profit_share_percent
        self.maintenance_share_percent = maintenance_share_percent
        self.winners_per_draw = winners_per_draw
        self.minimum_reward_amount = minimum_reward_amount
        self.eligibility_cooldown_days = eligibility_cooldown_days
        self.preflight_lead_days = preflight_lead_days
        self.monthly_fee = monthly_fee
        self.is_auto_draw_enabled = is_auto_draw_enabled
        self.draw_day_of_week = draw_day_of_week
        self.draw_hour = draw_hour
        self.utc_offset_minutes = utc_offset_minutes
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<DrawConfiguration(id={self.id}, split={self.draw_share_percent}/"
            f"{self.profit_share_percent}/{self.maintenance_share_percent}, "
            f"winners={self.winners_per_draw})>"
        )

    @classmethod
    def latest(cls, session: Session) -> Optional["DrawConfiguration"]:
        """Return the most recently stored configuration."""

        return session.scalars(select(cls).order_by(cls.id.desc())).first()

    def validate(self) -> None:
        """Check the values an admin is allowed to save."""

        check_share_split(
            self.draw_share_percent,
            self.profit_share_percent,
            self.maintenance_share_percent,
        )
        if self.winners_per_draw <= 0:
            raise InvalidConfiguration("winners per draw must be positive")
        if self.minimum_reward_amount <= 0:
            raise InvalidConfiguration("minimum reward must be positive")
        if self.eligibility_cooldown_days < 0:
            raise InvalidConfiguration("eligibility cooldown days must be non-negative")
        if self.preflight_lead_days <= 0:
            raise InvalidConfiguration("preflight lead days must be positive")
        if not 0 <= self.draw_day_of_week <= 6:
            raise InvalidConfiguration("draw day of week must be between 0 and 6")
        if not 0 <= self.draw_hour <= 23:
            raise InvalidConfiguration("draw hour must be between 0 and 23")

    @property
    def schedule_tz(self) -> timezone:
        return timezone(timedelta(minutes=self.utc_offset_minutes))

    def to_config(self) -> DrawConfig:
        """Return the immutable engine configuration for one cycle."""

        return DrawConfig(
            draw_share_percent=self.draw_share_percent,
            profit_share_percent=self.profit_share_percent,
            maintenance_share_percent=self.maintenance_share_percent,
            winners_per_draw=self.winners_per_draw,
            minimum_reward_amount=self.minimum_reward_amount,
            eligibility_cooldown_days=self.eligibility_cooldown_days,
            preflight_lead_days=self.preflight_lead_days,
            version=self.id,
        )
