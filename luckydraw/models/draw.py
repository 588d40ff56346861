"""Database models for persisted draw records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import as_utc, dt_iso
from ..draw.commands import Allocation, DrawRecord
from .base import ID_TYPE, Base

if TYPE_CHECKING:
    from .subscriber import Subscriber


class DrawRecordRow(Base):
    """Stored outcome of one draw cycle, successful or failed."""

    __tablename__ = "draws"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key; the storage id attached to a :class:`DrawRecord`."""

    cycle_id: Mapped[str] = mapped_column(String(16), nullable=False)
    """ISO week of the cycle. One record per cycle."""

    status: Mapped[str] = mapped_column(String(20), nullable=False)
    """``"completed"`` or ``"failed"``."""

    drawn_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_pool: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_revenue: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Failure reason shown to admins."""

    config_version: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    seed: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Seed the cycle was drawn with, kept verbatim for replays."""
    proof_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    winners: Mapped[list["DrawWinner"]] = relationship(
        back_populates="draw",
        cascade="all, delete-orphan",
        order_by="DrawWinner.id",
    )

    __table_args__ = (UniqueConstraint("cycle_id", name="draws_cycle_id_key"),)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<DrawRecordRow(id={self.id}, cycle_id='{self.cycle_id}', "
            f"status='{self.status}', total_pool={self.total_pool})>"
        )

    @classmethod
    def get_by_cycle_id(cls, session: Session, cycle_id: str) -> Optional["DrawRecordRow"]:
        """Return the record stored for ``cycle_id`` if the cycle already ran."""

        return session.scalar(select(cls).where(cls.cycle_id == cycle_id))

    @classmethod
    def recent(cls, session: Session, limit: int = 10) -> list["DrawRecordRow"]:
        """Return the latest records, newest first."""

        stmt = select(cls).order_by(cls.drawn_at.desc(), cls.id.desc()).limit(limit)
        return list(session.scalars(stmt).all())

    @classmethod
    def from_record(cls, session: Session, record: DrawRecord) -> "DrawRecordRow":
        """Build a row (and its winner rows) from an engine record.

        Raises
        ------
        ValueError
            If an allocation references a subscriber that is not stored.
        """
        from .subscriber import Subscriber

        row = cls()
        row.cycle_id = record.cycle_id
        row.status = record.status
        row.drawn_at = as_utc(record.drawn_at)
        row.total_pool = record.total_pool
        row.total_revenue = record.total_revenue
        row.reason = record.reason
        row.config_version = record.config_version
        row.seed = record.seed
        row.proof_hash = record.proof_hash

        # Pending winner rows must not be flushed by the lookups below.
        with session.no_autoflush:
            for allocation in record.allocations:
                subscriber = Subscriber.get_by_uid(session, allocation.subscriber_id)
                if subscriber is None:
                    raise ValueError(
                        f"Unknown subscriber '{allocation.subscriber_id}' in draw {record.cycle_id}"
                    )
                row.winners.append(
                    DrawWinner(subscriber=subscriber, prize_amount=allocation.prize_amount)
                )
        return row

    def to_record(self) -> DrawRecord:
        """Return the immutable engine view of this row."""

        return DrawRecord(
            cycle_id=self.cycle_id,
            drawn_at=as_utc(self.drawn_at),
            status=self.status,
            total_pool=self.total_pool,
            total_revenue=self.total_revenue,
            allocations=tuple(
                Allocation(
                    subscriber_id=winner.subscriber.uid,
                    prize_amount=winner.prize_amount,
                    email=winner.subscriber.email,
                )
                for winner in self.winners
            ),
            reason=self.reason,
            config_version=self.config_version,
            seed=self.seed,
            proof_hash=self.proof_hash,
        )

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "cycle_id": self.cycle_id,
            "status": self.status,
            "drawn_at": dt_iso(self.drawn_at),
            "total_pool": self.total_pool,
            "total_revenue": self.total_revenue,
            "reason": self.reason,
            "config_version": self.config_version,
            "proof_hash": self.proof_hash,
            "winners": [winner.to_json() for winner in self.winners],
        }


class DrawWinner(Base):
    """Prize won by one subscriber in one draw."""

    __tablename__ = "draw_winners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    draw_id: Mapped[int] = mapped_column(
        ForeignKey("draws.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subscriber_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("subscribers.id", ondelete="RESTRICT"), nullable=False
    )
    prize_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    draw: Mapped["DrawRecordRow"] = relationship(back_populates="winners")
    subscriber: Mapped["Subscriber"] = relationship(back_populates="wins")

    __table_args__ = (
        UniqueConstraint(
            "draw_id", "subscriber_id", name="draw_winners_draw_id_subscriber_id_key"
        ),
    )

    def to_json(self) -> dict:
        return {
            "subscriber_uid": self.subscriber.uid if self.subscriber else None,
            "prize_amount": self.prize_amount,
            "claimed": self.claimed,
        }
