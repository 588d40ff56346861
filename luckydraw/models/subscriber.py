from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Integer, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from ..db.utils import as_utc, dt_iso
from ..draw.types import SubscriberSnapshot
from .base import ID_TYPE, Base

if TYPE_CHECKING:
    from .draw import DrawWinner


class Subscriber(Base):
    """A paying member taking part in the weekly draw."""

    def __init__(
        self,
        uid: str,
        email: Optional[str] = None,
        is_subscribed: bool = False,
        is_admin: bool = False,
        last_won_at: Optional[datetime] = None,
        last_win_amount: Optional[int] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        """Create a new :class:`Subscriber` record.

        Parameters
        ----------
        uid : str
            Stable identifier issued by the authentication provider.
        email : str, optional
            Contact address used for winner notifications.
        is_subscribed : bool
            Whether the recurring subscription is currently active.
        is_admin : bool
            Whether the account receives admin notifications.
        last_won_at : datetime, optional
            Moment of the subscriber's most recent win.
        last_win_amount : int, optional
            Prize of the most recent win, in minor units.
        created_at : datetime, optional
            Explicit creation timestamp.
        updated_at : datetime, optional
            Explicit last update timestamp.
        """

        self.uid = uid
        self.email = email
        self.is_subscribed = is_subscribed
        self.is_admin = is_admin
        self.last_won_at = last_won_at
        self.last_win_amount = last_win_amount
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    __tablename__ = "subscribers"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    uid: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_subscribed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_won_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_win_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    wins: Mapped[list["DrawWinner"]] = relationship(back_populates="subscriber")

    def __repr__(self) -> str:
        return (
            f"<Subscriber(id={self.id}, uid='{self.uid}', "
            f"is_subscribed={self.is_subscribed}, last_won_at='{self.last_won_at}')>"
        )

    @validates("email")
    def _normalize_email(self, _key: str, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = value.strip().lower()
        return normalized or None

    @classmethod
    def get_by_uid(cls, session: Session, uid: str) -> Optional["Subscriber"]:
        """Retrieve a subscriber by their uid."""

        return session.scalar(select(cls).where(cls.uid == uid))

    @classmethod
    def all_subscribed(cls, session: Session) -> list["Subscriber"]:
        """Return every subscriber with an active subscription, oldest first."""

        stmt = select(cls).where(cls.is_subscribed.is_(True)).order_by(cls.id.asc())
        return list(session.scalars(stmt).all())

    @classmethod
    def admin_emails(cls, session: Session) -> list[str]:
        """Return the contact addresses of admin accounts."""

        stmt = select(cls.email).where(
            cls.is_admin.is_(True), cls.email.isnot(None)
        ).order_by(cls.id.asc())
        return [email for email in session.scalars(stmt).all() if email]

    def to_snapshot(self) -> SubscriberSnapshot:
        """Return the read-only view handed to the draw engine."""

        return SubscriberSnapshot(
            id=self.uid,
            email=self.email,
            is_subscribed=bool(self.is_subscribed),
            last_won_at=as_utc(self.last_won_at),
        )

    def record_win(self, won_at: datetime, amount: int) -> None:
        """Start the cooldown window from ``won_at``."""

        self.last_won_at = as_utc(won_at)
        self.last_win_amount = amount

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "uid": self.uid,
            "email": self.email,
            "is_subscribed": self.is_subscribed,
            "is_admin": self.is_admin,
            "last_won_at": dt_iso(self.last_won_at),
            "last_win_amount": self.last_win_amount,
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
        }
