from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rsvp.app.db.base import Base
from rsvp.app.services.rsvp_validator import GuestStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Invite(Base):
    """One household or party, identified by a shareable code."""

    __tablename__ = "invites"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    invite_code: Mapped[str] = mapped_column(String(16), unique=True, index=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    guests: Mapped[list["Guest"]] = relationship(
        back_populates="invite",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Guest.name",
    )

    @property
    def has_response(self) -> bool:
        """True once any guest on the invite has answered."""
        return any(g.status != GuestStatus.UNSELECTED.value for g in self.guests)


class Guest(Base):
    __tablename__ = "guests"
    __table_args__ = (
        Index("idx_guests_invite", "invite_id"),
        Index("idx_guests_name", "name"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    invite_id: Mapped[str] = mapped_column(ForeignKey("invites.id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(String(100))
    status: Mapped[str] = mapped_column(String(20), default=GuestStatus.UNSELECTED.value)
    diet_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    invite: Mapped[Invite] = relationship(back_populates="guests")
