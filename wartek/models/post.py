from __future__ import annotations

import datetime as dt

from sqlalchemy import String, Integer, DateTime, ForeignKey, Text, JSON, func
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from wartek.core.db import Base
from wartek.core.errors import ValidationError

def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)

def _isoformat(value: dt.datetime | None) -> str | None:
    if value is None:
        return None
    # sqlite hands back naive datetimes, they are stored in UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.isoformat()

class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String, nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Net of the last recomputed tally, responses use the live aggregate
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    # [{name, confidence, source}], at most 3, confidence desc
    categories: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user = relationship("User", back_populates="posts")

    vote_rows = relationship("Vote", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, server_default=func.now(), nullable=False
    )

    @validates("title", "description")
    def _validate_required_text(self, key, value):
        if value is None or not str(value).strip():
            raise ValidationError(f"{key} is required")
        return value

    def to_dict(self, tally=None, include_user: bool = True) -> dict:
        # counts come from the vote rows; the stored votes column is never reported
        upvotes = tally.upvotes if tally else 0
        downvotes = tally.downvotes if tally else 0
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "summary": self.summary,
            "categories": list(self.categories or []),
            "votes": upvotes - downvotes,
            "upvotes": upvotes,
            "downvotes": downvotes,
            "userId": self.user_id,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }
        if include_user and self.user is not None:
            data["User"] = {"id": self.user.id, "username": self.user.username, "email": self.user.email}
        return data
