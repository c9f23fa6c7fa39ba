from __future__ import annotations

import datetime as dt

from sqlalchemy import Integer, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from wartek.core.db import Base

UPVOTE = 1
DOWNVOTE = -1

def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)

class Vote(Base):
    __tablename__ = "votes"
    __table_args__ = (
        # One row per (user, post); toggling deletes it, flipping updates it
        UniqueConstraint("user_id", "post_id", name="uq_votes_user_post"),
        CheckConstraint("value IN (1, -1)", name="ck_votes_value"),
        Index("ix_votes_post_id", "post_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user = relationship("User", back_populates="votes")

    post_id: Mapped[int] = mapped_column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    post = relationship("Post", back_populates="vote_rows")

    value: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, server_default=func.now(), nullable=False
    )
