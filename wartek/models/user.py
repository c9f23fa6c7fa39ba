from __future__ import annotations

import datetime as dt
import re

from sqlalchemy import String, Integer, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from wartek.core.db import Base
from wartek.core.errors import ValidationError
from wartek.core.security import hash_password

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8

def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)

    # Always the PBKDF2 digest, never the raw password
    password: Mapped[str] = mapped_column(String, nullable=False)

    google_id: Mapped[str | None] = mapped_column(String, unique=True, nullable=True)
    picture: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, server_default=func.now(), nullable=False
    )

    posts = relationship("Post", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    votes = relationship("Vote", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

    @validates("username")
    def _validate_username(self, key, value):
        if value is None or not str(value).strip():
            raise ValidationError("username is required")
        return str(value).strip()

    @validates("email")
    def _validate_email(self, key, value):
        if value is None or not str(value).strip():
            raise ValidationError("email is required")
        value = str(value).strip()
        if not EMAIL_RE.match(value):
            raise ValidationError("Email format is wrong")
        return value

    @validates("password")
    def _validate_password(self, key, value):
        if value is None or value == "":
            raise ValidationError("password is required")
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return hash_password(value)

    def to_public(self) -> dict:
        data = {"id": self.id, "username": self.username, "email": self.email}
        if self.picture:
            data["picture"] = self.picture
        return data
