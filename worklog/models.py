from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import SQLModel, Field


def to_utc(dt: datetime) -> datetime:
    """Aware -> UTC; naive values are taken to already be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands datetimes back naive; everything is stored as UTC
    return to_utc(dt) if dt is not None else None


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(primary_key=True, index=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    created_at: datetime


class AuthToken(SQLModel, table=True):
    __tablename__ = "auth_tokens"

    token: str = Field(primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    created_at: datetime


class WorkSession(SQLModel, table=True):
    __tablename__ = "work_sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    check_in: datetime = Field(index=True)
    check_out: Optional[datetime] = None
    total_hours: Optional[float] = None


class WorkSessionRead(SQLModel):
    id: int
    user_id: str
    check_in: datetime
    check_out: Optional[datetime] = None
    total_hours: Optional[float] = None

    @classmethod
    def from_row(cls, row: WorkSession) -> "WorkSessionRead":
        return cls(
            id=row.id,
            user_id=row.user_id,
            check_in=as_utc(row.check_in),
            check_out=as_utc(row.check_out),
            total_hours=row.total_hours,
        )
