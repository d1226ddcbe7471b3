"""
Work sessions: the owner-scoped session table (select, insert, update,
delete) and summary stats.
"""
from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlmodel import Session, select

from worklog.db import get_session
from worklog.metrics import hours_of
from worklog.models import User, WorkSession, WorkSessionRead, as_utc, to_utc
from worklog.routers.auth import require_user

router = APIRouter(prefix="/api", tags=["sessions"])


class SessionCreate(BaseModel):
    check_in: datetime
    check_out: Optional[datetime] = None
    total_hours: Optional[float] = None
    user_id: Optional[str] = None


class SessionUpdate(BaseModel):
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    total_hours: Optional[float] = None


def _check_owner(user_id: str | None, user: User) -> None:
    if user_id is not None and user_id != user.id:
        raise HTTPException(status_code=403, detail="Cannot access another user's sessions")


def _check_order(check_in: datetime, check_out: datetime | None) -> None:
    if check_out is not None and check_out <= check_in:
        raise HTTPException(status_code=422, detail="check_out must be after check_in")


def _get_owned(db: Session, session_id: int, user: User) -> WorkSession:
    statement = select(WorkSession).where(
        WorkSession.id == session_id, WorkSession.user_id == user.id
    )
    row = db.exec(statement).one_or_none()
    if not row:
        raise HTTPException(status_code=404, detail="Session not found")
    return row


@router.get("/sessions", response_model=list[WorkSessionRead])
def list_sessions(
    user_id: str,
    order: Literal["asc", "desc"] = "asc",
    limit: Optional[int] = None,
    db: Session = Depends(get_session),
    user: User = Depends(require_user),
):
    """All sessions of the owner, ordered by check_in."""
    _check_owner(user_id, user)
    column = WorkSession.check_in.asc() if order == "asc" else WorkSession.check_in.desc()
    statement = select(WorkSession).where(WorkSession.user_id == user.id).order_by(column)
    if limit is not None:
        statement = statement.limit(limit)
    return [WorkSessionRead.from_row(s) for s in db.exec(statement).all()]


@router.post("/sessions", response_model=WorkSessionRead)
def insert_session(
    req: SessionCreate,
    db: Session = Depends(get_session),
    user: User = Depends(require_user),
):
    """Insert a row. Without check_out the session is open."""
    _check_owner(req.user_id, user)
    check_in = to_utc(req.check_in)
    check_out = as_utc(req.check_out)
    _check_order(check_in, check_out)
    row = WorkSession(
        user_id=user.id,
        check_in=check_in,
        check_out=check_out,
        total_hours=req.total_hours,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return WorkSessionRead.from_row(row)


@router.patch("/sessions/{session_id}", response_model=WorkSessionRead)
def update_session(
    session_id: int,
    req: SessionUpdate,
    db: Session = Depends(get_session),
    user: User = Depends(require_user),
):
    """Apply the supplied fields only."""
    row = _get_owned(db, session_id, user)
    fields = req.model_dump(exclude_unset=True)
    for key in ("check_in", "check_out"):
        if fields.get(key) is not None:
            fields[key] = to_utc(fields[key])
    if fields.get("check_in") is None:
        fields.pop("check_in", None)

    check_in = fields.get("check_in", as_utc(row.check_in))
    check_out = fields["check_out"] if "check_out" in fields else as_utc(row.check_out)
    _check_order(check_in, check_out)

    for key, value in fields.items():
        setattr(row, key, value)
    db.add(row)
    db.commit()
    db.refresh(row)
    return WorkSessionRead.from_row(row)


@router.delete("/sessions/{session_id}", status_code=204)
def delete_session(
    session_id: int,
    db: Session = Depends(get_session),
    user: User = Depends(require_user),
):
    row = _get_owned(db, session_id, user)
    db.delete(row)
    db.commit()
    return Response(status_code=204)


# --- Stats ---


@router.get("/stats")
def get_stats(
    db: Session = Depends(get_session),
    user: User = Depends(require_user),
):
    """Totals for this user: all-time and today (UTC)."""
    statement = select(WorkSession).where(WorkSession.user_id == user.id)
    sessions = [WorkSessionRead.from_row(s) for s in db.exec(statement).all()]

    today = datetime.now(timezone.utc).date()

    total_hours = 0.0
    today_hours = 0.0
    open_sessions = 0

    for s in sessions:
        if s.check_out is None:
            open_sessions += 1
        hours = hours_of(s)
        total_hours += hours
        if s.check_in.date() == today:
            today_hours += hours

    return {
        "total_sessions": len(sessions),
        "open_sessions": open_sessions,
        "total_hours": round(total_hours, 2),
        "today_hours": round(today_hours, 2),
    }
