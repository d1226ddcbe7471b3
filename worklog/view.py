"""
Session dashboard state.

``SessionView`` owns everything the dashboard shows: the signed-in identity,
the mirrored list of the owner's sessions, the running session and its timer,
the inline edit form and the status message. Pages render from it and call
its actions; all durable changes go through the store, after which the list
is re-fetched.

    async with SessionStore() as store, SessionView(store, confirm=ask) as view:
        await view.start()
        ...
        await view.end()
"""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from worklog.client import AuthError, Identity, SessionStore, StoreError, Subscription, WorkSession
from worklog.dates import (
    format_datetime,
    format_elapsed,
    now_utc,
    parse_datetime,
    to_editable_text,
)
from worklog.metrics import duration_between, hours_of, total_hours
from worklog.timer import Timer

logger = logging.getLogger(__name__)

Confirm = Callable[[str], Union[bool, Awaitable[bool]]]

DELETE_PROMPT = "Are you sure you want to delete this session?"
INVALID_DATES = "Invalid dates. Use a valid format (e.g. 2025-09-23T18:30 or 2025-09-23 18:30)."
CHECKOUT_BEFORE_CHECKIN = "The check-out must be after the check-in."


class ViewState(str, Enum):
    NO_USER = "no_user"
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class SessionRow:
    """One table row, already formatted for display."""

    id: int
    status: str
    check_in: str
    check_out: str
    duration: str
    editable: bool
    editing: bool
    saving: bool


@dataclass
class Summary:
    sessions: int
    total_hours: float


def _validated_range(start_text: str, end_text: str) -> tuple[datetime, datetime] | str:
    """Parsed (start, end), or the message explaining why the input is rejected."""
    start = parse_datetime(start_text)
    end = parse_datetime(end_text)
    if start is None or end is None:
        return INVALID_DATES
    if end <= start:
        return CHECKOUT_BEFORE_CHECKIN
    return start, end


class SessionView:
    """Dashboard state machine: NO_USER -> IDLE <-> RUNNING."""

    def __init__(
        self,
        store: SessionStore,
        *,
        confirm: Confirm,
        clock: Callable[[], datetime] = now_utc,
        on_tick: Optional[Callable[[int], None]] = None,
        tick_interval: float = 1.0,
    ):
        self.store = store
        self.confirm = confirm
        self.clock = clock
        self.timer = Timer(clock=clock, interval=tick_interval, on_tick=on_tick)

        self.identity: Optional[Identity] = None
        self.sessions: list[WorkSession] = []
        self.active: Optional[WorkSession] = None
        self.message = ""

        self.editing_id: Optional[int] = None
        self.edit_check_in = ""
        self.edit_check_out = ""
        self.saving_id: Optional[int] = None

        self._subscription: Optional[Subscription] = None

    # --- lifecycle ---

    async def __aenter__(self) -> "SessionView":
        self._subscription = self.store.on_identity_change(self._on_identity_change)
        try:
            identity = await self.store.get_current_identity()
            if identity:
                await self.attach(identity)
        except BaseException:
            await self.teardown()
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.teardown()

    async def teardown(self) -> None:
        """Drop the identity listener and stop the timer."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        await self.timer.aclose()

    async def _on_identity_change(self, event: str, identity: Optional[Identity]) -> None:
        logger.debug("Identity event %s", event)
        if identity is None:
            self.identity = None
            self.clear()
        else:
            await self.attach(identity)

    async def attach(self, identity: Identity) -> None:
        """Adopt ``identity`` and load its sessions."""
        self.identity = identity
        await self.refresh()

    @property
    def state(self) -> ViewState:
        if self.identity is None:
            return ViewState.NO_USER
        if self.active is not None:
            return ViewState.RUNNING
        return ViewState.IDLE

    @property
    def elapsed(self) -> int:
        return self.timer.elapsed

    @property
    def elapsed_text(self) -> str:
        return format_elapsed(self.timer.elapsed)

    def clear(self) -> None:
        """Forget all session state (list, running session, edit form)."""
        self._stop_timer()
        self.sessions = []
        self.cancel_edit()
        self.saving_id = None

    async def refresh(self) -> None:
        """Replace the list with the store's rows for the current owner."""
        owner = self.identity
        if owner is None:
            return
        try:
            sessions = await self.store.select_sessions(owner.id, ascending=True)
        except StoreError as e:
            logger.error("Error fetching work sessions: %s", e)
            self.message = f"Error loading sessions: {e}"
            return

        # signed out or switched user while the fetch was in flight
        if self.identity is None or self.identity.id != owner.id:
            logger.debug("Dropping stale fetch for %s", owner.id)
            return

        self.sessions = sessions
        ongoing = next((s for s in sessions if s.check_out is None), None)
        if ongoing is None:
            self._stop_timer()
        elif self.active is None or self.active.id != ongoing.id:
            self._start_timer(ongoing)
        else:
            self.active = ongoing

    def _start_timer(self, session: WorkSession) -> None:
        self.active = session
        self.timer.start(session)

    def _stop_timer(self) -> None:
        self.timer.stop()
        self.active = None

    # --- auth ---

    async def sign_in(self, email: str, password: str) -> bool:
        try:
            await self.store.sign_in(email, password)
        except AuthError as e:
            self.message = f"Sign in error: {e}"
            return False
        self.message = "Signed in successfully!"
        return True

    async def sign_up(self, email: str, password: str) -> bool:
        try:
            await self.store.sign_up(email, password)
        except AuthError as e:
            self.message = f"Sign up error: {e}"
            return False
        self.message = "Account created!"
        return True

    async def logout(self) -> None:
        try:
            await self.store.sign_out()
        except AuthError as e:
            logger.error("Error signing out: %s", e)
            self.message = f"Sign out error: {e}"
        self.identity = None
        self.clear()

    # --- running session ---

    async def start(self) -> bool:
        """Open a new session now and start the timer."""
        if self.identity is None:
            return False
        if self.active is not None:
            self.message = "A session is already running."
            return False
        try:
            row = await self.store.insert_session(
                {"check_in": self.clock(), "user_id": self.identity.id}
            )
        except StoreError as e:
            logger.error("Error starting session: %s", e)
            self.message = f"Error starting session: {e}"
            return False
        self._start_timer(row)
        await self.refresh()
        return True

    async def end(self) -> bool:
        """Close the running session now. The timer stops even if the update fails."""
        if self.identity is None or self.active is None:
            return False
        session = self.active
        check_out = self.clock()
        ok = True
        try:
            await self.store.update_session(
                session.id,
                {
                    "check_out": check_out,
                    "total_hours": duration_between(session.check_in, check_out),
                },
            )
        except StoreError as e:
            logger.error("Error ending session: %s", e)
            self.message = f"Error ending session: {e}"
            ok = False
        self._stop_timer()
        await self.refresh()
        return ok

    # --- manual entry ---

    async def add_manual(self, start_text: str, end_text: str) -> bool:
        """Insert a completed session from two typed timestamps."""
        if self.identity is None:
            self.message = "You must be logged in to save a work session."
            return False
        checked = _validated_range(start_text, end_text)
        if isinstance(checked, str):
            self.message = checked
            return False
        start, end = checked
        try:
            await self.store.insert_session(
                {
                    "check_in": start,
                    "check_out": end,
                    "total_hours": duration_between(start, end),
                    "user_id": self.identity.id,
                }
            )
        except StoreError as e:
            logger.error("Error saving work session: %s", e)
            self.message = f"Error: {e}"
            return False
        self.message = "Work session saved successfully!"
        await self.refresh()
        return True

    # --- inline edit ---

    def _find(self, session_id: int) -> Optional[WorkSession]:
        return next((s for s in self.sessions if s.id == session_id), None)

    def begin_edit(self, session_id: int) -> bool:
        session = self._find(session_id)
        if session is None:
            return False
        if session.check_out is None:
            self.message = "A running session can't be edited."
            return False
        self.editing_id = session.id
        self.edit_check_in = to_editable_text(session.check_in)
        self.edit_check_out = to_editable_text(session.check_out)
        return True

    def cancel_edit(self) -> None:
        self.editing_id = None
        self.edit_check_in = ""
        self.edit_check_out = ""

    async def save_edit(self) -> bool:
        """Validate the edit form, patch the row locally, then persist and re-fetch."""
        if self.editing_id is None:
            return False
        checked = _validated_range(self.edit_check_in, self.edit_check_out)
        if isinstance(checked, str):
            self.message = checked
            return False
        start, end = checked
        session_id = self.editing_id
        hours = duration_between(start, end)

        # optimistic: the table shows the new values before the store answers
        patch = {"check_in": start, "check_out": end, "total_hours": hours}
        self.sessions = [
            s.model_copy(update=patch) if s.id == session_id else s for s in self.sessions
        ]
        self.saving_id = session_id
        self.cancel_edit()

        ok = True
        try:
            await self.store.update_session(session_id, patch)
        except StoreError as e:
            logger.error("Error updating session %s: %s", session_id, e)
            self.message = f"Error updating session: {e}"
            ok = False
        else:
            self.message = "Session updated successfully!"
        finally:
            if self.saving_id == session_id:
                self.saving_id = None
        await self.refresh()
        return ok

    # --- delete ---

    async def delete(self, session_id: int) -> bool:
        """Delete after the user confirms; declining is a no-op."""
        if self.identity is None:
            return False
        answer = self.confirm(DELETE_PROMPT)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            return False
        try:
            await self.store.delete_session(session_id)
        except StoreError as e:
            logger.error("Error deleting session %s: %s", session_id, e)
            self.message = f"Error deleting session: {e}"
            return False
        await self.refresh()
        return True

    # --- display ---

    def _duration_cell(self, session: WorkSession) -> str:
        if session.total_hours is None and session.check_out is None:
            return "Calculating..."
        return f"{hours_of(session):.2f}h"

    def rows(self) -> list[SessionRow]:
        return [
            SessionRow(
                id=s.id,
                status="Active" if s.check_out is None else "Completed",
                check_in=format_datetime(s.check_in),
                check_out=format_datetime(s.check_out) if s.check_out else "In progress",
                duration=self._duration_cell(s),
                editable=s.check_out is not None,
                editing=s.id == self.editing_id,
                saving=s.id == self.saving_id,
            )
            for s in self.sessions
        ]

    def summary(self) -> Summary:
        return Summary(sessions=len(self.sessions), total_hours=round(total_hours(self.sessions), 2))
