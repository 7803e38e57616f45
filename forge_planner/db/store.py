"""Persistence boundary for programs, calendar events and personal records."""

import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from ..config import config
from .database import Database, get_db
from .models import CalendarEvent, PersonalRecord, Program, PROGRAM_STATUSES, utcnow
from ..analysis.records import PRResult, evaluate_submission, normalize_exercise_name

logger = logging.getLogger(__name__)


class ProgramNotFound(LookupError):
    """No program with the requested id or no active program for the user."""


class PropagationError(RuntimeError):
    """Calendar events could not be written for a saved program."""


class UserLockRegistry:
    """In-process lock per user id."""

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, user_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(user_id, threading.Lock())

    @contextmanager
    def hold(self, user_id: str):
        lock = self.lock_for(user_id)
        with lock:
            yield


def _record_snapshot(record: PersonalRecord) -> Dict[str, Any]:
    return {
        "weight": record.weight,
        "reps": record.reps,
        "estimated_one_rep_max": record.estimated_one_rep_max,
        "recorded_at": record.recorded_at,
        "history": list(record.history or []),
    }


class ProgramStore:
    """Read and write programs, events and records through SQLAlchemy sessions."""

    def __init__(self, db: Optional[Database] = None, locks: Optional[UserLockRegistry] = None):
        self.db = db or get_db()
        self.locks = locks or UserLockRegistry()

    # Programs

    def create_program(self, user_id: str, payload: Dict[str, Any], start_date: date,
                       goal: Optional[str] = None, ai_generated: bool = False,
                       today: Optional[date] = None) -> Program:
        """Save a program as the user's active program.

        Any existing active program is archived as paused in the same
        transaction, and its scheduled events from today on are removed.
        """
        today = today or date.today()
        with self.locks.hold(user_id):
            with self.db.get_session() as session:
                now = utcnow()
                for previous in session.query(Program).filter_by(user_id=user_id, status="active").all():
                    previous.status = "paused"
                    previous.archived_at = now
                    cleared = self._clear_future_events(session, previous.id, today)
                    logger.info(f"Archived program {previous.id} for user {user_id} ({cleared} future events removed)")
                session.flush()

                periodization = payload.get("periodization") or {}
                program = Program(
                    user_id=user_id,
                    name=payload.get("name") or "FORGE Program",
                    goal=goal,
                    status="active",
                    start_date=start_date,
                    duration_weeks=payload["duration_weeks"],
                    current_week=1,
                    periodization_model=periodization.get("model", "linear"),
                    phases=periodization.get("phases") or [],
                    weekly_templates=payload.get("weekly_templates") or [],
                    nutrition_plan=payload.get("nutrition_plan") or {},
                    habit_plan=payload.get("habit_plan") or [],
                    ai_generated=ai_generated,
                    ai_rationale=payload.get("ai_rationale"),
                    generated_at=now,
                )
                session.add(program)
                session.flush()
                return program

    def get_program(self, program_id: int) -> Optional[Program]:
        with self.db.get_session() as session:
            return session.get(Program, program_id)

    def require_program(self, program_id: int) -> Program:
        program = self.get_program(program_id)
        if program is None:
            raise ProgramNotFound(f"Program {program_id} not found")
        return program

    def get_active_program(self, user_id: str) -> Optional[Program]:
        with self.db.get_session() as session:
            return session.query(Program).filter_by(user_id=user_id, status="active").one_or_none()

    def list_programs(self, user_id: str) -> List[Program]:
        with self.db.get_session() as session:
            return session.query(Program).filter_by(user_id=user_id).order_by(Program.created_at.desc()).all()

    def update_program(self, program_id: int, **fields) -> Program:
        """Overwrite program columns such as name, weekly_templates or habit_plan.

        Status changes go through ``set_status``.
        """
        if "status" in fields:
            raise ValueError("Use set_status to change program status")
        with self.db.get_session() as session:
            program = session.get(Program, program_id)
            if program is None:
                raise ProgramNotFound(f"Program {program_id} not found")
            for key, value in fields.items():
                if not hasattr(Program, key):
                    raise AttributeError(f"Program has no field '{key}'")
                setattr(program, key, value)
            session.flush()
            return program

    def set_status(self, program_id: int, status: str, today: Optional[date] = None) -> Program:
        """Change a program's status.

        Activating a program pauses the user's other active program. Any
        program leaving the active status loses its scheduled events from
        today on; a reactivated program needs propagating again.
        """
        today = today or date.today()
        if status not in PROGRAM_STATUSES:
            raise ValueError(f"Unknown program status '{status}'")
        with self.db.get_session() as session:
            program = session.get(Program, program_id)
            if program is None:
                raise ProgramNotFound(f"Program {program_id} not found")
            with self.locks.hold(program.user_id):
                if status == "active":
                    others = session.query(Program).filter(
                        Program.user_id == program.user_id,
                        Program.status == "active",
                        Program.id != program.id,
                    )
                    for other in others.all():
                        other.status = "paused"
                        other.archived_at = utcnow()
                        self._clear_future_events(session, other.id, today)
                    session.flush()
                    program.archived_at = None
                elif program.status == "active":
                    self._clear_future_events(session, program.id, today)
                program.status = status
                session.flush()
            return program

    def progress_program(self, program_id: int) -> Tuple[Program, bool]:
        """Advance one week. Returns the program and whether it just completed."""
        with self.db.get_session() as session:
            program = session.get(Program, program_id)
            if program is None:
                raise ProgramNotFound(f"Program {program_id} not found")
            completed = program.advance_week()
            session.flush()
            return program, completed

    def progress_all_active(self) -> List[Tuple[Program, bool]]:
        results = []
        with self.db.get_session() as session:
            for program in session.query(Program).filter_by(status="active").all():
                completed = program.advance_week()
                results.append((program, completed))
            session.flush()
        return results

    # Calendar events

    @staticmethod
    def _clear_future_events(session, program_id: int, today: date) -> int:
        return session.query(CalendarEvent).filter(
            CalendarEvent.program_id == program_id,
            CalendarEvent.status == "scheduled",
            CalendarEvent.date >= today,
        ).delete(synchronize_session=False)

    def insert_events(self, events: Iterable[CalendarEvent]) -> int:
        events = list(events)
        with self.db.get_session() as session:
            session.add_all(events)
        return len(events)

    def replace_future_events(self, program_id: int, events: List[CalendarEvent],
                              today: Optional[date] = None) -> int:
        """Swap the program's future scheduled events for a new batch.

        Runs in one transaction: scheduled events dated today or later are
        deleted, new events colliding with kept (completed, skipped or
        in-progress) events on date, type and start time are dropped, the
        rest are inserted and ``last_propagated_at`` is stamped.

        Raises:
            PropagationError: the transaction failed and was rolled back
        """
        today = today or date.today()
        try:
            with self.db.get_session() as session:
                program = session.get(Program, program_id)
                if program is None:
                    raise ProgramNotFound(f"Program {program_id} not found")

                self._clear_future_events(session, program_id, today)

                kept = {
                    event.slot_key for event in session.query(CalendarEvent).filter(
                        CalendarEvent.program_id == program_id,
                        CalendarEvent.date >= today,
                    )
                }
                batch = [event for event in events if event.slot_key not in kept]
                session.add_all(batch)
                program.last_propagated_at = utcnow()
                session.flush()
                inserted = len(batch)
        except SQLAlchemyError as e:
            logger.error(f"Propagation failed for program {program_id}: {e}")
            raise PropagationError(f"Could not write calendar events for program {program_id}") from e

        logger.info(f"Program {program_id}: {inserted} events scheduled ({len(events) - inserted} kept slots)")
        return inserted

    def get_events_in_range(self, user_id: str, start: date, end: date,
                            types: Optional[List[str]] = None) -> List[CalendarEvent]:
        with self.db.get_session() as session:
            query = session.query(CalendarEvent).filter(
                CalendarEvent.user_id == user_id,
                CalendarEvent.date >= start,
                CalendarEvent.date <= end,
            )
            if types:
                query = query.filter(CalendarEvent.type.in_(types))
            return query.order_by(CalendarEvent.date, CalendarEvent.start_time).all()

    def get_program_events(self, program_id: int) -> List[CalendarEvent]:
        with self.db.get_session() as session:
            return (
                session.query(CalendarEvent)
                .filter_by(program_id=program_id)
                .order_by(CalendarEvent.date, CalendarEvent.start_time)
                .all()
            )

    def _update_event(self, event_id: int, action, *args) -> CalendarEvent:
        with self.db.get_session() as session:
            event = session.get(CalendarEvent, event_id)
            if event is None:
                raise LookupError(f"Calendar event {event_id} not found")
            action(event, *args)
            session.flush()
            return event

    def mark_event_complete(self, event_id: int, when: Optional[datetime] = None) -> CalendarEvent:
        return self._update_event(event_id, CalendarEvent.mark_complete, when)

    def skip_event(self, event_id: int, reason: Optional[str] = None) -> CalendarEvent:
        return self._update_event(event_id, CalendarEvent.skip, reason)

    # Personal records

    def get_record(self, user_id: str, exercise_name: str) -> Optional[PersonalRecord]:
        with self.db.get_session() as session:
            return session.query(PersonalRecord).filter_by(
                user_id=user_id, normalized_name=normalize_exercise_name(exercise_name)
            ).one_or_none()

    def list_records(self, user_id: str) -> List[PersonalRecord]:
        with self.db.get_session() as session:
            return (
                session.query(PersonalRecord)
                .filter_by(user_id=user_id)
                .order_by(PersonalRecord.estimated_one_rep_max.desc())
                .all()
            )

    def records_by_name(self, user_id: str) -> Dict[str, PersonalRecord]:
        return {record.normalized_name: record for record in self.list_records(user_id)}

    def upsert_record(self, user_id: str, fields: Dict[str, Any]) -> PersonalRecord:
        with self.db.get_session() as session:
            return self._upsert(session, user_id, fields)

    @staticmethod
    def _upsert(session, user_id, fields) -> PersonalRecord:
        record = session.query(PersonalRecord).filter_by(
            user_id=user_id, normalized_name=fields["normalized_name"]
        ).one_or_none()
        if record is None:
            record = PersonalRecord(user_id=user_id)
            session.add(record)
        for key, value in fields.items():
            setattr(record, key, value)
        session.flush()
        return record

    def detect_records(self, user_id: str, exercises: List[Dict[str, Any]],
                       now: Optional[datetime] = None) -> List[PRResult]:
        """Evaluate a completed workout and store any new personal records.

        Args:
            user_id: Owner of the records
            exercises: Items with ``name`` and ``sets`` (weight, reps, rpe)
            now: Timestamp for new records

        Returns:
            One PRResult per exercise with at least one usable set
        """
        results = []
        with self.locks.hold(user_id):
            with self.db.get_session() as session:
                for exercise in exercises:
                    name = exercise.get("name")
                    if not name or not isinstance(exercise.get("sets"), list):
                        continue
                    existing = session.query(PersonalRecord).filter_by(
                        user_id=user_id, normalized_name=normalize_exercise_name(name)
                    ).one_or_none()
                    result = evaluate_submission(
                        _record_snapshot(existing) if existing else None,
                        name,
                        exercise["sets"],
                        now=now or utcnow(),
                        history_limit=config.PR_HISTORY_LIMIT,
                    )
                    if result is None:
                        continue
                    if result.record is not None:
                        self._upsert(session, user_id, result.record)
                        logger.info(result.message)
                    results.append(result)
        return results
