"""Database models for programs, calendar events and personal records."""

from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Float, Date, DateTime, Boolean, Text, JSON,
    ForeignKey, Index, UniqueConstraint, text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

PROGRAM_STATUSES = ("active", "paused", "completed")
EVENT_TYPES = (
    "workout", "rest-day", "nutrition", "deload",
    "competition", "weigh-in", "check-in", "cardio",
)
EVENT_STATUSES = ("scheduled", "completed", "skipped", "in-progress")


def utcnow() -> datetime:
    """Naive UTC timestamp for DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Program(Base):
    """Multi-week training and nutrition program."""

    __tablename__ = "programs"
    __table_args__ = (
        # At most one active program per user
        Index(
            "ix_programs_one_active_per_user",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    goal = Column(String(50))
    status = Column(String(20), nullable=False, default="active")

    # Timeline
    start_date = Column(Date, nullable=False)
    duration_weeks = Column(Integer, nullable=False, default=8)
    current_week = Column(Integer, nullable=False, default=1)

    # Periodization
    periodization_model = Column(String(20), default="linear")
    phases = Column(JSON, default=list)

    # Blueprint and nutrition
    weekly_templates = Column(JSON, default=list)
    nutrition_plan = Column(JSON, default=dict)
    habit_plan = Column(JSON, default=list)

    # Provenance
    ai_generated = Column(Boolean, default=False)
    ai_rationale = Column(Text)
    generated_at = Column(DateTime, default=utcnow)
    last_propagated_at = Column(DateTime)
    archived_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    events = relationship("CalendarEvent", back_populates="program", cascade="all, delete-orphan")

    @property
    def weeks_remaining(self) -> int:
        return max(0, self.duration_weeks - self.current_week + 1)

    @property
    def percent_complete(self) -> int:
        if not self.duration_weeks:
            return 0
        return min(100, round(self.current_week / self.duration_weeks * 100))

    def current_phase(self):
        """Phase covering the current week, or None."""
        from ..analysis.periodization import phase_for_week
        return phase_for_week(self.phases or [], self.current_week)

    def template_for_week(self, week_number: int):
        for template in self.weekly_templates or []:
            if template.get("week_number") == week_number:
                return template
        return None

    def advance_week(self) -> bool:
        """Move to the next week. Returns True when the program just completed."""
        if self.status != "active":
            return False
        if self.current_week >= self.duration_weeks:
            self.current_week = self.duration_weeks + 1
            self.status = "completed"
            return True
        self.current_week += 1
        return False

    def __repr__(self):
        return f"<Program(id={self.id}, user={self.user_id}, name={self.name}, status={self.status}, week={self.current_week}/{self.duration_weeks})>"


class CalendarEvent(Base):
    """Dated calendar entry materialized from a program."""

    __tablename__ = "calendar_events"
    __table_args__ = (
        Index("ix_calendar_events_user_date", "user_id", "date"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False)
    program_id = Column(Integer, ForeignKey("programs.id"), index=True)
    type = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    date = Column(Date, nullable=False)
    start_time = Column(String(5))  # HH:MM
    duration_minutes = Column(Integer)
    exercises = Column(JSON, default=list)
    meal_data = Column(JSON)
    week_number = Column(Integer)
    periodization_phase = Column(String(20))
    status = Column(String(20), nullable=False, default="scheduled")
    ai_generated = Column(Boolean, default=False)
    ai_reason = Column(Text)
    completed_at = Column(DateTime)
    skipped_reason = Column(Text)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    program = relationship("Program", back_populates="events")

    @property
    def slot_key(self):
        return (self.date, self.type, self.start_time)

    def mark_complete(self, when=None):
        self.status = "completed"
        self.completed_at = when or utcnow()

    def skip(self, reason=None):
        self.status = "skipped"
        self.skipped_reason = reason

    def __repr__(self):
        return f"<CalendarEvent(type={self.type}, title={self.title}, date={self.date}, status={self.status})>"


class PersonalRecord(Base):
    """Best estimated one-rep max per user and exercise."""

    __tablename__ = "personal_records"
    __table_args__ = (
        UniqueConstraint("user_id", "normalized_name", name="uq_personal_records_user_exercise"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    exercise_name = Column(String(255), nullable=False)
    normalized_name = Column(String(255), nullable=False)
    weight = Column(Float, nullable=False)  # lb
    reps = Column(Integer, nullable=False)
    rpe = Column(Float)
    estimated_one_rep_max = Column(Integer, nullable=False)
    rep_max_table = Column(JSON, default=dict)  # {"1RM": ..., "3RM": ..., ...}
    history = Column(JSON, default=list)  # previous bests, oldest first
    recorded_at = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<PersonalRecord(user={self.user_id}, exercise={self.exercise_name}, e1rm={self.estimated_one_rep_max})>"
