"""End-to-end program creation and weekly progression.

aggregate context -> generate (external, then synthesized) -> validate ->
periodize -> persist -> propagate to the calendar.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from .analysis.calendar_propagation import propagate_all
from .analysis.context import UserContext, aggregate
from .analysis.periodization import annotate
from .analysis.program_generator import GenerationOutcome, ProgramGenerator
from .db.models import Program
from .db.store import ProgramNotFound, ProgramStore, PropagationError
from .rate_limit import RequestThrottle

logger = logging.getLogger(__name__)


@dataclass
class ProgramCreationResult:
    """Saved program plus generation and scheduling details."""
    program: Program
    context: UserContext
    outcome: GenerationOutcome
    events_scheduled: int = 0
    propagation_error: Optional[str] = None
    stats: Dict[str, int] = field(default_factory=dict)

    @property
    def propagated(self) -> bool:
        return self.propagation_error is None


class ProgramFactory:
    """Create, re-schedule and progress user programs."""

    def __init__(self, store: Optional[ProgramStore] = None,
                 generator: Optional[ProgramGenerator] = None,
                 throttle: Optional[RequestThrottle] = None):
        self.store = store or ProgramStore()
        self.generator = generator or ProgramGenerator()
        self.throttle = throttle or RequestThrottle()
        self.logger = logging.getLogger(__name__)

    def create_program_for_user(self, user_id: str, profile: Dict[str, Any],
                                start_date: Optional[date] = None,
                                duration_weeks: Optional[int] = None,
                                today: Optional[date] = None) -> ProgramCreationResult:
        """Generate, save and schedule a new active program.

        Args:
            user_id: Program owner
            profile: Raw user profile for context aggregation
            start_date: First day of the program, defaults to today
            duration_weeks: Requested length for synthesized programs
            today: Reference date for past-date suppression

        Returns:
            ProgramCreationResult; a propagation failure is reported on the
            result, the program itself stays saved

        Raises:
            RequestThrottled: the user is inside the request cooldown
        """
        self.throttle.check(user_id)
        today = today or date.today()
        start_date = start_date or today

        ctx = aggregate(profile)
        self.logger.info(
            f"User {user_id}: {ctx.days_per_week} days/week, goal {ctx.goal}, "
            f"{ctx.target_calories} kcal"
        )

        outcome = self.generator.generate(ctx, duration_weeks)
        payload = annotate(outcome.payload)

        program = self.store.create_program(
            user_id, payload, start_date, goal=ctx.goal, ai_generated=outcome.ai_generated, today=today,
        )
        result = ProgramCreationResult(program=program, context=ctx, outcome=outcome)

        try:
            result.events_scheduled = self._schedule(program, today)
        except PropagationError as e:
            self.logger.error(f"Program {program.id} saved without calendar events: {e}")
            result.propagation_error = str(e)
        else:
            result.program = self.store.get_program(program.id)

        result.stats = self._stats(result.program, result.events_scheduled)
        self.logger.info(
            f"Program {program.id} ready via {outcome.source}: {result.stats['workouts']} workouts, "
            f"{result.stats['meals']} meal slots, {result.stats['habits']} habits"
        )
        return result

    def _schedule(self, program: Program, today: date) -> int:
        events = propagate_all(program, today)
        return self.store.replace_future_events(program.id, events, today)

    def repropagate(self, user_id: str, today: Optional[date] = None) -> int:
        """Rebuild future calendar events for the user's active program."""
        program = self.store.get_active_program(user_id)
        if program is None:
            raise ProgramNotFound(f"No active program for user {user_id}")
        return self._schedule(program, today or date.today())

    def progress_user(self, user_id: str) -> Program:
        program = self.store.get_active_program(user_id)
        if program is None:
            raise ProgramNotFound(f"No active program for user {user_id}")
        program, completed = self.store.progress_program(program.id)
        if completed:
            self.logger.info(f"Program {program.id} completed")
        return program

    def progress_all(self) -> Dict[str, int]:
        """Weekly job: advance every active program by one week."""
        results = self.store.progress_all_active()
        summary = {
            "progressed": len(results),
            "completed": sum(1 for _, completed in results if completed),
        }
        self.logger.info(f"Weekly progression: {summary['progressed']} programs, {summary['completed']} completed")
        return summary

    @staticmethod
    def _stats(program: Program, events_scheduled: int) -> Dict[str, int]:
        templates: List[Dict[str, Any]] = program.weekly_templates or []
        meals = (program.nutrition_plan or {}).get("meal_plan") or {}
        return {
            "weeks": program.duration_weeks,
            "workouts": sum(len(t.get("training_days") or []) for t in templates),
            "meals": len(meals) * program.duration_weeks * 7,
            "habits": len(program.habit_plan or []),
            "events": events_scheduled,
        }
