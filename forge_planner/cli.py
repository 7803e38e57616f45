"""Command-line interface for the FORGE planner."""

import json
import logging
from datetime import date, datetime, timedelta
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich import box

from .config import config
from .analysis import exercise_bank
from .analysis.context import aggregate
from .analysis.program_generator import ProgramGenerator
from .analysis.readiness import ReadinessScorer
from .analysis.records import big_three_total, group_records, progression
from .analysis.session_generator import SessionGenerator
from .db import ProgramNotFound, ProgramStore, get_db
from .program_factory import ProgramFactory
from .rate_limit import RequestThrottled

console = Console()

RECOMMENDATION_STYLES = {
    "push-hard": "bold green",
    "full-intensity": "green",
    "moderate-intensity": "yellow",
    "reduce-volume": "orange3",
    "active-recovery": "red",
}


def _load_json(path: str):
    with open(Path(path), encoding="utf-8") as f:
        return json.load(f)


def _parse_date(value):
    return datetime.strptime(value, "%Y-%m-%d").date() if value else None


@click.group()
def cli():
    """FORGE training program planner."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command("init-db")
def init_db():
    """Create database tables."""
    get_db()
    console.print(f"[green]✅ Database ready at {config.DATABASE_URL}[/green]")


@cli.command()
@click.option("--user", "user_id", required=True, help="User ID")
@click.option("--profile", "profile_path", required=True, help="Path to profile JSON")
@click.option("--start-date", help="Program start date (YYYY-MM-DD)")
@click.option("--weeks", type=int, help="Program length for synthesized programs")
@click.option("--no-ai", is_flag=True, help="Skip external generation")
def generate(user_id, profile_path, start_date, weeks, no_ai):
    """Generate and schedule a new program."""
    console.print(Panel.fit("🏋️  Generating Program", style="bold blue"))

    try:
        config.validate()
    except ValueError as e:
        console.print(f"[red]❌ Configuration error: {e}[/red]")
        return

    factory = ProgramFactory(generator=ProgramGenerator(use_ai=not no_ai))
    try:
        result = factory.create_program_for_user(
            user_id, _load_json(profile_path), start_date=_parse_date(start_date), duration_weeks=weeks,
        )
    except RequestThrottled as e:
        console.print(f"[yellow]⏳ {e}[/yellow]")
        return

    program = result.program
    source = "AI" if result.outcome.ai_generated else "template"
    console.print(f"[green]✅ {program.name}[/green] ({source}, {program.duration_weeks} weeks)")
    if result.outcome.fallback_reason and not no_ai:
        console.print(f"[yellow]⚠️  Fallback used: {result.outcome.fallback_reason}[/yellow]")
    for warning in result.outcome.validation.warnings:
        console.print(f"[yellow]  • {warning}[/yellow]")

    ctx = result.context
    console.print(
        f"  • Calories: {ctx.target_calories} kcal "
        f"(P {ctx.macros.protein}g / C {ctx.macros.carbs}g / F {ctx.macros.fat}g)"
    )
    console.print(f"  • Workouts: {result.stats['workouts']}  Habits: {result.stats['habits']}")
    if result.propagated:
        console.print(f"  • Calendar events scheduled: {result.events_scheduled}")
    else:
        console.print(f"[red]❌ Calendar not updated: {result.propagation_error}[/red]")


@cli.command()
@click.option("--user", "user_id", required=True, help="User ID")
def show(user_id):
    """Show the active program."""
    store = ProgramStore()
    program = store.get_active_program(user_id)
    if program is None:
        console.print("[yellow]No active program[/yellow]")
        return

    phase = program.current_phase()
    console.print(Panel.fit(f"📋 {program.name}", style="bold blue"))
    console.print(f"  • Week {program.current_week}/{program.duration_weeks} ({program.percent_complete}% complete)")
    console.print(f"  • Phase: {phase['name'] if phase else 'none'}  Model: {program.periodization_model}")
    console.print(f"  • Weeks remaining: {program.weeks_remaining}")

    template = program.template_for_week(program.current_week)
    if not template:
        return
    table = Table(title=f"Week {template['week_number']}" + (" (deload)" if template.get("deload_week") else ""),
                  box=box.ROUNDED)
    table.add_column("Day", style="cyan")
    table.add_column("Focus")
    table.add_column("Main lifts")
    table.add_column("Exercises", justify="right")
    for day in template.get("training_days", []):
        mains = [e["name"] for e in day.get("exercises", []) if e.get("category") == "main-lift"]
        table.add_row(day["day_of_week"].title(), day.get("focus", ""), ", ".join(mains),
                      str(len(day.get("exercises", []))))
    console.print(table)


@cli.command()
@click.option("--user", "user_id", required=True, help="User ID")
@click.option("--days", default=7, help="Number of days to show")
def calendar(user_id, days):
    """List upcoming calendar events."""
    store = ProgramStore()
    today = date.today()
    events = store.get_events_in_range(user_id, today, today + timedelta(days=days - 1))
    if not events:
        console.print("[yellow]No scheduled events[/yellow]")
        return

    table = Table(title=f"Next {days} days", box=box.ROUNDED)
    table.add_column("Date", style="cyan")
    table.add_column("Time")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Status")
    for event in events:
        table.add_row(event.date.strftime("%a %Y-%m-%d"), event.start_time or "-", event.type,
                      event.title, event.status)
    console.print(table)


@cli.command()
@click.option("--user", "user_id", required=True, help="User ID")
def propagate(user_id):
    """Rebuild future calendar events for the active program."""
    try:
        count = ProgramFactory(generator=ProgramGenerator(use_ai=False)).repropagate(user_id)
    except ProgramNotFound as e:
        console.print(f"[yellow]{e}[/yellow]")
        return
    console.print(f"[green]✅ {count} events scheduled[/green]")


@cli.command()
@click.option("--user", "user_id", required=True, help="User ID")
def progress(user_id):
    """Advance the active program by one week."""
    try:
        program = ProgramFactory(generator=ProgramGenerator(use_ai=False)).progress_user(user_id)
    except ProgramNotFound as e:
        console.print(f"[yellow]{e}[/yellow]")
        return
    if program.status == "completed":
        console.print(f"[green]🏁 {program.name} completed[/green]")
    else:
        console.print(f"[green]➡️  Week {program.current_week}/{program.duration_weeks}[/green]")


@cli.command("progress-all")
def progress_all():
    """Advance every active program by one week."""
    summary = ProgramFactory(generator=ProgramGenerator(use_ai=False)).progress_all()
    console.print(f"[green]✅ {summary['progressed']} programs progressed, {summary['completed']} completed[/green]")


@cli.command()
@click.option("--user", "user_id", required=True, help="User ID")
@click.option("--set", "new_status", type=click.Choice(["active", "paused", "completed"]), help="New status")
def status(user_id, new_status):
    """Show or change the status of the user's latest program."""
    store = ProgramStore()
    programs = store.list_programs(user_id)
    if not programs:
        console.print("[yellow]No programs[/yellow]")
        return
    if new_status:
        program = store.set_status(programs[0].id, new_status)
        console.print(f"[green]✅ {program.name} is now {program.status}[/green]")
        if new_status == "active":
            count = ProgramFactory(store=store, generator=ProgramGenerator(use_ai=False)).repropagate(user_id)
            console.print(f"  • {count} calendar events scheduled")
        return
    for program in programs:
        console.print(f"  • #{program.id} {program.name}: {program.status} (week {program.current_week})")


@cli.command()
@click.option("--file", "readings_path", required=True, help="JSON with 'readings' and optional 'check_in'")
def readiness(readings_path):
    """Score today's training readiness."""
    data = _load_json(readings_path)
    snapshot = ReadinessScorer().score(data.get("readings", []), data.get("check_in"))
    style = RECOMMENDATION_STYLES.get(snapshot.recommendation.value, "white")
    console.print(Panel.fit(f"Readiness {snapshot.readiness_score}/100", style=style))
    console.print(f"[{style}]{snapshot.recommendation.value}[/{style}] (intensity x{snapshot.intensity_modifier})")
    console.print(snapshot.explanation)
    if snapshot.factor_summary:
        console.print(f"[dim]{snapshot.factor_summary}[/dim]")
    console.print(f"Trend: {snapshot.trend}")


@cli.command("log-lift")
@click.option("--user", "user_id", required=True, help="User ID")
@click.option("--exercise", required=True, help="Exercise name")
@click.option("--weight", required=True, type=float, help="Weight (lb)")
@click.option("--reps", required=True, type=int, help="Reps completed")
@click.option("--rpe", type=float, help="Rate of perceived exertion")
def log_lift(user_id, exercise, weight, reps, rpe):
    """Log a set and check for a personal record."""
    results = ProgramStore().detect_records(
        user_id, [{"name": exercise, "sets": [{"weight": weight, "reps": reps, "rpe": rpe}]}]
    )
    if not results:
        console.print("[yellow]No usable set logged[/yellow]")
        return
    for result in results:
        style = "bold green" if result.is_pr else "white"
        console.print(f"[{style}]{result.message}[/{style}]")


@cli.command()
@click.option("--user", "user_id", required=True, help="User ID")
def prs(user_id):
    """Show personal records."""
    records = ProgramStore().list_records(user_id)
    if not records:
        console.print("[yellow]No records yet[/yellow]")
        return

    grouped = group_records(records)
    for group, items in grouped.items():
        if not items:
            continue
        table = Table(title=group.title(), box=box.ROUNDED)
        table.add_column("Exercise", style="cyan")
        table.add_column("Best set")
        table.add_column("e1RM", justify="right")
        table.add_column("5RM", justify="right")
        table.add_column("Progress")
        for record in items:
            stats = progression(record)
            trend = f"+{stats['total_improvement']} lb" if stats else "-"
            table.add_row(record.exercise_name, f"{record.weight:g} x {record.reps}",
                          str(record.estimated_one_rep_max), str(record.rep_max_table.get("5RM", "-")), trend)
        console.print(table)

    total = big_three_total(records)
    if total:
        console.print(f"[bold]Big three total: {total['total']} lb[/bold] "
                      f"(S {total['squat']} / B {total['bench']} / D {total['deadlift']})")


@cli.command()
@click.argument("exercise_id")
def substitutes(exercise_id):
    """List substitutes and progressions for a catalog exercise."""
    exercise = exercise_bank.get_by_id(exercise_id)
    if exercise is None:
        console.print(f"[red]❌ Unknown exercise '{exercise_id}'[/red]")
        return
    console.print(Panel.fit(exercise.name, style="bold blue"))
    for option in exercise_bank.substitutes_for(exercise_id):
        console.print(f"  • {option.name} ({', '.join(option.equipment)})")
    ladder = exercise_bank.progression_for(exercise_id)
    if ladder["easier"]:
        console.print(f"Easier: {', '.join(e.name for e in ladder['easier'])}")
    if ladder["harder"]:
        console.print(f"Harder: {', '.join(e.name for e in ladder['harder'])}")


@cli.command()
@click.option("--user", "user_id", required=True, help="User ID")
@click.option("--profile", "profile_path", required=True, help="Path to profile JSON")
@click.option("--focus", required=True, help="Session focus, e.g. 'Lower Body'")
@click.option("--readings", "readings_path", help="Readiness JSON file")
@click.option("--no-ai", is_flag=True, help="Skip external generation")
def session(user_id, profile_path, focus, readings_path, no_ai):
    """Generate a single readiness-scaled session."""
    ctx = aggregate(_load_json(profile_path))
    snapshot = None
    if readings_path:
        data = _load_json(readings_path)
        snapshot = ReadinessScorer().score(data.get("readings", []), data.get("check_in"))

    store = ProgramStore()
    day = SessionGenerator(use_ai=not no_ai).generate(ctx, focus, snapshot, store.records_by_name(user_id))

    table = Table(title=f"{day['focus']} ({day['source']})", box=box.ROUNDED)
    table.add_column("Exercise", style="cyan")
    table.add_column("Category")
    table.add_column("Sets x Reps")
    table.add_column("Target", justify="right")
    for exercise in day["exercises"]:
        target = f"{exercise['target_weight']} lb" if exercise.get("target_weight") else ""
        table.add_row(exercise["name"], exercise.get("category", ""),
                      f"{exercise.get('sets')} x {exercise.get('reps')}", target)
    console.print(table)


def main():
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[orange3]Operation cancelled by user.[/orange3]")
    except Exception as e:
        console.print(f"[red]❌ Unexpected error: {escape(str(e))}[/red]")


if __name__ == "__main__":
    main()
