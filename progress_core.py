"""
progress_core
-------------
Plan progress engine: reconciles manually completed weeks with elapsed
calendar time.

The persisted record is kept minimal (start time, current week pointer,
completed weeks). Every derived figure is recomputed from
``(plan, record, now)`` on each call, so nothing here holds state and the
caller decides how often ``now`` is refreshed.

Rules:
- Completing the current week advances the pointer by one (auto-advance)
- Day progress uses the higher of elapsed days and completed weeks * 7
- Elapsed time may pull the current week forward, never backward
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, FrozenSet, List, Optional

from plan_catalog import Plan, exercises_for_stage


logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7
ONE_DAY = timedelta(days=1)


# -----------------------------
# Data model
# -----------------------------


@dataclass(frozen=True)
class ProgressRecord:
    started_at: Optional[datetime] = None
    current_week: int = 0  # 0 = not started
    completed_weeks: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def is_started(self) -> bool:
        return self.started_at is not None

    def sorted_weeks(self) -> List[int]:
        return sorted(self.completed_weeks)


@dataclass(frozen=True)
class ProgressView:
    weeks_completed: int
    week_progress_pct: int
    total_days: int
    actual_days_elapsed: int
    manual_days_elapsed: int
    days_elapsed: int
    days_remaining: int
    day_progress_pct: int
    auto_week: Optional[int]
    needs_week_sync: bool
    eta_date: Optional[datetime]

    @property
    def is_finished(self) -> bool:
        return self.days_remaining == 0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "weeks_completed": self.weeks_completed,
            "week_progress_pct": self.week_progress_pct,
            "total_days": self.total_days,
            "actual_days_elapsed": self.actual_days_elapsed,
            "manual_days_elapsed": self.manual_days_elapsed,
            "days_elapsed": self.days_elapsed,
            "days_remaining": self.days_remaining,
            "day_progress_pct": self.day_progress_pct,
            "auto_week": self.auto_week,
            "needs_week_sync": self.needs_week_sync,
            "eta_date": self.eta_date.date().isoformat() if self.eta_date else None,
        }


# -----------------------------
# Helpers
# -----------------------------


def round_half_up(value: float) -> int:
    # Percentages display 12.5 as 13, not banker's 12
    return int(math.floor(value + 0.5))


def week_progress_pct(weeks_completed: int, total_weeks: int) -> int:
    pct = round_half_up(100 * weeks_completed / total_weeks)
    # 100 is reserved for a fully completed plan
    if weeks_completed < total_weeks:
        pct = min(pct, 99)
    return pct


def clamp_week(plan: Plan, week: int) -> int:
    return max(1, min(plan.total_weeks, int(week)))


def reconcile_days_elapsed(actual_days: int, manual_days: int, total_days: int) -> int:
    """
    Progress policy: the higher of the calendar signal and the manual signal
    wins, capped at the plan's nominal length.
    """
    return min(total_days, max(actual_days, manual_days))


def actual_days_elapsed(started_at: Optional[datetime], now: datetime) -> int:
    if started_at is None:
        return 0
    # Day 1 counts as soon as the plan is started
    return max(0, (now - started_at) // ONE_DAY + 1)


def auto_week_for(plan: Plan, days_elapsed: int) -> int:
    return min(plan.total_weeks, max(1, math.ceil(days_elapsed / DAYS_PER_WEEK)))


# -----------------------------
# Record lifecycle
# -----------------------------


def start(plan: Plan, now: datetime) -> ProgressRecord:
    logger.info("Starting plan %s at %s", plan.id, now.isoformat())
    return ProgressRecord(started_at=now, current_week=1, completed_weeks=frozenset())


def reset() -> ProgressRecord:
    return ProgressRecord()


def normalize_record(record: ProgressRecord, plan: Plan) -> ProgressRecord:
    """
    Bring a record read from storage back inside the plan's bounds.

    Unstarted records are always the default record; started records keep
    only in-range completed weeks and a current week within 1..total_weeks.
    """
    if record.started_at is None:
        if record.current_week or record.completed_weeks:
            logger.debug("Plan %s: dropping progress on an unstarted record", plan.id)
        return reset()
    completed = frozenset(w for w in record.completed_weeks if 1 <= w <= plan.total_weeks)
    current = clamp_week(plan, record.current_week)
    if completed != record.completed_weeks or current != record.current_week:
        logger.debug(
            "Plan %s: clamped record (week %s -> %s, completed %s -> %s)",
            plan.id,
            record.current_week,
            current,
            record.sorted_weeks(),
            sorted(completed),
        )
    return replace(record, current_week=current, completed_weeks=completed)


# -----------------------------
# Week mutations
# -----------------------------


def set_current_week(record: ProgressRecord, plan: Plan, week: int) -> ProgressRecord:
    # No start guard: callers are expected to call start() first
    return replace(record, current_week=clamp_week(plan, week))


def step_week(record: ProgressRecord, plan: Plan, delta: int) -> ProgressRecord:
    return set_current_week(record, plan, record.current_week + delta)


def mark_week_done(record: ProgressRecord, plan: Plan, week: int) -> ProgressRecord:
    week = clamp_week(plan, week)
    if week in record.completed_weeks:
        return record
    current = record.current_week
    if week == current and current < plan.total_weeks:
        # Completing the active week moves on; completing a past week does not
        current += 1
    return replace(record, completed_weeks=record.completed_weeks | {week}, current_week=current)


def unmark_week(record: ProgressRecord, week: int) -> ProgressRecord:
    if week not in record.completed_weeks:
        return record
    # current_week is left alone so the pointer does not oscillate
    return replace(record, completed_weeks=record.completed_weeks - {week})


def complete_current_week(record: ProgressRecord, plan: Plan) -> ProgressRecord:
    if record.current_week <= 0:
        return record
    return mark_week_done(record, plan, record.current_week)


# -----------------------------
# Derived view
# -----------------------------


def compute_view(plan: Plan, record: ProgressRecord, now: datetime) -> ProgressView:
    weeks_completed = len(record.completed_weeks)
    total_days = plan.total_days
    actual = actual_days_elapsed(record.started_at, now)
    manual = weeks_completed * DAYS_PER_WEEK
    days_elapsed = reconcile_days_elapsed(actual, manual, total_days)
    days_remaining = max(0, total_days - days_elapsed)

    auto_week: Optional[int] = None
    eta_date: Optional[datetime] = None
    if record.started_at is not None:
        auto_week = auto_week_for(plan, days_elapsed)
        # Ahead of the calendar: count the remaining days from today
        base = now if manual > actual else record.started_at
        eta_date = base + timedelta(days=max(0, days_remaining - 1))

    return ProgressView(
        weeks_completed=weeks_completed,
        week_progress_pct=week_progress_pct(weeks_completed, plan.total_weeks),
        total_days=total_days,
        actual_days_elapsed=actual,
        manual_days_elapsed=manual,
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        day_progress_pct=round_half_up(100 * days_elapsed / total_days),
        auto_week=auto_week,
        needs_week_sync=auto_week is not None and record.current_week < auto_week,
        eta_date=eta_date,
    )


def sync_current_week(plan: Plan, record: ProgressRecord, now: datetime) -> ProgressRecord:
    view = compute_view(plan, record, now)
    if not view.needs_week_sync:
        return record
    logger.info("Plan %s: elapsed time moves current week %s -> %s", plan.id, record.current_week, view.auto_week)
    return replace(record, current_week=view.auto_week)


def stage_timeline(plan: Plan, record: ProgressRecord) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for stage in plan.stages:
        rows.append(
            {
                "week": stage.week,
                "title": stage.title,
                "description": stage.description,
                "active": stage.week == record.current_week,
                "completed": stage.week in record.completed_weeks,
                "exercises": exercises_for_stage(plan, stage),
            }
        )
    return rows


__all__ = [
    "DAYS_PER_WEEK",
    "ProgressRecord",
    "ProgressView",
    "actual_days_elapsed",
    "auto_week_for",
    "clamp_week",
    "complete_current_week",
    "compute_view",
    "mark_week_done",
    "normalize_record",
    "reconcile_days_elapsed",
    "reset",
    "round_half_up",
    "set_current_week",
    "stage_timeline",
    "start",
    "step_week",
    "sync_current_week",
    "unmark_week",
    "week_progress_pct",
]
