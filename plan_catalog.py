"""
plan_catalog
------------
Static catalog of week-structured training plans.

Each plan has a fixed length in weeks, a list of exercises and one stage per
(referenced) week. The catalog is read-only reference data; progress lives in
``progress_core`` / ``progress_store``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


# -----------------------------
# Data model
# -----------------------------


class PlanNotFound(LookupError):
    """Raised when a plan id has no entry in the catalog."""

    def __init__(self, plan_id: str):
        super().__init__(f"Unknown training plan: {plan_id!r}")
        self.plan_id = plan_id


@dataclass(frozen=True)
class Exercise:
    id: str
    name: str
    description: str
    duration: Optional[str] = None
    reps: Optional[str] = None

    @property
    def dosage(self) -> str:
        return self.duration or self.reps or "-"


@dataclass(frozen=True)
class Stage:
    week: int
    title: str
    description: str
    exercise_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    category: str
    description: str
    total_weeks: int
    stages: Tuple[Stage, ...] = ()
    exercises: Tuple[Exercise, ...] = ()
    duration: str = field(default="")

    def __post_init__(self) -> None:
        if self.total_weeks <= 0:
            raise ValueError(f"{self.id}: total_weeks must be positive")
        for stage in self.stages:
            if not 1 <= stage.week <= self.total_weeks:
                raise ValueError(f"{self.id}: stage week {stage.week} outside 1..{self.total_weeks}")
        if not self.duration:
            object.__setattr__(self, "duration", f"{self.total_weeks} Weeks")

    @property
    def total_days(self) -> int:
        return max(1, self.total_weeks * 7)


PLAN_CATEGORIES = ["Unbroke", "Retraining", "Continuing Training"]


# -----------------------------
# Catalog data
# -----------------------------


_PLANS: Tuple[Plan, ...] = (
    Plan(
        id="unbroke-1",
        name="Foundation Groundwork: Week 1-4",
        category="Unbroke",
        description=(
            "Establishing trust, respect, and basic communication on the ground. "
            "This is the essential starting point for any young or unhandled horse."
        ),
        total_weeks=4,
        exercises=(
            Exercise(
                "haltering",
                "Haltering & Leading",
                "Teach the horse to accept a halter without fear and to lead willingly without pulling or lagging.",
                duration="15 min/day",
            ),
            Exercise(
                "grooming",
                "Grooming & Touch Desensitization",
                "Accustom the horse to being touched and groomed all over its body, including legs, belly, and ears.",
                duration="10 min/day",
            ),
            Exercise(
                "yielding",
                "Yielding to Pressure",
                "Teach the horse to move away from steady, gentle pressure on its poll, shoulder, and hindquarters.",
                duration="10 min/day",
            ),
            Exercise(
                "longeing",
                "Longeing for Respect",
                "Introduce the longe line so the horse moves in a circle around the handler, respecting personal space and voice commands.",
                duration="20 min, 3 times/week",
            ),
        ),
        stages=(
            Stage(1, "Trust & handling", "Short daily sessions focused on calm haltering and grooming.", ("haltering", "grooming")),
            Stage(2, "Leading manners", "Lead at walk and halt on cue; add touch desensitization on legs.", ("haltering", "grooming")),
            Stage(3, "Pressure & release", "Yield hindquarters and shoulders from light, steady pressure.", ("yielding", "haltering")),
            Stage(4, "Longe introduction", "Introduce the longe line at walk and trot with voice commands.", ("longeing", "yielding")),
        ),
    ),
    Plan(
        id="retraining-1",
        name="Back to Basics: Under Saddle",
        category="Retraining",
        description=(
            "Re-establishing clear communication and correct responses under saddle for a horse "
            "that may have gaps in its training or has developed bad habits."
        ),
        total_weeks=6,
        duration="6 Weeks",
        exercises=(
            Exercise(
                "flexion",
                "Flexion & Softness",
                "From a standstill and walk, ask the horse to soften its jaw and flex its neck in response to gentle rein pressure.",
                duration="10 min/session",
            ),
            Exercise(
                "go-whoa-turn",
                "Go, Whoa, and Turn",
                "Crisp responses to seat and leg aids for upward transitions and clean halts from the seat.",
                duration="20 min/session",
            ),
            Exercise(
                "bending",
                "Basic Bending on a Circle",
                "Large 20-meter circles at walk and trot, bent correctly from poll to tail along the arc.",
                duration="15 min/session",
            ),
            Exercise(
                "leg-yield",
                "Introduction to Leg Yield",
                "At the walk, move sideways away from leg pressure, starting along the arena wall.",
                duration="10 min/session",
            ),
        ),
        stages=(
            Stage(1, "Soft contact", "Flexion work at halt and walk before every ride.", ("flexion",)),
            Stage(2, "Clear transitions", "Walk-halt-walk from the seat, then walk-trot.", ("flexion", "go-whoa-turn")),
            Stage(3, "Steering from the leg", "Turns led by seat and leg rather than rein.", ("go-whoa-turn",)),
            Stage(4, "Circles", "20-meter circles at walk and trot with correct bend.", ("bending", "flexion")),
            Stage(5, "Lateral steps", "First leg-yield steps along the wall at walk.", ("leg-yield", "bending")),
            Stage(6, "Putting it together", "Short rides combining transitions, circles and leg yield.", ("go-whoa-turn", "bending", "leg-yield")),
        ),
    ),
    Plan(
        id="continuing-1",
        name="Improving Suppleness & Collection",
        category="Continuing Training",
        description=(
            "For the established horse, this plan develops more advanced lateral movements "
            "and improves self-carriage and engagement."
        ),
        total_weeks=8,
        duration="Ongoing",
        exercises=(
            Exercise(
                "shoulder-in",
                "Shoulder-in",
                "Shoulders displaced to the inside of the track with consistent bend and angle.",
                reps="4-6 times down the long side each direction",
            ),
            Exercise(
                "travers",
                "Haunches-in (Travers)",
                "Hindquarters displaced to the inside of the track; improves suppleness through the back.",
                reps="4-6 times down the long side each direction",
            ),
            Exercise(
                "walk-canter",
                "Walk-Canter-Walk Transitions",
                "Develops balance and power from the hind end without trot steps.",
                reps="8-10 transitions per session",
            ),
            Exercise(
                "counter-canter",
                "Counter-Canter",
                "Cantering on the outside lead to improve balance, straightness and the true canter.",
                duration="2-3 loops each direction",
            ),
        ),
        stages=(
            Stage(1, "Shoulder-in at walk", "Establish angle and bend at the walk.", ("shoulder-in",)),
            Stage(2, "Shoulder-in at trot", "Hold the angle down the full long side.", ("shoulder-in",)),
            Stage(3, "Travers", "Introduce haunches-in at the walk.", ("travers", "shoulder-in")),
            Stage(4, "Lateral combinations", "Alternate shoulder-in and travers on the long side.", ("shoulder-in", "travers")),
            Stage(5, "Canter transitions", "Walk-canter-walk on a large circle.", ("walk-canter",)),
            Stage(6, "Counter-canter loops", "Shallow loops holding the outside lead.", ("counter-canter", "walk-canter")),
            Stage(8, "Review", "Ride a test-style sequence of all movements.", ("shoulder-in", "travers", "walk-canter", "counter-canter")),
        ),
    ),
)

PLANS: Dict[str, Plan] = {plan.id: plan for plan in _PLANS}


# -----------------------------
# Lookups
# -----------------------------


def get_plan(plan_id: str) -> Plan:
    try:
        return PLANS[plan_id]
    except KeyError:
        raise PlanNotFound(plan_id) from None


def list_plans(category: Optional[str] = None) -> List[Plan]:
    return [plan for plan in _PLANS if category is None or plan.category == category]


def stage_for_week(plan: Plan, week: int) -> Optional[Stage]:
    return next((stage for stage in plan.stages if stage.week == week), None)


def exercises_for_stage(plan: Plan, stage: Stage) -> List[Exercise]:
    """Resolve a stage's exercise ids in order, skipping ids the plan does not define."""
    by_id = {exercise.id: exercise for exercise in plan.exercises}
    return [by_id[eid] for eid in stage.exercise_ids if eid in by_id]


__all__ = [
    "Exercise",
    "Plan",
    "PlanNotFound",
    "PLANS",
    "PLAN_CATEGORIES",
    "Stage",
    "exercises_for_stage",
    "get_plan",
    "list_plans",
    "stage_for_week",
]
