from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from plan_catalog import (
    PLANS,
    Plan,
    PlanNotFound,
    Stage,
    exercises_for_stage,
    get_plan,
    list_plans,
    stage_for_week,
)


def test_get_plan_returns_catalog_entry() -> None:
    plan = get_plan("unbroke-1")

    assert plan.total_weeks == 4
    assert plan.total_days == 28
    assert [stage.week for stage in plan.stages] == [1, 2, 3, 4]


def test_unknown_plan_raises_not_found() -> None:
    with pytest.raises(PlanNotFound) as excinfo:
        get_plan("does-not-exist")

    assert excinfo.value.plan_id == "does-not-exist"
    assert isinstance(excinfo.value, LookupError)


def test_list_plans_filters_by_category() -> None:
    assert len(list_plans()) == len(PLANS)
    assert [plan.id for plan in list_plans("Retraining")] == ["retraining-1"]
    assert list_plans("Unknown") == []


def test_catalog_stages_stay_within_plan_length() -> None:
    for plan in PLANS.values():
        assert plan.total_weeks > 0
        assert all(1 <= stage.week <= plan.total_weeks for stage in plan.stages)


def test_catalog_stage_exercises_resolve() -> None:
    for plan in PLANS.values():
        for stage in plan.stages:
            assert len(exercises_for_stage(plan, stage)) == len(stage.exercise_ids)


def test_sparse_stages_lookup() -> None:
    plan = get_plan("continuing-1")

    assert stage_for_week(plan, 7) is None
    assert stage_for_week(plan, 8).title == "Review"


def test_unknown_exercise_ids_are_skipped() -> None:
    plan = get_plan("unbroke-1")
    stage = Stage(1, "Mixed", "", ("haltering", "missing", "grooming"))

    names = [exercise.name for exercise in exercises_for_stage(plan, stage)]

    assert names == ["Haltering & Leading", "Grooming & Touch Desensitization"]


def test_exercise_dosage_prefers_duration_then_reps() -> None:
    plan = get_plan("continuing-1")
    by_id = {exercise.id: exercise for exercise in plan.exercises}

    assert by_id["counter-canter"].dosage == "2-3 loops each direction"
    assert by_id["travers"].dosage.startswith("4-6 times")


def test_default_duration_label() -> None:
    plan = Plan(id="p", name="P", category="Unbroke", description="", total_weeks=3)

    assert plan.duration == "3 Weeks"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"total_weeks": 0},
        {"total_weeks": 2, "stages": (Stage(3, "Too late", ""),)},
        {"total_weeks": 2, "stages": (Stage(0, "Too early", ""),)},
    ],
)
def test_invalid_plan_definitions_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        Plan(id="bad", name="Bad", category="Unbroke", description="", **kwargs)
