from datetime import datetime, timezone
from typing import Any, Dict, List

import altair as alt
import pandas as pd
import streamlit as st

from plan_catalog import PLAN_CATEGORIES, Plan, PlanNotFound, get_plan, list_plans, stage_for_week
from progress_core import (
    ProgressRecord,
    ProgressView,
    complete_current_week,
    compute_view,
    mark_week_done,
    normalize_record,
    reset,
    set_current_week,
    stage_timeline,
    start,
    step_week,
    sync_current_week,
    unmark_week,
)
from progress_store import JsonFileProgressStore, ProgressStore
from settings import configure_logging, get_settings

STATUS_COLORS = {"Completed": "#2ca02c", "Current": "#1f77b4", "Upcoming": "#c7c7c7"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _fmt_date(value: datetime) -> str:
    return value.astimezone().strftime("%b %d, %Y")


@st.cache_resource
def _get_store() -> ProgressStore:
    return JsonFileProgressStore(get_settings().store_path)


def _state_key(plan: Plan) -> str:
    return f"progress_{plan.id}"


def _load_record(plan: Plan) -> ProgressRecord:
    # Session state wins over the store so dropped writes still show this session
    key = _state_key(plan)
    if key not in st.session_state:
        st.session_state[key] = normalize_record(_get_store().load(plan.id), plan)
    return st.session_state[key]


def _persist(plan: Plan, record: ProgressRecord) -> None:
    st.session_state[_state_key(plan)] = record
    _get_store().save(plan.id, record)


def _on_start(plan: Plan) -> None:
    _persist(plan, start(plan, _now()))


def _on_reset(plan: Plan) -> None:
    # Drop the stored key so the next load starts from the default record
    st.session_state[_state_key(plan)] = reset()
    _get_store().clear(plan.id)


def _on_step(plan: Plan, delta: int) -> None:
    _persist(plan, step_week(_load_record(plan), plan, delta))


def _on_goto(plan: Plan, week: int) -> None:
    _persist(plan, set_current_week(_load_record(plan), plan, week))


def _on_complete_current(plan: Plan) -> None:
    _persist(plan, complete_current_week(_load_record(plan), plan))


def _on_toggle_week(plan: Plan, week: int, widget_key: str) -> None:
    record = _load_record(plan)
    if st.session_state[widget_key]:
        _persist(plan, mark_week_done(record, plan, week))
    else:
        _persist(plan, unmark_week(record, week))


def _select_plan() -> Plan:
    settings = get_settings()
    requested = st.query_params.get("plan")
    if requested:
        try:
            get_plan(requested)
        except PlanNotFound as err:
            st.error(f"Plan not found: {err.plan_id}")
            st.stop()
    with st.sidebar:
        st.header("Training plans")
        category = st.radio("Category", ["All"] + PLAN_CATEGORIES, index=0)
        plans = list_plans(None if category == "All" else category)
        if not plans:
            st.info("No plans in this category yet.")
            st.stop()
        ids = [plan.id for plan in plans]
        default_id = requested or settings.default_plan_id
        index = ids.index(default_id) if default_id in ids else 0
        selected_id = st.selectbox(
            "Plan",
            ids,
            index=index,
            format_func=lambda pid: next(p.name for p in plans if p.id == pid),
        )
    st.query_params["plan"] = selected_id
    return get_plan(selected_id)


def render_overview(plan: Plan) -> None:
    col1, col2 = st.columns([2, 1])
    with col1:
        st.subheader("Overview")
        st.caption(plan.duration)
        st.write(plan.description)
    with col2:
        st.metric("Duration", f"{plan.total_weeks} weeks")


def render_controls(plan: Plan, record: ProgressRecord) -> None:
    if not record.is_started or record.current_week == 0:
        st.button("Start plan", type="primary", on_click=_on_start, args=(plan,))
        return
    col1, col2, col3, col4 = st.columns(4)
    col1.button(
        "Previous week",
        on_click=_on_step,
        args=(plan, -1),
        disabled=record.current_week <= 1,
        use_container_width=True,
    )
    col2.button(
        "Next week",
        on_click=_on_step,
        args=(plan, 1),
        disabled=record.current_week >= plan.total_weeks,
        use_container_width=True,
    )
    col3.button(
        f"Complete week {record.current_week}",
        type="primary",
        on_click=_on_complete_current,
        args=(plan,),
        use_container_width=True,
    )
    col4.button("Reset", on_click=_on_reset, args=(plan,), use_container_width=True)


def render_progress(plan: Plan, record: ProgressRecord, view: ProgressView) -> None:
    if record.started_at is not None:
        st.caption(f"Started on {_fmt_date(record.started_at)}")
    else:
        st.caption("Not started yet")

    st.markdown(f"**{view.weeks_completed} / {plan.total_weeks} weeks completed** ({view.week_progress_pct}%)")
    st.progress(view.week_progress_pct / 100)
    if view.eta_date is not None:
        st.caption(f"Estimated finish: {_fmt_date(view.eta_date)}")
    if record.current_week > 0:
        st.caption(f"Current week: {record.current_week} of {plan.total_weeks}")
        stage = stage_for_week(plan, record.current_week)
        if stage is not None:
            st.markdown(f"This week: **{stage.title}**, {stage.description}")

    st.markdown(f"**{view.days_elapsed} / {view.total_days} days** ({view.day_progress_pct}%)")
    st.progress(view.day_progress_pct / 100)
    if view.days_remaining > 0:
        plural = "" if view.days_remaining == 1 else "s"
        st.caption(f"{view.days_remaining} day{plural} left.")
    else:
        st.success("Planned duration completed!")


def render_week_chart(plan: Plan, record: ProgressRecord) -> None:
    rows: List[Dict[str, Any]] = []
    for week in range(1, plan.total_weeks + 1):
        if week in record.completed_weeks:
            status = "Completed"
        elif week == record.current_week:
            status = "Current"
        else:
            status = "Upcoming"
        rows.append({"Week": week, "Status": status, "Days": 7})
    chart_df = pd.DataFrame(rows)
    chart = (
        alt.Chart(chart_df)
        .mark_bar()
        .encode(
            x=alt.X("Week:O", axis=alt.Axis(title="Week", labelAngle=0)),
            y=alt.Y("Days:Q", axis=None),
            color=alt.Color(
                "Status:N",
                scale=alt.Scale(domain=list(STATUS_COLORS), range=list(STATUS_COLORS.values())),
                legend=alt.Legend(title=""),
            ),
            tooltip=["Week", "Status"],
        )
        .properties(height=120)
    )
    st.altair_chart(chart, use_container_width=True)


def render_timeline(plan: Plan, record: ProgressRecord) -> None:
    timeline = stage_timeline(plan, record)
    if not timeline:
        return
    st.subheader("Plan stages")
    for row in timeline:
        label = f"Week {row['week']}"
        if row["title"]:
            label += f" · {row['title']}"
        if row["active"]:
            label += " ⭐"
        if row["completed"]:
            label += " (completed)"
        with st.expander(label, expanded=row["active"]):
            st.write(row["description"])
            col1, col2 = st.columns([1, 2])
            col1.button(
                "Go to this week",
                key=f"goto_{plan.id}_{row['week']}",
                on_click=_on_goto,
                args=(plan, row["week"]),
                disabled=not record.is_started,
            )
            widget_key = f"done_{plan.id}_{row['week']}"
            st.session_state[widget_key] = row["completed"]
            col2.checkbox(
                "Mark completed",
                key=widget_key,
                on_change=_on_toggle_week,
                args=(plan, row["week"], widget_key),
                disabled=not record.is_started,
            )
            if row["exercises"]:
                exercise_df = pd.DataFrame(
                    [{"Exercise": ex.name, "Dose": ex.dosage, "Notes": ex.description} for ex in row["exercises"]]
                )
                st.dataframe(exercise_df, hide_index=True, use_container_width=True)


configure_logging()
settings = get_settings()

st.set_page_config(page_title="Training Plan Progress", layout="wide")
plan = _select_plan()
st.title(plan.name)
st.caption(plan.category)

render_overview(plan)
st.subheader("Plan progress")
render_controls(plan, _load_record(plan))


# Reruns on its own so elapsed-day figures stay fresh while the page is open
@st.fragment(run_every=settings.refresh_seconds)
def progress_panel() -> None:
    record = _load_record(plan)
    now = _now()
    synced = sync_current_week(plan, record, now)
    if synced != record:
        _persist(plan, synced)
        st.rerun()
    render_progress(plan, record, compute_view(plan, record, now))
    render_week_chart(plan, record)


progress_panel()
render_timeline(plan, _load_record(plan))
