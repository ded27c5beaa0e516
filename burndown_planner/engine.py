from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import (
    PlannerConfig,
    Project,
    RiskLevel,
    Roadmap,
    RoadmapItem,
    RoadmapSummary,
    TeamMember,
)
from .workdays import add_workdays, next_workday, workdays_diff

logger = logging.getLogger(__name__)


def round2(value: float) -> float:
    """Round half-up to two decimals."""
    scaled = value * 100 + 0.5
    if not math.isfinite(scaled):
        return value
    return math.floor(scaled) / 100


def compute_remaining_mandays(project: Project) -> float:
    total = 0.0
    for effort in project.role_efforts.values():
        if not math.isfinite(effort.planned_mandays):
            continue
        total += effort.remaining()
    return total


def compute_average_md_rate(team: Iterable[TeamMember]) -> float:
    rates = [
        float(member.md_rate)
        for member in team
        if member.md_rate is not None and math.isfinite(member.md_rate) and member.md_rate > 0
    ]
    if not rates:
        return 0.0
    return round2(sum(rates) / len(rates))


def compute_team_capacity(team: Iterable[TeamMember]) -> Tuple[float, bool]:
    """Return the baseline team FTE and whether the floor of 1 was a fallback."""
    numeric_fte = 0.0
    for member in team:
        if member.fte is not None and math.isfinite(member.fte):
            numeric_fte += member.fte
    baseline = max(1.0, round2(numeric_fte))
    return baseline, numeric_fte <= 0


def classify_risk(
    deadline: Optional[date],
    planned_finish: date,
    required_fte: float,
    baseline_fte: float,
) -> RiskLevel:
    if deadline is None:
        return RiskLevel.NO_DEADLINE
    if planned_finish <= deadline and required_fte <= baseline_fte:
        return RiskLevel.ON_TRACK
    if required_fte > baseline_fte:
        return RiskLevel.CAPACITY_GAP
    return RiskLevel.AT_RISK


def _schedule_key(entry: Tuple[Project, float]) -> Tuple[float, float]:
    project = entry[0]
    priority = project.priority if project.priority is not None else math.inf
    deadline = project.delivery_date.toordinal() if project.delivery_date else math.inf
    return priority, deadline


def _schedulable(projects: Iterable[Project]) -> List[Tuple[Project, float]]:
    entries: List[Tuple[Project, float]] = []
    for project in projects:
        remaining = compute_remaining_mandays(project)
        if remaining > 0:
            entries.append((project, remaining))
        else:
            logger.debug("project %s has no remaining effort, left off the roadmap", project.id)
    return sorted(entries, key=_schedule_key)


def _initial_cursor(entries: Sequence[Tuple[Project, float]], today: date) -> date:
    explicit = [project.start_day for project, _ in entries if project.start_day is not None]
    cursor = min(explicit) if explicit else today
    return max(cursor, today)


@dataclass(frozen=True)
class _ScheduleContext:
    baseline_fte: float
    average_md_rate: float
    config: PlannerConfig


def _schedule_project(
    project: Project,
    remaining: float,
    cursor: date,
    index: int,
    ctx: _ScheduleContext,
) -> Tuple[RoadmapItem, date]:
    """Place one project on the timeline and return it with the next cursor."""
    floor = max(cursor, project.start_day) if project.start_day else cursor
    planned_start = next_workday(floor)
    duration = max(1, math.ceil(remaining / ctx.baseline_fte))
    planned_finish = add_workdays(planned_start, duration)
    if planned_finish == date.max:
        logger.warning("project %s runs past the end of the calendar; finish pinned at %s", project.id, date.max)

    deadline = project.delivery_date
    if deadline is not None:
        window = max(1, abs(workdays_diff(planned_start, deadline)))
        required_fte = round2(remaining / window)
    else:
        required_fte = ctx.baseline_fte
    fte_gap = round2(ctx.baseline_fte - required_fte)
    risk = classify_risk(deadline, planned_finish, required_fte, ctx.baseline_fte)

    item = RoadmapItem(
        project_id=project.id,
        project_name=project.name,
        priority=project.priority,
        remaining_mandays=remaining,
        estimated_budget=round2(remaining * ctx.average_md_rate),
        required_fte_for_deadline=required_fte,
        available_team_fte=ctx.baseline_fte,
        fte_gap=fte_gap,
        planned_start=planned_start,
        planned_finish=planned_finish,
        deadline=deadline,
        estimated_duration_workdays=duration,
        risk_level=risk,
        color_class=ctx.config.color_for_index(index),
    )
    logger.debug(
        "scheduled %s: %s -> %s (%d workdays, %s)",
        project.id,
        planned_start.isoformat(),
        planned_finish.isoformat(),
        duration,
        risk.value,
    )
    return item, planned_finish


def build_summary(
    items: Sequence[RoadmapItem],
    baseline_fte: float,
    fallback_fte_used: bool,
    average_md_rate: float = 0.0,
) -> RoadmapSummary:
    risk_counts: Dict[str, int] = {level.value: 0 for level in RiskLevel}
    for item in items:
        risk_counts[item.risk_level.value] += 1
    return RoadmapSummary(
        total_team_fte=baseline_fte,
        fallback_fte_used=fallback_fte_used,
        total_remaining_mandays=round2(sum(item.remaining_mandays for item in items)),
        total_budget=round2(sum(item.estimated_budget for item in items)),
        total_duration_workdays=sum(item.estimated_duration_workdays for item in items),
        roadmap_start=items[0].planned_start if items else None,
        roadmap_end=items[-1].planned_finish if items else None,
        average_md_rate=average_md_rate,
        risk_counts=risk_counts,
    )


def plan(
    projects: Sequence[Project],
    team: Sequence[TeamMember],
    *,
    today: Optional[date] = None,
    config: Optional[PlannerConfig] = None,
) -> Roadmap:
    """Build the sequential allocation roadmap for one scope.

    Projects are ordered by priority, then deadline (deadline-less last), and
    placed back to back on a shared timeline so the whole team works on one
    project at a time. Each project gets a working-day window sized by its
    remaining effort over the team's combined FTE.
    """
    cfg = config or PlannerConfig()
    if today is None:
        today = cfg.today or date.today()

    baseline_fte, fallback_fte_used = compute_team_capacity(team)
    if fallback_fte_used and cfg.warn_on_fallback_fte:
        logger.warning("team has no FTE capacity on record; assuming 1 FTE")
    average_md_rate = compute_average_md_rate(team)

    entries = _schedulable(projects)
    if not entries:
        return Roadmap(items=[], summary=build_summary([], baseline_fte, fallback_fte_used, average_md_rate))

    ctx = _ScheduleContext(baseline_fte=baseline_fte, average_md_rate=average_md_rate, config=cfg)
    cursor = _initial_cursor(entries, today)
    items: List[RoadmapItem] = []
    for index, (project, remaining) in enumerate(entries):
        item, cursor = _schedule_project(project, remaining, cursor, index, ctx)
        items.append(item)

    summary = build_summary(items, baseline_fte, fallback_fte_used, average_md_rate)
    logger.info(
        "planned %d projects over %d workdays (%s -> %s)",
        len(items),
        summary.total_duration_workdays,
        summary.roadmap_start,
        summary.roadmap_end,
    )
    return Roadmap(items=items, summary=summary)
