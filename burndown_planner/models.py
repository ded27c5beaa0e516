from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple


Role = str


COLOR_POOL: Tuple[str, ...] = (
    "from-sky-500/20 via-sky-500/10 to-blue-600/10",
    "from-emerald-500/20 via-emerald-500/10 to-green-600/10",
    "from-purple-500/20 via-purple-500/10 to-indigo-600/10",
    "from-pink-500/20 via-pink-500/10 to-rose-600/10",
    "from-amber-500/20 via-amber-400/10 to-orange-600/10",
)


class RiskLevel(str, Enum):
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    CAPACITY_GAP = "capacity_gap"
    NO_DEADLINE = "no_deadline"


@dataclass(frozen=True)
class RoleEffort:
    """Planned effort for one role on a project and how much of it is done."""

    planned_mandays: float
    done_pct: float = 0.0

    def remaining(self) -> float:
        return max(0.0, self.planned_mandays * (1 - self.done_pct / 100))


@dataclass(frozen=True)
class Project:
    """Project record as handed over by the persistence layer."""

    id: str
    name: str
    priority: Optional[float]
    delivery_date: Optional[date] = None
    start_day: Optional[date] = None
    role_efforts: Dict[Role, RoleEffort] = field(default_factory=dict)

    def remaining_by_role(self) -> Dict[Role, float]:
        return {role: effort.remaining() for role, effort in self.role_efforts.items()}

    def remaining_mandays(self) -> float:
        return sum(self.remaining_by_role().values())

    def has_demand(self) -> bool:
        return self.remaining_mandays() > 0


@dataclass(frozen=True)
class TeamMember:
    id: str
    name: str
    fte: float = 0.0
    md_rate: Optional[float] = None
    role: str = ""


@dataclass(frozen=True)
class RoadmapItem:
    project_id: str
    project_name: str
    priority: Optional[float]
    remaining_mandays: float
    estimated_budget: float
    required_fte_for_deadline: float
    available_team_fte: float
    fte_gap: float
    planned_start: date
    planned_finish: date
    deadline: Optional[date]
    estimated_duration_workdays: int
    risk_level: RiskLevel
    color_class: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "project_id": self.project_id,
            "project_name": self.project_name,
            "priority": self.priority,
            "remaining_mandays": self.remaining_mandays,
            "estimated_budget": self.estimated_budget,
            "required_fte_for_deadline": self.required_fte_for_deadline,
            "available_team_fte": self.available_team_fte,
            "fte_gap": self.fte_gap,
            "planned_start": self.planned_start.isoformat(),
            "planned_finish": self.planned_finish.isoformat(),
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "estimated_duration_workdays": self.estimated_duration_workdays,
            "risk_level": self.risk_level.value,
            "color_class": self.color_class,
        }


@dataclass(frozen=True)
class RoadmapSummary:
    total_team_fte: float
    fallback_fte_used: bool
    total_remaining_mandays: float
    total_budget: float
    total_duration_workdays: int
    roadmap_start: Optional[date]
    roadmap_end: Optional[date]
    average_md_rate: float = 0.0
    risk_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_team_fte": self.total_team_fte,
            "fallback_fte_used": self.fallback_fte_used,
            "total_remaining_mandays": self.total_remaining_mandays,
            "total_budget": self.total_budget,
            "total_duration_workdays": self.total_duration_workdays,
            "roadmap_start": self.roadmap_start.isoformat() if self.roadmap_start else None,
            "roadmap_end": self.roadmap_end.isoformat() if self.roadmap_end else None,
            "average_md_rate": self.average_md_rate,
            "risk_counts": dict(self.risk_counts),
        }


@dataclass(frozen=True)
class Roadmap:
    items: List[RoadmapItem]
    summary: RoadmapSummary

    def to_dict(self) -> Dict[str, object]:
        return {
            "items": [item.to_dict() for item in self.items],
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class PlannerConfig:
    today: Optional[date] = None
    logging_level: str = "INFO"
    strict_input: bool = False
    warn_on_fallback_fte: bool = True
    color_palette: Tuple[str, ...] = COLOR_POOL

    def color_for_index(self, index: int) -> str:
        return self.color_palette[index % len(self.color_palette)]
