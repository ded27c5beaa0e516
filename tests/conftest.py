"""Shared fixtures for the roadmap planner tests."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Tuple

import pytest

from burndown_planner.models import Project, RoleEffort, TeamMember

# 2025-03-03 is a Monday; every calendar assertion is relative to it.
MONDAY = date(2025, 3, 3)


@pytest.fixture
def today() -> date:
    return MONDAY


@pytest.fixture
def make_project() -> Callable[..., Project]:
    """Factory: ``make_project("p1", priority=1, fe=(10, 0))``."""

    def _make(
        project_id: str,
        priority: Optional[int] = 1,
        *,
        deadline: Optional[date] = None,
        start_day: Optional[date] = None,
        **efforts: Tuple[float, float],
    ) -> Project:
        return Project(
            id=project_id,
            name=f"Project {project_id}",
            priority=priority,
            delivery_date=deadline,
            start_day=start_day,
            role_efforts={
                role: RoleEffort(planned_mandays=mandays, done_pct=done)
                for role, (mandays, done) in efforts.items()
            },
        )

    return _make


@pytest.fixture
def make_member() -> Callable[..., TeamMember]:
    def _make(member_id: str = "m1", fte: float = 1.0, md_rate: Optional[float] = None) -> TeamMember:
        return TeamMember(id=member_id, name=member_id.upper(), fte=fte, md_rate=md_rate)

    return _make


@pytest.fixture
def scope_root(tmp_path: Path) -> Path:
    """A scopes root holding one complete scope named ``alpha``."""
    input_dir = tmp_path / "alpha" / "input"
    input_dir.mkdir(parents=True)
    (input_dir / "projects.csv").write_text(
        "id,name,priority,delivery_date,start_day,fe_mandays,fe_done,be_mandays,be_done\n"
        "p1,Checkout,1,2025-03-10,,6,50,4,0\n"
        "p2,Search,2,,,10,0,,\n"
        "p3,Legacy cleanup,3,,,5,100,0,0\n"
    )
    (input_dir / "team.json").write_text(
        json.dumps(
            [
                {"id": "m1", "name": "Ada", "fte": 1, "md_rate": 500},
                {"id": "m2", "name": "Linus", "fte": 1, "mdRate": 700},
            ]
        )
    )
    (input_dir / "config.json").write_text(json.dumps({"today": MONDAY.isoformat()}))
    return tmp_path
