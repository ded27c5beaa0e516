"""Read-side access to a scope's projects and team.

The planner only needs ``find_by_scope_id``; records come back as plain
mappings and are converted to models at the boundary in :mod:`io_utils`.
"""

from __future__ import annotations

import abc
from datetime import date
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from . import engine
from .io_utils import (
    frame_records,
    load_config,
    load_projects,
    load_team,
    projects_from_records,
    team_from_records,
)
from .models import PlannerConfig, Roadmap

Record = Mapping[str, object]

PROJECTS_FILE = "projects.csv"
TEAM_FILE = "team.json"
CONFIG_FILE = "config.json"
REQUIRED_INPUT_FILES = (PROJECTS_FILE, TEAM_FILE)


class ScopeNotFoundError(LookupError):
    def __init__(self, scope_id: str) -> None:
        super().__init__(f"scope not found: {scope_id}")
        self.scope_id = scope_id


class ProjectRepository(abc.ABC):
    @abc.abstractmethod
    def find_by_scope_id(self, scope_id: str) -> List[Record]:
        ...


class TeamMemberRepository(abc.ABC):
    @abc.abstractmethod
    def find_by_scope_id(self, scope_id: str) -> List[Record]:
        ...


class InMemoryProjectRepository(ProjectRepository):
    def __init__(self, records_by_scope: Optional[Dict[str, Sequence[Record]]] = None) -> None:
        self._records: Dict[str, List[Record]] = {
            scope_id: list(records) for scope_id, records in (records_by_scope or {}).items()
        }

    def add(self, scope_id: str, record: Record) -> None:
        self._records.setdefault(scope_id, []).append(record)

    def find_by_scope_id(self, scope_id: str) -> List[Record]:
        return list(self._records.get(scope_id, []))


class InMemoryTeamMemberRepository(TeamMemberRepository):
    def __init__(self, records_by_scope: Optional[Dict[str, Sequence[Record]]] = None) -> None:
        self._records: Dict[str, List[Record]] = {
            scope_id: list(records) for scope_id, records in (records_by_scope or {}).items()
        }

    def add(self, scope_id: str, record: Record) -> None:
        self._records.setdefault(scope_id, []).append(record)

    def find_by_scope_id(self, scope_id: str) -> List[Record]:
        return list(self._records.get(scope_id, []))


def scope_input_dir(root: str | Path, scope_id: str) -> Path:
    """Resolve ``<root>/<scope_id>/input``, refusing paths outside ``root``."""
    root_path = Path(root).resolve()
    scope_dir = (root_path / scope_id).resolve()
    try:
        scope_dir.relative_to(root_path)
    except ValueError as exc:
        raise ScopeNotFoundError(scope_id) from exc
    if scope_dir == root_path or not scope_dir.is_dir():
        raise ScopeNotFoundError(scope_id)
    return scope_dir / "input"


class CsvProjectRepository(ProjectRepository):
    """Projects from ``<root>/<scope_id>/input/projects.csv``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def find_by_scope_id(self, scope_id: str) -> List[Record]:
        path = scope_input_dir(self.root, scope_id) / PROJECTS_FILE
        if not path.is_file():
            raise ValueError(f"{PROJECTS_FILE} not found at {path}")
        return frame_records(load_projects(path))


class JsonTeamMemberRepository(TeamMemberRepository):
    """Team roster from ``<root>/<scope_id>/input/team.json``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def find_by_scope_id(self, scope_id: str) -> List[Record]:
        path = scope_input_dir(self.root, scope_id) / TEAM_FILE
        if not path.is_file():
            raise ValueError(f"{TEAM_FILE} not found at {path}")
        return load_team(path)


def plan_scope(
    scope_id: str,
    project_repository: ProjectRepository,
    team_repository: TeamMemberRepository,
    config: Optional[PlannerConfig] = None,
    today: Optional[date] = None,
) -> Roadmap:
    cfg = config or PlannerConfig()
    projects = projects_from_records(project_repository.find_by_scope_id(scope_id), strict=cfg.strict_input)
    team = team_from_records(team_repository.find_by_scope_id(scope_id), strict=cfg.strict_input)
    return engine.plan(projects, team, today=today, config=cfg)


def load_scope_config(root: str | Path, scope_id: str) -> PlannerConfig:
    path = scope_input_dir(root, scope_id) / CONFIG_FILE
    if not path.is_file():
        return PlannerConfig()
    return load_config(path)
