from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

from dateutil import parser as dateparser
from flask import Flask, Response, jsonify, request

from burndown_planner import engine
from burndown_planner.io_utils import items_to_frame, projects_from_records, team_from_records
from burndown_planner.models import PlannerConfig
from burndown_planner.repositories import (
    REQUIRED_INPUT_FILES,
    CsvProjectRepository,
    JsonTeamMemberRepository,
    ScopeNotFoundError,
    load_scope_config,
    plan_scope,
)


def _default_scopes_root() -> Path:
    return (Path(__file__).resolve().parent.parent / "scopes").resolve()


def _resolve_scopes_root() -> Path:
    env_value = os.getenv("SCOPES_ROOT")
    if env_value:
        return Path(env_value).expanduser().resolve()
    return _default_scopes_root()


def _missing_inputs(scope_dir: Path) -> List[str]:
    input_dir = scope_dir / "input"
    return [name for name in REQUIRED_INPUT_FILES if not (input_dir / name).is_file()]


def _list_scope_dirs(root: Path) -> List[Dict[str, object]]:
    entries: List[Dict[str, object]] = []
    if not root.exists():
        return entries
    for child in sorted(root.iterdir()):
        if not child.is_dir():
            continue
        missing = _missing_inputs(child)
        entries.append(
            {
                "name": child.relative_to(root).as_posix(),
                "input_dir": (child / "input").as_posix(),
                "is_valid": not missing,
                "missing": missing,
            }
        )
    return entries


def _parse_today(raw_value: object) -> Optional[date]:
    if raw_value in (None, ""):
        return None
    if not isinstance(raw_value, str):
        raise ValueError("today must be an ISO date string")
    try:
        return dateparser.isoparse(raw_value).date()
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"invalid today value: {raw_value}") from exc


def create_app(scopes_root: Optional[Path] = None) -> Flask:
    app = Flask(__name__)
    root = Path(scopes_root).resolve() if scopes_root else _resolve_scopes_root()
    projects_repository = CsvProjectRepository(root)
    team_repository = JsonTeamMemberRepository(root)
    app.config["SCOPES_ROOT"] = root

    def _scope_roadmap(scope_name: str):
        today = _parse_today(request.args.get("today"))
        config = load_scope_config(root, scope_name)
        return plan_scope(scope_name, projects_repository, team_repository, config=config, today=today)

    @app.errorhandler(ScopeNotFoundError)
    def scope_not_found(exc: ScopeNotFoundError):
        return jsonify({"error": str(exc)}), 404

    @app.errorhandler(ValueError)
    def bad_input(exc: ValueError):
        return jsonify({"error": str(exc)}), 400

    @app.get("/scopes")
    def scopes():
        return jsonify({"scopes": _list_scope_dirs(root)})

    @app.get("/api/roadmap/<scope_name>")
    def scope_roadmap(scope_name: str):
        return jsonify(_scope_roadmap(scope_name).to_dict())

    @app.get("/api/roadmap/<scope_name>/export")
    def export_roadmap(scope_name: str):
        """Roadmap items as a CSV download."""
        roadmap = _scope_roadmap(scope_name)
        csv_text = items_to_frame(roadmap.items).to_csv(index=False)
        return Response(
            csv_text,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={scope_name}-roadmap.csv"},
        )

    @app.post("/api/roadmap")
    def adhoc_roadmap():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "request body must be a JSON object"}), 400
        projects_data = data.get("projects", [])
        team_data = data.get("team", [])
        if not isinstance(projects_data, list) or not isinstance(team_data, list):
            return jsonify({"error": "projects and team must be arrays"}), 400
        if not all(isinstance(entry, dict) for entry in projects_data + team_data):
            return jsonify({"error": "projects and team entries must be objects"}), 400
        strict = data.get("strict", False)
        if not isinstance(strict, bool):
            return jsonify({"error": "strict must be a boolean"}), 400
        projects = projects_from_records(projects_data, strict=strict)
        team = team_from_records(team_data, strict=strict)
        config = PlannerConfig(strict_input=strict)
        roadmap = engine.plan(projects, team, today=_parse_today(data.get("today")), config=config)
        return jsonify(roadmap.to_dict())

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
