from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from dateutil import parser as dateparser

from . import engine
from .io_utils import (
    InvalidInputError,
    ensure_directory,
    frame_records,
    items_to_frame,
    load_config,
    load_projects,
    load_team,
    projects_from_records,
    summary_to_frame,
    team_from_records,
    write_csv,
)
from .models import PlannerConfig, RiskLevel, Roadmap, RoadmapItem
from .repositories import CONFIG_FILE, PROJECTS_FILE, TEAM_FILE

RISK_HEADINGS = {
    RiskLevel.CAPACITY_GAP: "Capacity gap",
    RiskLevel.AT_RISK: "At risk",
    RiskLevel.ON_TRACK: "On track",
    RiskLevel.NO_DEADLINE: "No deadline",
}


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sequential allocation roadmap for one scope (CSV/JSON in, CSV out)."
    )
    parser.add_argument(
        "--scope-dir",
        help="Scope directory containing input/ and output/ subfolders",
    )
    parser.add_argument("--projects", help="Path to projects CSV input (overrides scope-dir default)")
    parser.add_argument("--team", help="Path to team JSON input (overrides scope-dir default)")
    parser.add_argument("--config", help="Path to configuration JSON file (optional)")
    parser.add_argument(
        "--outdir",
        default=None,
        help="Output directory for generated files (default: <scope-dir>/output or ./out)",
    )
    parser.add_argument("--today", help="Plan as if today were this ISO date")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject malformed project or team records instead of ignoring bad values",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Plan and print the roadmap without writing output files",
    )
    return parser.parse_args(argv)


def _resolve_io_paths(args: argparse.Namespace) -> Tuple[Path, Path, Optional[Path], Path]:
    scope_dir = Path(args.scope_dir).resolve() if args.scope_dir else None
    if scope_dir and not scope_dir.exists():
        raise ValueError(f"scope directory not found: {scope_dir}")
    input_dir = scope_dir / "input" if scope_dir else None

    def _pick(path_value: Optional[str], default_name: str) -> Optional[Path]:
        if path_value:
            return Path(path_value)
        if input_dir:
            return input_dir / default_name
        return None

    projects_path = _pick(args.projects, PROJECTS_FILE)
    team_path = _pick(args.team, TEAM_FILE)
    config_path = _pick(args.config, CONFIG_FILE)

    missing = [
        name for name, value in (("projects", projects_path), ("team", team_path)) if value is None
    ]
    if missing:
        joined = ", ".join(f"--{name}" for name in missing)
        raise ValueError(f"missing required input paths: {joined} (or provide --scope-dir)")

    for label, path in (("projects", projects_path), ("team", team_path)):
        if not path.exists():
            raise ValueError(f"{label} file not found at {path}")
    if config_path is not None and not config_path.exists():
        if args.config:
            raise ValueError(f"config file not found at {config_path}")
        config_path = None

    if args.outdir:
        outdir = Path(args.outdir)
    elif scope_dir:
        outdir = scope_dir / "output"
    else:
        outdir = Path("out")

    return projects_path, team_path, config_path, outdir


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(message)s")


def _format_window(item: RoadmapItem) -> str:
    arrow = "→"
    days_label = "workday" if item.estimated_duration_workdays == 1 else "workdays"
    return (
        f"{item.planned_start.isoformat()} {arrow} {item.planned_finish.isoformat()} "
        f"({item.estimated_duration_workdays} {days_label})"
    )


def _print_dry_run_summary(roadmap: Roadmap) -> None:
    summary = roadmap.summary
    if not roadmap.items:
        print("No projects scheduled.")
    else:
        print("Roadmap:")
        for item in roadmap.items:
            print(f"- {item.project_id} {item.project_name}: {_format_window(item)} [{item.risk_level.value}]")
    print(
        f"\nTeam capacity: {summary.total_team_fte:.2f} FTE"
        + (" (fallback)" if summary.fallback_fte_used else "")
    )
    print(f"Remaining effort: {summary.total_remaining_mandays:.2f} MD")
    print(f"Budget: {summary.total_budget:.2f}")
    print(f"Duration: {summary.total_duration_workdays} workdays")


def _write_roadmap_markdown(roadmap: Roadmap, outdir: Path) -> Path:
    path = outdir / "roadmap.md"
    lines: List[str] = ["# Allocation Roadmap", ""]
    summary = roadmap.summary
    if not roadmap.items:
        lines.append("No projects with remaining effort.")
    else:
        lines.append(f"- Window: {summary.roadmap_start} → {summary.roadmap_end}")
        capacity_note = " (no capacity on record, assumed)" if summary.fallback_fte_used else ""
        lines.append(f"- Team capacity: {summary.total_team_fte:.2f} FTE{capacity_note}")
        lines.append(f"- Remaining effort: {summary.total_remaining_mandays:.2f} MD")
        lines.append(f"- Budget: {summary.total_budget:.2f}")
        lines.append("")
        grouped: Dict[RiskLevel, List[RoadmapItem]] = {level: [] for level in RISK_HEADINGS}
        for item in roadmap.items:
            grouped[item.risk_level].append(item)
        for level, heading in RISK_HEADINGS.items():
            items = grouped[level]
            if not items:
                continue
            lines.append(f"## {heading}")
            lines.append("")
            for item in items:
                lines.append(f"- **{item.project_id} – {item.project_name}** (priority {item.priority})")
                lines.append(f"  - Window: {_format_window(item)}")
                if item.deadline:
                    lines.append(f"  - Deadline: {item.deadline.isoformat()}")
                    lines.append(
                        f"  - FTE needed: {item.required_fte_for_deadline:.2f} (gap {item.fte_gap:+.2f})"
                    )
            lines.append("")
    path.write_text("\n".join(lines).strip() + "\n")
    return path


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    try:
        projects_path, team_path, config_path, outdir = _resolve_io_paths(args)
        cfg = load_config(config_path) if config_path else PlannerConfig()
        if args.today:
            cfg = replace(cfg, today=dateparser.isoparse(args.today).date())
        projects_df = load_projects(projects_path)
        team_records = load_team(team_path)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(2)
    if args.strict:
        cfg = replace(cfg, strict_input=True)
    _configure_logging(cfg.logging_level)

    try:
        projects = projects_from_records(frame_records(projects_df), strict=cfg.strict_input)
        team = team_from_records(team_records, strict=cfg.strict_input)
    except InvalidInputError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)
    roadmap = engine.plan(projects, team, config=cfg)

    if args.dry_run:
        _print_dry_run_summary(roadmap)
        return

    outdir_path = ensure_directory(outdir)
    roadmap_path = outdir_path / "roadmap.csv"
    summary_path = outdir_path / "roadmap_summary.csv"
    write_csv(items_to_frame(roadmap.items), roadmap_path)
    write_csv(summary_to_frame(roadmap.summary), summary_path)
    markdown_path = _write_roadmap_markdown(roadmap, outdir_path)
    print(f"Wrote {roadmap_path}")
    print(f"Wrote {summary_path}")
    print(f"Wrote {markdown_path}")


if __name__ == "__main__":
    main()
