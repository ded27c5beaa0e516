from __future__ import annotations

import json
import logging
import math
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd
from dateutil import parser as dateparser

from .models import COLOR_POOL, PlannerConfig, Project, RoadmapItem, RoadmapSummary, RoleEffort, TeamMember

logger = logging.getLogger(__name__)

MANDAYS_SUFFIX = "_mandays"
DONE_SUFFIX = "_done"

_PROJECT_REQUIRED_COLUMNS = {"id", "name", "priority"}

ROADMAP_COLUMNS = [
    "project_id",
    "project_name",
    "priority",
    "remaining_mandays",
    "estimated_budget",
    "required_fte_for_deadline",
    "available_team_fte",
    "fte_gap",
    "planned_start",
    "planned_finish",
    "deadline",
    "estimated_duration_workdays",
    "risk_level",
]


class InvalidInputError(ValueError):
    """Raised for malformed project or team records when strict input is on."""


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def _first_present(record: Mapping[str, object], *keys: str) -> object:
    for key in keys:
        value = record.get(key)
        if not _is_missing(value):
            return value
    return None


def _reject(message: str, strict: bool) -> None:
    if strict:
        raise InvalidInputError(message)
    logger.debug("ignoring %s", message)


def parse_number(value: object, field_name: str, *, strict: bool = False) -> Optional[float]:
    """Coerce a record value to a finite float, or None when absent or unusable."""
    if _is_missing(value):
        return None
    if isinstance(value, bool):
        _reject(f"non-numeric value in '{field_name}': {value!r}", strict)
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        _reject(f"non-numeric value in '{field_name}': {value!r}", strict)
        return None
    if not math.isfinite(number):
        _reject(f"non-finite value in '{field_name}': {value!r}", strict)
        return None
    return number


def parse_optional_date(value: object, field_name: str, *, strict: bool = False) -> Optional[date]:
    if _is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return dateparser.isoparse(str(value).strip()).date()
    except (ValueError, TypeError, OverflowError):
        _reject(f"invalid date in '{field_name}': {value}", strict)
        return None


def _parse_priority(value: object, record_id: str, strict: bool) -> Optional[float]:
    number = parse_number(value, f"priority of {record_id}", strict=strict)
    if number is None:
        if strict:
            raise InvalidInputError(f"project {record_id} has no priority")
        return None
    if number.is_integer():
        return int(number)
    if strict:
        raise InvalidInputError(f"priority of {record_id} must be an integer: {value!r}")
    logger.debug("priority of %s is fractional, kept as %s", record_id, number)
    return number


def role_efforts_from_record(
    record: Mapping[str, object], *, strict: bool = False
) -> Dict[str, RoleEffort]:
    """Collect ``<role>_mandays`` / ``<role>_done`` pairs into a role map."""
    efforts: Dict[str, RoleEffort] = {}
    for key in record:
        if not isinstance(key, str) or not key.endswith(MANDAYS_SUFFIX):
            continue
        role = key[: -len(MANDAYS_SUFFIX)]
        planned = parse_number(record[key], key, strict=strict)
        done_key = f"{role}{DONE_SUFFIX}"
        done = parse_number(record.get(done_key), done_key, strict=strict)
        # An unreadable done percentage counts as nothing done, so the role keeps
        # its full planned effort.
        efforts[role] = RoleEffort(
            planned_mandays=planned if planned is not None else 0.0,
            done_pct=done if done is not None else 0.0,
        )
    return efforts


def project_from_record(record: Mapping[str, object], *, strict: bool = False) -> Project:
    raw_id = _first_present(record, "id")
    if raw_id is None:
        if strict:
            raise InvalidInputError("project record without id")
        raw_id = record.get("name", "")
    record_id = str(raw_id)
    name = _first_present(record, "name")
    if name is None and strict:
        raise InvalidInputError(f"project {record_id} has no name")
    return Project(
        id=record_id,
        name=str(name) if name is not None else record_id,
        priority=_parse_priority(record.get("priority"), record_id, strict),
        delivery_date=parse_optional_date(
            _first_present(record, "delivery_date", "deliveryDate"), "delivery_date", strict=strict
        ),
        start_day=parse_optional_date(
            _first_present(record, "start_day", "startDay"), "start_day", strict=strict
        ),
        role_efforts=role_efforts_from_record(record, strict=strict),
    )


def member_from_record(record: Mapping[str, object], *, strict: bool = False) -> TeamMember:
    name = _first_present(record, "name", "person")
    raw_id = _first_present(record, "id")
    if raw_id is None and name is None and strict:
        raise InvalidInputError("team member record without id or name")
    member_id = str(raw_id if raw_id is not None else name or "")
    fte = parse_number(record.get("fte"), f"fte of {member_id}", strict=strict)
    md_rate = parse_number(_first_present(record, "md_rate", "mdRate"), f"md_rate of {member_id}", strict=strict)
    role = _first_present(record, "role")
    return TeamMember(
        id=member_id,
        name=str(name) if name is not None else member_id,
        fte=fte if fte is not None else 0.0,
        md_rate=md_rate,
        role=str(role) if role is not None else "",
    )


def projects_from_records(
    records: Iterable[Mapping[str, object]], *, strict: bool = False
) -> List[Project]:
    return [project_from_record(record, strict=strict) for record in records]


def team_from_records(
    records: Iterable[Mapping[str, object]], *, strict: bool = False
) -> List[TeamMember]:
    return [member_from_record(record, strict=strict) for record in records]


def _require_columns(df: pd.DataFrame, required: Iterable[str], source: str) -> None:
    missing = sorted(col for col in required if col not in df.columns)
    if missing:
        raise ValueError(f"{source} missing required columns: {', '.join(missing)}")


def load_projects(path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(path, dtype={"id": str})
    _require_columns(df, _PROJECT_REQUIRED_COLUMNS, "projects.csv")
    if not any(str(col).endswith(MANDAYS_SUFFIX) for col in df.columns):
        raise ValueError(f"projects.csv has no '*{MANDAYS_SUFFIX}' effort columns")
    return df


def frame_records(df: pd.DataFrame) -> List[Dict[str, object]]:
    """Convert a loaded frame to plain records, with blanks as None."""
    cleaned = df.astype(object).where(pd.notna(df), None)
    return cleaned.to_dict(orient="records")


def load_team(path: str | Path) -> List[Dict[str, object]]:
    data = json.loads(Path(path).read_text())
    if not isinstance(data, list):
        raise ValueError("team file must be a JSON array")
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError("team entries must be objects")
    return data


def _parse_palette(value: object) -> Tuple[str, ...]:
    if value is None:
        return COLOR_POOL
    if not isinstance(value, list) or not value:
        raise ValueError("color_palette must be a non-empty array of strings")
    if not all(isinstance(entry, str) and entry for entry in value):
        raise ValueError("color_palette entries must be non-empty strings")
    return tuple(value)


def load_config(path: str | Path) -> PlannerConfig:
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError("config must be a JSON object")
    today_raw = data.get("today")
    today: Optional[date]
    if today_raw is None:
        today = None
    elif not isinstance(today_raw, str):
        raise ValueError("today must be null or an ISO date string")
    else:
        try:
            today = dateparser.isoparse(today_raw).date()
        except (ValueError, TypeError) as exc:
            raise ValueError("today must be null or an ISO date string") from exc
    logging_level = data.get("logging_level", "INFO")
    if not isinstance(logging_level, str):
        raise ValueError("logging_level must be a string")
    strict_input = data.get("strict_input", False)
    if not isinstance(strict_input, bool):
        raise ValueError("strict_input must be a boolean")
    warn_on_fallback_fte = data.get("warn_on_fallback_fte", True)
    if not isinstance(warn_on_fallback_fte, bool):
        raise ValueError("warn_on_fallback_fte must be a boolean")
    return PlannerConfig(
        today=today,
        logging_level=logging_level,
        strict_input=strict_input,
        warn_on_fallback_fte=warn_on_fallback_fte,
        color_palette=_parse_palette(data.get("color_palette")),
    )


def items_to_frame(items: Sequence[RoadmapItem]) -> pd.DataFrame:
    rows = [{col: item.to_dict()[col] for col in ROADMAP_COLUMNS} for item in items]
    return pd.DataFrame(rows, columns=ROADMAP_COLUMNS)


def summary_to_frame(summary: RoadmapSummary) -> pd.DataFrame:
    row = summary.to_dict()
    counts = row.pop("risk_counts")
    for level, count in counts.items():
        row[f"risk_{level}"] = count
    return pd.DataFrame([row])


def ensure_directory(path: str | Path) -> Path:
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target


def write_csv(df: pd.DataFrame, path: str | Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
