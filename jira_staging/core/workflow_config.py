"""Load the workflow definition and business calendar from YAML (with fallbacks)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from .calendar import BusinessCalendar
from .config import (
    BUSINESS_WEEKMASK,
    DEFAULT_ACTIVE_STATUSES,
    DEFAULT_HOLIDAYS,
    DEFAULT_WORKFLOW_STAGES,
    DONE_STATUS,
    WORKFLOW_CONFIG_FILENAME,
)
from .exceptions import InvalidInputError
from .models import Workflow

logger = logging.getLogger(__name__)

_CACHE: dict[Path, WorkflowSettings] = {}


@dataclass(frozen=True, slots=True)
class WorkflowSettings:
    workflow: Workflow
    calendar: BusinessCalendar


def default_settings() -> WorkflowSettings:
    return WorkflowSettings(
        workflow=Workflow.from_definition(DEFAULT_WORKFLOW_STAGES, DEFAULT_ACTIVE_STATUSES, DONE_STATUS),
        calendar=BusinessCalendar(BUSINESS_WEEKMASK, DEFAULT_HOLIDAYS),
    )


def _settings_from_data(data: dict) -> WorkflowSettings:
    stages = data.get("stages") or list(DEFAULT_WORKFLOW_STAGES)
    if isinstance(stages, dict):
        stages = list(stages)
    active = data.get("active")
    if active is None:
        active = [s for s in DEFAULT_ACTIVE_STATUSES if s in stages]
    stages = [str(s) for s in stages]
    done = str(data.get("done") or DONE_STATUS)
    if data.get("done") and done not in stages:
        raise InvalidInputError(f"terminal stage {done!r} not in stages")
    calendar_data = data.get("calendar") or {}
    return WorkflowSettings(
        workflow=Workflow.from_definition(stages, [str(s) for s in active], done),
        calendar=BusinessCalendar(
            str(calendar_data.get("weekmask") or BUSINESS_WEEKMASK),
            calendar_data.get("holidays") or DEFAULT_HOLIDAYS,
        ),
    )


def load_workflow_settings(base_path: str | Path | None = None) -> WorkflowSettings:
    """Read ``workflow.yaml`` from ``base_path`` (the repository root by default).

    A missing or unreadable file falls back to the defaults in ``config.py``.
    A readable file that contradicts itself (e.g. an active status missing from
    ``stages``) raises ``InvalidInputError``.
    """
    base = Path(base_path or Path(__file__).resolve().parents[2])
    yaml_path = base / WORKFLOW_CONFIG_FILENAME
    if yaml_path in _CACHE:
        return _CACHE[yaml_path]
    if not yaml_path.exists():
        settings = default_settings()
    else:
        try:
            data = yaml.safe_load(yaml_path.read_text()) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Could not read %s, using default workflow: %s", yaml_path, exc)
            data = {}
        if not isinstance(data, dict):
            raise InvalidInputError(f"{yaml_path.name} must hold a mapping")
        settings = _settings_from_data(data)
    _CACHE[yaml_path] = settings
    return settings


def clear_cache() -> None:
    _CACHE.clear()
