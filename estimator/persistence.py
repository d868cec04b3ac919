"""
Persistence adapter — turns a calculated estimate into a saved Project.

Two sequential writes, no shared transaction:
1. the project row (authoritative — failure means nothing was saved)
2. a `project_created` analytics event (best-effort — failure is logged only)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import settings
from .errors import PersistenceError, SaveValidationError, StoreError
from .estimation import Estimate
from .store import CommitGate, call_with_timeout

logger = logging.getLogger(__name__)

PROJECT_CREATED_EVENT = "project_created"


@dataclass
class SaveResult:
    project_id: int
    name: str
    total_cost: float
    created_at: Optional[str] = None
    analytics_recorded: bool = True

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "name": self.name,
            "total_cost": self.total_cost,
            "created_at": self.created_at,
            "analytics_recorded": self.analytics_recorded,
        }


def validate_save(owner_id, name) -> str:
    """Check save preconditions. Returns the trimmed project name."""
    if owner_id is None:
        raise SaveValidationError("Sign in to save projects")
    clean_name = (name or "").strip()
    if not clean_name:
        raise SaveValidationError("Project name is required")
    return clean_name


def project_row(owner_id: int, name: str, estimate: Estimate, locale: str = "es") -> dict:
    return {
        "user_id": owner_id,
        "name": name,
        "area": estimate.area,
        "project_type": estimate.project_type.value,
        "base_cost": estimate.base_cost,
        "materials_cost": estimate.materials_cost,
        "total_cost": estimate.total_cost,
        "materials": list(estimate.materials),
        "locale": locale,
    }


def save_project(
    store,
    owner_id: Optional[int],
    name: str,
    estimate: Estimate,
    locale: str = "es",
    timeout: Optional[float] = None,
) -> SaveResult:
    """
    Persist a calculated estimate as a Project, then record the analytics event.

    Raises SaveValidationError (no write attempted) or PersistenceError (project
    write failed or timed out before committing, so nothing was written and
    analytics is not attempted). Analytics failure never fails the save.
    """
    clean_name = validate_save(owner_id, name)
    timeout = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout

    try:
        saved = call_with_timeout(
            store.insert_project, timeout, project_row(owner_id, clean_name, estimate, locale),
            gate=CommitGate(),
        )
    except StoreError as e:
        logger.error("Project save failed for user %s: %s", owner_id, e)
        raise PersistenceError(f"Could not save project: {e}") from e

    project_id = saved["id"]
    total = float(estimate.total_cost)
    result = SaveResult(
        project_id=project_id,
        name=clean_name,
        total_cost=total,
        created_at=saved.get("created_at"),
    )

    event = {
        "event_type": PROJECT_CREATED_EVENT,
        "user_id": owner_id,
        "metadata": {
            "project_id": project_id,
            "project_name": clean_name,
            "total_cost": total,
        },
    }
    try:
        call_with_timeout(store.insert_event, timeout, event, gate=CommitGate())
    except StoreError as e:
        logger.warning("Analytics event for project %s not recorded: %s", project_id, e)
        result.analytics_recorded = False

    logger.info("Saved project %s (%s) for user %s", project_id, clean_name, owner_id)
    return result
