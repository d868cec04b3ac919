"""
Data store interface for the estimator.

The estimator only needs three calls: query active materials, insert a
project row, insert an analytics row. SqlAlchemyStore implements them over
the ORM; tests substitute in-memory fakes.

Inserts take an optional CommitGate. A write commits only if the gate lets
it through, so a write its caller has already reported as timed out never
lands afterwards.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from typing import List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import StoreError, StoreTimeout

logger = logging.getLogger(__name__)


class CommitGate:
    """One-shot decision between the writer (commit) and the caller (give up)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._decision = None

    def begin_commit(self) -> bool:
        """Called by the writer right before committing. False means roll back."""
        with self._lock:
            if self._decision is None:
                self._decision = "commit"
            return self._decision == "commit"

    def abandon(self) -> bool:
        """Called by the caller on timeout. False means the commit already started."""
        with self._lock:
            if self._decision is None:
                self._decision = "abandon"
            return self._decision == "abandon"


class EstimatorStore(Protocol):
    def fetch_active_materials(self) -> List[dict]: ...

    def insert_project(self, row: dict, gate: Optional[CommitGate] = None) -> dict: ...

    def insert_event(self, row: dict, gate: Optional[CommitGate] = None) -> dict: ...


def call_with_timeout(fn, seconds, *args, gate: Optional[CommitGate] = None):
    """
    Run a store call, failing with StoreTimeout if it takes longer than `seconds`.

    Any other exception from the call is raised as StoreError. With a gate,
    the outcome is never ambiguous: either the write is abandoned before its
    commit (StoreTimeout, nothing written) or its commit was already under way
    and its result is awaited and returned. A timed-out read keeps running in
    its worker thread; its result is discarded.
    """
    kwargs = {} if gate is None else {"gate": gate}
    if not seconds or seconds <= 0:
        return _as_store_error(fn, *args, **kwargs)

    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(_as_store_error, fn, *args, **kwargs)
    try:
        return future.result(timeout=seconds)
    except FuturesTimeout:
        if gate is not None and not gate.abandon():
            logger.info("Store write passed its timeout mid-commit; waiting for it")
            return future.result()
        name = getattr(fn, "__name__", "store call")
        raise StoreTimeout(f"{name} did not complete within {seconds}s")
    finally:
        executor.shutdown(wait=False)


def _as_store_error(fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except StoreError:
        raise
    except Exception as e:
        raise StoreError(str(e) or e.__class__.__name__) from e


class SqlAlchemyStore:
    """
    EstimatorStore over the application database.

    Built from the request's Session but never uses it: every call opens its
    own Session on the same engine, so a call running in a worker thread
    shares nothing with the request. Each insert is its own commit.
    """

    def __init__(self, db: Session):
        self.bind = db.get_bind()

    def _session(self) -> Session:
        return Session(bind=self.bind, autoflush=False)

    def fetch_active_materials(self) -> List[dict]:
        from . import models

        with self._session() as db:
            try:
                materials = (
                    db.query(models.Material)
                    .filter(models.Material.is_active.is_(True))
                    .order_by(models.Material.category_id, models.Material.id)
                    .all()
                )
                return [_material_to_row(m) for m in materials]
            except SQLAlchemyError as e:
                raise StoreError(f"Material query failed: {e}") from e

    def insert_project(self, row: dict, gate: Optional[CommitGate] = None) -> dict:
        from . import models

        project = models.Project(
            user_id=row["user_id"],
            name=row["name"],
            area=row["area"],
            project_type=row["project_type"],
            base_cost=row["base_cost"],
            materials_cost=row["materials_cost"],
            total_cost=row["total_cost"],
            materials=row.get("materials", []),
            locale=row.get("locale", "es"),
        )
        return self._insert(project, "project", gate)

    def insert_event(self, row: dict, gate: Optional[CommitGate] = None) -> dict:
        from . import models

        event = models.AnalyticsEvent(
            event_type=row["event_type"],
            user_id=row.get("user_id"),
            metadata_json=row.get("metadata", {}),
        )
        return self._insert(event, "analytics event", gate)

    def _insert(self, obj, label: str, gate: Optional[CommitGate]) -> dict:
        with self._session() as db:
            try:
                db.add(obj)
                db.flush()
                if gate is not None and not gate.begin_commit():
                    db.rollback()
                    raise StoreTimeout(f"Insert {label} abandoned after timeout")
                db.commit()
                db.refresh(obj)
                return {
                    "id": obj.id,
                    "created_at": obj.created_at.isoformat() if obj.created_at else None,
                }
            except SQLAlchemyError as e:
                db.rollback()
                raise StoreError(f"Insert {label} failed: {e}") from e


def _material_to_row(m) -> dict:
    category = m.category
    return {
        "id": m.id,
        "name_es": m.name_es,
        "name_en": m.name_en,
        "category_id": m.category_id,
        "category_es": category.name_es if category else None,
        "category_en": category.name_en if category else None,
        "price": m.price,
        "unit": m.unit,
        "image_url": m.image_url,
        "is_active": m.is_active,
    }
