"""
Calculator session API — the calculator page flow, persisted per browser session.

POST   /api/calculator/start                        — mount: snapshot the active catalog
GET    /api/calculator/{id}                         — current estimate and stage
POST   /api/calculator/{id}/inputs                  — edit area / project type / locale
POST   /api/calculator/{id}/calculate               — compute the base cost
GET    /api/calculator/{id}/catalog                 — the session's material catalog
POST   /api/calculator/{id}/materials               — select a material (or one more of it)
PUT    /api/calculator/{id}/materials/{material_id} — set a line's quantity (0 removes)
DELETE /api/calculator/{id}/materials/{material_id} — remove a line
POST   /api/calculator/{id}/stage                   — open/close the materials and save modals
POST   /api/calculator/{id}/save                    — save as a Project (login required)
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from .. import models, schemas
from ..auth import get_current_user, get_optional_user
from ..calculator import STAGE_FORM, STAGE_MATERIALS, STAGE_SAVE, EstimatorSession
from ..catalog import Catalog, load_active_catalog
from ..database import get_db
from ..errors import FlowError, PersistenceError, SaveValidationError, UnknownMaterialError
from ..formatting import format_dop, normalize_locale
from ..store import SqlAlchemyStore

router = APIRouter(prefix="/calculator", tags=["calculator"])


# --- Helpers ---

def _get_row(
    session_id: str,
    db: Session,
    current_user: Optional[models.User],
) -> models.CalculatorSession:
    row = db.query(models.CalculatorSession).filter(
        models.CalculatorSession.id == session_id
    ).first()
    if not row:
        raise HTTPException(status_code=404, detail="Calculator session not found")
    if row.user_id is not None and (current_user is None or current_user.id != row.user_id):
        raise HTTPException(status_code=403, detail="Not your calculator session")
    return row


def _load(row: models.CalculatorSession) -> EstimatorSession:
    state = row.state_json or {}
    return EstimatorSession.from_state(
        state,
        catalog=Catalog.from_rows(state.get("catalog")),
        locale=row.locale,
        stage=row.stage,
        saving=False,
    )


def _store(row: models.CalculatorSession, session: EstimatorSession, db: Session) -> None:
    row.state_json = {**session.to_state(), "catalog": session.catalog.to_rows()}
    row.stage = session.stage
    row.locale = session.locale
    flag_modified(row, "state_json")
    db.commit()


def _session_response(row: models.CalculatorSession, session: EstimatorSession) -> dict:
    return {
        "session_id": row.id,
        "project_id": row.project_id,
        **session.to_dict(),
    }


def _catalog_response(session: EstimatorSession) -> list:
    results = []
    for material in session.catalog:
        data = material.to_dict(session.locale)
        data["price_formatted"] = format_dop(material.price, session.locale)
        results.append(data)
    return results


# --- Endpoints ---

@router.post("/start")
def start_session(
    request: Optional[schemas.StartSessionRequest] = None,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    """
    Mount a calculator. The active catalog is fetched once here and kept with the
    session, so prices stay fixed for its lifetime. An unavailable catalog gives
    an empty list, not an error.
    """
    locale = request.locale if request and request.locale else None
    if locale is None and current_user is not None:
        locale = current_user.preferred_locale
    catalog = load_active_catalog(SqlAlchemyStore(db))
    session = EstimatorSession(catalog=catalog, locale=normalize_locale(locale))

    row = models.CalculatorSession(
        id=str(uuid.uuid4()),
        user_id=current_user.id if current_user else None,
        stage=session.stage,
        locale=session.locale,
        state_json={},
        saving=False,
    )
    db.add(row)
    _store(row, session, db)
    db.refresh(row)

    return {
        **_session_response(row, session),
        "catalog": _catalog_response(session),
    }


@router.get("/{session_id}")
def get_session(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    row = _get_row(session_id, db, current_user)
    return _session_response(row, _load(row))


@router.post("/{session_id}/inputs")
def update_inputs(
    session_id: str,
    request: schemas.InputsRequest,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    """Form edits. A changed area or project type clears the computed estimate."""
    row = _get_row(session_id, db, current_user)
    session = _load(row)
    provided = request.model_dump(exclude_unset=True)

    if "project_type" in provided:
        try:
            session.set_project_type(request.project_type)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if "area" in provided:
        session.set_area(request.area)
    if "locale" in provided:
        session.set_locale(request.locale)

    _store(row, session, db)
    return _session_response(row, session)


@router.post("/{session_id}/calculate")
def calculate(
    session_id: str,
    request: schemas.CalculateRequest,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    """Compute the base cost. Rejected input leaves the previous estimate as it was."""
    row = _get_row(session_id, db, current_user)
    session = _load(row)

    if not session.calculate(area=request.area, project_type=request.project_type):
        raise HTTPException(
            status_code=400,
            detail="Area must be a number greater than zero and project_type residential or commercial",
        )

    _store(row, session, db)
    return _session_response(row, session)


@router.get("/{session_id}/catalog")
def get_catalog(
    session_id: str,
    grouped: bool = False,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    row = _get_row(session_id, db, current_user)
    session = _load(row)
    if grouped:
        return session.catalog.by_category(session.locale)
    return _catalog_response(session)


@router.post("/{session_id}/materials")
def select_material(
    session_id: str,
    request: schemas.SelectMaterialRequest,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    row = _get_row(session_id, db, current_user)
    session = _load(row)
    try:
        session.select_material(request.material_id)
    except UnknownMaterialError as e:
        raise HTTPException(status_code=404, detail=str(e))

    _store(row, session, db)
    return _session_response(row, session)


@router.put("/{session_id}/materials/{material_id}")
def set_quantity(
    session_id: str,
    material_id: int,
    request: schemas.QuantityRequest,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    row = _get_row(session_id, db, current_user)
    session = _load(row)
    session.set_quantity(material_id, request.quantity)
    _store(row, session, db)
    return _session_response(row, session)


@router.delete("/{session_id}/materials/{material_id}")
def remove_material(
    session_id: str,
    material_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    row = _get_row(session_id, db, current_user)
    session = _load(row)
    session.remove_material(material_id)
    _store(row, session, db)
    return _session_response(row, session)


@router.post("/{session_id}/stage")
def change_stage(
    session_id: str,
    request: schemas.StageRequest,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    row = _get_row(session_id, db, current_user)
    session = _load(row)
    transitions = {
        STAGE_FORM: session.close_modal,
        STAGE_MATERIALS: session.open_materials,
        STAGE_SAVE: session.open_save,
    }
    if request.stage not in transitions:
        raise HTTPException(status_code=400, detail=f"stage must be one of {list(transitions)}")
    try:
        transitions[request.stage]()
    except FlowError as e:
        raise HTTPException(status_code=400, detail=str(e))

    _store(row, session, db)
    return _session_response(row, session)


@router.post("/{session_id}/save")
def save_project(
    session_id: str,
    request: schemas.SaveRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Save the calculated estimate as a Project owned by the current user.

    Only one save per session may be in flight: a second request while the
    first is pending gets 409. A failed save leaves the session untouched.
    """
    row = _get_row(session_id, db, current_user)
    session = _load(row)
    if not session.calculated:
        raise HTTPException(status_code=400, detail="Calculate the estimate before saving")

    # Latch: flip saving False → True atomically; zero rows means a save is pending
    acquired = db.query(models.CalculatorSession).filter(
        models.CalculatorSession.id == session_id,
        models.CalculatorSession.saving.is_(False),
    ).update({"saving": True}, synchronize_session=False)
    db.commit()
    if not acquired:
        raise HTTPException(status_code=409, detail="A save is already in progress for this session")

    try:
        result = session.save(SqlAlchemyStore(db), current_user.id, request.name)
    except SaveValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    finally:
        db.rollback()
        row.saving = False
        db.commit()

    row.user_id = current_user.id
    row.project_id = result.project_id
    _store(row, session, db)
    db.refresh(row)

    return {
        "ok": True,
        **result.to_dict(),
        "total_cost_formatted": format_dop(result.total_cost, session.locale),
        "session": _session_response(row, session),
    }
