"""
Stateless estimate — POST /api/estimate.

Computes the full breakdown for an area, project type and bill of materials
in one call. Nothing is stored; use /api/calculator for the saved flow.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import schemas
from ..catalog import load_active_catalog
from ..database import get_db
from ..estimation import build_estimate
from ..formatting import format_breakdown, normalize_locale
from ..selection import MaterialSelection
from ..store import SqlAlchemyStore

router = APIRouter(prefix="/estimate", tags=["estimate"])


@router.post("")
def estimate(request: schemas.EstimateRequest, db: Session = Depends(get_db)):
    locale = normalize_locale(request.locale)

    selection = MaterialSelection()
    if request.materials:
        catalog = load_active_catalog(SqlAlchemyStore(db))
        for line in request.materials:
            material = catalog.get(line.material_id)
            if material is None:
                raise HTTPException(status_code=404, detail=f"Material {line.material_id} not found")
            # Repeated ids accumulate onto one line
            existing = selection.get(material.id)
            previous = existing.quantity if existing else 0
            selection.add(material, locale)
            selection.set_quantity(material.id, previous + line.quantity)

    result = build_estimate(request.area, request.project_type, selection.to_list(locale))
    if result is None:
        raise HTTPException(
            status_code=400,
            detail="Area must be a number greater than zero and project_type residential or commercial",
        )

    breakdown = result.to_dict()
    return {**breakdown, "locale": locale, "formatted": format_breakdown(breakdown, locale)}
