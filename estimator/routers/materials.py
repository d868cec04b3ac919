from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from .. import models, schemas
from ..catalog import load_active_catalog, seed_catalog
from ..database import get_db
from ..formatting import format_dop, normalize_locale
from ..store import SqlAlchemyStore

router = APIRouter(prefix="/materials", tags=["materials"])


@router.get("/seed")
def seed_materials(db: Session = Depends(get_db)):
    """Seed the default catalog. No-op once materials exist."""
    seeded = seed_catalog(db)
    return {"ok": True, "seeded": seeded}


@router.get("/")
def list_materials(locale: Optional[str] = None, db: Session = Depends(get_db)):
    """Active catalog, names resolved for the locale. Empty list if the store is unavailable."""
    locale = normalize_locale(locale)
    catalog = load_active_catalog(SqlAlchemyStore(db))
    results = []
    for material in catalog:
        data = material.to_dict(locale)
        data["price_formatted"] = format_dop(material.price, locale)
        results.append(data)
    return results


@router.get("/grouped")
def list_materials_by_category(locale: Optional[str] = None, db: Session = Depends(get_db)):
    locale = normalize_locale(locale)
    return load_active_catalog(SqlAlchemyStore(db)).by_category(locale)


@router.get("/categories", response_model=List[schemas.MaterialCategory])
def list_categories(db: Session = Depends(get_db)):
    return db.query(models.MaterialCategory).order_by(
        models.MaterialCategory.sort_order, models.MaterialCategory.id
    ).all()
