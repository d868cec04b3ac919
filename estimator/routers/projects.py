"""
Saved projects — the authenticated "my projects" area.

Projects are read-only here: they are created by /api/calculator/{id}/save and
never edited or deleted by the estimator.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from .. import models
from ..auth import decode_token, get_current_user, get_optional_user
from ..config import settings
from ..database import get_db
from ..formatting import format_area, format_dop, normalize_locale
from ..pdf_generator import generate_project_pdf

router = APIRouter(prefix="/projects", tags=["projects"])


def _project_to_dict(p: models.Project, locale: Optional[str] = None) -> dict:
    locale = normalize_locale(locale or p.locale)
    return {
        "id": p.id,
        "name": p.name,
        "area": float(p.area) if p.area is not None else None,
        "project_type": p.project_type,
        "base_cost": float(p.base_cost or 0),
        "materials_cost": float(p.materials_cost or 0),
        "total_cost": float(p.total_cost or 0),
        "materials": p.materials or [],
        "locale": p.locale,
        "created_at": p.created_at.isoformat() if p.created_at else None,
        "formatted": {
            "area": format_area(p.area),
            "base_cost": format_dop(p.base_cost, locale),
            "materials_cost": format_dop(p.materials_cost, locale),
            "total_cost": format_dop(p.total_cost, locale),
        },
    }


def _get_owned_project(project_id: int, user: models.User, db: Session) -> models.Project:
    project = db.query(models.Project).filter(models.Project.id == project_id).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    if project.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not your project")
    return project


@router.get("/mine")
def list_my_projects(
    skip: int = 0,
    limit: int = 50,
    locale: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Projects saved by the authenticated user, newest first."""
    projects = db.query(models.Project).filter(
        models.Project.user_id == current_user.id,
    ).order_by(models.Project.created_at.desc(), models.Project.id.desc()).offset(skip).limit(limit).all()
    return [_project_to_dict(p, locale) for p in projects]


@router.get("/{project_id}")
def get_project(
    project_id: int,
    locale: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return _project_to_dict(_get_owned_project(project_id, current_user, db), locale)


def _get_user_from_token_param(token: Optional[str], db: Session) -> Optional[models.User]:
    """Resolve user from ?token= query param (direct download links)."""
    if not token:
        return None
    payload = decode_token(token)
    if payload.get("type") != "access" or not payload.get("sub"):
        return None
    return db.query(models.User).filter(models.User.id == int(payload["sub"])).first()


@router.get("/{project_id}/pdf")
def download_pdf(
    project_id: int,
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    header_user: Optional[models.User] = Depends(get_optional_user),
):
    """
    Printable estimate for a saved project.

    Auth: Bearer header OR ?token= query param (for window.open).
    """
    current_user = header_user or _get_user_from_token_param(token, db)
    if not current_user:
        raise HTTPException(status_code=401, detail="Authentication required. Pass ?token= parameter.")

    project = _get_owned_project(project_id, current_user, db)
    company = {
        "name": settings.COMPANY_NAME,
        "email": settings.COMPANY_EMAIL,
        "phone": settings.COMPANY_PHONE,
    }
    pdf_bytes = bytes(generate_project_pdf(_project_to_dict(project), company))

    filename = f"Proyecto-{project.id}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
        },
    )
