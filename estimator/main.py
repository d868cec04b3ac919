from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from .config import settings
from .database import engine, Base
from .routers import auth, calculator, estimate, materials, projects

logger = logging.getLogger("estimator")

# Create tables (handles new tables but won't add columns to existing ones)
Base.metadata.create_all(bind=engine)


def _run_migrations():
    """Run pending Alembic migrations on startup.

    Migrations are written to be idempotent, so a database created by
    Base.metadata.create_all() upgrades cleanly.
    """
    try:
        from alembic.config import Config
        from alembic import command

        alembic_ini = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")
        if not os.path.exists(alembic_ini):
            logger.info("alembic.ini not found, skipping migrations")
            return

        alembic_cfg = Config(alembic_ini)
        alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

        logger.info("Running pending Alembic migrations...")
        command.upgrade(alembic_cfg, "head")
        logger.info("Migrations complete")

    except Exception as e:
        # Never let migration errors prevent app startup
        logger.warning(f"Alembic migration warning: {e}")


app = FastAPI(
    title="Construction Cost Estimator",
    description="Cost calculator, materials catalog and saved projects",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(auth.router, prefix="/api")
app.include_router(materials.router, prefix="/api")
app.include_router(estimate.router, prefix="/api")
app.include_router(calculator.router, prefix="/api")
app.include_router(projects.router, prefix="/api")

# Serve the built front end when it is deployed alongside the API
frontend_path = os.path.join(os.path.dirname(__file__), "..", "frontend")
if os.path.exists(frontend_path):
    assets_path = os.path.join(frontend_path, "assets")
    if os.path.exists(assets_path):
        app.mount("/assets", StaticFiles(directory=assets_path), name="assets")

    @app.get("/")
    def serve_frontend():
        return FileResponse(os.path.join(frontend_path, "index.html"))


@app.get("/health")
def health():
    return {"status": "ok", "app": "construction-estimator"}


@app.on_event("startup")
def auto_migrate():
    _run_migrations()


@app.on_event("startup")
def auto_seed():
    """Seed the default material catalog on first run."""
    if not settings.SEED_CATALOG:
        return
    from .catalog import seed_catalog
    from .database import SessionLocal
    db = SessionLocal()
    try:
        seeded = seed_catalog(db)
        if seeded:
            logger.info("Seeded %d catalog materials", seeded)
    finally:
        db.close()
