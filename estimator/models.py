from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base


# DECISION: project_type is stored as VARCHAR (like the locale) so the rate table
# can grow without a migration. estimation.ProjectType is the validation reference.


class User(Base):
    """Operators with access to the saved-projects area."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    preferred_locale = Column(String, default="es")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    auth_tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")
    projects = relationship("Project", back_populates="user")


class AuthToken(Base):
    """JWT refresh token storage — access tokens are stateless."""
    __tablename__ = "auth_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    token_hash = Column(String, nullable=False)
    token_type = Column(String, default="refresh")
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="auth_tokens")


class MaterialCategory(Base):
    __tablename__ = "material_categories"

    id = Column(Integer, primary_key=True, index=True)
    name_es = Column(String, nullable=False)
    name_en = Column(String, nullable=False)
    sort_order = Column(Integer, default=0)

    materials = relationship("Material", back_populates="category")


class Material(Base):
    """Catalog entry. Read-only to the estimator."""
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    name_es = Column(String, nullable=False)
    name_en = Column(String, nullable=False)
    category_id = Column(Integer, ForeignKey("material_categories.id"), nullable=True)
    price = Column(Numeric(14, 2), nullable=False, default=0)  # DOP per unit
    unit = Column(String, default="unidad")
    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    category = relationship("MaterialCategory", back_populates="materials")


class Project(Base):
    """Saved snapshot of a calculated estimate. Never edited by the estimator."""
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String, nullable=False)
    area = Column(Numeric(14, 2), nullable=False)
    project_type = Column(String, nullable=False)
    base_cost = Column(Numeric(14, 2), nullable=False)
    materials_cost = Column(Numeric(14, 2), nullable=False, default=0)
    total_cost = Column(Numeric(14, 2), nullable=False)
    materials = Column(JSON, default=list)  # Ordered list of line items
    locale = Column(String, default="es")
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="projects")


class AnalyticsEvent(Base):
    """Best-effort telemetry. Not part of any consistency boundary."""
    __tablename__ = "analytics_events"

    id = Column(Integer, primary_key=True, index=True)
    event_type = Column(String, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    metadata_json = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)


class CalculatorSession(Base):
    """Calculator flow state for one browser session (form → materials → save)."""
    __tablename__ = "calculator_sessions"

    id = Column(String, primary_key=True)  # UUID
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    stage = Column(String, default="form")
    locale = Column(String, default="es")
    state_json = Column(JSON, default=dict)
    saving = Column(Boolean, default=False)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
