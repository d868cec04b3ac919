"""
Catalog loader — the active material catalog for one calculator session.

Fetched once at session mount and held as an immutable tuple. If the store is
unavailable the failure is logged and the catalog is left empty: the estimate
still works, there is just nothing to pick from.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from .config import settings
from .errors import StoreError
from .estimation import to_money
from .store import call_with_timeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterialRecord:
    id: int
    name_es: str
    name_en: str
    price: Decimal
    unit: str = "unidad"
    category_id: Optional[int] = None
    category_es: Optional[str] = None
    category_en: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True

    @property
    def final_price(self) -> Decimal:
        return self.price

    def localized_name(self, locale: str) -> str:
        return self.name_en if locale == "en" else self.name_es

    def localized_category(self, locale: str) -> Optional[str]:
        return self.category_en if locale == "en" else self.category_es

    def to_dict(self, locale: str = "es") -> dict:
        return {
            "id": self.id,
            "name": self.localized_name(locale),
            "name_es": self.name_es,
            "name_en": self.name_en,
            "category_id": self.category_id,
            "category": self.localized_category(locale),
            "price": float(self.price),
            "unit": self.unit,
            "image_url": self.image_url,
        }

    def to_row(self) -> dict:
        """JSON-safe store row; from_row(to_row()) round-trips."""
        return {
            "id": self.id,
            "name_es": self.name_es,
            "name_en": self.name_en,
            "category_id": self.category_id,
            "category_es": self.category_es,
            "category_en": self.category_en,
            "price": str(self.price),
            "unit": self.unit,
            "image_url": self.image_url,
            "is_active": self.is_active,
        }

    @classmethod
    def from_row(cls, row: dict) -> "MaterialRecord":
        return cls(
            id=int(row["id"]),
            name_es=row["name_es"],
            name_en=row.get("name_en") or row["name_es"],
            price=to_money(row.get("price") or 0),
            unit=row.get("unit") or "unidad",
            category_id=row.get("category_id"),
            category_es=row.get("category_es"),
            category_en=row.get("category_en"),
            image_url=row.get("image_url"),
            is_active=bool(row.get("is_active", True)),
        )


class Catalog:
    """Immutable, id-indexed view over the loaded materials."""

    def __init__(self, materials=()):
        self._materials: Tuple[MaterialRecord, ...] = tuple(materials)
        self._by_id: Dict[int, MaterialRecord] = {m.id: m for m in self._materials}

    @property
    def materials(self) -> Tuple[MaterialRecord, ...]:
        return self._materials

    def get(self, material_id: int) -> Optional[MaterialRecord]:
        return self._by_id.get(material_id)

    def __len__(self):
        return len(self._materials)

    def __iter__(self):
        return iter(self._materials)

    def __contains__(self, material_id):
        return material_id in self._by_id

    def to_rows(self) -> List[dict]:
        return [m.to_row() for m in self._materials]

    @classmethod
    def from_rows(cls, rows) -> "Catalog":
        return cls(MaterialRecord.from_row(r) for r in rows or [])

    def by_category(self, locale: str = "es") -> List[dict]:
        """Group materials by category, preserving catalog order within each group."""
        groups: Dict[Optional[int], dict] = {}
        for material in self._materials:
            group = groups.setdefault(material.category_id, {
                "category_id": material.category_id,
                "category": material.localized_category(locale),
                "materials": [],
            })
            group["materials"].append(material.to_dict(locale))
        return list(groups.values())


def load_active_catalog(store, timeout: Optional[float] = None) -> Catalog:
    """
    Fetch all active materials from the store.

    Never raises: store errors and timeouts are logged and yield an empty catalog.
    """
    timeout = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        rows = call_with_timeout(store.fetch_active_materials, timeout)
    except StoreError as e:
        logger.warning("Material catalog unavailable: %s", e)
        return Catalog()

    materials = []
    for row in rows:
        try:
            material = MaterialRecord.from_row(row)
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            logger.warning("Skipping malformed catalog row %r: %s", row.get("id"), e)
            continue
        if material.is_active:
            materials.append(material)

    logger.info("Loaded %d active materials", len(materials))
    return Catalog(materials)


# --- Default catalog, seeded on first run ---
# Prices are DOP per unit. Update via the store as supplier prices change.

DEFAULT_CATEGORIES = [
    {"key": "structure", "name_es": "Estructura", "name_en": "Structure", "sort_order": 1},
    {"key": "masonry", "name_es": "Mampostería", "name_en": "Masonry", "sort_order": 2},
    {"key": "finishes", "name_es": "Terminaciones", "name_en": "Finishes", "sort_order": 3},
    {"key": "electrical", "name_es": "Electricidad", "name_en": "Electrical", "sort_order": 4},
    {"key": "plumbing", "name_es": "Plomería", "name_en": "Plumbing", "sort_order": 5},
]

DEFAULT_MATERIALS = [
    {"category": "structure", "name_es": "Cemento Portland (funda 42.5 kg)", "name_en": "Portland cement (42.5 kg bag)",
     "price": "520.00", "unit": "funda"},
    {"category": "structure", "name_es": "Varilla corrugada 3/8\"", "name_en": "Rebar 3/8\"",
     "price": "285.00", "unit": "unidad"},
    {"category": "structure", "name_es": "Varilla corrugada 1/2\"", "name_en": "Rebar 1/2\"",
     "price": "495.00", "unit": "unidad"},
    {"category": "structure", "name_es": "Arena lavada", "name_en": "Washed sand",
     "price": "1650.00", "unit": "m³"},
    {"category": "structure", "name_es": "Grava triturada", "name_en": "Crushed gravel",
     "price": "1850.00", "unit": "m³"},
    {"category": "masonry", "name_es": "Block de hormigón 6\"", "name_en": "Concrete block 6\"",
     "price": "38.00", "unit": "unidad"},
    {"category": "masonry", "name_es": "Block de hormigón 8\"", "name_en": "Concrete block 8\"",
     "price": "46.00", "unit": "unidad"},
    {"category": "finishes", "name_es": "Cerámica de piso 60x60", "name_en": "Floor tile 60x60",
     "price": "725.00", "unit": "m²"},
    {"category": "finishes", "name_es": "Pintura acrílica (galón)", "name_en": "Acrylic paint (gallon)",
     "price": "1450.00", "unit": "galón"},
    {"category": "electrical", "name_es": "Cable THHN #12 (rollo)", "name_en": "THHN #12 wire (roll)",
     "price": "3950.00", "unit": "rollo"},
    {"category": "plumbing", "name_es": "Tubo PVC 1/2\" (6 m)", "name_en": "PVC pipe 1/2\" (6 m)",
     "price": "210.00", "unit": "unidad"},
]


def seed_catalog(db) -> int:
    """Insert the default categories and materials into empty tables. Returns materials added."""
    from . import models

    if db.query(models.Material).count() > 0:
        return 0

    categories = {}
    for data in DEFAULT_CATEGORIES:
        category = db.query(models.MaterialCategory).filter(
            models.MaterialCategory.name_es == data["name_es"]
        ).first()
        if not category:
            category = models.MaterialCategory(
                name_es=data["name_es"], name_en=data["name_en"], sort_order=data["sort_order"],
            )
            db.add(category)
            db.flush()
        categories[data["key"]] = category

    for data in DEFAULT_MATERIALS:
        db.add(models.Material(
            name_es=data["name_es"],
            name_en=data["name_en"],
            category_id=categories[data["category"]].id,
            price=Decimal(data["price"]),
            unit=data["unit"],
            is_active=True,
        ))
    db.commit()
    return len(DEFAULT_MATERIALS)
