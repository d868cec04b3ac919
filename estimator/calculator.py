"""
Calculator flow — the state machine behind the calculator page.

    form ──calculate──▶ form (calculated)
      │                    │ open_materials
      │                    ▼
      │               materials ──close──▶ form
      │                    │ open_save
      │                    ▼
      └──────────────── save ──save()/close──▶ form

Changing area or project type drops the computed base cost until the user
calculates again. The material selection survives those edits.
"""

from decimal import Decimal
from typing import Optional

from .catalog import Catalog
from .errors import FlowError, SaveInProgressError, UnknownMaterialError
from .estimation import (
    Estimate,
    ProjectType,
    compute_base_cost,
    parse_area,
    parse_project_type,
    to_money,
    total_cost,
)
from .formatting import format_breakdown, normalize_locale
from .persistence import SaveResult, save_project
from .selection import MaterialSelection

STAGE_FORM = "form"
STAGE_MATERIALS = "materials"
STAGE_SAVE = "save"
STAGES = (STAGE_FORM, STAGE_MATERIALS, STAGE_SAVE)


def _area_input(value):
    """Raw form input, kept as text so an unchanged value compares equal after a round trip."""
    return None if value is None else str(value).strip()


class EstimatorSession:
    """One user's calculator: inputs, computed estimate, selection and modal stage."""

    def __init__(self, catalog: Optional[Catalog] = None, locale: str = "es"):
        self.catalog = catalog if catalog is not None else Catalog()
        self.locale = normalize_locale(locale)
        self.stage = STAGE_FORM
        self.area = None
        self.project_type = ProjectType.RESIDENTIAL
        self.base_cost: Optional[Decimal] = None
        self.calculated = False
        self.selection = MaterialSelection()
        self.saving = False
        self.last_saved: Optional[SaveResult] = None

    # --- Inputs ---

    def set_area(self, value) -> None:
        value = _area_input(value)
        if value != self.area:
            self.area = value
            self._reset_estimate()

    def set_project_type(self, value) -> None:
        project_type = parse_project_type(value)
        if project_type is None:
            raise ValueError(f"Unknown project type: {value!r}")
        if project_type != self.project_type:
            self.project_type = project_type
            self._reset_estimate()

    def set_locale(self, locale) -> None:
        self.locale = normalize_locale(locale)

    def _reset_estimate(self) -> None:
        self.base_cost = None
        self.calculated = False
        self.stage = STAGE_FORM

    def calculate(self, area=None, project_type=None) -> bool:
        """
        Compute the base cost. Returns False, leaving everything untouched,
        when the area or project type is rejected.
        """
        new_area = self.area if area is None else _area_input(area)
        new_type = self.project_type if project_type is None else parse_project_type(project_type)
        if new_type is None:
            return False
        base = compute_base_cost(new_area, new_type)
        if base is None:
            return False

        self.area = new_area
        self.project_type = new_type
        self.base_cost = base
        self.calculated = True
        return True

    # --- Selection ---

    def select_material(self, material):
        """Add a catalog material (record or id) to the selection, or bump its quantity."""
        if not hasattr(material, "id"):
            record = self.catalog.get(int(material))
            if record is None:
                raise UnknownMaterialError(f"Material {material} is not in the active catalog")
            material = record
        return self.selection.add(material, self.locale)

    def set_quantity(self, material_id: int, quantity: int):
        return self.selection.set_quantity(material_id, quantity)

    def remove_material(self, material_id: int) -> None:
        self.selection.remove(material_id)

    # --- Modal stages ---

    def open_materials(self) -> None:
        self._require_calculated("choose materials")
        self.stage = STAGE_MATERIALS

    def open_save(self) -> None:
        self._require_calculated("save")
        self.stage = STAGE_SAVE

    def close_modal(self) -> None:
        self.stage = STAGE_FORM

    def _require_calculated(self, action: str) -> None:
        if not self.calculated:
            raise FlowError(f"Calculate the estimate before you {action}")

    # --- Save ---

    def save(self, store, owner_id, name: str, timeout: Optional[float] = None) -> SaveResult:
        """
        Persist the current estimate. Only one save may be outstanding at a time.
        On failure the estimate is left as it was so the user can retry.
        """
        self._require_calculated("save")
        if self.saving:
            raise SaveInProgressError("A save is already in progress")

        self.saving = True
        try:
            result = save_project(store, owner_id, name, self.snapshot(), locale=self.locale, timeout=timeout)
        finally:
            self.saving = False

        self.last_saved = result
        self.stage = STAGE_FORM
        return result

    # --- Read accessors ---

    @property
    def materials_cost(self) -> Decimal:
        return self.selection.materials_cost

    @property
    def total_cost(self) -> Decimal:
        return total_cost(self.base_cost, self.materials_cost)

    @property
    def selection_list(self) -> list:
        return self.selection.to_list(self.locale)

    def snapshot(self) -> Estimate:
        return Estimate(
            area=parse_area(self.area),
            project_type=self.project_type,
            base_cost=self.base_cost,
            materials_cost=self.materials_cost,
            total_cost=self.total_cost,
            calculated=self.calculated,
            materials=tuple(self.selection_list),
        )

    def to_dict(self) -> dict:
        estimate = self.snapshot().to_dict()
        estimate["area_input"] = self.area
        return {
            "stage": self.stage,
            "locale": self.locale,
            "saving": self.saving,
            "estimate": estimate,
            "formatted": format_breakdown(estimate, self.locale),
        }

    # --- Rehydration for server-side sessions ---

    def to_state(self) -> dict:
        return {
            "area": self.area,
            "project_type": self.project_type.value,
            "base_cost": None if self.base_cost is None else str(self.base_cost),
            "calculated": self.calculated,
            "materials": self.selection.to_list(),
        }

    @classmethod
    def from_state(
        cls,
        state: Optional[dict],
        catalog: Optional[Catalog] = None,
        locale: str = "es",
        stage: str = STAGE_FORM,
        saving: bool = False,
    ) -> "EstimatorSession":
        session = cls(catalog=catalog, locale=locale)
        state = state or {}
        session.area = _area_input(state.get("area"))
        session.project_type = parse_project_type(state.get("project_type")) or ProjectType.RESIDENTIAL
        base = state.get("base_cost")
        session.base_cost = to_money(base) if base is not None else None
        session.calculated = bool(state.get("calculated")) and session.base_cost is not None
        session.selection = MaterialSelection.from_list(state.get("materials"))
        session.stage = stage if stage in STAGES else STAGE_FORM
        session.saving = saving
        return session
