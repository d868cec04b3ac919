"""
Estimation core — base cost, line totals and aggregate costs.

Pure math, no I/O. Amounts are Decimal quantized to cents so the materials
sum never drifts the way float accumulation does.

    base_cost      = area (m²) × rate[project_type]
    line_total     = quantity × unit_price
    materials_cost = Σ line_total
    total_cost     = base_cost + materials_cost
"""

import enum
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[int, float, str, Decimal]


class ProjectType(str, enum.Enum):
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"


# DOP per square meter
RATES_PER_M2 = {
    ProjectType.RESIDENTIAL: Decimal("1200"),
    ProjectType.COMMERCIAL: Decimal("1800"),
}


def to_money(value: Number) -> Decimal:
    """Convert a number to a cent-quantized Decimal. Floats go through str() to avoid binary noise."""
    if isinstance(value, Decimal):
        amount = value
    else:
        amount = Decimal(str(value))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_area(value) -> Optional[Decimal]:
    """
    Parse a user-entered area in m².

    Returns None for anything that is not a finite number > 0 once rounded to
    two decimal places, the scale a saved Project stores. This is an input
    guard, the caller re-prompts.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        area = Decimal(str(value).strip())
        if not area.is_finite():
            return None
        area = area.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return None
    if area <= 0:
        return None
    return area


def parse_project_type(value) -> Optional[ProjectType]:
    if isinstance(value, ProjectType):
        return value
    try:
        return ProjectType(str(value).strip().lower())
    except ValueError:
        return None


def compute_base_cost(area, project_type) -> Optional[Decimal]:
    """area × rate for the project type, or None when the input is rejected."""
    parsed_area = parse_area(area)
    parsed_type = parse_project_type(project_type)
    if parsed_area is None or parsed_type is None:
        return None
    return (parsed_area * RATES_PER_M2[parsed_type]).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(quantity: int, unit_price: Number) -> Decimal:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValueError(f"quantity must be a positive integer, got {quantity!r}")
    price = to_money(unit_price)
    if price < 0:
        raise ValueError(f"unit_price must be non-negative, got {unit_price!r}")
    return (price * quantity).quantize(CENT, rounding=ROUND_HALF_UP)


def _line_totals(selection) -> Iterable[Decimal]:
    items = selection.values() if isinstance(selection, Mapping) else selection
    for item in items:
        if isinstance(item, Mapping):
            yield to_money(item["line_total"])
        else:
            yield to_money(item.line_total)


def materials_cost(selection) -> Decimal:
    """Sum of line totals. Accepts the id → SelectedMaterial mapping or any iterable of line items."""
    return sum(_line_totals(selection), ZERO)


def total_cost(base: Optional[Number], materials: Number) -> Decimal:
    base_amount = to_money(base) if base is not None else ZERO
    return (base_amount + to_money(materials)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Estimate:
    """Snapshot of one calculation session's cost breakdown."""
    area: Optional[Decimal]
    project_type: ProjectType
    base_cost: Optional[Decimal]
    materials_cost: Decimal = ZERO
    total_cost: Decimal = ZERO
    calculated: bool = False
    materials: tuple = field(default_factory=tuple)

    @property
    def rate_per_m2(self) -> Decimal:
        return RATES_PER_M2[self.project_type]

    def to_dict(self) -> dict:
        return {
            "area": float(self.area) if self.area is not None else None,
            "project_type": self.project_type.value,
            "rate_per_m2": float(self.rate_per_m2),
            "base_cost": float(self.base_cost) if self.base_cost is not None else None,
            "materials_cost": float(self.materials_cost),
            "total_cost": float(self.total_cost),
            "calculated": self.calculated,
            "materials": list(self.materials),
        }


def build_estimate(area, project_type, lines: Iterable[Mapping] = ()) -> Optional[Estimate]:
    """
    One-shot breakdown for a stateless request.

    lines: ordered line item dicts (as produced by MaterialSelection.to_list()).
    Returns None when area or project type is rejected.
    """
    base = compute_base_cost(area, project_type)
    if base is None:
        return None
    lines = tuple(lines)
    materials = materials_cost(lines)
    return Estimate(
        area=parse_area(area),
        project_type=parse_project_type(project_type),
        base_cost=base,
        materials_cost=materials,
        total_cost=total_cost(base, materials),
        calculated=True,
        materials=lines,
    )
