"""
Material selection — the line items of the estimate being built.

A dict keyed by material id, so a material appears at most once; selecting
it again bumps the quantity. The unit price is captured on first selection
and never re-read from the catalog for that line.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterator, List, Optional

from .estimation import line_total, materials_cost, to_money


@dataclass
class SelectedMaterial:
    material_id: int
    name: str
    unit_price: Decimal
    quantity: int = 1
    unit: str = "unidad"
    names: Dict[str, str] = field(default_factory=dict)

    @property
    def line_total(self) -> Decimal:
        return line_total(self.quantity, self.unit_price)

    def display_name(self, locale: Optional[str] = None) -> str:
        if locale and locale in self.names:
            return self.names[locale]
        return self.name

    def to_dict(self, locale: Optional[str] = None) -> dict:
        return {
            "material_id": self.material_id,
            "name": self.display_name(locale),
            "names": dict(self.names),
            "quantity": self.quantity,
            "unit": self.unit,
            "unit_price": float(self.unit_price),
            "line_total": float(self.line_total),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SelectedMaterial":
        return cls(
            material_id=int(data["material_id"]),
            name=data.get("name", ""),
            unit_price=to_money(data["unit_price"]),
            quantity=int(data.get("quantity", 1)),
            unit=data.get("unit") or "unidad",
            names=dict(data.get("names") or {}),
        )


class MaterialSelection:
    """Selected materials keyed by material id, in insertion order."""

    def __init__(self, items=()):
        self._items: Dict[int, SelectedMaterial] = {}
        for item in items:
            self._items[item.material_id] = item

    def add(self, material, locale: str = "es") -> SelectedMaterial:
        """Select a catalog material: new line at quantity 1, or one more of an existing line."""
        existing = self._items.get(material.id)
        if existing is not None:
            existing.quantity += 1
            return existing

        item = SelectedMaterial(
            material_id=material.id,
            name=material.localized_name(locale),
            unit_price=to_money(material.final_price),
            quantity=1,
            unit=material.unit,
            names={"es": material.name_es, "en": material.name_en},
        )
        self._items[material.id] = item
        return item

    def set_quantity(self, material_id: int, quantity: int) -> Optional[SelectedMaterial]:
        """Overwrite a line's quantity. Zero or less removes the line."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValueError(f"quantity must be an integer, got {quantity!r}")
        if quantity <= 0:
            self.remove(material_id)
            return None
        item = self._items.get(material_id)
        if item is None:
            return None
        item.quantity = quantity
        return item

    def remove(self, material_id: int) -> None:
        self._items.pop(material_id, None)

    def clear(self) -> None:
        self._items.clear()

    def get(self, material_id: int) -> Optional[SelectedMaterial]:
        return self._items.get(material_id)

    def items(self) -> List[SelectedMaterial]:
        return list(self._items.values())

    @property
    def materials_cost(self) -> Decimal:
        return materials_cost(self._items)

    def to_list(self, locale: Optional[str] = None) -> List[dict]:
        return [item.to_dict(locale) for item in self._items.values()]

    @classmethod
    def from_list(cls, data) -> "MaterialSelection":
        return cls(SelectedMaterial.from_dict(d) for d in data or [])

    def __len__(self):
        return len(self._items)

    def __contains__(self, material_id):
        return material_id in self._items

    def __iter__(self) -> Iterator[SelectedMaterial]:
        return iter(list(self._items.values()))

    def __eq__(self, other):
        if not isinstance(other, MaterialSelection):
            return NotImplemented
        return self.to_list() == other.to_list()
