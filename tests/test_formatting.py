"""
Currency/area formatting and the printable project estimate.
"""

from decimal import Decimal

import pytest

from estimator.formatting import format_area, format_breakdown, format_dop, normalize_locale
from estimator.pdf_generator import generate_project_pdf


@pytest.mark.parametrize("amount,locale,expected", [
    (120000, "es", "RD$120,000.00"),
    (Decimal("1000.5"), "en", "DOP 1,000.50"),
    (0, "es", "RD$0.00"),
    (None, "es", "RD$0.00"),
    (-250.75, "es", "-RD$250.75"),
    ("1234567.891", "es", "RD$1,234,567.89"),
])
def test_format_dop(amount, locale, expected):
    assert format_dop(amount, locale) == expected


@pytest.mark.parametrize("raw,expected", [
    ("en", "en"), ("EN", "en"), ("es-DO", "es"), ("en_US", "en"),
    (None, "es"), ("", "es"), ("fr", "es"),
])
def test_normalize_locale(raw, expected):
    assert normalize_locale(raw) == expected


def test_format_area():
    assert format_area(100) == "100 m²"
    assert format_area(Decimal("75.50")) == "75.5 m²"
    assert format_area(1250) == "1,250 m²"
    assert format_area(None) == ""


def test_format_breakdown_skips_missing_base_cost():
    formatted = format_breakdown({"base_cost": None, "materials_cost": 500.0, "total_cost": 500.0})
    assert "base_cost" not in formatted
    assert formatted["total_cost"] == "RD$500.00"
    assert formatted["materials"] == []


def _project(locale="es", materials=None):
    return {
        "id": 1,
        "name": "Casa Bávaro — Fase 1",
        "area": 100.0,
        "project_type": "residential",
        "base_cost": 120000.0,
        "materials_cost": 1000.0,
        "total_cost": 121000.0,
        "materials": materials if materials is not None else [{
            "material_id": 1,
            "name": "Cemento",
            "names": {"es": "Cemento", "en": "Cement"},
            "quantity": 2,
            "unit": "funda",
            "unit_price": 500.0,
            "line_total": 1000.0,
        }],
        "locale": locale,
        "created_at": "2026-10-18T10:00:00",
    }


@pytest.mark.parametrize("locale", ["es", "en"])
def test_pdf_renders(locale):
    company = {"name": "Constructora Caribe", "email": "info@caribe.do", "phone": "809-555-0100"}
    pdf = bytes(generate_project_pdf(_project(locale), company))
    assert pdf.startswith(b"%PDF")


def test_pdf_without_materials_or_date():
    project = _project(materials=[])
    project["created_at"] = None
    pdf = bytes(generate_project_pdf(project, {"name": "Constructora Caribe"}))
    assert pdf.startswith(b"%PDF")
