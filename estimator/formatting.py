"""
Currency presentation for Dominican Peso amounts.

Display only — stored amounts keep their full precision. Grouping and
decimal marks follow the es-DO convention (1,234.56) in both locales.
"""

from decimal import Decimal, InvalidOperation

from .estimation import ZERO, to_money

SUPPORTED_LOCALES = ("es", "en")
DEFAULT_LOCALE = "es"

CURRENCY_PREFIX = {
    "es": "RD$",
    "en": "DOP ",
}


def normalize_locale(locale) -> str:
    """Map 'es-DO', 'EN', None, ... onto a supported locale code."""
    if not locale:
        return DEFAULT_LOCALE
    code = str(locale).strip().lower().replace("_", "-").split("-")[0]
    return code if code in SUPPORTED_LOCALES else DEFAULT_LOCALE


def format_dop(amount, locale: str = DEFAULT_LOCALE) -> str:
    """Format an amount as RD$X,XXX.XX (es) or DOP X,XXX.XX (en)."""
    try:
        value = to_money(amount if amount is not None else ZERO)
    except (InvalidOperation, ValueError, TypeError):
        value = ZERO
    prefix = CURRENCY_PREFIX[normalize_locale(locale)]
    sign = "-" if value < 0 else ""
    return f"{sign}{prefix}{abs(value):,.2f}"


def format_area(area) -> str:
    if area is None:
        return ""
    value = Decimal(str(area))
    text = f"{value:,.2f}".rstrip("0").rstrip(".")
    return f"{text} m²"


def format_breakdown(breakdown: dict, locale: str = DEFAULT_LOCALE) -> dict:
    """Formatted strings for the cost fields of an estimate dict."""
    formatted = {}
    for key in ("base_cost", "materials_cost", "total_cost", "rate_per_m2"):
        if breakdown.get(key) is not None:
            formatted[key] = format_dop(breakdown[key], locale)
    formatted["materials"] = [
        {
            "material_id": line["material_id"],
            "unit_price": format_dop(line["unit_price"], locale),
            "line_total": format_dop(line["line_total"], locale),
        }
        for line in breakdown.get("materials", [])
    ]
    return formatted
