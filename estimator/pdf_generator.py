"""
Printable estimate for a saved project.

Uses fpdf2 (pure Python, no system dependencies). Sections:
1. Header — company, project name, date, type and area
2. Materials — line items with quantity, unit price and line total
3. Cost summary — base cost, materials, total
4. Disclaimer
"""

from datetime import datetime

from fpdf import FPDF

from .formatting import format_area, format_dop, normalize_locale

LABELS = {
    "es": {
        "estimate": "ESTIMADO DE CONSTRUCCIÓN",
        "project": "Proyecto",
        "date": "Fecha",
        "type": "Tipo de proyecto",
        "area": "Área",
        "materials": "MATERIALES",
        "material": "Material",
        "qty": "Cant.",
        "unit_price": "Precio",
        "total": "Total",
        "no_materials": "Sin materiales seleccionados",
        "materials_subtotal": "Subtotal materiales",
        "summary": "RESUMEN DE COSTOS",
        "base_cost": "Costo base",
        "materials_cost": "Materiales",
        "total_cost": "COSTO TOTAL",
        "residential": "Residencial",
        "commercial": "Comercial",
        "disclaimer": "* Este es un estimado aproximado. El costo final puede variar según "
                      "especificaciones y materiales.",
    },
    "en": {
        "estimate": "CONSTRUCTION ESTIMATE",
        "project": "Project",
        "date": "Date",
        "type": "Project type",
        "area": "Area",
        "materials": "MATERIALS",
        "material": "Material",
        "qty": "Qty",
        "unit_price": "Price",
        "total": "Total",
        "no_materials": "No materials selected",
        "materials_subtotal": "Materials subtotal",
        "summary": "COST SUMMARY",
        "base_cost": "Base cost",
        "materials_cost": "Materials",
        "total_cost": "TOTAL COST",
        "residential": "Residential",
        "commercial": "Commercial",
        "disclaimer": "* This is an approximate estimate. Final cost may vary based on "
                      "specifications and materials.",
    },
}


def _safe(text) -> str:
    """Replace characters the built-in PDF fonts (latin-1) cannot render."""
    if not text:
        return ""
    return (
        str(text)
        .replace("•", "-")
        .replace("—", " - ")
        .replace("–", "-")
        .replace("“", '"')
        .replace("”", '"')
        .replace("‘", "'")
        .replace("’", "'")
        .replace("³", "3")
        .encode("latin-1", errors="replace")
        .decode("latin-1")
    )


class EstimatePDF(FPDF):
    def __init__(self):
        super().__init__()
        self.set_auto_page_break(auto=True, margin=20)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"{self.page_no()}/{{nb}}", align="C")

    def section_header(self, title):
        self.set_font("Helvetica", "B", 11)
        self.set_fill_color(23, 123, 255)
        self.set_text_color(255, 255, 255)
        self.cell(0, 8, f"  {_safe(title)}", fill=True, new_x="LMARGIN", new_y="NEXT")
        self.set_text_color(0, 0, 0)
        self.ln(2)

    def table_header(self, cols):
        """cols: [(label, width, align), ...]"""
        self.set_font("Helvetica", "B", 8)
        self.set_fill_color(240, 240, 240)
        for label, width, align in cols:
            self.cell(width, 6, _safe(label), border="B", fill=True, align=align)
        self.ln()

    def table_row(self, values, cols):
        self.set_font("Helvetica", "", 8)
        for val, (_, width, align) in zip(values, cols):
            self.cell(width, 5.5, _safe(val), align=align)
        self.ln()

    def amount_row(self, label, amount):
        self.set_font("Helvetica", "", 10)
        self.cell(130, 6, _safe(label))
        self.cell(60, 6, _safe(amount), align="R")
        self.ln()


def generate_project_pdf(project: dict, company: dict) -> bytearray:
    """
    Args:
        project: project dict as returned by the projects API
        company: {"name", "email", "phone"}

    Returns:
        PDF bytes
    """
    locale = normalize_locale(project.get("locale"))
    t = LABELS[locale]

    pdf = EstimatePDF()
    pdf.alias_nb_pages()
    pdf.add_page()

    # ── Header ──
    pdf.set_font("Helvetica", "B", 20)
    pdf.cell(0, 10, _safe(company.get("name") or ""), new_x="LMARGIN", new_y="NEXT")
    contact = " | ".join(p for p in [company.get("phone"), company.get("email")] if p)
    if contact:
        pdf.set_font("Helvetica", "", 9)
        pdf.set_text_color(100, 100, 100)
        pdf.cell(0, 5, _safe(contact), new_x="LMARGIN", new_y="NEXT")
        pdf.set_text_color(0, 0, 0)
    pdf.ln(4)

    created = project.get("created_at") or ""
    try:
        date_str = datetime.fromisoformat(created).strftime("%d/%m/%Y")
    except ValueError:
        date_str = datetime.utcnow().strftime("%d/%m/%Y")

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 8, _safe(t["estimate"]), new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    project_type = project.get("project_type", "")
    for label, value in [
        (t["project"], project.get("name", "")),
        (t["date"], date_str),
        (t["type"], t.get(project_type, project_type)),
        (t["area"], format_area(project.get("area"))),
    ]:
        pdf.cell(0, 5, _safe(f"{label}: {value}"), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(6)

    # ── Materials ──
    cols = [(t["material"], 85, "L"), (t["qty"], 25, "R"), (t["unit_price"], 40, "R"), (t["total"], 40, "R")]
    pdf.section_header(t["materials"])
    materials = project.get("materials") or []
    if materials:
        pdf.table_header(cols)
        for item in materials:
            name = (item.get("names") or {}).get(locale) or item.get("name", "")
            unit = item.get("unit") or ""
            pdf.table_row(
                [
                    name[:48],
                    f"{item.get('quantity', 0)} {unit}".strip(),
                    format_dop(item.get("unit_price", 0), locale),
                    format_dop(item.get("line_total", 0), locale),
                ],
                cols,
            )
        pdf.set_font("Helvetica", "B", 9)
        pdf.cell(150, 6, _safe(t["materials_subtotal"]), align="R", border="T")
        pdf.cell(40, 6, _safe(format_dop(project.get("materials_cost", 0), locale)), align="R", border="T")
        pdf.ln(8)
    else:
        pdf.set_font("Helvetica", "I", 9)
        pdf.cell(0, 6, _safe(t["no_materials"]), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(4)

    # ── Cost summary ──
    pdf.section_header(t["summary"])
    pdf.amount_row(t["base_cost"], format_dop(project.get("base_cost", 0), locale))
    pdf.amount_row(t["materials_cost"], format_dop(project.get("materials_cost", 0), locale))
    pdf.ln(1)
    pdf.set_fill_color(23, 123, 255)
    pdf.set_text_color(255, 255, 255)
    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(130, 10, _safe(f"  {t['total_cost']}"), fill=True)
    pdf.cell(60, 10, _safe(f"{format_dop(project.get('total_cost', 0), locale)}  "), fill=True, align="R")
    pdf.set_text_color(0, 0, 0)
    pdf.ln(14)

    # ── Disclaimer ──
    pdf.set_font("Helvetica", "I", 8)
    pdf.set_text_color(100, 100, 100)
    pdf.multi_cell(0, 4, _safe(t["disclaimer"]))
    pdf.set_text_color(0, 0, 0)

    return pdf.output()
