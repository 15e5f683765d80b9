# utils/docx_utils.py
from docx.shared import Pt
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.table import Table


def shade_cell(cell, hex_fill="D9D9D9"):
    tcPr = cell._tc.get_or_add_tcPr()
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:fill"), hex_fill)
    tcPr.append(shd)


def set_col_widths(table: Table, widths):
    for col_idx, w in enumerate(widths):
        for cell in table.columns[col_idx].cells:
            cell.width = w


def apply_grid_borders(tbl: Table, size=6, color="000000"):
    """Ensure visible borders regardless of style availability."""
    tblPr = tbl._tbl.tblPr
    borders = tblPr.find(qn("w:tblBorders"))
    if borders is None:
        borders = OxmlElement("w:tblBorders")
        tblPr.append(borders)
    for side in ("top", "left", "bottom", "right", "insideH", "insideV"):
        e = borders.find(qn(f"w:{side}"))
        if e is None:
            e = OxmlElement(f"w:{side}")
            borders.append(e)
        e.set(qn("w:val"), "single")
        e.set(qn("w:sz"), str(size))     # eighths of a point
        e.set(qn("w:space"), "0")
        e.set(qn("w:color"), color)


def set_cant_split(row, cant_split=True):
    """Keep a table row on one page (Word's <w:cantSplit/>)."""
    trPr = row._tr.get_or_add_trPr()
    existing = trPr.find(qn("w:cantSplit"))
    if cant_split and existing is None:
        trPr.append(OxmlElement("w:cantSplit"))
    elif not cant_split and existing is not None:
        trPr.remove(existing)


def set_run_font(run, name: str, size_pt: float):
    run.font.name = name
    run.font.size = Pt(size_pt)
    # East Asian text ignores font.name unless rFonts/eastAsia is set too
    rPr = run._r.get_or_add_rPr()
    rFonts = rPr.find(qn("w:rFonts"))
    if rFonts is None:
        rFonts = OxmlElement("w:rFonts")
        rPr.insert(0, rFonts)
    rFonts.set(qn("w:eastAsia"), name)


def set_document_font(doc, name: str = "Calibri", size_pt: float = 11):
    """Default style plus every run in body paragraphs, tables, headers and footers."""
    normal = doc.styles["Normal"]
    normal.font.name = name
    normal.font.size = Pt(size_pt)

    def paragraphs():
        yield from doc.paragraphs
        for table in doc.tables:
            for row in table.rows:
                for cell in row.cells:
                    yield from cell.paragraphs
        for section in doc.sections:
            for container in (section.header, section.footer):
                yield from container.paragraphs

    for p in paragraphs():
        for run in p.runs:
            set_run_font(run, name, size_pt)


def add_hyperlink(paragraph, text, url):
    """Append a clickable hyperlink run (blue, underlined) to a paragraph."""
    from docx.opc.constants import RELATIONSHIP_TYPE as RT

    r_id = paragraph.part.relate_to(url, RT.HYPERLINK, is_external=True)

    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("r:id"), r_id)

    run = OxmlElement("w:r")
    rPr = OxmlElement("w:rPr")

    color = OxmlElement("w:color")
    color.set(qn("w:val"), "0563C1")
    rPr.append(color)

    u = OxmlElement("w:u")
    u.set(qn("w:val"), "single")
    rPr.append(u)
    run.append(rPr)

    t = OxmlElement("w:t")
    t.set(qn("xml:space"), "preserve")
    t.text = text
    run.append(t)

    hyperlink.append(run)
    paragraph._p.append(hyperlink)
    return hyperlink
