# services/html_converter.py
"""HTML (editor output, brief and intake pages) to .docx."""
import logging
from io import BytesIO

from bs4 import BeautifulSoup, NavigableString, Tag
from docx import Document
from docx.enum.table import WD_ALIGN_VERTICAL
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_BREAK

from utils.docx_utils import (
    add_hyperlink,
    apply_grid_borders,
    set_cant_split,
    set_col_widths,
    set_document_font,
    shade_cell,
)

logging.basicConfig(level=logging.INFO)

DEFAULT_FONT = "Calibri"
DEFAULT_FONT_SIZE_PT = 11
HEADER_FILL = "D9D9D9"
PAGE_BREAK_CLASSES = {"page-break", "html2pdf__page-break"}


def _add_inline(paragraph, nodes, bold=False, italic=False, underline=False):
    for child in nodes:
        name = getattr(child, "name", None)
        if name is None:
            text = str(child)
            if text:
                r = paragraph.add_run(text)
                r.bold = bool(bold)
                r.italic = bool(italic)
                r.underline = bool(underline)
        elif name in ("b", "strong"):
            _add_inline(paragraph, child.children, True, italic, underline)
        elif name in ("i", "em"):
            _add_inline(paragraph, child.children, bold, True, underline)
        elif name == "u":
            _add_inline(paragraph, child.children, bold, italic, True)
        elif name == "br":
            paragraph.add_run().add_break()
        elif name == "a" and child.get("href"):
            add_hyperlink(paragraph, child.get_text(), child["href"])
        elif hasattr(child, "children"):
            _add_inline(paragraph, child.children, bold, italic, underline)


def apply_inline_formatting(paragraph, node):
    _add_inline(paragraph, getattr(node, "children", []))


def _add_list(doc, element, level=0):
    ordered = element.name == "ol"
    style = "List Number" if ordered else "List Bullet"
    if level:
        style = f"{style} {min(level + 1, 3)}"
    for li in element.find_all("li", recursive=False):
        p = doc.add_paragraph(style=style)
        _add_inline(p, [c for c in li.children if not (isinstance(c, Tag) and c.name in ("ul", "ol"))])
        for sub in li.find_all(["ul", "ol"], recursive=False):
            _add_list(doc, sub, level + 1)


def _add_table(doc, element, cant_split_rows=True):
    rows = element.find_all("tr")
    if not rows:
        return
    first_cells = rows[0].find_all(["th", "td"], recursive=False)
    cols = max(1, max(len(tr.find_all(["th", "td"], recursive=False)) for tr in rows))
    first_is_header = any(c.name == "th" for c in first_cells)

    tbl = doc.add_table(rows=len(rows), cols=cols)
    try:
        tbl.style = "Table Grid"
    except (KeyError, ValueError):
        logging.info("Table Grid style not in template; using explicit borders")
    apply_grid_borders(tbl)

    sect = doc.sections[0]
    content_width = sect.page_width - sect.left_margin - sect.right_margin
    set_col_widths(tbl, [int(content_width / cols)] * cols)

    for r_idx, tr in enumerate(rows):
        cells = tr.find_all(["th", "td"], recursive=False)
        for c_idx in range(cols):
            cell = tbl.cell(r_idx, c_idx)
            p = cell.paragraphs[0]
            if c_idx < len(cells):
                apply_inline_formatting(p, cells[c_idx])
                if cells[c_idx].name == "th":
                    shade_cell(cell, HEADER_FILL)
            cell.vertical_alignment = WD_ALIGN_VERTICAL.TOP
        if cant_split_rows:
            set_cant_split(tbl.rows[r_idx])

    if first_is_header:
        for c in tbl.rows[0].cells:
            for r in c.paragraphs[0].runs:
                r.bold = True
            c.paragraphs[0].alignment = WD_ALIGN_PARAGRAPH.CENTER


def basic_html_to_docx(doc: Document, html_str: str, cant_split_rows: bool = True):
    soup = BeautifulSoup(html_str or "", "html.parser")
    body = soup.body or soup
    _add_blocks(doc, body, cant_split_rows)


def _add_blocks(doc, container, cant_split_rows):
    for element in container.children:
        if not isinstance(element, Tag):
            txt = str(element).strip()
            # skip comments and doctype
            if txt and type(element) is NavigableString:
                doc.add_paragraph(txt)
            continue

        tag = element.name.lower()
        classes = set(element.get("class") or [])
        if tag in ("head", "style", "script", "title", "colgroup"):
            continue

        if classes & PAGE_BREAK_CLASSES:
            doc.add_paragraph().add_run().add_break(WD_BREAK.PAGE)
            continue

        if tag in ("h1", "h2", "h3", "h4", "h5", "h6"):
            heading = doc.add_heading("", level=int(tag[1]))
            apply_inline_formatting(heading, element)
            continue

        if tag == "p":
            p = doc.add_paragraph()
            apply_inline_formatting(p, element)
            continue

        if tag in ("ul", "ol"):
            _add_list(doc, element)
            continue

        if tag == "table":
            _add_table(doc, element, cant_split_rows)
            continue

        if tag == "hr":
            doc.add_paragraph()
            continue

        if tag in ("div", "section", "article", "blockquote", "main", "body", "html"):
            _add_blocks(doc, element, cant_split_rows)
            continue

        txt = element.get_text(strip=True)
        if txt:
            p = doc.add_paragraph()
            apply_inline_formatting(p, element)


def html_to_docx_bytes(html_str: str, *, font_name: str = DEFAULT_FONT,
                       font_size_pt: float = DEFAULT_FONT_SIZE_PT, cant_split_rows: bool = True) -> bytes:
    doc = Document()
    basic_html_to_docx(doc, html_str or "", cant_split_rows=cant_split_rows)

    if len(doc.paragraphs) == 0 and len(doc.tables) == 0:
        doc.add_paragraph("HTML result is empty.")

    set_document_font(doc, font_name, font_size_pt)
    bio = BytesIO()
    doc.save(bio)
    return bio.getvalue()
