# services/docx_reader.py
"""
Read an uploaded .docx two ways: structural HTML for the body, plain text for
label extraction. Both walk the document body in order (paragraphs and tables).
"""
import base64
import logging
import re
from dataclasses import dataclass, field
from html import escape
from io import BytesIO
from itertools import groupby
from typing import List, Optional, Tuple

from docx import Document
from docx.table import Table
from docx.text.hyperlink import Hyperlink
from docx.text.paragraph import Paragraph
from docx.oxml.ns import qn
from fastapi import HTTPException

from services.errors import DocumentParseError

logging.basicConfig(level=logging.INFO)

HEADING_STYLE_RE = re.compile(r"^Heading\s+([1-6])$", re.IGNORECASE)
# Word's "List Paragraph" style carries bullets that would otherwise flatten to <p>
BULLET_STYLES = ("List Paragraph", "List Bullet")
NUMBER_STYLES = ("List Number",)


@dataclass
class ConvertedDocument:
    html: str
    messages: List[str] = field(default_factory=list)


def ensure_docx_filename(filename: str) -> None:
    if not (filename or "").lower().endswith(".docx"):
        raise HTTPException(400, "Please select a .docx file")


def _open(data: bytes):
    try:
        return Document(BytesIO(data))
    except Exception as e:
        raise DocumentParseError(f"Could not open .docx: {e}") from e


def _iter_blocks(doc):
    body = doc.element.body
    for child in body.iterchildren():
        if child.tag == qn("w:p"):
            yield Paragraph(child, doc)
        elif child.tag == qn("w:tbl"):
            yield Table(child, doc)


def _list_kind(p: Paragraph) -> Optional[str]:
    style = p.style.name if p.style is not None else ""
    if any(style.startswith(s) for s in NUMBER_STYLES):
        return "ol"
    if any(style.startswith(s) for s in BULLET_STYLES):
        return "ul"
    if p._p.pPr is not None and p._p.pPr.numPr is not None:
        return "ul"
    return None


def _run_segments(run, doc, messages: List[str]) -> List[Tuple[Optional[Tuple[bool, bool, bool]], str]]:
    """(format, html) pieces of one run; images carry no format."""
    segments = []
    for blip_id in run._r.xpath(".//a:blip/@r:embed"):
        rel = doc.part.rels.get(blip_id)
        if rel is None or rel.is_external:
            messages.append(f"Skipped linked image {blip_id}")
            continue
        part = rel.target_part
        encoded = base64.b64encode(part.blob).decode("ascii")
        segments.append((None, f'<img src="data:{part.content_type};base64,{encoded}" />'))

    text = escape(run.text or "", quote=False).replace("\n", "<br />").replace("\t", " ")
    if text:
        segments.append(((bool(run.bold), bool(run.italic), bool(run.underline)), text))
    return segments


def _segments_html(segments) -> str:
    # Word splits words across identically formatted runs; merge them before tagging
    out = []
    for fmt, group in groupby(segments, key=lambda s: s[0]):
        html = "".join(piece for _, piece in group)
        if fmt is not None:
            bold, italic, underline = fmt
            if underline:
                html = f"<u>{html}</u>"
            if italic:
                html = f"<em>{html}</em>"
            if bold:
                html = f"<strong>{html}</strong>"
        out.append(html)
    return "".join(out)


def _inline_html(p: Paragraph, doc, messages: List[str]) -> str:
    out = []
    pending = []
    for item in p.iter_inner_content():
        if isinstance(item, Hyperlink):
            out.append(_segments_html(pending))
            pending = []
            inner = _segments_html([s for r in item.runs for s in _run_segments(r, doc, messages)])
            href = item.url
            out.append(f'<a href="{escape(href)}">{inner}</a>' if href else inner)
        else:
            pending.extend(_run_segments(item, doc, messages))
    out.append(_segments_html(pending))
    return "".join(out)


def _table_html(table: Table, doc, messages: List[str]) -> str:
    rows = []
    for row in table.rows:
        cells = []
        for cell in row.cells:
            inner = "".join(f"<p>{_inline_html(p, doc, messages)}</p>" for p in cell.paragraphs)
            cells.append(f"<td>{inner}</td>")
        rows.append(f"<tr>{''.join(cells)}</tr>")
    return f"<table>{''.join(rows)}</table>"


def docx_to_html(data: bytes) -> ConvertedDocument:
    doc = _open(data)
    messages: List[str] = []
    html = []
    open_list = None

    try:
        for block in _iter_blocks(doc):
            kind = _list_kind(block) if isinstance(block, Paragraph) else None
            if open_list and kind != open_list:
                html.append(f"</{open_list}>")
                open_list = None

            if isinstance(block, Table):
                html.append(_table_html(block, doc, messages))
                continue

            inner = _inline_html(block, doc, messages)
            if kind:
                if open_list is None:
                    html.append(f"<{kind}>")
                    open_list = kind
                html.append(f"<li>{inner}</li>")
                continue

            style = block.style.name if block.style is not None else ""
            m = HEADING_STYLE_RE.match(style)
            if m:
                html.append(f"<h{m.group(1)}>{inner}</h{m.group(1)}>")
            elif style == "Title":
                html.append(f"<h1>{inner}</h1>")
            else:
                html.append(f"<p>{inner}</p>")

        if open_list:
            html.append(f"</{open_list}>")
    except Exception as e:
        raise DocumentParseError(f"DOCX to HTML conversion failed: {e}") from e

    if messages:
        logging.info(f"Conversion messages: {messages}")
    return ConvertedDocument(html="".join(html), messages=messages)


def docx_to_raw_text(data: bytes) -> str:
    """Paragraph texts in body order (table cells included), separated by blank lines."""
    doc = _open(data)
    texts = []
    try:
        for block in _iter_blocks(doc):
            if isinstance(block, Table):
                for row in block.rows:
                    for cell in row.cells:
                        texts.extend(p.text for p in cell.paragraphs)
            else:
                texts.append(block.text)
    except Exception as e:
        raise DocumentParseError(f"DOCX raw text extraction failed: {e}") from e
    return "".join(f"{t}\n\n" for t in texts)
