# services/pdf_renderer.py
"""
Lay out the wrapped policy page as a paginated A4 PDF.

The input is the output of ``wrap_with_policy_template``: its header block is
turned into a label/value table and the sanitized body into platypus
flowables. Page numbers are drawn on every page by the canvas callback.
"""
import base64
import logging
from io import BytesIO
from typing import List, Optional
from xml.sax.saxutils import escape

from bs4 import BeautifulSoup, NavigableString, Tag
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    HRFlowable,
    Image,
    KeepTogether,
    ListFlowable,
    ListItem,
    PageBreak,
    Paragraph,
    Preformatted,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from services.errors import RenderError

logging.basicConfig(level=logging.INFO)

PAGE_MARGIN = 22 * mm
ACCENT = colors.HexColor("#0f766e")
MUTED = colors.HexColor("#6b7280")
INK = colors.HexColor("#0f172a")
RULE = colors.HexColor("#e5e7eb")

PAGE_BREAK_CLASSES = {"page-break", "html2pdf__page-break"}
INLINE_TAGS = {
    "b": "b", "strong": "b",
    "i": "i", "em": "i",
    "u": "u", "s": "strike",
    "sub": "sub", "sup": "super",
}
HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


def build_styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name="PolicyBody", parent=styles["Normal"], fontSize=10.5, leading=15.75,
                              spaceBefore=4, spaceAfter=4, textColor=colors.HexColor("#111827")))
    styles.add(ParagraphStyle(name="PolicyH1", parent=styles["Heading1"], fontSize=16, leading=20,
                              textColor=INK, spaceBefore=12, spaceAfter=8, keepWithNext=1))
    styles.add(ParagraphStyle(name="PolicyH2", parent=styles["Heading2"], fontSize=13.5, leading=17,
                              textColor=INK, spaceBefore=10, spaceAfter=6, keepWithNext=1))
    styles.add(ParagraphStyle(name="PolicyH3", parent=styles["Heading3"], fontSize=12, leading=15,
                              textColor=INK, spaceBefore=8, spaceAfter=4, keepWithNext=1))
    styles.add(ParagraphStyle(name="HeaderLabel", parent=styles["Normal"], fontSize=8.5, leading=11,
                              textColor=MUTED))
    styles.add(ParagraphStyle(name="HeaderValue", parent=styles["Normal"], fontName="Helvetica-Bold",
                              fontSize=10.5, leading=13, textColor=INK))
    styles.add(ParagraphStyle(name="HeaderTitle", parent=styles["HeaderValue"], fontSize=13, leading=16))
    styles.add(ParagraphStyle(name="HeaderProduct", parent=styles["Normal"], fontSize=9, leading=11,
                              textColor=MUTED, alignment=2))
    styles.add(ParagraphStyle(name="PolicyCode", parent=styles["Code"], fontSize=9, leading=11))
    return styles


def inline_markup(node) -> str:
    """Flatten an HTML subtree into reportlab's paragraph mini-markup."""
    if isinstance(node, NavigableString):
        return escape(str(node))
    if not isinstance(node, Tag):
        return ""

    name = node.name.lower()
    if name == "br":
        return "<br/>"
    if name == "img":
        return ""
    inner = "".join(inline_markup(child) for child in node.children)
    if name in INLINE_TAGS:
        tag = INLINE_TAGS[name]
        return f"<{tag}>{inner}</{tag}>" if inner.strip() else inner
    if name == "a" and node.get("href"):
        return f'<a href="{escape(node["href"], {chr(34): "&quot;"})}" color="blue">{inner}</a>'
    return inner


def _paragraph(node, style) -> Optional[Paragraph]:
    markup = inline_markup(node).strip()
    if not markup:
        return None
    return Paragraph(markup, style)


def _data_image(node, max_width: float) -> Optional[Image]:
    src = node.get("src") or ""
    if not src.startswith("data:image/") or ";base64," not in src:
        return None
    raw = base64.b64decode(src.split(";base64,", 1)[1])
    img = Image(BytesIO(raw))
    if img.drawWidth > max_width:
        ratio = max_width / img.drawWidth
        img.drawWidth = max_width
        img.drawHeight = img.drawHeight * ratio
    return img


def _list_flowable(node, styles, width: float) -> Optional[ListFlowable]:
    items = []
    for li in node.find_all("li", recursive=False):
        parts = []
        text_nodes = [c for c in li.children if not (isinstance(c, Tag) and c.name in ("ul", "ol"))]
        markup = "".join(inline_markup(c) for c in text_nodes).strip()
        if markup:
            parts.append(Paragraph(markup, styles["PolicyBody"]))
        for sub in li.find_all(["ul", "ol"], recursive=False):
            nested = _list_flowable(sub, styles, width - 18)
            if nested is not None:
                parts.append(nested)
        if parts:
            items.append(ListItem(parts if len(parts) > 1 else parts[0]))
    if not items:
        return None

    if node.name == "ol":
        start = node.get("start")
        return ListFlowable(items, bulletType="1", start=int(start) if str(start or "").isdigit() else 1,
                            leftIndent=18)
    return ListFlowable(items, bulletType="bullet", start="•", leftIndent=18)


def _table_flowable(node, styles, width: float) -> Optional[Table]:
    rows = node.find_all("tr")
    if not rows:
        return None
    data = []
    for tr in rows:
        cells = tr.find_all(["th", "td"], recursive=False)
        data.append([Paragraph(inline_markup(c).strip() or "&nbsp;", styles["PolicyBody"]) for c in cells])
    cols = max(len(r) for r in data) or 1
    for r in data:
        r.extend(Paragraph("&nbsp;", styles["PolicyBody"]) for _ in range(cols - len(r)))

    has_header = bool(rows[0].find("th", recursive=False))
    table = Table(data, colWidths=[width / cols] * cols, repeatRows=1 if has_header else 0)
    commands = [
        ("GRID", (0, 0), (-1, -1), 0.5, RULE),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 6),
        ("RIGHTPADDING", (0, 0), (-1, -1), 6),
    ]
    if has_header:
        commands.append(("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f3f4f6")))
    table.setStyle(TableStyle(commands))
    return table


def body_flowables(container, styles, width: float) -> List:
    story: List = []
    for node in container.children:
        if isinstance(node, NavigableString):
            if str(node).strip():
                story.append(Paragraph(escape(str(node).strip()), styles["PolicyBody"]))
            continue
        if not isinstance(node, Tag):
            continue

        name = node.name.lower()
        classes = set(node.get("class") or [])
        if classes & PAGE_BREAK_CLASSES:
            story.append(PageBreak())
        elif name in HEADING_TAGS:
            level = min(int(name[1]), 3)
            p = _paragraph(node, styles[f"PolicyH{level}"])
            if p:
                story.append(p)
        elif name == "p":
            images = [_data_image(img, width) for img in node.find_all("img")]
            p = _paragraph(node, styles["PolicyBody"])
            story.extend(i for i in images if i is not None)
            if p:
                story.append(KeepTogether([p]))
            elif not any(images):
                story.append(Spacer(1, 8))
        elif name in ("ul", "ol"):
            lst = _list_flowable(node, styles, width)
            if lst is not None:
                story.append(KeepTogether([lst]))
        elif name == "table":
            t = _table_flowable(node, styles, width)
            if t is not None:
                story.append(KeepTogether([t, Spacer(1, 8)]))
        elif name == "img":
            img = _data_image(node, width)
            if img is not None:
                story.append(img)
        elif name == "hr":
            story.append(HRFlowable(width="100%", thickness=0.5, color=RULE, spaceBefore=4, spaceAfter=4))
        elif name == "pre":
            story.append(Preformatted(node.get_text(), styles["PolicyCode"]))
        elif name in ("div", "section", "article", "blockquote", "main"):
            story.extend(body_flowables(node, styles, width))
        else:
            p = _paragraph(node, styles["PolicyBody"])
            if p:
                story.append(p)
    return story


def header_flowables(header, styles, width: float) -> List:
    values = [v.get_text(strip=True) for v in header.select(".header-left .value")]
    values += [""] * (3 - len(values))
    product = header.select_one(".header-right")

    rows = [
        [Paragraph("SECTION", styles["HeaderLabel"]), Paragraph(escape(values[0]), styles["HeaderValue"]),
         Paragraph(escape(product.get_text(strip=True)) if product else "", styles["HeaderProduct"])],
        [Paragraph("NUMBER", styles["HeaderLabel"]), Paragraph(escape(values[1]), styles["HeaderValue"]), ""],
        [Paragraph("SUBJECT", styles["HeaderLabel"]), Paragraph(escape(values[2]), styles["HeaderTitle"]), ""],
    ]
    table = Table(rows, colWidths=[32 * mm, width * 0.6 - 32 * mm, width * 0.4])
    table.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "BOTTOM"),
        ("LINEBELOW", (0, -1), (-1, -1), 1.5, ACCENT),
        ("BOTTOMPADDING", (0, -1), (-1, -1), 8),
    ]))
    return [table, Spacer(1, 14)]


def draw_page_number(canvas, doc):
    canvas.saveState()
    canvas.setFont("Helvetica", 8.5)
    canvas.setFillColor(MUTED)
    canvas.drawRightString(doc.pagesize[0] - PAGE_MARGIN, PAGE_MARGIN / 2, f"Page {doc.page}")
    canvas.restoreState()


def build_story(html_str: str, styles=None, width: float = A4[0] - 2 * PAGE_MARGIN) -> List:
    styles = styles or build_styles()
    soup = BeautifulSoup(html_str or "", "html.parser")
    body = soup.body or soup

    story: List = []
    header = body.find("div", class_="header")
    if header is not None:
        story.extend(header_flowables(header, styles, width))
        header.decompose()
    for footer in body.find_all("footer"):
        footer.decompose()
    story.extend(body_flowables(body, styles, width))
    return story


def render_pdf(html_str: str) -> bytes:
    """Render the wrapped policy HTML to PDF bytes."""
    buf = BytesIO()
    try:
        doc = SimpleDocTemplate(
            buf,
            pagesize=A4,
            leftMargin=PAGE_MARGIN,
            rightMargin=PAGE_MARGIN,
            topMargin=PAGE_MARGIN,
            bottomMargin=PAGE_MARGIN,
        )
        story = build_story(html_str)
        doc.build(story, onFirstPage=draw_page_number, onLaterPages=draw_page_number)
        data = buf.getvalue()
        logging.info(f"Rendered PDF: {doc.page} page(s), {len(data)} bytes")
        return data
    except Exception as e:
        logging.error(f"PDF rendering failed: {e}")
        raise RenderError(f"PDF rendering failed: {e}") from e
    finally:
        buf.close()
