# services/policy_formatter.py
"""
Normalization and templating for uploaded policy documents.

Two separate trust paths meet here and stay separate:
  * the document body comes from an uploaded file and goes through the
    allow-list sanitizer (``normalize_policy_html``);
  * the Section/Number/Subject header is string-templated and every value is
    escaped on interpolation (``wrap_with_policy_template``).
"""
import logging
import re
from dataclasses import dataclass, asdict
from typing import Dict, Optional

import nh3

from config import PRODUCT_LABEL, SECTION_HEADINGS
from utils.text_utils import escape_html, file_stem, title_case, underscore_spaces

logging.basicConfig(level=logging.INFO)

META_LABELS = ("SECTION", "NUMBER", "SUBJECT")

CLASSIFICATION_RE = re.compile(r"Classification:\s*Protected\s+[AB]\s*", re.IGNORECASE)
EMPTY_PARA_RUN_RE = re.compile(r"(<p>\s*</p>){2,}")
SPACER_PARAGRAPH = "<p>&nbsp;</p>"
HEADING_PARA_RE = re.compile(
    r"<p>\s*(?:<(?:strong|b)>\s*)?(" + "|".join(re.escape(h) for h in SECTION_HEADINGS) + r")\s*:?\s*"
    r"(?:</(?:strong|b)>\s*)?:?\s*</p>",
    re.IGNORECASE,
)
LIST_TOKEN_RE = re.compile(r"<(/?)(?:ul|ol)\b[^>]*>|<p>\s*</p>", re.IGNORECASE)

ALLOWED_TAGS = {
    "a", "abbr", "b", "blockquote", "br", "caption", "code", "col", "colgroup", "div",
    "em", "h1", "h2", "h3", "h4", "h5", "h6", "hr", "i", "img", "li", "ol", "p", "pre",
    "s", "span", "strong", "sub", "sup", "table", "tbody", "td", "tfoot", "th", "thead",
    "tr", "u", "ul",
}
ALLOWED_ATTRIBUTES = {
    "*": {"class", "id"},
    "a": {"href", "title"},
    "img": {"src", "alt", "width", "height"},
    "td": {"colspan", "rowspan"},
    "th": {"colspan", "rowspan", "scope"},
    "ol": {"start", "type"},
}
URL_SCHEMES = {"http", "https", "mailto", "data"}

# Normalization converges in one pass for anything the .docx reader emits; the
# extra passes only matter when sanitizing empties out paragraphs.
MAX_NORMALIZE_PASSES = 3


@dataclass
class PolicyMeta:
    section: str = ""
    number: str = ""
    subject: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def _label_re(label: str) -> re.Pattern:
    return re.compile(rf"^\s*{label}\b\s*:?\s*\n?\s*(.+)$", re.IGNORECASE | re.MULTILINE)


_META_RES = {label: _label_re(label) for label in META_LABELS}


def extract_policy_meta(raw_text: str) -> PolicyMeta:
    """Pull SECTION / NUMBER / SUBJECT from the document's raw text; missing labels give ''."""
    def grab(label: str) -> str:
        m = _META_RES[label].search(raw_text or "")
        return m.group(1).strip() if m else ""

    return PolicyMeta(section=grab("SECTION"), number=grab("NUMBER"), subject=grab("SUBJECT"))


def _promote_heading(m: re.Match) -> str:
    return f"<h2>{title_case(m.group(1))}</h2>"


def _drop_empty_list_paragraphs(html: str) -> str:
    out = []
    depth = 0
    pos = 0
    for m in LIST_TOKEN_RE.finditer(html):
        out.append(html[pos:m.start()])
        token = m.group(0)
        if token.lower().startswith("<p"):
            if depth == 0:
                out.append(token)
        else:
            depth = max(0, depth - 1) if m.group(1) else depth + 1
            out.append(token)
        pos = m.end()
    out.append(html[pos:])
    return "".join(out)


def _keep_attribute(tag: str, attr: str, value: str) -> Optional[str]:
    # data: URLs are only for inline images extracted from the .docx
    if attr in ("href", "src") and value.strip().lower().startswith("data:"):
        if not (tag == "img" and value.strip().lower().startswith("data:image/")):
            return None
    return value


def sanitize_policy_html(html: str) -> str:
    return nh3.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        url_schemes=URL_SCHEMES,
        attribute_filter=_keep_attribute,
    )


def _normalize_once(html: str) -> str:
    clean = CLASSIFICATION_RE.sub("", html)
    clean = EMPTY_PARA_RUN_RE.sub(SPACER_PARAGRAPH, clean)
    clean = HEADING_PARA_RE.sub(_promote_heading, clean)
    clean = _drop_empty_list_paragraphs(clean)
    return sanitize_policy_html(clean)


def normalize_policy_html(html: str) -> str:
    """Clean Word-exported HTML into the house style. Safe to run on its own output."""
    clean = _normalize_once(html or "")
    for _ in range(MAX_NORMALIZE_PASSES - 1):
        again = _normalize_once(clean)
        if again == clean:
            break
        clean = again
    return clean


POLICY_CSS = """
  @page {
    size: A4;
    margin: 22mm;
  }
  html, body { height: 100%; }
  body {
    font-family: ui-sans-serif, system-ui, -apple-system, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, 'Noto Sans', 'Liberation Sans', sans-serif;
    color: #111827;
  }
  .header {
    display: grid; grid-template-columns: 1fr 1fr; gap: 8px; align-items: end;
    border-bottom: 2px solid #0f766e; padding-bottom: 8px; margin-bottom: 18px;
  }
  .header-left { display: grid; grid-template-columns: 120px 1fr; row-gap: 6px; column-gap: 10px; }
  .header-right { text-align: right; font-size: 12px; color: #6b7280; }
  .label { color: #6b7280; font-size: 12px; text-transform: uppercase; letter-spacing: 0.06em; }
  .value { font-weight: 600; font-size: 14px; color: #0f172a; }
  .title { font-weight: 700; font-size: 18px; color: #0f172a; }
  h1, h2, h3 { color: #0f172a; }
  h1 { font-size: 22px; margin: 18px 0 10px; }
  h2 { font-size: 18px; margin: 16px 0 8px; border-bottom: 1px solid #e5e7eb; padding-bottom: 6px; }
  h3 { font-size: 16px; margin: 12px 0 6px; }
  p { line-height: 1.5; margin: 8px 0; }
  ul, ol { margin: 8px 0 8px 22px; }
  table { width: 100%; border-collapse: collapse; margin: 12px 0; }
  th, td { border: 1px solid #e5e7eb; padding: 8px; text-align: left; }
  h1, h2, h3, h4, h5, h6, p, li, table, tr, img { page-break-inside: avoid; break-inside: avoid; }
  h1, h2, h3, h4, h5, h6 { page-break-after: avoid; break-after: avoid; }
  .page-break, .html2pdf__page-break { page-break-before: always; break-before: page; height: 0; }
  footer { position: fixed; bottom: 0; right: 0; text-align: right; font-size: 11px; color: #6b7280; }
  .page-number::before { content: counter(page); }
"""


def wrap_with_policy_template(section: Optional[str], number: Optional[str], subject: Optional[str],
                              body_html: str, product_label: str = PRODUCT_LABEL) -> str:
    """
    Compose the printable page: header block, sanitized body, page-number footer.
    Header values are escaped here; body_html must already be normalized.
    """
    def shown(value: Optional[str]) -> str:
        return escape_html((value or "").strip() or "—")

    header_html = f"""
    <div class="header">
      <div class="header-left">
        <div class="label">Section</div><div class="value">{shown(section)}</div>
        <div class="label">Number</div><div class="value">{shown(number)}</div>
        <div class="label">Subject</div><div class="value title">{shown(subject)}</div>
      </div>
      <div class="header-right">{escape_html(product_label)}</div>
    </div>
    """
    footer_html = '<footer>Page <span class="page-number"></span></footer>'

    return f"""<!doctype html>
<html>
  <head><meta charset="utf-8" /><style>{POLICY_CSS}</style></head>
  <body>
    {footer_html}
    {header_html}
    {body_html}
  </body>
</html>"""


def make_pdf_name(original_name: str, number: Optional[str] = None, subject: Optional[str] = None) -> str:
    """'Remote Work: Guidelines!' + '8.1' -> '8.1_Remote_Work_Guidelines.pdf'."""
    base = re.sub(r"[^\w\s-]+", "", (subject or "").strip() or file_stem(original_name or ""), flags=re.ASCII)
    num = re.sub(r"[^\w.-]+", "", number or "", flags=re.ASCII)
    safe = underscore_spaces(f"{num + '_' if num else ''}{base}")
    return f"{safe or 'policy'}.pdf"
