# utils/text_utils.py
import re
from urllib.parse import quote
from typing import Optional

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#039;",
}
_HTML_ESCAPE_RE = re.compile(r"[&<>\"']")


def sanitize(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "_", name or "").strip("_")


def title_case(s: str) -> str:
    """'POLICY STATEMENT' -> 'Policy Statement' (first letter of every word)."""
    if not s:
        return ""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), s.lower())


def escape_html(s: Optional[str]) -> str:
    return _HTML_ESCAPE_RE.sub(lambda m: _HTML_ESCAPES[m.group(0)], s or "")


def file_stem(filename: str, ext: str = ".docx") -> str:
    return re.sub(rf"{re.escape(ext)}$", "", filename or "", flags=re.IGNORECASE)


def underscore_spaces(s: str) -> str:
    return re.sub(r"\s+", "_", (s or "").strip())



def content_disposition(filename: str) -> str:
    """attachment header with an ASCII fallback and the RFC 5987 UTF-8 name."""
    fallback = sanitize(filename) or "download"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
