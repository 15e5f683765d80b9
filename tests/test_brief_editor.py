# tests/test_brief_editor.py
"""Tests for the PPDU Brief editor and intake form."""

import pytest
from io import BytesIO
from docx import Document
from fastapi import HTTPException

from conftest import build_docx
from models.schemas import Contributor, IntakeForm, KeyDates
from services.brief_editor import (
    PPDU_BRIEF_TEMPLATE,
    brief_filename,
    export_brief_docx,
    export_intake_form_docx,
    generate_download_html,
    generate_intake_form_html,
    import_brief,
)
from conftest import is_cant_split


class TestGenerateDownloadHtml:
    """Tests for generate_download_html function."""

    def test_title_escaped(self):
        """The page title is escaped."""
        page = generate_download_html("Q&A <draft>", "<p>x</p>")
        assert "<title>Q&amp;A &lt;draft&gt;</title>" in page
        assert "<p>x</p>" in page

    def test_calibri_11(self):
        """The shell sets Calibri 11pt."""
        page = generate_download_html("Brief", "")
        assert "Calibri" in page
        assert "11pt" in page


class TestBriefFilename:
    """Tests for brief_filename function."""

    def test_whitespace_runs_become_underscores(self):
        """Spaces in the title become single underscores."""
        assert brief_filename("  Budget   Brief 2025 ") == "Budget_Brief_2025.docx"

    def test_blank_title(self):
        """A blank title falls back to the default name."""
        assert brief_filename("") == "PPDU_Brief.docx"


class TestImportBrief:
    """Tests for import_brief function."""

    def test_title_from_file_stem(self):
        """The title is the file name without .docx; HTML comes from the body."""
        result = import_brief("Budget Brief.docx", build_docx(paragraphs=["Issue text"]))
        assert result["title"] == "Budget Brief"
        assert "<p>Issue text</p>" in result["html"]

    def test_rejects_non_docx(self):
        """Other file types are rejected."""
        with pytest.raises(HTTPException) as exc:
            import_brief("brief.txt", b"text")
        assert exc.value.status_code == 400


class TestExportBriefDocx:
    """Tests for export_brief_docx function."""

    def test_template_round_trip(self):
        """The starter template exports with cannot-split rows and Calibri."""
        filename, data = export_brief_docx("PPDU Brief", PPDU_BRIEF_TEMPLATE)
        assert filename == "PPDU_Brief.docx"
        doc = Document(BytesIO(data))
        assert doc.styles["Normal"].font.name == "Calibri"
        table = doc.tables[0]
        assert all(is_cant_split(row) for row in table.rows)
        headings = [p.text for p in doc.paragraphs if p.style.name.startswith("Heading")]
        assert "Recommendation" in headings


class TestIntakeForm:
    """Tests for the Project Intake Form."""

    def test_values_escaped(self):
        """User values are escaped in the page."""
        form = IntakeForm(project_name="<b>Apex</b>", objectives=["Cut costs & time"])
        page = generate_intake_form_html(form)
        assert "&lt;b&gt;Apex&lt;/b&gt;" in page
        assert "Cut costs &amp; time" in page

    def test_blank_cells_padded(self):
        """Empty contributor cells still render."""
        page = generate_intake_form_html(IntakeForm())
        assert page.count("&nbsp;</td>") >= 4

    def test_communications_plan(self):
        """The fixed communications plan is included."""
        page = generate_intake_form_html(IntakeForm())
        assert "Town Halls" in page
        assert page.count("<li>") == 7

    def test_accepts_camel_case(self):
        """The form accepts the web client's camelCase payload."""
        form = IntakeForm.model_validate({
            "projectName": "Apex",
            "keyDates": {"personRequesting": "Dana"},
            "leadContributors": [{"name": "Lee", "role": "Lead"}],
        })
        assert form.key_dates == KeyDates(person_requesting="Dana")
        assert form.lead_contributors == [Contributor(name="Lee", role="Lead")]

    def test_docx_export(self):
        """The form exports to a .docx named after the project."""
        filename, data = export_intake_form_docx(IntakeForm(project_name="Apex Project"))
        assert filename == "Apex_Project_Intake_Form.docx"
        doc = Document(BytesIO(data))
        assert len(doc.tables) == 3
        assert any("Apex Project" in p.text for p in doc.paragraphs)
