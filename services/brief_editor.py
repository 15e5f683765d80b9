# services/brief_editor.py
"""
PPDU Brief editor backend: starter template, .docx import, .docx export, and
the Project Intake Form page.
"""
import logging
from typing import Dict, Tuple

from models.schemas import IntakeForm
from services.docx_reader import docx_to_html, ensure_docx_filename
from services.html_converter import html_to_docx_bytes
from services.policy_formatter import sanitize_policy_html
from utils.text_utils import escape_html, file_stem, underscore_spaces

logging.basicConfig(level=logging.INFO)

DEFAULT_BRIEF_TITLE = "PPDU Brief"
BRIEF_FONT = "Calibri"
BRIEF_FONT_SIZE_PT = 11

PPDU_BRIEF_TEMPLATE = """<h1>PPDU Brief</h1>
<table>
  <tr><th>Prepared for</th><td>&nbsp;</td></tr>
  <tr><th>Prepared by</th><td>&nbsp;</td></tr>
  <tr><th>Date</th><td>&nbsp;</td></tr>
</table>
<h2>Issue</h2>
<p>State the decision or information item in one or two sentences.</p>
<h2>Background</h2>
<p>Summarize the context, relevant policy and any prior decisions.</p>
<h2>Current Status</h2>
<ul>
  <li>Where the work stands today.</li>
</ul>
<h2>Options and Analysis</h2>
<ol>
  <li><strong>Option 1</strong>: description, benefits, risks.</li>
  <li><strong>Option 2</strong>: description, benefits, risks.</li>
</ol>
<h2>Recommendation</h2>
<p>The recommended option and the reason for it.</p>
<h2>Next Steps</h2>
<ul>
  <li>Action, owner, target date.</li>
</ul>
"""


def generate_download_html(title: str, body_html: str) -> str:
    """Page shell the .docx export is built from (Calibri 11pt)."""
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{escape_html(title)}</title>
  <style>
    body {{ font-family: {BRIEF_FONT}, Arial, sans-serif; font-size: {BRIEF_FONT_SIZE_PT}pt; line-height: 1.4; }}
    table {{ border-collapse: collapse; width: 100%; }}
    th, td {{ border: 1px solid #000; padding: 4px 6px; vertical-align: top; }}
    th {{ background-color: #D9D9D9; }}
  </style>
</head>
<body>
{body_html or ""}
</body>
</html>"""


def import_brief(filename: str, data: bytes) -> Dict[str, object]:
    ensure_docx_filename(filename)
    converted = docx_to_html(data)
    title = file_stem(filename) or DEFAULT_BRIEF_TITLE
    logging.info(f"Imported brief {filename} ({len(converted.html)} chars of HTML)")
    return {"title": title, "html": sanitize_policy_html(converted.html), "messages": converted.messages}


def brief_filename(title: str) -> str:
    return f"{underscore_spaces(title) or underscore_spaces(DEFAULT_BRIEF_TITLE)}.docx"


def export_brief_docx(title: str, body_html: str) -> Tuple[str, bytes]:
    page = generate_download_html(title, body_html)
    data = html_to_docx_bytes(page, font_name=BRIEF_FONT, font_size_pt=BRIEF_FONT_SIZE_PT,
                              cant_split_rows=True)
    return brief_filename(title), data


COMMUNICATIONS_PLAN = [
    ("Early Engagement",
     "Involve staff in the drafting of new policies or initiatives through toolkits, focus groups, "
     "or project teams."),
    ("Director Feedback",
     "Present proposed changes at <em>Decisions and More</em> meetings for Director-level input."),
    ("Manager Feedback",
     "Share updates at <em>Leadership Exchange</em> meetings to gather feedback from Managers."),
    ("Supervisor/Coach Feedback",
     "Communicate changes at <em>Provincial Coaching Calls</em> to engage Supervisors and Peer Coaches."),
    ("Formal Publication",
     "Issue finalized changes through memos and/or highlight them during <strong>Policy Week</strong> "
     "(three times annually)."),
    ("Staff Engagement",
     "Host <strong>Town Halls</strong> to inform all CCB staff, ensuring recordings are available on "
     "SharePoint for later access."),
    ("Deeper Dialogue",
     "Provide <strong>virtual open houses</strong> for Leadership and staff on key topics to allow time "
     "for discussion, reflection, and addressing emerging questions."),
]

_CELL = "border: 1px solid #000; padding: 6px 8px; vertical-align: top;"
_TH = f"{_CELL} background-color: #D9D9D9; font-weight: bold;"
_CHECKBOX = "&#9633;&nbsp;&nbsp;"


def _v(value: str) -> str:
    return escape_html(value) if value else "&nbsp;"


def _two_col_rows(pairs) -> str:
    return "\n".join(
        f'    <tr><td style="{_CELL}">{_v(a)}</td><td style="{_CELL}">{_v(b)}</td></tr>' for a, b in pairs
    )


def generate_intake_form_html(form: IntakeForm) -> str:
    objectives = "\n".join(f'  <p class="indent">{_CHECKBOX}{_v(o)}</p>' for o in form.objectives)
    contributors = _two_col_rows((c.name, c.role) for c in form.lead_contributors)
    evaluation = _two_col_rows((r.col1, r.col2) for r in form.evaluation_rows)
    plan = "\n".join(f"    <li><strong>{name}</strong> &ndash; {text}</li>" for name, text in COMMUNICATIONS_PLAN)
    kd = form.key_dates

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Project Intake Form - {escape_html(form.project_name) or "Untitled"}</title>
  <style>
    body {{ font-family: Calibri, Arial, sans-serif; font-size: 13pt; line-height: 1.4; color: #000; }}
    table {{ border-collapse: collapse; width: 100%; table-layout: fixed; margin: 6px 0 16px 0; }}
    h1 {{ font-size: 15pt; text-align: center; }}
    h2 {{ font-size: 15pt; margin: 16px 0 4px 0; }}
    p.indent {{ margin: 4px 0 4px 36px; }}
  </style>
</head>
<body>
  <h1>Intake Form</h1>
  <p><strong>Project Name:</strong> {escape_html(form.project_name)}</p>

  <h2>Overview / Background</h2>
  <p>{escape_html(form.overview_background)}</p>

  <h2>Purpose / Deliverable (<em>Specific Objectives</em>):</h2>
{objectives}

  <h2>Key Dates</h2>
  <table>
    <tr><th style="{_TH}">Stage</th><th style="{_TH}">Update</th><th style="{_TH}">Date</th></tr>
    <tr><td style="{_CELL}"><strong>Request Received</strong></td><td style="{_CELL}">Person(s) requesting: {escape_html(kd.person_requesting)}</td><td style="{_CELL}">{_v(kd.request_received_date)}</td></tr>
    <tr><td style="{_CELL}"><strong>Assigned</strong></td><td style="{_CELL}">&nbsp;</td><td style="{_CELL}">&nbsp;</td></tr>
    <tr><td style="{_CELL}"><strong>Target Completion</strong></td><td style="{_CELL}">Estimated time required (In days or weeks): {escape_html(kd.target_estimated_time)}</td><td style="{_CELL}">{_v(kd.target_completion_date)}</td></tr>
  </table>

  <h2>Lead Contributors</h2>
  <table>
    <tr><th style="{_TH}">Name</th><th style="{_TH}">Role</th></tr>
{contributors}
  </table>

  <h2>Dependencies/ Considerations (if applicable)</h2>
  <p><em>List any barriers, competing priorities, or required decisions. (Example: &ldquo;Pending access to ORCA data; potential delay if unavailable by Wednesday.&rdquo;)</em></p>
  <p class="indent">{_CHECKBOX}Planner Bucket: {escape_html(form.planner_bucket)}</p>
  <p class="indent">{_CHECKBOX}{escape_html(form.dependencies_text)}</p>

  <h2>Communications Plan/Roll-Out</h2>
  <p><strong>PPDU Change Management &amp; Communications Process</strong></p>
  <ol>
{plan}
  </ol>

  <h2>Evaluation/Monitor &amp; Control</h2>
  <table>
{evaluation}
  </table>
</body>
</html>"""


def export_intake_form_docx(form: IntakeForm) -> Tuple[str, bytes]:
    data = html_to_docx_bytes(generate_intake_form_html(form), font_name=BRIEF_FONT, font_size_pt=13)
    name = underscore_spaces(form.project_name) or "Project"
    return f"{name}_Intake_Form.docx", data
