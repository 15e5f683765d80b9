# models/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PolicyMetaOut(BaseModel):
    section: str = ""
    number: str = ""
    subject: str = ""


class FormatPreviewResponse(BaseModel):
    ok: bool = True
    filename: str
    meta: PolicyMetaOut
    pdf_name: str
    body_html: str
    page_html: str
    messages: List[str] = []


class FormatUploadResponse(BaseModel):
    ok: bool = True
    file_name: str
    storage_key: str
    url: str
    file_size: int
    meta: PolicyMetaOut
    policy_id: Optional[str] = None
    version_id: Optional[str] = None
    version_number: Optional[int] = None


class PolicyUpdate(BaseModel):
    status: Optional[str] = None
    category: Optional[str] = None


class AddUsersRequest(CamelModel):
    group_name: str = Field("Admin", alias="groupName")
    number_of_users: int = Field(15, alias="numberOfUsers", ge=1, le=500)


class PopulateRequest(CamelModel):
    policy_count: int = Field(798, alias="policyCount", ge=0, le=5000)


class BriefExport(BaseModel):
    title: str = "PPDU Brief"
    html: str = ""


class BriefImportResponse(BaseModel):
    title: str
    html: str
    messages: List[str] = []


class KeyDates(CamelModel):
    person_requesting: str = Field("", alias="personRequesting")
    request_received_date: str = Field("", alias="requestReceivedDate")
    target_estimated_time: str = Field("", alias="targetEstimatedTime")
    target_completion_date: str = Field("", alias="targetCompletionDate")


class Contributor(BaseModel):
    name: str = ""
    role: str = ""


class EvaluationRow(BaseModel):
    col1: str = ""
    col2: str = ""


class IntakeForm(CamelModel):
    project_name: str = Field("", alias="projectName")
    overview_background: str = Field("", alias="overviewBackground")
    objectives: List[str] = Field(default_factory=lambda: ["", ""])
    key_dates: KeyDates = Field(default_factory=KeyDates, alias="keyDates")
    lead_contributors: List[Contributor] = Field(
        default_factory=lambda: [Contributor(), Contributor()], alias="leadContributors"
    )
    planner_bucket: str = Field("", alias="plannerBucket")
    dependencies_text: str = Field("", alias="dependenciesText")
    evaluation_rows: List[EvaluationRow] = Field(
        default_factory=lambda: [EvaluationRow(), EvaluationRow()], alias="evaluationRows"
    )


class GraphDocumentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class GraphDocument(CamelModel):
    id: str
    name: str
    web_url: Optional[str] = Field(None, alias="webUrl")
    embed_url: Optional[str] = Field(None, alias="embedUrl")

