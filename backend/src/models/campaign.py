"""Campaign validation models.

Pydantic models for the validate-campaign request, the model-derived
validation result, lead ICP match analysis and the response envelope.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import ConfigDict, Field

from src.models.base import CamelModel
from src.models.copy_analysis import CopyField

IssueType = Literal["copy", "leads", "icp", "strategy"]
Severity = Literal["error", "warning", "suggestion"]
FixType = Literal["subject", "body", "personalization", "tone", "length", "spam"]

ISSUE_TYPES: tuple[str, ...] = ("copy", "leads", "icp", "strategy")
SEVERITIES: tuple[str, ...] = ("error", "warning", "suggestion")
FIX_TYPES: tuple[str, ...] = ("subject", "body", "personalization", "tone", "length", "spam")


class MatchLevel(str, Enum):
    STRONG = "strong"
    PARTIAL = "partial"
    WEAK = "weak"
    MISMATCH = "mismatch"


class LaunchStatus(str, Enum):
    PASS = "pass"
    NEEDS_REVIEW = "needs_review"
    FAIL = "fail"


# Request models


class EmailSequenceStep(CamelModel):
    step: int = Field(ge=1)
    subject: str
    body: str


class Lead(CamelModel):
    """A lead record. Only ``email`` is required; unknown columns are kept."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    email: str
    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None
    company: str | None = None
    industry: str | None = None
    company_size: str | None = None

    @property
    def extra_attributes(self) -> dict[str, Any]:
        """Columns beyond the named fields, in input order."""
        return dict(self.model_extra or {})


class ValidateCampaignRequest(CamelModel):
    campaign_id: str
    client_id: str | None = None
    platform: str
    email_sequence: list[EmailSequenceStep] = Field(min_length=1)
    lead_list: list[Lead] = Field(min_length=1)
    icp_description: str
    strategist_notes: str | None = None


# Validation result models


class ValidationIssue(CamelModel):
    type: IssueType
    severity: Severity
    message: str
    details: str | None = None


class FixLocation(CamelModel):
    email_index: int = Field(ge=0)
    field: CopyField


class ActionableFix(CamelModel):
    """A find/replace suggestion anchored to one email field.

    ``original`` is a verbatim substring of
    ``emailSequence[location.emailIndex][location.field]``.
    """

    id: str
    type: FixType
    severity: Severity
    message: str
    original: str
    suggested: str
    location: FixLocation


class MatchReason(CamelModel):
    factor: str
    positive: bool


class LeadAnalysis(CamelModel):
    email: str
    first_name: str | None = None
    last_name: str | None = None
    company: str | None = None
    title: str | None = None
    industry: str | None = None
    match_score: int = Field(ge=0, le=100)
    match_level: MatchLevel
    reasons: list[MatchReason] = Field(default_factory=list)


class ICPMatchSummary(CamelModel):
    strong: int = 0
    partial: int = 0
    weak: int = 0
    mismatch: int = 0
    total: int = 0
    average_score: float = 0.0


class ValidationResponse(CamelModel):
    # Model-reported, passed through unclamped
    score: int | float
    status: LaunchStatus
    summary: str
    issues: list[ValidationIssue] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    actionable_fixes: list[ActionableFix] = Field(default_factory=list)
    best_practices_checked: list[str] = Field(default_factory=list)
    client_context_used: bool
    lead_analysis: list[LeadAnalysis] = Field(default_factory=list)
    icp_match_summary: ICPMatchSummary


class LeadHygieneSummary(CamelModel):
    """Deterministic checks over the full lead list."""

    total: int
    invalid_emails: int = 0
    disposable_emails: int = 0
    role_based_emails: int = 0
    free_provider_emails: int = 0
    duplicate_emails: int = 0
    missing_fields: int = 0
    top_titles: list[str] = Field(default_factory=list)
    top_industries: list[str] = Field(default_factory=list)
    top_company_sizes: list[str] = Field(default_factory=list)


class ValidationMeta(CamelModel):
    best_practices_source: Literal["file", "defaults"]
    client_context_source: Literal["file", "none"]
    leads_analyzed: int
    total_leads: int
    emails_analyzed: int
    fixes_discarded: int = 0
    lead_hygiene: LeadHygieneSummary | None = None


class ValidateCampaignResponse(CamelModel):
    success: Literal[True] = True
    campaign_id: str
    client_id: str | None = None
    platform: str
    timestamp: str
    validation: ValidationResponse
    meta: ValidationMeta


# Collaborator records


class BestPracticeGuide(CamelModel):
    id: str
    title: str
    category: str = "general"
    content: str
    updated_at: str = ""


class ClientContext(CamelModel):
    client_id: str
    client_name: str = ""
    icp_summary: str = ""
    special_requirements: str = ""
    transcript_notes: str = ""
    updated_at: str = ""
