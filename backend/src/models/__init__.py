"""Models package for Preflight backend."""

from src.models.base import CamelModel
from src.models.campaign import (
    ActionableFix,
    BestPracticeGuide,
    ClientContext,
    EmailSequenceStep,
    FixLocation,
    ICPMatchSummary,
    LaunchStatus,
    Lead,
    LeadAnalysis,
    LeadHygieneSummary,
    MatchLevel,
    MatchReason,
    ValidateCampaignRequest,
    ValidateCampaignResponse,
    ValidationIssue,
    ValidationMeta,
    ValidationResponse,
)
from src.models.copy_analysis import (
    CopyAnalysisRequest,
    EmailAnalysis,
    SpamAnalysis,
    SpamPositionsRequest,
    SpamWordMatch,
    SpamWordPosition,
    SubjectAnalysisRequest,
    SubjectLineAnalysis,
)

__all__ = [
    "ActionableFix",
    "BestPracticeGuide",
    "CamelModel",
    "ClientContext",
    "CopyAnalysisRequest",
    "EmailAnalysis",
    "EmailSequenceStep",
    "FixLocation",
    "ICPMatchSummary",
    "LaunchStatus",
    "Lead",
    "LeadAnalysis",
    "LeadHygieneSummary",
    "MatchLevel",
    "MatchReason",
    "SpamAnalysis",
    "SpamPositionsRequest",
    "SpamWordMatch",
    "SpamWordPosition",
    "SubjectAnalysisRequest",
    "SubjectLineAnalysis",
    "ValidateCampaignRequest",
    "ValidateCampaignResponse",
    "ValidationIssue",
    "ValidationMeta",
    "ValidationResponse",
]
