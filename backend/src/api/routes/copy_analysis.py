"""Copy analysis API routes.

Deterministic spam-word and subject-line checks for interactive editing.
No model call is made and the results never feed the campaign score.
"""

import logging

from fastapi import APIRouter, Depends

from src.api.deps import verify_api_key
from src.models.copy_analysis import (
    CopyAnalysisRequest,
    EmailAnalysis,
    SpamPositionsRequest,
    SpamWordPosition,
    SubjectAnalysisRequest,
    SubjectLineAnalysis,
)
from src.services import copy_analysis

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/copy-analysis",
    tags=["copy-analysis"],
    dependencies=[Depends(verify_api_key)],
)


@router.post("")
async def analyze_copy(body: CopyAnalysisRequest) -> EmailAnalysis:
    """Score one email's subject and body."""
    return copy_analysis.analyze_email_copy(body.subject, body.body)


@router.post("/subject")
async def analyze_subject(body: SubjectAnalysisRequest) -> SubjectLineAnalysis:
    """Score a subject line on its own."""
    return copy_analysis.analyze_subject_line(body.subject)


@router.post("/spam-positions")
async def spam_positions(body: SpamPositionsRequest) -> list[SpamWordPosition]:
    """Locate spam trigger phrases in free text, for highlighting."""
    return copy_analysis.spam_word_positions(body.text)
