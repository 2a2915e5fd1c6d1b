"""Lead-to-ICP match brackets.

The bracket for each analysed lead is always derived from its numeric
match score, whatever label the model attached.
"""

from collections.abc import Sequence

from src.models.campaign import ICPMatchSummary, LeadAnalysis, MatchLevel

STRONG_THRESHOLD = 80
PARTIAL_THRESHOLD = 60
WEAK_THRESHOLD = 40


def match_level(score: float) -> MatchLevel:
    """Map a 0-100 match score onto its bracket."""
    if score >= STRONG_THRESHOLD:
        return MatchLevel.STRONG
    if score >= PARTIAL_THRESHOLD:
        return MatchLevel.PARTIAL
    if score >= WEAK_THRESHOLD:
        return MatchLevel.WEAK
    return MatchLevel.MISMATCH


def classify_leads(leads: Sequence[LeadAnalysis]) -> list[LeadAnalysis]:
    """Return copies of ``leads`` with ``match_level`` derived from ``match_score``."""
    return [
        lead.model_copy(update={"match_level": match_level(lead.match_score)})
        for lead in leads
    ]


def summarize_matches(leads: Sequence[LeadAnalysis]) -> ICPMatchSummary:
    """Count leads per bracket and average their scores.

    Brackets are recomputed from the scores, so the counts always add up
    to ``total`` even if a caller skipped ``classify_leads``.
    """
    counts = dict.fromkeys(MatchLevel, 0)
    for lead in leads:
        counts[match_level(lead.match_score)] += 1

    total = len(leads)
    average = sum(lead.match_score for lead in leads) / total if total else 0.0
    return ICPMatchSummary(
        strong=counts[MatchLevel.STRONG],
        partial=counts[MatchLevel.PARTIAL],
        weak=counts[MatchLevel.WEAK],
        mismatch=counts[MatchLevel.MISMATCH],
        total=total,
        average_score=average,
    )
