"""Context assembly and prompt building for campaign validation.

Loads the best-practice guides and the client context concurrently,
formats the email sequence and a capped lead sample, and renders the
single prompt sent to the generative model.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from src.models.campaign import (
    BestPracticeGuide,
    ClientContext,
    EmailSequenceStep,
    Lead,
    LeadHygieneSummary,
    ValidateCampaignRequest,
)
from src.services.context_stores import (
    BestPracticesStore,
    ClientContextLoad,
    ClientContextStore,
    GuideSet,
    load_client_context,
    load_guide_set,
)
from src.services.lead_hygiene import summarize_leads

logger = logging.getLogger(__name__)

DEFAULT_LEAD_SAMPLE_SIZE = 20

NO_CLIENT_CONTEXT = "No client-specific data available. Evaluate against the ICP and best practices only."
NOT_PROVIDED = "None provided"

VALIDATION_PROMPT = """You are an expert B2B outbound strategist reviewing a cold email campaign before launch.

Evaluate the campaign on four dimensions:
1. **Copy quality**: tone, clarity, value proposition, call to action, personalization and spam risk.
2. **ICP alignment**: does the copy speak to the pains and priorities of this ideal customer profile?
3. **Lead list quality**: do the sampled leads match the ICP (title, company, industry, size)? Are there data problems?
4. **Strategy coherence**: does the sequence progress sensibly, and does it follow the strategist notes and client requirements?

## Ideal Customer Profile
{icp_description}

## Strategist Notes
{strategist_notes}

## Client Context
{client_context}

## Best Practices
{best_practices}

## Email Sequence ({email_count} emails)
{email_sequence}

## Lead List Profile ({total_leads} leads total)
{lead_profile}

## Lead Sample (first {sample_size} of {total_leads} leads)
Format: email | first name | last name | title | company | industry | company size
{lead_sample}

## Response Format
Respond with ONE JSON object only. No markdown fences, no text before or after it. Use exactly these keys:
{{
  "score": <integer 0-100, overall launch readiness>,
  "summary": "<2-3 sentence overall assessment>",
  "issues": [
    {{"type": "copy|leads|icp|strategy", "severity": "error|warning|suggestion", "message": "<problem>", "details": "<optional detail>"}}
  ],
  "suggestions": ["<actionable improvement>"],
  "actionableFixes": [
    {{
      "type": "subject|body|personalization|tone|length|spam",
      "severity": "error|warning|suggestion",
      "message": "<why this change helps>",
      "original": "<exact text to replace>",
      "suggested": "<replacement text>",
      "location": {{"emailIndex": <0-based email index>, "field": "subject|body"}}
    }}
  ],
  "leadAnalysis": [
    {{
      "email": "<lead email>",
      "firstName": "<first name>",
      "lastName": "<last name>",
      "company": "<company>",
      "title": "<title>",
      "industry": "<industry>",
      "matchScore": <integer 0-100>,
      "reasons": [{{"factor": "<what was compared>", "positive": true}}]
    }}
  ]
}}

Rules:
- "original" MUST be an exact, verbatim substring of the referenced email's subject or body, copied character for character. Fixes whose original text cannot be found are discarded.
- "emailIndex" is the 0-based position in the sequence above (the first email is 0), not the step number.
- Severity is one of: "error" (must fix before launch), "warning" (should fix), "suggestion" (nice to have).
- Score each sampled lead against the ICP: 80-100 strong match, 60-79 partial match, 40-59 weak match, below 40 mismatch. Analyse every lead in the sample and no others.
- Overall score guide: 80+ ready to launch, 50-79 needs review, below 50 not ready."""


@dataclass
class CampaignContext:
    """Everything the prompt is built from, plus where it came from."""

    guide_set: GuideSet
    client_context: ClientContextLoad
    lead_sample: list[Lead]
    lead_hygiene: LeadHygieneSummary
    prompt: str

    @property
    def leads_analyzed(self) -> int:
        return len(self.lead_sample)


def sample_leads(leads: Sequence[Lead], sample_size: int = DEFAULT_LEAD_SAMPLE_SIZE) -> list[Lead]:
    """Return the first ``sample_size`` leads in input order."""
    return list(leads[:sample_size])


def format_email_sequence(steps: Sequence[EmailSequenceStep]) -> str:
    blocks = []
    for index, step in enumerate(steps):
        blocks.append(
            f"### Email {index} (step {step.step})\n"
            f"Subject: {step.subject}\n"
            f"Body:\n{step.body}\n"
            "---"
        )
    return "\n".join(blocks)


def format_lead(lead: Lead) -> str:
    """Render one lead as a compact, pipe-separated line."""
    fields = [
        lead.email,
        lead.first_name or "",
        lead.last_name or "",
        lead.title or "N/A",
        lead.company or "N/A",
        lead.industry or "N/A",
        lead.company_size or "N/A",
    ]
    line = "- " + " | ".join(fields)
    extra = {k: v for k, v in lead.extra_attributes.items() if v not in (None, "")}
    if extra:
        line += " | " + ", ".join(f"{k}={v}" for k, v in extra.items())
    return line


def format_guides(guides: Sequence[BestPracticeGuide]) -> str:
    return "\n\n".join(
        f"### {guide.title} [{guide.id}] ({guide.category})\n{guide.content.strip()}"
        for guide in guides
    )


def format_client_context(context: ClientContext | None) -> str:
    if context is None:
        return NO_CLIENT_CONTEXT

    lines = [f"Client: {context.client_name or context.client_id}"]
    if context.icp_summary:
        lines.append(f"ICP summary: {context.icp_summary}")
    if context.special_requirements:
        lines.append(f"Special requirements: {context.special_requirements}")
    if context.transcript_notes:
        lines.append(f"Call notes: {context.transcript_notes}")
    return "\n".join(lines)


def format_lead_profile(hygiene: LeadHygieneSummary) -> str:
    def _join(values: list[str]) -> str:
        return ", ".join(values) or "N/A"

    return "\n".join([
        f"- Top titles: {_join(hygiene.top_titles)}",
        f"- Top industries: {_join(hygiene.top_industries)}",
        f"- Top company sizes: {_join(hygiene.top_company_sizes)}",
        f"- Invalid email format: {hygiene.invalid_emails}",
        f"- Disposable domains: {hygiene.disposable_emails}",
        f"- Role-based addresses: {hygiene.role_based_emails}",
        f"- Free-mail providers: {hygiene.free_provider_emails}",
        f"- Duplicate emails: {hygiene.duplicate_emails}",
        f"- Missing first name, company or title: {hygiene.missing_fields}",
    ])


def build_prompt(
    request: ValidateCampaignRequest,
    guides: Sequence[BestPracticeGuide],
    client_context: ClientContext | None,
    lead_sample: Sequence[Lead],
    lead_hygiene: LeadHygieneSummary,
) -> str:
    """Render the validation prompt.

    Args:
        request: The validated campaign request.
        guides: Best-practice guides to check against.
        client_context: Client record, or None when unavailable.
        lead_sample: The capped lead sample the model should score.
        lead_hygiene: Deterministic checks over the full lead list.

    Returns:
        The complete prompt string.
    """
    return VALIDATION_PROMPT.format(
        icp_description=request.icp_description.strip() or NOT_PROVIDED,
        strategist_notes=(request.strategist_notes or "").strip() or NOT_PROVIDED,
        client_context=format_client_context(client_context),
        best_practices=format_guides(guides),
        email_count=len(request.email_sequence),
        email_sequence=format_email_sequence(request.email_sequence),
        total_leads=len(request.lead_list),
        lead_profile=format_lead_profile(lead_hygiene),
        sample_size=len(lead_sample),
        lead_sample="\n".join(format_lead(lead) for lead in lead_sample),
    )


async def assemble_context(
    request: ValidateCampaignRequest,
    best_practices_store: BestPracticesStore | None,
    client_context_store: ClientContextStore | None,
    sample_size: int = DEFAULT_LEAD_SAMPLE_SIZE,
) -> CampaignContext:
    """Load both context sources concurrently and build the prompt.

    Store unavailability is recovered here through the loaders' fallbacks
    and is visible on the returned ``guide_set.source`` and
    ``client_context.source``.
    """
    guide_set, client_load = await asyncio.gather(
        load_guide_set(best_practices_store),
        load_client_context(client_context_store, request.client_id),
    )

    lead_sample = sample_leads(request.lead_list, sample_size)
    lead_hygiene = summarize_leads(request.lead_list)
    prompt = build_prompt(
        request,
        guide_set.guides,
        client_load.context,
        lead_sample,
        lead_hygiene,
    )

    logger.info(
        "Campaign context assembled",
        extra={
            "campaign_id": request.campaign_id,
            "best_practices_source": guide_set.source,
            "client_context_source": client_load.source,
            "leads_sampled": len(lead_sample),
            "total_leads": len(request.lead_list),
            "prompt_chars": len(prompt),
        },
    )
    return CampaignContext(
        guide_set=guide_set,
        client_context=client_load,
        lead_sample=lead_sample,
        lead_hygiene=lead_hygiene,
        prompt=prompt,
    )
