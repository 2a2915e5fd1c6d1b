"""Campaign readiness validation pipeline.

One linear pass per request:

    request -> context loaded -> prompt built -> model invoked
            -> response validated -> leads classified -> aggregated

Any stage failure raises a ``PreflightException`` subclass straight to
the caller. Nothing is retried and no partial result is returned.
"""

import logging
import time
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.core.exceptions import (
    MissingFieldsError,
    ModelResponseParsingError,
    ValidationError,
)
from src.core.llm import TextModel
from src.models.campaign import (
    ActionableFix,
    EmailSequenceStep,
    LaunchStatus,
    ValidateCampaignRequest,
    ValidateCampaignResponse,
    ValidationMeta,
    ValidationResponse,
)
from src.services.campaign_context import DEFAULT_LEAD_SAMPLE_SIZE, assemble_context
from src.services.context_stores import BestPracticesStore, ClientContextStore
from src.services.icp_match import classify_leads, summarize_matches
from src.services.response_parser import ParseFailure, parse_model_response

logger = logging.getLogger(__name__)

PASS_THRESHOLD = 80
REVIEW_THRESHOLD = 50

REQUIRED_FIELDS: tuple[str, ...] = (
    "campaignId",
    "platform",
    "emailSequence",
    "leadList",
    "icpDescription",
)
OPTIONAL_FIELDS: tuple[str, ...] = ("clientId", "strategistNotes")


def launch_status(score: float) -> LaunchStatus:
    """Map the overall score onto a launch readiness status."""
    if score >= PASS_THRESHOLD:
        return LaunchStatus.PASS
    if score >= REVIEW_THRESHOLD:
        return LaunchStatus.NEEDS_REVIEW
    return LaunchStatus.FAIL


def _error_location(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc)


def parse_request(payload: Any) -> ValidateCampaignRequest:
    """Check a decoded request body and build the typed request.

    Args:
        payload: The JSON-decoded request body.

    Returns:
        The validated request.

    Raises:
        MissingFieldsError: If any required field is absent or null.
        ValidationError: If a field has the wrong shape.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    missing = [name for name in REQUIRED_FIELDS if payload.get(name) is None]
    if missing:
        raise MissingFieldsError(missing)

    for name in ("emailSequence", "leadList"):
        value = payload[name]
        if not isinstance(value, list) or not value:
            raise ValidationError(f"{name} must be a non-empty array", field=name)

    try:
        return ValidateCampaignRequest.model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        where = _error_location(first["loc"])
        raise ValidationError(
            f"Invalid field {where}: {first['msg']}",
            field=where,
            details={"error_count": e.error_count()},
        ) from e


def fix_applies(fix: ActionableFix, sequence: Sequence[EmailSequenceStep]) -> bool:
    """Check that ``fix.original`` occurs verbatim at its location."""
    index = fix.location.email_index
    if not fix.original or index >= len(sequence):
        return False
    text = getattr(sequence[index], fix.location.field)
    return fix.original in text


def filter_fixes(
    fixes: Sequence[ActionableFix], sequence: Sequence[EmailSequenceStep]
) -> tuple[list[ActionableFix], int]:
    """Keep only fixes that can be applied as find/replace.

    Returns:
        Tuple of (kept fixes, number discarded).
    """
    kept = [fix for fix in fixes if fix_applies(fix, sequence)]
    return kept, len(fixes) - len(kept)


class CampaignValidationService:
    """Runs the validation pipeline for one campaign at a time.

    Holds no per-request state, so one instance can serve concurrent
    requests.
    """

    def __init__(
        self,
        model: TextModel,
        best_practices_store: BestPracticesStore | None = None,
        client_context_store: ClientContextStore | None = None,
        lead_sample_size: int = DEFAULT_LEAD_SAMPLE_SIZE,
    ) -> None:
        """Initialize the service.

        Args:
            model: Generative model used for the qualitative review.
            best_practices_store: Guide source; None means always use defaults.
            client_context_store: Client record source; None means no context.
            lead_sample_size: Number of leads sent to the model.
        """
        self._model = model
        self._best_practices_store = best_practices_store
        self._client_context_store = client_context_store
        self._lead_sample_size = lead_sample_size

    async def validate(self, request: ValidateCampaignRequest) -> ValidateCampaignResponse:
        """Validate a campaign end to end.

        Args:
            request: The validated campaign request.

        Returns:
            The success envelope with the validation result and metadata.

        Raises:
            ModelServiceError: If the model call fails.
            ModelTimeoutError: If the model call times out.
            ModelResponseParsingError: If the reply holds no usable result.
        """
        start = time.monotonic()
        context = await assemble_context(
            request,
            self._best_practices_store,
            self._client_context_store,
            self._lead_sample_size,
        )

        raw = await self._model.complete(context.prompt)

        parsed = parse_model_response(raw, max_leads=context.leads_analyzed)
        if isinstance(parsed, ParseFailure):
            logger.warning(
                "Validation aborted: unparseable model reply",
                extra={"campaign_id": request.campaign_id, "reason": parsed.reason},
            )
            raise ModelResponseParsingError(parsed.reason, parsed.raw_excerpt)

        fixes, unapplicable = filter_fixes(parsed.actionable_fixes, request.email_sequence)
        lead_analysis = classify_leads(parsed.lead_analysis)

        validation = ValidationResponse(
            score=parsed.score,
            status=launch_status(parsed.score),
            summary=parsed.summary,
            issues=parsed.issues,
            suggestions=parsed.suggestions,
            actionable_fixes=fixes,
            best_practices_checked=context.guide_set.ids,
            client_context_used=context.client_context.used,
            lead_analysis=lead_analysis,
            icp_match_summary=summarize_matches(lead_analysis),
        )
        meta = ValidationMeta(
            best_practices_source=context.guide_set.source,
            client_context_source=context.client_context.source,
            leads_analyzed=context.leads_analyzed,
            total_leads=len(request.lead_list),
            emails_analyzed=len(request.email_sequence),
            fixes_discarded=parsed.fixes_dropped + unapplicable,
            lead_hygiene=context.lead_hygiene,
        )

        logger.info(
            "Campaign validated",
            extra={
                "campaign_id": request.campaign_id,
                "score": parsed.score,
                "status": validation.status.value,
                "issues": len(validation.issues),
                "fixes": len(fixes),
                "fixes_discarded": meta.fixes_discarded,
                "duration_ms": int((time.monotonic() - start) * 1000),
            },
        )
        return ValidateCampaignResponse(
            campaign_id=request.campaign_id,
            client_id=request.client_id,
            platform=request.platform,
            timestamp=datetime.now(UTC).isoformat(),
            validation=validation,
            meta=meta,
        )
