"""Campaign validation API routes.

Provides:
- POST /validate-campaign: run the readiness pipeline on one campaign
- GET /validate-campaign: describe the endpoint and its configuration state
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from src.api.deps import AppSettings, ValidationServiceDep, verify_api_key
from src.core.exceptions import RequestBodyError
from src.services.campaign_validation import OPTIONAL_FIELDS, REQUIRED_FIELDS, parse_request

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/validate-campaign",
    tags=["campaigns"],
    dependencies=[Depends(verify_api_key)],
)


@router.post("")
async def validate_campaign(request: Request, service: ValidationServiceDep) -> dict[str, Any]:
    """Validate an outbound campaign before launch.

    The body is decoded by hand so that malformed JSON, missing fields
    and wrongly shaped fields each get their own error.

    Args:
        request: The incoming request.
        service: The validation pipeline.

    Returns:
        ``{success: true, campaignId, ..., validation, meta}``.
    """
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise RequestBodyError() from e

    campaign = parse_request(payload)
    logger.info(
        "Validating campaign",
        extra={
            "campaign_id": campaign.campaign_id,
            "platform": campaign.platform,
            "emails": len(campaign.email_sequence),
            "leads": len(campaign.lead_list),
        },
    )
    result = await service.validate(campaign)
    return result.to_wire()


@router.get("")
async def describe_validate_campaign(request: Request, config: AppSettings) -> dict[str, Any]:
    """Describe the validate-campaign endpoint.

    ``configured`` reports whether model credentials are present without
    revealing them.
    """
    return {
        "status": "ok",
        "endpoint": request.url.path,
        "methods": ["POST"],
        "requiredFields": list(REQUIRED_FIELDS),
        "optionalFields": list(OPTIONAL_FIELDS),
        "configured": config.model_configured,
    }
