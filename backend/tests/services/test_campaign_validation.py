"""Tests for the campaign validation pipeline."""

import json
from datetime import datetime
from typing import Any

import pytest

from src.core.exceptions import (
    MissingFieldsError,
    ModelResponseParsingError,
    ValidationError,
)
from src.models.campaign import BestPracticeGuide, ClientContext, LaunchStatus
from src.services.campaign_validation import (
    CampaignValidationService,
    filter_fixes,
    launch_status,
    parse_request,
)
from src.services.response_parser import ParsedValidation, parse_model_response


def _fix(original: str, email_index: int = 0, field: str = "body") -> dict[str, Any]:
    return {
        "type": "spam",
        "severity": "warning",
        "message": "Soften the phrasing",
        "original": original,
        "suggested": "replacement",
        "location": {"emailIndex": email_index, "field": field},
    }


@pytest.mark.parametrize(
    ("score", "status"),
    [(100, "pass"), (80, "pass"), (79, "needs_review"), (50, "needs_review"),
     (49.9, "fail"), (49, "fail"), (0, "fail"), (-10, "fail"), (140, "pass")],
)
def test_launch_status_thresholds(score: float, status: str) -> None:
    """Test the 80/50 launch thresholds."""
    assert launch_status(score) == LaunchStatus(status)


class TestParseRequest:
    """Tests for request validation."""

    def test_valid_payload(self, campaign_payload: dict[str, Any]) -> None:
        """A complete payload parses into the typed request."""
        request = parse_request(campaign_payload)
        assert request.campaign_id == "camp-123"
        assert request.client_id == "acme-corp"
        assert len(request.email_sequence) == 2
        assert len(request.lead_list) == 3

    def test_optional_fields_may_be_absent(self, campaign_payload: dict[str, Any]) -> None:
        """clientId and strategistNotes are optional."""
        del campaign_payload["clientId"]
        del campaign_payload["strategistNotes"]
        request = parse_request(campaign_payload)
        assert request.client_id is None
        assert request.strategist_notes is None

    def test_non_object_body(self) -> None:
        """A JSON array is not a request."""
        with pytest.raises(ValidationError) as exc_info:
            parse_request([1, 2])
        assert exc_info.value.message == "Request body must be a JSON object"

    def test_missing_fields_listed_in_order(self, campaign_payload: dict[str, Any]) -> None:
        """Absent and null required fields are all named."""
        del campaign_payload["leadList"]
        campaign_payload["campaignId"] = None

        with pytest.raises(MissingFieldsError) as exc_info:
            parse_request(campaign_payload)

        assert exc_info.value.message == "Missing required fields: campaignId, leadList"
        assert exc_info.value.details["missing_fields"] == ["campaignId", "leadList"]
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize(("name", "value"), [("emailSequence", []), ("leadList", "a@x.com")])
    def test_non_empty_arrays(
        self, campaign_payload: dict[str, Any], name: str, value: Any
    ) -> None:
        """Sequence and lead list must be non-empty arrays."""
        campaign_payload[name] = value
        with pytest.raises(ValidationError) as exc_info:
            parse_request(campaign_payload)
        assert exc_info.value.message == f"{name} must be a non-empty array"
        assert not isinstance(exc_info.value, MissingFieldsError)

    def test_lead_without_email(self, campaign_payload: dict[str, Any]) -> None:
        """Nested shape errors name the offending field."""
        campaign_payload["leadList"] = [{"firstName": "Ann"}]
        with pytest.raises(ValidationError) as exc_info:
            parse_request(campaign_payload)
        assert exc_info.value.message.startswith("Invalid field leadList.0.email")

    def test_invalid_step_number(self, campaign_payload: dict[str, Any]) -> None:
        """Step numbers start at 1."""
        campaign_payload["emailSequence"][0]["step"] = 0
        with pytest.raises(ValidationError) as exc_info:
            parse_request(campaign_payload)
        assert exc_info.value.details["field"] == "emailSequence.0.step"


class TestFilterFixes:
    """Tests for the verbatim-substring fix filter."""

    def test_only_applicable_fixes_survive(self, campaign_payload: dict[str, Any]) -> None:
        """Fixes must match their email's field exactly."""
        request = parse_request(campaign_payload)
        fixes = [
            _fix("act now"),
            _fix("Act Now"),
            _fix("outbound", email_index=1, field="subject"),
            _fix("act now", email_index=5),
            _fix("pipeline gaps", field="subject"),
        ]
        parsed = parse_model_response(json.dumps({"score": 70, "actionableFixes": fixes}))
        assert isinstance(parsed, ParsedValidation)

        kept, discarded = filter_fixes(parsed.actionable_fixes, request.email_sequence)

        assert [(f.original, f.location.email_index) for f in kept] == [
            ("act now", 0),
            ("outbound", 1),
        ]
        assert discarded == 3


class TestCampaignValidationService:
    """Tests for the end-to-end pipeline with in-memory collaborators."""

    @pytest.mark.asyncio
    async def test_successful_validation(
        self, campaign_payload: dict[str, Any], fake_model_factory: Any, model_reply: Any
    ) -> None:
        """A good reply produces the full envelope."""
        model = fake_model_factory(model_reply(score=85, lead_count=3))
        service = CampaignValidationService(model)

        response = await service.validate(parse_request(campaign_payload))

        assert len(model.prompts) == 1
        assert response.success is True
        assert response.campaign_id == "camp-123"
        assert response.client_id == "acme-corp"
        assert response.platform == "instantly"

        validation = response.validation
        assert validation.score == 85
        assert validation.status == LaunchStatus.PASS
        assert validation.summary == "Solid sequence with a few copy issues."
        assert validation.issues[0].type == "copy"
        assert validation.suggestions == ["Add a case study to step 2"]
        assert validation.best_practices_checked == ["default-email-copy", "default-lead-list"]
        assert validation.client_context_used is False

        # matchScores 90, 75, 60
        assert [lead.match_level.value for lead in validation.lead_analysis] == [
            "strong",
            "partial",
            "partial",
        ]
        summary = validation.icp_match_summary
        assert (summary.strong, summary.partial, summary.weak, summary.mismatch) == (1, 2, 0, 0)
        assert summary.average_score == pytest.approx(75.0)

        meta = response.meta
        assert meta.best_practices_source == "defaults"
        assert meta.client_context_source == "none"
        assert meta.leads_analyzed == 3
        assert meta.total_leads == 3
        assert meta.emails_analyzed == 2
        assert meta.fixes_discarded == 0
        assert meta.lead_hygiene is not None
        assert meta.lead_hygiene.total == 3

        timestamp = datetime.fromisoformat(response.timestamp)
        assert timestamp.tzinfo is not None

    @pytest.mark.asyncio
    async def test_large_lead_list_is_sampled(
        self,
        campaign_payload: dict[str, Any],
        fake_model_factory: Any,
        model_reply: Any,
        lead_factory: Any,
    ) -> None:
        """25 leads in, 20 analysed, extra model analyses dropped."""
        campaign_payload["leadList"] = lead_factory(25)
        model = fake_model_factory(model_reply(lead_count=25))

        response = await CampaignValidationService(model).validate(parse_request(campaign_payload))

        assert response.meta.leads_analyzed == 20
        assert response.meta.total_leads == 25
        assert len(response.validation.lead_analysis) == 20
        assert response.validation.icp_match_summary.total == 20

    @pytest.mark.asyncio
    async def test_context_sources_are_reported(
        self,
        campaign_payload: dict[str, Any],
        fake_model_factory: Any,
        model_reply: Any,
        memory_guides_store: Any,
        memory_context_store: Any,
    ) -> None:
        """Stored guides and client context are used and reported."""
        guides = [
            BestPracticeGuide(id="subject-lines", title="Subject Lines", content="Short."),
            BestPracticeGuide(id="follow-ups", title="Follow-ups", content="Add value."),
        ]
        record = ClientContext(client_id="acme-corp", client_name="Acme Corp")
        model = fake_model_factory(model_reply())
        service = CampaignValidationService(
            model,
            best_practices_store=memory_guides_store(guides),
            client_context_store=memory_context_store({"acme-corp": record}),
        )

        response = await service.validate(parse_request(campaign_payload))

        assert response.validation.best_practices_checked == ["subject-lines", "follow-ups"]
        assert response.validation.client_context_used is True
        assert response.meta.best_practices_source == "file"
        assert response.meta.client_context_source == "file"
        assert "Client: Acme Corp" in model.prompts[0]

    @pytest.mark.asyncio
    async def test_prose_reply_raises_parsing_error(
        self, campaign_payload: dict[str, Any], fake_model_factory: Any
    ) -> None:
        """A reply without JSON aborts the request."""
        model = fake_model_factory("Looks good to me, ship it!")

        with pytest.raises(ModelResponseParsingError) as exc_info:
            await CampaignValidationService(model).validate(parse_request(campaign_payload))

        assert exc_info.value.status_code == 500
        assert exc_info.value.raw_response == "Looks good to me, ship it!"
        assert exc_info.value.to_body()["rawResponse"] == "Looks good to me, ship it!"

    @pytest.mark.asyncio
    async def test_fix_filtering_counts_all_discards(
        self, campaign_payload: dict[str, Any], fake_model_factory: Any, model_reply: Any
    ) -> None:
        """Parser drops and non-applicable fixes are both counted."""
        fixes = [
            _fix("act now"),
            _fix("not in the email"),
            _fix("act now", email_index=9),
            {"original": "act now", "suggested": "x"},
        ]
        model = fake_model_factory(model_reply(fixes=fixes))

        response = await CampaignValidationService(model).validate(parse_request(campaign_payload))

        kept = response.validation.actionable_fixes
        assert [fix.original for fix in kept] == ["act now"]
        assert kept[0].id.startswith("fix-1-")
        assert response.meta.fixes_discarded == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("score", "status"), [(80, "pass"), (79, "needs_review"), (50, "needs_review"), (49, "fail")]
    )
    async def test_status_follows_model_score(
        self,
        campaign_payload: dict[str, Any],
        fake_model_factory: Any,
        model_reply: Any,
        score: int,
        status: str,
    ) -> None:
        """The model's score drives the launch status."""
        model = fake_model_factory(model_reply(score=score))
        response = await CampaignValidationService(model).validate(parse_request(campaign_payload))
        assert response.validation.score == score
        assert response.validation.status.value == status

    @pytest.mark.asyncio
    async def test_same_input_same_output(
        self, campaign_payload: dict[str, Any], fake_model_factory: Any, model_reply: Any
    ) -> None:
        """Apart from the timestamp, repeated runs are identical."""
        fixes = [_fix("act now"), _fix("outbound", email_index=1, field="subject")]
        service = CampaignValidationService(fake_model_factory(model_reply(fixes=fixes)))
        request = parse_request(campaign_payload)

        first = (await service.validate(request)).to_wire()
        second = (await service.validate(request)).to_wire()
        first.pop("timestamp")
        second.pop("timestamp")

        assert first == second

    @pytest.mark.asyncio
    async def test_wire_format_is_camel_case(
        self, campaign_payload: dict[str, Any], fake_model_factory: Any, model_reply: Any
    ) -> None:
        """The envelope serializes with camelCase keys."""
        service = CampaignValidationService(fake_model_factory(model_reply()))
        wire = (await service.validate(parse_request(campaign_payload))).to_wire()

        assert wire["success"] is True
        assert wire["campaignId"] == "camp-123"
        assert set(wire["validation"]) >= {
            "score",
            "status",
            "actionableFixes",
            "bestPracticesChecked",
            "clientContextUsed",
            "leadAnalysis",
            "icpMatchSummary",
        }
        assert wire["validation"]["status"] == "pass"
        assert wire["meta"]["leadsAnalyzed"] == 3
        assert wire["meta"]["leadHygiene"]["total"] == 3
