"""Shared fixtures for Preflight backend tests."""

import json
from typing import Any

import pytest

from src.core.config import Settings
from src.models.campaign import BestPracticeGuide, ClientContext


class FakeModel:
    """TextModel stand-in that replays a canned reply and records prompts."""

    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


class MemoryBestPracticesStore:
    def __init__(self, guides: list[BestPracticeGuide] | None) -> None:
        self.guides = guides
        self.calls = 0

    async def load_guides(self) -> list[BestPracticeGuide] | None:
        self.calls += 1
        return self.guides


class MemoryClientContextStore:
    def __init__(self, records: dict[str, ClientContext]) -> None:
        self.records = records
        self.requested: list[str] = []

    async def load_context(self, client_id: str) -> ClientContext | None:
        self.requested.append(client_id)
        return self.records.get(client_id)


def make_leads(count: int) -> list[dict[str, Any]]:
    return [
        {
            "email": f"lead{i}@company{i}.com",
            "firstName": f"First{i}",
            "lastName": f"Last{i}",
            "title": "VP Sales" if i % 2 == 0 else "Head of RevOps",
            "company": f"Company {i}",
            "industry": "SaaS",
            "companySize": "51-200",
        }
        for i in range(count)
    ]


def make_model_reply(
    score: int | float = 85,
    lead_count: int = 2,
    fixes: list[dict[str, Any]] | None = None,
) -> str:
    body = {
        "score": score,
        "summary": "Solid sequence with a few copy issues.",
        "issues": [
            {
                "type": "copy",
                "severity": "warning",
                "message": "Second email repeats the first",
                "details": "Add a new angle in step 2",
            }
        ],
        "suggestions": ["Add a case study to step 2"],
        "actionableFixes": fixes if fixes is not None else [],
        "leadAnalysis": [
            {
                "email": f"lead{i}@company{i}.com",
                "firstName": f"First{i}",
                "company": f"Company {i}",
                "title": "VP Sales",
                "matchScore": 90 - i * 15,
                "matchLevel": "strong",
                "reasons": [{"factor": "Title matches ICP", "positive": True}],
            }
            for i in range(lead_count)
        ],
    }
    return "Here is my review:\n```json\n" + json.dumps(body) + "\n```"


@pytest.fixture
def email_sequence() -> list[dict[str, Any]]:
    return [
        {
            "step": 1,
            "subject": "Quick question about {{company}}'s outbound process",
            "body": "Hi {{first_name}},\n\nWe help RevOps teams act now on pipeline gaps.\n\nWorth a chat?",
        },
        {
            "step": 2,
            "subject": "Re: outbound",
            "body": "Following up on my last note about pipeline gaps.",
        },
    ]


@pytest.fixture
def campaign_payload(email_sequence: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "campaignId": "camp-123",
        "clientId": "acme-corp",
        "platform": "instantly",
        "emailSequence": email_sequence,
        "leadList": make_leads(3),
        "icpDescription": "VP Sales and RevOps leaders at B2B SaaS companies, 50-500 employees.",
        "strategistNotes": "Keep the tone consultative.",
    }


@pytest.fixture
def test_settings(tmp_path: Any) -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        ANTHROPIC_API_KEY="test-anthropic-key",
        BEST_PRACTICES_PATH=str(tmp_path / "missing-best-practices.json"),
        CLIENT_CONTEXT_DIR=str(tmp_path / "client-context"),
        API_KEY="",
    )


@pytest.fixture
def fake_model_factory() -> type[FakeModel]:
    return FakeModel


@pytest.fixture
def memory_guides_store() -> type[MemoryBestPracticesStore]:
    return MemoryBestPracticesStore


@pytest.fixture
def memory_context_store() -> type[MemoryClientContextStore]:
    return MemoryClientContextStore


@pytest.fixture
def model_reply() -> Any:
    return make_model_reply


@pytest.fixture
def lead_factory() -> Any:
    return make_leads
