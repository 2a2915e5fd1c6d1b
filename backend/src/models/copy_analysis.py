"""Copy analysis models.

Results of the deterministic spam-word and subject-line heuristics,
plus the request bodies of the copy-analysis routes.
"""

from typing import Literal

from pydantic import Field

from src.models.base import CamelModel

CopyField = Literal["subject", "body"]


class SpamWordMatch(CamelModel):
    """One lexicon entry found in the analysed text."""

    word: str
    count: int = Field(ge=1)
    # Each location at most once, subject before body
    locations: list[CopyField]


class SpamAnalysis(CamelModel):
    score: int = Field(ge=0, le=100)
    spam_words_found: list[SpamWordMatch] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class SubjectLineAnalysis(CamelModel):
    score: int = Field(ge=0, le=100)
    length: int
    has_personalization: bool
    has_power_words: bool
    power_words_found: list[str] = Field(default_factory=list)
    has_emoji: bool
    has_all_caps: bool
    all_caps_words: list[str] = Field(default_factory=list)
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class EmailAnalysis(CamelModel):
    """Combined subject + body analysis for a single email."""

    spam: SpamAnalysis
    subject: SubjectLineAnalysis
    overall_score: int = Field(ge=0, le=100)
    label: str


class SpamWordPosition(CamelModel):
    word: str
    start: int
    end: int


# Request bodies


class CopyAnalysisRequest(CamelModel):
    subject: str = ""
    body: str = ""


class SubjectAnalysisRequest(CamelModel):
    subject: str


class SpamPositionsRequest(CamelModel):
    text: str
