"""Validation of the generative model's raw reply.

``parse_model_response`` never raises for bad model output. It returns
either a ``ParsedValidation`` or a ``ParseFailure`` carrying a
truncated excerpt of the reply, and the caller decides how to surface
the failure.

Malformed optional fields are recovered locally (coerced or dropped)
and are not failures. A reply with no decodable JSON object, or one
without a numeric ``score``, is a failure.
"""

from __future__ import annotations

import hashlib
import json
import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from src.core.exceptions import truncate_raw
from src.models.campaign import (
    FIX_TYPES,
    ISSUE_TYPES,
    SEVERITIES,
    ActionableFix,
    FixLocation,
    LeadAnalysis,
    MatchLevel,
    MatchReason,
    ValidationIssue,
)
from src.services.icp_match import match_level

logger = logging.getLogger(__name__)

DEFAULT_ISSUE_TYPE = "strategy"
DEFAULT_SEVERITY = "warning"
_COPY_FIELDS = ("subject", "body")


@dataclass
class ParsedValidation:
    """A model reply that yielded a usable validation object."""

    score: int | float
    summary: str
    issues: list[ValidationIssue] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    actionable_fixes: list[ActionableFix] = field(default_factory=list)
    lead_analysis: list[LeadAnalysis] = field(default_factory=list)
    # Fix entries too malformed to keep
    fixes_dropped: int = 0


@dataclass
class ParseFailure:
    """A model reply with no usable validation object."""

    reason: str
    raw_excerpt: str


ParseResult = ParsedValidation | ParseFailure


def iter_json_objects(text: str) -> Iterator[str]:
    """Yield each top-level ``{...}`` span in ``text``, in order.

    Braces inside JSON strings are ignored. An unterminated trailing
    object is not yielded.
    """
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"' and depth > 0:
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start : i + 1]


def extract_json_object(text: str) -> tuple[dict[str, Any] | None, str]:
    """Decode the first top-level JSON object found in ``text``.

    Returns:
        ``(obj, "")`` on success, ``(None, reason)`` otherwise.
    """
    reason = "no JSON object found in response"
    for candidate in iter_json_objects(text):
        try:
            obj = json.loads(candidate)
        except json.JSONDecodeError as e:
            reason = f"invalid JSON ({e.msg} at position {e.pos})"
            continue
        if isinstance(obj, dict):
            return obj, ""
    return None, reason


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _coerce_issue(raw: Any) -> ValidationIssue | None:
    if isinstance(raw, str):
        raw = {"message": raw}
    if not isinstance(raw, dict) or not isinstance(raw.get("message"), str):
        return None

    issue_type = raw.get("type")
    severity = raw.get("severity")
    return ValidationIssue(
        type=issue_type if issue_type in ISSUE_TYPES else DEFAULT_ISSUE_TYPE,
        severity=severity if severity in SEVERITIES else DEFAULT_SEVERITY,
        message=raw["message"],
        details=_optional_str(raw.get("details")),
    )


def _coerce_index(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def fix_id(position: int, email_index: int, field_name: str, original: str, suggested: str) -> str:
    """Stable id for a fix, derived from its position and content."""
    digest = hashlib.sha1(
        f"{email_index}:{field_name}:{original}\x00{suggested}".encode()
    ).hexdigest()
    return f"fix-{position}-{digest[:8]}"


def _coerce_fix(raw: Any, position: int) -> ActionableFix | None:
    if not isinstance(raw, dict):
        return None
    original = raw.get("original")
    suggested = raw.get("suggested")
    location = raw.get("location")
    if not isinstance(original, str) or not isinstance(suggested, str):
        return None
    if not isinstance(location, dict):
        return None

    email_index = _coerce_index(location.get("emailIndex"))
    field_name = location.get("field")
    if email_index is None or email_index < 0 or field_name not in _COPY_FIELDS:
        return None

    fix_type = raw.get("type")
    severity = raw.get("severity")
    return ActionableFix(
        id=fix_id(position, email_index, field_name, original, suggested),
        type=fix_type if fix_type in FIX_TYPES else field_name,
        severity=severity if severity in SEVERITIES else DEFAULT_SEVERITY,
        message=_as_str(raw.get("message")),
        original=original,
        suggested=suggested,
        location=FixLocation(email_index=email_index, field=field_name),
    )


def _coerce_reason(raw: Any) -> MatchReason | None:
    if not isinstance(raw, dict) or not isinstance(raw.get("factor"), str):
        return None
    return MatchReason(factor=raw["factor"], positive=raw.get("positive") is True)


def _coerce_lead(raw: Any) -> LeadAnalysis | None:
    if not isinstance(raw, dict) or not isinstance(raw.get("email"), str):
        return None
    score = raw.get("matchScore")
    if not _is_number(score):
        return None
    match_score = max(0, min(100, round(score)))

    level = raw.get("matchLevel")
    try:
        model_level = MatchLevel(level)
    except ValueError:
        model_level = match_level(match_score)

    reasons = [r for r in map(_coerce_reason, _as_list(raw.get("reasons"))) if r]
    return LeadAnalysis(
        email=raw["email"],
        first_name=_optional_str(raw.get("firstName")),
        last_name=_optional_str(raw.get("lastName")),
        company=_optional_str(raw.get("company")),
        title=_optional_str(raw.get("title")),
        industry=_optional_str(raw.get("industry")),
        match_score=match_score,
        match_level=model_level,
        reasons=reasons,
    )


def parse_model_response(raw: str, max_leads: int | None = None) -> ParseResult:
    """Validate and coerce a raw model reply.

    Args:
        raw: The model's reply text, prose and markdown fences allowed.
        max_leads: Keep at most this many lead analyses.

    Returns:
        ParsedValidation on success, ParseFailure when no usable object
        could be recovered.
    """
    obj, reason = extract_json_object(raw)
    if obj is None:
        logger.warning("Model reply rejected: %s", reason, extra={"raw_chars": len(raw)})
        return ParseFailure(reason=reason, raw_excerpt=truncate_raw(raw))

    score = obj.get("score")
    if not _is_number(score):
        reason = "response has no numeric score"
        logger.warning("Model reply rejected: %s", reason, extra={"raw_chars": len(raw)})
        return ParseFailure(reason=reason, raw_excerpt=truncate_raw(raw))

    issues = [i for i in map(_coerce_issue, _as_list(obj.get("issues"))) if i]
    suggestions = [s for s in _as_list(obj.get("suggestions")) if isinstance(s, str)]

    raw_fixes = _as_list(obj.get("actionableFixes"))
    fixes = [
        fix
        for fix in (_coerce_fix(raw_fix, n) for n, raw_fix in enumerate(raw_fixes, start=1))
        if fix is not None
    ]

    leads = [lead for lead in map(_coerce_lead, _as_list(obj.get("leadAnalysis"))) if lead]
    if max_leads is not None:
        leads = leads[:max_leads]

    return ParsedValidation(
        score=score,
        summary=_as_str(obj.get("summary")),
        issues=issues,
        suggestions=suggestions,
        actionable_fixes=fixes,
        lead_analysis=leads,
        fixes_dropped=len(raw_fixes) - len(fixes),
    )
