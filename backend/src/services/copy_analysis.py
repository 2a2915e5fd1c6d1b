"""Email copy analysis: spam trigger words and subject line scoring.

Pure, synchronous heuristics with no I/O. They back the interactive
copy-analysis routes and are deliberately kept out of the campaign
validation score, which comes from the generative model alone.

Scores run 0-100 (100 = clean). Two spam weightings exist:

- single-field analysis (``analyze_spam_words``): 8 per subject
  occurrence, 4 per body occurrence;
- merged subject+body analysis (``analyze_email_copy``): 8 per
  occurrence if the word is in the subject plus 3 if it is in the body.
"""

from __future__ import annotations

import re
from functools import lru_cache

from src.models.copy_analysis import (
    CopyField,
    EmailAnalysis,
    SpamAnalysis,
    SpamWordMatch,
    SpamWordPosition,
    SubjectLineAnalysis,
)

# Phrases statistically associated with spam-filter flagging. Entries may
# overlap ("free" / "for free" / "risk free").
SPAM_WORDS: tuple[str, ...] = (
    "free", "guarantee", "act now", "limited time", "urgent", "winner",
    "congratulations", "click here", "buy now", "order now", "special offer",
    "risk free", "no obligation", "cash", "earn money", "make money",
    "income", "profit", "credit card", "discount", "save big", "lowest price",
    "100%", "amazing", "incredible", "unbelievable", "miracle", "exclusive deal",
    "double your", "million dollars", "opportunity", "no cost", "apply now",
    "call now", "don't delete", "don't miss", "exclusive offer", "for free",
    "great offer", "increase sales", "limited offer", "money back", "no catch",
    "no fees", "no gimmick", "no strings attached", "offer expires", "once in a lifetime",
    "order today", "promise you", "risk-free", "satisfaction guaranteed", "special promotion",
    "take action", "this isn't spam", "you have been selected", "you're a winner",
)

# Words that tend to lift open rates
POWER_WORDS: tuple[str, ...] = (
    "discover", "secret", "proven", "results", "exclusive", "insider",
    "breakthrough", "unlock", "revealed", "transform", "boost", "accelerate",
    "maximize", "optimize", "essential", "critical", "important", "quick",
    "easy", "simple", "powerful", "effective", "successful", "strategy",
    "growth", "scale", "leverage", "opportunity", "insight", "trend",
)

SUBJECT_WEIGHT = 8
BODY_WEIGHT = 4
COMBINED_BODY_WEIGHT = 3
SUBJECT_SPAM_PENALTY = 8

SUBJECT_SHARE = 0.4
SPAM_SHARE = 0.6

MIN_SUBJECT_LENGTH = 20
MAX_SUBJECT_LENGTH = 60

_MERGE_NAMES = r"(?:first_?name|firstname|last_?name|lastname|name|company(?:_?name)?)"
PERSONALIZATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\{\{\s*" + _MERGE_NAMES + r"\s*\}\}", re.IGNORECASE),
    re.compile(r"\{\s*" + _MERGE_NAMES + r"\s*\}", re.IGNORECASE),
    re.compile(r"\[\s*" + _MERGE_NAMES + r"\s*\]", re.IGNORECASE),
    re.compile(r"%\s*" + _MERGE_NAMES + r"\s*%", re.IGNORECASE),
)

EMOJI_PATTERN = re.compile("[\U0001F300-\U0001F9FF\u2600-\u26FF\u2700-\u27BF]")
FAKE_PREFIX_PATTERN = re.compile(r"^(?:re|fwd):", re.IGNORECASE)
MERGE_PREFIX_PATTERN = re.compile(r"^(?:re|fwd):\s*\{", re.IGNORECASE)
_PLACEHOLDER_PATTERN = re.compile(r"\{.*\}|^\[.*\]$|^%.*%$")


@lru_cache(maxsize=None)
def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    """Compile a whole-word, case-insensitive matcher for a lexicon phrase.

    Internal spaces match any whitespace run.
    """
    body = r"\s+".join(re.escape(part) for part in phrase.split())
    return re.compile(rf"(?<!\w){body}(?!\w)", re.IGNORECASE)


def find_spam_words(text: str, location: CopyField) -> dict[str, SpamWordMatch]:
    """Find lexicon phrases in ``text``, keyed by lexicon entry."""
    matches: dict[str, SpamWordMatch] = {}
    if not text:
        return matches

    for phrase in SPAM_WORDS:
        found = _phrase_pattern(phrase).findall(text)
        if found:
            matches[phrase] = SpamWordMatch(word=phrase, count=len(found), locations=[location])
    return matches


def _warnings(matches: list[SpamWordMatch], score: int) -> list[str]:
    warnings: list[str] = []
    subject_spam = [m for m in matches if "subject" in m.locations]
    body_spam = [m for m in matches if "body" in m.locations]

    if subject_spam:
        plural = "s" if len(subject_spam) > 1 else ""
        warnings.append(f"{len(subject_spam)} spam trigger word{plural} in subject line")
    if len(body_spam) >= 3:
        warnings.append(f"High spam word density in body ({len(body_spam)} words)")

    if score < 50:
        warnings.append("Email may be flagged by spam filters")
    elif score < 70:
        warnings.append("Consider reducing spam trigger words")
    return warnings


def analyze_spam_words(text: str, location: CopyField = "body") -> SpamAnalysis:
    """Score a single field of free text against the spam lexicon.

    Args:
        text: Subject or body text.
        location: Which field the text came from.

    Returns:
        SpamAnalysis with a clamped score, matches and warnings.
    """
    spam_words_found = list(find_spam_words(text, location).values())

    deductions = 0
    for match in spam_words_found:
        weight = SUBJECT_WEIGHT if "subject" in match.locations else BODY_WEIGHT
        deductions += weight * match.count

    score = max(0, min(100, 100 - deductions))
    return SpamAnalysis(
        score=score,
        spam_words_found=spam_words_found,
        warnings=_warnings(spam_words_found, score),
    )


def _is_all_caps(word: str) -> bool:
    if _PLACEHOLDER_PATTERN.search(word):
        return False
    return word == word.upper() and any(c.isalpha() for c in word)


def analyze_subject_line(subject: str) -> SubjectLineAnalysis:
    """Score a subject line with the length/personalization/caps/punctuation rules.

    Args:
        subject: The subject line as written, merge fields included.

    Returns:
        SubjectLineAnalysis with a score clamped to 0-100.
    """
    issues: list[str] = []
    suggestions: list[str] = []
    score = 100

    length = len(subject)
    if length == 0:
        issues.append("Subject line is empty")
        score -= 50
    elif length < MIN_SUBJECT_LENGTH:
        issues.append("Subject line may be too short")
        suggestions.append("Aim for 30-50 characters for optimal open rates")
        score -= 10
    elif length > MAX_SUBJECT_LENGTH:
        issues.append("Subject line may get truncated on mobile")
        suggestions.append("Keep subject under 50 characters for mobile visibility")
        score -= 15

    has_personalization = any(p.search(subject) for p in PERSONALIZATION_PATTERNS)
    if has_personalization:
        score += 5
    else:
        suggestions.append("Consider adding personalization (e.g., {{first_name}})")

    power_words_found = [w for w in POWER_WORDS if _phrase_pattern(w).search(subject)]
    if not power_words_found:
        suggestions.append("Add a power word to increase engagement")

    # Neutral: emojis help or hurt depending on audience
    has_emoji = bool(EMOJI_PATTERN.search(subject))

    tokens = [w for w in subject.split() if len(w) > 2]
    all_caps_words = [w for w in tokens if _is_all_caps(w)]
    if all_caps_words:
        if len(all_caps_words) >= 2:
            issues.append("Excessive ALL CAPS detected")
            score -= 15
        else:
            issues.append("ALL CAPS word detected")
            score -= 5
        suggestions.append("Avoid ALL CAPS - it triggers spam filters")

    if FAKE_PREFIX_PATTERN.match(subject) and not MERGE_PREFIX_PATTERN.match(subject):
        issues.append("Fake reply/forward prefix may hurt deliverability")
        score -= 10

    if subject.count("!") > 1:
        issues.append("Multiple exclamation marks detected")
        suggestions.append("Use at most one exclamation mark")
        score -= 10
    if subject.count("?") > 1:
        issues.append("Multiple question marks detected")
        score -= 5

    subject_spam = analyze_spam_words(subject, "subject").spam_words_found
    if subject_spam:
        plural = "s" if len(subject_spam) > 1 else ""
        words = ", ".join(m.word for m in subject_spam)
        issues.append(f"Contains spam trigger word{plural}: {words}")
        score -= SUBJECT_SPAM_PENALTY * len(subject_spam)

    return SubjectLineAnalysis(
        score=max(0, min(100, score)),
        length=length,
        has_personalization=has_personalization,
        has_power_words=bool(power_words_found),
        power_words_found=power_words_found,
        has_emoji=has_emoji,
        has_all_caps=bool(all_caps_words),
        all_caps_words=all_caps_words,
        issues=issues,
        suggestions=suggestions,
    )


def merge_spam_matches(
    subject_matches: dict[str, SpamWordMatch],
    body_matches: dict[str, SpamWordMatch],
) -> list[SpamWordMatch]:
    """Merge per-field matches: one entry per word, counts summed, locations unioned."""
    merged: dict[str, SpamWordMatch] = {
        word: match.model_copy(deep=True) for word, match in subject_matches.items()
    }
    for word, match in body_matches.items():
        existing = merged.get(word)
        if existing is None:
            merged[word] = match.model_copy(deep=True)
            continue
        existing.count += match.count
        if "body" not in existing.locations:
            existing.locations.append("body")
    return list(merged.values())


def analyze_email_copy(subject: str, body: str) -> EmailAnalysis:
    """Analyze one email: subject rules plus merged subject+body spam score.

    The overall score blends 40% subject score with 60% spam score.

    Args:
        subject: Email subject line.
        body: Email body text.

    Returns:
        EmailAnalysis with spam, subject, overall score and label.
    """
    subject_analysis = analyze_subject_line(subject)

    spam_words_found = merge_spam_matches(
        find_spam_words(subject, "subject"),
        find_spam_words(body, "body"),
    )

    deductions = 0
    for match in spam_words_found:
        subject_weight = SUBJECT_WEIGHT if "subject" in match.locations else 0
        body_weight = COMBINED_BODY_WEIGHT if "body" in match.locations else 0
        deductions += (subject_weight + body_weight) * match.count
    spam_score = max(0, 100 - deductions)

    spam = SpamAnalysis(
        score=spam_score,
        spam_words_found=spam_words_found,
        warnings=_warnings(spam_words_found, spam_score),
    )
    overall_score = round(subject_analysis.score * SUBJECT_SHARE + spam_score * SPAM_SHARE)
    return EmailAnalysis(
        spam=spam,
        subject=subject_analysis,
        overall_score=overall_score,
        label=score_label(overall_score),
    )


def spam_word_positions(text: str) -> list[SpamWordPosition]:
    """Locate every lexicon occurrence in ``text``, sorted by start offset."""
    positions = [
        SpamWordPosition(word=phrase, start=m.start(), end=m.end())
        for phrase in SPAM_WORDS
        for m in _phrase_pattern(phrase).finditer(text)
    ]
    return sorted(positions, key=lambda p: (p.start, p.end))


def score_label(score: int) -> str:
    """Human label for a 0-100 copy score."""
    if score >= 90:
        return "Excellent"
    if score >= 80:
        return "Good"
    if score >= 70:
        return "Fair"
    if score >= 50:
        return "Needs Work"
    return "Poor"
