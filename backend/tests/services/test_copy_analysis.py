"""Tests for the spam-word and subject-line analyzers."""

import pytest

from src.services.copy_analysis import (
    SPAM_WORDS,
    analyze_email_copy,
    analyze_spam_words,
    analyze_subject_line,
    find_spam_words,
    merge_spam_matches,
    score_label,
    spam_word_positions,
)


class TestSpamWordAnalyzer:
    """Tests for analyze_spam_words."""

    def test_clean_text_scores_100(self) -> None:
        """Text without trigger words is not penalized."""
        result = analyze_spam_words("Hi Sam, saw your post on pipeline reviews.")
        assert result.score == 100
        assert result.spam_words_found == []
        assert result.warnings == []

    def test_body_occurrences_cost_four_each(self) -> None:
        """Each body occurrence of each matched entry costs 4 points."""
        result = analyze_spam_words("This is free. Act now for free!", "body")

        found = {m.word: m.count for m in result.spam_words_found}
        assert found == {"free": 2, "act now": 1, "for free": 1}
        assert result.score == 100 - 4 * 4
        assert "High spam word density in body (3 words)" in result.warnings

    def test_subject_occurrences_cost_eight_each(self) -> None:
        """Subject matches use the subject weight and add a subject warning."""
        result = analyze_spam_words("Urgent: free audit", "subject")
        assert result.score == 100 - 8 * 2
        assert result.warnings[0] == "2 spam trigger words in subject line"
        assert all(m.locations == ["subject"] for m in result.spam_words_found)

    def test_matching_is_case_insensitive_and_whole_word(self) -> None:
        """Matches ignore case but never fire inside other words."""
        assert find_spam_words("FREE trial", "body")["free"].count == 1
        assert "free" not in find_spam_words("freedom and carefree", "body")
        assert "cash" not in find_spam_words("cashflow", "body")

    def test_phrases_match_across_whitespace_runs(self) -> None:
        """Multi-word phrases match over any whitespace between words."""
        assert "act now" in find_spam_words("act\n  now", "body")

    def test_symbol_entries_match(self) -> None:
        """Entries ending in punctuation still match."""
        assert find_spam_words("We are 100% sure", "body")["100%"].count == 1

    def test_score_never_increases_when_adding_trigger_words(self) -> None:
        """Adding distinct trigger words is monotonically non-increasing."""
        text = "Hello there"
        previous = analyze_spam_words(text).score
        for word in ("free", "cash", "urgent", "winner", "miracle"):
            text = f"{text} {word}"
            current = analyze_spam_words(text).score
            assert current <= previous
            previous = current

    def test_score_floors_at_zero(self) -> None:
        """Heavy spam clamps to 0."""
        result = analyze_spam_words("free " * 40)
        assert result.score == 0
        assert "Email may be flagged by spam filters" in result.warnings

    def test_moderate_score_warning(self) -> None:
        """Scores between 50 and 69 ask to reduce trigger words."""
        result = analyze_spam_words("free " * 8)
        assert result.score == 68
        assert result.warnings[-1] == "Consider reducing spam trigger words"

    def test_empty_text(self) -> None:
        """Empty text is clean."""
        assert analyze_spam_words("").score == 100

    def test_lexicon_has_no_duplicates(self) -> None:
        """Every lexicon entry is distinct."""
        assert len(SPAM_WORDS) == len(set(SPAM_WORDS))

    def test_limited_phrases_count_once(self) -> None:
        """A "limited ..." phrase matches only its own lexicon entry."""
        assert "limited" not in SPAM_WORDS
        assert list(find_spam_words("limited time only", "body")) == ["limited time"]
        assert analyze_spam_words("limited time only", "body").score == 96


class TestSubjectLineAnalyzer:
    """Tests for analyze_subject_line."""

    def test_spammy_subject_scores_low(self) -> None:
        """Caps, repeated exclamation marks and trigger words stack up."""
        result = analyze_subject_line("FREE FREE act now!!! Limited Time")

        # caps (-15), exclamation marks (-10), free / act now / limited time (-8 each)
        assert result.score == 51
        assert len(result.issues) >= 3
        assert result.has_all_caps is True
        assert result.all_caps_words == ["FREE", "FREE"]
        assert "Excessive ALL CAPS detected" in result.issues
        assert "Multiple exclamation marks detected" in result.issues
        assert any(issue.startswith("Contains spam trigger words") for issue in result.issues)

    def test_repeated_trigger_word_is_charged_once(self) -> None:
        """The embedded spam penalty is per distinct word, not per occurrence."""
        result = analyze_subject_line("Free free free for your quarterly review")

        assert result.score == 92
        assert "Contains spam trigger word: free" in result.issues

    def test_personalized_subject_scores_high(self) -> None:
        """A personalized, clean subject keeps a high score."""
        result = analyze_subject_line("Quick question about {{company}}'s outbound process")

        assert result.has_personalization is True
        assert result.score >= 90
        assert result.issues == []
        assert result.power_words_found == ["quick"]

    @pytest.mark.parametrize(
        "subject",
        ["{{first_name}}, a thought", "{firstName} - idea", "[Name] quick idea", "%FIRST_NAME% hello"],
    )
    def test_personalization_token_syntaxes(self, subject: str) -> None:
        """All supported merge-field syntaxes count as personalization."""
        assert analyze_subject_line(subject).has_personalization is True

    def test_empty_subject(self) -> None:
        """An empty subject loses 50 points."""
        result = analyze_subject_line("")
        assert result.length == 0
        assert "Subject line is empty" in result.issues
        assert result.score == 50

    def test_short_and_long_subjects(self) -> None:
        """Length outside 20-60 characters is penalized."""
        assert analyze_subject_line("Hello").score == 90
        long_subject = "A very long subject line that keeps going well past the mobile limit"
        assert len(long_subject) > 60
        result = analyze_subject_line(long_subject)
        assert "Subject line may get truncated on mobile" in result.issues
        assert result.score == 85

    def test_single_caps_word(self) -> None:
        """One all-caps word costs 5 points."""
        result = analyze_subject_line("Quick note on the NEW pricing")
        assert result.all_caps_words == ["NEW"]
        assert result.score == 95

    def test_placeholders_and_short_tokens_are_not_caps(self) -> None:
        """Merge fields and tokens of two characters or fewer are ignored."""
        result = analyze_subject_line("[COMPANY] and AI at {{FIRST_NAME}} today")
        assert result.has_all_caps is False

    def test_fake_reply_prefix(self) -> None:
        """A fake RE: prefix costs 10 points unless a merge field follows."""
        faked = analyze_subject_line("RE: our call last week")
        assert "Fake reply/forward prefix may hurt deliverability" in faked.issues

        merged = analyze_subject_line("Re: {{first_name}} quick idea for you")
        assert "Fake reply/forward prefix may hurt deliverability" not in merged.issues

    def test_question_marks(self) -> None:
        """More than one question mark costs 5 points."""
        result = analyze_subject_line("Open to a chat?? About pipeline")
        assert "Multiple question marks detected" in result.issues
        assert result.score == 95

    def test_emoji_is_recorded_but_neutral(self) -> None:
        """Emoji presence never changes the score."""
        with_emoji = analyze_subject_line("\U0001F680 Launch day")
        without = analyze_subject_line("Launch day")
        assert with_emoji.has_emoji is True
        assert without.has_emoji is False
        assert with_emoji.score == without.score

    @pytest.mark.parametrize(
        "subject",
        ["", "!!!!!!!!", "FREE CASH WINNER URGENT!!!??? ACT NOW", "{{first_name}}" * 20],
    )
    def test_score_is_always_in_range(self, subject: str) -> None:
        """Scores stay within 0-100."""
        assert 0 <= analyze_subject_line(subject).score <= 100


class TestCombinedCopyAnalyzer:
    """Tests for analyze_email_copy and merge_spam_matches."""

    def test_merge_sums_counts_and_unions_locations(self) -> None:
        """Matches for the same word merge into one entry."""
        merged = merge_spam_matches(
            find_spam_words("Free trial", "subject"),
            find_spam_words("It is free, totally free", "body"),
        )
        assert len(merged) == 1
        assert merged[0].word == "free"
        assert merged[0].count == 3
        assert merged[0].locations == ["subject", "body"]

    def test_merge_does_not_mutate_inputs(self) -> None:
        """Merging leaves the per-field matches untouched."""
        subject_matches = find_spam_words("Free trial", "subject")
        merge_spam_matches(subject_matches, find_spam_words("free", "body"))
        assert subject_matches["free"].count == 1
        assert subject_matches["free"].locations == ["subject"]

    def test_combined_scoring(self) -> None:
        """A word in both fields pays both weights per occurrence."""
        result = analyze_email_copy("Free trial inside", "Get it free today, act now.")

        # free: (8 + 3) * 2, act now: 3 * 1
        assert result.spam.score == 75
        # too short (-10), one subject trigger word (-8)
        assert result.subject.score == 82
        assert result.overall_score == round(82 * 0.4 + 75 * 0.6)
        assert result.label == "Fair"
        assert result.spam.warnings == ["1 spam trigger word in subject line"]

    def test_clean_email(self) -> None:
        """A clean email scores well overall."""
        result = analyze_email_copy(
            "Quick question about {{company}}'s outbound process",
            "Hi {{first_name}}, noticed you are hiring SDRs. Worth comparing notes?",
        )
        assert result.spam.score == 100
        assert result.overall_score == 100
        assert result.label == "Excellent"


class TestSpamWordPositions:
    """Tests for spam_word_positions."""

    def test_positions_sorted_by_offset(self) -> None:
        """Every occurrence is reported in text order."""
        text = "Act now: free shipping, free returns"
        positions = spam_word_positions(text)

        assert [(p.word, p.start, p.end) for p in positions] == [
            ("act now", 0, 7),
            ("free", 9, 13),
            ("free", 24, 28),
        ]
        for p in positions:
            assert text[p.start : p.end].lower() == p.word

    def test_no_positions_for_clean_text(self) -> None:
        """Clean text yields nothing."""
        assert spam_word_positions("Hello there") == []


@pytest.mark.parametrize(
    ("score", "label"),
    [(100, "Excellent"), (90, "Excellent"), (89, "Good"), (80, "Good"), (79, "Fair"),
     (70, "Fair"), (69, "Needs Work"), (50, "Needs Work"), (49, "Poor"), (0, "Poor")],
)
def test_score_label(score: int, label: str) -> None:
    """Labels follow fixed score bands."""
    assert score_label(score) == label
