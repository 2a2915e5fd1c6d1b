"""Deterministic lead-list hygiene checks.

Runs over the full lead list (not the model sample) and never touches
the campaign score. The summary is fed into the prompt and returned to
the caller in the response metadata.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Sequence

from pydantic import EmailStr, TypeAdapter, ValidationError

from src.models.campaign import Lead, LeadHygieneSummary

logger = logging.getLogger(__name__)

_EMAIL_ADAPTER: TypeAdapter[str] = TypeAdapter(EmailStr)

TOP_N = 5

DISPOSABLE_DOMAINS: frozenset[str] = frozenset({
    "tempmail.com", "temp-mail.org", "guerrillamail.com", "guerrillamail.org",
    "mailinator.com", "throwaway.email", "10minutemail.com", "fakeinbox.com",
    "trashmail.com", "tempail.com", "tempmailaddress.com", "tmpmail.org",
    "getnada.com", "mohmal.com", "dispostable.com", "mailnesia.com",
    "maildrop.cc", "yopmail.com", "sharklasers.com", "spam4.me",
    "grr.la", "guerrillamailblock.com", "pokemail.net", "getairmail.com",
    "discard.email", "spamgourmet.com", "mytrashmail.com", "mailcatch.com",
    "trashmail.net", "mailforspam.com", "spambox.us", "tempr.email",
    "fakemail.net", "throwawaymail.com", "mailsac.com", "burnermail.io",
    "tempinbox.com", "emailondeck.com", "mintemail.com", "tempmailo.com",
})

# Shared-inbox local parts
ROLE_PREFIXES: frozenset[str] = frozenset({
    "info", "contact", "hello", "support", "sales", "admin", "help",
    "office", "team", "service", "enquiry", "enquiries", "marketing",
    "noreply", "no-reply", "donotreply", "webmaster", "postmaster",
    "hostmaster", "abuse", "spam", "mail", "email", "general",
    "reception", "billing", "accounts", "orders", "jobs", "careers",
    "hr", "press", "media", "feedback", "customerservice",
})

FREE_PROVIDERS: frozenset[str] = frozenset({
    "gmail.com", "yahoo.com", "hotmail.com", "outlook.com", "aol.com",
    "icloud.com", "me.com", "mac.com", "live.com", "msn.com",
    "protonmail.com", "proton.me", "zoho.com", "mail.com", "gmx.com",
    "yandex.com", "fastmail.com", "tutanota.com", "hushmail.com",
})


def normalize_email(email: str) -> str | None:
    """Validate an address with pydantic's ``EmailStr``.

    Returns:
        The normalized address (domain lowercased), or None when the
        address is not syntactically valid.
    """
    try:
        return _EMAIL_ADAPTER.validate_python(email.strip())
    except ValidationError:
        return None


def is_valid_email(email: str) -> bool:
    return normalize_email(email) is not None


def _split(email: str) -> tuple[str, str]:
    local, _, domain = email.strip().lower().rpartition("@")
    return local, domain


def is_disposable(email: str) -> bool:
    return _split(email)[1] in DISPOSABLE_DOMAINS


def is_role_based(email: str) -> bool:
    return _split(email)[0] in ROLE_PREFIXES


def is_free_provider(email: str) -> bool:
    return _split(email)[1] in FREE_PROVIDERS


def count_duplicates(emails: Iterable[str]) -> int:
    """Count emails seen again after their first occurrence.

    Comparison is case-insensitive and ignores surrounding whitespace.
    """
    seen: set[str] = set()
    duplicates = 0
    for email in emails:
        key = email.strip().lower()
        if key in seen:
            duplicates += 1
        else:
            seen.add(key)
    return duplicates


def top_values(values: Iterable[str | None], limit: int = TOP_N) -> list[str]:
    """Most frequent non-blank values, ties kept in first-seen order."""
    counts = Counter(v.strip() for v in values if v and v.strip())
    return [value for value, _ in counts.most_common(limit)]


def summarize_leads(leads: Sequence[Lead]) -> LeadHygieneSummary:
    """Run every hygiene check over ``leads``.

    Args:
        leads: The full lead list as submitted.

    Returns:
        LeadHygieneSummary with per-check counts and the list profile.
    """
    invalid = disposable = role_based = free = missing = 0
    for lead in leads:
        address = normalize_email(lead.email)
        if address is None:
            invalid += 1
        else:
            disposable += is_disposable(address)
            role_based += is_role_based(address)
            free += is_free_provider(address)
        if not (lead.first_name and lead.company and lead.title):
            missing += 1

    summary = LeadHygieneSummary(
        total=len(leads),
        invalid_emails=invalid,
        disposable_emails=disposable,
        role_based_emails=role_based,
        free_provider_emails=free,
        duplicate_emails=count_duplicates(lead.email for lead in leads),
        missing_fields=missing,
        top_titles=top_values(lead.title for lead in leads),
        top_industries=top_values(lead.industry for lead in leads),
        top_company_sizes=top_values(lead.company_size for lead in leads),
    )
    logger.debug(
        "Lead hygiene computed",
        extra={
            "total": summary.total,
            "invalid": summary.invalid_emails,
            "duplicates": summary.duplicate_emails,
        },
    )
    return summary
