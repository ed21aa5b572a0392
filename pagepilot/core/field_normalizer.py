"""pagepilot.core.field_normalizer

Maps loosely phrased form values onto the form's closed vocabularies.

Subject resolution order (first hit wins):
1. exact match of the trimmed, lower-cased text in SUBJECT_MAP
2. first SUBJECT_MAP key contained anywhere in the text (table order)
3. trouble/negation phrase rules -> "support"
4. any other non-empty text -> "general" (catch-all)

Empty text returns None so callers can tell "no subject given" apart
from "subject given but unrecognized".
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Tuple

from pagepilot.core.logger import get_logger

FORM_FIELDS: Tuple[str, ...] = ("name", "email", "subject", "message")

SUBJECT_GENERAL = "general"
SUBJECT_SUPPORT = "support"
SUBJECT_SALES = "sales"
SUBJECT_FEEDBACK = "feedback"

CANONICAL_SUBJECTS: Tuple[str, ...] = (SUBJECT_GENERAL, SUBJECT_SUPPORT, SUBJECT_SALES, SUBJECT_FEEDBACK)

CATCH_ALL_SUBJECT = SUBJECT_GENERAL

# Insertion order matters: tier 2 returns the first key found in the text.
SUBJECT_MAP: Dict[str, str] = {
    # General inquiry
    "general": SUBJECT_GENERAL,
    "general inquiry": SUBJECT_GENERAL,
    "question": SUBJECT_GENERAL,
    "inquiry": SUBJECT_GENERAL,
    "information": SUBJECT_GENERAL,
    "info": SUBJECT_GENERAL,
    "ask": SUBJECT_GENERAL,
    "asking": SUBJECT_GENERAL,
    "about": SUBJECT_GENERAL,

    # Technical support
    "support": SUBJECT_SUPPORT,
    "technical support": SUBJECT_SUPPORT,
    "technical": SUBJECT_SUPPORT,
    "tech support": SUBJECT_SUPPORT,
    "help": SUBJECT_SUPPORT,
    "tech": SUBJECT_SUPPORT,
    "assistance": SUBJECT_SUPPORT,
    "issue": SUBJECT_SUPPORT,
    "problem": SUBJECT_SUPPORT,
    "bug": SUBJECT_SUPPORT,
    "error": SUBJECT_SUPPORT,
    "trouble": SUBJECT_SUPPORT,
    "fix": SUBJECT_SUPPORT,
    "broken": SUBJECT_SUPPORT,
    "not working": SUBJECT_SUPPORT,

    # Sales
    "sales": SUBJECT_SALES,
    "purchase": SUBJECT_SALES,
    "buy": SUBJECT_SALES,
    "pricing": SUBJECT_SALES,
    "cost": SUBJECT_SALES,
    "price": SUBJECT_SALES,
    "subscription": SUBJECT_SALES,
    "order": SUBJECT_SALES,
    "payment": SUBJECT_SALES,
    "license": SUBJECT_SALES,
    "upgrade": SUBJECT_SALES,

    # Feedback
    "feedback": SUBJECT_FEEDBACK,
    "suggestion": SUBJECT_FEEDBACK,
    "comment": SUBJECT_FEEDBACK,
    "feature request": SUBJECT_FEEDBACK,
    "idea": SUBJECT_FEEDBACK,
    "improvement": SUBJECT_FEEDBACK,
    "feature": SUBJECT_FEEDBACK,
    "recommend": SUBJECT_FEEDBACK,
    "opinion": SUBJECT_FEEDBACK,
    "review": SUBJECT_FEEDBACK,
}

# Trouble / negation phrasing that still means "I need support"
_SUPPORT_PHRASE_RULES: List[re.Pattern] = [
    re.compile(r"\bneed(?:s)?\s+help\b"),
    re.compile(r"\bhaving\s+trouble\b"),
    re.compile(r"\bnot\s+working\b"),
    re.compile(r"\bcan'?t\b"),
    re.compile(r"\bcannot\b"),
]

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_LEADING_CONNECTOR_RE = re.compile(r"^(?:is|as|with|to)\s+", re.IGNORECASE)


def normalize_subject(text: Optional[str]) -> Optional[str]:
    """Resolve free text to a canonical subject, or None for empty input."""
    logger = get_logger()
    normalized = (text or "").lower().strip()
    if not normalized:
        return None

    exact = SUBJECT_MAP.get(normalized)
    if exact is not None:
        logger.debug(f"[SUBJECT] exact '{normalized}' -> {exact}")
        return exact

    for key, value in SUBJECT_MAP.items():
        if key in normalized:
            logger.debug(f"[SUBJECT] contains '{key}' -> {value}")
            return value

    for rule in _SUPPORT_PHRASE_RULES:
        if rule.search(normalized):
            logger.debug(f"[SUBJECT] phrase rule {rule.pattern!r} -> {SUBJECT_SUPPORT}")
            return SUBJECT_SUPPORT

    logger.debug(f"[SUBJECT] unrecognized '{normalized}' -> {CATCH_ALL_SUBJECT}")
    return CATCH_ALL_SUBJECT


def is_form_field(name: Optional[str]) -> bool:
    return (name or "").strip().lower() in FORM_FIELDS


def validate_email(value: Optional[str]) -> bool:
    """Basic shape check: something@something.tld, no whitespace."""
    return bool(_EMAIL_RE.match((value or "").strip()))


def clean_field_value(value: Optional[str]) -> str:
    """Drop a leading connector word ("as John" -> "John")."""
    return _LEADING_CONNECTOR_RE.sub("", (value or "").strip()).strip()


def split_known_fields(names: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Partition field names into (known, unknown), preserving order."""
    known, unknown = [], []
    for name in names:
        (known if is_form_field(name) else unknown).append(name)
    return known, unknown
