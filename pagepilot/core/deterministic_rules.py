"""
Deterministic stand-ins for the oracle-backed stages.

Used ONLY when a stage's oracle call fails outright (unreachable,
timeout, HTTP error). A reply that arrives but does not parse is still
"no result" for that stage; these rules are not consulted for it.

The rules are deliberately narrow: they return None unless the phrasing
is unambiguous, and routing continues to the next stage.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from pagepilot.core.actions import FieldEntry, ListMutation, ListOp
from pagepilot.core.field_normalizer import FORM_FIELDS

# ═══════════════════════════════════════════════════════════════════════════
# SUBMISSION
# ═══════════════════════════════════════════════════════════════════════════

_SUBMIT_RE = re.compile(
    r"^(?:(?:please|ok(?:ay)?|now|go\s+ahead\s+and|just)\s+)*"
    r"(?:submit|send)"
    r"(?:\s+(?:it|now|the\s+(?:form|message|contact\s+form)|my\s+(?:details|message|contact\s+information)))*"
    r"(?:\s+(?:now|please))?[.!]*$",
    re.IGNORECASE,
)


def looks_like_submit(text: str) -> bool:
    return bool(_SUBMIT_RE.match((text or "").strip()))


# ═══════════════════════════════════════════════════════════════════════════
# FORM FIELDS
# ═══════════════════════════════════════════════════════════════════════════
# "fill name as John Smith email as john@example.com"
# "set email to a@b.co and message with hello there"
# "my name is Jane"
# but not "send a message to support"

_FIELD_ALT = "|".join(FORM_FIELDS)
_FIELD_MARKER_RE = re.compile(
    rf"\b(?P<my>my\s+)?(?P<field>{_FIELD_ALT})(?:\s+address)?\s*(?:(?P<conn>is|as|with|to)\b|(?P<colon>:))\s*",
    re.IGNORECASE,
)
_FILL_VERB_RE = re.compile(r"^(?:please\s+)?(?:fill(?:\s+in|\s+out)?|set|enter|put|type|change)\s+", re.IGNORECASE)
_TRAILING_JOINER_RE = re.compile(r"(?:[\s,;]+(?:and|then|also|plus))+[\s,.;]*$|[\s,;.]+$", re.IGNORECASE)
_SEND_NOUN_RE = re.compile(r"\b(?:send|write|compose|drop)\s+(?:me\s+|us\s+|them\s+)?(?:an?|the|another)\s+$", re.IGNORECASE)


def normalize_spoken_email(value: str) -> str:
    """ "john at example dot com" -> "john@example.com" """
    v = (value or "").strip()
    v = re.sub(r"\s+at\s+", "@", v, flags=re.IGNORECASE)
    v = re.sub(r"\s+dot\s+", ".", v, flags=re.IGNORECASE)
    if "@" in v:
        v = v.replace(" ", "")
    return v


def _accept_marker(text: str, m: "re.Match", has_verb: bool) -> bool:
    if _SEND_NOUN_RE.search(text[:m.start()]):
        return False
    if has_verb or m.group("my") or m.group("colon"):
        return True
    return m.group("conn").lower() == "is"


def field_positions(text: str) -> Dict[str, int]:
    """Index where each field is first named with a connector ("email as ...")."""
    positions: Dict[str, int] = {}
    for m in _FIELD_MARKER_RE.finditer(text or ""):
        positions.setdefault(m.group("field").lower(), m.start("field"))
    return positions


def extract_field_mentions(text: str) -> List[FieldEntry]:
    """
    Pull "<field> as|with|to|is <value>" mentions out of an utterance.

    Values run until the next field marker. Order of appearance is kept;
    a field mentioned twice keeps its last value at its first position.

    Without a leading fill verb only "<field> is", "my <field> ..." and
    "<field>:" count as mentions, and "send a message to ..." never does.
    """
    t = (text or "").strip()
    has_verb = bool(_FILL_VERB_RE.match(t))
    t = _FILL_VERB_RE.sub("", t)
    markers = [m for m in _FIELD_MARKER_RE.finditer(t) if _accept_marker(t, m, has_verb)]
    if not markers:
        return []

    found: List[Tuple[str, str]] = []
    for i, m in enumerate(markers):
        end = markers[i + 1].start() if i + 1 < len(markers) else len(t)
        value = _TRAILING_JOINER_RE.sub("", t[m.end():end]).strip()
        if not value:
            continue
        name = m.group("field").lower()
        if name == "email":
            value = normalize_spoken_email(value)
        found.append((name, value))

    ordered: List[str] = []
    values = {}
    for name, value in found:
        if name not in values:
            ordered.append(name)
        values[name] = value
    return [FieldEntry(name, values[name]) for name in ordered]


# ═══════════════════════════════════════════════════════════════════════════
# LIST MUTATIONS
# ═══════════════════════════════════════════════════════════════════════════

_CLEAR_RE = re.compile(
    r"\b(?:clear|reset|remove)\s+(?:all\s+|the\s+)?(?:filters?|search|sorting)\b|\bshow\s+(?:me\s+)?all\s+products\b",
    re.IGNORECASE,
)
_SORT_RE = re.compile(r"\bsort\b.*\bprice\b|\bprice\b.*\b(?:low|high|cheap|expensive)", re.IGNORECASE)
_LOW_TO_HIGH_RE = re.compile(r"\blow(?:est)?\s+to\s+high|\bcheap(?:est)?\s+first|\bascending\b", re.IGNORECASE)
_HIGH_TO_LOW_RE = re.compile(r"\bhigh(?:est)?\s+to\s+low|\bexpensive\s+first|\bdescending\b", re.IGNORECASE)
_SEARCH_RE = re.compile(r"\b(?:search|look)\s+(?:for\s+)?(?P<q>.+?)(?:\s+products?)?[.!?]*$", re.IGNORECASE)
_FILTER_RE = re.compile(
    r"\bfilter\s+(?:products\s+)?by\s+(?:the\s+)?(?P<v>.+?)(?:\s+category)?[.!?]*$",
    re.IGNORECASE,
)


def parse_list_mutation(text: str) -> Optional[ListMutation]:
    t = (text or "").strip()
    if not t:
        return None

    if _CLEAR_RE.search(t):
        return ListMutation(ListOp.CLEAR)

    if _SORT_RE.search(t):
        if _HIGH_TO_LOW_RE.search(t):
            return ListMutation(ListOp.SORT, "price", "high-to-low")
        if _LOW_TO_HIGH_RE.search(t):
            return ListMutation(ListOp.SORT, "price", "low-to-high")
        return None

    m = _FILTER_RE.search(t)
    if m:
        value = m.group("v").strip()
        if value:
            return ListMutation(ListOp.FILTER, "category", value)

    m = _SEARCH_RE.search(t)
    if m:
        query = m.group("q").strip()
        if query:
            return ListMutation(ListOp.SEARCH, "text", query)

    return None
