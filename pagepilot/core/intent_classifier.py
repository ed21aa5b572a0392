"""pagepilot.core.intent_classifier

Cascading intent classifier.

One utterance in, exactly one Action out. The cascade is an ordered list
of stage functions sharing the signature ``(ClassifierContext) -> Action | None``;
the first stage returning an Action wins:

1. submission      - closed SUBMIT/NONE question to the oracle
2. form fields     - JSON extraction of name/email/subject/message + submit flag
3. list mutation   - JSON classification into filter/sort/search/clear
4. navigation      - pick one destination id or NONE
5. keyword fallback - deterministic KeywordMatcher

Oracle replies are untrusted. A reply that does not parse or validate is
"no result" for that stage. An oracle that cannot be reached makes the
stage consult its deterministic rule instead. Nothing raises out of
classify(); every path ends in Navigate, ListMutation, FormMutation or NoMatch.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from pagepilot.brain import prompts
from pagepilot.brain.oracle import SupportsAsk
from pagepilot.brain.response_parse import is_missing, is_none_sentinel, parse_json_object, strip_fences
from pagepilot.core import deterministic_rules, keyword_matcher
from pagepilot.core.actions import (
    Action,
    FieldEntry,
    ListMutation,
    ListOp,
    Navigate,
    NoMatch,
    fill_action,
    submit_action,
)
from pagepilot.core.config import Config
from pagepilot.core.destinations import Destination
from pagepilot.core.errors import OracleError
from pagepilot.core.field_normalizer import FORM_FIELDS, clean_field_value, normalize_subject
from pagepilot.core.logger import get_logger


@dataclass(frozen=True)
class ClassifierContext:
    """Everything a stage may look at for one utterance."""
    utterance: str
    destinations: Tuple[Destination, ...]
    current_destination_id: Optional[str]
    oracle: SupportsAsk
    form_fields: Tuple[str, ...] = field(default=FORM_FIELDS)


Stage = Callable[[ClassifierContext], Optional[Action]]


class _OracleUnavailable(Exception):
    """Internal: the oracle call itself failed (as opposed to answering badly)."""


def _ask(ctx: ClassifierContext, stage: str, built: Tuple[str, str], temperature: float, max_tokens: int) -> str:
    system, prompt = built
    try:
        return ctx.oracle.ask(system, prompt, temperature=temperature, max_tokens=max_tokens)
    except OracleError as e:
        get_logger().debug(f"[CASCADE] {stage}: oracle unavailable ({e})")
        raise _OracleUnavailable(str(e)) from e


# ============================================================================
# STAGE 1: SUBMISSION
# ============================================================================

def submission_stage(ctx: ClassifierContext) -> Optional[Action]:
    try:
        reply = _ask(ctx, "submit", prompts.submission_prompt(ctx.utterance),
                     Config.SUBMIT_TEMPERATURE, Config.SUBMIT_MAX_TOKENS)
    except _OracleUnavailable:
        return submit_action() if deterministic_rules.looks_like_submit(ctx.utterance) else None

    # Only the two literal tokens are accepted; anything else means "no"
    token = strip_fences(reply).strip(" .!\"'").upper()
    if token == prompts.SUBMIT_TOKEN:
        return submit_action()
    return None


# ============================================================================
# STAGE 2: MULTI-FIELD EXTRACTION
# ============================================================================

_CONNECTOR_EDGE_RE = re.compile(r"\s+(?:as|with|to|is)$", re.IGNORECASE)


def _clean_value(name: str, value) -> Optional[str]:
    if is_missing(value) or isinstance(value, (dict, list, bool)):
        return None
    text = _CONNECTOR_EDGE_RE.sub("", clean_field_value(str(value))).strip()
    if not text:
        return None
    if name == "subject":
        return normalize_subject(text)
    if name == "email":
        return deterministic_rules.normalize_spoken_email(text)
    return text


def _order_by_utterance(entries: List[FieldEntry], utterance: str, schema: Sequence[str]) -> List[FieldEntry]:
    """
    Order entries as the user said them.

    A field named with a connector ("email as ...") ranks by where it is
    named, otherwise by where its value appears. Entries found neither way
    keep schema order after the rest.
    """
    tl = utterance.lower()
    n = len(tl)
    named = deterministic_rules.field_positions(utterance)

    def position(entry: FieldEntry) -> Tuple[int, int]:
        idx = named.get(entry.field, -1)
        if idx < 0:
            idx = tl.find(entry.value.lower())
        if idx < 0:
            idx = tl.find(entry.field)
        return (idx if idx >= 0 else n, schema.index(entry.field))

    return sorted(entries, key=position)


def form_fields_stage(ctx: ClassifierContext) -> Optional[Action]:
    logger = get_logger()
    try:
        reply = _ask(ctx, "form", prompts.form_extraction_prompt(ctx.utterance, ctx.form_fields),
                     Config.FORM_TEMPERATURE, Config.FORM_MAX_TOKENS)
    except _OracleUnavailable:
        entries = []
        for mention in deterministic_rules.extract_field_mentions(ctx.utterance):
            value = _clean_value(mention.field, mention.value) if mention.field in ctx.form_fields else None
            if value:
                entries.append(FieldEntry(mention.field, value))
        return fill_action(entries)

    if is_none_sentinel(reply):
        return None

    data = parse_json_object(reply)
    if data is None:
        logger.debug(f"[CASCADE] form: unparseable reply {reply[:80]!r}")
        return None

    lowered = {str(k).lower(): v for k, v in data.items()}

    submit = lowered.get("submit")
    if submit is True or (isinstance(submit, str) and submit.strip().lower() == "true"):
        return submit_action()

    entries = []
    for name in ctx.form_fields:
        value = _clean_value(name, lowered.get(name))
        if value:
            entries.append(FieldEntry(name, value))

    return fill_action(_order_by_utterance(entries, ctx.utterance, ctx.form_fields))


# ============================================================================
# STAGE 3: LIST MUTATION
# ============================================================================

_SORT_VALUES = {
    "low-to-high": "low-to-high",
    "low to high": "low-to-high",
    "asc": "low-to-high",
    "ascending": "low-to-high",
    "high-to-low": "high-to-low",
    "high to low": "high-to-low",
    "desc": "high-to-low",
    "descending": "high-to-low",
}


def _validate_list_payload(data: dict) -> Optional[ListMutation]:
    try:
        op = ListOp(str(data.get("action", "")).strip().lower())
    except ValueError:
        return None

    if op == ListOp.CLEAR:
        return ListMutation(ListOp.CLEAR)

    value = data.get("value")
    if is_missing(value) or isinstance(value, (dict, list, bool)):
        return None
    value = str(value).strip()

    default_field = {ListOp.FILTER: "category", ListOp.SORT: "price", ListOp.SEARCH: "text"}[op]
    field_name = data.get("type")
    field_name = default_field if is_missing(field_name) else str(field_name).strip().lower()

    if op == ListOp.SORT:
        value = _SORT_VALUES.get(value.lower(), value)
    return ListMutation(op, field_name, value)


def list_mutation_stage(ctx: ClassifierContext) -> Optional[Action]:
    try:
        reply = _ask(ctx, "list", prompts.list_mutation_prompt(ctx.utterance),
                     Config.LIST_TEMPERATURE, Config.LIST_MAX_TOKENS)
    except _OracleUnavailable:
        return deterministic_rules.parse_list_mutation(ctx.utterance)

    if is_none_sentinel(reply):
        return None
    data = parse_json_object(reply)
    if data is None:
        get_logger().debug(f"[CASCADE] list: unparseable reply {reply[:80]!r}")
        return None
    return _validate_list_payload(data)


# ============================================================================
# STAGE 4: NAVIGATION
# ============================================================================

_NONE_WORD_RE = re.compile(r"\bnone\b", re.IGNORECASE)


def navigation_stage(ctx: ClassifierContext) -> Optional[Action]:
    if not ctx.destinations:
        return None
    try:
        reply = _ask(ctx, "navigate", prompts.navigation_prompt(ctx.utterance, ctx.destinations),
                     Config.NAV_TEMPERATURE, Config.NAV_MAX_TOKENS)
    except _OracleUnavailable:
        return None

    raw = strip_fences(reply).strip()
    for dest in ctx.destinations:
        if dest.id == raw:
            return Navigate(dest)
    for dest in ctx.destinations:
        if dest.id in raw:
            return Navigate(dest)
    if _NONE_WORD_RE.search(raw):
        return NoMatch(ctx.utterance)
    return None


# ============================================================================
# STAGE 5: KEYWORD FALLBACK
# ============================================================================

def keyword_stage(ctx: ClassifierContext) -> Optional[Action]:
    dest = keyword_matcher.match(ctx.utterance, ctx.destinations)
    if dest is not None:
        get_logger().debug(f"[KEYWORD] '{ctx.utterance}' -> {dest.id}")
        return Navigate(dest)
    return NoMatch(ctx.utterance)


DEFAULT_STAGES: Tuple[Tuple[str, Stage], ...] = (
    ("submit", submission_stage),
    ("form", form_fields_stage),
    ("list", list_mutation_stage),
    ("navigate", navigation_stage),
    ("keyword", keyword_stage),
)


class IntentClassifier:
    """State-free cascade runner."""

    def __init__(self, oracle: SupportsAsk, stages: Sequence[Tuple[str, Stage]] = DEFAULT_STAGES):
        self.logger = get_logger()
        self.oracle = oracle
        self.stages = tuple(stages)

    def classify(
        self,
        utterance: str,
        destinations: Sequence[Destination],
        current_destination_id: Optional[str] = None,
    ) -> Action:
        """Classify one utterance. Never raises."""
        return self.classify_traced(utterance, destinations, current_destination_id)[0]

    def classify_traced(
        self,
        utterance: str,
        destinations: Sequence[Destination],
        current_destination_id: Optional[str] = None,
    ) -> Tuple[Action, str]:
        """Classify and also report which stage produced the action."""
        text = (utterance or "").strip()
        if not text:
            return NoMatch(""), "empty"

        ctx = ClassifierContext(
            utterance=text,
            destinations=tuple(destinations or ()),
            current_destination_id=current_destination_id,
            oracle=self.oracle,
        )

        start = time.time()
        for name, stage in self.stages:
            try:
                action = stage(ctx)
            except Exception as e:
                # A broken stage is a stage with no result
                self.logger.warning(f"[CASCADE] stage '{name}' failed: {e}")
                continue
            if action is not None:
                elapsed_ms = int((time.time() - start) * 1000)
                self.logger.info(f"[CASCADE] '{text}' -> {type(action).__name__} via {name} ({elapsed_ms}ms)")
                return action, name

        return NoMatch(text), "exhausted"
