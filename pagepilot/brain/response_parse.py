"""
Defensive parsing of oracle replies.

Oracle output is untrusted free text. These helpers strip incidental
formatting and either return a usable value or None; they never raise.
"""
import json
import re
from typing import Any, Dict, Optional

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?|\n?\s*```")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def strip_fences(text: Optional[str]) -> str:
    """Remove markdown code fences and template-doubled braces."""
    cleaned = (text or "").strip()
    cleaned = _FENCE_RE.sub("", cleaned).strip()
    # Doubled braces from template escaping: {{"a":1}} -> {"a":1}
    if cleaned.startswith("{{") and cleaned.endswith("}}"):
        cleaned = cleaned[1:-1]
    return cleaned.strip()


def parse_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Parse a JSON object out of an oracle reply.

    Tries the fence-stripped text first, then the outermost {...} span
    (models sometimes wrap the payload in a sentence). Anything that is
    not a JSON object yields None.
    """
    cleaned = strip_fences(text)
    if not cleaned:
        return None

    candidates = [cleaned]
    m = _OBJECT_RE.search(cleaned)
    if m and m.group(0) != cleaned:
        candidates.append(m.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def is_none_sentinel(text: Optional[str]) -> bool:
    """True when the reply is the literal NONE answer (case-insensitive, punctuation ignored)."""
    return strip_fences(text).strip(" .!\"'").lower() == "none"


def is_missing(value: Any) -> bool:
    """Per-field 'not mentioned' marker: null, empty, or the string "null"/"none"."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in ("", "null", "none", "not mentioned", "n/a")
    return False
