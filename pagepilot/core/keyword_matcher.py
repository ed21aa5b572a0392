"""pagepilot.core.keyword_matcher

Deterministic last-resort destination matcher.

Score per destination = number of its keywords found as substrings of the
lower-cased utterance, plus 3 when the display name appears verbatim.
The best score wins; ties go to the earlier destination. A best score of
0 means no match.

Pure function, no I/O. Used when the oracle is unavailable or inconclusive.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from pagepilot.core.destinations import Destination

NAME_BONUS = 3


def score_destination(text_lower: str, destination: Destination) -> int:
    """Score a single destination against an already lower-cased utterance."""
    score = sum(1 for kw in destination.keywords if kw and kw.lower() in text_lower)
    name = (destination.display_name or "").lower()
    if name and name in text_lower:
        score += NAME_BONUS
    return score


def score_all(utterance: str, destinations: Sequence[Destination]) -> List[Tuple[Destination, int]]:
    """Return (destination, score) for every destination, in input order."""
    tl = (utterance or "").lower()
    return [(dest, score_destination(tl, dest)) for dest in destinations]


def match(utterance: str, destinations: Sequence[Destination]) -> Optional[Destination]:
    """Return the best-scoring destination, or None when nothing scores above 0."""
    best: Optional[Destination] = None
    best_score = 0
    for dest, score in score_all(utterance, destinations):
        # strict '>' keeps the first destination on ties
        if score > best_score:
            best, best_score = dest, score
    return best
