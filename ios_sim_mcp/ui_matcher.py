"""Match natural-language queries against accessibility snapshots."""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .accessibility import AccessibilityElement, Frame
from .config import (
    CONFIDENCE_FLOOR,
    DEFAULT_FIND_LIMIT,
    DEFAULT_SUMMARY_LIMIT,
    MAX_RESULT_LIMIT,
)
from .error_handler import NoConfidentMatchError
from .validation import LimitValidator

logger = logging.getLogger(__name__)

INTERACTIVE_ROLES = (
    "button",
    "text field",
    "secure text field",
    "search field",
    "switch",
    "slider",
    "link",
    "cell",
    "tab bar button",
    "checkbox",
    "radio button",
)

# Probe order for an element's display label
LABEL_FIELDS = ("accessibility_label", "title", "value", "role_description", "kind")

# Fields scored independently against a query (label is added in front)
SCORED_FIELDS = ("accessibility_label", "title", "value")


def normalise(text: Any) -> str:
    """Case-fold and collapse whitespace runs to single spaces."""
    if text is None:
        return ""
    return " ".join(str(text).split()).casefold()


def score_match(query: Any, candidate: Any) -> int:
    """Score how well `candidate` matches `query`, 0..100.

    100 exact, 90 prefix, 80 substring, 60 candidate inside query, else up to
    50 for the share of query tokens present in the candidate.
    """
    q = normalise(query)
    c = normalise(candidate)
    if not q or not c:
        return 0
    if q == c:
        return 100
    if c.startswith(q):
        return 90
    if q in c:
        return 80
    if c in q:
        return 60

    query_tokens = set(q.split(" "))
    candidate_tokens = set(c.split(" "))
    overlap = len(query_tokens & candidate_tokens)
    # round half up; builtin round() would send 12.5 to 12
    return int(math.floor(overlap / max(1, len(query_tokens)) * 50 + 0.5))


def first_present(element: Any, fields: Sequence[str]) -> str:
    """Return the first non-blank string among `fields`, or ''."""
    for name in fields:
        value = getattr(element, name, None)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def element_label(element: AccessibilityElement) -> str:
    return first_present(element, LABEL_FIELDS)


def element_kind(element: AccessibilityElement) -> str:
    return element.kind or element.role_description or "unknown"


def centre_of_frame(frame: Optional[Frame]) -> Optional[Dict[str, float]]:
    """Geometric centre of a frame, or None when it is unusable."""
    if frame is None:
        return None
    return {"x": frame.x + frame.width / 2, "y": frame.y + frame.height / 2}


def is_interactive(
    element: AccessibilityElement, roles: Sequence[str] = INTERACTIVE_ROLES
) -> bool:
    """Enabled, labelled, and of a role an agent can act on."""
    if not element.enabled:
        return False
    if not element_label(element):
        return False

    kind = normalise(element.kind)
    role = normalise(element.role_description)
    for entry in roles:
        spaced = normalise(entry)
        joined = spaced.replace(" ", "")
        for haystack in (role, kind):
            if haystack and (spaced in haystack or joined in haystack):
                return True
    return False


@dataclass(frozen=True)
class MatchCandidate:
    """A scored pairing of a query with one element."""

    score: int
    label: str
    kind: str
    frame: Optional[Dict[str, Any]]
    centre: Optional[Dict[str, float]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "label": self.label,
            "type": self.kind,
            "frame": self.frame,
            "centre": self.centre,
        }


class ElementMatcher:
    """Stateless query-to-element matcher.

    The role vocabulary and confidence floor are constructor parameters so
    they can be tuned without touching the matching flow.
    """

    def __init__(
        self,
        interactive_roles: Sequence[str] = INTERACTIVE_ROLES,
        confidence_floor: int = CONFIDENCE_FLOOR,
    ) -> None:
        self.interactive_roles = tuple(interactive_roles)
        self.confidence_floor = confidence_floor

    def is_interactive(self, element: AccessibilityElement) -> bool:
        return is_interactive(element, self.interactive_roles)

    def score_element(self, query: str, element: AccessibilityElement) -> int:
        candidates = [element_label(element)]
        candidates.extend(getattr(element, name) for name in SCORED_FIELDS)
        return max(score_match(query, candidate) for candidate in candidates)

    def _candidate(self, score: int, element: AccessibilityElement) -> MatchCandidate:
        raw_frame = element.raw_frame if isinstance(element.raw_frame, dict) else None
        return MatchCandidate(
            score=score,
            label=element_label(element),
            kind=element_kind(element),
            frame=raw_frame,
            centre=centre_of_frame(element.frame),
        )

    def rank(
        self, query: str, elements: Iterable[AccessibilityElement]
    ) -> List[MatchCandidate]:
        """Every interactive element scoring above zero, best first."""
        matches = []
        for element in elements:
            if not self.is_interactive(element):
                continue
            score = self.score_element(query, element)
            if score <= 0:
                continue
            matches.append(self._candidate(score, element))
        matches.sort(key=lambda match: match.score, reverse=True)
        return matches

    def find_all(
        self,
        query: str,
        elements: Iterable[AccessibilityElement],
        limit: Any = DEFAULT_FIND_LIMIT,
    ) -> List[MatchCandidate]:
        """Ranked matches truncated to ``1..200`` entries."""
        lim = LimitValidator.clamp_limit(limit, DEFAULT_FIND_LIMIT, MAX_RESULT_LIMIT)
        return self.rank(query, elements)[:lim]

    def find_best(
        self, query: str, elements: Iterable[AccessibilityElement]
    ) -> MatchCandidate:
        """The highest-scoring tappable element, or NoConfidentMatchError.

        Elements without a usable frame are skipped since they cannot be
        tapped. Ties keep the earliest element in snapshot order.
        """
        best: Optional[MatchCandidate] = None
        best_score = 0

        for element in elements:
            if not self.is_interactive(element):
                continue
            score = self.score_element(query, element)
            if score <= best_score:
                continue
            candidate = self._candidate(score, element)
            if candidate.centre is None:
                continue
            best, best_score = candidate, score

        if best is None or best_score < self.confidence_floor:
            raise NoConfidentMatchError(
                "No sufficiently confident UI match for query. Try ui_summary or ui_tree.",
                query=query,
                best_score=best_score,
            )

        logger.debug(f"Best match for {query!r}: {best.label!r} ({best.score})")
        return best

    def summarise(
        self, elements: Sequence[AccessibilityElement], limit: Any = DEFAULT_SUMMARY_LIMIT
    ) -> Dict[str, Any]:
        """Counts plus the first few interactive elements, for a quick look."""
        lim = LimitValidator.clamp_limit(limit, DEFAULT_SUMMARY_LIMIT, MAX_RESULT_LIMIT)
        interactive = [element for element in elements if self.is_interactive(element)]

        counts_by_type: Dict[str, int] = {}
        for element in interactive:
            kind = element_kind(element)
            counts_by_type[kind] = counts_by_type.get(kind, 0) + 1

        top = [
            {"type": element_kind(element), "label": element_label(element)}
            for element in interactive[:lim]
        ]

        summary = [
            f"UI elements: {len(elements)}",
            f"Interactive: {len(interactive)}",
        ]
        summary.extend(f"- {item['type']}: {item['label']}" for item in top)

        return {
            "total": len(elements),
            "interactive_count": len(interactive),
            "counts_by_type": counts_by_type,
            "top": top,
            "summary": summary,
        }
