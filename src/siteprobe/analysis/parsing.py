"""
Parsing of text-analysis collaborator output.

Model output is either a bare JSON object or a JSON object inside a fenced
code block. Anything else, or an object without a numeric score, is
``Unparsable`` and the caller takes its heuristic branch.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*\})\s*```")

SCORE_KEYS = ("score", "overallScore")
ISSUE_KEYS = ("missing_sections", "criticalIssues", "issues")
RECOMMENDATION_KEYS = ("recommendations", "priorityRecommendations")


@dataclass(frozen=True)
class AnalysisPayload:
    score: int
    summary: str
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    strengths: Tuple[str, ...] = ()
    quick_wins: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Parsed:
    value: AnalysisPayload


@dataclass(frozen=True)
class Unparsable:
    reason: str


ParseResult = Union[Parsed, Unparsable]


def _load_object(raw: str) -> Optional[Dict[str, Any]]:
    candidates = [raw.strip()]
    match = _FENCED_JSON.search(raw)
    if match:
        candidates.append(match.group(1))

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    return None


def _first(data: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _strings(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip())


def clamp_score(value: float) -> int:
    return int(max(0, min(100, round(value))))


def parse_analysis(raw: Optional[str]) -> ParseResult:
    """Parse model output into an ``AnalysisPayload``."""
    if raw is None or not raw.strip():
        return Unparsable("empty response")

    data = _load_object(raw)
    if data is None:
        return Unparsable("response is not a JSON object")

    score = _first(data, SCORE_KEYS)
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not math.isfinite(score):
        return Unparsable("response has no numeric score")

    summary = data.get("summary")
    return Parsed(
        AnalysisPayload(
            score=clamp_score(score),
            summary=summary.strip() if isinstance(summary, str) and summary.strip() else "Analysis completed",
            issues=_strings(_first(data, ISSUE_KEYS)),
            recommendations=_strings(_first(data, RECOMMENDATION_KEYS)),
            strengths=_strings(data.get("strengths")),
            quick_wins=_strings(data.get("quickWins") or data.get("quick_wins")),
        )
    )
