from __future__ import annotations

import math
from typing import Any, Sequence

from app.core.config.scoring import get_scoring_value
from app.schemas.resume_generation import ProposedChange, ScoreBreakdown, ScoreCeiling


def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 away from zero for positive values (2.5 -> 3, not banker's 2)."""
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def sanitize_score_value(value: Any, minimum: float, maximum: float) -> float:
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return minimum
    if not math.isfinite(numeric):
        return minimum
    return max(minimum, min(maximum, numeric))


def category_maximum(category: str) -> float:
    return float(get_scoring_value(f"categories.{category}", 0))


def sanitize_breakdown(breakdown: ScoreBreakdown) -> ScoreBreakdown:
    return ScoreBreakdown(
        keyword_relevance=sanitize_score_value(
            breakdown.keyword_relevance, 0, category_maximum("keyword_relevance")
        ),
        skills_quality=sanitize_score_value(
            breakdown.skills_quality, 0, category_maximum("skills_quality")
        ),
        experience_alignment=sanitize_score_value(
            breakdown.experience_alignment, 0, category_maximum("experience_alignment")
        ),
        format_parseability=sanitize_score_value(
            breakdown.format_parseability, 0, category_maximum("format_parseability")
        ),
    )


def compute_capped_score(
    current_score: float,
    delta: float,
    score_ceiling: ScoreCeiling | None = None,
) -> float:
    base = sanitize_score_value(current_score, 0, 100)
    increment = sanitize_score_value(delta, 0, 100)
    ceiling = sanitize_score_value(
        score_ceiling.maximum if score_ceiling is not None else 100, 0, 100
    )
    return round_half_up(min(ceiling, base + increment), 1)


def compute_possible_max_score(
    current_score: float,
    proposed_changes: Sequence[ProposedChange],
    score_ceiling: ScoreCeiling | None = None,
) -> float:
    total_delta = sum(
        sanitize_score_value(change.impact_points, 0, 100) for change in proposed_changes
    )
    return compute_capped_score(current_score, total_delta, score_ceiling)


def format_score_assessment(score: float) -> str:
    if score >= get_scoring_value("assessment.excellent", 85):
        return "Excellent match - very likely to pass ATS filters"
    if score >= get_scoring_value("assessment.good", 70):
        return "Good match - should pass most ATS systems"
    if score >= get_scoring_value("assessment.fair", 55):
        return "Fair match - optimization recommended"
    return "Weak match - significant gaps identified"
