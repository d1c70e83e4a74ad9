"""Edit-aware re-scoring for proposed resume changes.

Three pure functions back the resume generator review screen:

* ``calculate_edited_impact`` re-prices a single change after the user edits
  its text, crediting only the keywords that survived the edit.
* ``normalize_impact_points`` scales the per-change estimates returned by the
  LLM so that accepting every change cannot push the score past the achievable
  budget.
* ``calculate_projected_score`` sums the accepted (and possibly edited) changes
  on top of the base score and caps the result at the score ceiling.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Collection, Mapping, Sequence

from app.schemas.resume_generation import ProposedChange, ResumeAnalysisResult, ScoreCeiling
from app.scoring.score_utils import round_half_up

logger = logging.getLogger(__name__)

MAX_SCORE = 100


def _is_single_token(keyword: str) -> bool:
    return keyword.isalnum()


def keyword_retained(keyword: str, text: str) -> bool:
    """Return True when ``keyword`` still occurs in ``text`` (case-insensitive).

    Single alphanumeric tokens must stand on word boundaries, so ``"c"`` is not
    found in ``"cloud"``. Phrases and punctuation-bearing tokens (``"c++"``,
    ``"ci/cd"``, ``"99.9%"``) match as literal substrings, so ``"c++"`` is not
    found in ``"c+"``.
    """
    needle = keyword.strip().lower()
    if not needle:
        return False
    haystack = text.lower()
    if _is_single_token(needle):
        pattern = rf"(?<![^\W_]){re.escape(needle)}(?![^\W_])"
        return re.search(pattern, haystack) is not None
    return needle in haystack


def retained_keywords(change: ProposedChange, edited_text: str) -> list[str]:
    return [keyword for keyword in change.keywords_added if keyword_retained(keyword, edited_text)]


def calculate_edited_impact(change: ProposedChange, edited_text: str) -> float:
    """Impact points of ``change`` after the user rewrote it as ``edited_text``.

    A change without keywords keeps its full value since there is nothing to
    validate the edit against.
    """
    if not change.keywords_added:
        return change.impact_points

    if change.impact_per_keyword is not None:
        per_keyword = change.impact_per_keyword
    else:
        per_keyword = change.impact_points / len(change.keywords_added)

    retained_count = len(retained_keywords(change, edited_text))
    return round_half_up(retained_count * per_keyword)


def _floor_cents(value: float) -> float:
    return math.floor(value * 100) / 100


def _clip_rounding_overshoot(impacts: list[float], budget: float) -> list[float]:
    """Floor the values whose half-up rounding overshoots until the rounded sum fits."""
    clipped = list(impacts)
    while sum(round_half_up(value) for value in clipped) > budget:
        gains = [round_half_up(value) - value for value in clipped]
        index = max(range(len(clipped)), key=lambda i: gains[i])
        if gains[index] <= 0:
            break
        clipped[index] = float(math.floor(clipped[index]))
    return clipped


def normalize_impact_points(result: ResumeAnalysisResult) -> ResumeAnalysisResult:
    """Return a copy of ``result`` whose impacts fit within the achievable budget.

    budget = min(ceiling, optimized total) - current total, floored at zero.
    When the raw impacts overshoot the budget every change is scaled by the
    same factor; values are floored to cents, the floor remainder goes to the
    change with the largest raw impact, and a last pass keeps the sum of the
    half-up rounded impacts within the budget.
    """
    changes = result.proposed_changes
    raw_sum = sum(change.impact_points for change in changes)
    ceiling = result.score_ceiling.maximum if result.score_ceiling is not None else MAX_SCORE
    cap = min(MAX_SCORE, ceiling)
    budget = max(0.0, min(cap, result.optimized_score.total) - result.current_score.total)

    if budget == 0 and raw_sum > 0:
        logger.warning(
            "resume_generator.budget_exhausted current=%s ceiling=%s optimized=%s changes=%s",
            result.current_score.total,
            ceiling,
            result.optimized_score.total,
            len(changes),
        )

    if raw_sum <= budget or raw_sum == 0:
        return result.model_copy(deep=True)

    scale_factor = budget / raw_sum
    scaled_impacts = [_floor_cents(change.impact_points * scale_factor) for change in changes]

    remainder = round_half_up(budget - sum(scaled_impacts), 2)
    if remainder > 0 and changes:
        largest = max(range(len(changes)), key=lambda i: changes[i].impact_points)
        scaled_impacts[largest] = round_half_up(scaled_impacts[largest] + remainder, 2)

    scaled_impacts = _clip_rounding_overshoot(scaled_impacts, budget)

    scaled_changes = []
    for change, impact in zip(changes, scaled_impacts):
        update: dict[str, float] = {"impact_points": impact}
        if change.impact_per_keyword is not None:
            per_keyword = _floor_cents(change.impact_per_keyword * scale_factor)
            if change.keywords_added:
                # Full retention must never re-price above the clipped impact.
                per_keyword = min(per_keyword, _floor_cents(impact / len(change.keywords_added)))
            update["impact_per_keyword"] = per_keyword
        scaled_changes.append(change.model_copy(update=update, deep=True))

    logger.info(
        "resume_generator.impacts_normalized raw_sum=%s budget=%s scale=%.4f",
        raw_sum,
        budget,
        scale_factor,
    )
    return result.model_copy(update={"proposed_changes": scaled_changes}, deep=True)


def calculate_projected_score(
    base_score: float,
    changes: Sequence[ProposedChange],
    accepted_indices: Collection[int],
    edited_texts: Mapping[int, str],
    score_ceiling: ScoreCeiling | None = None,
) -> float:
    score = base_score
    for index, change in enumerate(changes):
        if index not in accepted_indices:
            continue
        if index in edited_texts:
            score += calculate_edited_impact(change, edited_texts[index])
        else:
            score += change.impact_points

    cap = score_ceiling.maximum if score_ceiling is not None else MAX_SCORE
    return min(cap, round_half_up(score))
