from .score_utils import (
    compute_capped_score,
    compute_possible_max_score,
    format_score_assessment,
    round_half_up,
    sanitize_breakdown,
    sanitize_score_value,
)
from .ats_keywords import ExtractedKeywords, MatchResult, extract_keywords, match_keywords
from .ats_scorer import ATSScore, ScoringInput, calculate_ats_score, resume_data_to_text
from .resume_scoring import (
    calculate_edited_impact,
    calculate_projected_score,
    keyword_retained,
    normalize_impact_points,
)

__all__ = [
    "compute_capped_score",
    "compute_possible_max_score",
    "format_score_assessment",
    "round_half_up",
    "sanitize_breakdown",
    "sanitize_score_value",
    "ExtractedKeywords",
    "MatchResult",
    "extract_keywords",
    "match_keywords",
    "ATSScore",
    "ScoringInput",
    "calculate_ats_score",
    "resume_data_to_text",
    "calculate_edited_impact",
    "calculate_projected_score",
    "keyword_retained",
    "normalize_impact_points",
]
