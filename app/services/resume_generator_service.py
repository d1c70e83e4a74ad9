from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from app.core.config import settings
from app.core.config.scoring import get_scoring_value
from app.schemas.resume_generation import (
    AnalyzeRequest,
    AnalyzeResponse,
    EditedImpactRequest,
    EditedImpactResponse,
    GenerationLog,
    GenerationLogRequest,
    ModifyChangeRequest,
    ModifyChangeResponse,
    ProjectedScoreRequest,
    ProjectedScoreResponse,
    ProposedChange,
    ResumeAnalysisResult,
    ResumeData,
    ScoreResumeRequest,
    ScoreResumeResponse,
    ScoreSnapshot,
)
from app.scoring.ats_keywords import calculate_actual_keyword_density
from app.scoring.ats_scorer import ATSScore, ScoringInput, calculate_ats_score, resume_data_to_text
from app.scoring.resume_scoring import (
    calculate_edited_impact,
    calculate_projected_score,
    normalize_impact_points,
    retained_keywords,
)
from app.scoring.score_utils import (
    category_maximum,
    compute_possible_max_score,
    format_score_assessment,
    round_half_up,
    sanitize_breakdown,
)
from app.services.resume_generator_prompt import (
    ANALYSIS_SYSTEM_PROMPT,
    MODIFY_CHANGE_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_modify_change_prompt,
)
from app.services.tools_llm import json_completion_required

logger = logging.getLogger(__name__)

TOOL_SLUG = "resume-generator"


class ResumeGeneratorError(RuntimeError):
    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_analysis_result(payload: dict[str, Any]) -> ResumeAnalysisResult:
    try:
        result = ResumeAnalysisResult.model_validate(payload)
    except ValidationError as exc:
        logger.warning("resume_generator.invalid_analysis errors=%s", exc.error_count())
        raise ResumeGeneratorError("AI response did not match the expected analysis format.") from exc
    return normalize_impact_points(result)


def _snapshot_from_ats(ats_score: ATSScore) -> ScoreSnapshot:
    return ScoreSnapshot(
        total=ats_score.total,
        breakdown=sanitize_breakdown(ats_score.breakdown),
        assessment=format_score_assessment(ats_score.total),
    )


def _resume_text(resume_text: str | None, resume_data: ResumeData) -> str:
    if resume_text and resume_text.strip():
        return resume_text
    return resume_data_to_text(resume_data)


def _recommendation(gap: float) -> str:
    if gap > 15:
        return "full_generation_recommended"
    if gap >= 5:
        return "marginal_improvement"
    return "strong_fit"


def _stuffed_keywords(ats_score: ATSScore, resume_text: str) -> list[str]:
    threshold = int(get_scoring_value("keywords.stuffing.occurrence_threshold", 5))
    density = calculate_actual_keyword_density(resume_text, ats_score.matched_keywords, threshold)
    return density.stuffed_keywords


def score_resume(payload: ScoreResumeRequest) -> ScoreResumeResponse:
    """Deterministic pre-check used before spending an LLM call on a full analysis."""
    resume_text = _resume_text(payload.resume_text, payload.resume_data)
    ats_score = calculate_ats_score(
        ScoringInput(
            job_description=payload.job_description,
            resume_text=resume_text,
            resume_data=payload.resume_data,
        )
    )

    keyword_max = category_maximum("keyword_relevance")
    exact_points = float(get_scoring_value("keywords.points.exact", 2.0))
    keyword_score = ats_score.breakdown.keyword_relevance
    recoverable = min(keyword_max, keyword_score + len(ats_score.missing_keywords) * exact_points)
    possible = min(100.0, round_half_up(ats_score.total - keyword_score + recoverable, 1))
    gap = possible - ats_score.total

    logger.info(
        "resume_generator.scored total=%s possible=%s matched=%s missing=%s",
        ats_score.total,
        possible,
        len(ats_score.matched_keywords),
        len(ats_score.missing_keywords),
    )
    return ScoreResumeResponse(
        current_score=_snapshot_from_ats(ats_score),
        matched_keywords=ats_score.matched_keywords,
        missing_keywords=ats_score.missing_keywords,
        match_rate=ats_score.match_rate,
        keyword_density=ats_score.keyword_density,
        stuffed_keywords=_stuffed_keywords(ats_score, resume_text),
        recommendation=_recommendation(gap),
    )


def analyze_job_description(payload: AnalyzeRequest) -> AnalyzeResponse:
    job_description = payload.job_description.strip()
    if len(job_description) > settings.max_job_description_chars:
        raise ResumeGeneratorError(
            f"Job description is too long (max {settings.max_job_description_chars} characters).",
            status_code=400,
        )

    resume_text = resume_data_to_text(payload.resume_data)
    ats_score = calculate_ats_score(
        ScoringInput(
            job_description=job_description,
            resume_text=resume_text,
            resume_data=payload.resume_data,
        )
    )

    raw = json_completion_required(
        system_prompt=ANALYSIS_SYSTEM_PROMPT,
        user_prompt=build_analysis_prompt(ats_score, job_description, resume_text),
        tool_slug=TOOL_SLUG,
    )
    # The deterministic score always wins over whatever the model reported.
    raw["currentScore"] = _snapshot_from_ats(ats_score).model_dump(by_alias=True)
    result = parse_analysis_result(raw)

    possible_max = compute_possible_max_score(
        result.current_score.total,
        result.proposed_changes,
        result.score_ceiling,
    )
    logger.info(
        "resume_generator.analyzed company=%r role=%r current=%s optimized=%s changes=%s",
        result.analysis.company_name,
        result.analysis.role_title,
        result.current_score.total,
        result.optimized_score.total,
        len(result.proposed_changes),
    )
    return AnalyzeResponse(
        result=result,
        possible_max_score=possible_max,
        was_url=payload.input_type == "url",
        extracted_url=payload.extracted_url,
    )


def project_score(payload: ProjectedScoreRequest) -> ProjectedScoreResponse:
    accepted = set(payload.accepted_indices)
    projected = calculate_projected_score(
        payload.base_score,
        payload.proposed_changes,
        accepted,
        payload.edited_texts,
        payload.score_ceiling,
    )
    accepted_count = sum(1 for index in range(len(payload.proposed_changes)) if index in accepted)
    return ProjectedScoreResponse(
        projected_score=projected,
        possible_max_score=compute_possible_max_score(
            payload.base_score, payload.proposed_changes, payload.score_ceiling
        ),
        accepted_count=accepted_count,
    )


def edited_impact(payload: EditedImpactRequest) -> EditedImpactResponse:
    kept = retained_keywords(payload.change, payload.edited_text)
    return EditedImpactResponse(
        impact_points=calculate_edited_impact(payload.change, payload.edited_text),
        retained_keywords=kept,
        missing_keywords=[keyword for keyword in payload.change.keywords_added if keyword not in kept],
    )


def revise_change(payload: ModifyChangeRequest) -> ModifyChangeResponse:
    original = payload.original_change
    raw = json_completion_required(
        system_prompt=MODIFY_CHANGE_SYSTEM_PROMPT,
        user_prompt=build_modify_change_prompt(
            section=original.section,
            original=original.original,
            modified=original.modified,
            reason=original.reason,
            impact_points=original.impact_points,
            modify_prompt=payload.modify_prompt.strip(),
            job_description=payload.job_description,
        ),
        tool_slug=TOOL_SLUG,
    )
    raw.setdefault("section", original.section)
    raw.setdefault("original", original.original)
    try:
        revised = ProposedChange.model_validate(raw)
    except ValidationError as exc:
        raise ResumeGeneratorError("AI response did not match the expected change format.") from exc

    if revised.section != original.section or revised.original != original.original:
        raise ResumeGeneratorError("AI attempted to change the section or original text.")

    impact = min(revised.impact_points, original.impact_points)
    update: dict[str, float] = {"impact_points": impact}
    if revised.impact_per_keyword is not None:
        per_keyword_limit = impact / max(1, len(revised.keywords_added))
        if original.impact_per_keyword is not None:
            per_keyword_limit = min(per_keyword_limit, original.impact_per_keyword)
        update["impact_per_keyword"] = min(revised.impact_per_keyword, per_keyword_limit)
    revised = revised.model_copy(update=update)
    return ModifyChangeResponse(revised_change=revised)


def build_generation_log(payload: GenerationLogRequest) -> GenerationLog:
    result = payload.analysis_result
    accepted = set(payload.accepted_change_indices)
    changes_accepted: list[ProposedChange] = []
    changes_rejected: list[ProposedChange] = []
    for index, change in enumerate(result.proposed_changes):
        if index not in accepted:
            changes_rejected.append(change)
        elif index in payload.edited_texts:
            edited_text = payload.edited_texts[index]
            changes_accepted.append(
                change.model_copy(
                    update={
                        "modified": edited_text,
                        "impact_points": calculate_edited_impact(change, edited_text),
                    }
                )
            )
        else:
            changes_accepted.append(change)

    score_after = calculate_projected_score(
        result.current_score.total,
        result.proposed_changes,
        accepted,
        payload.edited_texts,
        result.score_ceiling,
    )
    return GenerationLog(
        generation_id=uuid.uuid4().hex,
        environment=settings.environment,
        created_at=_utc_now(),
        input_type=payload.input_type,
        extracted_url=payload.extracted_url,
        company_name=result.analysis.company_name,
        role_title=result.analysis.role_title,
        job_description_full=payload.job_description,
        score_before=result.current_score.total,
        score_after=score_after,
        changes_accepted=changes_accepted,
        changes_rejected=changes_rejected,
        gaps_identified=result.gaps,
        application_status=payload.application_status,
        notes=payload.notes,
    )
