from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

GapSeverity = Literal["critical", "moderate", "minor"]
ApplicationStatus = Literal["draft", "applied", "interview", "offer", "rejected"]
InputType = Literal["text", "url"]
ScoreRecommendation = Literal["full_generation_recommended", "marginal_improvement", "strong_fit"]


def _finite_or_zero(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and not math.isfinite(value):
        return 0.0
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScoreBreakdown(CamelModel):
    keyword_relevance: float = 0.0
    skills_quality: float = 0.0
    experience_alignment: float = 0.0
    format_parseability: float = 0.0


class ScoreSnapshot(CamelModel):
    total: float = Field(ge=0, le=100)
    breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    assessment: str = ""

    @field_validator("total", mode="before")
    @classmethod
    def _clamp_total(cls, value: Any) -> Any:
        value = _finite_or_zero(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return max(0.0, min(100.0, float(value)))
        return value


class ProposedChange(CamelModel):
    section: str
    original: str = ""
    modified: str
    reason: str = ""
    keywords_added: list[str] = Field(default_factory=list)
    impact_points: float = 0.0
    impact_per_keyword: float | None = None

    @field_validator("keywords_added")
    @classmethod
    def _drop_blank_keywords(cls, value: list[str]) -> list[str]:
        return [keyword.strip() for keyword in value if keyword and keyword.strip()]

    @field_validator("impact_points", mode="before")
    @classmethod
    def _clamp_impact_points(cls, value: Any) -> Any:
        value = _finite_or_zero(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0:
            return 0.0
        return value

    @field_validator("impact_per_keyword", mode="before")
    @classmethod
    def _clamp_impact_per_keyword(cls, value: Any) -> Any:
        if value is None:
            return None
        value = _finite_or_zero(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0:
            return 0.0
        return value


class ScoreCeiling(CamelModel):
    maximum: float = Field(ge=0, le=100)
    blockers: list[str] = Field(default_factory=list)
    to_reach90: str = ""


class Gap(CamelModel):
    requirement: str
    severity: GapSeverity = "moderate"
    in_resume: bool = False
    mitigation: str = ""


class JDAnalysis(CamelModel):
    jd_summary: str = ""
    company_name: str = ""
    role_title: str = ""
    department: str | None = None
    top_keywords: list[str] = Field(default_factory=list)
    required_skills: list[str] = Field(default_factory=list)
    nice_to_have_skills: list[str] = Field(default_factory=list)
    years_required: str = ""
    team_size: str | None = None
    scope_expected: str | None = None
    industry_context: str | None = None


class SkillsReorder(CamelModel):
    before: list[str] = Field(default_factory=list)
    after: list[str] = Field(default_factory=list)
    reason: str = ""


class ResumeAnalysisResult(CamelModel):
    analysis: JDAnalysis = Field(default_factory=JDAnalysis)
    current_score: ScoreSnapshot
    proposed_changes: list[ProposedChange] = Field(default_factory=list)
    optimized_score: ScoreSnapshot
    score_ceiling: ScoreCeiling | None = None
    gaps: list[Gap] = Field(default_factory=list)
    skills_reorder: SkillsReorder = Field(default_factory=SkillsReorder)
    interview_prep: list[str] = Field(default_factory=list)


class ResumeExperience(CamelModel):
    title: str | None = None
    company: str | None = None
    highlights: list[str] = Field(default_factory=list)


class SkillCategory(CamelModel):
    category: str
    items: list[str] = Field(default_factory=list)


class ResumeEducation(CamelModel):
    degree: str | None = None
    institution: str | None = None


class ResumeData(CamelModel):
    name: str | None = None
    title: str | None = None
    summary: str | None = None
    years_experience: float | None = None
    skills: list[str] = Field(default_factory=list)
    skills_by_category: list[SkillCategory] = Field(default_factory=list)
    team_size: str | None = None
    experiences: list[ResumeExperience] = Field(default_factory=list)
    education: list[ResumeEducation] = Field(default_factory=list)


class ScoreResumeRequest(CamelModel):
    job_description: str = Field(min_length=1, max_length=50000)
    resume_data: ResumeData
    resume_text: str | None = Field(default=None, max_length=50000)


class ScoreResumeResponse(CamelModel):
    current_score: ScoreSnapshot
    matched_keywords: list[str]
    missing_keywords: list[str]
    match_rate: float
    keyword_density: float
    stuffed_keywords: list[str] = Field(default_factory=list)
    recommendation: ScoreRecommendation


class AnalyzeRequest(CamelModel):
    job_description: str = Field(min_length=1, max_length=50000)
    resume_data: ResumeData
    input_type: InputType = "text"
    extracted_url: str | None = None


class AnalyzeResponse(CamelModel):
    result: ResumeAnalysisResult
    possible_max_score: float
    was_url: bool = False
    extracted_url: str | None = None


class ProjectedScoreRequest(CamelModel):
    base_score: float = Field(ge=0, le=100)
    proposed_changes: list[ProposedChange]
    accepted_indices: list[int] = Field(default_factory=list)
    edited_texts: dict[int, str] = Field(default_factory=dict)
    score_ceiling: ScoreCeiling | None = None


class ProjectedScoreResponse(CamelModel):
    projected_score: float
    possible_max_score: float
    accepted_count: int


class EditedImpactRequest(CamelModel):
    change: ProposedChange
    edited_text: str


class EditedImpactResponse(CamelModel):
    impact_points: float
    retained_keywords: list[str]
    missing_keywords: list[str]


class ModifyChangeRequest(CamelModel):
    original_change: ProposedChange
    modify_prompt: str = Field(min_length=1, max_length=2000)
    job_description: str = Field(min_length=1, max_length=50000)


class ModifyChangeResponse(CamelModel):
    revised_change: ProposedChange


class GenerationLogRequest(CamelModel):
    job_description: str = Field(min_length=1, max_length=50000)
    analysis_result: ResumeAnalysisResult
    accepted_change_indices: list[int] = Field(default_factory=list)
    edited_texts: dict[int, str] = Field(default_factory=dict)
    input_type: InputType = "text"
    extracted_url: str | None = None
    application_status: ApplicationStatus = "draft"
    notes: str | None = Field(default=None, max_length=5000)


class GenerationLog(CamelModel):
    generation_id: str
    environment: str
    created_at: datetime
    input_type: InputType = "text"
    extracted_url: str | None = None
    company_name: str = ""
    role_title: str = ""
    job_description_full: str
    score_before: float
    score_after: float
    changes_accepted: list[ProposedChange] = Field(default_factory=list)
    changes_rejected: list[ProposedChange] = Field(default_factory=list)
    gaps_identified: list[Gap] = Field(default_factory=list)
    application_status: ApplicationStatus = "draft"
    notes: str | None = None


class GenerationLogSummary(CamelModel):
    generation_id: str
    created_at: datetime
    company_name: str
    role_title: str
    score_before: float
    score_after: float
    application_status: ApplicationStatus
