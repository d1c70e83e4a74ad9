"""Deterministic ATS compatibility score (0-100).

Categories and their maxima come from ``config/scoring.yaml``:
keyword relevance, skills quality, experience alignment and a constant format
parseability credit for the single-column PDF the generator renders.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from app.core.config.scoring import get_scoring_value
from app.schemas.resume_generation import ResumeData, ScoreBreakdown
from app.scoring.ats_keywords import (
    ExtractedKeywords,
    MatchDetail,
    MatchResult,
    calculate_keyword_density,
    calculate_match_rate,
    extract_keywords,
    match_keywords,
    stem_word,
    word_count,
)
from app.scoring.score_utils import round_half_up

_JD_YEARS_PATTERNS = (
    re.compile(r"(\d+)\+?\s*(?:years?|yrs?)\s*(?:of\s+)?(?:experience|exp)", re.IGNORECASE),
    re.compile(r"(\d+)\s*-\s*\d+\s*(?:years?|yrs?)", re.IGNORECASE),
    re.compile(r"minimum\s+(?:of\s+)?(\d+)\s*(?:years?|yrs?)", re.IGNORECASE),
)
_JD_TEAM_PATTERNS = (
    re.compile(r"(?:team\s+of|manage|lead)\s+(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\+?\s*(?:engineers?|developers?|reports?)", re.IGNORECASE),
)
_RESUME_TEAM_RE = re.compile(
    r"(?:team\s+of|scaling\s+to|led|managed)\s+(\d+)\s*(?:engineers?|people|members|reports)",
    re.IGNORECASE,
)
_SENIOR_TITLE_RE = re.compile(r"\b(manager|director|lead|senior|staff|principal)\b", re.IGNORECASE)


@dataclass(frozen=True)
class ScoringInput:
    job_description: str
    resume_text: str
    resume_data: ResumeData


@dataclass
class ATSScore:
    total: float
    breakdown: ScoreBreakdown
    matched_keywords: list[str] = field(default_factory=list)
    missing_keywords: list[str] = field(default_factory=list)
    keyword_density: float = 0.0
    match_rate: float = 0.0
    extracted_keywords: ExtractedKeywords = field(default_factory=ExtractedKeywords)
    match_details: list[MatchDetail] = field(default_factory=list)


def _points(path: str, default: float) -> float:
    return float(get_scoring_value(path, default))


def calculate_keyword_score(match_result: MatchResult, resume_word_count: int) -> float:
    points = {
        "exact": _points("keywords.points.exact", 2.0),
        "stem": _points("keywords.points.stem", 1.5),
        "synonym": _points("keywords.points.synonym", 1.0),
    }
    score = sum(points[detail.match_type] for detail in match_result.match_details)
    score = min(score, _points("categories.keyword_relevance", 40))

    density = calculate_keyword_density(len(match_result.matched), resume_word_count)
    if density > _points("keywords.stuffing.density_threshold_pct", 3.0):
        score = max(0.0, score - _points("keywords.stuffing.penalty", 5.0))
    return round_half_up(score, 1)


def _resume_skills(resume_data: ResumeData) -> set[str]:
    skills = {skill.lower() for skill in resume_data.skills}
    for category in resume_data.skills_by_category:
        skills.update(item.lower() for item in category.items)
    return skills


def _has_skill(skills: set[str], keyword: str) -> bool:
    lowered = keyword.lower()
    return lowered in skills or any(lowered in skill for skill in skills)


def calculate_skills_score(extracted: ExtractedKeywords, resume_data: ResumeData) -> float:
    skills = _resume_skills(resume_data)
    score = 0.0

    tech_coverage = _points("skills.tech_coverage", 15)
    if extracted.technologies:
        matches = sum(1 for tech in extracted.technologies if _has_skill(skills, tech))
        score += min(tech_coverage, matches / len(extracted.technologies) * tech_coverage)
    elif skills:
        score += _points("skills.no_tech_requirements_credit", 10)

    top_count = int(get_scoring_value("skills.priority_keyword_count", 5))
    top_keywords = extracted.keywords[:top_count]
    aligned = sum(1 for keyword in top_keywords if _has_skill(skills, keyword))
    score += aligned / max(len(top_keywords), 1) * _points("skills.priority_alignment", 5)

    if resume_data.skills_by_category:
        score += _points("skills.categorized", 5)
    elif resume_data.skills:
        score += _points("skills.flat_list", 3)

    return round_half_up(score, 1)


def _first_int(patterns: tuple[re.Pattern[str], ...], text: str) -> int | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def extract_years_from_jd(jd: str) -> int | None:
    return _first_int(_JD_YEARS_PATTERNS, jd)


def extract_team_size_from_jd(jd: str) -> int | None:
    return _first_int(_JD_TEAM_PATTERNS, jd)


def extract_team_size_from_resume(resume_data: ResumeData) -> int | None:
    if resume_data.team_size:
        match = re.search(r"(\d+)", resume_data.team_size)
        if match:
            return int(match.group(1))
    for experience in resume_data.experiences:
        for highlight in experience.highlights:
            match = _RESUME_TEAM_RE.search(highlight)
            if match:
                return int(match.group(1))
    return None


def calculate_experience_score(jd: str, resume_data: ResumeData, extracted: ExtractedKeywords) -> float:
    score = 0.0

    jd_years = extract_years_from_jd(jd)
    resume_years = resume_data.years_experience
    if jd_years is not None and resume_years is not None:
        if resume_years >= jd_years:
            score += _points("experience.years.meets", 8)
        elif resume_years >= jd_years - 2:
            score += _points("experience.years.within_2", 5)
        elif resume_years >= jd_years - 5:
            score += _points("experience.years.within_5", 2)
    elif resume_years is not None and resume_years >= _points("experience.years.no_requirement_min_years", 5):
        score += _points("experience.years.no_requirement_credit", 5)

    jd_team = extract_team_size_from_jd(jd)
    resume_team = extract_team_size_from_resume(resume_data)
    if jd_team is not None and resume_team is not None:
        if resume_team >= jd_team:
            score += _points("experience.team_size.meets", 6)
        elif resume_team >= jd_team * 0.7:
            score += _points("experience.team_size.within_70pct", 4)
        elif resume_team >= jd_team * 0.5:
            score += _points("experience.team_size.within_50pct", 2)
    elif resume_team:
        score += _points("experience.team_size.has_team_credit", 3)

    resume_title = (resume_data.title or "").lower()
    title_keywords = [keyword.lower() for keyword in extracted.from_title]
    if title_keywords:
        title_stem = stem_word(resume_title)
        matches = sum(
            1
            for keyword in title_keywords
            if keyword in resume_title or stem_word(keyword) in title_stem
        )
        score += matches / len(title_keywords) * _points("experience.title.full_match", 6)
    elif _SENIOR_TITLE_RE.search(resume_title):
        score += _points("experience.title.role_word_credit", 3)

    return round_half_up(score, 1)


def calculate_ats_score(scoring_input: ScoringInput) -> ATSScore:
    """Score a resume against a JD. Same inputs always give the same score."""
    jd = scoring_input.job_description
    resume_text = scoring_input.resume_text
    format_points = _points("categories.format_parseability", 15)
    keyword_count = int(get_scoring_value("keywords.default_count", 20))

    if not jd or not jd.strip():
        return ATSScore(
            total=format_points,
            breakdown=ScoreBreakdown(format_parseability=format_points),
        )

    extracted = extract_keywords(jd, keyword_count)
    if not resume_text or not resume_text.strip():
        return ATSScore(
            total=0.0,
            breakdown=ScoreBreakdown(),
            missing_keywords=list(extracted.keywords),
            extracted_keywords=extracted,
        )

    match_result = match_keywords(extracted.keywords, resume_text)
    resume_words = word_count(resume_text)

    breakdown = ScoreBreakdown(
        keyword_relevance=calculate_keyword_score(match_result, resume_words),
        skills_quality=calculate_skills_score(extracted, scoring_input.resume_data),
        experience_alignment=calculate_experience_score(jd, scoring_input.resume_data, extracted),
        format_parseability=format_points,
    )
    total = round_half_up(
        breakdown.keyword_relevance
        + breakdown.skills_quality
        + breakdown.experience_alignment
        + breakdown.format_parseability,
        1,
    )

    return ATSScore(
        total=min(100.0, total),
        breakdown=breakdown,
        matched_keywords=match_result.matched,
        missing_keywords=match_result.missing,
        keyword_density=calculate_keyword_density(len(match_result.matched), resume_words),
        match_rate=calculate_match_rate(len(match_result.matched), len(extracted.keywords)),
        extracted_keywords=extracted,
        match_details=match_result.match_details,
    )


def resume_data_to_text(data: ResumeData) -> str:
    """Flatten structured resume data into plain text for keyword matching."""
    parts: list[str] = [part for part in (data.name, data.title, data.summary) if part]

    if data.skills_by_category:
        for category in data.skills_by_category:
            parts.append(f"{category.category}: {', '.join(category.items)}")
    elif data.skills:
        parts.append("Skills: " + ", ".join(data.skills))

    for experience in data.experiences:
        if experience.title:
            parts.append(experience.title)
        if experience.company:
            parts.append(experience.company)
        parts.extend(experience.highlights)

    for education in data.education:
        if education.degree:
            parts.append(education.degree)
        if education.institution:
            parts.append(education.institution)

    return "\n".join(parts)
