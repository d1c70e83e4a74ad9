from __future__ import annotations

from app.scoring.ats_scorer import ATSScore

ANALYSIS_SYSTEM_PROMPT = (
    "You are an ATS resume optimization analyst. You propose factual, minimal edits to a "
    "candidate's resume so it matches a job description. Never invent experience, employers, "
    "degrees or metrics that are not in the resume. Return JSON only."
)

ANALYSIS_RESPONSE_SCHEMA = """{
  "analysis": {"jdSummary": "", "companyName": "", "roleTitle": "", "topKeywords": [],
               "requiredSkills": [], "niceToHaveSkills": [], "yearsRequired": ""},
  "currentScore": {"total": 0, "breakdown": {...}, "assessment": ""},
  "proposedChanges": [{"section": "summary", "original": "", "modified": "", "reason": "",
                       "keywordsAdded": [], "impactPoints": 0, "impactPerKeyword": 0}],
  "optimizedScore": {"total": 0, "breakdown": {...}, "assessment": ""},
  "scoreCeiling": {"maximum": 0, "blockers": [], "toReach90": ""},
  "gaps": [{"requirement": "", "severity": "critical|moderate|minor", "inResume": false, "mitigation": ""}],
  "skillsReorder": {"before": [], "after": [], "reason": ""},
  "interviewPrep": []
}"""

MODIFY_CHANGE_SYSTEM_PROMPT = (
    "You are revising a single resume change for ATS optimization. Keep the section and the "
    "original text exactly as given. Return JSON only."
)

_MAX_MATCHED_KEYWORDS_SHOWN = 15
_MODIFY_JD_CHARS = 4000


def build_score_context(ats_score: ATSScore) -> str:
    breakdown = ats_score.breakdown
    matched = ats_score.matched_keywords
    shown = ", ".join(matched[:_MAX_MATCHED_KEYWORDS_SHOWN])
    if len(matched) > _MAX_MATCHED_KEYWORDS_SHOWN:
        shown += "..."
    return "\n".join(
        [
            "<pre_calculated_ats_score>",
            "Use this deterministic score as currentScore. Do not recalculate it.",
            f"Current score: {ats_score.total}/100",
            f"- Keyword Relevance: {breakdown.keyword_relevance}/40",
            f"- Skills Quality: {breakdown.skills_quality}/25",
            f"- Experience Alignment: {breakdown.experience_alignment}/20",
            f"- Format Parseability: {breakdown.format_parseability}/15",
            f"Match rate: {ats_score.match_rate}%",
            f"Keyword density: {ats_score.keyword_density}%",
            f"Matched keywords ({len(matched)}): {shown}",
            f"Missing keywords ({len(ats_score.missing_keywords)}): {', '.join(ats_score.missing_keywords)}",
            "",
            "Focus on incorporating missing keywords naturally. Give every change an impactPoints",
            "estimate and, when it adds keywords, an impactPerKeyword value. If 90+ is not",
            "achievable with factual content, set scoreCeiling and explain the blockers.",
            "</pre_calculated_ats_score>",
        ]
    )


def build_analysis_prompt(ats_score: ATSScore, job_description: str, resume_text: str) -> str:
    return "\n\n".join(
        [
            build_score_context(ats_score),
            f"<resume>{resume_text}</resume>",
            f"<job_description>{job_description}</job_description>",
            "Return exactly this JSON shape:",
            ANALYSIS_RESPONSE_SCHEMA,
        ]
    )


def build_modify_change_prompt(
    *,
    section: str,
    original: str,
    modified: str,
    reason: str,
    impact_points: float,
    modify_prompt: str,
    job_description: str,
) -> str:
    return "\n".join(
        [
            "<original_change>",
            f"Section: {section}",
            f"Original text: {original}",
            f"Proposed modification: {modified}",
            f"Reason: {reason}",
            "</original_change>",
            "",
            f"<modify_request>{modify_prompt}</modify_request>",
            "",
            f"<job_description>{job_description[:_MODIFY_JD_CHARS]}</job_description>",
            "",
            "Return a JSON object with keys section, original, modified, reason, keywordsAdded, "
            f"impactPoints. Keep impactPoints at {impact_points} unless the revision drops keywords.",
        ]
    )
