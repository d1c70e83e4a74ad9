import os
import unittest
from unittest.mock import patch

os.environ.setdefault("TOOLS_LLM_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

from app.schemas.resume_generation import (
    AnalyzeRequest,
    GenerationLogRequest,
    ModifyChangeRequest,
    ProposedChange,
    ResumeAnalysisResult,
    ResumeData,
    ResumeExperience,
    ScoreResumeRequest,
    ScoreSnapshot,
    SkillCategory,
)
from app.scoring.resume_scoring import calculate_edited_impact
from app.scoring.score_utils import round_half_up
from app.services.resume_generator_service import (
    ResumeGeneratorError,
    analyze_job_description,
    build_generation_log,
    parse_analysis_result,
    revise_change,
    score_resume,
)
from app.services.tools_llm import ToolsLLMError

JD = (
    "Job Title: Senior Platform Engineer\n"
    "\n"
    "Requirements:\n"
    "- 5+ years of experience with Kubernetes and Terraform\n"
    "- Python and Go, lead a team of 6 engineers\n"
    "\n"
    "Nice to have:\n"
    "- Kafka experience\n"
)

RESUME = ResumeData(
    name="Jane Doe",
    title="Senior Platform Engineer",
    summary="Platform engineer focused on Kubernetes and Python tooling.",
    years_experience=7,
    skills_by_category=[SkillCategory(category="Cloud", items=["Kubernetes", "Python"])],
    experiences=[ResumeExperience(title="Platform Lead", company="Acme", highlights=["Led 6 engineers"])],
)


def _llm_analysis(impacts: list[float]) -> dict:
    return {
        "analysis": {"jdSummary": "Platform role", "companyName": "Acme", "roleTitle": "Senior Platform Engineer"},
        "currentScore": {"total": 12, "assessment": "model guess"},
        "proposedChanges": [
            {
                "section": f"experience.0.highlights.{i}",
                "original": "Led 6 engineers",
                "modified": "Led 6 engineers running Terraform and Kafka",
                "reason": "Adds missing keywords",
                "keywordsAdded": ["terraform", "kafka"],
                "impactPoints": value,
            }
            for i, value in enumerate(impacts)
        ],
        "optimizedScore": {"total": 100},
        "gaps": [{"requirement": "Go", "severity": "minor", "inResume": False}],
    }


class ParseAnalysisTests(unittest.TestCase):
    def test_parse_analysis_result_normalizes(self):
        payload = _llm_analysis([10, 10, 15])
        payload["currentScore"] = {"total": 65}
        payload["optimizedScore"] = {"total": 89}
        result = parse_analysis_result(payload)
        total = sum(change.impact_points for change in result.proposed_changes)
        self.assertAlmostEqual(total, 24, places=2)

    def test_parse_analysis_result_rejects_missing_scores(self):
        with self.assertRaises(ResumeGeneratorError):
            parse_analysis_result({"proposedChanges": []})


class ScoreResumeTests(unittest.TestCase):
    def test_weak_resume_recommends_full_generation(self):
        weak = ResumeData(title="Graphic Designer", skills=["Photoshop"])
        response = score_resume(ScoreResumeRequest(job_description=JD, resume_data=weak))
        self.assertEqual(response.recommendation, "full_generation_recommended")
        self.assertIn("kubernetes", response.missing_keywords)

    def test_resume_text_overrides_structured_text(self):
        response = score_resume(
            ScoreResumeRequest(job_description=JD, resume_data=RESUME, resume_text="Kafka Terraform Kubernetes")
        )
        self.assertIn("kafka", response.matched_keywords)
        self.assertIn(
            response.recommendation,
            {"full_generation_recommended", "marginal_improvement", "strong_fit"},
        )


class AnalyzeTests(unittest.TestCase):
    def test_deterministic_score_replaces_model_score(self):
        expected = score_resume(ScoreResumeRequest(job_description=JD, resume_data=RESUME)).current_score.total
        with patch(
            "app.services.resume_generator_service.json_completion_required",
            return_value=_llm_analysis([50, 50]),
        ) as mocked:
            response = analyze_job_description(AnalyzeRequest(job_description=JD, resume_data=RESUME))

        self.assertEqual(mocked.call_args.kwargs["tool_slug"], "resume-generator")
        self.assertIn("<job_description>", mocked.call_args.kwargs["user_prompt"])
        result = response.result
        self.assertEqual(result.current_score.total, expected)
        budget = 100 - expected
        rounded = sum(round_half_up(change.impact_points) for change in result.proposed_changes)
        self.assertLessEqual(rounded, budget)
        self.assertLessEqual(response.possible_max_score, 100)
        self.assertFalse(response.was_url)

    def test_url_input_is_echoed(self):
        with patch(
            "app.services.resume_generator_service.json_completion_required",
            return_value=_llm_analysis([2]),
        ):
            response = analyze_job_description(
                AnalyzeRequest(
                    job_description=JD,
                    resume_data=RESUME,
                    input_type="url",
                    extracted_url="https://jobs.example.com/1",
                )
            )
        self.assertTrue(response.was_url)
        self.assertEqual(response.extracted_url, "https://jobs.example.com/1")

    def test_llm_disabled_raises(self):
        with patch.dict(os.environ, {"TOOLS_LLM_ENABLED": "0"}):
            with self.assertRaises(ToolsLLMError):
                analyze_job_description(AnalyzeRequest(job_description=JD, resume_data=RESUME))


class ReviseChangeTests(unittest.TestCase):
    def setUp(self):
        self.change = ProposedChange(
            section="summary",
            original="Platform engineer.",
            modified="Platform engineer running Kubernetes.",
            reason="Adds kubernetes",
            keywords_added=["kubernetes"],
            impact_points=4,
        )

    def _request(self):
        return ModifyChangeRequest(original_change=self.change, modify_prompt="Make it shorter", job_description=JD)

    def test_revision_keeps_section_and_caps_impact(self):
        with patch(
            "app.services.resume_generator_service.json_completion_required",
            return_value={"modified": "Kubernetes platform engineer.", "keywordsAdded": ["kubernetes"], "impactPoints": 9},
        ):
            revised = revise_change(self._request()).revised_change
        self.assertEqual(revised.section, "summary")
        self.assertEqual(revised.original, "Platform engineer.")
        self.assertEqual(revised.impact_points, 4)

    def test_revision_caps_inflated_per_keyword_impact(self):
        with patch(
            "app.services.resume_generator_service.json_completion_required",
            return_value={
                "modified": "Kubernetes platform engineer.",
                "keywordsAdded": ["kubernetes"],
                "impactPoints": 9,
                "impactPerKeyword": 10,
            },
        ):
            revised = revise_change(self._request()).revised_change
        self.assertEqual(revised.impact_per_keyword, 4)
        self.assertEqual(calculate_edited_impact(revised, "Runs Kubernetes platforms"), 4)

    def test_revision_cannot_move_section(self):
        with patch(
            "app.services.resume_generator_service.json_completion_required",
            return_value={"section": "skills", "original": "Platform engineer.", "modified": "x"},
        ):
            with self.assertRaises(ResumeGeneratorError):
                revise_change(self._request())


class GenerationLogTests(unittest.TestCase):
    def test_splits_changes_and_projects_score(self):
        result = ResumeAnalysisResult(
            current_score=ScoreSnapshot(total=70),
            optimized_score=ScoreSnapshot(total=85),
            proposed_changes=[
                ProposedChange(section="summary", modified="Kubernetes expert", keywords_added=["kubernetes"], impact_points=4),
                ProposedChange(section="skills", modified="Kafka", keywords_added=["kafka"], impact_points=3),
                ProposedChange(section="experience.0", modified="Terraform at scale", keywords_added=["terraform"], impact_points=5),
            ],
        )
        log = build_generation_log(
            GenerationLogRequest(
                job_description=JD,
                analysis_result=result,
                accepted_change_indices=[0, 2],
                edited_texts={2: "Infrastructure at scale"},
            )
        )
        self.assertEqual(len(log.changes_accepted), 2)
        self.assertEqual([c.section for c in log.changes_rejected], ["skills"])
        self.assertEqual(log.changes_accepted[1].modified, "Infrastructure at scale")
        self.assertEqual(log.changes_accepted[1].impact_points, 0)
        self.assertEqual(log.score_before, 70)
        self.assertEqual(log.score_after, 74)
        self.assertEqual(log.job_description_full, JD)
        self.assertTrue(log.generation_id)


if __name__ == "__main__":
    unittest.main()
