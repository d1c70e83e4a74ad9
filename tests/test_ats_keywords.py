import unittest
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.scoring.ats_keywords import (
    calculate_actual_keyword_density,
    calculate_dynamic_keyword_count,
    calculate_keyword_density,
    calculate_match_rate,
    classify_section,
    extract_job_title,
    extract_keywords,
    extract_phrases,
    match_keywords,
    parse_jd_sections,
    stem_word,
    tokenize,
)

JD = (
    "Job Title: Senior Platform Engineer\n"
    "\n"
    "Requirements:\n"
    "- 5+ years of experience with Kubernetes and Terraform\n"
    "- Python and Go\n"
    "\n"
    "Nice to have:\n"
    "- Kafka experience\n"
)


class TokenizerTests(unittest.TestCase):
    def test_special_terms_are_normalized(self):
        tokens = tokenize("C++ and C# on .NET with CI/CD")
        for expected in ("cpp", "csharp", "dotnet", "cicd"):
            self.assertIn(expected, tokens)

    def test_single_characters_are_dropped(self):
        self.assertNotIn("a", tokenize("a b python"))

    def test_stem_word(self):
        self.assertEqual(stem_word("deployments"), "deployment")
        self.assertEqual(stem_word("testing"), "test")
        self.assertEqual(stem_word("go"), "go")

    def test_extract_phrases_longest_first(self):
        phrases, remainder = extract_phrases("Experience with machine learning and distributed systems")
        self.assertIn("machine learning", phrases)
        self.assertIn("distributed systems", phrases)
        self.assertNotIn("machine learning", remainder)


class SectionParsingTests(unittest.TestCase):
    def test_classify_section(self):
        self.assertEqual(classify_section("Requirements"), "required")
        self.assertEqual(classify_section("Preferred Qualifications"), "niceToHave")
        self.assertEqual(classify_section("What you'll do"), "responsibilities")
        self.assertEqual(classify_section("About Us"), "about")

    def test_parse_sections_by_header(self):
        sections = parse_jd_sections(JD)
        self.assertEqual([section.type for section in sections], ["required", "niceToHave"])
        self.assertIn("Kubernetes", sections[0].content)

    def test_parse_sections_without_headers(self):
        sections = parse_jd_sections("We need Python.\nRequirements include Go.")
        self.assertEqual([section.type for section in sections], ["unknown", "required"])

    def test_extract_job_title_from_label(self):
        self.assertEqual(extract_job_title(JD), "Senior Platform Engineer")

    def test_dynamic_keyword_count_is_bounded(self):
        self.assertGreaterEqual(calculate_dynamic_keyword_count("short"), 10)
        self.assertLessEqual(calculate_dynamic_keyword_count(JD * 200), 40)


class KeywordExtractionTests(unittest.TestCase):
    def test_extracts_tech_and_section_keywords(self):
        extracted = extract_keywords(JD, 20)
        self.assertIn("kubernetes", extracted.keywords)
        self.assertIn("terraform", extracted.technologies)
        self.assertIn("kafka", extracted.from_nice_to_have)
        self.assertIn("platform engineer", extracted.from_title)
        self.assertNotIn("experience", extracted.keywords)
        self.assertLessEqual(len(extracted.keywords), 20)

    def test_extraction_is_deterministic(self):
        self.assertEqual(extract_keywords(JD, 15).keywords, extract_keywords(JD, 15).keywords)


class KeywordMatchingTests(unittest.TestCase):
    def test_exact_stem_synonym_and_missing(self):
        result = match_keywords(
            ["kubernetes", "deploying", "ci/cd", "golang"],
            "Ran Kubernetes clusters. Deployed services with continuous integration.",
        )
        match_types = {detail.keyword: detail.match_type for detail in result.match_details}
        self.assertEqual(match_types["kubernetes"], "exact")
        self.assertEqual(match_types["deploying"], "stem")
        self.assertEqual(match_types["ci/cd"], "synonym")
        self.assertEqual(result.missing, ["golang"])

    def test_short_keywords_need_word_boundary(self):
        result = match_keywords(["sql"], "Worked with nosqlish stores")
        self.assertEqual(result.missing, ["sql"])

    def test_rates_and_density(self):
        self.assertEqual(calculate_match_rate(2, 3), 67)
        self.assertEqual(calculate_match_rate(0, 0), 0)
        self.assertEqual(calculate_keyword_density(3, 100), 3.0)
        self.assertEqual(calculate_keyword_density(3, 0), 0.0)

    def test_actual_density_flags_stuffing(self):
        density = calculate_actual_keyword_density("python python python python python dev", ["python"])
        self.assertEqual(density.total_occurrences, 5)
        self.assertEqual(density.stuffed_keywords, ["python"])


if __name__ == "__main__":
    unittest.main()
