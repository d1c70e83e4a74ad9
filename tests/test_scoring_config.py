import os
import tempfile
import unittest
import sys
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config.scoring import get_scoring_config, get_scoring_value


class ScoringConfigTests(unittest.TestCase):
    def test_loader_and_value_lookup(self):
        config = get_scoring_config()
        self.assertIsInstance(config, dict)
        self.assertEqual(get_scoring_value("keywords.points.exact"), 2.0)
        self.assertEqual(get_scoring_value("keywords.default_count"), 20)

    def test_category_maxima_sum_to_100(self):
        categories = get_scoring_value("categories")
        self.assertEqual(sum(categories.values()), 100)

    def test_missing_path_returns_default(self):
        self.assertIsNone(get_scoring_value("keywords.points.unknown"))
        self.assertEqual(get_scoring_value("categories.keyword_relevance.deeper", 7), 7)
        self.assertEqual(get_scoring_value("", 3), 3)


class ScoringConfigValidationTests(unittest.TestCase):
    def setUp(self):
        get_scoring_config.cache_clear()
        self.addCleanup(get_scoring_config.cache_clear)
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def _load(self, content: str):
        path = os.path.join(self.tmpdir.name, "scoring.yaml")
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(content)
        with patch.dict(os.environ, {"SCORING_CONFIG_PATH": path}):
            return get_scoring_config()

    def test_rejects_non_mapping(self):
        with self.assertRaises(RuntimeError):
            self._load("- just\n- a list\n")

    def test_rejects_missing_sections(self):
        with self.assertRaises(RuntimeError):
            self._load("categories:\n  keyword_relevance: 100\n")

    def test_rejects_categories_not_summing_to_100(self):
        content = (
            "categories: {keyword_relevance: 40, skills_quality: 25, experience_alignment: 20, format_parseability: 10}\n"
            "keywords: {}\nskills: {}\nexperience: {}\nassessment: {}\n"
        )
        with self.assertRaises(RuntimeError):
            self._load(content)

    def test_missing_file(self):
        with patch.dict(os.environ, {"SCORING_CONFIG_PATH": os.path.join(self.tmpdir.name, "absent.yaml")}):
            with self.assertRaises(RuntimeError):
                get_scoring_config()


if __name__ == "__main__":
    unittest.main()
