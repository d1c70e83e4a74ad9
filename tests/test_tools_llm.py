import os
import unittest
from types import SimpleNamespace
from unittest.mock import patch

from app.services.tools_llm import (
    ToolsLLMError,
    json_completion,
    json_completion_required,
    parse_json_object,
    tools_llm_enabled,
)


def _fake_client(content):
    message = SimpleNamespace(content=content)
    response = SimpleNamespace(choices=[SimpleNamespace(message=message)])
    create = lambda **_: response  # noqa: E731
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


class ParseJsonObjectTests(unittest.TestCase):
    def test_strips_markdown_fences(self):
        self.assertEqual(parse_json_object('```json\n{"a": 1}\n```'), {"a": 1})

    def test_falls_back_to_outer_object(self):
        self.assertEqual(parse_json_object('Here you go: {"a": {"b": 2}} thanks'), {"a": {"b": 2}})

    def test_rejects_non_objects(self):
        with self.assertRaises(ValueError):
            parse_json_object("no json here")
        with self.assertRaises(ValueError):
            parse_json_object("[1, 2]")


class JsonCompletionTests(unittest.TestCase):
    def test_enabled_requires_real_key(self):
        with patch.dict(os.environ, {"TOOLS_LLM_ENABLED": "1", "OPENAI_API_KEY": "your_key_here"}):
            self.assertFalse(tools_llm_enabled())
        with patch.dict(os.environ, {"TOOLS_LLM_ENABLED": "1", "OPENAI_API_KEY": "sk-test"}):
            self.assertTrue(tools_llm_enabled())
        with patch.dict(os.environ, {"TOOLS_LLM_ENABLED": "0", "OPENAI_API_KEY": "sk-test"}):
            self.assertFalse(tools_llm_enabled())

    def test_disabled_returns_none_and_required_raises(self):
        with patch.dict(os.environ, {"TOOLS_LLM_ENABLED": "0"}):
            self.assertIsNone(json_completion(system_prompt="s", user_prompt="u"))
            with self.assertRaises(ToolsLLMError) as ctx:
                json_completion_required(system_prompt="s", user_prompt="u")
        self.assertEqual(ctx.exception.code, "llm_disabled")

    def test_parses_fenced_reply(self):
        with patch.dict(os.environ, {"TOOLS_LLM_ENABLED": "1", "OPENAI_API_KEY": "sk-test"}), patch(
            "app.services.tools_llm._client", return_value=_fake_client('```json\n{"ok": true}\n```')
        ):
            self.assertEqual(json_completion(system_prompt="s", user_prompt="u"), {"ok": True})

    def test_invalid_reply_raises_when_required(self):
        with patch.dict(os.environ, {"TOOLS_LLM_ENABLED": "1", "OPENAI_API_KEY": "sk-test"}), patch(
            "app.services.tools_llm._client", return_value=_fake_client("not json")
        ):
            with self.assertLogs("app.services.tools_llm", level="WARNING"):
                with self.assertRaises(ToolsLLMError) as ctx:
                    json_completion_required(system_prompt="s", user_prompt="u")
        self.assertEqual(ctx.exception.code, "llm_invalid")


if __name__ == "__main__":
    unittest.main()
