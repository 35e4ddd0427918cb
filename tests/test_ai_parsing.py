"""Unit tests for ai/parsing.py -- pure string handling, no fixtures."""

import pytest

from ai.parsing import parse_json_content


class TestParseJsonContent:
    def test_bare_object(self):
        assert parse_json_content('{"title": "Rust"}') == {"title": "Rust"}

    def test_bare_array_with_whitespace(self):
        assert parse_json_content('\n  [1, 2, 3]  \n') == [1, 2, 3]

    def test_fenced_block_with_prose(self):
        content = 'Here is your plan:\n```json\n{"title": "Go", "phases": []}\n```\nGood luck!'
        assert parse_json_content(content) == {"title": "Go", "phases": []}

    def test_only_first_fence_is_used(self):
        content = 'a ```json\n{"n": 1}\n``` b ```json\n{"n": 2}\n```'
        assert parse_json_content(content) == {"n": 1}

    def test_unterminated_fence_uses_rest(self):
        assert parse_json_content('Plan:\n```json\n{"n": 3}') == {"n": 3}

    def test_scalar_without_fence(self):
        """No fence: the raw text is parsed as-is."""
        assert parse_json_content(" 42 ") == 42

    def test_empty_fence_falls_back_to_raw_text_and_fails(self):
        with pytest.raises(ValueError):
            parse_json_content("```json\n```")

    @pytest.mark.parametrize(
        "content",
        [
            "",
            "I cannot help with that.",
            '{"title": "Rust",}',
            "```json\n{not json}\n```",
        ],
    )
    def test_unparseable(self, content):
        with pytest.raises(ValueError):
            parse_json_content(content)
