"""Unit tests for the news diary writer, normalization and fallback."""

import json
from unittest.mock import Mock

import pytest

from src.config import GenerationConfig
from src.diary import (
    FALLBACK_TEMPLATES,
    GENERIC_FALLBACK_ENTRY,
    ContentShape,
    DiaryWriter,
    fallback_entries,
    normalize_entries,
    parse_content,
    strip_code_fence,
)
from src.models import ArticleRecord
from src.prompts import NEWS_DIARY_SYSTEM_PROMPT

ARTICLES = [
    ArticleRecord(title="Trump & Allies Rally in Ohio", link="https://example.com/1"),
    ArticleRecord(title="Markets react to tariff plan", link="https://example.com/2"),
    ArticleRecord(title="Senate vote delayed", link="https://example.com/3"),
]


def make_writer() -> DiaryWriter:
    client = Mock()
    client.config = GenerationConfig(api_key="test-key")
    client.complete.return_value = '{"entries": ["a"]}'
    return DiaryWriter(client)


class TestDiaryWriterUnit:
    """Unit tests for the persona rewrite request."""

    def test_build_messages(self):
        writer = make_writer()

        messages = writer.build_messages(ARTICLES)

        assert [message["role"] for message in messages] == ["system", "user"]
        assert messages[0]["content"] == NEWS_DIARY_SYSTEM_PROMPT
        user_content = messages[1]["content"]
        assert "Respond with valid JSON." in user_content
        assert (
            "Item 1\nTitle: Trump & Allies Rally in Ohio\nLink: https://example.com/1"
            in user_content
        )
        assert "Item 3\nTitle: Senate vote delayed" in user_content

    def test_build_messages_limits_to_three_articles(self):
        writer = make_writer()
        articles = ARTICLES + [ArticleRecord(title="Fourth", link="https://example.com/4")]

        user_content = writer.build_messages(articles)[1]["content"]

        assert "Item 4" not in user_content
        assert "Fourth" not in user_content

    def test_system_prompt_asks_for_entries_json(self):
        assert "'entries' array" in NEWS_DIARY_SYSTEM_PROMPT
        assert "3-4 sentences" in NEWS_DIARY_SYSTEM_PROMPT

    def test_write_entries_uses_configured_temperature(self):
        writer = make_writer()

        content = writer.write_entries(ARTICLES)

        assert content == '{"entries": ["a"]}'
        args, kwargs = writer.client.complete.call_args
        assert kwargs["temperature"] == 0.7
        assert args[0] == writer.build_messages(ARTICLES)

    def test_prompt_template_file_override(self, tmp_path, monkeypatch):
        prompt_dir = tmp_path / "prompts"
        prompt_dir.mkdir()
        (prompt_dir / "news_diary_system.txt").write_text(
            "Custom persona prompt", encoding="utf-8"
        )
        monkeypatch.chdir(tmp_path)

        writer = make_writer()

        assert writer.system_prompt == "Custom persona prompt"


class TestNormalizeEntriesUnit:
    """Unit tests for each content shape."""

    def test_entries_object(self):
        assert normalize_entries('{"entries": ["a", "b", "c"]}') == ["a", "b", "c"]

    def test_json_array(self):
        assert normalize_entries('["  first  ", "second"]') == ["first", "second"]

    def test_object_without_entries_is_flattened(self):
        content = json.dumps({"day1": "Won big", "more": ["Won bigger", "  "], "n": 3})
        assert normalize_entries(content) == ["Won big", "Won bigger", "3"]

    def test_entries_not_a_list_falls_back_to_flattening(self):
        assert normalize_entries('{"entries": "single entry"}') == ["single entry"]

    def test_scalar(self):
        assert normalize_entries('"just a string"') == ["just a string"]
        assert normalize_entries("42") == ["42"]
        assert normalize_entries("true") == ["true"]

    def test_null_scalar_renders_as_text(self):
        assert normalize_entries("null") == ["null"]

    def test_null_values_render_as_text(self):
        assert normalize_entries('{"a": null}') == ["null"]
        assert normalize_entries('["a", null, ""]') == ["a", "null"]

    def test_nested_values_are_rendered_as_json(self):
        assert normalize_entries('[{"text": "hi"}]') == ['{"text": "hi"}']

    def test_invalid_json_becomes_single_raw_entry(self):
        assert normalize_entries("not json") == ["not json"]
        assert normalize_entries("  Dear Diary, I won.  ") == ["Dear Diary, I won."]

    def test_empty_object_yields_nothing(self):
        assert normalize_entries("{}") == []
        assert normalize_entries("[]") == []

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    def test_blank_content_yields_nothing(self, content):
        assert normalize_entries(content) == []

    def test_code_fenced_json(self):
        content = '```json\n{"entries": ["a", "b"]}\n```'
        assert normalize_entries(content) == ["a", "b"]

    def test_inline_backticks_are_kept_verbatim(self):
        content = "```a``` and ```b```"
        assert normalize_entries(content) == [content]

    def test_fenced_prose_is_kept_verbatim(self):
        content = "```\nDear Diary, winning.\n```"
        assert normalize_entries(content) == [content]

    def test_unclosed_json_is_raw_text(self):
        assert normalize_entries('{"entries": ["a", ') == ['{"entries": ["a",']

    def test_deeply_nested_json_does_not_raise(self):
        content = "[" * 100000 + "]" * 100000
        assert isinstance(normalize_entries(content), list)


class TestParseContentUnit:
    """Unit tests for shape classification."""

    @pytest.mark.parametrize(
        "content, shape",
        [
            ('["a"]', ContentShape.ARRAY),
            ('{"entries": ["a"]}', ContentShape.ENTRIES_OBJECT),
            ('{"other": "a"}', ContentShape.OBJECT),
            ('{"entries": "a"}', ContentShape.OBJECT),
            ("1.5", ContentShape.SCALAR),
            ("null", ContentShape.SCALAR),
            ('```json\n["a"]\n```', ContentShape.ARRAY),
            ("not json", ContentShape.RAW_TEXT),
            ("```\nprose\n```", ContentShape.RAW_TEXT),
        ],
    )
    def test_shapes(self, content, shape):
        assert parse_content(content).shape is shape

    def test_values_per_shape(self):
        assert parse_content('{"entries": ["a", "b"]}').values == ("a", "b")
        assert parse_content('{"x": ["a"], "y": null}').values == ("a", None)
        assert parse_content("  raw text  ").values == ("raw text",)

    def test_strip_code_fence_rejects_multiple_fences(self):
        assert strip_code_fence("```a``` and ```b```") == "```a``` and ```b```"

    def test_strip_code_fence_without_language(self):
        assert strip_code_fence("```\n[1]\n```") == "[1]"

    def test_strip_code_fence_leaves_plain_text(self):
        assert strip_code_fence("  plain  ") == "plain"


class TestFallbackEntriesUnit:
    """Unit tests for templated fallback entries."""

    def test_empty_articles_give_generic_entry(self):
        assert fallback_entries([]) == [GENERIC_FALLBACK_ENTRY]

    def test_one_entry_per_article_up_to_three(self):
        entries = fallback_entries(ARTICLES + [ArticleRecord(title="Fourth", link="")])

        assert len(entries) == 3
        for entry, article in zip(entries, ARTICLES):
            assert article.title in entry

    def test_templates_cycle_by_position(self):
        entries = fallback_entries(ARTICLES)

        for index, entry in enumerate(entries):
            expected = FALLBACK_TEMPLATES[index % len(FALLBACK_TEMPLATES)].format(
                number=index + 1, title=ARTICLES[index].title
            )
            assert entry == expected

    def test_deterministic(self):
        assert fallback_entries(ARTICLES) == fallback_entries(ARTICLES)

    def test_em_dash_is_not_mojibake(self):
        text = " ".join(fallback_entries(ARTICLES) + [GENERIC_FALLBACK_ENTRY])
        assert "—" in text
        assert "â€" not in text

    def test_titles_with_braces_are_inserted_verbatim(self):
        entries = fallback_entries([ArticleRecord(title="{number} {title}", link="")])
        assert "{number} {title}" in entries[0]
