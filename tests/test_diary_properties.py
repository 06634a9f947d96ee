"""Property-based tests for normalization and fallback templating."""

import json

from hypothesis import given
from hypothesis import strategies as st

from src.diary import GENERIC_FALLBACK_ENTRY, fallback_entries, normalize_entries
from src.models import ArticleRecord

json_values = st.recursive(
    st.none()
    | st.booleans()
    | st.integers()
    | st.floats(allow_nan=False, allow_infinity=False)
    | st.text(),
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(max_size=10), children, max_size=4),
    max_leaves=20,
)

articles_strategy = st.lists(
    st.builds(
        ArticleRecord,
        title=st.text(min_size=1, max_size=60).filter(str.strip),
        link=st.text(max_size=60),
    ),
    max_size=6,
)


class TestNormalizeEntriesProperties:
    """Property-based tests for normalize_entries."""

    @given(st.text())
    def test_normalization_is_total_property(self, content):
        """
        Any string yields a list of trimmed, non-empty strings without raising.
        """
        entries = normalize_entries(content)

        assert isinstance(entries, list)
        for entry in entries:
            assert isinstance(entry, str)
            assert entry
            assert entry == entry.strip()

    @given(json_values)
    def test_any_json_document_is_total_property(self, value):
        """
        Every valid JSON document normalizes to trimmed, non-empty strings.
        """
        entries = normalize_entries(json.dumps(value))

        for entry in entries:
            assert entry
            assert entry == entry.strip()

    @given(st.lists(st.text()))
    def test_string_array_property(self, values):
        """
        A JSON array of strings yields exactly its non-blank members, trimmed.
        """
        expected = [value.strip() for value in values if value.strip()]

        assert normalize_entries(json.dumps(values)) == expected
        assert normalize_entries(json.dumps({"entries": values})) == expected


class TestFallbackEntriesProperties:
    """Property-based tests for fallback_entries."""

    @given(articles_strategy)
    def test_fallback_count_property(self, articles):
        """
        Fallback yields min(3, N) entries, or one generic entry for no articles.
        """
        entries = fallback_entries(articles)

        if articles:
            assert len(entries) == min(3, len(articles))
            for entry, article in zip(entries, articles):
                assert article.title in entry
        else:
            assert entries == [GENERIC_FALLBACK_ENTRY]
        assert all(entry.strip() for entry in entries)

    @given(articles_strategy)
    def test_fallback_is_deterministic_property(self, articles):
        """
        Repeated calls with the same articles give identical output.
        """
        assert fallback_entries(articles) == fallback_entries(list(articles))
