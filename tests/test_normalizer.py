"""Tests for RecordNormalizer merge rules."""

from datetime import UTC, datetime

from toolrep.collection.normalizer import RecordNormalizer, merge_capabilities
from toolrep.models.model_tool import (
    Capability,
    RepoMetrics,
    SourceRecord,
    TextDetails,
    ToolDetails,
)


class TestRecordNormalizer:
    """Tests for RecordNormalizer.normalize."""

    def test_empty_input(self):
        assert RecordNormalizer().normalize([]) == []
        assert RecordNormalizer().normalize([[], []]) == []

    def test_records_without_url_are_skipped(self):
        records = [SourceRecord(name="no url"), SourceRecord(url="", name="empty url")]
        assert RecordNormalizer().normalize([records]) == []

    def test_first_non_empty_scalar_wins(self):
        directory = [SourceRecord(url="u1", name="Directory name", description=None)]
        github = [SourceRecord(url="u1", name="repo-name", description="From GitHub")]

        result = RecordNormalizer().normalize([directory, github])

        assert len(result) == 1
        assert result[0].name == "Directory name"
        assert result[0].description == "From GitHub"

    def test_empty_string_does_not_block_later_value(self):
        first = [SourceRecord(url="u1", license="")]
        second = [SourceRecord(url="u1", license="MIT")]

        result = RecordNormalizer().normalize([first, second])

        assert result[0].license == "MIT"

    def test_categories_union_in_first_seen_order(self):
        first = [SourceRecord(url="u1", categories=["a", "b"])]
        second = [SourceRecord(url="u1", categories=["b", "c", "a", "d"])]

        result = RecordNormalizer().normalize([first, second])

        assert result[0].categories == ["a", "b", "c", "d"]

    def test_identity_is_exact_string(self):
        records = [
            SourceRecord(url="https://example.com/x"),
            SourceRecord(url="https://example.com/x/"),
            SourceRecord(url="HTTPS://example.com/x"),
        ]
        result = RecordNormalizer().normalize([records])
        assert [r.url for r in result] == [
            "https://example.com/x",
            "https://example.com/x/",
            "HTTPS://example.com/x",
        ]

    def test_output_order_is_first_seen(self):
        first = [SourceRecord(url="b"), SourceRecord(url="a")]
        second = [SourceRecord(url="c"), SourceRecord(url="a")]

        result = RecordNormalizer().normalize([first, second])

        assert [r.url for r in result] == ["b", "a", "c"]

    def test_later_metrics_replace_earlier(self):
        pushed = datetime(2025, 1, 1, tzinfo=UTC)
        first = [SourceRecord(url="u1", metrics=RepoMetrics(stars=1))]
        second = [SourceRecord(url="u1", metrics=RepoMetrics(stars=99, last_push_at=pushed))]
        third = [SourceRecord(url="u1")]

        result = RecordNormalizer().normalize([first, second, third])

        assert result[0].metrics.stars == 99
        assert result[0].metrics.last_push_at == pushed

    def test_merge_is_order_dependent(self):
        a = [SourceRecord(url="u1", name="A")]
        b = [SourceRecord(url="u1", name="B")]

        assert RecordNormalizer().normalize([a, b])[0].name == "A"
        assert RecordNormalizer().normalize([b, a])[0].name == "B"

    def test_single_record_passes_through(self):
        record = SourceRecord(
            url="u1",
            name="Only",
            capabilities=[Capability(name="run", details=ToolDetails(input_schema={}))],
        )

        result = RecordNormalizer().normalize([[record]])

        assert result[0].name == "Only"
        assert result[0].capabilities[0].details.kind == "tool"


class TestMergeCapabilities:
    """Tests for capability merging by name."""

    def test_fills_missing_fields_only(self):
        existing = [Capability(name="search", description="Original")]
        incoming = [
            Capability(
                name="search",
                description="Replacement",
                details=TextDetails(text="full-text search"),
            )
        ]

        result = merge_capabilities(existing, incoming)

        assert len(result) == 1
        assert result[0].description == "Original"
        assert result[0].details == TextDetails(text="full-text search")

    def test_appends_new_names(self):
        existing = [Capability(name="a")]
        incoming = [Capability(name="b"), Capability(name="a", description="later")]

        result = merge_capabilities(existing, incoming)

        assert [c.name for c in result] == ["a", "b"]
        assert result[0].description == "later"

    def test_does_not_mutate_inputs(self):
        existing = [Capability(name="a")]
        merge_capabilities(existing, [Capability(name="a", description="x")])
        assert existing[0].description is None
