"""Tests for the public building API."""

import io
from pathlib import Path

import pytest

from xml_stream_filter.api import (
    FragmentBuilder,
    build_fragments,
    build_fragments_from_file,
    build_fragments_from_string,
    iter_fragments,
)
from xml_stream_filter.events import ExpatEventSource, XMLEvent
from xml_stream_filter.filters import (
    ElementNameFilter,
    TextTransformFilter,
    WhitespaceTextFilter,
)
from xml_stream_filter.shared import (
    ConfigValidationError,
    FragmentBuilderConfig,
    MalformedStreamError,
)

ATOM_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example Feed</title>
  <!-- two entries follow -->
  <entry>
    <title>First</title>
    <id>urn:1</id>
  </entry>
  <entry>
    <title>Second</title>
    <id>urn:2</id>
  </entry>
</feed>
"""


class TestBuildFunctions:
    """Test the Level 1 functions."""

    def test_build_everything(self):
        """Test building without a filter keeps the whole document."""
        result = build_fragments("<root><item>value</item></root>")

        assert result.elements[0].name == "root"
        assert result.elements[0].find("item").get_text() == "value"

    def test_build_from_bytes(self):
        """Test encoded input."""
        result = build_fragments("<r>é</r>".encode("utf-8"))

        assert result.elements[0].get_text() == "é"

    def test_build_from_file_object(self):
        """Test file-like input."""
        result = build_fragments(io.BytesIO(b"<r><c/></r>"))

        assert result.element_count == 2

    def test_build_from_events(self):
        """Test pre-tokenized input."""
        events = [XMLEvent.element_start("r"), XMLEvent.element_end()]

        assert build_fragments(events).elements[0].name == "r"

    def test_build_from_event_source(self):
        """Test that an existing source is used directly."""
        source = ExpatEventSource("<r/>")

        build_fragments(source)

        assert source.consumed

    def test_build_from_string_type_checked(self):
        """Test that the string variant only takes text."""
        with pytest.raises(TypeError, match="Expected XML text"):
            build_fragments_from_string(b"<r/>")  # type: ignore[arg-type]

    def test_build_from_file(self, tmp_path):
        """Test reading a file from disk."""
        path = tmp_path / "feed.xml"
        path.write_text(ATOM_FEED, encoding="utf-8")

        result = build_fragments_from_file(
            str(path), ElementNameFilter("entry"), FragmentBuilderConfig.deep_scan()
        )

        assert len(result.elements) == 2

    def test_build_from_missing_file(self, tmp_path):
        """Test that missing files are reported."""
        with pytest.raises(FileNotFoundError):
            build_fragments_from_file(tmp_path / "missing.xml")

    def test_malformed_input(self):
        """Test that malformed input raises instead of returning a tree."""
        with pytest.raises(MalformedStreamError):
            build_fragments("<root><open></root>")

    @pytest.mark.parametrize(
        "config,depth",
        [
            (FragmentBuilderConfig.default(), 990),
            (FragmentBuilderConfig.large_documents(), 3000),
        ],
        ids=["default", "large_documents"],
    )
    def test_deeply_nested_document(self, config, depth):
        """Test parsing and converting a document nested close to the limit."""
        result = build_fragments("<a>" * depth + "</a>" * depth, config=config)

        assert result.element_count == depth
        assert result.to_dict()["summary"]["element_count"] == depth

    def test_internal_subset_stays_out_of_document(self):
        """Test that comments and PIs of the internal subset are not content."""
        xml = "<!DOCTYPE r [<!-- note --><?pi x?>]><r/>"

        result = build_fragments(xml)

        assert [node.to_dict()["type"] for node in result.fragments] == [
            "doctype", "element"
        ]

    def test_iter_fragments(self):
        """Test the streaming function."""
        fragments = list(iter_fragments(
            ATOM_FEED,
            WhitespaceTextFilter(ElementNameFilter("entry")),
            FragmentBuilderConfig.deep_scan(),
        ))

        assert [f.find_child("id").get_text() for f in fragments] == [
            "urn:1", "urn:2"
        ]


@pytest.mark.integration
class TestAtomFeedSelection:
    """Test selecting entries from a realistic feed."""

    def test_entries_selected_with_whitespace_removed(self):
        """Test a deep scan combined with whitespace stripping."""
        policy = WhitespaceTextFilter(
            ElementNameFilter("entry", namespace_uri="http://www.w3.org/2005/Atom")
        )
        result = build_fragments(ATOM_FEED, policy, FragmentBuilderConfig.deep_scan())

        first, second = result.elements
        assert [child.name for child in first.content] == ["title", "id"]
        assert first.find_child("title").get_text() == "First"
        assert second.namespace_uri == "http://www.w3.org/2005/Atom"
        assert result.document.doc_type is None

    def test_top_level_content_kept_on_request(self):
        """Test that content beside the selections can be kept."""
        policy = WhitespaceTextFilter(
            ElementNameFilter("entry", include_top_level_content=True)
        )
        result = build_fragments(ATOM_FEED, policy, FragmentBuilderConfig.deep_scan())

        kinds = [node.to_dict()["type"] for node in result.fragments]
        assert kinds == ["text", "comment", "element", "element"]

    def test_text_rewrite(self):
        """Test rewriting text inside the selected fragments."""
        policy = TextTransformFilter(
            str.strip, WhitespaceTextFilter(ElementNameFilter("title"))
        )
        result = build_fragments(ATOM_FEED, policy, FragmentBuilderConfig.deep_scan())

        assert [title.get_text() for title in result.elements] == [
            "Example Feed", "First", "Second"
        ]

    def test_without_deep_scan_nothing_matches(self):
        """Test that entries below a rejected root are not selected by default."""
        result = build_fragments(ATOM_FEED, ElementNameFilter("entry"))

        assert result.is_empty


class TestFragmentBuilder:
    """Test the Level 2 builder class."""

    def test_defaults(self):
        """Test default configuration and generated correlation ID."""
        builder = FragmentBuilder()

        assert builder.config == FragmentBuilderConfig()
        assert builder.correlation_id is not None
        assert len(builder.correlation_id) == 12

    def test_correlation_tracking_disabled(self):
        """Test that no ID is generated when tracking is off."""
        config = FragmentBuilderConfig().override(
            global__enable_correlation_tracking=False
        )

        assert FragmentBuilder(config=config).correlation_id is None

    def test_explicit_correlation_id(self):
        """Test that a given correlation ID reaches the result."""
        result = FragmentBuilder(correlation_id="fixed").build("<r/>")

        assert result.correlation_id == "fixed"

    def test_reuse(self):
        """Test that one builder serves several inputs."""
        builder = FragmentBuilder(ElementNameFilter("r"))

        assert builder.build("<r/>").element_count == 1
        assert builder.build("<x/>").is_empty

    def test_with_filter(self):
        """Test deriving a builder with another filter."""
        builder = FragmentBuilder(correlation_id="keep")
        derived = builder.with_filter(ElementNameFilter("x"))

        assert derived.correlation_id == "keep"
        assert derived.config is builder.config
        assert derived.build("<r/>").is_empty

    def test_with_config(self):
        """Test deriving a builder with configuration overrides."""
        builder = FragmentBuilder(ElementNameFilter("entry"))
        derived = builder.with_config(builder__scan_rejected_subtrees=True)

        assert derived.fragment_filter is builder.fragment_filter
        assert len(derived.build(ATOM_FEED).elements) == 2
        assert builder.build(ATOM_FEED).is_empty

    def test_with_config_invalid(self):
        """Test that invalid overrides are rejected."""
        with pytest.raises(ConfigValidationError):
            FragmentBuilder().with_config(builder__max_depth=-1)

    def test_source_config_applied(self):
        """Test that source settings reach the tokenizer."""
        xml = '<!DOCTYPE r [<!ENTITY e "v">]><r>&e;</r>'
        builder = FragmentBuilder(
            config=FragmentBuilderConfig().override(source__expand_entities=True)
        )

        assert builder.build(xml).elements[0].get_text() == "v"

    def test_iter_fragments(self, tmp_path):
        """Test streaming fragments from a path."""
        path = Path(tmp_path) / "doc.xml"
        path.write_bytes(b"<r><a/><b/></r>")
        builder = FragmentBuilder(
            ElementNameFilter(["a", "b"]), FragmentBuilderConfig.deep_scan()
        )

        assert [f.name for f in builder.iter_fragments(path)] == ["a", "b"]
