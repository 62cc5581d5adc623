"""Tests for event types."""

import pytest

from xml_stream_filter.events.types import (
    DESCRIBE_TEXT_LIMIT,
    NO_NAMESPACE,
    XML_NAMESPACE,
    EventPosition,
    EventType,
    Namespace,
    XMLEvent,
)


class TestNamespace:
    """Test namespace bindings."""

    def test_no_namespace(self):
        """Test the empty namespace constant."""
        assert NO_NAMESPACE.prefix == ""
        assert NO_NAMESPACE.uri == ""
        assert NO_NAMESPACE.is_default
        assert str(NO_NAMESPACE) == ""

    def test_prefixed_namespace(self):
        """Test a prefixed namespace."""
        namespace = Namespace("atom", "http://www.w3.org/2005/Atom")

        assert not namespace.is_default
        assert str(namespace) == "atom={http://www.w3.org/2005/Atom}"

    def test_default_namespace_string(self):
        """Test rendering of an unprefixed namespace with a URI."""
        assert str(Namespace(uri="urn:x")) == "{urn:x}"

    def test_prefix_requires_uri(self):
        """Test that a prefix cannot be bound to nothing."""
        with pytest.raises(ValueError, match="must have a URI"):
            Namespace("p", "")

    def test_equality_and_hash(self):
        """Test value semantics."""
        assert Namespace("a", "urn:a") == Namespace("a", "urn:a")
        assert Namespace("a", "urn:a") != Namespace("b", "urn:a")
        assert len({Namespace("a", "urn:a"), Namespace("a", "urn:a")}) == 1

    def test_xml_namespace(self):
        """Test the predefined xml namespace."""
        assert XML_NAMESPACE.prefix == "xml"
        assert XML_NAMESPACE.uri == "http://www.w3.org/XML/1998/namespace"


class TestEventPosition:
    """Test event positions."""

    def test_valid_position(self):
        """Test creating and serializing a position."""
        position = EventPosition(line=2, column=5)

        assert position.to_dict() == {"line": 2, "column": 5}

    def test_invalid_line(self):
        """Test that lines are 1-based."""
        with pytest.raises(ValueError, match="Line number must be >= 1"):
            EventPosition(line=0, column=0)

    def test_invalid_column(self):
        """Test that columns are not negative."""
        with pytest.raises(ValueError, match="Column number must be >= 0"):
            EventPosition(line=1, column=-1)


class TestXMLEventFactories:
    """Test the event factory methods and validation."""

    def test_element_start(self):
        """Test element start events."""
        namespace = Namespace("a", "urn:a")
        event = XMLEvent.element_start("item", namespace, {"id": "1"})

        assert event.type == EventType.ELEMENT_START
        assert event.name == "item"
        assert event.namespace == namespace
        assert event.attributes == {"id": "1"}
        assert event.qualified_name == "a:item"
        assert event.is_element_boundary

    def test_element_start_copies_attributes(self):
        """Test that later changes to the caller's mapping are not seen."""
        attributes = {"id": "1"}
        event = XMLEvent.element_start("item", attributes=attributes)
        attributes["id"] = "2"

        assert event.attributes["id"] == "1"

    def test_element_start_requires_name(self):
        """Test that element starts must be named."""
        with pytest.raises(ValueError, match="requires a name"):
            XMLEvent.element_start("")

    def test_element_end_without_name(self):
        """Test that element ends may omit the name."""
        event = XMLEvent.element_end()

        assert event.type == EventType.ELEMENT_END
        assert event.name is None
        assert event.qualified_name is None
        assert event.is_element_boundary

    def test_text_events(self):
        """Test text, CDATA and comment events."""
        assert XMLEvent.text_event("hi").text == "hi"
        assert XMLEvent.cdata("<x>").type == EventType.CDATA
        assert XMLEvent.comment(" note ").type == EventType.COMMENT
        assert not XMLEvent.text_event("hi").is_element_boundary

    def test_empty_text_allowed(self):
        """Test that empty text is valid content."""
        assert XMLEvent.text_event("").text == ""

    def test_text_requires_string(self):
        """Test that text events need text."""
        with pytest.raises(ValueError, match="TEXT event requires text"):
            XMLEvent(EventType.TEXT)

    def test_entity_ref(self):
        """Test entity reference events."""
        event = XMLEvent.entity_ref("nbsp", system_id="chars.ent")

        assert event.name == "nbsp"
        assert event.system_id == "chars.ent"
        with pytest.raises(ValueError, match="requires a name"):
            XMLEvent.entity_ref("")

    def test_processing_instruction(self):
        """Test processing instruction events."""
        event = XMLEvent.processing_instruction("xml-stylesheet", 'href="a.css"')

        assert event.target == "xml-stylesheet"
        assert event.data == 'href="a.css"'
        with pytest.raises(ValueError, match="requires a target"):
            XMLEvent.processing_instruction("")

    def test_doctype(self):
        """Test document type events."""
        event = XMLEvent.doctype("html", "-//W3C//DTD XHTML 1.0//EN", "xhtml1.dtd")

        assert event.type == EventType.DOCTYPE
        assert event.name == "html"
        assert event.public_id == "-//W3C//DTD XHTML 1.0//EN"
        assert event.system_id == "xhtml1.dtd"

    def test_events_are_immutable(self):
        """Test that events cannot be changed after creation."""
        event = XMLEvent.text_event("hi")

        with pytest.raises(AttributeError):
            event.text = "bye"  # type: ignore[misc]

    def test_events_are_hashable(self):
        """Test that events with attributes can be hashed."""
        event = XMLEvent.element_start("item", attributes={"id": "1"})

        assert hash(event) == hash(XMLEvent.element_start("item", attributes={"id": "2"}))


class TestXMLEventInspection:
    """Test describe() and to_dict()."""

    def test_describe_element(self):
        """Test element descriptions include the position."""
        event = XMLEvent.element_start("root", position=EventPosition(1, 0))

        assert event.describe() == "ELEMENT_START(root)@1:0"

    def test_describe_unnamed_end(self):
        """Test descriptions of unnamed end events."""
        assert XMLEvent.element_end().describe() == "ELEMENT_END"

    def test_describe_truncates_text(self):
        """Test that long text is shortened."""
        event = XMLEvent.text_event("x" * (DESCRIBE_TEXT_LIMIT + 10))

        description = event.describe()
        assert description.startswith("TEXT('")
        assert "x" * DESCRIBE_TEXT_LIMIT + "..." in description
        assert "x" * (DESCRIBE_TEXT_LIMIT + 1) not in description

    def test_describe_other_events(self):
        """Test descriptions of non-text events."""
        assert XMLEvent.processing_instruction("pi").describe() == (
            "PROCESSING_INSTRUCTION(pi)"
        )
        assert XMLEvent.entity_ref("amp2").describe() == "ENTITY_REF(amp2)"
        assert XMLEvent.doctype("html").describe() == "DOCTYPE(html)"

    def test_to_dict(self):
        """Test dictionary conversion."""
        event = XMLEvent.element_start(
            "entry",
            Namespace("", "urn:feed"),
            {"id": "7"},
            EventPosition(4, 2),
        )

        assert event.to_dict() == {
            "type": "ELEMENT_START",
            "name": "entry",
            "namespace": {"prefix": "", "uri": "urn:feed"},
            "attributes": {"id": "7"},
            "position": {"line": 4, "column": 2},
        }

    def test_to_dict_text(self):
        """Test dictionary conversion omits unset fields."""
        assert XMLEvent.text_event("hi").to_dict() == {"type": "TEXT", "text": "hi"}
