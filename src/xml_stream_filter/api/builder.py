"""Public building API with progressive disclosure.

Level 1 is a set of module-level functions that build fragments from any
supported input in one call. Level 2 is the ``FragmentBuilder`` class, which
holds a filter and configuration for repeated use.
"""

import uuid
from pathlib import Path
from typing import IO, Any, Iterable, Iterator, Optional, Union

from xml_stream_filter.events import EventSource, XMLEvent, open_event_source
from xml_stream_filter.filters import FragmentFilter
from xml_stream_filter.shared import FragmentBuilderConfig, get_logger
from xml_stream_filter.tree import BuildResult, Content, FilteredTreeBuilder

# Type definitions for input data
InputType = Union[str, bytes, Path, IO[Any], EventSource, Iterable[XMLEvent]]

CORRELATION_ID_LENGTH = 12


def build_fragments(
    input_data: InputType,
    fragment_filter: Optional[FragmentFilter] = None,
    config: Optional[FragmentBuilderConfig] = None,
    correlation_id: Optional[str] = None
) -> BuildResult:
    """Build filtered fragments from any supported input.

    Args:
        input_data: XML text (``str``), encoded XML (``bytes``), a ``Path``,
            a file-like object, an EventSource, or an iterable of events
        fragment_filter: Policy deciding what is kept; keeps everything when
            omitted
        config: Complete configuration; defaults are used when omitted
        correlation_id: Optional correlation ID for build tracking

    Returns:
        BuildResult with the kept fragments

    Examples:
        Keep the whole document:
        >>> result = build_fragments('<root><item>value</item></root>')
        >>> result.elements[0].name
        'root'

        Select elements by name anywhere in the document:
        >>> from xml_stream_filter.filters import ElementNameFilter
        >>> result = build_fragments(
        ...     '<feed><entry>a</entry><entry>b</entry></feed>',
        ...     ElementNameFilter('entry'),
        ...     FragmentBuilderConfig.deep_scan(),
        ... )
        >>> [entry.get_text() for entry in result.elements]
        ['a', 'b']
    """
    return FragmentBuilder(fragment_filter, config, correlation_id).build(input_data)


def build_fragments_from_string(
    xml_string: str,
    fragment_filter: Optional[FragmentFilter] = None,
    config: Optional[FragmentBuilderConfig] = None,
    correlation_id: Optional[str] = None
) -> BuildResult:
    """Build filtered fragments from XML text.

    Raises:
        TypeError: If ``xml_string`` is not a string
    """
    if not isinstance(xml_string, str):
        raise TypeError(f"Expected XML text, got {type(xml_string).__name__}")
    return build_fragments(xml_string, fragment_filter, config, correlation_id)


def build_fragments_from_file(
    file_path: Union[str, Path],
    fragment_filter: Optional[FragmentFilter] = None,
    config: Optional[FragmentBuilderConfig] = None,
    correlation_id: Optional[str] = None
) -> BuildResult:
    """Build filtered fragments from an XML file, streaming it from disk.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"XML file not found: {path}")
    return build_fragments(path, fragment_filter, config, correlation_id)


def iter_fragments(
    input_data: InputType,
    fragment_filter: Optional[FragmentFilter] = None,
    config: Optional[FragmentBuilderConfig] = None,
    correlation_id: Optional[str] = None
) -> Iterator[Content]:
    """Yield top-level fragments as they complete.

    Stop iterating to stop reading the input, e.g. after the first match.
    """
    return FragmentBuilder(fragment_filter, config, correlation_id).iter_fragments(
        input_data
    )


class FragmentBuilder:
    """Reusable builder combining a filter policy with a configuration.

    Examples:
        >>> from xml_stream_filter.filters import WhitespaceTextFilter
        >>> builder = FragmentBuilder(WhitespaceTextFilter())
        >>> result = builder.build('<a>\\n  <b>x</b>\\n</a>')
        >>> len(result.elements[0].content)
        1
    """

    def __init__(
        self,
        fragment_filter: Optional[FragmentFilter] = None,
        config: Optional[FragmentBuilderConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or FragmentBuilderConfig()
        self.fragment_filter = fragment_filter
        if correlation_id is None and self.config.global_.enable_correlation_tracking:
            correlation_id = uuid.uuid4().hex[:CORRELATION_ID_LENGTH]
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "fragment_builder")

    def _tree_builder(self) -> FilteredTreeBuilder:
        return FilteredTreeBuilder(
            self.fragment_filter, self.config.builder, self.correlation_id
        )

    def _event_source(self, input_data: InputType) -> EventSource:
        source = open_event_source(input_data, self.config.source, self.correlation_id)
        self.logger.debug(
            "Opened event source",
            extra={"source_type": type(source).__name__,
                   "input_type": type(input_data).__name__}
        )
        return source

    def build(self, input_data: InputType) -> BuildResult:
        """Build filtered fragments from any supported input."""
        return self._tree_builder().build(self._event_source(input_data))

    def iter_fragments(self, input_data: InputType) -> Iterator[Content]:
        """Yield top-level fragments as they complete."""
        return self._tree_builder().iter_fragments(self._event_source(input_data))

    def with_filter(self, fragment_filter: FragmentFilter) -> "FragmentBuilder":
        """Create a builder sharing this configuration with another filter."""
        return FragmentBuilder(fragment_filter, self.config, self.correlation_id)

    def with_config(self, **overrides: Any) -> "FragmentBuilder":
        """Create a builder with configuration overrides applied.

        Args:
            **overrides: ``component__field`` overrides, see
                ``FragmentBuilderConfig.override``
        """
        return FragmentBuilder(
            self.fragment_filter, self.config.override(**overrides), self.correlation_id
        )
