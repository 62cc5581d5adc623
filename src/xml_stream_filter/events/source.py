"""Event source adapters.

An event source turns some input into a forward-only, pull-based sequence of
``XMLEvent`` objects. Exhausting the iterator is the end-of-stream signal.
Malformed input is reported by raising ``MalformedStreamError`` before any
further event is yielded.
"""

import re
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path
from typing import (
    IO,
    Any,
    Deque,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Tuple,
    Union,
)
from xml.parsers import expat

from xml_stream_filter.shared import (
    EventSourceConfig,
    MalformedStreamError,
    get_logger,
)

from .types import NO_NAMESPACE, EventPosition, Namespace, XMLEvent

InputType = Union[str, bytes, Path, IO[Any]]

# Separator expat places between namespace URI, local name and prefix
_NS_SEPARATOR = " "
_ENTITY_REF_PATTERN = re.compile(r"^&([^;#&\s]+);$")


class EventSource(ABC):
    """Base class for all event sources.

    Event sources are single-use: the underlying stream cannot be rewound, so
    iterating a second time raises ``RuntimeError``.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self.events_yielded = 0
        self._consumed = False

    def __iter__(self) -> Iterator[XMLEvent]:
        if self._consumed:
            raise RuntimeError(
                f"{type(self).__name__} has already been consumed"
            )
        self._consumed = True
        for event in self._generate():
            self.events_yielded += 1
            yield event

    @abstractmethod
    def _generate(self) -> Iterator[XMLEvent]:
        """Produce events in document order."""

    @property
    def consumed(self) -> bool:
        """Check whether iteration has started."""
        return self._consumed


class IterableEventSource(EventSource):
    """Event source over an already tokenized sequence of events."""

    def __init__(
        self,
        events: Iterable[XMLEvent],
        correlation_id: Optional[str] = None
    ) -> None:
        super().__init__(correlation_id)
        self._events = events

    def _generate(self) -> Iterator[XMLEvent]:
        for index, event in enumerate(self._events):
            if not isinstance(event, XMLEvent):
                raise MalformedStreamError(
                    f"Item {index} of the event stream is not an XMLEvent "
                    f"(got {type(event).__name__})"
                )
            yield event


class ExpatEventSource(EventSource):
    """Streaming event source backed by the expat tokenizer.

    Input is fed to expat in ``buffer_size`` chunks and the events produced by
    each chunk are yielded before the next chunk is read, so memory use is
    bounded by the chunk size plus the longest text run.

    Args:
        input_data: XML text (``str``), encoded XML (``bytes``), a ``Path``,
            or a binary or text file-like object
        config: Event source configuration
        correlation_id: Optional correlation ID for build tracking
    """

    def __init__(
        self,
        input_data: InputType,
        config: Optional[EventSourceConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        super().__init__(correlation_id)
        if not isinstance(input_data, (str, bytes, Path)) and not hasattr(
            input_data, "read"
        ):
            raise TypeError(
                f"Unsupported input type for ExpatEventSource: "
                f"{type(input_data).__name__}"
            )
        self.input_data = input_data
        self.config = config or EventSourceConfig()
        self.logger = get_logger(__name__, correlation_id, "expat_event_source")

        # XML declaration details, filled in once the prolog has been read
        self.xml_declaration: Optional[Dict[str, Any]] = None

        self._queue: Deque[XMLEvent] = deque()
        self._pending_text: List[str] = []
        self._pending_position: Optional[EventPosition] = None
        self._cdata_parts: Optional[List[str]] = None
        self._cdata_position: Optional[EventPosition] = None
        self._in_dtd = False
        self._parser: Any = None

    def _generate(self) -> Iterator[XMLEvent]:
        self._parser = self._create_parser()
        chunks_fed = 0

        self.logger.debug(
            "Starting expat event stream",
            extra={
                "input_type": type(self.input_data).__name__,
                "buffer_size": self.config.buffer_size,
            }
        )

        try:
            final_chunk: Union[str, bytes] = b""
            for chunk in self._iter_chunks():
                if isinstance(chunk, str):
                    final_chunk = ""
                self._parser.Parse(chunk, False)
                chunks_fed += 1
                yield from self._drain()

            self._parser.Parse(final_chunk, True)
            self._flush_text()
            yield from self._drain()
        except expat.ExpatError as e:
            self._queue.clear()
            position = {"line": e.lineno, "column": e.offset}
            self.logger.warning(
                "Expat reported malformed input",
                extra={"code": e.code, "position": position}
            )
            raise MalformedStreamError(
                f"Malformed XML: {expat.ErrorString(e.code)}",
                position=position,
            ) from e
        finally:
            self._parser = None

        self.logger.debug(
            "Expat event stream completed",
            extra={"chunks_fed": chunks_fed, "events": self.events_yielded}
        )

    def _iter_chunks(self) -> Iterator[Union[str, bytes]]:
        size = self.config.buffer_size
        data = self.input_data

        if isinstance(data, (str, bytes)):
            for start in range(0, len(data), size):
                yield data[start:start + size]
        elif isinstance(data, Path):
            with data.open("rb") as handle:
                yield from _read_chunks(handle, size)
        else:
            yield from _read_chunks(data, size)

    def _create_parser(self) -> Any:
        if self.config.namespace_aware:
            parser = expat.ParserCreate(namespace_separator=_NS_SEPARATOR)
            parser.namespace_prefixes = True
        else:
            parser = expat.ParserCreate()

        parser.buffer_text = False
        parser.ordered_attributes = False

        parser.XmlDeclHandler = self._handle_xml_decl
        parser.StartDoctypeDeclHandler = self._handle_start_doctype
        parser.EndDoctypeDeclHandler = self._handle_end_doctype
        parser.StartElementHandler = self._handle_start_element
        parser.EndElementHandler = self._handle_end_element
        parser.CharacterDataHandler = self._handle_characters
        parser.CommentHandler = self._handle_comment
        parser.ProcessingInstructionHandler = self._handle_pi
        parser.StartCdataSectionHandler = self._handle_start_cdata
        parser.EndCdataSectionHandler = self._handle_end_cdata
        parser.SkippedEntityHandler = self._handle_skipped_entity

        # A plain DefaultHandler stops expat from expanding internal entities
        # and hands it the raw reference instead.
        if not self.config.expand_entities:
            parser.DefaultHandler = self._handle_default

        return parser

    # Queue management

    def _position(self) -> EventPosition:
        return EventPosition(
            line=max(self._parser.CurrentLineNumber, 1),
            column=max(self._parser.CurrentColumnNumber, 0),
        )

    def _emit(self, event: XMLEvent) -> None:
        self._flush_text()
        self._queue.append(event)

    def _drain(self) -> Iterator[XMLEvent]:
        while self._queue:
            yield self._queue.popleft()

    def _flush_text(self) -> None:
        if not self._pending_text:
            return
        text = "".join(self._pending_text)
        position = self._pending_position
        self._pending_text = []
        self._pending_position = None
        self._queue.append(XMLEvent.text_event(text, position=position))

    # Expat callbacks

    def _handle_xml_decl(
        self, version: Optional[str], encoding: Optional[str], standalone: int
    ) -> None:
        self.xml_declaration = {
            "version": version,
            "encoding": encoding,
            "standalone": None if standalone == -1 else bool(standalone),
        }

    def _handle_start_doctype(
        self,
        doctype_name: str,
        system_id: Optional[str],
        public_id: Optional[str],
        has_internal_subset: int
    ) -> None:
        self._emit(XMLEvent.doctype(
            doctype_name,
            public_id=public_id,
            system_id=system_id,
            position=self._position(),
        ))
        self._in_dtd = True

    def _handle_end_doctype(self) -> None:
        self._in_dtd = False

    def _handle_start_element(self, name: str, attributes: Dict[str, str]) -> None:
        local_name, namespace = self._split_name(name)
        converted = {
            self._attribute_name(key): value for key, value in attributes.items()
        }
        self._emit(XMLEvent.element_start(
            local_name, namespace, converted, position=self._position()
        ))

    def _handle_end_element(self, name: str) -> None:
        local_name, namespace = self._split_name(name)
        self._emit(XMLEvent.element_end(
            local_name, namespace, position=self._position()
        ))

    def _handle_characters(self, data: str) -> None:
        if self._cdata_parts is not None:
            self._cdata_parts.append(data)
            return
        if not self.config.coalesce_text:
            self._queue.append(XMLEvent.text_event(data, position=self._position()))
            return
        if not self._pending_text:
            self._pending_position = self._position()
        self._pending_text.append(data)

    # Comments and PIs of the internal subset belong to the DocType

    def _handle_comment(self, data: str) -> None:
        if self._in_dtd:
            return
        self._emit(XMLEvent.comment(data, position=self._position()))

    def _handle_pi(self, target: str, data: str) -> None:
        if self._in_dtd:
            return
        self._emit(XMLEvent.processing_instruction(
            target, data or None, position=self._position()
        ))

    def _handle_start_cdata(self) -> None:
        self._flush_text()
        self._cdata_parts = []
        self._cdata_position = self._position()

    def _handle_end_cdata(self) -> None:
        text = "".join(self._cdata_parts or [])
        position = self._cdata_position
        self._cdata_parts = None
        self._cdata_position = None
        self._emit(XMLEvent.cdata(text, position=position))

    def _handle_skipped_entity(self, entity_name: str, is_parameter_entity: int) -> None:
        if is_parameter_entity:
            return
        self._emit(XMLEvent.entity_ref(entity_name, position=self._position()))

    def _handle_default(self, data: str) -> None:
        if self._in_dtd:
            return
        match = _ENTITY_REF_PATTERN.match(data)
        if match:
            self._emit(XMLEvent.entity_ref(match.group(1), position=self._position()))

    # Name handling

    def _split_name(self, name: str) -> Tuple[str, Namespace]:
        if not self.config.namespace_aware:
            return name, NO_NAMESPACE
        parts = name.split(_NS_SEPARATOR)
        if len(parts) == 3:
            uri, local_name, prefix = parts
            return local_name, Namespace(prefix, uri)
        if len(parts) == 2:
            uri, local_name = parts
            return local_name, Namespace("", uri)
        return name, NO_NAMESPACE

    def _attribute_name(self, name: str) -> str:
        local_name, namespace = self._split_name(name)
        if namespace.prefix:
            return f"{namespace.prefix}:{local_name}"
        if namespace.uri:
            return f"{{{namespace.uri}}}{local_name}"
        return local_name


def _read_chunks(handle: IO[Any], size: int) -> Iterator[Union[str, bytes]]:
    while True:
        chunk = handle.read(size)
        if not chunk:
            return
        yield chunk


def open_event_source(
    input_data: Union[InputType, EventSource, Iterable[XMLEvent]],
    config: Optional[EventSourceConfig] = None,
    correlation_id: Optional[str] = None
) -> EventSource:
    """Pick the event source adapter appropriate for the input.

    ``str`` is treated as XML text, never as a file name; pass a ``Path`` to
    read from disk.

    Args:
        input_data: XML text, bytes, a Path, a file-like object, an existing
            EventSource, or an iterable of XMLEvent objects
        config: Event source configuration for expat-backed inputs
        correlation_id: Optional correlation ID for build tracking

    Returns:
        An unconsumed EventSource
    """
    if isinstance(input_data, EventSource):
        return input_data
    if isinstance(input_data, (str, bytes, Path)) or hasattr(input_data, "read"):
        return ExpatEventSource(input_data, config, correlation_id)  # type: ignore[arg-type]
    if isinstance(input_data, Iterable):
        return IterableEventSource(input_data, correlation_id)
    raise TypeError(f"Cannot create an event source from {type(input_data).__name__}")
