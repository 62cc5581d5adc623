"""Filtered tree builder engine.

This module implements the state machine that walks an event stream once,
consults a ``FragmentFilter`` at every event, and materializes only the
accepted content into a content tree.

The engine keeps a stack of frames, one per open element plus a bottom frame
for the document itself. Each frame has a mode:

* ``OUTSIDE``: no accepted element is open; children are decided with the
  filter's ``include_*`` methods and kept content becomes a top-level
  fragment.
* ``INSIDE``: the frame's element was accepted; children are decided with the
  ``prune_*`` methods and kept content is appended to that element.
* ``SUPPRESSED``: the frame's element was dropped; its whole subtree is
  consumed without further filter queries.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, Iterator, List, Optional

from xml_stream_filter.events import EventType, XMLEvent
from xml_stream_filter.filters import DefaultFragmentFilter, FragmentFilter
from xml_stream_filter.shared import (
    BuilderConfig,
    BuildMetrics,
    DepthLimitExceededError,
    DiagnosticEntry,
    DiagnosticSeverity,
    FragmentBuildError,
    MalformedStreamError,
    StructuralError,
    get_logger,
)

from .nodes import (
    CDATA,
    Comment,
    Content,
    DocType,
    Document,
    Element,
    EntityRef,
    ProcessingInstruction,
    Text,
)

MS_PER_SECOND = 1000

_LEAF_EVENTS = (
    EventType.TEXT,
    EventType.CDATA,
    EventType.COMMENT,
    EventType.ENTITY_REF,
    EventType.PROCESSING_INSTRUCTION,
)


class FrameMode(Enum):
    """Filtering mode of a builder stack frame."""

    OUTSIDE = auto()      # Children decided by include_* methods
    INSIDE = auto()       # Children decided by prune_* methods
    SUPPRESSED = auto()   # Children consumed without queries


@dataclass
class Frame:
    """One entry of the builder stack."""

    mode: FrameMode
    depth: int
    node: Optional[Element] = None
    start_event: Optional[XMLEvent] = None

    def __post_init__(self) -> None:
        if self.mode is FrameMode.INSIDE and self.node is None:
            raise ValueError("INSIDE frames must hold the accepted element")

    @property
    def element(self) -> Element:
        """Get the accepted element that kept content is appended to.

        Raises:
            ValueError: If the frame did not accept an element
        """
        if self.node is None:
            raise ValueError(
                f"{self.mode.name} frame at depth {self.depth} has no element"
            )
        return self.node


@dataclass
class _BuildState:
    """Mutable state owned by a single traversal."""

    stack: List[Frame]
    document: Optional[Document]
    metrics: BuildMetrics = field(default_factory=BuildMetrics)
    last_event: Optional[XMLEvent] = None
    doctype_seen: bool = False
    element_seen: bool = False

    @property
    def depth(self) -> int:
        """Depth of content at the current position (open element count)."""
        return len(self.stack) - 1


@dataclass
class BuildResult:
    """Result of a completed build.

    Only produced for streams that were consumed completely and balanced; a
    failing build raises instead of returning a partial tree.
    """

    document: Document
    metrics: BuildMetrics = field(default_factory=BuildMetrics)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    correlation_id: Optional[str] = None

    @property
    def fragments(self) -> List[Content]:
        """Get the top-level content in document order."""
        return list(self.document.content)

    @property
    def elements(self) -> List[Element]:
        """Get the top-level elements in document order."""
        return self.document.root_elements

    @property
    def element_count(self) -> int:
        """Count all elements in the built tree."""
        return self.document.element_count

    @property
    def is_empty(self) -> bool:
        """Check whether the filter kept nothing at all."""
        return len(self.document) == 0

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        depth: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            depth=depth,
            details=details,
            correlation_id=self.correlation_id,
        ))

    def get_diagnostics_by_severity(
        self, severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the build."""
        return {
            "fragment_count": len(self.document),
            "element_count": self.element_count,
            "has_doctype": self.document.doc_type is not None,
            "metrics": self.metrics.to_dict(),
            "diagnostic_count": len(self.diagnostics),
            "correlation_id": self.correlation_id,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary representation."""
        return {
            "fragments": [fragment.to_dict() for fragment in self.document.content],
            "summary": self.summary(),
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
        }


class FilteredTreeBuilder:
    """Builds content trees from event streams under a filter policy.

    A builder holds no per-build state, so one instance can serve several
    builds, including concurrent ones, provided its filter allows it.

    Args:
        fragment_filter: Policy deciding what is kept; keeps everything when
            omitted
        config: Builder configuration
        correlation_id: Optional correlation ID for build tracking
    """

    def __init__(
        self,
        fragment_filter: Optional[FragmentFilter] = None,
        config: Optional[BuilderConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.fragment_filter = fragment_filter or DefaultFragmentFilter()
        self.config = config or BuilderConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "filtered_tree_builder")

    def build(self, events: Iterable[XMLEvent]) -> BuildResult:
        """Consume an event stream and build the filtered content tree.

        Args:
            events: Event source or any iterable of events

        Returns:
            BuildResult holding the document with every kept fragment

        Raises:
            MalformedStreamError: The stream is not well-formed
            StructuralError: The stream ended with open elements
            DepthLimitExceededError: Nesting exceeded ``max_depth``
        """
        start_time = time.time()
        document = Document()
        state = self._new_state(document)

        self.logger.info(
            "Starting filtered tree build",
            extra={
                "filter": type(self.fragment_filter).__name__,
                "scan_rejected_subtrees": self.config.scan_rejected_subtrees,
            }
        )

        for _ in self._run(state, events):
            pass

        result = BuildResult(
            document=document,
            metrics=state.metrics,
            correlation_id=self.correlation_id,
        )
        result.metrics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND

        if state.metrics.events_processed == 0 and self.config.collect_metrics:
            result.add_diagnostic(
                DiagnosticSeverity.INFO,
                "Event stream was empty",
                "filtered_tree_builder",
            )
        elif result.is_empty:
            result.add_diagnostic(
                DiagnosticSeverity.INFO,
                "Filter did not keep any content",
                "filtered_tree_builder",
                details={"filter": type(self.fragment_filter).__name__},
            )

        self.logger.info(
            "Filtered tree build completed",
            extra={
                "fragment_count": len(document),
                "element_count": result.element_count,
                "processing_time_ms": result.metrics.processing_time_ms,
            }
        )
        return result

    def iter_fragments(self, events: Iterable[XMLEvent]) -> Iterator[Content]:
        """Yield each top-level fragment as soon as it is complete.

        Fragments are detached nodes rather than children of a document, so
        nothing is retained between yields. Stopping iteration early stops
        consuming the event stream.

        Args:
            events: Event source or any iterable of events

        Yields:
            Completed top-level content nodes in document order
        """
        state = self._new_state(None)
        yield from self._run(state, events)

    # Traversal

    def _new_state(self, document: Optional[Document]) -> _BuildState:
        return _BuildState(
            stack=[Frame(mode=FrameMode.OUTSIDE, depth=-1)],
            document=document,
        )

    def _run(self, state: _BuildState, events: Iterable[XMLEvent]) -> Iterator[Content]:
        try:
            for event in events:
                if not isinstance(event, XMLEvent):
                    raise MalformedStreamError(
                        f"Event stream produced {type(event).__name__}, "
                        f"expected XMLEvent"
                    )
                fragment = self._process_event(state, event)
                state.last_event = event
                if self.config.collect_metrics:
                    state.metrics.events_processed += 1
                if fragment is not None:
                    yield fragment

            if len(state.stack) > 1:
                open_frames = len(state.stack) - 1
                raise StructuralError(
                    f"Event stream ended with {open_frames} unclosed element(s)",
                    open_frames=open_frames,
                )
        except FragmentBuildError as e:
            if e.depth is None:
                e.depth = state.depth
            if e.last_event is None:
                e.last_event = state.last_event
            self.logger.error(
                "Filtered tree build failed",
                extra={
                    "error_type": type(e).__name__,
                    "depth": e.depth,
                    "last_event": (
                        e.last_event.describe() if e.last_event else None
                    ),
                },
                exc_info=False,
            )
            raise

    def _process_event(self, state: _BuildState, event: XMLEvent) -> Optional[Content]:
        """Apply one event to the build state.

        Returns:
            A top-level fragment completed by this event, if any
        """
        if event.type == EventType.ELEMENT_START:
            self._start_element(state, event)
            return None
        if event.type == EventType.ELEMENT_END:
            return self._end_element(state, event)
        if event.type == EventType.DOCTYPE:
            return self._process_doctype(state, event)
        if event.type in _LEAF_EVENTS:
            return self._process_leaf(state, event)
        raise MalformedStreamError(f"Unsupported event type {event.type.name}")

    def _start_element(self, state: _BuildState, event: XMLEvent) -> None:
        depth = state.depth
        if depth >= self.config.max_depth:
            raise DepthLimitExceededError(
                f"Element nesting exceeds maximum depth {self.config.max_depth}",
                limit=self.config.max_depth,
                depth=depth,
                last_event=state.last_event,
            )

        state.element_seen = True
        parent = state.stack[-1]
        name = event.name or ""

        if parent.mode is FrameMode.SUPPRESSED:
            frame = Frame(FrameMode.SUPPRESSED, depth, start_event=event)
            self._count_discarded(state)
        elif parent.mode is FrameMode.OUTSIDE:
            self._count_query(state)
            if self.fragment_filter.include_element(depth, name, event.namespace):
                element = self._create_element(state, event)
                self._attach_top_level(state, element)
                frame = Frame(FrameMode.INSIDE, depth, element, event)
            elif self.config.scan_rejected_subtrees:
                frame = Frame(FrameMode.OUTSIDE, depth, start_event=event)
                self._count_discarded(state)
            else:
                frame = Frame(FrameMode.SUPPRESSED, depth, start_event=event)
                self._count_discarded(state)
        else:
            self._count_query(state)
            if self.fragment_filter.prune_element(depth, name, event.namespace):
                frame = Frame(FrameMode.SUPPRESSED, depth, start_event=event)
                self._count_discarded(state)
            else:
                element = self._create_element(state, event)
                parent.element.add_content(element)
                frame = Frame(FrameMode.INSIDE, depth, element, event)

        if self.logger.is_debug_enabled():
            self.logger.debug(
                "Element start",
                extra={"element": event.describe(), "depth": depth,
                       "mode": frame.mode.name}
            )

        state.stack.append(frame)
        if self.config.collect_metrics:
            state.metrics.frames_pushed += 1
            state.metrics.max_depth_seen = max(state.metrics.max_depth_seen, depth)

    def _end_element(self, state: _BuildState, event: XMLEvent) -> Optional[Content]:
        if len(state.stack) == 1:
            raise MalformedStreamError(
                "End of element without a matching start",
                depth=state.depth,
                last_event=state.last_event,
            )

        frame = state.stack[-1]
        start = frame.start_event
        if (
            event.name is not None
            and start is not None
            and (event.name, event.namespace.uri) != (start.name, start.namespace.uri)
        ):
            raise MalformedStreamError(
                f"End of element {event.qualified_name!r} does not match "
                f"open element {start.qualified_name!r}",
                depth=state.depth,
                last_event=state.last_event,
            )

        state.stack.pop()
        if self.config.collect_metrics:
            state.metrics.frames_popped += 1

        if frame.mode is FrameMode.INSIDE and state.stack[-1].mode is FrameMode.OUTSIDE:
            return frame.node
        return None

    def _process_doctype(self, state: _BuildState, event: XMLEvent) -> Optional[Content]:
        if state.doctype_seen:
            raise MalformedStreamError(
                "Document type declared more than once",
                depth=state.depth,
                last_event=state.last_event,
            )
        if state.element_seen:
            raise MalformedStreamError(
                "Document type declared after the first element",
                depth=state.depth,
                last_event=state.last_event,
            )
        state.doctype_seen = True

        self._count_query(state)
        if not self.fragment_filter.include_doctype():
            self._count_discarded(state)
            return None

        doc_type = DocType(
            element_name=event.name,
            public_id=event.public_id,
            system_id=event.system_id,
        )
        self._count_created(state)
        self._attach_top_level(state, doc_type)
        return doc_type

    def _process_leaf(self, state: _BuildState, event: XMLEvent) -> Optional[Content]:
        frame = state.stack[-1]
        if frame.mode is FrameMode.SUPPRESSED:
            self._count_discarded(state)
            return None

        self._count_query(state)
        if frame.mode is FrameMode.OUTSIDE:
            node = self._decide_outside(state.depth, event)
        else:
            node = self._decide_inside(state.depth, event)

        if node is None:
            self._count_discarded(state)
            return None

        self._count_created(state)
        if frame.mode is FrameMode.INSIDE:
            frame.element.add_content(node)
            return None

        self._attach_top_level(state, node)
        return node

    # Filter decisions

    def _decide_outside(self, depth: int, event: XMLEvent) -> Optional[Content]:
        policy = self.fragment_filter
        text = event.text or ""

        if event.type == EventType.TEXT:
            kept = policy.include_text(depth, text)
            return None if kept is None else Text(kept)
        if event.type == EventType.CDATA:
            kept = policy.include_cdata(depth, text)
            return None if kept is None else CDATA(kept)
        if event.type == EventType.COMMENT:
            kept = policy.include_comment(depth, text)
            return None if kept is None else Comment(kept)
        if event.type == EventType.ENTITY_REF:
            if not policy.include_entity_ref(depth, event.name or ""):
                return None
            return self._create_entity_ref(event)
        if not policy.include_processing_instruction(depth, event.target or ""):
            return None
        return ProcessingInstruction(event.target or "", event.data)

    def _decide_inside(self, depth: int, event: XMLEvent) -> Optional[Content]:
        policy = self.fragment_filter
        text = event.text or ""

        if event.type == EventType.TEXT:
            kept = policy.prune_text(depth, text)
            return None if kept is None else Text(kept)
        if event.type == EventType.CDATA:
            kept = policy.prune_cdata(depth, text)
            return None if kept is None else CDATA(kept)
        if event.type == EventType.COMMENT:
            kept = policy.prune_comment(depth, text)
            return None if kept is None else Comment(kept)
        if event.type == EventType.ENTITY_REF:
            if policy.prune_entity_ref(depth, event.name or ""):
                return None
            return self._create_entity_ref(event)
        if policy.prune_processing_instruction(depth, event.target or ""):
            return None
        return ProcessingInstruction(event.target or "", event.data)

    # Node creation helpers

    def _create_element(self, state: _BuildState, event: XMLEvent) -> Element:
        self._count_created(state)
        return Element(
            name=event.name or "",
            namespace=event.namespace,
            attributes=dict(event.attributes),
        )

    @staticmethod
    def _create_entity_ref(event: XMLEvent) -> EntityRef:
        return EntityRef(
            event.name or "", public_id=event.public_id, system_id=event.system_id
        )

    @staticmethod
    def _attach_top_level(state: _BuildState, node: Content) -> None:
        if state.document is not None:
            state.document.add_content(node)

    # Metrics

    def _count_query(self, state: _BuildState) -> None:
        if self.config.collect_metrics:
            state.metrics.filter_queries += 1

    def _count_created(self, state: _BuildState) -> None:
        if self.config.collect_metrics:
            state.metrics.nodes_created += 1

    def _count_discarded(self, state: _BuildState) -> None:
        if self.config.collect_metrics:
            state.metrics.events_discarded += 1

