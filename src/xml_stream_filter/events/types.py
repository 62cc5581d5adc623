"""Event types produced by event sources and consumed by the tree builder.

An event is one unit of a forward-only XML token stream. Events are immutable;
the builder never looks ahead or behind.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Mapping, Optional

# Maximum length of text shown when an event is rendered for diagnostics
DESCRIBE_TEXT_LIMIT = 40

XML_NAMESPACE_URI = "http://www.w3.org/XML/1998/namespace"


class EventType(Enum):
    """Kinds of events delivered by an event source."""

    DOCTYPE = auto()                  # <!DOCTYPE ...>
    ELEMENT_START = auto()            # Opening tag (or empty element)
    ELEMENT_END = auto()              # Closing tag (or end of empty element)
    COMMENT = auto()                  # <!-- ... -->
    ENTITY_REF = auto()               # Unexpanded &name;
    CDATA = auto()                    # <![CDATA[ ... ]]>
    TEXT = auto()                     # Character content
    PROCESSING_INSTRUCTION = auto()   # <?target data?>


@dataclass(frozen=True)
class Namespace:
    """XML namespace binding of a prefix to a URI."""

    prefix: str = ""
    uri: str = ""

    def __post_init__(self) -> None:
        """Validate namespace values."""
        if self.prefix and not self.uri:
            raise ValueError("A prefixed namespace must have a URI")

    @property
    def is_default(self) -> bool:
        """Check whether this is the unprefixed namespace."""
        return not self.prefix

    def __str__(self) -> str:
        if not self.uri:
            return ""
        if self.prefix:
            return f"{self.prefix}={{{self.uri}}}"
        return f"{{{self.uri}}}"


NO_NAMESPACE = Namespace()
XML_NAMESPACE = Namespace("xml", XML_NAMESPACE_URI)


@dataclass(frozen=True)
class EventPosition:
    """Location of an event in the source document."""

    line: int
    column: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 0:
            raise ValueError("Column number must be >= 0")

    def to_dict(self) -> Dict[str, int]:
        """Convert position to dictionary representation."""
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True)
class XMLEvent:
    """A single event of an XML event stream.

    Only the fields relevant to ``type`` are populated; use the factory
    classmethods rather than the constructor.
    """

    type: EventType
    name: Optional[str] = None
    namespace: Namespace = NO_NAMESPACE
    text: Optional[str] = None
    target: Optional[str] = None
    data: Optional[str] = None
    attributes: Mapping[str, str] = field(default_factory=dict, hash=False)
    public_id: Optional[str] = None
    system_id: Optional[str] = None
    position: Optional[EventPosition] = None

    def __post_init__(self) -> None:
        """Validate that the fields required by the event type are present."""
        if self.type in (EventType.ELEMENT_START, EventType.ENTITY_REF):
            if not self.name:
                raise ValueError(f"{self.type.name} event requires a name")
        elif self.type in (EventType.TEXT, EventType.CDATA, EventType.COMMENT):
            if not isinstance(self.text, str):
                raise ValueError(f"{self.type.name} event requires text")
        elif self.type == EventType.PROCESSING_INSTRUCTION:
            if not self.target:
                raise ValueError("PROCESSING_INSTRUCTION event requires a target")

    # Factory methods

    @classmethod
    def element_start(
        cls,
        name: str,
        namespace: Namespace = NO_NAMESPACE,
        attributes: Optional[Mapping[str, str]] = None,
        position: Optional[EventPosition] = None,
    ) -> "XMLEvent":
        """Create an ELEMENT_START event."""
        return cls(
            EventType.ELEMENT_START,
            name=name,
            namespace=namespace,
            attributes=dict(attributes or {}),
            position=position,
        )

    @classmethod
    def element_end(
        cls,
        name: Optional[str] = None,
        namespace: Namespace = NO_NAMESPACE,
        position: Optional[EventPosition] = None,
    ) -> "XMLEvent":
        """Create an ELEMENT_END event."""
        return cls(
            EventType.ELEMENT_END, name=name, namespace=namespace, position=position
        )

    @classmethod
    def text_event(
        cls, text: str, position: Optional[EventPosition] = None
    ) -> "XMLEvent":
        """Create a TEXT event."""
        return cls(EventType.TEXT, text=text, position=position)

    @classmethod
    def cdata(cls, text: str, position: Optional[EventPosition] = None) -> "XMLEvent":
        """Create a CDATA event."""
        return cls(EventType.CDATA, text=text, position=position)

    @classmethod
    def comment(
        cls, text: str, position: Optional[EventPosition] = None
    ) -> "XMLEvent":
        """Create a COMMENT event."""
        return cls(EventType.COMMENT, text=text, position=position)

    @classmethod
    def entity_ref(
        cls,
        name: str,
        public_id: Optional[str] = None,
        system_id: Optional[str] = None,
        position: Optional[EventPosition] = None,
    ) -> "XMLEvent":
        """Create an ENTITY_REF event."""
        return cls(
            EventType.ENTITY_REF,
            name=name,
            public_id=public_id,
            system_id=system_id,
            position=position,
        )

    @classmethod
    def processing_instruction(
        cls,
        target: str,
        data: Optional[str] = None,
        position: Optional[EventPosition] = None,
    ) -> "XMLEvent":
        """Create a PROCESSING_INSTRUCTION event."""
        return cls(
            EventType.PROCESSING_INSTRUCTION,
            target=target,
            data=data,
            position=position,
        )

    @classmethod
    def doctype(
        cls,
        name: Optional[str] = None,
        public_id: Optional[str] = None,
        system_id: Optional[str] = None,
        position: Optional[EventPosition] = None,
    ) -> "XMLEvent":
        """Create a DOCTYPE event."""
        return cls(
            EventType.DOCTYPE,
            name=name,
            public_id=public_id,
            system_id=system_id,
            position=position,
        )

    # Inspection helpers

    @property
    def is_element_boundary(self) -> bool:
        """Check whether this event opens or closes an element."""
        return self.type in (EventType.ELEMENT_START, EventType.ELEMENT_END)

    @property
    def qualified_name(self) -> Optional[str]:
        """Get the prefixed element name, e.g. ``atom:feed``."""
        if self.name is None:
            return None
        if self.namespace.prefix:
            return f"{self.namespace.prefix}:{self.name}"
        return self.name

    def describe(self) -> str:
        """Render a short, single-line description for diagnostics."""
        if self.type in (EventType.ELEMENT_START, EventType.ELEMENT_END):
            label = self.qualified_name or ""
            detail = f"{self.type.name}({label})" if label else self.type.name
        elif self.type in (EventType.TEXT, EventType.CDATA, EventType.COMMENT):
            text = self.text or ""
            if len(text) > DESCRIBE_TEXT_LIMIT:
                text = text[:DESCRIBE_TEXT_LIMIT] + "..."
            detail = f"{self.type.name}({text!r})"
        elif self.type == EventType.PROCESSING_INSTRUCTION:
            detail = f"{self.type.name}({self.target})"
        elif self.type == EventType.ENTITY_REF:
            detail = f"{self.type.name}({self.name})"
        else:
            detail = f"{self.type.name}({self.name or ''})"

        if self.position is not None:
            detail += f"@{self.position.line}:{self.position.column}"
        return detail

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary representation."""
        result: Dict[str, Any] = {"type": self.type.name}
        for key in ("name", "text", "target", "data", "public_id", "system_id"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.namespace.uri:
            result["namespace"] = {
                "prefix": self.namespace.prefix, "uri": self.namespace.uri
            }
        if self.attributes:
            result["attributes"] = dict(self.attributes)
        if self.position is not None:
            result["position"] = self.position.to_dict()
        return result
