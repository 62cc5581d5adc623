"""Content tree node types.

The builder produces an ordered forest of these nodes. A parent exclusively
owns its children; the ``parent`` attribute on a child is a lookup link only.
Nodes are appended once and never moved, so adding a node that already has a
parent is rejected.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Deque, Dict, Iterator, List, Optional, Tuple

from xml_stream_filter.events import NO_NAMESPACE, Namespace


class ContentType(Enum):
    """Kinds of nodes that can appear in a content tree."""

    ELEMENT = auto()
    TEXT = auto()
    CDATA = auto()
    COMMENT = auto()
    ENTITY_REF = auto()
    PROCESSING_INSTRUCTION = auto()
    DOCTYPE = auto()


class Content:
    """Base class for every node that can appear in a content tree."""

    content_type: ContentType
    parent: Optional["ContentContainer"] = None

    @property
    def depth(self) -> int:
        """Get the number of element ancestors of this node."""
        depth = 0
        ancestor = self.parent
        while isinstance(ancestor, Element):
            depth += 1
            ancestor = ancestor.parent
        return depth

    @property
    def document(self) -> Optional["Document"]:
        """Get the document this node belongs to, if any."""
        ancestor = self.parent
        while ancestor is not None and not isinstance(ancestor, Document):
            ancestor = ancestor.parent
        return ancestor

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


class ContentContainer:
    """Mixin for nodes that own an ordered list of content."""

    content: List[Content]
    parent: Optional["ContentContainer"]

    def add_content(self, child: Content) -> Content:
        """Append a child node and link it to this container.

        Args:
            child: Detached node to append

        Returns:
            The appended node

        Raises:
            TypeError: If ``child`` is not a content node
            ValueError: If ``child`` already has a parent, would create a
                cycle, or may not appear in this container
        """
        if not isinstance(child, Content):
            raise TypeError("Child must be a Content instance")
        if child.parent is not None:
            raise ValueError("Content already has a parent")
        self._check_child(child)

        ancestor: Optional[ContentContainer] = self
        while ancestor is not None:
            if ancestor is child:
                raise ValueError("Content cannot be added to its own subtree")
            ancestor = ancestor.parent

        child.parent = self
        self.content.append(child)
        return child

    def _check_child(self, child: Content) -> None:
        """Hook for containers restricting their content."""

    def _adopt_initial_content(self) -> None:
        initial = list(self.content)
        self.content = []
        for child in initial:
            self.add_content(child)

    def __iter__(self) -> Iterator[Content]:
        return iter(self.content)

    def __len__(self) -> int:
        return len(self.content)

    @property
    def children(self) -> List["Element"]:
        """Get the element children, skipping text and other content."""
        return [child for child in self.content if isinstance(child, Element)]

    def iter_elements(self) -> Iterator["Element"]:
        """Iterate over all descendant elements in document order."""
        pending: Deque[Element] = deque(reversed(self.children))
        while pending:
            element = pending.pop()
            yield element
            pending.extend(reversed(element.children))

    def find(self, name: str) -> Optional["Element"]:
        """Find the first descendant element with a matching local name."""
        return next(
            (element for element in self.iter_elements() if element.name == name),
            None,
        )

    def find_all(self, name: str) -> List["Element"]:
        """Find all descendant elements with a matching local name."""
        return [element for element in self.iter_elements() if element.name == name]


@dataclass(eq=False)
class Text(Content):
    """Character content."""

    text: str
    content_type = ContentType.TEXT

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise TypeError("Text content must be a string")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(eq=False)
class CDATA(Content):
    """CDATA section content."""

    text: str
    content_type = ContentType.CDATA

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise TypeError("CDATA content must be a string")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "cdata", "text": self.text}


@dataclass(eq=False)
class Comment(Content):
    """Comment content."""

    text: str
    content_type = ContentType.COMMENT

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise TypeError("Comment content must be a string")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "comment", "text": self.text}


@dataclass(eq=False)
class EntityRef(Content):
    """Unexpanded entity reference."""

    name: str
    public_id: Optional[str] = None
    system_id: Optional[str] = None
    content_type = ContentType.ENTITY_REF

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Entity reference name cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": "entity_ref", "name": self.name}
        if self.public_id is not None:
            result["public_id"] = self.public_id
        if self.system_id is not None:
            result["system_id"] = self.system_id
        return result


@dataclass(eq=False)
class ProcessingInstruction(Content):
    """Processing instruction with its target and optional data."""

    target: str
    data: Optional[str] = None
    content_type = ContentType.PROCESSING_INSTRUCTION

    def __post_init__(self) -> None:
        if not self.target:
            raise ValueError("Processing instruction target cannot be empty")
        if self.target.lower() == "xml":
            raise ValueError("Processing instruction target 'xml' is reserved")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "type": "processing_instruction", "target": self.target
        }
        if self.data is not None:
            result["data"] = self.data
        return result


@dataclass(eq=False)
class DocType(Content):
    """Document type declaration. Only valid directly inside a Document."""

    element_name: Optional[str] = None
    public_id: Optional[str] = None
    system_id: Optional[str] = None
    content_type = ContentType.DOCTYPE

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": "doctype"}
        for key in ("element_name", "public_id", "system_id"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass(eq=False)
class Element(ContentContainer, Content):
    """XML element with namespace, attributes and ordered content."""

    name: str
    namespace: Namespace = NO_NAMESPACE
    attributes: Dict[str, str] = field(default_factory=dict)
    content: List[Content] = field(default_factory=list)
    content_type = ContentType.ELEMENT

    def __post_init__(self) -> None:
        """Validate element values and establish parent-child relationships."""
        if not self.name:
            raise ValueError("Element name cannot be empty")
        self._adopt_initial_content()

    def _check_child(self, child: Content) -> None:
        if isinstance(child, DocType):
            raise ValueError("DocType can only be added to a Document")

    @property
    def qualified_name(self) -> str:
        """Get the element name including its namespace prefix."""
        if self.namespace.prefix:
            return f"{self.namespace.prefix}:{self.name}"
        return self.name

    @property
    def namespace_uri(self) -> str:
        """Get the namespace URI, empty when the element has none."""
        return self.namespace.uri

    def find_child(self, name: str) -> Optional["Element"]:
        """Find first direct child element with matching local name."""
        return next((child for child in self.children if child.name == name), None)

    def get_text(self) -> str:
        """Get the concatenated text and CDATA directly inside this element."""
        return "".join(
            child.text for child in self.content if isinstance(child, (Text, CDATA))
        )

    @property
    def text_content(self) -> str:
        """Get all text and CDATA content of this element and its descendants."""
        parts: List[str] = []
        pending: Deque[Content] = deque(reversed(self.content))
        while pending:
            node = pending.pop()
            if isinstance(node, (Text, CDATA)):
                parts.append(node.text)
            elif isinstance(node, Element):
                pending.extend(reversed(node.content))
        return "".join(parts)

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get attribute value with optional default."""
        return self.attributes.get(name, default)

    def has_attribute(self, name: str) -> bool:
        """Check if element has specific attribute."""
        return name in self.attributes

    def get_path(self) -> str:
        """Get XPath-like path to this element within its fragment."""
        steps: List[str] = []
        element = self
        while True:
            parent = element.parent
            if not isinstance(parent, Element):
                steps.append(f"/{element.qualified_name}")
                break

            siblings = [
                child for child in parent.children
                if child.qualified_name == element.qualified_name
            ]
            if len(siblings) > 1:
                position = next(
                    index for index, sibling in enumerate(siblings, 1)
                    if sibling is element
                )
                steps.append(f"/{element.qualified_name}[{position}]")
            else:
                steps.append(f"/{element.qualified_name}")
            element = parent
        return "".join(reversed(steps))

    def _header_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": "element", "name": self.name}
        if self.namespace.uri:
            result["namespace"] = {
                "prefix": self.namespace.prefix,
                "uri": self.namespace.uri,
            }
        if self.attributes:
            result["attributes"] = dict(self.attributes)
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result = self._header_dict()
        result["content"] = _content_to_dicts(self.content)
        return result


@dataclass(eq=False)
class Document(ContentContainer):
    """Top-level container holding the fragments produced by a build.

    Unlike an XML document, it may hold any number of root elements as well as
    text, so that fragments selected from anywhere in the source fit.
    """

    content: List[Content] = field(default_factory=list)
    parent: Optional[ContentContainer] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self._adopt_initial_content()

    def _check_child(self, child: Content) -> None:
        if isinstance(child, DocType) and self.doc_type is not None:
            raise ValueError("Document already has a DocType")

    @property
    def doc_type(self) -> Optional[DocType]:
        """Get the document type declaration, if one was kept."""
        return next(
            (child for child in self.content if isinstance(child, DocType)), None
        )

    @property
    def root_elements(self) -> List[Element]:
        """Get the top-level elements."""
        return self.children

    @property
    def element_count(self) -> int:
        """Count all elements in the document."""
        return sum(1 for _ in self.iter_elements())

    @property
    def max_depth(self) -> int:
        """Get the depth of the most deeply nested element (-1 when empty)."""
        deepest = -1
        pending: Deque[Tuple[Element, int]] = deque(
            (element, 0) for element in self.children
        )
        while pending:
            element, depth = pending.pop()
            deepest = max(deepest, depth)
            pending.extend((child, depth + 1) for child in element.children)
        return deepest

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        return {
            "type": "document",
            "content": _content_to_dicts(self.content),
        }


def _content_to_dicts(content: List[Content]) -> List[Dict[str, Any]]:
    """Convert a content list to dictionaries without recursing into elements.

    Each stack entry pairs the list being filled with the children still to
    convert.
    """
    converted: List[Dict[str, Any]] = []
    pending: Deque[Tuple[List[Dict[str, Any]], Iterator[Content]]] = deque(
        [(converted, iter(content))]
    )
    while pending:
        target, children = pending[-1]
        child = next(children, None)
        if child is None:
            pending.pop()
        elif isinstance(child, Element):
            entry = child._header_dict()
            entry["content"] = []
            target.append(entry)
            pending.append((entry["content"], iter(child.content)))
        else:
            target.append(child.to_dict())
    return converted
