"""Content tree and filtered tree building engine.

Key Components:
    FilteredTreeBuilder: Walks an event stream and materializes kept content
    BuildResult: Built document with metrics and diagnostics
    Document: Top-level container of the built fragments
    Element, Text, CDATA, Comment, EntityRef, ProcessingInstruction, DocType:
        Content tree node types
"""

from .nodes import (
    CDATA,
    Comment,
    Content,
    ContentContainer,
    ContentType,
    DocType,
    Document,
    Element,
    EntityRef,
    ProcessingInstruction,
    Text,
)
from .builder import (
    BuildResult,
    FilteredTreeBuilder,
    Frame,
    FrameMode,
)

__all__ = [
    "CDATA",
    "Comment",
    "Content",
    "ContentContainer",
    "ContentType",
    "DocType",
    "Document",
    "Element",
    "EntityRef",
    "ProcessingInstruction",
    "Text",
    "BuildResult",
    "FilteredTreeBuilder",
    "Frame",
    "FrameMode",
]
