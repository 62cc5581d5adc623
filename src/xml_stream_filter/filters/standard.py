"""Ready-made filter policies.

``DefaultFragmentFilter`` keeps everything and is the usual base class for
custom filters that only need to override a few decisions. The delegating
filters wrap another filter and adjust some of its decisions.
"""

from typing import Callable, Iterable, Optional, Union

from xml_stream_filter.events import Namespace

from .base import FragmentFilter


class DefaultFragmentFilter(FragmentFilter):
    """Include all content unchanged and prune nothing."""

    def include_doctype(self) -> bool:
        return True

    def include_element(self, depth: int, name: str, namespace: Namespace) -> bool:
        return True

    def include_comment(self, depth: int, comment: str) -> Optional[str]:
        return comment

    def include_entity_ref(self, depth: int, name: str) -> bool:
        return True

    def include_cdata(self, depth: int, text: str) -> Optional[str]:
        return text

    def include_text(self, depth: int, text: str) -> Optional[str]:
        return text

    def include_processing_instruction(self, depth: int, target: str) -> bool:
        return True

    def prune_element(self, depth: int, name: str, namespace: Namespace) -> bool:
        return False

    def prune_comment(self, depth: int, comment: str) -> Optional[str]:
        return comment

    def prune_entity_ref(self, depth: int, name: str) -> bool:
        return False

    def prune_cdata(self, depth: int, text: str) -> Optional[str]:
        return text

    def prune_text(self, depth: int, text: str) -> Optional[str]:
        return text

    def prune_processing_instruction(self, depth: int, target: str) -> bool:
        return False


class ElementNameFilter(DefaultFragmentFilter):
    """Select elements by local name as fragments.

    Everything inside a selected element is kept. Content that is not part of
    a selected element (comments, text or processing instructions beside it,
    the document type) is dropped unless ``include_top_level_content`` is set.

    Combine with ``BuilderConfig.scan_rejected_subtrees`` to select matching
    elements nested anywhere in the document.

    Args:
        names: Local element name or names to select
        namespace_uri: Only select elements in this namespace URI; ``""``
            selects elements in no namespace, None ignores namespaces
        depth: Only select elements at exactly this depth
        include_top_level_content: Keep non-element content outside the
            selected elements
    """

    def __init__(
        self,
        names: Union[str, Iterable[str]],
        namespace_uri: Optional[str] = None,
        depth: Optional[int] = None,
        include_top_level_content: bool = False,
    ) -> None:
        self.names = frozenset([names] if isinstance(names, str) else names)
        if not self.names:
            raise ValueError("At least one element name is required")
        if depth is not None and depth < 0:
            raise ValueError("depth must be >= 0 or None")
        self.namespace_uri = namespace_uri
        self.depth = depth
        self.include_top_level_content = include_top_level_content

    def matches(self, depth: int, name: str, namespace: Namespace) -> bool:
        """Check whether an element satisfies the selection criteria."""
        if name not in self.names:
            return False
        if self.namespace_uri is not None and namespace.uri != self.namespace_uri:
            return False
        return self.depth is None or depth == self.depth

    def include_doctype(self) -> bool:
        return self.include_top_level_content

    def include_element(self, depth: int, name: str, namespace: Namespace) -> bool:
        return self.matches(depth, name, namespace)

    def include_comment(self, depth: int, comment: str) -> Optional[str]:
        return comment if self.include_top_level_content else None

    def include_entity_ref(self, depth: int, name: str) -> bool:
        return self.include_top_level_content

    def include_cdata(self, depth: int, text: str) -> Optional[str]:
        return text if self.include_top_level_content else None

    def include_text(self, depth: int, text: str) -> Optional[str]:
        return text if self.include_top_level_content else None

    def include_processing_instruction(self, depth: int, target: str) -> bool:
        return self.include_top_level_content


class DelegatingFragmentFilter(FragmentFilter):
    """Forward every decision to a wrapped filter."""

    def __init__(self, delegate: Optional[FragmentFilter] = None) -> None:
        self.delegate = delegate if delegate is not None else DefaultFragmentFilter()

    def include_doctype(self) -> bool:
        return self.delegate.include_doctype()

    def include_element(self, depth: int, name: str, namespace: Namespace) -> bool:
        return self.delegate.include_element(depth, name, namespace)

    def include_comment(self, depth: int, comment: str) -> Optional[str]:
        return self.delegate.include_comment(depth, comment)

    def include_entity_ref(self, depth: int, name: str) -> bool:
        return self.delegate.include_entity_ref(depth, name)

    def include_cdata(self, depth: int, text: str) -> Optional[str]:
        return self.delegate.include_cdata(depth, text)

    def include_text(self, depth: int, text: str) -> Optional[str]:
        return self.delegate.include_text(depth, text)

    def include_processing_instruction(self, depth: int, target: str) -> bool:
        return self.delegate.include_processing_instruction(depth, target)

    def prune_element(self, depth: int, name: str, namespace: Namespace) -> bool:
        return self.delegate.prune_element(depth, name, namespace)

    def prune_comment(self, depth: int, comment: str) -> Optional[str]:
        return self.delegate.prune_comment(depth, comment)

    def prune_entity_ref(self, depth: int, name: str) -> bool:
        return self.delegate.prune_entity_ref(depth, name)

    def prune_cdata(self, depth: int, text: str) -> Optional[str]:
        return self.delegate.prune_cdata(depth, text)

    def prune_text(self, depth: int, text: str) -> Optional[str]:
        return self.delegate.prune_text(depth, text)

    def prune_processing_instruction(self, depth: int, target: str) -> bool:
        return self.delegate.prune_processing_instruction(depth, target)


class WhitespaceTextFilter(DelegatingFragmentFilter):
    """Drop whitespace-only text; defer every other decision to the delegate."""

    def include_text(self, depth: int, text: str) -> Optional[str]:
        if not text.strip():
            return None
        return self.delegate.include_text(depth, text)

    def prune_text(self, depth: int, text: str) -> Optional[str]:
        if not text.strip():
            return None
        return self.delegate.prune_text(depth, text)


class TextTransformFilter(DelegatingFragmentFilter):
    """Rewrite text the delegate keeps through a transform callable.

    Args:
        transform: Called with the kept text, returns the replacement
        delegate: Filter making the keep/skip decisions
        apply_to_cdata: Also rewrite CDATA sections
    """

    def __init__(
        self,
        transform: Callable[[str], str],
        delegate: Optional[FragmentFilter] = None,
        apply_to_cdata: bool = False,
    ) -> None:
        super().__init__(delegate)
        self.transform = transform
        self.apply_to_cdata = apply_to_cdata

    def _rewrite(self, kept: Optional[str]) -> Optional[str]:
        if kept is None:
            return None
        return self.transform(kept)

    def include_text(self, depth: int, text: str) -> Optional[str]:
        return self._rewrite(self.delegate.include_text(depth, text))

    def prune_text(self, depth: int, text: str) -> Optional[str]:
        return self._rewrite(self.delegate.prune_text(depth, text))

    def include_cdata(self, depth: int, text: str) -> Optional[str]:
        kept = self.delegate.include_cdata(depth, text)
        return self._rewrite(kept) if self.apply_to_cdata else kept

    def prune_cdata(self, depth: int, text: str) -> Optional[str]:
        kept = self.delegate.prune_cdata(depth, text)
        return self._rewrite(kept) if self.apply_to_cdata else kept
