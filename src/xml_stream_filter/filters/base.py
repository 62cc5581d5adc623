"""Filter policy contract consulted by the tree builder.

A filter is queried in two situations:

* The builder is not currently inside an accepted element ("outside").
  The ``include_*`` methods decide which content becomes a top-level
  fragment.
* The builder is inside an element that was accepted ("inside"). The
  ``prune_*`` methods decide which child content is dropped from it.

``depth`` is always the depth of the node being decided; the root element and
any content beside it are at depth 0.

Text-like decisions (comments, CDATA, text) return ``None`` to skip the node
or a string that becomes the node's content. Returning the argument unchanged
keeps the content as-is; any other string, including ``""``, replaces it.
"""

from abc import ABC, abstractmethod
from typing import Optional

from xml_stream_filter.events import Namespace


class FragmentFilter(ABC):
    """Decides which parts of an event stream are materialized.

    Implementations may keep their own state but must answer identically for
    identical queries within one traversal. An instance used by several
    concurrent builds must be safe to call from multiple threads.
    """

    @abstractmethod
    def include_doctype(self) -> bool:
        """Decide whether the document type declaration becomes a fragment."""

    @abstractmethod
    def include_element(self, depth: int, name: str, namespace: Namespace) -> bool:
        """Decide whether an element outside any accepted element is kept.

        A kept element becomes a fragment and its content is then offered to
        the ``prune_*`` methods.
        """

    @abstractmethod
    def include_comment(self, depth: int, comment: str) -> Optional[str]:
        """Return the text of a top-level comment to keep, or None to skip it."""

    @abstractmethod
    def include_entity_ref(self, depth: int, name: str) -> bool:
        """Decide whether a top-level entity reference is kept."""

    @abstractmethod
    def include_cdata(self, depth: int, text: str) -> Optional[str]:
        """Return the text of a top-level CDATA section to keep, or None."""

    @abstractmethod
    def include_text(self, depth: int, text: str) -> Optional[str]:
        """Return top-level text to keep, or None to skip it."""

    @abstractmethod
    def include_processing_instruction(self, depth: int, target: str) -> bool:
        """Decide whether a top-level processing instruction is kept."""

    @abstractmethod
    def prune_element(self, depth: int, name: str, namespace: Namespace) -> bool:
        """Decide whether a child element of an accepted element is dropped.

        Returns True to drop the element together with its whole subtree.
        """

    @abstractmethod
    def prune_comment(self, depth: int, comment: str) -> Optional[str]:
        """Return the text of a child comment to keep, or None to prune it."""

    @abstractmethod
    def prune_entity_ref(self, depth: int, name: str) -> bool:
        """Return True to drop a child entity reference."""

    @abstractmethod
    def prune_cdata(self, depth: int, text: str) -> Optional[str]:
        """Return the text of a child CDATA section to keep, or None."""

    @abstractmethod
    def prune_text(self, depth: int, text: str) -> Optional[str]:
        """Return child text to keep, or None to prune it."""

    @abstractmethod
    def prune_processing_instruction(self, depth: int, target: str) -> bool:
        """Return True to drop a child processing instruction."""
