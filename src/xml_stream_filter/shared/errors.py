"""Exception hierarchy for filtered fragment building.

Every failure aborts the whole build. Exceptions carry the builder depth and
the last event that was fully processed so callers can locate the problem in
the source document.
"""

from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from xml_stream_filter.events.types import XMLEvent


class FragmentBuildError(Exception):
    """Base exception for all fragment building failures."""

    def __init__(
        self,
        message: str,
        depth: Optional[int] = None,
        last_event: Optional["XMLEvent"] = None,
        position: Optional[Dict[str, int]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.depth = depth
        self.last_event = last_event
        self.position = position

    def __str__(self) -> str:
        parts = [self.message]
        if self.depth is not None:
            parts.append(f"depth={self.depth}")
        if self.position:
            parts.append(
                f"line={self.position.get('line')}, "
                f"column={self.position.get('column')}"
            )
        if self.last_event is not None:
            parts.append(f"last_event={self.last_event.describe()}")
        return "; ".join(parts)


class MalformedStreamError(FragmentBuildError):
    """Raised when the event stream is not well-formed.

    Covers tokenizer failures reported by an event source as well as events
    that cannot occur in a well-formed stream (an end tag with nothing open,
    a second document type declaration, ...).
    """


class StructuralError(FragmentBuildError):
    """Raised when the stream ends while elements are still open."""

    def __init__(
        self,
        message: str,
        open_frames: int,
        depth: Optional[int] = None,
        last_event: Optional["XMLEvent"] = None,
    ) -> None:
        super().__init__(message, depth=depth, last_event=last_event)
        self.open_frames = open_frames


class DepthLimitExceededError(FragmentBuildError):
    """Raised when element nesting goes beyond the configured limit."""

    def __init__(
        self,
        message: str,
        limit: int,
        depth: Optional[int] = None,
        last_event: Optional["XMLEvent"] = None,
    ) -> None:
        super().__init__(message, depth=depth, last_event=last_event)
        self.limit = limit
