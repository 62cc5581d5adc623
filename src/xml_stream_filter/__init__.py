"""XML Stream Filter.

Builds in-memory content trees from a selected subset of a streaming XML
event sequence. A filter policy decides, event by event, which elements and
content are kept, pruned or rewritten; nothing else is ever materialized.

Progressive API Disclosure:
- Level 1: Simple functions - build_fragments(), build_fragments_from_string(),
  build_fragments_from_file(), iter_fragments()
- Level 2: Configured builder - FragmentBuilder class
- Level 3: Engine - FilteredTreeBuilder over any event source
"""

__version__ = "0.1.0"
__author__ = "XML Stream Filter Team"

# Level 1 and 2
from .api import (
    FragmentBuilder,
    build_fragments,
    build_fragments_from_file,
    build_fragments_from_string,
    iter_fragments,
)

# Level 3 building blocks
from .events import EventType, Namespace, XMLEvent
from .filters import DefaultFragmentFilter, ElementNameFilter, FragmentFilter
from .shared.config import FragmentBuilderConfig
from .shared.errors import (
    DepthLimitExceededError,
    FragmentBuildError,
    MalformedStreamError,
    StructuralError,
)
from .tree import BuildResult, Document, Element, FilteredTreeBuilder

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple building functions
    "build_fragments",
    "build_fragments_from_string",
    "build_fragments_from_file",
    "iter_fragments",

    # Level 2: Configured builder
    "FragmentBuilder",
    "FragmentBuilderConfig",

    # Level 3: Engine, events and filters
    "FilteredTreeBuilder",
    "EventType",
    "Namespace",
    "XMLEvent",
    "FragmentFilter",
    "DefaultFragmentFilter",
    "ElementNameFilter",

    # Results
    "BuildResult",
    "Document",
    "Element",

    # Errors
    "FragmentBuildError",
    "MalformedStreamError",
    "StructuralError",
    "DepthLimitExceededError",
]
