"""Filter policies deciding which events become content tree nodes.

Key Components:
    FragmentFilter: Abstract contract with the include_* and prune_* decisions
    DefaultFragmentFilter: Keeps everything unchanged
    ElementNameFilter: Selects elements by name, namespace and depth
    DelegatingFragmentFilter: Base for filters wrapping another filter
    WhitespaceTextFilter: Drops whitespace-only text
    TextTransformFilter: Rewrites kept text through a callable
"""

from .base import FragmentFilter
from .standard import (
    DefaultFragmentFilter,
    DelegatingFragmentFilter,
    ElementNameFilter,
    TextTransformFilter,
    WhitespaceTextFilter,
)

__all__ = [
    "FragmentFilter",
    "DefaultFragmentFilter",
    "DelegatingFragmentFilter",
    "ElementNameFilter",
    "TextTransformFilter",
    "WhitespaceTextFilter",
]
