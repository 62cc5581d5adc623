"""Public API for filtered fragment building."""

from .builder import (
    FragmentBuilder,
    build_fragments,
    build_fragments_from_file,
    build_fragments_from_string,
    iter_fragments,
)

__all__ = [
    "FragmentBuilder",
    "build_fragments",
    "build_fragments_from_file",
    "build_fragments_from_string",
    "iter_fragments",
]
