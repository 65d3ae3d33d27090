"""
Describing verified candidates as IIO contexts.
"""

from .backend import ContextBackend, LibiioContextBackend
from .builder import build_context_info
from .description import DescriptionBuilder, describe, format_uri

__all__ = [
    "ContextBackend",
    "DescriptionBuilder",
    "LibiioContextBackend",
    "build_context_info",
    "describe",
    "format_uri",
]
