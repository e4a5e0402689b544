"""Data models for the documentation pipeline"""

from src.models.cache import DocCacheEntry, MemoryCacheEntry
from src.models.context import ContextLimits
from src.models.generation import (
    GenerateDocsRequest,
    GenerateDocsResponse,
    GenerationOptions,
    options_equal,
)
from src.models.repository import FileContentResult, FileEntry, FileSelection, RepositoryReference

__all__ = [
    "DocCacheEntry",
    "MemoryCacheEntry",
    "ContextLimits",
    "GenerateDocsRequest",
    "GenerateDocsResponse",
    "GenerationOptions",
    "options_equal",
    "FileContentResult",
    "FileEntry",
    "FileSelection",
    "RepositoryReference",
]
