"""Models for the two documentation cache tiers"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.models.generation import GenerationOptions


class MemoryCacheEntry(BaseModel):
    """Entry in the in-process cache"""

    key: str = Field(description="Cache key derived from the request shape")
    value: Any = Field(description="Cached value")
    timestamp: float = Field(description="Monotonic time the entry was written")
    issued_at: float = Field(description="Monotonic time the producing operation started")
    written_at: datetime = Field(description="Wall-clock time the entry was written")


class DocCacheEntry(BaseModel):
    """Row of the durable documentation cache"""

    repo_owner: str = Field(description="Repository owner")
    repo_name: str = Field(description="Repository name")
    context_options: GenerationOptions | None = Field(
        default=None, description="Options the docs were generated with (None = none supplied)"
    )
    documentation: str = Field(description="Generated documentation")
    created_at: datetime = Field(description="When the row was first inserted")
    updated_at: datetime = Field(description="When the documentation was last replaced")
