"""Repository reference and file listing models"""

from pydantic import BaseModel, ConfigDict, Field


class RepositoryReference(BaseModel):
    """Canonical (owner, name) pair identifying a GitHub repository"""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1, description="Repository owner (user or organization)")
    name: str = Field(min_length=1, description="Repository name")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


class FileEntry(BaseModel):
    """One blob in the repository tree"""

    path: str = Field(description="Path of the file relative to the repository root")


class FileContentResult(BaseModel):
    """Outcome of a best-effort file content fetch"""

    path: str = Field(description="Path that was requested")
    content: str | None = Field(default=None, description="Raw text content (None if unavailable)")
    error: str | None = Field(default=None, description="Why the content is unavailable")

    @property
    def success(self) -> bool:
        return self.content is not None


class FileSelection(BaseModel):
    """Files chosen for the assembled context"""

    readme: str | None = Field(
        default=None, description="README path fetched separately and placed first"
    )
    files: list[str] = Field(default_factory=list, description="Remaining files in ranked order")

    @property
    def total(self) -> int:
        return len(self.files) + (1 if self.readme else 0)
