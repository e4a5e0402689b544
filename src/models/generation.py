"""Request/response models for documentation generation"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenerationOptions(BaseModel):
    """Caller-supplied options controlling context selection and prompting

    Doubles as part of the cache key. Two option sets are equal iff every
    field compares equal, with a missing custom prompt treated as "".
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    include_readme: bool = Field(default=True, alias="includeReadme")
    include_source_code: bool = Field(default=True, alias="includeSourceCode")
    include_issues: bool = Field(default=False, alias="includeIssues")
    include_pull_requests: bool = Field(default=False, alias="includePullRequests")
    quick_mode: bool = Field(default=True, alias="quickMode")
    custom_prompt: str = Field(default="", alias="customPrompt")

    @field_validator("custom_prompt", mode="before")
    @classmethod
    def _default_custom_prompt(cls, value: object) -> object:
        return "" if value is None else value

    def cache_fields(self) -> tuple[bool, bool, bool, bool, bool, str]:
        """Fields identifying a durable cache row, in column order"""
        return (
            self.include_readme,
            self.include_source_code,
            self.include_issues,
            self.include_pull_requests,
            self.quick_mode,
            self.custom_prompt or "",
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GenerationOptions):
            return NotImplemented
        return options_equal(self, other)

    def __hash__(self) -> int:
        return hash(self.cache_fields())


def options_equal(a: GenerationOptions, b: GenerationOptions) -> bool:
    """Compare two option sets field by field"""
    return (
        a.include_readme == b.include_readme
        and a.include_source_code == b.include_source_code
        and a.include_issues == b.include_issues
        and a.include_pull_requests == b.include_pull_requests
        and a.quick_mode == b.quick_mode
        and (a.custom_prompt or "") == (b.custom_prompt or "")
    )


class GenerateDocsRequest(BaseModel):
    """Inbound body of the documentation endpoint"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    repo_url: str | None = Field(default=None, alias="repoUrl")
    context_options: GenerationOptions | None = Field(default=None, alias="contextOptions")
    force_refresh: bool = Field(default=False, alias="forceRefresh")


class GenerateDocsResponse(BaseModel):
    """Successful result of the documentation endpoint"""

    model_config = ConfigDict(populate_by_name=True)

    documentation: str = Field(description="Generated markdown documentation")
    from_cache: bool | None = Field(default=None, alias="fromCache")
    cached_at: datetime | None = Field(default=None, alias="cachedAt")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
