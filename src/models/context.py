"""Size ceilings for the assembled context"""

from pydantic import BaseModel, Field

from src.config import AppConfig
from src.models.generation import GenerationOptions


class ContextLimits(BaseModel):
    """Ceilings applied while selecting and assembling files"""

    max_files: int = Field(default=25, ge=1, description="Maximum files, README included")
    max_file_chars: int = Field(default=5000, ge=1, description="Per-file character ceiling")
    max_context_chars: int = Field(default=100_000, ge=1, description="Global character ceiling")

    @classmethod
    def for_options(
        cls, options: GenerationOptions | None, app_config: AppConfig
    ) -> "ContextLimits":
        """Quick mode uses the smaller ceilings; no options means full ceilings"""
        if options is not None and options.quick_mode:
            return cls(
                max_files=app_config.quick_max_files,
                max_file_chars=app_config.quick_max_file_chars,
                max_context_chars=app_config.quick_max_context_chars,
            )
        return cls(
            max_files=app_config.max_files,
            max_file_chars=app_config.max_file_chars,
            max_context_chars=app_config.max_context_chars,
        )
