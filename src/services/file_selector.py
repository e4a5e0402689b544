"""File selection policy: filter and rank repository files for the context"""

import logging
import re

from src.models.generation import GenerationOptions
from src.models.repository import FileSelection

logger = logging.getLogger(__name__)

README_PATTERN = re.compile(r"readme\.md$", re.IGNORECASE)

SOURCE_CODE_PATTERN = re.compile(r"\.(js|jsx|ts|tsx|py|java|go|c|cpp|h|hpp)$", re.IGNORECASE)

NOISE_DIR_PATTERN = re.compile(r"(^|/)(node_modules|\.git|\.next|dist|build|vendor|\.cache)/")

BINARY_PATTERN = re.compile(
    r"\.(jpg|jpeg|png|gif|webp|svg|ico|mp4|webm|ogg|mp3|wav|pdf|zip|tar|gz)$", re.IGNORECASE
)

# Used when the caller supplied no options at all
DEFAULT_TEXT_PATTERN = re.compile(
    r"\.(js|jsx|ts|tsx|py|md|txt|java|go|c|cpp|h|hpp|css|scss|html)$", re.IGNORECASE
)
DEFAULT_NOISE_DIR_PATTERN = re.compile(r"(^|/)(node_modules|\.git|\.next|dist|build)/")

MANIFEST_FILES = {"package.json", "tsconfig.json", "composer.json"}

SOURCE_DIR_PATTERN = re.compile(r"^(src|app|lib)/")
COMMON_SOURCE_PATTERN = re.compile(r"\.(js|jsx|ts|tsx|py|java|go)$", re.IGNORECASE)


def is_readme(path: str) -> bool:
    return bool(README_PATTERN.search(path))


def _keep_with_options(path: str, options: GenerationOptions) -> bool:
    """Apply the option-driven rules in order; first decisive rule wins"""
    if options.include_readme and is_readme(path):
        return True
    if not options.include_source_code and SOURCE_CODE_PATTERN.search(path):
        return False
    if NOISE_DIR_PATTERN.search(path):
        return False
    if BINARY_PATTERN.search(path):
        return False
    return True


def _keep_default(path: str) -> bool:
    return bool(DEFAULT_TEXT_PATTERN.search(path)) and not DEFAULT_NOISE_DIR_PATTERN.search(path)


def _rank(path: str) -> tuple[int, int]:
    """Sort key: README, then manifests, then source under src/app/lib, then the rest"""
    if is_readme(path):
        # Prefer the root README over nested ones
        return (0, path.count("/"))
    basename = path.rsplit("/", 1)[-1]
    if basename in MANIFEST_FILES:
        return (1, 0)
    if SOURCE_DIR_PATTERN.search(path) and COMMON_SOURCE_PATTERN.search(path):
        return (2, 0)
    return (3, 0)


def filter_files(paths: list[str], options: GenerationOptions | None) -> list[str]:
    """Drop files the options (or the default policy) exclude, preserving order"""
    if options is None:
        return [path for path in paths if _keep_default(path)]
    return [path for path in paths if _keep_with_options(path, options)]


def rank_files(paths: list[str]) -> list[str]:
    """Stable sort by relevance to documentation"""
    return sorted(paths, key=_rank)


def select_files(
    paths: list[str], options: GenerationOptions | None, max_files: int
) -> FileSelection:
    """
    Choose the files that go into the assembled context

    Args:
        paths: Every file path in the repository
        options: Caller options (None = caller supplied no options)
        max_files: File ceiling, README included

    Returns:
        FileSelection with the README (if requested and present) pulled out
    """
    relevant = rank_files(filter_files(paths, options))[:max_files]
    logger.info(
        f"Selected {len(relevant)} of {len(paths)} files (limited to {max_files})"
    )

    readme = None
    if options is not None and options.include_readme:
        readme = next((path for path in relevant if is_readme(path)), None)
        if readme is not None:
            relevant = [path for path in relevant if path != readme]

    return FileSelection(readme=readme, files=relevant)
