"""Assemble fetched repository files into one size-bounded text context"""

import asyncio
import logging

from src.models.context import ContextLimits
from src.models.repository import FileSelection, RepositoryReference
from src.services.errors import EmptyContextError
from src.services.github_fetcher import GitHubFetcher

logger = logging.getLogger(__name__)

TRUNCATED_FILE_MARKER = "... [truncated for size]"
OMITTED_FILES_MARKER = "\n\n[Additional files omitted due to size constraints]"


def trim_file_content(content: str, max_chars: int) -> str:
    """Cap one file's content, marking the cut"""
    if len(content) <= max_chars:
        return content
    return content[:max_chars] + TRUNCATED_FILE_MARKER


def format_file_block(path: str, content: str, max_chars: int, label: str | None = None) -> str:
    header = f"--- File: {path} ({label}) ---" if label else f"--- File: {path} ---"
    return f"\n\n{header}\n{trim_file_content(content, max_chars)}"


def format_section_block(title: str, text: str) -> str:
    return f"\n\n--- {title} ---\n{text}"


class _AssemblyState:
    """Running totals shared by the fetch workers of one request"""

    def __init__(self, file_count: int, initial_total: int, ceiling: int):
        self.blocks: list[str | None] = [None] * file_count
        self.attempted: list[bool] = [False] * file_count
        self.total = initial_total
        self.ceiling = ceiling
        self.exceeded = initial_total > ceiling
        self.fetched = 0

    def start(self, index: int) -> None:
        self.attempted[index] = True

    def add(self, index: int, block: str) -> None:
        self.blocks[index] = block
        self.fetched += 1
        self.total += len(block)
        if self.total > self.ceiling:
            self.exceeded = True


class ContextAssembler:
    """Fetch selected files with a small worker pool and concatenate them"""

    def __init__(self, fetcher: GitHubFetcher, concurrency: int = 5):
        """
        Initialize assembler

        Args:
            fetcher: Source of file contents
            concurrency: Number of parallel fetch workers
        """
        self.fetcher = fetcher
        self.concurrency = max(1, concurrency)

    async def assemble(
        self,
        ref: RepositoryReference,
        selection: FileSelection,
        limits: ContextLimits,
        sections: list[tuple[str, str]] | None = None,
    ) -> str:
        """
        Build the context text for one request

        The README (if selected) comes first, then any extra sections (issue and
        pull request summaries), then the remaining files in ranked order. The
        result is always a ranked prefix: assembly stops at the first block that
        would overflow the ceiling or was never fetched.

        Args:
            ref: Repository being documented
            selection: Files chosen by the selection policy
            limits: Per-file and global ceilings
            sections: Extra (title, text) blocks placed after the README

        Returns:
            Context text, at most limits.max_context_chars plus the omission marker

        Raises:
            EmptyContextError: If no content block fits in the context
        """
        head: list[str] = []

        if selection.readme:
            readme = await self.fetcher.get_file_text(ref, selection.readme)
            if readme:
                head.append(
                    format_file_block(selection.readme, readme, limits.max_file_chars, "README")
                )

        for title, text in sections or []:
            if text:
                head.append(format_section_block(title, text))

        state = _AssemblyState(
            file_count=len(selection.files),
            initial_total=sum(len(block) for block in head),
            ceiling=limits.max_context_chars,
        )

        worker_count = min(self.concurrency, len(selection.files))
        await asyncio.gather(
            *[
                self._worker(ref, selection.files, offset, worker_count, limits, state)
                for offset in range(worker_count)
            ]
        )

        parts, truncated = self._join(head, state)
        logger.info(
            f"Assembled {len(parts)} blocks from {state.fetched}/{len(selection.files)} fetched"
            f" files{' + README' if head and selection.readme else ''} for {ref.full_name}"
        )

        if not "".join(parts).strip():
            raise EmptyContextError(ref.full_name)
        if truncated:
            parts.append(OMITTED_FILES_MARKER)
        return "".join(parts)

    async def _worker(
        self,
        ref: RepositoryReference,
        files: list[str],
        offset: int,
        stride: int,
        limits: ContextLimits,
        state: _AssemblyState,
    ) -> None:
        """Fetch files offset, offset+stride, ... until done or the ceiling is hit"""
        for index in range(offset, len(files), stride):
            if state.exceeded:
                return
            state.start(index)
            path = files[index]
            result = await self.fetcher.get_file_content(ref, path)
            if not result.content:
                continue
            state.add(index, format_file_block(path, result.content, limits.max_file_chars))

    @staticmethod
    def _join(head: list[str], state: _AssemblyState) -> tuple[list[str], bool]:
        """
        Collect blocks in ranked order up to the cut point

        The cut point is the first block that would overflow the ceiling or the
        first file no worker reached. Files that were fetched but had no text
        are skipped without cutting.

        Returns:
            Tuple of (kept blocks, whether anything was cut)
        """
        parts: list[str] = []
        total = 0

        for block in head:
            if total + len(block) > state.ceiling:
                return parts, True
            parts.append(block)
            total += len(block)

        for attempted, block in zip(state.attempted, state.blocks):
            if not attempted:
                return parts, True
            if block is None:
                continue
            if total + len(block) > state.ceiling:
                return parts, True
            parts.append(block)
            total += len(block)

        return parts, state.exceeded
