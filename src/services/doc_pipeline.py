"""Documentation pipeline: parse → cache lookup → fetch → assemble → generate → persist"""

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable, Hashable
from datetime import datetime, timezone
from typing import TypeVar

from src.config import AppConfig, config
from src.models.context import ContextLimits
from src.models.generation import GenerateDocsRequest, GenerateDocsResponse, GenerationOptions
from src.models.repository import RepositoryReference
from src.services.context_assembler import ContextAssembler
from src.services.doc_cache_store import DocCacheStore
from src.services.errors import (
    MissingCredentialError,
    MissingRepoUrlError,
    NoFilesFoundError,
    OverallTimeoutError,
)
from src.services.file_selector import select_files
from src.services.generator import DocGenerator
from src.services.github_fetcher import GitHubFetcher
from src.services.memory_cache import MemoryCache
from src.services.prompt_builder import build_prompt
from src.utils.repo_parser import parse_repo_reference

logger = logging.getLogger(__name__)

T = TypeVar("T")


def docs_cache_key(ref: RepositoryReference, options: GenerationOptions | None) -> str:
    """Ephemeral-tier key for a documentation result"""
    options_json = (
        json.dumps(options.model_dump(by_alias=True), sort_keys=True) if options else "{}"
    )
    return f"docs-{ref.owner}-{ref.name}-{options_json}"


class InFlightRegistry:
    """Coalesce concurrent identical operations into one shared task"""

    def __init__(self):
        self._tasks: dict[Hashable, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Await the in-flight task for key, starting it if none is running

        A waiter that is cancelled does not cancel the shared task.
        """
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.info("Joining in-flight documentation request")
        return await asyncio.shield(task)

    def _forget(self, key: Hashable, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        # Mark the outcome as retrieved even if every waiter went away
        if not task.cancelled():
            task.exception()


class DocPipeline:
    """Turn a repository reference into generated documentation"""

    def __init__(
        self,
        fetcher: GitHubFetcher,
        generator: DocGenerator,
        doc_store: DocCacheStore,
        memory_cache: MemoryCache,
        app_config: AppConfig | None = None,
        assembler: ContextAssembler | None = None,
    ):
        """
        Initialize pipeline

        Args:
            fetcher: GitHub content fetcher
            generator: Model client
            doc_store: Durable documentation cache
            memory_cache: In-process cache shared with the fetcher
            app_config: Configuration (defaults to the global config)
            assembler: Context assembler (created from fetcher if None)
        """
        self.config = app_config or config
        self.fetcher = fetcher
        self.generator = generator
        self.doc_store = doc_store
        self.memory_cache = memory_cache
        self.assembler = assembler or ContextAssembler(
            fetcher, concurrency=self.config.fetch_concurrency
        )
        self.inflight = InFlightRegistry()

    def _check_credentials(self) -> None:
        if not self.config.github_token:
            logger.error("GitHub token not found in environment (GITHUB_TOKEN / YOUR_GITHUB_PAT)")
            raise MissingCredentialError("GitHub Personal Access Token")
        if not self.config.gemini_api_key:
            logger.error("Gemini API key not found in environment (GOOGLE_GEMINI_API_KEY)")
            raise MissingCredentialError("Gemini API key")

    async def generate(self, request: GenerateDocsRequest) -> GenerateDocsResponse:
        """
        Handle one documentation request

        Args:
            request: Repository reference, options and refresh flag

        Returns:
            Generated (or cached) documentation

        Raises:
            PipelineError: Any surfaced failure (see src.services.errors)
        """
        self._check_credentials()

        if not request.repo_url:
            raise MissingRepoUrlError()
        ref = parse_repo_reference(request.repo_url)
        options = request.context_options
        key = docs_cache_key(ref, options)

        if not request.force_refresh:
            cached = self.memory_cache.get(key)
            if cached is not None:
                logger.info(f"Documentation for {ref.full_name} returned from memory cache")
                return GenerateDocsResponse(
                    documentation=cached["documentation"],
                    from_cache=True,
                    cached_at=cached["generated_at"],
                )

        return await self.inflight.run(
            (key, request.force_refresh),
            lambda: self._generate_uncached(ref, options, key, request.force_refresh),
        )

    async def _generate_uncached(
        self,
        ref: RepositoryReference,
        options: GenerationOptions | None,
        key: str,
        force_refresh: bool,
    ) -> GenerateDocsResponse:
        if not force_refresh:
            entry = await self.doc_store.find(ref, options)
            if entry is not None:
                self.memory_cache.set(
                    key, {"documentation": entry.documentation, "generated_at": entry.updated_at}
                )
                return GenerateDocsResponse(
                    documentation=entry.documentation,
                    from_cache=True,
                    cached_at=entry.updated_at,
                )
        else:
            logger.info(f"Force refresh requested for {ref.full_name}")

        issued_at = self.memory_cache.now()
        start_time = time.time()
        timeout = self.config.request_timeout_seconds

        try:
            documentation = await asyncio.wait_for(
                self._build_documentation(ref, options), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Request for {ref.full_name} exceeded {timeout}s")
            raise OverallTimeoutError(timeout) from e

        generated_at = datetime.now(timezone.utc)
        self.memory_cache.set(
            key,
            {"documentation": documentation, "generated_at": generated_at},
            issued_at=issued_at,
        )
        await self.doc_store.upsert(ref, options, documentation)

        logger.info(
            f"Documentation for {ref.full_name} generated in {time.time() - start_time:.2f}s"
        )
        return GenerateDocsResponse(documentation=documentation)

    async def _build_documentation(
        self, ref: RepositoryReference, options: GenerationOptions | None
    ) -> str:
        """List, select, assemble, prompt and generate"""
        logger.info(f"Processing repository: {ref.full_name}")
        files = await self.fetcher.list_files(ref)
        if not files:
            raise NoFilesFoundError(ref.full_name)

        limits = ContextLimits.for_options(options, self.config)
        selection = select_files([entry.path for entry in files], options, limits.max_files)

        sections = await self._summary_sections(ref, options)
        context = await self.assembler.assemble(ref, selection, limits, sections)

        prompt = build_prompt(context, options)
        return await self.generator.generate(prompt)

    async def _summary_sections(
        self, ref: RepositoryReference, options: GenerationOptions | None
    ) -> list[tuple[str, str]]:
        """Issue and pull request summaries requested by the options"""
        if options is None:
            return []

        sections: list[tuple[str, str]] = []
        if options.include_issues:
            sections.append(("Open Issues", await self.fetcher.get_open_issues(ref)))
        if options.include_pull_requests:
            sections.append(
                ("Open Pull Requests", await self.fetcher.get_open_pull_requests(ref))
            )
        return sections

    async def close(self) -> None:
        """Close the fetcher's HTTP client (the durable store holds no open connection)"""
        await self.fetcher.close()
