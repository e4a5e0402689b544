"""GitHub repository fetcher with per-call timeout, bounded retry and in-process caching"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from src.models.fetch_config import FetchingConfig, GitHubConfig
from src.models.repository import FileContentResult, FileEntry, RepositoryReference
from src.services.memory_cache import MemoryCache
from src.utils.retry import with_retry

logger = logging.getLogger(__name__)

SUMMARY_BODY_CHARS = 150


class GitHubFetchError(Exception):
    """Raised when a GitHub API call fails; absorbed before reaching the pipeline"""

    pass


class GitHubFetcher:
    """Fetch repository listings and file contents from the GitHub API

    Every public method is best-effort: transport failures are retried and then
    downgraded to an empty/None sentinel instead of raised.
    """

    def __init__(
        self,
        cache: MemoryCache,
        github_config: GitHubConfig | None = None,
        fetching_config: FetchingConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize GitHub fetcher

        Args:
            cache: Shared in-process cache for listings and contents
            github_config: GitHub API configuration
            fetching_config: Timeout/retry configuration
            client: Pre-built HTTP client (tests); created from config if None
        """
        self.cache = cache
        self.github_config = github_config or GitHubConfig()
        self.fetching_config = fetching_config or FetchingConfig()
        self.api_url = self.github_config.api_url.rstrip("/")

        headers = {"Accept": "application/vnd.github.v3+json"}
        token = self.github_config.token
        if token:
            # Use 'token' prefix for classic GitHub tokens (ghp_*)
            # Use 'Bearer' prefix for fine-grained tokens (github_pat_*)
            prefix = "Bearer" if token.startswith("github_pat_") else "token"
            headers["Authorization"] = f"{prefix} {token}"

        self.client = client or httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(self.fetching_config.timeout),
            follow_redirects=True,
        )

    async def _call(self, operation, description: str) -> Any:
        """Run one API operation under the per-call timeout and retry policy"""
        return await with_retry(
            operation,
            retries=self.fetching_config.max_retries,
            delay_seconds=self.fetching_config.retry_delay,
            timeout_seconds=self.fetching_config.timeout,
            description=description,
        )

    async def list_files(self, ref: RepositoryReference) -> list[FileEntry]:
        """
        List every blob on the default branch head

        Args:
            ref: Repository to list

        Returns:
            File entries; empty if the tree is missing or the call failed
        """
        cache_key = f"files-{ref.owner}-{ref.name}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return [FileEntry(path=path) for path in cached]

        issued_at = self.cache.now()
        url = f"{self.api_url}/repos/{ref.owner}/{ref.name}/git/trees/HEAD"

        async def fetch_tree() -> dict:
            response = await self.client.get(url, params={"recursive": "1"})
            response.raise_for_status()
            return response.json()

        try:
            data = await self._call(fetch_tree, f"tree of {ref.full_name}")
        except Exception as e:
            logger.error(f"Error fetching repo files for {ref.full_name}: {e}")
            return []

        tree = data.get("tree") if isinstance(data, dict) else None
        if not tree:
            logger.info(f"No tree returned for {ref.full_name}")
            return []

        paths = [entry["path"] for entry in tree if entry.get("type") == "blob"]
        self.cache.set(cache_key, paths, issued_at=issued_at)
        logger.info(f"Listed {len(paths)} files in {ref.full_name}")
        return [FileEntry(path=path) for path in paths]

    async def get_file_content(self, ref: RepositoryReference, path: str) -> FileContentResult:
        """
        Fetch the raw text of one file

        Args:
            ref: Repository containing the file
            path: File path relative to the repository root

        Returns:
            FileContentResult; content is None for failures and non-text files
        """
        cache_key = f"content-{ref.owner}-{ref.name}-{path}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return FileContentResult(path=path, content=cached)

        issued_at = self.cache.now()
        url = f"{self.api_url}/repos/{ref.owner}/{ref.name}/contents/{quote(path)}"

        async def fetch_raw() -> str | None:
            response = await self.client.get(
                url, headers={"Accept": "application/vnd.github.raw"}
            )
            response.raise_for_status()
            return _decode_text(response)

        try:
            content = await self._call(fetch_raw, f"{ref.full_name}:{path}")
        except Exception as e:
            logger.warning(f"Error fetching content for {path}: {e}")
            return FileContentResult(path=path, error=str(e) or type(e).__name__)

        if content is None:
            logger.debug(f"Skipping non-text content for {path}")
            return FileContentResult(path=path, error="Not a text file")

        self.cache.set(cache_key, content, issued_at=issued_at)
        logger.debug(f"✓ Fetched {path}")
        return FileContentResult(path=path, content=content)

    async def get_file_text(self, ref: RepositoryReference, path: str) -> str | None:
        """Convenience wrapper returning only the text (None on any failure)"""
        result = await self.get_file_content(ref, path)
        return result.content

    async def get_open_issues(self, ref: RepositoryReference) -> str:
        """Summarize open issues (pull requests excluded)"""
        items = await self._list_summary_items(ref, "issues")
        if items is None:
            return "Issues not available"
        issues = [item for item in items if "pull_request" not in item]
        if not issues:
            return "No open issues found"
        return _format_summary(issues)

    async def get_open_pull_requests(self, ref: RepositoryReference) -> str:
        """Summarize open pull requests"""
        items = await self._list_summary_items(ref, "pulls")
        if items is None:
            return "Pull requests not available"
        if not items:
            return "No open pull requests found"
        return _format_summary(items)

    async def _list_summary_items(
        self, ref: RepositoryReference, kind: str
    ) -> list[dict] | None:
        """List open issues or pull requests; None if the call failed"""
        cache_key = f"{kind}-{ref.owner}-{ref.name}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        issued_at = self.cache.now()
        url = f"{self.api_url}/repos/{ref.owner}/{ref.name}/{kind}"
        params = {"state": "open", "per_page": str(self.fetching_config.summary_limit)}

        async def fetch_items() -> list[dict]:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, list):
                raise GitHubFetchError(f"Unexpected {kind} payload for {ref.full_name}")
            return data

        try:
            items = await self._call(fetch_items, f"{kind} of {ref.full_name}")
        except Exception as e:
            logger.warning(f"Error fetching {kind} for {ref.full_name}: {e}")
            return None

        self.cache.set(cache_key, items, issued_at=issued_at)
        return items

    async def close(self) -> None:
        """Close the HTTP client"""
        await self.client.aclose()

    async def __aenter__(self) -> "GitHubFetcher":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


def _decode_text(response: httpx.Response) -> str | None:
    """Return the body as text, or None for JSON listings and binary payloads"""
    content_type = response.headers.get("content-type", "")
    # Directories and submodules come back as JSON metadata, not raw content
    if "application/json" in content_type:
        return None
    try:
        text = response.content.decode("utf-8")
    except UnicodeDecodeError:
        return None
    if "\x00" in text:
        return None
    return text


def _format_summary(items: list[dict]) -> str:
    lines = []
    for item in items:
        body = item.get("body") or ""
        suffix = "..." if len(body) > SUMMARY_BODY_CHARS else ""
        lines.append(
            f"#{item.get('number')}: {item.get('title', '')}\n"
            f"{body[:SUMMARY_BODY_CHARS]}{suffix}\n"
        )
    return "\n".join(lines)
