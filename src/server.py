"""HTTP + MCP server exposing the documentation pipeline using fastmcp"""

import asyncio
import json
import logging
import time
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import McpError
from mcp.types import ErrorData
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from src.config import config
from src.models.fetch_config import FetchingConfig, GitHubConfig
from src.models.generation import GenerateDocsRequest
from src.services.doc_cache_store import DocCacheStore
from src.services.doc_pipeline import DocPipeline
from src.services.errors import PipelineError
from src.services.generator import DocGenerator
from src.services.github_fetcher import GitHubFetcher
from src.services.memory_cache import MemoryCache
from src.services.telemetry import get_telemetry_service

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

GENERATE_DOCS_PATH = "/api/generate-docs-from-url"

mcp = FastMCP(name="autodocs-pipeline", version="1.0.0")

# Pipeline and its caches live for the whole process (set up on first request)
_pipeline: DocPipeline | None = None
_pipeline_lock = asyncio.Lock()


async def _get_pipeline() -> DocPipeline:
    """Get or initialize the pipeline and the cache tiers it owns"""
    global _pipeline

    async with _pipeline_lock:
        if _pipeline is None:
            memory_cache = MemoryCache(ttl_seconds=config.memory_cache_ttl_seconds)
            fetcher = GitHubFetcher(
                memory_cache,
                github_config=GitHubConfig.from_app_config(config),
                fetching_config=FetchingConfig.from_app_config(config),
            )
            doc_store = DocCacheStore(config.doc_cache_db_path)
            await doc_store.initialize()

            _pipeline = DocPipeline(
                fetcher=fetcher,
                generator=DocGenerator.from_app_config(config),
                doc_store=doc_store,
                memory_cache=memory_cache,
                app_config=config,
            )
            logger.info(
                "Documentation pipeline initialized "
                f"(durable cache {'enabled' if doc_store.available else 'disabled'})"
            )

    return _pipeline


async def run_generate_docs(payload: Any) -> tuple[int, dict[str, Any], Exception | None]:
    """
    Validate a request body and run the pipeline

    Args:
        payload: Decoded JSON body

    Returns:
        Tuple of (status_code, response_body, error)
    """
    try:
        docs_request = GenerateDocsRequest.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Rejected malformed request: {e.error_count()} validation errors")
        return 400, {"error": "Invalid request body."}, e

    try:
        pipeline = await _get_pipeline()
        result = await pipeline.generate(docs_request)
        return 200, result.to_payload(), None
    except PipelineError as e:
        log = logger.warning if e.status_code < 500 else logger.error
        log(f"Documentation request failed ({e.status_code}): {e.message}")
        return e.status_code, e.to_response(), e
    except Exception as e:
        logger.error(f"Error processing GitHub repository: {e}", exc_info=True)
        return 500, {"error": str(e) or "An unknown error occurred"}, e


@mcp.custom_route(GENERATE_DOCS_PATH, methods=["POST"])
async def generate_docs_route(request: Request) -> JSONResponse:
    """POST endpoint: {repoUrl, contextOptions?, forceRefresh?} → {documentation, ...}"""
    telemetry = get_telemetry_service()
    start_time = time.time()
    payload: Any = None
    error: Exception | None = None

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        status, body, error = 400, {"error": "Request body must be valid JSON."}, e
    else:
        status, body, error = await run_generate_docs(payload)

    params = payload if isinstance(payload, dict) else {}
    telemetry.log_generation(
        endpoint="generate_docs_route",
        repo_url=params.get("repoUrl"),
        parameters={
            "context_options": _option_flags(params.get("contextOptions")),
            "force_refresh": params.get("forceRefresh", False),
        },
        response=body if error is None else None,
        error=error,
        duration_ms=(time.time() - start_time) * 1000,
    )
    return JSONResponse(body, status_code=status)


@mcp.tool()
async def generate_docs(
    repo_url: str,
    context_options: dict[str, Any] | None = None,
    force_refresh: bool = False,
) -> dict[str, Any]:
    """Generate documentation for a GitHub repository

    Args:
        repo_url: Repository URL or owner/repo shorthand
        context_options: includeReadme, includeSourceCode, includeIssues,
            includePullRequests, quickMode, customPrompt
        force_refresh: Ignore cached documentation and regenerate

    Returns:
        dict: documentation plus fromCache/cachedAt when served from cache
    """
    telemetry = get_telemetry_service()
    start_time = time.time()
    error: Exception | None = None
    response = None

    try:
        status, body, failure = await run_generate_docs(
            {
                "repoUrl": repo_url,
                "contextOptions": context_options,
                "forceRefresh": force_refresh,
            }
        )
        if failure is not None:
            error = failure
            code = -32602 if status == 400 else -32603
            raise McpError(ErrorData(code=code, message=body["error"]))
        response = body
        return body

    finally:
        telemetry.log_generation(
            endpoint="generate_docs",
            repo_url=repo_url,
            parameters={
                "context_options": _option_flags(context_options),
                "force_refresh": force_refresh,
            },
            response=response,
            error=error,
            duration_ms=(time.time() - start_time) * 1000,
        )


def _option_flags(options: Any) -> dict[str, Any] | None:
    """Map camelCase request options to the snake_case names telemetry records"""
    if not isinstance(options, dict):
        return None
    names = {
        "includeReadme": "include_readme",
        "includeSourceCode": "include_source_code",
        "includeIssues": "include_issues",
        "includePullRequests": "include_pull_requests",
        "quickMode": "quick_mode",
        "customPrompt": "custom_prompt",
    }
    return {names.get(key, key): value for key, value in options.items()}


# Both routes point to the same function so clients can use either path
@mcp.custom_route("/", methods=["GET"])
@mcp.custom_route("/health", methods=["GET"])
def health_check(request):
    return JSONResponse({"status": "ok"})


def _shutdown_sync() -> None:
    """Release the pipeline on server shutdown

    Runs after the server's event loop has stopped. The durable store holds no
    open connection, and the HTTP client's pool is discarded with its loop.
    """
    global _pipeline

    if _pipeline is not None:
        logger.info(
            f"Shutting down documentation pipeline "
            f"({len(_pipeline.memory_cache)} in-memory cache entries dropped)"
        )
        _pipeline = None


def main() -> None:
    """Entry point for the server"""
    if not config.github_token:
        logger.error("GitHub token not configured; every request will fail with 500")
    if not config.gemini_api_key:
        logger.error("Gemini API key not configured; every request will fail with 500")

    try:
        mcp.run(transport="streamable-http", host=config.server_host, port=config.server_port)
    finally:
        _shutdown_sync()


if __name__ == "__main__":
    main()
