"""CLI command for generating documentation for one repository"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from src.config import AppConfig
from src.models.fetch_config import FetchingConfig, GitHubConfig
from src.models.generation import GenerateDocsRequest, GenerationOptions
from src.services.doc_cache_store import DocCacheStore
from src.services.doc_pipeline import DocPipeline
from src.services.errors import PipelineError
from src.services.generator import DocGenerator
from src.services.github_fetcher import GitHubFetcher
from src.services.memory_cache import MemoryCache


def setup_logging() -> None:
    """Configure logging for CLI (stderr, so stdout carries only the documentation)"""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate documentation for a GitHub repository")
    parser.add_argument("repo", help="Repository URL or owner/repo")
    parser.add_argument("--force-refresh", action="store_true", help="Ignore cached documentation")
    parser.add_argument("--output", "-o", type=Path, help="Write documentation to this file")
    parser.add_argument("--custom-prompt", default="", help="Custom generation instructions")
    parser.add_argument("--full", action="store_true", help="Disable quick mode (larger context)")
    parser.add_argument("--no-readme", action="store_true", help="Do not prioritize the README")
    parser.add_argument("--no-source", action="store_true", help="Exclude source code files")
    parser.add_argument("--issues", action="store_true", help="Include open issue summaries")
    parser.add_argument("--pulls", action="store_true", help="Include open pull request summaries")
    return parser.parse_args(argv)


def build_request(args: argparse.Namespace) -> GenerateDocsRequest:
    options = GenerationOptions(
        include_readme=not args.no_readme,
        include_source_code=not args.no_source,
        include_issues=args.issues,
        include_pull_requests=args.pulls,
        quick_mode=not args.full,
        custom_prompt=args.custom_prompt,
    )
    return GenerateDocsRequest(
        repo_url=args.repo, context_options=options, force_refresh=args.force_refresh
    )


async def run(args: argparse.Namespace, app_config: AppConfig) -> str:
    """Build a pipeline, run one request, and close it"""
    memory_cache = MemoryCache(ttl_seconds=app_config.memory_cache_ttl_seconds)
    doc_store = DocCacheStore(app_config.doc_cache_db_path)
    await doc_store.initialize()

    pipeline = DocPipeline(
        fetcher=GitHubFetcher(
            memory_cache,
            github_config=GitHubConfig.from_app_config(app_config),
            fetching_config=FetchingConfig.from_app_config(app_config),
        ),
        generator=DocGenerator.from_app_config(app_config),
        doc_store=doc_store,
        memory_cache=memory_cache,
        app_config=app_config,
    )
    try:
        result = await pipeline.generate(build_request(args))
    finally:
        await pipeline.close()

    if result.from_cache:
        logging.getLogger(__name__).info(f"Served from cache (generated {result.cached_at})")
    return result.documentation


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the generate CLI command

    Returns:
        int: Exit code (0 for success, 1 for failure)
    """
    setup_logging()
    logger = logging.getLogger(__name__)

    if Path(".env").exists():
        load_dotenv()
    args = parse_args(argv)

    try:
        documentation = asyncio.run(run(args, AppConfig()))
    except PipelineError as e:
        logger.error(f"Documentation generation failed: {e.message}")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(documentation, encoding="utf-8")
        logger.info(f"Documentation written to {args.output}")
    else:
        print(documentation)
    return 0


if __name__ == "__main__":
    sys.exit(main())
