"""Durable documentation cache backed by SQLite

The durable tier is an optimization, never a correctness dependency: every
storage error is logged and degrades to a miss (reads) or a skipped write.
Each operation opens its own connection, so no connection outlives the event
loop that opened it.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from src.models.cache import DocCacheEntry
from src.models.generation import GenerationOptions, options_equal
from src.models.repository import RepositoryReference

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS doc_cache (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    repo_owner            TEXT NOT NULL,
    repo_name             TEXT NOT NULL,
    options_supplied      INTEGER NOT NULL,
    include_readme        INTEGER NOT NULL,
    include_source_code   INTEGER NOT NULL,
    include_issues        INTEGER NOT NULL,
    include_pull_requests INTEGER NOT NULL,
    quick_mode            INTEGER NOT NULL,
    custom_prompt         TEXT NOT NULL DEFAULT '',
    context_options       TEXT NOT NULL,
    documentation         TEXT NOT NULL,
    created_at            TEXT NOT NULL,
    updated_at            TEXT NOT NULL
)
"""

# One row per (owner, name, option equivalence class); requests without options
# are generated under their own selection rules and get their own row
_CREATE_UNIQUE_INDEX = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_doc_cache_identity ON doc_cache (
    repo_owner, repo_name, options_supplied, include_readme, include_source_code,
    include_issues, include_pull_requests, quick_mode, custom_prompt
)
"""

_UPSERT = """
INSERT INTO doc_cache (
    repo_owner, repo_name, options_supplied, include_readme, include_source_code,
    include_issues, include_pull_requests, quick_mode, custom_prompt, context_options,
    documentation, created_at, updated_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (
    repo_owner, repo_name, options_supplied, include_readme, include_source_code,
    include_issues, include_pull_requests, quick_mode, custom_prompt
) DO UPDATE SET
    documentation = excluded.documentation,
    context_options = excluded.context_options,
    updated_at = excluded.updated_at
"""

_SELECT_BY_REPO = """
SELECT repo_owner, repo_name, options_supplied, include_readme, include_source_code,
       include_issues, include_pull_requests, quick_mode, custom_prompt, documentation,
       created_at, updated_at
FROM doc_cache
WHERE repo_owner = ? AND repo_name = ?
ORDER BY updated_at DESC
"""


class DocCacheStore:
    """Persisted documentation keyed by repository and generation options"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._ready = False

    @property
    def available(self) -> bool:
        """Whether the schema was created and the tier is in use"""
        return self._ready

    async def initialize(self) -> None:
        """Create the database and schema; leaves the store disabled on failure"""
        try:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute("PRAGMA journal_mode = WAL")
                await db.execute(_CREATE_TABLE)
                await db.execute(_CREATE_UNIQUE_INDEX)
                await db.commit()
            self._ready = True
            logger.info(f"Durable doc cache ready at {self.db_path}")
        except (aiosqlite.Error, OSError) as e:
            logger.error(f"Durable doc cache unavailable ({self.db_path}): {e}", exc_info=True)
            self._ready = False

    async def list_entries(self, ref: RepositoryReference) -> list[DocCacheEntry]:
        """All cached variants for a repository, newest first"""
        if not self._ready:
            return []
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(_SELECT_BY_REPO, (ref.owner, ref.name))
            rows = await cursor.fetchall()
            await cursor.close()
        return [_row_to_entry(row) for row in rows]

    async def find(
        self, ref: RepositoryReference, options: GenerationOptions | None
    ) -> DocCacheEntry | None:
        """
        Look up documentation generated with option-equal settings

        Args:
            ref: Repository
            options: Caller options (None = caller supplied no options)

        Returns:
            The matching entry, or None on miss or storage error
        """
        try:
            entries = await self.list_entries(ref)
        except (aiosqlite.Error, ValueError) as e:
            logger.warning(f"Durable cache read failed for {ref.full_name}: {e}", exc_info=True)
            return None

        for entry in entries:
            if entry.context_options is None or options is None:
                matched = entry.context_options is None and options is None
            else:
                matched = options_equal(entry.context_options, options)
            if matched:
                logger.info(f"Durable cache hit for {ref.full_name}")
                return entry
        return None

    async def upsert(
        self,
        ref: RepositoryReference,
        options: GenerationOptions | None,
        documentation: str,
    ) -> bool:
        """
        Insert or replace the documentation for (repo, options)

        Returns:
            True if written, False if the store is unavailable or the write failed
        """
        if not self._ready:
            return False

        now = datetime.now(timezone.utc).isoformat()
        include_readme, include_source, include_issues, include_prs, quick, custom = (
            options or GenerationOptions()
        ).cache_fields()
        options_json = json.dumps(options.model_dump(by_alias=True) if options else None)
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    _UPSERT,
                    (
                        ref.owner,
                        ref.name,
                        int(options is not None),
                        int(include_readme),
                        int(include_source),
                        int(include_issues),
                        int(include_prs),
                        int(quick),
                        custom,
                        options_json,
                        documentation,
                        now,
                        now,
                    ),
                )
                await db.commit()
            logger.info(f"Stored documentation for {ref.full_name} in durable cache")
            return True
        except (aiosqlite.Error, ValueError) as e:
            logger.warning(f"Durable cache write failed for {ref.full_name}: {e}", exc_info=True)
            return False


def _row_to_entry(row: tuple) -> DocCacheEntry:
    (
        owner,
        name,
        options_supplied,
        include_readme,
        include_source,
        include_issues,
        include_prs,
        quick,
        custom,
        documentation,
        created_at,
        updated_at,
    ) = row
    options = None
    if options_supplied:
        options = GenerationOptions(
            include_readme=bool(include_readme),
            include_source_code=bool(include_source),
            include_issues=bool(include_issues),
            include_pull_requests=bool(include_prs),
            quick_mode=bool(quick),
            custom_prompt=custom,
        )
    return DocCacheEntry(
        repo_owner=owner,
        repo_name=name,
        context_options=options,
        documentation=documentation,
        created_at=datetime.fromisoformat(created_at),
        updated_at=datetime.fromisoformat(updated_at),
    )
