"""Unit tests for context assembly"""

import asyncio

import pytest

from src.models.context import ContextLimits
from src.models.repository import FileContentResult, FileSelection, RepositoryReference
from src.services.context_assembler import (
    OMITTED_FILES_MARKER,
    TRUNCATED_FILE_MARKER,
    ContextAssembler,
    trim_file_content,
)
from src.services.errors import EmptyContextError

REF = RepositoryReference(owner="octo", name="demo")


class FakeFetcher:
    """In-memory stand-in for the GitHub fetcher"""

    def __init__(self, contents: dict[str, str | None], delays: dict[str, float] | None = None):
        self.contents = contents
        self.delays = delays or {}
        self.requested: list[str] = []

    async def get_file_content(self, ref, path):
        self.requested.append(path)
        await asyncio.sleep(self.delays.get(path, 0))
        content = self.contents.get(path)
        if content is None:
            return FileContentResult(path=path, error="Not a text file")
        return FileContentResult(path=path, content=content)

    async def get_file_text(self, ref, path):
        result = await self.get_file_content(ref, path)
        return result.content


class TestTrimFileContent:
    def test_short_content_unchanged(self):
        assert trim_file_content("abc", 5) == "abc"

    def test_long_content_marked(self):
        assert trim_file_content("abcdefgh", 5) == "abcde" + TRUNCATED_FILE_MARKER


class TestContextAssembler:
    """Test ordering, ceilings and failure handling"""

    async def test_readme_first_then_sections_then_files(self):
        fetcher = FakeFetcher({"README.md": "# Demo", "src/a.py": "print(1)"})
        assembler = ContextAssembler(fetcher)
        selection = FileSelection(readme="README.md", files=["src/a.py"])

        context = await assembler.assemble(
            REF, selection, ContextLimits(), sections=[("Open Issues", "#1: Bug\n")]
        )

        assert context == (
            "\n\n--- File: README.md (README) ---\n# Demo"
            "\n\n--- Open Issues ---\n#1: Bug\n"
            "\n\n--- File: src/a.py ---\nprint(1)"
        )

    async def test_files_keep_ranked_order_despite_fetch_timing(self):
        """Test that slower early files still appear before faster later ones"""
        files = [f"f{i}.py" for i in range(8)]
        contents = {path: f"content {path}" for path in files}
        delays = {"f0.py": 0.05, "f1.py": 0.03}
        assembler = ContextAssembler(FakeFetcher(contents, delays), concurrency=5)

        context = await assembler.assemble(REF, FileSelection(files=files), ContextLimits())

        positions = [context.index(f"--- File: {path} ---") for path in files]
        assert positions == sorted(positions)

    async def test_per_file_ceiling(self):
        fetcher = FakeFetcher({"big.txt": "x" * 500})
        limits = ContextLimits(max_file_chars=100)

        context = await ContextAssembler(fetcher).assemble(
            REF, FileSelection(files=["big.txt"]), limits
        )

        assert "x" * 100 + TRUNCATED_FILE_MARKER in context
        assert "x" * 101 not in context

    async def test_global_ceiling(self):
        """Test that output never exceeds the ceiling plus the omission marker"""
        files = [f"src/m{i}.py" for i in range(20)]
        fetcher = FakeFetcher({path: "y" * 400 for path in files})
        limits = ContextLimits(max_file_chars=5000, max_context_chars=1500)

        context = await ContextAssembler(fetcher).assemble(
            REF, FileSelection(files=files), limits
        )

        assert len(context) <= 1500 + len(OMITTED_FILES_MARKER)
        assert context.endswith(OMITTED_FILES_MARKER)
        assert "--- File: src/m0.py ---" in context
        assert "--- File: src/m19.py ---" not in context

    async def test_workers_stop_fetching_after_ceiling(self):
        files = [f"src/m{i}.py" for i in range(50)]
        fetcher = FakeFetcher({path: "z" * 1000 for path in files})
        limits = ContextLimits(max_context_chars=2000)

        await ContextAssembler(fetcher, concurrency=5).assemble(
            REF, FileSelection(files=files), limits
        )

        assert len(fetcher.requested) < len(files)

    async def test_context_is_ranked_prefix_when_a_worker_stops_early(self):
        """Test that a lower-ranked file is never kept after an unfetched higher-ranked one"""
        files = [f"f{i}.py" for i in range(6)]
        contents = {path: "small" for path in files}
        contents["f5.py"] = "w" * 2000
        fetcher = FakeFetcher(contents, delays={"f0.py": 0.05})
        limits = ContextLimits(max_file_chars=5000, max_context_chars=1000)

        context = await ContextAssembler(fetcher, concurrency=2).assemble(
            REF, FileSelection(files=files), limits
        )

        assert "f2.py" not in fetcher.requested
        assert "--- File: f0.py ---" in context
        assert "--- File: f1.py ---" in context
        assert "f3.py" not in context
        assert context.endswith(OMITTED_FILES_MARKER)

    async def test_oversized_head_raises(self):
        """Test that a context holding nothing but the omission marker is rejected"""
        fetcher = FakeFetcher({"README.md": "r" * 3000, "src/a.py": "code"})
        selection = FileSelection(readme="README.md", files=["src/a.py"])
        limits = ContextLimits(max_file_chars=5000, max_context_chars=1000)

        with pytest.raises(EmptyContextError):
            await ContextAssembler(fetcher).assemble(REF, selection, limits)

    async def test_no_marker_when_everything_fits(self):
        fetcher = FakeFetcher({"a.md": "alpha", "b.md": "beta"})

        context = await ContextAssembler(fetcher).assemble(
            REF, FileSelection(files=["a.md", "b.md"]), ContextLimits()
        )

        assert OMITTED_FILES_MARKER not in context

    async def test_unavailable_files_skipped(self):
        fetcher = FakeFetcher({"ok.md": "fine", "missing.md": None})

        context = await ContextAssembler(fetcher).assemble(
            REF, FileSelection(files=["missing.md", "ok.md"]), ContextLimits()
        )

        assert "missing.md" not in context
        assert "--- File: ok.md ---\nfine" in context

    async def test_missing_readme_does_not_fail(self):
        fetcher = FakeFetcher({"src/a.py": "code"})
        selection = FileSelection(readme="README.md", files=["src/a.py"])

        context = await ContextAssembler(fetcher).assemble(REF, selection, ContextLimits())

        assert "(README)" not in context
        assert "src/a.py" in context

    async def test_empty_context_raises(self):
        """Test that whitespace-only output is reported as an error"""
        fetcher = FakeFetcher({"a.bin": None, "b.bin": None})

        with pytest.raises(EmptyContextError) as exc_info:
            await ContextAssembler(fetcher).assemble(
                REF, FileSelection(files=["a.bin", "b.bin"]), ContextLimits()
            )

        assert exc_info.value.status_code == 500

    async def test_empty_selection_raises(self):
        with pytest.raises(EmptyContextError):
            await ContextAssembler(FakeFetcher({})).assemble(
                REF, FileSelection(), ContextLimits()
            )
