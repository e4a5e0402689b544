"""Unit tests for repository reference parsing"""

import pytest

from src.services.errors import InvalidReferenceError
from src.utils.repo_parser import parse_repo_reference


class TestParseRepoReference:
    """Test URL and shorthand parsing"""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("https://github.com/facebook/react", ("facebook", "react")),
            ("https://github.com/facebook/react/", ("facebook", "react")),
            ("https://github.com/facebook/react/tree/main/packages", ("facebook", "react")),
            ("https://github.com/facebook/react?tab=readme", ("facebook", "react")),
            ("https://github.com/facebook/react#readme", ("facebook", "react")),
            ("HTTPS://GitHub.com/facebook/react", ("facebook", "react")),
            ("  https://github.com/facebook/react  ", ("facebook", "react")),
            ("zaid-commits/autodocs.ai", ("zaid-commits", "autodocs.ai")),
            ("zaid-commits/autodocs.ai/", ("zaid-commits", "autodocs.ai")),
            ("owner/repo\n", ("owner", "repo")),
        ],
    )
    def test_valid_references(self, value, expected):
        """Test that both accepted forms yield the canonical pair"""
        ref = parse_repo_reference(value)

        assert (ref.owner, ref.name) == expected
        assert ref.full_name == f"{expected[0]}/{expected[1]}"

    @pytest.mark.parametrize(
        "value",
        [
            "not a repo",
            "",
            None,
            "facebook",
            "https://github.com/facebook",
            "owner/repo/extra",
            "owner / repo",
            "ftp://github.com/facebook/react",
        ],
    )
    def test_invalid_references(self, value):
        """Test that anything else is rejected before any network call"""
        with pytest.raises(InvalidReferenceError) as exc_info:
            parse_repo_reference(value)

        assert exc_info.value.status_code == 400
        assert "Invalid GitHub repository URL format" in exc_info.value.message

    def test_reference_is_immutable(self):
        """Test that a parsed reference cannot be modified"""
        ref = parse_repo_reference("facebook/react")

        with pytest.raises(Exception):
            ref.owner = "someone-else"
