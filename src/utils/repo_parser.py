"""Parse user-supplied repository references"""

import re

from src.models.repository import RepositoryReference
from src.services.errors import InvalidReferenceError

# https://<host>/<owner>/<repo>, optionally followed by a path, query or fragment
_URL_PATTERN = re.compile(r"^https?://[^/\s]+/([^/\s]+)/([^/\s#?]+)", re.IGNORECASE)

# owner/repo
_SHORTHAND_PATTERN = re.compile(r"^([^/\s]+)/([^/\s#?]+)/*$")


def parse_repo_reference(value: str | None) -> RepositoryReference:
    """
    Normalize a repository URL or owner/repo shorthand

    Args:
        value: Full repository URL or "owner/repo"

    Returns:
        RepositoryReference with canonical owner and name

    Raises:
        InvalidReferenceError: If neither form matches
    """
    text = (value or "").strip()

    match = _URL_PATTERN.match(text) or _SHORTHAND_PATTERN.match(text)
    if not match:
        raise InvalidReferenceError(text)

    owner = match.group(1).strip()
    name = match.group(2).rstrip("/").strip()
    if not owner or not name:
        raise InvalidReferenceError(text)

    return RepositoryReference(owner=owner, name=name)
