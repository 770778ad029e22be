from urllib.parse import urlsplit

from repo_dashboard.domain.exceptions import InvalidReferenceError
from repo_dashboard.domain.models import RepositoryReference

GITHUB_HOST_MARKER = "github.com"


def resolve(value: str) -> RepositoryReference:
    """
    Resolves user input into a RepositoryReference.

    Accepts either a full GitHub URL (``https://github.com/owner/name/...``, any
    segments after the name are ignored) or the literal ``owner/name`` form.

    Raises:
        InvalidReferenceError: if the input matches neither form.
    """
    if GITHUB_HOST_MARKER in value:
        return _resolve_url(value)

    parts = value.split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidReferenceError(value)

    owner, name = parts
    return RepositoryReference(owner=owner, name=name)


def _resolve_url(value: str) -> RepositoryReference:
    try:
        parsed = urlsplit(value)
    except ValueError as e:
        raise InvalidReferenceError(value) from e

    # Only absolute URLs are accepted; "github.com/owner/name" has no scheme.
    if not parsed.scheme or not parsed.netloc:
        raise InvalidReferenceError(value)

    segments = [segment for segment in parsed.path.split("/") if segment]
    if len(segments) < 2:
        raise InvalidReferenceError(value)

    return RepositoryReference(owner=segments[0], name=segments[1])
