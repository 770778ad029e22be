from datetime import datetime
from typing import Any, Dict, Iterable, List
from repo_dashboard.domain.models import (
    DirectoryEntry,
    EntryKind,
    FileContent,
    RepositoryMetadata,
)

class GitHubTranslator:
    """
    Anti-corruption layer that translates raw GitHub REST JSON responses into domain models.
    """

    @staticmethod
    def to_metadata(raw: Dict[str, Any]) -> RepositoryMetadata:
        """
        Transforms the body of GET /repos/{owner}/{name} into RepositoryMetadata.

        Args:
            raw (Dict[str, Any]): The decoded JSON object returned by GitHub.

        Returns:
            RepositoryMetadata: The immutable metadata snapshot.
        """
        owner_data = raw.get('owner') or {}

        for field in ('created_at', 'updated_at'):
            if not raw.get(field):
                raise ValueError(f"{field} is required to build RepositoryMetadata.")

        return RepositoryMetadata(
            id=raw.get('id', 0),
            name=raw.get('name', ''),
            full_name=raw.get('full_name', ''),
            description=raw.get('description'),
            html_url=raw.get('html_url', ''),
            owner_login=owner_data.get('login', ''),
            owner_avatar_url=owner_data.get('avatar_url'),
            default_branch=raw.get('default_branch', 'main'),
            created_at=_parse_timestamp(raw['created_at']),
            updated_at=_parse_timestamp(raw['updated_at']),
            pushed_at=_parse_timestamp(raw['pushed_at']) if raw.get('pushed_at') else None,
            size=raw.get('size') or 0,
            language=raw.get('language'),
        )

    @staticmethod
    def to_entry(raw: Dict[str, Any]) -> DirectoryEntry:
        # Symlinks and submodules are shown as plain files.
        kind = EntryKind.DIRECTORY if raw.get('type') == 'dir' else EntryKind.FILE
        return DirectoryEntry(name=raw.get('name', ''), kind=kind)

    @staticmethod
    def to_entries(raw_items: Iterable[Dict[str, Any]]) -> List[DirectoryEntry]:
        return [GitHubTranslator.to_entry(item) for item in raw_items if isinstance(item, dict)]

    @staticmethod
    def to_file_content(raw: Any) -> FileContent:
        """
        Transforms the body of GET /repos/{owner}/{name}/contents/{path} for a file.
        Raises ValueError when the body describes a directory instead.
        """
        if not isinstance(raw, dict):
            raise ValueError("Expected a file object, got a directory listing.")

        return FileContent(
            name=raw.get('name', ''),
            path=raw.get('path', ''),
            sha=raw.get('sha', ''),
            size=raw.get('size') or 0,
            encoding=raw.get('encoding'),
            content=raw.get('content') or '',
        )


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
