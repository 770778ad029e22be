import logging
from typing import List, Optional

from repo_dashboard.application.repository_browser import FETCH_ERRORS, RepositoryBrowser, join_path
from repo_dashboard.domain.models import (
    PersistedFile,
    PersistedRepository,
    RepositoryReference,
)
from repo_dashboard.infrastructure.database import PostgresRepository

logger = logging.getLogger(__name__)


class RepositorySyncService:
    """
    Copies fetched repositories and files into the database.

    Files are always stored under an already persisted repository row. Saves
    are independent: a failed file does not undo the repository row or other
    files.
    """

    def __init__(self, browser: RepositoryBrowser, gateway: PostgresRepository):
        self.browser = browser
        self.gateway = gateway

    async def sync_repository(self, ref: RepositoryReference) -> Optional[PersistedRepository]:
        metadata = await self.browser.fetch_metadata(ref)
        persisted = await self.gateway.save_repository(metadata)
        if persisted is not None:
            logger.info(f"Saved repository {persisted.full_name} as row {persisted.id}.")
        return persisted

    async def sync_file(
        self,
        repository: PersistedRepository,
        ref: RepositoryReference,
        path: str,
    ) -> Optional[PersistedFile]:
        file = await self.browser.fetch_file_content(ref, path)
        return await self.gateway.save_file(repository.id, file)

    async def sync_directory(
        self,
        repository: PersistedRepository,
        ref: RepositoryReference,
        path: str = "",
    ) -> List[PersistedFile]:
        """
        Saves every file directly inside ``path``. Sub-directories are skipped.

        Returns:
            The rows that were stored; files that failed to save are left out.
        """
        listing = await self.browser.list_directory(ref, path)
        saved: List[PersistedFile] = []

        for entry in listing.entries:
            if entry.is_directory:
                continue
            file_path = join_path(path, entry.name)
            try:
                persisted = await self.sync_file(repository, ref, file_path)
            except FETCH_ERRORS as e:
                logger.error(f"Skipping {file_path}: {e}")
                continue
            if persisted is not None:
                saved.append(persisted)

        logger.info(
            f"Synced {len(saved)} file(s) from {ref.full_name}:{path or '/'}."
        )
        return saved
