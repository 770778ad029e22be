import asyncio
import logging
from typing import Iterable, List, Optional

import aiohttp

from repo_dashboard.domain.exceptions import DashboardException
from repo_dashboard.domain.models import (
    DirectoryEntry,
    DirectoryListing,
    FileContent,
    RepositoryMetadata,
    RepositoryReference,
)
from repo_dashboard.infrastructure.acl import GitHubTranslator
from repo_dashboard.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)

# Anything a fetch can raise that should end up in the navigator's error slot.
FETCH_ERRORS = (DashboardException, aiohttp.ClientError, asyncio.TimeoutError, ValueError)


def sort_entries(entries: Iterable[DirectoryEntry]) -> List[DirectoryEntry]:
    """Directories before files; each group ordered by name."""
    return sorted(entries, key=lambda entry: (not entry.is_directory, entry.name))


def join_path(path: str, name: str) -> str:
    return f"{path}/{name}" if path else name


def parent_path(path: str) -> str:
    return path.rpartition("/")[0]


class RepositoryBrowser:
    """
    Fetches repository metadata, directory listings and single files through the
    GitHub REST client. Holds no navigation state of its own.
    """

    def __init__(self, github_client: GitHubRestClient, session: aiohttp.ClientSession):
        self.github_client = github_client
        self.session = session

    async def fetch_metadata(self, ref: RepositoryReference) -> RepositoryMetadata:
        raw = await self.github_client.fetch_repository(self.session, ref)
        metadata = GitHubTranslator.to_metadata(raw)
        logger.info(f"Fetched metadata for {metadata.full_name}.")
        return metadata

    async def list_directory(self, ref: RepositoryReference, path: str = "") -> DirectoryListing:
        """
        Lists the entries at ``path`` ("" is the repository root).

        A body that is not a JSON array (for example when ``path`` names a file)
        yields an empty listing instead of an error.
        """
        raw = await self.github_client.fetch_contents(self.session, ref, path)

        if not isinstance(raw, list):
            logger.warning(f"Contents of {ref.full_name}:{path or '/'} is not a directory listing.")
            return DirectoryListing(path=path)

        entries = sort_entries(GitHubTranslator.to_entries(raw))
        return DirectoryListing(path=path, entries=tuple(entries))

    async def fetch_file_content(self, ref: RepositoryReference, path: str) -> FileContent:
        raw = await self.github_client.fetch_contents(self.session, ref, path)
        return GitHubTranslator.to_file_content(raw)


class FileTreeNavigator:
    """
    Navigation state over one repository's file tree.

    The current location is ``path`` ("" is the root). Every transition bumps a
    generation counter; a listing or file request whose generation no longer
    matches when it resolves is dropped so it cannot overwrite newer state.
    """

    def __init__(self, browser: RepositoryBrowser, ref: RepositoryReference):
        self.browser = browser
        self.ref = ref
        self.path = ""
        self.listing: Optional[DirectoryListing] = None
        self.selected_file: Optional[FileContent] = None
        self.error: Optional[str] = None
        self._generation = 0
        self._selection = 0

    @property
    def at_root(self) -> bool:
        return self.path == ""

    def enter_directory(self, name: str) -> str:
        self._move_to(join_path(self.path, name))
        return self.path

    def navigate_up(self) -> str:
        if self.at_root:
            return self.path
        self._move_to(parent_path(self.path))
        return self.path

    def _move_to(self, path: str) -> None:
        self.path = path
        self.listing = None
        self.selected_file = None
        self._generation += 1

    async def refresh(self) -> Optional[DirectoryListing]:
        """
        Loads the listing for the current path.

        Returns:
            The listing, or None if it failed or went stale while in flight.
        """
        generation = self._generation
        path = self.path
        self.error = None

        try:
            listing = await self.browser.list_directory(self.ref, path)
        except FETCH_ERRORS as e:
            if generation == self._generation:
                self.error = str(e)
            return None

        if generation != self._generation:
            logger.debug(f"Discarding stale listing for {self.ref.full_name}:{path or '/'}.")
            return None

        self.listing = listing
        return listing

    async def select_file(self, name: str) -> Optional[FileContent]:
        """Fetches a file in the current directory. The path does not change."""
        self._selection += 1
        token = (self._generation, self._selection)
        file_path = join_path(self.path, name)
        self.error = None

        try:
            content = await self.browser.fetch_file_content(self.ref, file_path)
        except FETCH_ERRORS as e:
            if token == (self._generation, self._selection):
                self.error = str(e)
            return None

        if token != (self._generation, self._selection):
            logger.debug(f"Discarding stale file {file_path}.")
            return None

        self.selected_file = content
        return content

    async def open(self, entry: DirectoryEntry):
        if entry.is_directory:
            self.enter_directory(entry.name)
            return await self.refresh()
        return await self.select_file(entry.name)

    async def go_up(self) -> Optional[DirectoryListing]:
        if self.at_root:
            return self.listing
        self.navigate_up()
        return await self.refresh()
