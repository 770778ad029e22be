import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy import (
    Table, Column, ForeignKey, Integer, Text, DateTime, MetaData,
    func, inspect, select, text,
)

from repo_dashboard.domain.exceptions import PersistenceError
from repo_dashboard.domain.models import (
    FileContent,
    PersistedFile,
    PersistedRepository,
    RepositoryMetadata,
)

logger = logging.getLogger(__name__)

# SQLAlchemy core Table definitions
metadata = MetaData()
repositories_table = Table(
    'github_repositories', metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('name', Text, nullable=False),
    Column('full_name', Text, nullable=False),
    Column('description', Text, nullable=True),
    Column('url', Text, nullable=False),
    Column('owner_name', Text, nullable=False),
    Column('owner_avatar', Text, nullable=True),
    Column('created_at', DateTime(timezone=True), nullable=False),
    Column('updated_at', DateTime(timezone=True), nullable=False),
    Column('last_synced', DateTime(timezone=True), nullable=True),
)
files_table = Table(
    'repository_files', metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('repository_id', Integer, ForeignKey('github_repositories.id'), nullable=False),
    Column('path', Text, nullable=False),
    Column('filename', Text, nullable=False),
    Column('content', Text, nullable=False),
    Column('sha', Text, nullable=False),
    Column('size', Integer, nullable=False),
    Column('last_modified', DateTime(timezone=True), nullable=False),
    Column('last_synced', DateTime(timezone=True), nullable=False),
)

TABLES = {table.name: table for table in (repositories_table, files_table)}

# Errors raised by the driver while connecting surface as OSError subclasses.
DATABASE_ERRORS = (SQLAlchemyError, OSError)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _get_table(name: str) -> Table:
    try:
        return TABLES[name]
    except KeyError:
        raise ValueError(f"Unknown table '{name}'. Expected one of: {', '.join(TABLES)}.") from None


class PostgresRepository:
    """
    Persistence gateway for the PostgreSQL database.

    Read and write failures never reach the caller: they are logged and turned
    into False, 0 or None depending on the operation.
    """

    def __init__(self, db_url: str):
        self.engine = create_async_engine(db_url, echo=False)

    async def check_connectivity(self) -> bool:
        """Returns True when a trivial query round-trips to the database."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except DATABASE_ERRORS as e:
            logger.warning(f"Database is not reachable: {e}")
            return False
        return True

    async def check_schema(self) -> bool:
        """
        Inspects the database catalog for both dashboard tables.

        Returns:
            bool: True only if github_repositories and repository_files both exist.
        """
        try:
            async with self.engine.connect() as conn:
                table_names = await conn.run_sync(
                    lambda sync_conn: set(inspect(sync_conn).get_table_names())
                )
        except DATABASE_ERRORS as e:
            logger.error(f"Error inspecting database schema: {e}")
            return False

        missing = [name for name in TABLES if name not in table_names]
        if missing:
            logger.info(f"Missing tables: {', '.join(missing)}.")
            return False
        return True

    async def probe_table(self, table_name: str) -> bool:
        """
        Attempts a bounded read (one row) against a table. Success only shows the
        table can be read, not that its columns match.
        """
        table = _get_table(table_name)
        try:
            async with self.engine.connect() as conn:
                await conn.execute(select(table).limit(1))
        except DATABASE_ERRORS as e:
            logger.warning(f"Probe of {table_name} failed: {e}")
            return False
        return True

    async def create_schema(self) -> bool:
        """Creates any missing dashboard tables."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except DATABASE_ERRORS as e:
            logger.error(f"Error initializing database: {e}")
            return False
        logger.info("Database schema is in place.")
        return True

    async def count_rows(self, table_name: str) -> int:
        """Returns an exact row count without transferring any rows."""
        table = _get_table(table_name)
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(select(func.count()).select_from(table))
                return result.scalar_one()
        except DATABASE_ERRORS as e:
            logger.error(f"Error counting rows in {table_name}: {e}")
            return 0

    async def save_repository(self, repo: RepositoryMetadata) -> Optional[PersistedRepository]:
        """
        Inserts one github_repositories row for the given metadata.

        Every call inserts a new row; there is no uniqueness on full_name.

        Returns:
            The stored row, or None if the insert failed.
        """
        values = {
            'name': repo.name,
            'full_name': repo.full_name,
            'description': repo.description,
            'url': repo.html_url,
            'owner_name': repo.owner_login,
            'owner_avatar': repo.owner_avatar_url,
            'created_at': repo.created_at,
            'updated_at': repo.updated_at,
            'last_synced': _utcnow(),
        }

        try:
            row = await self._insert(repositories_table, values)
        except PersistenceError as e:
            logger.error(f"Error saving repository {repo.full_name}: {e}")
            return None

        return PersistedRepository.model_validate(row)

    async def save_file(self, repository_id: int, file: FileContent) -> Optional[PersistedFile]:
        """
        Inserts one repository_files row under an existing repository row.

        Args:
            repository_id (int): ID of the parent github_repositories row.
            file (FileContent): The fetched file; base64 content is decoded before storage.

        Returns:
            The stored row, or None if the insert failed.
        """
        if repository_id is None:
            raise ValueError("repository_id is required to save a file.")

        try:
            content = file.decoded_content()
        except ValueError as e:
            logger.error(f"Error decoding file {file.path}: {e}")
            return None

        now = _utcnow()
        values = {
            'repository_id': repository_id,
            'path': file.path,
            'filename': file.name,
            'content': content,
            'sha': file.sha,
            'size': file.size,
            'last_modified': file.last_modified or now,
            'last_synced': now,
        }

        try:
            row = await self._insert(files_table, values)
        except PersistenceError as e:
            logger.error(f"Error saving file {file.path}: {e}")
            return None

        return PersistedFile.model_validate(row)

    async def _insert(self, table: Table, values: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with self.engine.begin() as conn:
                stmt = insert(table).values(values).returning(*table.c)
                result = await conn.execute(stmt)
                row = result.mappings().one()
        except DATABASE_ERRORS as e:
            raise PersistenceError(f"Insert into {table.name} failed: {e}") from e

        return dict(row)

    async def dispose(self) -> None:
        await self.engine.dispose()
