import logging

from repo_dashboard.domain.models import ConnectionState, DatabaseStatus, SchemaState
from repo_dashboard.infrastructure.database import PostgresRepository, files_table, repositories_table

logger = logging.getLogger(__name__)


class DatabaseStatusMonitor:
    """
    Tracks whether the database is reachable and has the dashboard schema.

    ``refresh`` always starts from CHECKING and runs its probes one after the
    other: connectivity, then schema, then row counts.
    """

    def __init__(self, gateway: PostgresRepository):
        self.gateway = gateway
        self.status = DatabaseStatus()

    async def refresh(self) -> DatabaseStatus:
        self.status = DatabaseStatus(connection=ConnectionState.CHECKING)

        if not await self.gateway.check_connectivity():
            self.status = DatabaseStatus(connection=ConnectionState.NOT_CONNECTED)
            logger.info("Database status: not connected.")
            return self.status

        if not await self.gateway.check_schema():
            self.status = DatabaseStatus(
                connection=ConnectionState.CONNECTED,
                schema_state=SchemaState.MISSING,
            )
            logger.info("Database status: connected, schema missing.")
            return self.status

        repository_count = await self.gateway.count_rows(repositories_table.name)
        file_count = await self.gateway.count_rows(files_table.name)

        self.status = DatabaseStatus(
            connection=ConnectionState.CONNECTED,
            schema_state=SchemaState.PRESENT,
            repository_count=repository_count,
            file_count=file_count,
        )
        logger.info(
            f"Database status: connected, {repository_count} repositories, {file_count} files."
        )
        return self.status

    async def setup_schema(self) -> DatabaseStatus:
        """Creates the schema when connected, then re-checks."""
        if self.status.connection is ConnectionState.CONNECTED:
            await self.gateway.create_schema()
        return await self.refresh()
