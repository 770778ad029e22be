import unittest

from repo_dashboard.application.database_status import DatabaseStatusMonitor
from repo_dashboard.domain.models import ConnectionState, SchemaState


class _FakeGateway:
    def __init__(self, connected=True, schema=True, counts=None) -> None:
        self.connected = connected
        self.schema = schema
        self.counts = counts or {}
        self.calls = []

    async def check_connectivity(self) -> bool:
        self.calls.append("connectivity")
        return self.connected

    async def check_schema(self) -> bool:
        self.calls.append("schema")
        return self.schema

    async def count_rows(self, table_name: str) -> int:
        self.calls.append(f"count:{table_name}")
        return self.counts.get(table_name, 0)

    async def create_schema(self) -> bool:
        self.calls.append("create")
        self.schema = True
        return True


class TestDatabaseStatusMonitor(unittest.IsolatedAsyncioTestCase):
    async def test_initial_state_is_checking(self) -> None:
        monitor = DatabaseStatusMonitor(_FakeGateway())
        self.assertIs(monitor.status.connection, ConnectionState.CHECKING)

    async def test_not_connected_skips_schema_probe(self) -> None:
        gateway = _FakeGateway(connected=False)

        status = await DatabaseStatusMonitor(gateway).refresh()

        self.assertIs(status.connection, ConnectionState.NOT_CONNECTED)
        self.assertIs(status.schema_state, SchemaState.UNKNOWN)
        self.assertEqual(gateway.calls, ["connectivity"])

    async def test_connected_without_schema(self) -> None:
        gateway = _FakeGateway(schema=False)

        status = await DatabaseStatusMonitor(gateway).refresh()

        self.assertIs(status.connection, ConnectionState.CONNECTED)
        self.assertIs(status.schema_state, SchemaState.MISSING)
        self.assertFalse(status.is_ready)
        self.assertEqual(gateway.calls, ["connectivity", "schema"])

    async def test_ready_loads_counts_in_order(self) -> None:
        gateway = _FakeGateway(counts={"github_repositories": 3, "repository_files": 12})

        status = await DatabaseStatusMonitor(gateway).refresh()

        self.assertTrue(status.is_ready)
        self.assertEqual((status.repository_count, status.file_count), (3, 12))
        self.assertEqual(
            gateway.calls,
            ["connectivity", "schema", "count:github_repositories", "count:repository_files"],
        )

    async def test_refresh_reenters_from_terminal_state(self) -> None:
        gateway = _FakeGateway(connected=False)
        monitor = DatabaseStatusMonitor(gateway)
        await monitor.refresh()

        gateway.connected = True
        status = await monitor.refresh()

        self.assertIs(status.connection, ConnectionState.CONNECTED)

    async def test_setup_schema_creates_tables_when_connected(self) -> None:
        gateway = _FakeGateway(schema=False)
        monitor = DatabaseStatusMonitor(gateway)
        await monitor.refresh()

        status = await monitor.setup_schema()

        self.assertIn("create", gateway.calls)
        self.assertIs(status.schema_state, SchemaState.PRESENT)

    async def test_setup_schema_does_nothing_when_not_connected(self) -> None:
        gateway = _FakeGateway(connected=False, schema=False)
        monitor = DatabaseStatusMonitor(gateway)
        await monitor.refresh()

        await monitor.setup_schema()

        self.assertNotIn("create", gateway.calls)
