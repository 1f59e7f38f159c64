"""Tests for ConnectionManager, QualifiedName and the data source adapter."""

from unittest.mock import Mock

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, NoSuchTableError, OperationalError

from sqlfixture.capabilities import SupportsConnect
from sqlfixture.config import ConfigResolver, ConnectionKey, ConnectionProperties
from sqlfixture.database import ConnectionManager, QualifiedName
from sqlfixture.exceptions import ConnectionFailure, UnsupportedOperation
from sqlfixture.interpreter import NoOpInterpreter, SqliteInterpreter
from sqlfixture.resource_locator import ResourceLocator


class FakeDriverError(Exception):
    pass


class TestConnections:
    def test_connection_is_cached(self, connections):
        assert connections.get_connection() is connections.get_connection()

    def test_closed_connection_is_reopened(self, connections):
        first = connections.get_connection()
        first.close()
        second = connections.get_connection()
        assert second is not first
        assert not second.closed

    def test_replace_connection_closes_previous(self, connections):
        previous = connections.get_connection()
        replacement = connections.engine.connect()

        connections.replace_connection(replacement)

        assert previous.closed
        assert connections.get_connection() is replacement

    def test_context_manager_closes(self, properties, settings):
        with ConnectionManager(properties, settings=settings) as manager:
            connection = manager.get_connection()
            assert connection.execute(text("SELECT 1")).scalar() == 1
        assert connection.closed

    def test_satisfies_connect_capability(self, connections):
        assert isinstance(connections, SupportsConnect)

    def test_properties_resolved_from_resolver(self, db_url, settings):
        resolver = ConfigResolver(settings=settings, locator=ResourceLocator(settings=settings, search_path=[]))
        resolver.override(ConnectionKey.URL, db_url)
        manager = ConnectionManager(resolver=resolver, settings=settings)

        assert manager.properties.url == db_url
        resolver.override(ConnectionKey.URL, "sqlite:///changed.sqlite")
        assert manager.properties.url == db_url

    def test_url_is_masked(self, settings):
        properties = ConnectionProperties(
            driver="postgresql+psycopg", url="postgresql://db.example/tests", username="tester", password="s3cr3t"
        )
        manager = ConnectionManager(properties, settings=settings)
        assert "s3cr3t" not in manager.url


class TestInterpreter:
    def test_no_op_before_first_connection(self, properties, settings):
        assert isinstance(ConnectionManager(properties, settings=settings).interpreter, NoOpInterpreter)

    def test_sqlite_after_connection(self, connections):
        connections.get_connection()
        assert isinstance(connections.interpreter, SqliteInterpreter)


class TestConnectFailure:
    def test_missing_database_is_explained(self, tmp_path, settings):
        url = f"sqlite:///file:{tmp_path / 'missing' / 'db.sqlite'}?mode=rw&uri=true"
        properties = ConnectionProperties(driver="sqlite+pysqlite", url=url, username="", password="")
        manager = ConnectionManager(properties, settings=settings)

        with pytest.raises(ConnectionFailure) as exc_info:
            manager.get_connection()

        error = exc_info.value
        assert error.explanation.state_code == "SQLITE_CANTOPEN"
        assert "sqlfixture-create" in str(error)
        assert error.url == manager.url
        assert isinstance(error.__cause__, OperationalError)

    def test_default_url_without_database(self, settings):
        resolver = ConfigResolver(settings=settings, locator=ResourceLocator(settings=settings, search_path=[]))
        manager = ConnectionManager(resolver=resolver, settings=settings)

        with pytest.raises(ConnectionFailure, match="hasn't been created yet"):
            manager.get_connection()

    def test_unexplained_error_propagates_with_note(self, properties, settings):
        manager = ConnectionManager(properties, settings=settings)
        error = OperationalError("connect", {}, FakeDriverError("no route to host"))
        manager._engine = Mock(connect=Mock(side_effect=error))

        with pytest.raises(OperationalError) as exc_info:
            manager.get_connection()

        assert exc_info.value is error
        assert any("Check the configured URL" in note for note in exc_info.value.__notes__)


class TestQualifiedNames:
    def test_unqualified_name_gets_default_schema(self, connections):
        assert connections.qualify("person") == QualifiedName("main", "person")

    def test_qualified_name_kept(self, connections):
        qualified = connections.qualify("main.person")
        assert qualified == QualifiedName("main", "person")
        assert str(qualified) == "main.person"

    def test_default_schema(self, connections):
        assert connections.default_schema() == "main"

    def test_set_schema_is_unsupported(self, connections):
        with pytest.raises(UnsupportedOperation, match="fully qualified"):
            connections.set_schema("main")


class TestIntrospection:
    def test_reflect_table(self, connections):
        table = connections.reflect_table("person")
        assert table.schema == "main"
        assert [column.name for column in table.columns] == ["id", "name", "born", "active"]

    def test_reflect_missing_table(self, connections):
        with pytest.raises(NoSuchTableError):
            connections.reflect_table("main.nothing_here")

    def test_primary_keys(self, connections):
        assert connections.primary_keys("person") == ["id"]
        assert connections.primary_keys("main.membership") == ["person_id", "club"]
        assert connections.primary_keys("audit_log") == []

    def test_foreign_keys_enforced(self, connections):
        connection = connections.get_connection()
        with pytest.raises(IntegrityError):
            connection.execute(text("INSERT INTO address (id, person_id, city) VALUES (1, 999, 'Nowhere')"))
        connection.rollback()


class TestDataSource:
    def test_hands_out_managed_connection(self, connections):
        data_source = connections.get_data_source()
        assert data_source.get_connection() is connections.get_connection()
        assert data_source() is connections.get_connection()
        assert data_source.url == connections.url

    def test_explicit_credentials_unsupported(self, connections):
        with pytest.raises(UnsupportedOperation):
            connections.get_data_source().get_connection("user", "password")

    def test_satisfies_connect_capability(self, connections):
        assert isinstance(connections.get_data_source(), SupportsConnect)
