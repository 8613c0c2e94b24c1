"""Unit tests for engine factories."""

from unittest.mock import patch

import pytest
from sqlalchemy import text

from sqlmodel_importer.config import DatabaseTarget
from sqlmodel_importer.engines import create_engine_for_target, create_engine_from_url
from sqlmodel_importer.engines import postgres_engine, sqlite_engine
from sqlmodel_importer.exceptions import ConfigurationError


class TestSqliteEngine:
    """Test SQLite URL building and engine creation"""

    @pytest.mark.parametrize("path", [None, "", ":memory:"])
    def test_in_memory_url(self, path):
        assert sqlite_engine.get_connection_url(path) == "sqlite://"

    def test_file_url_creates_parent_directory(self, tmp_path):
        url = sqlite_engine.get_connection_url(str(tmp_path / "dbs" / "shop.db"))

        assert url == f"sqlite:///{tmp_path / 'dbs' / 'shop.db'}"
        assert (tmp_path / "dbs").is_dir()

    def test_file_engine_is_usable(self, tmp_path):
        engine = create_engine_for_target(DatabaseTarget(type="sqlite", path=str(tmp_path / "shop.db")))

        with engine.connect() as conn:
            assert conn.execute(text("SELECT 1")).scalar_one() == 1

        assert (tmp_path / "shop.db").exists()
        engine.dispose()

    def test_in_memory_engine_shares_one_database(self):
        engine = create_engine_for_target(DatabaseTarget(type="sqlite"))

        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE t (x INTEGER)"))
        with engine.connect() as conn:
            assert conn.execute(text("SELECT count(*) FROM t")).scalar_one() == 0


class TestPostgresEngine:
    """Test PostgreSQL URL building"""

    def test_password_url(self):
        url = postgres_engine.get_connection_url("shop", "password", "importer", "secret", "db", 5433)

        assert url == "postgresql+psycopg2://importer:secret@db:5433/shop"

    def test_password_method_requires_password(self):
        with pytest.raises(ValueError, match="requires a password"):
            postgres_engine.get_connection_url("shop", "password", "importer")

    def test_tcp_url(self):
        url = postgres_engine.get_connection_url("shop", "tcp", "importer", host="db")

        assert url == "postgresql+psycopg2://importer@db:5432/shop"

    def test_socket_url(self):
        url = postgres_engine.get_connection_url("shop", "socket", "importer", socket_dir="/tmp")

        assert url == "postgresql+psycopg2://importer@/shop?host=/tmp&port=5432"

    def test_invalid_method(self):
        with pytest.raises(ValueError, match="Invalid connection method"):
            postgres_engine.get_connection_url("shop", "kerberos", "importer")

    @patch("sqlmodel_importer.engines.postgres_engine.create_engine")
    def test_engine_from_target(self, mock_create_engine):
        target = DatabaseTarget(type="postgres", database="shop", host="db", user="importer", conn_method="tcp")

        postgres_engine.create_postgres_engine(target, echo=True)

        mock_create_engine.assert_called_once_with(
            "postgresql+psycopg2://importer@db:5432/shop",
            echo=True,
            connect_args={"application_name": "sqlmodel-importer"},
        )

    @patch("sqlmodel_importer.engines.postgres_engine.getpass.getuser", return_value="alice")
    @patch("sqlmodel_importer.engines.postgres_engine.create_engine")
    def test_user_defaults_to_os_user(self, mock_create_engine, _mock_user):
        postgres_engine.create_postgres_engine(DatabaseTarget(type="postgres", conn_method="socket"))

        url = mock_create_engine.call_args[0][0]
        assert url == "postgresql+psycopg2://alice@/imports?host=/var/run/postgresql&port=5432"


class TestCreateEngineForTarget:
    """Test target type dispatch"""

    def test_sqlite_target(self):
        engine = create_engine_for_target(DatabaseTarget(type="sqlite"))

        assert engine.dialect.name == "sqlite"

    @patch("sqlmodel_importer.engines.create_postgres_engine")
    def test_postgres_target_uses_target_echo(self, mock_factory):
        target = DatabaseTarget(type="postgres", database="shop", echo=True)

        create_engine_for_target(target)

        mock_factory.assert_called_once_with(target, True)

    @patch("sqlmodel_importer.engines.create_postgres_engine")
    def test_echo_override(self, mock_factory):
        target = DatabaseTarget(type="postgres", echo=True)

        create_engine_for_target(target, echo=False)

        mock_factory.assert_called_once_with(target, False)

    def test_unsupported_type(self):
        with pytest.raises(ConfigurationError, match="Unsupported database type"):
            create_engine_for_target(DatabaseTarget.model_construct(type="oracle", echo=False))

    def test_engine_from_url(self):
        assert create_engine_from_url("sqlite://").dialect.name == "sqlite"
