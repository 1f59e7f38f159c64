"""Tests for the sqlfixture-create command."""

from sqlalchemy import create_engine, inspect

from sqlfixture.cli import main


class TestCreateCommand:
    def test_creates_database_from_ddl(self, tmp_path, capsys):
        (tmp_path / "testData").mkdir()
        (tmp_path / "testData" / "schema.ddl").write_text(
            "-- test schema\nCREATE TABLE item (id INTEGER PRIMARY KEY);\nCREATE TABLE tag (name TEXT);\n",
            encoding="utf-8",
        )
        db_path = tmp_path / "out" / "cli.sqlite"

        exit_code = main(["--ddl", "schema.ddl", "--url", f"sqlite:///{db_path}"])

        assert exit_code == 0
        assert "2 DDL statement(s) executed" in capsys.readouterr().out
        engine = create_engine(f"sqlite:///{db_path}")
        try:
            assert set(inspect(engine).get_table_names()) == {"item", "tag"}
        finally:
            engine.dispose()

    def test_missing_ddl_exits_with_error(self, tmp_path):
        assert main(["--url", f"sqlite:///{tmp_path / 'cli.sqlite'}"]) == 1

    def test_failing_ddl_exits_with_error(self, tmp_path):
        (tmp_path / "testData").mkdir()
        (tmp_path / "testData" / "create_db_content.ddl").write_text("CREATE TABLE (;\n", encoding="utf-8")
        assert main(["--verbose", "--url", f"sqlite:///{tmp_path / 'cli.sqlite'}"]) == 1
