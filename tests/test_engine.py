import pytest

from recdb.engine import DatabaseEngine
from recdb.errors import (
    DatabaseExistsError,
    DatabaseNotFoundError,
    DuplicatePrimaryKeyError,
    InvalidDatabaseNameError,
    NoDatabaseSelectedError,
    RowNotFoundError,
)
from recdb.executor import Session


def test_blank_line_returns_none(engine):
    assert engine.execute("") is None


def test_shop_scenario(engine, tmp_path):
    result = engine.execute("CREATE DATABASE shop")
    assert result['status'] == 'OK'
    assert engine.current_database == "shop"
    assert engine.execute("SELECT * FROM table")['rows'] == []

    engine.execute("INSERT INTO table VALUES (1, 'pen')")
    assert engine.execute("SELECT * FROM table WHERE id = 1")['rows'] == [(1, "pen")]

    with pytest.raises(DuplicatePrimaryKeyError):
        engine.execute("INSERT INTO table VALUES (1, 'pen')")
    assert engine.execute("SELECT * FROM table")['rows'] == [(1, "pen")]

    engine.execute("UPDATE table SET name = 'marker' WHERE id = 1")
    assert engine.execute("SELECT * FROM table WHERE id = 1")['rows'] == [(1, "marker")]

    engine.execute("DELETE FROM table WHERE id = 1")
    with pytest.raises(RowNotFoundError):
        engine.execute("SELECT * FROM table WHERE id = 1")


def test_drop_then_recreate_reloads_saved_rows(tmp_path):
    with DatabaseEngine(str(tmp_path)) as engine:
        engine.execute("CREATE DATABASE shop")
        engine.execute("INSERT INTO table VALUES (1, 'pen')")
        engine.registry.flush("shop")
        result = engine.execute("DROP DATABASE shop")
        assert "No database selected" in result['message']
        assert engine.current_database is None

        with pytest.raises(DatabaseNotFoundError):
            engine.execute("USE shop")

        engine.execute("CREATE DATABASE shop")
        assert engine.execute("SELECT * FROM table WHERE id = 1")['rows'] == [(1, "pen")]


def test_close_persists_for_next_engine(tmp_path):
    with DatabaseEngine(str(tmp_path)) as engine:
        engine.execute("CREATE DATABASE shop")
        engine.execute("INSERT INTO table VALUES (2, 'ink')")
    assert (tmp_path / "shop.dat").exists()

    engine = DatabaseEngine(str(tmp_path))
    engine.execute("CREATE DATABASE shop")
    assert engine.execute("SELECT * FROM table")['rows'] == [(2, "ink")]


def test_update_missing_row(engine):
    engine.execute("CREATE DATABASE shop")
    with pytest.raises(RowNotFoundError):
        engine.execute("UPDATE table SET name = 'x' WHERE id = 5")


def test_delete_missing_row(engine):
    engine.execute("CREATE DATABASE shop")
    with pytest.raises(RowNotFoundError):
        engine.execute("DELETE FROM table WHERE id = 5")


def test_table_command_without_selection(engine):
    with pytest.raises(NoDatabaseSelectedError):
        engine.execute("SELECT * FROM table")


def test_use_switches_and_show_marks_current(engine):
    engine.execute("CREATE DATABASE a")
    engine.execute("CREATE DATABASE b")
    engine.execute("INSERT INTO table VALUES (1, 'in b')")
    engine.execute("USE a")
    assert engine.execute("SELECT * FROM table")['rows'] == []

    result = engine.execute("SHOW DATABASES")
    assert result['databases'] == ["a", "b"]
    assert result['current'] == "a"

    with pytest.raises(DatabaseExistsError):
        engine.execute("CREATE DATABASE a")


def test_drop_other_database_keeps_selection(engine):
    engine.execute("CREATE DATABASE a")
    engine.execute("CREATE DATABASE b")
    result = engine.execute("DROP DATABASE a")
    assert result['message'] == "Database 'a' dropped"
    assert engine.current_database == "b"


def test_sessions_are_independent(engine):
    engine.execute("CREATE DATABASE a")
    engine.execute("CREATE DATABASE b")
    other = Session()
    engine.execute("USE a", other)
    engine.execute("INSERT INTO table VALUES (1, 'x')", other)

    assert engine.current_database == "b"
    assert engine.execute("SELECT * FROM table")['rows'] == []
    assert engine.execute("SELECT * FROM table", other)['rows'] == [(1, "x")]


def test_run_line_reports_errors_as_results(engine):
    result = engine.run_line("SELECT * FROM table")
    assert result['status'] == 'ERROR'
    assert result['error'] == 'NoDatabaseSelectedError'

    result = engine.run_line("FROB")
    assert result['error'] == 'UnknownCommandError'
    assert "FROB" in result['message']

    assert engine.run_line("CREATE DATABASE x")['status'] == 'OK'


def test_drop_from_other_session_detaches_selection(engine):
    engine.execute("CREATE DATABASE shop")
    other = Session()
    engine.execute("USE shop", other)

    engine.execute("DROP DATABASE shop")
    with pytest.raises(NoDatabaseSelectedError):
        engine.execute("INSERT INTO table VALUES (1, 'lost')", other)
    assert other.name is None
    assert engine.execute("SHOW DATABASES", other)['current'] is None

    engine.execute("CREATE DATABASE shop")
    engine.execute("INSERT INTO table VALUES (2, 'kept')")
    engine.execute("USE shop", other)
    assert engine.execute("SELECT * FROM table", other)['rows'] == [(2, "kept")]


def test_reselected_name_resolves_to_registered_table(engine):
    engine.execute("CREATE DATABASE shop")
    other = Session()
    engine.execute("USE shop", other)
    engine.execute("DROP DATABASE shop")
    engine.execute("CREATE DATABASE shop")

    engine.execute("INSERT INTO table VALUES (3, 'seen')", other)
    assert engine.registry.use("shop").get(3) == (3, "seen")


def test_create_database_rejects_path_names(engine, tmp_path):
    with pytest.raises(InvalidDatabaseNameError):
        engine.execute("CREATE DATABASE ../escaped")
    assert engine.current_database is None
    assert engine.list_databases() == []
    assert not (tmp_path.parent / "escaped.dat").exists()
