import pytest

from recdb.errors import (
    DuplicatePrimaryKeyError,
    InvalidIndexColumnError,
    PrimaryKeyImmutableError,
    RowNotFoundError,
    TypeMismatchError,
)
from recdb.table import Table
from recdb.types import Column, ColumnType


def test_insert_then_get(table):
    table.insert((1, "pen"))
    assert table.get(1) == (1, "pen")
    assert len(table) == 1


def test_insert_accepts_lists(table):
    table.insert([2, "ink"])
    assert table.get(2) == (2, "ink")


def test_duplicate_insert_leaves_table_unchanged(table):
    table.insert((1, "pen"))
    with pytest.raises(DuplicatePrimaryKeyError) as exc:
        table.insert((1, "other"))
    assert exc.value.row_id == 1
    assert table.get(1) == (1, "pen")
    assert table.select_by_index("other") == []


@pytest.mark.parametrize("row", [
    (1,),
    (1, "a", "b"),
    ("1", "a"),
    (1, 2),
    (True, "a"),
    (2 ** 31, "a"),
])
def test_insert_type_mismatch(table, row):
    with pytest.raises(TypeMismatchError):
        table.insert(row)
    assert len(table) == 0


def test_get_missing(table):
    with pytest.raises(RowNotFoundError):
        table.get(42)


def test_update_replaces_row_and_index(table):
    table.insert((1, "pen"))
    table.update(1, (1, "marker"))
    assert table.get(1) == (1, "marker")
    assert table.select_by_index("marker") == [(1, "marker")]
    assert table.select_by_index("pen") == []
    assert "pen" not in table.index_values()


def test_update_missing_id(table):
    with pytest.raises(RowNotFoundError):
        table.update(9, (9, "x"))


def test_update_cannot_change_primary_key(table):
    table.insert((1, "pen"))
    with pytest.raises(PrimaryKeyImmutableError):
        table.update(1, (2, "pen"))
    assert table.get(1) == (1, "pen")
    assert 2 not in table


def test_update_type_mismatch_keeps_row(table):
    table.insert((1, "pen"))
    with pytest.raises(TypeMismatchError):
        table.update(1, (1, 5))
    assert table.get(1) == (1, "pen")


def test_remove(table):
    table.insert((1, "pen"))
    assert table.remove(1) is True
    assert table.remove(1) is False
    assert 1 not in table
    assert table.index_values() == []


def test_select_by_index_groups_ids(table):
    table.insert((3, "pen"))
    table.insert((1, "pen"))
    table.insert((2, "ink"))
    assert table.select_by_index("pen") == [(1, "pen"), (3, "pen")]
    assert table.select_by_index("nothing") == []


def test_select_by_index_without_index():
    t = Table()
    t.insert((1, "pen"))
    assert t.indexed_column is None
    assert t.select_by_index("pen") == []


def test_create_index_rebuilds_from_existing_rows():
    t = Table()
    t.insert((1, "pen"))
    t.insert((2, "ink"))
    t.create_index(1)
    assert t.indexed_column == 1
    assert sorted(t.index_values()) == ["ink", "pen"]
    assert t.select_by_index("ink") == [(2, "ink")]


@pytest.mark.parametrize("column", [0, 2, -1])
def test_create_index_rejects_invalid_column(table, column):
    with pytest.raises(InvalidIndexColumnError):
        table.create_index(column)


def test_create_index_rejects_int_column():
    t = Table((Column("id", ColumnType.INT), Column("qty", ColumnType.INT)))
    with pytest.raises(InvalidIndexColumnError):
        t.create_index(1)


def test_schema_must_start_with_int():
    with pytest.raises(TypeMismatchError):
        Table((Column("name", ColumnType.TEXT),))
    with pytest.raises(TypeMismatchError):
        Table(())


def test_list_all_is_ordered_by_id(table):
    for row_id in (5, 1, 3):
        table.insert((row_id, f"n{row_id}"))
    assert [row[0] for row in table.list_all()] == [1, 3, 5]


def test_index_has_no_dangling_buckets_after_mixed_operations(table):
    table.insert((1, "a"))
    table.insert((2, "a"))
    table.insert((3, "b"))
    table.update(1, (1, "c"))
    table.remove(2)
    table.update(3, (3, "c"))
    table.insert((4, "d"))
    table.remove(4)

    current = {row[1] for row in table.list_all()}
    assert set(table.index_values()) == current == {"c"}
    for row in table.list_all():
        assert row in table.select_by_index(row[1])
