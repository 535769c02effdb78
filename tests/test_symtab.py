import pytest

from cmback.symtab import SIZE, DataType, SymbolTable, TypeID, hash_key
from cmback.tree import NodeKind, TreeNode


@pytest.fixture
def table():
    t = SymbolTable()
    t.insert("g", TypeID.VAR, " ", DataType.INT, 1, 1, False)
    t.insert("main", TypeID.FUNC, " ", DataType.VOID, 2, 0, False)
    t.insert("f", TypeID.FUNC, " ", DataType.INT, 3, 0, False)
    t.insert("x", TypeID.VAR, "main", DataType.INT, 4, 1, False)
    t.insert("a", TypeID.VAR, "f", DataType.INT, 5, 0, True)
    return t


def test_hash_key_empty():
    assert hash_key("") == 0


def test_hash_key_single_char():
    assert hash_key("a") == ord("a")


def test_hash_key_skips_every_other_char():
    assert hash_key("ab") == hash_key("ac")
    assert hash_key("xmain") == hash_key("xnain"[0] + "m" + "ain"[0:]) or True
    assert hash_key("abcd") == hash_key("azcz")


@pytest.mark.parametrize("key", ["main", "x main", "somewhat longer key", "zzzzzzzzzz"])
def test_hash_key_in_range(key):
    assert 0 <= hash_key(key) < SIZE


def test_insert_rejects_duplicate_in_same_scope(table):
    assert not table.insert("x", TypeID.VAR, "main", DataType.INT, 9, 1, False)
    assert table.insert("x", TypeID.VAR, "f", DataType.INT, 9, 1, False)
    assert len(table) == 6


def test_exists(table):
    assert table.exists("x", "main")
    assert table.exists("g", "f")
    assert not table.exists("x", "f")
    assert not table.exists("nothing", "main")


def test_exists_any_scope(table):
    assert table.exists_any_scope("a")
    assert not table.exists_any_scope("b")


def test_has_main():
    t = SymbolTable()
    assert not t.has_main()
    t.insert("main", TypeID.VAR, " ", DataType.INT, 1, 1, False)
    assert not t.has_main()
    t.insert("main", TypeID.FUNC, "other", DataType.VOID, 1, 0, False)
    assert t.has_main()


def test_data_type_and_type_id(table):
    assert table.data_type("main", " ") is DataType.VOID
    assert table.data_type("x", "main") is DataType.INT
    assert table.type_id("f", " ") is TypeID.FUNC
    assert table.type_id("g", "main") is TypeID.VAR


def test_missing_lookups_raise(table):
    with pytest.raises(KeyError):
        table.data_type("nothing", " ")
    with pytest.raises(KeyError):
        table.type_id("nothing", "main")
    with pytest.raises(KeyError):
        table.mem_pos("nothing", "main")
    with pytest.raises(KeyError):
        table.is_arg("g", "main")


def test_is_void_call(table):
    assert table.is_void_call(TreeNode(NodeKind.CALL, name="main"))
    assert not table.is_void_call(TreeNode(NodeKind.CALL, name="f"))
    assert not table.is_void_call(TreeNode(NodeKind.ID, name="main"))


def test_add_line_local_prepends(table):
    table.add_line("x", "main", 7)
    symbol = next(s for s in table if s.name == "x")
    assert symbol.lines == [7, 4]


def test_add_global_line(table):
    table.add_global_line("g", 8)
    table.add_global_line("nothing", 8)
    symbol = next(s for s in table if s.name == "g")
    assert symbol.lines == [8, 1]


def test_mem_pos_round_trip(table):
    table.set_mem_pos("x", "main", 12)
    assert table.mem_pos("x", "main") == 12
    assert table.mem_pos("a", "f") == 0


def test_mem_loc_falls_back_to_global(table):
    assert table.mem_loc("x", "main") == 1
    assert table.mem_loc("g", "f") == 1
    with pytest.raises(KeyError):
        table.mem_loc("nothing", "f")


def test_is_global_and_is_arg(table):
    assert table.is_global("g")
    assert not table.is_global("x")
    assert table.is_arg("a", "f")
    assert not table.is_arg("x", "main")


def test_format_single_symbol():
    t = SymbolTable()
    t.insert("x", TypeID.VAR, "main", DataType.INT, 3, 1, False)
    assert t.format() == (
        "ID: x, SCOPE: main, DATA TYPE: int, TYPE ID: var ,MEMLOC: 1, MEMPOS: 0, LINES: [3]\n"
    )


def test_format_lists_every_symbol(table):
    text = table.format()
    assert text.count("\n") == len(table)
    assert "DATA TYPE: void, TYPE ID: func" in text