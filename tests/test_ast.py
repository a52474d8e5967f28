from rmdb.ast import (
    BinaryExpr,
    Col,
    ColDef,
    CreateTable,
    Expr,
    Field,
    Help,
    IntLit,
    JoinExpr,
    JoinType,
    OrderBy,
    OrderByDir,
    SelectStmt,
    SetKnobType,
    SetStmt,
    ShowTables,
    SvCompOp,
    SvType,
    TypeLen,
    Value,
)


def _cond():
    return BinaryExpr(Col("tb", "a"), SvCompOp.EQ, IntLit(1))


def test_select_without_order_has_no_sort():
    stmt = SelectStmt([Col("", "a")], ["tb"], [])
    assert stmt.has_sort is False
    assert stmt.order is None


def test_select_with_order_has_sort():
    order = OrderBy(Col("tb", "a"), OrderByDir.DESC)
    stmt = SelectStmt([Col("", "a")], ["tb"], [], order)
    assert stmt.has_sort is True
    assert stmt.order.orderby_dir is OrderByDir.DESC


def test_select_jointree_defaults_are_independent():
    first = SelectStmt([], ["x"], [])
    second = SelectStmt([], ["y"], [])
    first.jointree.append(JoinExpr("x", "y", [_cond()], JoinType.INNER_JOIN))
    assert len(first.jointree) == 1
    assert second.jointree == []


def test_nodes_compare_by_content():
    assert _cond() == _cond()
    assert BinaryExpr(Col("tb", "a"), SvCompOp.NE, IntLit(1)) != _cond()


def test_empty_statements_of_different_kinds_differ():
    assert Help() == Help()
    assert Help() != ShowTables()


def test_create_table_keeps_fields():
    col = ColDef("a", TypeLen(SvType.INT, 4))
    table = CreateTable("tb", [col])
    assert table.fields[0].col_name == "a"
    assert table.fields[0].type_len.type is SvType.INT
    assert isinstance(table.fields[0], Field)


def test_literal_hierarchy():
    lit = IntLit(7)
    assert lit.val == 7
    assert isinstance(lit, Value) and isinstance(lit, Expr)
    assert not isinstance(Col("t", "c"), Value)


def test_set_statement_fields():
    stmt = SetStmt(SetKnobType.ENABLE_SORT_MERGE, False)
    assert stmt.set_knob_type is SetKnobType.ENABLE_SORT_MERGE
    assert stmt.bool_val is False