"""Indented text rendering of syntax trees."""

from __future__ import annotations

import sys
from typing import Iterable, Iterator, Optional, TextIO

from rmdb.ast import (
    BinaryExpr,
    Col,
    ColDef,
    CreateIndex,
    CreateTable,
    DeleteStmt,
    DescTable,
    DropIndex,
    DropTable,
    FloatLit,
    Help,
    InsertStmt,
    IntLit,
    SelectStmt,
    SetClause,
    ShowTables,
    StringLit,
    SvCompOp,
    SvType,
    TreeNode,
    TxnAbort,
    TxnBegin,
    TxnCommit,
    TxnRollback,
    TypeLen,
    UpdateStmt,
)

_INDENT = 2

_TYPE_NAMES = {
    SvType.INT: "INT",
    SvType.FLOAT: "FLOAT",
    SvType.STRING: "STRING",
}

_OP_NAMES = {
    SvCompOp.EQ: "==",
    SvCompOp.NE: "!=",
    SvCompOp.LT: "<",
    SvCompOp.GT: ">",
    SvCompOp.LE: "<=",
    SvCompOp.GE: ">=",
}


def _type_name(sv_type: SvType) -> str:
    try:
        return _TYPE_NAMES[sv_type]
    except KeyError:
        raise ValueError(f"no printable name for type {sv_type.name}") from None


def _val(value: object, offset: int) -> str:
    text = f"{value:g}" if isinstance(value, float) else str(value)
    return " " * offset + text


def _val_list(values: Iterable[object], offset: int) -> Iterator[str]:
    yield " " * offset + "LIST"
    for value in values:
        yield _val(value, offset + _INDENT)


def _node_list(nodes: Iterable[TreeNode], offset: int) -> Iterator[str]:
    yield " " * offset + "LIST"
    for node in nodes:
        yield from _lines(node, offset + _INDENT)


def _lines(node: TreeNode, offset: int) -> Iterator[str]:
    pad = " " * offset
    inner = offset + _INDENT
    match node:
        case Help():
            yield pad + "HELP"
        case ShowTables():
            yield pad + "SHOW_TABLES"
        case CreateTable():
            yield pad + "CREATE_TABLE"
            yield _val(node.tab_name, inner)
            yield from _node_list(node.fields, inner)
        case DropTable():
            yield pad + "DROP_TABLE"
            yield _val(node.tab_name, inner)
        case DescTable():
            yield pad + "DESC_TABLE"
            yield _val(node.tab_name, inner)
        case CreateIndex():
            yield pad + "CREATE_INDEX"
            yield _val(node.tab_name, inner)
            for col_name in node.col_names:
                yield _val(col_name, inner)
        case DropIndex():
            yield pad + "DROP_INDEX"
            yield _val(node.tab_name, inner)
            for col_name in node.col_names:
                yield _val(col_name, inner)
        case ColDef():
            yield pad + "COL_DEF"
            yield _val(node.col_name, inner)
            yield from _lines(node.type_len, inner)
        case Col():
            yield pad + "COL"
            yield _val(node.tab_name, inner)
            yield _val(node.col_name, inner)
        case TypeLen():
            yield pad + "TYPE_LEN"
            yield _val(_type_name(node.type), inner)
            yield _val(node.len, inner)
        case IntLit():
            yield pad + "INT_LIT"
            yield _val(node.val, inner)
        case FloatLit():
            yield pad + "FLOAT_LIT"
            yield _val(float(node.val), inner)
        case StringLit():
            yield pad + "STRING_LIT"
            yield _val(node.val, inner)
        case SetClause():
            yield pad + "SET_CLAUSE"
            yield _val(node.col_name, inner)
            yield from _lines(node.val, inner)
        case BinaryExpr():
            yield pad + "BINARY_EXPR"
            yield from _lines(node.lhs, inner)
            yield _val(_OP_NAMES[node.op], inner)
            yield from _lines(node.rhs, inner)
        case InsertStmt():
            yield pad + "INSERT"
            yield _val(node.tab_name, inner)
            yield from _node_list(node.vals, inner)
        case DeleteStmt():
            yield pad + "DELETE"
            yield _val(node.tab_name, inner)
            yield from _node_list(node.conds, inner)
        case UpdateStmt():
            yield pad + "UPDATE"
            yield _val(node.tab_name, inner)
            yield from _node_list(node.set_clauses, inner)
            yield from _node_list(node.conds, inner)
        case SelectStmt():
            yield pad + "SELECT"
            yield from _node_list(node.cols, inner)
            yield from _val_list(node.tabs, inner)
            yield from _node_list(node.conds, inner)
        case TxnBegin():
            yield pad + "BEGIN"
        case TxnCommit():
            yield pad + "COMMIT"
        case TxnAbort():
            yield pad + "ABORT"
        case TxnRollback():
            yield pad + "ROLLBACK"
        case _:
            raise TypeError(f"cannot print node of type {type(node).__name__}")


def format_tree(node: TreeNode) -> str:
    """Render a syntax tree as indented lines, one item per line."""
    return "".join(line + "\n" for line in _lines(node, 0))


def print_tree(node: TreeNode, file: Optional[TextIO] = None) -> None:
    """Write the rendering of a syntax tree to file (stdout by default)."""
    text = format_tree(node)
    (file if file is not None else sys.stdout).write(text)