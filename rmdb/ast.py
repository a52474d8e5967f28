"""Syntax tree nodes for the SQL statements the database understands."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional


class JoinType(enum.Enum):
    """Kind of join between two tables."""

    INNER_JOIN = enum.auto()
    LEFT_JOIN = enum.auto()
    RIGHT_JOIN = enum.auto()
    FULL_JOIN = enum.auto()


class SvType(enum.Enum):
    """Column and literal value types."""

    INT = enum.auto()
    FLOAT = enum.auto()
    STRING = enum.auto()
    BOOL = enum.auto()


class SvCompOp(enum.Enum):
    """Comparison operators usable in conditions."""

    EQ = enum.auto()
    NE = enum.auto()
    LT = enum.auto()
    GT = enum.auto()
    LE = enum.auto()
    GE = enum.auto()


class OrderByDir(enum.Enum):
    """Sort direction of an ORDER BY clause."""

    DEFAULT = enum.auto()
    ASC = enum.auto()
    DESC = enum.auto()


class SetKnobType(enum.Enum):
    """Planner switches that a SET statement can toggle."""

    ENABLE_NEST_LOOP = enum.auto()
    ENABLE_SORT_MERGE = enum.auto()


@dataclass
class TreeNode:
    """Base class of every syntax tree node."""


@dataclass
class Help(TreeNode):
    """HELP statement."""


@dataclass
class ShowTables(TreeNode):
    """SHOW TABLES statement."""


@dataclass
class TxnBegin(TreeNode):
    """BEGIN statement."""


@dataclass
class TxnCommit(TreeNode):
    """COMMIT statement."""


@dataclass
class TxnAbort(TreeNode):
    """ABORT statement."""


@dataclass
class TxnRollback(TreeNode):
    """ROLLBACK statement."""


@dataclass
class TypeLen(TreeNode):
    """A column type together with its storage length."""

    type: SvType
    len: int


@dataclass
class Field(TreeNode):
    """Base class of entries in a CREATE TABLE field list."""


@dataclass
class ColDef(Field):
    """A column definition inside CREATE TABLE."""

    col_name: str
    type_len: TypeLen


@dataclass
class CreateTable(TreeNode):
    tab_name: str
    fields: List[Field]


@dataclass
class DropTable(TreeNode):
    tab_name: str


@dataclass
class DescTable(TreeNode):
    tab_name: str


@dataclass
class CreateIndex(TreeNode):
    tab_name: str
    col_names: List[str]


@dataclass
class DropIndex(TreeNode):
    tab_name: str
    col_names: List[str]


@dataclass
class Expr(TreeNode):
    """Base class of expressions."""


@dataclass
class Value(Expr):
    """Base class of literal values."""


@dataclass
class IntLit(Value):
    val: int


@dataclass
class FloatLit(Value):
    val: float


@dataclass
class StringLit(Value):
    val: str


@dataclass
class BoolLit(Value):
    val: bool


@dataclass
class Col(Expr):
    """A column reference; tab_name is empty when unqualified."""

    tab_name: str
    col_name: str


@dataclass
class SetClause(TreeNode):
    col_name: str
    val: Value


@dataclass
class BinaryExpr(TreeNode):
    """A comparison between a column and another expression."""

    lhs: Col
    op: SvCompOp
    rhs: Expr


@dataclass
class OrderBy(TreeNode):
    cols: Col
    orderby_dir: OrderByDir


@dataclass
class InsertStmt(TreeNode):
    tab_name: str
    vals: List[Value]


@dataclass
class DeleteStmt(TreeNode):
    tab_name: str
    conds: List[BinaryExpr]


@dataclass
class UpdateStmt(TreeNode):
    tab_name: str
    set_clauses: List[SetClause]
    conds: List[BinaryExpr]


@dataclass
class JoinExpr(TreeNode):
    left: str
    right: str
    conds: List[BinaryExpr]
    type: JoinType


@dataclass
class SelectStmt(TreeNode):
    cols: List[Col]
    tabs: List[str]
    conds: List[BinaryExpr]
    order: Optional[OrderBy] = None
    jointree: List[JoinExpr] = field(default_factory=list)

    @property
    def has_sort(self) -> bool:
        """True when the statement carries an ORDER BY clause."""
        return self.order is not None


@dataclass
class SetStmt(TreeNode):
    """SET statement toggling a planner switch."""

    set_knob_type: SetKnobType
    bool_val: bool