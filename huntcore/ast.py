"""
Syntax tree consumed by the IR builder.

Front-ends (see huntcore.javascript) translate their parser output into
these nodes. The tree is intentionally small: only the shapes the IR knows
how to lower have dedicated classes, everything else is a CompositeExpr
whose children are kept so calls nested inside it can still be found.
"""

from dataclasses import dataclass, field, fields
from typing import Iterator, List, Optional, Union


@dataclass(frozen=True)
class Position:
    offset: int = 0
    line: int = 0  # 1-based
    column: int = 0  # 0-based


@dataclass(frozen=True)
class Span:
    start: Position = Position()
    end: Position = Position()


NO_SPAN = Span()


@dataclass(eq=False, kw_only=True)
class Node:
    """Base of every syntax node. Nodes compare by identity."""
    span: Span = NO_SPAN

    def pos(self) -> Position:
        return self.span.start

    def end(self) -> Position:
        return self.span.end


# ----------------------------------------------------------------------------
# Expressions
# ----------------------------------------------------------------------------

@dataclass(eq=False)
class Ident(Node):
    name: str


@dataclass(eq=False)
class BasicLit(Node):
    kind: str  # 'string', 'number', 'true', 'regex', ...
    value: str  # raw source text, quotes included


@dataclass(eq=False)
class CallExpr(Node):
    fun: "Expr"
    args: List["Expr"] = field(default_factory=list)


@dataclass(eq=False)
class SelectorExpr(Node):
    """expr.sel"""
    expr: "Expr"
    sel: Ident


@dataclass(eq=False)
class ObjectExpr(Node):
    """A named value list; front-ends use it for `name = default` parameters."""
    name: Ident
    elts: List["Expr"] = field(default_factory=list)


@dataclass(eq=False)
class CompositeExpr(Node):
    """Any construct without a dedicated node; kind is the front-end's node type."""
    kind: str
    elts: List[Node] = field(default_factory=list)


Expr = Union[Ident, BasicLit, CallExpr, SelectorExpr, ObjectExpr, CompositeExpr, "FuncLit"]


# ----------------------------------------------------------------------------
# Declarations and statements
# ----------------------------------------------------------------------------

@dataclass(eq=False)
class Field(Node):
    name: Expr  # Ident, or ObjectExpr when a default value is given


@dataclass(eq=False)
class FieldList(Node):
    list: List[Field] = field(default_factory=list)


@dataclass(eq=False)
class FuncType(Node):
    params: Optional[FieldList] = None
    results: Optional[FieldList] = None


@dataclass(eq=False)
class ValueDecl(Node):
    """names = values, e.g. `var a, b = 1, 2`."""
    names: List[Ident] = field(default_factory=list)
    values: List[Expr] = field(default_factory=list)


@dataclass(eq=False)
class ImportDecl(Node):
    name: Optional[Ident]
    path: Ident
    alias: Optional[Ident] = None


@dataclass(eq=False)
class ExprStmt(Node):
    expr: Expr


@dataclass(eq=False)
class DeclStmt(Node):
    decl: ValueDecl


@dataclass(eq=False)
class BlockStmt(Node):
    list: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class FuncDecl(Node):
    name: Ident
    type: FuncType = field(default_factory=FuncType)
    body: Optional[BlockStmt] = None


@dataclass(eq=False)
class FuncLit(Node):
    """A function inside another one, or used as a value. It is never a member."""
    type: FuncType = field(default_factory=FuncType)
    body: Optional[BlockStmt] = None
    name: Optional[Ident] = None


Decl = Union[FuncDecl, ImportDecl, ValueDecl]


@dataclass(eq=False)
class File(Node):
    name: Ident
    decls: List[Node] = field(default_factory=list)
    exprs: List[Expr] = field(default_factory=list)


def iter_children(node: Node) -> Iterator[Node]:
    """Yield the direct child nodes of node in field order."""
    for f in fields(node):
        if f.name == 'span':
            continue
        value = getattr(node, f.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, Node):
                    yield item


def walk(node: Node) -> Iterator[Node]:
    """Yield node and all of its descendants, pre-order."""
    yield node
    for child in iter_children(node):
        yield from walk(child)
