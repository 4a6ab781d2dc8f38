"""
Function body lowering.

Bodies are lowered into a single entry block holding the Call values of
the body in source order. Branches are not split into separate blocks.
"""

import logging
from typing import Dict, Iterable, Optional

from huntcore import ast
from huntcore.errors import MalformedIRError
from huntcore.ir.create import expr_value, new_call, new_file, pair_values, param_var
from huntcore.ir.types import BasicBlock, Call, File, Function, Signature, Value, Var

logger = logging.getLogger(__name__)

INIT = 'init'


class _BodyBuilder:

    def __init__(self, fn: Function):
        self.fn = fn
        self.block = BasicBlock(index=0, parent=fn)
        # Call instructions by the id() of their syntax node.
        self.lowered: Dict[int, Call] = {}

    def visit(self, node: ast.Node):
        if isinstance(node, ast.CallExpr):
            # A call used as an argument was lowered with its outer call.
            call = self.lowered.get(id(node))
            if call is None:
                call = new_call(self.fn, node)
                self.lowered[id(node)] = call
            self.block.instrs.append(call)
            for arg, value in zip(node.args, call.args):
                if isinstance(arg, ast.CallExpr):
                    self.lowered[id(arg)] = value
        elif isinstance(node, ast.DeclStmt):
            self.declare(node.decl)
            return
        elif isinstance(node, ast.FuncLit):
            self.nested(node)
            return

        for child in ast.iter_children(node):
            self.visit(child)

    def declare(self, decl: ast.ValueDecl):
        # Initializers are lowered before the names come into scope.
        for value in decl.values:
            self.visit(value)
        for ident, value in pair_values(decl):
            self.fn.locals[ident.name] = Var(
                syntax=ident,
                name=ident.name,
                value=self.local_value(value),
            )

    def nested(self, lit: ast.FuncLit):
        """Lower a nested function into the current block.

        Its parameters and locals shadow the enclosing names inside its
        body only.
        """
        params = lit.type.params.list if lit.type.params is not None else []
        for p in params:
            if isinstance(p.name, ast.ObjectExpr):
                for default in p.name.elts:
                    self.visit(default)

        outer = self.fn.locals
        self.fn.locals = dict(outer)
        try:
            for p in params:
                var = param_var(p.name)
                self.fn.locals[var.name] = var
            if lit.body is not None:
                self.visit(lit.body)
        finally:
            self.fn.locals = outer

    def local_value(self, expr: Optional[ast.Expr]) -> Optional[Value]:
        if isinstance(expr, ast.CallExpr):
            return self.lowered.get(id(expr))
        if isinstance(expr, ast.Ident):
            local = self.fn.lookup(expr.name)
            if local is not None:
                return local
            return expr_value(expr)
        if isinstance(expr, ast.BasicLit):
            return expr_value(expr)
        return None


def _build_body(fn: Function, nodes: Iterable[ast.Node]):
    builder = _BodyBuilder(fn)
    for node in nodes:
        builder.visit(node)
    fn.blocks = [builder.block]


def build_function(fn: Function):
    """Lower the body of a resolved function."""
    body = fn.syntax.body if fn.syntax is not None else None
    _build_body(fn, body.list if body is not None else [])
    logger.debug("%s: built %s with %d calls", fn.file.name if fn.file else '?',
                 fn.name, len(fn.blocks[0].instrs))


def build(file: File) -> File:
    """Lower every function body and the top-level code of file.

    Top-level expressions end up in file.init, a function that is not a
    member of the file.
    """
    try:
        for fn in list(file.functions()):
            build_function(fn)
        file.init = Function(name=INIT, file=file, signature=Signature())
        _build_body(file.init, file.exprs)
    except MalformedIRError as err:
        if err.filename is None:
            err.filename = file.name
        raise
    return file


def lower(f: ast.File) -> File:
    """Create and build the IR of a syntax tree."""
    return build(new_file(f))
