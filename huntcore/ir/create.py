"""
Syntax tree -> IR lowering.

new_file only maps the declarations of a file into members. The real work
of lowering function bodies is done later by huntcore.ir.build, once every
member of the file is known.

Any syntax shape these functions do not know raises MalformedIRError: it
means the front-end and the IR disagree, so the whole file is rejected.
"""

import logging
from typing import Iterator, List, Optional, Tuple

from huntcore import ast
from huntcore.errors import MalformedIRError
from huntcore.ir.types import (
    Call, Const, ExternalMember, File, Function, Global, Member,
    Parameter, Signature, Value, Var,
)

logger = logging.getLogger(__name__)


def new_file(f: ast.File) -> File:
    """Create a new File for the given syntax tree.

    Function declarations, imports and global values are registered as
    members. Member names are unique; a duplicate aborts the whole file.
    """
    file = File(name=f.name.name, exprs=list(f.exprs))

    try:
        for decl in f.decls:
            if isinstance(decl, ast.FuncDecl):
                _add_member(file, new_function(file, decl))
            elif isinstance(decl, ast.ImportDecl):
                importt = new_import(decl)
                _add_member(file, importt)
                file.imported[importt.name] = importt
            elif isinstance(decl, ast.ValueDecl):
                for g in new_globals(decl):
                    _add_member(file, g)
            else:
                raise MalformedIRError(f"unhandled declaration type: {type(decl).__name__}")
    except MalformedIRError as err:
        if err.filename is None:
            err.filename = file.name
        raise

    logger.debug("%s: %d members, %d imports", file.name, len(file.members), len(file.imported))
    return file


def _add_member(file: File, member: Member):
    if member.name in file.members:
        raise MalformedIRError(f"member already declared: {member.name}")
    file.members[member.name] = member


def new_import(decl: ast.ImportDecl) -> ExternalMember:
    path = decl.path.name
    alias = _ident_name(decl.alias)
    return ExternalMember(
        imported=_ident_name(decl.name) or path,
        path=path,
        alias=alias,
    )


def new_function(file: File, decl: ast.FuncDecl) -> Function:
    """Create a new Function for a function declaration.

    Parameters and results are lowered in order. The body is left for
    huntcore.ir.build.
    """
    fn = Function(name=decl.name.name, syntax=decl, file=file)

    params: List[Parameter] = []
    results: List[Parameter] = []
    if decl.type.params is not None:
        for p in decl.type.params.list:
            param = new_parameter(fn, p.name)
            params.append(param)
            fn.locals[param.name] = param_var(p.name)
    if decl.type.results is not None:
        results = [new_parameter(fn, p.name) for p in decl.type.results.list]

    fn.signature = Signature(params, results)
    return fn


def new_parameter(fn: Function, expr: ast.Expr) -> Parameter:
    if isinstance(expr, ast.Ident):
        return Parameter(name=expr.name, parent=fn)
    if isinstance(expr, ast.ObjectExpr):
        value = None
        # A parameter has at most one default value.
        if expr.elts:
            value = expr_value(expr.elts[0], fn)
        return Parameter(name=expr.name.name, parent=fn, value=value)
    raise MalformedIRError(f"unhandled parameter expression type: {type(expr).__name__}")


def param_var(expr: ast.Expr) -> Var:
    """The local variable a parameter declares. Its value is whatever the caller passes."""
    ident = expr.name if isinstance(expr, ast.ObjectExpr) else expr
    if not isinstance(ident, ast.Ident):
        raise MalformedIRError(f"unhandled parameter expression type: {type(expr).__name__}")
    return Var(syntax=ident, name=ident.name)


def expr_value(expr: ast.Expr, parent: Optional[Function] = None) -> Value:
    """Lower a single-result expression to the Value it defines.

    Calls can only be lowered inside a function, so parent is required
    for them.
    """
    if isinstance(expr, ast.BasicLit):
        return Const(syntax=expr, value=expr.value)
    if isinstance(expr, ast.Ident):
        return Var(syntax=expr, name=expr.name)
    if isinstance(expr, ast.SelectorExpr):
        path = selector_path(expr)
        if path is not None:
            return Var(syntax=expr, name=path)
        return Var(syntax=expr, name=None)
    if isinstance(expr, (ast.CompositeExpr, ast.FuncLit)):
        return Var(syntax=expr, name=None)
    if isinstance(expr, ast.CallExpr) and parent is not None:
        return new_call(parent, expr)
    raise MalformedIRError(f"unhandled expression type: {type(expr).__name__}")


def selector_path(expr: ast.SelectorExpr) -> Optional[str]:
    """Return 'a.b.c' for a chain of identifiers, None for anything else."""
    parts = [expr.sel.name]
    inner = expr.expr
    while isinstance(inner, ast.SelectorExpr):
        parts.append(inner.sel.name)
        inner = inner.expr
    if not isinstance(inner, ast.Ident):
        return None
    parts.append(inner.name)
    return '.'.join(reversed(parts))


def new_call(parent: Function, call: ast.CallExpr) -> Call:
    """Create a new Call for a call expression inside parent.

    An identifier argument naming a local variable of parent resolves to
    that variable, so every use of a local shares one Var.
    """
    args: List[Value] = []
    for arg in call.args:
        if isinstance(arg, ast.Ident):
            local = parent.lookup(arg.name)
            if local is not None:
                args.append(local)
                continue
            var = Var(syntax=arg, name=arg.name)
            if parent.file is not None:
                var.value = parent.file.global_(arg.name)
            args.append(var)
            continue
        args.append(expr_value(arg, parent))

    fun = call.fun
    if isinstance(fun, ast.Ident):
        fn = None
        if parent.file is not None:
            fn = parent.file.func(fun.name)
        if fn is None:
            fn = Function(name=fun.name)
    elif isinstance(fun, ast.SelectorExpr):
        if not isinstance(fun.expr, ast.Ident):
            raise MalformedIRError(
                f"unhandled selector expression type in call: {type(fun.expr).__name__}"
            )
        # The object may be an import alias; calls are named after the
        # imported module instead.
        ident = fun.expr.name
        if parent.file is not None:
            importt = parent.file.imported_package(ident)
            if importt is not None:
                ident = importt.imported
        fn = Function(name=f"{ident}.{fun.sel.name}")
    else:
        raise MalformedIRError(f"unhandled call function type: {type(fun).__name__}")

    return Call(syntax=call, parent=parent, function=fn, args=args)


def pair_values(decl: ast.ValueDecl) -> Iterator[Tuple[ast.Ident, Optional[ast.Expr]]]:
    """Pair each declared name with its initializer.

    a, b = 1, 2 pairs positionally; a, b = 1 gives 1 to every name and
    a, b gives None to every name. More values than names is an error.
    """
    if len(decl.names) < len(decl.values):
        raise MalformedIRError("value declaration with more values than names")

    if len(decl.names) == len(decl.values):
        yield from zip(decl.names, decl.values)
        return

    value = decl.values[0] if decl.values else None
    for name in decl.names:
        yield name, value


def new_globals(decl: ast.ValueDecl) -> List[Global]:
    """Create one Global for each name of a value declaration."""
    return [
        Global(syntax=decl, name=ident.name, value=value)
        for ident, value in pair_values(decl)
    ]


def _ident_name(ident: Optional[ast.Ident]) -> Optional[str]:
    if ident is not None:
        return ident.name
    return None
