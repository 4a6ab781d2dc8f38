"""Tests for syntax tree -> IR member construction."""

import pytest

from huntcore import ast, ir
from huntcore.errors import MalformedIRError


def _ident(name):
    return ast.Ident(name=name)


def _lit(value):
    return ast.BasicLit(kind="number", value=value)


def _func(name, *stmts, params=()):
    fields = [ast.Field(name=p) for p in params]
    return ast.FuncDecl(
        name=_ident(name),
        type=ast.FuncType(params=ast.FieldList(list=fields)),
        body=ast.BlockStmt(list=list(stmts)),
    )


def _call_stmt(fun, *args):
    return ast.ExprStmt(expr=ast.CallExpr(fun=fun, args=list(args)))


def _file(*decls, exprs=(), name="test.js"):
    return ast.File(name=_ident(name), decls=list(decls), exprs=list(exprs))


def _globals(names, values):
    decl = ast.ValueDecl(names=[_ident(n) for n in names], values=[_lit(v) for v in values])
    return {g.name: g.value for g in ir.new_globals(decl)}


# ============================================================================
# Globals
# ============================================================================

def test_globals_paired_by_position():
    values = _globals(["a", "b"], ["1", "2"])
    assert values["a"].value == "1"
    assert values["b"].value == "2"


def test_globals_single_value_is_broadcast():
    values = _globals(["a", "b"], ["1"])
    assert values["a"].value == "1"
    assert values["b"] is values["a"]


def test_globals_without_values():
    assert _globals(["a", "b"], []) == {"a": None, "b": None}


def test_globals_with_too_many_values():
    with pytest.raises(MalformedIRError):
        _globals(["a", "b"], ["1", "2", "3"])


def test_global_is_member_and_value():
    file = ir.new_file(_file(ast.ValueDecl(names=[_ident("x")], values=[_lit("1")])))
    g = file.members["x"]
    assert isinstance(g, ir.Global)
    assert isinstance(g, ir.MEMBER_TYPES)
    assert isinstance(g, ir.VALUE_TYPES)
    assert file.global_("x") is g
    assert file.func("x") is None


# ============================================================================
# Functions and calls
# ============================================================================

def test_calls_to_declared_function_share_it():
    f = _file(
        _func("g"),
        _func("f", _call_stmt(_ident("g")), _call_stmt(_ident("g"))),
    )
    file = ir.lower(f)
    g = file.func("g")
    calls = file.func("f").blocks[0].instrs
    assert len(calls) == 2
    assert calls[0].function is g
    assert calls[1].function is g
    assert not g.is_stub


def test_unknown_function_is_stub():
    file = ir.lower(_file(_func("f", _call_stmt(_ident("eval"), _lit("1")))))
    [call] = file.func("f").blocks[0].instrs
    assert call.function.name == "eval"
    assert call.function.is_stub
    assert call.function.file is None
    assert call.parent is file.func("f")


def test_stubs_are_not_shared():
    file = ir.lower(_file(_func("f", _call_stmt(_ident("h")), _call_stmt(_ident("h")))))
    first, second = file.func("f").blocks[0].instrs
    assert first.function is not second.function


@pytest.mark.parametrize("second", [
    _func("f"),
    ast.ValueDecl(names=[_ident("f")], values=[_lit("1")]),
    ast.ImportDecl(name=_ident("f"), path=_ident("f")),
])
def test_duplicate_member_aborts(second):
    with pytest.raises(MalformedIRError) as exc:
        ir.new_file(_file(_func("f"), second, name="dup.js"))
    assert exc.value.filename == "dup.js"
    assert "f" in exc.value.message


def test_duplicate_function_aborts_every_time():
    f = _file(_func("f"), _func("g"), _func("f"))
    for _ in range(3):
        with pytest.raises(MalformedIRError):
            ir.new_file(f)


def test_unknown_declaration_aborts():
    with pytest.raises(MalformedIRError) as exc:
        ir.new_file(_file(ast.ExprStmt(expr=_ident("x")), name="bad.js"))
    assert str(exc.value) == "bad.js: unhandled declaration type: ExprStmt"


def test_forward_reference_resolves():
    f = _file(
        _func("f", _call_stmt(_ident("g"))),
        _func("g"),
    )
    file = ir.lower(f)
    [call] = file.func("f").blocks[0].instrs
    assert call.function is file.func("g")


def test_parameters():
    default = ast.ObjectExpr(name=_ident("b"), elts=[_lit("2")])
    file = ir.new_file(_file(_func("f", params=[_ident("a"), default])))
    a, b = file.func("f").signature.params
    assert (a.name, a.value) == ("a", None)
    assert b.name == "b"
    assert isinstance(b.value, ir.Const)
    assert b.value.value == "2"
    assert a.parent is file.func("f")


def test_parameter_of_unknown_shape_aborts():
    param = ast.CompositeExpr(kind="object_pattern")
    with pytest.raises(MalformedIRError):
        ir.new_file(_file(_func("f", params=[param])))


def test_function_without_params_has_empty_signature():
    file = ir.new_file(_file(ast.FuncDecl(name=_ident("f"))))
    fn = file.func("f")
    assert fn.signature.params == []
    assert fn.signature.results == []
    assert fn.file is file


# ============================================================================
# Arguments
# ============================================================================

def test_local_argument_binds_to_declaration():
    decl = ast.DeclStmt(decl=ast.ValueDecl(names=[_ident("x")], values=[_lit("1")]))
    file = ir.lower(_file(_func(
        "f", decl, _call_stmt(_ident("eval"), _ident("x")), _call_stmt(_ident("g"), _ident("x")),
    )))
    fn = file.func("f")
    first, second = fn.blocks[0].instrs
    assert first.args[0] is fn.lookup("x")
    assert second.args[0] is fn.lookup("x")
    assert fn.lookup("x").value.value == "1"


def test_global_argument_points_to_global():
    file = ir.lower(_file(
        ast.ValueDecl(names=[_ident("cfg")], values=[_lit("1")]),
        _func("f", _call_stmt(_ident("eval"), _ident("cfg"))),
    ))
    [call] = file.func("f").blocks[0].instrs
    arg = call.args[0]
    assert isinstance(arg, ir.Var)
    assert arg.name == "cfg"
    assert arg.value is file.global_("cfg")


def test_unbound_argument_is_plain_var():
    file = ir.lower(_file(_func("f", _call_stmt(_ident("eval"), _ident("input")))))
    [call] = file.func("f").blocks[0].instrs
    assert call.args[0].name == "input"
    assert call.args[0].value is None


def test_nested_call_argument():
    inner = ast.CallExpr(fun=_ident("g"), args=[])
    file = ir.lower(_file(_func("f", _call_stmt(_ident("eval"), inner))))
    outer_call, inner_call = file.func("f").blocks[0].instrs
    assert outer_call.function.name == "eval"
    assert outer_call.args[0] is inner_call
    assert inner_call.function.name == "g"


def test_object_argument_aborts():
    arg = ast.ObjectExpr(name=_ident("o"))
    with pytest.raises(MalformedIRError):
        ir.lower(_file(_func("f", _call_stmt(_ident("eval"), arg))))


# ============================================================================
# Selectors and imports
# ============================================================================

def test_selector_call_name():
    fun = ast.SelectorExpr(expr=_ident("fs"), sel=_ident("readFile"))
    file = ir.lower(_file(_func("f", _call_stmt(fun))))
    [call] = file.func("f").blocks[0].instrs
    assert call.function.name == "fs.readFile"
    assert call.function.is_stub


def test_selector_call_through_import_alias():
    imp = ast.ImportDecl(name=_ident("child_process"), path=_ident("child_process"),
                         alias=_ident("cp"))
    fun = ast.SelectorExpr(expr=_ident("cp"), sel=_ident("exec"))
    file = ir.lower(_file(imp, _func("f", _call_stmt(fun))))
    [call] = file.func("f").blocks[0].instrs
    assert call.function.name == "child_process.exec"
    member = file.members["cp"]
    assert isinstance(member, ir.ExternalMember)
    assert file.imported_package("cp") is member


def test_selector_on_call_result_aborts():
    obj = ast.CallExpr(fun=_ident("res"))
    fun = ast.SelectorExpr(expr=obj, sel=_ident("send"))
    with pytest.raises(MalformedIRError) as exc:
        ir.lower(_file(_func("f", _call_stmt(fun)), name="app.js"))
    assert exc.value.filename == "app.js"


def test_unhandled_callee_aborts():
    fun = ast.CompositeExpr(kind="arrow_function")
    with pytest.raises(MalformedIRError):
        ir.lower(_file(_func("f", _call_stmt(fun))))


def test_import_without_name_uses_path():
    member = ir.new_import(ast.ImportDecl(name=None, path=_ident("./polyfill")))
    assert member.imported == "./polyfill"
    assert member.name == "./polyfill"


def test_selector_path():
    inner = ast.SelectorExpr(expr=_ident("a"), sel=_ident("b"))
    assert ir.selector_path(ast.SelectorExpr(expr=inner, sel=_ident("c"))) == "a.b.c"
    call = ast.SelectorExpr(expr=ast.CallExpr(fun=_ident("a")), sel=_ident("b"))
    assert ir.selector_path(call) is None


def test_expr_value():
    assert isinstance(ir.expr_value(_lit("1")), ir.Const)
    assert ir.expr_value(_ident("x")).name == "x"
    assert ir.expr_value(ast.CompositeExpr(kind="object")).name is None
    with pytest.raises(MalformedIRError):
        ir.expr_value(ast.CallExpr(fun=_ident("f")))


def test_parameter_default_call():
    default = ast.ObjectExpr(name=_ident("now"), elts=[ast.CallExpr(fun=_ident("clock"))])
    file = ir.new_file(_file(_func("f", params=[default])))
    [now] = file.func("f").signature.params
    assert isinstance(now.value, ir.Call)
    assert now.value.function.name == "clock"
