"""
JavaScript front-end: tree-sitter parse tree -> huntcore.ast.

Top-level function declarations (including `const f = () => ...`),
imports (including `const x = require('m')`) and variable declarations
become declarations of the file. Every other top-level statement is kept
as a file expression so calls inside it still get analyzed.

Constructs without a dedicated syntax node become CompositeExpr with
their named children converted, so nothing is dropped silently.
"""

import logging
from typing import List, Optional, Tuple, Union

import tree_sitter_javascript as tsjs
from tree_sitter import Language, Node, Parser

from huntcore import ast

logger = logging.getLogger(__name__)

JS_LANG = Language(tsjs.language())

EXTENSIONS = {'.js', '.jsx', '.mjs', '.cjs'}

IDENT_TYPES = {
    'identifier', 'property_identifier', 'shorthand_property_identifier',
    'private_property_identifier', 'this', 'super', 'import',
}
LITERAL_TYPES = {'string', 'number', 'true', 'false', 'null', 'undefined', 'regex'}
FUNCTION_DECL_TYPES = {'function_declaration', 'generator_function_declaration'}
FUNCTION_VALUE_TYPES = {'function_expression', 'function', 'arrow_function',
                        'generator_function'}
DECLARATION_TYPES = {'lexical_declaration', 'variable_declaration'}
NESTED_FUNCTION_TYPES = FUNCTION_DECL_TYPES | FUNCTION_VALUE_TYPES | {'method_definition'}
SKIP_TYPES = {'comment', 'hash_bang_line', 'empty_statement'}


# ============================================================================
# Tree helpers
# ============================================================================

def node_text(node: Node) -> str:
    """Get the source text of a node."""
    return node.text.decode('utf-8') if node.text else ""


def node_span(node: Node) -> ast.Span:
    return ast.Span(
        start=ast.Position(node.start_byte, node.start_point[0] + 1, node.start_point[1]),
        end=ast.Position(node.end_byte, node.end_point[0] + 1, node.end_point[1]),
    )


def get_child_by_field(node: Node, field_name: str) -> Optional[Node]:
    """Get child node by tree-sitter field name."""
    return node.child_by_field_name(field_name)


def get_child_by_type(node: Node, type_name: str) -> Optional[Node]:
    """Get first direct child of a given type."""
    for child in node.children:
        if child.type == type_name:
            return child
    return None


def get_children_by_type(node: Node, type_name: str) -> List[Node]:
    """Get all direct children of a given type."""
    return [c for c in node.children if c.type == type_name]


def named_children(node: Node) -> List[Node]:
    return [c for c in node.named_children if c.type not in SKIP_TYPES]


def ident(node: Node, name: Optional[str] = None) -> ast.Ident:
    return ast.Ident(name=name if name is not None else node_text(node), span=node_span(node))


def _unquote(text: str) -> str:
    return text.strip('\'"`')


# ============================================================================
# Expressions and statements
# ============================================================================

def member_path(node: Node) -> Optional[str]:
    """Dotted name of a member expression made only of identifiers."""
    if node.type in IDENT_TYPES:
        return node_text(node)
    if node.type != 'member_expression':
        return None
    obj = member_path(get_child_by_field(node, 'object'))
    prop = get_child_by_field(node, 'property')
    if obj is None or prop is None or prop.type not in IDENT_TYPES:
        return None
    return f"{obj}.{node_text(prop)}"


def convert_call(node: Node) -> ast.Node:
    callee = get_child_by_field(node, 'function')
    if callee is None:
        callee = get_child_by_field(node, 'constructor')
    args_node = get_child_by_field(node, 'arguments')
    args: List[ast.Expr] = []
    if args_node is not None:
        if args_node.type == 'arguments':
            args = [a for a in map(convert, named_children(args_node)) if a is not None]
        else:
            # Tagged template: tag`...`
            args = [convert(args_node)]

    fun = convert(callee)
    if isinstance(fun, ast.Ident) or (isinstance(fun, ast.SelectorExpr)
                                      and isinstance(fun.expr, ast.Ident)):
        return ast.CallExpr(fun=fun, args=args, span=node_span(node))
    # f()(), a[b](), (function () {})(): no name to match, but the calls
    # nested in the callee and the arguments are kept.
    return ast.CompositeExpr(kind=node.type, elts=[fun, *args], span=node_span(node))


def convert_member(node: Node) -> ast.Node:
    obj = get_child_by_field(node, 'object')
    prop = get_child_by_field(node, 'property')
    if prop is None or prop.type not in IDENT_TYPES:
        return composite(node)
    # a.b.c keeps a.b as one identifier, so only the last step is a selector.
    path = member_path(obj)
    expr = ident(obj, path) if path is not None else convert(obj)
    return ast.SelectorExpr(expr=expr, sel=ident(prop), span=node_span(node))


def convert_declaration(node: Node) -> ast.Node:
    stmts: List[ast.Node] = []
    for declarator in get_children_by_type(node, 'variable_declarator'):
        name_node = get_child_by_field(declarator, 'name')
        value_node = get_child_by_field(declarator, 'value')
        names = pattern_names(name_node)
        if not names:
            # const {} = f()
            if value_node is not None:
                stmts.append(ast.ExprStmt(expr=convert(value_node), span=node_span(declarator)))
            continue
        decl = ast.ValueDecl(
            names=names,
            values=[convert(value_node)] if value_node is not None else [],
            span=node_span(declarator),
        )
        stmts.append(ast.DeclStmt(decl=decl, span=node_span(declarator)))
    if len(stmts) == 1:
        return stmts[0]
    return ast.BlockStmt(list=stmts, span=node_span(node))


def convert_block(node: Node) -> ast.BlockStmt:
    stmts = [s for s in map(convert, named_children(node)) if s is not None]
    return ast.BlockStmt(list=stmts, span=node_span(node))


def composite(node: Node) -> ast.CompositeExpr:
    elts = [e for e in map(convert, named_children(node)) if e is not None]
    return ast.CompositeExpr(kind=node.type, elts=elts, span=node_span(node))


def convert(node: Node) -> Optional[ast.Node]:
    """Convert any node below the top level."""
    t = node.type
    if t in SKIP_TYPES:
        return None
    if t in IDENT_TYPES:
        return ident(node)
    if t in LITERAL_TYPES:
        return ast.BasicLit(kind=t, value=node_text(node), span=node_span(node))
    if t == 'template_string' and get_child_by_type(node, 'template_substitution') is None:
        return ast.BasicLit(kind=t, value=node_text(node), span=node_span(node))
    if t in ('call_expression', 'new_expression'):
        return convert_call(node)
    if t == 'member_expression':
        return convert_member(node)
    if t in NESTED_FUNCTION_TYPES:
        return convert_func_lit(node)
    if t == 'parenthesized_expression':
        inner = named_children(node)
        if len(inner) == 1:
            return convert(inner[0])
    if t == 'expression_statement':
        inner = named_children(node)
        if len(inner) == 1:
            return ast.ExprStmt(expr=convert(inner[0]), span=node_span(node))
    if t in DECLARATION_TYPES:
        return convert_declaration(node)
    if t == 'statement_block':
        return convert_block(node)
    return composite(node)


# ============================================================================
# Declarations
# ============================================================================

def pattern_names(node: Node) -> List[ast.Ident]:
    """Names bound by an identifier or destructuring pattern."""
    if node.type in ('identifier', 'shorthand_property_identifier_pattern'):
        return [ident(node)]
    if node.type in ('assignment_pattern', 'object_assignment_pattern'):
        return pattern_names(get_child_by_field(node, 'left'))
    if node.type == 'pair_pattern':
        return pattern_names(get_child_by_field(node, 'value'))
    names: List[ast.Ident] = []
    for child in named_children(node):
        names.extend(pattern_names(child))
    return names


def convert_param(node: Node) -> ast.Expr:
    if node.type == 'identifier':
        return ident(node)
    if node.type == 'assignment_pattern':
        left = get_child_by_field(node, 'left')
        right = get_child_by_field(node, 'right')
        return ast.ObjectExpr(
            name=ident(left),
            elts=[convert(right)] if right is not None else [],
            span=node_span(node),
        )
    if node.type == 'rest_pattern':
        inner = named_children(node)
        if inner and inner[0].type == 'identifier':
            return ident(inner[0])
    # Destructured parameter: treat as a single opaque parameter.
    return ident(node)


def function_parts(node: Node) -> Tuple[ast.FuncType, Optional[ast.BlockStmt]]:
    """Signature and body of any function-like node."""
    fields: List[ast.Field] = []
    params_node = get_child_by_field(node, 'parameters')
    if params_node is not None:
        for p in named_children(params_node):
            fields.append(ast.Field(name=convert_param(p), span=node_span(p)))
        params = ast.FieldList(list=fields, span=node_span(params_node))
    else:
        # Single-param arrow: x => x + 1
        param_node = get_child_by_field(node, 'parameter')
        if param_node is not None:
            fields.append(ast.Field(name=convert_param(param_node), span=node_span(param_node)))
        params = ast.FieldList(list=fields, span=node_span(node))

    body_node = get_child_by_field(node, 'body')
    body = None
    if body_node is not None and body_node.type == 'statement_block':
        body = convert_block(body_node)
    elif body_node is not None:
        # Arrow function with an expression body.
        stmt = ast.ExprStmt(expr=convert(body_node), span=node_span(body_node))
        body = ast.BlockStmt(list=[stmt], span=node_span(body_node))

    return ast.FuncType(params=params, span=params.span), body


def convert_function(node: Node, name_node: Node, span_node: Node = None) -> ast.FuncDecl:
    type_, body = function_parts(node)
    return ast.FuncDecl(
        name=ident(name_node),
        type=type_,
        body=body,
        span=node_span(span_node if span_node is not None else node),
    )


def convert_func_lit(node: Node) -> ast.FuncLit:
    type_, body = function_parts(node)
    name_node = get_child_by_field(node, 'name')
    return ast.FuncLit(
        type=type_,
        body=body,
        name=ident(name_node) if name_node is not None else None,
        span=node_span(node),
    )


def _module_import(node: Node, path: ast.Ident, local: Node) -> ast.ImportDecl:
    alias = ident(local) if node_text(local) != path.name else None
    return ast.ImportDecl(
        name=ast.Ident(name=path.name, span=path.span),
        path=path,
        alias=alias,
        span=node_span(node),
    )


def convert_import(node: Node) -> List[ast.ImportDecl]:
    """One ImportDecl per binding of an import statement."""
    source = get_child_by_field(node, 'source')
    path = ident(source, _unquote(node_text(source)))
    clause = get_child_by_type(node, 'import_clause')
    if clause is None:
        # import 'module'
        return [ast.ImportDecl(name=None, path=path, span=node_span(node))]

    decls: List[ast.ImportDecl] = []
    for child in named_children(clause):
        if child.type == 'identifier':
            decls.append(_module_import(node, path, child))
        elif child.type == 'namespace_import':
            local = get_child_by_type(child, 'identifier')
            if local is not None:
                decls.append(_module_import(node, path, local))
        elif child.type == 'named_imports':
            for spec in get_children_by_type(child, 'import_specifier'):
                name = get_child_by_field(spec, 'name')
                alias = get_child_by_field(spec, 'alias')
                decls.append(ast.ImportDecl(
                    name=ident(name, _unquote(node_text(name))),
                    path=path,
                    alias=ident(alias) if alias is not None else None,
                    span=node_span(spec),
                ))
    return decls


def required_module(node: Optional[Node]) -> Optional[str]:
    """Module name of a require('module') call."""
    if node is None or node.type != 'call_expression':
        return None
    callee = get_child_by_field(node, 'function')
    if callee is None or node_text(callee) != 'require':
        return None
    args_node = get_child_by_field(node, 'arguments')
    args = named_children(args_node) if args_node is not None else []
    if len(args) != 1 or args[0].type != 'string':
        return None
    return _unquote(node_text(args[0]))


def convert_require(declarator: Node, name_node: Node, module: str,
                    source: Node) -> List[ast.ImportDecl]:
    path = ident(source, module)
    if name_node.type == 'identifier':
        return [_module_import(declarator, path, name_node)]

    # const { exec, spawn: run } = require('child_process')
    decls: List[ast.ImportDecl] = []
    for child in named_children(name_node):
        if child.type == 'shorthand_property_identifier_pattern':
            decls.append(ast.ImportDecl(name=ident(child), path=path, span=node_span(child)))
        elif child.type == 'pair_pattern':
            key = get_child_by_field(child, 'key')
            value = get_child_by_field(child, 'value')
            if key is not None and value is not None and value.type == 'identifier':
                decls.append(ast.ImportDecl(
                    name=ident(key, _unquote(node_text(key))),
                    path=path,
                    alias=ident(value),
                    span=node_span(child),
                ))
    return decls


class _FileBuilder:

    def __init__(self, filename: str, root: Node):
        self.file = ast.File(name=ast.Ident(name=filename), span=node_span(root))

    def top_level(self, node: Node):
        t = node.type
        if t in SKIP_TYPES:
            return
        if t in FUNCTION_DECL_TYPES:
            name_node = get_child_by_field(node, 'name')
            if name_node is None:
                # export default function () {}
                self.file.exprs.append(convert_func_lit(node))
            else:
                self.file.decls.append(convert_function(node, name_node))
        elif t == 'import_statement':
            self.file.decls.extend(convert_import(node))
        elif t in DECLARATION_TYPES:
            for declarator in get_children_by_type(node, 'variable_declarator'):
                self.declarator(declarator)
        elif t == 'export_statement':
            declaration = get_child_by_field(node, 'declaration')
            value = get_child_by_field(node, 'value')
            if declaration is not None:
                self.top_level(declaration)
            elif value is not None:
                self.file.exprs.append(convert(value))
        elif t == 'expression_statement':
            inner = named_children(node)
            if inner:
                self.file.exprs.append(convert(inner[0]))
        else:
            self.file.exprs.append(convert(node))

    def declarator(self, node: Node):
        name_node = get_child_by_field(node, 'name')
        value_node = get_child_by_field(node, 'value')

        module = required_module(value_node)
        if module is not None:
            args_node = get_child_by_field(value_node, 'arguments')
            self.file.decls.extend(convert_require(node, name_node, module, named_children(args_node)[0]))
            return

        if (value_node is not None and value_node.type in FUNCTION_VALUE_TYPES
                and name_node.type == 'identifier'):
            self.file.decls.append(convert_function(value_node, name_node, span_node=node))
            return

        names = pattern_names(name_node)
        if not names:
            if value_node is not None:
                self.file.exprs.append(convert(value_node))
            return
        values: List[ast.Expr] = []
        if value_node is not None:
            value = convert(value_node)
            values.append(value)
            # Globals keep their initializer unlowered, so calls made while
            # computing it are analyzed as top-level code.
            if not isinstance(value, (ast.Ident, ast.BasicLit)):
                self.file.exprs.append(value)
        self.file.decls.append(ast.ValueDecl(names=names, values=values, span=node_span(node)))


def parse(source: Union[str, bytes], filename: str) -> ast.File:
    """Parse JavaScript source into a syntax tree named filename."""
    if isinstance(source, str):
        source = source.encode('utf-8')
    tree = Parser(JS_LANG).parse(source)
    root = tree.root_node
    if root.has_error:
        logger.warning("%s: syntax errors found, analysis may be incomplete", filename)

    builder = _FileBuilder(filename, root)
    for child in root.named_children:
        builder.top_level(child)
    return builder.file
