"""Intermediate representation of a parsed source file."""

from huntcore.ir.types import (
    MEMBER_TYPES, VALUE_TYPES, BasicBlock, Call, Const, ExternalMember, File,
    Function, Global, Member, Parameter, Signature, Value, Var, walk_calls,
)
from huntcore.ir.create import (
    expr_value, new_call, new_file, new_function, new_globals, new_import,
    new_parameter, pair_values, selector_path,
)
from huntcore.ir.build import INIT, build, build_function, lower
