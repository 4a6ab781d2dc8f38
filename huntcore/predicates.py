"""Argument predicates available to configured call rules."""

from typing import Dict, Type

from huntcore import ast
from huntcore.analysis import ArgumentPredicate
from huntcore.ir import Const, Global, Value, Var


class ConstantArgument(ArgumentPredicate):
    """Safe when the argument is a literal or a variable bound to one.

    Only direct bindings are followed: a local initialized with a literal,
    a local copied from such a local, or a global with a literal
    initializer.
    """

    def run(self, value: Value) -> bool:
        seen = set()
        while isinstance(value, Var) and id(value) not in seen:
            seen.add(id(value))
            if value.value is None:
                return False
            value = value.value
        if isinstance(value, Const):
            return True
        if isinstance(value, Global):
            return isinstance(value.value, ast.BasicLit)
        return False


class AnyArgument(ArgumentPredicate):
    """Never safe: every matching call is reported."""

    def run(self, value: Value) -> bool:
        return False


PREDICATES: Dict[str, Type[ArgumentPredicate]] = {
    'constant': ConstantArgument,
    'any': AnyArgument,
}
