"""
IR data model.

A File owns its Members (Function, ExternalMember, Global). Values are the
closed set Const | Var | Global | Call; each keeps the syntax node it was
lowered from so issues can point back into the source.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from huntcore import ast


class Member:
    """A named top-level entity of a File."""

    name: str


class Value:
    """Anything that can be used as a call argument or variable value."""

    syntax: Optional[ast.Node]

    def pos(self) -> ast.Position:
        return self.syntax.pos() if self.syntax else ast.Position()

    def end(self) -> ast.Position:
        return self.syntax.end() if self.syntax else ast.Position()


@dataclass(eq=False)
class Const(Value):
    """A literal, kept as raw source text."""
    syntax: Optional[ast.Node]
    value: str


@dataclass(eq=False)
class Var(Value):
    """A named reference. value is None while the reference is unresolved."""
    syntax: Optional[ast.Node]
    name: Optional[str]
    value: Optional[Value] = None


@dataclass(eq=False)
class Global(Member, Value):
    """A module level binding. The initializer stays unlowered."""
    syntax: Optional[ast.Node]
    name: str
    value: Optional[ast.Expr] = None


@dataclass(eq=False)
class ExternalMember(Member):
    """An import binding.

    imported is the name the module is known by; alias is the local name
    it was bound to, when it differs.
    """
    imported: str
    path: str
    alias: Optional[str] = None

    @property
    def name(self) -> str:
        return self.alias or self.imported


@dataclass(eq=False)
class Parameter:
    name: str
    parent: "Function" = field(repr=False)
    value: Optional[Value] = None  # default value


@dataclass(eq=False)
class Signature:
    params: List[Parameter] = field(default_factory=list)
    results: List[Parameter] = field(default_factory=list)


@dataclass(eq=False)
class BasicBlock:
    index: int
    parent: "Function" = field(repr=False)
    instrs: List[Value] = field(default_factory=list)


@dataclass(eq=False)
class Function(Member):
    """A function of a File.

    A Function created only from a called name is a stub: it has no syntax,
    file or signature. Stubs and resolved functions share this type.
    """
    name: str
    syntax: Optional[ast.FuncDecl] = field(default=None, repr=False)
    file: Optional["File"] = field(default=None, repr=False)
    signature: Optional[Signature] = None
    locals: Dict[str, Var] = field(default_factory=dict, repr=False)
    blocks: List[BasicBlock] = field(default_factory=list, repr=False)

    @property
    def is_stub(self) -> bool:
        return self.signature is None

    def lookup(self, name: str) -> Optional[Var]:
        """Return the local variable declared with name, if any."""
        return self.locals.get(name)


@dataclass(eq=False)
class Call(Value):
    """A call site inside parent. function is resolved or a stub."""
    syntax: Optional[ast.Node]
    parent: Optional[Function] = field(repr=False)
    function: Function
    args: List[Value] = field(default_factory=list)


# Closed variant sets.
MEMBER_TYPES = (Function, ExternalMember, Global)
VALUE_TYPES = (Const, Var, Global, Call)


@dataclass(eq=False)
class File:
    name: str
    exprs: List[ast.Expr] = field(default_factory=list, repr=False)
    members: Dict[str, Member] = field(default_factory=dict)
    imported: Dict[str, ExternalMember] = field(default_factory=dict, repr=False)
    # Holds the lowered top-level expressions once the file is built.
    init: Optional[Function] = field(default=None, repr=False)

    def func(self, name: str) -> Optional[Function]:
        member = self.members.get(name)
        if isinstance(member, Function):
            return member
        return None

    def imported_package(self, name: str) -> Optional[ExternalMember]:
        return self.imported.get(name)

    def global_(self, name: str) -> Optional[Global]:
        member = self.members.get(name)
        if isinstance(member, Global):
            return member
        return None

    def functions(self) -> Iterator[Function]:
        for member in self.members.values():
            if isinstance(member, Function):
                yield member


def walk_calls(file: File) -> Iterator[Call]:
    """Yield every Call instruction of a built file, top-level code first."""
    fns = list(file.functions())
    if file.init is not None:
        fns.insert(0, file.init)
    for fn in fns:
        for block in fn.blocks:
            for instr in block.instrs:
                if isinstance(instr, Call):
                    yield instr
