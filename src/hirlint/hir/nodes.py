"""
Typed tree node definitions consumed by hirlint rules.

The host compiler hands the rules a fully resolved, type-annotated tree after
macro expansion. This module defines that tree: expressions carry their
resolved type and implicit adjustments, paths carry their resolution, and
every node carries the hygiene context it was produced in plus the source
span the printer or host stamped on it.
"""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Iterator, Optional, Union

from hirlint.utils.span import DUMMY_SPAN, ROOT_CONTEXT, Span, SyntaxContext

if TYPE_CHECKING:
    from hirlint.lints.rules import LintAttribute


_hir_ids = itertools.count(1)


def _next_hir_id() -> int:
    return next(_hir_ids)


# -----------------------------------------------------------------------------
# Enumerations
# -----------------------------------------------------------------------------


class Mutability(Enum):
    """Whether a reference, binding or borrow is mutable."""

    NOT = "not"
    MUT = "mut"

    @property
    def prefix(self) -> str:
        return "mut " if self is Mutability.MUT else ""


class LangItem(Enum):
    """Language items the rules identify by role rather than by name."""

    OPTION_SOME = "Some"
    OPTION_NONE = "None"


class LitKind(Enum):
    STR = auto()
    CHAR = auto()
    BOOL = auto()
    INT = auto()
    FLOAT = auto()


class UnOp(Enum):
    DEREF = "*"
    NOT = "!"
    NEG = "-"


class BinOp(Enum):
    """Binary operators with their symbol and binding strength."""

    MUL = ("*", 13)
    DIV = ("/", 13)
    REM = ("%", 13)
    ADD = ("+", 12)
    SUB = ("-", 12)
    SHL = ("<<", 11)
    SHR = (">>", 11)
    BIT_AND = ("&", 10)
    BIT_XOR = ("^", 9)
    BIT_OR = ("|", 8)
    EQ = ("==", 7)
    NE = ("!=", 7)
    LT = ("<", 7)
    LE = ("<=", 7)
    GT = (">", 7)
    GE = (">=", 7)
    AND = ("&&", 6)
    OR = ("||", 5)

    @property
    def symbol(self) -> str:
        return self.value[0]

    @property
    def precedence(self) -> int:
        return self.value[1]

    @property
    def is_comparison(self) -> bool:
        return self.precedence == 7

    @classmethod
    def from_symbol(cls, symbol: str) -> "BinOp":
        for op in cls:
            if op.symbol == symbol:
                return op
        raise ValueError(f"Unknown binary operator: {symbol}")


class BlockCheckMode(Enum):
    DEFAULT = auto()
    UNSAFE_USER = auto()
    UNSAFE_GENERATED = auto()


class AdjustKind(Enum):
    DEREF = auto()
    BORROW = auto()
    POINTER = auto()


class FormatTrait(Enum):
    """Formatting trait selected by a placeholder's type character."""

    DISPLAY = ""
    DEBUG = "?"
    LOWER_HEX = "x"
    UPPER_HEX = "X"
    OCTAL = "o"
    BINARY = "b"
    LOWER_EXP = "e"
    UPPER_EXP = "E"
    POINTER = "p"

    @classmethod
    def from_spec(cls, spec: str) -> "FormatTrait":
        """Resolve the trait from the text after ``:`` in a placeholder."""
        if not spec:
            return cls.DISPLAY
        if spec.endswith("?"):
            return cls.DEBUG
        for trait in cls:
            if trait.value and spec.endswith(trait.value):
                return trait
        return cls.DISPLAY


# -----------------------------------------------------------------------------
# Precedence
# -----------------------------------------------------------------------------


PREC_CLOSURE = -40
PREC_JUMP = -30
PREC_RANGE = -10
PREC_ASSIGN = 2
PREC_PREFIX = 50
PREC_POSTFIX = 60
PREC_PAREN = 99


# -----------------------------------------------------------------------------
# Types
# -----------------------------------------------------------------------------


class TyKind(Enum):
    BOOL = auto()
    CHAR = auto()
    INT = auto()
    FLOAT = auto()
    STR = auto()
    UNIT = auto()
    NEVER = auto()
    ADT = auto()
    REF = auto()
    TUPLE = auto()
    FN_DEF = auto()
    FN_PTR = auto()
    CLOSURE = auto()
    UNKNOWN = auto()


_ALWAYS_COPY = {
    TyKind.BOOL,
    TyKind.CHAR,
    TyKind.INT,
    TyKind.FLOAT,
    TyKind.UNIT,
    TyKind.NEVER,
    TyKind.FN_DEF,
    TyKind.FN_PTR,
}


@dataclass(frozen=True, slots=True)
class Ty:
    """
    A resolved type as reported by the host type checker.

    Attributes:
        kind: Structural kind of the type
        name: Display name (``i32``, ``Option``, ``String``)
        args: Generic arguments, or the referent for references
        mutability: Mutability of a reference type
        diagnostic_item: Stable logical name (``Option``, ``Debug``)
        is_unsafe: Whether a function type is ``unsafe fn``
        copy: Whether an ADT implements ``Copy``
    """

    kind: TyKind
    name: str = ""
    args: tuple["Ty", ...] = ()
    mutability: Mutability = Mutability.NOT
    diagnostic_item: Optional[str] = None
    is_unsafe: bool = False
    copy: bool = False

    @classmethod
    def int(cls, name: str = "i32") -> "Ty":
        return cls(TyKind.INT, name)

    @classmethod
    def float(cls, name: str = "f64") -> "Ty":
        return cls(TyKind.FLOAT, name)

    @classmethod
    def bool(cls) -> "Ty":
        return cls(TyKind.BOOL, "bool")

    @classmethod
    def char(cls) -> "Ty":
        return cls(TyKind.CHAR, "char")

    @classmethod
    def str_(cls) -> "Ty":
        return cls(TyKind.STR, "str")

    @classmethod
    def unit(cls) -> "Ty":
        return cls(TyKind.UNIT, "()")

    @classmethod
    def string(cls) -> "Ty":
        return cls(TyKind.ADT, "String", diagnostic_item="String")

    @classmethod
    def option(cls, inner: "Ty") -> "Ty":
        return cls(
            TyKind.ADT, "Option", (inner,), diagnostic_item="Option", copy=inner.is_copy
        )

    @classmethod
    def adt(cls, name: str, diagnostic_item: Optional[str] = None, copy: bool = False) -> "Ty":
        return cls(TyKind.ADT, name, diagnostic_item=diagnostic_item, copy=copy)

    @classmethod
    def ref(cls, inner: "Ty", mutable: bool = False) -> "Ty":
        mutability = Mutability.MUT if mutable else Mutability.NOT
        return cls(TyKind.REF, "&", (inner,), mutability)

    @classmethod
    def tuple_(cls, *elements: "Ty") -> "Ty":
        return cls(TyKind.TUPLE, "()", tuple(elements))

    @classmethod
    def fn_def(cls, name: str, unsafe: bool = False) -> "Ty":
        return cls(TyKind.FN_DEF, name, is_unsafe=unsafe)

    @classmethod
    def unknown(cls) -> "Ty":
        return cls(TyKind.UNKNOWN, "_")

    @property
    def is_unit(self) -> bool:
        return self.kind is TyKind.UNIT

    @property
    def is_ref(self) -> bool:
        return self.kind is TyKind.REF

    @property
    def is_copy(self) -> bool:
        if self.kind in _ALWAYS_COPY:
            return True
        if self.kind is TyKind.REF:
            return self.mutability is Mutability.NOT
        if self.kind is TyKind.TUPLE:
            return all(arg.is_copy for arg in self.args)
        if self.kind is TyKind.ADT:
            return self.copy
        return False

    def peel_refs(self) -> "Ty":
        ty = self
        while ty.kind is TyKind.REF:
            ty = ty.args[0]
        return ty

    def peel_refs_is_mutable(self) -> tuple["Ty", int, Mutability]:
        """
        Peel every reference layer.

        Returns:
            The referent, the number of layers removed, and whether every
            layer was a mutable reference.
        """
        ty = self
        count = 0
        mutability = Mutability.MUT
        while ty.kind is TyKind.REF:
            if ty.mutability is Mutability.NOT:
                mutability = Mutability.NOT
            ty = ty.args[0]
            count += 1
        return ty, count, mutability

    def __str__(self) -> str:
        if self.kind is TyKind.REF:
            return f"&{self.mutability.prefix}{self.args[0]}"
        if self.args and self.kind is TyKind.ADT:
            return f"{self.name}<{', '.join(str(a) for a in self.args)}>"
        if self.kind is TyKind.TUPLE:
            return f"({', '.join(str(a) for a in self.args)})"
        return self.name


@dataclass(frozen=True, slots=True)
class Adjustment:
    """An implicit coercion the type checker applied to an expression."""

    kind: AdjustKind
    mutability: Mutability = Mutability.NOT


# -----------------------------------------------------------------------------
# Path resolutions
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LocalRes:
    """A path resolved to a local binding."""

    binding_id: int


@dataclass(frozen=True, slots=True)
class DefRes:
    """
    A path resolved to a definition.

    Attributes:
        path: Fully qualified path of the definition
        lang_item: Set when the definition is a language item constructor
        diagnostic_name: Stable logical name used to identify the definition
    """

    path: tuple[str, ...]
    lang_item: Optional[LangItem] = None
    diagnostic_name: Optional[str] = None


Res = Union[LocalRes, DefRes]


# -----------------------------------------------------------------------------
# Base nodes
# -----------------------------------------------------------------------------


@dataclass(eq=False, slots=True)
class Node(ABC):
    """
    Base class for all tree nodes.

    Nodes compare by identity. ``span`` is stamped by the printer (or the
    host) after the tree is built.
    """

    ctxt: SyntaxContext = field(default=ROOT_CONTEXT, kw_only=True, repr=False)
    attrs: tuple["LintAttribute", ...] = field(default=(), kw_only=True, repr=False)
    span: Span = field(default=DUMMY_SPAN, kw_only=True, repr=False)
    hir_id: int = field(default_factory=_next_hir_id, kw_only=True, repr=False)

    @abstractmethod
    def accept(self, visitor: "HirVisitor") -> Any:
        """Accept a visitor for tree traversal."""

    @abstractmethod
    def children(self) -> Iterator["Node"]:
        """Direct child nodes, in source order."""


@dataclass(eq=False, slots=True)
class Expr(Node):
    """Base class for expressions; carries typeck results inline."""

    ty: Optional[Ty] = field(default=None, kw_only=True, repr=False)
    adjustments: tuple[Adjustment, ...] = field(default=(), kw_only=True, repr=False)


@dataclass(eq=False, slots=True)
class Pat(Node):
    """Base class for patterns."""

    def bindings(self) -> Iterator["BindingPat"]:
        """Every binding introduced by this pattern."""
        for child in self.children():
            if isinstance(child, Pat):
                yield from child.bindings()

    def contains_explicit_ref_binding(self) -> Optional[Mutability]:
        """
        Whether any binding is written ``ref`` or ``ref mut``.

        Returns ``Mutability.MUT`` if any binding is ``ref mut``, otherwise
        ``Mutability.NOT`` if any is ``ref``, otherwise ``None``.
        """
        result: Optional[Mutability] = None
        for binding in self.bindings():
            if binding.by_ref is Mutability.MUT:
                return Mutability.MUT
            if binding.by_ref is Mutability.NOT:
                result = Mutability.NOT
        return result


@dataclass(eq=False, slots=True)
class Stmt(Node):
    """Base class for statements."""


@dataclass(eq=False, slots=True)
class Item(Node):
    """Base class for items."""


# -----------------------------------------------------------------------------
# Expressions
# -----------------------------------------------------------------------------


@dataclass(eq=False, slots=True)
class Lit(Expr):
    """
    A literal: ``"text"``, ``r#"raw"#``, ``'c'``, ``true``, ``42``.

    ``value`` holds the decoded value; ``raw_hashes`` is the number of ``#``
    delimiters for a raw string literal and ``None`` for a cooked one.
    """

    kind: LitKind
    value: Any
    raw_hashes: Optional[int] = None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_lit(self)

    def children(self) -> Iterator[Node]:
        return iter(())


@dataclass(eq=False, slots=True)
class PathExpr(Expr):
    """A resolved path: a local variable, function, constant or constructor."""

    segments: tuple[str, ...]
    res: Res

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_path_expr(self)

    def children(self) -> Iterator[Node]:
        return iter(())


@dataclass(eq=False, slots=True)
class Call(Expr):
    func: Expr
    args: tuple[Expr, ...]

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_call(self)

    def children(self) -> Iterator[Node]:
        yield self.func
        yield from self.args


@dataclass(eq=False, slots=True)
class MethodCall(Expr):
    receiver: Expr
    method: str
    args: tuple[Expr, ...] = ()

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_method_call(self)

    def children(self) -> Iterator[Node]:
        yield self.receiver
        yield from self.args


@dataclass(eq=False, slots=True)
class FieldExpr(Expr):
    base: Expr
    name: str

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_field_expr(self)

    def children(self) -> Iterator[Node]:
        yield self.base


@dataclass(eq=False, slots=True)
class IndexExpr(Expr):
    base: Expr
    index: Expr

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_index_expr(self)

    def children(self) -> Iterator[Node]:
        yield self.base
        yield self.index


@dataclass(eq=False, slots=True)
class Unary(Expr):
    op: UnOp
    operand: Expr

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_unary(self)

    def children(self) -> Iterator[Node]:
        yield self.operand


@dataclass(eq=False, slots=True)
class AddrOf(Expr):
    """``&expr`` or ``&mut expr``."""

    mutability: Mutability
    operand: Expr

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_addr_of(self)

    def children(self) -> Iterator[Node]:
        yield self.operand


@dataclass(eq=False, slots=True)
class Binary(Expr):
    op: BinOp
    left: Expr
    right: Expr

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_binary(self)

    def children(self) -> Iterator[Node]:
        yield self.left
        yield self.right


@dataclass(eq=False, slots=True)
class Assign(Expr):
    target: Expr
    value: Expr

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_assign(self)

    def children(self) -> Iterator[Node]:
        yield self.target
        yield self.value


@dataclass(eq=False, slots=True)
class AssignOp(Expr):
    op: BinOp
    target: Expr
    value: Expr

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_assign_op(self)

    def children(self) -> Iterator[Node]:
        yield self.target
        yield self.value


@dataclass(eq=False, slots=True)
class Block(Node):
    """
    A braced block: statements followed by an optional trailing expression.

    Example:
        unsafe { let y = f(x); Some(y) }
    """

    stmts: tuple[Stmt, ...] = ()
    expr: Optional[Expr] = None
    rules: BlockCheckMode = BlockCheckMode.DEFAULT

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_block(self)

    def children(self) -> Iterator[Node]:
        yield from self.stmts
        if self.expr is not None:
            yield self.expr


@dataclass(eq=False, slots=True)
class BlockExpr(Expr):
    block: Block

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_block_expr(self)

    def children(self) -> Iterator[Node]:
        yield self.block


@dataclass(eq=False, slots=True)
class Let(Expr):
    """The ``let PAT = EXPR`` condition of an ``if let``."""

    pat: Pat
    init: Expr

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_let(self)

    def children(self) -> Iterator[Node]:
        yield self.pat
        yield self.init


@dataclass(eq=False, slots=True)
class If(Expr):
    """
    ``if cond { .. } else ..``; ``cond`` is a ``Let`` for ``if let``.
    """

    cond: Expr
    then: BlockExpr
    else_: Optional[Expr] = None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_if(self)

    def children(self) -> Iterator[Node]:
        yield self.cond
        yield self.then
        if self.else_ is not None:
            yield self.else_


@dataclass(eq=False, slots=True)
class Arm(Node):
    pat: Pat
    body: Expr
    guard: Optional[Expr] = None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_arm(self)

    def children(self) -> Iterator[Node]:
        yield self.pat
        if self.guard is not None:
            yield self.guard
        yield self.body


@dataclass(eq=False, slots=True)
class Match(Expr):
    """
    Example:
        match x {
            Some(n) => Some(n + 1),
            None => None,
        }
    """

    scrutinee: Expr
    arms: tuple[Arm, ...]

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_match(self)

    def children(self) -> Iterator[Node]:
        yield self.scrutinee
        yield from self.arms


@dataclass(eq=False, slots=True)
class Closure(Expr):
    params: tuple[Pat, ...]
    body: Expr
    is_move: bool = False

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_closure(self)

    def children(self) -> Iterator[Node]:
        yield from self.params
        yield self.body


@dataclass(eq=False, slots=True)
class Loop(Expr):
    body: Block
    label: Optional[str] = None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_loop(self)

    def children(self) -> Iterator[Node]:
        yield self.body


@dataclass(eq=False, slots=True)
class Break(Expr):
    label: Optional[str] = None
    value: Optional[Expr] = None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_break(self)

    def children(self) -> Iterator[Node]:
        if self.value is not None:
            yield self.value


@dataclass(eq=False, slots=True)
class Continue(Expr):
    label: Optional[str] = None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_continue(self)

    def children(self) -> Iterator[Node]:
        return iter(())


@dataclass(eq=False, slots=True)
class Return(Expr):
    value: Optional[Expr] = None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_return(self)

    def children(self) -> Iterator[Node]:
        if self.value is not None:
            yield self.value


@dataclass(eq=False, slots=True)
class Tuple(Expr):
    elements: tuple[Expr, ...]

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_tuple(self)

    def children(self) -> Iterator[Node]:
        yield from self.elements


# -----------------------------------------------------------------------------
# Format macros
# -----------------------------------------------------------------------------


@dataclass(eq=False, slots=True)
class Placeholder(Node):
    """
    One ``{...}`` interpolation site in a format string.

    Attributes:
        arg_index: Index into the macro's value list
        spec: Text after ``:`` (``""`` for the default format)
        explicit: Text before ``:`` as written (``"0"``, ``"name"``), if any
        width_arg: Value index used as ``width$``, if any
        precision_arg: Value index used as ``.precision$`` or ``.*``, if any
    """

    arg_index: int
    spec: str = ""
    explicit: Optional[str] = None
    width_arg: Optional[int] = None
    precision_arg: Optional[int] = None

    @property
    def trait(self) -> FormatTrait:
        return FormatTrait.from_spec(self.spec)

    @property
    def is_default(self) -> bool:
        return not self.spec and self.width_arg is None and self.precision_arg is None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_placeholder(self)

    def children(self) -> Iterator[Node]:
        return iter(())


@dataclass(eq=False, slots=True)
class FormatString(Node):
    """
    The format string literal of a format macro.

    ``pieces`` are the decoded literal segments between placeholders, always
    one more than the number of placeholders (empty segments included).
    """

    pieces: tuple[str, ...]
    placeholders: tuple[Placeholder, ...] = ()
    raw_hashes: Optional[int] = None

    @property
    def is_raw(self) -> bool:
        return self.raw_hashes is not None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_format_string(self)

    def children(self) -> Iterator[Node]:
        yield from self.placeholders


@dataclass(eq=False, slots=True)
class FormatArgsNode(Node):
    """The format string and value list of a format macro invocation."""

    format_string: FormatString
    values: tuple[Expr, ...] = ()
    names: tuple[Optional[str], ...] = ()

    def name_of(self, index: int) -> Optional[str]:
        if index < len(self.names):
            return self.names[index]
        return None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_format_args(self)

    def children(self) -> Iterator[Node]:
        yield self.format_string
        yield from self.values


@dataclass(eq=False, slots=True)
class MacroCall(Expr):
    """
    A macro invocation as it appears after expansion.

    ``expn`` is the hygiene context of everything the expansion generated;
    its call site is this node.

    Example:
        writeln!(out, "{} items", count)
    """

    name: str
    logical_name: Optional[str] = None
    inputs: tuple[Expr, ...] = ()
    format_args: Optional[FormatArgsNode] = None
    expn: SyntaxContext = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.expn = SyntaxContext(self.name, call_site=self)

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_macro_call(self)

    def children(self) -> Iterator[Node]:
        yield from self.inputs
        if self.format_args is not None:
            yield self.format_args


# -----------------------------------------------------------------------------
# Patterns
# -----------------------------------------------------------------------------


@dataclass(eq=False, slots=True)
class WildPat(Pat):
    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_wild_pat(self)

    def children(self) -> Iterator[Node]:
        return iter(())


@dataclass(eq=False, slots=True)
class BindingPat(Pat):
    """
    Bind a value to a name: ``x``, ``mut x``, ``ref x``, ``ref mut x``, ``x @ p``.
    """

    name: str
    binding_id: int
    by_ref: Optional[Mutability] = None
    mutable: bool = False
    sub: Optional[Pat] = None

    def bindings(self) -> Iterator["BindingPat"]:
        yield self
        if self.sub is not None:
            yield from self.sub.bindings()

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_binding_pat(self)

    def children(self) -> Iterator[Node]:
        if self.sub is not None:
            yield self.sub


@dataclass(eq=False, slots=True)
class RefPat(Pat):
    inner: Pat
    mutability: Mutability = Mutability.NOT

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_ref_pat(self)

    def children(self) -> Iterator[Node]:
        yield self.inner


@dataclass(eq=False, slots=True)
class PathPat(Pat):
    """A unit variant or constant: ``None``, ``Ordering::Less``."""

    segments: tuple[str, ...]
    res: Res

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_path_pat(self)

    def children(self) -> Iterator[Node]:
        return iter(())


@dataclass(eq=False, slots=True)
class TupleStructPat(Pat):
    """A tuple variant: ``Some(x)``, ``Point(x, _)``."""

    segments: tuple[str, ...]
    res: Res
    elements: tuple[Pat, ...]

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_tuple_struct_pat(self)

    def children(self) -> Iterator[Node]:
        yield from self.elements


@dataclass(eq=False, slots=True)
class TuplePat(Pat):
    elements: tuple[Pat, ...]

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_tuple_pat(self)

    def children(self) -> Iterator[Node]:
        yield from self.elements


@dataclass(eq=False, slots=True)
class LitPat(Pat):
    lit: Lit

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_lit_pat(self)

    def children(self) -> Iterator[Node]:
        yield self.lit


@dataclass(eq=False, slots=True)
class OrPat(Pat):
    alternatives: tuple[Pat, ...]

    def bindings(self) -> Iterator["BindingPat"]:
        # Every alternative binds the same names
        if self.alternatives:
            yield from self.alternatives[0].bindings()

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_or_pat(self)

    def children(self) -> Iterator[Node]:
        yield from self.alternatives


# -----------------------------------------------------------------------------
# Statements and items
# -----------------------------------------------------------------------------


@dataclass(eq=False, slots=True)
class LetStmt(Stmt):
    pat: Pat
    init: Optional[Expr] = None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_let_stmt(self)

    def children(self) -> Iterator[Node]:
        yield self.pat
        if self.init is not None:
            yield self.init


@dataclass(eq=False, slots=True)
class ExprStmt(Stmt):
    expr: Expr
    semi: bool = True

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_expr_stmt(self)

    def children(self) -> Iterator[Node]:
        yield self.expr


@dataclass(eq=False, slots=True)
class Param(Node):
    pat: Pat
    ty: Ty

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_param(self)

    def children(self) -> Iterator[Node]:
        yield self.pat


@dataclass(eq=False, slots=True)
class FnItem(Item):
    name: str
    params: tuple[Param, ...]
    body: BlockExpr
    ret_ty: Optional[Ty] = None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_fn_item(self)

    def children(self) -> Iterator[Node]:
        yield from self.params
        yield self.body


@dataclass(eq=False, slots=True)
class ImplItem(Item):
    """
    ``impl Trait for Type { .. }`` or an inherent ``impl Type { .. }``.

    ``trait_diagnostic_name`` identifies the implemented trait (``Debug``).
    """

    self_ty: str
    items: tuple[FnItem, ...] = ()
    trait_path: Optional[tuple[str, ...]] = None
    trait_diagnostic_name: Optional[str] = None

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_impl_item(self)

    def children(self) -> Iterator[Node]:
        yield from self.items


@dataclass(eq=False, slots=True)
class Crate(Node):
    """The root node: every item of one crate."""

    items: tuple[Item, ...]
    name: str = "main"

    def accept(self, visitor: "HirVisitor") -> Any:
        return visitor.visit_crate(self)

    def children(self) -> Iterator[Node]:
        yield from self.items


# -----------------------------------------------------------------------------
# Precedence of expressions
# -----------------------------------------------------------------------------


def precedence(expr: Expr) -> int:
    """How tightly an expression binds, on the host language's scale."""
    if isinstance(expr, Closure):
        return PREC_CLOSURE
    if isinstance(expr, (Break, Continue, Return, Let)):
        return PREC_JUMP
    if isinstance(expr, (Assign, AssignOp)):
        return PREC_ASSIGN
    if isinstance(expr, Binary):
        return expr.op.precedence
    if isinstance(expr, (Unary, AddrOf)):
        return PREC_PREFIX
    if isinstance(expr, (Call, MethodCall, FieldExpr, IndexExpr)):
        return PREC_POSTFIX
    return PREC_PAREN


# -----------------------------------------------------------------------------
# Visitors
# -----------------------------------------------------------------------------


class HirVisitor(ABC):
    """
    Visitor pattern base class for tree traversal.
    """

    def visit(self, node: Node) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)


class BaseHirVisitor(HirVisitor):
    """
    Base visitor with default implementations that traverse children.

    Subclass this and override specific visit_* methods as needed.
    """

    def walk(self, node: Node) -> None:
        for child in node.children():
            self.visit(child)

    # Items
    def visit_crate(self, node: Crate) -> Any:
        self.walk(node)

    def visit_fn_item(self, node: FnItem) -> Any:
        self.walk(node)

    def visit_impl_item(self, node: ImplItem) -> Any:
        self.walk(node)

    def visit_param(self, node: Param) -> Any:
        self.walk(node)

    # Statements
    def visit_let_stmt(self, node: LetStmt) -> Any:
        self.walk(node)

    def visit_expr_stmt(self, node: ExprStmt) -> Any:
        self.walk(node)

    def visit_block(self, node: Block) -> Any:
        self.walk(node)

    # Expressions
    def visit_lit(self, node: Lit) -> Any:
        pass

    def visit_path_expr(self, node: PathExpr) -> Any:
        pass

    def visit_call(self, node: Call) -> Any:
        self.walk(node)

    def visit_method_call(self, node: MethodCall) -> Any:
        self.walk(node)

    def visit_field_expr(self, node: FieldExpr) -> Any:
        self.walk(node)

    def visit_index_expr(self, node: IndexExpr) -> Any:
        self.walk(node)

    def visit_unary(self, node: Unary) -> Any:
        self.walk(node)

    def visit_addr_of(self, node: AddrOf) -> Any:
        self.walk(node)

    def visit_binary(self, node: Binary) -> Any:
        self.walk(node)

    def visit_assign(self, node: Assign) -> Any:
        self.walk(node)

    def visit_assign_op(self, node: AssignOp) -> Any:
        self.walk(node)

    def visit_block_expr(self, node: BlockExpr) -> Any:
        self.walk(node)

    def visit_let(self, node: Let) -> Any:
        self.walk(node)

    def visit_if(self, node: If) -> Any:
        self.walk(node)

    def visit_arm(self, node: Arm) -> Any:
        self.walk(node)

    def visit_match(self, node: Match) -> Any:
        self.walk(node)

    def visit_closure(self, node: Closure) -> Any:
        self.walk(node)

    def visit_loop(self, node: Loop) -> Any:
        self.walk(node)

    def visit_break(self, node: Break) -> Any:
        self.walk(node)

    def visit_continue(self, node: Continue) -> Any:
        pass

    def visit_return(self, node: Return) -> Any:
        self.walk(node)

    def visit_tuple(self, node: Tuple) -> Any:
        self.walk(node)

    def visit_macro_call(self, node: MacroCall) -> Any:
        self.walk(node)

    def visit_format_args(self, node: FormatArgsNode) -> Any:
        self.walk(node)

    def visit_format_string(self, node: FormatString) -> Any:
        pass

    def visit_placeholder(self, node: Placeholder) -> Any:
        pass

    # Patterns
    def visit_wild_pat(self, node: WildPat) -> Any:
        pass

    def visit_binding_pat(self, node: BindingPat) -> Any:
        self.walk(node)

    def visit_ref_pat(self, node: RefPat) -> Any:
        self.walk(node)

    def visit_path_pat(self, node: PathPat) -> Any:
        pass

    def visit_tuple_struct_pat(self, node: TupleStructPat) -> Any:
        self.walk(node)

    def visit_tuple_pat(self, node: TuplePat) -> Any:
        self.walk(node)

    def visit_lit_pat(self, node: LitPat) -> Any:
        self.walk(node)

    def visit_or_pat(self, node: OrPat) -> Any:
        self.walk(node)
