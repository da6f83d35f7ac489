"""
Convenience constructors for typed trees.

``HirBuilder`` fills in the resolution and type information a host compiler
would attach, so trees can be written compactly:

    b = HirBuilder()
    x = b.param("x", Ty.option(Ty.int()))
    n = b.bind("n", Ty.int())
    body = b.match(
        b.local("x"),
        b.arm(b.some_pat(n), b.some(b.binary("+", b.local("n"), b.lit_int(1)))),
        b.arm(b.none_pat(), b.none(Ty.int())),
    )
    crate = b.crate(b.fn("f", [x], expr=body))
"""

from __future__ import annotations

import itertools
from typing import Any, Iterable, Optional, Union

from hirlint.hir.macros import FORMAT_MACROS, ArgRef, parse_format_template
from hirlint.hir.nodes import (
    AddrOf,
    Adjustment,
    AdjustKind,
    Arm,
    Assign,
    AssignOp,
    Binary,
    BinOp,
    BindingPat,
    Block,
    BlockCheckMode,
    BlockExpr,
    Break,
    Call,
    Closure,
    Continue,
    Crate,
    DefRes,
    Expr,
    ExprStmt,
    FieldExpr,
    FnItem,
    FormatArgsNode,
    FormatString,
    If,
    ImplItem,
    IndexExpr,
    Item,
    LangItem,
    Let,
    LetStmt,
    Lit,
    LitKind,
    LitPat,
    LocalRes,
    Loop,
    MacroCall,
    Match,
    MethodCall,
    Mutability,
    OrPat,
    Param,
    Pat,
    PathExpr,
    PathPat,
    Placeholder,
    RefPat,
    Return,
    Stmt,
    Tuple,
    TuplePat,
    TupleStructPat,
    Ty,
    TyKind,
    UnOp,
    Unary,
    WildPat,
)
from hirlint.utils.span import ROOT_CONTEXT


SOME_RES = DefRes(("core", "option", "Option", "Some"), LangItem.OPTION_SOME)
NONE_RES = DefRes(("core", "option", "Option", "None"), LangItem.OPTION_NONE)

_NEVER = Ty(TyKind.NEVER, "!")


def _known(ty: Optional[Ty]) -> bool:
    return ty is not None and ty.kind not in (TyKind.NEVER, TyKind.UNKNOWN)


def _fully_known(ty: Optional[Ty]) -> bool:
    return _known(ty) and all(arg.kind is not TyKind.UNKNOWN for arg in ty.args)


class HirBuilder:
    """
    Builds typed tree nodes with resolutions filled in.

    Keeps a scope of named bindings so ``local("x")`` resolves to the most
    recent ``bind("x")`` or ``param("x")``. Extra keyword arguments on
    expression constructors (``ctxt``, ``adjustments``, ``attrs``) are passed
    to the node.
    """

    def __init__(self) -> None:
        self._binding_ids = itertools.count(1)
        self._scope: dict[str, tuple[int, Optional[Ty]]] = {}

    # -------------------------------------------------------------------------
    # Bindings
    # -------------------------------------------------------------------------

    def bind(
        self,
        name: str,
        ty: Optional[Ty] = None,
        *,
        by_ref: Optional[Mutability] = None,
        mutable: bool = False,
        sub: Optional[Pat] = None,
        **kw: Any,
    ) -> BindingPat:
        """Introduce a binding pattern and bring ``name`` into scope."""
        binding_id = next(self._binding_ids)
        self._scope[name] = (binding_id, ty)
        return BindingPat(name, binding_id, by_ref=by_ref, mutable=mutable, sub=sub, **kw)

    def param(self, name: str, ty: Ty, *, mutable: bool = False) -> Param:
        return Param(self.bind(name, ty, mutable=mutable), ty)

    def local(self, name: str, ty: Optional[Ty] = None, **kw: Any) -> PathExpr:
        """
        Reference the binding currently in scope under ``name``.

        Raises:
            KeyError: If no binding of that name has been introduced
        """
        if name not in self._scope:
            raise KeyError(f"no binding named {name!r} in scope")
        binding_id, bound_ty = self._scope[name]
        return PathExpr((name,), LocalRes(binding_id), ty=ty or bound_ty, **kw)

    def binding_id(self, name: str) -> int:
        return self._scope[name][0]

    # -------------------------------------------------------------------------
    # Literals
    # -------------------------------------------------------------------------

    def lit_int(self, value: int, ty: Optional[Ty] = None, **kw: Any) -> Lit:
        return Lit(LitKind.INT, value, ty=ty or Ty.int(), **kw)

    def lit_float(self, value: float, **kw: Any) -> Lit:
        return Lit(LitKind.FLOAT, value, ty=Ty.float(), **kw)

    def lit_bool(self, value: bool, **kw: Any) -> Lit:
        return Lit(LitKind.BOOL, value, ty=Ty.bool(), **kw)

    def lit_char(self, value: str, **kw: Any) -> Lit:
        return Lit(LitKind.CHAR, value, ty=Ty.char(), **kw)

    def lit_str(self, value: str, raw_hashes: Optional[int] = None, **kw: Any) -> Lit:
        """A string literal; ``raw_hashes`` makes it ``r"..."`` (0) or ``r#"..."#`` (1)."""
        return Lit(LitKind.STR, value, raw_hashes, ty=Ty.ref(Ty.str_()), **kw)

    # -------------------------------------------------------------------------
    # Option constructors and patterns
    # -------------------------------------------------------------------------

    def some(self, value: Expr, ty: Optional[Ty] = None, **kw: Any) -> Call:
        """``Some(value)``."""
        ctor = PathExpr(("Some",), SOME_RES, ty=Ty.fn_def("Some"), ctxt=kw.get("ctxt", ROOT_CONTEXT))
        return Call(ctor, (value,), ty=ty or Ty.option(value.ty or Ty.unknown()), **kw)

    def none(self, inner: Optional[Ty] = None, **kw: Any) -> PathExpr:
        """``None`` of type ``Option<inner>``."""
        return PathExpr(("None",), NONE_RES, ty=Ty.option(inner or Ty.unknown()), **kw)

    def some_pat(self, inner: Pat, **kw: Any) -> TupleStructPat:
        return TupleStructPat(("Some",), SOME_RES, (inner,), **kw)

    def none_pat(self, **kw: Any) -> PathPat:
        return PathPat(("None",), NONE_RES, **kw)

    def wild(self, **kw: Any) -> WildPat:
        return WildPat(**kw)

    def ref_pat(self, inner: Pat, mutable: bool = False) -> RefPat:
        return RefPat(inner, Mutability.MUT if mutable else Mutability.NOT)

    def tuple_pat(self, *elements: Pat) -> TuplePat:
        return TuplePat(tuple(elements))

    def tuple_struct_pat(self, path: str, *elements: Pat) -> TupleStructPat:
        segments = tuple(path.split("::"))
        return TupleStructPat(segments, DefRes(segments), tuple(elements))

    def lit_pat(self, lit: Lit) -> LitPat:
        return LitPat(lit)

    def or_pat(self, *alternatives: Pat) -> OrPat:
        return OrPat(tuple(alternatives))

    # -------------------------------------------------------------------------
    # Calls, operators, places
    # -------------------------------------------------------------------------

    def fn_path(self, name: str, unsafe: bool = False, **kw: Any) -> PathExpr:
        segments = tuple(name.split("::"))
        return PathExpr(segments, DefRes(segments), ty=Ty.fn_def(name, unsafe), **kw)

    def call(self, func: Union[str, Expr], *args: Expr, ty: Optional[Ty] = None, **kw: Any) -> Call:
        """Call ``func``; a string names a safe function."""
        if isinstance(func, str):
            func = self.fn_path(func)
        return Call(func, tuple(args), ty=ty or Ty.unknown(), **kw)

    def method(
        self, receiver: Expr, name: str, *args: Expr, ty: Optional[Ty] = None, **kw: Any
    ) -> MethodCall:
        return MethodCall(receiver, name, tuple(args), ty=ty or Ty.unknown(), **kw)

    def field(self, base: Expr, name: str, ty: Optional[Ty] = None, **kw: Any) -> FieldExpr:
        return FieldExpr(base, name, ty=ty or Ty.unknown(), **kw)

    def index(self, base: Expr, index: Expr, ty: Optional[Ty] = None, **kw: Any) -> IndexExpr:
        return IndexExpr(base, index, ty=ty or Ty.unknown(), **kw)

    def binary(self, op: str, left: Expr, right: Expr, ty: Optional[Ty] = None, **kw: Any) -> Binary:
        bin_op = BinOp.from_symbol(op)
        if ty is None:
            if bin_op.is_comparison or bin_op in (BinOp.AND, BinOp.OR):
                ty = Ty.bool()
            else:
                ty = left.ty or Ty.unknown()
        return Binary(bin_op, left, right, ty=ty, **kw)

    def deref(self, operand: Expr, ty: Optional[Ty] = None, **kw: Any) -> Unary:
        if ty is None:
            ty = operand.ty.args[0] if operand.ty is not None and operand.ty.is_ref else Ty.unknown()
        return Unary(UnOp.DEREF, operand, ty=ty, **kw)

    def not_(self, operand: Expr, **kw: Any) -> Unary:
        return Unary(UnOp.NOT, operand, ty=operand.ty, **kw)

    def neg(self, operand: Expr, **kw: Any) -> Unary:
        return Unary(UnOp.NEG, operand, ty=operand.ty, **kw)

    def addr_of(self, operand: Expr, mutable: bool = False, **kw: Any) -> AddrOf:
        mutability = Mutability.MUT if mutable else Mutability.NOT
        ty = Ty.ref(operand.ty or Ty.unknown(), mutable)
        return AddrOf(mutability, operand, ty=ty, **kw)

    def assign(self, target: Expr, value: Expr, **kw: Any) -> Assign:
        return Assign(target, value, ty=Ty.unit(), **kw)

    def assign_op(self, op: str, target: Expr, value: Expr, **kw: Any) -> AssignOp:
        """``target op= value``; ``op`` may be given as ``"+"`` or ``"+="``."""
        return AssignOp(BinOp.from_symbol(op.removesuffix("=")), target, value, ty=Ty.unit(), **kw)

    def tuple_(self, *elements: Expr, **kw: Any) -> Tuple:
        ty = Ty.tuple_(*(e.ty or Ty.unknown() for e in elements))
        return Tuple(tuple(elements), ty=ty, **kw)

    @staticmethod
    def borrow_adjustment(mutable: bool = False) -> tuple[Adjustment, ...]:
        """The auto-ref adjustment of a ``&self`` / ``&mut self`` method receiver."""
        mutability = Mutability.MUT if mutable else Mutability.NOT
        return (Adjustment(AdjustKind.BORROW, mutability),)

    @staticmethod
    def deref_adjustment() -> tuple[Adjustment, ...]:
        return (Adjustment(AdjustKind.DEREF),)

    # -------------------------------------------------------------------------
    # Blocks and statements
    # -------------------------------------------------------------------------

    def block(
        self,
        *stmts: Union[Stmt, Expr],
        expr: Optional[Expr] = None,
        unsafe: bool = False,
        ty: Optional[Ty] = None,
        **kw: Any,
    ) -> BlockExpr:
        """A block; bare expressions among ``stmts`` become ``expr;`` statements."""
        rules = BlockCheckMode.UNSAFE_USER if unsafe else BlockCheckMode.DEFAULT
        body = tuple(s if isinstance(s, Stmt) else ExprStmt(s) for s in stmts)
        if ty is None:
            ty = expr.ty if expr is not None and expr.ty is not None else Ty.unit()
        return BlockExpr(Block(body, expr, rules), ty=ty, **kw)

    def let(self, pat: Pat, init: Optional[Expr] = None, **kw: Any) -> LetStmt:
        return LetStmt(pat, init, **kw)

    def stmt(self, expr: Expr, semi: bool = True, **kw: Any) -> ExprStmt:
        return ExprStmt(expr, semi, **kw)

    # -------------------------------------------------------------------------
    # Control flow
    # -------------------------------------------------------------------------

    def arm(self, pat: Pat, body: Expr, guard: Optional[Expr] = None) -> Arm:
        return Arm(pat, body, guard)

    def match(self, scrutinee: Expr, *arms: Arm, ty: Optional[Ty] = None, **kw: Any) -> Match:
        if ty is None:
            # Prefer a type with a known payload (`Some(..)` over `None`)
            ty = (
                next((a.body.ty for a in arms if _fully_known(a.body.ty)), None)
                or next((a.body.ty for a in arms if _known(a.body.ty)), None)
                or Ty.unknown()
            )
        return Match(scrutinee, tuple(arms), ty=ty, **kw)

    def _as_block(self, expr: Expr) -> BlockExpr:
        return expr if isinstance(expr, BlockExpr) else self.block(expr=expr)

    def if_(
        self, cond: Expr, then: Expr, else_: Optional[Expr] = None, ty: Optional[Ty] = None, **kw: Any
    ) -> If:
        then_block = self._as_block(then)
        if else_ is not None and not isinstance(else_, If):
            else_ = self._as_block(else_)
        if ty is None:
            ty = then_block.ty
            if else_ is not None and not _fully_known(ty) and _fully_known(else_.ty):
                ty = else_.ty
        return If(cond, then_block, else_, ty=ty, **kw)

    def if_let(
        self,
        pat: Pat,
        init: Expr,
        then: Expr,
        else_: Optional[Expr] = None,
        ty: Optional[Ty] = None,
        **kw: Any,
    ) -> If:
        """``if let pat = init { then } else { else_ }``."""
        return self.if_(Let(pat, init, ty=Ty.bool()), then, else_, ty=ty, **kw)

    def closure(self, params: Iterable[Pat], body: Expr, is_move: bool = False, **kw: Any) -> Closure:
        return Closure(tuple(params), body, is_move, ty=Ty(TyKind.CLOSURE, "closure"), **kw)

    def loop(self, *stmts: Union[Stmt, Expr], label: Optional[str] = None, **kw: Any) -> Loop:
        body = tuple(s if isinstance(s, Stmt) else ExprStmt(s) for s in stmts)
        return Loop(Block(body), label, ty=kw.pop("ty", _NEVER), **kw)

    def break_(self, label: Optional[str] = None, value: Optional[Expr] = None, **kw: Any) -> Break:
        return Break(label, value, ty=_NEVER, **kw)

    def continue_(self, label: Optional[str] = None, **kw: Any) -> Continue:
        return Continue(label, ty=_NEVER, **kw)

    def return_(self, value: Optional[Expr] = None, **kw: Any) -> Return:
        return Return(value, ty=_NEVER, **kw)

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def fn(
        self,
        name: str,
        params: Iterable[Param] = (),
        *stmts: Union[Stmt, Expr],
        expr: Optional[Expr] = None,
        ret_ty: Optional[Ty] = None,
        **kw: Any,
    ) -> FnItem:
        body = self.block(*stmts, expr=expr)
        return FnItem(name, tuple(params), body, ret_ty or body.ty, **kw)

    def impl(
        self,
        self_ty: str,
        *fns: FnItem,
        trait: Optional[str] = None,
        trait_diagnostic_name: Optional[str] = None,
        **kw: Any,
    ) -> ImplItem:
        """``impl [trait for] self_ty { fns }``; the trait's last segment names it by default."""
        trait_path = tuple(trait.split("::")) if trait else None
        if trait_path and trait_diagnostic_name is None:
            trait_diagnostic_name = trait_path[-1]
        return ImplItem(self_ty, tuple(fns), trait_path, trait_diagnostic_name, **kw)

    def crate(self, *items: Item, name: str = "main") -> Crate:
        return Crate(tuple(items), name)

    # -------------------------------------------------------------------------
    # Format macros
    # -------------------------------------------------------------------------

    def format_macro(
        self,
        name: str,
        template: Optional[str] = None,
        *args: Expr,
        dest: Optional[Expr] = None,
        raw_hashes: Optional[int] = None,
        named: Optional[dict[str, Expr]] = None,
        **kw: Any,
    ) -> MacroCall:
        """
        A format macro invocation.

        ``template`` is the decoded format string; ``None`` means the macro
        was invoked without one (``println!()``), in which case the format
        string is generated by the expansion.

        Raises:
            ValueError: For an unknown macro or an unresolvable named argument
        """
        if name not in FORMAT_MACROS:
            raise ValueError(f"unknown format macro {name!r}")
        inputs = (dest,) if dest is not None else ()
        call = MacroCall(name, f"{name}_macro", inputs, ty=kw.pop("ty", Ty.unit()), **kw)

        values = list(args)
        names: list[Optional[str]] = [None] * len(values)
        for key, value in (named or {}).items():
            names.append(key)
            values.append(value)

        if template is None:
            fmt = FormatString(("",), ctxt=call.expn)
        else:
            parsed = parse_format_template(template)
            placeholders = tuple(
                Placeholder(
                    self._resolve_arg(ph.argument, names),
                    ph.spec,
                    ph.explicit,
                    self._resolve_arg(ph.width, names) if ph.width is not None else None,
                    self._resolve_arg(ph.precision, names) if ph.precision is not None else None,
                )
                for ph in parsed.placeholders
            )
            fmt = FormatString(tuple(parsed.pieces), placeholders, raw_hashes)

        call.format_args = FormatArgsNode(fmt, tuple(values), tuple(names))
        return call

    @staticmethod
    def _resolve_arg(ref: ArgRef, names: list[Optional[str]]) -> int:
        if isinstance(ref, int):
            return ref
        if ref in names:
            return names.index(ref)
        raise ValueError(f"format argument {ref!r} is not among the named arguments")

    def print_(self, template: Optional[str] = None, *args: Expr, **kw: Any) -> MacroCall:
        return self.format_macro("print", template, *args, **kw)

    def println(self, template: Optional[str] = None, *args: Expr, **kw: Any) -> MacroCall:
        return self.format_macro("println", template, *args, **kw)

    def eprint(self, template: Optional[str] = None, *args: Expr, **kw: Any) -> MacroCall:
        return self.format_macro("eprint", template, *args, **kw)

    def eprintln(self, template: Optional[str] = None, *args: Expr, **kw: Any) -> MacroCall:
        return self.format_macro("eprintln", template, *args, **kw)

    def write(self, dest: Expr, template: Optional[str] = None, *args: Expr, **kw: Any) -> MacroCall:
        return self.format_macro("write", template, *args, dest=dest, **kw)

    def writeln(self, dest: Expr, template: Optional[str] = None, *args: Expr, **kw: Any) -> MacroCall:
        return self.format_macro("writeln", template, *args, dest=dest, **kw)
