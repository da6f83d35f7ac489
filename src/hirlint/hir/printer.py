"""
Tree printer.

Renders a typed tree back to source text and stamps every node with the
``Span`` it occupies, so the tree can stand in for a host-compiled file.
Nodes generated by a macro expansion (such as the implicit format string of
``println!()``) are not printed; they receive the invocation's span tagged with
the expansion's context.

Usage:
    source_map = HirPrinter().print_crate(crate, filename="lib.rs")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from hirlint.hir.nodes import (
    AddrOf,
    Arm,
    Assign,
    AssignOp,
    Binary,
    BindingPat,
    Block,
    BlockCheckMode,
    BlockExpr,
    Break,
    Call,
    Closure,
    Continue,
    Crate,
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
    Let,
    LetStmt,
    Lit,
    LitKind,
    LitPat,
    Loop,
    MacroCall,
    Match,
    MethodCall,
    Node,
    OrPat,
    Param,
    Pat,
    PathExpr,
    PathPat,
    PREC_POSTFIX,
    PREC_PREFIX,
    RefPat,
    Return,
    Stmt,
    Tuple,
    TuplePat,
    TupleStructPat,
    Unary,
    WildPat,
    precedence,
)
from hirlint.hir.source_map import SourceMap
from hirlint.utils.span import Span


# =============================================================================
# Printer Configuration
# =============================================================================


@dataclass
class PrintConfig:
    """Configuration for the tree printer."""

    indent_size: int = 4
    blank_lines_between_items: int = 1
    trailing_newline: bool = True


# =============================================================================
# Literal Escaping
# =============================================================================


_STR_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
}

_CHAR_ESCAPES = {**_STR_ESCAPES, '"': '"', "'": "\\'"}


def escape_str(value: str) -> str:
    """Escape text for a cooked ``"..."`` literal."""
    return "".join(_STR_ESCAPES.get(ch, ch) for ch in value)


def escape_char(value: str) -> str:
    """Escape a character for a ``'.'`` literal."""
    return _CHAR_ESCAPES.get(value, value)


def _double_braces(text: str) -> str:
    return text.replace("{", "{{").replace("}", "}}")


# =============================================================================
# Printer
# =============================================================================


class HirPrinter:
    """
    Writes a tree to text, recording the byte range of every node.
    """

    def __init__(self, config: Optional[PrintConfig] = None) -> None:
        self.config = config or PrintConfig()
        self._parts: list[str] = []
        self._pos = 0
        self._indent_level = 0

    def print_crate(self, crate: Crate, filename: str = "<input>") -> SourceMap:
        """Print a whole crate and return its source map."""
        self._parts = []
        self._pos = 0
        self._indent_level = 0

        start = self._pos
        for i, item in enumerate(crate.items):
            if i > 0:
                self._write("\n" * (self.config.blank_lines_between_items + 1))
            self._item(item)
        if self.config.trailing_newline and crate.items:
            self._write("\n")
        self._stamp(crate, start)
        return SourceMap("".join(self._parts), filename)

    def print_expr(self, expr: Expr, filename: str = "<input>") -> SourceMap:
        """Print a single expression; used for fragments and fix previews."""
        self._parts = []
        self._pos = 0
        self._indent_level = 0
        self._expr(expr)
        return SourceMap("".join(self._parts), filename)

    # -------------------------------------------------------------------------
    # Output helpers
    # -------------------------------------------------------------------------

    def _write(self, text: str) -> None:
        self._parts.append(text)
        self._pos += len(text)

    def _newline(self) -> None:
        self._write("\n" + " " * (self._indent_level * self.config.indent_size))

    def _stamp(self, node: Node, start: int) -> None:
        node.span = Span(start, self._pos, node.ctxt)

    def _attrs(self, node: Node, own_line: bool) -> None:
        for attr in node.attrs:
            self._write(str(attr))
            if own_line:
                self._newline()
            else:
                self._write(" ")

    # -------------------------------------------------------------------------
    # Items and statements
    # -------------------------------------------------------------------------

    def _item(self, item: Item) -> None:
        self._attrs(item, own_line=True)
        start = self._pos
        if isinstance(item, FnItem):
            self._fn_item(item)
        elif isinstance(item, ImplItem):
            self._impl_item(item)
        else:
            raise TypeError(f"cannot print item {type(item).__name__}")
        self._stamp(item, start)

    def _fn_item(self, item: FnItem) -> None:
        self._write(f"fn {item.name}(")
        for i, param in enumerate(item.params):
            if i:
                self._write(", ")
            self._param(param)
        self._write(")")
        if item.ret_ty is not None and not item.ret_ty.is_unit:
            self._write(f" -> {item.ret_ty}")
        self._write(" ")
        self._block_expr(item.body, multiline=True)

    def _param(self, param: Param) -> None:
        start = self._pos
        self._pat(param.pat)
        self._write(f": {param.ty}")
        self._stamp(param, start)

    def _impl_item(self, item: ImplItem) -> None:
        if item.trait_path:
            self._write(f"impl {'::'.join(item.trait_path)} for {item.self_ty} {{")
        else:
            self._write(f"impl {item.self_ty} {{")
        self._indent_level += 1
        for i, fn in enumerate(item.items):
            if i:
                self._write("\n")
            self._newline()
            self._item(fn)
        self._indent_level -= 1
        self._newline()
        self._write("}")

    def _stmt(self, stmt: Stmt) -> None:
        self._attrs(stmt, own_line=True)
        start = self._pos
        if isinstance(stmt, LetStmt):
            self._write("let ")
            self._pat(stmt.pat)
            if stmt.init is not None:
                self._write(" = ")
                self._expr(stmt.init)
            self._write(";")
        elif isinstance(stmt, ExprStmt):
            self._expr(stmt.expr)
            if stmt.semi:
                self._write(";")
        else:
            raise TypeError(f"cannot print statement {type(stmt).__name__}")
        self._stamp(stmt, start)

    # -------------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------------

    def _block_expr(self, expr: BlockExpr, multiline: bool = False) -> None:
        start = self._pos
        self._block(expr.block, multiline)
        self._stamp(expr, start)

    def _block(self, block: Block, multiline: bool = False) -> None:
        start = self._pos
        if block.rules is BlockCheckMode.UNSAFE_USER:
            self._write("unsafe ")
        if not block.stmts and not multiline:
            if block.expr is None:
                self._write("{}")
            else:
                self._write("{ ")
                self._expr(block.expr)
                self._write(" }")
        else:
            self._write("{")
            self._indent_level += 1
            for stmt in block.stmts:
                self._newline()
                self._stmt(stmt)
            if block.expr is not None:
                self._newline()
                self._expr(block.expr)
            self._indent_level -= 1
            self._newline()
            self._write("}")
        self._stamp(block, start)

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def _expr(self, expr: Expr) -> None:
        """Print an expression and stamp its span."""
        self._attrs(expr, own_line=False)
        start = self._pos
        self._expr_kind(expr)
        self._stamp(expr, start)

    def _operand(self, expr: Expr, min_prec: int) -> None:
        """Print a sub-expression, parenthesized if it binds looser than ``min_prec``."""
        if precedence(expr) < min_prec:
            self._write("(")
            self._expr(expr)
            self._write(")")
        else:
            self._expr(expr)

    def _comma_list(self, exprs: tuple[Expr, ...]) -> None:
        for i, e in enumerate(exprs):
            if i:
                self._write(", ")
            self._expr(e)

    def _expr_kind(self, expr: Expr) -> None:
        if isinstance(expr, Lit):
            self._write(self._lit_text(expr))
        elif isinstance(expr, PathExpr):
            self._write("::".join(expr.segments))
        elif isinstance(expr, Call):
            self._operand(expr.func, PREC_POSTFIX)
            self._write("(")
            self._comma_list(expr.args)
            self._write(")")
        elif isinstance(expr, MethodCall):
            self._operand(expr.receiver, PREC_POSTFIX)
            self._write(f".{expr.method}(")
            self._comma_list(expr.args)
            self._write(")")
        elif isinstance(expr, FieldExpr):
            self._operand(expr.base, PREC_POSTFIX)
            self._write(f".{expr.name}")
        elif isinstance(expr, IndexExpr):
            self._operand(expr.base, PREC_POSTFIX)
            self._write("[")
            self._expr(expr.index)
            self._write("]")
        elif isinstance(expr, Unary):
            self._write(expr.op.value)
            self._operand(expr.operand, PREC_PREFIX)
        elif isinstance(expr, AddrOf):
            self._write("&" + expr.mutability.prefix)
            self._operand(expr.operand, PREC_PREFIX)
        elif isinstance(expr, Binary):
            # Left-associative: the right operand must bind strictly tighter
            self._operand(expr.left, expr.op.precedence)
            self._write(f" {expr.op.symbol} ")
            self._operand(expr.right, expr.op.precedence + 1)
        elif isinstance(expr, Assign):
            self._expr(expr.target)
            self._write(" = ")
            self._expr(expr.value)
        elif isinstance(expr, AssignOp):
            self._expr(expr.target)
            self._write(f" {expr.op.symbol}= ")
            self._expr(expr.value)
        elif isinstance(expr, BlockExpr):
            self._block(expr.block)
        elif isinstance(expr, Let):
            self._write("let ")
            self._pat(expr.pat)
            self._write(" = ")
            self._expr(expr.init)
        elif isinstance(expr, If):
            self._if(expr)
        elif isinstance(expr, Match):
            self._match(expr)
        elif isinstance(expr, Closure):
            self._write("move |" if expr.is_move else "|")
            for i, param in enumerate(expr.params):
                if i:
                    self._write(", ")
                self._pat(param)
            self._write("| ")
            self._expr(expr.body)
        elif isinstance(expr, Loop):
            if expr.label:
                self._write(f"'{expr.label}: ")
            self._write("loop ")
            self._block(expr.body, multiline=True)
        elif isinstance(expr, Break):
            self._write("break")
            if expr.label:
                self._write(f" '{expr.label}")
            if expr.value is not None:
                self._write(" ")
                self._expr(expr.value)
        elif isinstance(expr, Continue):
            self._write("continue")
            if expr.label:
                self._write(f" '{expr.label}")
        elif isinstance(expr, Return):
            self._write("return")
            if expr.value is not None:
                self._write(" ")
                self._expr(expr.value)
        elif isinstance(expr, Tuple):
            self._write("(")
            self._comma_list(expr.elements)
            if len(expr.elements) == 1:
                self._write(",")
            self._write(")")
        elif isinstance(expr, MacroCall):
            self._macro_call(expr)
        else:
            raise TypeError(f"cannot print expression {type(expr).__name__}")

    def _lit_text(self, lit: Lit) -> str:
        if lit.kind is LitKind.STR:
            if lit.raw_hashes is not None:
                hashes = "#" * lit.raw_hashes
                return f'r{hashes}"{lit.value}"{hashes}'
            return f'"{escape_str(lit.value)}"'
        if lit.kind is LitKind.CHAR:
            return f"'{escape_char(lit.value)}'"
        if lit.kind is LitKind.BOOL:
            return "true" if lit.value else "false"
        return str(lit.value)

    def _if(self, expr: If) -> None:
        self._write("if ")
        self._expr(expr.cond)
        self._write(" ")
        self._expr(expr.then)
        if expr.else_ is not None:
            self._write(" else ")
            self._expr(expr.else_)

    def _match(self, expr: Match) -> None:
        self._write("match ")
        self._expr(expr.scrutinee)
        self._write(" {")
        self._indent_level += 1
        for arm in expr.arms:
            self._newline()
            self._arm(arm)
        self._indent_level -= 1
        self._newline()
        self._write("}")

    def _arm(self, arm: Arm) -> None:
        start = self._pos
        self._pat(arm.pat)
        if arm.guard is not None:
            self._write(" if ")
            self._expr(arm.guard)
        self._write(" => ")
        self._expr(arm.body)
        self._stamp(arm, start)
        self._write(",")

    def _macro_call(self, call: MacroCall) -> None:
        start = self._pos
        self._write(f"{call.name}!(")
        first = True
        for e in call.inputs:
            if not first:
                self._write(", ")
            self._expr(e)
            first = False
        if call.format_args is not None:
            self._format_args(call, call.format_args, first)
        self._write(")")

        if call.format_args is not None:
            fmt = call.format_args.format_string
            if fmt.ctxt is call.expn:
                # Implicit format string of `println!()` / `writeln!(w)`
                fmt.span = Span(start, self._pos, call.expn)

    def _format_args(self, call: MacroCall, node: FormatArgsNode, first: bool) -> None:
        fmt = node.format_string
        if fmt.ctxt is not call.expn:
            if not first:
                self._write(", ")
            fmt_start = self._pos
            self._format_string(fmt)
        else:
            fmt_start = self._pos
        for index, value in enumerate(node.values):
            self._write(", ")
            name = node.name_of(index)
            if name:
                self._write(f"{name} = ")
            self._expr(value)
        node.span = Span(fmt_start, self._pos, node.ctxt)

    def _format_string(self, fmt: FormatString) -> None:
        start = self._pos
        raw = fmt.raw_hashes is not None
        hashes = "#" * (fmt.raw_hashes or 0)
        self._write(f'r{hashes}"' if raw else '"')
        for i, piece in enumerate(fmt.pieces):
            text = piece if raw else escape_str(piece)
            self._write(_double_braces(text))
            if i < len(fmt.placeholders):
                placeholder = fmt.placeholders[i]
                ph_start = self._pos
                self._write("{")
                if placeholder.explicit:
                    self._write(placeholder.explicit)
                if placeholder.spec:
                    self._write(":" + placeholder.spec)
                self._write("}")
                self._stamp(placeholder, ph_start)
        self._write(f'"{hashes}' if raw else '"')
        self._stamp(fmt, start)

    # -------------------------------------------------------------------------
    # Patterns
    # -------------------------------------------------------------------------

    def _pat(self, pat: Pat) -> None:
        start = self._pos
        if isinstance(pat, WildPat):
            self._write("_")
        elif isinstance(pat, BindingPat):
            if pat.by_ref is not None:
                self._write("ref " + pat.by_ref.prefix)
            elif pat.mutable:
                self._write("mut ")
            self._write(pat.name)
            if pat.sub is not None:
                self._write(" @ ")
                self._pat(pat.sub)
        elif isinstance(pat, RefPat):
            self._write("&" + pat.mutability.prefix)
            self._pat(pat.inner)
        elif isinstance(pat, PathPat):
            self._write("::".join(pat.segments))
        elif isinstance(pat, TupleStructPat):
            self._write("::".join(pat.segments) + "(")
            self._pat_list(pat.elements)
            self._write(")")
        elif isinstance(pat, TuplePat):
            self._write("(")
            self._pat_list(pat.elements)
            if len(pat.elements) == 1:
                self._write(",")
            self._write(")")
        elif isinstance(pat, LitPat):
            self._expr(pat.lit)
        elif isinstance(pat, OrPat):
            for i, alt in enumerate(pat.alternatives):
                if i:
                    self._write(" | ")
                self._pat(alt)
        else:
            raise TypeError(f"cannot print pattern {type(pat).__name__}")
        self._stamp(pat, start)

    def _pat_list(self, pats: tuple[Pat, ...]) -> None:
        for i, p in enumerate(pats):
            if i:
                self._write(", ")
            self._pat(p)


def print_crate(crate: Crate, filename: str = "<input>", config: Optional[PrintConfig] = None) -> SourceMap:
    """Print ``crate`` and stamp its spans."""
    return HirPrinter(config).print_crate(crate, filename)
