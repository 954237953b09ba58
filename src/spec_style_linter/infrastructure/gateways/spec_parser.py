"""
SpecParser: build the describe/context/it forest of one spec file.

Nesting follows block scope. Every Ruby construct that opens a scope is
tracked (do/end, braces, brackets, def/class/module/begin/case and
statement-leading if/unless/while/until/for) so that a DSL call is attached to
the innermost enclosing DSL block, and an unbalanced file is rejected with a
ParseError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Optional

from spec_style_linter.domain.constants import (
    ASSERTION_PREFIX,
    DSL_KEYWORDS,
    DSL_RECEIVERS,
    EXPECTATION_CALLS,
    ITERATOR_METHODS,
    LOOP_KEYWORDS,
)
from spec_style_linter.domain.entities import (
    DescriptionNode,
    DescriptionTree,
    LoopSite,
    NodeKind,
    SourceLocation,
)
from spec_style_linter.domain.exceptions import ParseError
from spec_style_linter.infrastructure.gateways.ruby_lexer import RubyLexer, Token, TokenType

if TYPE_CHECKING:
    from spec_style_linter.domain.config import LinterConfig

_END_KEYWORDS = frozenset({"def", "class", "module", "begin", "case"})
_CONDITIONAL_KEYWORDS = frozenset({"if", "unless", "while", "until"})
_STATEMENT_RESET_WORDS = frozenset({"then", "else", "elsif", "when", "rescue", "ensure"})
_CONTINUATION_WORDS = frozenset({"and", "or", "not"})
_VALUE_POSITION_WORDS = frozenset({"do", "then", "else"}) | _CONTINUATION_WORDS
_CONTINUATION_PUNCT = (",", ".", "&.", "::", "=>")
_CLOSERS = {"(": ")", "[": "]", "{": "}"}


@dataclass
class _NodeBuilder:
    kind: NodeKind
    keyword: str
    text: str
    depth: int
    line: int
    metadata: tuple[str, ...] = ()
    generated_by: Optional[LoopSite] = None
    has_block: bool = True
    children: list["_NodeBuilder"] = field(default_factory=list)
    expectation_lines: list[int] = field(default_factory=list)

    def freeze(self, path: str, parent_name: str) -> DescriptionNode:
        full_name = DescriptionNode.join_names(parent_name, self.text)
        return DescriptionNode(
            kind=self.kind,
            keyword=self.keyword,
            text=self.text,
            full_name=full_name,
            depth=self.depth,
            location=SourceLocation(path, self.line),
            children=tuple(child.freeze(path, full_name) for child in self.children),
            metadata=self.metadata,
            expectation_lines=tuple(self.expectation_lines),
            generated_by=self.generated_by,
            has_block=self.has_block,
        )


@dataclass
class _Scope:
    opener: str
    closer: str
    line: int
    node: Optional[_NodeBuilder] = None
    loop: Optional[LoopSite] = None
    saved: tuple[Optional[str], bool, int] = (None, False, 0)


class _ParseRun:
    """Single-use parsing state for one file."""

    def __init__(self, tokens: list[Token], path: str, keywords: Mapping[str, NodeKind]) -> None:
        self.tokens = tokens
        self.path = path
        self.keywords = keywords
        self.i = 0
        self.stack: list[_Scope] = []
        self.roots: list[_NodeBuilder] = []
        self.prev: Optional[Token] = None
        self.stmt_start = True
        self.stmt_depth = 0
        self.stmt_ident: Optional[str] = None
        self.stmt_counted = False
        self.pending_loop_do = False

    # -- driver ------------------------------------------------------------

    def run(self) -> list[_NodeBuilder]:
        while self.i < len(self.tokens):
            tok = self.tokens[self.i]
            self.i += 1
            self._step(tok)
        if self.stack:
            top = self.stack[-1]
            raise ParseError(f"'{top.opener}' is never closed", top.line)
        return self.roots

    def _step(self, tok: Token) -> None:
        if tok.type is TokenType.NEWLINE:
            if not self._continues_line():
                self._begin_statement()
            self.prev = tok
            return
        if tok.is_punct(";"):
            self._begin_statement()
            self.prev = tok
            return

        at_start = self.stmt_start and not tok.is_punct(".", "&.")
        if self.stmt_start:
            self.stmt_start = False
            if at_start:
                self.stmt_depth = len(self.stack)
                self.stmt_ident = None
                self.stmt_counted = False

        if at_start and self._try_dsl_call(tok):
            return
        if at_start:
            self._count_expectation_start(tok)

        after_dot = self.prev is not None and self.prev.is_punct(".", "&.", "::")
        if tok.type is TokenType.IDENT and not after_dot:
            self._keyword(tok, at_start)
        elif tok.type is TokenType.IDENT:
            if tok.value in ("should", "should_not"):
                self._count_expectation(tok)
            self._note_ident(tok)
        elif tok.type is TokenType.PUNCT and tok.value in ("(", "["):
            self._push(tok.value, _CLOSERS[tok.value], tok.line)
        elif tok.is_punct("{"):
            self._open_brace(tok)
        elif tok.type is TokenType.PUNCT and tok.value in (")", "]", "}"):
            self._close(tok.value, tok.line)
        self.prev = tok

    # -- statements ----------------------------------------------------------

    def _begin_statement(self) -> None:
        self.stmt_start = True
        self.pending_loop_do = False

    def _continues_line(self) -> bool:
        prev = self.prev
        if prev is None or prev.type is TokenType.NEWLINE:
            return False
        if prev.type is TokenType.OP:
            return True
        if prev.type is TokenType.PUNCT and prev.value in _CONTINUATION_PUNCT:
            return True
        return prev.type is TokenType.IDENT and prev.value in _CONTINUATION_WORDS

    def _note_ident(self, tok: Token) -> None:
        if len(self.stack) == self.stmt_depth:
            self.stmt_ident = tok.value

    def _example_scope(self) -> Optional[_NodeBuilder]:
        """The example whose block is the innermost scope, if any."""
        if not self.stack:
            return None
        node = self.stack[-1].node
        if node is not None and node.kind is NodeKind.EXAMPLE:
            return node
        return None

    def _count_expectation_start(self, tok: Token) -> None:
        if tok.type is not TokenType.IDENT:
            return
        if tok.value in EXPECTATION_CALLS or tok.value.startswith(ASSERTION_PREFIX):
            self._count_expectation(tok)

    def _count_expectation(self, tok: Token) -> None:
        if self.stmt_counted or len(self.stack) != self.stmt_depth:
            return
        example = self._example_scope()
        if example is None:
            return
        example.expectation_lines.append(tok.line)
        self.stmt_counted = True

    # -- keywords and scopes -----------------------------------------------

    def _keyword(self, tok: Token, at_start: bool) -> None:
        word = tok.value
        if word == "end":
            self._close("end", tok.line)
        elif word == "def":
            if not self._is_endless_def():
                self._push("def", "end", tok.line)
        elif word in _END_KEYWORDS:
            self._push(word, "end", tok.line)
        elif word == "for":
            self._push("for", "end", tok.line, loop=LoopSite("for", SourceLocation(self.path, tok.line)))
            self.pending_loop_do = True
        elif word in _CONDITIONAL_KEYWORDS:
            if at_start or self._opens_expression():
                loop = None
                if word in LOOP_KEYWORDS:
                    loop = LoopSite(word, SourceLocation(self.path, tok.line))
                    self.pending_loop_do = True
                self._push(word, "end", tok.line, loop=loop)
        elif word == "do":
            if self.pending_loop_do:
                self.pending_loop_do = False
            else:
                self._open_block("do", "end", tok)
        elif word in _STATEMENT_RESET_WORDS:
            self.prev = tok
            self._begin_statement()
        else:
            self._note_ident(tok)

    def _opens_expression(self) -> bool:
        """An if/unless/while/until in value position (x = if ...) opens a scope."""
        prev = self.prev
        if prev is None or prev.type is TokenType.NEWLINE:
            return True
        if prev.type is TokenType.OP:
            return True
        if prev.type is TokenType.PUNCT and prev.value in ("(", "[", ",", "{", "|", "=>"):
            return True
        return prev.type is TokenType.IDENT and prev.value in _VALUE_POSITION_WORDS

    def _is_endless_def(self) -> bool:
        """def name(args) = expr has no end."""
        depth = 0
        for tok in self.tokens[self.i:]:
            if depth == 0 and (tok.type is TokenType.NEWLINE or tok.is_punct(";")):
                return False
            if tok.type is TokenType.PUNCT and tok.value in ("(", "["):
                depth += 1
            elif tok.type is TokenType.PUNCT and tok.value in (")", "]"):
                depth -= 1
            elif tok.type is TokenType.OP and tok.value == "=" and depth == 0 and tok.spaced:
                return True
        return False

    def _open_brace(self, tok: Token) -> None:
        prev = self.prev
        is_block = prev is not None and (
            prev.type in (TokenType.IDENT, TokenType.CONST) or prev.is_punct(")", "]")
        ) and not (prev.type is TokenType.IDENT and prev.value in _CONTINUATION_WORDS)
        if is_block:
            self._open_block("{", "}", tok)
        else:
            self._push("{", "}", tok.line)

    def _open_block(self, opener: str, closer: str, tok: Token, node: Optional[_NodeBuilder] = None) -> None:
        loop = None
        if node is None and self.stmt_ident in ITERATOR_METHODS:
            loop = LoopSite(self.stmt_ident, SourceLocation(self.path, tok.line))
        self._push(opener, closer, tok.line, node=node, loop=loop)
        self.prev = tok
        self._skip_block_params()
        self.stmt_start = True

    def _skip_block_params(self) -> None:
        if self.i >= len(self.tokens):
            return
        nxt = self.tokens[self.i]
        if nxt.type is TokenType.OP and nxt.value == "||":
            self.i += 1
            return
        if not nxt.is_punct("|"):
            return
        self.i += 1
        while self.i < len(self.tokens):
            tok = self.tokens[self.i]
            self.i += 1
            if tok.is_punct("|"):
                return
        raise ParseError("unterminated block parameters", nxt.line)

    def _push(
        self,
        opener: str,
        closer: str,
        line: int,
        node: Optional[_NodeBuilder] = None,
        loop: Optional[LoopSite] = None,
    ) -> None:
        saved = (self.stmt_ident, self.stmt_counted, self.stmt_depth)
        self.stack.append(_Scope(opener, closer, line, node=node, loop=loop, saved=saved))

    def _close(self, closer: str, line: int) -> None:
        if not self.stack:
            raise ParseError(f"unexpected '{closer}' with no open block", line)
        top = self.stack.pop()
        if top.closer != closer:
            raise ParseError(
                f"'{closer}' does not match '{top.opener}' opened at line {top.line}", line
            )
        self.stmt_ident, self.stmt_counted, self.stmt_depth = top.saved

    # -- DSL calls -----------------------------------------------------------

    def _dsl_keyword(self, tok: Token) -> Optional[tuple[str, int]]:
        """Return (keyword, tokens consumed after tok) when tok starts a DSL call."""
        tokens = self.tokens
        nxt = tokens[self.i] if self.i < len(tokens) else None
        if tok.type is TokenType.CONST and tok.value in DSL_RECEIVERS:
            if nxt is not None and nxt.is_punct(".") and self.i + 1 < len(tokens):
                method = tokens[self.i + 1]
                if method.type is TokenType.IDENT and self.keywords.get(method.value) is NodeKind.SUITE:
                    return f"{tok.value}.{method.value}", 2
            return None
        if tok.type is not TokenType.IDENT or tok.value not in self.keywords:
            return None
        if nxt is not None:
            if nxt.type is TokenType.PUNCT and nxt.value in (".", "&.", "::", "=>", ",", ")", "]", "}"):
                return None
            if nxt.type is TokenType.OP and nxt.value not in ("->",):
                return None
        return tok.value, 0

    def _try_dsl_call(self, tok: Token) -> bool:
        found = self._dsl_keyword(tok)
        if found is None:
            return False
        keyword, consumed = found
        self.i += consumed
        kind = self.keywords[keyword.rsplit(".", 1)[-1]]
        args, opener = self._collect_call()
        text, metadata = self._describe(args)

        parent = self._current_node()
        builder = _NodeBuilder(
            kind=kind,
            keyword=keyword,
            text=text,
            depth=parent.depth + 1 if parent else 0,
            line=tok.line,
            metadata=metadata,
            generated_by=self._enclosing_loop(),
            has_block=opener is not None,
        )
        if opener is None and kind is not NodeKind.EXAMPLE:
            raise ParseError(f"'{keyword}' has no block; cannot determine its body", tok.line)
        (parent.children if parent else self.roots).append(builder)
        if opener is not None:
            self._open_block(opener.value, "end" if opener.value == "do" else "}", opener, node=builder)
        else:
            self.prev = tok
        return True

    def _collect_call(self) -> tuple[list[list[Token]], Optional[Token]]:
        """Collect argument tokens up to the block opener (or statement end)."""
        tokens = self.tokens
        args: list[list[Token]] = [[]]
        depth = 0
        parenthesized = self.i < len(tokens) and tokens[self.i].is_punct("(") and not tokens[self.i].spaced
        if parenthesized:
            self.i += 1
        while self.i < len(tokens):
            tok = tokens[self.i]
            if depth == 0:
                if parenthesized and tok.is_punct(")"):
                    self.i += 1
                    return self._clean(args), self._block_after_parens()
                if not parenthesized:
                    if tok.is_ident("do"):
                        self.i += 1
                        return self._clean(args), tok
                    if tok.is_punct("{") and args == [[]]:
                        self.i += 1
                        return [], tok
                    if tok.type is TokenType.NEWLINE or tok.is_punct(";", "}") or tok.is_ident("end"):
                        last = args[-1][-1] if args[-1] else None
                        if tok.type is TokenType.NEWLINE and last is not None and (
                            last.type is TokenType.OP or last.is_punct(",", "=>", ".")
                        ):
                            self.i += 1
                            continue
                        return self._clean(args), None
                if tok.is_punct(","):
                    args.append([])
                    self.i += 1
                    continue
            if tok.type is TokenType.PUNCT and tok.value in ("(", "[", "{"):
                depth += 1
            elif tok.type is TokenType.PUNCT and tok.value in (")", "]", "}"):
                depth -= 1
            if tok.type is not TokenType.NEWLINE:
                args[-1].append(tok)
            self.i += 1
        return self._clean(args), None

    @staticmethod
    def _clean(args: list[list[Token]]) -> list[list[Token]]:
        return [arg for arg in args if arg]

    def _block_after_parens(self) -> Optional[Token]:
        if self.i < len(self.tokens):
            tok = self.tokens[self.i]
            if tok.is_ident("do") or tok.is_punct("{"):
                self.i += 1
                return tok
        return None

    @staticmethod
    def _describe(args: list[list[Token]]) -> tuple[str, tuple[str, ...]]:
        """Description text and metadata tags from the call arguments."""
        text = ""
        metadata: list[str] = []
        described = False
        for index, arg in enumerate(args):
            head = arg[0]
            if head.type is TokenType.LABEL:
                metadata.append(head.value)
                continue
            if head.type is TokenType.SYMBOL and len(arg) == 1 and described:
                metadata.append(head.value)
                continue
            if not described:
                text = _ParseRun._argument_text(arg)
                described = True
            elif index == 1 and all(t.type is TokenType.STRING for t in arg):
                text = DescriptionNode.join_names(text, "".join(t.value for t in arg))
        return text, tuple(metadata)

    @staticmethod
    def _argument_text(arg: list[Token]) -> str:
        if all(t.type is TokenType.STRING for t in arg):
            return "".join(t.value for t in arg)
        if len(arg) == 1 and arg[0].type is TokenType.SYMBOL:
            return arg[0].value
        if all(t.type is TokenType.CONST or t.is_punct("::") for t in arg):
            return "".join(t.value for t in arg)
        return " ".join(t.value for t in arg)

    def _current_node(self) -> Optional[_NodeBuilder]:
        for scope in reversed(self.stack):
            if scope.node is not None:
                return scope.node
        return None

    def _enclosing_loop(self) -> Optional[LoopSite]:
        """Innermost loop between the current position and the nearest DSL block."""
        for scope in reversed(self.stack):
            if scope.node is not None:
                return None
            if scope.loop is not None:
                return scope.loop
        return None


class SpecParser:
    """Parse RSpec-style source into a DescriptionTree. Pure function of its input."""

    def __init__(self, config: Optional["LinterConfig"] = None) -> None:
        self._keywords: dict[str, NodeKind] = dict(DSL_KEYWORDS)
        if config is not None:
            self._keywords.update(config.extra_keywords)

    def parse(self, source: str, path: str) -> DescriptionTree:
        tokens = RubyLexer(source).tokenize()
        builders = _ParseRun(tokens, path, self._keywords).run()
        return DescriptionTree(path=path, roots=tuple(b.freeze(path, "") for b in builders))
