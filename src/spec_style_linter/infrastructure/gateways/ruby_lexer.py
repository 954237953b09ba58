"""
Best-effort Ruby lexer.

Produces just enough structure to follow block scopes and spot DSL calls:
identifiers, string literals (with interpolation skipped), symbols, labels,
brackets and newlines. Comments, =begin/=end blocks, heredoc bodies,
percent literals and regular expressions are consumed so that their contents
never open or close a scope.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from spec_style_linter.domain.exceptions import ParseError


class TokenType(Enum):
    IDENT = "ident"
    CONST = "const"
    LABEL = "label"
    STRING = "string"
    SYMBOL = "symbol"
    NUMBER = "number"
    VAR = "var"
    PUNCT = "punct"
    OP = "op"
    NEWLINE = "newline"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    line: int
    spaced: bool = False
    """Whitespace immediately precedes the token."""

    def is_punct(self, *values: str) -> bool:
        return self.type is TokenType.PUNCT and self.value in values

    def is_ident(self, *values: str) -> bool:
        return self.type is TokenType.IDENT and self.value in values


_IDENT = re.compile(r"[A-Za-z_\u0080-\uffff][A-Za-z0-9_\u0080-\uffff]*")
_NUMBER = re.compile(r"\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d+)?[A-Za-z0-9_]*")
_VAR = re.compile(r"(?:@@?|\$)[A-Za-z_][A-Za-z0-9_]*|\$.")
_HEREDOC = re.compile(r"<<([~-]?)(['\"`]?)([A-Za-z_][A-Za-z0-9_]*)\2")
_PERCENT = re.compile(r"%([qQwWiIrsx]?)([^\sA-Za-z0-9])")

_PUNCT = ("::", "&.", "=>", "(", ")", "[", "]", "{", "}", ",", ";", ".", "|")
_OPERATORS = (
    "**=", "<=>", "===", "...", "<<=", ">>=", "&&=", "||=",
    "==", "!=", ">=", "<=", "&&", "||", "<<", ">>", "=~", "!~",
    "+=", "-=", "*=", "/=", "%=", "|=", "&=", "^=", "->", "..", "**",
)
_PAIRS = {"(": ")", "[": "]", "{": "}", "<": ">"}
_NOT_VALUE_WORDS = frozenset(
    {"if", "unless", "while", "until", "when", "and", "or", "not", "return", "then", "else", "elsif", "do", "in"}
)


class RubyLexer:
    """Turn Ruby source into a flat token list. Raises ParseError on unterminated literals."""

    def __init__(self, source: str) -> None:
        self._src = source
        self._pos = 0
        self._line = 1
        self._tokens: list[Token] = []
        self._spaced = False
        self._heredocs: list[tuple[str, bool, int]] = []

    def tokenize(self) -> list[Token]:
        src = self._src
        n = len(src)
        while self._pos < n:
            ch = src[self._pos]
            at_line_start = self._pos == 0 or src[self._pos - 1] == "\n"
            if at_line_start and self._starts_directive("=begin"):
                self._skip_block_comment()
                continue
            if at_line_start and self._starts_directive("__END__"):
                break
            if ch == "\n":
                self._emit(TokenType.NEWLINE, "\n")
                self._pos += 1
                self._line += 1
                self._spaced = False
                if self._heredocs:
                    self._consume_heredoc_bodies()
                continue
            if ch in " \t\r\f\v":
                self._pos += 1
                self._spaced = True
                continue
            if ch == "\\" and src.startswith("\n", self._pos + 1):
                self._pos += 2
                self._line += 1
                self._spaced = True
                continue
            if ch == "#":
                end = src.find("\n", self._pos)
                self._pos = n if end == -1 else end
                continue
            if ch in "'\"`":
                self._lex_quoted(ch)
                continue
            if ch == "<" and self._try_heredoc():
                continue
            if ch == "%" and self._try_percent_literal():
                continue
            if ch == ":" and self._try_symbol():
                continue
            if ch == "/" and self._regex_allowed():
                self._lex_regex()
                continue
            if ch.isdigit():
                self._lex_match(_NUMBER, TokenType.NUMBER)
                continue
            if ch in "@$":
                if self._lex_match(_VAR, TokenType.VAR):
                    continue
            ident = _IDENT.match(src, self._pos)
            if ident:
                self._lex_identifier(ident)
                continue
            self._lex_operator()
        return self._tokens

    # -- helpers -----------------------------------------------------------

    def _emit(self, kind: TokenType, value: str, line: Optional[int] = None) -> None:
        self._tokens.append(Token(kind, value, self._line if line is None else line, self._spaced))
        self._spaced = False

    def _starts_directive(self, word: str) -> bool:
        if not self._src.startswith(word, self._pos):
            return False
        after = self._src[self._pos + len(word): self._pos + len(word) + 1]
        return after in ("", "\n", " ", "\t", "\r")

    def _prev_significant(self) -> Optional[Token]:
        """Previous token on the current line, if any."""
        if not self._tokens or self._tokens[-1].type is TokenType.NEWLINE:
            return None
        return self._tokens[-1]

    def _prev_is_value(self) -> bool:
        prev = self._prev_significant()
        if prev is None:
            return False
        if prev.type is TokenType.IDENT:
            return prev.value not in _NOT_VALUE_WORDS
        if prev.type in (TokenType.CONST, TokenType.NUMBER, TokenType.STRING, TokenType.SYMBOL, TokenType.VAR):
            return True
        return prev.is_punct(")", "]", "}")

    def _literal_allowed(self) -> bool:
        """A '/', '%' or '<<' starts a literal rather than an operator here."""
        if not self._prev_is_value():
            return True
        prev = self._prev_significant()
        nxt = self._src[self._pos + 1: self._pos + 2]
        return (
            prev is not None
            and prev.type is TokenType.IDENT
            and self._spaced
            and nxt not in ("", " ", "\t", "\n", "=")
        )

    def _skip_block_comment(self) -> None:
        start_line = self._line
        match = re.compile(r"^=end\b.*$", re.MULTILINE).search(self._src, self._pos)
        if match is None:
            raise ParseError("unterminated =begin comment", start_line)
        self._line += self._src.count("\n", self._pos, match.end())
        self._pos = match.end()

    # -- literals ----------------------------------------------------------

    def _lex_quoted(self, quote: str) -> None:
        line = self._line
        self._pos += 1
        value = self._scan_until(quote, interpolate=quote != "'", opener=None, start_line=line)
        self._emit(TokenType.STRING, value, line)

    def _scan_until(self, closer: str, interpolate: bool, opener: Optional[str], start_line: int) -> str:
        """Scan a literal body up to its closing delimiter; returns the unescaped-ish body."""
        src = self._src
        n = len(src)
        out: list[str] = []
        depth = 0
        while self._pos < n:
            ch = src[self._pos]
            if ch == "\\" and self._pos + 1 < n:
                nxt = src[self._pos + 1]
                if nxt in (closer, "\\", "#") or (opener is not None and nxt == opener):
                    out.append(nxt)
                else:
                    out.append(ch + nxt)
                if nxt == "\n":
                    self._line += 1
                self._pos += 2
                continue
            if ch == "\n":
                self._line += 1
            if interpolate and ch == "#" and src.startswith("{", self._pos + 1):
                start = self._pos
                self._pos += 2
                self._skip_interpolation(start_line)
                out.append(src[start:self._pos])
                continue
            if opener is not None and ch == opener:
                depth += 1
            elif ch == closer:
                if depth == 0:
                    self._pos += 1
                    return "".join(out)
                depth -= 1
            out.append(ch)
            self._pos += 1
        raise ParseError("unterminated literal", start_line)

    def _skip_interpolation(self, start_line: int) -> None:
        src = self._src
        depth = 1
        while self._pos < len(src):
            ch = src[self._pos]
            if ch in "'\"":
                self._pos += 1
                self._scan_until(ch, interpolate=ch == '"', opener=None, start_line=start_line)
                continue
            if ch == "\n":
                self._line += 1
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    self._pos += 1
                    return
            self._pos += 1
        raise ParseError("unterminated string interpolation", start_line)

    def _try_heredoc(self) -> bool:
        match = _HEREDOC.match(self._src, self._pos)
        if match is None:
            return False
        flavor, _quote, ident = match.groups()
        if not flavor and not ident[0].isupper():
            return False
        if not self._literal_allowed():
            return False
        self._heredocs.append((ident, bool(flavor), self._line))
        self._emit(TokenType.STRING, "")
        self._pos = match.end()
        return True

    def _consume_heredoc_bodies(self) -> None:
        src = self._src
        for ident, indented, start_line in self._heredocs:
            while True:
                if self._pos >= len(src):
                    raise ParseError(f"unterminated heredoc <<{ident}", start_line)
                end = src.find("\n", self._pos)
                line_text = src[self._pos:] if end == -1 else src[self._pos:end]
                self._pos = len(src) if end == -1 else end + 1
                self._line += 1
                candidate = line_text.strip() if indented else line_text.rstrip("\r")
                if candidate == ident:
                    break
        self._heredocs = []

    def _try_percent_literal(self) -> bool:
        match = _PERCENT.match(self._src, self._pos)
        if match is None or not self._literal_allowed():
            return False
        kind, delim = match.groups()
        if not kind and delim not in _PAIRS:
            return False
        line = self._line
        self._pos = match.end()
        closer = _PAIRS.get(delim, delim)
        opener = delim if delim in _PAIRS else None
        value = self._scan_until(closer, interpolate=kind in ("", "Q", "W", "I", "r", "x"), opener=opener, start_line=line)
        self._emit(TokenType.STRING, value, line)
        return True

    def _try_symbol(self) -> bool:
        src = self._src
        nxt = src[self._pos + 1: self._pos + 2]
        if nxt == ":":
            self._emit(TokenType.PUNCT, "::")
            self._pos += 2
            return True
        if nxt in ('"', "'"):
            line = self._line
            self._pos += 2
            value = self._scan_until(nxt, interpolate=nxt == '"', opener=None, start_line=line)
            self._emit(TokenType.SYMBOL, value, line)
            return True
        match = _IDENT.match(src, self._pos + 1)
        if match is None:
            return False
        end = match.end()
        if end < len(src) and src[end] in "?!=" and src[end + 1: end + 2] not in ("=", "~", ">"):
            end += 1
        self._emit(TokenType.SYMBOL, src[self._pos + 1:end])
        self._pos = end
        return True

    def _regex_allowed(self) -> bool:
        return self._literal_allowed()

    def _lex_regex(self) -> None:
        line = self._line
        self._pos += 1
        value = self._scan_until("/", interpolate=True, opener=None, start_line=line)
        while self._pos < len(self._src) and self._src[self._pos] in "imxounse":
            self._pos += 1
        self._emit(TokenType.STRING, value, line)

    def _lex_match(self, pattern: "re.Pattern[str]", kind: TokenType) -> bool:
        match = pattern.match(self._src, self._pos)
        if match is None:
            return False
        self._emit(kind, match.group(0))
        self._pos = match.end()
        return True

    def _lex_identifier(self, match: "re.Match[str]") -> None:
        src = self._src
        end = match.end()
        word = match.group(0)
        if end < len(src) and src[end] in "?!" and src[end + 1: end + 2] not in ("=", "~"):
            word += src[end]
            end += 1
        prev = self._prev_significant()
        after_dot = prev is not None and prev.is_punct(".", "&.")
        if (
            end < len(src)
            and src[end] == ":"
            and src[end + 1: end + 2] != ":"
            and not after_dot
        ):
            self._emit(TokenType.LABEL, word)
            self._pos = end + 1
            return
        kind = TokenType.CONST if word[0].isupper() else TokenType.IDENT
        self._emit(kind, word)
        self._pos = end

    def _lex_operator(self) -> None:
        src = self._src
        for punct in _PUNCT:
            if src.startswith(punct, self._pos):
                if punct == "|" and src.startswith("||", self._pos):
                    break
                if punct == "." and src.startswith("..", self._pos):
                    break
                self._emit(TokenType.PUNCT, punct)
                self._pos += len(punct)
                return
        for op in _OPERATORS:
            if src.startswith(op, self._pos):
                self._emit(TokenType.OP, op)
                self._pos += len(op)
                return
        self._emit(TokenType.OP, src[self._pos])
        self._pos += 1
