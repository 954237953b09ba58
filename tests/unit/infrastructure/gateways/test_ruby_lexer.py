"""Unit tests for the best-effort Ruby lexer."""

import pytest

from spec_style_linter.domain.exceptions import ParseError
from spec_style_linter.infrastructure.gateways.ruby_lexer import RubyLexer, TokenType


def significant(source: str) -> list[tuple[TokenType, str]]:
    return [(t.type, t.value) for t in RubyLexer(source).tokenize() if t.type is not TokenType.NEWLINE]


class TestRubyLexer:
    def test_describe_line(self) -> None:
        assert significant('RSpec.describe Article, type: :model do') == [
            (TokenType.CONST, "RSpec"),
            (TokenType.PUNCT, "."),
            (TokenType.IDENT, "describe"),
            (TokenType.CONST, "Article"),
            (TokenType.PUNCT, ","),
            (TokenType.LABEL, "type"),
            (TokenType.SYMBOL, "model"),
            (TokenType.IDENT, "do"),
        ]

    def test_comments_and_block_comments_are_skipped(self) -> None:
        source = "# describe 'x' do\n=begin\nit 'y' do\n=end\nfoo # end\n"
        assert significant(source) == [(TokenType.IDENT, "foo")]

    def test_strings_hide_keywords_and_keep_interpolation(self) -> None:
        tokens = significant('it "does #{x ? "a" : "b"} end" do')
        assert tokens[1] == (TokenType.STRING, 'does #{x ? "a" : "b"} end')
        assert tokens[2] == (TokenType.IDENT, "do")

    def test_escapes(self) -> None:
        assert significant(r"'it\'s'") == [(TokenType.STRING, "it's")]
        assert significant(r'"a \"b\" \#{c}"') == [(TokenType.STRING, 'a "b" #{c}')]

    def test_heredoc_body_is_consumed(self) -> None:
        source = "let(:doc) { <<~TEXT }\n  end do {\nTEXT\nfoo\n"
        tokens = RubyLexer(source).tokenize()
        values = [t.value for t in tokens if t.type is not TokenType.NEWLINE]
        assert values == ["let", "(", "doc", ")", "{", "", "}", "foo"]
        foo = [t for t in tokens if t.value == "foo"][0]
        assert foo.line == 4

    def test_percent_literals(self) -> None:
        assert significant("%w[a b].each") == [
            (TokenType.STRING, "a b"),
            (TokenType.PUNCT, "."),
            (TokenType.IDENT, "each"),
        ]
        assert significant("x = %(a (b) c)")[-1] == (TokenType.STRING, "a (b) c")

    def test_regex_versus_division(self) -> None:
        assert significant("expect(x).to match(/end do/)")[-2] == (TokenType.STRING, "end do")
        assert (TokenType.OP, "/") in significant("a = b / c")

    def test_symbols_and_scope(self) -> None:
        assert significant(":admin? Admin::User :\"quoted sym\"") == [
            (TokenType.SYMBOL, "admin?"),
            (TokenType.CONST, "Admin"),
            (TokenType.PUNCT, "::"),
            (TokenType.CONST, "User"),
            (TokenType.SYMBOL, "quoted sym"),
        ]

    def test_method_suffixes_and_labels_after_dot(self) -> None:
        tokens = significant("x.valid? y.save! a ? b : c")
        assert (TokenType.IDENT, "valid?") in tokens
        assert (TokenType.IDENT, "save!") in tokens

    def test_word_after_dot_before_colon_is_a_call(self) -> None:
        tokens = significant("x ? list.size: 0")
        assert (TokenType.IDENT, "size") in tokens
        assert (TokenType.LABEL, "size") not in tokens
        assert significant("{ size: 0 }")[1] == (TokenType.LABEL, "size")

    def test_line_numbers_and_continuation(self) -> None:
        tokens = RubyLexer("a \\\n  b\nc").tokenize()
        lines = {t.value: t.line for t in tokens if t.type is TokenType.IDENT}
        assert lines == {"a": 1, "b": 2, "c": 3}

    def test_block_pipes_are_punctuation(self) -> None:
        assert significant("each do |a, b|")[-5:] == [
            (TokenType.PUNCT, "|"),
            (TokenType.IDENT, "a"),
            (TokenType.PUNCT, ","),
            (TokenType.IDENT, "b"),
            (TokenType.PUNCT, "|"),
        ]
        assert (TokenType.OP, "||") in significant("a || b")

    def test_end_marker_stops_lexing(self) -> None:
        assert significant("foo\n__END__\ndescribe do\n") == [(TokenType.IDENT, "foo")]

    @pytest.mark.parametrize(
        "source, fragment",
        [
            ('it "never closed', "unterminated literal"),
            ("=begin\nno end", "unterminated =begin"),
            ("x = <<~DOC\nbody\n", "unterminated heredoc"),
            ('"#{open', "unterminated string interpolation"),
        ],
    )
    def test_unterminated_literals_raise(self, source: str, fragment: str) -> None:
        with pytest.raises(ParseError, match=fragment) as info:
            RubyLexer(source).tokenize()
        assert info.value.line == 1
