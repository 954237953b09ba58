"""Unit tests for SpecParser: tree shape, full names, loops, expectations and parse errors."""

import textwrap

import pytest

from spec_style_linter.domain.config import LinterConfig
from spec_style_linter.domain.entities import LoopSite, NodeKind, SourceLocation
from spec_style_linter.domain.exceptions import ParseError
from spec_style_linter.infrastructure.gateways.spec_parser import SpecParser


def src(text: str) -> str:
    return textwrap.dedent(text).lstrip("\n")


ARTICLE_SPEC = src(
    """
    RSpec.describe Article do
      it "should return true" do
        expect(article.publish).to be true
      end
    end
    """
)


class TestTreeShape:
    def test_single_describe_with_example(self, parse) -> None:
        tree = parse(ARTICLE_SPEC)
        assert tree.node_count() == 2
        (suite,) = tree.roots
        assert suite.kind is NodeKind.SUITE
        assert suite.keyword == "RSpec.describe"
        assert suite.text == "Article"
        (example,) = suite.children
        assert example.kind is NodeKind.EXAMPLE
        assert example.full_name == "Article should return true"
        assert example.depth == 1
        assert example.location == SourceLocation("spec/sample_spec.rb", 2)
        assert example.expectation_lines == (3,)

    def test_nesting_and_source_order(self, parse) -> None:
        tree = parse(
            src(
                """
                describe "Article" do
                  describe "#publish" do
                    context "when draft" do
                      it "publishes" do
                      end
                    end
                    context "when published" do
                      specify "is a no-op" do
                      end
                    end
                  end
                  it "has a title" do
                  end
                end
                """
            )
        )
        names = [ctx.node.full_name for ctx in tree.walk()]
        assert names == [
            "Article",
            "Article#publish",
            "Article#publish when draft",
            "Article#publish when draft publishes",
            "Article#publish when published",
            "Article#publish when published is a no-op",
            "Article has a title",
        ]
        depths = [ctx.node.depth for ctx in tree.walk()]
        assert depths == [0, 1, 2, 3, 2, 3, 1]

    def test_several_roots(self, parse) -> None:
        tree = parse('describe "A" do\nend\n\ndescribe "B" do\nend\n')
        assert [r.text for r in tree.roots] == ["A", "B"]

    def test_empty_file(self, parse) -> None:
        tree = parse("# nothing to see\n")
        assert tree.roots == ()
        assert tree.node_count() == 0

    def test_helper_code_does_not_disturb_nesting(self, parse) -> None:
        tree = parse(
            src(
                """
                describe "Cart" do
                  let(:items) { [1, 2] }
                  before do
                    @cart = Cart.new(items: items)
                  end

                  def total
                    @cart.items.sum { |i| i * 2 }
                  end

                  def doubled(x) = x * 2

                  if ENV["CI"]
                    it "runs only on CI" do
                    end
                  end

                  it "totals" do
                    expect(total).to eq(6) if items.any?
                  end
                end
                """
            )
        )
        (cart,) = tree.roots
        assert [c.text for c in cart.children] == ["runs only on CI", "totals"]
        assert all(c.depth == 1 for c in cart.children)

    def test_keywords_inside_strings_and_comments_are_ignored(self, parse) -> None:
        tree = parse(
            src(
                """
                describe "parsing 'end' and do" do # it "is not a node" do
                  it "handles a heredoc" do
                    text = <<~RUBY
                      describe "inner" do
                      end end
                    RUBY
                    expect(text).to include("end")
                  end
                end
                """
            )
        )
        assert tree.node_count() == 2
        assert tree.roots[0].text == "parsing 'end' and do"

    def test_brace_blocks_and_parenthesised_calls(self, parse) -> None:
        tree = parse(
            src(
                """
                describe("Stack") do
                  it("is empty") { expect(subject).to be_empty }
                  it { is_expected.to respond_to(:push) }
                end
                """
            )
        )
        (stack,) = tree.roots
        assert [c.text for c in stack.children] == ["is empty", ""]
        assert [c.expectation_lines for c in stack.children] == [(2,), (3,)]
        assert stack.children[1].full_name == "Stack"


class TestDescriptions:
    def test_metadata_symbols_and_labels(self, parse) -> None:
        tree = parse('describe "Widget", :slow, type: :model, aggregate_failures: true do\nend\n')
        (widget,) = tree.roots
        assert widget.text == "Widget"
        assert widget.metadata == ("slow", "type", "aggregate_failures")

    def test_second_string_argument_joins_text(self, parse) -> None:
        tree = parse('describe Article, "#publish" do\nend\n')
        assert tree.roots[0].text == "Article#publish"

    def test_constant_path_and_symbol_descriptions(self, parse) -> None:
        tree = parse("describe Admin::User do\n  describe :save do\n  end\nend\n")
        (user,) = tree.roots
        assert user.text == "Admin::User"
        assert user.children[0].text == "save"

    def test_interpolated_text_is_kept_literally(self, parse) -> None:
        tree = parse('describe "x" do\n  it "adds #{n}" do\n  end\nend\n')
        assert tree.roots[0].children[0].text == "adds #{n}"

    def test_example_without_block_is_pending(self, parse) -> None:
        tree = parse('describe "Todo" do\n  it "does something later"\n  xit "is skipped" do\n  end\nend\n')
        pending, skipped = tree.roots[0].children
        assert not pending.has_block
        assert skipped.has_block
        assert skipped.keyword == "xit"

    def test_dsl_words_used_as_values_are_not_nodes(self, parse) -> None:
        tree = parse(
            src(
                """
                describe "Feed" do
                  let(:example) { build(:post) }
                  it "uses the example" do
                    example.save
                    expect(example.context).to be_nil
                  end
                end
                """
            )
        )
        assert tree.node_count() == 2


class TestLoops:
    def test_examples_generated_by_each(self, parse) -> None:
        tree = parse(
            src(
                """
                describe "Calculator" do
                  [1, 2, 3].each do |n|
                    it "adds #{n}" do
                      expect(n + 1).to eq(n.succ)
                    end
                  end
                  it "is literal" do
                  end
                end
                """
            )
        )
        generated, literal = tree.roots[0].children
        assert generated.generated_by == LoopSite("each", SourceLocation("spec/sample_spec.rb", 2))
        assert generated.depth == 1
        assert literal.generated_by is None

    def test_times_and_brace_iterators(self, parse) -> None:
        tree = parse(
            src(
                """
                describe "Pager" do
                  3.times do |page|
                    context "on page #{page}" do
                      it "renders" do
                      end
                    end
                  end
                  %w[a b].each { |letter| it("handles #{letter}") { } }
                end
                """
            )
        )
        context, braced = tree.roots[0].children
        assert context.generated_by is not None and context.generated_by.construct == "times"
        # the loop belongs to the context, not to the example inside it
        assert context.children[0].generated_by is None
        assert braced.generated_by is not None and braced.generated_by.construct == "each"

    def test_for_and_while_loops(self, parse) -> None:
        tree = parse(
            src(
                """
                describe "Loops" do
                  for size in [1, 2] do
                    it "fits #{size}" do
                    end
                  end
                  while ready?
                    it "waits" do
                    end
                  end
                end
                """
            )
        )
        fits, waits = tree.roots[0].children
        assert fits.generated_by == LoopSite("for", SourceLocation("spec/sample_spec.rb", 2))
        assert waits.generated_by == LoopSite("while", SourceLocation("spec/sample_spec.rb", 6))

    def test_non_iterator_blocks_are_not_loops(self, parse) -> None:
        tree = parse('describe "X" do\n  with_options(a: 1) do\n    it "works" do\n    end\n  end\nend\n')
        assert tree.roots[0].children[0].generated_by is None


class TestExpectations:
    def test_counts_top_level_expectation_statements(self, parse) -> None:
        tree = parse(
            src(
                """
                describe "Order" do
                  it "totals" do
                    order = build(:order)
                    expect(order.total).to eq(10)
                    expect { order.pay! }.to change { order.state }
                    is_expected.to be_valid
                    order.should be_paid
                    assert_equal 10, order.total
                    expect(a).to eq(1); expect(b).to eq(2)
                  end
                end
                """
            )
        )
        example = tree.roots[0].children[0]
        assert example.expectation_lines == (4, 5, 6, 7, 8, 9, 9)

    def test_multiline_chain_counts_once(self, parse) -> None:
        tree = parse(
            src(
                """
                describe "Order" do
                  it "totals" do
                    expect(order.total)
                      .to eq(10)
                  end
                end
                """
            )
        )
        assert tree.roots[0].children[0].expectation_lines == (3,)

    def test_expectations_inside_nested_blocks_are_not_counted(self, parse) -> None:
        tree = parse(
            src(
                """
                describe "Order" do
                  it "validates items" do
                    order.items.each { |item| expect(item).to be_valid }
                  end
                end
                """
            )
        )
        assert tree.roots[0].children[0].expectation_lines == ()

    def test_groups_have_no_expectations(self, parse) -> None:
        tree = parse('describe "Order" do\n  before { expect(true).to be true }\nend\n')
        assert tree.roots[0].expectation_lines == ()


class TestParseErrors:
    @pytest.mark.parametrize(
        "source, fragment, line",
        [
            ('describe "x" do\n  it "y" do\n  end\n', "'do' is never closed", 1),
            ('describe "x" do\nend\nend\n', "unexpected 'end' with no open block", 3),
            ('describe "x" do\n  foo(1]\nend\n', "']' does not match '(' opened at line 2", 2),
            ('describe "x"\n', "'describe' has no block", 1),
            ('describe "x" do\n  it "never closed\nend\n', "unterminated literal", 2),
            ('describe "x" do\n  [1].each do |n\nend\n', "unterminated block parameters", 2),
        ],
    )
    def test_malformed_source(self, parse, source: str, fragment: str, line: int) -> None:
        with pytest.raises(ParseError) as info:
            parse(source)
        assert fragment in info.value.message
        assert info.value.line == line

    @pytest.mark.parametrize("guard", ["return if value.nil?", "return unless value"])
    def test_guard_clause_in_helper_is_a_modifier(self, parse, guard: str) -> None:
        tree = parse(
            'describe "Helpers" do\n'
            "  def normalize(value)\n"
            f"    {guard}\n"
            "    value.strip\n"
            "  end\n"
            '  it "normalizes" do\n'
            '    expect(normalize(" a ")).to eq("a")\n'
            "  end\n"
            "end\n"
        )
        (suite,) = tree.roots
        (example,) = suite.children
        assert example.full_name == "Helpers normalizes"
        assert example.expectation_lines == (7,)


class TestRoundTrip:
    def test_canonical_source_reparses_to_same_structure(self, parse) -> None:
        source = src(
            """
            RSpec.describe Article, :slow do
              context "when draft" do
                it "publishes #{now}" do
                  expect(article).to be_published
                end
                it "is pending"
              end
              describe "#archive" do
                it "says \\"bye\\"" do
                end
              end
            end
            """
        )
        tree = parse(source)
        again = parse(tree.to_source())
        assert [r.signature() for r in again.roots] == [r.signature() for r in tree.roots]
        assert again.roots[0].metadata == ("slow",)


class TestConfiguredKeywords:
    def test_extra_keywords_are_recognised(self) -> None:
        parser = SpecParser(
            LinterConfig(extra_keywords={"scenario_outline": NodeKind.EXAMPLE, "story": NodeKind.SUITE})
        )
        tree = parser.parse(
            'story "Signup" do\n  scenario_outline "with email" do\n  end\nend\n', "spec/features/signup_spec.rb"
        )
        (story,) = tree.roots
        assert story.kind is NodeKind.SUITE
        assert story.children[0].kind is NodeKind.EXAMPLE
        assert story.children[0].location.path == "spec/features/signup_spec.rb"

    def test_default_parser_ignores_unknown_keywords(self) -> None:
        tree = SpecParser().parse('story "Signup" do\nend\n', "spec/a_spec.rb")
        assert tree.roots == ()

    def test_parsing_is_deterministic(self, parse) -> None:
        assert parse(ARTICLE_SPEC) == parse(ARTICLE_SPEC)
