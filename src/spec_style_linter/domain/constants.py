"""
specstyle constants: DSL vocabulary, defaults and exit codes.
"""

from spec_style_linter.domain.entities import NodeKind

CONFIG_SECTION: str = "specstyle"

# DSL keyword -> node kind. RSpec.describe is recognised separately (receiver + method).
DSL_KEYWORDS: dict[str, NodeKind] = {
    "describe": NodeKind.SUITE,
    "xdescribe": NodeKind.SUITE,
    "fdescribe": NodeKind.SUITE,
    "feature": NodeKind.SUITE,
    "shared_examples": NodeKind.SUITE,
    "shared_examples_for": NodeKind.SUITE,
    "shared_context": NodeKind.SUITE,
    "context": NodeKind.CONTEXT,
    "xcontext": NodeKind.CONTEXT,
    "fcontext": NodeKind.CONTEXT,
    "it": NodeKind.EXAMPLE,
    "xit": NodeKind.EXAMPLE,
    "fit": NodeKind.EXAMPLE,
    "specify": NodeKind.EXAMPLE,
    "example": NodeKind.EXAMPLE,
    "scenario": NodeKind.EXAMPLE,
    "its": NodeKind.EXAMPLE,
}

DSL_RECEIVERS: frozenset[str] = frozenset({"RSpec"})

# Block-taking methods whose block runs more than once.
ITERATOR_METHODS: frozenset[str] = frozenset(
    {
        "each",
        "each_with_index",
        "each_with_object",
        "each_pair",
        "each_key",
        "each_value",
        "each_slice",
        "each_cons",
        "each_char",
        "each_line",
        "map",
        "flat_map",
        "collect",
        "times",
        "upto",
        "downto",
        "step",
        "loop",
        "cycle",
        "product",
        "combination",
        "permutation",
    }
)

LOOP_KEYWORDS: frozenset[str] = frozenset({"for", "while", "until"})

EXPECTATION_CALLS: frozenset[str] = frozenset(
    {"expect", "is_expected", "are_expected", "should", "should_not"}
)
ASSERTION_PREFIX: str = "assert"
AGGREGATE_FAILURES_TAG: str = "aggregate_failures"

DEFAULT_INCLUDE: tuple[str, ...] = ("**/*_spec.rb",)
DEFAULT_EXCLUDE_DIRS: frozenset[str] = frozenset(
    {".git", ".bundle", "vendor", "node_modules", "tmp", "coverage", "log"}
)
DEFAULT_SPEC_DIR: str = "spec"

DEFAULT_CONTEXT_PREFIXES: tuple[str, ...] = ("when", "with", "without")
DEFAULT_MAX_EXAMPLE_LENGTH: int = 40

EXIT_OK: int = 0
EXIT_VIOLATIONS: int = 1
EXIT_CONFIG_ERROR: int = 2
