"""Structure rules: what an example contains and how examples are declared."""

from __future__ import annotations

from spec_style_linter.domain.constants import AGGREGATE_FAILURES_TAG
from spec_style_linter.domain.entities import NodeKind, NodeContext, Severity
from spec_style_linter.domain.rules import BaseRule, RuleOutcome


class OneExpectationPerExample(BaseRule):
    """
    One expectation per example.

    Best-effort: only top-level expectation statements of the example body are
    counted (expect / is_expected / should / assert*). Expectations nested in
    helper blocks are invisible, and examples tagged :aggregate_failures (or
    inside a group tagged with it) are exempt.
    """

    rule_id = "one-expectation"
    title = "Keep one expectation per example"
    target_kinds = frozenset({NodeKind.EXAMPLE})
    default_severity = Severity.WARNING
    heuristic = True

    def check(self, ctx: NodeContext) -> RuleOutcome:
        lines = ctx.node.expectation_lines
        if len(lines) <= 1:
            return RuleOutcome.ok()
        chain = ctx.ancestors + (ctx.node,)
        if any(AGGREGATE_FAILURES_TAG in n.metadata for n in chain):
            return RuleOutcome.ok()
        where = ", ".join(str(line) for line in lines)
        return RuleOutcome.fail(
            f"Example has {len(lines)} expectations (lines {where}); "
            f"split it or tag it :{AGGREGATE_FAILURES_TAG}"
        )


class NoIteratorGeneratedExamples(BaseRule):
    """
    Examples and groups are declared literally, not generated in a loop.

    Reported once per loop, on the first sibling the loop generates, and
    anchored at the loop itself.
    """

    rule_id = "no-iterator-examples"
    title = "Do not generate examples with iterators"
    target_kinds = frozenset(NodeKind)
    default_severity = Severity.ERROR

    def check(self, ctx: NodeContext) -> RuleOutcome:
        site = ctx.node.generated_by
        if site is None:
            return RuleOutcome.ok()
        generated = [s for s in ctx.siblings if s.generated_by == site]
        if not generated or generated[0] is not ctx.node:
            return RuleOutcome.ok()
        examples = sum(1 for s in generated if s.kind is NodeKind.EXAMPLE)
        groups = len(generated) - examples
        parts = []
        if examples:
            parts.append(f"{examples} example{'s' if examples != 1 else ''}")
        if groups:
            parts.append(f"{groups} group{'s' if groups != 1 else ''}")
        return RuleOutcome.fail(
            f"{' and '.join(parts)} generated inside '{site.construct}' loop; declare them explicitly",
            location=site.location,
        )
