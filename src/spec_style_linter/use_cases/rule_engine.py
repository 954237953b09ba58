"""Use Case: Rule Engine - evaluate the active rules over a description tree."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from spec_style_linter.domain.entities import (
    DescriptionTree,
    NodeKind,
    RuleError,
    Violation,
)
from spec_style_linter.domain.exceptions import RuleEvaluationError

if TYPE_CHECKING:
    from spec_style_linter.domain.entities import NodeContext
    from spec_style_linter.domain.protocols import TelemetryPort
    from spec_style_linter.domain.rules import BaseRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    violations: tuple[Violation, ...] = ()
    rule_errors: tuple[RuleError, ...] = ()


class RuleEngine:
    """
    Visit every node once (pre-order, source order) and run the rules for its kind.

    The rule set is fixed at construction. The engine never mutates the tree,
    so evaluating the same tree twice yields equal results.
    """

    def __init__(self, rules: Iterable["BaseRule"], telemetry: Optional["TelemetryPort"] = None) -> None:
        self.rules = tuple(rules)
        self.telemetry = telemetry
        self._by_kind: dict[NodeKind, tuple["BaseRule", ...]] = {
            kind: tuple(rule for rule in self.rules if rule.applies_to(kind)) for kind in NodeKind
        }

    def rules_for(self, kind: NodeKind) -> tuple["BaseRule", ...]:
        return self._by_kind[kind]

    def evaluate(self, tree: DescriptionTree) -> EvaluationResult:
        violations: list[Violation] = []
        errors: list[RuleError] = []
        for ctx in tree.walk():
            for rule in self._by_kind[ctx.node.kind]:
                try:
                    violation = self._apply(rule, ctx)
                except RuleEvaluationError as exc:
                    cause = f"{type(exc.cause).__name__}: {exc.cause}"
                    errors.append(RuleError(rule.rule_id, ctx.node.location, cause))
                    self._warn(f"Rule {rule.rule_id} failed at {ctx.node.location}: {cause}")
                    continue
                if violation is not None:
                    violations.append(violation)
        # sorted() is stable: equal keys keep visit order.
        violations.sort(key=Violation.sort_key)
        return EvaluationResult(tuple(violations), tuple(errors))

    @staticmethod
    def _apply(rule: "BaseRule", ctx: "NodeContext") -> Optional[Violation]:
        try:
            outcome = rule.check(ctx)
        except Exception as exc:
            raise RuleEvaluationError(rule.rule_id, exc) from exc
        if outcome.passed:
            return None
        return Violation(
            rule_id=rule.rule_id,
            severity=rule.severity,
            message=outcome.message,
            location=outcome.location or ctx.node.location,
            node=ctx.node,
        )

    def _warn(self, message: str) -> None:
        if self.telemetry is not None:
            self.telemetry.warning(message)
        else:
            logger.warning(message)
