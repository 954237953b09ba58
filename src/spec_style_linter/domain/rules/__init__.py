"""Domain models for rules and their outcomes."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from spec_style_linter.domain.entities import NodeKind, NodeContext, Severity, SourceLocation

if TYPE_CHECKING:
    from spec_style_linter.domain.config import LinterConfig


@dataclass(frozen=True)
class RuleOutcome:
    """Pass/fail result of one rule on one node, with an explanatory message."""

    passed: bool
    message: str = ""
    location: Optional[SourceLocation] = None
    """Where to anchor the violation; defaults to the node's own location."""

    @classmethod
    def ok(cls) -> "RuleOutcome":
        return cls(passed=True)

    @classmethod
    def fail(cls, message: str, location: Optional[SourceLocation] = None) -> "RuleOutcome":
        return cls(passed=False, message=message, location=location)


class BaseRule:
    """
    The fundamental unit of style governance.

    A rule is a stateless predicate over one node (plus its ancestor chain and
    sibling set). Configuration is read once at construction and never changes
    during a run.
    """

    rule_id: str = ""
    title: str = ""
    target_kinds: frozenset[NodeKind] = frozenset(NodeKind)
    default_severity: Severity = Severity.WARNING
    heuristic: bool = False

    def __init__(self, config: "LinterConfig", severity: Optional[Severity] = None) -> None:
        self.config = config
        self.severity = severity or self.default_severity

    def applies_to(self, kind: NodeKind) -> bool:
        return kind in self.target_kinds

    def check(self, ctx: NodeContext) -> RuleOutcome:
        """Interrogate a node for a style breach."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.rule_id!r}, severity={self.severity.value})"
